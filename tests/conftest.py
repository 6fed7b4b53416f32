"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import os
import sys
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local coverplane package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of coverplane modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("coverplane"):
        del sys.modules[module_name]


LCOV_SAMPLE = """\
TN:
SF:src/app.py
DA:1,1
DA:2,1
DA:3,0
DA:4,5
LF:4
LH:3
end_of_record
SF:src/util.py
DA:1,0
DA:2,2
end_of_record
"""

GOCOV_SAMPLE = """\
mode: count
github.com/acme/app/main.go:10.2,12.16 3 1
github.com/acme/app/main.go:15.2,20.16 5 0
github.com/acme/app/util.go:3.20,5.2 2 4
"""


@pytest.fixture(autouse=True)
def _isolate_global_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Keep the user's global config and COVERPLANE__ env vars out of tests."""
    import coverplane.config.loader as loader

    home = tmp_path_factory.mktemp("home")
    monkeypatch.setattr(loader, "GLOBAL_CONFIG_PATH", home / "config.yml")
    for key in list(os.environ):
        if key.startswith("COVERPLANE__"):
            monkeypatch.delenv(key)


@pytest.fixture
def lcov_file(tmp_path: Path) -> Path:
    path = tmp_path / "lcov.info"
    path.write_text(LCOV_SAMPLE)
    return path


@pytest.fixture
def gocov_file(tmp_path: Path) -> Path:
    path = tmp_path / "coverage.out"
    path.write_text(GOCOV_SAMPLE)
    return path
