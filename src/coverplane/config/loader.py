"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (COVERPLANE__SECTION__KEY)
3. Repo config (.coverplane.yml or .coverplane.yaml)
4. Global config (~/.config/coverplane/config.yml)
5. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from coverplane.config.models import (
    CodeToTestRatioConfig,
    CoverageConfig,
    CoverPlaneConfig,
    DiffConfig,
    ExecutionTimeConfig,
    LoggingConfig,
    ReportConfig,
)
from coverplane.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/coverplane/config.yml").expanduser()
REPO_CONFIG_NAMES = (".coverplane.yml", ".coverplane.yaml")


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def find_repo_config(repo_root: Path) -> Path | None:
    for name in REPO_CONFIG_NAMES:
        candidate = repo_root / name
        if candidate.exists():
            return candidate
    return None


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source."""

    class CoverPlaneSettings(BaseSettings):
        """Root config. Env vars: COVERPLANE__COVERAGE__PATH, COVERPLANE__LOGGING__LEVEL, etc."""

        model_config = SettingsConfigDict(
            env_prefix="COVERPLANE__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        repository: str | None = None
        logging: LoggingConfig = LoggingConfig()
        coverage: CoverageConfig = CoverageConfig()
        code_to_test_ratio: CodeToTestRatioConfig = CodeToTestRatioConfig()
        test_execution_time: ExecutionTimeConfig = ExecutionTimeConfig()
        diff: DiffConfig = DiffConfig()
        report: ReportConfig = ReportConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml files
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return CoverPlaneSettings


def load_config(
    repo_root: Path | None = None,
    *,
    config_path: Path | None = None,
    **kwargs: Any,
) -> CoverPlaneConfig:
    """Load config: defaults < global yaml < repo yaml < env vars < kwargs.

    Args:
        repo_root: Project root searched for .coverplane.yml.
                   Defaults to current working directory.
        config_path: Explicit config file; must exist when given.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On missing explicit file, invalid YAML or validation errors.
    """
    repo_root = repo_root or Path.cwd()

    if config_path is not None:
        if not config_path.exists():
            raise ConfigError.parse_error(str(config_path), "file not found")
        repo_config = _load_yaml(config_path)
    else:
        found = find_repo_config(repo_root)
        repo_config = _load_yaml(found) if found else {}

    yaml_config = _deep_merge(_load_yaml(GLOBAL_CONFIG_PATH), repo_config)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return CoverPlaneConfig.model_validate(settings.model_dump())
