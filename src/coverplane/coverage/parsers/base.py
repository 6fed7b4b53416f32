"""Coverage parser protocol and shared decoding helpers."""

import xml.etree.ElementTree as ET
from typing import Protocol

from coverplane.coverage.models import (
    Coverage,
    FormatMismatchError,
    MalformedRecordError,
)


class CoverageParser(Protocol):
    """Protocol for coverage format parsers.

    Each parser handles one coverage format and converts raw report bytes
    to the unified Coverage model.
    """

    @property
    def format_id(self) -> str:
        """Format identifier (e.g., 'lcov', 'cobertura')."""
        ...

    @property
    def default_filenames(self) -> tuple[str, ...]:
        """Report locations tried when a directory is given, relative to it."""
        ...

    def parse(self, data: bytes, *, root: str | None = None) -> Coverage:
        """Parse raw report bytes into the unified model.

        Args:
            data: Report content.
            root: Project root, used only to resolve relative references
                  inside the report (never to rewrite stored paths).

        Raises:
            FormatMismatchError: Input is not this format (cheap, early).
            MalformedRecordError: Input is this format but a record is broken.
        """
        ...


def decode_text(data: bytes, format_id: str) -> str:
    """Decode report bytes as UTF-8 text (BOM tolerated)."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FormatMismatchError(format_id, f"not UTF-8 text: {e}") from e


def parse_xml(data: bytes, format_id: str, root_tag: str) -> ET.Element:
    """Parse an XML report and check its root element.

    Non-XML input is rejected before invoking the XML parser.
    """
    head = data.lstrip(b"\xef\xbb\xbf \t\r\n")
    if not head.startswith(b"<"):
        raise FormatMismatchError(format_id, "not XML")
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise FormatMismatchError(format_id, f"invalid XML: {e}") from e

    # Strip namespace if present
    for elem in root.iter():
        if isinstance(elem.tag, str) and "}" in elem.tag:
            elem.tag = elem.tag.split("}", 1)[1]

    if root.tag != root_tag:
        raise FormatMismatchError(format_id, f"root element is <{root.tag}>")
    return root


def int_attr(elem: ET.Element, name: str, format_id: str, *, default: int | None = None) -> int:
    """Read a non-negative integer attribute."""
    raw = elem.get(name)
    if raw is None:
        if default is not None:
            return default
        raise MalformedRecordError(format_id, f"<{elem.tag}> is missing '{name}'")
    try:
        value = int(raw)
    except ValueError:
        # Some producers write counts as floats ("1.0")
        try:
            value = int(float(raw))
        except ValueError as e:
            raise MalformedRecordError(
                format_id, f"<{elem.tag} {name}={raw!r}> is not a number"
            ) from e
    if value < 0:
        raise MalformedRecordError(format_id, f"<{elem.tag} {name}={raw!r}> is negative")
    return value
