"""Line-based edits for the registry's ``extensions.toml`` manifest.

The manifest holds one table per extension::

    [my-ext]
    submodule = "extensions/my-ext"
    version = "0.1.0"

Edits are done line by line so comments, ordering and every other table
stay byte-identical.

Example:
    >>> text = '[demo]\\nsubmodule = "extensions/demo"\\nversion = "0.1.0"\\n'
    >>> print(ManifestUpdate("demo", "0.2.0")(text), end="")
    [demo]
    submodule = "extensions/demo"
    version = "0.2.0"
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .services.errors import ManifestEntryMissingError

MANIFEST_PATH = "extensions.toml"

_ANY_HEADER = re.compile(r"^\s*\[")
_VERSION_LINE = re.compile(r"^(?P<indent>\s*)version\s*=")
_REVISION_LINE = re.compile(r"^\s*revision\s*=")


def _header_pattern(name: str) -> re.Pattern[str]:
    escaped = re.escape(name)
    return re.compile(rf"^\s*\[\s*(?:{escaped}|\"{escaped}\"|'{escaped}')\s*\]\s*(?:#.*)?$")


def _line_ending(line: str) -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    if line.endswith("\n"):
        return "\n"
    return ""


def _table_bounds(lines: list[str], name: str) -> tuple[int, int] | None:
    """Return ``(header_index, end_index)`` for the ``[name]`` table."""
    header = _header_pattern(name)
    start: int | None = None
    for index, line in enumerate(lines):
        if start is None:
            if header.match(line.rstrip("\r\n")):
                start = index
            continue
        if _ANY_HEADER.match(line):
            return start, index
    if start is None:
        return None
    return start, len(lines)


def update_version(content: str, name: str, version: str) -> str:
    """Set ``version`` inside the ``[name]`` table.

    Args:
        content: Current manifest text.
        name: Extension id (table name).
        version: New version string.

    Returns:
        Manifest text with the table's version replaced, or inserted right
        after the header when the table had none.

    Raises:
        ManifestEntryMissingError: When the manifest has no ``[name]`` table.
    """
    lines = content.splitlines(keepends=True)
    bounds = _table_bounds(lines, name)
    if bounds is None:
        raise ManifestEntryMissingError(name)
    start, end = bounds
    rendered = f'version = "{version}"'
    for index in range(start + 1, end):
        line = lines[index]
        match = _VERSION_LINE.match(line)
        if match:
            lines[index] = f"{match.group('indent')}{rendered}{_line_ending(line)}"
            return "".join(lines)

    header = lines[start]
    ending = _line_ending(header) or "\n"
    if not _line_ending(header):
        lines[start] = header + ending
    lines.insert(start + 1, f"{rendered}{ending}")
    return "".join(lines)


def remove_revision_line(content: str, name: str | None = None) -> str:
    """Drop a stale ``revision = ...`` line.

    Args:
        content: Manifest text.
        name: When given, only the ``[name]`` table is searched; otherwise
            the first revision line in the file is removed.

    Returns:
        Manifest text without the revision line, or ``content`` unchanged
        when there is none.
    """
    lines = content.splitlines(keepends=True)
    if name is None:
        start, end = 0, len(lines)
    else:
        bounds = _table_bounds(lines, name)
        if bounds is None:
            return content
        start, end = bounds
    for index in range(start, end):
        if _REVISION_LINE.match(lines[index]):
            del lines[index]
            return "".join(lines)
    return content


@dataclass(frozen=True)
class ManifestUpdate:
    """Content transform bumping one extension to a released version.

    Args:
        extension_name: Extension id (manifest table name).
        version: Released version.
    """

    extension_name: str
    version: str

    def apply(self, content: str) -> str:
        updated = update_version(content, self.extension_name, self.version)
        return remove_revision_line(updated, self.extension_name)

    def __call__(self, content: str) -> str:
        return self.apply(content)
