"""Commit message templating for release bumps.

Templates use ``{{key}}`` placeholders where ``key`` is one or more ASCII
word characters. Known keys are substituted; unknown keys are kept verbatim,
braces included. Substituted values are never re-scanned, and there is no
escape for a literal ``{{key}}``.

Example:
    >>> render_commit_message("Release {{version}} by {{who}}", {"version": "1.0"})
    'Release 1.0 by {{who}}'
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

_OPEN = "{{"
_CLOSE = "}}"


def _is_word_char(char: str) -> bool:
    return char == "_" or ("a" <= char <= "z") or ("A" <= char <= "Z") or ("0" <= char <= "9")


def _placeholder_at(template: str, start: int) -> tuple[str, int] | None:
    """Return ``(key, end)`` when a placeholder starts at ``start``."""
    if not template.startswith(_OPEN, start):
        return None
    cursor = start + len(_OPEN)
    while cursor < len(template) and _is_word_char(template[cursor]):
        cursor += 1
    key = template[start + len(_OPEN) : cursor]
    if not key or not template.startswith(_CLOSE, cursor):
        return None
    return key, cursor + len(_CLOSE)


def _scan(template: str) -> Iterator[tuple[str, str | None]]:
    """Yield ``(text, key)`` chunks; ``key`` is set for placeholder chunks."""
    index = 0
    literal_start = 0
    while index < len(template):
        found = _placeholder_at(template, index)
        if found is None:
            index += 1
            continue
        key, end = found
        if literal_start < index:
            yield template[literal_start:index], None
        yield template[index:end], key
        index = end
        literal_start = end
    if literal_start < len(template):
        yield template[literal_start:], None


def placeholder_names(template: str) -> list[str]:
    """Return placeholder keys in the order they appear."""
    return [key for _text, key in _scan(template) if key is not None]


def render_commit_message(template: str, values: Mapping[str, str]) -> str:
    """Substitute ``{{key}}`` placeholders in a commit message template.

    Args:
        template: Message template.
        values: Substitution values by key (case-sensitive).

    Returns:
        The rendered message.
    """
    parts: list[str] = []
    for text, key in _scan(template):
        if key is not None and key in values:
            parts.append(values[key])
        else:
            parts.append(text)
    return "".join(parts)
