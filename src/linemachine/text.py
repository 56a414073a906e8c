"""Text helpers for line-oriented input.

Example:
    >>> from linemachine.text import string_to_lines
    >>> string_to_lines("a\\tb\\n  c  \\n")
    ['a       b', '  c']
"""

from __future__ import annotations

_WHITESPACE_TRANSLATION = str.maketrans("\v\f", "  ")


def string_to_lines(
    text: str,
    tab_width: int = 8,
    convert_whitespace: bool = False,
) -> list[str]:
    """Split text into newline-stripped lines.

    Tabs are expanded to ``tab_width`` stops and trailing whitespace is
    stripped from every line.

    Args:
        text: Raw input text
        tab_width: Tab stop width
        convert_whitespace: Also turn vertical tabs and form feeds into spaces

    Returns:
        List of lines, without newlines
    """
    if convert_whitespace:
        text = text.translate(_WHITESPACE_TRANSLATION)
    return [line.expandtabs(tab_width).rstrip() for line in text.splitlines()]


def is_blank(line: str) -> bool:
    """True if the line is empty or whitespace only."""
    return not line.strip()


def indent_of(line: str) -> int:
    """Number of leading whitespace characters in a line."""
    return len(line) - len(line.lstrip())
