"""Line provenance types.

A Line is one input line plus where it came from: a source identifier and
the offset of the line within that source. LineInfo is the provenance part
alone, as stored alongside the text in a LineView.

Thread Safety:
Both types are immutable and safe to share across threads.

"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


class LineInfo(NamedTuple):
    """Provenance of a line: source identifier and offset within it.

    An offset of -1 marks the "just past the end" position returned by
    LineView.info(len(view)).
    """

    source: str
    offset: int


@dataclass(frozen=True, slots=True)
class Line:
    """One input line and its provenance.

    Attributes:
        text: Line text, without the trailing newline
        source: Source identifier (file path, "<string>", ...)
        offset: 0-based offset of the line within its source

    Examples:
        >>> line = Line("Hello", "doc.txt", 3)
        >>> line.info
        LineInfo(source='doc.txt', offset=3)
        >>> str(line)
        'doc.txt:4: Hello'

    """

    text: str
    source: str
    offset: int

    @property
    def info(self) -> LineInfo:
        """Provenance of this line."""
        return LineInfo(self.source, self.offset)

    @property
    def lineno(self) -> int:
        """1-based line number within the source."""
        return self.offset + 1

    def __str__(self) -> str:
        return f"{self.source}:{self.lineno}: {self.text}"
