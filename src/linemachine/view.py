"""Hierarchical, provenance-tracked line sequences.

A LineView holds input lines together with the source and offset each line
came from. Slicing a view produces a child view linked to its parent: edits
made through the child are propagated up the whole ancestor chain, so a
grammar can work on a sub-block and still update the document it came from.

Propagation only flows upward. Editing a parent does not update children
that already exist; a child made before such an edit is stale and should be
recreated. ``trim_start``/``trim_end``, ``replace_all`` and
``trim_left_chars`` act on the local view only.

Indices are never negative and never clamped. Any out-of-range index raises
ViewIndexError, which is also a built-in IndexError.

Thread Safety:
LineView instances are mutable and not synchronized. Use one per run.

Example:
    >>> doc = LineView(["title", "", "body", "more"], source="doc.txt")
    >>> block = doc[2:4]
    >>> block.set(0, "BODY")
    >>> doc.get(2)
    'BODY'
    >>> block.info(1)
    LineInfo(source='doc.txt', offset=3)

"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from linemachine.errors import UnexpectedIndentationError, ViewIndexError
from linemachine.lines import Line, LineInfo
from linemachine.text import is_blank


class LineView:
    """Ordered lines with per-line provenance and optional parent linkage.

    Create root views from a list of strings and a single source id (offsets
    are numbered from 0), or from strings plus explicit ``items``. Child
    views are only made by slicing an existing view.
    """

    __slots__ = ("_data", "_items", "_parent", "_parent_offset")

    def __init__(
        self,
        lines: Iterable[str] | LineView = (),
        source: str = "",
        items: Iterable[tuple[str, int]] | None = None,
    ) -> None:
        """Create a root view.

        Args:
            lines: Line texts, or another LineView to copy (detached)
            source: Source id for every line when ``items`` is not given
            items: Explicit ``(source, offset)`` pair for each line

        Raises:
            ValueError: If ``items`` and ``lines`` differ in length
        """
        self._parent: LineView | None = None
        self._parent_offset = 0
        if isinstance(lines, LineView):
            self._data = list(lines._data)
            self._items = list(lines._items)
            return
        self._data: list[str] = list(lines)
        if items is None:
            self._items: list[LineInfo] = [LineInfo(source, i) for i in range(len(self._data))]
        else:
            self._items = [LineInfo(src, off) for src, off in items]
        if len(self._data) != len(self._items):
            msg = f"data mismatch: {len(self._data)} lines but {len(self._items)} items"
            raise ValueError(msg)

    @classmethod
    def from_lines(cls, lines: Iterable[Line]) -> LineView:
        """Create a root view from Line objects."""
        lines = list(lines)
        return cls(
            [line.text for line in lines],
            items=[(line.source, line.offset) for line in lines],
        )

    # =========================================================================
    # Linkage
    # =========================================================================

    @property
    def parent(self) -> LineView | None:
        """The view this one was sliced from, or None for a root view."""
        return self._parent

    @property
    def parent_offset(self) -> int:
        """Offset of local index 0 within the parent view."""
        return self._parent_offset

    def slice(self, start: int, stop: int | None = None) -> LineView:
        """Return a child view over ``[start, stop)`` linked to this view.

        Raises:
            ViewIndexError: Unless ``0 <= start <= stop <= len(self)``
        """
        if stop is None:
            stop = len(self._data)
        self._check_range(start, stop)
        child = LineView(self._data[start:stop], items=self._items[start:stop])
        child._parent = self
        child._parent_offset = start
        return child

    def _sibling(self, start: int, stop: int) -> LineView:
        """Return a view over ``[start, stop)`` linked to this view's parent.

        The result sits beside this view rather than under it: edits reach
        the parent at the translated index, and a root view yields a root.
        """
        self._check_range(start, stop)
        block = LineView(self._data[start:stop], items=self._items[start:stop])
        block._parent = self._parent
        if self._parent is not None:
            block._parent_offset = self._parent_offset + start
        return block

    def disconnect(self) -> None:
        """Break the link to the parent view permanently."""
        self._parent = None

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def data(self) -> list[str]:
        """Copy of the line texts."""
        return list(self._data)

    @property
    def items(self) -> list[LineInfo]:
        """Copy of the per-line provenance."""
        return list(self._items)

    def get(self, i: int) -> str:
        self._check_index(i)
        return self._data[i]

    def info(self, i: int) -> LineInfo:
        """Return source and offset for index ``i``.

        ``i == len(self)`` is the "just past the end" position and returns
        the last line's source with offset -1.

        Raises:
            ViewIndexError: For any other out-of-range index, and for
                ``i == 0`` on an empty view
        """
        if 0 <= i < len(self._items):
            return self._items[i]
        if i == len(self._items) and self._items:
            return LineInfo(self._items[-1].source, -1)
        raise ViewIndexError("LineView info index out of range", i)

    def source(self, i: int) -> str:
        """Return the source id for index ``i``."""
        return self.info(i).source

    def offset(self, i: int) -> int:
        """Return the offset within its source for index ``i``."""
        return self.info(i).offset

    def lines(self) -> Iterator[Line]:
        """Iterate over the lines as Line objects."""
        for text, (source, offset) in zip(self._data, self._items):
            yield Line(text, source, offset)

    def xitems(self) -> Iterator[tuple[str, int, str]]:
        """Iterate over ``(source, offset, text)`` triples."""
        for text, (source, offset) in zip(self._data, self._items):
            yield source, offset, text

    def copy(self) -> LineView:
        """Return a detached root copy of this view."""
        return LineView(self)

    # =========================================================================
    # Mutation (propagated to the parent)
    # =========================================================================

    def set(self, i: int, text: str) -> None:
        self._check_index(i)
        self._data[i] = text
        if self._parent is not None:
            self._parent.set(i + self._parent_offset, text)

    def set_range(self, start: int, stop: int, other: LineView) -> None:
        """Replace ``[start, stop)`` with the lines of ``other``.

        The replacement may differ in length from the range it replaces.
        """
        self._check_range(start, stop)
        other = self._detached(other)
        self._data[start:stop] = other._data
        self._items[start:stop] = other._items
        if self._parent is not None:
            self._parent.set_range(start + self._parent_offset, stop + self._parent_offset, other)

    def delete_at(self, i: int) -> None:
        self._check_index(i)
        del self._data[i]
        del self._items[i]
        if self._parent is not None:
            self._parent.delete_at(i + self._parent_offset)

    def delete_range(self, start: int, stop: int) -> None:
        self._check_range(start, stop)
        del self._data[start:stop]
        del self._items[start:stop]
        if self._parent is not None:
            self._parent.delete_range(start + self._parent_offset, stop + self._parent_offset)

    def insert_at(self, i: int, text: str, source: str, offset: int) -> None:
        """Insert one line before index ``i`` (``i == len(self)`` appends).

        Raises:
            ValueError: If ``source`` is empty
            ViewIndexError: Unless ``0 <= i <= len(self)``
        """
        self._check_source(source)
        self._check_insert_point(i)
        self._data.insert(i, text)
        self._items.insert(i, LineInfo(source, offset))
        if self._parent is not None:
            self._parent.insert_at(i + self._parent_offset, text, source, offset)

    def insert_range(self, i: int, other: LineView) -> None:
        """Insert all lines of ``other`` before index ``i``."""
        self._check_insert_point(i)
        other = self._detached(other)
        self._data[i:i] = other._data
        self._items[i:i] = other._items
        if self._parent is not None:
            self._parent.insert_range(i + self._parent_offset, other)

    def append(self, text: str, source: str, offset: int) -> None:
        """Append one line.

        Raises:
            ValueError: If ``source`` is empty
        """
        self._check_source(source)
        if self._parent is not None:
            self._parent.insert_at(len(self._data) + self._parent_offset, text, source, offset)
        self._data.append(text)
        self._items.append(LineInfo(source, offset))

    def append_range(self, other: LineView) -> None:
        """Append all lines of ``other``."""
        other = self._detached(other)
        if self._parent is not None:
            self._parent.insert_range(len(self._data) + self._parent_offset, other)
        self._data.extend(other._data)
        self._items.extend(other._items)

    extend = append_range

    def remove_at(self, i: int) -> str:
        """Remove the line at ``i`` and return its text.

        The removal reaches the parent before the local list changes.
        """
        self._check_index(i)
        if self._parent is not None:
            self._parent.remove_at(i + self._parent_offset)
        del self._items[i]
        return self._data.pop(i)

    def pop(self, i: int | None = None) -> str:
        """Remove and return the line at ``i`` (default: the last line)."""
        if i is None:
            i = len(self._data) - 1
        return self.remove_at(i)

    # =========================================================================
    # Local-only mutation
    # =========================================================================

    def trim_start(self, n: int = 1) -> None:
        """Remove ``n`` lines from the start without touching the parent.

        A linked view moves its ``parent_offset`` forward so that later
        propagated edits still land on the right parent lines.
        """
        self._check_trim(n)
        del self._data[:n]
        del self._items[:n]
        if self._parent is not None:
            self._parent_offset += n

    def trim_end(self, n: int = 1) -> None:
        """Remove ``n`` lines from the end without touching the parent."""
        self._check_trim(n)
        end = len(self._data) - n
        del self._data[end:]
        del self._items[end:]

    def replace_all(self, old: str, new: str) -> None:
        """Replace every occurrence of ``old`` with ``new`` in every line."""
        self._data = [line.replace(old, new) for line in self._data]

    def trim_left_chars(self, n: int, start: int = 0, stop: int | None = None) -> None:
        """Strip the first ``n`` characters of each line in ``[start, stop)``.

        No whitespace checking is done on the removed text.
        """
        if stop is None:
            stop = len(self._data)
        self._check_range(start, stop)
        for i in range(start, stop):
            self._data[i] = self._data[i][n:]

    # =========================================================================
    # Block extraction
    # =========================================================================

    def get_text_block(self, start: int = 0, flush_left: bool = False) -> LineView:
        """Return the contiguous non-blank block starting at ``start``.

        The block ends before the first blank line or at the end of the view.

        Args:
            start: Index of the first line of the block
            flush_left: Reject blocks containing indented lines

        Returns:
            View over the block, linked to this view's parent (a root
            view when this view has none)

        Raises:
            UnexpectedIndentationError: If ``flush_left`` is set and an
                indented line appears before the block ends
        """
        self._check_insert_point(start)
        end = start
        last = len(self._data)
        while end < last:
            line = self._data[end]
            if is_blank(line):
                break
            if flush_left and line[0].isspace():
                source, offset = self._items[end]
                raise UnexpectedIndentationError(
                    "indented line in flush-left text block",
                    source,
                    offset,
                    block=self._sibling(start, end),
                )
            end += 1
        return self._sibling(start, end)

    def get_indented(
        self,
        start: int = 0,
        until_blank: bool = False,
        strip_indent: bool = True,
        block_indent: int | None = None,
        first_indent: int | None = None,
    ) -> tuple[LineView, int, bool]:
        """Extract an indented block starting at ``start``.

        The block ends at the first line that is not indented (or, with
        ``block_indent``, not indented enough), at the end of the view, or
        with ``until_blank`` at the first blank line.

        Args:
            start: Index of the first line of the block
            until_blank: Stop at the first blank line
            strip_indent: Remove the common indentation from the block
            block_indent: Required indentation; lines indented less end the
                block. The minimum indent is measured when None.
            first_indent: Indentation of the first line, which is taken
                unconditionally. Defaults to ``block_indent``.

        Returns:
            ``(block, indent, blank_finish)``: a child view over the block,
            the indentation that was found (or given), and whether the block
            ended with a blank line or the end of input
        """
        self._check_insert_point(start)
        indent = block_indent
        end = start
        if block_indent is not None and first_indent is None:
            first_indent = block_indent
        if first_indent is not None:
            end += 1
        last = len(self._data)
        blank_finish = True
        while end < last:
            line = self._data[end]
            if line and (
                not line[0].isspace()
                or (block_indent is not None and line[:block_indent].strip())
            ):
                blank_finish = end > start and is_blank(self._data[end - 1])
                break
            stripped = line.lstrip()
            if not stripped:
                if until_blank:
                    break
            elif block_indent is None:
                line_indent = len(line) - len(stripped)
                indent = line_indent if indent is None else min(indent, line_indent)
            end += 1
        block = self.slice(start, min(end, last))
        if first_indent is not None and len(block):
            block._data[0] = block._data[0][first_indent:]
        if indent and strip_indent and len(block):
            block.trim_left_chars(indent, start=1 if first_indent is not None else 0)
        return block, indent or 0, blank_finish

    # =========================================================================
    # Python protocol
    # =========================================================================

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __contains__(self, text: object) -> bool:
        return text in self._data

    def __getitem__(self, key: int | slice) -> str | LineView:
        if isinstance(key, slice):
            start, stop = self._slice_bounds(key)
            return self.slice(start, stop)
        return self.get(key)

    def __setitem__(self, key: int | slice, value: str | LineView) -> None:
        if isinstance(key, slice):
            if not isinstance(value, LineView):
                msg = f"assigning to a LineView slice requires a LineView, not {type(value).__name__}"
                raise TypeError(msg)
            start, stop = self._slice_bounds(key)
            self.set_range(start, stop, value)
        else:
            self.set(key, value)

    def __delitem__(self, key: int | slice) -> None:
        if isinstance(key, slice):
            start, stop = self._slice_bounds(key)
            self.delete_range(start, stop)
        else:
            self.delete_at(key)

    def __add__(self, other: object) -> LineView:
        if not isinstance(other, LineView):
            return NotImplemented
        return LineView(self._data + other._data, items=self._items + other._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LineView):
            return self._data == other._data
        if isinstance(other, list):
            return self._data == other
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r}, items={self._items!r})"

    # =========================================================================
    # Validation helpers
    # =========================================================================

    def _check_index(self, i: int) -> None:
        if not 0 <= i < len(self._data):
            raise ViewIndexError("LineView index out of range", i)

    def _check_insert_point(self, i: int) -> None:
        if not 0 <= i <= len(self._data):
            raise ViewIndexError("LineView position out of range", i)

    def _check_range(self, start: int, stop: int) -> None:
        if not 0 <= start <= stop <= len(self._data):
            raise ViewIndexError(f"LineView range [{start}, {stop}) out of range")

    def _check_trim(self, n: int) -> None:
        if n < 0:
            raise ViewIndexError("Trim size must be >= 0", n)
        if n > len(self._data):
            raise ViewIndexError("Size of trim too large", n)

    @staticmethod
    def _check_source(source: str) -> None:
        if not source:
            msg = "source must be a non-empty string"
            raise ValueError(msg)

    def _slice_bounds(self, key: slice) -> tuple[int, int]:
        if key.step not in (None, 1):
            msg = "LineView does not support extended slicing"
            raise ValueError(msg)
        start = 0 if key.start is None else key.start
        stop = len(self._data) if key.stop is None else key.stop
        return start, stop

    @staticmethod
    def _detached(other: LineView) -> LineView:
        if not isinstance(other, LineView):
            msg = f"expected a LineView, not {type(other).__name__}"
            raise TypeError(msg)
        return LineView(other)


def as_view(lines: Sequence[str] | LineView, source: str = "") -> LineView:
    """Return ``lines`` unchanged if it is a LineView, else wrap it in a root view."""
    if isinstance(lines, LineView):
        return lines
    return LineView(lines, source=source)
