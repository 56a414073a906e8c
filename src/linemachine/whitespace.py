"""Indentation-aware states and engine.

WhitespaceState adds two built-in transitions, ``blank`` and ``indent``,
ahead of a grammar's own transitions. By default a blank line is skipped and
an indented block is handed to a nested engine running the same state
class, with the nested results spliced into the outer output.

WhitespaceEngine adds the three ways of pulling an indented block off the
input at the current line: with unknown indentation, with known
indentation, and with known indentation of the first line only.
"""

from __future__ import annotations

import re
from typing import Any, ClassVar

from linemachine.engine import Engine
from linemachine.state import HandlerResult, State, transition
from linemachine.view import LineView


class WhitespaceEngine(Engine):
    """Engine with indented-block extraction for WhitespaceState handlers."""

    def get_indented(
        self, until_blank: bool = False, strip_indent: bool = True
    ) -> tuple[LineView, int, int, bool]:
        """Extract the indented block starting at the current line.

        The indentation is the minimum indent of the block's non-blank lines.
        Advances to the last line of the block. Leading blank lines are
        dropped from the returned block.

        Returns:
            ``(block, indent, abs_offset, blank_finish)`` where
            ``abs_offset`` is the absolute offset of the block's first line
        """
        offset = self.abs_line_offset()
        indented, indent, blank_finish = self.input_lines.get_indented(
            self.line_offset, until_blank, strip_indent
        )
        if indented:
            self.next_line(len(indented) - 1)
        offset += _strip_top(indented)
        return indented, indent, offset, blank_finish

    def get_known_indented(
        self, indent: int, until_blank: bool = False, strip_indent: bool = True
    ) -> tuple[LineView, int, bool]:
        """Extract a block indented by at least ``indent``, starting at the current line.

        The current line is taken unconditionally (its first ``indent``
        characters removed). The block ends at the first non-blank line
        indented less than ``indent``.

        Returns:
            ``(block, abs_offset, blank_finish)``
        """
        offset = self.abs_line_offset()
        indented, indent, blank_finish = self.input_lines.get_indented(
            self.line_offset, until_blank, strip_indent, block_indent=indent
        )
        self.next_line(len(indented) - 1)
        offset += _strip_top(indented)
        return indented, offset, blank_finish

    def get_first_known_indented(
        self,
        indent: int,
        until_blank: bool = False,
        strip_indent: bool = True,
        strip_top: bool = True,
    ) -> tuple[LineView, int, int, bool]:
        """Extract an indented block whose first line has a known indent.

        Used for constructs like list items, where the marker fixes the
        indentation of the first line and the rest of the block's
        indentation is measured.

        Returns:
            ``(block, indent, abs_offset, blank_finish)``
        """
        offset = self.abs_line_offset()
        indented, indent, blank_finish = self.input_lines.get_indented(
            self.line_offset, until_blank, strip_indent, first_indent=indent
        )
        self.next_line(len(indented) - 1)
        if strip_top:
            offset += _strip_top(indented)
        return indented, indent, offset, blank_finish


def _strip_top(block: LineView) -> int:
    """Drop leading blank lines from ``block``; return how many were dropped."""
    dropped = 0
    while block and not block[0].strip():
        block.trim_start()
        dropped += 1
    return dropped


class WhitespaceState(State):
    """State with built-in ``blank`` and ``indent`` transitions.

    The whitespace transitions take precedence over the subclass's
    ``initial_transitions``. Override ``blank`` or ``indent`` (keeping the
    ``@transition`` marker) to change what they do.
    """

    # Anchored at both ends so every match_mode reads them alike
    ws_patterns: ClassVar[dict[str, re.Pattern[str]]] = {
        "blank": re.compile(r"\A *\Z"),
        "indent": re.compile(r"\A +\S.*"),
    }
    ws_initial_transitions: ClassVar[tuple[str, ...]] = ("blank", "indent")

    def __init__(self, engine: Engine | None = None, **kwargs: Any) -> None:
        super().__init__(engine, **kwargs)
        for name, pattern in self.ws_patterns.items():
            self.patterns.setdefault(name, pattern)
        names, transitions = self.make_transitions(self.ws_initial_transitions)
        self.add_transitions(names, transitions)

    def nested_engine(self) -> Engine:
        """Build the engine that processes an indented block.

        Defaults to a fresh engine of the controlling engine's class whose
        only state is a new instance of this state's class.
        """
        parent = self.engine
        engine_class = type(parent) if parent is not None else WhitespaceEngine
        config = parent.config if parent is not None else None
        return engine_class([type(self)], type(self).__name__, config=config)

    @transition("blank")
    def blank(self, match: re.Match[str], context: Any, next_state: str | None) -> HandlerResult:
        """Skip blank lines."""
        return self.nop(match, context, next_state)

    @transition("indent")
    def indent(self, match: re.Match[str], context: Any, next_state: str | None) -> HandlerResult:
        """Run a nested engine over the indented block at the current line."""
        engine = self.engine
        if not isinstance(engine, WhitespaceEngine):
            msg = f"{self.name}.indent needs a WhitespaceEngine, not {type(engine).__name__}"
            raise TypeError(msg)
        indented, indent, line_offset, blank_finish = engine.get_indented()
        results = self.nested_engine().run(indented, input_offset=line_offset)
        return context, next_state, results
