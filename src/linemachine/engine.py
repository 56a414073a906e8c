"""Transition-table driven line engine.

The Engine walks a LineView one line at a time. For every line it searches
the current State's transitions in order, runs the first matching handler,
collects the handler's output and switches state when asked to. Input ends
when reading the next line fails; that is the normal way a run finishes.

Handlers reach back into the engine (through ``State.engine``) to look
ahead, skip lines, pull whole text blocks or splice extra input in after
the current line.

Thread Safety:
An Engine carries per-run position state. Use one Engine per thread and
never share one between concurrent runs.

Example:
    >>> engine = Engine([Body], "Body")
    >>> engine.run(["- one", "two"])
    [('item', 'one'), ('text', 'two')]

"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from linemachine.config import EngineConfig, get_engine_config
from linemachine.errors import (
    DuplicateStateError,
    EndOfInput,
    StateCorrection,
    TransitionCorrection,
    UnexpectedIndentationError,
    UnknownStateError,
    UnknownTransitionError,
    ViewIndexError,
)
from linemachine.lines import LineInfo
from linemachine.profiling import get_run_accumulator
from linemachine.state import STAY, HandlerResult, State
from linemachine.text import is_blank, string_to_lines
from linemachine.utils.logger import get_logger
from linemachine.view import LineView, as_view

logger = get_logger(__name__)

Observer = Callable[[str, int], None]

# Reported to observers when the current position has no line
_NO_POSITION = LineInfo("", -1)


class Engine:
    """A finite state machine for line-oriented text using regex transitions.

    Args:
        states: State classes (instantiated and bound to this engine) or
            State instances (bound to this engine)
        initial_state: Name of the state each run starts in
        config: Engine configuration; the context's active config when None

    Raises:
        DuplicateStateError: Two states share a name
    """

    def __init__(
        self,
        states: Iterable[type[State] | State] = (),
        initial_state: str = "",
        *,
        config: EngineConfig | None = None,
    ) -> None:
        self.config = config or get_engine_config()
        self.states: dict[str, State] = {}
        self.initial_state = initial_state
        self.current_state = initial_state

        # Per-run position state, reset by run()
        self.input_lines: LineView = LineView()
        self.input_offset = 0
        self.line: str | None = None
        self.line_offset = -1
        self.observers: list[Observer] = []

        self.add_states(states)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} states={list(self.states)} current={self.current_state!r}>"

    # =========================================================================
    # Setup
    # =========================================================================

    def add_state(self, state: type[State] | State) -> State:
        """Register a state.

        Args:
            state: A State subclass (instantiated here) or a State instance

        Returns:
            The registered instance

        Raises:
            DuplicateStateError: The name is already registered
        """
        if isinstance(state, State):
            name = state.name
            if name in self.states:
                raise DuplicateStateError(name)
            state.bind(self)
        else:
            name = state.__name__
            if name in self.states:
                raise DuplicateStateError(name)
            state = state(self)
        self.states[name] = state
        logger.debug("registered state %s with transitions %s", name, state.transition_order)
        return state

    def add_states(self, states: Iterable[type[State] | State]) -> None:
        for state in states:
            self.add_state(state)

    def get_state(self, next_state: str | None = STAY) -> State:
        """Return the current state, switching to ``next_state`` first if given.

        Raises:
            UnknownStateError: ``next_state`` (or the current state) is not
                registered
        """
        if next_state is not STAY:
            if self.config.debug and next_state != self.current_state:
                logger.debug(
                    "state change %s -> %s at line %d",
                    self.current_state,
                    next_state,
                    self.abs_line_number(),
                )
            self.current_state = next_state
        try:
            return self.states[self.current_state]
        except KeyError:
            raise UnknownStateError(self.current_state, tuple(self.states)) from None

    # =========================================================================
    # Run loop
    # =========================================================================

    def runtime_init(self) -> None:
        """Reset per-run state of every registered state."""
        for state in self.states.values():
            state.runtime_init()

    def run(
        self,
        input_lines: LineView | Sequence[str] | str,
        input_offset: int = 0,
        context: Any = None,
        input_source: str = "",
        initial_state: str | None = None,
    ) -> list[Any]:
        """Run the engine over ``input_lines`` and return the collected output.

        Args:
            input_lines: A LineView, a sequence of lines, or raw text (split
                with the configured tab width)
            input_offset: Offset of the first input line from the start of
                the whole file, used by absolute navigation
            context: Initial context passed to the start state's ``begin``
            input_source: Source id for input that is not already a LineView
            initial_state: Start state; the engine's initial state when None

        Returns:
            Concatenated output of ``begin``, every handler, and ``end``

        Raises:
            UnknownStateError: A handler switched to an unregistered state
        """
        self.runtime_init()
        if isinstance(input_lines, str):
            input_lines = string_to_lines(
                input_lines,
                tab_width=self.config.tab_width,
                convert_whitespace=self.config.convert_whitespace,
            )
        self.input_lines = as_view(input_lines, input_source)
        self.input_offset = input_offset
        self.line_offset = -1
        self.line = None
        self.current_state = initial_state or self.initial_state

        acc = get_run_accumulator()
        if self.config.debug:
            logger.debug(
                "run: %d lines from %r, state %s",
                len(self.input_lines),
                input_source or (self.input_lines.source(0) if len(self.input_lines) else ""),
                self.current_state,
            )

        results: list[Any] = []
        transitions: Sequence[str] | None = None
        try:
            state = self.get_state()
            context, result = state.begin(context)
            results.extend(result)
            while True:
                try:
                    try:
                        self.next_line()
                        if acc is not None:
                            acc.record_line()
                        context, next_state, result = self.check_line(context, state, transitions)
                    except EndOfInput:
                        if self.config.debug:
                            logger.debug("end of input in state %s", state.name)
                        results.extend(state.end(context))
                        break
                    results.extend(result)
                except TransitionCorrection as correction:
                    # Re-read this line with one specific transition
                    self.previous_line()
                    transitions = (correction.transition_name,)
                    continue
                except StateCorrection as correction:
                    self.previous_line()
                    next_state = correction.state_name
                    if correction.transition_name is None:
                        transitions = None
                    else:
                        transitions = (correction.transition_name,)
                else:
                    transitions = None
                state = self.get_state(next_state)
        finally:
            self.observers = []
        if acc is not None:
            acc.record_run()
        return results

    def check_line(
        self,
        context: Any,
        state: State,
        transitions: Sequence[str] | None = None,
    ) -> HandlerResult:
        """Run the first transition of ``state`` whose pattern matches the current line.

        Args:
            context: Current context
            state: State whose transitions are searched
            transitions: Transition names to try, in order; all of the
                state's transitions when None

        Returns:
            The ``(context, next_state, output)`` of the handler that ran,
            or of ``state.no_match``
        """
        if transitions is None:
            transitions = state.transition_order
        line = self.line or ""
        debug = self.config.debug
        acc = get_run_accumulator()
        for name in transitions:
            try:
                pattern, handler, next_state = state.transitions[name]
            except KeyError:
                raise UnknownTransitionError(name) from None
            match = self._apply(pattern, line)
            if match:
                if debug:
                    logger.debug(
                        "%s.%s matched line %d: %r",
                        state.name,
                        name,
                        self.abs_line_number(),
                        line,
                    )
                if acc is not None:
                    acc.record_transition(name)
                return handler(match, context, next_state)
        if debug:
            logger.debug("%s: no match for line %d: %r", state.name, self.abs_line_number(), line)
        if acc is not None:
            acc.record_no_match()
        return state.no_match(context, transitions)

    def _apply(self, pattern: re.Pattern[str], line: str) -> re.Match[str] | None:
        mode = self.config.match_mode
        if mode == "match":
            return pattern.match(line)
        if mode == "fullmatch":
            return pattern.fullmatch(line)
        return pattern.search(line)

    # =========================================================================
    # Navigation
    # =========================================================================

    def next_line(self, n: int = 1) -> str:
        """Advance ``n`` lines and return the new current line.

        Raises:
            EndOfInput: The new position is past the end of input
        """
        try:
            self.line_offset += n
            try:
                self.line = self.input_lines.get(self.line_offset)
            except ViewIndexError:
                self.line = None
                raise EndOfInput(index=self.line_offset) from None
            return self.line
        finally:
            self.notify_observers()

    def previous_line(self, n: int = 1) -> str | None:
        """Step back ``n`` lines; the current line is None outside the input."""
        self.line_offset -= n
        try:
            self.line = self.input_lines.get(self.line_offset)
        except ViewIndexError:
            self.line = None
        self.notify_observers()
        return self.line

    def goto_line(self, line_offset: int) -> str:
        """Jump to an absolute line offset (relative to the whole file).

        Raises:
            EndOfInput: The offset is outside the input
        """
        try:
            self.line_offset = line_offset - self.input_offset
            try:
                self.line = self.input_lines.get(self.line_offset)
            except ViewIndexError:
                self.line = None
                raise EndOfInput(index=self.line_offset) from None
            return self.line
        finally:
            self.notify_observers()

    def get_source(self, line_offset: int) -> str:
        """Return the source id of the line at an absolute offset."""
        return self.input_lines.source(line_offset - self.input_offset)

    def abs_line_offset(self) -> int:
        """Current line offset from the beginning of the file."""
        return self.line_offset + self.input_offset

    def abs_line_number(self) -> int:
        """Current 1-based line number from the beginning of the file."""
        return self.line_offset + self.input_offset + 1

    def get_source_and_line(self, lineno: int | None = None) -> tuple[str | None, int | None]:
        """Return ``(source, 1-based line within source)`` for a line.

        Args:
            lineno: Absolute 1-based line number; the current line when None

        Returns:
            ``(None, None)`` when the line is outside the input
        """
        if lineno is None:
            offset = self.line_offset
        else:
            offset = lineno - self.input_offset - 1
        try:
            source, source_offset = self.input_lines.info(offset)
            if source_offset == -1:
                # Just past the end: one line after the last one
                source_offset = self.input_lines.offset(offset - 1) + 1
        except ViewIndexError:
            return None, None
        return source, source_offset + 1

    def is_next_line_blank(self) -> bool:
        """True if the next line is blank or there is no next line."""
        try:
            return is_blank(self.input_lines.get(self.line_offset + 1))
        except ViewIndexError:
            return True

    def at_eof(self) -> bool:
        """True if the current line is the last line (or beyond)."""
        return self.line_offset >= len(self.input_lines) - 1

    def at_bof(self) -> bool:
        """True if the current line is the first line (or before it)."""
        return self.line_offset <= 0

    # =========================================================================
    # Input manipulation
    # =========================================================================

    def insert_input(self, input_lines: LineView | Sequence[str], source: str) -> None:
        """Splice extra lines in after the current line.

        The new lines are framed by blank padding lines so they cannot merge
        with the surrounding text blocks.
        """
        new_lines = as_view(input_lines, source)
        at = self.line_offset + 1
        self.input_lines.insert_at(at, "", f"internal padding after {source}", len(new_lines))
        self.input_lines.insert_at(at, "", f"internal padding before {source}", -1)
        self.input_lines.insert_range(at + 1, new_lines)

    def get_text_block(self, flush_left: bool = False) -> LineView:
        """Return the text block starting at the current line.

        Advances to the last line of the block.

        Raises:
            UnexpectedIndentationError: ``flush_left`` is set and the block
                contains an indented line; the engine is left on the last
                line before it
        """
        try:
            block = self.input_lines.get_text_block(self.line_offset, flush_left)
        except UnexpectedIndentationError as err:
            if err.block is not None and len(err.block) > 1:
                self.next_line(len(err.block) - 1)
            raise
        if len(block) > 1:
            self.next_line(len(block) - 1)
        return block

    # =========================================================================
    # Observers
    # =========================================================================

    def attach_observer(self, observer: Observer) -> None:
        """Call ``observer(source, offset)`` whenever the current line changes.

        Observers are cleared at the end of each run.
        """
        self.observers.append(observer)

    def detach_observer(self, observer: Observer) -> None:
        self.observers.remove(observer)

    def notify_observers(self) -> None:
        if not self.observers:
            return
        try:
            info = self.input_lines.info(self.line_offset)
        except ViewIndexError:
            info = _NO_POSITION
        for observer in self.observers:
            observer(*info)
