"""Exception classes for linemachine.

Two families live here:

- Setup errors signal a defect in a grammar definition (duplicate or
  unknown names, patterns or handlers that do not exist). They are raised
  while States and Engines are being built and are always fatal.
- Runtime signals (ViewIndexError, EndOfInput, UnexpectedIndentationError)
  are ordinary control flow for callers walking a LineView. Only
  UnknownStateError aborts a run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from linemachine.view import LineView


class LineMachineError(Exception):
    """Base exception for all linemachine errors.

    Subclass this for specific error categories.
    """

    pass


class SetupError(LineMachineError):
    """Error in a grammar definition, raised before any run starts."""

    pass


class DuplicateStateError(SetupError):
    """A State was registered under a name the Engine already holds."""

    def __init__(self, state_name: str) -> None:
        self.state_name = state_name
        super().__init__(f"State '{state_name}' is already registered")


class DuplicateTransitionError(SetupError):
    """A transition was added under a name the State already holds."""

    def __init__(self, transition_name: str) -> None:
        self.transition_name = transition_name
        super().__init__(f"Transition '{transition_name}' is already registered")


class UnknownTransitionError(SetupError):
    """A transition name was referenced that the State does not hold."""

    def __init__(self, transition_name: str) -> None:
        self.transition_name = transition_name
        super().__init__(f"Unknown transition '{transition_name}'")


class TransitionPatternNotFound(SetupError):
    """No pattern exists for a transition name."""

    def __init__(self, state_name: str, transition_name: str) -> None:
        self.state_name = state_name
        self.transition_name = transition_name
        super().__init__(f"{state_name}.patterns['{transition_name}'] not found")


class TransitionMethodNotFound(SetupError):
    """No handler exists for a transition name."""

    def __init__(self, state_name: str, transition_name: str) -> None:
        self.state_name = state_name
        self.transition_name = transition_name
        super().__init__(f"Handler for transition '{transition_name}' not found in {state_name}")


class ViewIndexError(LineMachineError, IndexError):
    """Out-of-range access on a LineView.

    Subclasses the built-in IndexError so callers may catch either.
    """

    def __init__(self, message: str, index: int | None = None) -> None:
        """Initialize index error.

        Args:
            message: Error description
            index: The offending index (optional)
        """
        self.index = index
        if index is not None:
            message = f"{message} (index {index})"
        super().__init__(message)


class EndOfInput(ViewIndexError):
    """Raised when reading past the last input line.

    The expected way for a run to finish. Handlers may also raise it to cut
    processing short; the engine then runs the end-of-input handler.
    """

    def __init__(self, message: str = "end of input", index: int | None = None) -> None:
        super().__init__(message, index)


class UnknownStateError(LineMachineError):
    """A handler named a next state that was never registered."""

    def __init__(self, state_name: str, known: tuple[str, ...] = ()) -> None:
        self.state_name = state_name
        self.known = known
        detail = f" (known states: {', '.join(known)})" if known else ""
        super().__init__(f"Unknown state '{state_name}'{detail}")


class UnexpectedIndentationError(LineMachineError):
    """An indented line interrupted a text block that must be flush left."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        offset: int | None = None,
        block: LineView | None = None,
    ) -> None:
        """Initialize indentation error with optional provenance.

        Args:
            message: Error description
            source: Source identifier of the offending line
            offset: Offset of the offending line within its source;
                reported as a 1-based line number in the message
            block: The part of the text block scanned before the indented line
        """
        self.source = source
        self.offset = offset
        self.block = block

        location = ""
        if source:
            location = f"{source}:"
        if offset is not None:
            location += f"{offset + 1}:"
        if location:
            location = location.rstrip(":") + " "

        super().__init__(f"{location}{message}")


# =========================================================================
# Control-flow signals raised by transition handlers
# =========================================================================


class TransitionCorrection(LineMachineError):
    """Ask the engine to re-read the current line with another transition.

    Raised by a handler that decides, after matching, that a different
    transition of the current state should handle the line. The engine
    backs up one line and tries only ``transition_name``.
    """

    def __init__(self, transition_name: str) -> None:
        self.transition_name = transition_name
        super().__init__(f"transition correction to '{transition_name}'")


class StateCorrection(LineMachineError):
    """Ask the engine to re-read the current line in another state.

    The engine backs up one line, switches to ``state_name`` and tries
    either all of its transitions or only ``transition_name``.
    """

    def __init__(self, state_name: str, transition_name: str | None = None) -> None:
        self.state_name = state_name
        self.transition_name = transition_name
        target = f"{state_name}.{transition_name}" if transition_name else state_name
        super().__init__(f"state correction to '{target}'")
