"""
linemachine — line-oriented text parsing with regex transition tables

The reusable machinery beneath a line-based markup parser: a hierarchical,
provenance-tracked view of input lines, and an engine that walks it,
dispatching each line to the first matching transition of the current
state.

Quick Start:
    >>> from linemachine import Engine, State, transition
    >>>
    >>> class Body(State):
    ...     patterns = {"heading": r"#+ (.*)", "text": r".*"}
    ...     initial_transitions = ("heading", "text")
    ...
    ...     @transition
    ...     def heading(self, match, context, next_state):
    ...         return context, next_state, [("heading", match.group(1))]
    ...
    ...     @transition
    ...     def text(self, match, context, next_state):
    ...         return context, next_state, [("text", match.group())]
    >>>
    >>> Engine([Body], "Body").run(["# Title", "words"])
    [('heading', 'Title'), ('text', 'words')]

Line views:
    >>> from linemachine import LineView
    >>> doc = LineView(["a", "b", "c"], source="doc.txt")
    >>> child = doc[1:3]
    >>> child.set(0, "B")
    >>> doc.data
    ['a', 'B', 'c']
"""

from linemachine.config import (
    EngineConfig,
    engine_config_context,
    get_engine_config,
    reset_engine_config,
    set_engine_config,
)
from linemachine.engine import Engine
from linemachine.errors import (
    DuplicateStateError,
    DuplicateTransitionError,
    EndOfInput,
    LineMachineError,
    SetupError,
    StateCorrection,
    TransitionCorrection,
    TransitionMethodNotFound,
    TransitionPatternNotFound,
    UnexpectedIndentationError,
    UnknownStateError,
    UnknownTransitionError,
    ViewIndexError,
)
from linemachine.lines import Line, LineInfo
from linemachine.profiling import RunAccumulator, get_run_accumulator, profiled_run
from linemachine.state import STAY, State, Transition, transition
from linemachine.text import string_to_lines
from linemachine.view import LineView
from linemachine.whitespace import WhitespaceEngine, WhitespaceState

__version__ = "0.1.0"

__all__ = [
    # Core
    "Engine",
    "LineView",
    "Line",
    "LineInfo",
    "State",
    "STAY",
    "Transition",
    "transition",
    "WhitespaceEngine",
    "WhitespaceState",
    "string_to_lines",
    # Configuration
    "EngineConfig",
    "get_engine_config",
    "set_engine_config",
    "reset_engine_config",
    "engine_config_context",
    # Profiling
    "RunAccumulator",
    "get_run_accumulator",
    "profiled_run",
    # Errors
    "LineMachineError",
    "SetupError",
    "DuplicateStateError",
    "DuplicateTransitionError",
    "UnknownTransitionError",
    "TransitionPatternNotFound",
    "TransitionMethodNotFound",
    "ViewIndexError",
    "EndOfInput",
    "UnknownStateError",
    "UnexpectedIndentationError",
    "TransitionCorrection",
    "StateCorrection",
    # Version
    "__version__",
]
