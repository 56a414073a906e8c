"""States and transitions for the line engine.

A State owns an ordered table of transitions. Each transition pairs a
compiled pattern with a handler and the name of the state to switch to when
the handler accepts the proposed switch. The engine tries transitions front
to back and runs the first one whose pattern matches the current line.

Handlers all share one signature::

    handler(match, context, next_state) -> (context, next_state, output)

- ``match`` is the ``re.Match`` for the current line.
- ``context`` is an application-defined value threaded through every
  handler call of a run.
- ``next_state`` is the state name proposed by the transition table;
  handlers usually return it unchanged. ``STAY`` (None) means no change.
- ``output`` is a list the engine appends to the run's results.

Handlers are attached to transition names with the ``@transition``
decorator. The mapping is collected once per class, when the class is
created, and bound per instance at construction, so a missing handler is a
setup error rather than a mid-run surprise.

Example:
    >>> class Body(State):
    ...     patterns = {"bullet": r"[-*] +(.*)", "text": r".*"}
    ...     initial_transitions = ("bullet", "text")
    ...
    ...     @transition("bullet")
    ...     def bullet(self, match, context, next_state):
    ...         return context, next_state, [("item", match.group(1))]
    ...
    ...     @transition("text")
    ...     def text(self, match, context, next_state):
    ...         return context, next_state, [("text", match.group())]

"""

from __future__ import annotations

import re
import weakref
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar, overload

from linemachine.errors import (
    DuplicateTransitionError,
    TransitionMethodNotFound,
    TransitionPatternNotFound,
    UnknownTransitionError,
)
from linemachine.utils.logger import get_logger

if TYPE_CHECKING:
    from linemachine.engine import Engine

logger = get_logger(__name__)

# Next-state value meaning "remain in the current state"
STAY = None

HandlerResult = tuple[Any, str | None, list[Any]]
Handler = Callable[[re.Match[str], Any, str | None], HandlerResult]
TransitionEntry = str | tuple[str, str | None]

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True, slots=True)
class Transition:
    """A named (pattern, handler, next state) triple."""

    name: str
    pattern: re.Pattern[str]
    handler: Handler
    next_state: str | None = STAY

    def __iter__(self):
        # Unpacks as (pattern, handler, next_state)
        return iter((self.pattern, self.handler, self.next_state))


@overload
def transition(name: F) -> F: ...


@overload
def transition(name: str | None = None) -> Callable[[F], F]: ...


def transition(name=None):
    """Mark a State method as the handler for a transition.

    Use as ``@transition("name")``, or bare ``@transition`` to use the
    method name as the transition name.
    """
    if callable(name):
        name.__transition_name__ = name.__name__
        return name

    def decorator(func: F) -> F:
        func.__transition_name__ = name or func.__name__  # type: ignore[attr-defined]
        return func

    return decorator


def _compile(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern)


class State:
    """Base class for engine states.

    Subclasses set ``patterns`` (transition name to regex string or compiled
    pattern) and ``initial_transitions`` (transition names, or
    ``(name, next_state)`` pairs), and mark handlers with ``@transition``.
    The same can be passed to the constructor for states built without a
    subclass.

    ``begin``, ``end`` and ``no_match`` handle beginning of input, end of
    input and lines no transition matched. The defaults emit nothing and stay
    in the current state.
    """

    patterns: ClassVar[Mapping[str, str | re.Pattern[str]]] = {}
    initial_transitions: ClassVar[Sequence[TransitionEntry]] = ()

    # transition name -> attribute name, built by __init_subclass__
    _handler_table: ClassVar[dict[str, str]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        table: dict[str, str] = {}
        for klass in reversed(cls.__mro__):
            for attr, value in vars(klass).items():
                transition_name = getattr(value, "__transition_name__", None)
                if transition_name is not None:
                    table[transition_name] = attr
        cls._handler_table = table

    def __init__(
        self,
        engine: Engine | None = None,
        *,
        name: str | None = None,
        patterns: Mapping[str, str | re.Pattern[str]] | None = None,
        initial_transitions: Sequence[TransitionEntry] | None = None,
        handlers: Mapping[str, Handler] | None = None,
    ) -> None:
        """Build the transition table.

        Args:
            engine: Controlling engine (held weakly)
            name: State name; defaults to the class name
            patterns: Extra patterns, overriding the class's
            initial_transitions: Used instead of the class's when given
            handlers: Extra handlers by transition name, overriding the
                decorated methods

        Raises:
            TransitionPatternNotFound: An initial transition has no pattern
            TransitionMethodNotFound: An initial transition has no handler
        """
        self.name = name or type(self).__name__
        self._engine_ref: weakref.ReferenceType[Engine] | None = None
        if engine is not None:
            self.bind(engine)

        merged = dict(type(self).patterns)
        if patterns:
            merged.update(patterns)
        self.patterns: dict[str, re.Pattern[str]] = {k: _compile(v) for k, v in merged.items()}

        self.handlers: dict[str, Handler] = {
            transition_name: getattr(self, attr)
            for transition_name, attr in type(self)._handler_table.items()
        }
        if handlers:
            self.handlers.update(handlers)

        self.transition_order: list[str] = []
        self.transitions: dict[str, Transition] = {}
        if initial_transitions is not None:
            self.initial_transitions = tuple(initial_transitions)
        self.add_initial_transitions()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} transitions={self.transition_order}>"

    # =========================================================================
    # Engine linkage
    # =========================================================================

    @property
    def engine(self) -> Engine | None:
        """The controlling engine, or None when unbound."""
        if self._engine_ref is None:
            return None
        return self._engine_ref()

    def bind(self, engine: Engine) -> None:
        self._engine_ref = weakref.ref(engine)

    def runtime_init(self) -> None:
        """Reset per-run state. Called by the engine at the start of each run."""
        pass

    # =========================================================================
    # Transition table
    # =========================================================================

    def add_initial_transitions(self) -> None:
        if self.initial_transitions:
            names, transitions = self.make_transitions(self.initial_transitions)
            self.add_transitions(names, transitions)

    def add_transitions(self, names: Sequence[str], transitions: Mapping[str, Transition]) -> None:
        """Add transitions at the front of the search order.

        Args:
            names: Transition names, in search order
            transitions: Transition for each name

        Raises:
            DuplicateTransitionError: A name is already in the table or
                appears more than once in ``names``
            UnknownTransitionError: A name has no entry in ``transitions``
        """
        seen: set[str] = set()
        for transition_name in names:
            if transition_name in self.transitions or transition_name in seen:
                raise DuplicateTransitionError(transition_name)
            seen.add(transition_name)
            if transition_name not in transitions:
                raise UnknownTransitionError(transition_name)
        self.transition_order[:0] = names
        self.transitions.update({n: transitions[n] for n in names})

    def add_transition(self, name: str, transition: Transition) -> None:
        """Add one transition at the front of the search order."""
        if name in self.transitions:
            raise DuplicateTransitionError(name)
        self.transition_order.insert(0, name)
        self.transitions[name] = transition

    def remove_transition(self, name: str) -> None:
        try:
            del self.transitions[name]
        except KeyError:
            raise UnknownTransitionError(name) from None
        self.transition_order.remove(name)

    def make_transition(self, name: str, next_state: str | None = STAY) -> Transition:
        """Build a transition from the named pattern and handler.

        Raises:
            TransitionPatternNotFound: No pattern named ``name``
            TransitionMethodNotFound: No handler named ``name``
        """
        try:
            pattern = self.patterns[name]
        except KeyError:
            raise TransitionPatternNotFound(self.name, name) from None
        try:
            handler = self.handlers[name]
        except KeyError:
            raise TransitionMethodNotFound(self.name, name) from None
        return Transition(name, pattern, handler, next_state)

    def make_transitions(
        self, entries: Iterable[TransitionEntry]
    ) -> tuple[list[str], dict[str, Transition]]:
        """Build transitions from names or ``(name, next_state)`` pairs.

        Returns:
            The names in order and the transitions by name
        """
        names: list[str] = []
        transitions: dict[str, Transition] = {}
        for entry in entries:
            if isinstance(entry, str):
                transition_name, next_state = entry, STAY
            else:
                transition_name, next_state = entry
            transitions[transition_name] = self.make_transition(transition_name, next_state)
            names.append(transition_name)
        logger.debug("%s: built transitions %s", self.name, names)
        return names, transitions

    # =========================================================================
    # Implicit transitions
    # =========================================================================

    def begin(self, context: Any) -> tuple[Any, list[Any]]:
        """Handle beginning of input. Returns ``(context, output)``."""
        return context, []

    def end(self, context: Any) -> list[Any]:
        """Handle end of input. Returns the final output."""
        return []

    def no_match(self, context: Any, transitions: Sequence[str]) -> HandlerResult:
        """Handle a line that matched none of ``transitions``."""
        return context, STAY, []

    def nop(self, match: re.Match[str], context: Any, next_state: str | None) -> HandlerResult:
        """A handler that does nothing."""
        return context, next_state, []
