"""RunAccumulator: opt-in profiling for engine runs.

This module provides accumulated metrics across Engine.run() calls:
- Number of runs
- Lines consumed
- Transitions fired and lines that matched nothing
- Total wall time

Zero overhead when disabled (get_run_accumulator() returns None).

Example:
    from linemachine.profiling import profiled_run

    with profiled_run() as metrics:
        engine.run(lines)

    print(metrics.summary())
    # {"total_ms": 0.4, "runs": 1, "lines": 12, "transitions": 10, "no_match": 2}

"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any


@dataclass
class RunAccumulator:
    """Accumulated metrics during engine runs.

    Attributes:
        start_time: Profiling start timestamp.
        runs: Number of completed run() calls.
        lines: Number of lines consumed.
        transitions: Number of transition handlers invoked.
        no_match: Number of lines no transition matched.
        transition_counts: Per-transition invocation counts.

    """

    start_time: float = field(default_factory=perf_counter)
    runs: int = 0
    lines: int = 0
    transitions: int = 0
    no_match: int = 0
    transition_counts: dict[str, int] = field(default_factory=dict)

    def record_line(self) -> None:
        self.lines += 1

    def record_transition(self, name: str) -> None:
        self.transitions += 1
        self.transition_counts[name] = self.transition_counts.get(name, 0) + 1

    def record_no_match(self) -> None:
        self.no_match += 1

    def record_run(self) -> None:
        self.runs += 1

    @property
    def total_duration_ms(self) -> float:
        """Total profiling duration in milliseconds."""
        return (perf_counter() - self.start_time) * 1000

    def summary(self) -> dict[str, Any]:
        """Get summary of run metrics.

        Returns:
            Dict with total_ms, runs, lines, transitions, no_match.

        """
        return {
            "total_ms": round(self.total_duration_ms, 2),
            "runs": self.runs,
            "lines": self.lines,
            "transitions": self.transitions,
            "no_match": self.no_match,
        }


_accumulator: ContextVar[RunAccumulator | None] = ContextVar(
    "run_accumulator",
    default=None,
)


def get_run_accumulator() -> RunAccumulator | None:
    """Get current accumulator (None if profiling disabled)."""
    return _accumulator.get()


@contextmanager
def profiled_run() -> Iterator[RunAccumulator]:
    """Context manager for profiled engine runs.

    Creates a RunAccumulator and makes it available via
    get_run_accumulator() for the duration of the with block.

    Yields:
        RunAccumulator that will be populated during run() calls.

    """
    acc = RunAccumulator()
    token: Token[RunAccumulator | None] = _accumulator.set(acc)
    try:
        yield acc
    finally:
        _accumulator.reset(token)
