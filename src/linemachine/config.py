"""ContextVar-based engine configuration for linemachine.

Provides context-local configuration using Python's ContextVars (PEP 567).
An Engine captures the active config once, at construction, unless one is
passed explicitly.

Usage:
    from linemachine.config import EngineConfig, engine_config_context

    with engine_config_context(EngineConfig(debug=True)):
        engine = Engine([Body], "Body")

    # Or pass it directly
    engine = Engine([Body], "Body", config=EngineConfig(match_mode="fullmatch"))

"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Literal

MatchMode = Literal["match", "fullmatch", "search"]

_MATCH_MODES = ("match", "fullmatch", "search")


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Immutable engine configuration.

    Attributes:
        debug: Trace every line, match and state change at DEBUG level
        tab_width: Tab stop width used when raw text is split into lines
        convert_whitespace: Replace vertical tab and form feed with spaces
            when raw text is split into lines
        match_mode: How transition patterns are applied to a line:
            "match" anchors at the start of the line, "fullmatch" requires
            the whole line to match, "search" matches anywhere

    """

    debug: bool = False
    tab_width: int = 8
    convert_whitespace: bool = False
    match_mode: MatchMode = "match"

    def __post_init__(self) -> None:
        if self.match_mode not in _MATCH_MODES:
            msg = f"match_mode must be one of {_MATCH_MODES}, got {self.match_mode!r}"
            raise ValueError(msg)
        if self.tab_width < 1:
            msg = f"tab_width must be >= 1, got {self.tab_width}"
            raise ValueError(msg)

    @classmethod
    def from_dict(cls, config_dict: dict) -> EngineConfig:
        """Create EngineConfig from dictionary.

        Only includes keys that are valid EngineConfig fields; unknown keys
        are silently ignored.

        Example:
            >>> config = EngineConfig.from_dict({"debug": True, "color": "red"})
            >>> config.debug
            True

        """
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in config_dict.items() if k in valid_fields}
        return cls(**filtered)


# Module-level default config (reused, never recreated)
_DEFAULT_CONFIG: EngineConfig = EngineConfig()

_engine_config: ContextVar[EngineConfig] = ContextVar(
    "engine_config",
    default=_DEFAULT_CONFIG,
)


def get_engine_config() -> EngineConfig:
    """Get the configuration active in the current context."""
    return _engine_config.get()


def set_engine_config(config: EngineConfig) -> None:
    """Set engine configuration for the current context.

    Args:
        config: EngineConfig instance to use for this context.

    """
    _engine_config.set(config)


def reset_engine_config() -> None:
    """Reset to the default configuration."""
    _engine_config.set(_DEFAULT_CONFIG)


@contextmanager
def engine_config_context(config: EngineConfig) -> Iterator[None]:
    """Context manager for temporary config changes.

    Restores the previous config even if an exception is raised.

    Example:
        >>> with engine_config_context(EngineConfig(debug=True)):
        ...     get_engine_config().debug
        True

    """
    previous = _engine_config.get()
    _engine_config.set(config)
    try:
        yield
    finally:
        _engine_config.set(previous)


__all__ = [
    "EngineConfig",
    "MatchMode",
    "get_engine_config",
    "set_engine_config",
    "reset_engine_config",
    "engine_config_context",
]
