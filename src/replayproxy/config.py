"""
Recorder configuration.

Module-level configuration with explicit set/get functions, plus a
contextvars-based override for temporary changes (tests, one-off replays).

DUAL LOOKUP:
- _recorder_config: process-wide default, changed with set_recorder_config()
- _config_override: per-context override pushed by recorder_config()

get_recorder_config() returns the override when one is active.
"""

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Generator, Optional


@dataclass(frozen=True)
class RecorderConfig:
    """Framework-wide recorder behaviour.

    default_delay: replay delay in milliseconds used when replay() is called
                   without one (None = no delay)
    clone_values: snapshot old/new leaf values at record time; when False,
                  values are recorded by reference
    """
    default_delay: Optional[float] = None
    clone_values: bool = True


_DEFAULT_CONFIG = RecorderConfig()
_recorder_config: RecorderConfig = _DEFAULT_CONFIG

_config_override: contextvars.ContextVar[Optional[RecorderConfig]] = contextvars.ContextVar(
    'replayproxy_config_override', default=None
)


def set_recorder_config(config: RecorderConfig) -> None:
    """Set the process-wide recorder configuration."""
    global _recorder_config
    _recorder_config = config


def get_recorder_config() -> RecorderConfig:
    """Get the active recorder configuration (override first, then global)."""
    override = _config_override.get()
    return override if override is not None else _recorder_config


def reset_recorder_config() -> None:
    """Restore the default configuration."""
    set_recorder_config(_DEFAULT_CONFIG)


@contextmanager
def recorder_config(**overrides) -> Generator[RecorderConfig, None, None]:
    """Temporarily override configuration fields.

    Example:
        with recorder_config(clone_values=False):
            proxy['big'] = huge_payload  # recorded by reference
    """
    config = replace(get_recorder_config(), **overrides)
    token = _config_override.set(config)
    try:
        yield config
    finally:
        _config_override.reset(token)
