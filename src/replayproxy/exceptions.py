"""Exceptions raised by the change recorder and replay engine."""

from typing import Any, Sequence


class ReplayProxyError(Exception):
    """Base class for all replayproxy errors."""


class PathResolutionError(ReplayProxyError, LookupError):
    """An addressing path could not be walked inside a target object.

    Raised when a replay target (or a reshaped source during undo) lacks
    one of the ancestor containers a recorded mutation points into.
    """

    def __init__(self, path: Sequence[Any], depth: int, reason: str = ""):
        self.path = tuple(path)
        self.depth = depth
        self.reason = reason
        walked = '.'.join(str(p) for p in self.path[:depth + 1])
        message = f"Cannot resolve '{walked}' in target"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class RecorderDisposedError(ReplayProxyError):
    """A mutation was recorded into a recorder after dispose()."""
