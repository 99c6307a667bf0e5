"""
ChangeRecorder: the change log and reversal log for one tracked graph.

The recorder owns two positionally aligned logs. Entry i of the reversal
log undoes entry i of the change log against the CURRENT source, whatever
object occupies the source slot when undo runs.

Breakpoints are plain log positions (len - 1). undo(bp) refuses to pop the
entry at index bp, so rollback(bp) drains the log down to exactly bp + 1
entries, however many mutations were recorded after bp was captured.

Thread safety: Not thread-safe (single logical thread of control).
"""
from contextlib import contextmanager
import logging
from typing import Any, Awaitable, Callable, Generator, List, Optional, Tuple

from replayproxy.config import get_recorder_config
from replayproxy.exceptions import PathResolutionError, RecorderDisposedError
from replayproxy.model import MutationRecord
from replayproxy.paths import resolve_reference
from replayproxy.replay import apply_change, traverse_changes

logger = logging.getLogger(__name__)

Reversal = Callable[[], Any]


class ChangeRecorder:
    """Recorder state for one tracked graph: source slot plus both logs.

    Lifecycle:
    - Created once per tracked graph by create()
    - Grows on every observed mutation via record()
    - Shrinks only through undo()/rollback(), or reset()/dispose()
    """

    def __init__(self, source: Any):
        self._source = source
        self._changes: List[MutationRecord] = []
        self._reversals: List[Reversal] = []
        self._disposed = False

        # Depth of suppressed() blocks; observer glue skips record() when > 0
        self._suppress_depth = 0

        # History changed callbacks - fired after record/undo/reset/dispose
        self._on_history_changed_callbacks: List[Callable[['ChangeRecorder'], None]] = []

    # ========== STATE ==========

    @property
    def source(self) -> Any:
        """The currently tracked graph. Reversals resolve against this slot."""
        return self._source

    @source.setter
    def source(self, value: Any) -> None:
        self._source = value

    @property
    def changes(self) -> Tuple[MutationRecord, ...]:
        return tuple(self._changes)

    @property
    def reversals(self) -> Tuple[Reversal, ...]:
        return tuple(self._reversals)

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def is_suppressed(self) -> bool:
        return self._suppress_depth > 0

    def __len__(self) -> int:
        return len(self._changes)

    def __repr__(self) -> str:
        return f"ChangeRecorder(changes={len(self._changes)}, disposed={self._disposed})"

    # ========== CALLBACKS ==========

    def add_history_changed_callback(self, callback: Callable[['ChangeRecorder'], None]) -> None:
        """Subscribe to history changes (record, undo, reset, dispose)."""
        if callback not in self._on_history_changed_callbacks:
            self._on_history_changed_callbacks.append(callback)

    def remove_history_changed_callback(self, callback: Callable[['ChangeRecorder'], None]) -> None:
        """Unsubscribe from history changes."""
        if callback in self._on_history_changed_callbacks:
            self._on_history_changed_callbacks.remove(callback)

    def _fire_history_changed_callbacks(self) -> None:
        for callback in list(self._on_history_changed_callbacks):
            try:
                callback(self)
            except Exception as e:
                logger.warning(f"Error in history_changed callback: {e}")

    # ========== SUPPRESSION ==========

    @contextmanager
    def suppressed(self) -> Generator[None, None, None]:
        """Exclude mutations made inside this block from the history.

        Undo and each replay step run inside it, so programmatic mutations
        that re-trigger the observer are never recorded as new history.
        Nested blocks are supported.
        """
        self._suppress_depth += 1
        try:
            yield
        finally:
            self._suppress_depth -= 1

    # ========== RECORDER OPERATIONS ==========

    def record(self, observed: MutationRecord, reversal: Reversal) -> None:
        """Append one observed mutation and its reversal to the history.

        Raises:
            RecorderDisposedError: If the recorder was disposed
        """
        if self._disposed:
            raise RecorderDisposedError("Cannot record into a disposed recorder")

        self._changes.append(observed)
        self._reversals.append(reversal)
        logger.debug(f"RECORD: [{len(self._changes) - 1}] {observed.describe()}")
        self._fire_history_changed_callbacks()

    def breakpoint(self) -> int:
        """Current position in the history (-1 when nothing is recorded)."""
        return len(self._reversals) - 1

    def undo(self, breakpoint: Optional[int] = None) -> bool:
        """Undo the single most recent mutation.

        Args:
            breakpoint: Index that may not be undone; when it equals the tail
                        index, nothing happens

        Returns:
            True if a mutation was reversed, False if the history is empty,
            the tail is pinned by ``breakpoint``, or the recorder is disposed.
        """
        if self._disposed:
            return False
        if not self._reversals:
            return False
        if len(self._reversals) - 1 == breakpoint:
            return False

        # Reverse before popping so a failing reversal leaves both logs intact
        with self.suppressed():
            self._reversals[-1]()
        self._reversals.pop()
        observed = self._changes.pop()

        logger.debug(f"UNDO: [{len(self._changes)}] {observed.describe()}")
        self._fire_history_changed_callbacks()
        return True

    def rollback(self, breakpoint: Optional[int] = None) -> None:
        """Undo everything recorded after ``breakpoint`` (everything if None)."""
        undone = 0
        while self.undo(breakpoint):
            undone += 1
        logger.debug(f"ROLLBACK: Undid {undone} change(s), breakpoint={breakpoint}")

    def replay(
        self,
        target: Any,
        delay: Optional[float] = None,
        breakpoint: Optional[int] = None,
    ) -> Awaitable[None]:
        """Reapply the recorded history onto a different object.

        The history is snapshotted when this method is called, so mutations
        recorded while the replay runs are not picked up. The recorder's own
        logs are never modified.

        Args:
            target: The NEW object, representing some initial state; may be
                    another tracked handle, whose recorder then sees the writes
            delay: Milliseconds to wait between steps (None = config default)
            breakpoint: Last index to apply (inclusive); None applies all

        Returns:
            Awaitable that completes when the replay is done. It raises
            PathResolutionError if the target lacks an ancestor container
            a recorded mutation points into; later steps are not applied.
        """
        from replayproxy.tracked import ReplayProxy

        # A tracked handle is written through its observed graph
        if isinstance(target, ReplayProxy):
            target = object.__getattribute__(target, '_proxy')

        snapshot = tuple(self._changes)
        if delay is None:
            delay = get_recorder_config().default_delay

        position = 0

        def step(observed: MutationRecord) -> bool:
            nonlocal position
            index = position
            position += 1
            if breakpoint is not None and index > breakpoint:
                return False

            reference = resolve_reference(observed.path, target)
            try:
                with self.suppressed():
                    apply_change(reference, observed.leaf)
            except (IndexError, AttributeError, TypeError) as e:
                raise PathResolutionError(observed.path, len(observed.path) - 1, str(e)) from e
            logger.debug(f"REPLAY: [{index}] {observed.describe()}")
            return True

        logger.debug(f"REPLAY: Starting {len(snapshot)} change(s), delay={delay}, breakpoint={breakpoint}")
        return traverse_changes(snapshot, step, delay)

    # ========== LIFECYCLE ==========

    def reset(self) -> None:
        """Forget the whole history; the source keeps its current state."""
        self._changes.clear()
        self._reversals.clear()
        logger.debug("RESET: History cleared")
        self._fire_history_changed_callbacks()

    def dispose(self) -> None:
        """Clear the history and unbind the source. The recorder becomes inert."""
        self._changes.clear()
        self._reversals.clear()
        self._source = None
        self._disposed = True
        logger.debug("DISPOSE: Recorder disposed")
        self._fire_history_changed_callbacks()
        self._on_history_changed_callbacks.clear()
