"""
Sequential, optionally delayed traversal of recorded actions.

traverse_changes() is the generic engine: it feeds actions one at a time to
a callback, stops when the callback returns False, and sleeps between steps
when a positive delay is configured. Steps never overlap. A callback that
raises aborts the traversal; no later step is applied.
"""

import asyncio
import logging
from typing import Any, Callable, Iterable, Optional, TypeVar

from replayproxy.clone import snapshot_value
from replayproxy.model import MISSING, Link
from replayproxy.paths import delete_field, is_sequence, write_field

logger = logging.getLogger(__name__)

T = TypeVar('T')


async def traverse_changes(
    actions: Iterable[T],
    callback: Callable[[T], Optional[bool]],
    delay: Optional[float] = None,
) -> None:
    """Apply ``callback`` to each action in order.

    Args:
        actions: Ordered actions (consumed once)
        callback: Called per action; returning False stops the traversal
        delay: Milliseconds to wait between steps; None or <= 0 means none
    """
    pause = delay is not None and delay > 0
    for index, action in enumerate(actions):
        if index > 0 and pause:
            await asyncio.sleep(delay / 1000)
        if callback(action) is False:
            logger.debug(f"REPLAY: Stopped at step {index}")
            return


def apply_change(reference: Any, leaf: Link) -> None:
    """Reapply one recorded leaf mutation onto ``reference``.

    Sequence insertions and removals use the recorded index; everything else
    is a plain write or delete. Values are cloned so the target never
    shares objects with the history.
    """
    if leaf.value is MISSING:
        if is_sequence(reference):
            del reference[leaf.prop]
        else:
            delete_field(reference, leaf.prop)
        return

    value = snapshot_value(leaf.value)
    if leaf.old_value is MISSING and is_sequence(reference):
        reference.insert(leaf.prop, value)
    else:
        write_field(reference, leaf.prop, value)
