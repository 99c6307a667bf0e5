"""
Structural snapshots of recorded values.

Old and new values are frozen at record time so later mutation of the live
objects cannot silently rewrite history. copy.deepcopy is the clone: it
keeps every value kind it supports (falsy values included), preserves
shared references and survives cycles.
"""

import copy
import logging
from typing import Any

from replayproxy.config import get_recorder_config
from replayproxy.model import MISSING
from replayproxy.observer import unwrap

logger = logging.getLogger(__name__)


def snapshot_value(value: Any) -> Any:
    """Clone ``value`` for the change log.

    Proxies are unwrapped first. Values deepcopy cannot handle (locks,
    open files, generators) are kept by reference; fidelity for those is
    best-effort.
    """
    if value is MISSING:
        return value

    value = unwrap(value)

    if not get_recorder_config().clone_values:
        return value

    try:
        return copy.deepcopy(value)
    except Exception as e:
        logger.debug(f"SNAPSHOT: Keeping {type(value).__name__} by reference ({e})")
        return value
