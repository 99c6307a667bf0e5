"""
Transactional mutation tracking for plain Python object graphs.

Every field write or delete made through a tracked handle is recorded as a
reversible action. The resulting history supports single-step undo,
rollback to a breakpoint, and deterministic replay of the recorded
sequence onto a different initial object.

Quick Start:
    >>> import asyncio
    >>> from replayproxy import create
    >>>
    >>> data = {'step': 0}
    >>> proxy = create(data)
    >>> proxy['step'] = 1
    >>> breakpoint = proxy.breakpoint()
    >>> proxy['status'] = 'running'
    >>> proxy.rollback(breakpoint)      # drop everything after the breakpoint
    >>> data
    {'step': 1}
    >>>
    >>> copy = {'step': 0}
    >>> asyncio.run(proxy.replay(copy))  # same history, different object
    >>> copy
    {'step': 1}

Architecture:
    Observer (observer.py):
        Proxies report every mutation as a root-to-leaf chain of Links

    ChangeRecorder (recorder.py):
        Parallel change log / reversal log, breakpoint, undo, rollback

    ReversalBuilder (reversal.py):
        Builds the undo closure for one recorded mutation

    ReplayEngine (replay.py):
        Sequential, optionally delayed traversal onto an alternate target

    Tracking wrapper (tracked.py):
        create() composes the above around one graph

Modules:
    - model: Link, MutationRecord, MISSING
    - observer: Observed proxies for mappings, sequences and objects
    - paths: Path resolution against live or alternate graphs
    - clone: Structural snapshots of recorded values
    - reversal: Reversal construction
    - replay: Replay traversal
    - recorder: ChangeRecorder
    - tracked: ReplayProxy and create()
    - config: Recorder configuration
    - exceptions: Error types
"""

# Data model
from replayproxy.model import MISSING, Link, MutationRecord

# Errors
from replayproxy.exceptions import (
    ReplayProxyError,
    PathResolutionError,
    RecorderDisposedError,
)

# Configuration
from replayproxy.config import (
    RecorderConfig,
    set_recorder_config,
    get_recorder_config,
    reset_recorder_config,
    recorder_config,
)

# Observer
from replayproxy.observer import (
    observe,
    unwrap,
    ObservedMapping,
    ObservedSequence,
    ObservedObject,
)

# Paths and snapshots
from replayproxy.paths import resolve_reference
from replayproxy.clone import snapshot_value

# Recorder, reversal and replay
from replayproxy.reversal import build_reversal
from replayproxy.replay import traverse_changes
from replayproxy.recorder import ChangeRecorder

# Tracking wrapper
from replayproxy.tracked import ReplayProxy, create

__all__ = [
    # Data model
    'MISSING',
    'Link',
    'MutationRecord',
    # Errors
    'ReplayProxyError',
    'PathResolutionError',
    'RecorderDisposedError',
    # Configuration
    'RecorderConfig',
    'set_recorder_config',
    'get_recorder_config',
    'reset_recorder_config',
    'recorder_config',
    # Observer
    'observe',
    'unwrap',
    'ObservedMapping',
    'ObservedSequence',
    'ObservedObject',
    # Paths and snapshots
    'resolve_reference',
    'snapshot_value',
    # Recorder
    'build_reversal',
    'traverse_changes',
    'ChangeRecorder',
    # Tracking wrapper
    'ReplayProxy',
    'create',
]

__version__ = '1.0.0'
__description__ = 'Transactional mutation tracking with undo, rollback and replay'
