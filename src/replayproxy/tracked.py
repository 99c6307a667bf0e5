"""
ReplayProxy: tracking wrapper around one observed graph.

The wrapper behaves like the tracked graph (attribute and item access fall
straight through to the observed proxy) and additionally exposes the
recorder operations as if they were native members:

    >>> data = {'one': 'foo'}
    >>> proxy = create(data)
    >>> proxy['one'] = 'modified'
    >>> data['one']
    'modified'
    >>> proxy.undo()
    True
    >>> data['one']
    'foo'

Lookup order for attribute reads: tracked graph, recorder operations,
then the reserved diagnostics ``scope`` (the ChangeRecorder) and ``proxy``
(the observed graph).
"""

import logging
from typing import Any, Callable, Iterator, Optional, Tuple

from replayproxy.clone import snapshot_value
from replayproxy.model import Link, MutationRecord
from replayproxy.observer import ObservedNode, ObservedObject, observe, unwrap
from replayproxy.recorder import ChangeRecorder
from replayproxy.reversal import build_reversal

logger = logging.getLogger(__name__)

Callback = Callable[[Tuple[Link, ...]], None]

RECORDER_OPERATIONS = frozenset({'breakpoint', 'undo', 'rollback', 'replay', 'record'})


def _make_observer(recorder: ChangeRecorder, callback: Optional[Callback]) -> Callback:
    """Observer glue: user callback first, then record unless suppressed."""

    def observer(chain: Tuple[Link, ...]) -> None:
        if callback is not None:
            try:
                callback(chain)
            except Exception as e:
                logger.warning(f"Error in observer callback: {e}")

        if recorder.is_suppressed:
            return
        if recorder.disposed:
            logger.debug("RECORD: Recorder disposed, mutation not recorded")
            return

        observed = MutationRecord.from_chain(chain, clone=snapshot_value)
        recorder.record(observed, build_reversal(recorder, observed))

    return observer


class ReplayProxy:
    """Tracked handle: the observed graph plus its ChangeRecorder."""

    def __init__(self, source: Any, callback: Optional[Callback] = None):
        """
        Args:
            source: The mapping, sequence or object to monitor
            callback: Optional observer called with the link chain of every
                      mutation, before it is recorded
        """
        scope = ChangeRecorder(source)
        proxy = observe(source, _make_observer(scope, callback))
        object.__setattr__(self, '_scope', scope)
        object.__setattr__(self, '_proxy', proxy)

    def __getattr__(self, name: str) -> Any:
        proxy: ObservedNode = object.__getattribute__(self, '_proxy')
        scope: ChangeRecorder = object.__getattribute__(self, '_scope')

        try:
            return getattr(proxy, name)
        except AttributeError:
            pass
        if name in RECORDER_OPERATIONS:
            return getattr(scope, name)
        if name == 'scope':
            return scope
        if name == 'proxy':
            return proxy
        raise AttributeError(f"{type(self).__name__!s} has no attribute '{name}'")

    def _require_attribute_graph(self, name: str) -> None:
        if not isinstance(self._proxy, ObservedObject):
            raise AttributeError(
                f"Cannot set or delete attribute '{name}' on a tracked "
                f"{type(unwrap(self._proxy)).__name__}; use item access"
            )

    def __setattr__(self, name: str, value: Any) -> None:
        self._require_attribute_graph(name)
        setattr(self._proxy, name, value)

    def __delattr__(self, name: str) -> None:
        self._require_attribute_graph(name)
        delattr(self._proxy, name)

    def __getitem__(self, key: Any) -> Any:
        return self._proxy[key]

    def __setitem__(self, key: Any, value: Any) -> None:
        self._proxy[key] = value

    def __delitem__(self, key: Any) -> None:
        del self._proxy[key]

    def __len__(self) -> int:
        return len(self._proxy)

    def __bool__(self) -> bool:
        # Attribute graphs usually define no __len__
        return bool(unwrap(self._proxy))

    def __iter__(self) -> Iterator[Any]:
        return iter(self._proxy)

    def __contains__(self, item: Any) -> bool:
        return item in self._proxy

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ReplayProxy):
            other = other._proxy
        return self._proxy == other

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ReplayProxy({self._proxy._observed_target!r})"


def create(source: Any, callback: Optional[Callback] = None) -> ReplayProxy:
    """Start tracking ``source`` and return its handle."""
    return ReplayProxy(source, callback)
