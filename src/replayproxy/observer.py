"""
Observed proxies: explicit mutation observation for plain Python graphs.

Python has no ambient field trapping, so tracked graphs are accessed
through proxies that mimic the wrapped container:

- ObservedMapping: dicts and other MutableMappings (item access)
- ObservedSequence: lists and other MutableSequences (index access)
- ObservedObject: dataclasses and plain instances (attribute access)

Reading a container child returns a nested proxy that remembers how it was
reached. Every write or delete is applied to the raw target first, then the
notify callback receives the full root-to-leaf chain of Links.

Sequence mutations are always reported as elementary index-based events
(insert at i, remove at i, replace at i); composite list and dict methods
are decomposed into those events so each one can be reversed on its own.

Every assignment emits, including one that stores the object already in
place. The exception is storing a proxy back over its own target, which is
what ``graph[key] += [...]`` does after the in-place extend has already
emitted its insertions.

Not observed: mutations made through the raw objects, methods of plain
objects that mutate their own state, and in-place changes to non-container
values such as sets.

Nested proxies keep the path they were read through. A proxy for
``graph['items'][1]`` still reports index 1 after an earlier element of
``graph['items']`` is removed, so its later mutations carry a stale path
and undoing them raises PathResolutionError.
"""

import operator
from collections.abc import MutableMapping, MutableSequence
from dataclasses import is_dataclass
from types import ModuleType
from typing import Any, Callable, Iterator, List, Tuple

from replayproxy.model import MISSING, Link
from replayproxy.paths import is_sequence

Notify = Callable[[Tuple[Link, ...]], None]


def unwrap(value: Any) -> Any:
    """Return the raw object behind an observed proxy (or value itself)."""
    if isinstance(value, ObservedNode):
        return object.__getattribute__(value, '_observed_target')
    return value


def is_observable(value: Any) -> bool:
    """True for values whose mutations can be observed through a proxy."""
    if isinstance(value, MutableMapping) or is_sequence(value):
        return True
    if isinstance(value, (type, ModuleType)) or callable(value):
        return False
    return is_dataclass(value) or hasattr(value, '__dict__')


def observe(target: Any, notify: Notify, chain: Tuple[Link, ...] = ()) -> 'ObservedNode':
    """Wrap ``target`` in the proxy matching its access style.

    Args:
        target: Mapping, sequence or attribute object to observe
        notify: Called with the root-to-leaf chain after every mutation
        chain: Links leading to ``target`` (empty for the root)

    Raises:
        TypeError: If target is not an observable container
    """
    target = unwrap(target)
    if isinstance(target, MutableMapping):
        return ObservedMapping(target, notify, chain)
    if is_sequence(target):
        return ObservedSequence(target, notify, chain)
    if is_observable(target):
        return ObservedObject(target, notify, chain)
    raise TypeError(f"Cannot observe {type(target).__name__}: not a container")


class ObservedNode:
    """Common state for observed proxies."""

    def __init__(self, target: Any, notify: Notify, chain: Tuple[Link, ...] = ()):
        object.__setattr__(self, '_observed_target', target)
        object.__setattr__(self, '_observed_notify', notify)
        object.__setattr__(self, '_observed_chain', tuple(chain))

    def _observed_child(self, prop: Any, value: Any) -> Any:
        """Wrap a child container so its mutations carry this node's path."""
        if not is_observable(value):
            return value
        link = Link(
            reference=self._observed_target,
            prop=prop,
            value=value,
            old_value=value,
            receiver=self,
        )
        return observe(value, self._observed_notify, self._observed_chain + (link,))

    def _observed_emit(self, prop: Any, value: Any, old_value: Any) -> None:
        leaf = Link(
            reference=self._observed_target,
            prop=prop,
            value=value,
            old_value=old_value,
            receiver=self,
        )
        self._observed_notify(self._observed_chain + (leaf,))

    @staticmethod
    def _observed_rebinds(value: Any, old_value: Any) -> bool:
        """True when ``value`` is a proxy for the object already stored."""
        return isinstance(value, ObservedNode) and unwrap(value) is old_value

    def __eq__(self, other: Any) -> bool:
        return self._observed_target == unwrap(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._observed_target!r})"


class ObservedMapping(ObservedNode, MutableMapping):
    """Proxy for a MutableMapping; keys are the path properties."""

    def __getitem__(self, key: Any) -> Any:
        return self._observed_child(key, self._observed_target[key])

    def __setitem__(self, key: Any, value: Any) -> None:
        target = self._observed_target
        old_value = target[key] if key in target else MISSING
        if self._observed_rebinds(value, old_value):
            return
        value = unwrap(value)
        target[key] = value
        self._observed_emit(key, value, old_value)

    def __delitem__(self, key: Any) -> None:
        target = self._observed_target
        old_value = target[key]
        del target[key]
        self._observed_emit(key, MISSING, old_value)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._observed_target)

    def __len__(self) -> int:
        return len(self._observed_target)

    def __contains__(self, key: Any) -> bool:
        return key in self._observed_target

    def pop(self, key: Any, default: Any = MISSING) -> Any:
        target = self._observed_target
        if key not in target:
            if default is MISSING:
                raise KeyError(key)
            return default
        value = target[key]
        del self[key]
        return value

    def popitem(self) -> Tuple[Any, Any]:
        target = self._observed_target
        if not target:
            raise KeyError('popitem(): dictionary is empty')
        key = list(target)[-1]
        return key, self.pop(key)

    def clear(self) -> None:
        # Last key first so undo re-adds keys in their original order
        for key in reversed(list(self._observed_target)):
            del self[key]

    def copy(self) -> dict:
        return dict(self._observed_target)


class ObservedSequence(ObservedNode, MutableSequence):
    """Proxy for a MutableSequence; indices are the path properties."""

    def _observed_index(self, index: Any) -> int:
        size = len(self._observed_target)
        index = operator.index(index)
        if index < 0:
            index += size
        if not 0 <= index < size:
            raise IndexError('list index out of range')
        return index

    def __getitem__(self, index: Any) -> Any:
        if isinstance(index, slice):
            return self._observed_target[index]
        index = self._observed_index(index)
        return self._observed_child(index, self._observed_target[index])

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            self._observed_set_slice(index, value)
            return
        target = self._observed_target
        index = self._observed_index(index)
        old_value = target[index]
        if self._observed_rebinds(value, old_value):
            return
        value = unwrap(value)
        target[index] = value
        self._observed_emit(index, value, old_value)

    def __delitem__(self, index: Any) -> None:
        if isinstance(index, slice):
            indices = range(*index.indices(len(self._observed_target)))
            for i in sorted(indices, reverse=True):
                del self[i]
            return
        target = self._observed_target
        index = self._observed_index(index)
        old_value = target[index]
        del target[index]
        self._observed_emit(index, MISSING, old_value)

    def __len__(self) -> int:
        return len(self._observed_target)

    def __iter__(self) -> Iterator[Any]:
        for index, value in enumerate(list(self._observed_target)):
            yield self._observed_child(index, value)

    def __contains__(self, value: Any) -> bool:
        return unwrap(value) in self._observed_target

    def insert(self, index: Any, value: Any) -> None:
        target = self._observed_target
        size = len(target)
        index = operator.index(index)
        if index < 0:
            index = max(0, index + size)
        index = min(index, size)
        value = unwrap(value)
        target.insert(index, value)
        self._observed_emit(index, value, MISSING)

    def pop(self, index: Any = -1) -> Any:
        if not self._observed_target:
            raise IndexError('pop from empty list')
        index = self._observed_index(index)
        value = self._observed_target[index]
        del self[index]
        return value

    def remove(self, value: Any) -> None:
        value = unwrap(value)
        for index, item in enumerate(self._observed_target):
            if item is value or item == value:
                del self[index]
                return
        raise ValueError('list.remove(x): x not in list')

    def clear(self) -> None:
        for index in reversed(range(len(self._observed_target))):
            del self[index]

    def sort(self, *, key: Any = None, reverse: bool = False) -> None:
        self._observed_reorder(sorted(self._observed_target, key=key, reverse=reverse))

    def reverse(self) -> None:
        self._observed_reorder(self._observed_target[::-1])

    def copy(self) -> list:
        return list(self._observed_target)

    def _observed_reorder(self, ordered: List[Any]) -> None:
        """Replace every index whose element moved."""
        target = self._observed_target
        for index, value in enumerate(ordered):
            if target[index] is not value:
                self[index] = value

    def _observed_set_slice(self, index: slice, values: Any) -> None:
        values = [unwrap(v) for v in values]
        start, stop, step = index.indices(len(self._observed_target))
        if step == 1:
            for i in reversed(range(start, max(start, stop))):
                del self[i]
            for offset, value in enumerate(values):
                self.insert(start + offset, value)
            return

        indices = range(start, stop, step)
        if len(values) != len(indices):
            raise ValueError(
                f"attempt to assign sequence of size {len(values)} "
                f"to extended slice of size {len(indices)}"
            )
        for i, value in zip(indices, values):
            self[i] = value


class ObservedObject(ObservedNode):
    """Proxy for attribute-based objects (dataclasses, plain instances)."""

    def __getattr__(self, name: str) -> Any:
        target = object.__getattribute__(self, '_observed_target')
        value = getattr(target, name)
        if callable(value):
            return value
        return self._observed_child(name, value)

    def __setattr__(self, name: str, value: Any) -> None:
        target = self._observed_target
        old_value = getattr(target, name, MISSING)
        if self._observed_rebinds(value, old_value):
            return
        value = unwrap(value)
        setattr(target, name, value)
        self._observed_emit(name, value, old_value)

    def __delattr__(self, name: str) -> None:
        target = self._observed_target
        old_value = getattr(target, name)
        delattr(target, name)
        self._observed_emit(name, MISSING, old_value)

    def __dir__(self) -> List[str]:
        return dir(self._observed_target)
