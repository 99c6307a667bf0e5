"""
Path resolution against live or alternate object graphs.

A recorded path is a tuple of keys from the root down to the mutated leaf.
Keys are mapping keys, sequence indices or attribute names; which access
is used depends on the container met at each step, never on the graph the
path was recorded from. That lets undo follow the current source and
replay follow a completely different target.
"""

from collections.abc import Mapping, MutableMapping, MutableSequence
from typing import Any, Sequence

from replayproxy.exceptions import PathResolutionError


def is_sequence(obj: Any) -> bool:
    """True for mutable sequences that mutations address by index."""
    return isinstance(obj, MutableSequence) and not isinstance(obj, (str, bytes, bytearray))


def _uses_items(obj: Any) -> bool:
    return isinstance(obj, Mapping) or is_sequence(obj)


def has_field(container: Any, prop: Any) -> bool:
    if isinstance(container, Mapping):
        return prop in container
    if is_sequence(container):
        return isinstance(prop, int) and -len(container) <= prop < len(container)
    return isinstance(prop, str) and hasattr(container, prop)


def read_field(container: Any, prop: Any) -> Any:
    """Read one step. Raises KeyError/IndexError/AttributeError/TypeError."""
    if _uses_items(container):
        return container[prop]
    if not isinstance(prop, str):
        raise TypeError(f"attribute name must be a string, not {type(prop).__name__}")
    return getattr(container, prop)


def write_field(container: Any, prop: Any, value: Any) -> None:
    if _uses_items(container):
        container[prop] = value
    else:
        setattr(container, prop, value)


def delete_field(container: Any, prop: Any) -> bool:
    """Delete one key or attribute. Absent keys are a no-op.

    Returns:
        True if something was deleted.
    """
    if not has_field(container, prop):
        return False
    if isinstance(container, MutableMapping) or is_sequence(container):
        del container[prop]
        return True
    try:
        delattr(container, prop)
    except AttributeError:
        # Class-level default, nothing on the instance to delete
        return False
    return True


def resolve_reference(path: Sequence[Any], root: Any) -> Any:
    """Walk ``path`` from ``root`` to the container one level above the leaf.

    Args:
        path: Root-to-leaf keys as stored on a MutationRecord
        root: Object to resolve against (live source or replay target)

    Returns:
        The container that owns the leaf key.

    Raises:
        PathResolutionError: If an ancestor is missing from ``root``
    """
    if not path:
        raise PathResolutionError(path, 0, "empty path")

    reference = root
    for depth, prop in enumerate(path[:-1]):
        try:
            reference = read_field(reference, prop)
        except (KeyError, IndexError, AttributeError, TypeError) as e:
            raise PathResolutionError(path, depth, str(e)) from e
    return reference
