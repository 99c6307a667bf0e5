"""
Link and MutationRecord dataclasses for the change log.

A mutation observed on a tracked graph arrives as a chain of Links, one per
step from the root container down to the mutated leaf. The chain is frozen
into a MutationRecord, which is what the change log stores and what replay
walks.

Design Philosophy: Correct by Construction
- Immutable records (frozen dataclass)
- MISSING is the only way to say "no value"; None is a real value
- Leaf values are snapshotted once, at record time
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Optional, Tuple


class _Missing:
    """Sentinel type for an absent value (a key that did not exist)."""

    _instance: Optional['_Missing'] = None

    def __new__(cls) -> '_Missing':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return 'MISSING'

    def __copy__(self) -> '_Missing':
        return self

    def __deepcopy__(self, memo) -> '_Missing':
        return self

    def __reduce__(self):
        return (_Missing, ())


MISSING = _Missing()


@dataclass(frozen=True)
class Link:
    """One step of an addressing chain.

    reference: the raw container owning ``prop``
    prop: mapping key, attribute name, or sequence index
    value: value after the mutation (MISSING for a delete)
    old_value: value before the mutation (MISSING for an addition)
    receiver: the observed proxy the access went through
    """
    reference: Any
    prop: Any
    value: Any = MISSING
    old_value: Any = MISSING
    receiver: Any = None

    @property
    def is_addition(self) -> bool:
        return self.old_value is MISSING

    @property
    def is_deletion(self) -> bool:
        return self.value is MISSING


@dataclass(frozen=True)
class MutationRecord:
    """One recorded field-level change with its addressing path."""
    chain: Tuple[Link, ...]
    root: Link
    leaf: Link
    path: Tuple[Any, ...]

    @classmethod
    def from_chain(
        cls,
        chain: Tuple[Link, ...],
        clone: Optional[Callable[[Any], Any]] = None,
    ) -> 'MutationRecord':
        """Build a record from an observer chain.

        Args:
            chain: Root-to-leaf links as delivered by the observer
            clone: Optional structural clone applied to the leaf's values so
                   later mutation of the live objects cannot rewrite history

        Raises:
            ValueError: If the chain is empty
        """
        if not chain:
            raise ValueError("Cannot record a mutation with an empty chain")

        chain = tuple(chain)
        leaf = chain[-1]
        if clone is not None:
            leaf = replace(leaf, value=clone(leaf.value), old_value=clone(leaf.old_value))
            chain = chain[:-1] + (leaf,)

        return cls(
            chain=chain,
            root=chain[0],
            leaf=leaf,
            path=tuple(link.prop for link in chain),
        )

    def describe(self) -> str:
        """Short human-readable form for log lines."""
        dotted = '.'.join(str(p) for p in self.path)
        if self.leaf.is_deletion:
            return f"delete {dotted} (was {self.leaf.old_value!r})"
        if self.leaf.is_addition:
            return f"add {dotted} = {self.leaf.value!r}"
        return f"set {dotted} = {self.leaf.value!r} (was {self.leaf.old_value!r})"
