"""
Reversal construction for recorded mutations.

A reversal is built once per MutationRecord, at record time, but resolves
its target container only when invoked, and always against whatever object
the recorder's source slot holds at that moment.
"""

from typing import TYPE_CHECKING, Any, Callable

from replayproxy.clone import snapshot_value
from replayproxy.model import MISSING, Link, MutationRecord
from replayproxy.paths import delete_field, is_sequence, resolve_reference, write_field

if TYPE_CHECKING:
    from replayproxy.recorder import ChangeRecorder


def revert_change(reference: Any, leaf: Link) -> None:
    """Undo one leaf mutation inside ``reference``.

    - Addition (old value MISSING): remove the inserted element by its
      recorded index, or delete the added key/attribute.
    - Sequence removal (new value MISSING): re-insert the old element at
      its recorded index.
    - Anything else: write the old value back.
    """
    if leaf.old_value is MISSING:
        if is_sequence(reference):
            del reference[leaf.prop]
        else:
            delete_field(reference, leaf.prop)
        return

    old_value = snapshot_value(leaf.old_value)
    if leaf.value is MISSING and is_sequence(reference):
        reference.insert(leaf.prop, old_value)
    else:
        write_field(reference, leaf.prop, old_value)


def build_reversal(recorder: 'ChangeRecorder', observed: MutationRecord) -> Callable[[], None]:
    """Create the zero-argument undo operation for ``observed``.

    The closure holds the recorder, not its current source, so rebinding
    ``recorder.source`` before undo is honoured.
    """
    def reversal() -> None:
        reference = resolve_reference(observed.path, recorder.source)
        revert_change(reference, observed.leaf)

    return reversal
