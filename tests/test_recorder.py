"""Tests for ChangeRecorder and reversal construction."""
import pytest

from replayproxy import (
    ChangeRecorder,
    Link,
    MISSING,
    MutationRecord,
    PathResolutionError,
    RecorderDisposedError,
    build_reversal,
    create,
)


def make_record(prop, value, old_value=MISSING, reference=None):
    return MutationRecord.from_chain((Link(reference=reference, prop=prop, value=value, old_value=old_value),))


class TestRecordAndUndo:

    def test_empty_recorder(self):
        recorder = ChangeRecorder({})
        assert recorder.breakpoint() == -1
        assert len(recorder) == 0
        assert recorder.undo() is False

    def test_logs_stay_aligned(self):
        recorder = ChangeRecorder({})
        calls = []
        for i in range(3):
            recorder.record(make_record(f'k{i}', i), lambda i=i: calls.append(i))
        assert len(recorder.changes) == len(recorder.reversals) == 3
        assert recorder.breakpoint() == 2

        assert recorder.undo() is True
        assert calls == [2]
        assert len(recorder.changes) == len(recorder.reversals) == 2

    def test_undo_blocked_at_breakpoint(self):
        recorder = ChangeRecorder({})
        recorder.record(make_record('a', 1), lambda: None)
        recorder.record(make_record('b', 2), lambda: None)
        assert recorder.undo(1) is False
        assert recorder.undo(0) is True
        assert recorder.undo(0) is False
        assert recorder.breakpoint() == 0

    def test_rollback_to_stale_breakpoint_drains_to_length(self):
        recorder = ChangeRecorder({})
        for i in range(3):
            recorder.record(make_record('k', i), lambda: None)
        breakpoint = recorder.breakpoint()
        for i in range(7):
            recorder.record(make_record('k', i), lambda: None)
        recorder.rollback(breakpoint)
        assert len(recorder) == breakpoint + 1

    def test_failing_reversal_keeps_logs_intact(self):
        recorder = ChangeRecorder({})
        recorder.record(make_record('a', 1), lambda: None)

        def broken():
            raise RuntimeError("cannot reverse")

        recorder.record(make_record('b', 2), broken)
        with pytest.raises(RuntimeError):
            recorder.undo()
        assert len(recorder.changes) == len(recorder.reversals) == 2

    def test_changes_view_is_a_copy(self):
        recorder = ChangeRecorder({})
        recorder.record(make_record('a', 1), lambda: None)
        view = recorder.changes
        recorder.record(make_record('b', 2), lambda: None)
        assert len(view) == 1


class TestReversal:

    def test_reversal_follows_source_slot(self):
        original = {'a': 1}
        proxy = create(original)
        proxy['a'] = 2

        replacement = {'a': 2}
        proxy.scope.source = replacement
        proxy.undo()
        assert replacement == {'a': 1}
        assert original == {'a': 2}

    def test_undo_against_reshaped_source(self):
        proxy = create({'outer': {'inner': 1}})
        proxy['outer']['inner'] = 2
        proxy.scope.source = {}
        with pytest.raises(PathResolutionError):
            proxy.undo()
        assert proxy.breakpoint() == 0

    def test_build_reversal_restores_removed_element(self):
        data = {'items': ['a', 'b', 'c']}
        recorder = ChangeRecorder(data)
        chain = (
            Link(reference=data, prop='items', value=data['items'], old_value=data['items']),
            Link(reference=data['items'], prop=1, value=MISSING, old_value='b'),
        )
        observed = MutationRecord.from_chain(chain)
        del data['items'][1]

        build_reversal(recorder, observed)()
        assert data['items'] == ['a', 'b', 'c']

    def test_recorded_values_are_snapshots(self):
        old = {'depth': 1}
        new = {'depth': 2}
        proxy = create({'config': old})
        proxy['config'] = new
        old['depth'] = 10
        new['depth'] = 20

        leaf = proxy.scope.changes[0].leaf
        assert leaf.old_value == {'depth': 1}
        assert leaf.value == {'depth': 2}


class TestSuppression:

    def test_suppressed_mutations_are_not_recorded(self):
        seen = []
        proxy = create({}, seen.append)
        with proxy.scope.suppressed():
            assert proxy.scope.is_suppressed
            proxy['a'] = 1
        assert not proxy.scope.is_suppressed
        assert proxy.breakpoint() == -1
        assert len(seen) == 1

    def test_nested_suppression(self):
        recorder = ChangeRecorder({})
        with recorder.suppressed():
            with recorder.suppressed():
                pass
            assert recorder.is_suppressed
        assert not recorder.is_suppressed

    def test_undo_through_observed_source_is_not_rerecorded(self):
        proxy = create({'a': 1})
        proxy['a'] = 2
        # bind the observed graph itself so reversals re-trigger the observer
        proxy.scope.source = proxy.proxy
        assert proxy.undo() is True
        assert proxy['a'] == 1
        assert proxy.breakpoint() == -1


class TestLifecycle:

    def test_reset_keeps_source_state(self):
        data = {}
        proxy = create(data)
        proxy['a'] = 1
        proxy.scope.reset()
        assert proxy.breakpoint() == -1
        assert data == {'a': 1}
        proxy['b'] = 2
        assert proxy.breakpoint() == 0

    def test_dispose(self):
        data = {}
        proxy = create(data)
        proxy['a'] = 1
        proxy.scope.dispose()
        assert proxy.scope.disposed
        assert proxy.scope.source is None
        assert proxy.undo() is False

        proxy['b'] = 2
        assert data == {'a': 1, 'b': 2}
        assert proxy.breakpoint() == -1
        with pytest.raises(RecorderDisposedError):
            proxy.scope.record(make_record('c', 3), lambda: None)


class TestHistoryCallbacks:

    def test_callbacks_fire_on_history_changes(self):
        fired = []
        proxy = create({})
        proxy.scope.add_history_changed_callback(lambda recorder: fired.append(len(recorder)))
        proxy['a'] = 1
        proxy['b'] = 2
        proxy.undo()
        proxy.scope.reset()
        assert fired == [1, 2, 1, 0]

    def test_callback_registered_once_and_removable(self):
        fired = []

        def callback(recorder):
            fired.append(recorder)

        proxy = create({})
        proxy.scope.add_history_changed_callback(callback)
        proxy.scope.add_history_changed_callback(callback)
        proxy['a'] = 1
        proxy.scope.remove_history_changed_callback(callback)
        proxy['b'] = 2
        assert len(fired) == 1

    def test_failing_callback_is_logged(self, caplog):
        def callback(recorder):
            raise RuntimeError("listener broke")

        proxy = create({})
        proxy.scope.add_history_changed_callback(callback)
        proxy['a'] = 1
        assert proxy.breakpoint() == 0
        assert "listener broke" in caplog.text
