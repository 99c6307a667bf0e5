"""Tests for the replay engine and replay through the recorder."""
import asyncio

import pytest

from replayproxy import PathResolutionError, create, recorder_config, traverse_changes
from tests.conftest import get_data


@pytest.fixture
def sleeps(monkeypatch):
    """Record requested sleep durations without actually waiting."""
    recorded = []
    real_sleep = asyncio.sleep

    async def fake_sleep(seconds, *args, **kwargs):
        recorded.append(seconds)
        await real_sleep(0)

    monkeypatch.setattr("replayproxy.replay.asyncio.sleep", fake_sleep)
    return recorded


class TestTraverseChanges:

    def test_visits_in_order(self):
        seen = []
        asyncio.run(traverse_changes([1, 2, 3], seen.append))
        assert seen == [1, 2, 3]

    def test_empty_actions(self):
        seen = []
        asyncio.run(traverse_changes([], seen.append))
        assert seen == []

    def test_stops_when_callback_returns_false(self):
        seen = []

        def callback(action):
            if action > 2:
                return False
            seen.append(action)
            return True

        asyncio.run(traverse_changes([1, 2, 3, 4], callback))
        assert seen == [1, 2]

    def test_delay_between_steps(self, sleeps):
        asyncio.run(traverse_changes(['a', 'b', 'c'], lambda action: True, delay=25))
        assert sleeps == [0.025, 0.025]

    @pytest.mark.parametrize("delay", [None, 0, -10])
    def test_no_delay(self, sleeps, delay):
        asyncio.run(traverse_changes(['a', 'b'], lambda action: True, delay=delay))
        assert sleeps == []

    def test_error_aborts_traversal(self):
        seen = []

        def callback(action):
            if action == 2:
                raise ValueError("bad step")
            seen.append(action)

        with pytest.raises(ValueError, match="bad step"):
            asyncio.run(traverse_changes([1, 2, 3], callback))
        assert seen == [1]


class TestReplay:

    def test_full_replay_reproduces_final_state(self, data, proxy):
        proxy['one'] = 'changed'
        proxy['two'][5].insert(1, 'middle')
        proxy['two'].pop(0)
        proxy['three']['baz'] = {'deep': [1]}
        proxy['three']['baz']['deep'].append(2)
        del proxy['three']['foo']

        target = get_data()
        asyncio.run(proxy.replay(target))
        assert target == data

    def test_replay_to_breakpoint_is_inclusive(self, proxy):
        proxy['step'] = 1
        proxy['step'] = 2
        breakpoint = proxy.breakpoint()
        proxy['step'] = 3
        proxy['late'] = True

        target = {}
        asyncio.run(proxy.replay(target, None, breakpoint))
        assert target == {'step': 2}

    def test_breakpoint_minus_one_applies_nothing(self, proxy):
        proxy['a'] = 1
        target = {}
        asyncio.run(proxy.replay(target, None, -1))
        assert target == {}

    def test_empty_history(self):
        proxy = create({})
        target = {'untouched': True}
        asyncio.run(proxy.replay(target))
        assert target == {'untouched': True}

    def test_missing_ancestor_fails_without_partial_application(self, proxy):
        proxy['a'] = 1
        proxy['three']['foo'] = 'x'
        proxy['b'] = 2

        target = {}
        with pytest.raises(PathResolutionError) as excinfo:
            asyncio.run(proxy.replay(target))
        assert excinfo.value.path == ('three', 'foo')
        assert target == {'a': 1}

    def test_bad_sequence_index_fails(self, proxy):
        proxy['two'].pop()
        target = {'two': []}
        with pytest.raises(PathResolutionError):
            asyncio.run(proxy.replay(target))

    def test_snapshot_taken_at_call_time(self, proxy):
        proxy['a'] = 1
        pending = proxy.replay({})
        proxy['b'] = 2

        target = {}
        pending.close()
        pending = proxy.replay(target)
        proxy['c'] = 3
        asyncio.run(pending)
        assert target == {'a': 1, 'b': 2}

    def test_replay_values_do_not_alias_history(self, proxy):
        proxy['items'] = [1, 2]
        first = {}
        asyncio.run(proxy.replay(first))
        first['items'].append('mutated')

        second = {}
        asyncio.run(proxy.replay(second))
        assert second['items'] == [1, 2]

    def test_replay_onto_tracked_graph_is_not_recorded(self):
        source = create({})
        source['a'] = 1
        source['b'] = 2

        other = create({})
        asyncio.run(source.replay(other.proxy))
        assert other == {'a': 1, 'b': 2}
        # the other handle's recorder sees the writes; the source's does not
        assert other.breakpoint() == 1
        assert source.breakpoint() == 1

    def test_replay_onto_own_graph_is_suppressed(self):
        data = {}
        proxy = create(data)
        proxy['a'] = 1
        asyncio.run(proxy.replay(proxy.proxy))
        assert proxy.breakpoint() == 0

    def test_replay_delay(self, sleeps, proxy):
        proxy['a'] = 1
        proxy['b'] = 2
        proxy['c'] = 3
        asyncio.run(proxy.replay({}, 100))
        assert sleeps == [0.1, 0.1]

    def test_default_delay_from_config(self, sleeps, proxy):
        proxy['a'] = 1
        proxy['b'] = 2
        with recorder_config(default_delay=50):
            pending = proxy.replay({})
        asyncio.run(pending)
        assert sleeps == [0.05]
