"""
test_store.py — pytest suite for agent_city.store
==================================================
Covers: history caps and most-recent-first ordering, count validation,
deep-copy isolation of the stored state, and JSON save/load.
"""

import random

import pytest

from agent_city.sim import create_initial_state
from agent_city.state import ChronicleEntry, Snapshot, WorldEvent, to_dict
from agent_city.store import MemoryStore
from agent_city.world import Position


def _snap(tick):
    return Snapshot(day=1 + tick // 24, phase='day', tick=tick, metrics={'morale': 70})


def _event(i):
    return WorldEvent(f"evt-{i}", 'illness', f"event {i}", 'low', 1, 'day',
                      ['agent-1'], Position(i, i))


# ─────────────────────────────────────────────────────
# Histories
# ─────────────────────────────────────────────────────

class TestHistories:
    def test_most_recent_first(self):
        store = MemoryStore()
        for t in range(5):
            store.push_snapshot(_snap(t))
        assert [s.tick for s in store.get_snapshots(3)] == [4, 3, 2]

    def test_caps_drop_the_oldest(self):
        store = MemoryStore(snapshot_cap=3, event_cap=2, chronicle_cap=1)
        for t in range(6):
            store.push_snapshot(_snap(t))
            store.push_event(_event(t))
            store.push_chronicle(ChronicleEntry(t, ['h'], None, [], {}))
        assert [s.tick for s in store.get_snapshots(10)] == [5, 4, 3]
        assert [e.id for e in store.get_events(10)] == ['evt-5', 'evt-4']
        assert [c.day for c in store.get_chronicles(10)] == [5]

    def test_default_counts(self):
        store = MemoryStore()
        for t in range(60):
            store.push_snapshot(_snap(t))
            store.push_event(_event(t))
            store.push_chronicle(ChronicleEntry(t, ['h'], None, [], {}))
        assert len(store.get_snapshots()) == 10
        assert len(store.get_events()) == 50
        assert len(store.get_chronicles()) == 7

    def test_zero_count(self):
        store = MemoryStore()
        store.push_snapshot(_snap(1))
        assert store.get_snapshots(0) == []

    @pytest.mark.parametrize("getter", ['get_snapshots', 'get_events', 'get_chronicles'])
    def test_negative_count_rejected(self, getter):
        with pytest.raises(ValueError):
            getattr(MemoryStore(), getter)(-1)


# ─────────────────────────────────────────────────────
# World state
# ─────────────────────────────────────────────────────

class TestWorldState:
    def test_empty_store(self):
        assert MemoryStore().get_world_state() is None

    def test_copies_in_and_out(self):
        store = MemoryStore()
        s = create_initial_state(random.Random(1), map_size=12)
        store.set_world_state(s)
        s.day = 99
        out = store.get_world_state()
        assert out.day == 1
        out.agents[0].name = 'changed'
        assert store.get_world_state().agents[0].name != 'changed'


# ─────────────────────────────────────────────────────
# JSON persistence
# ─────────────────────────────────────────────────────

class TestJson:
    def test_round_trip(self, tmp_path):
        store = MemoryStore()
        s = create_initial_state(random.Random(3), map_size=12)
        store.set_world_state(s)
        for t in range(3):
            store.push_snapshot(_snap(t))
            store.push_event(_event(t))
        store.push_chronicle(ChronicleEntry(1, ['A quiet day'], {'title': 't', 'result': 'approved'},
                                            ['moment'], {'morale': 70}, 5.0))
        path = tmp_path / 'state.json'
        store.save_json(path)

        loaded = MemoryStore.load_json(path)
        assert to_dict(loaded.get_world_state()) == to_dict(s)
        assert [x.tick for x in loaded.get_snapshots()] == [2, 1, 0]
        events = loaded.get_events()
        assert events[0].id == 'evt-2'
        assert events[0].position == Position(2, 2)
        assert loaded.get_chronicles()[0].key_vote == {'title': 't', 'result': 'approved'}

    def test_no_temp_file_left_behind(self, tmp_path):
        store = MemoryStore()
        path = tmp_path / 'state.json'
        store.save_json(path)
        store.save_json(path)
        assert sorted(p.name for p in tmp_path.iterdir()) == ['state.json']

    def test_empty_store_round_trip(self, tmp_path):
        path = tmp_path / 'empty.json'
        MemoryStore().save_json(path)
        loaded = MemoryStore.load_json(path)
        assert loaded.get_world_state() is None
        assert loaded.get_snapshots() == []

    def test_overfull_file_keeps_newest(self, tmp_path):
        big = MemoryStore(snapshot_cap=500)
        for t in range(300):
            big.push_snapshot(_snap(t))
        path = tmp_path / 'big.json'
        big.save_json(path)
        loaded = MemoryStore.load_json(path)
        snaps = loaded.get_snapshots(1000)
        assert len(snaps) == 200
        assert snaps[0].tick == 299
        assert snaps[-1].tick == 100
