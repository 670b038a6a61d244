"""
test_scheduler.py — pytest suite for agent_city.sim
====================================================
Covers: execute_tick copy-on-write, pause, day rollover, council countdown,
phase dispatch, determinism, and create_initial_state.
"""

import random

import pytest

from agent_city import config
from agent_city.brain import TemplateBrain
from agent_city.sim import (
    Clock, TickResult, council_countdown, create_initial_state, execute_tick, next_clock,
)
from agent_city.state import to_dict


# ─────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────

def _state(seed=1, hour=6, map_size=20):
    return create_initial_state(random.Random(seed), hour=hour, map_size=map_size)


def _advance(state, ticks, seed=3):
    rng = random.Random(seed)
    brain = TemplateBrain(random.Random(seed + 100))
    results = []
    for _ in range(ticks):
        result = execute_tick(state, next_clock(state), rng, brain)
        state = result.state
        results.append(result)
    return state, results


# ─────────────────────────────────────────────────────
# create_initial_state
# ─────────────────────────────────────────────────────

class TestCreateInitialState:
    def test_population_shape(self):
        s = create_initial_state(random.Random(1))
        groups = [a.age_group for a in s.agents]
        assert len(s.agents) == 50
        assert groups.count('child') == 8
        assert groups.count('teen') == 6
        assert groups.count('adult') == 28
        assert groups.count('elder') == 8
        assert s.metrics.population == 50

    def test_clock_and_logs(self):
        s = create_initial_state(random.Random(1), hour=6, timestamp=1000.0)
        assert (s.day, s.hour, s.phase, s.tick) == (1, 6, 'morning', 0)
        assert s.started_at == s.last_tick_at == 1000.0
        assert len(s.news) == 0
        assert len(s.recent_events) == 0
        assert len(s.story_log) == 0
        assert s.council.next_council_in == 12
        assert not s.council_active

    def test_map_dimensions(self):
        s = create_initial_state(random.Random(1), map_size=60)
        assert len(s.map) == 60 and len(s.map[0]) == 60

    def test_ids_unique(self):
        s = create_initial_state(random.Random(2))
        ids = [a.id for a in s.agents]
        assert len(set(ids)) == len(ids)

    def test_statuses_follow_schedule(self):
        # 03:00: nobody is up yet, so everyone is at home
        s = _state(hour=3)
        for a in s.agents:
            assert a.status == 'sleeping'
            assert a.position == a.home_position
        # 10:00: adults are at their work site
        s = _state(hour=10)
        for a in s.agents:
            if a.status == 'working':
                assert a.position == a.work_position

    def test_positions_inside_small_map(self):
        s = _state(map_size=12)
        for a in s.agents:
            for p in (a.position, a.home_position, a.work_position):
                assert 0 <= p.x < 12 and 0 <= p.y < 12


# ─────────────────────────────────────────────────────
# Copy-on-write and pause
# ─────────────────────────────────────────────────────

class TestCopyOnWrite:
    def test_input_state_not_mutated(self):
        s = _state()
        before = to_dict(s)
        result = execute_tick(s, Clock(7, timestamp=3600.0), random.Random(1))
        assert to_dict(s) == before
        assert result.state is not s
        assert result.state.tick == s.tick + 1

    def test_paused_state_is_a_noop(self):
        s = _state()
        s.paused = True
        result = execute_tick(s, Clock(18), random.Random(1))
        assert isinstance(result, TickResult)
        assert result.state is not s
        assert to_dict(result.state) == to_dict(s)
        assert (result.events, result.news, result.stories, result.chronicle) == ([], [], [], None)

    def test_timestamp_recorded(self):
        s = _state()
        result = execute_tick(s, Clock(7, timestamp=42.5), random.Random(1))
        assert result.state.last_tick_at == 42.5
        assert result.state.last_processed_hour == 7


# ─────────────────────────────────────────────────────
# Day rollover
# ─────────────────────────────────────────────────────

class TestRollover:
    @pytest.mark.parametrize("prev,new,new_day,expected_day", [
        (23, 0, None, 2),      # midnight
        (22, 1, None, 2),      # late-night jump
        (21, 2, None, 1),      # previous hour before 22: no rollover
        (10, 11, None, 1),
        (23, 0, False, 1),     # explicit signal wins
        (10, 11, True, 2),
    ])
    def test_rollover_rule(self, prev, new, new_day, expected_day):
        s = _state(hour=prev)
        result = execute_tick(s, Clock(new, new_day=new_day), random.Random(1))
        assert result.state.day == expected_day
        assert result.state.hour == new

    def test_hour_wraps_mod_24(self):
        s = _state(hour=6)
        result = execute_tick(s, Clock(31), random.Random(1))
        assert result.state.hour == 7

    def test_one_rollover_per_simulated_day(self):
        s, _ = _advance(_state(hour=6), 72)
        assert s.day == 4
        assert s.tick == 72
        assert s.hour == 6


# ─────────────────────────────────────────────────────
# Council countdown
# ─────────────────────────────────────────────────────

class TestCouncilCountdown:
    @pytest.mark.parametrize("hour,expected", [
        (17, 1), (18, 0), (19, 0), (20, 0), (21, 21), (22, 20), (0, 18), (6, 12),
    ])
    def test_countdown(self, hour, expected):
        assert council_countdown(hour, 18, 21) == expected

    def test_recomputed_every_tick(self):
        s, results = _advance(_state(hour=15), 4)
        assert [r.state.council.next_council_in for r in results] == [2, 1, 0, 0]


# ─────────────────────────────────────────────────────
# Phase dispatch
# ─────────────────────────────────────────────────────

class TestPhaseDispatch:
    def test_first_morning_hour_wakes_and_prints_paper(self):
        s = _state(hour=4)
        result = execute_tick(s, Clock(5), random.Random(1))
        new = result.state
        assert new.phase == 'morning'
        assert new.newspaper is not None
        assert new.newspaper.day == new.day
        assert any(n.category == 'morning_brief' for n in result.news)
        assert len(new.human_events) == 3
        assert all(a.status == 'idle' for a in new.agents)

    def test_council_opens_and_closes(self):
        s, _ = _advance(_state(hour=16), 2)    # → 18:00
        assert s.hour == 18
        assert s.council_active and s.council.is_active
        assert s.council.day == s.day
        assert s.council_announcement
        assert all(a.status == 'in_council' for a in s.agents)
        assert any(e.type == 'council_convenes' for e in s.recent_events)

        s, _ = _advance(s, 3)                  # → 21:00
        assert s.hour == 21
        assert not s.council_active and not s.council.is_active
        assert s.council_announcement is None
        assert all(a.status == 'idle' for a in s.agents)

    def test_watch_split_at_22(self):
        s, _ = _advance(_state(hour=20), 2)
        watchers = [a for a in s.agents if a.archetype in ('Guard', 'Scout', 'Warrior')]
        for a in s.agents:
            if a in watchers:
                assert a.status == 'on_watch'
            else:
                assert a.status == 'sleeping'
                assert a.position == a.home_position

    def test_night_recap_at_predawn(self):
        s, results = _advance(_state(hour=1), 3)   # → 04:00
        assert s.hour == config.PREDAWN_HOUR
        recaps = [n for n in results[-1].news if n.category == 'night_recap']
        assert len(recaps) == 1

    def test_chronicle_once_per_day(self):
        s, results = _advance(_state(hour=6), 24 * 3)
        chronicles = [r.chronicle for r in results if r.chronicle is not None]
        assert [c.day for c in chronicles] == [1, 2, 3]
        assert s.last_chronicle_day == 3
        # Replaying the pre-dawn hour on the same day adds nothing
        again = execute_tick(s, Clock(4, new_day=False), random.Random(1))
        assert again.chronicle is None

    def test_outputs_merged_into_rings(self):
        s, results = _advance(_state(hour=6), 48)
        emitted_news = [n.id for r in results for n in r.news]
        assert len(s.news) == min(config.LOG_CAP, len(emitted_news))
        # newest first: the last batch sits at the head in its own order
        last_batch = [r.news for r in results if r.news][-1]
        assert s.news[0].id == last_batch[0].id


# ─────────────────────────────────────────────────────
# Determinism
# ─────────────────────────────────────────────────────

class TestDeterminism:
    def test_same_seed_same_world(self):
        a, _ = _advance(_state(seed=8), 40, seed=21)
        b, _ = _advance(_state(seed=8), 40, seed=21)
        assert to_dict(a) == to_dict(b)

    def test_different_seed_differs(self):
        a, _ = _advance(_state(seed=8), 40, seed=21)
        b, _ = _advance(_state(seed=8), 40, seed=22)
        assert to_dict(a) != to_dict(b)

    def test_summary_line_printed(self, capsys):
        _advance(_state(hour=6), 1)
        out = capsys.readouterr().out
        assert "[Day 1 07:00] morning | Morale:" in out
        assert "| Unrest:" in out and "| Food:" in out
