"""
test_invariants.py — pytest suite for whole-run invariants
===========================================================
Runs a small settlement for several simulated days and checks, after every
tick, that metrics, vitals, relationship lists and log rings stay consistent.
"""

import random

import pytest

from agent_city import config
from agent_city.brain import TemplateBrain
from agent_city.sim import create_initial_state, execute_tick, next_clock
from agent_city.world import METRIC_RANGES


TICKS = 24 * 4


@pytest.fixture(scope='module')
def history():
    rng   = random.Random(17)
    brain = TemplateBrain(random.Random(18))
    state = create_initial_state(random.Random(16), hour=6, map_size=20)
    out = [state]
    for _ in range(TICKS):
        state = execute_tick(state, next_clock(state), rng, brain).state
        out.append(state)
    return out


# ─────────────────────────────────────────────────────
# Per-tick invariants
# ─────────────────────────────────────────────────────

class TestRunInvariants:
    def test_metrics_in_range(self, history):
        for s in history:
            for name, (lo, hi) in METRIC_RANGES.items():
                assert lo <= getattr(s.metrics, name) <= hi, (s.tick, name)

    def test_vitals_in_range(self, history):
        for s in history:
            for a in s.agents:
                for v in (a.energy, a.hunger, a.stress, a.influence, a.reputation):
                    assert 0 <= v <= 100, (s.tick, a.id)

    def test_relationship_lists_match_scores(self, history):
        for s in history:
            for a in s.agents:
                assert a.id not in a.relationships
                allies = {t for t, r in a.relationships.items() if r.score >= config.ALLY_THRESHOLD}
                rivals = {t for t, r in a.relationships.items() if r.score <= config.RIVAL_THRESHOLD}
                assert set(a.allies) == allies
                assert set(a.rivals) == rivals
                assert all(-100 <= r.score <= 100 for r in a.relationships.values())

    def test_rings_capped(self, history):
        for s in history:
            assert len(s.news) <= config.LOG_CAP
            assert len(s.recent_events) <= config.LOG_CAP
            assert len(s.story_log) <= config.STORY_LOG_CAP
            for a in s.agents:
                assert len(a.recent_quotes) <= config.QUOTES_CAP
                assert len(a.recent_actions) <= config.ACTIONS_CAP
                assert len(a.vote_history) <= config.VOTE_HISTORY_CAP
                assert len(a.mood_history) <= config.MOOD_WINDOW

    def test_positions_on_map(self, history):
        for s in history:
            for a in s.agents:
                assert 0 <= a.position.x < 20 and 0 <= a.position.y < 20

    def test_clock_advances(self, history):
        for prev, cur in zip(history, history[1:]):
            assert cur.tick == prev.tick + 1
            assert cur.hour == (prev.hour + 1) % 24
            assert cur.day in (prev.day, prev.day + 1)
            assert cur.phase in ('morning', 'day', 'evening', 'night')

    def test_council_flags_agree(self, history):
        for s in history:
            assert s.council_active == s.council.is_active
            if s.council_active:
                assert config.COUNCIL_START_HOUR <= s.hour < config.COUNCIL_END_HOUR


# ─────────────────────────────────────────────────────
# Whole-run properties
# ─────────────────────────────────────────────────────

class TestRunProperties:
    def test_days_counted(self, history):
        assert history[-1].day == 1 + TICKS // 24

    def test_record_ids_unique(self, history):
        last = history[-1]
        ids = [n.id for n in last.news] + [e.id for e in last.recent_events] + \
              [e.id for e in last.story_log]
        assert len(ids) == len(set(ids))

    def test_one_chronicle_per_day(self, history):
        days = [s.last_chronicle_day for s in history]
        assert days == sorted(days)
        assert history[-1].last_chronicle_day == history[-1].day - 1

    def test_population_stable(self, history):
        assert all(len(s.agents) == len(history[0].agents) for s in history)
