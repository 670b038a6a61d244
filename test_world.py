"""
test_world.py — pytest suite for agent_city.world
==================================================
Covers: hour → phase mapping, metric clamps, newest-first rings, map generation.
"""

import random

import pytest

from agent_city import config
from agent_city.world import (
    Metrics, adjust_metric, clamp_position, clock_stamp, generate_map,
    merge_front, phase_for_hour, push_front, ring, set_metric, tile_at,
)


# ─────────────────────────────────────────────────────
# phase_for_hour
# ─────────────────────────────────────────────────────

_EXPECTED_PHASES = (
    ['night'] * 5          # 0–4
    + ['morning'] * 7      # 5–11
    + ['day'] * 6          # 12–17
    + ['evening'] * 4      # 18–21
    + ['night'] * 2        # 22–23
)


class TestPhaseForHour:
    @pytest.mark.parametrize("hour", range(24))
    def test_every_hour_maps_to_its_phase(self, hour):
        assert phase_for_hour(hour) == _EXPECTED_PHASES[hour]

    def test_boundaries(self):
        assert phase_for_hour(4) == 'night'
        assert phase_for_hour(5) == 'morning'
        assert phase_for_hour(11) == 'morning'
        assert phase_for_hour(12) == 'day'
        assert phase_for_hour(17) == 'day'
        assert phase_for_hour(18) == 'evening'
        assert phase_for_hour(21) == 'evening'
        assert phase_for_hour(22) == 'night'

    def test_out_of_range_hours_wrap(self):
        assert phase_for_hour(24 + 13) == 'day'
        assert phase_for_hour(-1) == 'night'

    def test_clock_stamp_format(self):
        assert clock_stamp(3, 7) == "[Day 3 07:00]"
        assert clock_stamp(12, 18) == "[Day 12 18:00]"


# ─────────────────────────────────────────────────────
# Metrics
# ─────────────────────────────────────────────────────

class TestMetrics:
    def test_defaults(self):
        m = Metrics()
        assert m.as_dict() == {
            'population': 50, 'food_days': 60, 'water_days': 50, 'morale': 70,
            'unrest': 10, 'health_risk': 15, 'fire_stability': 80,
        }

    @pytest.mark.parametrize("name,value,expected", [
        ('morale', 150, 100),
        ('morale', -20, 0),
        ('unrest', 101, 100),
        ('food_days', 500, 200),
        ('water_days', -1, 0),
        ('population', config.POP_CAP + 5, config.POP_CAP),
    ])
    def test_set_metric_clamps_to_field_range(self, name, value, expected):
        m = Metrics()
        assert set_metric(m, name, value) is True
        assert getattr(m, name) == expected

    def test_unknown_metric_is_ignored(self):
        m = Metrics()
        before = m.as_dict()
        assert adjust_metric(m, 'happiness', 10) is False
        assert set_metric(m, 'happiness', 10) is False
        assert m.as_dict() == before

    def test_population_stays_integral(self):
        m = Metrics()
        adjust_metric(m, 'population', 2.7)
        assert m.population == 52
        assert isinstance(m.population, int)

    def test_extra_bounds_narrow_the_clamp(self):
        m = Metrics(food_days=190)
        adjust_metric(m, 'food_days', 30, 0, 195)
        assert m.food_days == 195

    def test_adjust_rounds_to_two_places(self):
        m = Metrics(morale=50)
        adjust_metric(m, 'morale', 1 / 3)
        assert m.morale == pytest.approx(50.33)


# ─────────────────────────────────────────────────────
# Rings
# ─────────────────────────────────────────────────────

class TestRings:
    def test_push_front_drops_the_oldest(self):
        buf = ring(3)
        for i in range(5):
            push_front(buf, i)
        assert list(buf) == [4, 3, 2]

    def test_merge_front_keeps_batch_order(self):
        buf = ring(5, ['old'])
        merge_front(buf, ['a', 'b'])
        assert list(buf) == ['a', 'b', 'old']

    def test_merge_front_truncates(self):
        buf = ring(3, ['x', 'y', 'z'])
        merge_front(buf, ['a', 'b'])
        assert list(buf) == ['a', 'b', 'x']


# ─────────────────────────────────────────────────────
# Map
# ─────────────────────────────────────────────────────

class TestGenerateMap:
    def test_shape(self):
        grid = generate_map(random.Random(1), 60)
        assert len(grid) == 60
        assert all(len(row) == 60 for row in grid)

    def test_town_core_is_laid_out(self):
        grid = generate_map(random.Random(2), 60)
        assert tile_at(grid, 30, 30).building == 'council'
        wells = sum(1 for row in grid for t in row if t.building == 'well')
        assert wells == 2
        assert tile_at(grid, 30, 22).has_path

    def test_buildings_stand_on_plains(self):
        grid = generate_map(random.Random(3), 60)
        for row in grid:
            for t in row:
                if t.building:
                    assert t.biome == 'plains'

    def test_same_seed_same_map(self):
        a = generate_map(random.Random(9), 40)
        b = generate_map(random.Random(9), 40)
        assert a == b

    def test_small_map_skips_out_of_range_buildings(self):
        grid = generate_map(random.Random(4), 20)
        assert len(grid) == 20
        assert not any(t.building == 'council' for row in grid for t in row)

    def test_empty_map(self):
        assert generate_map(random.Random(5), 0) == []

    def test_clamp_position(self):
        grid = generate_map(random.Random(6), 10)
        p = clamp_position(grid, 50, -3)
        assert (p.x, p.y) == (9, 0)
        q = clamp_position([], 5, 5)
        assert (q.x, q.y) == (0, 0)
