# (c) 2026 (KriaetvAspie / AspieTheBard)
# Licensed under the Polyform Noncommercial License 1.0.0
"""
world.py — Layer 0: settlement map, aggregate metrics, hour-of-day phases.

Everything else in the engine builds on the helpers here:

    clamp(v, lo, hi)                 → saturating clamp used by every mutation
    ring(maxlen, items=())           → fixed-capacity buffer (collections.deque)
    push_front(buf, item)            → newest-first insert, oldest falls off
    adjust_metric(metrics, name, d)  → clamped metric delta (unknown names ignored)
    phase_for_hour(hour)             → 'morning' | 'day' | 'evening' | 'night'
    clock_stamp(day, hour)           → '[Day D HH:00]' log prefix
    generate_map(rng, size)          → list[list[MapTile]]
"""

from __future__ import annotations

import collections
import math
import random
from dataclasses import dataclass, field, fields

import numpy as np
from noise import pnoise2

from . import config

# ── Phases and weather ──────────────────────────────────────────────────────
PHASES   = ('morning', 'day', 'evening', 'night')
WEATHERS = ('clear', 'rain', 'storm', 'fog', 'heat')

MORNING_START = 5   # morning = [5, 11]
DAY_START     = 12  # day     = [12, 17]
EVENING_START = 18  # evening = [18, 21]
NIGHT_START   = 22  # night   = [22, 4] (wraps through midnight)


def phase_for_hour(hour: int) -> str:
    """Fixed hour → phase mapping; total over 0–23 (other ints wrap mod 24)."""
    h = hour % 24
    if MORNING_START <= h < DAY_START:
        return 'morning'
    if DAY_START <= h < EVENING_START:
        return 'day'
    if EVENING_START <= h < NIGHT_START:
        return 'evening'
    return 'night'


def clock_stamp(day: int, hour: int) -> str:
    """Prefix used on every printed log line, e.g. ``[Day 3 18:00]``."""
    return f"[Day {day} {hour % 24:02d}:00]"


# ══════════════════════════════════════════════════════════════════════════
# Saturating arithmetic and bounded lists
# ══════════════════════════════════════════════════════════════════════════

def clamp(v, lo, hi):
    return max(lo, min(hi, v))


def ring(maxlen: int, items=()) -> collections.deque:
    """Fixed-capacity buffer.  append() drops from the left, appendleft() from the right."""
    return collections.deque(items, maxlen=maxlen)


def push_front(buf: collections.deque, item) -> None:
    """Newest-first insert; when full the oldest (rightmost) entry falls off."""
    buf.appendleft(item)


def merge_front(buf: collections.deque, items: list) -> None:
    """Insert a batch newest-first, keeping the batch's own order at the front."""
    for item in reversed(items):
        buf.appendleft(item)


# ══════════════════════════════════════════════════════════════════════════
# Metrics
# ══════════════════════════════════════════════════════════════════════════

METRIC_RANGES = {
    'population':     (0, config.POP_CAP),
    'food_days':      (0, 200),
    'water_days':     (0, 200),
    'morale':         (0, 100),
    'unrest':         (0, 100),
    'health_risk':    (0, 100),
    'fire_stability': (0, 100),
}


@dataclass
class Metrics:
    population:     int   = 50
    food_days:      float = 60
    water_days:     float = 50
    morale:         float = 70
    unrest:         float = 10
    health_risk:    float = 15
    fire_stability: float = 80

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def set_metric(metrics: Metrics, name: str, value, lo=None, hi=None) -> bool:
    """Assign *value* to metric *name*, re-applying the field's clamp.

    *lo*/*hi* narrow the clamp further for callers with their own bounds
    (council impacts are bounded to [0, 200] before the field range).
    Returns False for unknown names so callers can skip them silently.
    """
    if name not in METRIC_RANGES:
        return False
    f_lo, f_hi = METRIC_RANGES[name]
    if lo is not None:
        value = max(lo, value)
    if hi is not None:
        value = min(hi, value)
    value = clamp(value, f_lo, f_hi)
    if name == 'population':
        value = int(value)
    else:
        value = round(value, 2)
    setattr(metrics, name, value)
    return True


def adjust_metric(metrics: Metrics, name: str, delta, lo=None, hi=None) -> bool:
    if name not in METRIC_RANGES:
        return False
    return set_metric(metrics, name, getattr(metrics, name) + delta, lo, hi)


# ══════════════════════════════════════════════════════════════════════════
# Map
# ══════════════════════════════════════════════════════════════════════════

BIOMES = ('water', 'forest', 'plains', 'mountain', 'desert')

_FLOOD_RISK = {'water': 0.6, 'plains': 0.15}
_FIRE_RISK  = {'forest': 0.3, 'desert': 0.4}


@dataclass
class Position:
    x: int
    y: int


@dataclass
class MapTile:
    biome:      str
    building:   str | None = None
    has_path:   bool       = False
    flood_risk: float      = 0.05
    fire_risk:  float      = 0.1


def map_bounds(grid: list) -> tuple[int, int]:
    """(width, height) of *grid*; (0, 0) for an empty map."""
    rows = len(grid)
    cols = len(grid[0]) if rows else 0
    return cols, rows


def clamp_position(grid: list, x: int, y: int) -> Position:
    """Clamp (x, y) into the map.  An empty map pins everything to (0, 0)."""
    cols, rows = map_bounds(grid)
    return Position(clamp(x, 0, max(0, cols - 1)), clamp(y, 0, max(0, rows - 1)))


def tile_at(grid: list, x: int, y: int) -> MapTile | None:
    if 0 <= y < len(grid) and 0 <= x < len(grid[y]):
        return grid[y][x]
    return None


# ── Perlin terrain parameters ─────────────────────────────────────────────
_NOISE_SCALE   = 0.08   # sample spacing; lower means larger biome patches
_NOISE_OCTAVES = 4
_LAKE_FRACTION = 4      # percentile of elevation that floods into lakes
_WOOD_FRACTION = 75     # moisture percentile above which wild forest grows
_TOWN_RADIUS   = 10     # tiles from centre kept as cleared plains


def _noise_field(size: int, ox: float, oy: float) -> np.ndarray:
    return np.array([
        [pnoise2(ox + x * _NOISE_SCALE, oy + y * _NOISE_SCALE, octaves=_NOISE_OCTAVES)
         for x in range(size)]
        for y in range(size)
    ])


def _biome_at(x: int, y: int, centre: float, h: float, m: float,
              lake_cut: float, wood_cut: float, ridge_cut: float) -> str:
    """
    Town core is always cleared.  Outside it:

        fixed rivers                      → water
        elevation below the lake cutoff   → water
        distance 20–26 from the centre    → forest ring
        beyond 28                         → mountain (high) / desert (low)
        moisture above the wood cutoff    → forest
        otherwise                         → plains
    """
    dist = math.hypot(x - centre, y - centre)
    if dist <= _TOWN_RADIUS:
        return 'plains'
    # Rivers keep their course relative to the town regardless of map size
    if (abs(x - (centre - 10)) < 2 and centre - 20 < y < centre + 20) or \
       (abs(y - (centre + 10)) < 2 and centre - 15 < x < centre + 15):
        return 'water'
    if h < lake_cut:
        return 'water'
    if 20 < dist < 26:
        return 'forest'
    if dist > 28:
        return 'mountain' if h > ridge_cut else 'desert'
    if m > wood_cut:
        return 'forest'
    return 'plains'


# Town core: (x, y, building) relative to the default 60×60 layout
_BUILDINGS = (
    [(30, 30, 'council'), (29, 30, 'well'), (31, 30, 'well')]
    + [(x, 26, 'house') for x in range(26, 35)]
    + [(x, 27, 'house') for x in (26, 27, 28, 29, 31, 33, 34)]
    + [(x, 28, 'house') for x in (26, 27, 33, 34)]
    + [(35, 27, 'school'), (36, 27, 'school'), (37, 27, 'college'), (37, 28, 'college')]
    + [(32, 29, 'shop'), (33, 29, 'shop'), (34, 29, 'shop'),
       (32, 30, 'market'), (33, 30, 'market'), (34, 30, 'inn')]
    + [(28, 29, 'workshop'), (27, 29, 'workshop')]
    + [(25, 32, 'hospital'), (26, 32, 'hospital'), (25, 33, 'hospital')]
    + [(x, y, 'farm') for y in (34, 35) for x in range(27, 33)]
    + [(35, 31, 'storehouse'), (36, 31, 'storehouse')]
    + [(24, 24, 'watchtower'), (37, 24, 'watchtower'),
       (24, 37, 'watchtower'), (37, 37, 'watchtower')]
    + [(x, 24, 'wall') for x in (25, 26, 27, 34, 35, 36)]
    + [(24, 25, 'wall'), (24, 26, 'wall'), (37, 25, 'wall'), (37, 26, 'wall'),
       (24, 35, 'wall'), (24, 36, 'wall'), (37, 35, 'wall'), (37, 36, 'wall')]
)


def _road_tiles() -> list[tuple[int, int]]:
    """Main cross, ring road, residential lanes, market and hospital paths."""
    tiles = []
    for i in range(22, 39):
        tiles += [(i, 30), (30, i)]
    for i in range(25, 36):
        tiles += [(i, 25), (i, 36), (25, i), (36, i)]
    for i in range(26, 35):
        tiles += [(i, 27), (i, 28)]
    for i in range(28, 35):
        tiles.append((32, i))
    for i in range(25, 33):
        tiles.append((i, 32))
    return tiles


def generate_map(rng: random.Random, size: int = config.MAP_SIZE) -> list[list[MapTile]]:
    """
    Build a size×size map from two Perlin fields (elevation, moisture).

    Lake, forest and ridge cutoffs are percentiles of the sampled fields so
    coverage stays stable whatever offsets the rng picks.  The town core
    (roads and buildings) is laid over the terrain afterwards; tiles that fall
    outside a smaller map are skipped.
    """
    if size <= 0:
        return []
    h = _noise_field(size, rng.uniform(0, 1000), rng.uniform(0, 1000))
    m = _noise_field(size, rng.uniform(0, 1000), rng.uniform(0, 1000))
    lake_cut  = float(np.percentile(h, _LAKE_FRACTION))
    wood_cut  = float(np.percentile(m, _WOOD_FRACTION))
    ridge_cut = float(np.percentile(h, 40))
    centre    = size / 2

    grid = []
    for y in range(size):
        row = []
        for x in range(size):
            biome = _biome_at(x, y, centre, float(h[y, x]), float(m[y, x]),
                              lake_cut, wood_cut, ridge_cut)
            row.append(MapTile(
                biome      = biome,
                flood_risk = _FLOOD_RISK.get(biome, 0.05),
                fire_risk  = _FIRE_RISK.get(biome, 0.1),
            ))
        grid.append(row)

    for x, y in _road_tiles():
        tile = tile_at(grid, x, y)
        if tile:
            tile.has_path = True
    for x, y, building in _BUILDINGS:
        tile = tile_at(grid, x, y)
        if tile:
            tile.building   = building
            tile.biome      = 'plains'   # cleared ground under buildings
            tile.flood_risk = _FLOOD_RISK['plains']
            tile.fire_risk  = 0.1
    return grid
