# (c) 2026 (KriaetvAspie / AspieTheBard)
# Licensed under the Polyform Noncommercial License 1.0.0
"""
sim.py — Tick scheduler, world bootstrap and CLI entry point for Agent City.

Run with:  python -m agent_city [--ticks N] [--seed S]

Layer architecture
──────────────────
  Layer 0 · world       — map, metrics, clamps, hour → phase
  Layer 1 · inhabitants — schedules, vitals, movement, production, phase passes
  Layer 2 · stories     — relationship drift and story generators (every tick)
  Layer 3 · diplomacy   — evening council: proposals, debate, votes
  Layer 4 · newspaper   — news items, the daily edition, the chronicle
  Brain                 — dialogue / proposals / votes behind one interface

Call order each tick (execute_tick):
    deep copy  → paused? return copy
    tick += 1, hour, day rollover, phase, council countdown
    one phase handler:
        morning   hour 5: wake_pass + daily newspaper;  later: schedule_pass
        day       day_pass (midday actions, production at 17)
        evening   diplomacy.council_step, or the idle pass between sessions
        night     night_pass; at PREDAWN_HOUR also newspaper.close_day
    stories.run_story_engine
    merge events / news into the state rings, newest first

Public API:
    Clock, TickResult
    execute_tick(state, clock, rng=None, brain=None, news_gateway=...) → TickResult
    next_clock(state)                     → Clock one simulated hour later
    council_countdown(hour, start, end)   → hours until the council opens
    create_initial_state(rng=None, hour=6, map_size=60, timestamp=0.0)
    run(argv=None)                        → CLI loop (python -m agent_city)
"""

from __future__ import annotations

import argparse
import copy
import pathlib
import random
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime

from . import config
from . import diplomacy
from . import inhabitants
from . import newspaper
from . import stories
from .brain import TemplateBrain
from .human_news import human_news_gateway
from .metrics import MetricsLogger
from .state import CouncilSession, Snapshot, WorldState
from .store import MemoryStore
from .world import (MORNING_START, NIGHT_START, Metrics, Position, clamp_position, clock_stamp,
                    generate_map, merge_front, phase_for_hour)

TICKS = config.TICKS


# ══════════════════════════════════════════════════════════════════════════
# Logging: tee stdout to file, show only notable lines on the terminal
# ══════════════════════════════════════════════════════════════════════════

class _LogTee:
    """Every byte goes to the log file.  Only filtered lines reach the terminal."""

    # Keywords that earn a line a spot on the terminal during the run
    _SHOW = frozenset({
        # Council
        'COUNCIL', 'APPROVED', 'REJECTED', 'BREAKING',
        # Day close
        'CHRONICLE', 'key vote',
        # Stories and world events
        'STORY', 'EVENT [high]', 'EVENT [critical]',
        # Terminal signals
        '[Simulation interrupted',
    })

    passthrough: bool = False   # True → show everything (used for final report)

    def __init__(self, log_fh, real_stdout):
        self._log  = log_fh
        self._real = real_stdout
        self._buf  = ''

    def write(self, text: str) -> None:
        self._log.write(text)
        self._log.flush()
        self._buf += text
        while '\n' in self._buf:
            line, self._buf = self._buf.split('\n', 1)
            if self.passthrough or any(kw in line for kw in self._SHOW):
                self._real.write(line + '\n')
                self._real.flush()

    def flush(self) -> None:
        self._log.flush()

    def fileno(self) -> int:
        return self._real.fileno()


# ══════════════════════════════════════════════════════════════════════════
# Clock and tick result
# ══════════════════════════════════════════════════════════════════════════

@dataclass
class Clock:
    hour:      int
    new_day:   bool | None = None   # None → infer rollover from the hour change
    timestamp: float = 0.0


@dataclass
class TickResult:
    state:     WorldState
    events:    list = field(default_factory=list)
    news:      list = field(default_factory=list)
    stories:   list = field(default_factory=list)
    chronicle: object = None   # ChronicleEntry on the pre-dawn tick that closes a day


def next_clock(state: WorldState, timestamp: float | None = None) -> Clock:
    """Clock for one simulated hour after *state*; virtual time advances 3600 s."""
    ts = state.last_tick_at + 3600.0 if timestamp is None else timestamp
    return Clock(hour=(state.hour + 1) % 24, timestamp=ts)


def council_countdown(hour: int, start: int = config.COUNCIL_START_HOUR,
                      end: int = config.COUNCIL_END_HOUR) -> int:
    if start <= hour < end:
        return 0
    return (start - hour) % 24


def _rolls_over(prev_hour: int, hour: int, new_day: bool | None) -> bool:
    if new_day is not None:
        return bool(new_day)
    return hour < prev_hour and prev_hour >= NIGHT_START


# ══════════════════════════════════════════════════════════════════════════
# Phase handlers: each returns (events, news, chronicle)
# ══════════════════════════════════════════════════════════════════════════

def _morning(s, rng, brain, news_gateway):
    if s.hour == MORNING_START:
        events, news = inhabitants.wake_pass(s, rng, news_gateway)
        s.newspaper = newspaper.generate_newspaper(s, rng)
        print(f"{clock_stamp(s.day, s.hour)} {s.newspaper.masthead}: {s.newspaper.headline}")
        return events, news, None
    inhabitants.schedule_pass(s)
    return [], [], None


def _day(s, rng, brain, news_gateway):
    events, news = inhabitants.day_pass(s, rng, brain)
    return events, news, None


def _evening(s, rng, brain, news_gateway):
    step = diplomacy.council_step(s, rng, brain)
    if step is None:
        inhabitants.evening_idle_pass(s)
        return [], [], None
    events, news = step
    return events, news, None


def _night(s, rng, brain, news_gateway):
    events, news = inhabitants.night_pass(s, rng)
    chronicle = newspaper.close_day(s) if s.hour == config.PREDAWN_HOUR else None
    return events, news, chronicle


_HANDLERS = {
    'morning': _morning,
    'day':     _day,
    'evening': _evening,
    'night':   _night,
}


def _summary_line(s, story_count: int) -> str:
    m = s.metrics
    return (f"{clock_stamp(s.day, s.hour)} {s.phase} | Morale: {m.morale:.1f} | "
            f"Unrest: {m.unrest:.1f} | Food: {m.food_days:.1f} | "
            f"Water: {m.water_days:.1f} | Stories: {story_count}")


# ══════════════════════════════════════════════════════════════════════════
# Tick
# ══════════════════════════════════════════════════════════════════════════

def execute_tick(state: WorldState, clock: Clock, rng: random.Random | None = None,
                 brain=None, news_gateway=human_news_gateway) -> TickResult:
    """Advance *state* by one clock reading and return the new state plus its outputs.

    The input state is never mutated.  With the same state, clock, seeded rng
    and brain the result is identical from run to run.
    """
    s = copy.deepcopy(state)
    if s.paused:
        return TickResult(state=s)

    if rng is None:
        rng = random.Random()
    if brain is None:
        brain = TemplateBrain(rng)

    prev_hour = s.hour
    s.tick   += 1
    s.hour    = clock.hour % 24
    if _rolls_over(prev_hour, s.hour, clock.new_day):
        s.day += 1
    s.phase        = phase_for_hour(s.hour)
    s.last_tick_at = clock.timestamp
    s.council.next_council_in = council_countdown(s.hour)

    events, news, chronicle = _HANDLERS[s.phase](s, rng, brain, news_gateway)
    told = stories.run_story_engine(s, rng, brain)

    merge_front(s.recent_events, events)
    merge_front(s.news, news)
    s.last_processed_hour = s.hour

    print(_summary_line(s, len(told)))
    return TickResult(state=s, events=events, news=news, stories=told, chronicle=chronicle)


# ══════════════════════════════════════════════════════════════════════════
# Bootstrap
# ══════════════════════════════════════════════════════════════════════════

def _settle(agent, grid: list, hour: int) -> None:
    """Clamp home/work into the map and place the agent where its schedule puts it."""
    agent.home_position = clamp_position(grid, agent.home_position.x, agent.home_position.y)
    agent.work_position = clamp_position(grid, agent.work_position.x, agent.work_position.y)
    status = inhabitants.scheduled_status(agent, hour)
    agent.status = status
    at = agent.work_position if status in ('working', 'studying') else agent.home_position
    agent.position = Position(at.x, at.y)


def create_initial_state(rng: random.Random | None = None, hour: int = config.START_HOUR,
                         map_size: int = config.MAP_SIZE, timestamp: float = 0.0) -> WorldState:
    if rng is None:
        rng = random.Random()
    hour = hour % 24

    agents = []
    idx    = 1
    for group, count in config.AGE_DISTRIBUTION.items():
        for _ in range(count):
            agents.append(inhabitants.make_agent(rng, idx, group))
            idx += 1

    grid = generate_map(rng, map_size)
    for a in agents:
        _settle(a, grid, hour)

    return WorldState(
        day                 = 1,
        hour                = hour,
        phase               = phase_for_hour(hour),
        map                 = grid,
        agents              = agents,
        metrics             = Metrics(population=len(agents)),
        council             = CouncilSession(day=1, next_council_in=council_countdown(hour)),
        human_events        = human_news_gateway(1),
        started_at          = timestamp,
        last_tick_at        = timestamp,
        last_processed_hour = hour,
    )


# ══════════════════════════════════════════════════════════════════════════
# Final report
# ══════════════════════════════════════════════════════════════════════════

def _final_report(s: WorldState, approved: list, chronicles: list, story_total: int) -> None:
    m = s.metrics
    print('=' * 60)
    print(f"  AGENT CITY — Day {s.day}, {s.hour:02d}:00 ({s.tick} ticks)")
    print('=' * 60)
    print(f"  Population {m.population}   Morale {m.morale:.1f}   Unrest {m.unrest:.1f}")
    print(f"  Food {m.food_days:.1f}d   Water {m.water_days:.1f}d   "
          f"Health risk {m.health_risk:.1f}   Fire stability {m.fire_stability:.1f}")
    print(f"  Weather: {s.weather}   Stories told: {story_total}")

    print(f"\n  Approved proposals ({len(approved)}):")
    for day, title in approved:
        print(f"    Day {day}: {title}")

    print(f"\n  Chronicle ({len(chronicles)} days):")
    for entry in chronicles:
        print(f"    Day {entry.day}: {entry.headlines[0]}")

    bonds = sorted(s.agents, key=lambda a: len(a.allies) - len(a.rivals), reverse=True)
    if bonds:
        print("\n  Most connected:")
        for a in bonds[:3]:
            print(f"    {a.name} ({a.archetype}) — {len(a.allies)} allies, {len(a.rivals)} rivals")
    print('=' * 60)


# ══════════════════════════════════════════════════════════════════════════
# CLI
# ══════════════════════════════════════════════════════════════════════════

def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='agent_city',
        description='Run the Agent City settlement simulation.',
    )
    parser.add_argument('--ticks', type=int, default=config.TICKS,
                        help='simulated hours to run (default: %(default)s)')
    parser.add_argument('--seed', type=int, default=None,
                        help='random seed for a reproducible run')
    parser.add_argument('--start-hour', type=int, default=config.START_HOUR,
                        choices=range(24), metavar='0-23',
                        help='hour of day the world starts at (default: %(default)s)')
    parser.add_argument('--data-dir', default=config.DATA_DIR,
                        help='directory for metrics CSVs and the final state JSON')
    parser.add_argument('--no-metrics', action='store_true',
                        help='skip the per-tick metrics CSVs')
    args = parser.parse_args(argv)
    if args.ticks < 1:
        parser.error('--ticks must be at least 1')
    return args


def run(argv=None) -> None:
    global TICKS
    args = _parse_args(argv)

    # ── Apply CLI overrides to the config module ────────────────────────────
    config.TICKS           = TICKS = args.ticks
    config.START_HOUR      = args.start_hour
    config.DATA_DIR        = args.data_dir
    config.METRICS_ENABLED = config.METRICS_ENABLED and not args.no_metrics
    seed = args.seed if args.seed is not None else int(time.time()) % 1_000_000

    # ── Set up file logging ────────────────────────────────────────────────
    pathlib.Path(config.LOG_DIR).mkdir(exist_ok=True)
    _ts       = datetime.now().strftime('%Y%m%d_%H%M%S')
    _log_path = f'{config.LOG_DIR}/run_{_ts}.txt'
    _log_fh   = open(_log_path, 'w', encoding='utf-8')
    _real     = sys.stdout
    _tee      = _LogTee(_log_fh, _real)
    sys.stdout = _tee

    _real.write(f"Log → {_log_path}\n")
    _real.write(f"Running {TICKS}-tick simulation, seed {seed}  "
                f"(council votes / stories / chronicle show below)\n\n")

    rng   = random.Random(seed)
    brain = TemplateBrain(random.Random(seed + 1))
    store = MemoryStore()
    state = create_initial_state(rng, hour=config.START_HOUR, timestamp=time.time())
    store.set_world_state(state)
    print(f"Seed {seed}: {len(state.agents)} agents on a {len(state.map)}×{len(state.map)} map, "
          f"{clock_stamp(state.day, state.hour)}")

    metrics_logger = MetricsLogger(seed, config.DATA_DIR) if config.METRICS_ENABLED else None

    # ── Per-run tracking ────────────────────────────────────────────────────
    approved:    list = []   # (day, title)
    chronicles:  list = []
    story_total: int  = 0

    try:
        for t in range(1, TICKS + 1):
            result = execute_tick(state, next_clock(state), rng, brain)
            state  = result.state
            story_total += len(result.stories)

            store.set_world_state(state)
            store.push_snapshot(Snapshot(
                day       = state.day,
                phase     = state.phase,
                tick      = state.tick,
                metrics   = state.metrics.as_dict(),
                timestamp = state.last_tick_at,
            ))
            for e in result.events:
                store.push_event(e)
            if result.chronicle is not None:
                store.push_chronicle(result.chronicle)
                chronicles.append(result.chronicle)
            approved.extend((state.day, p.title) for p in state.council.proposals
                            if p.status == 'approved' and state.hour == config.COUNCIL_START_HOUR)

            if metrics_logger is not None:
                metrics_logger.record_tick(state, result)

            if t % 24 == 0 or t == TICKS:
                _real.write(f"  … tick {t}/{TICKS}  Day {state.day} "
                            f"morale {state.metrics.morale:.0f}  unrest {state.metrics.unrest:.0f}\n")
                _real.flush()

    except KeyboardInterrupt:
        print("\n\n[Simulation interrupted by user]\n")

    finally:
        # Final report: passthrough so everything shows on terminal AND in log
        _real.write('\n')
        _tee.passthrough = True
        _final_report(state, approved, chronicles, story_total)
        if metrics_logger is not None:
            metrics_logger.finalize(state)
            metrics_logger.close()
        pathlib.Path(config.DATA_DIR).mkdir(parents=True, exist_ok=True)
        _state_path = pathlib.Path(config.DATA_DIR) / f'final_state_seed_{seed}.json'
        store.save_json(_state_path)
        print(f"State saved → {_state_path}")
        sys.stdout = _real
        _log_fh.close()
        print(f"\nFull log saved → {_log_path}")


# ══════════════════════════════════════════════════════════════════════════
if __name__ == '__main__':
    run()
