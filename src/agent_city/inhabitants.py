# (c) 2026 (KriaetvAspie / AspieTheBard)
# Licensed under the Polyform Noncommercial License 1.0.0
"""
inhabitants.py — Layer 1: agents, the relationship graph, per-phase behaviour.

Call order each tick (from sim.py, exactly one of these per tick):
    morning   wake_pass(s, rng, news_gateway)   first morning hour only
              schedule_pass(s)                  later morning hours
    day       day_pass(s, rng, brain)
    evening   evening_idle_pass(s)              hours with no council step
    night     night_pass(s, rng)

Public API used by other modules:
    make_agent(rng, idx, age_group)             → Agent
    scheduled_status(agent, hour)               → status string
    update_relationship(agent, target_id, delta, reason) → Relationship | None
    get_rel_score(agent, target_id)             → int
    Agent.from_dict(d)                          → Agent (legacy fields backfilled)

All vital mutations clamp to [0, 100].  Relationship scores clamp to
[-100, 100] and only ever change through update_relationship(), which keeps
allies/rivals in step with the ALLY/RIVAL thresholds.
"""

from __future__ import annotations

import collections
import random
from dataclasses import dataclass, field

from . import config
from . import newspaper
from .state import WorldEvent, story_from_dict, next_id
from .world import (Position, adjust_metric, clamp, clamp_position, clock_stamp,
                    push_front, ring, WEATHERS)

# ── Name and role pools ─────────────────────────────────────────────────────
FIRST_NAMES_M = [
    'Kael', 'Dax', 'Tor', 'Vex', 'Fenris', 'Ashka', 'Rowan', 'Jace', 'Theron', 'Malik', 'Orin',
    'Silas', 'Bram', 'Niko', 'Hugo', 'Cass', 'Remy', 'Ezra', 'Flynn', 'Aldric', 'Talon', 'Zeke',
]
FIRST_NAMES_F = [
    'Mira', 'Suri', 'Liora', 'Zara', 'Elara', 'Freya', 'Ivy', 'Nyla', 'Petra', 'Sage', 'Cora',
    'Luna', 'Ada', 'Ren', 'Thea', 'Wren', 'Iris', 'Nell', 'Greta', 'Faye', 'Maeve', 'Lyra',
]
CHILD_NAMES = [
    'Pip', 'Kit', 'Boo', 'Twig', 'Fern', 'Moss', 'Pebble', 'Dew',
    'Spark', 'Bean', 'Nix', 'Rune', 'Leaf', 'Ember', 'Clover', 'Wisp',
]

ADULT_ROLES = [
    'Doctor', 'Nurse', 'Teacher', 'Professor', 'Farmer', 'Builder', 'Shopkeeper', 'Baker',
    'Blacksmith', 'Guard', 'Scout', 'Healer', 'Merchant', 'Carpenter', 'Librarian', 'Cook',
    'Tailor', 'Herbalist', 'Fisher', 'Mason',
]
TEEN_ROLES  = ['Student', 'Apprentice']
CHILD_ROLES = ['Schoolchild']
ELDER_ROLES = ['Elder', 'Retired Doctor', 'Village Historian', 'Master Craftsman', 'Councilmember']

AGE_GROUPS = ('child', 'teen', 'adult', 'elder')

# Role sets the phase passes key on
WATCH_ARCHETYPES = {'Guard', 'Scout', 'Warrior'}
FOOD_PRODUCERS   = {'Farmer', 'Fisher', 'Hunter'}
STUDY_ARCHETYPES = {'Schoolchild', 'Student'}

STATUSES = (
    'sleeping', 'working', 'in_council', 'on_watch', 'idle',
    'exploring', 'studying', 'shopping', 'socializing', 'commuting',
)


# ══════════════════════════════════════════════════════════════════════════
# Agent model
# ══════════════════════════════════════════════════════════════════════════

@dataclass
class Personality:
    aggression:  int = 40
    cooperation: int = 60
    curiosity:   int = 50
    caution:     int = 40
    leadership:  int = 40


@dataclass
class Schedule:
    wake_hour:       int = 6
    sleep_hour:      int = 22
    work_start_hour: int = 8
    work_end_hour:   int = 17
    lunch_hour:      int = 12


@dataclass
class Relationship:
    target_id: str
    score:     int = 0
    history:   collections.deque = field(default_factory=lambda: ring(config.REL_HISTORY_CAP))


def _quotes():   return ring(config.QUOTES_CAP)
def _actions():  return ring(config.ACTIONS_CAP)
def _votes():    return ring(config.VOTE_HISTORY_CAP)
def _stories():  return ring(config.AGENT_STORY_LOG_CAP)
def _moods():    return ring(config.MOOD_WINDOW)


@dataclass
class Agent:
    id:            str
    name:          str
    archetype:     str
    age_group:     str
    age:           int
    position:      Position    = field(default_factory=lambda: Position(*config.COUNCIL_POSITION))
    status:        str         = 'idle'
    energy:        float       = 80
    hunger:        float       = 20
    stress:        float       = 15
    influence:     float       = 30
    reputation:    float       = 50
    personality:   Personality = field(default_factory=Personality)
    schedule:      Schedule    = field(default_factory=Schedule)
    home_position: Position    = field(default_factory=lambda: Position(*config.COUNCIL_POSITION))
    work_position: Position    = field(default_factory=lambda: Position(*config.COUNCIL_POSITION))
    recent_quotes:  collections.deque = field(default_factory=_quotes)    # newest first
    recent_actions: collections.deque = field(default_factory=_actions)   # newest first
    vote_history:   collections.deque = field(default_factory=_votes)     # newest first
    relationships:  dict              = field(default_factory=dict)       # target id → Relationship
    allies:         list              = field(default_factory=list)
    rivals:         list              = field(default_factory=list)
    story_log:      collections.deque = field(default_factory=_stories)   # newest last
    mood_history:   collections.deque = field(default_factory=_moods)     # newest last

    @property
    def awake(self) -> bool:
        return self.status != 'sleeping'

    @classmethod
    def from_dict(cls, data: dict) -> 'Agent':
        """Rebuild an agent, backfilling collections older snapshots lack.

        Relationships may arrive as a dict keyed by target id or as the older
        list-of-edges form.  allies/rivals are re-derived from the scores so a
        loaded agent satisfies the threshold rule before the first tick.
        """
        a = cls(
            id        = data['id'],
            name      = data.get('name', data['id']),
            archetype = data.get('archetype', 'Elder'),
            age_group = data.get('age_group', 'adult'),
            age       = data.get('age', 30),
        )
        for key in ('status', 'energy', 'hunger', 'stress', 'influence', 'reputation'):
            if key in data:
                setattr(a, key, data[key])
        for key in ('position', 'home_position', 'work_position'):
            if data.get(key):
                setattr(a, key, Position(data[key]['x'], data[key]['y']))
        if data.get('personality'):
            a.personality = Personality(**data['personality'])
        if data.get('schedule'):
            a.schedule = Schedule(**data['schedule'])

        a.recent_quotes  = ring(config.QUOTES_CAP, (data.get('recent_quotes') or [])[:config.QUOTES_CAP])
        a.recent_actions = ring(config.ACTIONS_CAP, (data.get('recent_actions') or [])[:config.ACTIONS_CAP])
        a.vote_history   = ring(config.VOTE_HISTORY_CAP, (data.get('vote_history') or [])[:config.VOTE_HISTORY_CAP])
        a.story_log      = ring(config.AGENT_STORY_LOG_CAP,
                                (story_from_dict(e) for e in data.get('story_log') or ()))
        moods = data.get('mood_history') or [100 - a.stress]
        a.mood_history   = ring(config.MOOD_WINDOW, moods)

        edges = data.get('relationships') or {}
        if isinstance(edges, dict):
            edges = edges.values()
        for e in edges:
            rel = Relationship(e['target_id'], clamp(int(e.get('score', 0)), -100, 100),
                               ring(config.REL_HISTORY_CAP, e.get('history') or ()))
            a.relationships[rel.target_id] = rel
            _reconcile(a, rel.target_id, rel.score)
        return a


# ══════════════════════════════════════════════════════════════════════════
# Creation
# ══════════════════════════════════════════════════════════════════════════

def schedule_for(age_group: str, archetype: str) -> Schedule:
    if age_group == 'child':
        return Schedule(7, 20, 8, 14, 12)
    if age_group == 'teen':
        return Schedule(7, 22, 8, 15, 12)
    if age_group == 'elder':
        return Schedule(5, 21, 9, 14, 12)
    if archetype in ('Guard', 'Scout'):
        return Schedule(5, 22, 6, 18, 12)
    if archetype in ('Farmer', 'Fisher'):
        return Schedule(5, 21, 6, 17, 12)
    if archetype == 'Baker':
        return Schedule(4, 20, 4, 14, 11)
    if archetype in ('Doctor', 'Nurse'):
        return Schedule(6, 23, 7, 19, 13)
    return Schedule(6, 22, 8, 17, 12)


def _work_site(rng: random.Random, archetype: str) -> Position:
    """Building the archetype works at; rows match the town-core layout in world.py."""
    if archetype in ('Schoolchild', 'Teacher', 'Librarian', 'Professor'):
        return Position(35, 27)
    if archetype in ('Student', 'Apprentice'):
        return Position(37, 27)
    if archetype in ('Doctor', 'Nurse'):
        return Position(25, 32)
    if archetype in ('Farmer', 'Fisher'):
        return Position(27 + rng.randrange(6), 34 + rng.randrange(3))
    if archetype in ('Shopkeeper', 'Baker', 'Merchant', 'Tailor'):
        return Position(32 + rng.randrange(3), 29 + rng.randrange(2))
    if archetype in ('Guard', 'Scout'):
        return Position(25 + rng.randrange(12), 25 + rng.randrange(12))
    return Position(28 + rng.randrange(6), 28 + rng.randrange(6))


def make_agent(rng: random.Random, idx: int, age_group: str) -> Agent:
    """One randomly-rolled resident of *age_group*; id is ``agent-<idx>``."""
    male = rng.random() > 0.5
    pool = FIRST_NAMES_M if male else FIRST_NAMES_F
    if age_group == 'child':
        name, archetype, age = rng.choice(CHILD_NAMES), rng.choice(CHILD_ROLES), 5 + rng.randrange(7)
    elif age_group == 'teen':
        name, archetype, age = rng.choice(pool), rng.choice(TEEN_ROLES), 13 + rng.randrange(6)
    elif age_group == 'elder':
        name, archetype, age = rng.choice(pool), rng.choice(ELDER_ROLES), 60 + rng.randrange(25)
    else:
        name, archetype, age = rng.choice(pool), rng.choice(ADULT_ROLES), 22 + rng.randrange(35)

    personality = Personality(
        aggression  = 10 + rng.randrange(60),
        cooperation = 30 + rng.randrange(60),
        curiosity   = 70 + rng.randrange(30) if age_group == 'child' else 20 + rng.randrange(60),
        caution     = 60 + rng.randrange(30) if age_group == 'elder' else 15 + rng.randrange(55),
        leadership  = (50 + rng.randrange(40) if age_group == 'elder'
                       else 5 + rng.randrange(20) if age_group == 'child'
                       else 15 + rng.randrange(60)),
    )
    if age_group == 'elder':
        influence = 50 + rng.randrange(40)
    elif age_group == 'child':
        influence = 5
    else:
        influence = 20 + rng.randrange(40)

    home = Position(26 + rng.randrange(10), 25 + rng.randrange(6))
    work = _work_site(rng, archetype)
    stress = 5 + rng.randrange(25)
    return Agent(
        id            = f"agent-{idx}",
        name          = name,
        archetype     = archetype,
        age_group     = age_group,
        age           = age,
        position      = Position(home.x, home.y),
        status        = 'sleeping',
        energy        = 80 + rng.randrange(20),
        hunger        = 10 + rng.randrange(30),
        stress        = stress,
        influence     = influence,
        reputation    = 30 + rng.randrange(50),
        personality   = personality,
        schedule      = schedule_for(age_group, archetype),
        home_position = home,
        work_position = work,
        mood_history  = ring(config.MOOD_WINDOW, [100 - stress]),
    )


def _on_duty_status(agent: Agent) -> str:
    return 'studying' if agent.archetype in STUDY_ARCHETYPES else 'working'


def scheduled_status(agent: Agent, hour: int) -> str:
    """What the agent's timetable says it should be doing at *hour*."""
    sch = agent.schedule
    if hour >= sch.sleep_hour or hour < sch.wake_hour:
        return 'sleeping'
    if sch.work_start_hour <= hour < sch.work_end_hour:
        return _on_duty_status(agent)
    return 'idle'


# ══════════════════════════════════════════════════════════════════════════
# Relationship graph
# ══════════════════════════════════════════════════════════════════════════

def _reconcile(agent: Agent, target_id: str, score: int) -> None:
    """allies/rivals membership for *target_id* from its current score."""
    if score >= config.ALLY_THRESHOLD:
        if target_id not in agent.allies:
            agent.allies.append(target_id)
        if target_id in agent.rivals:
            agent.rivals.remove(target_id)
    elif score <= config.RIVAL_THRESHOLD:
        if target_id not in agent.rivals:
            agent.rivals.append(target_id)
        if target_id in agent.allies:
            agent.allies.remove(target_id)
    else:
        if target_id in agent.allies:
            agent.allies.remove(target_id)
        if target_id in agent.rivals:
            agent.rivals.remove(target_id)


def update_relationship(agent: Agent, target_id: str, delta: int, reason: str) -> Relationship | None:
    """The only place a relationship score changes.

    Creates the edge on first contact, clamps the score, appends *reason* to
    the edge history and reconciles allies/rivals.  Self-edges are ignored.
    """
    if target_id == agent.id:
        return None
    rel = agent.relationships.get(target_id)
    if rel is None:
        rel = agent.relationships[target_id] = Relationship(target_id)
    rel.score = int(clamp(rel.score + delta, -100, 100))
    rel.history.append(reason)
    _reconcile(agent, target_id, rel.score)
    return rel


def get_rel_score(agent: Agent, target_id: str) -> int:
    rel = agent.relationships.get(target_id) if agent.relationships else None
    return rel.score if rel else 0


# ══════════════════════════════════════════════════════════════════════════
# Movement and vitals
# ══════════════════════════════════════════════════════════════════════════

def _vital(agent: Agent, name: str, delta) -> None:
    value = clamp(getattr(agent, name) + delta, 0, 100)
    setattr(agent, name, round(value, 1))


def step_toward(agent: Agent, target: Position, grid: list) -> None:
    """One unit step (8-neighbourhood) toward *target*, clamped to the map."""
    dx = (target.x > agent.position.x) - (target.x < agent.position.x)
    dy = (target.y > agent.position.y) - (target.y < agent.position.y)
    agent.position = clamp_position(grid, agent.position.x + dx, agent.position.y + dy)


def wander(agent: Agent, grid: list, rng: random.Random) -> None:
    agent.position = clamp_position(grid,
                                    agent.position.x + rng.randint(-1, 1),
                                    agent.position.y + rng.randint(-1, 1))


def _event(s, etype: str, desc: str, severity: str, involved: list,
           position: Position | None = None) -> WorldEvent:
    e = WorldEvent(
        id              = next_id(s, 'evt'),
        type            = etype,
        description     = desc,
        severity        = severity,
        day             = s.day,
        phase           = s.phase,
        involved_agents = involved,
        position        = Position(position.x, position.y) if position else None,
        timestamp       = s.last_tick_at,
    )
    print(f"{clock_stamp(s.day, s.hour)} EVENT [{severity}] {desc}")
    return e


# ══════════════════════════════════════════════════════════════════════════
# Morning
# ══════════════════════════════════════════════════════════════════════════

_MORNING_EVENTS = [
    ('wildlife_spotted', 'Wild deer spotted near the settlement', 'low'),
    ('resource_found',   'A new berry patch discovered',          'low'),
    ('weather_shift',    'The wind changes direction',            'medium'),
]


def wake_pass(s, rng: random.Random, news_gateway) -> tuple[list, list]:
    """First morning hour: outside news lands, the brief goes out, everyone wakes."""
    events, news = [], []

    s.human_events = list(news_gateway(s.day))
    for he in s.human_events:
        adjust_metric(s.metrics, he.sim_effect.variable, he.sim_effect.modifier)

    news.append(newspaper.morning_brief(s, rng))

    for a in s.agents:
        a.status = 'idle'
        _vital(a, 'energy', 20)
        _vital(a, 'hunger', 10)

    if s.agents and rng.random() < config.MORNING_EVENT_CHANCE:
        etype, desc, sev = rng.choice(_MORNING_EVENTS)
        who = rng.choice(s.agents)
        events.append(_event(s, etype, desc, sev, [who.id], who.position))
    return events, news


def schedule_pass(s) -> None:
    """Later morning hours: follow the timetable and head for work."""
    for a in s.agents:
        status = scheduled_status(a, s.hour)
        if status == 'sleeping':
            a.status = status
            continue
        if status in ('working', 'studying'):
            if a.position != a.work_position:
                a.status = 'commuting'
                step_toward(a, a.work_position, s.map)
            if a.position == a.work_position:
                a.status = status
        else:
            a.status = status


# ══════════════════════════════════════════════════════════════════════════
# Day
# ══════════════════════════════════════════════════════════════════════════

_DAY_EVENTS = [
    ('fire_outbreak',     'A small fire breaks out near the forest edge', 'high'),
    ('bountiful_harvest', 'The crops yield more than expected',          'low'),
    ('illness',           'Several settlers report feeling unwell',      'medium'),
    ('discovery',         'An old ruin found to the east',               'medium'),
]

# event type → [(metric, delta), ...]
_DAY_EFFECTS = {
    'fire_outbreak':     [('fire_stability', -10), ('unrest', 5)],
    'bountiful_harvest': [('food_days', 8), ('morale', 5)],
    'illness':           [('health_risk', 12)],
    'discovery':         [],
}


def _production(s) -> None:
    """Farms, fisheries and wells report; the population eats and drinks."""
    producers = sum(1 for a in s.agents if a.archetype in FOOD_PRODUCERS)
    wells     = sum(1 for row in s.map for t in row if t.building == 'well')
    ration    = s.metrics.population / config.POP_PER_RATION
    adjust_metric(s.metrics, 'food_days',  producers * config.FOOD_PER_PRODUCER - ration)
    adjust_metric(s.metrics, 'water_days', wells * config.WATER_PER_WELL - ration)
    print(f"{clock_stamp(s.day, s.hour)} PRODUCTION {producers} producers, {wells} wells"
          f" → food {s.metrics.food_days:.1f}d  water {s.metrics.water_days:.1f}d")


def day_pass(s, rng: random.Random, brain=None) -> tuple[list, list]:
    events = []
    midday = s.hour == config.MIDDAY_HOUR
    for a in s.agents:
        if a.status != 'in_council':
            a.status = 'working'
        _vital(a, 'energy', -3)
        _vital(a, 'hunger', 3)
        _vital(a, 'stress', rng.uniform(-2, 3))
        if rng.random() < config.MOVE_CHANCE:
            wander(a, s.map, rng)
        if midday and brain is not None and rng.random() < config.ACTION_CHANCE:
            push_front(a.recent_actions, brain.decide_action(a, s))

    if s.hour == config.PRODUCTION_HOUR:
        _production(s)

    if s.agents and rng.random() < config.DAY_EVENT_CHANCE:
        etype, desc, sev = rng.choice(_DAY_EVENTS)
        who = rng.choice(s.agents)
        events.append(_event(s, etype, desc, sev, [who.id], who.position))
        for metric, delta in _DAY_EFFECTS[etype]:
            adjust_metric(s.metrics, metric, delta)
    return events, []


# ══════════════════════════════════════════════════════════════════════════
# Evening (outside council steps) and night
# ══════════════════════════════════════════════════════════════════════════

def evening_idle_pass(s) -> None:
    for a in s.agents:
        if a.status == 'idle':
            _vital(a, 'energy', -2)


_NIGHT_EVENTS = [
    ('strange_noise', 'Strange noises echo from the mountains', 'low'),
    ('night_raid',    'Wild animals raid the food stores',      'high'),
    ('meteor_shower', 'A meteor shower lights up the sky',      'low'),
    ('flooding',      'Heavy rain causes minor flooding',       'medium'),
]

_NIGHT_EFFECTS = {
    'strange_noise': [],
    'night_raid':    [('food_days', -6), ('unrest', 8)],
    'meteor_shower': [],
    'flooding':      [('water_days', 5), ('health_risk', 5)],
}


def _night_disturbances(s, tonight: list) -> int:
    """Night events since the evening: this tick's plus the newest-first run in the log."""
    count = len(tonight)
    for e in s.recent_events:
        if e.phase != 'night':
            break
        count += 1
    return count


def _drift(s) -> None:
    m = s.metrics
    adjust_metric(m, 'morale', 2 if m.food_days > 20 else -3)
    adjust_metric(m, 'morale', -3 if m.unrest > 50 else 1)
    adjust_metric(m, 'unrest', 3 if m.morale < 40 else -2)


def night_pass(s, rng: random.Random) -> tuple[list, list]:
    """Watch split at WATCH_HOUR, rest drift after, recap/weather/drift at PREDAWN_HOUR."""
    events, news = [], []

    if s.hour == config.WATCH_HOUR:
        for a in s.agents:
            if a.archetype in WATCH_ARCHETYPES:
                a.status = 'on_watch'
                _vital(a, 'energy', -10)
            else:
                a.status = 'sleeping'
                a.position = Position(a.home_position.x, a.home_position.y)
                _vital(a, 'energy', 25)
                _vital(a, 'stress', -15)
                _vital(a, 'hunger', -5)
    else:
        for a in s.agents:
            if a.status == 'on_watch':
                _vital(a, 'energy', -2)
            elif a.status == 'sleeping':
                _vital(a, 'energy', 3)
                _vital(a, 'stress', -1)

    if rng.random() < config.NIGHT_EVENT_CHANCE:
        etype, desc, sev = rng.choice(_NIGHT_EVENTS)
        watchers = [a.id for a in s.agents if a.status == 'on_watch']
        events.append(_event(s, etype, desc, sev, watchers))
        for metric, delta in _NIGHT_EFFECTS[etype]:
            adjust_metric(s.metrics, metric, delta)

    if s.hour == config.PREDAWN_HOUR:
        news.append(newspaper.night_recap(s, _night_disturbances(s, events)))
        if rng.random() < config.WEATHER_CHANGE_CHANCE:
            s.weather = rng.choice(WEATHERS)
        _drift(s)
    return events, news
