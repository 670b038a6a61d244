# (c) 2026 (KriaetvAspie / AspieTheBard)
# Licensed under the Polyform Noncommercial License 1.0.0
"""
state.py — WorldState aggregate and the log records the engine appends.

The caller owns a WorldState between ticks.  sim.execute_tick() deep-copies
it, mutates the copy, and hands the copy back; nothing here keeps a
reference across calls.

Public API:
    WorldState, CouncilSession, Proposal, Impact, CouncilDialogue,
    NewsItem, WorldEvent, StoryEvent, HumanWorldEvent, SimEffect,
    ChronicleEntry, Snapshot, NewspaperEdition
    next_id(state, prefix)     → deterministic per-state record id
    to_dict(obj)               → JSON-ready dict/list tree
    WorldState.from_dict(d)    → rebuild, backfilling fields older snapshots lack
"""

from __future__ import annotations

import collections
from dataclasses import dataclass, field, fields, is_dataclass
from typing import TYPE_CHECKING

from . import config
from .world import MapTile, Metrics, Position, ring

if TYPE_CHECKING:
    from .inhabitants import Agent

STORY_CATEGORIES = (
    'friendship', 'rivalry', 'romance', 'business', 'achievement',
    'misfortune', 'discovery', 'conflict', 'celebration',
)
VOTE_CHOICES = ('yes', 'no', 'abstain')
SEVERITIES   = ('low', 'medium', 'high', 'critical')


# ══════════════════════════════════════════════════════════════════════════
# Council records
# ══════════════════════════════════════════════════════════════════════════

@dataclass
class Impact:
    metric:    str
    direction: str     # 'up' | 'down'
    amount:    float

    @property
    def signed(self) -> float:
        return self.amount if self.direction == 'up' else -self.amount


@dataclass
class Proposal:
    id:              str
    title:           str
    description:     str
    proposed_by:     str
    cost:            int
    expected_impact: list = field(default_factory=list)   # [Impact, ...]
    votes:           dict = field(default_factory=dict)   # agent id → VoteChoice
    status:          str  = 'pending'
    tally:           dict | None = None                   # {'yes', 'no', 'abstain'}


@dataclass
class CouncilDialogue:
    agent_id:               str
    message:                str
    type:                   str   # opinion | proposal | debate | human_news_reaction | vote_statement
    referenced_proposal:    str | None = None
    referenced_human_event: str | None = None
    timestamp:              float = 0.0


@dataclass
class CouncilSession:
    day:             int  = 0
    proposals:       list = field(default_factory=list)
    dialogue:        list = field(default_factory=list)
    current_speaker: str | None = None
    is_active:       bool = False
    start_hour:      int  = config.COUNCIL_START_HOUR
    end_hour:        int  = config.COUNCIL_END_HOUR
    next_council_in: int  = 0


# ══════════════════════════════════════════════════════════════════════════
# Log records
# ══════════════════════════════════════════════════════════════════════════

@dataclass
class NewsItem:
    id:        str
    headline:  str
    body:      str
    category:  str
    severity:  str
    day:       int
    timestamp: float = 0.0


@dataclass
class WorldEvent:
    id:              str
    type:            str
    description:     str
    severity:        str
    day:             int
    phase:           str
    involved_agents: list = field(default_factory=list)
    position:        Position | None = None
    timestamp:       float = 0.0


@dataclass
class StoryEvent:
    id:              str
    day:             int
    hour:            int
    category:        str
    title:           str
    description:     str
    involved_agents: list = field(default_factory=list)
    consequence:     str | None = None
    timestamp:       float = 0.0


@dataclass
class SimEffect:
    variable:    str
    modifier:    float
    description: str


@dataclass
class HumanWorldEvent:
    headline:   str
    source:     str
    sim_effect: SimEffect


@dataclass
class ChronicleEntry:
    day:              int
    headlines:        list
    key_vote:         dict | None   # {'title', 'result'}
    top_moments:      list
    metrics_snapshot: dict
    timestamp:        float = 0.0


@dataclass
class Snapshot:
    day:       int
    phase:     str
    tick:      int
    metrics:   dict
    timestamp: float = 0.0


@dataclass
class NewspaperEdition:
    day:               int
    masthead:          str
    headline:          str
    headline_body:     str
    articles:          list   # [{'headline', 'body', 'category'}]
    weather_report:    str
    population_note:   str
    quote_of_the_day:  dict   # {'quote', 'agent'}
    timestamp:         float = 0.0


# ══════════════════════════════════════════════════════════════════════════
# Aggregate root
# ══════════════════════════════════════════════════════════════════════════

@dataclass
class WorldState:
    day:                  int  = 1
    hour:                 int  = config.START_HOUR
    phase:                str  = 'morning'
    tick:                 int  = 0
    map:                  list = field(default_factory=list)
    agents:               list = field(default_factory=list)
    metrics:              Metrics = field(default_factory=Metrics)
    council:              CouncilSession = field(default_factory=CouncilSession)
    news:                 collections.deque = field(default_factory=lambda: ring(config.LOG_CAP))
    recent_events:        collections.deque = field(default_factory=lambda: ring(config.LOG_CAP))
    story_log:            collections.deque = field(default_factory=lambda: ring(config.STORY_LOG_CAP))
    human_events:         list = field(default_factory=list)
    weather:              str  = 'clear'
    paused:               bool = False
    started_at:           float = 0.0
    last_tick_at:         float = 0.0
    council_active:       bool = False
    council_announcement: str | None = None
    last_processed_hour:  int  = config.START_HOUR
    last_chronicle_day:   int  = 0
    newspaper:            NewspaperEdition | None = None
    serial:               int  = 0   # record-id counter

    def agent_by_id(self, agent_id: str) -> 'Agent | None':
        for a in self.agents:
            if a.id == agent_id:
                return a
        return None

    @classmethod
    def from_dict(cls, data: dict) -> 'WorldState':
        """Rebuild a state from to_dict() output.

        Keys missing from older snapshots fall back to the dataclass defaults;
        agents are repaired by Agent.from_dict.
        """
        from .inhabitants import Agent

        s = _record(cls, data, skip={
            'map', 'agents', 'metrics', 'council', 'news', 'recent_events',
            'story_log', 'human_events', 'newspaper',
        })
        s.map     = [[_record(MapTile, t) for t in row] for row in data.get('map', [])]
        s.agents  = [Agent.from_dict(a) for a in data.get('agents', [])]
        s.metrics = _record(Metrics, data.get('metrics', {}))
        s.council = _council_from_dict(data.get('council', {}))
        s.news          = ring(config.LOG_CAP, [_record(NewsItem, n) for n in data.get('news', [])][:config.LOG_CAP])
        s.recent_events = ring(config.LOG_CAP, [_event_from_dict(e) for e in data.get('recent_events', [])][:config.LOG_CAP])
        s.story_log     = ring(config.STORY_LOG_CAP, (story_from_dict(e) for e in data.get('story_log', [])))
        s.human_events  = [_human_from_dict(h) for h in data.get('human_events', [])]
        if data.get('newspaper'):
            s.newspaper = _record(NewspaperEdition, data['newspaper'])
        return s


def next_id(state: WorldState, prefix: str) -> str:
    """Unique, reproducible id: same inputs and seed give the same ids."""
    state.serial += 1
    return f"{prefix}-{state.tick}-{state.serial}"


# ══════════════════════════════════════════════════════════════════════════
# (De)serialisation helpers
# ══════════════════════════════════════════════════════════════════════════

def to_dict(obj):
    """Dataclasses → dicts, deques/tuples → lists, recursively."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_dict(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, (list, tuple, collections.deque)):
        return [to_dict(v) for v in obj]
    if isinstance(obj, dict):
        return {k: to_dict(v) for k, v in obj.items()}
    return obj


def _record(cls, data: dict, skip=()):
    """Construct *cls* from the keys of *data* it knows; the rest default."""
    kwargs = {f.name: data[f.name] for f in fields(cls)
              if f.name in data and f.name not in skip}
    return cls(**kwargs)


def _position(data):
    return Position(data['x'], data['y']) if data else None


def _event_from_dict(data: dict) -> WorldEvent:
    e = _record(WorldEvent, data, skip={'position'})
    e.position = _position(data.get('position'))
    return e


def story_from_dict(data: dict) -> StoryEvent:
    return _record(StoryEvent, data)


def _human_from_dict(data: dict) -> HumanWorldEvent:
    return HumanWorldEvent(
        headline   = data.get('headline', ''),
        source     = data.get('source', ''),
        sim_effect = _record(SimEffect, data.get('sim_effect', {
            'variable': '', 'modifier': 0, 'description': ''})),
    )


def _council_from_dict(data: dict) -> CouncilSession:
    c = _record(CouncilSession, data, skip={'proposals', 'dialogue'})
    for p in data.get('proposals', []):
        prop = _record(Proposal, p, skip={'expected_impact'})
        prop.expected_impact = [_record(Impact, i) for i in p.get('expected_impact', [])]
        c.proposals.append(prop)
    c.dialogue = [_record(CouncilDialogue, d) for d in data.get('dialogue', [])]
    return c
