# (c) 2026 (KriaetvAspie / AspieTheBard)
# Licensed under the Polyform Noncommercial License 1.0.0
"""
diplomacy.py — Layer 3: the evening council, its debate and its votes.

Call order each tick (evening phase, from sim.py):
    council_step(s, rng, brain)   → (events, news) or None when the hour has
                                    no council step (sim then runs the idle pass)

Session lifecycle:
    COUNCIL_START_HOUR    start_session()  — seat everyone, gather proposals,
                                             build the transcript, vote, resolve
    hours in between      continue_session() — current_speaker walks the transcript
    COUNCIL_END_HOUR      end_session()    — close, clear the announcement, all idle

Public API used by other modules:
    tally_votes(proposal)            → {'yes': n, 'no': n, 'abstain': n}
    resolve(tally)                   → 'approved' | 'rejected'
    apply_impacts(metrics, proposal) → [(metric, before, after), ...]
    council_countdown(hour, start, end) lives in sim.py

Resolution rule: approved iff yes > no.  A tie rejects; abstentions are
reported in the tally and the breaking news but never decide the outcome.
"""

from __future__ import annotations

import random

from . import config
from . import newspaper
from .inhabitants import Agent
from .state import CouncilDialogue, CouncilSession, WorldEvent, next_id
from .world import Position, adjust_metric, clamp_position, clock_stamp, push_front

IMPACT_FLOOR = 0      # approved impacts are bounded to [IMPACT_FLOOR, IMPACT_CEIL]
IMPACT_CEIL  = 200    # before the metric's own range applies

_MIN_PROPOSERS = 2
_MAX_PROPOSERS = 4
_MAX_REACTIONS = 2    # human-news items discussed per session


# ══════════════════════════════════════════════════════════════════════════
# Tally and resolution
# ══════════════════════════════════════════════════════════════════════════

def tally_votes(proposal) -> dict:
    t = {'yes': 0, 'no': 0, 'abstain': 0}
    for v in proposal.votes.values():
        if v in t:
            t[v] += 1
    return t


def resolve(tally: dict) -> str:
    return 'approved' if tally['yes'] > tally['no'] else 'rejected'


def apply_impacts(metrics, proposal) -> list:
    """Signed impacts, bounded to [0, 200] then the metric's range.  Unknown metrics skip."""
    applied = []
    for imp in proposal.expected_impact:
        before = getattr(metrics, imp.metric, None)
        if adjust_metric(metrics, imp.metric, imp.signed, IMPACT_FLOOR, IMPACT_CEIL):
            applied.append((imp.metric, before, getattr(metrics, imp.metric)))
    return applied


# ══════════════════════════════════════════════════════════════════════════
# Transcript helpers
# ══════════════════════════════════════════════════════════════════════════

def _say(s, agent: Agent, message: str, kind: str,
         proposal_id: str | None = None, headline: str | None = None) -> None:
    s.council.dialogue.append(CouncilDialogue(
        agent_id               = agent.id,
        message                = message,
        type                   = kind,
        referenced_proposal    = proposal_id,
        referenced_human_event = headline,
        timestamp              = s.last_tick_at,
    ))


def _chair(agents: list) -> Agent | None:
    # First agent wins ties, so the chair is stable for a given roster
    return max(agents, key=lambda a: a.influence) if agents else None


def _gather_proposals(s, rng: random.Random, brain) -> list:
    candidates = [a for a in s.agents if a.age_group != 'child']
    if len(candidates) < _MIN_PROPOSERS:
        return []
    k = rng.randint(_MIN_PROPOSERS, min(_MAX_PROPOSERS, len(candidates)))
    proposals = []
    for agent in rng.sample(candidates, k):
        prop = brain.propose(agent, s)
        if prop is not None:
            proposals.append(prop)
    return proposals


def _news_reactions(s, rng: random.Random, brain) -> None:
    if not s.agents:
        return
    for he in s.human_events[:_MAX_REACTIONS]:
        reactor = rng.choice(s.agents)
        _say(s, reactor, brain.news_reaction(reactor, he, s), 'human_news_reaction',
             headline=he.headline)
        others = [a for a in s.agents if a.id != reactor.id]
        if others:
            rebuttal = rng.choice(others)
            _say(s, rebuttal, brain.dialogue(rebuttal, he.headline, s), 'debate',
                 headline=he.headline)


def _debate(s, rng: random.Random, brain, proposal) -> None:
    proposer = s.agent_by_id(proposal.proposed_by)
    if proposer is not None:
        pitch = f"I propose: {proposal.title}. {brain.dialogue(proposer, proposal.title, s)}"
        _say(s, proposer, pitch, 'proposal', proposal.id)
    others = [a for a in s.agents if a.id != proposal.proposed_by]
    if not others:
        return
    n = min(rng.randint(2, 3), len(others))
    for speaker in rng.sample(others, n):
        _say(s, speaker, brain.dialogue(speaker, proposal.title, s), 'debate', proposal.id)


# ══════════════════════════════════════════════════════════════════════════
# Voting round
# ══════════════════════════════════════════════════════════════════════════

def run_voting(s, brain, chair: Agent | None) -> list:
    """Every agent votes once per proposal; resolve, apply, report.  Returns news."""
    news  = []
    stamp = clock_stamp(s.day, s.hour)
    for prop in s.council.proposals:
        for agent in s.agents:
            vote = brain.vote(agent, prop, s)
            prop.votes[agent.id] = vote
            _say(s, agent, brain.vote_statement(agent, prop, vote, s), 'vote_statement', prop.id)

        prop.tally  = tally_votes(prop)
        prop.status = resolve(prop.tally)
        t = prop.tally
        print(f"  [Council] {prop.title} — {t['yes']}:{t['no']} "
              f"({t['abstain']} abstain) — {prop.status.upper()}")

        if prop.status == 'approved':
            for metric, before, after in apply_impacts(s.metrics, prop):
                print(f"  [Council]   {metric}: {before} → {after}")
            news.append(newspaper.breaking_news(s, prop))
            print(f"{stamp} BREAKING Council approves: {prop.title}")

        if chair is not None:
            _say(s, chair, brain.chair_remark(chair, 'tally', s, prop), 'opinion', prop.id)

    if chair is not None:
        _say(s, chair, brain.chair_remark(chair, 'closing', s), 'opinion')

    if s.council.proposals:
        first = s.council.proposals[0]
        for agent in s.agents:
            vote = first.votes.get(agent.id)
            if vote:
                push_front(agent.vote_history, vote)
    return news


# ══════════════════════════════════════════════════════════════════════════
# Session lifecycle
# ══════════════════════════════════════════════════════════════════════════

def start_session(s, rng: random.Random, brain) -> tuple[list, list]:
    hall = clamp_position(s.map, *config.COUNCIL_POSITION)
    for a in s.agents:
        a.status   = 'in_council'
        a.position = Position(hall.x, hall.y)

    s.council = CouncilSession(
        day        = s.day,
        is_active  = True,
        start_hour = config.COUNCIL_START_HOUR,
        end_hour   = config.COUNCIL_END_HOUR,
    )
    s.council_active       = True
    s.council_announcement = f"The council of day {s.day} is in session"

    s.council.proposals = _gather_proposals(s, rng, brain)
    chair = _chair(s.agents)
    print(f"{clock_stamp(s.day, s.hour)} COUNCIL convenes: {len(s.council.proposals)} proposals"
          + (f", chaired by {chair.name}" if chair else ''))

    if chair is not None:
        _say(s, chair, brain.chair_remark(chair, 'opening', s), 'opinion')
    _news_reactions(s, rng, brain)
    for prop in s.council.proposals:
        _debate(s, rng, brain, prop)
    news = run_voting(s, brain, chair)

    if s.council.dialogue:
        s.council.current_speaker = s.council.dialogue[0].agent_id

    event = WorldEvent(
        id              = next_id(s, 'evt'),
        type            = 'council_convenes',
        description     = f"The council convenes with {len(s.council.proposals)} proposals",
        severity        = 'low',
        day             = s.day,
        phase           = s.phase,
        involved_agents = [p.proposed_by for p in s.council.proposals],
        position        = Position(hall.x, hall.y),
        timestamp       = s.last_tick_at,
    )
    return [event], news


def continue_session(s) -> None:
    """Move current_speaker along the transcript in proportion to elapsed session hours."""
    c = s.council
    if not c.is_active or not c.dialogue:
        return
    span = max(1, c.end_hour - c.start_hour)
    idx  = len(c.dialogue) * (s.hour - c.start_hour) // span
    c.current_speaker = c.dialogue[min(idx, len(c.dialogue) - 1)].agent_id


def end_session(s) -> None:
    s.council.is_active    = False
    s.council_active       = False
    s.council_announcement = None
    for a in s.agents:
        a.status = 'idle'
    print(f"{clock_stamp(s.day, s.hour)} COUNCIL adjourned")


def council_step(s, rng: random.Random, brain):
    """Dispatch the council step for the current evening hour, if there is one."""
    if s.hour == config.COUNCIL_START_HOUR:
        return start_session(s, rng, brain)
    if s.hour == config.COUNCIL_END_HOUR:
        end_session(s)
        return [], []
    if config.COUNCIL_START_HOUR < s.hour < config.COUNCIL_END_HOUR and s.council.is_active:
        continue_session(s)
        return [], []
    return None
