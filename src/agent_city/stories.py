# (c) 2026 (KriaetvAspie / AspieTheBard)
# Licensed under the Polyform Noncommercial License 1.0.0
"""
stories.py — Layer 2: emergent small-town stories and the social graph they shape.

Call order each tick (after the phase handler, whatever the phase):
    run_story_engine(s, rng, brain)  → [StoryEvent, ...]

Seven independent generators run in a fixed order.  Each one checks who is
eligible, rolls its own firing chance (config.STORY_CHANCES), picks its cast
and mutates the world.  Relationship changes go through
inhabitants.update_relationship() so allies/rivals never drift from the
scores.  A generator that raises is reported and skipped; the rest still run.

    generator     cast                                   effect
    ───────────   ────────────────────────────────────   ─────────────────────────────
    friendship    two awake agents within 3 tiles        +8..19 both ways
    rivalry       two awake non-children                 −10..24 both ways, stress, unrest
    romance       two awake adults, close pairs first    +10..19 both ways, morale
    business      an awake trader                        reputation ±, morale ±
    achievement   any awake agent                        reputation +10, influence +5
    misfortune    any awake agent                        stress +12..20, energy −10
    discovery     an awake scout/hunter or curious one   reputation +5, morale +2
"""

from __future__ import annotations

import collections
import random

from . import config
from .inhabitants import get_rel_score, update_relationship
from .state import StoryEvent, next_id
from .world import adjust_metric, clamp, clock_stamp, push_front, ring

TRADER_ARCHETYPES   = {'Shopkeeper', 'Baker', 'Merchant', 'Tailor', 'Blacksmith'}
EXPLORER_ARCHETYPES = {'Scout', 'Hunter'}

_NEAR = 3   # tiles, per axis, for a chance meeting


def _stat(agent, name: str, delta) -> None:
    setattr(agent, name, round(clamp(getattr(agent, name) + delta, 0, 100), 1))


def _story(s, category: str, title: str, desc: str, involved: list,
           consequence: str | None = None) -> StoryEvent:
    return StoryEvent(
        id              = next_id(s, 'story'),
        day             = s.day,
        hour            = s.hour,
        category        = category,
        title           = title,
        description     = desc,
        involved_agents = involved,
        consequence     = consequence,
        timestamp       = s.last_tick_at,
    )


def _fires(rng: random.Random, category: str) -> bool:
    return rng.random() <= config.STORY_CHANCES[category]


def _bond(a, b, delta: int, reason: str) -> None:
    update_relationship(a, b.id, delta, reason)
    update_relationship(b, a.id, delta, reason)


# ══════════════════════════════════════════════════════════════════════════
# Generators
# ══════════════════════════════════════════════════════════════════════════

def friendship(s, rng: random.Random):
    awake = [a for a in s.agents if a.awake]
    if len(awake) < 2 or not _fires(rng, 'friendship'):
        return None
    a = rng.choice(awake)
    near = [b for b in awake if b.id != a.id
            and abs(a.position.x - b.position.x) <= _NEAR
            and abs(a.position.y - b.position.y) <= _NEAR]
    if not near:
        return None
    b = rng.choice(near)
    if get_rel_score(a, b.id) > 60:
        return None    # already close

    title, desc, consequence = rng.choice([
        (f"{a.name} and {b.name} bond over shared work",
         f"While working nearby, {a.name} ({a.archetype}) and {b.name} ({b.archetype}) discovered "
         f"they share a love of {rng.choice(['storytelling', 'gardening', 'cooking', 'stargazing', 'woodcarving'])}. "
         "A new friendship begins to form.",
         f"{a.name} and {b.name}'s relationship improved."),
        (f"{a.name} helps {b.name} with a difficult task",
         f"{a.name} noticed {b.name} struggling with "
         f"{rng.choice(['heavy supplies', 'a broken tool', 'a tricky repair', 'a lost item'])} "
         f"and offered to help. {b.name} was grateful.",
         f"{b.name} now views {a.name} more favorably."),
        (f"Lunch together: {a.name} and {b.name}",
         f"{a.name} and {b.name} shared a meal near the "
         f"{rng.choice(['market square', 'well', 'inn', 'council hall'])}. They talked about "
         f"{rng.choice(['the future of the settlement', 'their families', 'the council decisions', 'the changing weather'])}.",
         'Their friendship deepens slightly.'),
    ])
    _bond(a, b, 8 + rng.randrange(12), title)
    return _story(s, 'friendship', title, desc, [a.id, b.id], consequence)


def rivalry(s, rng: random.Random):
    awake = [a for a in s.agents if a.awake and a.age_group != 'child']
    if len(awake) < 2 or not _fires(rng, 'rivalry'):
        return None
    a = rng.choice(awake)
    b = None
    sour = [r for r in a.relationships.values() if r.score < -10]
    if sour and rng.random() < 0.6:
        b = s.agent_by_id(rng.choice(sour).target_id)
    if b is None:
        b = rng.choice([o for o in awake if o.id != a.id])

    title, desc, consequence = rng.choice([
        (f"{a.name} accuses {b.name} of unfair dealings",
         f"A heated argument broke out when {a.name} publicly accused {b.name} of "
         f"{rng.choice(['hoarding supplies', 'spreading rumors', 'slacking on duty', 'taking credit for the work of others'])}. "
         "Bystanders watched nervously.",
         'Tension between them has risen. The settlement feels it.'),
        (f"{a.name} and {b.name} clash over resources",
         f"{a.name} and {b.name} both laid claim to "
         f"{rng.choice(['the last sack of grain', 'prime workshop space', 'the best market stall', 'water rations'])}. "
         f"Neither backed down. "
         f"{rng.choice(['An elder had to intervene.', 'They stormed off in opposite directions.', 'The guard was called.'])}",
         'Their rivalry deepens. Others are taking sides.'),
        (f"Harsh words: {a.name} vs {b.name}",
         f"During a conversation about "
         f"{rng.choice(['council policies', 'work duties', 'the direction of the town', 'personal matters'])}, "
         f"{a.name} said something that deeply offended {b.name}. The atmosphere turned cold.",
         f"{b.name} won't forget this easily."),
    ])
    _bond(a, b, -(10 + rng.randrange(15)), title)
    _stat(a, 'stress', 8)
    _stat(b, 'stress', 10)
    adjust_metric(s.metrics, 'unrest', 2)
    return _story(s, 'rivalry', title, desc, [a.id, b.id], consequence)


def romance(s, rng: random.Random):
    eligible = [a for a in s.agents if a.age_group == 'adult' and a.awake]
    if len(eligible) < 2 or not _fires(rng, 'romance'):
        return None

    a = b = None
    by_id = {e.id: e for e in eligible}
    for agent in eligible:
        close = [r for r in agent.relationships.values()
                 if r.score >= 30 and r.target_id in by_id]
        if close:
            a, b = agent, by_id[rng.choice(close).target_id]
            break
    if a is None:
        if rng.random() > 0.3:
            return None    # no spark today
        a = rng.choice(eligible)
        b = rng.choice([e for e in eligible if e.id != a.id])

    score = get_rel_score(a, b.id)
    if score >= 50:
        options = [
            (f"{a.name} and {b.name}: a quiet evening together",
             f"{a.name} and {b.name} were seen walking together along the settlement paths "
             "as the sun set. Neighbors smiled knowingly.",
             "The settlement's favorite couple grows closer."),
            (f"Love in Agent City: {a.name} and {b.name}",
             f"{a.name} brought {b.name} a handpicked bouquet of wildflowers. "
             f"{b.name}'s smile could be seen from the watchtower.",
             'Their bond strengthens. Morale rises among those who notice.'),
        ]
    else:
        options = [
            (f"{a.name} catches {b.name}'s eye",
             f"At the {rng.choice(['market', 'inn', 'well', 'council hall'])}, {a.name} and {b.name} "
             "locked eyes for a moment longer than usual. Something stirred.",
             'A new romantic interest may be forming.'),
            (f"{a.name} finds an excuse to talk to {b.name}",
             f"{a.name} went out of their way to "
             f"{rng.choice(['borrow a tool from', 'ask directions from', 'share news with', 'bring food to'])} "
             f"{b.name}. The excuse was thin. The interest was obvious.",
             'Others have started to notice the tension.'),
        ]
    title, desc, consequence = rng.choice(options)
    _bond(a, b, 10 + rng.randrange(10), title)
    if score >= 50:
        adjust_metric(s.metrics, 'morale', 1)
    return _story(s, 'romance', title, desc, [a.id, b.id], consequence)


def business(s, rng: random.Random):
    traders = [a for a in s.agents if a.archetype in TRADER_ARCHETYPES and a.awake]
    if not traders or not _fires(rng, 'business'):
        return None
    agent  = rng.choice(traders)
    baker  = agent.archetype == 'Baker'
    # (title, description, consequence, reputation delta, morale delta)
    title, desc, consequence, rep, morale = rng.choice([
        (f"{agent.name}'s {'bakery' if baker else 'shop'} has a record day",
         f"Customers lined up at the establishment of {agent.name} today. "
         f"{'Every loaf sold out by noon.' if baker else 'Shelves were nearly empty by evening.'} "
         f"Word spread about their quality {rng.choice(['bread', 'tools', 'goods', 'crafts', 'fabrics'])}.",
         f"{agent.name}'s reputation grows.", 8, 1),
        (f"Trouble at {agent.name}'s workshop",
         f"{agent.name} discovered "
         f"{rng.choice(['spoiled inventory', 'a broken oven', 'damaged tools', 'missing stock'])} "
         "this morning. The loss will take days to recover from.",
         f"{agent.name}'s business suffers a setback.", -5, -1),
        (f"{agent.name} launches a new product",
         f"{agent.name} unveiled "
         f"{rng.choice(['a new type of pastry', 'hand-forged decorative ironwork', 'imported spices from beyond the mountains', 'custom-tailored winter cloaks'])} "
         f"at the market. The reception was "
         f"{'enthusiastic' if rng.random() > 0.4 else 'mixed, but curious'}.",
         'The market district buzzes with excitement.', 5, 1),
    ])
    _stat(agent, 'reputation', rep)
    adjust_metric(s.metrics, 'morale', morale)
    return _story(s, 'business', title, desc, [agent.id], consequence)


def achievement(s, rng: random.Random):
    awake = [a for a in s.agents if a.awake]
    if not awake or not _fires(rng, 'achievement'):
        return None
    agent = rng.choice(awake)
    title, desc, consequence = rng.choice([
        (f"{agent.name} masters a new skill",
         f"After weeks of practice, {agent.name} has "
         f"{rng.choice(['learned to read ancient texts', 'mastered a new crafting technique', 'become proficient in herbal medicine', 'completed their first solo hunt', 'learned to swim across the river'])}.",
         f"{agent.name}'s confidence and reputation grow."),
        (f"{agent.name} saves a neighbor's life",
         f"When {rng.choice(['a fire broke out', 'someone fell into the river', 'a child wandered too close to the wall', 'a worker collapsed from heat'])}, "
         f"{agent.name} acted without hesitation. Their quick thinking "
         f"{rng.choice(['prevented a tragedy', 'saved a life', 'protected the community'])}.",
         f"{agent.name} is hailed as a hero."),
        (f"{agent.name} completes a major project",
         f"{agent.name} finished "
         f"{rng.choice(['building a new storage shed', 'writing the first history of the settlement', 'designing an improved water system', 'crafting a memorial for the town square'])}. "
         "The settlement celebrates.",
         f"The town benefits from {agent.name}'s dedication."),
    ])
    _stat(agent, 'reputation', 10)
    _stat(agent, 'influence', 5)
    return _story(s, 'achievement', title, desc, [agent.id], consequence)


def misfortune(s, rng: random.Random):
    awake = [a for a in s.agents if a.awake]
    if not awake or not _fires(rng, 'misfortune'):
        return None
    agent = rng.choice(awake)
    if agent.archetype in ('Doctor', 'Nurse'):
        care = 'Ironically, the healer needs healing.'
    else:
        doctor = next((a for a in s.agents if a.archetype == 'Doctor'), None)
        care = f"Dr. {doctor.name} was called to help." if doctor else 'The town healer was called to help.'
    title, desc, consequence, stress = rng.choice([
        (f"{agent.name} falls ill",
         f"{agent.name} woke feeling weak and feverish. {care}",
         f"{agent.name} will need rest and may miss work.", 15),
        (f"{agent.name} loses a prized possession",
         f"{agent.name} discovered that their "
         f"{rng.choice(['pocket watch', 'favorite tools', 'family heirloom ring', 'journal of recipes', 'hand-carved flute'])} "
         "has gone missing. They're devastated.",
         f"{agent.name} is upset and distracted.", 20),
        (f"{agent.name}'s home needs urgent repair",
         f"{rng.choice(['A leak in the roof', 'A cracked wall', 'A collapsed shelf', 'A broken door'])} "
         f"has made the home of {agent.name} uncomfortable. They'll need help from the builders.",
         f"{agent.name} is stressed about their living situation.", 12),
    ])
    _stat(agent, 'stress', stress)
    _stat(agent, 'energy', -10)
    return _story(s, 'misfortune', title, desc, [agent.id], consequence)


def discovery(s, rng: random.Random):
    explorers = [a for a in s.agents if a.awake and
                 (a.archetype in EXPLORER_ARCHETYPES or a.personality.curiosity > 60)]
    if not explorers or not _fires(rng, 'discovery'):
        return None
    agent = rng.choice(explorers)
    title, desc, consequence = rng.choice([
        (f"{agent.name} discovers ancient ruins",
         f"While exploring the {rng.choice(['eastern ridge', 'forest edge', 'riverbank', 'mountain pass'])}, "
         f"{agent.name} stumbled upon "
         f"{rng.choice(['crumbling stone walls covered in vines', 'an old cave with wall paintings', 'a buried metal chest', 'carved stone markers from a forgotten civilization'])}. "
         "The scholars are already excited.",
         "This could change the settlement's understanding of the land."),
        (f"{agent.name} finds a new resource deposit",
         f"{agent.name} discovered "
         f"{rng.choice(['an underground spring', 'a clay deposit perfect for pottery', 'wild berry bushes in abundance', 'a grove of medicinal herbs', 'iron ore near the surface'])} "
         "beyond the settlement walls.",
         'New resources could boost the economy.'),
        (f"{agent.name} spots something unusual",
         f"{agent.name} reported seeing "
         f"{rng.choice(['campfire smoke beyond the mountains', 'a caravan on the distant road', 'strange tracks in the mud', 'lights in the forest at night'])}. "
         "The council should be informed.",
         'The settlement buzzes with speculation.'),
    ])
    _stat(agent, 'reputation', 5)
    adjust_metric(s.metrics, 'morale', 2)
    return _story(s, 'discovery', title, desc, [agent.id], consequence)


GENERATORS = [
    ('friendship',  friendship),
    ('rivalry',     rivalry),
    ('romance',     romance),
    ('business',    business),
    ('achievement', achievement),
    ('misfortune',  misfortune),
    ('discovery',   discovery),
]


# ══════════════════════════════════════════════════════════════════════════
# Legacy repair and the per-tick pass
# ══════════════════════════════════════════════════════════════════════════

# (attribute, cap, newest_first)
_AGENT_RINGS = (
    ('recent_quotes',  config.QUOTES_CAP,          True),
    ('recent_actions', config.ACTIONS_CAP,         True),
    ('vote_history',   config.VOTE_HISTORY_CAP,    True),
    ('story_log',      config.AGENT_STORY_LOG_CAP, False),
    ('mood_history',   config.MOOD_WINDOW,         False),
)


def ensure_agent_fields(agent) -> None:
    """Backfill collections an agent from an older snapshot may lack or hold as plain lists."""
    if not isinstance(agent.relationships, dict):
        edges = agent.relationships or []
        agent.relationships = {e.target_id: e for e in edges}
    if agent.allies is None:
        agent.allies = []
    if agent.rivals is None:
        agent.rivals = []
    for name, cap, newest_first in _AGENT_RINGS:
        buf = getattr(agent, name, None)
        if isinstance(buf, collections.deque) and buf.maxlen == cap:
            continue
        items = list(buf or ())
        setattr(agent, name, ring(cap, items[:cap] if newest_first else items))
    if not agent.mood_history:
        agent.mood_history.append(round(100 - agent.stress, 1))


def run_story_engine(s, rng: random.Random, brain=None) -> list:
    for agent in s.agents:
        ensure_agent_fields(agent)

    stamp   = clock_stamp(s.day, s.hour)
    stories = []
    for name, gen in GENERATORS:
        try:
            story = gen(s, rng)
        except Exception as exc:
            print(f"{stamp} STORY {name} generator failed: {exc!r}")
            continue
        if story is None:
            continue
        stories.append(story)
        s.story_log.append(story)
        print(f"{stamp} STORY [{story.category}] {story.title}")
        for agent_id in story.involved_agents:
            agent = s.agent_by_id(agent_id)
            if agent is None:
                continue
            agent.story_log.append(story)
            if brain is not None and rng.random() < config.STORY_QUOTE_CHANCE:
                line = brain.quote(agent, story)
                if line:
                    push_front(agent.recent_quotes, line)

    for agent in s.agents:
        agent.mood_history.append(round(100 - agent.stress, 1))
    return stories
