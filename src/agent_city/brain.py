# (c) 2026 (KriaetvAspie / AspieTheBard)
# Licensed under the Polyform Noncommercial License 1.0.0
"""
brain.py — Dialogue/decision provider for Agent City.

The engine asks a Brain for everything that is text or a choice: proposals,
votes, council lines, news reactions, midday actions, story quotes.  It
treats every answer as opaque: strings are stored, never parsed; votes are
only compared against 'yes' / 'no' / 'abstain'.

Architecture
────────────
  Brain          — abstract base class; swap in any implementation (an LLM
                   client, a replay of recorded answers, a test stub).
  TemplateBrain  — archetype → template-table implementation with its own
                   injected random.Random, so seeded runs reproduce exactly.

Vote policy (TemplateBrain.vote)
────────────────────────────────
  weight = 50
         + 30 if the voter made the proposal
         + 20 if the proposer is an ally, − 25 if a rival
         + 0.1 × relationship score toward the proposer
         + 0.3 × (cooperation − 50) − 0.2 × (caution − 50)
         − 10 if cost > 30
         + 10 if any 'up' impact exceeds 12
  roll ∈ [0, 100):  roll < weight → yes,  < weight + 10 → abstain,  else no
"""

from __future__ import annotations

import abc
import random
from typing import TYPE_CHECKING, Optional

from .inhabitants import get_rel_score
from .state import Impact, Proposal, next_id

if TYPE_CHECKING:
    from .inhabitants import Agent
    from .state import HumanWorldEvent, StoryEvent, WorldState


# ══════════════════════════════════════════════════════════════════════════
# Brain: the contract
# ══════════════════════════════════════════════════════════════════════════

class Brain(abc.ABC):
    """Everything the engine needs from a text/decision provider."""

    @abc.abstractmethod
    def propose(self, agent: 'Agent', state: 'WorldState') -> Optional[Proposal]:
        """A new pending Proposal by *agent*, or None to stay silent."""

    @abc.abstractmethod
    def vote(self, agent: 'Agent', proposal: Proposal, state: 'WorldState') -> str:
        """'yes', 'no' or 'abstain'."""

    @abc.abstractmethod
    def dialogue(self, agent: 'Agent', context: str, state: 'WorldState') -> str:
        ...

    @abc.abstractmethod
    def news_reaction(self, agent: 'Agent', event: 'HumanWorldEvent', state: 'WorldState') -> str:
        ...

    @abc.abstractmethod
    def vote_statement(self, agent: 'Agent', proposal: Proposal, vote: str,
                       state: 'WorldState') -> str:
        ...

    @abc.abstractmethod
    def chair_remark(self, agent: 'Agent', kind: str, state: 'WorldState',
                     proposal: Optional[Proposal] = None) -> str:
        """*kind* is 'opening', 'tally' (with *proposal*) or 'closing'."""

    @abc.abstractmethod
    def decide_action(self, agent: 'Agent', state: 'WorldState') -> str:
        ...

    @abc.abstractmethod
    def quote(self, agent: 'Agent', story: 'StoryEvent') -> Optional[str]:
        ...


# ══════════════════════════════════════════════════════════════════════════
# Template tables
# ══════════════════════════════════════════════════════════════════════════

# (title, cost, [(metric, direction, amount), ...])
PROPOSAL_TEMPLATES = [
    ('Build a watchtower on the hill',     30, [('fire_stability', 'up',   10)]),
    ('Expand the southern farm',           25, [('food_days',      'up',   15)]),
    ('Dig a new well near the river',      20, [('water_days',     'up',   12)]),
    ('Organize a harvest festival',        15, [('morale',         'up',   20)]),
    ('Reinforce the northern wall',        35, [('health_risk',    'down',  8)]),
    ('Build a storehouse for winter',      28, [('food_days',      'up',   10)]),
    ('Train a night watch militia',        18, [('unrest',         'down', 12)]),
    ('Establish a medical herb garden',    22, [('health_risk',    'down', 15)]),
    ('Scout the eastern mountains',        12, [('morale',         'up',    5)]),
    ('Build a fishing dock',               20, [('food_days',      'up',    8)]),
]

# Settlement role → template family
ROLE_FAMILY = {
    'Farmer': 'Farmer', 'Cook': 'Farmer',
    'Fisher': 'Hunter', 'Hunter': 'Hunter',
    'Guard': 'Warrior', 'Warrior': 'Warrior',
    'Scout': 'Scout',
    'Doctor': 'Healer', 'Nurse': 'Healer', 'Healer': 'Healer', 'Herbalist': 'Healer',
    'Retired Doctor': 'Healer',
    'Builder': 'Builder', 'Carpenter': 'Builder', 'Mason': 'Builder',
    'Teacher': 'Scholar', 'Professor': 'Scholar', 'Librarian': 'Scholar',
    'Village Historian': 'Scholar', 'Student': 'Scholar', 'Schoolchild': 'Scholar',
    'Shopkeeper': 'Diplomat', 'Merchant': 'Diplomat', 'Councilmember': 'Diplomat',
    'Baker': 'Artisan', 'Tailor': 'Artisan', 'Blacksmith': 'Artisan',
    'Master Craftsman': 'Artisan', 'Apprentice': 'Artisan',
    'Elder': 'Elder',
}


def family(archetype: str) -> str:
    return ROLE_FAMILY.get(archetype, 'Farmer')


def _dialogue_lines(fam: str, context: str, m) -> list[str]:
    tables = {
        'Farmer': [
            f"The soil tells me we need more hands in the fields. {context} could help or hurt our harvest.",
            "I've been watching the crops. If we don't secure more water soon, we'll face famine by next season.",
            "My grandfather farmed this land for decades. Trust me when I say - we need to act on food supplies now.",
            f"The yields this season are {'promising' if m.food_days > 30 else 'dangerously low'}. We must plan ahead.",
            "Every decision we make echoes in the harvest. I say we focus on what feeds our people.",
        ],
        'Warrior': [
            "Defense must come first. Without safety, all your farms and wells mean nothing.",
            "I've seen the signs. Something stirs beyond the mountains. We need to be ready.",
            f"{context}? Fine. But I want double patrols tonight. Non-negotiable.",
            "The walls won't hold forever. We strengthen them now, or we pay in blood later.",
            f"Morale among the guards is {'shaky' if m.unrest > 40 else 'strong'}. Keep that in mind.",
        ],
        'Scout': [
            "I mapped the eastern ridge yesterday. There's opportunity there - and danger.",
            "My scouts report movement. Whether friend or threat, we should know before they know us.",
            f"{context} reminds me of what I saw beyond the forest. The outside world is changing fast.",
            "Knowledge is our greatest weapon. Fund exploration, and I'll bring back answers.",
            "The terrain around us is shifting. New paths opening, old ones closing. We must adapt.",
        ],
        'Healer': [
            f"Three settlers came to me with fevers this week. Health risk is "
            f"{'climbing' if m.health_risk > 30 else 'manageable'}, but we can't be complacent.",
            "Medicine and morale go hand in hand. Sick people can't work, and workers can't thrive in fear.",
            f"{context}? I support it if it keeps our people healthy. That's all I care about.",
            "We need herbs, clean water, and rest. Simple things, but they save lives.",
            "I've seen communities crumble from disease alone. Prevention is everything.",
        ],
        'Builder': [
            "Give me materials and time, and I'll make this settlement a fortress.",
            "The council hall itself needs repair. How can we govern from a crumbling building?",
            f"{context} will require resources. I can build it, but not from nothing.",
            "Every structure I raise gives our people shelter and hope. That matters.",
            "Infrastructure is the skeleton of civilization. Without it, we're just wanderers.",
        ],
        'Hunter': [
            "The forest provides, but we take too much and it will stop giving.",
            f"I tracked deer three miles east today. The herds are {'healthy' if m.food_days > 25 else 'thinning'}.",
            f"{context} - interesting. But will it keep bellies full tonight? That's my question.",
            "Nature doesn't negotiate. We adapt to her rules, or we starve.",
            "My traps are set. But we need more than traps. We need a strategy for the long winter.",
        ],
        'Scholar': [
            "History teaches us that civilizations rise and fall on decisions exactly like this one.",
            f"I've been studying the patterns. {context} aligns with what I've read about successful settlements.",
            "Knowledge without action is useless. But action without knowledge is dangerous.",
            "The archives mention a similar crisis 200 years ago. They survived by cooperating.",
            "Let me consult the records. Every answer we need may already have been discovered.",
        ],
        'Diplomat': [
            "We must consider how this appears to outsiders. Our reputation precedes us.",
            f"Cooperation is not weakness - it's strategy. {context} could unite or divide us.",
            f"I've spoken with every household here. The mood is "
            f"{'cautiously optimistic' if m.morale > 60 else 'tense and worried'}.",
            "Compromise isn't defeat. It's the art of everyone losing a little to gain a lot.",
            "The people need a voice they trust. Let's make sure our decisions reflect their will.",
        ],
        'Elder': [
            "I've seen many seasons pass. This settlement has survived worse, but only through unity.",
            "The young are restless, the old are tired. We need a decision that serves both.",
            f"{context}... I recall something similar, years ago. We chose poorly then. Let us choose wisely now.",
            "Patience and wisdom, friends. The greatest danger is acting from fear alone.",
            "Our legacy is not the walls we build, but the choices we make in moments like these.",
        ],
        'Artisan': [
            "Beauty and function must coexist. A settlement without art is just a prison.",
            "I can craft what we need, but I need raw materials and fair conditions.",
            f"{context} speaks to the creative spirit of our community. I'm in favor.",
            "Morale isn't just food and shelter. People need purpose, beauty, and pride.",
            "Let me design something that serves our needs and lifts our spirits.",
        ],
    }
    return tables[fam]


def _reaction_lines(fam: str, event) -> list[str]:
    h = event.headline
    tables = {
        'Farmer': [
            f'"{h}" - This could change everything for our crops. We should prepare.',
            f"The outside world's food situation affects us too. If {h.lower()}, we need contingency plans.",
        ],
        'Warrior': [
            f'I heard about "{h}". If this instability reaches us, we must be fortified.',
            f'The human world is in chaos. "{h}" - this is exactly why we train.',
        ],
        'Scout': [
            f'My contacts beyond the ridge mentioned this: "{h}". The implications for us are clear.',
            f'"{h}" - I\'ve seen firsthand what happens when settlements ignore global shifts.',
        ],
        'Healer': [
            f'"{h}" concerns me deeply. Health crises spread, and we\'re not immune.',
            f'The world beyond matters. "{h}" will affect the herbs and medicines we can access.',
        ],
        'Scholar': [
            f'Fascinating. "{h}" mirrors patterns from the historical records I\'ve been studying.',
            f'"{h}" - history shows us exactly what follows. We should heed the warning.',
        ],
        'Diplomat': [
            f'"{h}" will reshape the political landscape. We should position ourselves wisely.',
            f'The global situation ("{h}") means we need stronger alliances, not isolation.',
        ],
        'Elder': [
            f'In my time, I\'ve seen how events like "{h}" ripple through even remote settlements like ours.',
            f'"{h}" - the young may not understand, but this will touch us all eventually.',
        ],
    }
    return tables.get(fam, [
        f'"{h}" - we should discuss what this means for our settlement.',
        f'Has everyone heard? "{h}". This affects our {event.sim_effect.variable.replace("_", " ")} directly.',
    ])


ACTION_TEMPLATES = {
    'Farmer':   ['Tended the southern fields', 'Harvested root vegetables',
                 'Repaired irrigation channels', 'Planted new crop rows'],
    'Warrior':  ['Patrolled the perimeter', 'Trained with the militia',
                 'Inspected the walls', 'Sharpened weapons at the forge'],
    'Scout':    ['Scouted the eastern ridge', 'Mapped new terrain',
                 'Tracked animal movements', 'Set trail markers'],
    'Healer':   ['Tended to the sick', 'Gathered medicinal herbs',
                 'Brewed healing tonics', 'Checked water purity'],
    'Builder':  ['Reinforced shelter walls', 'Repaired the watchtower',
                 'Cut timber for construction', 'Laid foundation stones'],
    'Hunter':   ['Set traps in the forest', 'Tracked deer herds',
                 'Smoked fish by the river', 'Prepared hunting gear'],
    'Scholar':  ['Studied the archives', "Recorded the day's events",
                 'Taught the young settlers', 'Analyzed weather patterns'],
    'Diplomat': ['Mediated a dispute', 'Organized a community gathering',
                 'Visited each household', 'Drafted new settlement rules'],
    'Elder':    ['Counseled the young workers', 'Shared stories at the fire',
                 'Blessed the new buildings', 'Walked the settlement grounds'],
    'Artisan':  ['Crafted tools at the workshop', 'Decorated the council hall',
                 'Repaired pottery and utensils', 'Wove fabric for shelters'],
}

STORY_QUOTES = {
    'friendship':  ["It's good to have someone you can count on.",
                    'This settlement is home because of the people in it.',
                    'A friend made today is a memory for tomorrow.'],
    'rivalry':     ["Some people just don't understand reason.",
                    "I won't be pushed around. Not by anyone.",
                    "There are two sides to every story, and mine is right."],
    'romance':     ["There's something about this place... the sunsets, the company...",
                    "I didn't expect to feel this way.",
                    'Some things are worth more than gold or grain.'],
    'business':    ['Hard work pays off. Eventually.',
                    'The market waits for no one.',
                    'Every setback is a setup for a comeback.'],
    'achievement': ['I proved something today. To myself, mostly.',
                    'If I can do this, what else is possible?',
                    'The settlement deserves our best effort.'],
    'misfortune':  ["Bad days don't last. At least, that's what I tell myself.",
                    "I've survived worse. Probably.",
                    'Tomorrow will be better. It has to be.'],
    'conflict':    ['Sometimes you have to stand your ground.',
                    "Peace is worth fighting for. Ironic, isn't it?",
                    'I hope cooler heads prevail.'],
    'discovery':   ["There's so much we don't know about this land.",
                    'Every discovery opens ten new questions.',
                    'The world beyond our walls is full of surprises.'],
    'celebration': ['Days like this remind me why we built this place.',
                    "Together, we're capable of wonderful things.",
                    'Let the children remember this joy.'],
}


def _vote_lines(title: str, vote: str) -> list[str]:
    return {
        'yes': [
            f'I vote YES on "{title}". This is what our people need.',
            f'Aye. "{title}" has my full support. The cost is worth the gain.',
            f'I cast my vote in favor. Let\'s move forward with "{title}".',
        ],
        'no': [
            f'I vote NO. "{title}" is too risky at this cost.',
            f'Nay. I cannot support "{title}" given our current situation.',
            f'I oppose this. We have more pressing concerns than "{title}".',
        ],
        'abstain': [
            f'I abstain. I need more information before committing on "{title}".',
            f'I will not vote on this one. My conscience is divided on "{title}".',
        ],
    }.get(vote, [f'I have nothing to add on "{title}".'])


# ══════════════════════════════════════════════════════════════════════════
# TemplateBrain
# ══════════════════════════════════════════════════════════════════════════

class TemplateBrain(Brain):
    """Table-driven Brain.  Pass a seeded rng for reproducible transcripts."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng if rng is not None else random.Random()

    def propose(self, agent, state):
        title, cost, impacts = self.rng.choice(PROPOSAL_TEMPLATES)
        cost_mod = 0.8 if agent.personality.caution > 60 else 1.2
        return Proposal(
            id              = next_id(state, 'prop'),
            title           = title,
            description     = f"{agent.name} proposes: {title}",
            proposed_by     = agent.id,
            cost            = round(cost * cost_mod),
            expected_impact = [Impact(m, d, a) for m, d, a in impacts],
        )

    def vote_weight(self, agent, proposal) -> float:
        p = agent.personality
        w = 50.0
        if proposal.proposed_by == agent.id:
            w += 30
        if proposal.proposed_by in agent.allies:
            w += 20
        if proposal.proposed_by in agent.rivals:
            w -= 25
        w += 0.1 * get_rel_score(agent, proposal.proposed_by)
        w += (p.cooperation - 50) * 0.3
        w -= (p.caution - 50) * 0.2
        if proposal.cost > 30:
            w -= 10
        if any(i.direction == 'up' and i.amount > 12 for i in proposal.expected_impact):
            w += 10
        return w

    def vote(self, agent, proposal, state):
        w = self.vote_weight(agent, proposal)
        roll = self.rng.random() * 100
        if roll < w:
            return 'yes'
        if roll < w + 10:
            return 'abstain'
        return 'no'

    def dialogue(self, agent, context, state):
        return self.rng.choice(_dialogue_lines(family(agent.archetype), context, state.metrics))

    def news_reaction(self, agent, event, state):
        return self.rng.choice(_reaction_lines(family(agent.archetype), event))

    def vote_statement(self, agent, proposal, vote, state):
        return self.rng.choice(_vote_lines(proposal.title, vote))

    def chair_remark(self, agent, kind, state, proposal=None):
        if kind == 'opening':
            n = len(state.council.proposals)
            return (f"Order, order. The council of day {state.day} is in session. "
                    f"{n} proposal{'s' if n != 1 else ''} stand before us tonight.")
        if kind == 'tally' and proposal is not None:
            t = proposal.tally or {'yes': 0, 'no': 0, 'abstain': 0}
            return (f'The count on "{proposal.title}": {t["yes"]} for, {t["no"]} against, '
                    f'{t["abstain"]} abstaining. The motion is {proposal.status}.')
        return self.rng.choice([
            'This session is adjourned. Go home and rest, friends.',
            'That concludes our business for tonight. May tomorrow be kind to us.',
            'The council stands adjourned. What we decided here, we carry out together.',
        ])

    def decide_action(self, agent, state):
        return self.rng.choice(ACTION_TEMPLATES[family(agent.archetype)])

    def quote(self, agent, story):
        lines = STORY_QUOTES.get(story.category)
        return self.rng.choice(lines) if lines else None
