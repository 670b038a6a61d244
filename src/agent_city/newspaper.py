# (c) 2026 (KriaetvAspie / AspieTheBard)
# Licensed under the Polyform Noncommercial License 1.0.0
"""
newspaper.py — Layer 4: headlines, news items, chronicle, daily paper.

Pure templated interpolation over day, metrics and weather; nothing here calls
an external text model.  Only close_day() writes to the state (the
last_chronicle_day guard); everything else just builds records.

Call order each tick (from sim.py phase handlers):
    first morning hour   morning_brief(s, rng)       then generate_newspaper(s, rng)
    council tally        breaking_news(s, proposal)  (diplomacy.py)
    pre-dawn hour        night_recap(s, disturbances) then close_day(s)

Public API:
    HEADLINE_WEIGHTS                       category → chronicle rank
    morning_headline(s, rng)               → str
    morning_brief(s, rng)                  → NewsItem
    night_recap(s, disturbances)           → NewsItem
    breaking_news(s, proposal)             → NewsItem
    compile_chronicle(s, day, timestamp)   → ChronicleEntry
    close_day(s)                           → ChronicleEntry | None (at most one per day)
    generate_newspaper(s, rng)             → NewspaperEdition
"""

from __future__ import annotations

import random

from .state import (ChronicleEntry, NewsItem, NewspaperEdition, Proposal,
                    WorldState, next_id)
from .world import clock_stamp

MASTHEAD = 'THE AGENT CITY CHRONICLE'

# Chronicle ranking; anything unlisted (news categories included) ranks 0
HEADLINE_WEIGHTS = {
    'rivalry':     3,
    'conflict':    3,
    'romance':     3,
    'misfortune':  3,
    'achievement': 2,
    'business':    2,
    'celebration': 2,
    'friendship':  1,
    'discovery':   1,
}

# The paper weighs its front page a little differently from the chronicle
_EDITION_WEIGHTS = {
    'rivalry': 8, 'conflict': 8, 'romance': 7, 'misfortune': 7,
    'achievement': 6, 'discovery': 6, 'business': 5, 'celebration': 5,
    'friendship': 4,
}
_EDITION_STORY_WINDOW = 20
_EDITION_ARTICLES     = 6

_WEATHER_REPORTS = {
    'clear': 'Clear skies expected throughout the day. Perfect conditions for outdoor work.',
    'rain':  'Rain continues to fall over the settlement. Farmers welcome the moisture.',
    'storm': 'Severe storms are forecast. Citizens advised to secure their homes and stay indoors.',
    'fog':   'Dense fog blankets the area this morning. Visibility is limited.',
    'heat':  'A heat wave grips the region. Residents are advised to stay hydrated.',
}


# ══════════════════════════════════════════════════════════════════════════
# News items
# ══════════════════════════════════════════════════════════════════════════

def morning_headline(s: WorldState, rng: random.Random) -> str:
    m = s.metrics
    return rng.choice([
        f"Day {s.day}: The settlement awakens under {s.weather} skies",
        f"Dawn breaks over Agent City - Day {s.day}",
        f"A new day dawns. Morale stands at {m.morale:.0f}%",
        f"Day {s.day} begins with {m.food_days:.0f} days of food remaining",
        f"The {s.weather} weather continues as Day {s.day} starts",
    ])


def _news(s: WorldState, headline: str, body: str, category: str,
          severity: str = 'low') -> NewsItem:
    return NewsItem(
        id        = next_id(s, 'news'),
        headline  = headline,
        body      = body,
        category  = category,
        severity  = severity,
        day       = s.day,
        timestamp = s.last_tick_at,
    )


def morning_brief(s: WorldState, rng: random.Random) -> NewsItem:
    m = s.metrics
    body = (f"Day {s.day} begins. Population: {m.population}. "
            f"Morale: {m.morale:.0f}%.")
    if s.human_events:
        body += ' From beyond the walls: ' + '; '.join(
            h.headline for h in s.human_events) + '.'
    return _news(s, morning_headline(s, rng), body, 'morning_brief')


def night_recap(s: WorldState, disturbances: int) -> NewsItem:
    """Recap of the night that is ending; *disturbances* = night events seen."""
    night = max(1, s.day - 1)
    if disturbances == 0:
        report = 'a quiet night'
    elif disturbances == 1:
        report = 'a disturbance'
    else:
        report = f"{disturbances} disturbances"
    on_watch = sum(1 for a in s.agents if a.status == 'on_watch')
    body = (f"The settlement rests. {on_watch} watchers report {report}. "
            f"Food: {s.metrics.food_days:.0f} days, water: {s.metrics.water_days:.0f} days.")
    severity = 'medium' if disturbances > 1 else 'low'
    return _news(s, f"Night {night} recap", body, 'night_recap', severity)


def breaking_news(s: WorldState, proposal: Proposal) -> NewsItem:
    t = proposal.tally or {'yes': 0, 'no': 0, 'abstain': 0}
    body = (f"The proposal passed with {t['yes']} votes in favor, {t['no']} against "
            f"and {t['abstain']} abstaining.")
    return _news(s, f"Council approves: {proposal.title}", body, 'breaking', 'medium')


# ══════════════════════════════════════════════════════════════════════════
# Chronicle
# ══════════════════════════════════════════════════════════════════════════

def _ranked_headlines(s: WorldState, day: int) -> list[str]:
    # Most-recent-first candidates; sorted() is stable so ties keep that order
    stories = [(e.title, e.category) for e in reversed(s.story_log) if e.day == day]
    news    = [(n.headline, n.category) for n in s.news if n.day == day]
    ranked  = sorted(stories + news, key=lambda c: -HEADLINE_WEIGHTS.get(c[1], 0))
    return [title for title, _ in ranked[:3]]


def compile_chronicle(s: WorldState, day: int, timestamp: float) -> ChronicleEntry:
    headlines = _ranked_headlines(s, day) or [f"Day {day}: a quiet day in Agent City"]
    key_vote = None
    if s.council.day == day and s.council.proposals:
        first = s.council.proposals[0]
        key_vote = {'title': first.title, 'result': first.status}
    top_moments = [e.description for e in s.recent_events if e.day == day][:3]
    return ChronicleEntry(
        day              = day,
        headlines        = headlines,
        key_vote         = key_vote,
        top_moments      = top_moments,
        metrics_snapshot = s.metrics.as_dict(),
        timestamp        = timestamp,
    )


def close_day(s: WorldState) -> ChronicleEntry | None:
    """Chronicle the day that just ended, once.

    The pre-dawn hour already belongs to the next calendar day, so the closed
    day is s.day - 1.  Days below 1 and days already chronicled are skipped.
    """
    day = s.day - 1
    if day < 1 or day <= s.last_chronicle_day:
        return None
    entry = compile_chronicle(s, day, s.last_tick_at)
    s.last_chronicle_day = day
    print(f"{clock_stamp(s.day, s.hour)} CHRONICLE Day {day}: {entry.headlines[0]}")
    if entry.key_vote:
        print(f"    key vote: {entry.key_vote['title']} ({entry.key_vote['result']})")
    return entry


# ══════════════════════════════════════════════════════════════════════════
# Daily newspaper
# ══════════════════════════════════════════════════════════════════════════

def _article(story) -> dict:
    body = story.description + (f" {story.consequence}" if story.consequence else '')
    return {'headline': story.title, 'body': body, 'category': story.category}


def _metric_articles(m) -> list[dict]:
    out = []
    if m.morale < 40:
        out.append({
            'headline': 'Morale Crisis Deepens',
            'body': (f"Community morale has fallen to {m.morale:.0f}. Citizens express growing "
                     "dissatisfaction with current conditions. Local leaders are urged to take action."),
            'category': 'crisis',
        })
    elif m.morale > 80:
        out.append({
            'headline': 'Spirits Soar Across the Settlement',
            'body': f"Morale reaches an impressive {m.morale:.0f}. Citizens report high satisfaction with life in Agent City.",
            'category': 'celebration',
        })
    if m.food_days < 30:
        out.append({
            'headline': 'Food Supplies Running Low',
            'body': (f"Food reserves have dropped to {m.food_days:.0f} days. Farmers are working overtime "
                     "to replenish stocks before the situation becomes critical."),
            'category': 'crisis',
        })
    if m.unrest > 30:
        out.append({
            'headline': 'Rising Tensions in the Streets',
            'body': (f"Unrest levels have climbed to {m.unrest:.0f}. Watch patrols have been increased "
                     "in response to growing discontent."),
            'category': 'conflict',
        })
    return out


def _council_recap(s: WorldState) -> dict | None:
    c = s.council
    if not c.dialogue or c.day not in (s.day, s.day - 1):
        return None
    lines = [f'"{p.title}" was {p.status}' for p in c.proposals if p.status != 'pending']
    if not lines:
        return None
    return {
        'headline': 'Council Session Recap',
        'body':     f"The council met on day {c.day}. " + '. '.join(lines) + '.',
        'category': 'politics',
    }


def generate_newspaper(s: WorldState, rng: random.Random) -> NewspaperEdition:
    """Today's edition: yesterday's and today's stories, crises, council, weather."""
    day = s.day
    recent = [e for e in reversed(s.story_log) if e.day in (day, day - 1)]
    recent = recent[:_EDITION_STORY_WINDOW]
    ranked = sorted(recent, key=lambda e: -_EDITION_WEIGHTS.get(e.category, 3))

    if ranked:
        top = ranked[0]
        headline      = top.title
        headline_body = _article(top)['body']
    else:
        headline      = f"Day {day}: Life Goes On in Agent City"
        headline_body = ('Another peaceful day in the settlement. Citizens go about their daily '
                         'routines as the community continues to grow.')

    articles = [_article(e) for e in ranked[1:5]]
    articles += _metric_articles(s.metrics)
    recap = _council_recap(s)
    if recap:
        articles.append(recap)

    quotable = [a for a in s.agents if a.recent_quotes]
    if quotable:
        speaker = rng.choice(quotable)
        quote = {'quote': speaker.recent_quotes[0], 'agent': speaker.name}
    else:
        quote = {'quote': 'Together we build something greater than ourselves.', 'agent': 'Unknown'}

    m = s.metrics
    return NewspaperEdition(
        day              = day,
        masthead         = MASTHEAD,
        headline         = headline,
        headline_body    = headline_body,
        articles         = articles[:_EDITION_ARTICLES],
        weather_report   = _WEATHER_REPORTS.get(s.weather, 'Weather conditions are normal.'),
        population_note  = f"Population: {m.population} | Food: {m.food_days:.0f} days | Morale: {m.morale:.0f}",
        quote_of_the_day = quote,
        timestamp        = s.last_tick_at,
    )
