"""
test_newspaper.py — pytest suite for agent_city.newspaper
==========================================================
Covers: news item builders, chronicle ranking and once-per-day closing,
and the daily newspaper edition.
"""

import random

from agent_city import newspaper
from agent_city.human_news import human_news_gateway
from agent_city.inhabitants import make_agent
from agent_city.state import (
    CouncilSession, NewsItem, Proposal, StoryEvent, WorldEvent, WorldState,
)
from agent_city.world import Metrics, push_front


# ─────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────

def _story(day, category, title):
    return StoryEvent(f"story-{title}", day, 14, category, title, f"{title} happened", [])


def _state(day=2, hour=4, **kw):
    return WorldState(day=day, hour=hour, **kw)


# ─────────────────────────────────────────────────────
# News items
# ─────────────────────────────────────────────────────

class TestNewsItems:
    def test_morning_brief_mentions_outside_news(self):
        s = _state(day=3, hour=5, human_events=human_news_gateway(3))
        item = newspaper.morning_brief(s, random.Random(1))
        assert item.category == 'morning_brief'
        assert item.day == 3
        assert 'Day 3 begins' in item.body
        for he in s.human_events:
            assert he.headline in item.body

    def test_night_recap_names_the_previous_night(self):
        item = newspaper.night_recap(_state(day=4), 0)
        assert item.headline == 'Night 3 recap'
        assert 'a quiet night' in item.body
        assert item.severity == 'low'

    def test_night_recap_on_day_one(self):
        assert newspaper.night_recap(_state(day=1), 0).headline == 'Night 1 recap'

    def test_busy_night(self):
        item = newspaper.night_recap(_state(day=2), 3)
        assert '3 disturbances' in item.body
        assert item.severity == 'medium'

    def test_breaking_news(self):
        p = Proposal('prop-1', 'Dig a new well', '', 'agent-1', 20,
                     status='approved', tally={'yes': 30, 'no': 12, 'abstain': 8})
        item = newspaper.breaking_news(_state(day=2, hour=18), p)
        assert item.headline == 'Council approves: Dig a new well'
        assert item.category == 'breaking'
        assert item.severity == 'medium'
        assert '30' in item.body and '12' in item.body and '8 abstaining' in item.body

    def test_ids_unique(self):
        s = _state()
        ids = {newspaper.night_recap(s, 0).id for _ in range(5)}
        assert len(ids) == 5


# ─────────────────────────────────────────────────────
# Chronicle
# ─────────────────────────────────────────────────────

class TestChronicle:
    def test_higher_weight_wins(self):
        s = _state()
        s.story_log.append(_story(1, 'friendship', 'Lunch together'))
        s.story_log.append(_story(1, 'rivalry', 'Harsh words'))
        s.story_log.append(_story(1, 'business', 'Record day'))
        s.story_log.append(_story(2, 'misfortune', 'Not today'))
        entry = newspaper.compile_chronicle(s, 1, 0.0)
        assert entry.headlines == ['Harsh words', 'Record day', 'Lunch together']

    def test_ties_keep_most_recent_first(self):
        s = _state()
        s.story_log.append(_story(1, 'rivalry', 'Earlier'))
        s.story_log.append(_story(1, 'romance', 'Later'))
        entry = newspaper.compile_chronicle(s, 1, 0.0)
        assert entry.headlines[:2] == ['Later', 'Earlier']

    def test_news_items_are_candidates(self):
        s = _state()
        push_front(s.news, NewsItem('news-1', 'Council approves: Build a dock', '', 'breaking', 'medium', 1))
        entry = newspaper.compile_chronicle(s, 1, 0.0)
        assert entry.headlines == ['Council approves: Build a dock']

    def test_quiet_day_fallback(self):
        entry = newspaper.compile_chronicle(_state(), 1, 5.0)
        assert entry.headlines == ['Day 1: a quiet day in Agent City']
        assert entry.key_vote is None
        assert entry.top_moments == []
        assert entry.timestamp == 5.0

    def test_key_vote_and_moments(self):
        s = _state()
        s.council = CouncilSession(day=1, proposals=[
            Proposal('prop-1', 'Build a storehouse', '', 'agent-1', 28, status='rejected'),
            Proposal('prop-2', 'Organize a festival', '', 'agent-2', 15, status='approved'),
        ])
        for i in range(5):
            push_front(s.recent_events, WorldEvent(f"evt-{i}", 'illness', f"moment {i}", 'low', 1, 'day'))
        push_front(s.recent_events, WorldEvent('evt-x', 'illness', 'today', 'low', 2, 'night'))
        entry = newspaper.compile_chronicle(s, 1, 0.0)
        assert entry.key_vote == {'title': 'Build a storehouse', 'result': 'rejected'}
        assert entry.top_moments == ['moment 4', 'moment 3', 'moment 2']

    def test_metrics_snapshot_is_a_copy(self):
        s = _state(metrics=Metrics(morale=42))
        entry = newspaper.compile_chronicle(s, 1, 0.0)
        s.metrics.morale = 99
        assert entry.metrics_snapshot['morale'] == 42

    def test_close_day_once(self):
        s = _state(day=2)
        first = newspaper.close_day(s)
        assert first.day == 1
        assert s.last_chronicle_day == 1
        assert newspaper.close_day(s) is None

    def test_close_day_skips_day_zero(self):
        s = _state(day=1)
        assert newspaper.close_day(s) is None
        assert s.last_chronicle_day == 0


# ─────────────────────────────────────────────────────
# Daily newspaper
# ─────────────────────────────────────────────────────

class TestNewspaperEdition:
    def test_quiet_edition(self):
        s = _state(day=1, hour=5)
        paper = newspaper.generate_newspaper(s, random.Random(1))
        assert paper.masthead == newspaper.MASTHEAD
        assert paper.headline == 'Day 1: Life Goes On in Agent City'
        assert paper.quote_of_the_day['agent'] == 'Unknown'
        assert paper.weather_report.startswith('Clear skies')

    def test_top_story_leads(self):
        s = _state(day=2, hour=5)
        s.story_log.append(_story(1, 'friendship', 'Lunch together'))
        s.story_log.append(_story(2, 'rivalry', 'Harsh words'))
        paper = newspaper.generate_newspaper(s, random.Random(1))
        assert paper.headline == 'Harsh words'
        assert paper.articles[0]['headline'] == 'Lunch together'

    def test_crisis_articles_and_cap(self):
        s = _state(day=2, hour=5, metrics=Metrics(morale=20, food_days=10, unrest=60))
        for i in range(10):
            s.story_log.append(_story(2, 'business', f"Deal {i}"))
        paper = newspaper.generate_newspaper(s, random.Random(1))
        headlines = [a['headline'] for a in paper.articles]
        assert len(paper.articles) <= 6
        assert 'Morale Crisis Deepens' in headlines
        assert 'Food Supplies Running Low' in headlines

    def test_quote_of_the_day(self):
        agent = make_agent(random.Random(1), 1, 'adult')
        push_front(agent.recent_quotes, 'Tomorrow will be better.')
        s = _state(day=2, hour=5, agents=[agent])
        paper = newspaper.generate_newspaper(s, random.Random(1))
        assert paper.quote_of_the_day == {'quote': 'Tomorrow will be better.', 'agent': agent.name}
