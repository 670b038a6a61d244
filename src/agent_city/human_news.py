# (c) 2026 (KriaetvAspie / AspieTheBard)
# Licensed under the Polyform Noncommercial License 1.0.0
"""
human_news.py — Stand-in gateway for news from the world outside the settlement.

human_news_gateway(day) is a pure function of the day: three fixed sets of
three headlines rotate by day % 3.  A real feed can replace it by passing any
callable with the same signature to sim.execute_tick(news_gateway=...).
Each record's sim_effect.variable names a Metrics field.
"""

from .state import HumanWorldEvent, SimEffect

_SAMPLE_EVENTS = [
    [
        ('UN reports global food prices surge 12% this quarter', 'Reuters',
         'food_days', -3, 'Supply chain pressures reduce food security'),
        ('Major wildfire season predicted for Northern Hemisphere', 'National Geographic',
         'fire_stability', -8, 'Rising fire risk in surrounding regions'),
        ('WHO launches new pandemic preparedness framework', 'BBC',
         'health_risk', -4, 'Better health protocols adopted'),
    ],
    [
        ('Breakthrough in solar desalination technology', 'MIT Tech Review',
         'water_days', 5, 'Water purification improvements'),
        ('Political unrest spreads across three regions', 'Al Jazeera',
         'unrest', 6, 'Global instability raises tensions'),
        ('Record crop yields reported in Southeast Asia', 'FAO Report',
         'food_days', 4, 'Agricultural innovations bear fruit'),
    ],
    [
        ('Climate summit reaches historic water accord', 'The Guardian',
         'water_days', 6, 'Global water conservation efforts'),
        ('Earthquake damages infrastructure in coastal cities', 'CNN',
         'health_risk', 5, 'Natural disaster effects ripple outward'),
        ('New community resilience programs show promise', 'NPR',
         'morale', 4, 'Community-building efforts inspire cooperation'),
    ],
]


def human_news_gateway(day: int) -> list[HumanWorldEvent]:
    """Today's three outside-world headlines; fresh records on every call."""
    return [
        HumanWorldEvent(headline, source, SimEffect(variable, modifier, desc))
        for headline, source, variable, modifier, desc in _SAMPLE_EVENTS[day % len(_SAMPLE_EVENTS)]
    ]
