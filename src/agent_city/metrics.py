# (c) 2026 (KriaetvAspie / AspieTheBard)
# Licensed under the Polyform Noncommercial License 1.0.0
"""
metrics.py — Per-tick metrics logger for Agent City runs.

Writes, under output_dir:
    metrics_seed_<n>.csv   one row per tick: clock, every settlement metric,
                           mean mood, ally / rival edge counts, stories told
    stories_seed_<n>.csv   one row per story event
    run_summaries.csv      one row per finished run (appended by finalize)
"""

import csv
import os
import time
import tracemalloc
from pathlib import Path

from . import config

_METRIC_COLUMNS = [
    'population', 'food_days', 'water_days', 'morale', 'unrest',
    'health_risk', 'fire_stability',
]


class MetricsLogger:
    """Collects per-tick settlement metrics and writes them to CSV."""

    def __init__(self, seed: int, output_dir: str = "data"):
        self.seed = seed
        self.output_dir = output_dir

        Path(output_dir).mkdir(parents=True, exist_ok=True)

        self._metrics_path = os.path.join(output_dir, f"metrics_seed_{seed}.csv")
        self._stories_path = os.path.join(output_dir, f"stories_seed_{seed}.csv")

        self._metrics_fh = open(self._metrics_path, 'w', newline='', encoding='utf-8')
        self._stories_fh = open(self._stories_path, 'w', newline='', encoding='utf-8')

        self._metrics_writer = csv.writer(self._metrics_fh)
        self._stories_writer = csv.writer(self._stories_fh)

        self._metrics_writer.writerow(
            ['seed', 'tick', 'day', 'hour', 'phase', 'weather']
            + _METRIC_COLUMNS
            + ['mean_mood', 'ally_edges', 'rival_edges', 'story_count']
        )
        self._metrics_fh.flush()

        self._stories_writer.writerow([
            'seed', 'tick', 'day', 'hour', 'category', 'title', 'involved_agents',
        ])
        self._stories_fh.flush()

        # Cumulative counters
        self.total_stories = 0
        self.total_events = 0
        self.proposals_approved = 0
        self.proposals_rejected = 0
        self.chronicles = 0

        # Running stats for finalize
        self._peak_morale = 0.0
        self._min_morale = float('inf')
        self._peak_unrest = 0.0
        self._category_counts: dict = {}

        self.start_time = time.time()
        tracemalloc.start()

    # ──────────────────────────────────────────────────────────────────────
    # Agent-level aggregates
    # ──────────────────────────────────────────────────────────────────────

    @staticmethod
    def _mean_mood(agents) -> float:
        moods = [a.mood_history[-1] for a in agents if a.mood_history]
        if not moods:
            return 0.0
        return round(sum(moods) / len(moods), 2)

    @staticmethod
    def _edge_counts(agents) -> tuple:
        """Directed ally / rival edges across the whole graph."""
        return (sum(len(a.allies) for a in agents),
                sum(len(a.rivals) for a in agents))

    # ──────────────────────────────────────────────────────────────────────
    # Per-tick recording
    # ──────────────────────────────────────────────────────────────────────

    def record_tick(self, state, result) -> None:
        """Called once per tick with the new state and its TickResult."""
        m = state.metrics
        allies, rivals = self._edge_counts(state.agents)

        self._peak_morale = max(self._peak_morale, m.morale)
        self._min_morale  = min(self._min_morale, m.morale)
        self._peak_unrest = max(self._peak_unrest, m.unrest)
        self.total_events += len(result.events)
        if result.chronicle is not None:
            self.chronicles += 1
        if state.hour == config.COUNCIL_START_HOUR and state.council.day == state.day:
            for p in state.council.proposals:
                if p.status == 'approved':
                    self.proposals_approved += 1
                elif p.status == 'rejected':
                    self.proposals_rejected += 1

        self._metrics_writer.writerow(
            [self.seed, state.tick, state.day, state.hour, state.phase, state.weather]
            + [getattr(m, col) for col in _METRIC_COLUMNS]
            + [self._mean_mood(state.agents), allies, rivals, len(result.stories)]
        )
        self.record_stories(state.tick, result.stories)

        # Flush once per simulated day
        if state.tick % 24 == 0:
            self._metrics_fh.flush()

    def record_stories(self, tick: int, stories) -> None:
        for story in stories:
            self.total_stories += 1
            self._category_counts[story.category] = self._category_counts.get(story.category, 0) + 1
            self._stories_writer.writerow([
                self.seed, tick, story.day, story.hour, story.category,
                story.title, ';'.join(story.involved_agents),
            ])
        if stories:
            self._stories_fh.flush()

    # ──────────────────────────────────────────────────────────────────────
    # Finalize: run-level summary
    # ──────────────────────────────────────────────────────────────────────

    def finalize(self, state) -> None:
        """Called once at end of run.  Appends one row to run_summaries.csv."""
        wall_clock = round(time.time() - self.start_time, 2)
        peak_ram = round(tracemalloc.get_traced_memory()[1] / (1024 * 1024), 2)
        tracemalloc.stop()

        if self._min_morale == float('inf'):
            self._min_morale = state.metrics.morale
        allies, rivals = self._edge_counts(state.agents)
        top_category = max(self._category_counts, key=self._category_counts.get, default='')

        summary_path = os.path.join(self.output_dir, "run_summaries.csv")
        file_exists = os.path.isfile(summary_path)
        with open(summary_path, 'a', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            if not file_exists:
                writer.writerow([
                    'seed', 'ticks', 'final_day',
                    'final_morale', 'peak_morale', 'min_morale',
                    'final_unrest', 'peak_unrest',
                    'final_food_days', 'final_water_days',
                    'total_stories', 'top_story_category', 'total_events',
                    'proposals_approved', 'proposals_rejected', 'chronicles',
                    'ally_edges', 'rival_edges',
                    'wall_clock_seconds', 'peak_ram_mb',
                ])
            writer.writerow([
                self.seed, state.tick, state.day,
                state.metrics.morale, self._peak_morale, self._min_morale,
                state.metrics.unrest, self._peak_unrest,
                state.metrics.food_days, state.metrics.water_days,
                self.total_stories, top_category, self.total_events,
                self.proposals_approved, self.proposals_rejected, self.chronicles,
                allies, rivals,
                wall_clock, peak_ram,
            ])

    # ──────────────────────────────────────────────────────────────────────
    # Cleanup
    # ──────────────────────────────────────────────────────────────────────

    def close(self) -> None:
        """Flush and close both CSV file handles.  Call after finalize()."""
        for fh in (self._metrics_fh, self._stories_fh):
            fh.flush()
            fh.close()
