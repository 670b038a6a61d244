# (c) 2026 (KriaetvAspie / AspieTheBard)
# Licensed under the Polyform Noncommercial License 1.0.0
"""
config.py — Shared configuration constants for the Agent City simulation.
"""

# ── Simulation length (CLI runs only) ───────────────────────────────────
TICKS      = 72     # simulated hours per CLI run (three days)
START_HOUR = 6      # hour of day the bootstrap world starts at

# ── Settlement ──────────────────────────────────────────────────────────
MAP_SIZE        = 60          # map is MAP_SIZE × MAP_SIZE tiles
POP_CAP         = 1000        # upper clamp for Metrics.population
COUNCIL_POSITION = (30, 30)   # council hall tile (x, y)

# Agent-count distribution handed to create_initial_state()
AGE_DISTRIBUTION = {
    'child': 8,
    'teen':  6,
    'adult': 28,
    'elder': 8,
}

# ── Hour-of-day policy ──────────────────────────────────────────────────
COUNCIL_START_HOUR = 18   # evening hour the session opens
COUNCIL_END_HOUR   = 21   # evening hour the session closes
MIDDAY_HOUR        = 12   # agents consult the brain for an action label
PRODUCTION_HOUR    = 17   # farms and wells report the day's output
WATCH_HOUR         = 22   # night watch split
PREDAWN_HOUR       = 4    # night recap, weather, drift, chronicle

# ── Log caps ────────────────────────────────────────────────────────────
LOG_CAP             = 50    # state.news / state.recent_events
STORY_LOG_CAP       = 100   # state.story_log
AGENT_STORY_LOG_CAP = 30
MOOD_WINDOW         = 48    # two simulated days of hourly samples
QUOTES_CAP          = 5
ACTIONS_CAP         = 5
VOTE_HISTORY_CAP    = 10
REL_HISTORY_CAP     = 10

# ── Relationship thresholds ─────────────────────────────────────────────
ALLY_THRESHOLD  = 40
RIVAL_THRESHOLD = -40

# ── Daily production (PRODUCTION_HOUR) ──────────────────────────────────
FOOD_PER_PRODUCER = 0.5    # food_days added per Farmer/Fisher/Hunter
WATER_PER_WELL    = 0.6    # water_days added per well tile on the map
POP_PER_RATION    = 50     # residents consuming one day of food and water

# ── Per-hour event probabilities ────────────────────────────────────────
MORNING_EVENT_CHANCE   = 0.30   # first morning hour only
DAY_EVENT_CHANCE       = 0.10
NIGHT_EVENT_CHANCE     = 0.05
WEATHER_CHANGE_CHANCE  = 0.30
MOVE_CHANCE            = 0.30
ACTION_CHANCE          = 0.50
STORY_QUOTE_CHANCE     = 0.70

# Per-tick firing probability of each story generator
STORY_CHANCES = {
    'friendship':  0.12,
    'rivalry':     0.08,
    'romance':     0.05,
    'business':    0.06,
    'achievement': 0.04,
    'misfortune':  0.04,
    'discovery':   0.03,
}

# ── Persistence caps (store.MemoryStore) ────────────────────────────────
SNAPSHOT_CAP  = 200
EVENT_CAP     = 2000
CHRONICLE_CAP = 100

# ── Output locations ────────────────────────────────────────────────────
DATA_DIR        = 'data'        # metrics CSVs and the final state JSON
LOG_DIR         = 'logs'        # run_<timestamp>.txt
METRICS_ENABLED = True
