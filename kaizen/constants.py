from __future__ import annotations

APP_ORG = "Kaizen"
APP_NAME = "Kaizen"

SCHEMA_VERSION = 1

DB_PATH_ENV = "KAIZEN_DB_PATH"
LOG_LEVEL_ENV = "KAIZEN_LOG_LEVEL"

# Backward scheduling
DEFAULT_FINAL_TASK_NAME = "Submission"
FINAL_TASK_CONTEXT = "Submission"
DEFAULT_CONTEXT = "General"
DEFAULT_EST_MINUTES = 60

# Urgency tiers (higher score = more urgent)
SCORE_CRISIS = 100
SCORE_DUE_TODAY = 90
SCORE_PLAN_PASSED = 80
SCORE_PROXIMITY = 70
SCORE_ON_TRACK = 10
SCORE_SOMEDAY = 0

SENTINEL_DAYS = 999.0
DUE_TODAY_WINDOW_DAYS = 1.0
PROXIMITY_DAYS = 3.0

VIEWS = ("sprint", "all")
DEFAULT_VIEW = "sprint"

# UI
SEARCH_DEBOUNCE_MS = 150
URGENCY_UPDATE_INTERVAL_MS = 1_000
