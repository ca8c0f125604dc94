"""Centralized constants for the Mnemora application.

All magic numbers and scheduling defaults live here so every layer
imports from a single source of truth.
"""

# ---------- SM-2 ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
PASSING_QUALITY = 3
MIN_QUALITY = 0
MAX_QUALITY = 5
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
FAILED_INTERVAL_DAYS = 1

# ---------- Mastery ----------
MASTERED_INTERVAL_DAYS = 21

# ---------- Progress ----------
REVIEW_HISTORY_LIMIT = 50

# ---------- Interval formatting ----------
DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30
DAYS_PER_YEAR = 365
