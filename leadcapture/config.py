"""
Centralized configuration — env vars and analytics constants.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Database ─────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── Analytics ────────────────────────────────────────────────────────────────
# IANA zone used for day/hour bucketing of aware timestamps and for
# anchoring date-only filter bounds. Naive timestamps are taken as local.
ANALYTICS_TIMEZONE = os.getenv('ANALYTICS_TIMEZONE', 'UTC')

# ── Lead quality score buckets (label, inclusive upper bound) ────────────────
SCORE_BUCKETS = [
    ('0-20', 20),
    ('21-40', 40),
    ('41-60', 60),
    ('61-80', 80),
    ('81-100', 100),
]

SCORE_BUCKET_LABELS = [label for label, _ in SCORE_BUCKETS]

# ── Lead count stats ─────────────────────────────────────────────────────────
# Trailing window for the per-day trend. Out-of-range requests use the default.
TREND_DAYS_DEFAULT = 30
TREND_DAYS_MAX = 365
# "Last 7 days" includes today.
RECENT_DAYS = 7
