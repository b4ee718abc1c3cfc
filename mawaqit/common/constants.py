"""Enums and constants shared across Mawaqit modules."""

from __future__ import annotations

import enum


# ── Entities exposed through the list-query engine ─────────────────

class Entity(str, enum.Enum):
    section = "section"
    prayer_times = "prayer_times"
    hadith = "hadith"
    adhkar = "adhkar"
    adhkar_category = "adhkar_category"
    special_topic = "special_topic"
    user = "user"


# ── Auth / Roles ────────────────────────────────────────────────────

class RoleName(str, enum.Enum):
    admin = "admin"
    user = "user"


# ── List query parameters ───────────────────────────────────────────

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

FILTER_PAIR_SEPARATOR = ","
FILTER_KEY_VALUE_SEPARATOR = ":"
SEARCH_FIELDS_SEPARATOR = ","

# ── Misc constants ──────────────────────────────────────────────────

TIME_FORMAT = "%H:%M"
MIN_DAY, MAX_DAY = 1, 31
MIN_MONTH, MAX_MONTH = 1, 12

# Signed 64-bit bounds of BIGINT columns and of LIMIT / OFFSET
INT64_MIN, INT64_MAX = -(2 ** 63), 2 ** 63 - 1
