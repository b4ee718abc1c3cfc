"""Circular calendar ordering: today-onward first, then wrap to January."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy import and_, case, or_
from sqlalchemy.sql.elements import ColumnElement


def today_in(tz_name: str) -> date:
    """Current calendar date in the named IANA zone."""
    return datetime.now(ZoneInfo(tz_name)).date()


def is_upcoming(month_col: Any, day_col: Any, today: date) -> ColumnElement:
    """``month > m OR (month = m AND day >= d)``; *today* is bound, not inlined."""
    return or_(
        month_col > today.month,
        and_(month_col == today.month, day_col >= today.day),
    )


def upcoming_first_order(month_col: Any, day_col: Any, today: date) -> list[ColumnElement]:
    """
    ORDER BY that rotates the yearly calendar to start at *today*.

    With today = 15 March, (1,10) (3,15) (3,20) (12,31) sorts as
    (3,15) (3,20) (12,31) (1,10).
    """
    rank = case((is_upcoming(month_col, day_col, today), 0), else_=1)
    return [rank.asc(), month_col.asc(), day_col.asc()]


def is_past(month_col: Any, day_col: Any, today: date) -> ColumnElement:
    return or_(
        month_col < today.month,
        and_(month_col == today.month, day_col < today.day),
    )


def calendar_wrap_predicate(month_col: Any, day_col: Any, today: date) -> ColumnElement:
    """Upcoming OR already-passed; admits every row but keeps both halves explicit."""
    return or_(
        is_upcoming(month_col, day_col, today),
        is_past(month_col, day_col, today),
    )
