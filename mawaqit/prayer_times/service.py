"""Prayer times service layer.

The list view uses the calendar-wrapping order: entries from today onward
come first, then the rest of the year from January.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mawaqit.common.constants import Entity
from mawaqit.common.exceptions import ConflictError, NotFoundException, ValidationException
from mawaqit.common.filters import contains_ci
from mawaqit.common.ordering import calendar_wrap_predicate, today_in, upcoming_first_order
from mawaqit.common.pagination import PaginatedResponse
from mawaqit.common.query import EntityQuery, ListQueryParams, build_query_spec, fetch_page
from mawaqit.common.safelist import ColumnSafelist
from mawaqit.config import settings
from mawaqit.prayer_times.models import PrayerTime
from mawaqit.prayer_times.schemas import (
    TIME_FIELDS,
    PrayerTimeCreate,
    PrayerTimeResponse,
    PrayerTimeUpdate,
)
from mawaqit.sections.models import Section
from mawaqit.sections.service import SectionService

logger = logging.getLogger(__name__)

PRAYER_TIMES_QUERY = EntityQuery(
    entity=Entity.prayer_times,
    envelope_key="prayer_times",
    select_from=PrayerTime.__table__.join(
        Section.__table__, PrayerTime.section_id == Section.id,
    ),
    projection=(
        PrayerTime.id,
        PrayerTime.day,
        PrayerTime.month,
        PrayerTime.fajr_first_time,
        PrayerTime.fajr_second_time,
        PrayerTime.sunrise_time,
        PrayerTime.dhuhr_time,
        PrayerTime.asr_time,
        PrayerTime.maghrib_time,
        PrayerTime.isha_time,
        PrayerTime.section_id,
        Section.name.label("section_name"),
        PrayerTime.created_at,
        PrayerTime.updated_at,
    ),
    filterable=ColumnSafelist({
        "id": PrayerTime.id,
        "day": PrayerTime.day,
        "month": PrayerTime.month,
        "section_id": PrayerTime.section_id,
        "section_name": Section.name,
    }),
    searchable=ColumnSafelist({"section_name": Section.name}),
    primary_key=(PrayerTime.id,),
    default_search=("section_name",),
)


def _row_select():
    return (
        select(*PRAYER_TIMES_QUERY.projection)
        .select_from(PRAYER_TIMES_QUERY.select_from)
    )


class PrayerTimeService:
    """Async CRUD + lookup operations for prayer times."""

    # ── List (circular order) ───────────────────────────────────────

    @staticmethod
    async def list_prayer_times(
        db: AsyncSession,
        params: ListQueryParams,
        *,
        today: Optional[date] = None,
    ) -> PaginatedResponse:
        """Paginated list; ``sort`` is ignored in favour of the calendar rotation."""
        if today is None:
            today = today_in(settings.TIMEZONE)

        spec = build_query_spec(
            PRAYER_TIMES_QUERY,
            params,
            extra_predicates=[
                calendar_wrap_predicate(PrayerTime.month, PrayerTime.day, today),
            ],
            order_by=upcoming_first_order(PrayerTime.month, PrayerTime.day, today),
        )
        return await fetch_page(db, spec, schema=PrayerTimeResponse)

    # ── Lookups ─────────────────────────────────────────────────────

    @staticmethod
    async def get_prayer_time(
        db: AsyncSession,
        day: int,
        month: int,
        section_name: str,
    ) -> PrayerTimeResponse:
        section = await SectionService.get_section_by_name(db, section_name)
        return await PrayerTimeService._get_row(db, day, month, section)

    @staticmethod
    async def search_prayer_times(
        db: AsyncSession,
        *,
        day: Optional[int] = None,
        month: Optional[int] = None,
        section: Optional[str] = None,
    ) -> list[PrayerTimeResponse]:
        """Unpaginated lookup by any of day, month, section-name substring."""
        query = _row_select()
        if day:
            query = query.where(PrayerTime.day == day)
        if month:
            query = query.where(PrayerTime.month == month)
        if section:
            query = query.where(contains_ci(Section.name, section))
        query = query.order_by(PrayerTime.month, PrayerTime.day, PrayerTime.id)

        rows = (await db.execute(query)).mappings().all()
        if not rows:
            raise NotFoundException("Prayer times", _describe(day, month, section))
        return [PrayerTimeResponse.model_validate(dict(row)) for row in rows]

    # ── Writes ──────────────────────────────────────────────────────

    @staticmethod
    async def create_prayer_time(
        db: AsyncSession,
        data: PrayerTimeCreate,
    ) -> PrayerTimeResponse:
        try:
            section = await SectionService.get_section_by_name(db, data.section)
        except NotFoundException:
            raise ValidationException({"section": [f"Unknown section '{data.section}'."]})

        prayer = PrayerTime(
            day=data.day,
            month=data.month,
            section_id=section.id,
            **{name: getattr(data, name) for name in TIME_FIELDS},
        )
        db.add(prayer)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(
                "day/month/section",
                f"{data.day}/{data.month}/{data.section}",
            )

        logger.info("Created prayer times %d/%d for %s", data.day, data.month, section.name)
        return await PrayerTimeService._get_row(db, data.day, data.month, section)

    @staticmethod
    async def update_prayer_time(
        db: AsyncSession,
        data: PrayerTimeUpdate,
    ) -> PrayerTimeResponse:
        section = await SectionService.get_section_by_name(db, data.section)
        prayer = await PrayerTimeService._get_model(db, data.day, data.month, section)

        for name in TIME_FIELDS:
            setattr(prayer, name, getattr(data, name))
        await db.flush()

        return await PrayerTimeService._get_row(db, data.day, data.month, section)

    @staticmethod
    async def delete_prayer_time(
        db: AsyncSession,
        day: int,
        month: int,
        section_name: str,
    ) -> None:
        section = await SectionService.get_section_by_name(db, section_name)
        prayer = await PrayerTimeService._get_model(db, day, month, section)
        await db.delete(prayer)
        await db.flush()
        logger.info("Deleted prayer times %d/%d for %s", day, month, section.name)

    # ── Internals ───────────────────────────────────────────────────

    @staticmethod
    async def _get_model(
        db: AsyncSession,
        day: int,
        month: int,
        section: Section,
    ) -> PrayerTime:
        result = await db.execute(
            select(PrayerTime).where(
                PrayerTime.day == day,
                PrayerTime.month == month,
                PrayerTime.section_id == section.id,
            )
        )
        prayer = result.scalars().first()
        if prayer is None:
            raise NotFoundException("Prayer times", _describe(day, month, section.name))
        return prayer

    @staticmethod
    async def _get_row(
        db: AsyncSession,
        day: int,
        month: int,
        section: Section,
    ) -> PrayerTimeResponse:
        result = await db.execute(
            _row_select().where(
                PrayerTime.day == day,
                PrayerTime.month == month,
                PrayerTime.section_id == section.id,
            )
        )
        row = result.mappings().first()
        if row is None:
            raise NotFoundException("Prayer times", _describe(day, month, section.name))
        return PrayerTimeResponse.model_validate(dict(row))


def _describe(day: Any, month: Any, section: Any) -> str:
    return f"day={day or '*'}, month={month or '*'}, section={section or '*'}"
