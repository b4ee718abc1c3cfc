"""Section service layer — async CRUD.

Uses:
  - ``build_query_spec / fetch_page`` from mawaqit.common.query
  - ``NotFoundException / ConflictError`` from mawaqit.common.exceptions
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mawaqit.common.constants import Entity
from mawaqit.common.exceptions import ConflictError, NotFoundException
from mawaqit.common.pagination import PaginatedResponse
from mawaqit.common.query import EntityQuery, ListQueryParams, build_query_spec, fetch_page
from mawaqit.common.safelist import ColumnSafelist
from mawaqit.prayer_times.models import PrayerTime
from mawaqit.sections.models import Section
from mawaqit.sections.schemas import SectionCreate, SectionResponse, SectionUpdate

logger = logging.getLogger(__name__)

SECTION_QUERY = EntityQuery(
    entity=Entity.section,
    envelope_key="sections",
    select_from=Section.__table__,
    projection=(Section.id, Section.name, Section.created_at, Section.updated_at),
    filterable=ColumnSafelist({"id": Section.id, "name": Section.name}),
    searchable=ColumnSafelist({"name": Section.name}),
    primary_key=(Section.id,),
    default_search=("name",),
)


class SectionService:
    """Async CRUD operations for sections."""

    @staticmethod
    async def list_sections(db: AsyncSession, params: ListQueryParams) -> PaginatedResponse:
        spec = build_query_spec(SECTION_QUERY, params)
        return await fetch_page(db, spec, schema=SectionResponse)

    @staticmethod
    async def get_section(db: AsyncSession, section_id: int) -> Section:
        section = await db.get(Section, section_id)
        if section is None:
            raise NotFoundException("Section", section_id)
        return section

    @staticmethod
    async def get_section_by_name(db: AsyncSession, name: str) -> Section:
        """Exact-name lookup; prayer-time endpoints address sections by name."""
        result = await db.execute(select(Section).where(Section.name == name))
        section = result.scalars().first()
        if section is None:
            raise NotFoundException("Section", name)
        return section

    @staticmethod
    async def create_section(db: AsyncSession, data: SectionCreate) -> Section:
        section = Section(name=data.name)
        db.add(section)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("name", data.name)
        await db.refresh(section)
        logger.info("Created section %s (%s)", section.id, section.name)
        return section

    @staticmethod
    async def update_section(db: AsyncSession, data: SectionUpdate) -> Section:
        section = await SectionService.get_section(db, data.id)
        section.name = data.name
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("name", data.name)
        await db.refresh(section)
        return section

    @staticmethod
    async def delete_section(db: AsyncSession, section_id: int) -> None:
        section = await SectionService.get_section(db, section_id)

        in_use = (
            await db.execute(
                select(func.count())
                .select_from(PrayerTime)
                .where(PrayerTime.section_id == section_id)
            )
        ).scalar_one()
        if in_use:
            raise ConflictError(
                "id", section_id,
                detail=f"Section '{section.name}' still has {in_use} prayer time entries.",
            )

        await db.delete(section)
        await db.flush()
        logger.info("Deleted section %s", section_id)
