"""Hadith service layer — async CRUD, list, and by-topic listing."""

from __future__ import annotations

import logging
from dataclasses import replace

from sqlalchemy.ext.asyncio import AsyncSession

from mawaqit.common.constants import Entity
from mawaqit.common.exceptions import NotFoundException
from mawaqit.common.pagination import PaginatedResponse
from mawaqit.common.query import EntityQuery, ListQueryParams, build_query_spec, fetch_page
from mawaqit.common.safelist import ColumnSafelist
from mawaqit.hadiths.models import Hadith
from mawaqit.hadiths.schemas import HadithCreate, HadithResponse, HadithUpdate

logger = logging.getLogger(__name__)

HADITH_QUERY = EntityQuery(
    entity=Entity.hadith,
    envelope_key="hadiths",
    select_from=Hadith.__table__,
    projection=(
        Hadith.id, Hadith.text, Hadith.source, Hadith.topic,
        Hadith.created_at, Hadith.updated_at,
    ),
    filterable=ColumnSafelist({
        "id": Hadith.id,
        "source": Hadith.source,
        "topic": Hadith.topic,
    }),
    searchable=ColumnSafelist({
        "text": Hadith.text,
        "source": Hadith.source,
        "topic": Hadith.topic,
    }),
    primary_key=(Hadith.id,),
    default_search=("text", "source", "topic"),
)

# Within one topic, searching the topic column itself is pointless.
HADITH_BY_TOPIC_QUERY = replace(
    HADITH_QUERY,
    searchable=ColumnSafelist({"text": Hadith.text, "source": Hadith.source}),
    default_search=("text", "source"),
)


class HadithService:
    """Async CRUD operations for hadiths."""

    @staticmethod
    async def list_hadiths(db: AsyncSession, params: ListQueryParams) -> PaginatedResponse:
        spec = build_query_spec(HADITH_QUERY, params)
        return await fetch_page(db, spec, schema=HadithResponse)

    @staticmethod
    async def list_by_topic(
        db: AsyncSession,
        topic: str,
        params: ListQueryParams,
    ) -> PaginatedResponse:
        """Exact-topic listing; other filters and search still apply."""
        spec = build_query_spec(
            HADITH_BY_TOPIC_QUERY,
            params,
            extra_predicates=[Hadith.topic == topic],
        )
        return await fetch_page(db, spec, schema=HadithResponse)

    @staticmethod
    async def get_hadith(db: AsyncSession, hadith_id: int) -> Hadith:
        hadith = await db.get(Hadith, hadith_id)
        if hadith is None:
            raise NotFoundException("Hadith", hadith_id)
        return hadith

    @staticmethod
    async def create_hadith(db: AsyncSession, data: HadithCreate) -> Hadith:
        hadith = Hadith(**data.model_dump())
        db.add(hadith)
        await db.flush()
        await db.refresh(hadith)
        logger.info("Created hadith %s (topic=%s)", hadith.id, hadith.topic)
        return hadith

    @staticmethod
    async def update_hadith(db: AsyncSession, data: HadithUpdate) -> Hadith:
        hadith = await HadithService.get_hadith(db, data.id)
        for field, value in data.model_dump(exclude={"id"}).items():
            setattr(hadith, field, value)
        await db.flush()
        await db.refresh(hadith)
        return hadith

    @staticmethod
    async def delete_hadith(db: AsyncSession, hadith_id: int) -> None:
        hadith = await HadithService.get_hadith(db, hadith_id)
        await db.delete(hadith)
        await db.flush()
        logger.info("Deleted hadith %s", hadith_id)
