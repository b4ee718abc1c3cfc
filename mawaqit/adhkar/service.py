"""Adhkar service layer — categories and remembrance texts.

Uses:
  - ``build_query_spec / fetch_page`` from mawaqit.common.query
  - ``NotFoundException / ConflictError`` from mawaqit.common.exceptions
"""

from __future__ import annotations

import logging
from dataclasses import replace

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mawaqit.adhkar.models import AdhkarCategory, Dhikr
from mawaqit.adhkar.schemas import (
    AdhkarCategoryCreate,
    AdhkarCategoryResponse,
    AdhkarCategoryUpdate,
    DhikrCreate,
    DhikrResponse,
    DhikrUpdate,
)
from mawaqit.common.constants import Entity
from mawaqit.common.exceptions import ConflictError, NotFoundException
from mawaqit.common.pagination import PaginatedResponse
from mawaqit.common.query import EntityQuery, ListQueryParams, build_query_spec, fetch_page
from mawaqit.common.safelist import ColumnSafelist

logger = logging.getLogger(__name__)


CATEGORY_QUERY = EntityQuery(
    entity=Entity.adhkar_category,
    envelope_key="adhkar_categories",
    select_from=AdhkarCategory.__table__,
    projection=(
        AdhkarCategory.id,
        AdhkarCategory.name,
        AdhkarCategory.description,
        AdhkarCategory.created_at,
        AdhkarCategory.updated_at,
    ),
    filterable=ColumnSafelist({"id": AdhkarCategory.id, "name": AdhkarCategory.name}),
    searchable=ColumnSafelist({
        "name": AdhkarCategory.name,
        "description": AdhkarCategory.description,
    }),
    primary_key=(AdhkarCategory.id,),
    default_search=("name", "description"),
)

ADHKAR_QUERY = EntityQuery(
    entity=Entity.adhkar,
    envelope_key="adhkar",
    select_from=Dhikr.__table__.join(
        AdhkarCategory.__table__, Dhikr.category_id == AdhkarCategory.id,
    ),
    projection=(
        Dhikr.id,
        Dhikr.text,
        Dhikr.source,
        Dhikr.repeat,
        Dhikr.category_id,
        AdhkarCategory.name.label("category_name"),
        Dhikr.created_at,
        Dhikr.updated_at,
    ),
    filterable=ColumnSafelist({
        "id": Dhikr.id,
        "source": Dhikr.source,
        "repeat": Dhikr.repeat,
        "category_id": Dhikr.category_id,
        "category_name": AdhkarCategory.name,
    }),
    searchable=ColumnSafelist({
        "text": Dhikr.text,
        "source": Dhikr.source,
        "category_name": AdhkarCategory.name,
    }),
    primary_key=(Dhikr.id,),
    default_search=("text", "source", "category_name"),
)

ADHKAR_BY_CATEGORY_QUERY = replace(
    ADHKAR_QUERY,
    searchable=ColumnSafelist({"text": Dhikr.text, "source": Dhikr.source}),
    default_search=("text", "source"),
)


# ═════════════════════════════════════════════════════════════════════
# AdhkarCategoryService
# ═════════════════════════════════════════════════════════════════════


class AdhkarCategoryService:
    """Async CRUD operations for adhkar categories."""

    @staticmethod
    async def list_categories(db: AsyncSession, params: ListQueryParams) -> PaginatedResponse:
        spec = build_query_spec(CATEGORY_QUERY, params)
        return await fetch_page(db, spec, schema=AdhkarCategoryResponse)

    @staticmethod
    async def get_category(db: AsyncSession, category_id: int) -> AdhkarCategory:
        category = await db.get(AdhkarCategory, category_id)
        if category is None:
            raise NotFoundException("Adhkar category", category_id)
        return category

    @staticmethod
    async def create_category(db: AsyncSession, data: AdhkarCategoryCreate) -> AdhkarCategory:
        category = AdhkarCategory(name=data.name, description=data.description)
        db.add(category)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("name", data.name)
        await db.refresh(category)
        logger.info("Created adhkar category %s (%s)", category.id, category.name)
        return category

    @staticmethod
    async def update_category(db: AsyncSession, data: AdhkarCategoryUpdate) -> AdhkarCategory:
        category = await AdhkarCategoryService.get_category(db, data.id)
        category.name = data.name
        category.description = data.description
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("name", data.name)
        await db.refresh(category)
        return category

    @staticmethod
    async def delete_category(db: AsyncSession, category_id: int) -> None:
        """Delete an unused category; one still holding adhkar is a 409."""
        category = await AdhkarCategoryService.get_category(db, category_id)

        in_use = (
            await db.execute(
                select(func.count())
                .select_from(Dhikr)
                .where(Dhikr.category_id == category_id)
            )
        ).scalar_one()
        if in_use:
            raise ConflictError(
                "id", category_id,
                detail=f"Category '{category.name}' still holds {in_use} adhkar.",
            )

        await db.delete(category)
        await db.flush()
        logger.info("Deleted adhkar category %s", category_id)


# ═════════════════════════════════════════════════════════════════════
# AdhkarService
# ═════════════════════════════════════════════════════════════════════


class AdhkarService:
    """Async CRUD operations for remembrance texts."""

    @staticmethod
    async def list_adhkar(db: AsyncSession, params: ListQueryParams) -> PaginatedResponse:
        spec = build_query_spec(ADHKAR_QUERY, params)
        return await fetch_page(db, spec, schema=DhikrResponse)

    @staticmethod
    async def list_by_category(
        db: AsyncSession,
        category_id: int,
        params: ListQueryParams,
    ) -> PaginatedResponse:
        await AdhkarCategoryService.get_category(db, category_id)
        spec = build_query_spec(
            ADHKAR_BY_CATEGORY_QUERY,
            params,
            extra_predicates=[Dhikr.category_id == category_id],
        )
        return await fetch_page(db, spec, schema=DhikrResponse)

    @staticmethod
    async def get_dhikr(db: AsyncSession, dhikr_id: int) -> DhikrResponse:
        result = await db.execute(
            select(*ADHKAR_QUERY.projection)
            .select_from(ADHKAR_QUERY.select_from)
            .where(Dhikr.id == dhikr_id)
        )
        row = result.mappings().first()
        if row is None:
            raise NotFoundException("Dhikr", dhikr_id)
        return DhikrResponse.model_validate(dict(row))

    @staticmethod
    async def create_dhikr(db: AsyncSession, data: DhikrCreate) -> DhikrResponse:
        await AdhkarCategoryService.get_category(db, data.category_id)

        dhikr = Dhikr(**data.model_dump())
        db.add(dhikr)
        await db.flush()
        logger.info("Created dhikr %s in category %s", dhikr.id, data.category_id)
        return await AdhkarService.get_dhikr(db, dhikr.id)

    @staticmethod
    async def update_dhikr(db: AsyncSession, data: DhikrUpdate) -> DhikrResponse:
        dhikr = await db.get(Dhikr, data.id)
        if dhikr is None:
            raise NotFoundException("Dhikr", data.id)
        await AdhkarCategoryService.get_category(db, data.category_id)

        for field, value in data.model_dump(exclude={"id"}).items():
            setattr(dhikr, field, value)
        await db.flush()
        return await AdhkarService.get_dhikr(db, data.id)

    @staticmethod
    async def delete_dhikr(db: AsyncSession, dhikr_id: int) -> None:
        dhikr = await db.get(Dhikr, dhikr_id)
        if dhikr is None:
            raise NotFoundException("Dhikr", dhikr_id)
        await db.delete(dhikr)
        await db.flush()
        logger.info("Deleted dhikr %s", dhikr_id)
