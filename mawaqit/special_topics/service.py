"""Special topic service layer."""

from __future__ import annotations

import logging
from dataclasses import replace

from sqlalchemy.ext.asyncio import AsyncSession

from mawaqit.common.constants import Entity
from mawaqit.common.exceptions import NotFoundException
from mawaqit.common.filters import contains_ci
from mawaqit.common.pagination import PaginatedResponse
from mawaqit.common.query import EntityQuery, ListQueryParams, build_query_spec, fetch_page
from mawaqit.common.safelist import ColumnSafelist
from mawaqit.special_topics.models import SpecialTopic
from mawaqit.special_topics.schemas import (
    SpecialTopicCreate,
    SpecialTopicResponse,
    SpecialTopicUpdate,
)

logger = logging.getLogger(__name__)

SPECIAL_TOPIC_QUERY = EntityQuery(
    entity=Entity.special_topic,
    envelope_key="special_topics",
    select_from=SpecialTopic.__table__,
    projection=(
        SpecialTopic.id,
        SpecialTopic.topic,
        SpecialTopic.content,
        SpecialTopic.created_at,
        SpecialTopic.updated_at,
    ),
    filterable=ColumnSafelist({"id": SpecialTopic.id, "topic": SpecialTopic.topic}),
    searchable=ColumnSafelist({
        "topic": SpecialTopic.topic,
        "content": SpecialTopic.content,
    }),
    primary_key=(SpecialTopic.id,),
    default_search=("topic", "content"),
)

SPECIAL_TOPIC_BY_TOPIC_QUERY = replace(
    SPECIAL_TOPIC_QUERY,
    searchable=ColumnSafelist({"content": SpecialTopic.content}),
    default_search=("content",),
)


class SpecialTopicService:
    """Async CRUD operations for special topics."""

    @staticmethod
    async def list_topics(db: AsyncSession, params: ListQueryParams) -> PaginatedResponse:
        spec = build_query_spec(SPECIAL_TOPIC_QUERY, params)
        return await fetch_page(db, spec, schema=SpecialTopicResponse)

    @staticmethod
    async def list_by_topic(
        db: AsyncSession,
        keyword: str,
        params: ListQueryParams,
    ) -> PaginatedResponse:
        """Topics whose title contains *keyword* (case-insensitive)."""
        spec = build_query_spec(
            SPECIAL_TOPIC_BY_TOPIC_QUERY,
            params,
            extra_predicates=[contains_ci(SpecialTopic.topic, keyword)],
        )
        return await fetch_page(db, spec, schema=SpecialTopicResponse)

    @staticmethod
    async def get_topic(db: AsyncSession, topic_id: int) -> SpecialTopic:
        topic = await db.get(SpecialTopic, topic_id)
        if topic is None:
            raise NotFoundException("Special topic", topic_id)
        return topic

    @staticmethod
    async def create_topic(db: AsyncSession, data: SpecialTopicCreate) -> SpecialTopic:
        topic = SpecialTopic(**data.model_dump())
        db.add(topic)
        await db.flush()
        await db.refresh(topic)
        logger.info("Created special topic %s (%s)", topic.id, topic.topic)
        return topic

    @staticmethod
    async def update_topic(db: AsyncSession, data: SpecialTopicUpdate) -> SpecialTopic:
        topic = await SpecialTopicService.get_topic(db, data.id)
        topic.topic = data.topic
        topic.content = data.content
        await db.flush()
        await db.refresh(topic)
        return topic

    @staticmethod
    async def delete_topic(db: AsyncSession, topic_id: int) -> None:
        topic = await SpecialTopicService.get_topic(db, topic_id)
        await db.delete(topic)
        await db.flush()
        logger.info("Deleted special topic %s", topic_id)
