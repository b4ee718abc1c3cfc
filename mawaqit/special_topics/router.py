"""Special topics router.

Routes:
    GET    /special-topics?id=          — Single topic
    GET    /special-topics/list         — Paginated, filterable, searchable list
    GET    /special-topics/topic?topic= — Topics whose title contains the keyword
    POST   /special-topics              — Create (admin)
    PUT    /special-topics              — Update (admin)
    DELETE /special-topics?id=          — Delete (admin)
"""


from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mawaqit.auth.dependencies import require_admin
from mawaqit.common.query import ListQueryParams, envelope, list_query_params
from mawaqit.database import get_db
from mawaqit.special_topics.schemas import (
    SpecialTopicCreate,
    SpecialTopicResponse,
    SpecialTopicUpdate,
)
from mawaqit.special_topics.service import SPECIAL_TOPIC_QUERY, SpecialTopicService
from mawaqit.users.models import User

router = APIRouter(prefix="", tags=["special-topics"])


def _dump(topic) -> dict:
    return SpecialTopicResponse.model_validate(topic).model_dump(mode="json")


@router.get("")
async def get_special_topic(
    topic_id: int = Query(..., alias="id", ge=1),
    db: AsyncSession = Depends(get_db),
):
    topic = await SpecialTopicService.get_topic(db, topic_id)
    return {"special_topic": _dump(topic)}


@router.get("/list")
async def list_special_topics(
    params: ListQueryParams = Depends(list_query_params),
    db: AsyncSession = Depends(get_db),
):
    page = await SpecialTopicService.list_topics(db, params)
    return envelope(SPECIAL_TOPIC_QUERY, page)


@router.get("/topic")
async def list_special_topics_by_topic(
    topic: str = Query(..., min_length=1, description="Substring of the topic title"),
    params: ListQueryParams = Depends(list_query_params),
    db: AsyncSession = Depends(get_db),
):
    page = await SpecialTopicService.list_by_topic(db, topic, params)
    return envelope(SPECIAL_TOPIC_QUERY, page)


@router.post("", status_code=201)
async def create_special_topic(
    body: SpecialTopicCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    topic = await SpecialTopicService.create_topic(db, body)
    return {"message": "Special topic created successfully.", "special_topic": _dump(topic)}


@router.put("")
async def update_special_topic(
    body: SpecialTopicUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    topic = await SpecialTopicService.update_topic(db, body)
    return {"message": "Special topic updated successfully.", "special_topic": _dump(topic)}


@router.delete("")
async def delete_special_topic(
    topic_id: int = Query(..., alias="id", ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    await SpecialTopicService.delete_topic(db, topic_id)
    return {"message": "Special topic deleted successfully."}
