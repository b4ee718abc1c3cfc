"""Hadiths router.

Routes:
    GET    /hadiths?id=          — Single hadith
    GET    /hadiths/list         — Paginated, filterable, searchable list
    GET    /hadiths/topic?topic= — Paginated list restricted to one topic
    POST   /hadiths              — Create (admin)
    PUT    /hadiths              — Update (admin)
    DELETE /hadiths?id=          — Delete (admin)
"""


from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mawaqit.auth.dependencies import require_admin
from mawaqit.common.query import ListQueryParams, envelope, list_query_params
from mawaqit.database import get_db
from mawaqit.hadiths.schemas import HadithCreate, HadithResponse, HadithUpdate
from mawaqit.hadiths.service import HADITH_QUERY, HadithService
from mawaqit.users.models import User

router = APIRouter(prefix="", tags=["hadiths"])


@router.get("")
async def get_hadith(
    hadith_id: int = Query(..., alias="id", ge=1),
    db: AsyncSession = Depends(get_db),
):
    hadith = await HadithService.get_hadith(db, hadith_id)
    return {"hadith": HadithResponse.model_validate(hadith).model_dump(mode="json")}


@router.get("/list")
async def list_hadiths(
    params: ListQueryParams = Depends(list_query_params),
    db: AsyncSession = Depends(get_db),
):
    page = await HadithService.list_hadiths(db, params)
    return envelope(HADITH_QUERY, page)


@router.get("/topic")
async def list_hadiths_by_topic(
    topic: str = Query(..., min_length=1),
    params: ListQueryParams = Depends(list_query_params),
    db: AsyncSession = Depends(get_db),
):
    page = await HadithService.list_by_topic(db, topic, params)
    return envelope(HADITH_QUERY, page)


@router.post("", status_code=201)
async def create_hadith(
    body: HadithCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    hadith = await HadithService.create_hadith(db, body)
    return {
        "message": "Hadith created successfully.",
        "hadith": HadithResponse.model_validate(hadith).model_dump(mode="json"),
    }


@router.put("")
async def update_hadith(
    body: HadithUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    hadith = await HadithService.update_hadith(db, body)
    return {
        "message": "Hadith updated successfully.",
        "hadith": HadithResponse.model_validate(hadith).model_dump(mode="json"),
    }


@router.delete("")
async def delete_hadith(
    hadith_id: int = Query(..., alias="id", ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    await HadithService.delete_hadith(db, hadith_id)
    return {"message": "Hadith deleted successfully."}
