"""Prayer times router.

Routes:
    GET    /prayer-times?day=&month=&section=         — Single day for a section
    GET    /prayer-times/list                         — Paginated, today-onward first
    GET    /prayer-times/search?day=&month=&section=  — Unpaginated lookup
    POST   /prayer-times                              — Create (admin)
    PUT    /prayer-times                              — Replace times (admin)
    DELETE /prayer-times?day=&month=&section=         — Delete (admin)
"""


from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mawaqit.auth.dependencies import require_admin
from mawaqit.common.constants import MAX_DAY, MAX_MONTH, MIN_DAY, MIN_MONTH
from mawaqit.common.query import ListQueryParams, envelope, list_query_params
from mawaqit.database import get_db
from mawaqit.prayer_times.schemas import PrayerTimeCreate, PrayerTimeUpdate
from mawaqit.prayer_times.service import PRAYER_TIMES_QUERY, PrayerTimeService
from mawaqit.users.models import User

router = APIRouter(prefix="", tags=["prayer-times"])


@router.get("")
async def get_prayer_time(
    day: int = Query(..., ge=MIN_DAY, le=MAX_DAY),
    month: int = Query(..., ge=MIN_MONTH, le=MAX_MONTH),
    section: str = Query(..., min_length=1, description="Section name"),
    db: AsyncSession = Depends(get_db),
):
    prayer = await PrayerTimeService.get_prayer_time(db, day, month, section)
    return {"prayer_times": prayer.model_dump(mode="json"), "section": section}


@router.get("/list")
async def list_prayer_times(
    params: ListQueryParams = Depends(list_query_params),
    db: AsyncSession = Depends(get_db),
):
    """List prayer times starting from today and wrapping around the year.

    Filterable by ``id``, ``day``, ``month``, ``section_id``, ``section_name``;
    search matches the section name.
    """
    page = await PrayerTimeService.list_prayer_times(db, params)
    return envelope(PRAYER_TIMES_QUERY, page)


@router.get("/search")
async def search_prayer_times(
    day: Optional[int] = Query(None, ge=MIN_DAY, le=MAX_DAY),
    month: Optional[int] = Query(None, ge=MIN_MONTH, le=MAX_MONTH),
    section: Optional[str] = Query(None, description="Section name substring"),
    db: AsyncSession = Depends(get_db),
):
    prayers = await PrayerTimeService.search_prayer_times(
        db, day=day, month=month, section=section,
    )
    return {"prayer_times": [p.model_dump(mode="json") for p in prayers]}


@router.post("", status_code=201)
async def create_prayer_time(
    body: PrayerTimeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    prayer = await PrayerTimeService.create_prayer_time(db, body)
    return {
        "message": "Prayer times created successfully.",
        "prayer_times": prayer.model_dump(mode="json"),
        "section": body.section,
    }


@router.put("")
async def update_prayer_time(
    body: PrayerTimeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    prayer = await PrayerTimeService.update_prayer_time(db, body)
    return {
        "message": "Prayer times updated successfully.",
        "prayer_times": prayer.model_dump(mode="json"),
        "section": body.section,
    }


@router.delete("")
async def delete_prayer_time(
    day: int = Query(..., ge=MIN_DAY, le=MAX_DAY),
    month: int = Query(..., ge=MIN_MONTH, le=MAX_MONTH),
    section: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    await PrayerTimeService.delete_prayer_time(db, day, month, section)
    return {"message": "Prayer times deleted successfully."}
