"""Sections router.

Routes:
    GET    /sections?id=   — Single section
    GET    /sections/list  — Paginated, filterable, searchable list
    POST   /sections       — Create (admin)
    PUT    /sections       — Update (admin)
    DELETE /sections?id=   — Delete (admin)
"""


from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mawaqit.auth.dependencies import require_admin
from mawaqit.common.query import ListQueryParams, envelope, list_query_params
from mawaqit.database import get_db
from mawaqit.sections.schemas import SectionCreate, SectionResponse, SectionUpdate
from mawaqit.sections.service import SECTION_QUERY, SectionService
from mawaqit.users.models import User

router = APIRouter(prefix="", tags=["sections"])


@router.get("")
async def get_section(
    section_id: int = Query(..., alias="id", ge=1),
    db: AsyncSession = Depends(get_db),
):
    section = await SectionService.get_section(db, section_id)
    return {"section": SectionResponse.model_validate(section).model_dump(mode="json")}


@router.get("/list")
async def list_sections(
    params: ListQueryParams = Depends(list_query_params),
    db: AsyncSession = Depends(get_db),
):
    """List sections. Filter/sort by ``id`` or ``name``; search on ``name``."""
    page = await SectionService.list_sections(db, params)
    return envelope(SECTION_QUERY, page)


@router.post("", status_code=201)
async def create_section(
    body: SectionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    section = await SectionService.create_section(db, body)
    return {
        "message": "Section created successfully.",
        "section": SectionResponse.model_validate(section).model_dump(mode="json"),
    }


@router.put("")
async def update_section(
    body: SectionUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    section = await SectionService.update_section(db, body)
    return {
        "message": "Section updated successfully.",
        "section": SectionResponse.model_validate(section).model_dump(mode="json"),
    }


@router.delete("")
async def delete_section(
    section_id: int = Query(..., alias="id", ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    await SectionService.delete_section(db, section_id)
    return {"message": "Section deleted successfully."}
