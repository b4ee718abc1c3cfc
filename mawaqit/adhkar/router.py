"""Adhkar router — remembrance texts and their categories.

Routes:
    /adhkar                          — Get (?id=), create, update, delete (?id=)
    /adhkar/list                     — Paginated list with category names
    /adhkar/category?category_id=    — Paginated list for one category
    /adhkar-categories               — Get (?id=), create, update, delete (?id=)
    /adhkar-categories/list          — Paginated list
"""


from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mawaqit.adhkar.schemas import (
    AdhkarCategoryCreate,
    AdhkarCategoryResponse,
    AdhkarCategoryUpdate,
    DhikrCreate,
    DhikrUpdate,
)
from mawaqit.adhkar.service import (
    ADHKAR_QUERY,
    CATEGORY_QUERY,
    AdhkarCategoryService,
    AdhkarService,
)
from mawaqit.auth.dependencies import require_admin
from mawaqit.common.query import ListQueryParams, envelope, list_query_params
from mawaqit.database import get_db
from mawaqit.users.models import User


# ═════════════════════════════════════════════════════════════════════
# Routers
# ═════════════════════════════════════════════════════════════════════

adhkar_router = APIRouter(prefix="", tags=["adhkar"])
categories_router = APIRouter(prefix="", tags=["adhkar-categories"])


# ═════════════════════════════════════════════════════════════════════
# Adhkar Endpoints
# ═════════════════════════════════════════════════════════════════════


@adhkar_router.get("")
async def get_dhikr(
    dhikr_id: int = Query(..., alias="id", ge=1),
    db: AsyncSession = Depends(get_db),
):
    dhikr = await AdhkarService.get_dhikr(db, dhikr_id)
    return {"adhkar": dhikr.model_dump(mode="json")}


@adhkar_router.get("/list")
async def list_adhkar(
    params: ListQueryParams = Depends(list_query_params),
    db: AsyncSession = Depends(get_db),
):
    page = await AdhkarService.list_adhkar(db, params)
    return envelope(ADHKAR_QUERY, page)


@adhkar_router.get("/category")
async def list_adhkar_by_category(
    category_id: int = Query(..., ge=1),
    params: ListQueryParams = Depends(list_query_params),
    db: AsyncSession = Depends(get_db),
):
    """List one category's adhkar; 404 when the category does not exist."""
    page = await AdhkarService.list_by_category(db, category_id, params)
    return envelope(ADHKAR_QUERY, page)


@adhkar_router.post("", status_code=201)
async def create_dhikr(
    body: DhikrCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    dhikr = await AdhkarService.create_dhikr(db, body)
    return {"message": "Dhikr created successfully.", "adhkar": dhikr.model_dump(mode="json")}


@adhkar_router.put("")
async def update_dhikr(
    body: DhikrUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    dhikr = await AdhkarService.update_dhikr(db, body)
    return {"message": "Dhikr updated successfully.", "adhkar": dhikr.model_dump(mode="json")}


@adhkar_router.delete("")
async def delete_dhikr(
    dhikr_id: int = Query(..., alias="id", ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    await AdhkarService.delete_dhikr(db, dhikr_id)
    return {"message": "Dhikr deleted successfully."}


# ═════════════════════════════════════════════════════════════════════
# Category Endpoints
# ═════════════════════════════════════════════════════════════════════


@categories_router.get("")
async def get_category(
    category_id: int = Query(..., alias="id", ge=1),
    db: AsyncSession = Depends(get_db),
):
    category = await AdhkarCategoryService.get_category(db, category_id)
    return {
        "adhkar_category": AdhkarCategoryResponse.model_validate(category).model_dump(mode="json"),
    }


@categories_router.get("/list")
async def list_categories(
    params: ListQueryParams = Depends(list_query_params),
    db: AsyncSession = Depends(get_db),
):
    page = await AdhkarCategoryService.list_categories(db, params)
    return envelope(CATEGORY_QUERY, page)


@categories_router.post("", status_code=201)
async def create_category(
    body: AdhkarCategoryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    category = await AdhkarCategoryService.create_category(db, body)
    return {
        "message": "Category created successfully.",
        "adhkar_category": AdhkarCategoryResponse.model_validate(category).model_dump(mode="json"),
    }


@categories_router.put("")
async def update_category(
    body: AdhkarCategoryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    category = await AdhkarCategoryService.update_category(db, body)
    return {
        "message": "Category updated successfully.",
        "adhkar_category": AdhkarCategoryResponse.model_validate(category).model_dump(mode="json"),
    }


@categories_router.delete("")
async def delete_category(
    category_id: int = Query(..., alias="id", ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Delete a category; 409 while any dhikr still references it."""
    await AdhkarCategoryService.delete_category(db, category_id)
    return {"message": "Category deleted successfully."}
