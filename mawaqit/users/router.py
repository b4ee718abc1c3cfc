"""Users router.

Routes:
    GET /users/list  — Paginated user list (admin)
    GET /users/me    — The authenticated caller
    PUT /users/me    — Update the caller's own profile
    GET /users/{id}  — Single user (admin)
    PUT /users/{id}  — Update a profile (self or admin)
"""


import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from mawaqit.auth.dependencies import get_current_user, require_admin
from mawaqit.common.constants import RoleName
from mawaqit.common.exceptions import ForbiddenException
from mawaqit.common.query import ListQueryParams, envelope, list_query_params
from mawaqit.database import get_db
from mawaqit.users.models import User
from mawaqit.users.schemas import UserUpdate
from mawaqit.users.service import USER_QUERY, UserService

router = APIRouter(prefix="", tags=["users"])


@router.get("/list")
async def list_users(
    params: ListQueryParams = Depends(list_query_params),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    page = await UserService.list_users(db, params)
    return envelope(USER_QUERY, page)


# NOTE: /me MUST be defined before /{user_id} to avoid path parameter conflict.

@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    return {"user": UserService.to_detail(current_user).model_dump(mode="json")}


@router.put("/me")
async def update_me(
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = await UserService.update_user(db, current_user.id, data)
    return {
        "message": "User updated successfully.",
        "user": UserService.to_detail(user).model_dump(mode="json"),
    }


@router.get("/{user_id}")
async def get_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = await UserService.get_user(db, user_id)
    return {"user": UserService.to_detail(user).model_dump(mode="json")}


@router.put("/{user_id}")
async def update_user(
    user_id: uuid.UUID,
    data: UserUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if user_id != current_user.id and RoleName.admin.value not in request.state.user_roles:
        raise ForbiddenException(detail="You can only update your own profile.")
    user = await UserService.update_user(db, user_id, data)
    return {
        "message": "User updated successfully.",
        "user": UserService.to_detail(user).model_dump(mode="json"),
    }
