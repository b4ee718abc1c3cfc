"""User service layer — lookups and profile updates."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mawaqit.common.constants import Entity
from mawaqit.common.exceptions import ConflictError, NotFoundException
from mawaqit.common.pagination import PaginatedResponse
from mawaqit.common.query import EntityQuery, ListQueryParams, build_query_spec, fetch_page
from mawaqit.common.safelist import ColumnSafelist
from mawaqit.users.models import User
from mawaqit.users.schemas import UserDetail, UserListItem, UserUpdate

logger = logging.getLogger(__name__)

# ``password_hash`` never appears in the projection or any safelist.
USER_QUERY = EntityQuery(
    entity=Entity.user,
    envelope_key="users",
    select_from=User.__table__,
    projection=(User.id, User.name, User.phone_number, User.created_at, User.updated_at),
    filterable=ColumnSafelist({
        "id": User.id,
        "name": User.name,
        "phone_number": User.phone_number,
    }),
    searchable=ColumnSafelist({"name": User.name, "phone_number": User.phone_number}),
    primary_key=(User.id,),
    default_search=("name", "phone_number"),
)


class UserService:

    @staticmethod
    async def list_users(db: AsyncSession, params: ListQueryParams) -> PaginatedResponse:
        spec = build_query_spec(USER_QUERY, params)
        return await fetch_page(db, spec, schema=UserListItem)

    @staticmethod
    async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundException("User", user_id)
        return user

    @staticmethod
    async def update_user(db: AsyncSession, user_id: uuid.UUID, data: UserUpdate) -> User:
        """Apply *data* to the user; trimmed-empty fields keep the stored value."""
        user = await UserService.get_user(db, user_id)

        name = (data.name or "").strip()
        phone_number = (data.phone_number or "").strip()
        if name:
            user.name = name
        if phone_number:
            user.phone_number = phone_number

        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("phone_number", phone_number)
        await db.refresh(user)
        logger.info("Updated user %s", user.id)
        return user

    @staticmethod
    def to_detail(user: User) -> UserDetail:
        return UserDetail(
            id=user.id,
            name=user.name,
            phone_number=user.phone_number,
            created_at=user.created_at,
            updated_at=user.updated_at,
            roles=user.role_names,
        )
