"""Auth dependencies — JWT validation, admin enforcement.

Tokens are issued elsewhere. Accepted claims:
  - ``sub`` (or legacy ``id``): the user's UUID
  - ``roles`` (or legacy ``user_role``): list of role names
  - ``exp``: required expiry
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from mawaqit.common.constants import RoleName
from mawaqit.common.exceptions import ForbiddenException, UnauthorizedException
from mawaqit.config import settings
from mawaqit.database import get_db
from mawaqit.users.models import User

ACCESS_TOKEN_COOKIE = "accessToken"


def _extract_token(request: Request) -> str:
    """The ``accessToken`` cookie wins over the Authorization header."""
    cookie = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if cookie:
        return cookie
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthorizedException("Missing or invalid Authorization header.")
    return auth_header[7:]


def _claim_roles(payload: dict) -> list[str]:
    raw = payload.get("roles", payload.get("user_role")) or []
    if isinstance(raw, str):
        raw = [raw]
    return [r for r in raw if isinstance(r, str) and r and r != "NULL"]


def _claim_user_id(payload: dict) -> Optional[uuid.UUID]:
    subject = payload.get("sub", payload.get("id"))
    if not isinstance(subject, str):
        return None
    try:
        return uuid.UUID(subject)
    except ValueError:
        return None


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate the JWT, load the user, expose roles on ``request.state``."""
    token = _extract_token(request)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require_exp": True},
        )
    except ExpiredSignatureError:
        raise UnauthorizedException("Token has expired.")
    except JWTError:
        raise UnauthorizedException("Invalid token.")

    user_id = _claim_user_id(payload)
    if user_id is None:
        raise UnauthorizedException("Invalid token claims.")

    user = await db.get(User, user_id)
    if user is None:
        raise UnauthorizedException("User account not found.")

    request.state.user_roles = _claim_roles(payload)
    return user


# ── Role-based dependency ───────────────────────────────────────────

async def require_admin(
    request: Request,
    user: User = Depends(get_current_user),
) -> User:
    """Allow only callers whose token carries the ``admin`` role."""
    if RoleName.admin.value not in request.state.user_roles:
        raise ForbiddenException(detail="Administrator role required.")
    return user
