"""User Pydantic v2 schemas. Password hashes are never part of a request or response."""


import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    phone_number: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserDetail(UserListItem):
    roles: list[str] = []


class UserUpdate(BaseModel):
    """Partial profile update. Blank fields keep their stored value."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=20)
