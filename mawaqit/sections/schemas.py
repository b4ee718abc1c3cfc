"""Section Pydantic v2 schemas."""


from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SectionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class SectionUpdate(BaseModel):
    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=100)


class SectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
