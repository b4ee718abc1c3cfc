"""Hadith Pydantic v2 schemas."""


from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HadithCreate(BaseModel):
    text: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1, max_length=255)
    topic: str = Field(..., min_length=1, max_length=255)


class HadithUpdate(HadithCreate):
    id: int = Field(..., ge=1)


class HadithResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    text: str
    source: str
    topic: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
