"""Special topic Pydantic v2 schemas."""


from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SpecialTopicCreate(BaseModel):
    topic: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)


class SpecialTopicUpdate(SpecialTopicCreate):
    id: int = Field(..., ge=1)


class SpecialTopicResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    topic: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
