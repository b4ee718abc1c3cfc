"""Adhkar Pydantic v2 schemas.

Naming conventions:
  - *Create / *Update  → request bodies (write)
  - *Response          → response bodies (read)
"""


from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ═════════════════════════════════════════════════════════════════════
# Categories
# ═════════════════════════════════════════════════════════════════════


class AdhkarCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class AdhkarCategoryUpdate(AdhkarCategoryCreate):
    id: int = Field(..., ge=1)


class AdhkarCategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ═════════════════════════════════════════════════════════════════════
# Adhkar
# ═════════════════════════════════════════════════════════════════════


class DhikrCreate(BaseModel):
    text: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1, max_length=255)
    repeat: int = Field(1, ge=1)
    category_id: int = Field(..., ge=1)


class DhikrUpdate(DhikrCreate):
    id: int = Field(..., ge=1)


class DhikrResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    text: str
    source: str
    repeat: int
    category_id: int
    category_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
