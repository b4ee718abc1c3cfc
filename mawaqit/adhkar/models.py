"""Adhkar ORM models: AdhkarCategory, Dhikr."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mawaqit.database import Base


# ═════════════════════════════════════════════════════════════════════
# AdhkarCategory
# ═════════════════════════════════════════════════════════════════════


class AdhkarCategory(Base):
    """Grouping for remembrance texts (morning, evening, after prayer…)."""

    __tablename__ = "adhkar_categories"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    adhkar: Mapped[list[Dhikr]] = relationship(back_populates="category")

    def __repr__(self) -> str:
        return f"<AdhkarCategory {self.name!r}>"


# ═════════════════════════════════════════════════════════════════════
# Dhikr
# ═════════════════════════════════════════════════════════════════════


class Dhikr(Base):
    """A single remembrance text and how many times it is recited."""

    __tablename__ = "adhkar"
    __table_args__ = (
        sa.CheckConstraint('"repeat" >= 1', name="adhkar_repeat_check"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    text: Mapped[str] = mapped_column(sa.Text, nullable=False)
    source: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    repeat: Mapped[int] = mapped_column(sa.Integer, nullable=False, server_default="1")
    category_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("adhkar_categories.id"), nullable=False, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    category: Mapped[AdhkarCategory] = relationship(back_populates="adhkar")
