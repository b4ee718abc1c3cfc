"""Prayer time ORM model.

One row per (day, month, section): the seven daily times for that calendar
day in that section. Rows carry no year; the timetable repeats annually.
"""

from __future__ import annotations

from datetime import datetime, time

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from mawaqit.database import Base


class PrayerTime(Base):
    __tablename__ = "prayer_times"
    __table_args__ = (
        sa.UniqueConstraint("day", "month", "section_id", name="prayer_times_day_month_section_id_key"),
        sa.CheckConstraint("day BETWEEN 1 AND 31", name="prayer_times_day_check"),
        sa.CheckConstraint("month BETWEEN 1 AND 12", name="prayer_times_month_check"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    day: Mapped[int] = mapped_column(sa.SmallInteger, nullable=False)
    month: Mapped[int] = mapped_column(sa.SmallInteger, nullable=False)
    fajr_first_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    fajr_second_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    sunrise_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    dhuhr_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    asr_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    maghrib_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    isha_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    section_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("sections.id"), nullable=False, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(),
    )

    def __repr__(self) -> str:
        return f"<PrayerTime {self.day}/{self.month} section={self.section_id}>"
