"""Prayer time Pydantic v2 schemas.

Times travel as ``"HH:MM"`` strings in both directions.
"""


from datetime import datetime, time
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from mawaqit.common.constants import MAX_DAY, MAX_MONTH, MIN_DAY, MIN_MONTH, TIME_FORMAT

TIME_FIELDS = (
    "fajr_first_time",
    "fajr_second_time",
    "sunrise_time",
    "dhuhr_time",
    "asr_time",
    "maghrib_time",
    "isha_time",
)


class PrayerTimeSchedule(BaseModel):
    """The seven daily times."""

    fajr_first_time: time
    fajr_second_time: time
    sunrise_time: time
    dhuhr_time: time
    asr_time: time
    maghrib_time: time
    isha_time: time

    @field_validator(*TIME_FIELDS, mode="before")
    @classmethod
    def _parse_hh_mm(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return datetime.strptime(value.strip(), TIME_FORMAT).time()
            except ValueError:
                raise ValueError("must be a time in HH:MM format")
        return value


class PrayerTimeCreate(PrayerTimeSchedule):
    day: int = Field(..., ge=MIN_DAY, le=MAX_DAY)
    month: int = Field(..., ge=MIN_MONTH, le=MAX_MONTH)
    section: str = Field(..., min_length=1, description="Section name")


class PrayerTimeUpdate(PrayerTimeCreate):
    """Identifies the row by (day, month, section) and replaces its times."""


class PrayerTimeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    day: int
    month: int
    fajr_first_time: time
    fajr_second_time: time
    sunrise_time: time
    dhuhr_time: time
    asr_time: time
    maghrib_time: time
    isha_time: time
    section_id: int
    section_name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_serializer(*TIME_FIELDS)
    def _format_hh_mm(self, value: time) -> str:
        return value.strftime(TIME_FORMAT)
