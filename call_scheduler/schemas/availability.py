# call_scheduler/schemas/availability.py
"""
Pydantic schemas for availability API.
"""

from pydantic import BaseModel, Field, field_validator

CLOCK_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class SlotRead(BaseModel):
    """A single generated slot."""
    start: str  # "HH:MM"
    end: str
    available: bool


class AvailabilityDayResponse(BaseModel):
    """Slots of one consultant for one date."""
    date: str
    day_of_week: int = Field(description="0 = Sunday … 6 = Saturday")
    slots: list[SlotRead]


class WindowWrite(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: str = Field(pattern=CLOCK_PATTERN)
    end_time: str = Field(pattern=CLOCK_PATTERN)


class WindowRead(BaseModel):
    day_of_week: int
    start_time: str
    end_time: str
    duration: str  # "8h 30m", "4h (overnight)"
    is_overnight: bool


class WeeklyAvailabilityUpdate(BaseModel):
    """Full weekly schedule; replaces whatever was stored before."""
    windows: list[WindowWrite]

    @field_validator("windows")
    @classmethod
    def _one_window_per_day(cls, v: list[WindowWrite]) -> list[WindowWrite]:
        days = [w.day_of_week for w in v]
        if len(days) != len(set(days)):
            raise ValueError("At most one window per day_of_week")
        return v


class WeeklyAvailabilityResponse(BaseModel):
    consultant_id: str
    windows: list[WindowRead]
