from datetime import date, datetime
from typing import Annotated

from pydantic import BaseModel, Field

Weekday = Annotated[int, Field(ge=0, le=6)]  # 0=Sunday


class CalendarConfigRead(BaseModel):
    open_time: str
    close_time: str
    closed_weekdays: list[int]
    slot_duration_minutes: int
    max_capacity_per_slot: int
    updated_by: int | None = None
    updated_at: datetime

    model_config = {"from_attributes": True}


class CalendarConfigUpdate(BaseModel):
    open_time: str | None = Field(default=None, max_length=5)
    close_time: str | None = Field(default=None, max_length=5)
    closed_weekdays: list[Weekday] | None = None
    slot_duration_minutes: int | None = Field(default=None, ge=5, le=240)
    max_capacity_per_slot: int | None = Field(default=None, ge=1)


class HolidayCreate(BaseModel):
    holiday_date: date
    name: str = Field(max_length=100)
    description: str | None = None


class HolidayRead(HolidayCreate):
    id: int
    created_by: int | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
