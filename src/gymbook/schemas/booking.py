from datetime import date, datetime

from pydantic import BaseModel, Field

from gymbook.models.booking import BookingStatus


class BookingCreate(BaseModel):
    booking_date: date
    start_time: str = Field(max_length=5, examples=["09:00"])  # HH:MM
    end_time: str = Field(max_length=5, examples=["10:30"])  # HH:MM
    notes: str | None = Field(default=None, max_length=500)


class AdminBookingCreate(BookingCreate):
    user_id: int


class BookingRead(BaseModel):
    id: int
    user_id: int
    booking_date: date
    start_time: str
    end_time: str
    duration_minutes: int
    status: BookingStatus
    notes: str | None = None
    created_by: int | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CancelResponse(BaseModel):
    id: int
    status: BookingStatus
    message: str = "Booking cancelled"


class DailyUsageRead(BaseModel):
    user_id: int
    booking_date: date
    booked_minutes: int
    max_daily_minutes: int | None = None  # None = no current plan
    remaining_minutes: int | None = None  # None = unlimited or no plan
    unlimited: bool = False


class SlotRead(BaseModel):
    time: str
    booked: int
    capacity_remaining: int
    is_available: bool

    model_config = {"from_attributes": True}


class AvailabilityRead(BaseModel):
    booking_date: date
    closed: bool
    reason: str | None = None
    message: str | None = None
    slots: list[SlotRead]

    model_config = {"from_attributes": True}
