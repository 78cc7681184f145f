"""Per-start-time slot availability for a calendar date.

Capacity is counted per start time: two bookings starting at 08:00 share one
counter whatever their durations, and a 08:00-10:00 booking does not consume
capacity of the 08:30 slot. This is an approximation of real occupancy.
"""

from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from gymbook.booking.calendar import get_config, holiday_on
from gymbook.booking.ledger import BookingLedger
from gymbook.booking.timeutil import minutes_to_time_str, time_str_to_minutes, weekday_sunday_first
from gymbook.models.calendar import GymCalendarConfig

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


@dataclass
class SlotAvailability:
    time: str
    booked: int
    capacity_remaining: int
    is_available: bool


@dataclass
class AvailabilityResult:
    booking_date: date
    closed: bool
    reason: str | None = None  # closed_weekday, holiday
    message: str | None = None
    slots: list[SlotAvailability] = field(default_factory=list)


def candidate_start_times(config: GymCalendarConfig) -> list[str]:
    """Every slot start from opening (inclusive) to closing (exclusive)."""
    open_min = time_str_to_minutes(config.open_time)
    close_min = time_str_to_minutes(config.close_time)
    return [
        minutes_to_time_str(m)
        for m in range(open_min, close_min, config.slot_duration_minutes)
    ]


async def available_slots(session: AsyncSession, day: date) -> AvailabilityResult:
    config = await get_config(session)

    weekday = weekday_sunday_first(day)
    if weekday in config.closed_weekdays:
        return AvailabilityResult(
            booking_date=day,
            closed=True,
            reason="closed_weekday",
            message=f"The gym is closed on {WEEKDAY_NAMES[weekday]}s",
        )
    holiday = await holiday_on(session, day)
    if holiday is not None:
        return AvailabilityResult(
            booking_date=day,
            closed=True,
            reason="holiday",
            message=f"The gym is closed for {holiday.name}",
        )

    occupancy = await BookingLedger(session).slot_occupancy(day)
    slots = []
    for start in candidate_start_times(config):
        booked = occupancy.get(start, 0)
        remaining = max(config.max_capacity_per_slot - booked, 0)
        slots.append(
            SlotAvailability(
                time=start,
                booked=booked,
                capacity_remaining=remaining,
                is_available=remaining > 0,
            )
        )
    return AvailabilityResult(booking_date=day, closed=False, slots=slots)
