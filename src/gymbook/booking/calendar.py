"""Gym calendar configuration and holidays.

The configuration is a single row (id=1) created from settings defaults the
first time it is needed. ``update_config`` is the only writer.
"""

import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gymbook.booking.errors import (
    ConflictError,
    InfrastructureError,
    NotFoundError,
    ValidationError,
)
from gymbook.booking.timeutil import normalize_time_str, time_str_to_minutes
from gymbook.config import get_settings
from gymbook.models.calendar import CONFIG_ROW_ID, GymCalendarConfig, Holiday

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "open_time",
    "close_time",
    "closed_weekdays",
    "slot_duration_minutes",
    "max_capacity_per_slot",
)


def _default_config() -> GymCalendarConfig:
    settings = get_settings()
    return GymCalendarConfig(
        id=CONFIG_ROW_ID,
        open_time=normalize_time_str(settings.default_open_time),
        close_time=normalize_time_str(settings.default_close_time),
        closed_weekdays=sorted(set(settings.default_closed_weekdays)),
        slot_duration_minutes=settings.default_slot_minutes,
        max_capacity_per_slot=settings.default_capacity_per_slot,
    )


async def get_config(session: AsyncSession) -> GymCalendarConfig:
    """Return the calendar config, creating it with defaults if absent."""
    config = await session.get(GymCalendarConfig, CONFIG_ROW_ID)
    if config is not None:
        return config

    config = _default_config()
    session.add(config)
    try:
        await session.commit()
    except IntegrityError:
        # Another request created it first
        await session.rollback()
        config = await session.get(GymCalendarConfig, CONFIG_ROW_ID, populate_existing=True)
        if config is None:
            raise InfrastructureError(
                "storage_unavailable", "Calendar configuration could not be loaded"
            )
        return config
    logger.info("Calendar config initialized with defaults")
    return config


async def update_config(
    session: AsyncSession, changes: dict[str, Any], updated_by: int | None
) -> GymCalendarConfig:
    """Merge the provided fields into the config and record who changed it."""
    config = await get_config(session)

    merged = {field: getattr(config, field) for field in UPDATABLE_FIELDS}
    for field, value in changes.items():
        if field not in UPDATABLE_FIELDS:
            raise ValidationError("invalid_field", f"Unknown calendar field '{field}'", field=field)
        if value is not None:
            merged[field] = value

    merged["open_time"] = normalize_time_str(merged["open_time"])
    merged["close_time"] = normalize_time_str(merged["close_time"])
    if time_str_to_minutes(merged["open_time"]) > time_str_to_minutes(merged["close_time"]):
        raise ValidationError(
            "invalid_hours",
            "Opening time must not be after closing time",
            open_time=merged["open_time"],
            close_time=merged["close_time"],
        )
    weekdays = merged["closed_weekdays"]
    if any(not 0 <= d <= 6 for d in weekdays):
        raise ValidationError(
            "invalid_weekday", "Closed weekdays must be between 0 (Sunday) and 6", closed_weekdays=weekdays
        )
    merged["closed_weekdays"] = sorted(set(weekdays))
    if merged["slot_duration_minutes"] < 1:
        raise ValidationError("invalid_slot_duration", "Slot duration must be at least 1 minute")
    if merged["max_capacity_per_slot"] < 1:
        raise ValidationError("invalid_capacity", "Capacity per slot must be at least 1")

    for field, value in merged.items():
        setattr(config, field, value)
    config.updated_by = updated_by
    config.updated_at = datetime.utcnow()

    await session.commit()
    await session.refresh(config)
    logger.info("Calendar config updated by user %s", updated_by)
    return config


async def holiday_on(session: AsyncSession, day: date) -> Holiday | None:
    result = await session.execute(select(Holiday).where(Holiday.holiday_date == day))
    return result.scalar_one_or_none()


async def list_holidays(
    session: AsyncSession, year: int | None = None, month: int | None = None
) -> list[Holiday]:
    """List holidays, optionally restricted to a year or a month of a year."""
    stmt = select(Holiday).order_by(Holiday.holiday_date)
    if year is not None:
        if month is not None:
            start = date(year, month, 1)
            end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        else:
            start, end = date(year, 1, 1), date(year + 1, 1, 1)
        stmt = stmt.where(Holiday.holiday_date >= start, Holiday.holiday_date < end)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def add_holiday(
    session: AsyncSession,
    day: date,
    name: str,
    description: str | None = None,
    created_by: int | None = None,
) -> Holiday:
    """Create a holiday. At most one per calendar date."""
    if await holiday_on(session, day) is not None:
        raise ConflictError(
            "holiday_exists", f"A holiday already exists on {day}", retryable=False, date=day.isoformat()
        )
    holiday = Holiday(holiday_date=day, name=name, description=description, created_by=created_by)
    session.add(holiday)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError(
            "holiday_exists", f"A holiday already exists on {day}", retryable=False, date=day.isoformat()
        ) from None
    await session.refresh(holiday)
    logger.info("Holiday %s added for %s", holiday.id, day)
    return holiday


async def remove_holiday(session: AsyncSession, holiday_id: int) -> None:
    holiday = await session.get(Holiday, holiday_id)
    if holiday is None:
        raise NotFoundError("holiday_not_found", "Holiday not found", holiday_id=holiday_id)
    await session.delete(holiday)
    await session.commit()
    logger.info("Holiday %s removed", holiday_id)
