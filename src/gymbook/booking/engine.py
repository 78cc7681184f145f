"""Booking engine: validates booking requests and commits them atomically.

A member request goes through these checks, first failure wins:

    entitlement -> duration -> daily budget -> self-overlap -> capacity -> commit

Admin requests skip entitlement and daily budget but keep the user-existence,
duration, overlap and capacity checks.

All reads and the write for one calendar date run under that date's lock and
inside one transaction. After the insert is flushed the ledger re-validates
the booking, which catches writers outside this process; a failed recheck is
rolled back and surfaced as ``slot_no_longer_available``.
"""

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gymbook.booking.calendar import get_config
from gymbook.booking.entitlement import Entitlement, resolve_entitlement
from gymbook.booking.errors import (
    BookingError,
    ConflictError,
    EntitlementError,
    InfrastructureError,
    NotFoundError,
    ValidationError,
)
from gymbook.booking.ledger import BookingLedger
from gymbook.booking.locks import KeyedLocks, booking_locks
from gymbook.booking.timeutil import gym_now, minutes_to_time_str, time_str_to_minutes
from gymbook.config import get_settings
from gymbook.models.booking import MAX_DURATION_MINUTES, MIN_DURATION_MINUTES, Booking
from gymbook.models.user import User

logger = logging.getLogger(__name__)


class BookingStage(str, enum.Enum):
    RECEIVED = "received"
    ENTITLEMENT_CHECKED = "entitlement_checked"
    DURATION_VALIDATED = "duration_validated"
    DAILY_BUDGET_CHECKED = "daily_budget_checked"
    OVERLAP_CHECKED = "overlap_checked"
    CAPACITY_CHECKED = "capacity_checked"
    COMMITTED = "committed"


@dataclass(frozen=True)
class BookingRequest:
    user_id: int
    booking_date: date
    start_time: str
    end_time: str
    notes: str | None = None


@dataclass(frozen=True)
class TimeWindow:
    start_time: str
    end_time: str
    start_minutes: int
    end_minutes: int

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes


# -- individual checks ------------------------------------------------------


def parse_window(start_time: str, end_time: str) -> TimeWindow:
    """Parse both ends; malformed strings are rejected before any I/O."""
    start = time_str_to_minutes(start_time)
    end = time_str_to_minutes(end_time)
    return TimeWindow(minutes_to_time_str(start), minutes_to_time_str(end), start, end)


def check_entitlement(entitlement: Entitlement | None) -> Entitlement:
    if entitlement is None:
        raise EntitlementError("no_active_plan", "You need an active plan to book")
    if not entitlement.allows_in_person:
        raise EntitlementError(
            "plan_excludes_booking",
            "Your plan does not include in-person booking",
            plan=entitlement.plan_name.value,
        )
    return entitlement


def check_duration(window: TimeWindow, min_minutes: int, max_minutes: int) -> int:
    duration = window.duration_minutes
    if not min_minutes <= duration <= max_minutes:
        raise ValidationError(
            "invalid_duration",
            f"Bookings must last between {min_minutes} and {max_minutes} minutes",
            duration_minutes=duration,
            min_minutes=min_minutes,
            max_minutes=max_minutes,
        )
    return duration


def check_daily_budget(entitlement: Entitlement, booked_minutes: int, duration: int) -> None:
    if entitlement.is_unlimited:
        return
    if booked_minutes + duration > entitlement.max_daily_minutes:
        remaining = max(entitlement.max_daily_minutes - booked_minutes, 0)
        raise EntitlementError(
            "daily_limit_exceeded",
            f"Daily limit reached, {remaining} minutes left for that day",
            remaining_minutes=remaining,
            max_daily_minutes=entitlement.max_daily_minutes,
        )


def check_overlap(existing: Booking | None) -> None:
    if existing is not None:
        raise ConflictError(
            "overlapping_booking",
            "You already have a booking in that window",
            conflicting_booking_id=existing.id,
            conflicting_start_time=existing.start_time,
            conflicting_end_time=existing.end_time,
        )


def check_capacity(occupancy: int, capacity: int, start_time: str) -> None:
    if occupancy >= capacity:
        raise ConflictError(
            "slot_full",
            f"The {start_time} slot is full",
            start_time=start_time,
            capacity=capacity,
        )


# -- engine -----------------------------------------------------------------


class BookingEngine:
    """Entry point for creating and cancelling bookings."""

    def __init__(
        self,
        locks: KeyedLocks | None = None,
        ledger_factory: Callable[[AsyncSession], BookingLedger] = BookingLedger,
    ) -> None:
        settings = get_settings()
        self._locks = locks or booking_locks
        self._ledger_factory = ledger_factory
        self._timezone = settings.gym_timezone

    def now(self) -> datetime:
        return gym_now(self._timezone)

    async def book(
        self, session: AsyncSession, request: BookingRequest, now: datetime | None = None
    ) -> Booking:
        """Member path: run the full policy and commit a confirmed booking.

        ``now`` (UTC) is the instant the subscription must be current at.

        Closed weekdays, holidays and opening hours are not checked here; they
        only shape what availability offers. A start time off the slot grid
        is accepted and gets its own capacity counter.

        A rejection rolls the session back, which expires every ORM object the
        caller loaded through it. Read ids before calling, or refresh after.
        """
        now = now or datetime.utcnow()
        window = parse_window(request.start_time, request.end_time)
        stage = BookingStage.RECEIVED
        ledger = self._ledger_factory(session)

        async with self._locks.hold(request.booking_date):
            try:
                entitlement = check_entitlement(
                    await resolve_entitlement(session, request.user_id, now)
                )
                stage = BookingStage.ENTITLEMENT_CHECKED

                duration = check_duration(window, MIN_DURATION_MINUTES, MAX_DURATION_MINUTES)
                stage = BookingStage.DURATION_VALIDATED

                booked = await ledger.daily_booked_minutes(request.user_id, request.booking_date)
                check_daily_budget(entitlement, booked, duration)
                stage = BookingStage.DAILY_BUDGET_CHECKED

                booking = await self._place(
                    session,
                    ledger,
                    request,
                    window,
                    duration,
                    max_daily_minutes=(
                        None if entitlement.is_unlimited else entitlement.max_daily_minutes
                    ),
                )
            except BookingError as e:
                await session.rollback()
                self._log_rejection(request, stage, e)
                raise
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Booking commit failed for user %s: %s", request.user_id, e)
                raise InfrastructureError(
                    "storage_unavailable", "Booking storage is unavailable"
                ) from e

        logger.info(
            "Booking %s committed: user %s on %s %s-%s",
            booking.id,
            booking.user_id,
            booking.booking_date,
            booking.start_time,
            booking.end_time,
        )
        return booking

    async def admin_book(
        self, session: AsyncSession, request: BookingRequest, admin_id: int
    ) -> Booking:
        """Admin path: plan limits are waived, time math and capacity are not."""
        window = parse_window(request.start_time, request.end_time)
        stage = BookingStage.RECEIVED
        ledger = self._ledger_factory(session)

        async with self._locks.hold(request.booking_date):
            try:
                if await session.get(User, request.user_id) is None:
                    raise NotFoundError(
                        "user_not_found", "User not found", user_id=request.user_id
                    )
                duration = check_duration(window, MIN_DURATION_MINUTES, MAX_DURATION_MINUTES)
                stage = BookingStage.DURATION_VALIDATED

                booking = await self._place(
                    session,
                    ledger,
                    request,
                    window,
                    duration,
                    max_daily_minutes=None,
                    created_by=admin_id,
                )
            except BookingError as e:
                await session.rollback()
                self._log_rejection(request, stage, e)
                raise
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Admin booking commit failed for user %s: %s", request.user_id, e)
                raise InfrastructureError(
                    "storage_unavailable", "Booking storage is unavailable"
                ) from e

        logger.info(
            "Booking %s committed by admin %s for user %s on %s %s-%s",
            booking.id,
            admin_id,
            booking.user_id,
            booking.booking_date,
            booking.start_time,
            booking.end_time,
        )
        return booking

    async def _place(
        self,
        session: AsyncSession,
        ledger: BookingLedger,
        request: BookingRequest,
        window: TimeWindow,
        duration: int,
        max_daily_minutes: int | None,
        created_by: int | None = None,
    ) -> Booking:
        """Overlap and capacity checks, insert, recheck, commit."""
        existing = await ledger.find_overlap(
            request.user_id, request.booking_date, window.start_time, window.end_time
        )
        check_overlap(existing)

        config = await get_config(session)
        occupancy = await ledger.slot_occupancy(request.booking_date)
        check_capacity(
            occupancy.get(window.start_time, 0), config.max_capacity_per_slot, window.start_time
        )

        booking = await ledger.create(
            user_id=request.user_id,
            day=request.booking_date,
            start_time=window.start_time,
            end_time=window.end_time,
            duration_minutes=duration,
            notes=request.notes,
            created_by=created_by,
        )
        await ledger.recheck(booking, config.max_capacity_per_slot, max_daily_minutes)
        await session.commit()
        await session.refresh(booking)
        return booking

    async def cancel(
        self,
        session: AsyncSession,
        booking_id: int,
        user_id: int,
        now: datetime | None = None,
    ) -> Booking:
        """Member cancel: own bookings only, and only before they start.

        Like ``book``, a rejection rolls back and expires the session's objects.
        """
        return await self._cancel(session, booking_id, user_id, now or self.now())

    async def admin_cancel(self, session: AsyncSession, booking_id: int) -> Booking:
        """Admin cancel: any booking, any time. Still a status flip."""
        return await self._cancel(session, booking_id, None, None)

    async def _cancel(
        self,
        session: AsyncSession,
        booking_id: int,
        user_id: int | None,
        as_of: datetime | None,
    ) -> Booking:
        ledger = self._ledger_factory(session)
        try:
            found = await ledger.get(booking_id)
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("Lookup of booking %s failed: %s", booking_id, e)
            raise InfrastructureError(
                "storage_unavailable", "Booking storage is unavailable"
            ) from e
        if found is None or (user_id is not None and found.user_id != user_id):
            raise NotFoundError("booking_not_found", "Booking not found", booking_id=booking_id)
        day = found.booking_date

        async with self._locks.hold(day):
            try:
                await session.refresh(found)
                booking = await ledger.cancel(booking_id, user_id, as_of)
                await session.commit()
            except BookingError as e:
                await session.rollback()
                logger.info("Cancel of booking %s rejected: %s", booking_id, e.code)
                raise
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Cancel of booking %s failed: %s", booking_id, e)
                raise InfrastructureError(
                    "storage_unavailable", "Booking storage is unavailable"
                ) from e

        logger.info("Booking %s cancelled by %s", booking_id, user_id or "admin")
        return booking

    @staticmethod
    def _log_rejection(request: BookingRequest, stage: BookingStage, error: BookingError) -> None:
        logger.info(
            "Booking rejected after %s: user %s on %s %s-%s (%s)",
            stage.value,
            request.user_id,
            request.booking_date,
            request.start_time,
            request.end_time,
            error.code,
        )
        if error.code == "slot_no_longer_available":
            logger.warning("Lost booking race for %s %s", request.booking_date, request.start_time)
