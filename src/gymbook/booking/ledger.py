"""Booking ledger: the authoritative store of bookings and its aggregations.

Ledger methods never commit. Writers (``create``/``cancel``) only flush, so the
booking engine can pair them with its checks in one transaction and roll the
whole thing back on rejection.
"""

from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gymbook.booking.errors import ConflictError, NotFoundError, StateError
from gymbook.booking.timeutil import slot_start
from gymbook.models.booking import Booking, BookingStatus

_ACTIVE = Booking.status != BookingStatus.CANCELLED


class BookingLedger:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # -- aggregations ------------------------------------------------------

    async def daily_booked_minutes(self, user_id: int, day: date) -> int:
        """Sum of durations of the user's non-cancelled bookings on ``day``."""
        stmt = select(func.coalesce(func.sum(Booking.duration_minutes), 0)).where(
            Booking.user_id == user_id,
            Booking.booking_date == day,
            _ACTIVE,
        )
        return int((await self._session.execute(stmt)).scalar_one())

    async def slot_occupancy(self, day: date) -> dict[str, int]:
        """Non-cancelled bookings per start time on ``day``, across all users."""
        stmt = (
            select(Booking.start_time, func.count(Booking.id))
            .where(Booking.booking_date == day, _ACTIVE)
            .group_by(Booking.start_time)
        )
        result = await self._session.execute(stmt)
        return {start: count for start, count in result.all()}

    async def find_overlap(
        self,
        user_id: int,
        day: date,
        start_time: str,
        end_time: str,
        exclude_id: int | None = None,
    ) -> Booking | None:
        """First non-cancelled booking of the user intersecting [start, end).

        Times are zero-padded HH:MM, so string order is time order.
        """
        stmt = select(Booking).where(
            Booking.user_id == user_id,
            Booking.booking_date == day,
            _ACTIVE,
            Booking.start_time < end_time,
            Booking.end_time > start_time,
        )
        if exclude_id is not None:
            stmt = stmt.where(Booking.id != exclude_id)
        stmt = stmt.order_by(Booking.start_time, Booking.id).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    # -- writes ------------------------------------------------------------

    async def get(self, booking_id: int) -> Booking | None:
        return await self._session.get(Booking, booking_id)

    async def create(
        self,
        user_id: int,
        day: date,
        start_time: str,
        end_time: str,
        duration_minutes: int,
        notes: str | None = None,
        created_by: int | None = None,
    ) -> Booking:
        booking = Booking(
            user_id=user_id,
            booking_date=day,
            start_time=start_time,
            end_time=end_time,
            duration_minutes=duration_minutes,
            status=BookingStatus.CONFIRMED,
            notes=notes,
            created_by=created_by,
        )
        self._session.add(booking)
        await self._session.flush()
        return booking

    async def recheck(
        self, booking: Booking, capacity: int, max_daily_minutes: int | None
    ) -> None:
        """Re-validate a flushed booking against everything now in the ledger.

        Runs inside the writer's transaction after the insert, so it also sees
        rows committed by writers this process does not serialize with.
        ``max_daily_minutes=None`` skips the daily total (unlimited or admin).
        """
        occupancy_stmt = select(func.count(Booking.id)).where(
            Booking.booking_date == booking.booking_date,
            Booking.start_time == booking.start_time,
            _ACTIVE,
        )
        occupancy = int((await self._session.execute(occupancy_stmt)).scalar_one())
        overlap = await self.find_overlap(
            booking.user_id,
            booking.booking_date,
            booking.start_time,
            booking.end_time,
            exclude_id=booking.id,
        )
        total = None
        if max_daily_minutes is not None:
            total = await self.daily_booked_minutes(booking.user_id, booking.booking_date)

        if (
            occupancy > capacity
            or overlap is not None
            or (total is not None and total > max_daily_minutes)
        ):
            raise ConflictError(
                "slot_no_longer_available",
                "The slot is no longer available, check availability again",
                date=booking.booking_date.isoformat(),
                start_time=booking.start_time,
            )

    async def cancel(
        self,
        booking_id: int,
        requesting_user_id: int | None,
        as_of: datetime | None,
    ) -> Booking:
        """Flip a booking to cancelled.

        ``requesting_user_id=None`` is the admin path: no ownership check.
        ``as_of=None`` skips the guard against cancelling a booking that
        already started.
        """
        booking = await self.get(booking_id)
        if booking is None or (
            requesting_user_id is not None and booking.user_id != requesting_user_id
        ):
            raise NotFoundError("booking_not_found", "Booking not found", booking_id=booking_id)
        if booking.status == BookingStatus.CANCELLED:
            raise StateError(
                "booking_already_cancelled", "Booking is already cancelled", booking_id=booking_id
            )
        if as_of is not None and slot_start(booking.booking_date, booking.start_time) < as_of:
            raise StateError(
                "booking_in_past", "Cannot cancel a booking that already started", booking_id=booking_id
            )
        booking.status = BookingStatus.CANCELLED
        booking.updated_at = datetime.utcnow()
        await self._session.flush()
        return booking

    # -- listings ----------------------------------------------------------

    async def list_for_user(
        self, user_id: int, start: date | None = None, end: date | None = None
    ) -> list[Booking]:
        stmt = select(Booking).where(Booking.user_id == user_id)
        if start is not None:
            stmt = stmt.where(Booking.booking_date >= start)
        if end is not None:
            stmt = stmt.where(Booking.booking_date <= end)
        stmt = stmt.order_by(Booking.booking_date, Booking.start_time, Booking.id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_date(self, day: date) -> list[Booking]:
        """Non-cancelled bookings of a day, by start time."""
        stmt = (
            select(Booking)
            .where(Booking.booking_date == day, _ACTIVE)
            .order_by(Booking.start_time, Booking.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_date_range(
        self,
        start: date | None = None,
        end: date | None = None,
        user_id: int | None = None,
        status: BookingStatus | None = None,
    ) -> list[Booking]:
        stmt = select(Booking)
        if start is not None:
            stmt = stmt.where(Booking.booking_date >= start)
        if end is not None:
            stmt = stmt.where(Booking.booking_date <= end)
        if user_id is not None:
            stmt = stmt.where(Booking.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        stmt = stmt.order_by(Booking.booking_date, Booking.start_time, Booking.id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def count_confirmed_on(self, day: date) -> int:
        stmt = select(func.count(Booking.id)).where(
            Booking.booking_date == day,
            Booking.status == BookingStatus.CONFIRMED,
        )
        return int((await self._session.execute(stmt)).scalar_one())
