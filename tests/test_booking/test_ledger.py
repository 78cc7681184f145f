"""Tests for booking ledger aggregations, cancellation and listings."""

from datetime import datetime, timedelta

import pytest

from gymbook.booking.errors import ConflictError, NotFoundError, StateError
from gymbook.booking.ledger import BookingLedger
from gymbook.models.booking import BookingStatus
from tests.conftest import MONDAY, add_booking, create_user, test_session


class TestAggregations:
    async def test_daily_minutes_skips_cancelled_and_other_days(self) -> None:
        async with test_session() as session:
            user_id = await create_user(session)
            await add_booking(session, user_id, MONDAY, "09:00", "10:00")
            await add_booking(session, user_id, MONDAY, "11:00", "11:30")
            await add_booking(
                session, user_id, MONDAY, "12:00", "14:00", status=BookingStatus.CANCELLED
            )
            await add_booking(session, user_id, MONDAY + timedelta(days=1), "09:00", "10:00")

            ledger = BookingLedger(session)
            assert await ledger.daily_booked_minutes(user_id, MONDAY) == 90

    async def test_daily_minutes_zero_when_empty(self) -> None:
        async with test_session() as session:
            user_id = await create_user(session)
            assert await BookingLedger(session).daily_booked_minutes(user_id, MONDAY) == 0

    async def test_slot_occupancy_across_users(self) -> None:
        async with test_session() as session:
            a = await create_user(session, "a@example.com")
            b = await create_user(session, "b@example.com")
            await add_booking(session, a, MONDAY, "08:00", "09:00")
            await add_booking(session, b, MONDAY, "08:00", "08:30")
            await add_booking(session, b, MONDAY, "10:00", "10:30")
            await add_booking(session, a, MONDAY, "10:00", "11:00", status=BookingStatus.CANCELLED)

            occupancy = await BookingLedger(session).slot_occupancy(MONDAY)
            assert occupancy == {"08:00": 2, "10:00": 1}


class TestFindOverlap:
    @pytest.mark.parametrize(
        ("start", "end", "overlaps"),
        [
            ("08:30", "09:30", True),
            ("09:30", "10:30", True),
            ("09:15", "09:45", True),
            ("08:00", "11:00", True),
            ("08:00", "09:00", False),  # touching the start
            ("10:00", "11:00", False),  # touching the end
        ],
    )
    async def test_half_open_intervals(self, start: str, end: str, overlaps: bool) -> None:
        async with test_session() as session:
            user_id = await create_user(session)
            existing = await add_booking(session, user_id, MONDAY, "09:00", "10:00")

            found = await BookingLedger(session).find_overlap(user_id, MONDAY, start, end)
            if overlaps:
                assert found is not None
                assert found.id == existing.id
            else:
                assert found is None

    async def test_ignores_cancelled_and_other_users(self) -> None:
        async with test_session() as session:
            a = await create_user(session, "a@example.com")
            b = await create_user(session, "b@example.com")
            await add_booking(session, a, MONDAY, "09:00", "10:00", status=BookingStatus.CANCELLED)
            await add_booking(session, b, MONDAY, "09:00", "10:00")

            assert await BookingLedger(session).find_overlap(a, MONDAY, "09:00", "10:00") is None


class TestRecheck:
    async def test_passes_when_consistent(self) -> None:
        async with test_session() as session:
            user_id = await create_user(session)
            ledger = BookingLedger(session)
            booking = await ledger.create(user_id, MONDAY, "09:00", "10:00", 60)
            await ledger.recheck(booking, capacity=1, max_daily_minutes=120)

    async def test_detects_over_capacity(self) -> None:
        async with test_session() as session:
            a = await create_user(session, "a@example.com")
            b = await create_user(session, "b@example.com")
            await add_booking(session, a, MONDAY, "09:00", "10:00")
            ledger = BookingLedger(session)
            booking = await ledger.create(b, MONDAY, "09:00", "09:30", 30)
            with pytest.raises(ConflictError) as exc:
                await ledger.recheck(booking, capacity=1, max_daily_minutes=None)
            assert exc.value.code == "slot_no_longer_available"

    async def test_detects_daily_total(self) -> None:
        async with test_session() as session:
            user_id = await create_user(session)
            await add_booking(session, user_id, MONDAY, "07:00", "09:00")
            ledger = BookingLedger(session)
            booking = await ledger.create(user_id, MONDAY, "12:00", "12:30", 30)
            with pytest.raises(ConflictError):
                await ledger.recheck(booking, capacity=10, max_daily_minutes=120)


class TestCancel:
    async def test_cancel_future_booking(self) -> None:
        async with test_session() as session:
            user_id = await create_user(session)
            booking = await add_booking(session, user_id, MONDAY, "09:00", "10:00")
            ledger = BookingLedger(session)

            cancelled = await ledger.cancel(booking.id, user_id, datetime(2030, 1, 7, 8, 0))
            assert cancelled.status == BookingStatus.CANCELLED
            assert await ledger.daily_booked_minutes(user_id, MONDAY) == 0

    async def test_not_owner_is_not_found(self) -> None:
        async with test_session() as session:
            owner = await create_user(session, "owner@example.com")
            other = await create_user(session, "other@example.com")
            booking = await add_booking(session, owner, MONDAY, "09:00", "10:00")

            with pytest.raises(NotFoundError):
                await BookingLedger(session).cancel(booking.id, other, datetime(2030, 1, 1))

    async def test_missing_booking(self) -> None:
        async with test_session() as session:
            with pytest.raises(NotFoundError) as exc:
                await BookingLedger(session).cancel(999, 1, None)
            assert exc.value.code == "booking_not_found"

    async def test_started_booking_rejected(self) -> None:
        async with test_session() as session:
            user_id = await create_user(session)
            booking = await add_booking(session, user_id, MONDAY, "09:00", "10:00")
            with pytest.raises(StateError) as exc:
                await BookingLedger(session).cancel(
                    booking.id, user_id, datetime(2030, 1, 7, 9, 1)
                )
            assert exc.value.code == "booking_in_past"

    async def test_already_cancelled(self) -> None:
        async with test_session() as session:
            user_id = await create_user(session)
            booking = await add_booking(
                session, user_id, MONDAY, "09:00", "10:00", status=BookingStatus.CANCELLED
            )
            with pytest.raises(StateError) as exc:
                await BookingLedger(session).cancel(booking.id, None, None)
            assert exc.value.code == "booking_already_cancelled"

    async def test_admin_path_ignores_owner_and_time(self) -> None:
        async with test_session() as session:
            user_id = await create_user(session)
            booking = await add_booking(session, user_id, MONDAY, "09:00", "10:00")
            cancelled = await BookingLedger(session).cancel(booking.id, None, None)
            assert cancelled.status == BookingStatus.CANCELLED


class TestListings:
    async def test_list_for_user_ordered_and_ranged(self) -> None:
        async with test_session() as session:
            user_id = await create_user(session)
            tuesday = MONDAY + timedelta(days=1)
            await add_booking(session, user_id, tuesday, "08:00", "09:00")
            await add_booking(session, user_id, MONDAY, "18:00", "19:00")
            await add_booking(session, user_id, MONDAY, "07:00", "08:00")

            ledger = BookingLedger(session)
            rows = await ledger.list_for_user(user_id)
            assert [(r.booking_date, r.start_time) for r in rows] == [
                (MONDAY, "07:00"),
                (MONDAY, "18:00"),
                (tuesday, "08:00"),
            ]
            only_tuesday = await ledger.list_for_user(user_id, tuesday, tuesday)
            assert len(only_tuesday) == 1

    async def test_list_by_date_hides_cancelled(self) -> None:
        async with test_session() as session:
            user_id = await create_user(session)
            await add_booking(session, user_id, MONDAY, "10:00", "11:00")
            await add_booking(session, user_id, MONDAY, "08:00", "09:00", status=BookingStatus.CANCELLED)

            rows = await BookingLedger(session).list_by_date(MONDAY)
            assert [r.start_time for r in rows] == ["10:00"]

    async def test_list_by_date_range_filters(self) -> None:
        async with test_session() as session:
            a = await create_user(session, "a@example.com")
            b = await create_user(session, "b@example.com")
            await add_booking(session, a, MONDAY, "10:00", "11:00")
            await add_booking(session, b, MONDAY, "10:00", "11:00", status=BookingStatus.CANCELLED)

            ledger = BookingLedger(session)
            assert len(await ledger.list_by_date_range(MONDAY, MONDAY)) == 2
            assert len(await ledger.list_by_date_range(user_id=a)) == 1
            cancelled = await ledger.list_by_date_range(status=BookingStatus.CANCELLED)
            assert [r.user_id for r in cancelled] == [b]
