from datetime import date, datetime

import pytest
from pydantic import ValidationError

from gymbook.booking.availability import AvailabilityResult, SlotAvailability
from gymbook.models.booking import BookingStatus
from gymbook.models.plan import PlanName, SubscriptionStatus
from gymbook.models.user import UserRole
from gymbook.schemas.booking import AvailabilityRead, BookingCreate, BookingRead
from gymbook.schemas.calendar import CalendarConfigUpdate, HolidayCreate
from gymbook.schemas.plan import MySubscriptionRead, PlanRead, SubscriptionAssign
from gymbook.schemas.user import UserCreate


class TestBookingSchemas:
    def test_booking_create_valid(self) -> None:
        body = BookingCreate(booking_date="2030-01-07", start_time="09:00", end_time="10:00")
        assert body.booking_date == date(2030, 1, 7)
        assert body.notes is None

    def test_booking_create_rejects_long_time(self) -> None:
        with pytest.raises(ValidationError):
            BookingCreate(booking_date="2030-01-07", start_time="09:00:00", end_time="10:00")

    def test_booking_create_invalid_date(self) -> None:
        with pytest.raises(ValidationError):
            BookingCreate(booking_date="2030-02-30", start_time="09:00", end_time="10:00")

    def test_booking_read_status_enum(self) -> None:
        now = datetime.utcnow()
        booking = BookingRead(
            id=1,
            user_id=2,
            booking_date=date(2030, 1, 7),
            start_time="09:00",
            end_time="10:00",
            duration_minutes=60,
            status="cancelled",
            created_at=now,
            updated_at=now,
        )
        assert booking.status == BookingStatus.CANCELLED

    def test_availability_from_dataclass(self) -> None:
        result = AvailabilityResult(
            booking_date=date(2030, 1, 7),
            closed=False,
            slots=[SlotAvailability("06:00", booked=1, capacity_remaining=4, is_available=True)],
        )
        read = AvailabilityRead.model_validate(result)
        assert read.slots[0].time == "06:00"
        assert read.slots[0].capacity_remaining == 4
        assert read.reason is None


class TestCalendarSchemas:
    def test_update_all_optional(self) -> None:
        update = CalendarConfigUpdate()
        assert update.model_dump(exclude_unset=True) == {}

    def test_update_weekday_range(self) -> None:
        with pytest.raises(ValidationError):
            CalendarConfigUpdate(closed_weekdays=[0, 7])

    def test_update_capacity_minimum(self) -> None:
        with pytest.raises(ValidationError):
            CalendarConfigUpdate(max_capacity_per_slot=0)

    def test_holiday_name_required(self) -> None:
        with pytest.raises(ValidationError):
            HolidayCreate(holiday_date=date(2030, 1, 1))


class TestPlanSchemas:
    def test_assign_defaults(self) -> None:
        body = SubscriptionAssign(user_id=1, plan_id=2)
        assert body.months == 1
        assert body.status == SubscriptionStatus.CURRENT
        assert body.end_date is None

    def test_assign_months_bounds(self) -> None:
        with pytest.raises(ValidationError):
            SubscriptionAssign(user_id=1, plan_id=2, months=0)
        with pytest.raises(ValidationError):
            SubscriptionAssign(user_id=1, plan_id=2, months=25)

    def test_assign_unknown_status(self) -> None:
        with pytest.raises(ValidationError):
            SubscriptionAssign(user_id=1, plan_id=2, status="al_dia")

    def test_plan_read(self) -> None:
        plan = PlanRead(
            id=1,
            name="online",
            display_name="Plan Online",
            price=15000.0,
            max_daily_minutes=0,
            features=[],
            is_active=True,
        )
        assert plan.name == PlanName.ONLINE

    def test_my_subscription_defaults(self) -> None:
        mine = MySubscriptionRead(has_subscription=False)
        assert mine.is_entitled is False
        assert mine.plan is None


class TestUserSchemas:
    def test_user_create_defaults_to_member(self) -> None:
        user = UserCreate(name="Ana", email="ana@example.com")
        assert user.role == UserRole.MEMBER

    def test_user_create_invalid_email(self) -> None:
        with pytest.raises(ValidationError):
            UserCreate(name="Ana", email="not-an-email")

    def test_user_create_invalid_role(self) -> None:
        with pytest.raises(ValidationError):
            UserCreate(name="Ana", email="ana@example.com", role="owner")
