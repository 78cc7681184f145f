"""Admin API routes: calendar settings, holidays, bookings, members and plans."""

from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gymbook.api.deps import Identity, get_identity, require_admin
from gymbook.api.errors import http_error
from gymbook.booking import calendar
from gymbook.booking.engine import BookingEngine, BookingRequest
from gymbook.booking.entitlement import add_months, assign_subscription, set_subscription_status
from gymbook.booking.errors import BookingError, ConflictError, NotFoundError
from gymbook.booking.ledger import BookingLedger
from gymbook.database import get_db
from gymbook.models.booking import Booking, BookingStatus
from gymbook.models.calendar import GymCalendarConfig, Holiday
from gymbook.models.plan import Subscription, SubscriptionStatus
from gymbook.models.user import User
from gymbook.schemas.booking import AdminBookingCreate, BookingRead, CancelResponse
from gymbook.schemas.calendar import (
    CalendarConfigRead,
    CalendarConfigUpdate,
    HolidayCreate,
    HolidayRead,
)
from gymbook.schemas.plan import SubscriptionAssign, SubscriptionRead, SubscriptionStatusUpdate
from gymbook.schemas.system import StatsRead
from gymbook.schemas.user import UserCreate, UserRead

router = APIRouter(prefix="/api/admin", tags=["admin"])


# ==================== SETTINGS ====================


@router.get("/settings", response_model=CalendarConfigRead)
async def read_calendar_settings(
    identity: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> GymCalendarConfig:
    return await calendar.get_config(session)


@router.put("/settings", response_model=CalendarConfigRead)
async def update_calendar_settings(
    body: CalendarConfigUpdate,
    identity: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> GymCalendarConfig:
    """Update calendar settings (partial update, only provided fields)."""
    try:
        return await calendar.update_config(
            session, body.model_dump(exclude_unset=True), identity.user_id
        )
    except BookingError as e:
        raise http_error(e) from None


# ==================== HOLIDAYS ====================


@router.get("/holidays", response_model=list[HolidayRead])
async def list_holidays(
    year: int | None = Query(default=None, ge=2000, le=2100),
    month: int | None = Query(default=None, ge=1, le=12),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
) -> list[Holiday]:
    """List holidays; readable by any member so the calendar can grey them out."""
    return await calendar.list_holidays(session, year, month)


@router.post("/holidays", response_model=HolidayRead, status_code=201)
async def add_holiday(
    body: HolidayCreate,
    identity: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> Holiday:
    """Close the gym on a date. Returns 409 if that date already has a holiday."""
    try:
        return await calendar.add_holiday(
            session, body.holiday_date, body.name, body.description, identity.user_id
        )
    except BookingError as e:
        raise http_error(e) from None


@router.delete("/holidays/{holiday_id}", status_code=204)
async def remove_holiday(
    holiday_id: int,
    identity: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> None:
    try:
        await calendar.remove_holiday(session, holiday_id)
    except BookingError as e:
        raise http_error(e) from None


# ==================== BOOKINGS ====================


@router.get("/bookings", response_model=list[BookingRead])
async def list_bookings(
    booking_date: date | None = Query(default=None, alias="date"),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    user_id: int | None = Query(default=None),
    status: BookingStatus | None = Query(default=None),
    identity: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> list[Booking]:
    """All bookings, filtered by a single date or a date range, user and status."""
    if booking_date is not None:
        start_date = end_date = booking_date
    return await BookingLedger(session).list_by_date_range(start_date, end_date, user_id, status)


@router.post("/bookings", response_model=BookingRead, status_code=201)
async def create_booking_for_user(
    body: AdminBookingCreate,
    identity: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> Booking:
    """Book on behalf of a member. Plan limits do not apply; capacity does."""
    engine = BookingEngine()
    request = BookingRequest(
        user_id=body.user_id,
        booking_date=body.booking_date,
        start_time=body.start_time,
        end_time=body.end_time,
        notes=body.notes,
    )
    try:
        return await engine.admin_book(session, request, identity.user_id)
    except BookingError as e:
        raise http_error(e) from None


@router.delete("/bookings/{booking_id}", response_model=CancelResponse)
async def cancel_booking_for_user(
    booking_id: int,
    identity: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> CancelResponse:
    """Cancel any booking, past or future. The record is kept as cancelled."""
    engine = BookingEngine()
    try:
        booking = await engine.admin_cancel(session, booking_id)
    except BookingError as e:
        raise http_error(e) from None
    return CancelResponse(id=booking.id, status=booking.status)


# ==================== MEMBERS ====================


@router.post("/users", response_model=UserRead, status_code=201)
async def create_user(
    body: UserCreate,
    identity: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> User:
    user = User(name=body.name, email=body.email, role=body.role)
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise http_error(
            ConflictError("email_taken", "Email already registered", retryable=False)
        ) from None
    await session.refresh(user)
    return user


@router.get("/users/{user_id}", response_model=UserRead)
async def get_user(
    user_id: int,
    identity: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise http_error(NotFoundError("user_not_found", "User not found", user_id=user_id))
    return user


# ==================== SUBSCRIPTIONS ====================


@router.post("/subscriptions", response_model=SubscriptionRead, status_code=201)
async def assign_plan(
    body: SubscriptionAssign,
    identity: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> Subscription:
    """Assign a plan to a member, superseding their previous subscription."""
    now = datetime.utcnow()
    end_date = body.end_date or add_months(now, body.months)
    try:
        return await assign_subscription(
            session,
            body.user_id,
            body.plan_id,
            end_date,
            status=body.status,
            now=now,
            notes=body.notes,
        )
    except BookingError as e:
        raise http_error(e) from None


@router.put("/subscriptions/{subscription_id}/status", response_model=SubscriptionRead)
async def update_subscription_status(
    subscription_id: int,
    body: SubscriptionStatusUpdate,
    identity: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> Subscription:
    try:
        return await set_subscription_status(session, subscription_id, body.status)
    except BookingError as e:
        raise http_error(e) from None


# ==================== STATS ====================


@router.get("/stats", response_model=StatsRead)
async def get_stats(
    identity: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> StatsRead:
    counts = dict(
        (
            await session.execute(
                select(Subscription.status, func.count(Subscription.id)).group_by(
                    Subscription.status
                )
            )
        ).all()
    )
    today = BookingEngine().now().date()
    return StatsRead(
        today_bookings=await BookingLedger(session).count_confirmed_on(today),
        current_subscriptions=counts.get(SubscriptionStatus.CURRENT, 0),
        awaiting_payment_subscriptions=counts.get(SubscriptionStatus.AWAITING_PAYMENT, 0),
    )
