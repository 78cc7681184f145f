"""Booking API routes: member booking, cancellation, availability and usage."""

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from gymbook.api.deps import Identity, get_identity, require_staff
from gymbook.api.errors import http_error
from gymbook.booking.availability import available_slots
from gymbook.booking.engine import BookingEngine, BookingRequest
from gymbook.booking.entitlement import resolve_entitlement
from gymbook.booking.errors import BookingError
from gymbook.booking.ledger import BookingLedger
from gymbook.database import get_db
from gymbook.models.booking import Booking
from gymbook.schemas.booking import (
    AvailabilityRead,
    BookingCreate,
    BookingRead,
    CancelResponse,
    DailyUsageRead,
)

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


@router.get("/me", response_model=list[BookingRead])
async def list_my_bookings(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
) -> list[Booking]:
    """List the caller's bookings, optionally within a date range."""
    return await BookingLedger(session).list_for_user(identity.user_id, start_date, end_date)


@router.get("/available/{booking_date}", response_model=AvailabilityRead)
async def get_availability(
    booking_date: date,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
) -> AvailabilityRead:
    """Bookable slots of a day with remaining capacity per start time."""
    result = await available_slots(session, booking_date)
    return AvailabilityRead.model_validate(result)


@router.get("/usage/{booking_date}", response_model=DailyUsageRead)
async def get_daily_usage(
    booking_date: date,
    user_id: int | None = Query(default=None),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
) -> DailyUsageRead:
    """Minutes booked on a day against the plan allowance.

    Members can only read their own usage; staff may pass ``user_id``.
    """
    target = user_id if user_id is not None else identity.user_id
    if target != identity.user_id and not identity.is_staff:
        raise HTTPException(
            status_code=403, detail={"code": "forbidden", "message": "Staff role required"}
        )

    booked = await BookingLedger(session).daily_booked_minutes(target, booking_date)
    entitlement = await resolve_entitlement(session, target, datetime.utcnow())

    usage = DailyUsageRead(user_id=target, booking_date=booking_date, booked_minutes=booked)
    if entitlement is not None:
        usage.max_daily_minutes = entitlement.max_daily_minutes
        usage.unlimited = entitlement.is_unlimited
        if not entitlement.is_unlimited:
            usage.remaining_minutes = max(entitlement.max_daily_minutes - booked, 0)
    return usage


@router.get("/date/{booking_date}", response_model=list[BookingRead])
async def list_bookings_for_date(
    booking_date: date,
    identity: Identity = Depends(require_staff),
    session: AsyncSession = Depends(get_db),
) -> list[Booking]:
    """All non-cancelled bookings of a day, by start time."""
    return await BookingLedger(session).list_by_date(booking_date)


@router.post("", response_model=BookingRead, status_code=201)
async def create_booking(
    body: BookingCreate,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
) -> Booking:
    """Book a time window for the caller.

    Rejections come back with a reason code: 400 validation, 403 plan or
    daily limit, 409 overlap or full slot (retry after re-checking
    availability).
    """
    engine = BookingEngine()
    request = BookingRequest(
        user_id=identity.user_id,
        booking_date=body.booking_date,
        start_time=body.start_time,
        end_time=body.end_time,
        notes=body.notes,
    )
    try:
        return await engine.book(session, request)
    except BookingError as e:
        raise http_error(e) from None


@router.delete("/{booking_id}", response_model=CancelResponse)
async def cancel_booking(
    booking_id: int,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
) -> CancelResponse:
    """Cancel one of the caller's bookings before it starts."""
    engine = BookingEngine()
    try:
        booking = await engine.cancel(session, booking_id, identity.user_id)
    except BookingError as e:
        raise http_error(e) from None
    return CancelResponse(id=booking.id, status=booking.status)
