"""Plan and subscription API routes: read-only views for members."""

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gymbook.api.deps import Identity, get_identity
from gymbook.api.errors import http_error
from gymbook.booking.entitlement import get_plan, latest_subscription, list_plans
from gymbook.booking.errors import BookingError
from gymbook.database import get_db
from gymbook.models.plan import Plan
from gymbook.schemas.plan import MySubscriptionRead, PlanRead, SubscriptionRead

router = APIRouter(tags=["plans"])


@router.get("/api/plans", response_model=list[PlanRead])
async def get_plans(session: AsyncSession = Depends(get_db)) -> list[Plan]:
    """Active plans, cheapest first."""
    return await list_plans(session)


@router.get("/api/plans/{plan_id}", response_model=PlanRead)
async def get_single_plan(plan_id: int, session: AsyncSession = Depends(get_db)) -> Plan:
    try:
        return await get_plan(session, plan_id)
    except BookingError as e:
        raise http_error(e) from None


@router.get("/api/subscriptions/me", response_model=MySubscriptionRead)
async def get_my_subscription(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
) -> MySubscriptionRead:
    """The caller's most recent subscription and whether it currently entitles them."""
    subscription = await latest_subscription(session, identity.user_id)
    if subscription is None:
        return MySubscriptionRead(has_subscription=False)
    plan = await get_plan(session, subscription.plan_id)
    return MySubscriptionRead(
        has_subscription=True,
        is_entitled=subscription.is_entitled(datetime.utcnow()),
        subscription=SubscriptionRead.model_validate(subscription),
        plan=PlanRead.model_validate(plan),
    )
