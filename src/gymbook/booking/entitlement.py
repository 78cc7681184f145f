"""Plans, subscriptions and the daily-minute entitlement they grant."""

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gymbook.booking.errors import NotFoundError
from gymbook.models.plan import (
    UNLIMITED_DAILY_MINUTES,
    Plan,
    PlanName,
    Subscription,
    SubscriptionStatus,
)
from gymbook.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_PLANS = [
    {
        "name": PlanName.CLASSIC,
        "display_name": "Plan Classic",
        "price": 30000.0,
        "max_daily_minutes": 120,
        "features": ["Weight room access", "Up to 2 hours per day", "Locker included", "Showers"],
        "description": "For members starting their fitness journey",
    },
    {
        "name": PlanName.PREMIUM,
        "display_name": "Plan Premium",
        "price": 50000.0,
        "max_daily_minutes": UNLIMITED_DAILY_MINUTES,
        "features": ["Unlimited access", "Group classes", "Weekly personal trainer session"],
        "description": "Unlimited in-person training",
    },
    {
        "name": PlanName.ONLINE,
        "display_name": "Plan Online",
        "price": 15000.0,
        "max_daily_minutes": 0,
        "features": ["Training routines", "Nutrition plans", "Remote follow-up"],
        "description": "Remote coaching, no in-person bookings",
    },
]


def add_months(moment: datetime, months: int) -> datetime:
    """Same day-of-month ``months`` later, clamped to the end of shorter months."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


@dataclass(frozen=True)
class Entitlement:
    plan_name: PlanName
    max_daily_minutes: int
    subscription_id: int

    @property
    def is_unlimited(self) -> bool:
        return self.max_daily_minutes >= UNLIMITED_DAILY_MINUTES

    @property
    def allows_in_person(self) -> bool:
        return self.plan_name != PlanName.ONLINE and self.max_daily_minutes > 0


async def resolve_entitlement(
    session: AsyncSession, user_id: int, as_of: datetime
) -> Entitlement | None:
    """Return the allowance of the user's current subscription, or None.

    Only subscriptions with status ``current`` whose end date is after
    ``as_of`` count. When several qualify, the most recently started wins.
    """
    stmt = (
        select(Subscription, Plan)
        .join(Plan, Plan.id == Subscription.plan_id)
        .where(
            Subscription.user_id == user_id,
            Subscription.status == SubscriptionStatus.CURRENT,
            Subscription.end_date > as_of,
        )
        .order_by(Subscription.start_date.desc(), Subscription.id.desc())
        .limit(1)
    )
    row = (await session.execute(stmt)).first()
    if row is None:
        return None
    subscription, plan = row
    return Entitlement(
        plan_name=plan.name,
        max_daily_minutes=plan.max_daily_minutes,
        subscription_id=subscription.id,
    )


async def ensure_default_plans(session: AsyncSession) -> None:
    existing = set((await session.execute(select(Plan.name))).scalars().all())
    created = [Plan(**data) for data in DEFAULT_PLANS if data["name"] not in existing]
    if not created:
        return
    session.add_all(created)
    await session.commit()
    logger.info("Seeded plans: %s", ", ".join(p.name.value for p in created))


async def list_plans(session: AsyncSession, active_only: bool = True) -> list[Plan]:
    stmt = select(Plan).order_by(Plan.price)
    if active_only:
        stmt = stmt.where(Plan.is_active.is_(True))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_plan(session: AsyncSession, plan_id: int) -> Plan:
    plan = await session.get(Plan, plan_id)
    if plan is None:
        raise NotFoundError("plan_not_found", "Plan not found", plan_id=plan_id)
    return plan


async def latest_subscription(session: AsyncSession, user_id: int) -> Subscription | None:
    stmt = (
        select(Subscription)
        .where(Subscription.user_id == user_id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def assign_subscription(
    session: AsyncSession,
    user_id: int,
    plan_id: int,
    end_date: datetime,
    status: SubscriptionStatus = SubscriptionStatus.CURRENT,
    now: datetime | None = None,
    notes: str | None = None,
) -> Subscription:
    """Give a user a plan, superseding any other non-suspended subscription.

    The supersede and the insert share one transaction, so a user never ends
    up with two logically active subscriptions.
    """
    now = now or datetime.utcnow()
    if await session.get(User, user_id) is None:
        raise NotFoundError("user_not_found", "User not found", user_id=user_id)
    await get_plan(session, plan_id)

    superseded = await session.execute(
        update(Subscription)
        .where(
            Subscription.user_id == user_id,
            Subscription.status != SubscriptionStatus.SUSPENDED,
        )
        .values(status=SubscriptionStatus.SUSPENDED, updated_at=now)
    )

    subscription = Subscription(
        user_id=user_id,
        plan_id=plan_id,
        status=status,
        start_date=now,
        end_date=end_date,
        last_payment_date=now if status == SubscriptionStatus.CURRENT else None,
        next_payment_date=end_date,
        notes=notes,
    )
    session.add(subscription)
    await session.commit()
    await session.refresh(subscription)
    logger.info(
        "Subscription %s assigned to user %s (superseded %s)",
        subscription.id,
        user_id,
        superseded.rowcount,
    )
    return subscription


async def set_subscription_status(
    session: AsyncSession,
    subscription_id: int,
    status: SubscriptionStatus,
    now: datetime | None = None,
) -> Subscription:
    subscription = await session.get(Subscription, subscription_id)
    if subscription is None:
        raise NotFoundError(
            "subscription_not_found", "Subscription not found", subscription_id=subscription_id
        )
    now = now or datetime.utcnow()
    if status != SubscriptionStatus.SUSPENDED:
        await session.execute(
            update(Subscription)
            .where(
                Subscription.user_id == subscription.user_id,
                Subscription.id != subscription.id,
                Subscription.status != SubscriptionStatus.SUSPENDED,
            )
            .values(status=SubscriptionStatus.SUSPENDED, updated_at=now)
        )
    subscription.status = status
    if status == SubscriptionStatus.CURRENT:
        subscription.last_payment_date = now
    await session.commit()
    await session.refresh(subscription)
    logger.info("Subscription %s status -> %s", subscription_id, status.value)
    return subscription
