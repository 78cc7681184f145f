from datetime import datetime

from pydantic import BaseModel, Field

from gymbook.models.plan import PlanName, SubscriptionStatus


class PlanRead(BaseModel):
    id: int
    name: PlanName
    display_name: str
    price: float
    max_daily_minutes: int
    features: list[str]
    description: str | None = None
    is_active: bool

    model_config = {"from_attributes": True}


class SubscriptionAssign(BaseModel):
    user_id: int
    plan_id: int
    end_date: datetime | None = None
    months: int = Field(default=1, ge=1, le=24)  # Used when end_date is omitted
    status: SubscriptionStatus = SubscriptionStatus.CURRENT
    notes: str | None = None


class SubscriptionStatusUpdate(BaseModel):
    status: SubscriptionStatus


class SubscriptionRead(BaseModel):
    id: int
    user_id: int
    plan_id: int
    status: SubscriptionStatus
    start_date: datetime
    end_date: datetime
    last_payment_date: datetime | None = None
    next_payment_date: datetime | None = None
    notes: str | None = None

    model_config = {"from_attributes": True}


class MySubscriptionRead(BaseModel):
    has_subscription: bool
    is_entitled: bool = False
    subscription: SubscriptionRead | None = None
    plan: PlanRead | None = None
