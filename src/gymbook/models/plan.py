import enum
from datetime import datetime

from sqlalchemy import JSON, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gymbook.database import Base, enum_type

UNLIMITED_DAILY_MINUTES = 1440


class PlanName(str, enum.Enum):
    CLASSIC = "classic"  # time-boxed daily allowance
    PREMIUM = "premium"  # unlimited
    ONLINE = "online"  # remote only, no in-person booking


class SubscriptionStatus(str, enum.Enum):
    CURRENT = "current"
    AWAITING_PAYMENT = "awaiting_payment"
    SUSPENDED = "suspended"


class Plan(Base):
    __tablename__ = "plans"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[PlanName] = mapped_column(enum_type(PlanName), unique=True)
    display_name: Mapped[str] = mapped_column(String(100))
    price: Mapped[float] = mapped_column(Float)
    max_daily_minutes: Mapped[int]  # 0 = no booking, 1440 = unlimited
    features: Mapped[list[str]] = mapped_column(JSON, default=list)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)


class Subscription(Base):
    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    plan_id: Mapped[int] = mapped_column(ForeignKey("plans.id"))
    status: Mapped[SubscriptionStatus] = mapped_column(
        enum_type(SubscriptionStatus), default=SubscriptionStatus.AWAITING_PAYMENT
    )
    start_date: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    end_date: Mapped[datetime]
    last_payment_date: Mapped[datetime | None] = mapped_column(default=None)
    next_payment_date: Mapped[datetime | None] = mapped_column(default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)

    def is_entitled(self, as_of: datetime) -> bool:
        return self.status == SubscriptionStatus.CURRENT and self.end_date > as_of
