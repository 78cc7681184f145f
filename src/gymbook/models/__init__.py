from gymbook.models.booking import Booking, BookingStatus
from gymbook.models.calendar import GymCalendarConfig, Holiday
from gymbook.models.plan import Plan, PlanName, Subscription, SubscriptionStatus
from gymbook.models.user import User, UserRole

__all__ = [
    "Booking",
    "BookingStatus",
    "GymCalendarConfig",
    "Holiday",
    "Plan",
    "PlanName",
    "Subscription",
    "SubscriptionStatus",
    "User",
    "UserRole",
]
