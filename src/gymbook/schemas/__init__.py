from gymbook.schemas.booking import (
    AdminBookingCreate,
    AvailabilityRead,
    BookingCreate,
    BookingRead,
    CancelResponse,
    DailyUsageRead,
    SlotRead,
)
from gymbook.schemas.calendar import (
    CalendarConfigRead,
    CalendarConfigUpdate,
    HolidayCreate,
    HolidayRead,
)
from gymbook.schemas.plan import (
    MySubscriptionRead,
    PlanRead,
    SubscriptionAssign,
    SubscriptionRead,
    SubscriptionStatusUpdate,
)
from gymbook.schemas.system import StatsRead, StatusResponse
from gymbook.schemas.user import UserCreate, UserRead

__all__ = [
    "AdminBookingCreate",
    "AvailabilityRead",
    "BookingCreate",
    "BookingRead",
    "CalendarConfigRead",
    "CalendarConfigUpdate",
    "CancelResponse",
    "DailyUsageRead",
    "HolidayCreate",
    "HolidayRead",
    "MySubscriptionRead",
    "PlanRead",
    "SlotRead",
    "StatsRead",
    "StatusResponse",
    "SubscriptionAssign",
    "SubscriptionRead",
    "SubscriptionStatusUpdate",
    "UserCreate",
    "UserRead",
]
