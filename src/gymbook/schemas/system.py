from pydantic import BaseModel


class StatusResponse(BaseModel):
    status: str


class StatsRead(BaseModel):
    today_bookings: int
    current_subscriptions: int
    awaiting_payment_subscriptions: int
