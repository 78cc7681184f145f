import enum
from datetime import date, datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gymbook.database import Base, enum_type

MIN_DURATION_MINUTES = 30
MAX_DURATION_MINUTES = 120


class BookingStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_user_date", "user_id", "booking_date"),
        Index("ix_bookings_date_start", "booking_date", "start_time"),
        CheckConstraint(
            f"duration_minutes >= {MIN_DURATION_MINUTES} AND duration_minutes <= {MAX_DURATION_MINUTES}",
            name="ck_bookings_duration",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    booking_date: Mapped[date]
    start_time: Mapped[str] = mapped_column(String(5))  # HH:MM, zero padded
    end_time: Mapped[str] = mapped_column(String(5))  # HH:MM, zero padded
    duration_minutes: Mapped[int]
    status: Mapped[BookingStatus] = mapped_column(
        enum_type(BookingStatus), default=BookingStatus.CONFIRMED
    )
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    created_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id"), default=None
    )  # Set when an admin books on behalf of a member
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)
