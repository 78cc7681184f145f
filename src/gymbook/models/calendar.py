from datetime import date, datetime

from sqlalchemy import JSON, CheckConstraint, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gymbook.database import Base

CONFIG_ROW_ID = 1


class GymCalendarConfig(Base):
    """Process-wide calendar settings. Exactly one row, id=1."""

    __tablename__ = "gym_calendar_config"
    __table_args__ = (
        CheckConstraint(f"id = {CONFIG_ROW_ID}", name="ck_calendar_config_singleton"),
        CheckConstraint("max_capacity_per_slot >= 1", name="ck_calendar_config_capacity"),
        CheckConstraint("slot_duration_minutes >= 1", name="ck_calendar_config_slot"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, default=CONFIG_ROW_ID)
    open_time: Mapped[str] = mapped_column(String(5))  # HH:MM
    close_time: Mapped[str] = mapped_column(String(5))  # HH:MM
    closed_weekdays: Mapped[list[int]] = mapped_column(JSON, default=list)  # 0=Sunday, 6=Saturday
    slot_duration_minutes: Mapped[int] = mapped_column(default=30)
    max_capacity_per_slot: Mapped[int] = mapped_column(default=50)
    updated_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), default=None)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)


class Holiday(Base):
    __tablename__ = "holidays"

    id: Mapped[int] = mapped_column(primary_key=True)
    holiday_date: Mapped[date] = mapped_column(unique=True, index=True)
    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), default=None)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
