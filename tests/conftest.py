from collections.abc import AsyncGenerator
from datetime import date, datetime
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from gymbook.booking.calendar import update_config
from gymbook.booking.entitlement import assign_subscription, ensure_default_plans
from gymbook.database import Base, get_db
from gymbook.main import app
from gymbook.models.booking import Booking, BookingStatus
from gymbook.models.plan import Plan, PlanName
from gymbook.models.user import User, UserRole

test_engine = create_async_engine("sqlite+aiosqlite://", echo=False)
test_session = async_sessionmaker(test_engine, expire_on_commit=False)

MONDAY = date(2030, 1, 7)
SUNDAY = date(2030, 1, 6)
FAR_FUTURE = datetime(2099, 1, 1)


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with test_session() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
async def setup_db() -> AsyncGenerator[None, None]:
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def file_sessions(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Sessions on a file database, one connection each, for concurrent writers."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


def headers(user_id: int, role: UserRole = UserRole.MEMBER) -> dict[str, str]:
    return {"X-User-Id": str(user_id), "X-User-Role": role.value}


async def create_user(
    session: AsyncSession,
    email: str = "member@example.com",
    role: UserRole = UserRole.MEMBER,
) -> int:
    user = User(name=email.split("@")[0], email=email, role=role)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user.id


async def plan_id(session: AsyncSession, name: PlanName) -> int:
    await ensure_default_plans(session)
    result = await session.execute(select(Plan.id).where(Plan.name == name))
    return result.scalar_one()


async def subscribe(session: AsyncSession, user_id: int, name: PlanName) -> None:
    await assign_subscription(session, user_id, await plan_id(session, name), FAR_FUTURE)


async def set_capacity(session: AsyncSession, capacity: int) -> None:
    await update_config(session, {"max_capacity_per_slot": capacity}, updated_by=None)


async def add_booking(
    session: AsyncSession,
    user_id: int,
    day: date,
    start: str,
    end: str,
    status: BookingStatus = BookingStatus.CONFIRMED,
) -> Booking:
    """Insert a booking directly, bypassing the engine."""
    start_h, start_m = map(int, start.split(":"))
    end_h, end_m = map(int, end.split(":"))
    booking = Booking(
        user_id=user_id,
        booking_date=day,
        start_time=start,
        end_time=end,
        duration_minutes=(end_h * 60 + end_m) - (start_h * 60 + start_m),
        status=status,
    )
    session.add(booking)
    await session.commit()
    await session.refresh(booking)
    return booking
