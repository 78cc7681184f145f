import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

import gymbook.models  # noqa: F401  register all models with Base.metadata
from gymbook.api.routes.admin import router as admin_router
from gymbook.api.routes.bookings import router as bookings_router
from gymbook.api.routes.plans import router as plans_router
from gymbook.booking.calendar import get_config
from gymbook.booking.entitlement import ensure_default_plans
from gymbook.config import get_settings
from gymbook.database import Base, async_session, engine
from gymbook.schemas.system import StatusResponse


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Create tables on startup (dev convenience; Alembic for production)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    # Calendar config exists before the first request reads it
    async with async_session() as session:
        await get_config(session)
        if settings.seed_plans:
            await ensure_default_plans(session)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="GymBook",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.include_router(bookings_router)
    app.include_router(admin_router)
    app.include_router(plans_router)

    @app.get("/api/system/status", response_model=StatusResponse)
    async def system_status() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
