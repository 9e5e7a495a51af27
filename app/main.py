"""
app/main.py
FastAPI entry point for the up/down settlement engine.
"""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

import database.models as _models  # noqa: F401  registers tables with SQLModel metadata
from app.routes.bets import router as bets_router
from app.routes.common import settlement_error_handler
from app.routes.ledger import router as ledger_router
from app.routes.platform import router as platform_router
from app.routes.stats import router as stats_router
from core.config import get_settings
from core.constants import SYSTEM_VERSION
from core.errors import SettlementError
from database.connection import get_session, init_db

logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Startup: create DB tables and start scheduler. Shutdown: stop scheduler."""
    from app.services.scheduler import start_scheduler, stop_scheduler

    await init_db()
    logger.info("Database initialized, tables created")
    start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(
    title="Up/Down Settlement Engine API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_exception_handler(SettlementError, settlement_error_handler)

app.include_router(platform_router)
app.include_router(bets_router)
app.include_router(ledger_router)
app.include_router(stats_router)


@app.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)) -> dict:
    """Prove the API and database are alive."""
    try:
        await session.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "db": "connected",
            "version": SYSTEM_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    except Exception as exc:
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "db": str(exc),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )
