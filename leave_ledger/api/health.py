import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from leave_ledger.config import get_settings
from leave_ledger.db import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"]
    database: Literal["reachable", "unreachable"]
    version: str
    environment: str
    ledger_period: str


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Liveness plus a ledger store round-trip. Always 200; see ``status``."""
    settings = get_settings()
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check: ledger store unreachable")
        database: Literal["reachable", "unreachable"] = "unreachable"
    else:
        database = "reachable"

    return HealthResponse(
        status="ok" if database == "reachable" else "degraded",
        database=database,
        version=settings.app_version,
        environment=settings.environment,
        ledger_period=settings.ledger_period,
    )
