"""
Liveness and readiness probes.

Readiness only looks at the database. The catalog is rate-limited and is
never called from a probe; an unreachable catalog degrades individual card
operations, not the whole service.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tradebinder.db.database import get_session
from tradebinder.models.db import InventoryCardDB

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class ProbeResponse(BaseModel):
    """Probe result. `database` and `cards` are only set by /ready."""

    status: str
    database: str | None = None
    cards: int | None = None


@router.get("/health", response_model=ProbeResponse)
async def health() -> ProbeResponse:
    """The process is up. Nothing else is checked."""
    return ProbeResponse(status="healthy")


@router.get(
    "/ready",
    response_model=ProbeResponse,
    responses={503: {"model": ProbeResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ProbeResponse:
    """
    The inventory tables can be queried.

    Reports how many cards are stored. 503 if the query fails.
    """
    try:
        cards = await session.scalar(select(func.count()).select_from(InventoryCardDB))
    except SQLAlchemyError as e:
        logger.error("Readiness check failed: %s", e)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ProbeResponse(status="not ready", database="unreachable")
    return ProbeResponse(status="ready", database="ok", cards=cards or 0)
