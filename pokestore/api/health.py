"""
Health check endpoints.

Liveness and readiness checks. Readiness means the database answers and
there are cards to serve, either as rows or as a local cards snapshot.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pokestore.config import settings
from pokestore.db.database import get_session
from pokestore.db.operations import count_cards
from pokestore.pipeline.storage import CARDS_FILE, SNAPSHOT_FILES, LocalStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    cards: int | None = None
    snapshots: list[str] | None = None


def get_snapshot_store() -> LocalStore:
    return LocalStore(settings.data_dir)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness check; does not check dependencies."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    local: Annotated[LocalStore, Depends(get_snapshot_store)],
) -> HealthResponse:
    """
    Readiness check.

    Returns 503 when the database cannot count cards, or when neither the
    cards table nor the cards snapshot holds anything yet.
    """
    snapshots = [name for name in SNAPSHOT_FILES if local.path(name).exists()]
    try:
        cards = await count_cards(session)
    except SQLAlchemyError as e:
        logger.warning("Database not reachable: %s", e)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected", snapshots=snapshots)

    if cards == 0 and CARDS_FILE not in snapshots:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="no data", database="connected", cards=0, snapshots=snapshots)
    return HealthResponse(status="ready", database="connected", cards=cards, snapshots=snapshots)
