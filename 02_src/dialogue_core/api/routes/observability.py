"""Observability API routes."""

from typing import Any, Literal

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException, Query

from ...app import Application


class StatusResponse(BaseModel):
    """Response model for dispatch status."""

    provider: str
    connection_state: str
    queue_depth: int
    in_flight: int
    global_cooldown_remaining: float
    running: bool


def create_observability_router(app: Application) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api/dialogue", tags=["observability"])

    @router.get("/telemetry", response_model=list[dict[str, Any]])
    async def get_telemetry(
        limit: int = Query(64, ge=1, le=1000),
        kind: Literal["response", "failure"] | None = Query(
            None, description="Filter by record kind"
        ),
    ) -> list[dict]:
        """Get the most recent telemetry records, oldest first."""
        try:
            records = app.telemetry.records(limit=limit, kind=kind)
            return [record.to_dict() for record in records]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/status", response_model=StatusResponse)
    async def get_status() -> dict:
        """Get broker, queue and cooldown state."""
        try:
            return app.status()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
