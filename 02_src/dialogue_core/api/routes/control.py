"""Control API routes."""

from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import Application


class ControlResponse(BaseModel):
    """Response model for control actions."""

    status: str
    dropped_requests: int = 0


# Traffic simulator, registered by main()
_sim_instance: Any = None


def set_sim_instance(sim: Any) -> None:
    """Register the traffic simulator driven by the control routes."""
    global _sim_instance
    _sim_instance = sim


def get_sim_instance() -> Any:
    """Get the registered traffic simulator, if any."""
    return _sim_instance


def _require_sim() -> Any:
    if not _sim_instance:
        raise HTTPException(status_code=404, detail="Simulator not configured")
    return _sim_instance


def create_control_router(app: Application) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api/control", tags=["control"])

    @router.post("/reset", response_model=ControlResponse)
    async def reset_system() -> dict:
        """Drop queued requests, cooldowns and buffered telemetry."""
        try:
            dropped = len(app.queue)
            await app.reset()
            return {"status": "ok", "dropped_requests": dropped}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/sim/start", response_model=ControlResponse)
    async def start_sim() -> dict:
        """Start posting the scripted villager scenario."""
        sim = _require_sim()
        try:
            await sim.start()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {"status": "ok"}

    @router.post("/sim/stop", response_model=ControlResponse)
    async def stop_sim() -> dict:
        """Stop the villager traffic simulator."""
        sim = _require_sim()
        try:
            await sim.stop()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {"status": "ok"}

    return router
