from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from profile_views.config import get_settings
from profile_views.dependencies import counter_state
from profile_views.observability.metrics import get_metrics
from profile_views.services.counter_state import ViewCounterState


router = APIRouter(prefix="/api", tags=["metrics"])


@router.get("/metrics")
async def metrics(state: ViewCounterState = Depends(counter_state)) -> dict:
    settings = get_settings()
    if not settings.enable_metrics_endpoint:
        raise HTTPException(status_code=404, detail="Not found")
    payload = get_metrics().snapshot()
    payload["views"] = state.describe().model_dump()
    return payload
