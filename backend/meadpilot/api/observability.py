from fastapi import APIRouter

from meadpilot.schemas.observability import ObservabilityMetricsResponse
from meadpilot.services.observability import observability_tracker

router = APIRouter(prefix="/observability", tags=["observability"])


@router.get("/metrics", response_model=ObservabilityMetricsResponse)
def read_sync_metrics() -> ObservabilityMetricsResponse:
    """Request latencies plus snapshot and write-failure counts since startup."""
    return ObservabilityMetricsResponse.model_validate(observability_tracker.snapshot())
