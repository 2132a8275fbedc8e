from datetime import datetime

from pydantic import BaseModel, Field


class RequestMetricsRead(BaseModel):
    method: str
    path: str
    count: int
    avg_latency_ms: float
    max_latency_ms: float
    # keyed by "2xx", "4xx", "5xx"
    status_classes: dict[str, int] = Field(default_factory=dict)


class SyncEventRead(BaseModel):
    event: str
    collection: str
    count: int


class ObservabilityMetricsResponse(BaseModel):
    generated_at: datetime
    uptime_seconds: int
    total_requests: int
    requests: list[RequestMetricsRead]
    sync_events: list[SyncEventRead]
