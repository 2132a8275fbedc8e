from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock

from meadpilot.core.timestamps import utcnow


def status_class(status_code: int) -> str:
    return f"{status_code // 100}xx"


@dataclass
class RequestStats:
    method: str
    path: str
    latencies_total_ms: float = 0.0
    slowest_ms: float = 0.0
    statuses: Counter[str] = field(default_factory=Counter)

    @property
    def count(self) -> int:
        return sum(self.statuses.values())

    def add(self, duration_ms: float, status_code: int) -> None:
        self.statuses[status_class(status_code)] += 1
        self.latencies_total_ms += duration_ms
        self.slowest_ms = max(self.slowest_ms, duration_ms)

    def as_dict(self) -> dict[str, object]:
        count = self.count
        return {
            "method": self.method,
            "path": self.path,
            "count": count,
            "avg_latency_ms": round(self.latencies_total_ms / count, 2) if count else 0.0,
            "max_latency_ms": round(self.slowest_ms, 2),
            "status_classes": dict(sorted(self.statuses.items())),
        }


class ObservabilityTracker:
    """Process-wide counters for API requests and for sync activity per collection."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self._started_at = utcnow()
            self._requests: dict[tuple[str, str], RequestStats] = {}
            self._sync_events: Counter[tuple[str, str]] = Counter()

    def record_request(self, *, method: str, path: str, status_code: int, duration_ms: float) -> None:
        with self._lock:
            stats = self._requests.setdefault((method, path), RequestStats(method=method, path=path))
            stats.add(duration_ms, status_code)

    def record_sync_event(self, event: str, *, collection: str = "") -> None:
        with self._lock:
            self._sync_events[(event, collection)] += 1

    def sync_event_count(self, event: str) -> int:
        with self._lock:
            return sum(count for (name, _), count in self._sync_events.items() if name == event)

    def snapshot(self) -> dict[str, object]:
        with self._lock:
            now = utcnow()
            return {
                "generated_at": now,
                "uptime_seconds": int((now - self._started_at).total_seconds()),
                "total_requests": sum(stats.count for stats in self._requests.values()),
                "requests": [
                    stats.as_dict() for _, stats in sorted(self._requests.items(), key=lambda item: item[0][::-1])
                ],
                "sync_events": [
                    {"event": event, "collection": collection, "count": count}
                    for (event, collection), count in sorted(self._sync_events.items())
                ],
            }


observability_tracker = ObservabilityTracker()
