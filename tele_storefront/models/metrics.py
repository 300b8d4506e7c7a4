"""Per-page metrics dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class PageMetrics:
    count: int = 0
    success: int = 0
    error: int = 0
    rate_limited: int = 0
    load_failures: int = 0
    total_latency_s: float = 0.0
    max_latency_s: float = 0.0
    latencies_s: list[float] = field(default_factory=list)
    last_error: str | None = None
    last_run_ts: float | None = None

    @property
    def avg_latency_s(self) -> float:
        return self.total_latency_s / self.count if self.count else 0.0
