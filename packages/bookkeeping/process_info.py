"""Facts about the running process, built once at startup."""

from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass(frozen=True)
class ProcessInfo:
    name: str
    version: str
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def uptime_seconds(self, now: datetime | None = None) -> float:
        now = now or datetime.now(UTC)
        return max((now - self.started_at).total_seconds(), 0.0)
