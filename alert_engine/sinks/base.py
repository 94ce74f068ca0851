# alert_engine/sinks/base.py
# Delivery targets for the alert digest. Each emit ends in exactly one outcome:
# sent, skipped (sink not configured) or error.

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Protocol

# digest keys: level, title, text, date, count
# per-pattern keys add: regions, confidence, related_events
Alert = Dict[str, Any]

SENT = "sent"
SKIPPED = "skipped"
FAILED = "error"


@dataclass
class SinkMetrics:
    attempted: int = 0
    sent: int = 0
    skipped: int = 0
    errors: int = 0

    def record(self, outcome: str) -> None:
        self.attempted += 1
        if outcome == SENT:
            self.sent += 1
        elif outcome == SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1

    def summary(self) -> str:
        return " ".join(f"{k}={v}" for k, v in asdict(self).items())


class AlertSink(Protocol):
    name: str
    dry_run: bool
    metrics: SinkMetrics

    def emit(self, alert: Alert) -> bool: ...
    def flush(self) -> None: ...


class BaseSink:
    """Subclasses implement deliver(); emit() counts the outcome."""

    name = "base"

    def __init__(self, *, dry_run: bool = True) -> None:
        self.dry_run = dry_run
        self.metrics = SinkMetrics()

    def deliver(self, alert: Alert) -> str:
        raise NotImplementedError

    def emit(self, alert: Alert) -> bool:
        outcome = self.deliver(alert)
        self.metrics.record(outcome)
        return outcome == SENT

    def flush(self) -> None:
        return None
