# alert_engine/sinks/__init__.py
from .base import FAILED, SENT, SKIPPED, Alert, AlertSink, BaseSink, SinkMetrics
from .console import ConsoleSink
from .slack import SlackSink

__all__ = [
    "Alert",
    "AlertSink",
    "BaseSink",
    "ConsoleSink",
    "FAILED",
    "SENT",
    "SKIPPED",
    "SinkMetrics",
    "SlackSink",
]
