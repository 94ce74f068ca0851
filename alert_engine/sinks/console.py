# alert_engine/sinks/console.py
from __future__ import annotations

import sys
from typing import Optional, TextIO

from .base import SENT, Alert, BaseSink

RULE = "─" * 60


class ConsoleSink(BaseSink):
    """Prints the digest between rules; always live."""

    name = "console"

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        super().__init__(dry_run=False)
        self.stream = stream

    def deliver(self, alert: Alert) -> str:
        body = alert.get("text") or alert.get("title") or ""
        print(f"{RULE}\n{body}\n{RULE}", file=self.stream or sys.stdout)
        return SENT
