# alert_engine/cooldown.py
# Last-dispatch timestamp persisted as JSON so hourly runs don't repeat alerts.

from __future__ import annotations

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from shared.datetime_utils import as_utc, parse_to_utc, to_iso_utc, utc_now


class AlertCooldown:
    def __init__(self, path: str, minutes: int = 60) -> None:
        self.path = Path(path)
        self.minutes = minutes

    def last_sent(self) -> Optional[datetime]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8")) or {}
            return parse_to_utc(data.get("last_sent"))
        except (OSError, ValueError, AttributeError):
            return None

    def remaining(self, now: Optional[datetime] = None) -> float:
        """Minutes until the next dispatch is allowed; 0 when not cooling down."""
        last = self.last_sent()
        if last is None or self.minutes <= 0:
            return 0.0
        now = as_utc(now or utc_now())
        left = (last + timedelta(minutes=self.minutes) - now).total_seconds() / 60
        return max(0.0, left)

    def active(self, now: Optional[datetime] = None) -> bool:
        return self.remaining(now) > 0

    def mark_sent(self, now: Optional[datetime] = None) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps({"last_sent": to_iso_utc(as_utc(now or utc_now()))}), encoding="utf-8")
        tmp.replace(self.path)
