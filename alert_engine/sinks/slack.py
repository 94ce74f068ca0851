# alert_engine/sinks/slack.py
from __future__ import annotations

import json
import os
import random
import time
import urllib.error
import urllib.request
from typing import Any, Callable, Dict, Optional, Tuple

from common.logging import get_logger
from .base import FAILED, SENT, SKIPPED, Alert, BaseSink

log = get_logger("sinks.slack")

# Slack rejects section text beyond 3000 characters, header text beyond 150
SECTION_LIMIT = 3000
HEADER_LIMIT = 150
DEFAULT_HEADER = "Geopolitical intelligence alert"


def backoff_secs(attempt: int) -> float:
    """0.5s, 1s, 2s, ... plus up to 200ms jitter."""
    return 0.5 * (2 ** (attempt - 1)) + random.uniform(0, 0.2)


class SlackSink(BaseSink):
    """
    Posts the digest to a Slack incoming webhook.

    Nothing leaves the process unless dry_run is False. Live posts retry HTTP 5xx
    and transport errors up to `attempts` times; any other status is final.
    """

    name = "slack"

    def __init__(
        self,
        *,
        webhook_url: Optional[str],
        mention: Optional[str] = None,
        timeout_secs: float = 5.0,
        attempts: int = 3,
        sleep: Callable[[float], None] = time.sleep,
        dry_run: bool = True,
    ) -> None:
        super().__init__(dry_run=dry_run)
        self.webhook_url = webhook_url
        self.mention = mention
        self.timeout_secs = timeout_secs
        self.attempts = max(1, attempts)
        self.sleep = sleep

    @classmethod
    def from_cli(cls, args: Any) -> "SlackSink":
        """CLI flags first, then SLACK_WEBHOOK_URL / SLACK_TIMEOUT_SECS / SLACK_MENTION."""
        timeout = getattr(args, "slack_timeout", None) or os.getenv("SLACK_TIMEOUT_SECS") or 5
        return cls(
            webhook_url=getattr(args, "slack_webhook", None) or os.getenv("SLACK_WEBHOOK_URL"),
            mention=getattr(args, "slack_mention", None) or os.getenv("SLACK_MENTION"),
            timeout_secs=float(timeout),
            dry_run=not getattr(args, "sinks_live", False),
        )

    def build_payload(self, alert: Alert) -> Dict[str, Any]:
        text = alert.get("text") or alert.get("title") or "(no text)"
        if self.mention:
            text = f"{self.mention}\n{text}"
        header = (alert.get("title") or DEFAULT_HEADER)[:HEADER_LIMIT]
        return {
            "text": text,
            "blocks": [
                {"type": "header", "text": {"type": "plain_text", "text": header}},
                {"type": "section", "text": {"type": "mrkdwn", "text": text[:SECTION_LIMIT]}},
            ],
        }

    def _post(self, payload: Dict[str, Any]) -> Tuple[int, str]:
        req = urllib.request.Request(
            self.webhook_url,
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_secs) as resp:
                return resp.getcode() or 0, resp.read().decode("utf-8", "ignore")
        except urllib.error.HTTPError as e:
            return e.code, str(e.reason)

    def deliver(self, alert: Alert) -> str:
        if not self.webhook_url:
            log.warning("slack skipped: no webhook configured")
            return SKIPPED

        payload = self.build_payload(alert)
        if self.dry_run:
            log.info("slack DRY-RUN: would post %d chars (%s)", len(payload["text"]), alert.get("title"))
            return SENT

        for attempt in range(1, self.attempts + 1):
            last = attempt == self.attempts
            try:
                status, body = self._post(payload)
            except (urllib.error.URLError, OSError) as e:
                if last:
                    log.error("slack post failed after %d attempt(s): %s", attempt, e)
                    return FAILED
                log.warning("slack transport error %s; retrying", e)
                self.sleep(backoff_secs(attempt))
                continue

            if 200 <= status < 300:
                return SENT
            if status >= 500 and not last:
                log.warning("slack HTTP %d; retrying", status)
                self.sleep(backoff_secs(attempt))
                continue
            log.error("slack HTTP %d: %s", status, body[:200])
            return FAILED
        return FAILED
