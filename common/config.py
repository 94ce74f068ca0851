# common/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_DATABASE_URL = "sqlite:///data/geopolitical.db"


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.environ.get(name)
    if v is None or not v.strip():
        return default
    return v.strip()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, ""))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, ""))
    except ValueError:
        return default


@dataclass
class Settings:
    database_url: str = DEFAULT_DATABASE_URL

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    fred_api_key: Optional[str] = None
    news_api_key: Optional[str] = None

    source_delay_secs: float = 1.0
    max_items_per_source: int = 20
    fetch_timeout_secs: float = 20.0

    ai_timeout_secs: float = 30.0
    ai_max_concurrent: int = 5
    ai_batch_delay_secs: float = 1.0
    classifier_cache_size: int = 2048

    feed_cache_file: str = ".state/feed_cache.json"
    alert_state_file: str = ".state/alert_state.json"
    alert_cooldown_minutes: int = 60

    @classmethod
    def from_env(cls) -> "Settings":
        """Resolve settings from the environment at call time. Bad numbers fall back to defaults."""
        d = cls()
        return cls(
            database_url=_env_str("DATABASE_URL", d.database_url),
            openai_api_key=_env_str("OPENAI_API_KEY"),
            openai_model=_env_str("OPENAI_MODEL", d.openai_model),
            fred_api_key=_env_str("FRED_API_KEY"),
            news_api_key=_env_str("NEWS_API_KEY"),
            source_delay_secs=_env_float("SOURCE_DELAY_SECS", d.source_delay_secs),
            max_items_per_source=_env_int("MAX_ITEMS_PER_SOURCE", d.max_items_per_source),
            fetch_timeout_secs=_env_float("FETCH_TIMEOUT_SECS", d.fetch_timeout_secs),
            ai_timeout_secs=_env_float("AI_TIMEOUT_SECS", d.ai_timeout_secs),
            ai_max_concurrent=_env_int("AI_MAX_CONCURRENT", d.ai_max_concurrent),
            ai_batch_delay_secs=_env_float("AI_BATCH_DELAY_SECS", d.ai_batch_delay_secs),
            classifier_cache_size=_env_int("CLASSIFIER_CACHE_SIZE", d.classifier_cache_size),
            feed_cache_file=_env_str("FEED_CACHE_FILE", d.feed_cache_file),
            alert_state_file=_env_str("ALERT_STATE_FILE", d.alert_state_file),
            alert_cooldown_minutes=_env_int("ALERT_COOLDOWN_MINUTES", d.alert_cooldown_minutes),
        )
