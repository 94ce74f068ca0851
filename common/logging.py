# common/logging.py
from __future__ import annotations

import logging
import os
import sys

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    level_name = (os.environ.get("LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))

    root = logging.getLogger("geosignals")
    root.addHandler(handler)
    root.setLevel(level)
    # Keep our records out of whatever the host app configured on the root logger
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger under the 'geosignals' hierarchy, e.g. get_logger("data_ingest")
    -> 'geosignals.data_ingest'. The stream handler is attached once per process.
    """
    _configure_root()
    if name.startswith("geosignals"):
        return logging.getLogger(name)
    return logging.getLogger(f"geosignals.{name}")
