from __future__ import annotations

import logging
import os
from pathlib import Path

# Repository root
REPO_ROOT = Path(__file__).resolve().parent.parent

# Print service defaults (what the panel connects to)
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 29100
DEFAULT_PROTOCOL = "http"

# Status polling cadence for watchers, in milliseconds
DEFAULT_WATCH_INTERVAL_MS = 5000

# Job history is capped, newest first
MAX_PRINT_JOBS = 100

# Backend push channels
EVENT_PRINT_JOB = "print-job"
EVENT_SERVER_STATUS = "server-status"
EVENT_SERVER_ERROR = "server-error"

JOB_STATUSES = ("pending", "printing", "completed", "failed")


def _resolve_log_level() -> int:
    s = os.getenv("DAZZLE_LOG_LEVEL")
    if s:
        name = s.strip().upper()
        mapping = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return mapping.get(name, logging.WARNING)
    else:
        return logging.WARNING


LOG_LEVEL: int = _resolve_log_level()
