from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dazzle_panel.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_PROTOCOL,
    DEFAULT_WATCH_INTERVAL_MS,
)

_TRUTHY = ("1", "true", "True", "yes", "YES")


@dataclass
class Config:
    """Runtime configuration for the panel and its print service connection."""
    HOST: str = DEFAULT_HOST
    PORT: int = DEFAULT_PORT
    PROTOCOL: str = DEFAULT_PROTOCOL
    WATCH_INTERVAL_MS: int = DEFAULT_WATCH_INTERVAL_MS
    HTTP_TIMEOUT: Optional[float] = 10.0  # None disables the httpx timeout
    SERVICE_CMD: Optional[str] = None  # command line of a managed print service
    AUTO_START: bool = False

    @property
    def base_url(self) -> str:
        return f"{self.PROTOCOL}://{self.HOST}:{self.PORT}"

    @classmethod
    def from_env(cls) -> "Config":
        host = os.getenv("DAZZLE_HOST", DEFAULT_HOST)
        port = int(os.getenv("DAZZLE_PORT", str(DEFAULT_PORT)))
        protocol = os.getenv("DAZZLE_PROTOCOL", DEFAULT_PROTOCOL)
        interval = int(
            os.getenv("DAZZLE_WATCH_INTERVAL_MS", str(DEFAULT_WATCH_INTERVAL_MS))
        )
        timeout = float(os.getenv("DAZZLE_HTTP_TIMEOUT", "10"))
        service_cmd = os.getenv("DAZZLE_SERVICE_CMD") or None
        auto_start = os.getenv("DAZZLE_AUTO_START", "0") in _TRUTHY
        return cls(
            HOST=host,
            PORT=port,
            PROTOCOL=protocol,
            WATCH_INTERVAL_MS=interval,
            HTTP_TIMEOUT=timeout if timeout > 0 else None,
            SERVICE_CMD=service_cmd,
            AUTO_START=auto_start,
        )
