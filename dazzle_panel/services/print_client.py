from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

import httpx

from dazzle_panel.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_PROTOCOL,
    DEFAULT_WATCH_INTERVAL_MS,
)
from dazzle_panel.services.encoding import Payload, encode_payload
from dazzle_panel.services.watcher import StatusCallback, WatchScheduler
from dazzle_panel.state import Printer


class PrintServiceError(Exception):
    """Non-success response from the print service (status_code 0: no response)."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class ServerStatus:
    status: str
    version: str


@dataclass(frozen=True)
class PrintResult:
    job_id: str


async def probe(http: httpx.AsyncClient, base_url: str) -> bool:
    """
    Liveness check: True if anything answered at base_url, False otherwise.

    Any HTTP response counts, whatever its status; only the absence of a
    response (refused connection, DNS failure, timeout) means "down".
    """
    try:
        await http.get(f"{base_url}/status")
        return True
    except Exception as e:
        logging.debug("Probe %s failed: %s", base_url, e)
        return False


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.text
    except Exception:
        body = ""
    return body.strip() or fallback


class PrintServiceClient:
    """
    Async client for the Dazzle print service.

    - status/printers: plain JSON queries
    - print/print_url/print_batch: ZPL submission (base64 body, ordered)
    - is_running/watch: reachability probing and shared status polling
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        protocol: str = DEFAULT_PROTOCOL,
        *,
        timeout: float | None = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.protocol = protocol
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._scheduler = WatchScheduler(self.is_running)

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"

    async def __aenter__(self) -> "PrintServiceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self._scheduler.close()
        await self._http.aclose()

    # ---- queries ----

    async def is_running(self) -> bool:
        return await probe(self._http, self.base_url)

    async def status(self) -> ServerStatus:
        res = await self._http.get(f"{self.base_url}/status")
        if not res.is_success:
            raise PrintServiceError(f"Server error: {res.status_code}", res.status_code)
        data = res.json()
        return ServerStatus(status=str(data["status"]), version=str(data["version"]))

    async def printers(self) -> list[Printer]:
        res = await self._http.get(f"{self.base_url}/printers")
        if not res.is_success:
            raise PrintServiceError(f"Server error: {res.status_code}", res.status_code)
        return [Printer.from_dict(p) for p in res.json()]

    def watch(
        self, callback: StatusCallback, *, interval_ms: int = DEFAULT_WATCH_INTERVAL_MS
    ) -> Callable[[], None]:
        """Subscribe to reachability changes; returns an unwatch function."""
        return self._scheduler.watch(callback, interval_ms=interval_ms)

    # ---- printing ----

    async def print(self, payload: Payload, *, printer: str | None = None) -> PrintResult:
        """
        Send one ZPL payload. Uses the service's selected printer unless
        printer is given.
        """
        data, encoded = encode_payload(payload)
        params = {"encoding": "base64"}
        if printer:
            params["printer"] = printer

        res = await self._http.post(
            f"{self.base_url}/print",
            params=params,
            content=encoded,
            headers={"Content-Type": "text/plain"},
        )
        if not res.is_success:
            raise PrintServiceError(
                _error_message(res, f"Print failed: {res.status_code}"), res.status_code
            )
        result = PrintResult(job_id=str(res.json()["job_id"]))
        logging.info("Submitted %d bytes as job %s", len(data), result.job_id)
        return result

    async def fetch(self, url: str) -> bytes:
        """Download a ZPL file."""
        try:
            res = await self._http.get(url)
        except httpx.HTTPError as e:
            raise PrintServiceError(f"Failed to fetch {url}: {e}", 0) from e
        if not res.is_success:
            raise PrintServiceError(
                f"Failed to fetch {url}: {res.status_code}", res.status_code
            )
        return res.content

    async def print_url(self, url: str, *, printer: str | None = None) -> PrintResult:
        """Download a ZPL file and print it."""
        return await self.print(await self.fetch(url), printer=printer)

    async def print_batch(
        self, payloads: Iterable[Payload], *, printer: str | None = None
    ) -> list[PrintResult]:
        """
        Print payloads one after another, in order.

        Each submission is awaited before the next starts so labels come out
        in sequence. The first failure is raised and the rest are not sent.
        """
        results: list[PrintResult] = []
        for payload in payloads:
            results.append(await self.print(payload, printer=printer))
        return results
