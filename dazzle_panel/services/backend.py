from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Awaitable, Callable, Protocol

from dazzle_panel.constants import (
    EVENT_PRINT_JOB,
    EVENT_SERVER_ERROR,
    EVENT_SERVER_STATUS,
)
from dazzle_panel.reconcile import upsert_job
from dazzle_panel.services.encoding import Payload, to_bytes
from dazzle_panel.services.print_client import PrintServiceClient, PrintServiceError
from dazzle_panel.services.server_manager import ServerManager, ServiceOptions
from dazzle_panel.state import AppConfig, PrintJob


class Backend(Protocol):
    """Command/event boundary to whatever hosts the print service."""

    async def invoke(self, command: str, **args: Any) -> Any: ...

    def listen(self, event: str, handler: Callable[[Any], None]) -> Callable[[], None]: ...


class EventBus:
    """In-memory push channels: listen() returns an unlisten function."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Callable[[Any], None]]] = {}

    def listen(self, event: str, handler: Callable[[Any], None]) -> Callable[[], None]:
        self._handlers.setdefault(event, []).append(handler)
        removed = False

        def unlisten() -> None:
            nonlocal removed
            if removed:
                return
            removed = True
            bucket = self._handlers.get(event, [])
            if handler in bucket:
                bucket.remove(handler)

        return unlisten

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    def emit(self, event: str, payload: Any) -> None:
        # Snapshot: handlers may unlisten while we dispatch
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(payload)
            except Exception as e:
                logging.error("Handler for %s failed: %s", event, e)


class LocalBackend(EventBus):
    """
    In-process backend: answers the panel's commands from a print service
    client and an optional managed service process.

    Configuration lives in memory only.
    """

    def __init__(
        self,
        client: PrintServiceClient,
        server_manager: ServerManager | None = None,
        config: AppConfig | None = None,
    ) -> None:
        super().__init__()
        self.client = client
        self.server_manager = server_manager
        self._config = config or AppConfig(port=client.port)
        self._jobs: list[PrintJob] = []
        self._commands: dict[str, Callable[..., Awaitable[Any]]] = {
            "list_printers": self.list_printers,
            "get_config": self.get_config,
            "set_config": self.set_config,
            "get_print_jobs": self.get_print_jobs,
            "get_server_running": self.get_server_running,
            "restart_server": self.restart_server,
            "print_zpl": self.print_zpl,
            "print_url": self.print_url,
        }

    async def invoke(self, command: str, **args: Any) -> Any:
        handler = self._commands.get(command)
        if handler is None:
            raise ValueError(f"Unknown command: {command}")
        return await handler(**args)

    # ---- commands ----

    async def list_printers(self) -> list[dict]:
        return [p.to_dict() for p in await self.client.printers()]

    async def get_config(self) -> dict:
        return self._config.to_dict()

    async def set_config(self, new_config: dict) -> None:
        config = AppConfig.from_dict(new_config)
        port_changed = config.port != self._config.port
        self._config = config
        if port_changed:
            self.client.port = config.port
            if self.server_manager is not None:
                await self.restart_server()

    async def get_print_jobs(self) -> list[dict]:
        return [j.to_dict() for j in self._jobs]

    async def get_server_running(self) -> bool:
        if self.server_manager is not None:
            return self.server_manager.is_running()
        return await self.client.is_running()

    async def restart_server(self) -> None:
        if self.server_manager is None:
            raise RuntimeError("No managed print service configured")
        self.emit(EVENT_SERVER_STATUS, False)
        try:
            await self.server_manager.restart(ServiceOptions(port=self._config.port))
        except RuntimeError as e:
            logging.error("Failed to start print service: %s", e)
            self.emit(EVENT_SERVER_ERROR, str(e))
            raise
        self.emit(EVENT_SERVER_STATUS, True)

    async def print_zpl(self, zpl: Payload, printer: str | None = None) -> str:
        """
        Submit one payload and record the outcome as a print job.

        Returns the acknowledged job id. A rejected submission is recorded
        as a failed job under a local id, then the error is re-raised.
        """
        data = to_bytes(zpl)
        target = printer or self._config.selected_printer
        preview = data[:200].decode("utf-8", errors="replace")
        try:
            result = await self.client.print(data, printer=target)
        except PrintServiceError as e:
            self.record_job(
                PrintJob(
                    id=f"local-{uuid.uuid4().hex[:12]}",
                    printer=target or "",
                    timestamp=int(time.time()),
                    status="failed",
                    zpl_preview=preview,
                    error=e.message,
                )
            )
            raise
        self.record_job(
            PrintJob(
                id=result.job_id,
                printer=target or "",
                timestamp=int(time.time()),
                status="completed",
                zpl_preview=preview,
            )
        )
        return result.job_id

    async def print_url(self, url: str, printer: str | None = None) -> str:
        return await self.print_zpl(await self.client.fetch(url), printer=printer)

    # ---- push side ----

    def record_job(self, job: PrintJob) -> None:
        """Store a job update and push it to listeners."""
        self._jobs = upsert_job(self._jobs, job)
        self.emit(EVENT_PRINT_JOB, job.to_dict())
