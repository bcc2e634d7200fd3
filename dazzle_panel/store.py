from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Awaitable, Mapping, Sequence

from dazzle_panel.constants import (
    EVENT_PRINT_JOB,
    EVENT_SERVER_ERROR,
    EVENT_SERVER_STATUS,
)
from dazzle_panel.reconcile import upsert_job
from dazzle_panel.services.backend import Backend
from dazzle_panel.services.subscriptions import PushSubscriptions
from dazzle_panel.state import AppConfig, AppState, Printer, PrintJob


def pick_default_printer(printers: Sequence[Printer]) -> str | None:
    """Printer flagged as system default, else the first one listed."""
    if not printers:
        return None
    for p in printers:
        if p.is_default:
            return p.name
    return printers[0].name


class AppStore:
    """
    Authoritative panel state fed by a backend.

    - init(): loads printers, config, job history and running status together,
      then arms the push subscriptions
    - apply_*(): fold push events into the state
    """

    def __init__(
        self,
        backend: Backend,
        state: AppState | None = None,
        subscriptions: PushSubscriptions | None = None,
    ) -> None:
        self.backend = backend
        self.state = state or AppState()
        self.subscriptions = subscriptions or PushSubscriptions(backend)
        self._background: set[asyncio.Task] = set()

    async def init(self) -> PushSubscriptions | None:
        self.state.loading = True
        try:
            raw_printers, raw_config, raw_jobs, running = await asyncio.gather(
                self.backend.invoke("list_printers"),
                self.backend.invoke("get_config"),
                self.backend.invoke("get_print_jobs"),
                self.backend.invoke("get_server_running"),
            )
            printers = [Printer.from_dict(p) for p in raw_printers]
            config = AppConfig.from_dict(raw_config)
            jobs = [PrintJob.from_dict(j) for j in raw_jobs]
        except Exception as e:
            logging.error("Panel initialisation failed: %s", e)
            self.state.init_error = str(e)
            self.state.loading = False
            return None

        if config.selected_printer is None:
            selected = pick_default_printer(printers)
            if selected is not None:
                config = dataclasses.replace(config, selected_printer=selected)
                logging.info("Auto-selected printer: %s", selected)
                self._spawn(
                    self.backend.invoke("set_config", new_config=config.to_dict()),
                    "persist selected printer",
                )

        self.state.printers = printers
        self.state.config = config
        self.state.print_jobs = jobs
        self.state.server_running = bool(running)
        self.state.init_error = None
        self.state.loading = False

        self.subscriptions.arm(
            {
                EVENT_PRINT_JOB: self.apply_print_job,
                EVENT_SERVER_STATUS: self.apply_server_status,
                EVENT_SERVER_ERROR: self.apply_server_error,
            }
        )
        return self.subscriptions

    async def refresh_printers(self) -> None:
        raw = await self.backend.invoke("list_printers")
        self.state.printers = [Printer.from_dict(p) for p in raw]

    async def update_config(self, config: AppConfig) -> None:
        await self.backend.invoke("set_config", new_config=config.to_dict())
        self.state.config = config

    async def restart_server(self) -> None:
        self.state.server_error = None
        try:
            await self.backend.invoke("restart_server")
        except Exception as e:
            logging.error("Restart failed: %s", e)
            self.state.server_error = str(e)
            self.state.server_running = False

    # ---- push handlers ----

    def apply_print_job(self, payload: PrintJob | Mapping[str, Any]) -> None:
        job = payload if isinstance(payload, PrintJob) else PrintJob.from_dict(payload)
        self.state.print_jobs = upsert_job(self.state.print_jobs, job)

    def apply_server_status(self, running: bool) -> None:
        if running:
            self.state.server_error = None
        self.state.server_running = bool(running)

    def apply_server_error(self, message: str) -> None:
        self.state.server_error = str(message)
        self.state.server_running = False

    def _spawn(self, coro: Awaitable[Any], what: str) -> None:
        """Run coro detached; failures are logged, never raised."""

        async def runner() -> None:
            try:
                await coro
            except Exception as e:
                logging.warning("Failed to %s: %s", what, e)

        task = asyncio.get_running_loop().create_task(runner())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def drain(self) -> None:
        """Wait for detached background work to finish."""
        if self._background:
            await asyncio.gather(*list(self._background))
