from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import shlex
import signal
import subprocess
import time
from dataclasses import dataclass
from typing import Sequence


@dataclass
class ServiceOptions:
    """Options for launching the print service."""

    port: int | None = None
    cwd: str | None = None
    extra_env: dict | None = None


class ServerManager:
    """
    Manages the lifecycle of a local print service process.

    - Spawns the service command as a subprocess, passing the port as DAZZLE_PORT.
    - Provides stop, restart and liveness checks.
    """

    def __init__(
        self, command: str | Sequence[str], startup_grace_s: float = 0.2
    ) -> None:
        args = shlex.split(command) if isinstance(command, str) else list(command)
        if not args:
            raise ValueError("Print service command is empty")
        self.args = args
        self.startup_grace_s = startup_grace_s
        self._proc: subprocess.Popen | None = None

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc and self._proc.poll() is None else None

    def is_running(self) -> bool:
        return self._proc is not None and self._proc.poll() is None

    async def start_service(self, opts: ServiceOptions | None = None) -> None:
        """Start the service if not already running."""
        if self.is_running():
            return

        options = opts or ServiceOptions()

        env = os.environ.copy()
        if options.port is not None:
            env["DAZZLE_PORT"] = str(options.port)
        if options.extra_env:
            env.update(options.extra_env)
        # Unbuffered output for better logging
        env.setdefault("PYTHONUNBUFFERED", "1")

        try:
            self._proc = subprocess.Popen(
                self.args,
                cwd=options.cwd,
                env=env,
                stdout=None,  # inherit so service logs stay visible
                stderr=None,
            )
        except Exception as e:
            raise RuntimeError(f"Failed to start print service: {e}") from e

        # Give it a brief moment to bind; an early exit usually means the port is taken
        await asyncio.sleep(self.startup_grace_s)
        code = self._proc.poll()
        if code is not None:
            self._proc = None
            raise RuntimeError(f"Print service exited during startup (code {code})")
        logging.info("Print service started (PID: %s)", self._proc.pid)

    async def stop_service(self, timeout: float = 5.0) -> None:
        """Stop the service process if running."""
        if not self.is_running():
            self._proc = None
            return

        proc = self._proc
        assert proc is not None

        try:
            if os.name == "nt":
                proc.terminate()
            else:
                proc.send_signal(signal.SIGTERM)
        except Exception:
            # Fall back to kill below
            pass

        # Wait for graceful exit
        t0 = time.time()
        while proc.poll() is None and (time.time() - t0) < timeout:
            await asyncio.sleep(0.1)

        if proc.poll() is None:
            with contextlib.suppress(Exception):
                proc.kill()
            logging.warning("Print service force-killed after timeout")

        self._proc = None
        logging.info("Print service stopped")

    async def restart(self, opts: ServiceOptions | None = None) -> None:
        await self.stop_service()
        await self.start_service(opts)
