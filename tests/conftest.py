from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from dazzle_panel.services.print_client import PrintServiceClient
from dazzle_panel.state import AppState

from tests.utils.fakes import FakeBackend, Route, ServiceStub

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


PRINTERS = [
    {"name": "Zebra ZD420", "is_default": True},
    {"name": "Brother QL-800", "is_default": False},
]


@pytest.fixture(scope="session", autouse=True)
def panel_env_session() -> None:
    """
    Keep tests independent of the developer's shell:
      - no managed service command or auto-start
      - quiet default log level
    """
    os.environ.pop("DAZZLE_SERVICE_CMD", None)
    os.environ["DAZZLE_AUTO_START"] = "0"
    os.environ.setdefault("DAZZLE_LOG_LEVEL", "WARNING")


@pytest.fixture
def service() -> ServiceStub:
    """A healthy print service answering /status, /printers and /print."""
    return ServiceStub(
        routes={
            "GET /status": Route(200, {"status": "running", "version": "1.2.0"}),
            "GET /printers": Route(200, PRINTERS),
            "POST /print": Route(200, {"job_id": "job-1"}),
        }
    )


@pytest.fixture
async def client(service: ServiceStub) -> AsyncIterator[PrintServiceClient]:
    async with PrintServiceClient(transport=service.transport()) as c:
        yield c


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend(
        {
            "list_printers": PRINTERS,
            "get_config": {"port": 29100, "selected_printer": "Zebra ZD420", "auto_start": False},
            "get_print_jobs": [],
            "get_server_running": True,
        }
    )


@pytest.fixture
def state() -> AppState:
    return AppState()
