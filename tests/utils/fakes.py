from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx

from dazzle_panel.services.backend import EventBus


class FakeBackend(EventBus):
    """
    Scripted backend: each command answers with a canned value, or raises it
    when the value is an exception. Calls are recorded in order.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        super().__init__()
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[tuple[str, dict]] = []

    async def invoke(self, command: str, **args: Any) -> Any:
        self.calls.append((command, args))
        await asyncio.sleep(0)
        if command not in self.responses:
            return None
        value = self.responses[command]
        if isinstance(value, BaseException):
            raise value
        return value

    def commands(self) -> list[str]:
        return [name for name, _ in self.calls]


@dataclass
class Route:
    status: int = 200
    body: Any = None  # dict/list -> JSON, str/bytes -> raw

    def response(self) -> httpx.Response:
        if isinstance(self.body, (dict, list)):
            return httpx.Response(self.status, json=self.body)
        if isinstance(self.body, str):
            return httpx.Response(self.status, text=self.body)
        return httpx.Response(self.status, content=self.body or b"")


@dataclass
class ServiceStub:
    """
    httpx MockTransport handler standing in for the print service.

    routes map "METHOD /path" (or an absolute URL) to a Route or a list of
    Routes consumed in order. down=True simulates nothing listening.
    """

    routes: dict[str, Any] = field(default_factory=dict)
    down: bool = False
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.down:
            raise httpx.ConnectError("Connection refused", request=request)
        route = self.routes.get(f"{request.method} {request.url.path}")
        if route is None:
            url = request.url
            route = self.routes.get(f"{url.scheme}://{url.host}{url.path}")
        if route is None:
            return httpx.Response(404, text="Not found")
        if isinstance(route, list):
            route = route.pop(0)
        if isinstance(route, BaseException):
            raise route
        return route.response()

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def print_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/print"]


def job_dict(job_id: str, status: str = "completed", **extra: Any) -> dict:
    data = {
        "id": job_id,
        "printer": "Zebra ZD420",
        "timestamp": 1700000000,
        "status": status,
        "zpl_preview": "^XA^FO50,50^FDHello^FS^XZ",
        "error": None,
    }
    data.update(extra)
    return data


def decoded_body(request: httpx.Request) -> str:
    return request.content.decode("ascii")


def counting_probe(values: list[bool] | Callable[[], bool]):
    """Async probe returning values in turn (last one repeats); counts calls."""

    state = {"calls": 0}

    async def probe() -> bool:
        state["calls"] += 1
        await asyncio.sleep(0)
        if callable(values):
            return values()
        idx = min(state["calls"] - 1, len(values) - 1)
        return values[idx]

    probe.state = state  # type: ignore[attr-defined]
    return probe
