from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

from nicegui import binding

from dazzle_panel.constants import DEFAULT_PORT, JOB_STATUSES


@dataclass(frozen=True)
class Printer:
    name: str
    is_default: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Printer":
        return cls(name=str(data["name"]), is_default=bool(data.get("is_default", False)))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PrintJob:
    id: str
    printer: str
    timestamp: int  # seconds since epoch
    status: str  # "pending" | "printing" | "completed" | "failed"
    zpl_preview: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.status not in JOB_STATUSES:
            raise ValueError(f"Unknown job status: {self.status!r}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PrintJob":
        return cls(
            id=str(data["id"]),
            printer=str(data["printer"]),
            timestamp=int(data["timestamp"]),
            status=str(data["status"]),
            zpl_preview=data.get("zpl_preview"),
            error=data.get("error"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AppConfig:
    port: int = DEFAULT_PORT
    selected_printer: str | None = None
    auto_start: bool = False

    def __post_init__(self) -> None:
        if not 1 <= int(self.port) <= 65535:
            raise ValueError(f"Port out of range: {self.port}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AppConfig":
        return cls(
            port=int(data.get("port", DEFAULT_PORT)),
            selected_printer=data.get("selected_printer") or None,
            auto_start=bool(data.get("auto_start", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# Shared panel state; UI code may bind widgets to these fields directly
@binding.bindable_dataclass
class AppState:
    printers: list[Printer] = field(default_factory=list)
    config: AppConfig = field(default_factory=AppConfig)
    print_jobs: list[PrintJob] = field(default_factory=list)  # newest first
    server_running: bool = False
    server_error: str | None = None
    loading: bool = True
    init_error: str | None = None
