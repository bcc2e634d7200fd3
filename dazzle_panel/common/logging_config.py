from __future__ import annotations

import logging
import os
import sys
import threading
import weakref

from nicegui import ui

_LEVEL_COLORS = {
    "TRACE": "\033[32m",  # green
    "DEBUG": "\033[36m",  # cyan
    "INFO": "\033[37m",  # light gray
    "WARNING": "\033[33m",  # yellow
    "ERROR": "\033[31m",  # red
    "CRITICAL": "\033[41m",  # red background
}
_RESET = "\033[0m"
_DIM = "\033[2m"

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Probe/tick chatter is logged at TRACE and only when DAZZLE_TRACE is set
TRACE_ENABLED = str(os.getenv("DAZZLE_TRACE", "0")).lower() in ("1", "true", "yes", "on")


def trace(msg: str, *args) -> None:
    if TRACE_ENABLED:
        logging.log(TRACE, msg, *args)


class AnsiColorFormatter(logging.Formatter):
    """Console formatter: dim HH:MM:SS timestamp, colored level name."""

    def __init__(self, colored: bool = True) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S"
        )
        self.colored = colored and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        if not self.colored:
            return base
        level = record.levelname.upper()
        color = _LEVEL_COLORS.get(level, "")
        ts, _, rest = base.partition(" ")
        if color:
            rest = rest.replace(level, f"{color}{level}{_RESET}", 1)
        return f"{_DIM}{ts}{_RESET} {rest}"


# ---- NiceGUI log mirror ----

_ui_log_targets: set[weakref.ref] = set()
_ui_lock = threading.Lock()


class NiceGuiLogHandler(logging.Handler):
    """Mirror log records into attached ui.log widgets (e.g. a panel's event log)."""

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level=level)
        self.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(message)s", "%H:%M:%S"
            )
        )

    def emit(self, record: logging.LogRecord) -> None:
        if not _ui_log_targets:
            return
        msg = self.format(record)
        with _ui_lock:
            for ref in list(_ui_log_targets):
                widget = ref()
                if widget is None:
                    _ui_log_targets.discard(ref)
                    continue
                try:
                    widget.push(msg)
                except Exception:
                    # Widget deleted with its client; stop writing to it
                    _ui_log_targets.discard(ref)


def attach_ui_log(log_widget: ui.log) -> None:
    """Register a ui.log widget as a sink for log records."""
    with _ui_lock:
        _ui_log_targets.add(weakref.ref(log_widget))


def detach_ui_log(log_widget: ui.log) -> None:
    """Unregister a ui.log widget."""
    with _ui_lock:
        _ui_log_targets.discard(weakref.ref(log_widget))


def configure_logging(
    level: int = logging.INFO, use_color: bool = True, add_ui_handler: bool = True
) -> logging.Logger:
    """
    Configure the root logger with a colored stderr handler and, optionally,
    the NiceGUI mirror handler. Safe to call repeatedly.
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        console = logging.StreamHandler(stream=sys.stderr)
        console.setLevel(level)
        console.setFormatter(AnsiColorFormatter(colored=use_color))
        logger.addHandler(console)

    if add_ui_handler and not any(
        isinstance(h, NiceGuiLogHandler) for h in logger.handlers
    ):
        logger.addHandler(NiceGuiLogHandler(level=level))

    return logger
