import argparse
import asyncio
import contextlib
import logging
import sys
from pathlib import Path

from dazzle_panel.common import logging_config
from dazzle_panel.common.logging_config import TRACE, configure_logging
from dazzle_panel.config import Config
from dazzle_panel.constants import LOG_LEVEL
from dazzle_panel.services.backend import LocalBackend
from dazzle_panel.services.print_client import PrintServiceClient, PrintServiceError
from dazzle_panel.services.server_manager import ServerManager, ServiceOptions
from dazzle_panel.store import AppStore


def build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Dazzle print service panel")
    parser.add_argument("--host", default=config.HOST, help="Print service host")
    parser.add_argument(
        "--port", type=int, default=config.PORT, help="Print service port"
    )
    parser.add_argument(
        "--protocol", choices=["http", "https"], default=config.PROTOCOL
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=config.WATCH_INTERVAL_MS,
        help="Status polling interval in milliseconds",
    )
    parser.add_argument(
        "--service-cmd",
        default=config.SERVICE_CMD,
        help="Command line that starts a local print service to manage",
    )
    parser.add_argument(
        "--disable-auto-start",
        action="store_true",
        help="Do not start the managed service (overrides DAZZLE_AUTO_START)",
    )
    parser.add_argument("--printer", help="Printer to use for submitted files")
    parser.add_argument(
        "files",
        nargs="*",
        help="ZPL files or URLs to print in order, then exit",
    )
    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set log level",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity; -v=INFO, -vv=DEBUG",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Enable WARNING logging"
    )
    return parser


def resolve_log_level(args: argparse.Namespace) -> int:
    # explicit --log-level > -v/-q > env default from constants
    if args.log_level:
        if args.log_level == "TRACE":
            logging_config.TRACE_ENABLED = True
            return TRACE
        return getattr(logging, args.log_level)
    if args.verbose >= 3:
        logging_config.TRACE_ENABLED = True
        return TRACE
    if args.verbose >= 2:
        return logging.DEBUG
    if args.verbose == 1:
        return logging.INFO
    if args.quiet:
        return logging.WARNING
    return LOG_LEVEL


def _is_url(name: str) -> bool:
    return name.startswith(("http://", "https://"))


async def print_files(
    backend: LocalBackend, files: list[str], printer: str | None
) -> int:
    """Submit files (or URLs) in order; stop at the first failure."""
    job_ids = []
    try:
        for name in files:
            if _is_url(name):
                job_ids.append(await backend.invoke("print_url", url=name, printer=printer))
            else:
                job_ids.append(
                    await backend.invoke(
                        "print_zpl", zpl=Path(name).read_bytes(), printer=printer
                    )
                )
    except OSError as e:
        logging.error("Cannot read %s: %s", e.filename, e.strerror)
        return 1
    except PrintServiceError as e:
        logging.error("Print failed (%s): %s", e.status_code, e.message)
        return 1

    for name, job_id in zip(files, job_ids):
        logging.info("%s -> job %s", name, job_id)
    return 0


async def supervise(
    client: PrintServiceClient,
    manager: ServerManager | None,
    auto_start: bool,
    interval_ms: int,
) -> None:
    """Bootstrap the store, watch the service and log changes until cancelled."""
    if manager is not None and auto_start:
        try:
            await manager.start_service(ServiceOptions(port=client.port))
        except RuntimeError as e:
            logging.error("Auto-start failed: %s", e)

    backend = LocalBackend(client, server_manager=manager)
    store = AppStore(backend)
    subscriptions = await store.init()
    if subscriptions is None:
        logging.error("Panel not initialised: %s", store.state.init_error)

    def on_status(reachable: bool) -> None:
        logging.info(
            "Print service %s at %s", "reachable" if reachable else "unreachable", client.base_url
        )
        store.apply_server_status(reachable)

    unwatch = client.watch(on_status, interval_ms=interval_ms)
    try:
        await asyncio.Event().wait()
    finally:
        unwatch()
        if subscriptions is not None:
            subscriptions.teardown()
        await store.drain()
        if manager is not None:
            await manager.stop_service()


async def run(args: argparse.Namespace, config: Config) -> int:
    manager = None
    if args.service_cmd:
        manager = ServerManager(args.service_cmd)

    async with PrintServiceClient(
        args.host, args.port, args.protocol, timeout=config.HTTP_TIMEOUT
    ) as client:
        if args.files:
            return await print_files(LocalBackend(client), args.files, args.printer)
        auto_start = config.AUTO_START and not args.disable_auto_start
        await supervise(client, manager, auto_start, args.interval)
    return 0


def main(argv: list[str] | None = None) -> int:
    config = Config.from_env()
    args = build_parser(config).parse_args(argv)

    configure_logging(resolve_log_level(args), add_ui_handler=False)
    logging.info("Print service target: %s://%s:%s", args.protocol, args.host, args.port)

    with contextlib.suppress(KeyboardInterrupt):
        return asyncio.run(run(args, config))
    return 0


if __name__ in {"__main__", "__mp_main__"}:
    sys.exit(main())
