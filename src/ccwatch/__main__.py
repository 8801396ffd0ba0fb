import asyncio
import json
import signal

import structlog
from prometheus_client import start_http_server

from ccwatch.cli import parse_args
from ccwatch.commands import Commands
from ccwatch.config import Config
from ccwatch.console import ConsoleStatus, HeadlessWindow
from ccwatch.errors import CommandError
from ccwatch.logging import setup_logging
from ccwatch.metrics import MetricsUpdater
from ccwatch.notifier import Notifier
from ccwatch.poller import Poller
from ccwatch.source.ccusage import CcusageSource
from ccwatch.state import StateStore
from ccwatch.trends import seven_day_series, summarize

logger = structlog.get_logger()


def _parse_listen_address(addr: "str") -> "tuple[str, int]":
    """
    parses listen address in format ':9186' or '127.0.0.1:9186'.
    """
    if addr.startswith(":"):
        return ("0.0.0.0", int(addr[1:]))

    host, port = addr.rsplit(":", 1)
    return (host, int(port))


async def _print_once(commands: "Commands") -> "int":
    try:
        snapshot = await commands.get_usage()
    except CommandError as exc:
        logger.error("usage_fetch_failed", error=str(exc))
        return 1

    trend = summarize(snapshot)
    logger.info(
        "usage_trend",
        average=round(trend.average_cost, 2),
        change_pct=round(trend.percentage_change, 1),
        direction=trend.direction,
    )
    logger.info(
        "usage_series",
        series=[f"{day}={cost:.2f}" for day, cost in seven_day_series(snapshot)],
    )
    print(json.dumps(snapshot.to_dict()))
    return 0 if snapshot.error is None else 2


def main() -> "None":
    config: "Config" = parse_args()
    setup_logging(config.log_level)

    metrics_updater = MetricsUpdater()
    store = StateStore(config.initial_settings())
    notifier = Notifier(ConsoleStatus())
    source = CcusageSource(command=config.command)

    if config.once:
        commands = Commands(source, store, notifier, metrics_updater)
        raise SystemExit(asyncio.run(_print_once(commands)))

    if config.metrics_enabled:
        host, port = _parse_listen_address(config.listen_address)
        start_http_server(port, addr=host)
        logger.info("metrics_server_started", host=host, port=port)

    async def _run() -> "None":
        poller = Poller(source, store, notifier, metrics_updater)
        window = HeadlessWindow(on_quit=poller.stop)
        # kept for UI integrations invoking operations in-process
        commands = Commands(source, store, notifier, metrics_updater, window)

        loop = asyncio.get_running_loop()
        # for SIGINT and SIGTERM, stop the poller gracefully
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, commands.quit)

        logger.info(
            "monitor_started",
            command=" ".join(source.command),
            polling_frequency=store.get_settings().polling_frequency,
        )
        try:
            await poller.start()
        finally:
            logger.info("shutdown_complete")

    asyncio.run(_run())


if __name__ == "__main__":
    main()
