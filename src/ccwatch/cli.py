import argparse
import shlex

from ccwatch.config import Config
from ccwatch.models import POLLING_FREQUENCIES


def _frequency_help() -> "str":
    return "; ".join(
        f"{frequency.key}: {frequency.label} - {frequency.description}"
        for frequency in POLLING_FREQUENCIES.values()
    )


def parse_args(argv: "list[str] | None" = None) -> "Config":
    config = Config.from_env()

    parser = argparse.ArgumentParser(
        prog="ccwatch",
        description="Background monitor for ccusage cost and token usage",
    )
    parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        default=config.listen_address,
        help=f"Metrics address to listen on (default: {config.listen_address})",
    )
    parser.add_argument(
        "--no-metrics",
        dest="metrics_enabled",
        action="store_false",
        help="Do not start the Prometheus metrics server",
    )
    parser.add_argument(
        "--polling.frequency",
        dest="polling_frequency",
        default=config.polling_frequency,
        help=(
            f"Initial polling frequency (default: {config.polling_frequency}); "
            f"one of {_frequency_help()}"
        ),
    )
    parser.add_argument(
        "--ccusage.command",
        dest="command",
        default=None,
        help=f"Accounting command to run (default: {shlex.join(config.command)})",
    )
    parser.add_argument(
        "--log.level",
        dest="log_level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Fetch once, print the usage payload as JSON and exit",
    )

    args = parser.parse_args(argv)
    config.listen_address = args.listen_address
    config.metrics_enabled = args.metrics_enabled
    config.polling_frequency = args.polling_frequency
    config.log_level = args.log_level
    config.once = args.once
    if args.command:
        config.command = shlex.split(args.command)
    return config
