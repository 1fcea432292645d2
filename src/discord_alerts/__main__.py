"""CLI entry point for Discord alerts.

Sends a single alert through the batching client and flushes it.

Usage:
    python -m discord_alerts --title "Deploy finished" --level info --context sha=abc123
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.config
import sys
from typing import NoReturn

from pydantic import ValidationError

from discord_alerts import __version__
from discord_alerts.alerter.client import AlertsClient
from discord_alerts.alerter.models import AlertInput, AlertLevel
from discord_alerts.config import Settings, clear_settings_cache, get_settings

# Application info
APP_NAME = "discord-alerts"
APP_VERSION = __version__

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2


def parse_context_item(item: str) -> tuple[str, str]:
    """Parse a KEY=VALUE context argument."""
    key, sep, value = item.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Context must be KEY=VALUE, got {item!r}")
    return key, value


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Send an alert to a Discord webhook.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m discord_alerts --title "Job failed" --level error   Send an alert
  python -m discord_alerts --config-check                       Validate config and exit
  python -m discord_alerts --title Test --dry-run               Log instead of sending
  python -m discord_alerts --title Test --context job=sync      Attach context fields
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {APP_VERSION}",
    )

    parser.add_argument(
        "--config-check",
        action="store_true",
        help="Validate configuration and exit without sending",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level (default: from settings)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log the alert instead of sending it",
    )

    parser.add_argument("--title", default=None, help="Alert title")
    parser.add_argument("--description", default=None, help="Alert description")
    parser.add_argument("--footer", default=None, help="Alert footer")
    parser.add_argument(
        "--level",
        choices=[level.value for level in AlertLevel],
        default=None,
        help="Alert level, sets the embed color",
    )
    parser.add_argument(
        "--context",
        type=parse_context_item,
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Context field, may be repeated",
    )

    return parser


def configure_logging(level: str) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level string (DEBUG, INFO, etc.)
    """
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": (
                    "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"
                ),
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "detailed" if level == "DEBUG" else "standard",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
        # Quieter logging for noisy libraries
        "loggers": {
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
        },
    }
    logging.config.dictConfig(config)


def print_config_summary(settings: Settings, dry_run: bool) -> None:
    """Print a summary of the configuration.

    Args:
        settings: Application settings.
        dry_run: Whether dry-run mode is enabled.
    """
    summary = settings.redacted_summary()
    print("Configuration:")
    print(f"  Webhook: {summary['webhook_url']}")
    print(f"  Label: {summary['label']}")
    print(f"  Env: {summary['env']}")
    print(f"  Log Level: {summary['log_level']}")
    print(f"  Dry Run: {dry_run}")
    print()


def validate_config() -> Settings | None:
    """Validate and load configuration.

    Returns:
        Settings instance if valid, None if invalid.
    """
    try:
        # Clear cache to force reload
        clear_settings_cache()
        return get_settings()
    except ValidationError as e:
        print("Configuration validation failed:", file=sys.stderr)
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            msg = error["msg"]
            print(f"  {field}: {msg}", file=sys.stderr)
        return None


def run_config_check(settings: Settings) -> int:
    """Run configuration check and exit.

    Args:
        settings: Validated settings.

    Returns:
        Exit code.
    """
    if not settings.webhook.enabled:
        print("Configuration is incomplete!")
        print()
        print_config_summary(settings, dry_run=settings.webhook.disabled)
        print("  Webhook: not configured (set ALERTS_WEBHOOK_URL)")
        return EXIT_CONFIG_ERROR

    print("Configuration is valid!")
    print()
    print_config_summary(settings, dry_run=settings.webhook.disabled)
    print("All checks passed. Ready to send.")
    return EXIT_SUCCESS


def build_alert(args: argparse.Namespace) -> AlertInput:
    """Build the alert described by the command line."""
    return AlertInput(
        title=args.title,
        description=args.description,
        footer=args.footer,
        context=dict(args.context) or None,
        level=args.level,
    )


async def send_alert(client: AlertsClient, alert: AlertInput) -> int:
    """Queue an alert and wait until it has been delivered.

    Args:
        client: Alerts client to send through.
        alert: The alert to send.

    Returns:
        Exit code.
    """
    logger = logging.getLogger(__name__)

    try:
        async with client:
            client.add_alert(alert)
            logger.info(f"Queued {client.pending} embeds, flushing...")
        return EXIT_SUCCESS
    except Exception as e:
        logger.exception("Sending alert failed: %s", e)
        return EXIT_ERROR


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Validate configuration first
    settings = validate_config()
    if settings is None:
        sys.exit(EXIT_CONFIG_ERROR)

    # Determine effective log level
    log_level = args.log_level or settings.log_level
    configure_logging(log_level)

    # Config check mode
    if args.config_check:
        sys.exit(run_config_check(settings))

    if not settings.webhook.enabled:
        print("ALERTS_WEBHOOK_URL is not configured", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)

    # Determine dry-run mode
    dry_run = args.dry_run or settings.webhook.disabled
    print_config_summary(settings, dry_run)

    client = AlertsClient.from_settings(settings)
    client.disabled = dry_run

    exit_code = asyncio.run(send_alert(client, build_alert(args)))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
