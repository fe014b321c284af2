#!/usr/bin/env python3
"""Main entrypoint — wires the queue poller and the HTTP server.

Usage::

    # Run with default config
    python scripts/run.py

    # Custom config file
    python scripts/run.py --config config/settings.yaml

    # Override log level
    python scripts/run.py --log-level DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

import structlog

from alert_dispatcher.core.config import load_settings
from alert_dispatcher.core.logging import setup_logging
from alert_dispatcher.notify.factory import create_dispatch_stack
from alert_dispatcher.server.app import start_web_server

logger = structlog.get_logger(__name__)


async def run(args: argparse.Namespace) -> int:
    """Start all components and run until interrupted."""
    settings = load_settings(args.config)
    setup_logging(settings.logging, level=args.log_level)

    missing = settings.missing_required()
    if missing:
        logger.error("missing_required_settings", missing=missing)
        print(
            f"Missing required settings: {', '.join(missing)}. "
            "Set them in the environment or in config/settings.yaml.",
            file=sys.stderr,
        )
        return 1

    logger.info(
        "dispatcher_starting",
        queue=settings.queue.enabled,
        port=settings.server.port,
        explicit_mappings=len(settings.routing.alarm_mappings),
    )

    dispatcher, callback_handler, poller = create_dispatch_stack(settings)

    # ── Start everything ─────────────────────────────────────────
    runner = await start_web_server(
        dispatcher,
        callback_handler,
        host=settings.server.host,
        port=settings.server.port,
    )

    if poller is not None:
        await poller.start()

    logger.info(
        "dispatcher_running",
        queue_poller="active" if poller else "disabled",
        port=settings.server.port,
    )

    # ── Wait for shutdown signal ─────────────────────────────────
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows: signal handlers not supported on ProactorEventLoop
            pass

    try:
        await stop_event.wait()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")

    # ── Graceful shutdown ────────────────────────────────────────
    logger.info("dispatcher_shutting_down")

    if poller is not None:
        await poller.stop()

    await runner.cleanup()
    await callback_handler.close()
    await dispatcher.close()

    logger.info(
        "dispatcher_stopped",
        processed=poller.processed_count if poller else 0,
        failed=poller.failed_count if poller else 0,
    )
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Route monitoring alerts to Slack channels.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    args = parser.parse_args()

    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
