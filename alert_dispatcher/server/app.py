"""HTTP endpoints for webhook alerts and interactive callbacks.

Runs as an ``aiohttp`` web server alongside the queue poller.
Exposes:
- ``POST /slack/events``     → interactive button callbacks
- ``POST /grafana/webhook``  → webhook-delivered alerts
"""

from __future__ import annotations

import structlog
from aiohttp import web

from alert_dispatcher.ingest.exceptions import IngestError
from alert_dispatcher.interactive.callbacks import CallbackHandler
from alert_dispatcher.interactive.exceptions import (
    InvalidCallbackError,
    SignatureInvalidError,
    StaleRequestError,
)
from alert_dispatcher.interactive.signature import SIGNATURE_HEADER, TIMESTAMP_HEADER
from alert_dispatcher.notify.dispatcher import AlertDispatcher
from alert_dispatcher.notify.exceptions import DeliveryError

logger = structlog.get_logger(__name__)

DISPATCHER_KEY = "dispatcher"
CALLBACK_HANDLER_KEY = "callback_handler"


async def _handle_interactive(request: web.Request) -> web.Response:
    handler: CallbackHandler = request.app[CALLBACK_HANDLER_KEY]
    body = await request.read()

    try:
        result = await handler.handle(
            request.headers.get(TIMESTAMP_HEADER),
            request.headers.get(SIGNATURE_HEADER),
            body,
        )
    except (SignatureInvalidError, StaleRequestError) as exc:
        logger.warning("callback_rejected", reason=type(exc).__name__, error=str(exc))
        return web.Response(status=401, text="Unauthorized")
    except InvalidCallbackError as exc:
        logger.warning("callback_invalid", error=str(exc))
        return web.Response(status=400, text=str(exc))
    except DeliveryError as exc:
        logger.error("callback_response_failed", error=str(exc))
        return web.Response(status=500, text="Failed to send response to Slack")

    return web.json_response({"status": "ok", "outcome": result.state.value})


async def _handle_webhook(request: web.Request) -> web.Response:
    dispatcher: AlertDispatcher = request.app[DISPATCHER_KEY]
    body = await request.text()

    try:
        msg = await dispatcher.handle_webhook(body)
    except IngestError as exc:
        logger.warning("webhook_rejected", reason=type(exc).__name__, error=str(exc))
        return web.Response(status=400, text="Failed to process alert")
    except DeliveryError as exc:
        logger.error("webhook_delivery_failed", error=str(exc))
        return web.Response(status=500, text="Failed to send to Slack")

    return web.json_response({
        "status": "processed",
        "channel": msg.channel,
        "priority": msg.priority.value if msg.priority else None,
    })


def create_web_app(
    dispatcher: AlertDispatcher,
    callback_handler: CallbackHandler,
) -> web.Application:
    """Create the aiohttp web application."""
    app = web.Application()
    app[DISPATCHER_KEY] = dispatcher
    app[CALLBACK_HANDLER_KEY] = callback_handler
    app.router.add_post("/slack/events", _handle_interactive)
    app.router.add_post("/grafana/webhook", _handle_webhook)
    return app


async def start_web_server(
    dispatcher: AlertDispatcher,
    callback_handler: CallbackHandler,
    host: str = "0.0.0.0",
    port: int = 8088,
) -> web.AppRunner:
    """Start the HTTP server. Returns the runner for cleanup."""
    app = create_web_app(dispatcher, callback_handler)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info("web_server_started", host=host, port=port)
    return runner
