"""Central alert dispatcher — adapt, classify, route, render and deliver."""

from __future__ import annotations

import uuid

import structlog

from alert_dispatcher.core.types import ChannelRoute, NormalizedAlert, OutboundMessage, Priority
from alert_dispatcher.ingest.detector import adapt
from alert_dispatcher.ingest.envelope import unwrap_envelope
from alert_dispatcher.notify.channels import ChatChannel
from alert_dispatcher.notify.formatters import format_alert
from alert_dispatcher.routing.classifier import classify
from alert_dispatcher.routing.router import ChannelRouter

# Dedicated structured logger for routing decisions.
decision_logger = structlog.get_logger("decision_log")

logger = structlog.get_logger(__name__)


def new_correlation_id(alert: NormalizedAlert) -> str:
    return f"{alert.kind.value.lower()}_{uuid.uuid4().hex[:16]}"


class AlertDispatcher:
    """Turns raw alert bodies into delivered chat messages.

    - Queue bodies are unwrapped from their transport envelope first.
    - Webhook bodies are adapted directly.
    - Every routing decision is logged via *decision_logger*.
    - Ingestion and delivery errors propagate to the caller, which decides
      whether the message is retried (queue) or rejected (HTTP).
    """

    def __init__(self, channel: ChatChannel, router: ChannelRouter) -> None:
        self._channel = channel
        self._router = router

    # ── Entry points ────────────────────────────────────────────

    async def handle_queue_message(self, body: str) -> OutboundMessage:
        """Adapt and deliver a queue-sourced alert."""
        return await self.dispatch(unwrap_envelope(body))

    async def handle_webhook(self, body: str) -> OutboundMessage:
        """Adapt and deliver a webhook-sourced alert."""
        return await self.dispatch(body)

    # ── Pipeline ────────────────────────────────────────────────

    def resolve(self, payload: str) -> tuple[NormalizedAlert, Priority, ChannelRoute]:
        """Adapt → classify → route."""
        alert = adapt(payload)
        logger.debug(
            "alert_adapted",
            alert=alert.name,
            kind=alert.kind.value,
            state=alert.state.value,
        )
        priority = classify(alert)
        return alert, priority, self._router.route(alert.name, priority)

    def prepare(self, payload: str) -> tuple[NormalizedAlert, OutboundMessage]:
        """Resolve and format, without delivering."""
        alert, priority, route = self.resolve(payload)
        msg = OutboundMessage(
            text=format_alert(alert),
            channel=route.channel,
            priority=priority,
            correlation_id=new_correlation_id(alert),
        )
        decision_logger.info(
            "decision",
            alert=alert.name,
            kind=alert.kind.value,
            state=alert.state.value,
            priority=route.priority.value,
            channel=route.channel,
            matched_by=route.matched_by.value,
            correlation_id=msg.correlation_id,
        )
        return alert, msg

    async def dispatch(self, payload: str) -> OutboundMessage:
        alert, msg = self.prepare(payload)
        await self._channel.deliver_with_actions(
            msg.channel, msg.text, msg.correlation_id or ""
        )
        logger.info(
            "alert_delivered",
            alert=alert.name,
            priority=msg.priority,
            channel=msg.channel,
        )
        return msg

    # ── Lifecycle ───────────────────────────────────────────────

    async def close(self) -> None:
        try:
            await self._channel.close()
        except Exception:
            logger.exception("channel_close_error", channel=type(self._channel).__name__)
