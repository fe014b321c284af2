"""Alert rendering and chat-platform delivery."""

from alert_dispatcher.notify.channels import ChatChannel, SlackChannel
from alert_dispatcher.notify.dispatcher import AlertDispatcher
from alert_dispatcher.notify.exceptions import DeliveryError
from alert_dispatcher.notify.formatters import (
    format_alert,
    format_cloud_alarm,
    format_legacy_webhook,
    format_modern_webhook,
)
from alert_dispatcher.notify.responder import ResponseClient

__all__ = [
    "AlertDispatcher",
    "ChatChannel",
    "DeliveryError",
    "ResponseClient",
    "SlackChannel",
    "format_alert",
    "format_cloud_alarm",
    "format_legacy_webhook",
    "format_modern_webhook",
]
