"""Convenience factory for wiring the dispatch stack."""

from __future__ import annotations

from alert_dispatcher.core.config import Settings
from alert_dispatcher.interactive.callbacks import CallbackHandler
from alert_dispatcher.notify.channels import ChatChannel, SlackChannel
from alert_dispatcher.notify.dispatcher import AlertDispatcher
from alert_dispatcher.notify.responder import ResponseClient
from alert_dispatcher.queue.poller import MessageQueue, QueuePoller, SqsQueue
from alert_dispatcher.routing.router import ChannelRouter


def create_dispatch_stack(
    settings: Settings,
    channel: ChatChannel | None = None,
    queue: MessageQueue | None = None,
) -> tuple[AlertDispatcher, CallbackHandler, QueuePoller | None]:
    """Build a dispatcher, callback handler and optional queue poller.

    Args:
        settings: Loaded settings; the routing table is built once here.
        channel: Chat channel override (defaults to SlackChannel).
        queue: Message queue override (defaults to SqsQueue when enabled).

    Returns:
        (dispatcher, callback_handler, poller_or_None)
    """
    router = ChannelRouter(settings.routing.to_table())
    dispatcher = AlertDispatcher(
        channel=channel or SlackChannel(settings.slack),
        router=router,
    )

    callback_handler = CallbackHandler(
        signing_secret=settings.slack.signing_secret.get_secret_value(),
        responder=ResponseClient(timeout_secs=settings.slack.response_timeout_secs),
        max_request_age_secs=settings.slack.max_request_age_secs,
    )

    poller: QueuePoller | None = None
    if settings.queue.enabled:
        poller = QueuePoller(
            queue=queue or SqsQueue(settings.queue),
            handler=dispatcher.handle_queue_message,
            poll_interval_secs=settings.queue.poll_interval_secs,
            error_backoff_secs=settings.queue.error_backoff_secs,
        )

    return dispatcher, callback_handler, poller
