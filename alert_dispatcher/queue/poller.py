"""Message-queue polling — receive, process sequentially, delete on success."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import boto3
import structlog
from pydantic import BaseModel

from alert_dispatcher.core.config import QueueConfig

logger = structlog.get_logger(__name__)

# Processes one raw body; raising leaves the message for redelivery.
MessageHandler = Callable[[str], Awaitable[Any]]


class QueueMessage(BaseModel):
    """A received queue message."""

    body: str
    receipt_handle: str
    message_id: str = ""


class MessageQueue(Protocol):
    async def receive(self) -> list[QueueMessage]: ...

    async def delete(self, receipt_handle: str) -> None: ...


class SqsQueue:
    """SQS-backed MessageQueue; boto3 calls run in a worker thread."""

    def __init__(self, config: QueueConfig, client: Any | None = None) -> None:
        self._queue_url = config.queue_url
        self._max_messages = config.max_messages
        self._wait_time_secs = config.wait_time_secs
        self._client = client or boto3.client("sqs", region_name=config.region)

    async def receive(self) -> list[QueueMessage]:
        resp = await asyncio.to_thread(
            self._client.receive_message,
            QueueUrl=self._queue_url,
            MaxNumberOfMessages=self._max_messages,
            WaitTimeSeconds=self._wait_time_secs,
        )
        messages: list[QueueMessage] = []
        for raw in resp.get("Messages", []):
            messages.append(QueueMessage(
                body=raw.get("Body", ""),
                receipt_handle=raw["ReceiptHandle"],
                message_id=raw.get("MessageId", ""),
            ))
        return messages

    async def delete(self, receipt_handle: str) -> None:
        await asyncio.to_thread(
            self._client.delete_message,
            QueueUrl=self._queue_url,
            ReceiptHandle=receipt_handle,
        )


class QueuePoller:
    """Background loop feeding queue messages to a handler.

    Messages in a batch are processed one at a time. After a non-empty batch
    the queue is polled again immediately; only an empty receive waits
    *poll_interval_secs*. A message is deleted
    exactly once after its handler succeeds and never when it fails; failed
    messages come back after the queue's visibility timeout.

    Usage::

        poller = QueuePoller(SqsQueue(config), dispatcher.handle_queue_message)
        await poller.start()
        # ...
        await poller.stop()
    """

    def __init__(
        self,
        queue: MessageQueue,
        handler: MessageHandler,
        poll_interval_secs: float = 10.0,
        error_backoff_secs: float = 5.0,
    ) -> None:
        self._queue = queue
        self._handler = handler
        self._poll_interval_secs = poll_interval_secs
        self._error_backoff_secs = error_backoff_secs
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._processed = 0
        self._failed = 0
        self._last_batch_size = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def processed_count(self) -> int:
        return self._processed

    @property
    def failed_count(self) -> int:
        return self._failed

    async def start(self) -> None:
        """Start the background poll loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info("queue_poller_started", poll_interval_secs=self._poll_interval_secs)

    async def stop(self) -> None:
        """Stop the poll loop."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("queue_poller_stopped")

    async def poll_once(self) -> int:
        """Receive one batch and process it. Returns the number of successes."""
        messages = await self._queue.receive()
        self._last_batch_size = len(messages)
        succeeded = 0
        for msg in messages:
            if await self._process(msg):
                succeeded += 1
        return succeeded

    async def _process(self, msg: QueueMessage) -> bool:
        log = logger.bind(message_id=msg.message_id)
        try:
            await self._handler(msg.body)
        except Exception as exc:
            self._failed += 1
            log.warning(
                "queue_message_failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return False

        self._processed += 1
        try:
            await self._queue.delete(msg.receipt_handle)
        except Exception:
            log.exception("queue_delete_error")
        return True

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("queue_receive_error")
                await asyncio.sleep(self._error_backoff_secs)
                continue
            # A non-empty batch may mean more are waiting
            if self._last_batch_size == 0:
                await asyncio.sleep(self._poll_interval_secs)
