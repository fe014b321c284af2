"""Queue-delivered alert ingestion."""

from alert_dispatcher.queue.poller import MessageQueue, QueueMessage, QueuePoller, SqsQueue

__all__ = [
    "MessageQueue",
    "QueueMessage",
    "QueuePoller",
    "SqsQueue",
]
