"""Exceptions raised by outbound delivery clients."""

from __future__ import annotations


class DeliveryError(Exception):
    """The chat platform did not accept a message."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
