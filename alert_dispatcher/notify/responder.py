"""Delivery of replacement messages to interactive callback response URLs."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from alert_dispatcher.notify.exceptions import DeliveryError

logger = structlog.get_logger(__name__)


def build_replacement(text: str) -> dict[str, Any]:
    """Payload that replaces the original message for everyone in the channel."""
    return {
        "text": text,
        "replace_original": True,
        "response_type": "in_channel",
    }


class ResponseClient:
    """Posts outcome messages to a callback's ``response_url``.

    The httpx client is created lazily and reused across requests.
    """

    def __init__(self, timeout_secs: float = 10.0) -> None:
        self._timeout = httpx.Timeout(timeout_secs)
        self._http: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self._timeout)
        return self._http

    async def replace_original(self, response_url: str, text: str) -> None:
        """Replace the original message.

        Raises:
            DeliveryError: no URL, transport failure or a non-200 response.
        """
        if not response_url:
            raise DeliveryError("callback has no response_url")

        client = self._get_client()
        try:
            resp = await client.post(response_url, json=build_replacement(text))
        except httpx.HTTPError as exc:
            logger.warning("response_url_error", error=str(exc))
            raise DeliveryError(f"failed to post to response_url: {exc}") from exc

        if resp.status_code != 200:
            logger.warning(
                "response_url_rejected",
                status=resp.status_code,
                body=resp.text[:200],
            )
            raise DeliveryError(
                f"response_url returned status {resp.status_code}",
                status=resp.status_code,
            )
        logger.debug("response_url_delivered")

    async def close(self) -> None:
        if self._http is not None and not self._http.is_closed:
            await self._http.aclose()
        self._http = None
