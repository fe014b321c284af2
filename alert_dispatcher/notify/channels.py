"""Chat delivery channels — Slack Web API over aiohttp."""

from __future__ import annotations

import abc
from typing import Any

import aiohttp
import structlog

from alert_dispatcher.core.config import SlackConfig
from alert_dispatcher.core.types import ActionKind
from alert_dispatcher.notify.exceptions import DeliveryError

logger = structlog.get_logger(__name__)

ACTIONS_BLOCK_ID = "alert_actions"


class ChatChannel(abc.ABC):
    """Base class for chat-platform delivery."""

    @abc.abstractmethod
    async def deliver(self, channel: str, text: str) -> None:
        """Post plain *text* to *channel*. Raises DeliveryError on failure."""

    @abc.abstractmethod
    async def deliver_with_actions(
        self, channel: str, text: str, correlation_id: str
    ) -> None:
        """Post *text* with Acknowledge/Dismiss buttons tagged *correlation_id*."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release resources (HTTP sessions, etc.)."""


def build_action_blocks(text: str, correlation_id: str) -> list[dict[str, Any]]:
    """Section with the alert text followed by the two action buttons."""
    return [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": f"🚨 *Alert*\n{text}"},
        },
        {
            "type": "actions",
            "block_id": ACTIONS_BLOCK_ID,
            "elements": [
                {
                    "type": "button",
                    "action_id": ActionKind.ACKNOWLEDGE.value,
                    "value": correlation_id,
                    "style": "primary",
                    "text": {"type": "plain_text", "text": "✅ Acknowledge"},
                },
                {
                    "type": "button",
                    "action_id": ActionKind.DISMISS.value,
                    "value": correlation_id,
                    "style": "danger",
                    "text": {"type": "plain_text", "text": "✖️ Dismiss"},
                },
            ],
        },
    ]


class SlackChannel(ChatChannel):
    """Delivers alerts through ``chat.postMessage`` with a bot token."""

    def __init__(self, config: SlackConfig) -> None:
        self._token = config.bot_token.get_secret_value()
        self._api_url = config.api_url
        self._timeout = aiohttp.ClientTimeout(total=config.timeout_secs)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def deliver(self, channel: str, text: str) -> None:
        await self._post({"channel": channel, "text": text})

    async def deliver_with_actions(
        self, channel: str, text: str, correlation_id: str
    ) -> None:
        await self._post({
            "channel": channel,
            "text": text,
            "blocks": build_action_blocks(text, correlation_id),
        })

    async def _post(self, payload: dict[str, Any]) -> None:
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json; charset=utf-8",
        }
        channel = payload["channel"]
        try:
            session = self._get_session()
            async with session.post(self._api_url, json=payload, headers=headers) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    logger.warning(
                        "slack_send_failed",
                        channel=channel,
                        status=resp.status,
                        body=body[:200],
                    )
                    raise DeliveryError(
                        f"Slack responded with status {resp.status}", status=resp.status
                    )
                try:
                    data = await resp.json(content_type=None)
                except ValueError as exc:
                    logger.warning(
                        "slack_response_not_json", channel=channel, error=str(exc)
                    )
                    raise DeliveryError(
                        "Slack returned a non-JSON response", status=200
                    ) from exc
        except (aiohttp.ClientError, TimeoutError) as exc:
            logger.warning("slack_send_error", channel=channel, error=str(exc))
            raise DeliveryError(f"Slack request failed: {exc}") from exc

        if not isinstance(data, dict) or not data.get("ok"):
            error = data.get("error", "unknown_error") if isinstance(data, dict) else "invalid_response"
            logger.warning("slack_api_error", channel=channel, error=error)
            raise DeliveryError(f"Slack API error: {error}", status=200)

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
