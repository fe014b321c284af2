"""Interactive callback handling — verify, decode, resolve, respond."""

from __future__ import annotations

import structlog

from alert_dispatcher.interactive.actions import (
    ActionResult,
    ActionSession,
    identify_alert,
    parse_callback,
    render_outcome,
)
from alert_dispatcher.interactive.signature import MAX_REQUEST_AGE_SECS, verify_request
from alert_dispatcher.notify.responder import ResponseClient

logger = structlog.get_logger(__name__)


class CallbackHandler:
    """Processes one button click end to end.

    Usage::

        handler = CallbackHandler(signing_secret, ResponseClient())
        result = await handler.handle(timestamp, signature, raw_body)

    Verification failures raise ``SignatureInvalidError`` /
    ``StaleRequestError``; a malformed payload raises
    ``InvalidCallbackError``; a failed replacement raises ``DeliveryError``.
    """

    def __init__(
        self,
        signing_secret: str,
        responder: ResponseClient,
        max_request_age_secs: int = MAX_REQUEST_AGE_SECS,
    ) -> None:
        self._secret = signing_secret
        self._responder = responder
        self._max_age = max_request_age_secs

    async def handle(
        self,
        timestamp: str | None,
        signature: str | None,
        body: bytes,
        now: float | None = None,
    ) -> ActionResult:
        session = ActionSession()
        verify_request(
            self._secret,
            timestamp,
            signature,
            body,
            now=now,
            max_age_secs=self._max_age,
        )
        session.mark_verified()

        action = parse_callback(body)
        identity = identify_alert(action)
        state = session.resolve(action)
        text = render_outcome(state, action, identity)

        logger.info(
            "callback_resolved",
            state=state.value,
            action_id=action.action_id,
            correlation_id=action.correlation_id,
            actor=action.actor,
            alert=identity.name or None,
        )

        await self._responder.replace_original(action.response_url, text)
        return ActionResult(state=state, text=text, action=action, identity=identity)

    async def close(self) -> None:
        await self._responder.close()
