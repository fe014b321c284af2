"""Interactive action decoding and the per-request action state machine.

STATE MACHINE::

    RECEIVED ──► VERIFIED ──┬──► ACKNOWLEDGED
                            ├──► DISMISSED
                            └──► UNKNOWN_ACTION

Terminal states are final. Sessions live for one request only; nothing about
an alert's acknowledgment history is kept.
"""

from __future__ import annotations

import json
import re
from enum import StrEnum
from typing import Any
from urllib.parse import parse_qs

import structlog
from pydantic import BaseModel

from alert_dispatcher.core.types import ActionKind, AlertIdentity, CallbackAction
from alert_dispatcher.ingest.fields import first_dict, get_dict, get_list, get_str
from alert_dispatcher.interactive.exceptions import InvalidCallbackError, InvalidTransitionError
from alert_dispatcher.notify.formatters import CLOUD_ALARM_MARKER, WEBHOOK_ALERT_MARKER

logger = structlog.get_logger(__name__)


class ActionState(StrEnum):
    RECEIVED = "RECEIVED"
    VERIFIED = "VERIFIED"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    DISMISSED = "DISMISSED"
    UNKNOWN_ACTION = "UNKNOWN_ACTION"


VALID_TRANSITIONS: dict[ActionState, frozenset[ActionState]] = {
    ActionState.RECEIVED: frozenset({ActionState.VERIFIED}),
    ActionState.VERIFIED: frozenset({
        ActionState.ACKNOWLEDGED,
        ActionState.DISMISSED,
        ActionState.UNKNOWN_ACTION,
    }),
    ActionState.ACKNOWLEDGED: frozenset(),
    ActionState.DISMISSED: frozenset(),
    ActionState.UNKNOWN_ACTION: frozenset(),
}

_OUTCOME_STATES: dict[ActionKind, ActionState] = {
    ActionKind.ACKNOWLEDGE: ActionState.ACKNOWLEDGED,
    ActionKind.DISMISS: ActionState.DISMISSED,
}


class ActionSession:
    """Tracks one interactive request through the state machine."""

    def __init__(self) -> None:
        self._state = ActionState.RECEIVED
        self._history: list[ActionState] = [ActionState.RECEIVED]

    @property
    def state(self) -> ActionState:
        return self._state

    @property
    def history(self) -> list[ActionState]:
        return list(self._history)

    @property
    def is_terminal(self) -> bool:
        return not VALID_TRANSITIONS[self._state]

    def advance(self, new_state: ActionState) -> None:
        if new_state not in VALID_TRANSITIONS[self._state]:
            raise InvalidTransitionError(f"{self._state} → {new_state} is not allowed")
        self._state = new_state
        self._history.append(new_state)

    def mark_verified(self) -> None:
        self.advance(ActionState.VERIFIED)

    def resolve(self, action: CallbackAction) -> ActionState:
        """Move to the terminal state implied by the action's kind."""
        kind = action.kind
        target = _OUTCOME_STATES[kind] if kind is not None else ActionState.UNKNOWN_ACTION
        self.advance(target)
        return target


class ActionResult(BaseModel):
    """Outcome of an interactive request."""

    state: ActionState
    text: str
    action: CallbackAction
    identity: AlertIdentity


# ── Payload decoding ────────────────────────────────────────────


def parse_callback(body: str | bytes) -> CallbackAction:
    """Decode a form-encoded interactive request body.

    Raises:
        InvalidCallbackError: no ``payload`` field, invalid JSON, or no actions.
    """
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    form = parse_qs(text, keep_blank_values=True)
    values = form.get("payload")
    if not values or not values[0]:
        raise InvalidCallbackError("no 'payload' field in form data")

    try:
        payload: Any = json.loads(values[0])
    except ValueError as exc:
        raise InvalidCallbackError(f"payload is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise InvalidCallbackError("payload must be a JSON object")

    actions = get_list(payload, "actions")
    if not actions:
        raise InvalidCallbackError("payload contains no actions")
    first = first_dict(actions)

    user = get_dict(payload, "user")
    message = get_dict(payload, "message")
    block_texts = [
        get_str(get_dict(block, "text"), "text") or ""
        for block in get_list(message, "blocks")
        if get_str(block, "type") == "section"
    ]

    return CallbackAction(
        action_id=get_str(first, "action_id") or "",
        correlation_id=get_str(first, "value") or "",
        actor=get_str(user, "name") or get_str(user, "username") or get_str(user, "id") or "",
        response_url=get_str(payload, "response_url") or "",
        original_text=get_str(message, "text") or "",
        block_texts=[t for t in block_texts if t],
        raw=payload,
    )


# ── Alert identity recovery ─────────────────────────────────────

_WEBHOOK_NAME_RE = re.compile(re.escape(WEBHOOK_ALERT_MARKER) + r" ([^*\n]+)")
_WEBHOOK_DESC_RE = re.compile(r"• \*Description:\* ([^\n]+)")
_CLOUD_NAME_RE = re.compile(re.escape(CLOUD_ALARM_MARKER) + r" ([^*\n]+)")
_CLOUD_REASON_RE = re.compile(r"• \*Reason:\* ([^\n]+)")


def _search(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


def extract_alert_identity(text: str) -> AlertIdentity:
    """Recover the alert name and description from a rendered alert message."""
    if WEBHOOK_ALERT_MARKER in text:
        return AlertIdentity(
            name=_search(_WEBHOOK_NAME_RE, text),
            description=_search(_WEBHOOK_DESC_RE, text),
        )
    if CLOUD_ALARM_MARKER in text:
        return AlertIdentity(
            name=_search(_CLOUD_NAME_RE, text),
            description=_search(_CLOUD_REASON_RE, text),
        )
    return AlertIdentity()


def identify_alert(action: CallbackAction) -> AlertIdentity:
    """Try the message text first, then each section block."""
    identity = extract_alert_identity(action.original_text)
    if identity.found:
        return identity
    for block_text in action.block_texts:
        identity = extract_alert_identity(block_text)
        if identity.found:
            return identity
    return AlertIdentity()


# ── Outcome rendering ───────────────────────────────────────────

_HANDLING_NOTE = "_This alert is now being handled._"
_DISMISSED_NOTE = "_This alert has been dismissed and will not be actioned._"


def _outcome(emoji: str, verb: str, note: str, action: CallbackAction, identity: AlertIdentity) -> str:
    if not identity.found:
        return f"{emoji} **Alert {action.correlation_id} {verb} by {action.actor}**\n\n{note}"
    text = f"{emoji} **Alert '{identity.name}' {verb} by {action.actor}**"
    if identity.description:
        text += f"\n• *Description:* {identity.description}"
    return f"{text}\n\n{note}"


def render_outcome(state: ActionState, action: CallbackAction, identity: AlertIdentity) -> str:
    """Text of the message that replaces the original alert."""
    if state == ActionState.ACKNOWLEDGED:
        return _outcome("✅", "acknowledged", _HANDLING_NOTE, action, identity)
    if state == ActionState.DISMISSED:
        return _outcome("❌", "dismissed", _DISMISSED_NOTE, action, identity)
    return f"Unknown action: {action.action_id}"
