"""Interactive callback verification and acknowledgment handling."""

from alert_dispatcher.interactive.actions import (
    ActionResult,
    ActionSession,
    ActionState,
    extract_alert_identity,
    parse_callback,
    render_outcome,
)
from alert_dispatcher.interactive.callbacks import CallbackHandler
from alert_dispatcher.interactive.exceptions import (
    CallbackError,
    InvalidCallbackError,
    InvalidTransitionError,
    SignatureInvalidError,
    StaleRequestError,
)
from alert_dispatcher.interactive.signature import compute_signature, verify_request

__all__ = [
    "ActionResult",
    "ActionSession",
    "ActionState",
    "CallbackError",
    "CallbackHandler",
    "InvalidCallbackError",
    "InvalidTransitionError",
    "SignatureInvalidError",
    "StaleRequestError",
    "compute_signature",
    "extract_alert_identity",
    "parse_callback",
    "render_outcome",
    "verify_request",
]
