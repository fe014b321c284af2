"""Transport envelope unwrapping for queue-delivered notifications."""

from __future__ import annotations

import json
from typing import Any

from alert_dispatcher.ingest.exceptions import MalformedEnvelopeError

# SNS notifications carry the alarm JSON as a string under "Message".
_ENVELOPE_FIELD = "Message"


def unwrap_envelope(body: str) -> str:
    """Return the inner payload of a queue message body.

    An SNS-style envelope (``{"Type": "Notification", "Message": "..."}``) is
    unwrapped to its ``Message`` string. Any other JSON document is treated as
    a direct payload and returned unchanged.

    Raises:
        MalformedEnvelopeError: body is empty or not JSON.
    """
    if not body or not body.strip():
        raise MalformedEnvelopeError("empty message body")

    try:
        doc: Any = json.loads(body)
    except ValueError as exc:
        # JSONDecodeError, or an integer literal too long to convert
        raise MalformedEnvelopeError(f"message body is not JSON: {exc}") from exc

    if isinstance(doc, dict):
        inner = doc.get(_ENVELOPE_FIELD)
        if isinstance(inner, str):
            if not inner.strip():
                raise MalformedEnvelopeError("envelope Message is empty")
            return inner

    return body
