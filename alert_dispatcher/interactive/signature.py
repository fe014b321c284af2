"""HMAC request signing for interactive callbacks.

The signed base string is ``v0:<timestamp>:<raw body>``; the signature is
``v0=`` followed by the hex HMAC-SHA256 of that string keyed with the shared
signing secret.
"""

from __future__ import annotations

import hashlib
import hmac
import time

from alert_dispatcher.interactive.exceptions import SignatureInvalidError, StaleRequestError

SIGNATURE_VERSION = "v0"
TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
SIGNATURE_HEADER = "X-Slack-Signature"
MAX_REQUEST_AGE_SECS = 300


def _as_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def compute_signature(secret: str, timestamp: str, body: str | bytes) -> str:
    base = b":".join([
        SIGNATURE_VERSION.encode(),
        timestamp.encode("utf-8"),
        _as_bytes(body),
    ])
    digest = hmac.new(secret.encode("utf-8"), base, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def verify_request(
    secret: str,
    timestamp: str | None,
    signature: str | None,
    body: str | bytes,
    now: float | None = None,
    max_age_secs: int = MAX_REQUEST_AGE_SECS,
) -> None:
    """Authenticate an interactive request; fails closed.

    Raises:
        SignatureInvalidError: a header is missing, the timestamp is not an
            integer, or the signature does not match.
        StaleRequestError: the timestamp is more than *max_age_secs* away
            from *now* in either direction.
    """
    if not timestamp or not signature:
        raise SignatureInvalidError("missing timestamp or signature header")

    try:
        ts = int(timestamp)
    except ValueError as exc:
        raise SignatureInvalidError(f"invalid timestamp header: {timestamp!r}") from exc

    current = time.time() if now is None else now
    if abs(current - ts) > max_age_secs:
        raise StaleRequestError(f"request timestamp is {int(current - ts)}s from now")

    expected = compute_signature(secret, timestamp, body)
    if not hmac.compare_digest(expected.encode(), signature.encode()):
        raise SignatureInvalidError("signature mismatch")
