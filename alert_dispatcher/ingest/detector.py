"""Payload shape detection and adapter dispatch."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from alert_dispatcher.core.types import NormalizedAlert, SourceKind
from alert_dispatcher.ingest.alertmanager import adapt_modern_webhook
from alert_dispatcher.ingest.cloudwatch import adapt_cloud_alarm
from alert_dispatcher.ingest.exceptions import UnrecognizedFormatError
from alert_dispatcher.ingest.fields import get_list, get_str
from alert_dispatcher.ingest.grafana_legacy import adapt_legacy_webhook

Adapter = Callable[[dict[str, Any]], NormalizedAlert]

_ADAPTERS: dict[SourceKind, Adapter] = {
    SourceKind.MODERN_WEBHOOK: adapt_modern_webhook,
    SourceKind.LEGACY_WEBHOOK: adapt_legacy_webhook,
    SourceKind.CLOUD_ALARM: adapt_cloud_alarm,
}


def decode_payload(raw: str) -> dict[str, Any]:
    """Parse *raw* as a JSON object.

    Raises:
        UnrecognizedFormatError: not JSON, or JSON that is not an object.
    """
    try:
        doc = json.loads(raw)
    except (ValueError, TypeError) as exc:
        raise UnrecognizedFormatError(f"payload is not JSON: {exc}") from exc
    if not isinstance(doc, dict):
        raise UnrecognizedFormatError(
            f"payload must be a JSON object, got {type(doc).__name__}"
        )
    return doc


def _is_legacy_rule(payload: dict[str, Any]) -> bool:
    if "ruleId" in payload:
        return True
    has_state = get_str(payload, "state") is not None
    has_rule = get_str(payload, "ruleName") is not None or get_str(payload, "title") is not None
    return has_state and has_rule


def detect_source(payload: dict[str, Any]) -> SourceKind:
    """Select an adapter from the payload's structure (first match wins)."""
    if get_list(payload, "alerts"):
        return SourceKind.MODERN_WEBHOOK
    if _is_legacy_rule(payload):
        return SourceKind.LEGACY_WEBHOOK
    return SourceKind.CLOUD_ALARM


def adapt(raw: str) -> NormalizedAlert:
    """Decode *raw*, detect its source and run exactly one adapter."""
    payload = decode_payload(raw)
    kind = detect_source(payload)
    return _ADAPTERS[kind](payload)
