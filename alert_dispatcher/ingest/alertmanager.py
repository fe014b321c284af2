"""Modern webhook adapter — Alertmanager-style batch notifications.

Expected structure::

    {
        "status": "firing",
        "title": "...",
        "commonLabels": {"alertname": "...", "channel": "P1"},
        "alerts": [
            {
                "labels": {"alertname": "...", ...},
                "annotations": {"description": "...", "summary": "..."},
                "valueString": "...",
                "silenceURL": "...",
                "generatorURL": "...",
                "dashboardURL": "..."
            }
        ]
    }

Any field may be missing or carry an unexpected type; such fields are treated
as absent.
"""

from __future__ import annotations

from typing import Any

import structlog

from alert_dispatcher.core.types import AlertState, NormalizedAlert, Priority, SourceKind
from alert_dispatcher.ingest.exceptions import AdaptationError
from alert_dispatcher.ingest.fields import first_dict, get_dict, get_list, get_str, str_map

logger = structlog.get_logger(__name__)

CHANNEL_LABEL = "channel"
NO_DATA_INDICATORS: tuple[str, ...] = ("nodata", "no data", "data source")

_STATUS_MAP: dict[str, AlertState] = {
    "FIRING": AlertState.FIRING,
    "RESOLVED": AlertState.OK,
}


def map_batch_status(value: str) -> AlertState:
    return _STATUS_MAP.get(value.upper(), AlertState.UNKNOWN)


def _mentions_no_data(text: str | None) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(indicator in lowered for indicator in NO_DATA_INDICATORS)


def has_no_data_alert(alerts: list[Any]) -> bool:
    """True if any alert's name or description signals a silent data source."""
    for alert in alerts:
        if _mentions_no_data(get_str(get_dict(alert, "labels"), "alertname")):
            return True
        if _mentions_no_data(get_str(get_dict(alert, "annotations"), "description")):
            return True
    return False


def _channel_tag(common_labels: dict[str, Any], first_labels: dict[str, Any]) -> Priority | None:
    tag = get_str(common_labels, CHANNEL_LABEL) or get_str(first_labels, CHANNEL_LABEL)
    if not tag:
        return None
    # A present but unrecognized tag folds to the lowest tier.
    return Priority.parse(tag) or Priority.P2


def adapt_modern_webhook(payload: dict[str, Any]) -> NormalizedAlert:
    """Convert an alert-list webhook into a NormalizedAlert.

    Raises:
        AdaptationError: no alert name can be found anywhere in the batch.
    """
    alerts = get_list(payload, "alerts")
    common_labels = get_dict(payload, "commonLabels")
    first = first_dict(alerts)
    first_labels = get_dict(first, "labels")
    annotations = str_map(get_dict(first, "annotations"))
    status = get_str(payload, "status") or ""

    name = (
        get_str(common_labels, "alertname")
        or get_str(first_labels, "alertname")
        or get_str(payload, "title")
        or ""
    ).strip()
    if not name:
        raise AdaptationError("modern webhook has no alertname label or title")

    forced: Priority | None = None
    if status.upper() == "FIRING" and has_no_data_alert(alerts):
        forced = Priority.P1
        logger.debug("no_data_alert_detected", alert=name)

    description = annotations.get("description") or annotations.get("summary") or ""
    message = get_str(payload, "message") or ""

    return NormalizedAlert(
        name=name,
        kind=SourceKind.MODERN_WEBHOOK,
        state=map_batch_status(status),
        raw_state=status,
        reason=description or message,
        description=description,
        title=name,
        source_tags={**str_map(common_labels), **str_map(first_labels)},
        url=get_str(first, "generatorURL") or None,
        annotations=annotations,
        value_string=get_str(first, "valueString") or None,
        silence_url=get_str(first, "silenceURL") or None,
        dashboard_url=get_str(first, "dashboardURL") or None,
        channel_tag=_channel_tag(common_labels, first_labels),
        forced_priority=forced,
    )
