"""Legacy webhook adapter — single-rule Grafana alert notifications."""

from __future__ import annotations

from typing import Any

from alert_dispatcher.core.types import (
    AlertState,
    EvalMatch,
    NormalizedAlert,
    Priority,
    SourceKind,
)
from alert_dispatcher.ingest.exceptions import AdaptationError
from alert_dispatcher.ingest.fields import get_dict, get_float, get_list, get_str, str_map

CHANNEL_TAG = "channel"

_STATE_MAP: dict[str, AlertState] = {
    "ALERTING": AlertState.FIRING,
    "OK": AlertState.OK,
    "NO_DATA": AlertState.NO_DATA,
    "PENDING": AlertState.PENDING,
}


def map_rule_state(value: str) -> AlertState:
    return _STATE_MAP.get(value.upper(), AlertState.UNKNOWN)


def _parse_eval_matches(items: list[Any]) -> list[EvalMatch]:
    matches: list[EvalMatch] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        matches.append(EvalMatch(
            metric=get_str(item, "metric") or "",
            value=get_float(item, "value") or 0.0,
            tags=str_map(get_dict(item, "tags")),
        ))
    return matches


def adapt_legacy_webhook(payload: dict[str, Any]) -> NormalizedAlert:
    """Convert a legacy rule-based webhook into a NormalizedAlert.

    The alert name is the rule name (falling back to the title). A ``channel``
    tag holding P0/P1/P2 pins the priority; any other value is ignored.

    Raises:
        AdaptationError: neither ``ruleName`` nor ``title`` is present.
    """
    rule_name = (get_str(payload, "ruleName") or "").strip()
    title = (get_str(payload, "title") or "").strip()
    name = rule_name or title
    if not name:
        raise AdaptationError("legacy webhook has neither ruleName nor title")

    raw_state = get_str(payload, "state") or ""
    tags = str_map(get_dict(payload, "tags"))
    message = get_str(payload, "message") or ""

    return NormalizedAlert(
        name=name,
        kind=SourceKind.LEGACY_WEBHOOK,
        state=map_rule_state(raw_state),
        raw_state=raw_state,
        reason=message,
        description=message,
        title=title or rule_name,
        source_tags=tags,
        url=get_str(payload, "ruleUrl") or None,
        eval_matches=_parse_eval_matches(get_list(payload, "evalMatches")),
        channel_tag=Priority.parse(tags.get(CHANNEL_TAG)),
    )
