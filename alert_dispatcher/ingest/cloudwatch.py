"""Cloud-alarm adapter — CloudWatch alarm state-change notifications."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from alert_dispatcher.core.types import (
    AlertState,
    Dimension,
    MetricTrigger,
    NormalizedAlert,
    SourceKind,
)
from alert_dispatcher.ingest.exceptions import AdaptationError
from alert_dispatcher.ingest.fields import get_dict, get_float, get_int, get_list, get_str

# CloudWatch sends e.g. "2025-07-23T13:32:26.882+0000"
_STATE_CHANGE_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+0000"
_DISPLAY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S UTC"

_STATE_MAP: dict[str, AlertState] = {
    "ALARM": AlertState.FIRING,
    "OK": AlertState.OK,
    "INSUFFICIENT_DATA": AlertState.NO_DATA,
}


def map_alarm_state(value: str) -> AlertState:
    return _STATE_MAP.get(value.upper(), AlertState.UNKNOWN)


def format_state_change_time(value: str) -> str:
    """Render the alarm timestamp for display, passing unparseable input through."""
    try:
        parsed = datetime.strptime(value, _STATE_CHANGE_TIME_FORMAT)
    except ValueError:
        return value
    return parsed.strftime(_DISPLAY_TIME_FORMAT)


def _parse_trigger(raw: dict[str, Any]) -> MetricTrigger:
    dimensions: list[Dimension] = []
    for dim in get_list(raw, "Dimensions"):
        name = get_str(dim, "name")
        if name is None:
            continue
        dimensions.append(Dimension(name=name, value=get_str(dim, "value") or ""))

    return MetricTrigger(
        namespace=get_str(raw, "Namespace") or "",
        metric_name=get_str(raw, "MetricName") or "",
        statistic=get_str(raw, "Statistic") or "",
        comparison_operator=get_str(raw, "ComparisonOperator") or "",
        threshold=get_float(raw, "Threshold") or 0.0,
        period=get_int(raw, "Period") or 0,
        evaluation_periods=get_int(raw, "EvaluationPeriods") or 0,
        dimensions=dimensions,
    )


def adapt_cloud_alarm(payload: dict[str, Any]) -> NormalizedAlert:
    """Convert a CloudWatch alarm notification into a NormalizedAlert.

    Raises:
        AdaptationError: ``AlarmName`` or ``NewStateValue`` is missing.
    """
    name = get_str(payload, "AlarmName")
    new_state = get_str(payload, "NewStateValue")
    if not name or not name.strip():
        raise AdaptationError("cloud alarm is missing AlarmName")
    if not new_state:
        raise AdaptationError(f"cloud alarm {name!r} is missing NewStateValue")

    old_state = get_str(payload, "OldStateValue") or ""
    trigger = _parse_trigger(get_dict(payload, "Trigger"))

    metric_context: str | None = None
    if trigger.namespace or trigger.metric_name:
        metric_context = f"{trigger.namespace}/{trigger.metric_name}"

    source_tags = {dim.name: dim.value for dim in trigger.dimensions}
    account = get_str(payload, "AWSAccountId")
    if account:
        source_tags.setdefault("account", account)
    arn = get_str(payload, "AlarmArn")
    if arn:
        source_tags.setdefault("alarm_arn", arn)

    raw_time = get_str(payload, "StateChangeTime")

    return NormalizedAlert(
        name=name,
        kind=SourceKind.CLOUD_ALARM,
        state=map_alarm_state(new_state),
        raw_state=new_state,
        previous_state=map_alarm_state(old_state) if old_state else None,
        raw_previous_state=old_state,
        reason=get_str(payload, "NewStateReason") or "",
        description=get_str(payload, "AlarmDescription") or "",
        title=name,
        source_tags=source_tags,
        region=get_str(payload, "Region"),
        metric_context=metric_context,
        timestamp=format_state_change_time(raw_time) if raw_time is not None else None,
        trigger=trigger,
    )
