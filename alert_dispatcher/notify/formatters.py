"""Pure functions that render a NormalizedAlert as Slack mrkdwn text.

The header lines (``CloudWatch Alarm: <name>`` / ``Grafana Alert: <title>``)
and the ``• *Description:*`` / ``• *Reason:*`` lines are parsed back by
``alert_dispatcher.interactive.actions.extract_alert_identity`` when a user
clicks a button, so their shape must stay in sync with that module.
"""

from __future__ import annotations

import math
from collections.abc import Callable

from alert_dispatcher.core.types import AlertState, NormalizedAlert, SourceKind

CLOUD_ALARM_MARKER = "CloudWatch Alarm:"
WEBHOOK_ALERT_MARKER = "Grafana Alert:"

# ── State presentation ──────────────────────────────────────────

_STATE_EMOJI: dict[AlertState, str] = {
    AlertState.FIRING: "🚨",
    AlertState.OK: "✅",
    AlertState.NO_DATA: "⚠️",
    AlertState.PENDING: "⏳",
    AlertState.UNKNOWN: "📊",
}

_STATE_DOT: dict[AlertState, str] = {
    AlertState.FIRING: "🔴",
    AlertState.OK: "🟢",
    AlertState.NO_DATA: "🟡",
    AlertState.PENDING: "🟡",
}

# Eval-match tags that add noise without information.
_NOISY_METRIC_TAGS = frozenset({"__name__", "job", "instance"})

# Tags used for routing, never shown to readers.
_ROUTING_TAGS = frozenset({"channel"})

_BULLET = "•"
_INDENT = "   →"


def format_number(value: float) -> str:
    """Integers render without decimals, everything else with two."""
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return f"{value:.2f}"


def state_emoji(state: AlertState) -> str:
    return _STATE_EMOJI.get(state, "📊")


def state_badge(state: AlertState, raw_state: str) -> str:
    dot = _STATE_DOT.get(state)
    if dot is None:
        return f"`{raw_state}`"
    return f"`{dot} {raw_state.upper()}`"


def _prettify_key(key: str) -> str:
    label = key.replace("_", " ")
    return label[:1].upper() + label[1:]


def _line(label: str, value: str) -> str:
    return f"{_BULLET} *{label}:* {value}"


# ── Formatters ──────────────────────────────────────────────────


def format_cloud_alarm(alert: NormalizedAlert) -> str:
    """Render a cloud alarm state change."""
    lines = [f"{state_emoji(alert.state)} *{CLOUD_ALARM_MARKER} {alert.name}*"]

    new_badge = state_badge(alert.state, alert.raw_state)
    if alert.previous_state is not None:
        old_badge = state_badge(alert.previous_state, alert.raw_previous_state)
        lines.append(f"{_BULLET} *From:* {old_badge} → *To:* {new_badge}")
    else:
        lines.append(_line("State", new_badge))

    trigger = alert.trigger
    if trigger is not None:
        lines.append(_line("Metric", f"`{trigger.namespace}/{trigger.metric_name}`"))
        lines.append(_line(
            "Threshold",
            f"`{trigger.comparison_operator} {format_number(trigger.threshold)}`",
        ))
        lines.append(_line(
            "Period",
            f"`{trigger.period}s over {trigger.evaluation_periods} evaluations`",
        ))
        lines.append(f"{_BULLET} *Dimensions:*")
        if trigger.dimensions:
            lines.extend(f"{_INDENT} {d.name}: {d.value}" for d in trigger.dimensions)
        else:
            lines.append(f"{_INDENT} None")

    if alert.region:
        lines.append(_line("Region", f"`{alert.region}`"))
    if alert.reason:
        lines.append(_line("Reason", alert.reason))
    if alert.timestamp:
        lines.append(_line("Time", f"`{alert.timestamp}`"))

    return "\n".join(lines)


def format_legacy_webhook(alert: NormalizedAlert) -> str:
    """Render a legacy single-rule webhook alert."""
    title = alert.display_title
    lines = [
        f"{state_emoji(alert.state)} *{WEBHOOK_ALERT_MARKER} {title}*",
        _line("State", state_badge(alert.state, alert.raw_state)),
    ]

    if alert.name and alert.name != title:
        lines.append(_line("Rule", f"`{alert.name}`"))

    if alert.description:
        lines.append(_line("Description", alert.description))

    if alert.eval_matches:
        lines.append(f"{_BULLET} *Metrics:*")
        for match in alert.eval_matches:
            entry = f"{_INDENT} `{match.metric}`: **{format_number(match.value)}**"
            tags = [
                f"`{k}={v}`"
                for k, v in sorted(match.tags.items())
                if k not in _NOISY_METRIC_TAGS
            ]
            if tags:
                entry += f" ({', '.join(tags)})"
            lines.append(entry)

    labels = [
        f"{_INDENT} `{k}`: {v}"
        for k, v in sorted(alert.source_tags.items())
        if k not in _ROUTING_TAGS and v
    ]
    if labels:
        lines.append(f"{_BULLET} *Labels:*")
        lines.extend(labels)

    if alert.url:
        lines.append(_line("Dashboard", f"<{alert.url}|View Alert Rule>"))

    return "\n".join(lines)


def format_modern_webhook(alert: NormalizedAlert) -> str:
    """Render an alert-list webhook batch (first alert's details)."""
    lines = [
        f"{state_emoji(alert.state)} *{WEBHOOK_ALERT_MARKER} {alert.name}*",
        _line("State", state_badge(alert.state, alert.raw_state)),
    ]

    if alert.description:
        lines.append(_line("Description", alert.description))

    for key, value in sorted(alert.annotations.items()):
        if key in ("description", "summary") or not value:
            continue
        lines.append(_line(_prettify_key(key), value))

    if alert.value_string:
        lines.append(_line("ValueString", alert.value_string))
    if alert.silence_url:
        lines.append(_line("Silence", f"<{alert.silence_url}|Silence Alert>"))
    if alert.url:
        lines.append(_line("Dashboard", f"<{alert.url}|View Alert Rule>"))
    if alert.dashboard_url and alert.dashboard_url != alert.url:
        lines.append(_line("Dashboard", f"<{alert.dashboard_url}|View Dashboard>"))

    return "\n".join(lines)


_FORMATTERS: dict[SourceKind, Callable[[NormalizedAlert], str]] = {
    SourceKind.CLOUD_ALARM: format_cloud_alarm,
    SourceKind.LEGACY_WEBHOOK: format_legacy_webhook,
    SourceKind.MODERN_WEBHOOK: format_modern_webhook,
}


def format_alert(alert: NormalizedAlert) -> str:
    """Render *alert* with the layout native to its source."""
    return _FORMATTERS[alert.kind](alert)
