"""Tests for the mrkdwn formatters — layout per source, helpers, idempotence."""

from __future__ import annotations

import json

import pytest

from alert_dispatcher.core.types import (
    AlertState,
    Dimension,
    EvalMatch,
    MetricTrigger,
    NormalizedAlert,
    SourceKind,
)
from alert_dispatcher.ingest.detector import adapt
from alert_dispatcher.notify.formatters import (
    CLOUD_ALARM_MARKER,
    WEBHOOK_ALERT_MARKER,
    format_alert,
    format_cloud_alarm,
    format_legacy_webhook,
    format_modern_webhook,
    format_number,
    state_badge,
    state_emoji,
)


# ── Helpers ─────────────────────────────────────────────────────


def _cloud(**kw: object) -> NormalizedAlert:
    defaults: dict[str, object] = {
        "name": "disk-full",
        "kind": SourceKind.CLOUD_ALARM,
        "state": AlertState.FIRING,
        "raw_state": "ALARM",
        "previous_state": AlertState.OK,
        "raw_previous_state": "OK",
        "reason": "Threshold Crossed",
        "title": "disk-full",
        "region": "us-east-1",
        "timestamp": "2025-07-23 13:32:26 UTC",
        "trigger": MetricTrigger(
            namespace="CWAgent",
            metric_name="disk_used_percent",
            comparison_operator="GreaterThanThreshold",
            threshold=90.0,
            period=300,
            evaluation_periods=1,
            dimensions=[Dimension(name="path", value="/")],
        ),
    }
    defaults.update(kw)
    return NormalizedAlert(**defaults)  # type: ignore[arg-type]


def _legacy(**kw: object) -> NormalizedAlert:
    defaults: dict[str, object] = {
        "name": "checkout-latency",
        "kind": SourceKind.LEGACY_WEBHOOK,
        "state": AlertState.FIRING,
        "raw_state": "alerting",
        "title": "[Alerting] Checkout latency",
        "description": "p99 latency above 2s",
        "reason": "p99 latency above 2s",
        "url": "https://grafana.example/d/abc",
        "eval_matches": [
            EvalMatch(metric="p99", value=2.4, tags={"service": "checkout", "job": "api"}),
        ],
        "source_tags": {"team": "payments", "channel": "P1"},
    }
    defaults.update(kw)
    return NormalizedAlert(**defaults)  # type: ignore[arg-type]


def _modern(**kw: object) -> NormalizedAlert:
    defaults: dict[str, object] = {
        "name": "QueueBacklog",
        "kind": SourceKind.MODERN_WEBHOOK,
        "state": AlertState.FIRING,
        "raw_state": "firing",
        "title": "QueueBacklog",
        "description": "Backlog above 10k messages",
        "annotations": {
            "description": "Backlog above 10k messages",
            "summary": "Queue backlog",
            "runbook_url": "https://runbooks.example/queue",
        },
        "value_string": "[ var='A' value=12034 ]",
        "silence_url": "https://grafana.example/silence/1",
        "url": "https://grafana.example/alerting/1/view",
        "dashboard_url": "https://grafana.example/d/queue",
    }
    defaults.update(kw)
    return NormalizedAlert(**defaults)  # type: ignore[arg-type]


# ── Helpers under test ─────────────────────────────────────────


class TestPresentationHelpers:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(90.0, "90"), (0.0, "0"), (2.4, "2.40"), (3.14159, "3.14"), (-3.0, "-3")],
    )
    def test_format_number(self, value: float, expected: str) -> None:
        assert format_number(value) == expected

    def test_state_badge_known_state(self) -> None:
        assert state_badge(AlertState.FIRING, "alarm") == "`🔴 ALARM`"
        assert state_badge(AlertState.OK, "OK") == "`🟢 OK`"

    def test_state_badge_unknown_state_uses_raw(self) -> None:
        assert state_badge(AlertState.UNKNOWN, "weird") == "`weird`"

    def test_state_emoji_covers_every_state(self) -> None:
        for state in AlertState:
            assert state_emoji(state)


# ── Cloud alarm ─────────────────────────────────────────────────


class TestFormatCloudAlarm:
    def test_full_layout(self) -> None:
        expected = "\n".join([
            f"🚨 *{CLOUD_ALARM_MARKER} disk-full*",
            "• *From:* `🟢 OK` → *To:* `🔴 ALARM`",
            "• *Metric:* `CWAgent/disk_used_percent`",
            "• *Threshold:* `GreaterThanThreshold 90`",
            "• *Period:* `300s over 1 evaluations`",
            "• *Dimensions:*",
            "   → path: /",
            "• *Region:* `us-east-1`",
            "• *Reason:* Threshold Crossed",
            "• *Time:* `2025-07-23 13:32:26 UTC`",
        ])
        assert format_cloud_alarm(_cloud()) == expected

    def test_state_line_without_previous_state(self) -> None:
        text = format_cloud_alarm(_cloud(previous_state=None, raw_previous_state=""))
        assert "• *State:* `🔴 ALARM`" in text
        assert "*From:*" not in text

    def test_no_dimensions(self) -> None:
        text = format_cloud_alarm(_cloud(trigger=MetricTrigger(namespace="AWS/EC2")))
        assert "• *Dimensions:*\n   → None" in text

    def test_no_trigger_omits_metric_block(self) -> None:
        text = format_cloud_alarm(_cloud(trigger=None))
        assert "*Metric:*" not in text
        assert "*Dimensions:*" not in text

    def test_optional_lines_omitted(self) -> None:
        text = format_cloud_alarm(_cloud(region=None, reason="", timestamp=None))
        assert "*Region:*" not in text
        assert "*Reason:*" not in text
        assert "*Time:*" not in text

    def test_recovery_emoji(self) -> None:
        alert = _cloud(
            state=AlertState.OK,
            raw_state="OK",
            previous_state=AlertState.FIRING,
            raw_previous_state="ALARM",
        )
        assert format_cloud_alarm(alert).startswith("✅ ")


# ── Legacy webhook ─────────────────────────────────────────────


class TestFormatLegacyWebhook:
    def test_full_layout(self) -> None:
        expected = "\n".join([
            f"🚨 *{WEBHOOK_ALERT_MARKER} [Alerting] Checkout latency*",
            "• *State:* `🔴 ALERTING`",
            "• *Rule:* `checkout-latency`",
            "• *Description:* p99 latency above 2s",
            "• *Metrics:*",
            "   → `p99`: **2.40** (`service=checkout`)",
            "• *Labels:*",
            "   → `team`: payments",
            "• *Dashboard:* <https://grafana.example/d/abc|View Alert Rule>",
        ])
        assert format_legacy_webhook(_legacy()) == expected

    def test_rule_line_omitted_when_name_equals_title(self) -> None:
        text = format_legacy_webhook(_legacy(title="checkout-latency"))
        assert "*Rule:*" not in text

    def test_channel_tag_never_shown(self) -> None:
        text = format_legacy_webhook(_legacy(source_tags={"channel": "P1"}))
        assert "channel" not in text
        assert "*Labels:*" not in text

    def test_metric_without_tags(self) -> None:
        text = format_legacy_webhook(_legacy(eval_matches=[EvalMatch(metric="rps", value=12)]))
        assert "   → `rps`: **12**" in text.splitlines()

    def test_no_url(self) -> None:
        assert "*Dashboard:*" not in format_legacy_webhook(_legacy(url=None))


# ── Modern webhook ─────────────────────────────────────────────


class TestFormatModernWebhook:
    def test_full_layout(self) -> None:
        expected = "\n".join([
            f"🚨 *{WEBHOOK_ALERT_MARKER} QueueBacklog*",
            "• *State:* `🔴 FIRING`",
            "• *Description:* Backlog above 10k messages",
            "• *Runbook url:* https://runbooks.example/queue",
            "• *ValueString:* [ var='A' value=12034 ]",
            "• *Silence:* <https://grafana.example/silence/1|Silence Alert>",
            "• *Dashboard:* <https://grafana.example/alerting/1/view|View Alert Rule>",
            "• *Dashboard:* <https://grafana.example/d/queue|View Dashboard>",
        ])
        assert format_modern_webhook(_modern()) == expected

    def test_duplicate_dashboard_link_collapsed(self) -> None:
        alert = _modern(dashboard_url="https://grafana.example/alerting/1/view")
        assert format_modern_webhook(alert).count("*Dashboard:*") == 1

    def test_resolved(self) -> None:
        text = format_modern_webhook(_modern(state=AlertState.OK, raw_state="resolved"))
        assert text.startswith("✅ ")
        assert "`🟢 RESOLVED`" in text

    def test_minimal(self) -> None:
        alert = NormalizedAlert(
            name="Bare", kind=SourceKind.MODERN_WEBHOOK, state=AlertState.FIRING, raw_state="firing"
        )
        assert format_modern_webhook(alert) == (
            f"🚨 *{WEBHOOK_ALERT_MARKER} Bare*\n• *State:* `🔴 FIRING`"
        )


# ── Dispatch by kind ───────────────────────────────────────────


class TestFormatAlert:
    def test_dispatches_by_kind(self) -> None:
        assert format_alert(_cloud()) == format_cloud_alarm(_cloud())
        assert format_alert(_legacy()) == format_legacy_webhook(_legacy())
        assert format_alert(_modern()) == format_modern_webhook(_modern())

    def test_idempotent(self) -> None:
        for alert in (_cloud(), _legacy(), _modern()):
            assert format_alert(alert) == format_alert(alert)

    def test_adapted_cloud_alarm_round_trip(self) -> None:
        raw = json.dumps({
            "AlarmName": "prod-db-cpu-high",
            "NewStateValue": "ALARM",
            "OldStateValue": "OK",
            "NewStateReason": "CPU at 97%",
            "Trigger": {"Namespace": "AWS/RDS", "MetricName": "CPUUtilization"},
        })
        text = format_alert(adapt(raw))
        assert text.startswith(f"🚨 *{CLOUD_ALARM_MARKER} prod-db-cpu-high*")
        assert "• *Reason:* CPU at 97%" in text
