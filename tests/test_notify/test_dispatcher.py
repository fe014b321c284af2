"""Tests for AlertDispatcher — adapt, classify, route, deliver, decision logging."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from alert_dispatcher.core.types import MatchedBy, Priority, RoutingTable
from alert_dispatcher.ingest.exceptions import (
    AdaptationError,
    MalformedEnvelopeError,
    UnrecognizedFormatError,
)
from alert_dispatcher.notify.channels import ChatChannel
from alert_dispatcher.notify.dispatcher import AlertDispatcher
from alert_dispatcher.notify.exceptions import DeliveryError
from alert_dispatcher.notify.formatters import CLOUD_ALARM_MARKER, WEBHOOK_ALERT_MARKER
from alert_dispatcher.routing.router import ChannelRouter


# ── Helpers ─────────────────────────────────────────────────────


class FakeChannel(ChatChannel):
    """In-memory channel for testing."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self._fail = fail
        self.closed = False

    async def deliver(self, channel: str, text: str) -> None:
        await self.deliver_with_actions(channel, text, "")

    async def deliver_with_actions(
        self, channel: str, text: str, correlation_id: str
    ) -> None:
        if self._fail:
            raise DeliveryError("fake error", status=500)
        self.sent.append((channel, text, correlation_id))

    async def close(self) -> None:
        self.closed = True


def _dispatcher(channel: ChatChannel | None = None, **mappings: str) -> AlertDispatcher:
    table = RoutingTable(
        priority_channels={
            "P0": "#p0-infra-alerts",
            "P1": "#p1-infra-alerts",
            "P2": "#p2-infra-alerts",
            "default": "#alerts",
        },
        alarm_channels=mappings,
    )
    return AlertDispatcher(channel=channel or FakeChannel(), router=ChannelRouter(table))


def _cloud_alarm(name: str = "prod-db-cpu-high", **kw: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "AlarmName": name,
        "NewStateValue": "ALARM",
        "OldStateValue": "OK",
        "NewStateReason": "Threshold Crossed",
        "Trigger": {"Namespace": "AWS/RDS", "MetricName": "CPUUtilization"},
    }
    payload.update(kw)
    return payload


def _sns(inner: dict[str, object]) -> str:
    return json.dumps({"Type": "Notification", "Message": json.dumps(inner)})


# ── Queue path ──────────────────────────────────────────────────


class TestQueueMessages:
    async def test_cloud_alarm_routed_to_p0(self) -> None:
        ch = FakeChannel()
        disp = _dispatcher(ch)

        msg = await disp.handle_queue_message(_sns(_cloud_alarm()))

        assert msg.priority == Priority.P0
        assert msg.channel == "#p0-infra-alerts"
        assert len(ch.sent) == 1
        channel, text, correlation_id = ch.sent[0]
        assert channel == "#p0-infra-alerts"
        assert f"{CLOUD_ALARM_MARKER} prod-db-cpu-high" in text
        assert correlation_id == msg.correlation_id

    async def test_direct_payload_accepted(self) -> None:
        ch = FakeChannel()
        msg = await _dispatcher(ch).handle_queue_message(json.dumps(_cloud_alarm()))
        assert msg.channel == "#p0-infra-alerts"
        assert len(ch.sent) == 1

    async def test_explicit_mapping_wins(self) -> None:
        ch = FakeChannel()
        disp = _dispatcher(ch, **{"prod-db-cpu-high": "#db-team"})
        msg = await disp.handle_queue_message(_sns(_cloud_alarm()))
        assert msg.channel == "#db-team"
        assert msg.priority == Priority.P0

    async def test_malformed_envelope_raises(self) -> None:
        ch = FakeChannel()
        with pytest.raises(MalformedEnvelopeError):
            await _dispatcher(ch).handle_queue_message("not json")
        assert ch.sent == []

    async def test_missing_alarm_name_raises(self) -> None:
        ch = FakeChannel()
        with pytest.raises(AdaptationError):
            await _dispatcher(ch).handle_queue_message(_sns({"NewStateValue": "ALARM"}))
        assert ch.sent == []

    async def test_delivery_failure_propagates(self) -> None:
        with pytest.raises(DeliveryError):
            await _dispatcher(FakeChannel(fail=True)).handle_queue_message(_sns(_cloud_alarm()))


# ── Webhook path ────────────────────────────────────────────────


class TestWebhooks:
    async def test_legacy_channel_tag_wins_over_heuristic(self) -> None:
        ch = FakeChannel()
        body = json.dumps({
            "ruleId": 1,
            "ruleName": "critical-payment-failures",
            "state": "alerting",
            "tags": {"channel": "P2"},
        })
        msg = await _dispatcher(ch).handle_webhook(body)
        assert msg.priority == Priority.P2
        assert msg.channel == "#p2-infra-alerts"
        assert f"{WEBHOOK_ALERT_MARKER} critical-payment-failures" in ch.sent[0][1]

    async def test_modern_no_data_routed_to_p1(self) -> None:
        ch = FakeChannel()
        body = json.dumps({
            "status": "firing",
            "alerts": [{"labels": {"alertname": "DatasourceNoData"}}],
        })
        msg = await _dispatcher(ch).handle_webhook(body)
        assert msg.priority == Priority.P1
        assert msg.channel == "#p1-infra-alerts"

    async def test_non_object_webhook_rejected(self) -> None:
        ch = FakeChannel()
        with pytest.raises(UnrecognizedFormatError):
            await _dispatcher(ch).handle_webhook("[]")


# ── Prepare / decision logging ─────────────────────────────────


class TestPrepare:
    def test_resolve_returns_alert_priority_route(self) -> None:
        alert, priority, route = _dispatcher().resolve(json.dumps(_cloud_alarm()))
        assert alert.name == "prod-db-cpu-high"
        assert priority == Priority.P0
        assert route.channel == "#p0-infra-alerts"
        assert route.matched_by == MatchedBy.PRIORITY_DEFAULT

    def test_prepare_does_not_deliver(self) -> None:
        ch = FakeChannel()
        alert, msg = _dispatcher(ch).prepare(json.dumps(_cloud_alarm()))
        assert alert.name == "prod-db-cpu-high"
        assert msg.text.startswith("🚨")
        assert ch.sent == []

    def test_correlation_id_prefixed_by_kind(self) -> None:
        _, msg = _dispatcher().prepare(json.dumps(_cloud_alarm()))
        assert msg.correlation_id is not None
        assert msg.correlation_id.startswith("cloud_alarm_")

    def test_correlation_ids_unique(self) -> None:
        disp = _dispatcher()
        payload = json.dumps(_cloud_alarm())
        assert disp.prepare(payload)[1].correlation_id != disp.prepare(payload)[1].correlation_id

    def test_decision_logged(self) -> None:
        disp = _dispatcher()
        with patch("alert_dispatcher.notify.dispatcher.decision_logger") as mock_log:
            disp.prepare(json.dumps(_cloud_alarm()))
        mock_log.info.assert_called_once()
        call_kwargs = mock_log.info.call_args
        assert call_kwargs[0][0] == "decision"
        assert call_kwargs[1]["alert"] == "prod-db-cpu-high"
        assert call_kwargs[1]["priority"] == "P0"
        assert call_kwargs[1]["matched_by"] == "PRIORITY_DEFAULT"


# ── Lifecycle ───────────────────────────────────────────────────


class TestLifecycle:
    async def test_close_closes_channel(self) -> None:
        ch = FakeChannel()
        await _dispatcher(ch).close()
        assert ch.closed
