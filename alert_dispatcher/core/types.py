"""Domain types for alert ingestion, routing and interactive callbacks."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class SourceKind(StrEnum):
    """Which adapter produced a NormalizedAlert."""

    CLOUD_ALARM = "CLOUD_ALARM"
    LEGACY_WEBHOOK = "LEGACY_WEBHOOK"
    MODERN_WEBHOOK = "MODERN_WEBHOOK"


class AlertState(StrEnum):
    """Canonical alert state across all sources."""

    FIRING = "FIRING"
    OK = "OK"
    NO_DATA = "NO_DATA"
    PENDING = "PENDING"
    UNKNOWN = "UNKNOWN"


class Priority(StrEnum):
    """Severity tier — P0 is the most severe."""

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"

    @classmethod
    def parse(cls, value: object) -> Priority | None:
        """Case-insensitive lookup; ``None`` for anything unrecognized."""
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None

    @property
    def severity_rank(self) -> int:
        """Higher is more severe (P0 → 2, P2 → 0)."""
        return _PRIORITY_RANK[self]

    def outranks(self, other: Priority) -> bool:
        return self.severity_rank > other.severity_rank


_PRIORITY_RANK: dict[Priority, int] = {
    Priority.P0: 2,
    Priority.P1: 1,
    Priority.P2: 0,
}


class MatchedBy(StrEnum):
    """How a ChannelRoute was resolved (diagnostic only)."""

    EXPLICIT_MAPPING = "EXPLICIT_MAPPING"
    PRIORITY_DEFAULT = "PRIORITY_DEFAULT"
    FALLBACK_DEFAULT = "FALLBACK_DEFAULT"


class ActionKind(StrEnum):
    """Interactive button actions attached to alert messages."""

    ACKNOWLEDGE = "acknowledge"
    DISMISS = "dismiss"


# ── Alert model ──────────────────────────────────────────────────


class Dimension(BaseModel):
    """A single cloud-alarm metric dimension."""

    name: str
    value: str


class MetricTrigger(BaseModel):
    """Metric trigger block of a cloud alarm."""

    namespace: str = ""
    metric_name: str = ""
    statistic: str = ""
    comparison_operator: str = ""
    threshold: float = 0.0
    period: int = 0
    evaluation_periods: int = 0
    dimensions: list[Dimension] = Field(default_factory=list)


class EvalMatch(BaseModel):
    """An evaluated metric/value pair from a legacy webhook."""

    metric: str = ""
    value: float = 0.0
    tags: dict[str, str] = Field(default_factory=dict)


class NormalizedAlert(BaseModel):
    """Canonical representation produced by every source adapter."""

    name: str
    kind: SourceKind
    state: AlertState
    raw_state: str = ""
    previous_state: AlertState | None = None
    raw_previous_state: str = ""
    reason: str = ""
    description: str = ""
    title: str = ""
    source_tags: dict[str, str] = Field(default_factory=dict)
    region: str | None = None
    url: str | None = None
    metric_context: str | None = None
    timestamp: str | None = None

    # Kind-specific enrichment
    trigger: MetricTrigger | None = None
    eval_matches: list[EvalMatch] = Field(default_factory=list)
    annotations: dict[str, str] = Field(default_factory=dict)
    value_string: str | None = None
    silence_url: str | None = None
    dashboard_url: str | None = None

    # Classification inputs set by the adapter
    channel_tag: Priority | None = None
    forced_priority: Priority | None = None

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("alert name must not be empty")
        return v

    @property
    def display_title(self) -> str:
        return self.title or self.name


# ── Routing ──────────────────────────────────────────────────────

DEFAULT_ROUTE_KEY = "default"


class RoutingTable(BaseModel):
    """Immutable routing configuration shared read-only by the router.

    ``priority_channels`` maps ``P0``/``P1``/``P2``/``default`` to a channel;
    ``alarm_channels`` pins individual alert names to a channel.
    """

    model_config = ConfigDict(frozen=True)

    # Both mappings are private copies behind read-only views.
    priority_channels: Mapping[str, str]
    alarm_channels: Mapping[str, str] = Field(default_factory=dict, validate_default=True)

    @field_validator("priority_channels")
    @classmethod
    def _require_default(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        if not v.get(DEFAULT_ROUTE_KEY, "").strip():
            raise ValueError("routing table requires a non-empty 'default' channel")
        return MappingProxyType(dict(v))

    @field_validator("alarm_channels")
    @classmethod
    def _drop_empty_mappings(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType({name: ch for name, ch in v.items() if ch})

    @field_serializer("priority_channels", "alarm_channels")
    def _dump_mapping(self, v: Mapping[str, str]) -> dict[str, str]:
        return dict(v)

    def explicit_channel(self, alert_name: str) -> str | None:
        return self.alarm_channels.get(alert_name) or None

    def priority_channel(self, priority: Priority) -> str | None:
        return self.priority_channels.get(priority.value) or None

    @property
    def default_channel(self) -> str:
        return self.priority_channels[DEFAULT_ROUTE_KEY]


class ChannelRoute(BaseModel):
    """Resolved destination for an alert."""

    channel: str
    priority: Priority
    matched_by: MatchedBy


class OutboundMessage(BaseModel):
    """Rendered message ready for the chat platform."""

    text: str
    channel: str
    priority: Priority | None = None
    correlation_id: str | None = None


# ── Interactive callbacks ────────────────────────────────────────


class CallbackAction(BaseModel):
    """Decoded interactive request from the chat platform."""

    action_id: str
    correlation_id: str = ""
    actor: str = ""
    response_url: str = ""
    original_text: str = ""
    block_texts: list[str] = Field(default_factory=list)
    raw: dict[str, Any] = Field(default_factory=dict)

    @property
    def kind(self) -> ActionKind | None:
        try:
            return ActionKind(self.action_id)
        except ValueError:
            return None


class AlertIdentity(BaseModel):
    """Alert name/description recovered from a previously rendered message."""

    name: str = ""
    description: str = ""

    @property
    def found(self) -> bool:
        return bool(self.name)
