"""Core module — config, types, logging."""

from alert_dispatcher.core.config import Settings, get_settings, load_settings, reset_settings
from alert_dispatcher.core.logging import setup_logging
from alert_dispatcher.core.types import (
    ActionKind,
    AlertIdentity,
    AlertState,
    CallbackAction,
    ChannelRoute,
    MatchedBy,
    NormalizedAlert,
    OutboundMessage,
    Priority,
    RoutingTable,
    SourceKind,
)

__all__ = [
    "ActionKind",
    "AlertIdentity",
    "AlertState",
    "CallbackAction",
    "ChannelRoute",
    "MatchedBy",
    "NormalizedAlert",
    "OutboundMessage",
    "Priority",
    "RoutingTable",
    "Settings",
    "SourceKind",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
