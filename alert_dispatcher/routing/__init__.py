"""Priority classification and channel routing."""

from alert_dispatcher.routing.classifier import classify, classify_by_keywords
from alert_dispatcher.routing.router import ChannelRouter

__all__ = [
    "ChannelRouter",
    "classify",
    "classify_by_keywords",
]
