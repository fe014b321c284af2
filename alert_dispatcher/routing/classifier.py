"""Priority classification for normalized alerts.

Rule precedence (first match wins):

1. Adapter-forced priority (the no-data rule for batch webhooks).
2. Explicit ``channel`` tag on the alert.
3. Keyword heuristics over name, title and description.
4. P2.

The heuristics are a coarse fallback; deployments are expected to pin
important alerts through the routing table's explicit mappings instead.
"""

from __future__ import annotations

from alert_dispatcher.core.types import NormalizedAlert, Priority

# ── Heuristic rules ─────────────────────────────────────────────

# Evaluated in order against the lower-cased name/title/description.
_KEYWORD_RULES: list[tuple[tuple[str, ...], Priority]] = [
    (("prod", "production", "critical", "down"), Priority.P0),
    (("cpu", "memory"), Priority.P0),
    (("redis", "elasticache"), Priority.P1),
    (("error", "high"), Priority.P1),
    (("staging", "qa", "warning"), Priority.P2),
]

# Matched against the metric namespace (databases, load balancers, 5xx).
_CRITICAL_NAMESPACES: tuple[str, ...] = ("rds", "dynamodb", "elb", "5xx")

DEFAULT_PRIORITY = Priority.P2


def _haystack(alert: NormalizedAlert) -> str:
    parts = [alert.name, alert.title, alert.description]
    return "\n".join(p for p in parts if p).lower()


def _namespace(alert: NormalizedAlert) -> str:
    if alert.trigger is not None and alert.trigger.namespace:
        return alert.trigger.namespace.lower()
    if alert.metric_context:
        return alert.metric_context.lower()
    return ""


def classify_by_keywords(alert: NormalizedAlert) -> Priority | None:
    """Heuristic tier from keywords, or None if nothing matches."""
    text = _haystack(alert)
    p0_keywords, p0 = _KEYWORD_RULES[0]
    if any(kw in text for kw in p0_keywords):
        return p0

    namespace = _namespace(alert)
    if namespace and any(ns in namespace for ns in _CRITICAL_NAMESPACES):
        return Priority.P0

    for keywords, priority in _KEYWORD_RULES[1:]:
        if any(kw in text for kw in keywords):
            return priority
    return None


def classify(alert: NormalizedAlert) -> Priority:
    """Assign a priority tier to *alert*."""
    if alert.forced_priority is not None:
        return alert.forced_priority
    if alert.channel_tag is not None:
        return alert.channel_tag
    return classify_by_keywords(alert) or DEFAULT_PRIORITY
