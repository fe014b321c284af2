"""Channel resolution from the routing table."""

from __future__ import annotations

from alert_dispatcher.core.types import ChannelRoute, MatchedBy, Priority, RoutingTable


class ChannelRouter:
    """Resolves an alert's destination channel.

    Resolution order:

    - explicit per-alert mapping (ignores priority entirely)
    - the priority's default channel
    - the table's ``default`` channel

    The table is held by reference and only read.
    """

    def __init__(self, table: RoutingTable) -> None:
        self._table = table

    @property
    def table(self) -> RoutingTable:
        return self._table

    def route(self, alert_name: str, priority: Priority) -> ChannelRoute:
        explicit = self._table.explicit_channel(alert_name)
        if explicit:
            return ChannelRoute(
                channel=explicit,
                priority=priority,
                matched_by=MatchedBy.EXPLICIT_MAPPING,
            )

        by_priority = self._table.priority_channel(priority)
        if by_priority:
            return ChannelRoute(
                channel=by_priority,
                priority=priority,
                matched_by=MatchedBy.PRIORITY_DEFAULT,
            )

        return ChannelRoute(
            channel=self._table.default_channel,
            priority=priority,
            matched_by=MatchedBy.FALLBACK_DEFAULT,
        )
