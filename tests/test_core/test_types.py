"""Tests for alert_dispatcher/core/types.py — enums, alert model, callback action."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from alert_dispatcher.core.types import (
    ActionKind,
    AlertIdentity,
    AlertState,
    CallbackAction,
    NormalizedAlert,
    Priority,
    SourceKind,
)


class TestPriority:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("P0", Priority.P0), ("p1", Priority.P1), (" P2 ", Priority.P2)],
    )
    def test_parse(self, raw: str, expected: Priority) -> None:
        assert Priority.parse(raw) == expected

    @pytest.mark.parametrize("raw", ["P3", "", "critical", None, 1])
    def test_parse_unrecognized(self, raw: object) -> None:
        assert Priority.parse(raw) is None

    def test_ordering(self) -> None:
        assert Priority.P0.outranks(Priority.P1)
        assert Priority.P1.outranks(Priority.P2)
        assert not Priority.P2.outranks(Priority.P0)
        assert not Priority.P1.outranks(Priority.P1)


class TestNormalizedAlert:
    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            NormalizedAlert(name="  ", kind=SourceKind.CLOUD_ALARM, state=AlertState.FIRING)

    def test_display_title_falls_back_to_name(self) -> None:
        alert = NormalizedAlert(name="disk-full", kind=SourceKind.CLOUD_ALARM, state=AlertState.OK)
        assert alert.display_title == "disk-full"
        assert alert.model_copy(update={"title": "Disk full"}).display_title == "Disk full"


class TestCallbackAction:
    def test_kind(self) -> None:
        assert CallbackAction(action_id="acknowledge").kind == ActionKind.ACKNOWLEDGE
        assert CallbackAction(action_id="dismiss").kind == ActionKind.DISMISS
        assert CallbackAction(action_id="snooze").kind is None

    def test_identity_found(self) -> None:
        assert AlertIdentity(name="x").found
        assert not AlertIdentity().found
