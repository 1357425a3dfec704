"""Unit tests for the listener registry and the toggle state table."""

from __future__ import annotations

import logging

import pytest

from storefront.favorites.listeners import ListenerRegistry
from storefront.favorites.state import (
    IDLE,
    Committed,
    Pending,
    Reverted,
    ToggleStates,
)
from tests.storefront.support import Recorder


def test_notifications_follow_registration_order() -> None:
    registry = ListenerRegistry()
    order: list[str] = []
    registry.subscribe("p1", lambda _pid, _value: order.append("first"))
    registry.subscribe("p1", lambda _pid, _value: order.append("second"))
    registry.subscribe("p2", lambda _pid, _value: order.append("other"))

    registry.notify("p1", True)

    assert order == ["first", "second"]


def test_subscribing_same_listener_twice_registers_once() -> None:
    registry = ListenerRegistry()
    recorder = Recorder()

    registry.subscribe("p1", recorder)
    registry.subscribe("p1", recorder)
    registry.notify("p1", True)

    assert registry.listener_count("p1") == 1
    assert recorder.events == [("p1", True)]


def test_last_unsubscribe_removes_identifier() -> None:
    registry = ListenerRegistry()
    first, second = Recorder(), Recorder()
    unsubscribe_first = registry.subscribe("p1", first)
    unsubscribe_second = registry.subscribe("p1", second)

    unsubscribe_first()
    assert "p1" in registry
    unsubscribe_second()
    unsubscribe_second()

    assert "p1" not in registry
    assert len(registry) == 0
    registry.notify("p1", True)
    assert first.events == [] and second.events == []


def test_failing_listener_does_not_block_others(caplog: pytest.LogCaptureFixture) -> None:
    registry = ListenerRegistry()
    recorder = Recorder()

    def broken(_product_id: str, _value: bool) -> None:
        raise RuntimeError("render failed")

    registry.subscribe("p1", broken)
    registry.subscribe("p1", recorder)

    with caplog.at_level(logging.ERROR, logger="storefront.favorites.listeners"):
        registry.notify("p1", False)

    assert recorder.events == [("p1", False)]
    assert "Error in favorite listener for p1" in caplog.text


def test_listener_may_unsubscribe_during_notification() -> None:
    registry = ListenerRegistry()
    recorder = Recorder()
    handles: dict[str, object] = {}

    def once(product_id: str, value: bool) -> None:
        handles["unsubscribe"]()

    handles["unsubscribe"] = registry.subscribe("p1", once)
    registry.subscribe("p1", recorder)

    registry.notify("p1", True)
    registry.notify("p1", False)

    assert recorder.events == [("p1", True), ("p1", False)]
    assert registry.listener_count("p1") == 1


def test_toggle_state_commit_path() -> None:
    states = ToggleStates()
    assert states.state("p1") is IDLE

    pending = states.begin("p1", previous=False)
    assert isinstance(states.state("p1"), Pending)
    assert pending.target is True
    assert states.pending_ids() == ["p1"]

    assert states.commit("p1") == Committed(value=True)
    assert states.is_pending("p1") is False

    states.release("p1")
    assert states.state("p1") is IDLE


def test_toggle_state_revert_path() -> None:
    states = ToggleStates()
    states.begin("p1", previous=True)

    assert states.revert("p1") == Reverted(value=True)
    assert states.is_pending("p1") is False


def test_toggle_state_rejects_invalid_transitions() -> None:
    states = ToggleStates()

    with pytest.raises(RuntimeError):
        states.commit("p1")

    states.begin("p1", previous=False)
    with pytest.raises(RuntimeError):
        states.begin("p1", previous=False)


def test_stale_unsubscribe_handle_does_not_remove_new_registration() -> None:
    registry = ListenerRegistry()
    recorder = Recorder()

    stale_unsubscribe = registry.subscribe("p1", recorder)
    stale_unsubscribe()
    current_unsubscribe = registry.subscribe("p1", recorder)

    stale_unsubscribe()
    registry.notify("p1", True)

    assert recorder.events == [("p1", True)]
    assert registry.listener_count("p1") == 1

    current_unsubscribe()
    assert "p1" not in registry
