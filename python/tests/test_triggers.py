"""Tests for automatic default-preset recall."""

import asyncio

from monitor_presets.events.event_manager import EventManager
from monitor_presets.events.event_types import CallDisconnectEvent, EventType, StandbyStateEvent
from monitor_presets.presets.activation import ActivationEngine
from monitor_presets.presets.triggers import TriggerEngine
from monitor_presets.protocol.subscriptions import Subscription
from conftest import make_entry


def build(registry, matrix, device, default=1):
    registry.config.preset.entries = [make_entry("Lecture"), make_entry("Hybrid")]
    registry.config.preset.default = default
    activation = ActivationEngine(registry, matrix, device)
    return TriggerEngine(registry, activation, device, EventManager())


def standby(state):
    return StandbyStateEvent.from_message({"State": state})


def disconnect():
    return CallDisconnectEvent.from_message({"CallId": "4", "CauseType": "LocalDisconnect"})


def test_standby_off_activates_default(registry, matrix, device):
    triggers = build(registry, matrix, device)

    assert asyncio.run(triggers.on_standby(standby("Off"))) is True
    assert registry.current_index == 1


def test_standby_other_states_ignored(registry, matrix, device):
    triggers = build(registry, matrix, device)

    for state in ("Standby", "Halfwake", "EnteringStandby"):
        assert asyncio.run(triggers.on_standby(standby(state))) is False
    assert registry.current_index is None


def test_standby_without_default(registry, matrix, device):
    triggers = build(registry, matrix, device, default=None)

    assert asyncio.run(triggers.on_standby(standby("Off"))) is False
    assert device.calls == []


def test_call_disconnect_with_no_active_calls(registry, matrix, device):
    triggers = build(registry, matrix, device)
    device.active_calls = 0

    assert asyncio.run(triggers.on_call_disconnect(disconnect())) is True
    assert registry.current_index == 1


def test_call_disconnect_with_remaining_call(registry, matrix, device):
    triggers = build(registry, matrix, device)
    device.active_calls = 1

    assert asyncio.run(triggers.on_call_disconnect(disconnect())) is False
    assert registry.current_index is None


def test_call_count_failure_is_logged(registry, matrix, device):
    triggers = build(registry, matrix, device)
    device.fail.add("active_call_count")

    assert asyncio.run(triggers.on_call_disconnect(disconnect())) is False


def test_call_count_timeout_keeps_current_preset(registry, matrix, device):
    triggers = build(registry, matrix, device)
    device.timeouts.add("active_call_count")

    assert asyncio.run(triggers.on_call_disconnect(disconnect())) is False
    assert registry.current_index is None
    assert device.calls_to("set_monitor_role") == []


def test_arm_is_one_shot(registry, matrix, device):
    triggers = build(registry, matrix, device)

    async def handler(event):
        pass

    async def scenario():
        first = await triggers.arm(Subscription.WIDGET_ACTION, handler)
        second = await triggers.arm(Subscription.WIDGET_ACTION, handler)
        return first, second

    assert asyncio.run(scenario()) == (True, False)
    assert device.calls_to("subscribe_feedback") == [(tuple(Subscription.WIDGET_ACTION.path),)]


def test_start_arms_in_name_order(registry, matrix, device):
    triggers = build(registry, matrix, device)

    async def handler(event):
        pass

    armed = asyncio.run(triggers.start({Subscription.PANEL_CLICKED: handler}))

    assert armed == 3
    assert triggers.subscriptions.get_all() == ["CallDisconnect", "PanelClicked", "StandbyState"]
    assert [args[0] for args in device.calls_to("subscribe_feedback")] == [
        ("Event", "CallDisconnect"),
        ("Event", "UserInterface", "Extensions", "Panel", "Clicked"),
        ("Status", "Standby", "State"),
    ]


def test_armed_handler_receives_events(registry, matrix, device):
    triggers = build(registry, matrix, device)

    async def scenario():
        await triggers.start()
        await triggers._events.dispatch(standby("Off"))

    asyncio.run(scenario())

    assert registry.current_index == 1


def test_event_type_matches_subscription():
    for kind in Subscription:
        assert EventType(kind.value).value == kind.value
