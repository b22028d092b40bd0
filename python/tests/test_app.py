"""Tests for application wiring and startup restore."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from monitor_presets.core.app import PresetApp
from monitor_presets.core.http_api import create_api
from monitor_presets.events.event_types import EventType, StandbyStateEvent
from monitor_presets.utils.config import Config
from conftest import MemoryStore, make_entry


@pytest.fixture
def app():
    client = MagicMock()
    client.is_connected = True
    config = Config(host="codec.local", uptime_delay=2, boot_window=2)
    preset_app = PresetApp(config, client=client, store=MemoryStore())
    preset_app.registry.config.preset.entries = [make_entry("Lecture"), make_entry("Hybrid")]
    preset_app.activation.activate = AsyncMock(return_value=True)
    return preset_app


def test_is_boot(app):
    assert app.is_boot(200) is True
    assert app.is_boot(240) is True
    assert app.is_boot(241) is False


def test_boot_prefers_default(app):
    app.registry.config.preset.default = 1
    app.registry.config.preset.current = 0

    asyncio.run(app.restore(150))

    app.activation.activate.assert_awaited_once_with(1)


def test_boot_falls_back_to_current(app):
    app.registry.config.preset.current = 0

    asyncio.run(app.restore(150))

    app.activation.activate.assert_awaited_once_with(0)


def test_runtime_restart_restores_buffer(app):
    app.matrix.seed(3)
    app.registry.config.preset.entries[1].routes[0].input_order = [4, 2]
    app.registry.config.preset.current = 1

    asyncio.run(app.restore(3600))

    app.activation.activate.assert_not_awaited()
    assert app.matrix.describe(1) == "Route Order: [4, 2]"


def test_feedback_path_becomes_event(app):
    received = []
    app.events.on(EventType.STANDBY_STATE, received.append)

    async def scenario():
        app.events.emit = AsyncMock(side_effect=app.events.dispatch)
        await app._handle_feedback(["Status", "Standby", "State"], "Off")
        await app._handle_feedback(["Status", "Audio", "Volume"], 50)

    asyncio.run(scenario())

    assert len(received) == 1
    assert isinstance(received[0], StandbyStateEvent)
    assert received[0].state == "Off"


def test_macro_storage_selected():
    config = Config(host="codec.local", storage="macro")
    preset_app = PresetApp(config, client=MagicMock())

    assert preset_app.store.macro_name == "monitor-output-presets-Storage"
    assert preset_app.store.namespace == "monitor-output-presets"


def test_http_api(app):
    app.registry.config.preset.default = 0
    api = TestClient(create_api(app))

    presets = api.get("/presets").json()
    assert presets["default"] == 0
    assert [p["Name"] for p in presets["presets"]] == ["Lecture", "Hybrid"]

    assert api.post("/presets/1/activate").status_code == 200
    app.activation.activate.assert_awaited_once_with(1)

    assert api.post("/presets/9/activate").status_code == 404
    assert api.get("/health").json()["app_name"] == "monitor-output-presets"
