"""Tests for the file and macro backed configuration stores."""

import asyncio
import json

import pytest

from monitor_presets.core.exceptions import NotFoundError, StorageCorruptionError, StorageError
from monitor_presets.storage.config_store import FileConfigStore, MacroConfigStore


def test_file_store_missing_key(tmp_path):
    store = FileConfigStore(str(tmp_path / "presets.json"), "app")

    with pytest.raises(NotFoundError):
        asyncio.run(store.read("DisplaySystemConfig"))


def test_file_store_write_then_read(tmp_path):
    path = tmp_path / "nested" / "presets.json"
    store = FileConfigStore(str(path), "app")

    asyncio.run(store.write("DisplaySystemConfig", {"Preset": {"List": []}}))

    assert asyncio.run(store.read("DisplaySystemConfig")) == {"Preset": {"List": []}}
    assert json.loads(path.read_text()) == {"app": {"DisplaySystemConfig": {"Preset": {"List": []}}}}


def test_file_store_keeps_other_namespaces(tmp_path):
    path = tmp_path / "presets.json"
    path.write_text(json.dumps({"other": {"Key": 1}}))
    store = FileConfigStore(str(path), "app")

    asyncio.run(store.write("Key", 2))

    assert json.loads(path.read_text()) == {"other": {"Key": 1}, "app": {"Key": 2}}


def test_file_store_corrupt_document(tmp_path):
    path = tmp_path / "presets.json"
    path.write_text("{not json")
    store = FileConfigStore(str(path), "app")

    with pytest.raises(StorageCorruptionError):
        asyncio.run(store.read("DisplaySystemConfig"))

    # A write replaces the unreadable document
    asyncio.run(store.write("DisplaySystemConfig", {}))
    assert asyncio.run(store.read("DisplaySystemConfig")) == {}


def test_corruption_is_a_storage_error():
    assert issubclass(StorageCorruptionError, StorageError)


def test_macro_store_creates_macro(device):
    store = MacroConfigStore(device, "monitor-output-presets-Storage", "app")

    asyncio.run(store.init())

    body = device.macros["monitor-output-presets-Storage"]
    assert body.startswith("let memory = {")


def test_macro_store_round_trip(device):
    store = MacroConfigStore(device, "storage", "app")

    async def scenario():
        await store.init()
        await store.write("DisplaySystemConfig", {"Preset": {"Default": 1}})
        return await store.read("DisplaySystemConfig")

    assert asyncio.run(scenario()) == {"Preset": {"Default": 1}}
    assert device.macros["storage"].startswith("let memory = ")


def test_macro_store_corrupt_body(device):
    device.macros["storage"] = "let memory = {broken"
    store = MacroConfigStore(device, "storage", "app")

    with pytest.raises(StorageCorruptionError):
        asyncio.run(store.read("DisplaySystemConfig"))


def test_macro_store_read_failure(device):
    device.fail.add("macro_get")
    store = MacroConfigStore(device, "storage", "app")

    with pytest.raises(StorageError):
        asyncio.run(store.read("DisplaySystemConfig"))


def test_macro_store_write_timeout(device):
    device.macros["storage"] = "let memory = {}"
    device.timeouts.add("macro_save")
    store = MacroConfigStore(device, "storage", "app")

    with pytest.raises(StorageError):
        asyncio.run(store.write("DisplaySystemConfig", {"Preset": {}}))
