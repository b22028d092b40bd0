"""Tests for PresetRegistry mutations and persistence."""

import asyncio

import pytest

from monitor_presets.core.exceptions import DeviceCommandError, MalformedConfigError, StorageError
from monitor_presets.presets.models import PinMode
from monitor_presets.presets.registry import CONFIG_KEY, PresetRegistry, coerce_index
from conftest import MemoryStore, make_entry


def seed(registry, count=3, default=None, current=None):
    registry.config.preset.entries = [make_entry(f"Preset {n}") for n in range(count)]
    registry.config.preset.default = default
    registry.config.preset.current = current


def test_coerce_index():
    assert coerce_index("2") == 2
    assert coerce_index(0) == 0
    assert coerce_index("two") is None
    assert coerce_index(None) is None
    assert coerce_index(True) is None


def test_load_missing_generates_default(registry, store):
    config = asyncio.run(registry.load())

    assert config.preset.entries == []
    assert store.writes == 1
    assert CONFIG_KEY in store.document["monitor-output-presets"]


def test_load_existing_document(device, matrix):
    store = MemoryStore(document={
        "monitor-output-presets": {
            CONFIG_KEY: {"Preset": {"Default": 0, "Current": 0, "List": [make_entry("Lecture").to_dict()]}}
        }
    })
    registry = PresetRegistry(store, device, matrix)

    asyncio.run(registry.load())

    assert registry.presets[0].name == "Lecture"
    assert registry.default_index == 0
    assert store.writes == 0


def test_load_malformed_raises(device, matrix):
    store = MemoryStore(document={
        "monitor-output-presets": {CONFIG_KEY: {"Preset": {"List": "not a list"}}}
    })
    registry = PresetRegistry(store, device, matrix)

    with pytest.raises(MalformedConfigError):
        asyncio.run(registry.load())


def test_save_into_empty_list(registry, matrix):
    asyncio.run(registry.save("Room A"))

    assert [p.name for p in registry.presets] == ["Room A"]
    assert registry.current_index == 0
    assert registry.default_index is None


def test_save_captures_roles_and_buffer(registry, device, matrix):
    device.roles[2] = "PresentationOnly"
    matrix.route_for(1).input_order = [5, 5, 7]

    asyncio.run(registry.save("Hybrid"))
    entry = registry.presets[0]

    assert [(r.connector, r.role) for r in entry.monitor_roles] == [(1, "Auto"), (2, "PresentationOnly"), (3, "Auto")]
    assert entry.routes[0].input_order == [5, 5, 7]

    # Saved preset is detached from the working buffer
    matrix.route_for(1).input_order.append(9)
    assert entry.routes[0].input_order == [5, 5, 7]


def test_save_auto_names(registry):
    asyncio.run(registry.save())
    asyncio.run(registry.save())

    assert [p.name for p in registry.presets] == ["Monitor Preset 1", "Monitor Preset 2"]
    assert registry.current_index == 1


def test_save_device_failure_propagates(registry, device, store):
    device.fail.add("get_output_connectors")

    with pytest.raises(DeviceCommandError):
        asyncio.run(registry.save("Room A"))

    assert registry.presets == []
    assert store.writes == 0


def test_save_requests_rebuild(registry):
    rebuilds = []

    async def on_rebuild():
        rebuilds.append(True)

    registry.on_rebuild = on_rebuild
    asyncio.run(registry.save("Room A"))

    assert rebuilds == [True]


def test_rename_unchanged_name_does_not_persist(registry, store):
    seed(registry)

    assert asyncio.run(registry.rename(1, "Preset 1")) is False
    assert store.writes == 0


def test_rename(registry, store):
    seed(registry)

    assert asyncio.run(registry.rename("1", "Townhall")) is True
    assert registry.presets[1].name == "Townhall"
    assert store.writes == 1


def test_rename_unknown_index(registry, store):
    seed(registry)

    assert asyncio.run(registry.rename(7, "Townhall")) is False
    assert store.writes == 0


def test_remove_shifts_default(registry):
    seed(registry, count=3, default=2, current=2)

    assert asyncio.run(registry.remove(1)) is True

    assert len(registry.presets) == 2
    assert registry.default_index == 1
    assert registry.current_index is None


def test_remove_default_clears_it(registry):
    seed(registry, count=3, default=1, current=0)

    asyncio.run(registry.remove(1))

    assert registry.default_index is None
    assert registry.current_index is None


def test_remove_decrements_any_set_default(registry):
    seed(registry, count=3, default=1)

    asyncio.run(registry.remove(2))

    assert registry.default_index == 0
    assert [p.name for p in registry.presets] == ["Preset 0", "Preset 1"]


def test_remove_clears_default_shifted_below_zero(registry, store):
    seed(registry, count=3, default=0)

    asyncio.run(registry.remove(2))

    assert registry.default_index is None
    assert store.document["monitor-output-presets"][CONFIG_KEY]["Preset"]["Default"] is None


def test_remove_unknown_index_is_noop(registry, store):
    seed(registry, count=2, current=1)

    assert asyncio.run(registry.remove(5)) is False
    assert len(registry.presets) == 2
    assert registry.current_index == 1
    assert store.writes == 0


def test_set_default_is_idempotent(registry, store):
    seed(registry)

    assert asyncio.run(registry.set_default(2)) is True
    assert asyncio.run(registry.set_default(2)) is False
    assert registry.default_index == 2
    assert store.writes == 1


def test_set_default_remove(registry):
    seed(registry, default=2)

    asyncio.run(registry.set_default(2, remove=True))

    assert registry.default_index is None


def test_set_pin_and_mode(registry):
    asyncio.run(registry.set_pin("4321"))
    asyncio.run(registry.set_pin_mode("Disabled"))

    assert registry.config.pin_protection.pin == "4321"
    assert registry.config.pin_protection.mode == PinMode.DISABLED


def test_persist_failure_is_logged(registry, store):
    async def broken(document):
        raise StorageError("disk full")

    store._dump = broken

    assert asyncio.run(registry.persist()) is False
