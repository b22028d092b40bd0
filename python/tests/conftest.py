"""Shared fakes for the monitor presets tests.

- FakeDevice: records every device call and can be told to fail some
- MemoryStore: in-memory ConfigStore counting writes
"""

from collections.abc import Hashable
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from monitor_presets.core.exceptions import ConnectionError, DeviceCommandError
from monitor_presets.device.xapi import Connector
from monitor_presets.presets.matrix import MatrixRouteModel
from monitor_presets.presets.models import MonitorRoleAssignment, OutputRoute, PresetEntry
from monitor_presets.presets.registry import PresetRegistry
from monitor_presets.storage.config_store import ConfigStore


class FakeDevice:
    """Stands in for DeviceControl.

    ``fail`` holds method names that raise DeviceCommandError;
    ``fail_assign`` holds (output, source) pairs whose matrix_assign fails;
    ``timeouts`` holds method names, (method, first arg) pairs or assign
    pairs that time out with ConnectionError.
    """

    def __init__(self, outputs: int = 3):
        self.calls: List[Tuple[str, tuple]] = []
        self.roles: Dict[int, str] = {n: "Auto" for n in range(1, outputs + 1)}
        self.monitors = "Auto"
        self.active_calls = 0
        self.uptime_seconds = 3600
        self.fail: Set[str] = set()
        self.fail_assign: Set[Tuple[int, int]] = set()
        self.timeouts: Set[Any] = set()
        self.value_spaces: Dict[str, List[str]] = {}
        self.macros: Dict[str, str] = {}
        self.is_connected = True
        self._next_feedback_id = 0

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, args))
        first = args[:1] if args and isinstance(args[0], Hashable) else ()
        if name in self.timeouts or (name, *first) in self.timeouts:
            raise ConnectionError(f"Timed out waiting for {name}")
        if name in self.fail:
            raise DeviceCommandError(f"{name} failed", code=-32000, method=name)

    def calls_to(self, name: str) -> List[tuple]:
        return [args for call, args in self.calls if call == name]

    async def connect(self) -> None:
        self._record("connect")

    async def disconnect(self) -> None:
        self._record("disconnect")

    async def get_output_connectors(self) -> List[Connector]:
        self._record("get_output_connectors")
        return [Connector(id=n, name=f"Output {n}", monitor_role=role) for n, role in sorted(self.roles.items())]

    async def get_monitor_role(self, connector: int) -> str:
        self._record("get_monitor_role", connector)
        return self.roles[int(connector)]

    async def set_monitor_role(self, connector: int, role: str) -> None:
        self._record("set_monitor_role", connector, role)
        self.roles[int(connector)] = role

    async def get_monitors(self) -> str:
        self._record("get_monitors")
        return self.monitors

    async def set_monitors(self, mode: str) -> None:
        self._record("set_monitors", mode)
        self.monitors = mode

    async def matrix_assign(self, output, source_id, mode, layout) -> None:
        self.calls.append(("matrix_assign", (output, source_id, mode, layout)))
        if (int(output), int(source_id)) in self.timeouts:
            raise ConnectionError("Timed out waiting for xCommand/Video/Matrix/Assign")
        if (int(output), int(source_id)) in self.fail_assign or "matrix_assign" in self.fail:
            raise DeviceCommandError("assign failed", method="xCommand/Video/Matrix/Assign")

    async def matrix_reset(self, output) -> None:
        self._record("matrix_reset", output)

    async def active_call_count(self) -> int:
        self._record("active_call_count")
        return self.active_calls

    async def uptime(self) -> int:
        self._record("uptime")
        return self.uptime_seconds

    async def value_space(self, path) -> List[str]:
        key = " ".join(str(p) for p in path)
        self._record("value_space", key)
        return list(self.value_spaces.get(key, []))

    async def text_input(self, **kwargs) -> None:
        self._record("text_input", kwargs)

    async def prompt(self, **kwargs) -> None:
        self._record("prompt", kwargs)

    async def set_widget_value(self, widget_id: str, value: Any) -> None:
        self._record("set_widget_value", widget_id, value)

    async def unset_widget_value(self, widget_id: str) -> None:
        self._record("unset_widget_value", widget_id)

    async def panel_open(self, panel_id: str, peripheral_id: Optional[str] = None) -> None:
        self._record("panel_open", panel_id, peripheral_id)

    async def subscribe_feedback(self, path) -> int:
        self._record("subscribe_feedback", tuple(path))
        self._next_feedback_id += 1
        return self._next_feedback_id

    async def macro_get(self, name: str, content: bool = True) -> Dict[str, Any]:
        self._record("macro_get", name)
        if name not in self.macros:
            raise DeviceCommandError(f"No such macro: {name}")
        return {"Macro": [{"Name": name, "Content": self.macros[name]}]}

    async def macro_save(self, name: str, body: str) -> None:
        self._record("macro_save", name)
        self.macros[name] = body


class MemoryStore(ConfigStore):
    """ConfigStore backed by a dict."""

    def __init__(self, namespace: str = "monitor-output-presets", document: Optional[Dict[str, Any]] = None):
        super().__init__(namespace)
        self.document: Dict[str, Any] = document or {}
        self.writes = 0

    async def _load(self) -> Dict[str, Any]:
        return self.document

    async def _dump(self, document: Dict[str, Any]) -> None:
        self.writes += 1
        self.document = document


def make_entry(name: str, routes: Optional[Dict[int, List[int]]] = None) -> PresetEntry:
    routes = routes or {1: [1], 2: [], 3: []}
    return PresetEntry(
        name=name,
        monitor_roles=[MonitorRoleAssignment(connector=c, role="First") for c in routes],
        routes=[OutputRoute(connector=c, input_order=list(order)) for c, order in routes.items()]
    )


@pytest.fixture
def device():
    return FakeDevice()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def matrix(device):
    model = MatrixRouteModel(device)
    model.seed(3)
    return model


@pytest.fixture
def registry(store, device, matrix):
    return PresetRegistry(store, device, matrix)
