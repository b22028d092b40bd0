"""Data model for monitor presets and the persisted configuration root."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..core.exceptions import MalformedConfigError, ValidationError


PRESET_NAME_PATTERN = re.compile(r"^[\x20-\x7E]{1,20}$")
PIN_PATTERN = re.compile(r"^\d{4,8}$")

DEFAULT_PIN = "000000"
DEFAULT_LAYOUT = "Equal"
INITIAL_OUTPUT_NAME = "HDMI"
DEFAULT_OUTPUT_COUNT = 3

MAX_TEXT_WEIGHT = 8.0
HEAVY_CHARACTERS = set("MW@#$%&*(){}[]")
LIGHT_CHARACTERS = set("iltfj.,:;'`!-")


class PinMode(str, Enum):
    ENABLED = "Enabled"
    DISABLED = "Disabled"


def is_valid_preset_name(name: Optional[str]) -> bool:
    return bool(name) and PRESET_NAME_PATTERN.match(name) is not None


def validate_preset_name(name: Optional[str]) -> str:
    if not is_valid_preset_name(name):
        raise ValidationError(f"Preset name must be 1-20 printable characters, got {name!r}")
    return name


def is_valid_pin(pin: Optional[str]) -> bool:
    return bool(pin) and PIN_PATTERN.match(pin) is not None


def validate_pin(pin: Optional[str]) -> str:
    if not is_valid_pin(pin):
        raise ValidationError("Pin must be 4-8 digits")
    return pin


def character_weight(char: str) -> float:
    """Approximate rendered width of a character on a 3-column button."""
    if char in HEAVY_CHARACTERS:
        return 1.0
    if char in LIGHT_CHARACTERS or char.isspace():
        return 0.3
    return 0.75


def text_weight(text: Optional[str]) -> float:
    return sum(character_weight(c) for c in (text or ""))


def check_text_weight(text: Optional[str], limit: float = MAX_TEXT_WEIGHT) -> Tuple[bool, float]:
    """Return whether text fits on a button, and its weight."""
    weight = text_weight(text)
    return weight <= limit, weight


def _require(data: Any, kind: type, what: str) -> Any:
    if not isinstance(data, kind):
        raise MalformedConfigError(f"{what} must be a {kind.__name__}, got {type(data).__name__}")
    return data


def _optional_index(value: Any, what: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise MalformedConfigError(f"{what} must be an index or null, got {value!r}")


@dataclass
class PinProtection:
    mode: PinMode = PinMode.ENABLED
    pin: str = DEFAULT_PIN

    @property
    def enabled(self) -> bool:
        return self.mode == PinMode.ENABLED

    def copy(self) -> "PinProtection":
        return PinProtection(mode=self.mode, pin=self.pin)

    def to_dict(self) -> Dict[str, Any]:
        return {"Mode": self.mode.value, "Pin": self.pin}

    @classmethod
    def from_dict(cls, data: Any) -> "PinProtection":
        data = _require(data, dict, "PinProtection")
        try:
            mode = PinMode(data.get("Mode", PinMode.ENABLED.value))
        except ValueError:
            raise MalformedConfigError(f"Unknown PinProtection mode {data.get('Mode')!r}")
        return cls(mode=mode, pin=str(data.get("Pin", DEFAULT_PIN)))


@dataclass
class MonitorRoleAssignment:
    connector: int
    role: str

    def copy(self) -> "MonitorRoleAssignment":
        return MonitorRoleAssignment(connector=self.connector, role=self.role)

    def to_dict(self) -> Dict[str, Any]:
        return {"Connector": self.connector, "Role": self.role}

    @classmethod
    def from_dict(cls, data: Any) -> "MonitorRoleAssignment":
        data = _require(data, dict, "MonitorRoles entry")
        return cls(connector=int(data["Connector"]), role=str(data["Role"]))


@dataclass
class OutputRoute:
    """Ordered sources for one output; the first replaces, the rest add."""
    connector: int
    layout: str = DEFAULT_LAYOUT
    input_order: List[int] = field(default_factory=list)

    def copy(self) -> "OutputRoute":
        return OutputRoute(connector=self.connector, layout=self.layout, input_order=list(self.input_order))

    def to_dict(self) -> Dict[str, Any]:
        return {"Connector": self.connector, "Layout": self.layout, "InputOrder": list(self.input_order)}

    @classmethod
    def from_dict(cls, data: Any) -> "OutputRoute":
        data = _require(data, dict, "Routes entry")
        order = _require(data.get("InputOrder", []), list, "InputOrder")
        return cls(
            connector=int(data["Connector"]),
            layout=str(data.get("Layout", DEFAULT_LAYOUT)),
            input_order=[int(source) for source in order]
        )


@dataclass
class PresetEntry:
    name: str
    monitor_roles: List[MonitorRoleAssignment] = field(default_factory=list)
    routes: List[OutputRoute] = field(default_factory=list)

    def copy(self) -> "PresetEntry":
        return PresetEntry(
            name=self.name,
            monitor_roles=[role.copy() for role in self.monitor_roles],
            routes=[route.copy() for route in self.routes]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Name": self.name,
            "MonitorRoles": [role.to_dict() for role in self.monitor_roles],
            "Routes": [route.to_dict() for route in self.routes]
        }

    @classmethod
    def from_dict(cls, data: Any) -> "PresetEntry":
        data = _require(data, dict, "Preset entry")
        try:
            return cls(
                name=str(data["Name"]),
                monitor_roles=[MonitorRoleAssignment.from_dict(r) for r in _require(data.get("MonitorRoles", []), list, "MonitorRoles")],
                routes=[OutputRoute.from_dict(r) for r in _require(data.get("Routes", []), list, "Routes")]
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedConfigError(f"Preset entry is malformed: {e}")


@dataclass
class PresetState:
    default: Optional[int] = None
    current: Optional[int] = None
    entries: List[PresetEntry] = field(default_factory=list)

    def copy(self) -> "PresetState":
        return PresetState(default=self.default, current=self.current, entries=[p.copy() for p in self.entries])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Default": self.default,
            "Current": self.current,
            "List": [entry.to_dict() for entry in self.entries]
        }

    @classmethod
    def from_dict(cls, data: Any) -> "PresetState":
        data = _require(data, dict, "Preset")
        entries = _require(data.get("List", []), list, "Preset.List")
        return cls(
            default=_optional_index(data.get("Default"), "Preset.Default"),
            current=_optional_index(data.get("Current"), "Preset.Current"),
            entries=[PresetEntry.from_dict(entry) for entry in entries]
        )


@dataclass
class Configuration:
    """The single persisted configuration root."""
    pin_protection: PinProtection = field(default_factory=PinProtection)
    output_names: Dict[str, str] = field(default_factory=dict)
    preset: PresetState = field(default_factory=PresetState)

    @classmethod
    def default(cls, output_count: int = DEFAULT_OUTPUT_COUNT) -> "Configuration":
        """First-time or recovery configuration."""
        return cls(
            pin_protection=PinProtection(mode=PinMode.ENABLED, pin=DEFAULT_PIN),
            output_names={str(n): f"{INITIAL_OUTPUT_NAME} {n}" for n in range(1, output_count + 1)},
            preset=PresetState()
        )

    def output_name(self, connector: Any) -> str:
        key = str(connector)
        return self.output_names.get(key, f"{INITIAL_OUTPUT_NAME} {key}")

    def copy(self) -> "Configuration":
        return Configuration(
            pin_protection=self.pin_protection.copy(),
            output_names=dict(self.output_names),
            preset=self.preset.copy()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "PinProtection": self.pin_protection.to_dict(),
            "OutputNames": dict(self.output_names),
            "Preset": self.preset.to_dict()
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Configuration":
        data = _require(data, dict, "Configuration")
        names = _require(data.get("OutputNames", {}), dict, "OutputNames")
        return cls(
            pin_protection=PinProtection.from_dict(data.get("PinProtection", {})),
            output_names={str(k): str(v) for k, v in names.items()},
            preset=PresetState.from_dict(data.get("Preset", {}))
        )
