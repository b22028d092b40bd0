"""Tests for the preset data model and its validators."""

import pytest

from monitor_presets.core.exceptions import MalformedConfigError, ValidationError
from monitor_presets.presets.models import (
    DEFAULT_PIN,
    Configuration,
    OutputRoute,
    PinMode,
    PresetEntry,
    check_text_weight,
    is_valid_pin,
    is_valid_preset_name,
    text_weight,
    validate_pin,
    validate_preset_name
)


def test_default_configuration():
    config = Configuration.default(output_count=2)

    assert config.pin_protection.mode == PinMode.ENABLED
    assert config.pin_protection.pin == DEFAULT_PIN
    assert config.output_names == {"1": "HDMI 1", "2": "HDMI 2"}
    assert config.preset.default is None
    assert config.preset.current is None
    assert config.preset.entries == []


def test_configuration_wire_format():
    raw = {
        "PinProtection": {"Mode": "Disabled", "Pin": "1234"},
        "OutputNames": {"1": "Stage"},
        "Preset": {
            "Default": 0,
            "Current": None,
            "List": [{
                "Name": "Lecture",
                "MonitorRoles": [{"Connector": 1, "Role": "First"}],
                "Routes": [{"Connector": 1, "Layout": "Equal", "InputOrder": [5, 5, 7]}]
            }]
        }
    }

    config = Configuration.from_dict(raw)

    assert config.pin_protection.enabled is False
    assert config.output_name(1) == "Stage"
    assert config.output_name(4) == "HDMI 4"
    assert config.preset.entries[0].routes[0].input_order == [5, 5, 7]
    assert config.to_dict() == raw


def test_preset_list_must_be_a_list():
    with pytest.raises(MalformedConfigError):
        Configuration.from_dict({"Preset": {"List": {"Name": "oops"}}})


def test_preset_entry_requires_name():
    with pytest.raises(MalformedConfigError):
        PresetEntry.from_dict({"Routes": []})


def test_unknown_pin_mode_is_malformed():
    with pytest.raises(MalformedConfigError):
        Configuration.from_dict({"PinProtection": {"Mode": "Sometimes"}})


def test_copy_is_deep():
    entry = PresetEntry(name="A", routes=[OutputRoute(connector=1, input_order=[1, 2])])
    clone = entry.copy()

    clone.routes[0].input_order.append(3)
    clone.name = "B"

    assert entry.routes[0].input_order == [1, 2]
    assert entry.name == "A"


@pytest.mark.parametrize("name,valid", [
    ("Lecture", True),
    ("Room A - Hybrid", True),
    ("x" * 20, True),
    ("x" * 21, False),
    ("", False),
    (None, False),
    ("Café", False),
])
def test_preset_name_validation(name, valid):
    assert is_valid_preset_name(name) is valid


def test_validate_preset_name_raises():
    with pytest.raises(ValidationError):
        validate_preset_name("An Overly Long Preset Name")


@pytest.mark.parametrize("pin,valid", [
    ("1234", True),
    ("12345678", True),
    ("123", False),
    ("123456789", False),
    ("12a4", False),
])
def test_pin_validation(pin, valid):
    assert is_valid_pin(pin) is valid


def test_validate_pin_returns_pin():
    assert validate_pin("0042") == "0042"


def test_text_weight():
    assert text_weight("WM@") == pytest.approx(3.0)
    assert text_weight("HDMI 1") == pytest.approx(4.3)


def test_check_text_weight_limit():
    fits, weight = check_text_weight("Main Display")
    assert fits is True

    fits, weight = check_text_weight("WWWWWWWWW")
    assert fits is False
    assert weight == pytest.approx(9.0)
