"""Preset models, registry, activation and triggers."""

from .activation import ActivationEngine
from .matrix import MatrixRouteModel
from .models import (
    Configuration,
    MonitorRoleAssignment,
    OutputRoute,
    PinMode,
    PinProtection,
    PresetEntry,
    PresetState
)
from .registry import PresetRegistry
from .triggers import TriggerEngine

__all__ = [
    "ActivationEngine",
    "MatrixRouteModel",
    "Configuration",
    "MonitorRoleAssignment",
    "OutputRoute",
    "PinMode",
    "PinProtection",
    "PresetEntry",
    "PresetState",
    "PresetRegistry",
    "TriggerEngine"
]
