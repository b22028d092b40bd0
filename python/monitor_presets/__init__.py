"""
Monitor Output Presets

Save, recall and automatically restore monitor role and video matrix
layouts on a video conferencing endpoint.
"""

from .core.app import PresetApp, __version__
from .core.exceptions import MonitorPresetsError, ConnectionError, DeviceCommandError, ValidationError
from .events.event_types import EventType
from .presets.models import Configuration, PresetEntry
from .utils.config import Config

__all__ = [
    "PresetApp",
    "MonitorPresetsError",
    "ConnectionError",
    "DeviceCommandError",
    "ValidationError",
    "EventType",
    "Configuration",
    "PresetEntry",
    "Config",
    "__version__"
]
