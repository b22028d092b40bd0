"""Core components of the monitor presets service."""

from .exceptions import (
    MonitorPresetsError,
    ConnectionError,
    ConfigurationError,
    ValidationError,
    NotFoundError,
    DeviceCommandError,
    StorageError,
    StorageCorruptionError,
    MalformedConfigError
)

__all__ = [
    "MonitorPresetsError",
    "ConnectionError",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "DeviceCommandError",
    "StorageError",
    "StorageCorruptionError",
    "MalformedConfigError"
]
