"""Custom exceptions for the monitor presets service."""


class MonitorPresetsError(Exception):
    """Base exception for all monitor presets errors."""
    pass


class ConnectionError(MonitorPresetsError):
    """Raised when the device WebSocket connection fails."""
    pass


class ConfigurationError(MonitorPresetsError):
    """Raised when configuration is invalid."""
    pass


class ValidationError(MonitorPresetsError):
    """Raised when a submitted name or pin fails its format check."""
    pass


class NotFoundError(MonitorPresetsError):
    """Raised when a preset index or storage key does not resolve."""
    pass


class DeviceCommandError(MonitorPresetsError):
    """Raised when the device rejects or fails a get, set or command."""

    def __init__(self, message: str, code=None, method: str = ""):
        super().__init__(message)
        self.code = code
        self.method = method


class StorageError(MonitorPresetsError):
    """Raised when persisted state cannot be read or written."""
    pass


class StorageCorruptionError(StorageError):
    """Raised when persisted state exists but cannot be parsed."""
    pass


class MalformedConfigError(MonitorPresetsError):
    """Raised when the configuration root has an unusable structure."""
    pass
