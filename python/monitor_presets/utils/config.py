"""Configuration management for the monitor presets service."""

import os
from typing import Optional
from dataclasses import dataclass

from ..core.exceptions import ConfigurationError


STORAGE_BACKENDS = ("file", "macro")


def _env_flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Config:
    """Configuration for a monitor presets controller."""

    host: str
    username: str = "admin"
    password: str = ""
    websocket_url: str = ""
    verify_tls: bool = False
    app_name: str = "monitor-output-presets"
    storage: str = "file"
    storage_path: str = "monitor_presets.json"
    options_timeout: float = 3.0
    suppress_release: bool = False
    uptime_delay: float = 2.0
    boot_window: float = 2.0
    http_port: int = 0
    debug: bool = False

    def __post_init__(self):
        if not self.websocket_url and self.host:
            self.websocket_url = f"wss://{self.host}/ws"

    @property
    def storage_macro_name(self) -> str:
        """Name of the device macro that holds persisted state."""
        return f"{self.app_name}-Storage"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        host = os.getenv("DOPM_HOST")
        if not host:
            raise ConfigurationError("DOPM_HOST environment variable is required")

        try:
            options_timeout = float(os.getenv("DOPM_OPTIONS_TIMEOUT", "3"))
            uptime_delay = float(os.getenv("DOPM_UPTIME_DELAY", "2"))
            boot_window = float(os.getenv("DOPM_BOOT_WINDOW", "2"))
            http_port = int(os.getenv("DOPM_HTTP_PORT", "0"))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}")

        return cls(
            host=host,
            username=os.getenv("DOPM_USERNAME", "admin"),
            password=os.getenv("DOPM_PASSWORD", ""),
            websocket_url=os.getenv("DOPM_WS_URL", ""),
            verify_tls=_env_flag("DOPM_VERIFY_TLS"),
            app_name=os.getenv("DOPM_APP_NAME", "monitor-output-presets"),
            storage=os.getenv("DOPM_STORAGE", "file").lower(),
            storage_path=os.getenv("DOPM_STORAGE_PATH", "monitor_presets.json"),
            options_timeout=options_timeout,
            suppress_release=_env_flag("DOPM_SUPPRESS_RELEASE"),
            uptime_delay=uptime_delay,
            boot_window=boot_window,
            http_port=http_port,
            debug=_env_flag("DEBUG")
        )

    def validate(self) -> None:
        """Validate the configuration."""
        if not self.host:
            raise ConfigurationError("host cannot be empty")
        if not self.websocket_url.startswith(("ws://", "wss://")):
            raise ConfigurationError("websocket_url must start with ws:// or wss://")
        if self.storage not in STORAGE_BACKENDS:
            raise ConfigurationError(f"storage must be one of {', '.join(STORAGE_BACKENDS)}")
        if self.options_timeout <= 0:
            raise ConfigurationError("options_timeout must be positive")
        if self.uptime_delay < 0 or self.boot_window < 0:
            raise ConfigurationError("uptime_delay and boot_window cannot be negative")
        if self.http_port < 0 or self.http_port > 65535:
            raise ConfigurationError("http_port must be between 0 and 65535")


_default_config: Optional[Config] = None


def get_config() -> Config:
    """Get the default configuration instance."""
    global _default_config
    if _default_config is None:
        _default_config = Config.from_env()
        _default_config.validate()
    return _default_config

