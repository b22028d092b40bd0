"""Persistence for the configuration root."""

from .config_store import ConfigStore, FileConfigStore, MacroConfigStore

__all__ = ["ConfigStore", "FileConfigStore", "MacroConfigStore"]
