"""Durable key/value stores for the configuration root."""

import json
import os
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, TYPE_CHECKING

import aiofiles

from ..core.exceptions import ConnectionError, DeviceCommandError, NotFoundError, StorageCorruptionError, StorageError
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from ..device.xapi import DeviceControl


logger = get_logger("config_store")

MACRO_PREFIX = re.compile(r"let.*memory.*=\s*{")
MACRO_COMMENT = "DO NOT ALTER THIS MACRO, IT'S SUPPORTING ANOTHER SOLUTION"


class ConfigStore(ABC):
    """Namespaced key/value store.

    Every value lives under ``namespace`` so several applications can
    share one backing document.
    """

    def __init__(self, namespace: str):
        self.namespace = namespace

    async def init(self) -> None:
        """Prepare the backing storage. Safe to call more than once."""

    @abstractmethod
    async def _load(self) -> Dict[str, Any]:
        """Return the whole backing document."""

    @abstractmethod
    async def _dump(self, document: Dict[str, Any]) -> None:
        """Replace the whole backing document."""

    async def read(self, key: str) -> Any:
        """Read a value. Raises NotFoundError if the key is absent."""
        document = await self._load()
        section = document.get(self.namespace)
        if not isinstance(section, dict) or key not in section:
            raise NotFoundError(f"Object [{key}] not found for [{self.namespace}]")
        return section[key]

    async def write(self, key: str, value: Any) -> Any:
        """Write a value, committing the whole document."""
        try:
            document = await self._load()
        except StorageCorruptionError:
            logger.warning(f"Discarding unreadable storage while writing [{key}]")
            document = {}
        section = document.get(self.namespace)
        if not isinstance(section, dict):
            section = {}
        section[key] = value
        document[self.namespace] = section
        await self._dump(document)
        logger.debug(f"Write complete for [{self.namespace}.{key}]")
        return value


class FileConfigStore(ConfigStore):
    """Stores the document as a JSON file on the controller host."""

    def __init__(self, path: str, namespace: str):
        super().__init__(namespace)
        self.path = path

    async def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                raw = await f.read()
        except OSError as e:
            raise StorageError(f"Failed to read {self.path}: {e}")
        if not raw.strip():
            return {}
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageCorruptionError(f"{self.path} is not valid JSON: {e}")
        if not isinstance(document, dict):
            raise StorageCorruptionError(f"{self.path} does not hold a JSON object")
        return document

    async def _dump(self, document: Dict[str, Any]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        temp_path = f"{self.path}.tmp"
        try:
            os.makedirs(directory, exist_ok=True)
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(document, indent=2))
            os.replace(temp_path, self.path)
        except OSError as e:
            raise StorageError(f"Failed to write {self.path}: {e}")


class MacroConfigStore(ConfigStore):
    """Stores the document inside a dedicated macro on the device.

    The macro body is ``let memory = {...}`` so it stays valid script while
    holding plain JSON.
    """

    def __init__(self, device: "DeviceControl", macro_name: str, namespace: str):
        super().__init__(namespace)
        self._device = device
        self.macro_name = macro_name

    async def init(self) -> None:
        try:
            await self._device.macro_get(self.macro_name, content=False)
        except DeviceCommandError:
            logger.warning(f"Storage macro not found, creating {self.macro_name}")
            await self._device.macro_save(self.macro_name, self._render({"_comment": MACRO_COMMENT}))

    @staticmethod
    def _render(document: Dict[str, Any]) -> str:
        return f"let memory = {json.dumps(document, indent=2)}"

    async def _load(self) -> Dict[str, Any]:
        try:
            result = await self._device.macro_get(self.macro_name)
        except (DeviceCommandError, ConnectionError) as e:
            raise StorageError(f"Failed to read storage macro {self.macro_name}: {e}")
        try:
            content = result["Macro"][0]["Content"]
        except (KeyError, IndexError, TypeError):
            raise StorageCorruptionError(f"Storage macro {self.macro_name} returned no content")
        raw = MACRO_PREFIX.sub("{", content, count=1)
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageCorruptionError(f"Storage macro {self.macro_name} is not valid JSON: {e}")
        if not isinstance(document, dict):
            raise StorageCorruptionError(f"Storage macro {self.macro_name} does not hold an object")
        return document

    async def _dump(self, document: Dict[str, Any]) -> None:
        try:
            await self._device.macro_save(self.macro_name, self._render(document))
        except (DeviceCommandError, ConnectionError) as e:
            raise StorageError(f"Failed to write storage macro {self.macro_name}: {e}")
