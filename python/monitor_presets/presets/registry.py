"""Preset registry: owns the configuration root and its invariants."""

from typing import Any, Awaitable, Callable, Optional, TYPE_CHECKING

from ..core.exceptions import NotFoundError, StorageCorruptionError, StorageError
from ..utils.logger import get_logger
from .models import (
    Configuration,
    MonitorRoleAssignment,
    PinMode,
    PresetEntry,
    validate_pin
)

if TYPE_CHECKING:
    from ..device.xapi import DeviceControl
    from ..storage.config_store import ConfigStore
    from .matrix import MatrixRouteModel


logger = get_logger("registry")

CONFIG_KEY = "DisplaySystemConfig"

RebuildHook = Callable[[], Awaitable[None]]


def coerce_index(index: Any) -> Optional[int]:
    """Accept ints or numeric strings coming from widget data."""
    if isinstance(index, bool):
        return None
    try:
        return int(index)
    except (TypeError, ValueError):
        return None


class PresetRegistry:
    """Saves, renames, removes and marks presets, persisting every change.

    Each mutation is written through to the store and followed by a UI
    rebuild request.
    """

    def __init__(
        self,
        store: "ConfigStore",
        device: "DeviceControl",
        matrix: "MatrixRouteModel",
        on_rebuild: Optional[RebuildHook] = None
    ):
        self._store = store
        self._device = device
        self._matrix = matrix
        self.on_rebuild = on_rebuild
        self.config = Configuration.default()

    @property
    def presets(self):
        return self.config.preset.entries

    @property
    def default_index(self) -> Optional[int]:
        return self.config.preset.default

    @property
    def current_index(self) -> Optional[int]:
        return self.config.preset.current

    async def load(self) -> Configuration:
        """Load the configuration root, regenerating it when unusable.

        A missing or unparsable document is replaced by defaults; a parsed
        document with a malformed structure raises MalformedConfigError.
        """
        try:
            raw = await self._store.read(CONFIG_KEY)
        except NotFoundError:
            logger.debug(f"{CONFIG_KEY} missing, generating default")
            return await self._regenerate()
        except StorageCorruptionError as e:
            logger.warning(f"{CONFIG_KEY} unreadable ({e}), generating default")
            return await self._regenerate()

        self.config = Configuration.from_dict(raw)
        logger.debug(f"{CONFIG_KEY} recovered: {len(self.presets)} presets")
        return self.config

    async def _regenerate(self) -> Configuration:
        self.config = Configuration.default()
        await self.persist()
        logger.debug(f"{CONFIG_KEY} default generated")
        return self.config

    async def persist(self) -> bool:
        try:
            await self._store.write(CONFIG_KEY, self.config.to_dict())
            return True
        except StorageError as e:
            logger.error(f"Failed to persist {CONFIG_KEY}: {e}")
            return False

    async def request_rebuild(self) -> None:
        if self.on_rebuild is not None:
            await self.on_rebuild()

    async def _commit(self) -> None:
        await self.persist()
        await self.request_rebuild()

    def resolve(self, index: Any) -> Optional[PresetEntry]:
        position = coerce_index(index)
        if position is None or position < 0 or position >= len(self.presets):
            return None
        return self.presets[position]

    def is_default(self, index: Any) -> bool:
        position = coerce_index(index)
        return position is not None and self.default_index == position

    async def save(self, name: Optional[str] = None) -> int:
        """Capture live roles and the working routes as a new preset.

        Device read failures propagate to the caller.
        """
        connectors = await self._device.get_output_connectors()

        entry = PresetEntry(
            name=name or f"Monitor Preset {len(self.presets) + 1}",
            monitor_roles=[
                MonitorRoleAssignment(connector=c.id, role=str(c.monitor_role))
                for c in connectors
            ],
            routes=self._matrix.snapshot()
        )

        self.presets.append(entry)
        self.config.preset.current = len(self.presets) - 1
        logger.info(f"Monitor Preset [{entry.name}] saved at index [{self.config.preset.current}]")

        await self._commit()
        return self.config.preset.current

    async def rename(self, index: Any, new_name: Optional[str]) -> bool:
        entry = self.resolve(index)
        if entry is None:
            logger.warning(f"Monitor Preset index [{index}] does not exist, unable to rename")
            return False

        if not new_name:
            logger.warning(f"New Name not defined, unable to rename Monitor Preset at index [{index}]")
            return False

        if entry.name == new_name:
            logger.debug("New Preset name matches existing, no need to update")
            return False

        old_name = entry.name
        entry.name = new_name
        logger.info(f"Monitor Preset at index [{index}] name changed from [{old_name}] to [{new_name}]")

        await self._commit()
        return True

    async def remove(self, index: Any) -> bool:
        position = coerce_index(index)
        if self.resolve(position) is None:
            logger.warning(f"Monitor Preset at Index [{index}] is not found, unable to remove, no action taken.")
            return False

        state = self.config.preset
        removed = state.entries.pop(position)
        logger.warning(f"Monitor Preset [{removed.name}] at index [{position}] has been removed")

        # Exactly one entry was removed, so a set Default shifts down by one
        if state.default == position:
            state.default = None
            logger.warning(f"Monitor Preset at index [{position}] has been removed as the default preset. No default assigned")
        elif state.default is not None:
            state.default -= 1
            if state.default < 0:
                state.default = None
                logger.warning("Monitor Preset default shifted out of range. No default assigned")

        state.current = None

        await self._commit()
        return True

    async def set_default(self, index: Any, remove: bool = False) -> bool:
        position = coerce_index(index)
        if self.resolve(position) is None:
            logger.warning(f"Monitor Preset index [{index}] does not exist, unable to change default")
            return False

        state = self.config.preset
        old_default = state.default

        if remove:
            state.default = None
            logger.info(f"Monitor Preset at index [{position}] has been removed as default")
        else:
            if state.default == position:
                logger.debug("Monitor Preset default matches submitted, no action needed")
                return False
            state.default = position
            logger.info(f"Monitor Preset default has changed from [{old_default}] to [{position}]")

        await self._commit()
        return True

    async def mark_current(self, index: int) -> None:
        self.config.preset.current = index
        await self._commit()

    async def set_output_name(self, connector: Any, name: str) -> None:
        self.config.output_names[str(connector)] = name
        logger.info(f"Output [{connector}] renamed to [{name}]")
        await self.persist()

    async def set_pin(self, pin: str) -> None:
        self.config.pin_protection.pin = validate_pin(pin)
        logger.info("Monitor Preset Maker pin updated")
        await self.persist()

    async def set_pin_mode(self, mode: Any) -> None:
        self.config.pin_protection.mode = PinMode(mode)
        logger.info(f"Pin protection set to [{self.config.pin_protection.mode.value}]")
        await self.persist()
