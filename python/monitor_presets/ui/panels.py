"""Panel rebuild requests and widget feedback."""

from typing import Any, Awaitable, Callable, Optional, TYPE_CHECKING

from ..core.exceptions import ConnectionError, DeviceCommandError, MalformedConfigError
from ..presets.models import DEFAULT_PIN, Configuration
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from ..device.xapi import DeviceControl
    from ..presets.registry import PresetRegistry


logger = get_logger("panels")

PanelRenderer = Callable[[str, Configuration], Awaitable[None]]

PRESETS_PANEL = "dop"
MAKER_PANEL = "dopm_hidden"
MAKER_ENTRY_PANEL = "dopm_visible"


class WidgetId:
    PRESET_SELECT = "dop~Presets~Select"
    OUTPUT_SELECT = "dopm~Maker~OutputSelect"
    MONITOR_ROLE = "dopm~Maker~MonitorRole"
    SOURCE_SELECT = "dopm~Maker~Matrix:SourceSelect"
    ROUTE_ORDER = "dopm~Maker~Matrix:RouteOrder"
    MONITORS_CONFIG = "dopm~Config~MonitorsConfig:Select"
    PIN_MODE = "dopm~Config~PinProtection:Mode"


class PanelManager:
    """Keeps panel widgets in step with the configuration root.

    Panel layout itself is produced by an optional renderer; this class
    only asks for a rebuild and pushes widget values.
    """

    def __init__(
        self,
        device: "DeviceControl",
        registry: "PresetRegistry",
        renderer: Optional[PanelRenderer] = None
    ):
        self._device = device
        self._registry = registry
        self.renderer = renderer

    async def _set(self, widget_id: str, value: Any) -> None:
        try:
            await self._device.set_widget_value(widget_id, value)
        except (DeviceCommandError, ConnectionError) as e:
            logger.debug(f"Failed to set {widget_id}: {e}")

    async def _unset(self, widget_id: str) -> None:
        try:
            await self._device.unset_widget_value(widget_id)
        except (DeviceCommandError, ConnectionError) as e:
            logger.debug(f"Failed to unset {widget_id}: {e}")

    async def rebuild_preset_list(self) -> None:
        """Re-render the preset list and its selection."""
        entries = self._registry.config.preset.entries
        if not isinstance(entries, list):
            raise MalformedConfigError(
                f"Monitor Preset Array is Malformed and needs attention. Received type: {type(entries).__name__}"
            )

        if self.renderer is not None:
            await self.renderer(PRESETS_PANEL, self._registry.config)

        await self.update_current_preset()

    async def update_current_preset(self) -> None:
        current = self._registry.current_index
        entry = self._registry.resolve(current) if current is not None else None
        if entry is None:
            await self._unset(WidgetId.PRESET_SELECT)
            return
        await self._set(WidgetId.PRESET_SELECT, f"{current}~{entry.name}")

    async def rebuild_maker(self) -> None:
        if self._registry.config.pin_protection.pin == DEFAULT_PIN:
            logger.warning(
                f"Using the default maker pin > {DEFAULT_PIN}. Please change this pin to better protect this tool"
            )

        if self.renderer is not None:
            await self.renderer(MAKER_PANEL, self._registry.config)

    async def open_maker(self, peripheral_id: Optional[str] = None) -> None:
        await self._device.panel_open(MAKER_PANEL, peripheral_id=peripheral_id)

    async def update_route_order(self, text: str) -> None:
        await self._set(WidgetId.ROUTE_ORDER, text)

    async def update_monitor_role(self, role: str) -> None:
        await self._set(WidgetId.MONITOR_ROLE, role)

    async def update_monitors(self, mode: str) -> None:
        await self._set(WidgetId.MONITORS_CONFIG, mode)

    async def update_pin_mode(self) -> None:
        await self._set(WidgetId.PIN_MODE, self._registry.config.pin_protection.mode.value)

    async def clear_source_selection(self) -> None:
        await self._unset(WidgetId.SOURCE_SELECT)
