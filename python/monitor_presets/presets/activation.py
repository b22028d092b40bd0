"""Activation of a saved preset onto the live device."""

from typing import Any, Awaitable, Callable, List, Optional, TYPE_CHECKING

from ..core.exceptions import ConnectionError, DeviceCommandError
from ..utils.logger import get_logger
from .registry import coerce_index

if TYPE_CHECKING:
    from ..device.xapi import DeviceControl
    from .matrix import MatrixRouteModel
    from .registry import PresetRegistry


logger = get_logger("activation")

FeedbackHook = Callable[[], Awaitable[None]]


class ActivationEngine:
    """Applies a preset's roles and routes, best-effort.

    Individual role or route failures are logged and skipped; the preset
    still counts as activated and nothing is rolled back.
    """

    def __init__(
        self,
        registry: "PresetRegistry",
        matrix: "MatrixRouteModel",
        device: "DeviceControl",
        on_routes_loaded: Optional[FeedbackHook] = None
    ):
        self._registry = registry
        self._matrix = matrix
        self._device = device
        self.on_routes_loaded = on_routes_loaded

    async def activate(self, index: Any) -> bool:
        """Activate the preset at ``index``. Returns False if it does not exist."""
        entry = self._registry.resolve(index)
        if entry is None:
            logger.warning(f"Monitor Preset index [{index}] does not exist, unable to activate")
            return False

        position = coerce_index(index)
        # Registry edits may land while we await the device
        preset = entry.copy()

        logger.info(f"Preparing to set Monitor Preset index [{position}] || Name: {preset.name}")

        roles: List[str] = []
        for assignment in preset.monitor_roles:
            logger.debug(f"Setting Output Connector [{assignment.connector}] to Role [{assignment.role}]")
            try:
                await self._device.set_monitor_role(assignment.connector, assignment.role)
                roles.append(f"{assignment.connector}:{assignment.role}")
            except (DeviceCommandError, ConnectionError) as e:
                logger.error(
                    f"Failed to set Monitor Role on Output Connector [{assignment.connector}] "
                    f"to Role [{assignment.role}] || Error: {e}"
                )

        logger.info(f"Monitor Roles for Monitor Preset index [{position}] set || Roles: [{' || '.join(roles)}]")

        self._matrix.replace_buffer(preset.routes)
        if self.on_routes_loaded is not None:
            try:
                await self.on_routes_loaded()
            except (DeviceCommandError, ConnectionError) as e:
                logger.warning(f"Failed to refresh maker feedback: {e}")

        routes: List[str] = []
        for route in preset.routes:
            logger.debug(f"Setting Video Matrix on Output Connector [{route.connector}]")
            if route.input_order:
                await self._matrix.replay(route)
                routes.append(f"{route.connector}:{route.layout}:[{','.join(map(str, route.input_order))}]")
            elif await self._matrix.reset(route.connector):
                routes.append(f"{route.connector}:Reset")

        logger.info(f"Video Matrix Routes for Monitor Preset index [{position}] set || Routes: [{' || '.join(routes)}]")

        await self._registry.mark_current(position)
        logger.info(f"Monitor Preset index [{position}] Set || Name: {preset.name}")
        return True
