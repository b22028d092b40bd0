"""Working route buffer and matrix route application."""

from typing import List, Optional, Sequence, TYPE_CHECKING

from ..core.exceptions import ConnectionError, DeviceCommandError
from ..device.xapi import MatrixMode
from ..utils.logger import get_logger
from .models import OutputRoute

if TYPE_CHECKING:
    from ..device.xapi import DeviceControl


logger = get_logger("matrix")


def route_mode(position: int) -> MatrixMode:
    """First source replaces whatever is routed, later ones are added."""
    return MatrixMode.REPLACE if position == 0 else MatrixMode.ADD


class MatrixRouteModel:
    """Owns the editable route buffer used while composing a preset."""

    def __init__(self, device: "DeviceControl"):
        self._device = device
        self.buffer: List[OutputRoute] = []

    def seed(self, output_count: int) -> None:
        """Start with one empty route per physical output."""
        self.buffer = [OutputRoute(connector=n) for n in range(1, output_count + 1)]
        logger.debug(f"Working route buffer seeded for {output_count} outputs")

    def route_for(self, output: int) -> Optional[OutputRoute]:
        try:
            output = int(output)
        except (TypeError, ValueError):
            return None
        for route in self.buffer:
            if route.connector == output:
                return route
        return None

    def snapshot(self) -> List[OutputRoute]:
        return [route.copy() for route in self.buffer]

    def replace_buffer(self, routes: Sequence[OutputRoute]) -> None:
        self.buffer = [route.copy() for route in routes]

    def describe(self, output: int) -> str:
        route = self.route_for(output)
        order = ", ".join(str(source) for source in route.input_order) if route else ""
        return f"Route Order: [{order}]"

    async def replay(self, route: OutputRoute) -> int:
        """Push a route's sources to the device in order.

        Each failing step is logged and skipped. Returns the number of
        steps that succeeded.
        """
        applied = 0
        for position, source in enumerate(list(route.input_order)):
            mode = route_mode(position)
            try:
                await self._device.matrix_assign(route.connector, source, mode, route.layout)
                applied += 1
                logger.debug(
                    f"Matrix Route on Output [{route.connector}] Set || Input: [{source}] || "
                    f"Action: {mode.value} || Index: [{position}] || Layout: [{route.layout}]"
                )
            except (DeviceCommandError, ConnectionError) as e:
                logger.error(
                    f"Failed to matrix route input source [{source}] to output [{route.connector}]. "
                    f"Action: {mode.value} || Index: [{position}] || Layout: [{route.layout}] || Error: {e}"
                )
        return applied

    async def add_source(self, output: int, source_id: int) -> Optional[OutputRoute]:
        """Append a source to an output and replay the full order."""
        route = self.route_for(output)
        if route is None:
            logger.warning(f"Connector with ID {output} not found.")
            return None

        route.input_order.append(int(source_id))
        await self.replay(route.copy())
        return route

    async def clear_route(self, output: int) -> Optional[OutputRoute]:
        """Empty an output's sources and reset it on the device."""
        route = self.route_for(output)
        if route is None:
            logger.warning(f"Connector with ID {output} not found.")
            return None

        route.input_order = []
        await self.reset(route.connector)
        return route

    async def reset(self, output: int) -> bool:
        try:
            await self._device.matrix_reset(output)
        except (DeviceCommandError, ConnectionError) as e:
            logger.error(f"Failed to clear matrix on output [{output}]. Error: {e}")
            return False
        logger.debug(f"Cleared Output [{output}] Matrix Assignment")
        return True
