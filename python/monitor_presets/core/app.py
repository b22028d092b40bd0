"""Application wiring and startup sequence."""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from ..device.xapi import DeviceControl
from ..events.action_router import LongPressTimer
from ..events.event_manager import EventManager
from ..events.event_types import EventType
from ..presets.activation import ActivationEngine
from ..presets.controller import PresetController
from ..presets.matrix import MatrixRouteModel
from ..presets.models import DEFAULT_OUTPUT_COUNT
from ..presets.registry import PresetRegistry
from ..presets.triggers import TriggerEngine
from ..protocol.messages import PathSegment
from ..protocol.subscriptions import FEEDBACK_PATHS, Subscription
from ..storage.config_store import ConfigStore, FileConfigStore, MacroConfigStore
from ..ui.dialogs import DialogManager
from ..ui.panels import PanelManager, PanelRenderer
from ..utils.config import Config, get_config
from ..utils.logger import get_logger
from .exceptions import ConnectionError, DeviceCommandError
from .websocket_client import WebSocketClient

logger = get_logger("app")

__version__ = "1.0.0"

UPTIME_POLL_INTERVAL = 1.0


class PresetApp:
    """Monitor output presets controller for a single endpoint."""

    def __init__(
        self,
        config: Optional[Config] = None,
        client: Optional[WebSocketClient] = None,
        store: Optional[ConfigStore] = None,
        renderer: Optional[PanelRenderer] = None
    ):
        self.config = config or get_config()
        self.config.validate()

        self._client = client or WebSocketClient(
            url=self.config.websocket_url,
            username=self.config.username,
            password=self.config.password,
            verify_tls=self.config.verify_tls
        )
        self.device = DeviceControl(self._client)
        self.device.on_feedback = self._handle_feedback
        self.events = EventManager()

        self.store = store or self._create_store()
        self.matrix = MatrixRouteModel(self.device)
        self.registry = PresetRegistry(self.store, self.device, self.matrix)
        self.panels = PanelManager(self.device, self.registry, renderer)
        self.dialogs = DialogManager(self.device, self.registry)
        self.activation = ActivationEngine(self.registry, self.matrix, self.device)
        self.controller = PresetController(
            self.device,
            self.registry,
            self.matrix,
            self.activation,
            self.dialogs,
            self.panels,
            LongPressTimer(self.config.options_timeout, self.config.suppress_release)
        )
        self.triggers = TriggerEngine(self.registry, self.activation, self.device, self.events)

        self.registry.on_rebuild = self.panels.rebuild_preset_list
        self.activation.on_routes_loaded = self.controller.refresh_maker_feedback

        self._paths: Dict[Tuple[str, ...], Subscription] = {
            path: kind for kind, path in FEEDBACK_PATHS.items()
        }
        self._started = False

        logger.info(f"🎯 {self.config.app_name} initialized for {self.config.host}")

    def _create_store(self) -> ConfigStore:
        if self.config.storage == "macro":
            return MacroConfigStore(self.device, self.config.storage_macro_name, self.config.app_name)
        return FileConfigStore(self.config.storage_path, self.config.app_name)

    @property
    def is_running(self) -> bool:
        return self._started and self.device.is_connected

    async def _handle_feedback(self, segments: List[PathSegment], payload: Any) -> None:
        kind = self._paths.get(tuple(str(s) for s in segments))
        if kind is None:
            logger.debug(f"No event for feedback path {'/'.join(map(str, segments))}")
            return
        await self.events.emit_from_message(EventType(kind.value), payload)

    async def wait_for_uptime(self) -> int:
        """Block until the device has been up for the configured delay.

        Returns the uptime in seconds observed once the delay is met.
        """
        target = int(self.config.uptime_delay * 60)
        logger.info("Checking system uptime...")
        uptime = await self.device.uptime()
        if uptime < target:
            logger.info(f"Waiting for system uptime to reach a minimum uptime of {self.config.uptime_delay} minutes...")

        while uptime < target:
            await asyncio.sleep(UPTIME_POLL_INTERVAL)
            try:
                uptime = await self.device.uptime()
            except (DeviceCommandError, ConnectionError) as e:
                logger.error(f"Error getting system uptime: {e}")

        logger.info(f"System uptime of {self.config.uptime_delay} minutes reached!")
        return uptime

    def is_boot(self, uptime: int) -> bool:
        return uptime <= (self.config.uptime_delay + self.config.boot_window) * 60

    async def start(self) -> None:
        """Connect, restore state and arm subscriptions."""
        logger.info(f"Initializing [{self.config.app_name}] || Version: [{__version__}]")

        await self.events.start()
        await self.device.connect()

        uptime = await self.wait_for_uptime()

        connectors = await self.device.get_output_connectors()
        self.matrix.seed(len(connectors) or DEFAULT_OUTPUT_COUNT)

        await self.store.init()
        await self.controller.load_value_spaces()
        await self.registry.load()

        await self.restore(uptime)

        await self.panels.rebuild_preset_list()
        await self.panels.rebuild_maker()

        await self.triggers.start(self.controller.subscription_handlers())

        await self.controller.refresh_maker_feedback()
        await self.panels.update_pin_mode()

        self._started = True
        logger.info(f"✅ {self.config.app_name} ready")

    async def restore(self, uptime: int) -> None:
        """Reapply presets after a boot, or recover the buffer after a restart."""
        default = self.registry.default_index
        current = self.registry.current_index

        if self.is_boot(uptime):
            logger.debug("Boot Detected, handling Monitor Preset startup")
            if default is not None:
                await self.activation.activate(default)
                logger.info("On Boot, applied Default Monitor Preset")
            elif current is not None:
                await self.activation.activate(current)
                logger.info("On Boot, applied Last Known Monitor Preset selected")
            return

        logger.debug("Runtime Restart Detected, retrieving routes")
        entry = self.registry.resolve(current) if current is not None else None
        if entry is not None:
            self.matrix.replace_buffer(entry.routes)

    async def stop(self) -> None:
        logger.info("🛑 Shutting down...")
        self.controller.timer.cancel()
        await self.events.stop()
        self.events.clear()
        await self.device.disconnect()
        self._started = False
        logger.info("👋 Shutdown complete")

    async def run_forever(self) -> None:
        await self.start()
        try:
            while True:
                await asyncio.sleep(1)
        finally:
            await self.stop()
