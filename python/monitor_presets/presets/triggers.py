"""Automatic recall of the default preset on system events."""

from typing import Any, Callable, Dict, Mapping, Optional, TYPE_CHECKING

from ..core.exceptions import ConnectionError, DeviceCommandError
from ..events.event_types import CallDisconnectEvent, EventType, StandbyStateEvent
from ..protocol.subscriptions import Subscription, SubscriptionRegistry
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from ..device.xapi import DeviceControl
    from ..events.event_manager import EventManager
    from .activation import ActivationEngine
    from .registry import PresetRegistry


logger = get_logger("triggers")

STANDBY_OFF = "Off"


class TriggerEngine:
    """Arms device feedback subscriptions, each at most once.

    Owns the standby and call-disconnect triggers; other subscriptions are
    armed with handlers supplied by the caller.
    """

    def __init__(
        self,
        registry: "PresetRegistry",
        activation: "ActivationEngine",
        device: "DeviceControl",
        events: "EventManager",
        subscriptions: Optional[SubscriptionRegistry] = None
    ):
        self._registry = registry
        self._activation = activation
        self._device = device
        self._events = events
        self.subscriptions = subscriptions or SubscriptionRegistry()

    async def arm(self, kind: Subscription, handler: Callable[[Any], Any]) -> bool:
        """Arm a subscription. Re-arming only logs a warning."""
        if not self.subscriptions.arm(kind):
            logger.warning(f"The [{kind.value}] subscription is already active, unable to fire it again")
            return False

        self._events.on(EventType(kind.value), handler)
        await self._device.subscribe_feedback(kind.path)
        return True

    async def start(self, handlers: Optional[Mapping[Subscription, Callable[[Any], Any]]] = None) -> int:
        """Arm the built-in triggers plus any supplied handlers, in name order."""
        table: Dict[Subscription, Callable[[Any], Any]] = dict(handlers or {})
        table[Subscription.STANDBY_STATE] = self.on_standby
        table[Subscription.CALL_DISCONNECT] = self.on_call_disconnect

        armed = 0
        for kind in sorted(table, key=lambda k: k.value):
            if await self.arm(kind, table[kind]):
                armed += 1

        logger.info(
            f"Subscriptions Set || Total_Subs: {len(table)} || "
            f"Active_Subs: {', '.join(self.subscriptions.get_all())}"
        )
        return armed

    async def on_standby(self, event: StandbyStateEvent) -> bool:
        """Recall the default preset when the system leaves standby."""
        default = self._registry.default_index
        if event.state != STANDBY_OFF or default is None:
            return False

        entry = self._registry.resolve(default)
        logger.info(
            f"System exited standby, setting default Monitor Preset. "
            f"Index: [{default}] || Name: [{entry.name if entry else None}]"
        )
        return await self._activation.activate(default)

    async def on_call_disconnect(self, event: CallDisconnectEvent) -> bool:
        """Recall the default preset once no call remains active.

        Declining a second incoming call also reports a disconnect while
        the first call is still up, hence the active call check.
        """
        default = self._registry.default_index
        if default is None:
            return False

        try:
            active_calls = await self._device.active_call_count()
        except (DeviceCommandError, ConnectionError) as e:
            logger.error(f"Failed to read active call count: {e}")
            return False

        if active_calls >= 1:
            logger.debug(f"Call disconnected with {active_calls} call(s) still active, keeping current preset")
            return False

        entry = self._registry.resolve(default)
        logger.info(
            f"Call Disconnected, setting default Monitor Preset. "
            f"Index: [{default}] || Name: [{entry.name if entry else None}]"
        )
        return await self._activation.activate(default)
