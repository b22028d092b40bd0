"""Async event manager for device feedback."""

import asyncio
from typing import Dict, List, Callable, Any, Optional, Union
from collections import defaultdict

from ..utils.logger import get_logger
from .event_types import (
    EVENT_CLASSES,
    Event,
    EventType
)


logger = get_logger("event_manager")

EventHandler = Callable[[Event], Any]


class EventManager:
    """Queues feedback events and dispatches them one at a time.

    Handlers for an event run sequentially and each event is fully handled
    before the next one is taken from the queue.
    """

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._running = True
        self._event_queue: asyncio.Queue = asyncio.Queue()
        self._dispatch_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the event dispatcher."""
        if self._dispatch_task is None or self._dispatch_task.done():
            self._running = True
            self._dispatch_task = asyncio.create_task(self._dispatch_loop())
            logger.debug("Event manager started")

    async def stop(self) -> None:
        """Stop the event dispatcher."""
        self._running = False
        if self._dispatch_task and not self._dispatch_task.done():
            await self._event_queue.put(None)
            await self._dispatch_task
        logger.debug("Event manager stopped")

    def on(self, event_type: Union[str, EventType], handler: EventHandler) -> Callable[[], None]:
        """Register an event handler.

        Returns a function to unregister the handler.
        """
        event_key = str(getattr(event_type, "value", event_type))
        self._handlers[event_key].append(handler)
        logger.debug(f"Registered handler for {event_key}")

        def unregister():
            if handler in self._handlers[event_key]:
                self._handlers[event_key].remove(handler)
                logger.debug(f"Unregistered handler for {event_key}")

        return unregister

    async def emit(self, event: Event) -> None:
        """Queue an event to be processed."""
        await self._event_queue.put(event)

    async def emit_from_message(self, event_type: Union[str, EventType], payload: Any) -> None:
        """Create and queue an event from a feedback payload."""
        try:
            event_type = EventType(getattr(event_type, "value", event_type))
            message = dict(payload) if isinstance(payload, dict) else {"State": payload}
            message["type"] = event_type.value
            event_class = EVENT_CLASSES.get(event_type, Event)
            await self.emit(event_class.from_message(message))
        except Exception as e:
            logger.error(f"Failed to create event from payload: {e}")

    async def dispatch(self, event: Event) -> None:
        """Run every handler registered for the event, in order."""
        event_key = str(event.type.value)
        for handler in list(self._handlers.get(event_key, [])):
            try:
                result = handler(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.exception(f"Handler error for {event_key}: {e}")

    async def _dispatch_loop(self) -> None:
        """Process events from the queue."""
        while self._running:
            try:
                event = await asyncio.wait_for(
                    self._event_queue.get(),
                    timeout=1.0
                )

                if event is None:
                    break

                await self.dispatch(event)

            except asyncio.TimeoutError:
                continue
            except Exception as e:
                logger.error(f"Dispatch loop error: {e}")

    def clear(self, event_type: Optional[Union[str, EventType]] = None) -> None:
        """Clear event handlers."""
        if event_type:
            event_key = str(getattr(event_type, "value", event_type))
            self._handlers[event_key].clear()
            logger.debug(f"Cleared handlers for {event_key}")
        else:
            self._handlers.clear()
            logger.debug("Cleared all handlers")
