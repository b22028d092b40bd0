"""Event handling system for device feedback and widget actions."""

from .action_router import ActionContext, ActionRouter, Branch, Leaf, LongPressTimer, build_tree
from .event_manager import EventManager
from .event_types import (
    Event,
    EventType,
    CallDisconnectEvent,
    PanelClickedEvent,
    PromptResponseEvent,
    StandbyStateEvent,
    TextInputResponseEvent,
    WidgetActionEvent
)

__all__ = [
    "ActionContext",
    "ActionRouter",
    "Branch",
    "Leaf",
    "LongPressTimer",
    "build_tree",
    "EventManager",
    "Event",
    "EventType",
    "CallDisconnectEvent",
    "PanelClickedEvent",
    "PromptResponseEvent",
    "StandbyStateEvent",
    "TextInputResponseEvent",
    "WidgetActionEvent"
]
