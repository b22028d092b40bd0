"""Event type definitions for device feedback."""

from dataclasses import dataclass, field
from typing import Optional, Any, Dict
from datetime import datetime, timezone
from enum import Enum


class EventType(str, Enum):
    """Available event types."""
    CALL_DISCONNECT = "CallDisconnect"
    PANEL_CLICKED = "PanelClicked"
    PROMPT_RESPONSE = "PromptResponse"
    STANDBY_STATE = "StandbyState"
    TEXT_INPUT_RESPONSE = "TextInputResponse"
    WIDGET_ACTION = "WidgetAction"
    CUSTOM = "custom"


def _text(message: Dict[str, Any], key: str, default: str = "") -> str:
    value = message.get(key)
    return default if value is None else str(value)


def _optional(message: Dict[str, Any], key: str) -> Optional[str]:
    value = message.get(key)
    return None if value in (None, "") else str(value)


@dataclass
class Event:
    """Base event class."""
    type: EventType
    data: Dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "Event":
        """Create event from a feedback message."""
        try:
            event_type = EventType(message.get("type", EventType.CUSTOM))
        except ValueError:
            event_type = EventType.CUSTOM
        return cls(type=event_type, data=message)


@dataclass
class WidgetActionEvent(Event):
    """A press, release or change on an extension widget."""
    widget_id: str = ""
    action_type: str = ""
    value: str = ""
    origin: Optional[str] = None
    peripheral_id: Optional[str] = None

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "WidgetActionEvent":
        return cls(
            type=EventType.WIDGET_ACTION,
            data=message,
            widget_id=_text(message, "WidgetId"),
            action_type=_text(message, "Type"),
            value=_text(message, "Value"),
            origin=_optional(message, "Origin"),
            peripheral_id=_optional(message, "PeripheralId")
        )


@dataclass
class PanelClickedEvent(Event):
    """An extension panel button was clicked."""
    panel_id: str = ""
    origin: Optional[str] = None
    peripheral_id: Optional[str] = None

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "PanelClickedEvent":
        return cls(
            type=EventType.PANEL_CLICKED,
            data=message,
            panel_id=_text(message, "PanelId"),
            origin=_optional(message, "Origin"),
            peripheral_id=_optional(message, "PeripheralId")
        )


@dataclass
class TextInputResponseEvent(Event):
    """Text submitted to a text input dialog."""
    feedback_id: str = ""
    text: str = ""
    origin: Optional[str] = None
    peripheral_id: Optional[str] = None

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "TextInputResponseEvent":
        return cls(
            type=EventType.TEXT_INPUT_RESPONSE,
            data=message,
            feedback_id=_text(message, "FeedbackId"),
            text=_text(message, "Text"),
            origin=_optional(message, "Origin"),
            peripheral_id=_optional(message, "PeripheralId")
        )


@dataclass
class PromptResponseEvent(Event):
    """An option chosen on a multi-option prompt."""
    feedback_id: str = ""
    option_id: int = 0
    origin: Optional[str] = None
    peripheral_id: Optional[str] = None

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "PromptResponseEvent":
        try:
            option_id = int(message.get("OptionId", 0))
        except (TypeError, ValueError):
            option_id = 0
        return cls(
            type=EventType.PROMPT_RESPONSE,
            data=message,
            feedback_id=_text(message, "FeedbackId"),
            option_id=option_id,
            origin=_optional(message, "Origin"),
            peripheral_id=_optional(message, "PeripheralId")
        )


@dataclass
class StandbyStateEvent(Event):
    """The standby state changed (Off, Standby, Halfwake, EnteringStandby)."""
    state: str = ""

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "StandbyStateEvent":
        return cls(type=EventType.STANDBY_STATE, data=message, state=_text(message, "State"))


@dataclass
class CallDisconnectEvent(Event):
    """A call ended."""
    call_id: Optional[str] = None
    cause_type: Optional[str] = None

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "CallDisconnectEvent":
        return cls(
            type=EventType.CALL_DISCONNECT,
            data=message,
            call_id=_optional(message, "CallId"),
            cause_type=_optional(message, "CauseType")
        )


EVENT_CLASSES = {
    EventType.CALL_DISCONNECT: CallDisconnectEvent,
    EventType.PANEL_CLICKED: PanelClickedEvent,
    EventType.PROMPT_RESPONSE: PromptResponseEvent,
    EventType.STANDBY_STATE: StandbyStateEvent,
    EventType.TEXT_INPUT_RESPONSE: TextInputResponseEvent,
    EventType.WIDGET_ACTION: WidgetActionEvent,
}
