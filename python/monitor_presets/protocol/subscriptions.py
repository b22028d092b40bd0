"""Feedback subscription kinds and the one-shot arming registry."""

from typing import Set, List
from enum import Enum


class Subscription(str, Enum):
    """Device feedback the service listens to."""
    CALL_DISCONNECT = "CallDisconnect"
    PANEL_CLICKED = "PanelClicked"
    PROMPT_RESPONSE = "PromptResponse"
    STANDBY_STATE = "StandbyState"
    TEXT_INPUT_RESPONSE = "TextInputResponse"
    WIDGET_ACTION = "WidgetAction"

    @property
    def path(self) -> List[str]:
        """Feedback query path registered with the device."""
        return list(FEEDBACK_PATHS[self])


FEEDBACK_PATHS = {
    Subscription.CALL_DISCONNECT: ("Event", "CallDisconnect"),
    Subscription.PANEL_CLICKED: ("Event", "UserInterface", "Extensions", "Panel", "Clicked"),
    Subscription.PROMPT_RESPONSE: ("Event", "UserInterface", "Message", "Prompt", "Response"),
    Subscription.STANDBY_STATE: ("Status", "Standby", "State"),
    Subscription.TEXT_INPUT_RESPONSE: ("Event", "UserInterface", "Message", "TextInput", "Response"),
    Subscription.WIDGET_ACTION: ("Event", "UserInterface", "Extensions", "Widget", "Action"),
}


class SubscriptionRegistry:
    """Tracks which subscription kinds have been armed.

    A kind can be armed once per process lifetime; later attempts are
    rejected so the same feedback is never registered twice.
    """

    def __init__(self):
        self._armed: Set[str] = set()

    def arm(self, subscription: str) -> bool:
        """Mark a subscription armed. Returns True if newly armed."""
        if subscription not in self._armed:
            self._armed.add(subscription)
            return True
        return False

    def get_all(self) -> List[str]:
        """Get all armed subscriptions, sorted."""
        return sorted(str(getattr(s, "value", s)) for s in self._armed)
