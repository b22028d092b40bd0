"""Touch panel dialogs and widget feedback."""

from .dialogs import DialogManager
from .feedback_ids import FeedbackId
from .panels import PanelManager, WidgetId

__all__ = ["DialogManager", "FeedbackId", "PanelManager", "WidgetId"]
