"""Routing of widget actions to handlers.

Widget ids are compound: ``namespace~page~action[:sub_action]~data``, e.g.
``dop~Presets~Select:Single~0:Room A``. Each interaction phase has its own
routing tree. A tree node is either a Leaf wrapping a handler or a Branch
holding named children plus an optional default handler used when a
sub-action has no child of its own. Lookups that do not resolve are
ignored.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, Mapping, Optional, Union

from ..device.xapi import WidgetEventType
from ..utils.logger import get_logger
from .event_types import WidgetActionEvent


logger = get_logger("action_router")

DEFAULT_KEY = "_default_"
SEGMENT_SEPARATOR = "~"
SUB_ACTION_SEPARATOR = ":"


@dataclass
class ActionContext:
    """Everything a widget handler may need about the triggering event."""
    widget_id: str
    action_type: str
    page: str
    action: str
    sub_action: Optional[str] = None
    data: Optional[str] = None
    value: str = ""
    origin: Optional[str] = None
    peripheral_id: Optional[str] = None


Handler = Callable[[ActionContext], Union[None, Awaitable[None]]]


@dataclass
class Leaf:
    handler: Handler


@dataclass
class Branch:
    children: Dict[str, Union["Leaf", "Branch"]] = field(default_factory=dict)
    default: Optional[Handler] = None

    def get(self, name: Optional[str]) -> Optional[Union["Leaf", "Branch"]]:
        if name is None:
            return None
        return self.children.get(name)


Node = Union[Leaf, Branch]


def build_tree(mapping: Mapping[str, Any]) -> Branch:
    """Build a routing tree from nested dicts of handlers.

    A ``_default_`` key inside a mapping becomes that branch's default
    handler.
    """
    branch = Branch()
    for name, entry in mapping.items():
        if name == DEFAULT_KEY:
            branch.default = entry
        elif isinstance(entry, Mapping):
            branch.children[name] = build_tree(entry)
        elif callable(entry):
            branch.children[name] = Leaf(entry)
        else:
            raise TypeError(f"Route '{name}' must be a handler or a mapping, got {type(entry).__name__}")
    return branch


@dataclass
class WidgetPath:
    """A parsed widget id."""
    namespace: str
    page: str
    action: str
    sub_action: Optional[str] = None
    data: Optional[str] = None

    @classmethod
    def parse(cls, widget_id: str) -> Optional["WidgetPath"]:
        segments = widget_id.split(SEGMENT_SEPARATOR, 3)
        if len(segments) < 3:
            return None
        namespace, page, action = segments[0], segments[1], segments[2]
        data = segments[3] if len(segments) > 3 else None
        sub_action = None
        if SUB_ACTION_SEPARATOR in action:
            action, sub_action = action.split(SUB_ACTION_SEPARATOR, 1)
        return cls(namespace=namespace, page=page, action=action, sub_action=sub_action, data=data)


class ActionRouter:
    """Dispatches widget actions to the pressed or released tree."""

    def __init__(
        self,
        pressed: Optional[Branch] = None,
        released: Optional[Branch] = None,
        namespaces: Iterable[str] = ("dop", "dopm")
    ):
        self.pressed = pressed or Branch()
        self.released = released or Branch()
        self.namespaces = frozenset(namespaces)

    def resolve(self, path: WidgetPath, action_type: str) -> Optional[Handler]:
        """Find the handler for a widget path, or None."""
        if action_type == WidgetEventType.RELEASED.value:
            tree = self.released
        elif action_type == WidgetEventType.PRESSED.value:
            tree = self.pressed
        else:
            return None

        page = tree.get(path.page)
        if not isinstance(page, Branch):
            return None

        node = page.get(path.action)
        if isinstance(node, Leaf):
            return node.handler
        if isinstance(node, Branch) and path.sub_action:
            child = node.get(path.sub_action)
            if isinstance(child, Leaf):
                return child.handler
            return node.default
        return None

    async def dispatch(self, event: WidgetActionEvent) -> bool:
        """Route an event. Returns True if a handler ran."""
        if event.action_type == WidgetEventType.CLICKED.value:
            return False

        path = WidgetPath.parse(event.widget_id)
        if path is None or path.namespace not in self.namespaces:
            return False

        handler = self.resolve(path, event.action_type)
        if handler is None:
            logger.trace(f"No route for {event.widget_id} ({event.action_type})")
            return False

        context = ActionContext(
            widget_id=event.widget_id,
            action_type=event.action_type,
            page=path.page,
            action=path.action,
            sub_action=path.sub_action,
            data=path.data,
            value=event.value,
            origin=event.origin,
            peripheral_id=event.peripheral_id
        )
        result = handler(context)
        if asyncio.iscoroutine(result):
            await result
        return True


class LongPressTimer:
    """Single pending long-press timer shared by all widgets.

    Pressing arms the timer; releasing before it fires cancels it. When
    ``suppress_release`` is on, a release that follows an opened submenu is
    swallowed. Only one control surface is expected to interact at a time.
    """

    def __init__(self, delay: float = 3.0, suppress_release: bool = False):
        self.delay = delay
        self.suppress_release = suppress_release
        self.submenu_open = False
        self._handle: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def arm(self, callback: Callable[[], Any], delay: Optional[float] = None) -> None:
        """Schedule ``callback`` after the delay, replacing any pending one."""
        self.cancel()
        self.submenu_open = False
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay if delay is None else delay, self._fire, callback)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def release(self) -> bool:
        """Cancel the pending timer.

        Returns False when the release action should be skipped because the
        submenu already opened.
        """
        self.cancel()
        if self.submenu_open and self.suppress_release:
            self.submenu_open = False
            return False
        return True

    def _fire(self, callback: Callable[[], Any]) -> None:
        self._handle = None
        if self.suppress_release:
            self.submenu_open = True
        result = callback()
        if asyncio.iscoroutine(result):
            self._task = asyncio.ensure_future(result)
            self._task.add_done_callback(self._log_failure)

    @staticmethod
    def _log_failure(task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Long press action failed: {task.exception()}")
