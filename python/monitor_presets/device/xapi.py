"""Device control interface over the endpoint's JSON-RPC API."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..core.exceptions import ConnectionError, DeviceCommandError
from ..core.websocket_client import WebSocketClient
from ..protocol.messages import (
    FeedbackNotification,
    PathSegment,
    command_request,
    doc_request,
    extract_leaf,
    get_request,
    parse_message,
    set_request,
    split_path,
    subscribe_request
)
from ..utils.logger import get_logger


logger = get_logger("xapi")

FeedbackHandler = Callable[[List[PathSegment], Any], Awaitable[None]]


class MatrixMode(str, Enum):
    """How a matrix assignment combines with existing sources."""
    REPLACE = "Replace"
    ADD = "Add"


class WidgetEventType(str, Enum):
    """Interaction phases reported for extension widgets."""
    PRESSED = "pressed"
    RELEASED = "released"
    CLICKED = "clicked"
    CHANGED = "changed"


@dataclass
class Connector:
    """A video input or output connector."""
    id: int
    name: str = ""
    monitor_role: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Connector":
        return cls(
            id=int(data.get("id", 0)),
            name=str(data.get("Name", "")),
            monitor_role=data.get("MonitorRole")
        )


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _subscription_id(result: Any, segments: List[PathSegment]) -> int:
    try:
        return int(result["Id"])
    except (KeyError, TypeError, ValueError):
        raise DeviceCommandError(
            f"Feedback registration for {'/'.join(map(str, segments))} returned no Id: {result!r}",
            method="xFeedback/Subscribe"
        )


class DeviceControl:
    """High level commands used by the preset service.

    Every call awaits the device; failures surface as DeviceCommandError
    (device rejected the call) or ConnectionError (no answer).
    """

    def __init__(self, client: WebSocketClient):
        self._client = client
        self._client.on_message = self._handle_message
        self._client.on_connect = self._on_connect
        self._feedback_paths: Dict[int, List[PathSegment]] = {}
        self._registered: List[List[PathSegment]] = []
        self.on_feedback: Optional[FeedbackHandler] = None

    @property
    def is_connected(self) -> bool:
        return self._client.is_connected

    async def connect(self) -> None:
        await self._client.connect()

    async def disconnect(self) -> None:
        await self._client.disconnect()

    # Generic access

    async def get(self, path: Union[str, List[PathSegment]]) -> Any:
        return await self._client.request(get_request(self._client.next_id(), path))

    async def set(self, path: Union[str, List[PathSegment]], value: Any) -> Any:
        return await self._client.request(set_request(self._client.next_id(), path, value))

    async def command(self, path: Union[str, List[PathSegment]], **params: Any) -> Any:
        return await self._client.request(command_request(self._client.next_id(), path, params))

    async def doc(self, path: Union[str, List[PathSegment]]) -> Any:
        return await self._client.request(doc_request(self._client.next_id(), path))

    async def value_space(self, path: Union[str, List[PathSegment]]) -> List[str]:
        """Return the allowed values of a configuration node."""
        schema = await self.doc(path) or {}
        values = (schema.get("ValueSpace") or {}).get("Value")
        return [str(v) for v in _as_list(values)]

    # Video configuration

    async def get_output_connectors(self) -> List[Connector]:
        data = await self.get(["Configuration", "Video", "Output", "Connector"])
        return [Connector.from_dict(item) for item in _as_list(data)]

    async def get_monitor_role(self, connector: int) -> str:
        return str(await self.get(["Configuration", "Video", "Output", "Connector", int(connector), "MonitorRole"]))

    async def set_monitor_role(self, connector: int, role: str) -> None:
        await self.set(["Configuration", "Video", "Output", "Connector", int(connector), "MonitorRole"], role)

    async def get_monitors(self) -> str:
        return str(await self.get(["Configuration", "Video", "Monitors"]))

    async def set_monitors(self, mode: str) -> None:
        await self.set(["Configuration", "Video", "Monitors"], mode)

    async def matrix_assign(self, output: int, source_id: int, mode: MatrixMode, layout: str) -> None:
        await self.command(
            "Video Matrix Assign",
            Output=int(output),
            SourceId=int(source_id),
            Mode=MatrixMode(mode).value,
            Layout=layout
        )

    async def matrix_reset(self, output: int) -> None:
        await self.command("Video Matrix Reset", Output=int(output))

    # System status

    async def active_call_count(self) -> int:
        return int(await self.get(["Status", "SystemUnit", "State", "NumberOfActiveCalls"]))

    async def uptime(self) -> int:
        """Seconds since the device booted."""
        return int(await self.get(["Status", "SystemUnit", "Uptime"]))

    # User interface surface

    async def text_input(
        self,
        title: str,
        text: str,
        feedback_id: str,
        placeholder: str = "",
        duration: int = 60,
        input_type: str = "SingleLine",
        submit_text: str = "Submit",
        input_text: Optional[str] = None,
        peripheral_id: Optional[str] = None
    ) -> None:
        await self.command(
            "UserInterface Message TextInput Display",
            Title=title,
            Text=text,
            Placeholder=placeholder or None,
            Duration=duration,
            InputType=input_type,
            SubmitText=submit_text,
            InputText=input_text,
            FeedbackId=feedback_id,
            PeripheralId=peripheral_id
        )

    async def prompt(
        self,
        title: str,
        text: str,
        options: List[str],
        feedback_id: Optional[str] = None,
        duration: int = 60,
        peripheral_id: Optional[str] = None
    ) -> None:
        if len(options) > 4:
            raise ValueError("A prompt supports at most 4 options")
        params: Dict[str, Any] = {
            "Title": title,
            "Text": text,
            "Duration": duration,
            "FeedbackId": feedback_id,
            "PeripheralId": peripheral_id
        }
        for number, label in enumerate(options, start=1):
            params[f"Option.{number}"] = label
        await self.command("UserInterface Message Prompt Display", **params)

    async def set_widget_value(self, widget_id: str, value: Any) -> None:
        await self.command("UserInterface Extensions Widget SetValue", WidgetId=widget_id, Value=value)

    async def unset_widget_value(self, widget_id: str) -> None:
        await self.command("UserInterface Extensions Widget UnsetValue", WidgetId=widget_id)

    async def panel_open(self, panel_id: str, peripheral_id: Optional[str] = None) -> None:
        await self.command("UserInterface Extensions Panel Open", PanelId=panel_id, PeripheralId=peripheral_id)

    # Macros, used as durable storage

    async def macro_get(self, name: str, content: bool = True) -> Dict[str, Any]:
        return await self.command("Macros Macro Get", Name=name, Content="True" if content else "False")

    async def macro_save(self, name: str, body: str) -> None:
        await self.command("Macros Macro Save", Name=name, body=body)

    # Feedback

    async def subscribe_feedback(self, path: Union[str, List[PathSegment]]) -> int:
        """Register a feedback query. Notifications reach ``on_feedback``."""
        segments = split_path(path)
        result = await self._client.request(subscribe_request(self._client.next_id(), segments))
        subscription_id = _subscription_id(result, segments)
        self._feedback_paths[subscription_id] = segments
        if segments not in self._registered:
            self._registered.append(segments)
        logger.debug(f"Feedback registered for {'/'.join(map(str, segments))} (id {subscription_id})")
        return subscription_id

    async def _on_connect(self) -> None:
        # Feedback registrations do not survive a reconnect
        if not self._registered:
            return
        self._feedback_paths.clear()
        for segments in list(self._registered):
            try:
                result = await self._client.request(subscribe_request(self._client.next_id(), segments))
                self._feedback_paths[_subscription_id(result, segments)] = segments
            except (DeviceCommandError, ConnectionError) as e:
                logger.error(f"Failed to restore feedback for {'/'.join(map(str, segments))}: {e}")

    async def _handle_message(self, data: Dict[str, Any]) -> None:
        parsed = parse_message(data)
        if not isinstance(parsed, FeedbackNotification):
            logger.debug(f"Ignoring unsolicited message: {data}")
            return

        segments = self._feedback_paths.get(parsed.subscription_id)
        if segments is None:
            logger.warning(f"Feedback for unknown subscription id {parsed.subscription_id}")
            return

        if self.on_feedback:
            await self.on_feedback(segments, extract_leaf(parsed.payload, segments))
