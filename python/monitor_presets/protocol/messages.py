"""JSON-RPC message definitions for the device control API."""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Union
from enum import Enum


PathSegment = Union[str, int]


def convert_to_dict(obj: Any) -> Dict[str, Any]:
    """Convert dataclass to dictionary, handling enums properly."""
    if hasattr(obj, '__dataclass_fields__'):
        result = {}
        for field_name in obj.__dataclass_fields__:
            value = getattr(obj, field_name)
            if isinstance(value, Enum):
                result[field_name] = value.value
            elif isinstance(value, list):
                result[field_name] = [v.value if isinstance(v, Enum) else v for v in value]
            elif isinstance(value, dict):
                result[field_name] = {k: (v.value if isinstance(v, Enum) else v) for k, v in value.items()}
            elif value is not None:
                result[field_name] = value
        return result
    return obj


class MessageType(str, Enum):
    """JSON-RPC method names understood by the device."""
    GET = "xGet"
    SET = "xSet"
    COMMAND = "xCommand"
    DOC = "xDoc"
    FEEDBACK_SUBSCRIBE = "xFeedback/Subscribe"
    FEEDBACK_UNSUBSCRIBE = "xFeedback/Unsubscribe"
    FEEDBACK_EVENT = "xFeedback/Event"


def split_path(path: Union[str, List[PathSegment]]) -> List[PathSegment]:
    """Normalize 'Status SystemUnit Uptime' or a list into path segments."""
    if isinstance(path, str):
        segments: List[PathSegment] = []
        for part in path.replace("/", " ").split():
            segments.append(int(part) if part.isdigit() else part)
        return segments
    return list(path)


def command_method(path: Union[str, List[PathSegment]]) -> str:
    """Build the method name for a command, e.g. xCommand/Video/Matrix/Assign."""
    return "/".join([MessageType.COMMAND.value] + [str(p) for p in split_path(path)])


@dataclass
class RpcRequest:
    """Outgoing JSON-RPC request."""
    method: str
    id: int
    params: Dict[str, Any] = field(default_factory=dict)
    jsonrpc: str = "2.0"

    def to_dict(self) -> Dict[str, Any]:
        """Convert message to dictionary for sending."""
        return convert_to_dict(self)


@dataclass
class RpcError:
    """Error object carried by a failed response."""
    code: Optional[int] = None
    message: str = ""
    data: Optional[Any] = None


@dataclass
class RpcResponse:
    """Incoming JSON-RPC response."""
    id: int
    result: Any = None
    error: Optional[RpcError] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


@dataclass
class FeedbackNotification:
    """Incoming feedback notification for a registered subscription."""
    subscription_id: int
    payload: Dict[str, Any]


def get_request(request_id: int, path: Union[str, List[PathSegment]]) -> RpcRequest:
    return RpcRequest(method=MessageType.GET.value, id=request_id, params={"Path": split_path(path)})


def set_request(request_id: int, path: Union[str, List[PathSegment]], value: Any) -> RpcRequest:
    return RpcRequest(
        method=MessageType.SET.value,
        id=request_id,
        params={"Path": split_path(path), "Value": value}
    )


def command_request(request_id: int, path: Union[str, List[PathSegment]], params: Dict[str, Any]) -> RpcRequest:
    # Multiline command bodies travel as the "body" parameter
    return RpcRequest(
        method=command_method(path),
        id=request_id,
        params={k: v for k, v in params.items() if v is not None}
    )


def doc_request(request_id: int, path: Union[str, List[PathSegment]]) -> RpcRequest:
    return RpcRequest(
        method=MessageType.DOC.value,
        id=request_id,
        params={"Path": split_path(path), "Type": "Schema"}
    )


def subscribe_request(request_id: int, path: Union[str, List[PathSegment]]) -> RpcRequest:
    return RpcRequest(
        method=MessageType.FEEDBACK_SUBSCRIBE.value,
        id=request_id,
        params={"Query": split_path(path), "NotifyCurrentValue": False}
    )


def parse_message(data: Dict[str, Any]) -> Optional[Union[RpcResponse, FeedbackNotification]]:
    """Parse a JSON-RPC message from dictionary data.

    Returns None for messages that are neither responses nor feedback.
    """
    if data.get("method") == MessageType.FEEDBACK_EVENT.value:
        params = dict(data.get("params") or {})
        subscription_id = params.pop("Id", None)
        if subscription_id is None:
            return None
        return FeedbackNotification(subscription_id=int(subscription_id), payload=params)

    if "id" in data and ("result" in data or "error" in data):
        error = None
        if data.get("error") is not None:
            raw = data["error"]
            if isinstance(raw, dict):
                error = RpcError(code=raw.get("code"), message=str(raw.get("message", "")), data=raw.get("data"))
            else:
                error = RpcError(message=str(raw))
        return RpcResponse(id=data["id"], result=data.get("result"), error=error)

    return None


def extract_leaf(payload: Any, path: List[PathSegment]) -> Any:
    """Walk a feedback payload along the subscribed path.

    Feedback arrives wrapped in the full document tree, e.g.
    {"Status": {"Standby": {"State": "Off"}}} for Status/Standby/State.
    Missing segments stop the walk and return what was reached.
    """
    node = payload
    for segment in path:
        if isinstance(node, dict) and str(segment) in node:
            node = node[str(segment)]
        else:
            break
    return node
