"""JSON-RPC protocol implementation for the device control API."""

from .messages import (
    MessageType,
    RpcRequest,
    RpcResponse,
    RpcError,
    FeedbackNotification,
    parse_message
)
from .subscriptions import Subscription, SubscriptionRegistry

__all__ = [
    "MessageType",
    "RpcRequest",
    "RpcResponse",
    "RpcError",
    "FeedbackNotification",
    "parse_message",
    "Subscription",
    "SubscriptionRegistry"
]
