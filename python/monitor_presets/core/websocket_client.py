"""Async JSON-RPC WebSocket client with auto-reconnect capability."""

import asyncio
import base64
import itertools
import json
import ssl
from typing import Optional, Callable, Any, Dict, Awaitable

from websockets.asyncio.client import connect, ClientConnection
from websockets.exceptions import WebSocketException
from websockets.protocol import State

from ..protocol.messages import RpcRequest, RpcResponse, parse_message
from ..utils.logger import get_logger
from .exceptions import ConnectionError, DeviceCommandError


logger = get_logger("websocket_client")


class WebSocketClient:
    """Async JSON-RPC client with automatic reconnection.

    Requests are correlated to responses by id. Anything that is not a
    response to a pending request is handed to ``on_message``.
    """

    def __init__(
        self,
        url: str,
        username: str = "",
        password: str = "",
        verify_tls: bool = False,
        on_message: Optional[Callable[[Dict[str, Any]], Awaitable[None]]] = None,
        on_connect: Optional[Callable[[], Awaitable[None]]] = None,
        on_disconnect: Optional[Callable[[], Awaitable[None]]] = None,
        request_timeout: float = 10.0,
        reconnect_interval: float = 5.0,
        max_reconnect_interval: float = 60.0,
        reconnect_decay: float = 1.5
    ):
        self.url = url
        self.username = username
        self.password = password
        self.verify_tls = verify_tls
        self.on_message = on_message
        self.on_connect = on_connect
        self.on_disconnect = on_disconnect
        self.request_timeout = request_timeout
        self.reconnect_interval = reconnect_interval
        self.max_reconnect_interval = max_reconnect_interval
        self.reconnect_decay = reconnect_decay

        self._websocket: Optional[ClientConnection] = None
        self._running = False
        self._reconnect_task: Optional[asyncio.Task] = None
        self._receive_task: Optional[asyncio.Task] = None
        self._pending: Dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._current_reconnect_interval = reconnect_interval
        self._connection_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """Check if WebSocket is connected."""
        return self._websocket is not None and self._websocket.state is State.OPEN

    def next_id(self) -> int:
        return next(self._ids)

    def _headers(self) -> Dict[str, str]:
        if not self.username:
            return {}
        token = base64.b64encode(f"{self.username}:{self.password}".encode()).decode()
        return {"Authorization": f"Basic {token}"}

    def _ssl_context(self) -> Optional[ssl.SSLContext]:
        if not self.url.startswith("wss://"):
            return None
        context = ssl.create_default_context()
        if not self.verify_tls:
            # Endpoints ship self-signed certificates by default
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    async def connect(self) -> None:
        """Connect to the device WebSocket endpoint."""
        async with self._connection_lock:
            if self.is_connected:
                logger.debug("Already connected")
                return

            try:
                logger.info(f"Connecting to {self.url}")
                kwargs: Dict[str, Any] = {"additional_headers": self._headers()}
                context = self._ssl_context()
                if context is not None:
                    kwargs["ssl"] = context
                self._websocket = await connect(self.url, **kwargs)
                self._running = True
                self._current_reconnect_interval = self.reconnect_interval

                self._receive_task = asyncio.create_task(self._receive_loop())

                logger.info("Connected successfully")

                if self.on_connect:
                    await self.on_connect()

            except Exception as e:
                logger.error(f"Connection failed: {e}")
                raise ConnectionError(f"Failed to connect to {self.url}: {e}")

    async def disconnect(self) -> None:
        """Disconnect from the device."""
        logger.info("Disconnecting...")
        self._running = False

        if self._reconnect_task and not self._reconnect_task.done():
            self._reconnect_task.cancel()

        if self._receive_task and not self._receive_task.done():
            self._receive_task.cancel()

        if self._websocket:
            await self._websocket.close()
            self._websocket = None

        self._fail_pending(ConnectionError("Connection closed"))

        if self.on_disconnect:
            await self.on_disconnect()

        logger.info("Disconnected")

    async def send(self, message: Dict[str, Any]) -> None:
        """Send a raw message through the WebSocket."""
        if not self.is_connected:
            raise ConnectionError("Attempted to send message while not connected")
        logger.trace(f"WS → {message}")
        await self._websocket.send(json.dumps(message))

    async def request(self, request: RpcRequest) -> Any:
        """Send a request and wait for its result.

        Raises DeviceCommandError when the device answers with an error
        and ConnectionError when no answer arrives.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        self._pending[request.id] = future
        try:
            await self.send(request.to_dict())
            response: RpcResponse = await asyncio.wait_for(future, timeout=self.request_timeout)
        except asyncio.TimeoutError:
            raise ConnectionError(f"Timed out waiting for {request.method} (id {request.id})")
        finally:
            self._pending.pop(request.id, None)

        if response.is_error:
            raise DeviceCommandError(
                response.error.message or "Device returned an error",
                code=response.error.code,
                method=request.method
            )
        return response.result

    def _fail_pending(self, error: Exception) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()

    async def _receive_loop(self) -> None:
        """Receive messages from the WebSocket."""
        try:
            async for message in self._websocket:
                try:
                    data = json.loads(message)
                    logger.trace(f"WS ← {data}")
                    parsed = parse_message(data)

                    if isinstance(parsed, RpcResponse) and parsed.id in self._pending:
                        future = self._pending[parsed.id]
                        if not future.done():
                            future.set_result(parsed)
                        continue

                    if self.on_message:
                        await self.on_message(data)

                except json.JSONDecodeError:
                    logger.error(f"Failed to parse message: {message}")
                except Exception as e:
                    logger.error(f"Message handling error: {e}")

        except WebSocketException as e:
            logger.error(f"WebSocket error: {e}")
        except Exception as e:
            logger.error(f"Receive loop error: {e}")
        finally:
            self._fail_pending(ConnectionError("Connection lost"))
            if self._running:
                logger.info("Connection lost, attempting to reconnect...")
                self._reconnect_task = asyncio.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        """Attempt to reconnect with exponential backoff."""
        while self._running and not self.is_connected:
            logger.info(f"Reconnecting in {self._current_reconnect_interval} seconds...")
            await asyncio.sleep(self._current_reconnect_interval)

            try:
                await self.connect()
                return
            except Exception as e:
                logger.error(f"Reconnection failed: {e}")
                self._current_reconnect_interval = min(
                    self._current_reconnect_interval * self.reconnect_decay,
                    self.max_reconnect_interval
                )
