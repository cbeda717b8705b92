"""
WebSocket command channel to Home Assistant.

Handles the authentication handshake and correlates ``{"id": n, ...}``
commands with their ``result`` replies. State queries, service calls,
registries, traces and dashboards all go through :meth:`send_command`.
"""

import asyncio
import json
import logging
from typing import Any
from urllib.parse import urlparse

import websockets

from ..errors import (
    HomeAssistantAuthError,
    HomeAssistantCommandError,
    HomeAssistantConnectionError,
)

logger = logging.getLogger(__name__)

AUTH_TIMEOUT_SECONDS = 10.0
COMMAND_TIMEOUT_SECONDS = 30.0


def build_websocket_url(url: str) -> str:
    """Derive the websocket endpoint from a hub URL.

    ``http://host:8123`` becomes ``ws://host:8123/api/websocket``. A URL with a
    path (e.g. a reverse proxy prefix) gets ``/websocket`` appended to it.
    """
    parsed = urlparse(url.rstrip("/"))
    scheme = "wss" if parsed.scheme in ("https", "wss") else "ws"
    path = parsed.path.rstrip("/")
    if path and path != "/api":
        return f"{scheme}://{parsed.netloc}{path}/websocket"
    return f"{scheme}://{parsed.netloc}/api/websocket"


class HomeAssistantWebSocketClient:
    """Authenticated websocket connection to Home Assistant."""

    def __init__(self, url: str, token: str, timeout: float = COMMAND_TIMEOUT_SECONDS):
        """Initialize WebSocket client.

        Args:
            url: Home Assistant URL (e.g., 'http://homeassistant.local:8123')
            token: Home Assistant long-lived access token
            timeout: Seconds to wait for a command reply
        """
        self.base_url = url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.ws_url = build_websocket_url(self.base_url)
        self.websocket: Any = None
        self.connected = False
        self.authenticated = False
        self.message_id = 0
        self.pending_requests: dict[int, asyncio.Future] = {}
        self.background_task: asyncio.Task | None = None
        self._send_lock = asyncio.Lock()

    async def connect(self) -> None:
        """Open the connection and authenticate.

        Raises:
            HomeAssistantAuthError: The token was rejected.
            HomeAssistantConnectionError: The hub could not be reached or the
                handshake did not complete.
        """
        logger.info(f"Connecting to Home Assistant WebSocket: {self.ws_url}")
        try:
            self.websocket = await websockets.connect(
                self.ws_url, ping_interval=30, ping_timeout=10
            )
        except (OSError, websockets.exceptions.WebSocketException) as e:
            raise HomeAssistantConnectionError(f"Connection failed: {e}") from e
        self.connected = True

        try:
            await self._authenticate()
        except BaseException:
            await self.disconnect()
            raise

        self.authenticated = True
        self.background_task = asyncio.create_task(self._message_handler())
        logger.info("WebSocket connected and authenticated successfully")

    async def _authenticate(self) -> None:
        """Run the auth_required -> auth -> auth_ok handshake."""
        try:
            first = await self._receive_json(AUTH_TIMEOUT_SECONDS)
            if first.get("type") != "auth_required":
                raise HomeAssistantConnectionError(
                    f"Unexpected handshake message: {first.get('type')}"
                )

            await self.websocket.send(
                json.dumps({"type": "auth", "access_token": self.token})
            )

            reply = await self._receive_json(AUTH_TIMEOUT_SECONDS)
        except TimeoutError as e:
            raise HomeAssistantConnectionError("Authentication timeout") from e
        except websockets.exceptions.ConnectionClosed as e:
            raise HomeAssistantConnectionError(f"Connection closed during handshake: {e}") from e

        if reply.get("type") == "auth_invalid":
            raise HomeAssistantAuthError(
                f"Authentication failed: {reply.get('message', 'Invalid token')}"
            )
        if reply.get("type") != "auth_ok":
            raise HomeAssistantConnectionError(
                f"Unexpected authentication reply: {reply.get('type')}"
            )

    async def _receive_json(self, timeout: float) -> dict[str, Any]:
        raw = await asyncio.wait_for(self.websocket.recv(), timeout=timeout)
        data: dict[str, Any] = json.loads(raw)
        return data

    async def disconnect(self) -> None:
        """Close the connection and fail any pending commands."""
        if self.background_task:
            self.background_task.cancel()
            try:
                await self.background_task
            except asyncio.CancelledError:
                pass
            self.background_task = None

        if self.websocket is not None:
            await self.websocket.close()

        self._fail_pending(HomeAssistantConnectionError("WebSocket disconnected"))
        self.connected = False
        self.authenticated = False
        self.websocket = None
        logger.info("WebSocket disconnected")

    def _fail_pending(self, error: Exception) -> None:
        for future in self.pending_requests.values():
            if not future.done():
                future.set_exception(error)
        self.pending_requests.clear()

    async def _message_handler(self) -> None:
        """Background task dispatching replies to waiting commands."""
        try:
            async for message in self.websocket:
                try:
                    data = json.loads(message)
                except json.JSONDecodeError as e:
                    logger.error(f"Invalid JSON received: {e}")
                    continue
                logger.debug(f"WebSocket received: {data}")
                self._process_message(data)
        except websockets.exceptions.ConnectionClosed:
            logger.info("WebSocket connection closed")
        finally:
            self.connected = False
            self.authenticated = False
            self._fail_pending(HomeAssistantConnectionError("WebSocket connection closed"))

    def _process_message(self, data: dict[str, Any]) -> None:
        message_id = data.get("id")
        if message_id is not None and message_id in self.pending_requests:
            future = self.pending_requests.pop(message_id)
            if not future.done():
                future.set_result(data)

    def _get_next_id(self) -> int:
        self.message_id += 1
        return self.message_id

    async def send_command(self, command_type: str, **kwargs: Any) -> Any:
        """Send a command and return its ``result`` payload.

        Args:
            command_type: Websocket command type, e.g. ``get_states``
            **kwargs: Command fields

        Raises:
            HomeAssistantCommandError: The hub answered with ``success: false``.
            HomeAssistantConnectionError: Not connected, or no reply in time.
        """
        if not self.is_connected:
            raise HomeAssistantConnectionError("WebSocket not authenticated")

        message_id = self._get_next_id()
        message = {"id": message_id, "type": command_type, **kwargs}

        future: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()
        self.pending_requests[message_id] = future

        async with self._send_lock:
            try:
                logger.debug(f"WebSocket sending: {message}")
                await self.websocket.send(json.dumps(message))
            except websockets.exceptions.ConnectionClosed as e:
                self.pending_requests.pop(message_id, None)
                raise HomeAssistantConnectionError(f"Command failed: {e}") from e

        try:
            response = await asyncio.wait_for(future, timeout=self.timeout)
        except TimeoutError as e:
            self.pending_requests.pop(message_id, None)
            raise HomeAssistantConnectionError(f"Command timeout: {command_type}") from e

        return self._unwrap_result(response)

    @staticmethod
    def _unwrap_result(response: dict[str, Any]) -> Any:
        if response.get("type") == "result" and response.get("success") is False:
            error = response.get("error") or {}
            if isinstance(error, dict):
                raise HomeAssistantCommandError(
                    str(error.get("message", error)),
                    code=error.get("code"),
                )
            raise HomeAssistantCommandError(str(error))
        if response.get("type") == "pong":
            return {"type": "pong"}
        return response.get("result")

    async def ping(self) -> bool:
        """Check connection health."""
        try:
            response = await self.send_command("ping")
        except (HomeAssistantConnectionError, HomeAssistantCommandError):
            return False
        return isinstance(response, dict) and response.get("type") == "pong"

    @property
    def is_connected(self) -> bool:
        """Check if WebSocket is connected and authenticated."""
        return self.connected and self.authenticated
