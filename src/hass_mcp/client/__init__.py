"""Home Assistant clients: websocket command channel, REST channel and typed façade."""

from .hass_client import HassClient, HassClientProvider
from .rest_client import HomeAssistantRestClient
from .websocket_client import HomeAssistantWebSocketClient

__all__ = [
    "HassClient",
    "HassClientProvider",
    "HomeAssistantRestClient",
    "HomeAssistantWebSocketClient",
]
