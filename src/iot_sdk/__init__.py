"""Client SDK for the IoT cloud platform HTTP API."""

from iot_sdk.client.iot_client import IoTClient
from iot_sdk.device.manager import DeviceManager

VERSION = "1.0.0"


def create_client(base_url: str, token: str, **kwargs) -> IoTClient:
    """Client authenticated with a static token; makes no network call."""
    return IoTClient.from_token(base_url, token, **kwargs)


def create_client_from_credentials(base_url: str, app_id: str, app_secret: str, **kwargs) -> IoTClient:
    """Client authenticated by exchanging an app id/secret pair for a token."""
    return IoTClient.from_credentials(base_url, app_id, app_secret, **kwargs)


def create_device_manager(client: IoTClient) -> DeviceManager:
    return DeviceManager(client)


__all__ = [
    "VERSION",
    "DeviceManager",
    "IoTClient",
    "create_client",
    "create_client_from_credentials",
    "create_device_manager",
]
