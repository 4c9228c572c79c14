import base64
import json
import time
from collections.abc import Sequence
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from iot_sdk.client.iot_client import IoTClient
from iot_sdk.client.validator import error_message
from iot_sdk.errors import InvalidArgumentError
from iot_sdk.schemas.device import DeviceDetail, DeviceState, RegisteredDevice
from iot_sdk.utils import format_offline_duration, format_timestamp, status_label

REGISTER_ENDPOINT = "/api/v1/quickdevice/register"
DETAIL_ENDPOINT = "/api/v1/quickdevice/detail"
STATUS_ENDPOINT = "/api/v1/quickdevice/status"
BATCH_STATUS_ENDPOINT = "/api/v1/quickdevice/batchGetDeviceState"
RRPC_ENDPOINT = "/api/v1/device/rrpc"
CUSTOM_COMMAND_ENDPOINT = "/api/v1/device/down/record/add/custom"

MAX_BATCH_DEVICES = 100
DEFAULT_RRPC_TIMEOUT_MS = 5000

ModelT = TypeVar("ModelT", bound=BaseModel)

# The platform has been seen returning both spellings; which one is canonical is unconfirmed.
RRPC_PAYLOAD_FIELDS = ("payloadBase64Byte", "playloadBase64Byte")


def encode_message(message: str) -> str:
    return base64.b64encode(message.encode("utf-8")).decode("ascii")


def decode_rrpc_payload(response: dict[str, Any]) -> str | None:
    """Decode the device's reply from an RRPC response, or None if it carried none.

    Raises ``ValueError`` when the field is present but is not a base64-encoded
    UTF-8 string.
    """
    for field_name in RRPC_PAYLOAD_FIELDS:
        encoded = response.get(field_name)
        if encoded is None:
            continue
        if not isinstance(encoded, str):
            raise ValueError(f"{field_name} is not a string")
        return base64.b64decode(encoded, validate=True).decode("utf-8")
    return None


def _identifiers(device_name: str | None, device_id: str | None) -> dict[str, str]:
    if not device_name and not device_id:
        raise InvalidArgumentError("At least one of deviceName and deviceId is required")
    payload: dict[str, str] = {}
    if device_name:
        payload["deviceName"] = device_name
    if device_id:
        payload["deviceId"] = device_id
    return payload


class DeviceManager:
    def __init__(self, client: IoTClient, logger: Any = None) -> None:
        self.client = client
        self.logger = logger or client.logger or structlog.get_logger()

    def _parse_data(self, model: type[ModelT], response: dict[str, Any], operation: str) -> ModelT | None:
        """Parse a successful response's ``data`` object for logging.

        The response itself is what callers get back, so a ``data`` object we
        can't parse only costs the summary event.
        """
        if not self.client.check_response(response) or not isinstance(response.get("data"), dict):
            return None
        try:
            return model.model_validate(response["data"])
        except ValidationError as exc:
            self.logger.warning("device_payload_unparsed", operation=operation, errors=exc.error_count())
            return None

    def register_device(
        self,
        product_key: str,
        device_name: str | None = None,
        nick_name: str | None = None,
    ) -> dict[str, Any]:
        if not product_key:
            raise InvalidArgumentError("productKey is required")

        payload: dict[str, Any] = {"productKey": product_key}
        if device_name:
            payload["deviceName"] = device_name
        if nick_name:
            payload["nickName"] = nick_name

        response = self.client.post(REGISTER_ENDPOINT, payload)
        device = self._parse_data(RegisteredDevice, response, "register_device")
        if device is not None:
            self.logger.info(
                "device_registered",
                product_key=device.product_key,
                device_name=device.device_name,
                nick_name=device.nick_name,
                device_id=device.device_id,
            )
        return response

    def get_device_detail(
        self, device_name: str | None = None, device_id: str | None = None
    ) -> dict[str, Any]:
        response = self.client.post(DETAIL_ENDPOINT, _identifiers(device_name, device_id))
        detail = self._parse_data(DeviceDetail, response, "get_device_detail")
        if detail is not None:
            self.logger.info(
                "device_detail",
                device_id=detail.device_id or "unknown",
                device_name=detail.device_name or "unknown",
                status=status_label(detail.status),
            )
        return response

    def get_device_status(
        self, device_name: str | None = None, device_id: str | None = None
    ) -> dict[str, Any]:
        response = self.client.post(STATUS_ENDPOINT, _identifiers(device_name, device_id))
        state = self._parse_data(DeviceState, response, "get_device_status")
        if state is not None:
            timestamp_ms = state.timestamp or 0
            event: dict[str, Any] = {
                "status": status_label(state.status),
                "updated_at": format_timestamp(timestamp_ms) if timestamp_ms > 0 else "unknown",
            }
            if state.status == "OFFLINE" and timestamp_ms > 0:
                now_ms = int(time.time() * 1000)
                event["offline_for"] = format_offline_duration(now_ms - timestamp_ms)
            self.logger.info("device_status", **event)
        return response

    def batch_get_device_status(
        self,
        device_names: Sequence[str] | None = None,
        device_ids: Sequence[str] | None = None,
    ) -> dict[str, Any]:
        if not device_names and not device_ids:
            raise InvalidArgumentError("At least one of the deviceName and deviceId lists is required")

        device_count = len(device_names or []) + len(device_ids or [])
        if device_count > MAX_BATCH_DEVICES:
            raise InvalidArgumentError(
                f"At most {MAX_BATCH_DEVICES} devices per request, got {device_count}"
            )

        payload: dict[str, Any] = {}
        if device_names:
            payload["deviceName"] = list(device_names)
        if device_ids:
            payload["deviceId"] = list(device_ids)

        response = self.client.post(BATCH_STATUS_ENDPOINT, payload)
        if not self.client.check_response(response):
            return response

        states = extract_device_states(response.get("data"))
        if states is None:
            self.logger.warning("batch_status_unexpected_payload")
            return response

        counts = {"ONLINE": 0, "OFFLINE": 0, "UNACTIVE": 0}
        for state in states:
            if state.status in counts:
                counts[state.status] += 1
            self.logger.info(
                "device_status",
                device_name=state.device_name or "unknown",
                device_id=state.device_id or "unknown",
                status=status_label(state.status),
                updated_at=format_timestamp(state.timestamp) if state.timestamp else "unknown",
            )
        self.logger.info(
            "batch_status_summary",
            devices=len(states),
            online=counts["ONLINE"],
            offline=counts["OFFLINE"],
            inactive=counts["UNACTIVE"],
        )
        return response

    def send_rrpc_message(
        self,
        device_name: str,
        product_key: str,
        message: str,
        timeout: int = DEFAULT_RRPC_TIMEOUT_MS,
    ) -> dict[str, Any]:
        if not device_name:
            raise InvalidArgumentError("deviceName is required")
        if not product_key:
            raise InvalidArgumentError("productKey is required")
        if not message:
            raise InvalidArgumentError("message is required")

        payload: dict[str, Any] = {
            "deviceName": device_name,
            "productKey": product_key,
            "requestBase64Byte": encode_message(message),
        }
        if timeout > 0:
            payload["timeout"] = timeout

        response = self.client.post(RRPC_ENDPOINT, payload)
        if self.client.check_response(response):
            try:
                reply = decode_rrpc_payload(response)
            except ValueError as exc:
                self.logger.error("rrpc_reply_decode_failed", device_name=device_name, error=str(exc))
                return response
            if reply is None:
                self.logger.warning("rrpc_reply_missing", device_name=device_name)
            else:
                self.logger.info(
                    "rrpc_message_sent",
                    device_name=device_name,
                    reply=reply,
                    reply_is_json=_is_json_object(reply),
                )
        return response

    def send_custom_command(self, device_name: str, message: str) -> dict[str, Any]:
        if not device_name:
            raise InvalidArgumentError("deviceName is required")
        if not message:
            raise InvalidArgumentError("message is required")

        payload = {"deviceName": device_name, "messageContent": encode_message(message)}
        response = self.client.post(CUSTOM_COMMAND_ENDPOINT, payload)
        if self.client.check_response(response):
            self.logger.info("custom_command_sent", device_name=device_name, data=response.get("data"))
        else:
            self.logger.error(
                "custom_command_failed",
                device_name=device_name,
                error_message=error_message(response) or "unknown error",
            )
        return response


def extract_device_states(data: Any) -> list[DeviceState] | None:
    """Batch status ``data`` is either a list of states or an object with a ``devices`` list.

    Returns None when ``data`` has neither shape or an entry can't be parsed.
    """
    if isinstance(data, dict):
        data = data.get("devices")
    if not isinstance(data, list):
        return None
    try:
        return [DeviceState.model_validate(item) for item in data if isinstance(item, dict)]
    except ValidationError:
        return None


def _is_json_object(text: str) -> bool:
    try:
        return isinstance(json.loads(text), dict)
    except ValueError:
        return False
