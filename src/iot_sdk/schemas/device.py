from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class PlatformModel(BaseModel):
    """Platform payloads use camelCase keys and may carry fields we don't model."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "allow",
        # deviceId and status sometimes arrive as numbers
        "coerce_numbers_to_str": True,
    }


class RegisteredDevice(PlatformModel):
    product_key: str | None = None
    device_name: str | None = None
    nick_name: str | None = None
    device_id: str | None = None
    device_secret: str | None = None


class DeviceDetail(PlatformModel):
    device_id: str | None = None
    device_name: str | None = None
    status: str | None = None


class DeviceState(PlatformModel):
    device_id: str | None = None
    device_name: str | None = None
    status: str | None = None
    timestamp: int | None = None
