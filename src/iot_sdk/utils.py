"""Formatting and validation helpers shared by the device layer and the CLI."""

import re
import time
import traceback
from datetime import datetime

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")
_DEVICE_NAME_RE = re.compile(r"^[A-Za-z0-9_]{4,32}$")

DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

STATUS_LABELS = {
    "ONLINE": "online",
    "OFFLINE": "offline",
    "UNACTIVE": "inactive",
}


def is_valid_uuid(value: str | None) -> bool:
    if not value:
        return False
    return bool(_UUID_RE.match(value.lower()))


def is_valid_device_name(name: str | None) -> bool:
    """4-32 characters of letters, digits and underscores, not starting with an underscore."""
    if not name:
        return False
    return not name.startswith("_") and bool(_DEVICE_NAME_RE.match(name))


def exception_to_string(exc: BaseException | None) -> str:
    if exc is None:
        return ""
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def status_label(status: str | None) -> str:
    if status is None:
        return "unknown"
    return STATUS_LABELS.get(status, status)


def format_timestamp(timestamp_ms: int | None, fmt: str | None = None) -> str:
    """Render an epoch-milliseconds timestamp in local time."""
    if not timestamp_ms or timestamp_ms <= 0:
        return "unknown time"
    try:
        moment = datetime.fromtimestamp(timestamp_ms / 1000)
    except (OverflowError, OSError, ValueError):
        return "unknown time"
    return moment.strftime(fmt or DEFAULT_TIME_FORMAT)


def format_duration(start_ms: int, end_ms: int = 0) -> str:
    """Human readable span between two epoch-millisecond timestamps.

    ``end_ms`` of 0 means now. Spans under a minute are shown in seconds,
    longer ones as days/hours/minutes.
    """
    if start_ms <= 0:
        return "unknown duration"

    end = end_ms if end_ms > 0 else int(time.time() * 1000)
    duration_ms = end - start_ms
    if duration_ms < 0:
        return "invalid duration"

    seconds = duration_ms // 1000
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    parts: list[str] = []
    if days > 0:
        parts.append(f"{days}d")
        hours %= 24
    if hours > 0 or days > 0:
        parts.append(f"{hours}h")
        minutes %= 60
    if minutes > 0 or hours > 0 or days > 0:
        parts.append(f"{minutes}m")
    else:
        parts.append(f"{seconds}s")
    return " ".join(parts)


def format_offline_duration(duration_ms: int) -> str:
    minutes = max(duration_ms, 0) // (1000 * 60)
    if minutes < 60:
        return f"about {minutes} minutes"
    hours = minutes // 60
    if hours < 24:
        return f"about {hours} hours {minutes % 60} minutes"
    return f"about {hours // 24} days {hours % 24} hours"
