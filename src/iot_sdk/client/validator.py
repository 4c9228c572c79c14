from collections.abc import Mapping
from typing import Any

import structlog

logger = structlog.get_logger()


def _has_success_flag(response: Any) -> bool:
    # Only a boolean True counts; "true", 1 and a missing field all fail closed.
    return isinstance(response, Mapping) and response.get("success") is True


def error_message(response: Any) -> str | None:
    """Return the server's ``errorMessage`` for an unsuccessful response, if it sent one."""
    if not isinstance(response, Mapping) or _has_success_flag(response):
        return None
    message = response.get("errorMessage")
    return str(message) if message is not None else None


def is_successful(response: Any, log: Any = None) -> bool:
    success = _has_success_flag(response)
    if not success:
        message = error_message(response)
        if message is not None:
            (log or logger).warning("api_call_failed", error_message=message)
    return success
