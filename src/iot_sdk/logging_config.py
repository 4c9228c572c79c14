import logging

import structlog

from iot_sdk.config import settings


def configure_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Install the structlog processor chain used by the SDK and its CLI.

    The SDK itself never calls this; host applications that already configure
    structlog keep their own setup.
    """
    level = level or settings.log_level
    log_format = log_format or settings.log_format
    log_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
            if log_format == "console"
            else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )
