"""Logging configuration shared by the order assembly service components."""

import sys
from typing import Optional

from loguru import logger as loguru_logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[service]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[service]} | {name}:{function}:{line} - {message}"


def setup_service_logger(
    service_name: str,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    json_logs: bool = False,
):
    """Configure loguru for a service and return a logger bound to it.

    Existing sinks are replaced, so calling this again (for example from the
    application lifespan after settings are loaded) reconfigures in place.

    Args:
        service_name: Name of the service (e.g. 'order-assembly-service')
        log_level: Minimum level for every sink
        log_file: Optional path of a rotating log file
        json_logs: Emit one JSON document per record instead of the console format

    Returns:
        logger: loguru logger with ``service`` bound
    """
    loguru_logger.remove()
    loguru_logger.configure(extra={"service": service_name})

    if json_logs:
        loguru_logger.add(sys.stderr, level=log_level, serialize=True, enqueue=True)
    else:
        loguru_logger.add(
            sys.stderr,
            level=log_level,
            format=CONSOLE_FORMAT,
            colorize=True,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )

    if log_file:
        loguru_logger.add(
            log_file,
            level=log_level,
            format=FILE_FORMAT,
            serialize=json_logs,
            rotation="10 MB",
            retention="1 week",
            compression="gz",
        )

    return loguru_logger.bind(service=service_name)


def get_component_logger(service_name: str, component: str):
    """Get a logger carrying both the service and the component name.

    Unlike ``setup_service_logger`` this does not touch the configured sinks.

    Args:
        service_name: Name of the service
        component: Sub-system emitting the records (e.g. 'kafka', 'catalog')

    Returns:
        logger: loguru logger bound to ``service`` and ``component``
    """
    return loguru_logger.bind(service=service_name, component=component)


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """Render a credential for logs, keeping only its last characters."""
    if not value:
        return "<none>"
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]
