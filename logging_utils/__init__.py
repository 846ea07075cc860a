"""Logging utilities for the order assembly service."""

from .config import get_component_logger, mask_secret, setup_service_logger

__all__ = [
    "setup_service_logger",
    "get_component_logger",
    "mask_secret",
]
