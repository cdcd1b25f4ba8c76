"""Structured logging module using structlog."""

from .structured_logger import (
    configure_logging,
    bind_context,
    clear_context,
)

__all__ = [
    "configure_logging",
    "bind_context",
    "clear_context",
]
