"""
Utilities: logging configuration and async helpers.
"""

from .async_utils import call_with_timeout
from .logging_config import get_logger, set_request_context, setup_logging

__all__ = [
    "call_with_timeout",
    "get_logger",
    "set_request_context",
    "setup_logging",
]
