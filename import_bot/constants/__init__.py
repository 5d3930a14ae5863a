"""Unified constants and configuration values for Import-Bot.

All classes and constants can be imported directly from this package:
    from import_bot.constants import Timeouts, Retries, HEADER_CONTRACTS
"""

from .imports import (
    AUTHENTICATED_URL_PATTERNS,
    CSV_SUFFIX,
    DEFAULT_IMPORT_ORDER,
    HEADER_CONTRACTS,
    IMPORT_PAGE_PATH,
)
from .resilience import Diagnostics, Retries
from .timing import Delays, Intervals, Timeouts

__all__ = [
    "AUTHENTICATED_URL_PATTERNS",
    "CSV_SUFFIX",
    "DEFAULT_IMPORT_ORDER",
    "HEADER_CONTRACTS",
    "IMPORT_PAGE_PATH",
    "Delays",
    "Diagnostics",
    "Intervals",
    "Retries",
    "Timeouts",
]
