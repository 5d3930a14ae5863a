"""Resilience-related constants (retries, backoff, bounded buffers)."""

from typing import Final


class Retries:
    """Retry configuration."""

    MAX_ATTEMPTS: Final[int] = 3
    MAX_ATTEMPTS_LIMIT: Final[int] = 10
    BASE_DELAY_SECONDS: Final[float] = 1.0
    NAVIGATION_DELAY_SECONDS: Final[float] = 2.0
    UPLOAD_DELAY_SECONDS: Final[float] = 2.0
    BACKOFF_FACTOR: Final[float] = 1.0


class Diagnostics:
    """Diagnostic capture limits."""

    MAX_CAPTURES: Final[int] = 200
    MAX_HTML_SIZE: Final[int] = 5 * 1024 * 1024
    MAX_RECORDED_EVENTS: Final[int] = 1_000
