"""Timing-related constants (timeouts, intervals, delays)."""

from typing import Final


class Timeouts:
    """Timeout values - MILLISECONDS for Playwright, SECONDS noted separately."""

    # Playwright timeouts (milliseconds)
    BROWSER: Final[int] = 30_000
    NAVIGATION: Final[int] = 10_000
    FILE_UPLOAD: Final[int] = 60_000
    VALIDATION: Final[int] = 15_000
    IMPORT_COMPLETION: Final[int] = 120_000
    SELECTOR_WAIT: Final[int] = 10_000

    # Human intervention windows (milliseconds)
    AUTHENTICATION: Final[int] = 180_000
    MANUAL_STEP: Final[int] = 120_000

    # Bounded waits on shutdown (seconds)
    SNAPSHOT_DRAIN_SECONDS: Final[float] = 10.0
    BROWSER_CLOSE_SECONDS: Final[float] = 10.0


class Intervals:
    """Interval values in SECONDS."""

    INTERVENTION_CHECK: Final[float] = 2.0
    INTERVENTION_PROGRESS_EVERY: Final[int] = 5
    CONDITION_POLL: Final[float] = 0.5
    RECORDER_SAMPLE: Final[float] = 5.0


class Delays:
    """UI settle delays in SECONDS."""

    AFTER_NAVIGATION: Final[float] = 1.0
    AFTER_CLICK: Final[float] = 0.5
    AFTER_UPLOAD: Final[float] = 1.0
    AFTER_LOGIN: Final[float] = 3.0
