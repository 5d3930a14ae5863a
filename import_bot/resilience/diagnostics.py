"""Screenshot and error-context capture that never interrupts the run."""

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from loguru import logger

from ..browser.session import timestamp_slug
from ..constants import Diagnostics

if TYPE_CHECKING:
    from ..browser.session import BrowserSession


class DiagnosticCapture:
    """Capture screenshots and error records."""

    def __init__(
        self,
        session: Optional["BrowserSession"] = None,
        screenshots_dir: Union[str, Path] = "screenshots",
        enabled: bool = True,
        max_captures: int = Diagnostics.MAX_CAPTURES,
    ):
        """
        Initialize diagnostic capture.

        Args:
            session: Browser session (may be attached later)
            screenshots_dir: Directory for error records
            enabled: When False every capture is a no-op
            max_captures: Number of capture paths kept in memory
        """
        self.session = session
        self.screenshots_dir = Path(screenshots_dir)
        self.enabled = enabled
        self.max_captures = max_captures
        self.captures: List[str] = []
        self.errors: List[Dict[str, Any]] = []

    def attach(self, session: "BrowserSession") -> None:
        self.session = session

    async def capture(self, label: str) -> Optional[str]:
        """
        Take a screenshot named ``{label}-{timestamp}.png``.

        Returns:
            Path of the image, or None when disabled or capture failed
        """
        if not self.enabled or self.session is None:
            return None
        try:
            path = await self.session.capture_image(label)
        except Exception as e:
            logger.warning(f"Failed to capture screenshot '{label}': {e}")
            return None

        self.captures.append(path)
        if len(self.captures) > self.max_captures:
            self.captures.pop(0)
        logger.info(f"📸 Screenshot saved: {path}")
        return path

    async def capture_error(
        self,
        label: str,
        error: BaseException,
        context: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Capture a screenshot plus a JSON record describing ``error``.

        Args:
            label: Capture label (e.g. ``error-import-02-projects``)
            error: Exception that occurred
            context: Additional context (stage, import type...)

        Returns:
            Error record with capture paths
        """
        record: Dict[str, Any] = {
            "label": label,
            "error_type": type(error).__name__,
            "error_message": str(error),
            "context": context or {},
        }
        if hasattr(error, "to_dict"):
            record["error"] = error.to_dict()

        if not self.enabled:
            return record

        screenshot = await self.capture(label)
        if screenshot:
            record["screenshot"] = screenshot
        if self.session is not None:
            try:
                record["url"] = await self.session.current_location()
            except Exception as e:
                logger.debug(f"Could not read current location: {e}")

        try:
            self.screenshots_dir.mkdir(parents=True, exist_ok=True)
            json_path = self.screenshots_dir / f"{label}-{timestamp_slug()}.json"
            json_path.write_text(json.dumps(record, indent=2, default=str), encoding="utf-8")
            record["record_file"] = str(json_path)
        except OSError as e:
            logger.warning(f"Failed to write error record '{label}': {e}")

        self.errors.append(record)
        return record
