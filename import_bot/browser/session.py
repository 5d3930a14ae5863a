"""Browser collaborator consumed by the automation core."""

import asyncio
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union

from loguru import logger
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..constants import Intervals, Timeouts
from ..selector.models import SelectorCandidate, SelectorStrategy

Predicate = Callable[[], Awaitable[bool]]

# Reads the first table on the page into a list of header -> cell mappings.
TABLE_ROWS_SCRIPT = """
() => {
  const rows = Array.from(document.querySelectorAll('table tr'));
  if (rows.length < 2) return [];
  const headers = Array.from(rows[0].cells).map(cell => cell.textContent.trim());
  return rows.slice(1).map(row => {
    const cells = Array.from(row.cells);
    const record = {};
    headers.forEach((header, i) => {
      record[header] = cells[i] ? cells[i].textContent.trim() : '';
    });
    return record;
  });
}
"""


def timestamp_slug(moment: Optional[datetime] = None) -> str:
    """ISO timestamp safe for file names (``:`` and ``.`` replaced by ``-``)."""
    moment = moment or datetime.now(timezone.utc)
    return moment.isoformat().replace("+00:00", "Z").replace(":", "-").replace(".", "-")


async def _pause(seconds: float, stop_event: Optional[asyncio.Event]) -> None:
    if stop_event is None:
        await asyncio.sleep(seconds)
        return
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        pass


class BrowserSession(Protocol):
    """Capabilities the core needs from the browser; handles stay opaque."""

    async def navigate(self, url: str, timeout: float = ...) -> None: ...

    async def find_candidate(
        self, candidate: SelectorCandidate, timeout: float, visible: bool = True
    ) -> Optional[Any]: ...

    async def click(self, handle: Any) -> None: ...

    async def type(self, handle: Any, text: str) -> None: ...

    async def upload(self, handle: Any, file_path: str) -> None: ...

    async def wait_for_condition(
        self,
        predicate: Predicate,
        timeout: float,
        interval: float = ...,
        stop_event: Optional[asyncio.Event] = None,
    ) -> bool: ...

    async def current_location(self) -> str: ...

    async def capture_image(self, label: str) -> str: ...

    async def content(self) -> str: ...

    async def table_rows(self) -> List[Dict[str, str]]: ...


class PlaywrightSession:
    """:class:`BrowserSession` backed by a Playwright page."""

    def __init__(
        self,
        page: Page,
        screenshots_dir: Union[str, Path] = "screenshots",
        navigation_timeout: float = Timeouts.NAVIGATION / 1000,
    ):
        """
        Initialize Playwright session.

        Args:
            page: Playwright page object (owned by the browser manager)
            screenshots_dir: Directory for captured images
            navigation_timeout: Default navigation timeout in seconds
        """
        self.page = page
        self.screenshots_dir = Path(screenshots_dir)
        self.navigation_timeout = navigation_timeout

    def _locator(self, candidate: SelectorCandidate) -> Locator:
        if candidate.strategy is SelectorStrategy.XPATH:
            return self.page.locator(f"xpath={candidate.expression}").first
        if candidate.strategy is SelectorStrategy.TEXT:
            return self.page.get_by_text(candidate.expression).first
        return self.page.locator(candidate.expression).first

    async def navigate(self, url: str, timeout: Optional[float] = None) -> None:
        timeout = timeout or self.navigation_timeout
        logger.debug(f"Navigating to {url}")
        await self.page.goto(url, wait_until="networkidle", timeout=timeout * 1000)

    async def find_candidate(
        self, candidate: SelectorCandidate, timeout: float, visible: bool = True
    ) -> Optional[Locator]:
        """
        Wait up to ``timeout`` seconds for ``candidate`` to match.

        Returns:
            Locator for the first match, or None on timeout

        Raises:
            playwright.async_api.Error: If the expression itself is invalid
        """
        locator = self._locator(candidate)
        try:
            await locator.wait_for(
                state="visible" if visible else "attached", timeout=max(timeout, 0.001) * 1000
            )
        except PlaywrightTimeoutError:
            return None
        return locator

    async def click(self, handle: Locator) -> None:
        await handle.click()

    async def type(self, handle: Locator, text: str) -> None:
        await handle.fill(text)

    async def upload(self, handle: Locator, file_path: str) -> None:
        await handle.set_input_files(file_path)

    async def wait_for_condition(
        self,
        predicate: Predicate,
        timeout: float,
        interval: float = Intervals.CONDITION_POLL,
        stop_event: Optional[asyncio.Event] = None,
    ) -> bool:
        """
        Poll ``predicate`` until it holds or ``timeout`` seconds pass.

        Returns False early once ``stop_event`` is set; callers tell a stop
        apart from a timeout by checking the event.
        """
        deadline = time.monotonic() + timeout
        while True:
            if stop_event is not None and stop_event.is_set():
                return False
            try:
                if await predicate():
                    return True
            except Exception as e:
                logger.debug(f"Condition check failed: {e}")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            await _pause(min(interval, remaining), stop_event)

    async def current_location(self) -> str:
        return self.page.url

    async def capture_image(self, label: str) -> str:
        self.screenshots_dir.mkdir(parents=True, exist_ok=True)
        path = self.screenshots_dir / f"{label}-{timestamp_slug()}.png"
        await self.page.screenshot(path=str(path), full_page=True)
        return str(path)

    async def content(self) -> str:
        return await self.page.content()

    async def table_rows(self) -> List[Dict[str, str]]:
        rows = await self.page.evaluate(TABLE_ROWS_SCRIPT)
        return rows if isinstance(rows, list) else []
