"""Browser lifecycle and context management for import automation."""

import asyncio
from typing import Any, Dict, Optional

from loguru import logger
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from ..constants import Timeouts
from ..core.config.settings import ImportSettings
from .session import PlaywrightSession

VIEWPORT = {"width": 1280, "height": 720}


class BrowserManager:
    """Manages browser lifecycle and the single page used by a run."""

    def __init__(self, settings: ImportSettings):
        """
        Initialize browser manager.

        Args:
            settings: Import settings (headless flag, timeouts, directories)
        """
        self.settings = settings
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    async def start(self) -> None:
        """Launch browser and create context."""
        if self.browser is not None:
            logger.warning("Browser already started")
            return

        try:
            self.playwright = await async_playwright().start()

            launch_options: Dict[str, Any] = {
                "headless": self.settings.headless,
                "args": ["--no-sandbox", "--disable-dev-shm-usage"],
            }
            self.browser = await self.playwright.chromium.launch(**launch_options)
            self.context = await self.browser.new_context(viewport=VIEWPORT)
            self.context.set_default_timeout(self.settings.browser_timeout)
            self.context.set_default_navigation_timeout(self.settings.navigation_timeout)

            logger.info(f"🌐 Browser started (headless={self.settings.headless})")
        except Exception:
            # Clean up partial resources on error
            await self.close()
            raise

    async def new_page(self) -> Page:
        """
        Create the run page.

        Raises:
            RuntimeError: If browser context is not initialized
        """
        if self.context is None:
            raise RuntimeError("Browser context is not initialized. Call start() first.")
        self.page = await self.context.new_page()
        return self.page

    async def new_session(self) -> PlaywrightSession:
        """Create a page wrapped as a browser session."""
        page = await self.new_page()
        return PlaywrightSession(
            page,
            screenshots_dir=self.settings.screenshots_dir,
            navigation_timeout=self.settings.navigation_timeout / 1000,
        )

    async def close(self, timeout: float = Timeouts.BROWSER_CLOSE_SECONDS) -> None:
        """Clean up browser resources, bounded by ``timeout`` seconds."""
        try:
            await asyncio.wait_for(self._close(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Browser did not close within {timeout:.0f}s")
        logger.info("Browser resources cleaned up")

    async def _close(self) -> None:
        if self.context:
            await self.context.close()
            self.context = None
            self.page = None
            logger.debug("Browser context closed")

        if self.browser:
            await self.browser.close()
            self.browser = None
            logger.debug("Browser closed")

        if self.playwright:
            await self.playwright.stop()
            self.playwright = None

    async def __aenter__(self) -> "BrowserManager":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
