"""Tests for the Playwright-backed browser session."""

import asyncio
import time
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from import_bot.browser.session import PlaywrightSession, timestamp_slug
from import_bot.selector import css, text, xpath


@pytest.fixture
def page():
    page = MagicMock()
    locator = MagicMock()
    locator.wait_for = AsyncMock()
    locator.click = AsyncMock()
    locator.fill = AsyncMock()
    locator.set_input_files = AsyncMock()
    page.locator.return_value.first = locator
    page.get_by_text.return_value.first = locator
    page.goto = AsyncMock()
    page.screenshot = AsyncMock()
    page.content = AsyncMock(return_value="<html></html>")
    page.evaluate = AsyncMock(return_value=[{"Type": "schemes"}])
    page.url = "https://app.example.test/dashboard"
    return page


def test_timestamp_slug_is_file_safe():
    moment = datetime(2024, 3, 5, 14, 7, 9, 123456, tzinfo=timezone.utc)
    assert timestamp_slug(moment) == "2024-03-05T14-07-09-123456Z"


class TestPlaywrightSession:
    """Tests for PlaywrightSession."""

    @pytest.mark.asyncio
    async def test_css_candidate_waits_for_visibility(self, page):
        session = PlaywrightSession(page)

        handle = await session.find_candidate(css("#submit"), 2.0)

        page.locator.assert_called_once_with("#submit")
        handle.wait_for.assert_awaited_once_with(state="visible", timeout=2000.0)

    @pytest.mark.asyncio
    async def test_xpath_and_text_candidates(self, page):
        session = PlaywrightSession(page)

        await session.find_candidate(xpath("//button"), 1.0, visible=False)
        await session.find_candidate(text("Next"), 1.0)

        page.locator.assert_called_once_with("xpath=//button")
        page.get_by_text.assert_called_once_with("Next")
        first = page.locator.return_value.first
        assert first.wait_for.await_args_list[0].kwargs["state"] == "attached"

    @pytest.mark.asyncio
    async def test_timeout_returns_none(self, page):
        page.locator.return_value.first.wait_for.side_effect = PlaywrightTimeoutError("timeout")
        session = PlaywrightSession(page)

        assert await session.find_candidate(css("#missing"), 0.1) is None

    @pytest.mark.asyncio
    async def test_interactions_delegate_to_locator(self, page):
        session = PlaywrightSession(page)
        handle = page.locator.return_value.first

        await session.click(handle)
        await session.type(handle, "user@example.com")
        await session.upload(handle, "/data/schemes.csv")

        handle.click.assert_awaited_once()
        handle.fill.assert_awaited_once_with("user@example.com")
        handle.set_input_files.assert_awaited_once_with("/data/schemes.csv")

    @pytest.mark.asyncio
    async def test_navigate_converts_seconds(self, page):
        session = PlaywrightSession(page, navigation_timeout=5.0)

        await session.navigate("https://app.example.test")

        page.goto.assert_awaited_once_with(
            "https://app.example.test", wait_until="networkidle", timeout=5000.0
        )

    @pytest.mark.asyncio
    async def test_capture_image_path(self, page, tmp_path):
        session = PlaywrightSession(page, screenshots_dir=tmp_path / "shots")

        path = await session.capture_image("01-login-complete")

        assert path.startswith(str(tmp_path / "shots" / "01-login-complete-"))
        assert path.endswith(".png")
        page.screenshot.assert_awaited_once_with(path=path, full_page=True)

    @pytest.mark.asyncio
    async def test_wait_for_condition(self, page):
        session = PlaywrightSession(page)
        calls = {"n": 0}

        async def predicate():
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("detached")
            return calls["n"] >= 3

        assert await session.wait_for_condition(predicate, 1.0, interval=0.01)
        assert calls["n"] == 3

    @pytest.mark.asyncio
    async def test_wait_for_condition_times_out(self, page):
        session = PlaywrightSession(page)

        async def never():
            return False

        assert not await session.wait_for_condition(never, 0.05, interval=0.01)

    @pytest.mark.asyncio
    async def test_wait_for_condition_stops_on_signal(self, page):
        session = PlaywrightSession(page)
        stop = asyncio.Event()

        async def never():
            return False

        asyncio.get_running_loop().call_later(0.1, stop.set)
        started = time.monotonic()
        result = await session.wait_for_condition(never, 5.0, interval=2.0, stop_event=stop)

        assert result is False
        assert time.monotonic() - started < 1.0

    @pytest.mark.asyncio
    async def test_location_content_and_rows(self, page):
        session = PlaywrightSession(page)

        assert await session.current_location() == "https://app.example.test/dashboard"
        assert await session.content() == "<html></html>"
        assert await session.table_rows() == [{"Type": "schemes"}]

    @pytest.mark.asyncio
    async def test_table_rows_non_list_is_empty(self, page):
        page.evaluate.return_value = None
        assert await PlaywrightSession(page).table_rows() == []
