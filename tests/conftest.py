"""Pytest configuration and common fixtures."""

import asyncio
import sys
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from import_bot.core.config import ImportSettings
from import_bot.selector.models import SelectorCandidate

SETTINGS_ENV = tuple(name.upper() for name in ImportSettings.model_fields) + ("IMPORT_USERNAME",)


def pytest_configure(config):
    """Configure pytest environment before tests run."""
    warnings.filterwarnings("ignore", message="coroutine.*was never awaited")


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Isolate every test from the caller's environment and working directory."""
    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def write_csv(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def csv_dir(tmp_path) -> Path:
    """Directory holding one valid template per import type."""
    data = tmp_path / "data"
    write_csv(data / "schemes-template.csv", "name,scheme_code\nAlpha,A1\nBeta,B2\n")
    write_csv(
        data / "projects-template.csv",
        "name,order_reference,start_date\nBuild,PO-1,2024-01-01\n",
    )
    write_csv(
        data / "inspectors-template.csv",
        '"Full Name","Email Address"\nAda,ada@example.com\nBob,bob@example.com\nCy,cy@example.com\n',
    )
    return data


@pytest.fixture
def settings(tmp_path) -> ImportSettings:
    """Settings with short timeouts, pointing every directory at ``tmp_path``."""
    return ImportSettings(
        _env_file=None,
        base_url="https://app.example.test",
        username="operator@example.com",
        password="secret",
        csv_file_path=str(tmp_path / "data"),
        navigation_timeout=1_000,
        browser_timeout=500,
        validation_timeout=500,
        file_upload_timeout=500,
        import_completion_timeout=500,
        auth_timeout=1_000,
        auth_check_interval=100,
        max_retries=2,
        retry_delay=100,
        screenshots_dir=str(tmp_path / "screenshots"),
        logs_dir=str(tmp_path / "logs"),
        debug_dir=str(tmp_path / "debug"),
    )


class FakeSession:
    """
    In-memory browser session.

    ``elements`` maps candidate expressions to handles. ``delays`` holds
    per-expression waits before answering; ``errors`` holds per-expression
    exceptions raised by the query.
    """

    def __init__(
        self,
        elements: Optional[Dict[str, Any]] = None,
        delays: Optional[Dict[str, float]] = None,
        errors: Optional[Dict[str, Exception]] = None,
        location: str = "https://app.example.test/login",
    ):
        self.elements = elements or {}
        self.delays = delays or {}
        self.errors = errors or {}
        self.location = location
        self.queries: List[str] = []
        self.clicked: List[Any] = []
        self.typed: List[tuple] = []
        self.uploaded: List[tuple] = []
        self.navigated: List[str] = []
        self.images: List[str] = []
        self.html = "<html><head></head><body><button>Import</button></body></html>"
        self.rows: List[Dict[str, str]] = []

    async def navigate(self, url: str, timeout: float = 1.0) -> None:
        self.navigated.append(url)
        self.location = url

    async def find_candidate(
        self, candidate: SelectorCandidate, timeout: float, visible: bool = True
    ) -> Optional[Any]:
        self.queries.append(candidate.expression)
        if candidate.expression in self.errors:
            raise self.errors[candidate.expression]
        delay = self.delays.get(candidate.expression, 0.0)
        if delay:
            await asyncio.sleep(delay)
        return self.elements.get(candidate.expression)

    async def click(self, handle: Any) -> None:
        self.clicked.append(handle)

    async def type(self, handle: Any, text: str) -> None:
        self.typed.append((handle, text))

    async def upload(self, handle: Any, file_path: str) -> None:
        self.uploaded.append((handle, file_path))

    async def wait_for_condition(
        self, predicate, timeout: float, interval: float = 0.01, stop_event=None
    ) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while loop.time() < deadline:
            if stop_event is not None and stop_event.is_set():
                return False
            if await predicate():
                return True
            await asyncio.sleep(interval)
        return False

    async def current_location(self) -> str:
        return self.location

    async def capture_image(self, label: str) -> str:
        path = f"screenshots/{label}.png"
        self.images.append(label)
        return path

    async def content(self) -> str:
        return self.html

    async def table_rows(self) -> List[Dict[str, str]]:
        return self.rows


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def make_session():
    """Factory for configured fake sessions."""
    return FakeSession
