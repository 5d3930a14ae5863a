"""Optional recorder for operator clicks during a run."""

import asyncio
import json
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, Optional, Union

from loguru import logger
from playwright.async_api import Page

from ..constants import Diagnostics, Intervals
from .session import timestamp_slug

BINDING_NAME = "__importBotRecord"

CLICK_LISTENER_SCRIPT = """
(() => {
  document.addEventListener('click', (event) => {
    const el = event.target;
    if (!window.%(binding)s) return;
    window.%(binding)s({
      timestamp: new Date().toISOString(),
      tagName: el.tagName,
      text: (el.textContent || '').trim().slice(0, 200),
      className: typeof el.className === 'string' ? el.className : '',
      id: el.id || null,
      href: el.href || null,
      url: window.location.href,
    });
  }, true);
})();
""" % {"binding": BINDING_NAME}


class InteractionRecorder:
    """
    Collect click events into a bounded buffer and flush them to JSONL.

    Events are appended only by the exposed binding and consumed only by the
    sampler, which never touches pipeline state.
    """

    def __init__(
        self,
        debug_dir: Union[str, Path] = "debug",
        max_events: int = Diagnostics.MAX_RECORDED_EVENTS,
        sample_interval: float = Intervals.RECORDER_SAMPLE,
    ):
        """
        Initialize interaction recorder.

        Args:
            debug_dir: Directory for ``interactions-{ts}.jsonl``
            max_events: Buffer bound; oldest events are dropped when full
            sample_interval: Seconds between flushes
        """
        self.output_file = Path(debug_dir) / f"interactions-{timestamp_slug()}.jsonl"
        self.sample_interval = sample_interval
        self._events: Deque[Dict[str, Any]] = deque(maxlen=max_events)
        self._sampler: Optional[asyncio.Task] = None
        self.recorded = 0

    def record(self, source: Any, event: Dict[str, Any]) -> None:
        """Binding callback: append one event (oldest dropped when full)."""
        self._events.append(event)

    async def start(self, page: Page) -> None:
        """Install the click listener on ``page`` and start the sampler."""
        await page.expose_binding(BINDING_NAME, self.record)
        await page.add_init_script(CLICK_LISTENER_SCRIPT)
        self._sampler = asyncio.ensure_future(self._sample_loop())
        logger.info(f"🎬 Recording interactions to {self.output_file}")

    async def _sample_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sample_interval)
            self.drain()

    def drain(self) -> int:
        """Flush buffered events to the JSONL file; returns the number written."""
        if not self._events:
            return 0
        batch = []
        while self._events:
            batch.append(self._events.popleft())
        try:
            self.output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.output_file, "a", encoding="utf-8") as f:
                for event in batch:
                    f.write(json.dumps(event, default=str) + "\n")
        except OSError as e:
            logger.warning(f"Failed to write interactions: {e}")
            return 0
        self.recorded += len(batch)
        for event in batch:
            logger.debug(f"Recorded click: {event.get('tagName')} \"{event.get('text', '')}\"")
        return len(batch)

    async def stop(self) -> None:
        """Stop the sampler and flush what is left."""
        if self._sampler is not None:
            self._sampler.cancel()
            try:
                await self._sampler
            except asyncio.CancelledError:
                pass
            self._sampler = None
        self.drain()
        if self.recorded:
            logger.info(f"🎬 Recorded {self.recorded} interactions → {self.output_file}")
