"""Debug-mode DOM snapshots with a light structural analysis."""

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from loguru import logger

from ..constants import Diagnostics
from ..selector.models import SelectorSpec, SelectorStrategy
from .session import timestamp_slug

if TYPE_CHECKING:
    from .session import BrowserSession

_TAG_PATTERNS = {
    "buttons": re.compile(r"<button\b", re.IGNORECASE),
    "inputs": re.compile(r"<input\b", re.IGNORECASE),
    "forms": re.compile(r"<form\b", re.IGNORECASE),
    "links": re.compile(r"<a\b", re.IGNORECASE),
    "tables": re.compile(r"<table\b", re.IGNORECASE),
}
_QUOTED = re.compile(r"""["']([^"']+)["']""")


class DomSnapshotter:
    """Writes ``{step}-{ts}.html`` plus a sibling ``-analysis.json``."""

    def __init__(
        self,
        debug_dir: Union[str, Path] = "debug",
        max_html_size: int = Diagnostics.MAX_HTML_SIZE,
    ):
        """
        Initialize DOM snapshotter.

        Args:
            debug_dir: Debug root; snapshots go to ``{debug_dir}/html``
            max_html_size: Maximum HTML dump size in characters
        """
        self.html_dir = Path(debug_dir) / "html"
        self.max_html_size = max_html_size

    async def capture(
        self,
        session: "BrowserSession",
        step: str,
        spec: Optional[SelectorSpec] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Capture the current document.

        Never raises; failures are logged and None is returned.

        Returns:
            Dictionary with ``html_file``, ``analysis_file`` and ``analysis``
        """
        try:
            html = await session.content()
            url = await session.current_location()

            if len(html) > self.max_html_size:
                html = html[: self.max_html_size] + "\n<!-- TRUNCATED -->"

            slug = timestamp_slug()
            safe_step = re.sub(r"[^\w.-]+", "_", step)
            self.html_dir.mkdir(parents=True, exist_ok=True)
            html_file = self.html_dir / f"{safe_step}-{slug}.html"
            analysis_file = self.html_dir / f"{safe_step}-{slug}-analysis.json"

            header = self._debug_header(step, slug, url, context or {})
            html_file.write_text(header + html, encoding="utf-8", errors="replace")

            analysis = self.analyze(html, step, spec)
            analysis_file.write_text(json.dumps(analysis, indent=2, default=str), encoding="utf-8")

            logger.debug(f"📄 HTML captured: {html_file}")
            return {
                "html_file": str(html_file),
                "analysis_file": str(analysis_file),
                "analysis": analysis,
            }
        except Exception as e:
            logger.warning(f"Failed to capture HTML for {step}: {e}")
            return None

    @staticmethod
    def _debug_header(step: str, slug: str, url: str, context: Dict[str, Any]) -> str:
        return (
            "<!-- DEBUG INFO -->\n"
            f"<!-- Step: {step} -->\n"
            f"<!-- Timestamp: {slug} -->\n"
            f"<!-- URL: {url} -->\n"
            f"<!-- Context: {json.dumps(context, default=str)} -->\n"
        )

    @staticmethod
    def analyze(html: str, step: str, spec: Optional[SelectorSpec] = None) -> Dict[str, Any]:
        """
        Count interactive elements and check which candidates show up in the markup.

        This is a structural count, not a parse: it answers "is it worth
        looking here" questions while tuning the selector catalog.
        """
        lowered = html.lower()
        counts = {name: len(pattern.findall(html)) for name, pattern in _TAG_PATTERNS.items()}

        analysis: Dict[str, Any] = {
            "step": step,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "size": len(html),
            "elements": counts,
            "has_test_ids": "data-testid" in lowered,
            "has_aria_labels": "aria-label" in lowered,
            "has_roles": "role=" in lowered,
        }
        if spec is not None:
            analysis["selector"] = spec.name
            analysis["candidates"] = [
                {"candidate": c.describe(), "in_markup": _appears(c.strategy, c.expression, lowered)}
                for c in spec.candidates
            ]
        return analysis


def _appears(strategy: SelectorStrategy, expression: str, lowered_html: str) -> bool:
    if strategy is SelectorStrategy.TEXT:
        return expression.lower() in lowered_html
    literals: List[str] = _QUOTED.findall(expression)
    if not literals:
        # Bare tag or class selector; only the leading token can be checked.
        token = re.split(r"[\s\[:.#>]", expression.strip("/"), maxsplit=1)[0]
        return bool(token) and f"<{token.lower()}" in lowered_html
    return all(literal.lower() in lowered_html for literal in literals)
