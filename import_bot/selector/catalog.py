"""Page selector catalog loaded from external configuration."""

from pathlib import Path
from typing import Any, Dict, Union

import yaml
from loguru import logger

from ..core.exceptions import ConfigurationError
from .models import SelectorSpec

DEFAULT_SELECTORS: Dict[str, Any] = {
    "version": "default",
    "login": {
        "email_input": [{"css": 'input[type="email"]'}, {"css": 'input[name="email"]'}],
        "password_input": [{"css": 'input[type="password"]'}, {"css": 'input[name="password"]'}],
        "sign_in_button": [{"css": 'button:has-text("Sign in")'}, {"css": 'button[type="submit"]'}],
    },
    "dashboard": {
        "authenticated_marker": [{"css": '[href*="dashboard"]'}, {"css": '[href*="import"]'}],
    },
    "import": {
        "import_button": [{"css": 'button:has-text("Import")'}, {"css": 'a:has-text("Import")'}],
        "type_modal": [{"text": "Select the file type"}],
        "type_radio": [
            {"css": 'input[type="radio"][value="{import_type}"]'},
            {"css": 'label:has-text("{import_type}") input[type="radio"]'},
            {"xpath": '//input[@type="radio" and @value="{import_type}"]'},
        ],
        "next_button": [
            {"css": 'button:has-text("Next")'},
            {"xpath": '//button[normalize-space()="Next"]'},
        ],
    },
    "upload": {
        "drop_zone": [{"text": "Drop or select file"}],
        "file_input": [{"css": 'input[type="file"]'}],
        "remove_file": [{"text": "Remove file"}],
    },
    "preview": {
        "validation_success": [{"text": "All data is valid and ready to import"}],
        "error_indicators": [
            {"css": '[class*="error"]'},
            {"css": '[class*="invalid"]'},
            {"text": "error"},
        ],
    },
    "confirmation": {
        "ready_text": [{"text": "Ready to import"}],
        "import_file_button": [
            {"css": 'button:has-text("Import File")'},
            {"xpath": '//button[contains(normalize-space(), "Import File")]'},
        ],
        "completion_indicators": [{"text": "completed"}, {"text": "success"}],
    },
}


class SelectorCatalog:
    """Resolve dot-notation paths (``upload.file_input``) to typed selector specs."""

    def __init__(self, selectors_file: Union[str, Path] = "config/selectors.yaml"):
        """
        Initialize selector catalog.

        Args:
            selectors_file: Path to selectors YAML file
        """
        self.selectors_file = Path(selectors_file)
        self._selectors: Dict[str, Any] = {}
        self._cache: Dict[str, SelectorSpec] = {}
        self._load_selectors()

    def _load_selectors(self) -> None:
        """Load selectors from YAML file."""
        try:
            if not self.selectors_file.exists():
                logger.warning(f"Selectors file not found: {self.selectors_file}")
                logger.info("Using default selectors")
                self._selectors = DEFAULT_SELECTORS
                return

            with open(self.selectors_file, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f)

            if not isinstance(loaded, dict):
                raise ValueError("top-level document must be a mapping")

            self._selectors = loaded
            logger.info(f"Selectors loaded (version: {loaded.get('version', 'unknown')})")

        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Failed to load selectors: {e}")
            logger.info("Falling back to default selectors")
            self._selectors = DEFAULT_SELECTORS

    @property
    def version(self) -> str:
        return str(self._selectors.get("version", "unknown"))

    def get(self, path: str, **params: Any) -> SelectorSpec:
        """
        Get selector spec by dot-notation path.

        Args:
            path: Dot-separated path (e.g., "import.type_radio")
            **params: Placeholder values (e.g., ``import_type="schemes"``)

        Returns:
            Selector spec with placeholders substituted

        Raises:
            ConfigurationError: If the path is unknown or malformed
        """
        spec = self._cache.get(path)
        if spec is None:
            spec = self._build(path)
            self._cache[path] = spec
        return spec.with_params(**params)

    def _build(self, path: str) -> SelectorSpec:
        value: Any = self._selectors
        for key in path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                value = self._lookup_default(path)
                break

        if not isinstance(value, list):
            raise ConfigurationError(
                f"Selector '{path}' must be a list of candidates", context={"selector": path}
            )
        try:
            return SelectorSpec.from_entries(path, value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(str(e), context={"selector": path}) from e

    def _lookup_default(self, path: str) -> Any:
        value: Any = DEFAULT_SELECTORS
        for key in path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                raise ConfigurationError(f"Unknown selector: {path}", context={"selector": path})
        logger.warning(f"Selector '{path}' missing from {self.selectors_file}, using default")
        return value

    def reload(self) -> None:
        """Reload selectors from file and clear cache."""
        logger.info("Reloading selectors...")
        self._load_selectors()
        self._cache.clear()
