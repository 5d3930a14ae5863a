"""Selector specifications, catalog and resolution."""

from .catalog import DEFAULT_SELECTORS, SelectorCatalog
from .models import SelectorCandidate, SelectorSpec, SelectorStrategy, css, text, xpath
from .resolver import SelectorResolver

__all__ = [
    "DEFAULT_SELECTORS",
    "SelectorCandidate",
    "SelectorCatalog",
    "SelectorResolver",
    "SelectorSpec",
    "SelectorStrategy",
    "css",
    "text",
    "xpath",
]
