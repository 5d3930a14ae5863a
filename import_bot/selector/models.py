"""Typed selector specifications."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Tuple


class SelectorStrategy(str, Enum):
    """How a candidate expression is evaluated against the document."""

    CSS = "css"  # structural query
    XPATH = "xpath"  # path query
    TEXT = "text"  # text-content match

    @classmethod
    def values(cls) -> list:
        """Return list of all enum values."""
        return [e.value for e in cls]


@dataclass(frozen=True)
class SelectorCandidate:
    """One concrete expression for locating a UI element."""

    expression: str
    strategy: SelectorStrategy = SelectorStrategy.CSS

    def describe(self) -> str:
        """Human-readable ``strategy=expression`` form used in diagnostics."""
        return f"{self.strategy.value}={self.expression}"

    def with_params(self, params: Mapping[str, Any]) -> "SelectorCandidate":
        """Substitute ``{name}`` placeholders."""
        expression = self.expression
        for key, value in params.items():
            expression = expression.replace("{" + key + "}", str(value))
        return SelectorCandidate(expression, self.strategy)


def css(expression: str) -> SelectorCandidate:
    """Structural (CSS) candidate."""
    return SelectorCandidate(expression, SelectorStrategy.CSS)


def xpath(expression: str) -> SelectorCandidate:
    """Path (XPath) candidate."""
    return SelectorCandidate(expression, SelectorStrategy.XPATH)


def text(value: str) -> SelectorCandidate:
    """Text-content candidate."""
    return SelectorCandidate(value, SelectorStrategy.TEXT)


@dataclass(frozen=True)
class SelectorSpec:
    """
    Ordered fallback list for one logical UI target.

    Order encodes preference: the first resolvable candidate wins.
    """

    name: str
    candidates: Tuple[SelectorCandidate, ...]

    def __post_init__(self) -> None:
        candidates = tuple(self.candidates)
        if not candidates:
            raise ValueError(f"Selector spec '{self.name}' needs at least one candidate")
        for candidate in candidates:
            if not isinstance(candidate, SelectorCandidate):
                raise TypeError(
                    f"Selector spec '{self.name}' got {type(candidate).__name__}, "
                    "expected SelectorCandidate"
                )
        object.__setattr__(self, "candidates", candidates)

    @classmethod
    def of(cls, name: str, *candidates: SelectorCandidate) -> "SelectorSpec":
        return cls(name, tuple(candidates))

    @classmethod
    def from_entries(cls, name: str, entries: Iterable[Mapping[str, str]]) -> "SelectorSpec":
        """
        Build a spec from typed catalog entries.

        Args:
            name: Logical target name
            entries: Mappings with exactly one key among ``css``, ``xpath``, ``text``

        Raises:
            ValueError: If an entry is untyped or names an unknown strategy
        """
        candidates: List[SelectorCandidate] = []
        for entry in entries:
            if not isinstance(entry, Mapping) or len(entry) != 1:
                raise ValueError(
                    f"Selector '{name}': each candidate must be a single-key mapping "
                    f"({', '.join(SelectorStrategy.values())}), got {entry!r}"
                )
            (strategy, expression), = entry.items()
            if strategy not in SelectorStrategy.values():
                raise ValueError(f"Selector '{name}': unknown strategy '{strategy}'")
            candidates.append(SelectorCandidate(str(expression), SelectorStrategy(strategy)))
        return cls(name, tuple(candidates))

    def with_params(self, **params: Any) -> "SelectorSpec":
        """Spec with ``{name}`` placeholders substituted in every candidate."""
        if not params:
            return self
        return SelectorSpec(self.name, tuple(c.with_params(params) for c in self.candidates))

    def describe(self) -> List[str]:
        return [c.describe() for c in self.candidates]

    def to_entries(self) -> List[Dict[str, str]]:
        """Inverse of :meth:`from_entries`."""
        return [{c.strategy.value: c.expression} for c in self.candidates]

    def __len__(self) -> int:
        return len(self.candidates)
