"""Import contracts and page-location patterns."""

from typing import Dict, Final, FrozenSet, Tuple

# Header tokens each import type must expose. Matching is case-insensitive
# substring containment, so "code" is satisfied by "scheme_code".
HEADER_CONTRACTS: Final[Dict[str, FrozenSet[str]]] = {
    "schemes": frozenset({"name", "code"}),
    "projects": frozenset({"name", "order_reference"}),
    "inspectors": frozenset({"name", "email"}),
}

DEFAULT_IMPORT_ORDER: Final[Tuple[str, ...]] = ("schemes", "projects", "inspectors")

AUTHENTICATED_URL_PATTERNS: Final[Tuple[str, ...]] = (
    "/dashboard",
    "/home",
    "/main",
    "/app",
    "/portal",
    "/import",
)

IMPORT_PAGE_PATH: Final[str] = "/dashboard/file-import"

CSV_SUFFIX: Final[str] = ".csv"
