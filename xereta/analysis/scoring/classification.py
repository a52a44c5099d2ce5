"""Cookie-name lookup against the cookie classification table."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Literal

from xereta.models import analysis

CookieClass = Literal["marketing", "analytics", "other"]

_MARKETING = frozenset({"marketing", "advertising"})
_ANALYTICS = frozenset({"analytics", "statistics"})


def build_lookup(table: Iterable[analysis.CookieMetadata]) -> dict[str, analysis.CookieMetadata]:
    """Index *table* by exact cookie name; the first row for a name wins."""
    lookup: dict[str, analysis.CookieMetadata] = {}
    for row in table:
        lookup.setdefault(row.name, row)
    return lookup


def classify(name: str, lookup: dict[str, analysis.CookieMetadata]) -> CookieClass:
    """Bucket a cookie name; unknown names and other categories are ``"other"``."""
    row = lookup.get(name)
    if row is None:
        return "other"
    category = row.category.strip().lower()
    if category in _MARKETING:
        return "marketing"
    if category in _ANALYTICS:
        return "analytics"
    return "other"
