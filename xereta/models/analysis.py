"""Models for scoring input, scoring output, and the page-signal payload."""

from __future__ import annotations

import pydantic

from xereta.models.base import WireModel
from xereta.models.canvas import CanvasFingerprint
from xereta.models.tracking import CookieRecord


class CookieMetadata(WireModel):
    """One row of the cookie classification table."""

    name: str
    domain: str = ""
    platform: str = ""
    category: str = ""
    description: str = ""
    retention: str = ""
    controller: str = ""
    privacy: str = ""
    wildcard: str = ""


class PageSignals(WireModel):
    """Readings taken inside the page."""

    local_storage_usage: int = 0
    canvas_elements: int = 0
    cookie_count: int = 0
    cookies: list[str] = pydantic.Field(default_factory=list)
    canvas_fingerprinting: CanvasFingerprint = pydantic.Field(default_factory=CanvasFingerprint)


class ReferenceData(WireModel):
    commonly_blocked_domains: set[str] = pydantic.Field(default_factory=set)
    cookie_database: list[CookieMetadata] = pydantic.Field(default_factory=list)


class ObservationBundle(WireModel):
    """Everything the scoring engine reads, assembled on demand.

    ``third_party_cookies`` accepts either the tracker's nested
    ``domain -> name -> record`` snapshot or a flat
    ``domain -> record`` mapping.
    """

    local_storage_usage: int = 0
    cookies: list[str] = pydantic.Field(default_factory=list)
    cookie_count: int = 0
    canvas_fingerprint: CanvasFingerprint = pydantic.Field(default_factory=CanvasFingerprint)
    third_party_domains: list[str] = pydantic.Field(default_factory=list)
    third_party_cookies: dict[str, dict[str, CookieRecord] | CookieRecord] = pydantic.Field(default_factory=dict)
    commonly_blocked_domains: set[str] = pydantic.Field(default_factory=set)
    cookie_classification_table: list[CookieMetadata] = pydantic.Field(default_factory=list)


class CookieBreakdown(WireModel):
    marketing: int = 0
    analytics: int = 0
    other: int = 0


class ScoreBundle(WireModel):
    total: int = 0
    details: dict[str, float] = pydantic.Field(default_factory=dict)
    cookie_breakdown: CookieBreakdown = pydantic.Field(default_factory=CookieBreakdown)


class CategoryScore(WireModel):
    """Drill-down for one category.

    ``items`` lists everything that contributed; ``flagged`` is the
    subset that carried a heavier weight (classified tracking cookies,
    blocklisted domains).
    """

    points: float = 0
    max_points: float = 0
    items: list[str] = pydantic.Field(default_factory=list)
    flagged: list[str] = pydantic.Field(default_factory=list)


class PrivacyReport(WireModel):
    url: str
    score: ScoreBundle
    categories: dict[str, CategoryScore] = pydantic.Field(default_factory=dict)
    observations: ObservationBundle

    def to_wire(self) -> dict:
        """Dump for transport, leaving out the bulky reference tables."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"observations": {"commonly_blocked_domains", "cookie_classification_table"}},
        )
