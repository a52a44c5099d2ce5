"""Cookie scoring.

First-party cookies come from ``document.cookie``; third-party cookies
come from the tracker snapshot.  Each cookie is weighted by its
classification, with marketing/advertising cookies weighing most and
unclassified cookies least.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from xereta.analysis.scoring import classification
from xereta.models import analysis, tracking
from xereta.tracking import cookies as cookie_parser
from xereta.utils import logger

log = logger.create_logger("Score-Cookies")

FIRST_PARTY_MAX = 15.0
THIRD_PARTY_MAX = 20.0

FIRST_PARTY_WEIGHTS: dict[classification.CookieClass, int] = {"marketing": 3, "analytics": 2, "other": 1}
THIRD_PARTY_WEIGHTS: dict[classification.CookieClass, int] = {"marketing": 5, "analytics": 4, "other": 2}


def first_party_names(raw_cookies: Iterable[str]) -> list[str]:
    """Names of the non-empty ``name=value`` strings in *raw_cookies*."""
    names = [cookie_parser.cookie_name(raw) for raw in raw_cookies if raw and raw.strip()]
    return [n for n in names if n]


def third_party_records(
    cookies_by_domain: Mapping[str, Mapping[str, tracking.CookieRecord] | tracking.CookieRecord],
) -> list[tuple[str, tracking.CookieRecord]]:
    """Flatten a snapshot into ``(domain, record)`` pairs.

    Accepts the nested ``domain -> name -> record`` shape as well as a
    flat ``domain -> record`` mapping.
    """
    pairs: list[tuple[str, tracking.CookieRecord]] = []
    for domain, value in cookies_by_domain.items():
        if isinstance(value, tracking.CookieRecord):
            pairs.append((domain, value))
        else:
            pairs.extend((domain, record) for record in value.values())
    return pairs


def _weighted(
    names: Iterable[str],
    weights: Mapping[classification.CookieClass, int],
    lookup: dict[str, analysis.CookieMetadata],
) -> float:
    return float(sum(weights[classification.classify(name, lookup)] for name in names))


def calculate_first_party(
    raw_cookies: Iterable[str],
    lookup: dict[str, analysis.CookieMetadata],
) -> analysis.CategoryScore:
    """Score first-party cookies, capped at :data:`FIRST_PARTY_MAX`."""
    names = first_party_names(raw_cookies)
    raw = _weighted(names, FIRST_PARTY_WEIGHTS, lookup)
    points = min(raw, FIRST_PARTY_MAX)
    log.debug("First-party cookie score", {"cookies": len(names), "raw": raw, "points": points})
    return analysis.CategoryScore(
        points=points,
        max_points=FIRST_PARTY_MAX,
        items=names,
        flagged=[n for n in names if classification.classify(n, lookup) != "other"],
    )


def calculate_third_party(
    cookies_by_domain: Mapping[str, Mapping[str, tracking.CookieRecord] | tracking.CookieRecord],
    lookup: dict[str, analysis.CookieMetadata],
) -> analysis.CategoryScore:
    """Score third-party cookies, capped at :data:`THIRD_PARTY_MAX`."""
    pairs = third_party_records(cookies_by_domain)
    raw = _weighted((record.name for _, record in pairs), THIRD_PARTY_WEIGHTS, lookup)
    points = min(raw, THIRD_PARTY_MAX)
    log.debug("Third-party cookie score", {"cookies": len(pairs), "raw": raw, "points": points})
    return analysis.CategoryScore(
        points=points,
        max_points=THIRD_PARTY_MAX,
        items=[f"{domain}: {record.name}" for domain, record in pairs],
        flagged=[
            f"{domain}: {record.name}"
            for domain, record in pairs
            if classification.classify(record.name, lookup) != "other"
        ],
    )


def breakdown(raw_cookies: Iterable[str], lookup: dict[str, analysis.CookieMetadata]) -> analysis.CookieBreakdown:
    """Count first-party cookies per classification bucket."""
    result = analysis.CookieBreakdown()
    for name in first_party_names(raw_cookies):
        bucket = classification.classify(name, lookup)
        setattr(result, bucket, getattr(result, bucket) + 1)
    return result
