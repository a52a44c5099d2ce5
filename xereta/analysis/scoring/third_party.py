"""Third-party domain scoring.

Every third-party domain contacted costs a point; a domain on the
blocklist costs three.
"""

from __future__ import annotations

from collections.abc import Iterable

from xereta.models import analysis
from xereta.utils import logger

log = logger.create_logger("Score-ThirdParty")

MAX_POINTS = 40.0
BLOCKED_WEIGHT = 3
DEFAULT_WEIGHT = 1


def calculate(domains: Iterable[str], commonly_blocked: set[str] | frozenset[str]) -> analysis.CategoryScore:
    """Score the distinct *domains*, capped at :data:`MAX_POINTS`."""
    unique = list(dict.fromkeys(d for d in domains if d))
    blocked = [d for d in unique if d in commonly_blocked]
    raw = float(BLOCKED_WEIGHT * len(blocked) + DEFAULT_WEIGHT * (len(unique) - len(blocked)))
    points = min(raw, MAX_POINTS)
    log.debug(
        "Third-party domain score",
        {"domains": len(unique), "blocked": len(blocked), "raw": raw, "points": points},
    )
    return analysis.CategoryScore(points=points, max_points=MAX_POINTS, items=unique, flagged=blocked)
