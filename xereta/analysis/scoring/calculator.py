"""Privacy score calculator.

Runs each category scorer over an :class:`ObservationBundle`, sums the
capped category points and rounds half up to the integer total.
The calculation is pure: the same bundle always yields the same score.
"""

from __future__ import annotations

import math

from xereta.analysis.scoring import classification, cookies, fingerprinting, local_storage, third_party
from xereta.models import analysis
from xereta.utils import logger

log = logger.create_logger("PrivacyScore")

CATEGORY_ORDER = (
    "localStorage",
    "firstPartyCookies",
    "thirdPartyCookies",
    "canvasFingerprinting",
    "thirdPartyDomains",
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_categories(bundle: analysis.ObservationBundle) -> dict[str, analysis.CategoryScore]:
    """Capped score and contributing items for every category.

    Args:
        bundle: Page, tracker and reference-data observations.

    Returns:
        Mapping keyed by the names in :data:`CATEGORY_ORDER`.
    """
    lookup = classification.build_lookup(bundle.cookie_classification_table)
    return {
        "localStorage": local_storage.calculate(bundle.local_storage_usage),
        "firstPartyCookies": cookies.calculate_first_party(bundle.cookies, lookup),
        "thirdPartyCookies": cookies.calculate_third_party(bundle.third_party_cookies, lookup),
        "canvasFingerprinting": fingerprinting.calculate(bundle.canvas_fingerprint),
        "thirdPartyDomains": third_party.calculate(bundle.third_party_domains, bundle.commonly_blocked_domains),
    }


def calculate_privacy_score(
    bundle: analysis.ObservationBundle,
    categories: dict[str, analysis.CategoryScore] | None = None,
) -> analysis.ScoreBundle:
    """Calculate the invasiveness score for *bundle*.

    Args:
        bundle: Page, tracker and reference-data observations.
        categories: Output of :func:`score_categories` for the same
            bundle, when the caller already has it.

    Returns:
        Total, per-category points and the first-party cookie breakdown.
    """
    if categories is None:
        categories = score_categories(bundle)
    details = {name: categories[name].points for name in CATEGORY_ORDER}
    total = _round_half_up(sum(details.values()))
    cookie_breakdown = cookies.breakdown(
        bundle.cookies, classification.build_lookup(bundle.cookie_classification_table)
    )

    log.info("Privacy score calculated", {"total": total, **details})
    return analysis.ScoreBundle(total=total, details=details, cookie_breakdown=cookie_breakdown)
