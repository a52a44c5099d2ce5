"""Canvas fingerprinting scoring: all or nothing."""

from __future__ import annotations

from xereta.models import analysis, canvas
from xereta.utils import logger

log = logger.create_logger("Score-Fingerprinting")

MAX_POINTS = 15.0


def calculate(fingerprint: canvas.CanvasFingerprint) -> analysis.CategoryScore:
    """Full points when the canvas heuristic flagged the page, zero otherwise."""
    points = MAX_POINTS if fingerprint.potential_fingerprinting else 0.0
    log.debug(
        "Canvas fingerprinting score",
        {"canvases": len(fingerprint.details), "suspicion": fingerprint.suspicious_score, "points": points},
    )
    items = [r.id for r in fingerprint.details if r.operations.count() or r.hidden] if points else []
    return analysis.CategoryScore(points=points, max_points=MAX_POINTS, items=items)
