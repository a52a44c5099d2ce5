"""localStorage footprint scoring: half a point per KiB."""

from __future__ import annotations

from xereta.models import analysis
from xereta.utils import logger

log = logger.create_logger("Score-LocalStorage")

MAX_POINTS = 10.0
POINTS_PER_KIB = 0.5


def calculate(usage_bytes: int) -> analysis.CategoryScore:
    """Score *usage_bytes* of localStorage, capped at :data:`MAX_POINTS`."""
    raw = POINTS_PER_KIB * (max(usage_bytes, 0) / 1024)
    points = min(raw, MAX_POINTS)
    log.debug("localStorage score", {"bytes": usage_bytes, "raw": raw, "points": points})
    items = [f"{usage_bytes} bytes"] if usage_bytes > 0 else []
    return analysis.CategoryScore(points=points, max_points=MAX_POINTS, items=items)
