"""Privacy scoring package.

One module per scoring category, each returning a capped
:class:`~xereta.models.analysis.CategoryScore`.  The public API is
:func:`calculate_privacy_score` and :func:`score_categories`.
"""

from __future__ import annotations

from xereta.analysis.scoring.calculator import calculate_privacy_score, score_categories

__all__ = ["calculate_privacy_score", "score_categories"]
