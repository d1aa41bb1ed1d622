"""
Ranking helpers for scored retrieval results.
"""

from __future__ import annotations

from ..models import ScoredEntry


def rank_scored(scored: list[ScoredEntry], *, limit: int) -> list[ScoredEntry]:
    """Sort by descending score and apply limit.

    The sort is stable, so equal scores keep their corpus order.
    """
    ordered = sorted(scored, key=lambda item: -item.score)
    return ordered[: max(limit, 1)]
