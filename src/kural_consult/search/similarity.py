"""
Vector similarity scoring.
"""

from __future__ import annotations

import math
from typing import Sequence

from ..errors import DimensionMismatch


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between *a* and *b*.

    Returns 0.0 when either vector has zero norm. The raw value is returned
    without clamping.
    """
    if len(a) != len(b):
        raise DimensionMismatch(
            f"Vectors must have the same length (got {len(a)} and {len(b)})"
        )

    scale_a = max((abs(x) for x in a), default=0.0)
    scale_b = max((abs(y) for y in b), default=0.0)
    if scale_a == 0.0 or scale_b == 0.0:
        return 0.0

    # Unit-max scaling keeps the sums finite and non-zero; cosine is scale-invariant.
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        x /= scale_a
        y /= scale_b
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    # sqrt of the product keeps sim(v, v) exactly 1.0
    return dot / math.sqrt(norm_a * norm_b)
