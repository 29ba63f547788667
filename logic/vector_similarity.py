"""Cosine similarity over plain float sequences."""

from __future__ import annotations

import math
from typing import Optional, Sequence


def cosine_similarity(a: Optional[Sequence[float]], b: Optional[Sequence[float]]) -> float:
    """Return the cosine similarity of two vectors.

    Returns 0.0 instead of raising for missing vectors, mismatched lengths or
    a zero magnitude on either side.
    """

    if not a or not b or len(a) != len(b):
        return 0.0
    dot_product = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if not norm_a or not norm_b:
        return 0.0
    # rounding can push self-similarity just past 1
    return max(-1.0, min(1.0, dot_product / (norm_a * norm_b)))


__all__ = ["cosine_similarity"]
