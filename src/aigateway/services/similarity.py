"""Cosine similarity scoring for embedding pairs."""
import math
from typing import List, Sequence

from .errors import DegenerateVector, DimensionMismatch


def _unit(vector: Sequence[float]) -> List[float]:
    """Scale to unit length without squaring raw components."""
    if not all(math.isfinite(x) for x in vector):
        raise DegenerateVector("vector has non-finite components")
    peak = max(abs(x) for x in vector)
    if peak == 0.0:
        raise DegenerateVector("cosine similarity is undefined for a zero vector")
    # components now lie in [-1, 1], so hypot cannot overflow or underflow to zero
    scaled = [x / peak for x in vector]
    norm = math.hypot(*scaled)
    return [x / norm for x in scaled]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b) or not a:
        raise DimensionMismatch(f"vectors must be the same non-zero length, got {len(a)} and {len(b)}")
    return sum(x * y for x, y in zip(_unit(a), _unit(b)))


def score(a: Sequence[float], b: Sequence[float]) -> int:
    """Map cosine similarity in [-1, 1] onto an integer score in [0, 100]."""
    similarity = cosine_similarity(a, b)
    if math.isnan(similarity):
        raise DegenerateVector("cosine similarity is not a number")
    similarity = max(-1.0, min(1.0, similarity))
    # half-up rounding, not Python's round-half-to-even
    return int(math.floor(similarity * 50 + 50 + 0.5))
