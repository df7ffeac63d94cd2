"""Bag-of-labels embedding used for similarity search between approved videos."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from models.video import ModerationLabel

EMBEDDING_SIZE = 128
LABEL_WEIGHT = 0.1
DEFAULT_TERM_CONFIDENCE = 0.5


def stable_hash(text: str) -> int:
    """
    Deterministic 32-bit string hash (h * 31 + code point, signed wrap, abs).

    Python's builtin hash() is salted per process, so it can't be used for
    dimensions or point IDs that must match across restarts.
    """
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def _terms(labels: Sequence[ModerationLabel]) -> list[tuple[str, float]]:
    terms: list[tuple[str, float]] = []
    for label in labels:
        weight = label.confidence if label.confidence else DEFAULT_TERM_CONFIDENCE
        if label.name:
            terms.append((label.name.lower(), weight))
        if label.parent_category:
            terms.append((label.parent_category.lower(), weight))
    return terms


def generate_embedding(
    labels: Sequence[ModerationLabel],
    *,
    size: int = EMBEDDING_SIZE,
) -> list[float]:
    """
    Fold label names and parent categories into a fixed-size vector.

    Each term lands in dimension stable_hash(term) % size and adds
    confidence * 0.1 there. The result is L2-normalised; an all-zero vector
    is returned unchanged.
    """
    if size <= 0:
        raise ValueError("embedding size must be positive")
    vector = np.zeros(size, dtype=np.float64)
    for term, weight in _terms(labels):
        vector[stable_hash(term) % size] += weight * LABEL_WEIGHT

    magnitude = float(np.linalg.norm(vector))
    if magnitude > 0:
        vector = vector / magnitude
    return vector.tolist()


def is_zero_vector(vector: Sequence[float]) -> bool:
    return not np.any(np.asarray(vector, dtype=np.float64))
