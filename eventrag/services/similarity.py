"""Cosine similarity scoring and top-K selection."""

import math
from typing import List, Sequence

from eventrag.models.document import Chunk, ScoredChunk


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Compute the cosine similarity of two vectors.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        Similarity in [-1, 1], or NaN when either vector has zero norm.

    Raises:
        ValueError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise ValueError(
            f"Vector dimensions differ: {len(a)} != {len(b)}")

    dot = math.fsum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(math.fsum(x * x for x in a))
    norm_b = math.sqrt(math.fsum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return math.nan
    return dot / (norm_a * norm_b)


def top_k(
    query_vector: Sequence[float], candidates: Sequence[Chunk], k: int
) -> List[ScoredChunk]:
    """
    Rank candidates by similarity to the query and keep the best ``k``.

    Candidates whose score is undefined (zero-norm vectors) are dropped.
    Equal scores keep the order in which candidates were given.

    Args:
        query_vector: Embedded question.
        candidates: Chunks to rank.
        k: Maximum number of results.

    Returns:
        Scored chunks, highest score first.
    """
    if k <= 0 or not candidates:
        return []

    scored = []
    for chunk in candidates:
        score = cosine_similarity(query_vector, chunk.vector)
        if math.isnan(score):
            continue
        scored.append(ScoredChunk(chunk=chunk, score=score))

    # sorted() is stable, so ties stay in input order
    scored = sorted(scored, key=lambda item: item.score, reverse=True)
    return scored[:k]
