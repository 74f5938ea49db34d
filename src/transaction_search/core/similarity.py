"""Similarity scoring and ranking over embedding vectors."""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..models.result import RankedTransaction, SearchMode, SearchResult
from ..models.transaction import Transaction

logger = logging.getLogger(__name__)

Candidate = Tuple[Transaction, Optional[np.ndarray]]


def _as_array(vector: Sequence[float]) -> np.ndarray:
    return np.asarray(vector, dtype=np.float64).ravel()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity between two vectors.

    Degenerate input (different lengths, empty, zero magnitude, non-finite
    values) scores 0.0 instead of raising.

    Args:
        a: First vector
        b: Second vector

    Returns:
        Similarity in [-1.0, 1.0]
    """
    a = _as_array(a)
    b = _as_array(b)

    if a.size == 0 or a.size != b.size:
        return 0.0

    magnitude_a = np.linalg.norm(a)
    magnitude_b = np.linalg.norm(b)
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    similarity = float(np.dot(a, b) / (magnitude_a * magnitude_b))
    if not np.isfinite(similarity):
        return 0.0
    return float(np.clip(similarity, -1.0, 1.0))


def batch_cosine_similarity(
    query: Sequence[float],
    vectors: Sequence[Optional[Sequence[float]]]
) -> np.ndarray:
    """
    Score one query against many vectors.

    Rows that are missing, of another length, zero or non-finite score 0.0.

    Returns:
        Array of similarities, one per input vector
    """
    scores = np.zeros(len(vectors), dtype=np.float64)
    query = _as_array(query)
    query_norm = np.linalg.norm(query)
    if query.size == 0 or query_norm == 0 or not np.all(np.isfinite(query)):
        return scores

    rows = [
        i for i, v in enumerate(vectors)
        if v is not None and np.size(v) == query.size
    ]
    if not rows:
        return scores

    matrix = np.vstack([_as_array(vectors[i]) for i in rows])
    norms = np.linalg.norm(matrix, axis=1)

    with np.errstate(divide="ignore", invalid="ignore"):
        row_scores = (matrix @ query) / (norms * query_norm)

    row_scores = np.where(np.isfinite(row_scores) & (norms > 0), row_scores, 0.0)
    scores[rows] = np.clip(row_scores, -1.0, 1.0)
    return scores


def filter_by_threshold(
    scored: Sequence[Tuple[Transaction, float]],
    threshold: float
) -> List[Tuple[Transaction, float]]:
    """Keep ``(transaction, score)`` pairs scoring at least ``threshold``, in order."""
    return [(t, s) for t, s in scored if s >= threshold]


def rank_by_similarity(
    query: Sequence[float],
    candidates: Sequence[Candidate],
    threshold: float,
    mode: SearchMode = SearchMode.SEMANTIC,
    query_text: str = ""
) -> SearchResult:
    """
    Rank candidates by similarity to the query embedding.

    Candidates without an embedding are skipped. Survivors are sorted by
    score descending with a stable sort, so equal scores keep input order.

    Args:
        query: Query embedding
        candidates: ``(transaction, embedding)`` pairs; embedding may be None
        threshold: Minimum similarity to keep
        mode: Mode recorded on the result
        query_text: Query text recorded on the result

    Returns:
        SearchResult ordered best first
    """
    embedded = [(t, v) for t, v in candidates if v is not None]
    if not embedded:
        return SearchResult(mode=mode, query=query_text)

    scores = batch_cosine_similarity(query, [v for _, v in embedded])
    scored = filter_by_threshold(
        [(t, float(s)) for (t, _), s in zip(embedded, scores)],
        threshold
    )

    # list.sort is stable
    scored.sort(key=lambda pair: pair[1], reverse=True)

    matches = [
        RankedTransaction(transaction=t, rank=rank, score=score)
        for rank, (t, score) in enumerate(scored, 1)
    ]

    logger.debug(
        f"Ranked {len(embedded)} candidates, {len(matches)} above threshold {threshold}"
    )
    return SearchResult(matches=matches, mode=mode, query=query_text)
