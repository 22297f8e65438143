"""
Score fusion utilities for hybrid retrieval.

Combines a dense (semantic) and a lexical (keyword) result list into one
ranked list:
- Reciprocal rank fusion: uses positions only, no score calibration needed
- Weighted combination: per-list normalization, then weighted sum
- Weighted RRF: rank fusion with per-backend multipliers and source tracking
"""

import logging
from typing import Dict, Iterator, List, Sequence, Set, Tuple, Union

import numpy as np

from .types import (
    FusionMethod,
    FusionOptions,
    ResultSource,
    SearchResult,
)

logger = logging.getLogger(__name__)

DEFAULT_RRF_CONSTANT = 60

_METHOD_ALIASES = {
    "rank-fusion": FusionMethod.RRF,
    "minmax-weighted": FusionMethod.MINMAX,
    "zscore-weighted": FusionMethod.ZSCORE,
}


def normalize_scores(
    scores: Sequence[float],
    method: str = "minmax",
) -> List[float]:
    """
    Normalize scores to the [0, 1] range.

    Args:
        scores: Raw scores
        method: Normalization method (minmax, zscore)

    Returns:
        Normalized scores, same order as the input
    """
    if len(scores) == 0:
        return []

    scores = np.asarray(scores, dtype=float)

    if method == "zscore":
        if len(scores) < 2:
            return [1.0] * len(scores)
        mean_s = scores.mean()
        std_s = scores.std()
        if std_s == 0:
            return [1.0] * len(scores)
        # Z-score then sigmoid to (0, 1)
        z = (scores - mean_s) / std_s
        return (1 / (1 + np.exp(-z))).tolist()

    if method != "minmax":
        logger.warning(f"Unknown normalization method: {method}, using minmax")

    min_s = scores.min()
    max_s = scores.max()
    if max_s - min_s == 0:
        return [1.0] * len(scores)
    return ((scores - min_s) / (max_s - min_s)).tolist()


def normalize_results(
    results: List[SearchResult],
    method: str = "minmax",
) -> List[SearchResult]:
    """Return copies of results with normalized scores."""
    normalized = normalize_scores([r.score for r in results], method)
    return [
        SearchResult(chunk=r.chunk, score=score, rank=r.rank, source=r.source)
        for r, score in zip(results, normalized)
    ]


def _first_occurrences(
    results: List[SearchResult],
) -> Iterator[Tuple[int, SearchResult]]:
    """Yield (1-based position, result), skipping repeated ids in one list."""
    seen: Set[str] = set()
    for position, result in enumerate(results, start=1):
        if result.id in seen:
            continue
        seen.add(result.id)
        yield position, result


def _rank(results: List[SearchResult], k: int) -> List[SearchResult]:
    """Sort by descending score (stable), truncate to k, assign ranks."""
    if k <= 0:
        return []

    results.sort(key=lambda r: r.score, reverse=True)
    results = results[:k]

    for i, result in enumerate(results):
        result.rank = i + 1

    return results


def reciprocal_rank_fusion(
    dense_results: List[SearchResult],
    lexical_results: List[SearchResult],
    k: int = 10,
    rrf_constant: float = DEFAULT_RRF_CONSTANT,
) -> List[SearchResult]:
    """
    Fuse two rankings with RRF.

    Formula: score(d) = sum(1 / (C + rank(d))) over the lists containing d.
    A larger C flattens the influence of rank differences.

    Ties keep first-encounter order (dense list first).
    """
    fused: Dict[str, SearchResult] = {}

    for results in (dense_results, lexical_results):
        for position, result in _first_occurrences(results):
            contribution = 1.0 / (rrf_constant + position)
            existing = fused.get(result.id)
            if existing is None:
                fused[result.id] = SearchResult(chunk=result.chunk, score=contribution)
            else:
                existing.score += contribution

    return _rank(list(fused.values()), k)


def weighted_score_combination(
    dense_results: List[SearchResult],
    lexical_results: List[SearchResult],
    k: int = 10,
    dense_weight: float = 0.7,
    lexical_weight: float = 0.3,
    normalization: str = "minmax",
) -> List[SearchResult]:
    """
    Fuse two rankings by weighted sum of normalized scores.

    Formula: score = w_dense * norm(s_dense) + w_lex * norm(s_lex)

    Weights are used as given; they are not renormalized to sum to 1.
    """
    fused: Dict[str, SearchResult] = {}

    for results, weight in (
        (dense_results, dense_weight),
        (lexical_results, lexical_weight),
    ):
        unique = [result for _, result in _first_occurrences(results)]
        normalized = normalize_scores([r.score for r in unique], normalization)

        for result, score in zip(unique, normalized):
            existing = fused.get(result.id)
            if existing is None:
                fused[result.id] = SearchResult(chunk=result.chunk, score=score * weight)
            else:
                existing.score += score * weight

    return _rank(list(fused.values()), k)


def weighted_reciprocal_rank_fusion(
    dense_results: List[SearchResult],
    lexical_results: List[SearchResult],
    weights: Tuple[float, float],
    k: int = 10,
    rrf_constant: float = DEFAULT_RRF_CONSTANT,
) -> List[SearchResult]:
    """
    RRF with per-backend multipliers.

    Each list contributes weight / (C + rank). Every fused item records
    whether it came from the dense list, the lexical list, or both.
    """
    dense_weight, lexical_weight = weights
    fused: Dict[str, SearchResult] = {}
    sources: Dict[str, Set[ResultSource]] = {}

    for results, weight, source in (
        (dense_results, dense_weight, ResultSource.DENSE),
        (lexical_results, lexical_weight, ResultSource.LEXICAL),
    ):
        for position, result in _first_occurrences(results):
            contribution = weight / (rrf_constant + position)
            existing = fused.get(result.id)
            if existing is None:
                fused[result.id] = SearchResult(chunk=result.chunk, score=contribution)
                sources[result.id] = {source}
            else:
                existing.score += contribution
                sources[result.id].add(source)

    ranked = _rank(list(fused.values()), k)

    for result in ranked:
        contributed = sources[result.id]
        result.source = ResultSource.HYBRID if len(contributed) > 1 else next(iter(contributed))

    return ranked


def resolve_method(method: Union[FusionMethod, str]) -> FusionMethod:
    """Map a method name to FusionMethod, falling back to RRF."""
    if isinstance(method, FusionMethod):
        return method

    name = str(method).lower()
    if name in _METHOD_ALIASES:
        return _METHOD_ALIASES[name]

    try:
        return FusionMethod(name)
    except ValueError:
        logger.warning(f"Unknown fusion method: {method}, falling back to rrf")
        return FusionMethod.RRF


def fuse(
    dense_results: List[SearchResult],
    lexical_results: List[SearchResult],
    options: FusionOptions = None,
) -> List[SearchResult]:
    """
    Merge dense and lexical results with the configured algorithm.

    Pure and deterministic. Empty inputs are valid on either side.

    Args:
        dense_results: Ranked results from dense search
        lexical_results: Ranked results from lexical search
        options: FusionOptions (defaults: k=10, RRF)

    Returns:
        Fused results, ranks 1..n, scores non-increasing
    """
    options = options or FusionOptions()
    method = resolve_method(options.method)

    if method == FusionMethod.RRF:
        return reciprocal_rank_fusion(
            dense_results,
            lexical_results,
            k=options.k,
            rrf_constant=options.rrf_constant,
        )

    return weighted_score_combination(
        dense_results,
        lexical_results,
        k=options.k,
        dense_weight=options.dense_weight,
        lexical_weight=options.lexical_weight,
        normalization=method.value,
    )
