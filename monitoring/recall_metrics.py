"""
Ranking evaluation against ground-truth relevance.

Measures how well a fused ranking surfaces known-relevant chunks:
- Precision@K / Recall@K / F1
- Reciprocal rank of the first relevant chunk
- NDCG@K with binary relevance
- Hit rate across a query set
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from retrieval.types import SearchResult


@dataclass
class RankingEvaluation:
    """Metrics for one ranked result list."""

    precision: float
    recall: float
    f1_score: float
    reciprocal_rank: float
    ndcg: float
    has_relevant_result: bool


@dataclass
class EvaluationSummary:
    """Means over a set of evaluated queries."""

    precision: float = 0.0
    recall: float = 0.0
    f1_score: float = 0.0
    mrr: float = 0.0
    ndcg: float = 0.0
    hit_rate: float = 0.0
    query_count: int = 0


def _cut(retrieved_ids: Sequence[str], k: Optional[int]) -> Sequence[str]:
    return retrieved_ids[:k] if k is not None else retrieved_ids


def recall_at_k(
    retrieved_ids: Sequence[str], relevant_ids: Iterable[str], k: Optional[int] = None
) -> float:
    """Fraction of relevant ids found in the top k (1.0 if nothing is relevant)."""
    relevant_set = set(relevant_ids)
    if not relevant_set:
        return 1.0

    found = len(set(_cut(retrieved_ids, k)) & relevant_set)
    return found / len(relevant_set)


def precision_at_k(
    retrieved_ids: Sequence[str], relevant_ids: Iterable[str], k: Optional[int] = None
) -> float:
    """Fraction of the top k that is relevant (0.0 if nothing was retrieved)."""
    retrieved_set = set(_cut(retrieved_ids, k))
    if not retrieved_set:
        return 0.0

    return len(retrieved_set & set(relevant_ids)) / len(retrieved_set)


def f1_score(precision: float, recall: float) -> float:
    if precision + recall == 0:
        return 0.0
    return 2 * precision * recall / (precision + recall)


def mean_reciprocal_rank(retrieved_ids: Sequence[str], relevant_ids: Iterable[str]) -> float:
    """1 / position of the first relevant id, 0.0 if none is retrieved."""
    relevant_set = set(relevant_ids)

    for position, doc_id in enumerate(retrieved_ids, start=1):
        if doc_id in relevant_set:
            return 1.0 / position

    return 0.0


def ndcg_at_k(
    retrieved_ids: Sequence[str], relevant_ids: Iterable[str], k: Optional[int] = None
) -> float:
    """Binary-relevance NDCG over the top k."""
    retrieved_ids = _cut(retrieved_ids, k)
    relevant_set = set(relevant_ids)

    dcg = sum(
        1.0 / math.log2(i + 2)  # log2(1) = 0, so offset by 2
        for i, doc_id in enumerate(retrieved_ids)
        if doc_id in relevant_set
    )
    ideal_dcg = sum(
        1.0 / math.log2(i + 2)
        for i in range(min(len(relevant_set), len(retrieved_ids)))
    )

    if ideal_dcg == 0:
        return 0.0

    return dcg / ideal_dcg


def evaluate_ranking(
    results: List[SearchResult],
    relevant_ids: Iterable[str],
    k: Optional[int] = None,
) -> RankingEvaluation:
    """
    Evaluate one fused ranking.

    Args:
        results: Ranked results (best first)
        relevant_ids: Chunk ids known to be relevant
        k: Cutoff rank (None uses the whole list)

    Returns:
        RankingEvaluation
    """
    relevant = set(relevant_ids)
    retrieved_ids = [r.id for r in _cut(results, k)]

    precision = precision_at_k(retrieved_ids, relevant)
    recall = recall_at_k(retrieved_ids, relevant)

    return RankingEvaluation(
        precision=precision,
        recall=recall,
        f1_score=f1_score(precision, recall),
        reciprocal_rank=mean_reciprocal_rank(retrieved_ids, relevant),
        ndcg=ndcg_at_k(retrieved_ids, relevant),
        has_relevant_result=any(doc_id in relevant for doc_id in retrieved_ids),
    )


def summarize_evaluations(evaluations: List[RankingEvaluation]) -> EvaluationSummary:
    """Average per-query evaluations into one summary."""
    if not evaluations:
        return EvaluationSummary()

    n = len(evaluations)
    return EvaluationSummary(
        precision=sum(e.precision for e in evaluations) / n,
        recall=sum(e.recall for e in evaluations) / n,
        f1_score=sum(e.f1_score for e in evaluations) / n,
        mrr=sum(e.reciprocal_rank for e in evaluations) / n,
        ndcg=sum(e.ndcg for e in evaluations) / n,
        hit_rate=sum(1 for e in evaluations if e.has_relevant_result) / n,
        query_count=n,
    )
