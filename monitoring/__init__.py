"""
Monitoring Module.

You cannot tune fusion weights you do not measure.

This module provides:
- Performance samples and aggregate stats (latency, throughput, errors)
- Ranking evaluation against ground truth (precision, recall, MRR, NDCG)
"""

from .performance import PerformanceMonitor, PerformanceSample, PerformanceStats
from .recall_metrics import (
    EvaluationSummary,
    RankingEvaluation,
    evaluate_ranking,
    f1_score,
    mean_reciprocal_rank,
    ndcg_at_k,
    precision_at_k,
    recall_at_k,
    summarize_evaluations,
)

__all__ = [
    "PerformanceMonitor",
    "PerformanceSample",
    "PerformanceStats",
    "RankingEvaluation",
    "EvaluationSummary",
    "evaluate_ranking",
    "summarize_evaluations",
    "recall_at_k",
    "precision_at_k",
    "f1_score",
    "mean_reciprocal_rank",
    "ndcg_at_k",
]
