"""
Adaptive Optimization Module.

Different queries want different fusion weights.

This module provides:
- SearchOptimizer: cached, concurrent, weight-optimized hybrid search
- PatternStore: learned per-query weights (exponential moving average)
- QualityAssessor: diversity / relevance / coverage scoring
- Backend protocols for dense and lexical search

Usage:
    from optimization import SearchOptimizer

    optimizer = SearchOptimizer()
    results = await optimizer.optimized_search(query, vector, dense, lexical, limit=5)
    optimizer.update_pattern(query, (0.6, 0.4), quality_score=0.9)
"""

from .backends import DenseBackend, LexicalBackend, search_both
from .optimizer import SearchOptimizer
from .patterns import PatternStore, QueryPattern
from .quality import QualityAssessor, assess_result_quality, jaccard_similarity

__all__ = [
    "SearchOptimizer",
    "PatternStore",
    "QueryPattern",
    "QualityAssessor",
    "assess_result_quality",
    "jaccard_similarity",
    "DenseBackend",
    "LexicalBackend",
    "search_both",
]
