"""
Hybrid Result Fusion Module.

Dense retrieval misses exact keyword matches; lexical retrieval misses
paraphrases. Fusing both rankings recovers what either one alone drops.

This module implements:
- Reciprocal rank fusion (positions only)
- Weighted score combination (min-max or z-score normalization)
- Weighted RRF with per-result source tracking
- Overlap / complementarity analysis

Usage:
    from retrieval import FusionOptions, fuse, analyze_overlap

    results = fuse(dense, lexical, FusionOptions(k=5, method="minmax"))
    report = analyze_overlap(dense, lexical)
"""

from .overlap import OverlapReport, analyze_overlap
from .score_fusion import (
    fuse,
    normalize_results,
    normalize_scores,
    reciprocal_rank_fusion,
    weighted_reciprocal_rank_fusion,
    weighted_score_combination,
)
from .types import (
    Chunk,
    FusionMethod,
    FusionOptions,
    InvalidConfigurationError,
    ResultSource,
    SearchResult,
)

__all__ = [
    "Chunk",
    "SearchResult",
    "ResultSource",
    "FusionMethod",
    "FusionOptions",
    "InvalidConfigurationError",
    "fuse",
    "normalize_scores",
    "normalize_results",
    "reciprocal_rank_fusion",
    "weighted_score_combination",
    "weighted_reciprocal_rank_fusion",
    "OverlapReport",
    "analyze_overlap",
]
