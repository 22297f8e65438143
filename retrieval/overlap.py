"""
Overlap analysis between dense and lexical result lists.

Useful for tuning weights: high complementarity means both signals
contribute, near-zero complementarity means one backend is redundant
for this query shape.
"""

from dataclasses import dataclass
from typing import List

from .types import SearchResult


@dataclass
class OverlapReport:
    """Agreement between two result lists, derived from their id sets."""

    dense_only_count: int
    lexical_only_count: int
    overlap_count: int
    overlap_percentage: float
    complementary_score: float


def analyze_overlap(
    dense_results: List[SearchResult],
    lexical_results: List[SearchResult],
) -> OverlapReport:
    """
    Compare the id sets of two result lists.

    complementary_score is 0 for identical sets and 1 for disjoint sets.
    Both percentages are 0 when both inputs are empty.
    """
    dense_ids = {r.id for r in dense_results}
    lexical_ids = {r.id for r in lexical_results}

    overlap_count = len(dense_ids & lexical_ids)
    dense_only_count = len(dense_ids) - overlap_count
    lexical_only_count = len(lexical_ids) - overlap_count
    total_unique = dense_only_count + lexical_only_count + overlap_count

    if total_unique == 0:
        return OverlapReport(0, 0, 0, 0.0, 0.0)

    return OverlapReport(
        dense_only_count=dense_only_count,
        lexical_only_count=lexical_only_count,
        overlap_count=overlap_count,
        overlap_percentage=overlap_count / total_unique * 100,
        complementary_score=(dense_only_count + lexical_only_count) / total_unique,
    )
