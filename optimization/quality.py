"""
Search result quality assessment.

Heuristic score in [0, 1] built from:
- Diversity: results should not repeat each other
- Relevance: each result should contain the query's key terms
- Coverage: the list as a whole should cover every key term
"""

from itertools import combinations
from typing import Dict, List, Optional

from query_processing.preprocessing import QueryPreprocessor
from retrieval.types import SearchResult

DEFAULT_QUALITY_WEIGHTS: Dict[str, float] = {
    "diversity": 0.3,
    "relevance": 0.5,
    "coverage": 0.2,
}


def jaccard_similarity(text1: str, text2: str) -> float:
    """Compute word-level Jaccard similarity."""
    words1 = set(text1.lower().split())
    words2 = set(text2.lower().split())

    # Two empty texts are identical
    if not words1 and not words2:
        return 1.0
    if not words1 or not words2:
        return 0.0

    intersection = len(words1 & words2)
    union = len(words1 | words2)
    return intersection / union


class QualityAssessor:
    """
    Score a result list against a query.

    Weights need not sum to 1; the score is the plain weighted sum.

    Usage:
        assessor = QualityAssessor()
        quality = assessor.assess("rotate api keys", results)
    """

    def __init__(
        self,
        diversity_weight: float = 0.3,
        relevance_weight: float = 0.5,
        coverage_weight: float = 0.2,
        preprocessor: Optional[QueryPreprocessor] = None,
    ):
        self.diversity_weight = diversity_weight
        self.relevance_weight = relevance_weight
        self.coverage_weight = coverage_weight
        self.preprocessor = preprocessor or QueryPreprocessor()

    def assess(self, query: str, results: List[SearchResult]) -> float:
        """Weighted quality score; 0 for an empty result list."""
        if not results:
            return 0.0

        key_terms = self.preprocessor.extract_key_terms(query)

        return (
            self.diversity(results) * self.diversity_weight
            + self.relevance(key_terms, results) * self.relevance_weight
            + self.coverage(key_terms, results) * self.coverage_weight
        )

    def diversity(self, results: List[SearchResult]) -> float:
        """1 - mean pairwise Jaccard similarity; 1 with fewer than two results."""
        if len(results) <= 1:
            return 1.0

        similarities = [
            jaccard_similarity(a.chunk.text, b.chunk.text)
            for a, b in combinations(results, 2)
        ]
        return 1.0 - sum(similarities) / len(similarities)

    def relevance(self, key_terms: List[str], results: List[SearchResult]) -> float:
        """Mean fraction of key terms found in each result."""
        if not key_terms or not results:
            return 0.0

        scores = []
        for result in results:
            content = result.chunk.text.lower()
            matches = sum(1 for term in key_terms if term in content)
            scores.append(matches / len(key_terms))

        return sum(scores) / len(results)

    def coverage(self, key_terms: List[str], results: List[SearchResult]) -> float:
        """Fraction of distinct key terms found anywhere; 1 with no key terms."""
        distinct = set(key_terms)
        if not distinct:
            return 1.0

        covered = set()
        for result in results:
            content = result.chunk.text.lower()
            covered.update(term for term in distinct if term in content)

        return len(covered) / len(distinct)


def assess_result_quality(
    query: str,
    results: List[SearchResult],
    weights: Optional[Dict[str, float]] = None,
) -> float:
    """
    Convenience function for quality scoring.

    Args:
        query: Query text
        results: Results to score
        weights: Optional {"diversity", "relevance", "coverage"} overrides

    Returns:
        Quality score
    """
    merged = {**DEFAULT_QUALITY_WEIGHTS, **(weights or {})}
    assessor = QualityAssessor(
        diversity_weight=merged["diversity"],
        relevance_weight=merged["relevance"],
        coverage_weight=merged["coverage"],
    )
    return assessor.assess(query, results)
