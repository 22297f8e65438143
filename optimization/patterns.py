"""
Learned per-query fusion weights.

Each query string owns one pattern. Updates blend observed weights in
with an exponential moving average and raise confidence step by step.
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import ValidationError

from query_processing.classifier import QueryType
from retrieval.types import InvalidConfigurationError
from shared.schemas import QueryPatternSchema

logger = logging.getLogger(__name__)

INITIAL_CONFIDENCE = 0.5
CONFIDENCE_STEP = 0.05
MAX_CONFIDENCE = 0.95


@dataclass
class QueryPattern:
    """Learned fusion weights for one query string."""

    query: str
    query_type: QueryType
    optimal_weights: Tuple[float, float]
    confidence: float = INITIAL_CONFIDENCE
    sample_count: int = 1


class PatternStore:
    """
    In-process table of learned query patterns.

    Read-modify-write of a pattern happens under a lock, so concurrent
    updates to the same query never interleave.
    """

    def __init__(self):
        self._patterns: Dict[str, QueryPattern] = {}
        self._lock = threading.Lock()

    def get(self, query: str) -> Optional[QueryPattern]:
        """Return a copy of the pattern for query, if any."""
        with self._lock:
            pattern = self._patterns.get(query)
            return replace(pattern) if pattern else None

    def update(
        self,
        query: str,
        query_type: QueryType,
        weights: Tuple[float, float],
        learning_rate: float = 0.1,
    ) -> QueryPattern:
        """
        Blend observed weights into the pattern for query.

        Formula: w = w_existing * (1 - alpha) + w_observed * alpha

        Creates the pattern at confidence 0.5 on first observation.

        Returns:
            Copy of the updated pattern
        """
        alpha = learning_rate

        with self._lock:
            existing = self._patterns.get(query)

            if existing is None:
                existing = QueryPattern(
                    query=query,
                    query_type=query_type,
                    optimal_weights=(float(weights[0]), float(weights[1])),
                )
                self._patterns[query] = existing
            else:
                existing.optimal_weights = (
                    existing.optimal_weights[0] * (1 - alpha) + weights[0] * alpha,
                    existing.optimal_weights[1] * (1 - alpha) + weights[1] * alpha,
                )
                existing.confidence = min(MAX_CONFIDENCE, existing.confidence + CONFIDENCE_STEP)
                existing.sample_count += 1

            return replace(existing)

    def export(self) -> Dict[str, Dict[str, Any]]:
        """Export all patterns as plain dicts keyed by query."""
        with self._lock:
            return {
                query: QueryPatternSchema(
                    query=p.query,
                    query_type=p.query_type,
                    optimal_weights=p.optimal_weights,
                    confidence=p.confidence,
                    sample_count=p.sample_count,
                ).model_dump(mode="json")
                for query, p in self._patterns.items()
            }

    def load(self, patterns: Mapping[str, Any]) -> int:
        """
        Replace all patterns with validated imported ones.

        Args:
            patterns: {query: dict | QueryPattern}; dicts may use
                      snake_case or camelCase keys

        Returns:
            Number of patterns loaded

        Raises:
            InvalidConfigurationError: If any pattern fails validation
        """
        loaded: Dict[str, QueryPattern] = {}

        for query, raw in patterns.items():
            if isinstance(raw, QueryPattern):
                raw = {
                    "query": raw.query,
                    "query_type": raw.query_type,
                    "optimal_weights": raw.optimal_weights,
                    "confidence": raw.confidence,
                    "sample_count": raw.sample_count,
                }
            try:
                schema = QueryPatternSchema.model_validate(raw)
            except ValidationError as e:
                raise InvalidConfigurationError(f"Invalid pattern for {query!r}: {e}") from e

            loaded[query] = QueryPattern(
                query=schema.query,
                query_type=schema.query_type,
                optimal_weights=schema.optimal_weights,
                confidence=schema.confidence,
                sample_count=schema.sample_count,
            )

        with self._lock:
            self._patterns = loaded

        return len(loaded)

    def clear(self) -> None:
        with self._lock:
            self._patterns.clear()

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, query: str) -> bool:
        return query in self._patterns
