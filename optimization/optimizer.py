"""
Adaptive search optimizer.

Orchestrates one optimized hybrid search:
    classify -> resolve weights -> cache check
    -> concurrent dense + lexical fetch -> weighted RRF
    -> quality score -> cache store -> performance record

and learns per-query fusion weights from feedback.
"""

import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from caching.result_cache import ResultCache
from monitoring.performance import PerformanceMonitor, PerformanceStats
from query_processing.classifier import QueryClassifier, QueryType
from query_processing.preprocessing import QueryPreprocessor
from retrieval.overlap import analyze_overlap
from retrieval.score_fusion import weighted_reciprocal_rank_fusion
from retrieval.types import InvalidConfigurationError, SearchResult
from shared.config import OptimizerConfig, get_settings

from .backends import DenseBackend, LexicalBackend, search_both
from .patterns import PatternStore, QueryPattern
from .quality import QualityAssessor

logger = logging.getLogger(__name__)


class SearchOptimizer:
    """
    Adaptive hybrid search optimizer.

    Owns its cache, pattern table and performance history. Construct one
    per application (or per test) and pass it to callers. Without a
    config, settings from the environment are used.

    Usage:
        optimizer = SearchOptimizer(OptimizerConfig())
        results = await optimizer.optimized_search(
            "how to rotate api keys",
            query_vector,
            dense_backend,
            lexical_backend,
            limit=5,
        )
    """

    def __init__(
        self,
        config: Optional[OptimizerConfig] = None,
        cache: Optional[ResultCache] = None,
        classifier: Optional[QueryClassifier] = None,
        preprocessor: Optional[QueryPreprocessor] = None,
        quality_assessor: Optional[QualityAssessor] = None,
        monitor: Optional[PerformanceMonitor] = None,
        patterns: Optional[PatternStore] = None,
    ):
        self.config = config or get_settings().optimizer

        if cache is None:
            cache = ResultCache(
                ttl_seconds=self.config.cache.ttl_seconds,
                max_entries=self.config.cache.max_entries,
            )
        if preprocessor is None:
            preprocessor = QueryPreprocessor(min_term_length=self.config.quality.min_term_length)
        if quality_assessor is None:
            quality_assessor = QualityAssessor(
                diversity_weight=self.config.quality.diversity_weight,
                relevance_weight=self.config.quality.relevance_weight,
                coverage_weight=self.config.quality.coverage_weight,
                preprocessor=preprocessor,
            )

        self.cache = cache
        self.classifier = classifier or QueryClassifier()
        self.preprocessor = preprocessor
        self.quality_assessor = quality_assessor
        self.monitor = monitor if monitor is not None else PerformanceMonitor(self.config.history_size)
        self.patterns = patterns if patterns is not None else PatternStore()

    def classify_query(self, query: str) -> QueryType:
        """Classify query into factual / conceptual / procedural / unknown."""
        return self.classifier.classify(query)

    def get_optimal_weights(self, query: str) -> Tuple[float, float]:
        """
        Resolve (dense_weight, lexical_weight) for a query.

        A learned pattern wins once its confidence exceeds the threshold;
        otherwise the category default is used.
        """
        pattern = self.patterns.get(query)
        if pattern and pattern.confidence > self.config.confidence_threshold:
            logger.debug(
                f"Using learned weights for query (confidence={pattern.confidence:.2f}): "
                f"{pattern.optimal_weights}"
            )
            return pattern.optimal_weights

        return self.classifier.default_weights(self.classify_query(query))

    def update_pattern(
        self,
        query: str,
        weights: Sequence[float],
        quality_score: float,
    ) -> Optional[QueryPattern]:
        """
        Feed observed weights back into the pattern for a query.

        Args:
            query: Exact query string
            weights: Observed (dense_weight, lexical_weight)
            quality_score: Quality the weights achieved

        Returns:
            Updated pattern, or None when adaptive learning is disabled
        """
        if not self.config.adaptive_weights:
            return None

        pattern = self.patterns.update(
            query,
            self.classify_query(query),
            (weights[0], weights[1]),
            learning_rate=self.config.learning_rate,
        )
        logger.debug(
            f"Pattern updated: samples={pattern.sample_count}, "
            f"confidence={pattern.confidence:.2f}, quality={quality_score:.3f}"
        )
        return pattern

    async def optimized_search(
        self,
        query_text: str,
        query_vector: Sequence[float],
        dense_backend: DenseBackend,
        lexical_backend: LexicalBackend,
        limit: int = 10,
        custom_weights: Optional[Sequence[float]] = None,
        bypass_cache: bool = False,
    ) -> List[SearchResult]:
        """
        Cached, weight-optimized hybrid search.

        Args:
            query_text: Raw query, also the cache key
            query_vector: Query embedding for the dense backend
            dense_backend: Backend with search(query_vector, k)
            lexical_backend: Backend with search(query_text, k)
            limit: Number of results to return
            custom_weights: (dense_weight, lexical_weight) override. Not part of
                the cache key: a cache hit returns the stored list whatever
                weights it was fused with. Pass bypass_cache to force them.
            bypass_cache: Skip the cache lookup (results are still cached)

        Returns:
            Fused results with source set per item

        Raises:
            InvalidConfigurationError: If limit is negative
            Exception: Whatever a backend raised, unmodified
        """
        if limit < 0:
            raise InvalidConfigurationError(f"limit must be >= 0, got {limit}")

        if self.config.enable_caching and not bypass_cache:
            cached = self.cache.get(query_text)
            if cached is not None:
                return cached[:limit]

        if custom_weights is not None:
            weights = (float(custom_weights[0]), float(custom_weights[1]))
        else:
            weights = self.get_optimal_weights(query_text)

        fetch_k = limit * self.config.fetch_multiplier
        start_time = time.perf_counter()

        try:
            dense_results, lexical_results = await search_both(
                dense_backend, lexical_backend, query_text, query_vector, fetch_k
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.error(f"Optimized search failed after {latency_ms:.1f}ms: {e}")
            if self.config.enable_monitoring:
                self.monitor.record(query_text, latency_ms, weights, 0.0, failed=True)
            raise

        fused = weighted_reciprocal_rank_fusion(
            dense_results,
            lexical_results,
            weights,
            k=limit,
            rrf_constant=self.config.rrf_constant,
        )
        latency_ms = (time.perf_counter() - start_time) * 1000

        if self.config.assess_quality:
            quality = self.quality_assessor.assess(query_text, fused)
        else:
            quality = self.config.assumed_quality

        complementary_score = None
        if self.config.learn_from_searches:
            overlap = analyze_overlap(dense_results, lexical_results)
            complementary_score = overlap.complementary_score
            logger.debug(
                f"Overlap: dense_only={overlap.dense_only_count}, "
                f"lexical_only={overlap.lexical_only_count}, "
                f"overlap={overlap.overlap_count}, "
                f"complementary={complementary_score:.2f}"
            )
            if quality >= self.config.min_learning_quality:
                self.update_pattern(query_text, weights, quality)

        if self.config.enable_caching:
            self.cache.put(query_text, fused)

        if self.config.enable_monitoring:
            self.monitor.record(
                query_text,
                latency_ms,
                weights,
                quality,
                complementary_score=complementary_score,
            )

        return fused

    def get_performance_stats(self, time_window: Optional[float] = None) -> PerformanceStats:
        """
        Aggregate latency, throughput, cache hit rate and error rate.

        Args:
            time_window: Only consider the last N seconds
        """
        cache_hit_rate = self.cache.hit_rate if self.config.enable_caching else 0.0
        return self.monitor.get_stats(time_window, cache_hit_rate=cache_hit_rate)

    def export_patterns(self) -> Dict[str, Dict[str, Any]]:
        """Export learned patterns as JSON-ready dicts keyed by query."""
        return self.patterns.export()

    def import_patterns(self, patterns: Mapping[str, Any]) -> None:
        """Replace learned patterns with previously exported ones."""
        count = self.patterns.load(patterns)
        logger.info(f"Imported {count} query patterns")

    def clear_all(self) -> None:
        """Clear patterns, performance history and cache."""
        self.patterns.clear()
        self.monitor.reset()
        self.cache.clear()
        logger.info("Cleared optimizer patterns, history and cache")
