import asyncio

import pytest

from caching.result_cache import ResultCache
from optimization.backends import search_both
from optimization.optimizer import SearchOptimizer
from query_processing.classifier import QueryType
from retrieval.types import InvalidConfigurationError, ResultSource
from shared.config import CacheConfig, OptimizerConfig
from tests.conftest import (
    AsyncDenseBackend,
    FailingBackend,
    ForwardingDenseBackend,
    SlowBackend,
    SyncLexicalBackend,
    make_result,
    make_results,
)

VECTOR = [0.1, 0.2, 0.3]


@pytest.fixture
def dense():
    return AsyncDenseBackend(
        [
            make_result("a", 0.9, text="paris is the capital of france"),
            make_result("b", 0.8, text="france is in europe"),
            make_result("c", 0.7, text="berlin is the capital of germany"),
        ]
    )


@pytest.fixture
def lexical():
    return SyncLexicalBackend(
        [
            make_result("b", 12.0, text="france is in europe"),
            make_result("d", 9.0, text="the capital of france has many museums"),
        ]
    )


class TestWeightResolution:
    def test_factual_defaults(self, optimizer):
        assert optimizer.classify_query("What is the capital?") == QueryType.FACTUAL
        assert optimizer.get_optimal_weights("What is the capital?") == (0.3, 0.7)

    def test_category_defaults(self, optimizer):
        assert optimizer.get_optimal_weights("explain fusion") == (0.8, 0.2)
        assert optimizer.get_optimal_weights("how to index") == (0.6, 0.4)
        assert optimizer.get_optimal_weights("vector stores") == (0.7, 0.3)

    def test_learned_pattern_needs_confidence(self, optimizer):
        query = "vector stores"
        optimizer.update_pattern(query, (0.1, 0.9), quality_score=0.9)
        # confidence 0.5
        assert optimizer.get_optimal_weights(query) == (0.7, 0.3)

        for _ in range(5):
            optimizer.update_pattern(query, (0.1, 0.9), quality_score=0.9)
        # confidence 0.75
        assert optimizer.get_optimal_weights(query) == pytest.approx((0.1, 0.9))

    def test_adaptive_disabled(self, config):
        config.adaptive_weights = False
        optimizer = SearchOptimizer(config)
        assert optimizer.update_pattern("q", (0.1, 0.9), 1.0) is None
        assert optimizer.export_patterns() == {}


class TestOptimizedSearch:
    @pytest.mark.asyncio
    async def test_fuses_with_sources(self, optimizer, dense, lexical):
        results = await optimizer.optimized_search(
            "capital of france", VECTOR, dense, lexical, limit=3
        )

        assert results[0].id == "b"
        assert results[0].source == ResultSource.HYBRID
        assert len(results) == 3
        assert [r.rank for r in results] == [1, 2, 3]
        sources = {r.id: r.source for r in results}
        assert sources["a"] == ResultSource.DENSE

    @pytest.mark.asyncio
    async def test_fetches_double_limit(self, optimizer, dense, lexical):
        await optimizer.optimized_search("capital of france", VECTOR, dense, lexical, limit=2)
        assert dense.calls == [(VECTOR, 4)]
        assert lexical.calls == [("capital of france", 4)]

    @pytest.mark.asyncio
    async def test_custom_weights(self, optimizer, dense, lexical):
        results = await optimizer.optimized_search(
            "capital of france", VECTOR, dense, lexical, limit=4, custom_weights=(1.0, 0.0)
        )
        assert [r.id for r in results][:2] == ["a", "b"]
        assert results[0].score == pytest.approx(1 / 61)

    @pytest.mark.asyncio
    async def test_backend_returning_awaitable(self, optimizer, dense, lexical):
        forwarding = ForwardingDenseBackend(dense)

        results = await optimizer.optimized_search(
            "capital of france", VECTOR, forwarding, lexical, limit=3
        )

        assert dense.calls == [(VECTOR, 6)]
        assert results[0].id == "b"
        assert results[0].source == ResultSource.HYBRID

    @pytest.mark.asyncio
    async def test_search_both_awaits_returned_coroutine(self, dense, lexical):
        dense_results, lexical_results = await search_both(
            ForwardingDenseBackend(dense), lexical, "capital", VECTOR, 2
        )

        assert [r.id for r in dense_results] == [r.id for r in dense.results[:2]]
        assert [r.id for r in lexical_results] == [r.id for r in lexical.results[:2]]

    @pytest.mark.asyncio
    async def test_cache_hit_skips_backends(self, optimizer, dense, lexical):
        first = await optimizer.optimized_search("capital", VECTOR, dense, lexical, limit=3)
        second = await optimizer.optimized_search("capital", VECTOR, dense, lexical, limit=2)

        assert len(dense.calls) == 1
        assert second == first[:2]
        assert optimizer.get_performance_stats().cache_hit_rate == 0.5

    @pytest.mark.asyncio
    async def test_bypass_cache(self, optimizer, dense, lexical):
        await optimizer.optimized_search("capital", VECTOR, dense, lexical)
        await optimizer.optimized_search("capital", VECTOR, dense, lexical, bypass_cache=True)
        assert len(dense.calls) == 2

    @pytest.mark.asyncio
    async def test_cache_hit_ignores_custom_weights(self, optimizer, dense, lexical):
        query = "capital of france"
        first = await optimizer.optimized_search(query, VECTOR, dense, lexical, limit=4)
        cached = await optimizer.optimized_search(
            query, VECTOR, dense, lexical, limit=4, custom_weights=(1.0, 0.0)
        )
        assert cached == first
        assert len(dense.calls) == 1

        forced = await optimizer.optimized_search(
            query, VECTOR, dense, lexical, limit=4, custom_weights=(1.0, 0.0), bypass_cache=True
        )
        assert forced[0].id == "a"
        assert len(dense.calls) == 2

    @pytest.mark.asyncio
    async def test_cache_expiry(self, optimizer, dense, lexical, clock):
        await optimizer.optimized_search("capital", VECTOR, dense, lexical)
        clock.advance(301)
        await optimizer.optimized_search("capital", VECTOR, dense, lexical)
        assert len(dense.calls) == 2

    @pytest.mark.asyncio
    async def test_caching_disabled(self, config, dense, lexical):
        config.enable_caching = False
        optimizer = SearchOptimizer(config)
        await optimizer.optimized_search("capital", VECTOR, dense, lexical)
        await optimizer.optimized_search("capital", VECTOR, dense, lexical)
        assert len(dense.calls) == 2
        assert len(optimizer.cache) == 0

    @pytest.mark.asyncio
    async def test_records_performance(self, optimizer, dense, lexical):
        await optimizer.optimized_search("capital of france", VECTOR, dense, lexical)

        samples = optimizer.monitor.samples()
        assert len(samples) == 1
        assert samples[0].weights == (0.7, 0.3)
        assert samples[0].failed is False
        assert 0.0 < samples[0].result_quality <= 1.0

        stats = optimizer.get_performance_stats()
        assert stats.sample_count == 1
        assert stats.error_rate == 0.0

    @pytest.mark.asyncio
    async def test_empty_backends(self, optimizer):
        results = await optimizer.optimized_search(
            "anything", VECTOR, AsyncDenseBackend([]), SyncLexicalBackend([])
        )
        assert results == []
        assert optimizer.monitor.samples()[0].failed is False

    @pytest.mark.asyncio
    async def test_zero_limit(self, optimizer, dense, lexical):
        assert await optimizer.optimized_search("q", VECTOR, dense, lexical, limit=0) == []

    @pytest.mark.asyncio
    async def test_negative_limit(self, optimizer, dense, lexical):
        with pytest.raises(InvalidConfigurationError):
            await optimizer.optimized_search("q", VECTOR, dense, lexical, limit=-1)


class TestFailureHandling:
    @pytest.mark.asyncio
    async def test_backend_error_propagates_and_is_recorded(self, optimizer, lexical):
        error = ConnectionError("vector store down")

        with pytest.raises(ConnectionError) as exc_info:
            await optimizer.optimized_search(
                "capital", VECTOR, FailingBackend(error), lexical
            )

        assert exc_info.value is error
        sample = optimizer.monitor.samples()[0]
        assert sample.result_quality == 0.0
        assert sample.failed is True
        assert optimizer.get_performance_stats().error_rate == 1.0
        assert optimizer.cache.get("capital") is None

    @pytest.mark.asyncio
    async def test_failure_cancels_other_branch(self, optimizer):
        slow = SlowBackend()

        with pytest.raises(RuntimeError):
            await optimizer.optimized_search(
                "capital", VECTOR, slow, FailingBackend(RuntimeError("boom"))
            )

        assert slow.cancelled is True

    @pytest.mark.asyncio
    async def test_caller_cancellation_reaches_both_backends(self, optimizer):
        dense_slow = SlowBackend()
        lexical_slow = SlowBackend()

        task = asyncio.ensure_future(
            optimizer.optimized_search("capital", VECTOR, dense_slow, lexical_slow)
        )
        await dense_slow.started.wait()
        await lexical_slow.started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert dense_slow.cancelled is True
        assert lexical_slow.cancelled is True

    @pytest.mark.asyncio
    async def test_error_rate_mixes_outcomes(self, optimizer, dense, lexical):
        await optimizer.optimized_search("ok", VECTOR, dense, lexical)
        with pytest.raises(ValueError):
            await optimizer.optimized_search(
                "bad", VECTOR, dense, FailingBackend(ValueError("bad query"))
            )
        assert optimizer.get_performance_stats().error_rate == 0.5


class TestLearningFromSearches:
    @pytest.mark.asyncio
    async def test_overlap_feedback(self, config, dense, lexical):
        config.learn_from_searches = True
        config.min_learning_quality = 0.0
        optimizer = SearchOptimizer(config)

        await optimizer.optimized_search(
            "capital of france", VECTOR, dense, lexical, bypass_cache=True
        )

        sample = optimizer.monitor.samples()[0]
        # dense {a, b, c}, lexical {b, d}
        assert sample.complementary_score == pytest.approx(3 / 4)
        assert optimizer.export_patterns()["capital of france"]["sample_count"] == 1

    @pytest.mark.asyncio
    async def test_low_quality_not_learned(self, config, dense, lexical):
        config.learn_from_searches = True
        config.min_learning_quality = 2.0
        optimizer = SearchOptimizer(config)

        await optimizer.optimized_search("capital of france", VECTOR, dense, lexical)
        assert optimizer.export_patterns() == {}


class TestMaintenance:
    def test_export_import(self, optimizer):
        optimizer.update_pattern("What is RRF?", (0.2, 0.8), 0.9)
        exported = optimizer.export_patterns()

        fresh = SearchOptimizer(OptimizerConfig(cache=CacheConfig(ttl_seconds=60, max_entries=10)))
        fresh.import_patterns(exported)

        assert fresh.export_patterns() == exported
        assert exported["What is RRF?"]["query_type"] == "factual"

    @pytest.mark.asyncio
    async def test_clear_all(self, optimizer, dense, lexical):
        await optimizer.optimized_search("capital", VECTOR, dense, lexical)
        optimizer.update_pattern("capital", (0.5, 0.5), 1.0)

        optimizer.clear_all()

        assert optimizer.export_patterns() == {}
        assert len(optimizer.monitor) == 0
        assert len(optimizer.cache) == 0

    def test_isolated_instances(self, config):
        first = SearchOptimizer(config, cache=ResultCache())
        second = SearchOptimizer(config, cache=ResultCache())
        first.update_pattern("q", (0.5, 0.5), 1.0)
        assert second.export_patterns() == {}
