import asyncio
from typing import List, Optional, Sequence

import pytest

from caching.result_cache import ResultCache
from optimization.optimizer import SearchOptimizer
from retrieval.types import Chunk, SearchResult
from shared.config import CacheConfig, OptimizerConfig


def make_result(
    chunk_id: str,
    score: float = 1.0,
    rank: int = 0,
    text: Optional[str] = None,
) -> SearchResult:
    return SearchResult(
        chunk=Chunk(id=chunk_id, text=text if text is not None else f"content for {chunk_id}"),
        score=score,
        rank=rank,
    )


def make_results(*ids: str, start_score: float = 1.0, step: float = 0.1) -> List[SearchResult]:
    return [
        make_result(chunk_id, score=start_score - i * step, rank=i + 1)
        for i, chunk_id in enumerate(ids)
    ]


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class AsyncDenseBackend:
    def __init__(self, results: List[SearchResult]):
        self.results = results
        self.calls = []

    async def search(self, query_vector: Sequence[float], k: int) -> List[SearchResult]:
        self.calls.append((list(query_vector), k))
        return self.results[:k]


class SyncLexicalBackend:
    def __init__(self, results: List[SearchResult]):
        self.results = results
        self.calls = []

    def search(self, query_text: str, k: int) -> List[SearchResult]:
        self.calls.append((query_text, k))
        return self.results[:k]


class ForwardingDenseBackend:
    """Plain-def search that hands back an async client's coroutine."""

    def __init__(self, client: AsyncDenseBackend):
        self.client = client

    def search(self, query_vector: Sequence[float], k: int):
        return self.client.search(query_vector, k)


class FailingBackend:
    def __init__(self, error: Exception):
        self.error = error

    async def search(self, query, k):
        raise self.error


class SlowBackend:
    """Blocks until cancelled; records whether cancellation reached it."""

    def __init__(self):
        self.started = asyncio.Event()
        self.cancelled = False

    async def search(self, query, k):
        self.started.set()
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return []


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> OptimizerConfig:
    return OptimizerConfig(
        adaptive_weights=True,
        learning_rate=0.1,
        enable_caching=True,
        enable_monitoring=True,
        history_size=10000,
        cache=CacheConfig(ttl_seconds=300, max_entries=1000),
    )


@pytest.fixture
def optimizer(config: OptimizerConfig, clock: FakeClock) -> SearchOptimizer:
    cache = ResultCache(ttl_seconds=300, max_entries=1000, clock=clock)
    return SearchOptimizer(config, cache=cache)
