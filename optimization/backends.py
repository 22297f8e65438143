"""
Search backend contracts and concurrent invocation.

The core never talks to a vector store or a full-text index directly.
It only needs two collaborators with a search(query, k) method; either
may be synchronous or a coroutine function.
"""

import asyncio
import inspect
from typing import Any, Callable, List, Protocol, Sequence, Tuple, runtime_checkable

from retrieval.types import SearchResult


@runtime_checkable
class DenseBackend(Protocol):
    """Embedding-similarity search."""

    def search(self, query_vector: Sequence[float], k: int) -> List[SearchResult]:
        ...


@runtime_checkable
class LexicalBackend(Protocol):
    """Keyword / full-text search."""

    def search(self, query_text: str, k: int) -> List[SearchResult]:
        ...


async def call_backend(fn: Callable, *args) -> Any:
    """
    Await coroutine functions; run blocking ones in a worker thread.

    A plain function that returns an awaitable (e.g. one that forwards
    to an async client) has that awaitable awaited on the event loop.
    """
    if inspect.iscoroutinefunction(fn):
        return await fn(*args)
    result = await asyncio.to_thread(fn, *args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def search_both(
    dense_backend: DenseBackend,
    lexical_backend: LexicalBackend,
    query_text: str,
    query_vector: Sequence[float],
    k: int,
) -> Tuple[List[SearchResult], List[SearchResult]]:
    """
    Run dense and lexical search concurrently and join.

    If either call fails, the other is cancelled and the original
    exception propagates. Cancelling the caller cancels both.

    Returns:
        (dense_results, lexical_results)
    """
    dense_task = asyncio.ensure_future(call_backend(dense_backend.search, query_vector, k))
    lexical_task = asyncio.ensure_future(call_backend(lexical_backend.search, query_text, k))
    tasks = (dense_task, lexical_task)

    try:
        dense_results, lexical_results = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        # Let cancelled branches unwind before propagating
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    return list(dense_results), list(lexical_results)
