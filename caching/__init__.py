"""
Result Caching Module.

Repeated queries should not hit both backends twice.

Usage:
    from caching import ResultCache

    cache = ResultCache(ttl_seconds=300, max_entries=1000)
    cache.put("what is rrf", results)
    cache.get("what is rrf")
"""

from .result_cache import CacheEntry, ResultCache

__all__ = ["CacheEntry", "ResultCache"]
