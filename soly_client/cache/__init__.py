"""Result cache shared by session reads and record queries."""

from soly_client.cache.query_cache import CacheEvent, CacheListener, QueryCache, QueryState

__all__ = ["CacheEvent", "CacheListener", "QueryCache", "QueryState"]
