"""cachebridge: a generic cache contract on top of a cache engine's primitives."""

from cachebridge.cache import (
    EXPIRED,
    INFINITY,
    Cache,
    CacheHandle,
    CacheStream,
    EngineAdapter,
    Entry,
    LocalEngine,
    Query,
    QueryOperation,
    ReturnShape,
    Stats,
    WritePolicy,
)
from cachebridge.kernel.exceptions import (
    CacheBridgeException,
    PersistenceError,
    QueryError,
)

__version__ = "0.1.0"

__all__ = [
    "EXPIRED",
    "INFINITY",
    "Cache",
    "CacheBridgeException",
    "CacheHandle",
    "CacheStream",
    "EngineAdapter",
    "Entry",
    "LocalEngine",
    "PersistenceError",
    "Query",
    "QueryError",
    "QueryOperation",
    "ReturnShape",
    "Stats",
    "WritePolicy",
]
