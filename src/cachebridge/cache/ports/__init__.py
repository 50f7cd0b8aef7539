"""Cache ports: contracts between the adapter layer and engines."""

from cachebridge.cache.ports.outbound import (
    CacheEngine,
    EngineCursor,
    EngineExecutionError,
    EnginePersistenceError,
)

__all__ = ["CacheEngine", "EngineCursor", "EngineExecutionError", "EnginePersistenceError"]
