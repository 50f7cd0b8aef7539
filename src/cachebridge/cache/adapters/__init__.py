"""Cache engines: concrete implementations of the engine port."""

from cachebridge.cache.adapters.local import LocalEngine

__all__ = ["LocalEngine"]
