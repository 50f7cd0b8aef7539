"""cachebridge configuration models."""
