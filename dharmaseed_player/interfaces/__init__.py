"""Abstract interfaces for swappable infrastructure.

    Interface        ->  Concrete implementation
    ICacheProvider   ->  ExpiringMemoryCache (providers/cache/memory_cache.py)
"""
