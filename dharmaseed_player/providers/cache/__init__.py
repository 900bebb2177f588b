from dharmaseed_player.providers.cache.memory_cache import ExpiringMemoryCache

__all__ = ["ExpiringMemoryCache"]
