from dharmaseed_player.providers.upstream.dharmaseed_client import DharmaSeedClient

__all__ = ["DharmaSeedClient"]
