"""Document parsers for upstream HTML listings and retreat RSS feeds."""

from dharmaseed_player.parsers.feed_parser import parse_feed
from dharmaseed_player.parsers.listing_parser import parse_listing

__all__ = ["parse_feed", "parse_listing"]
