"""Client for the external match stats API."""

from tourney.scraping.api import StatsApiClient, extract_player_match_ids
from tourney.scraping.storage import save_match_payload

__all__ = [
    "StatsApiClient",
    "extract_player_match_ids",
    "save_match_payload",
]
