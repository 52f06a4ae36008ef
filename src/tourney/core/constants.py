"""
Constants for match ingestion and the stats API client.
"""

# =============================================================================
# Games
# =============================================================================

DEFAULT_GAME_ID = "pubg"

# Display names that cannot be derived by title-casing the game id
GAME_DISPLAY_NAMES = {"pubg": "PUBG"}

# =============================================================================
# Stats API
# =============================================================================

STATS_API_BASE_URL = "https://api.pubg.com"
STATS_API_DEFAULT_SHARD = "steam"
STATS_API_CONTENT_TYPE = "application/vnd.api+json"

DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_FACTOR = 1.5

# =============================================================================
# Payload record types (JSON:API "included" entries)
# =============================================================================

ROSTER_TYPE = "roster"
PARTICIPANT_TYPE = "participant"
ASSET_TYPE = "asset"

# =============================================================================
# Column mappings
# =============================================================================

# data.attributes key -> match_information column
MATCH_ATTRIBUTE_COLUMNS = {
    "duration": "duration",
    "gameMode": "game_mode",
    "mapName": "map_name",
    "matchType": "match_type",
    "shardId": "shard_id",
    "titleId": "title_id",
    "seasonState": "season_state",
    "isCustomMatch": "is_custom_match",
}

# participant attributes.stats key -> match_player_stats column
PARTICIPANT_STAT_COLUMNS = {
    "DBNOs": "dbnos",
    "assists": "assists",
    "boosts": "boosts",
    "damageDealt": "damage_dealt",
    "deathType": "death_type",
    "headshotKills": "headshot_kills",
    "heals": "heals",
    "killPlace": "kill_place",
    "killStreaks": "kill_streaks",
    "kills": "kills",
    "longestKill": "longest_kill",
    "revives": "revives",
    "rideDistance": "ride_distance",
    "roadKills": "road_kills",
    "swimDistance": "swim_distance",
    "teamKills": "team_kills",
    "timeSurvived": "time_survived",
    "walkDistance": "walk_distance",
    "weaponsAcquired": "weapons_acquired",
    "winPlace": "win_place",
}

# Destination tables written by the normalizer, in write order
MATCH_INFORMATION_TABLE = "match_information"
MATCH_ASSETS_TABLE = "match_assets"
TEAMS_TABLE = "teams"
TOURNAMENT_ROSTERS_TABLE = "tournament_rosters"
MATCH_ROSTERS_TABLE = "match_rosters"
PLAYERS_TABLE = "players"
MATCH_PLAYER_STATS_TABLE = "match_player_stats"
ROSTER_PLAYERS_TABLE = "roster_players"

NORMALIZED_TABLES = (
    MATCH_INFORMATION_TABLE,
    MATCH_ASSETS_TABLE,
    TEAMS_TABLE,
    TOURNAMENT_ROSTERS_TABLE,
    MATCH_ROSTERS_TABLE,
    PLAYERS_TABLE,
    MATCH_PLAYER_STATS_TABLE,
    ROSTER_PLAYERS_TABLE,
)

# Conflict keys per destination table
CONFLICT_KEYS = {
    MATCH_INFORMATION_TABLE: ("match_id",),
    MATCH_ASSETS_TABLE: ("asset_id",),
    TEAMS_TABLE: ("game_id", "team_id"),
    TOURNAMENT_ROSTERS_TABLE: ("roster_id",),
    MATCH_ROSTERS_TABLE: ("match_id", "roster_id"),
    PLAYERS_TABLE: ("game_id", "player_id"),
    MATCH_PLAYER_STATS_TABLE: ("match_id", "player_id"),
    ROSTER_PLAYERS_TABLE: ("roster_id", "player_id"),
}
