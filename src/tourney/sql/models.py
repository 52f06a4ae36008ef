from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB

from .engine import Base

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")
DateTimeTZ = DateTime(timezone=True)


# =============================================================================
# Site entities (admin console CRUD)
# =============================================================================


class Game(Base):
    __tablename__ = "games"

    game_id = Column(String, primary_key=True)
    name = Column(String, nullable=False)


class Tournament(Base):
    """A tournament or a scrim (``event_type``)."""

    __tablename__ = "tournaments"
    __table_args__ = (
        Index("ix_tournaments_event_type_status", "event_type", "status"),
    )

    tournament_id = Column(String, primary_key=True)
    game_id = Column(String, ForeignKey("games.game_id"), nullable=True)
    event_type = Column(String, nullable=False, default="tournament")
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    banner_url = Column(String, nullable=True)
    start_date = Column(String, nullable=True)  # ISO8601 date
    end_date = Column(String, nullable=True)
    status = Column(String, nullable=True)  # upcoming / live / completed
    registration_status = Column(String, nullable=True)  # open / closed
    mode = Column(String, nullable=True)  # solo / duo / squad
    match_type = Column(String, nullable=True)
    perspective = Column(String, nullable=True)  # TPP / FPP
    tier = Column(String, nullable=True)
    prize_pool = Column(Float, nullable=True)
    registration_charge = Column(Float, nullable=True)
    featured = Column(Boolean, nullable=True)
    max_slots = Column(Integer, nullable=True)
    region = Column(String, nullable=True)
    rules = Column(Text, nullable=True)
    contact_discord = Column(String, nullable=True)
    api_key_required = Column(Boolean, nullable=True)
    api_provider = Column(String, nullable=True)
    pubg_tournament_id = Column(String, nullable=True)
    custom_match_mode = Column(Boolean, nullable=True)
    allow_non_custom = Column(Boolean, nullable=True)
    custom_match_ids = Column(JSONType, nullable=True)  # list of match ids
    created_at = Column(DateTimeTZ, nullable=True, server_default=func.now())


class Team(Base):
    __tablename__ = "teams"

    game_id = Column(String, ForeignKey("games.game_id"), primary_key=True)
    team_id = Column(String, primary_key=True)
    team_name = Column(String, nullable=True)
    region = Column(String, nullable=True)
    team_logo_url = Column(String, nullable=True)
    captain_player_id = Column(String, nullable=True)
    discord_contact = Column(String, nullable=True)
    notes = Column(Text, nullable=True)


class Player(Base):
    __tablename__ = "players"

    game_id = Column(String, ForeignKey("games.game_id"), primary_key=True)
    player_id = Column(String, primary_key=True)
    player_name = Column(String, nullable=True)
    discord_id = Column(String, nullable=True)
    pubg_ingame_name = Column(String, nullable=True)
    profile_pic_url = Column(String, nullable=True)
    email = Column(String, nullable=True)
    region = Column(String, nullable=True)
    notes = Column(Text, nullable=True)


class Participant(Base):
    """A team or player registered for a tournament."""

    __tablename__ = "participants"
    __table_args__ = (Index("ix_participants_tournament", "tournament_id"),)

    participant_id = Column(String, primary_key=True)
    tournament_id = Column(
        String, ForeignKey("tournaments.tournament_id"), nullable=True
    )
    type = Column(String, nullable=True)  # team / player
    linked_team_id = Column(String, nullable=True)
    linked_player_id = Column(String, nullable=True)
    status = Column(String, nullable=True)
    payment_status = Column(String, nullable=True)
    slot_number = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)


class Announcement(Base):
    __tablename__ = "announcements"

    announcement_id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    body = Column(Text, nullable=True)
    type = Column(String, nullable=True)
    importance = Column(String, nullable=True)
    created_at = Column(String, nullable=True)  # ISO8601


class Winner(Base):
    __tablename__ = "winners"
    __table_args__ = (Index("ix_winners_tournament", "tournament_id"),)

    winner_id = Column(String, primary_key=True)
    tournament_id = Column(String, nullable=True)
    place = Column(Integer, nullable=True)
    team_name = Column(String, nullable=True)
    points = Column(Float, nullable=True)
    kills = Column(Integer, nullable=True)


# =============================================================================
# Raw match store and tournament links
# =============================================================================


class RawMatch(Base):
    __tablename__ = "matches"

    match_id = Column(String, primary_key=True)
    payload = Column(JSONType, nullable=False)
    created_at = Column(DateTimeTZ, nullable=False, server_default=func.now())
    updated_at = Column(DateTimeTZ, nullable=False, server_default=func.now())


class TournamentMatch(Base):
    __tablename__ = "tournament_matches"
    __table_args__ = (Index("ix_tournament_matches_match", "match_id"),)

    tournament_id = Column(String, primary_key=True)
    match_id = Column(String, primary_key=True)
    # Insertion order within the tournament
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTimeTZ, nullable=False, server_default=func.now())


# =============================================================================
# Normalized match tables
# =============================================================================


class MatchInformation(Base):
    __tablename__ = "match_information"
    __table_args__ = (
        Index("ix_match_information_tournament", "tournament_id"),
    )

    match_id = Column(String, primary_key=True)
    game_id = Column(String, nullable=True)
    tournament_id = Column(String, nullable=True)
    created_at_api = Column(String, nullable=True)
    created_at = Column(String, nullable=True)
    duration = Column(Integer, nullable=True)
    game_mode = Column(String, nullable=True)
    map_name = Column(String, nullable=True)
    match_type = Column(String, nullable=True)
    shard_id = Column(String, nullable=True)
    title_id = Column(String, nullable=True)
    season_state = Column(String, nullable=True)
    is_custom_match = Column(Boolean, nullable=True)
    tags = Column(JSONType, nullable=True)
    stats = Column(JSONType, nullable=True)


class MatchAsset(Base):
    __tablename__ = "match_assets"
    __table_args__ = (Index("ix_match_assets_match", "match_id"),)

    asset_id = Column(String, primary_key=True)
    match_id = Column(
        String, ForeignKey("match_information.match_id"), nullable=False
    )
    game_id = Column(String, nullable=True)
    url = Column(String, nullable=True)
    name = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    created_at_api = Column(String, nullable=True)
    created_at = Column(String, nullable=True)


class MatchRoster(Base):
    __tablename__ = "match_rosters"

    match_id = Column(
        String, ForeignKey("match_information.match_id"), primary_key=True
    )
    roster_id = Column(String, primary_key=True)
    team_id = Column(String, nullable=True)
    rank = Column(Integer, nullable=True)
    won = Column(Boolean, nullable=True)


class TournamentRoster(Base):
    __tablename__ = "tournament_rosters"
    __table_args__ = (Index("ix_tournament_rosters_tournament", "tournament_id"),)

    roster_id = Column(String, primary_key=True)
    tournament_id = Column(String, nullable=False)
    game_id = Column(String, nullable=True)
    team_id = Column(String, nullable=True)


class MatchPlayerStats(Base):
    """One participant (player) record within one match."""

    __tablename__ = "match_player_stats"
    __table_args__ = (
        Index("ix_match_player_stats_roster", "roster_id"),
        Index("ix_match_player_stats_player", "game_id", "player_id"),
    )

    match_id = Column(
        String, ForeignKey("match_information.match_id"), primary_key=True
    )
    player_id = Column(String, primary_key=True)
    game_id = Column(String, nullable=True)
    roster_id = Column(String, nullable=True)

    dbnos = Column(Integer, nullable=True)
    assists = Column(Integer, nullable=True)
    boosts = Column(Integer, nullable=True)
    damage_dealt = Column(Float, nullable=True)
    death_type = Column(String, nullable=True)
    headshot_kills = Column(Integer, nullable=True)
    heals = Column(Integer, nullable=True)
    kill_place = Column(Integer, nullable=True)
    kill_streaks = Column(Integer, nullable=True)
    kills = Column(Integer, nullable=True)
    longest_kill = Column(Float, nullable=True)
    revives = Column(Integer, nullable=True)
    ride_distance = Column(Float, nullable=True)
    road_kills = Column(Integer, nullable=True)
    swim_distance = Column(Float, nullable=True)
    team_kills = Column(Integer, nullable=True)
    time_survived = Column(Float, nullable=True)
    walk_distance = Column(Float, nullable=True)
    weapons_acquired = Column(Integer, nullable=True)
    win_place = Column(Integer, nullable=True)

    raw_stats = Column(JSONType, nullable=True)


class RosterPlayer(Base):
    __tablename__ = "roster_players"

    roster_id = Column(String, primary_key=True)
    player_id = Column(String, primary_key=True)
    game_id = Column(String, nullable=True)
