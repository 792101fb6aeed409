"""
Result data models for the administrative operations and player queries.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from meta_engine.data_models.tournament import TournamentPlayer


@dataclass(frozen=True)
class ImportResult:
    """Outcome of one tournament import."""
    import_id: str
    imported: int  # Player entries parsed, rated or not
    players_updated: int  # Player entries whose rating changed
    skipped: int = 0  # Player entries with no games
    records: int = 0  # Events parsed from the file


@dataclass(frozen=True)
class RecomputeResult:
    """Outcome of a full rating recompute."""
    players_updated: int
    imports_replayed: int = 0
    imports_skipped: int = 0
    reset: bool = False


@dataclass(frozen=True)
class LeaderboardEntry:
    """Single Glicko-2 leaderboard row."""
    rank: int
    player_id: str
    user_id: Optional[str]
    player_name: str
    rating: float
    rating_deviation: float
    volatility: float
    games_played: int
    display_rating: int
    display_band: int  # Shown as "1687 ± 94"


@dataclass(frozen=True)
class HistoryEntry:
    """One rating period in a player's audit trail."""
    rating_period: str
    rating_before: float
    rd_before: float
    rating_after: float
    rd_after: float
    volatility_after: float
    delta: float
    games_in_period: int
    recorded_at: datetime


@dataclass(frozen=True)
class PlayerProfile:
    """Full rating profile for one player."""
    entry: LeaderboardEntry
    last_rating_period: Optional[str]
    history: List[HistoryEntry]


@dataclass(frozen=True)
class TournamentSummary:
    """Listing row for one stored import."""
    import_id: str
    event_name: str
    event_date: str
    format: str
    meta_window: str
    player_count: int
    imported_at: datetime


@dataclass(frozen=True)
class TournamentEntry:
    """One player entry of a stored import, with its event."""
    event_name: str
    event_date: str
    player: TournamentPlayer


@dataclass(frozen=True)
class TournamentDetail:
    """A stored import with all of its player entries flattened."""
    summary: TournamentSummary
    entries: List[TournamentEntry]
