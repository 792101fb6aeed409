"""
Meta aggregation data models

Provides immutable data transfer objects for the read-side aggregation family.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class FactionStat:
    """Win rate and representation for one faction."""
    faction: str
    wins: int
    losses: int
    draws: int
    games: int
    win_rate: float  # 0-1, draws count as half a win
    players: int  # Player entries, not distinct people
    representation_pct: float  # Share of all player entries, 0-1


@dataclass(frozen=True)
class DetachmentStat:
    """Win rate for one (faction, detachment) pair."""
    faction: str
    detachment: str
    wins: int
    losses: int
    draws: int
    games: int
    win_rate: float
    players: int


@dataclass(frozen=True)
class MatchupCell:
    """
    Approximate faction-vs-faction record.
    
    Built from placement comparisons inside each event, not from observed
    pairings, so it is a statistical approximation of the head-to-head.
    """
    faction_a: str
    faction_b: str
    a_wins: int
    b_wins: int
    draws: int
    total_games: int
    a_win_rate: float
    b_win_rate: float


@dataclass(frozen=True)
class ListResult:
    """A player entry exposing its submitted army list."""
    event_name: str
    event_date: str
    placement: int
    faction: str
    detachment: Optional[str]
    list_text: Optional[str]
    player_name: Optional[str]
    wins: int
    losses: int
    draws: int
    points: float
    win_rate: float


@dataclass(frozen=True)
class TimelinePoint:
    """Faction win rate within one date bucket."""
    bucket: str  # Week start date e.g. "2025-06-09"
    faction: str
    wins: int
    losses: int
    draws: int
    games: int
    win_rate: float


@dataclass(frozen=True)
class FactionDetail:
    """Everything shown for a single faction."""
    faction: str
    stat: Optional[FactionStat]
    detachments: List[DetachmentStat]
    timeline: List[TimelinePoint]
    top_lists: List[ListResult]
