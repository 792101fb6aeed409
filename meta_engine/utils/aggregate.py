"""
Meta analytics computed from TournamentRecord lists.

All functions are pure: they take records and return typed stats with
no database access. Results are deterministic for a given input order;
sorts are stable, so ties keep the input record order unless a
secondary key is stated.
"""

from collections import OrderedDict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from meta_engine.constants import AggregationConstants
from meta_engine.data_models.meta import (
    DetachmentStat, FactionStat, ListResult, MatchupCell, TimelinePoint
)
from meta_engine.data_models.tournament import TournamentPlayer, TournamentRecord


class _Tally:
    """Running win/loss/draw counts for one group."""
    
    __slots__ = ('wins', 'losses', 'draws', 'players')
    
    def __init__(self):
        self.wins = 0
        self.losses = 0
        self.draws = 0
        self.players = 0
    
    def add(self, player: TournamentPlayer):
        self.wins += player.wins
        self.losses += player.losses
        self.draws += player.draws
        self.players += 1
    
    @property
    def games(self) -> int:
        return self.wins + self.losses + self.draws
    
    @property
    def win_rate(self) -> float:
        return win_rate(self.wins, self.draws, self.games)


def win_rate(wins: int, draws: int, games: int) -> float:
    """Win rate counting draws as half a win; 0 when no games"""
    if games <= 0:
        return 0.0
    return (wins + draws * 0.5) / games


def iter_players(records: Iterable[TournamentRecord]) -> Iterable[Tuple[TournamentRecord, TournamentPlayer]]:
    for record in records:
        for player in record.players:
            yield record, player


# ---- Faction stats ----

def compute_faction_stats(records: List[TournamentRecord]) -> List[FactionStat]:
    """
    Per-faction games, win rate and representation, best win rate first.
    
    Representation counts player entries, so a player attending two
    events counts twice. Entries with a blank faction are ignored.
    """
    tallies: Dict[str, _Tally] = OrderedDict()
    total_entries = 0
    
    for _, player in iter_players(records):
        faction = player.faction.strip()
        if not faction:
            continue
        total_entries += 1
        tallies.setdefault(faction, _Tally()).add(player)
    
    stats = [
        FactionStat(
            faction=faction,
            wins=tally.wins,
            losses=tally.losses,
            draws=tally.draws,
            games=tally.games,
            win_rate=tally.win_rate,
            players=tally.players,
            representation_pct=tally.players / total_entries if total_entries else 0.0,
        )
        for faction, tally in tallies.items()
    ]
    return sorted(stats, key=lambda s: s.win_rate, reverse=True)


def filter_min_games(stats: List, min_games: int) -> List:
    """Drop stats (or matchup cells) below a minimum sample size"""
    return [s for s in stats if _games_of(s) >= min_games]


def _games_of(stat) -> int:
    return stat.total_games if isinstance(stat, MatchupCell) else stat.games


# ---- Detachment stats ----

def compute_detachment_stats(records: List[TournamentRecord]) -> List[DetachmentStat]:
    """Per-(faction, detachment) stats, best win rate first; entries without a detachment are ignored"""
    tallies: Dict[Tuple[str, str], _Tally] = OrderedDict()
    
    for _, player in iter_players(records):
        detachment = (player.detachment or '').strip()
        if not detachment:
            continue
        key = (player.faction.strip(), detachment)
        tallies.setdefault(key, _Tally()).add(player)
    
    stats = [
        DetachmentStat(
            faction=faction,
            detachment=detachment,
            wins=tally.wins,
            losses=tally.losses,
            draws=tally.draws,
            games=tally.games,
            win_rate=tally.win_rate,
            players=tally.players,
        )
        for (faction, detachment), tally in tallies.items()
    ]
    return sorted(stats, key=lambda s: s.win_rate, reverse=True)


# ---- Matchup matrix ----
#
# Imported records carry standings, not pairings, so true head-to-head
# results are unavailable. Within each event every pair of entries from
# different factions counts as one comparison won by the better
# placement; equal placements count as a draw. The matrix is therefore
# an approximation of relative strength, not a per-game result.

def compute_matchups(records: List[TournamentRecord]) -> List[MatchupCell]:
    """Approximate faction-vs-faction cells, ordered by (faction_a, faction_b)"""
    pairs: Dict[Tuple[str, str], List[int]] = {}
    
    for record in records:
        entries = [p for p in record.players if p.faction.strip()]
        for i, first in enumerate(entries):
            for second in entries[i + 1:]:
                faction_1 = first.faction.strip()
                faction_2 = second.faction.strip()
                if faction_1 == faction_2:
                    continue  # Mirror matches say nothing about the matchup
                
                if faction_1 < faction_2:
                    key, a_player, b_player = (faction_1, faction_2), first, second
                else:
                    key, a_player, b_player = (faction_2, faction_1), second, first
                
                counts = pairs.setdefault(key, [0, 0, 0])  # a_wins, b_wins, draws
                if a_player.placement < b_player.placement:
                    counts[0] += 1
                elif a_player.placement > b_player.placement:
                    counts[1] += 1
                else:
                    counts[2] += 1
    
    cells = []
    for (faction_a, faction_b), (a_wins, b_wins, draws) in sorted(pairs.items()):
        total = a_wins + b_wins + draws
        a_rate = win_rate(a_wins, draws, total) if total else AggregationConstants.NEUTRAL_WIN_RATE
        cells.append(MatchupCell(
            faction_a=faction_a,
            faction_b=faction_b,
            a_wins=a_wins,
            b_wins=b_wins,
            draws=draws,
            total_games=total,
            a_win_rate=a_rate,
            b_win_rate=1 - a_rate,
        ))
    return cells


# ---- Top lists ----

def get_top_lists(
    records: List[TournamentRecord],
    faction: Optional[str] = None,
    detachment: Optional[str] = None,
    limit: Optional[int] = None
) -> List[ListResult]:
    """
    Highest-scoring entries that submitted an army list.
    
    Sorted by points, then win rate, both descending. Entries without
    list text are excluded.
    """
    results = []
    for record, player in iter_players(records):
        if not (player.list_text or '').strip():
            continue
        if faction and player.faction != faction:
            continue
        if detachment and player.detachment != detachment:
            continue
        results.append(ListResult(
            event_name=record.event_name,
            event_date=record.event_date,
            placement=player.placement,
            faction=player.faction,
            detachment=player.detachment,
            list_text=player.list_text,
            player_name=player.player_name,
            wins=player.wins,
            losses=player.losses,
            draws=player.draws,
            points=player.points,
            win_rate=player.win_rate,
        ))
    
    results.sort(key=lambda r: (r.points, r.win_rate), reverse=True)
    return results[:limit] if limit else results


# ---- Win rate timeline ----

def get_week_start(iso_date: str) -> str:
    """Return the Monday of the week containing an ISO date; unparseable dates come back as-is"""
    try:
        day = date.fromisoformat(iso_date[:10])
    except (TypeError, ValueError):
        return iso_date
    return (day - timedelta(days=day.weekday())).isoformat()


def compute_timeline(records: List[TournamentRecord], faction: Optional[str] = None) -> List[TimelinePoint]:
    """
    Weekly win rate per faction, ordered chronologically.
    
    Args:
        records: Tournament records to aggregate
        faction: Restrict to one faction
        
    Returns:
        One point per (week, faction); factions within a week keep first-seen order
    """
    buckets: Dict[str, Dict[str, _Tally]] = OrderedDict()
    
    for record, player in iter_players(records):
        if faction and player.faction != faction:
            continue
        name = player.faction.strip()
        if not name:
            continue
        week = get_week_start(record.event_date)
        buckets.setdefault(week, OrderedDict()).setdefault(name, _Tally()).add(player)
    
    points = [
        TimelinePoint(
            bucket=week,
            faction=name,
            wins=tally.wins,
            losses=tally.losses,
            draws=tally.draws,
            games=tally.games,
            win_rate=tally.win_rate,
        )
        for week, factions in buckets.items()
        for name, tally in factions.items()
    ]
    return sorted(points, key=lambda p: p.bucket)
