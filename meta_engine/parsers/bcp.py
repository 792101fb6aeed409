"""
Format A parser: BCP-style results, one event per file.

Best Coast Pairings exports standings roughly as:

    Place,Player Name,Faction,W,L,D,Total Points,List

The event name and date are not in the file and come from the caller.
Tabletop Admiral style headers ("Rank", "CP", "Win") are accepted too.
"""

from typing import Dict, List, Optional

from meta_engine.data_models.tournament import TournamentRecord
from meta_engine.parsers.base import (
    ColumnMap, ParseHints, TournamentParser, build_player, read_rows
)

HEADER_ALIASES: Dict[str, List[str]] = {
    'placement':   ['place', 'placement', 'rank', 'finish', 'position'],
    'player_name': ['player name', 'player', 'name', 'player_name'],
    'faction':     ['faction', 'army', 'faction/army'],
    'detachment':  ['detachment', 'sub_faction', 'sub faction', 'subfaction'],
    'wins':        ['w', 'wins', 'win'],
    'losses':      ['l', 'losses', 'loss'],
    'draws':       ['d', 'draws', 'draw'],
    'points':      ['points', 'total points', 'vp', 'total vp', 'tournament points',
                    'cp', 'championship points', 'total'],
    'list_text':   ['list', 'army list', 'list text', 'roster'],
}


class BcpParser(TournamentParser):
    """Parser for single-event standings exports."""
    
    format_id = 'A'
    
    def parse(self, raw_text: str, hints: Optional[ParseHints] = None) -> List[TournamentRecord]:
        hints = hints or ParseHints()
        if not hints.event_name or not hints.event_date:
            return []
        
        headers, rows = read_rows(raw_text)
        if not headers:
            return []
        
        columns = ColumnMap(headers, HEADER_ALIASES)
        players = [p for p in (build_player(row, columns) for row in rows) if p is not None]
        if not players:
            return []
        
        return [TournamentRecord(
            event_name=hints.event_name,
            event_date=hints.event_date,
            format=self.event_format(hints.format),
            players=tuple(players),
        )]


def parse_bcp_csv(raw_text: str, hints: Optional[ParseHints] = None) -> List[TournamentRecord]:
    """Parse a Format A export"""
    return BcpParser().parse(raw_text, hints)
