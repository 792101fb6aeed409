"""
Format B parser: Tabletop Admiral-style results, possibly several events per file.

Rows are grouped by (event name, event date). A file may interleave
per-unit statistics with the standings:

    Event,Date,Rank,Player,Faction,Win,Loss,Draw,CP,Unit,Games Played,Avg Points
    Spring GT,2025-04-12,1,Alice,Aeldari,5,0,0,100,Wraithguard,5,210
    ,,,,,,,,,Farseer,5,95
    Spring GT,2025-04-12,2,Bob,Orks,4,1,0,90,,,

A row without a placement continues the preceding player, adding its
unit to that player's unit results until the next player row begins.
When the file has no event columns the caller's hints are used instead.
"""

from typing import Dict, List, Optional

from meta_engine.data_models.tournament import TournamentRecord
from meta_engine.parsers.base import (
    ColumnMap, EventBuilder, ParseHints, PlayerBuilder, TournamentParser,
    build_unit, parse_int, read_rows
)

HEADER_ALIASES: Dict[str, List[str]] = {
    'event_name':        ['event', 'event name', 'event_name', 'tournament'],
    'event_date':        ['date', 'event date', 'event_date'],
    'format':            ['format', 'event format', 'event_format'],
    'placement':         ['rank', 'place', 'placement', 'finish', 'position'],
    'player_name':       ['player', 'name', 'player name', 'player_name'],
    'faction':           ['faction', 'army', 'faction/army'],
    'detachment':        ['detachment', 'sub_faction', 'sub faction', 'subfaction'],
    'points':            ['cp', 'championship points', 'vp', 'points', 'total', 'tournament points'],
    'wins':              ['win', 'wins', 'w'],
    'losses':            ['loss', 'losses', 'l'],
    'draws':             ['draw', 'draws', 'd'],
    'list_text':         ['list', 'army list', 'roster', 'list text'],
    'unit_name':         ['unit', 'unit name', 'unit_name'],
    'content_id':        ['content_id', 'content id', 'bsdata_id'],
    'unit_games_played': ['games played', 'unit games played', 'unit_games_played', 'games_played'],
    'unit_avg_points':   ['avg points', 'average points', 'unit avg points', 'unit_avg_points', 'avg_points'],
}


class TabletopAdmiralParser(TournamentParser):
    """Parser for multi-event standings with optional per-unit blocks."""
    
    format_id = 'B'
    
    def parse(self, raw_text: str, hints: Optional[ParseHints] = None) -> List[TournamentRecord]:
        hints = hints or ParseHints()
        headers, rows = read_rows(raw_text)
        if not headers:
            return []
        
        columns = ColumnMap(headers, HEADER_ALIASES)
        events: Dict[tuple, EventBuilder] = {}
        current: Optional[PlayerBuilder] = None
        
        for row in rows:
            placement = parse_int(columns.cell(row, 'placement'))
            
            if placement is None:
                # Unit continuation row for the preceding player
                unit = build_unit(row, columns)
                if current is not None and unit is not None:
                    current.units.append(unit)
                continue
            
            event_name = columns.cell(row, 'event_name') if columns.has('event_name') else (hints.event_name or '')
            event_date = columns.cell(row, 'event_date') if columns.has('event_date') else (hints.event_date or '')
            if not event_name or not event_date:
                current = None
                continue
            
            event_key = (event_name, event_date)
            event = events.get(event_key)
            if event is None:
                event_format = columns.cell(row, 'format') or hints.format
                event = EventBuilder(event_name, event_date, self.event_format(event_format))
                events[event_key] = event
            
            player_key = (placement, columns.cell(row, 'faction'), columns.cell(row, 'player_name'))
            if current is not None and current.key == player_key and event.players and event.players[-1] is current:
                # Exports that repeat the player columns on every unit row
                builder = current
            else:
                builder = PlayerBuilder(row, player_key)
                event.players.append(builder)
            
            unit = build_unit(row, columns)
            if unit is not None:
                builder.units.append(unit)
            current = builder
        
        records = []
        for event in events.values():
            record = event.build(columns)
            if record is not None:
                records.append(record)
        return records


def parse_tabletop_admiral_csv(raw_text: str, hints: Optional[ParseHints] = None) -> List[TournamentRecord]:
    """Parse a Format B export"""
    return TabletopAdmiralParser().parse(raw_text, hints)
