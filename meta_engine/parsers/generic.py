"""
Format C parser: the platform's own self-described CSV format.

Required columns:
    event_name, event_date, placement, faction, wins, losses, draws, points

Optional columns:
    format, player_name, detachment, list_text,
    unit_name, content_id, unit_games_played, unit_avg_points

Event grouping always comes from the data; caller hints are ignored.
Per-unit data is given as one row per unit per player, and the
placement + faction combination identifies the player within an event.
"""

from typing import Dict, List, Optional

from meta_engine.data_models.tournament import TournamentRecord
from meta_engine.parsers.base import (
    ColumnMap, EventBuilder, ParseHints, PlayerBuilder, TournamentParser,
    build_unit, parse_int, read_rows
)

HEADER_ALIASES: Dict[str, List[str]] = {
    'event_name':        ['event_name', 'event name', 'event'],
    'event_date':        ['event_date', 'event date', 'date'],
    'format':            ['format', 'event_format', 'event format'],
    'placement':         ['placement', 'place', 'rank', 'finish'],
    'player_name':       ['player_name', 'player name', 'player', 'name'],
    'faction':           ['faction', 'army'],
    'detachment':        ['detachment', 'sub_faction', 'sub faction', 'subfaction'],
    'wins':              ['wins', 'w', 'win'],
    'losses':            ['losses', 'l', 'loss'],
    'draws':             ['draws', 'd', 'draw'],
    'points':            ['points', 'vp', 'total_points', 'total points'],
    'list_text':         ['list_text', 'list text', 'list', 'army list'],
    'unit_name':         ['unit_name', 'unit name', 'unit'],
    'content_id':        ['content_id', 'content id', 'bsdata_id'],
    'unit_games_played': ['unit_games_played', 'games_played', 'games played'],
    'unit_avg_points':   ['unit_avg_points', 'avg_points', 'avg points', 'average points'],
}


class GenericParser(TournamentParser):
    """Parser for self-described multi-event exports."""
    
    format_id = 'C'
    
    def parse(self, raw_text: str, hints: Optional[ParseHints] = None) -> List[TournamentRecord]:
        headers, rows = read_rows(raw_text)
        if not headers:
            return []
        
        columns = ColumnMap(headers, HEADER_ALIASES)
        events: Dict[tuple, EventBuilder] = {}
        
        for row in rows:
            event_name = columns.cell(row, 'event_name')
            event_date = columns.cell(row, 'event_date')
            if not event_name or not event_date:
                continue
            
            placement = parse_int(columns.cell(row, 'placement'))
            if placement is None:
                continue
            
            event_key = (event_name, event_date)
            event = events.get(event_key)
            if event is None:
                event = EventBuilder(event_name, event_date, self.event_format(columns.cell(row, 'format')))
                events[event_key] = event
            
            player_key = (placement, columns.cell(row, 'faction'))
            builder = event.by_key.get(player_key)
            if builder is None:
                builder = PlayerBuilder(row, player_key)
                event.by_key[player_key] = builder
                event.players.append(builder)
            
            unit = build_unit(row, columns)
            if unit is not None:
                builder.units.append(unit)
        
        records = []
        for event in events.values():
            record = event.build(columns)
            if record is not None:
                records.append(record)
        return records


def parse_generic_csv(raw_text: str, hints: Optional[ParseHints] = None) -> List[TournamentRecord]:
    """Parse a Format C export"""
    return GenericParser().parse(raw_text, hints)
