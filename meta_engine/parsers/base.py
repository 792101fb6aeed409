"""
Shared machinery for tournament CSV parsers.

Exports are user supplied and messy: headers vary by platform, cells may
be blank or non-numeric, and army lists arrive as multi-line quoted cells.
Parsers built on this module never raise for malformed input; rows that
cannot be interpreted are dropped.
"""

import csv
import io
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from meta_engine.constants import ImportConstants
from meta_engine.data_models.tournament import TournamentPlayer, TournamentRecord, UnitResult
from meta_engine.utils.detachment import extract_detachment
from meta_engine.utils.logger import setup_logger

logger = setup_logger(__name__)

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


@dataclass(frozen=True)
class ParseHints:
    """Event metadata supplied by the caller for formats that do not carry it."""
    event_name: Optional[str] = None
    event_date: Optional[str] = None
    format: Optional[str] = None


class ColumnMap:
    """Resolves canonical field names to column indexes through header aliases."""
    
    def __init__(self, headers: Sequence[str], aliases: Dict[str, List[str]]):
        normalized = [normalize_header(h) for h in headers]
        self._indexes: Dict[str, int] = {}
        for key, names in aliases.items():
            self._indexes[key] = -1
            for name in names:
                if name in normalized:
                    self._indexes[key] = normalized.index(name)
                    break
    
    def has(self, key: str) -> bool:
        return self._indexes.get(key, -1) >= 0
    
    def cell(self, row: Sequence[str], key: str) -> str:
        """Stripped cell text, or empty string when the column or cell is missing"""
        index = self._indexes.get(key, -1)
        if index < 0 or index >= len(row):
            return ''
        return (row[index] or '').strip()
    
    def optional(self, row: Sequence[str], key: str) -> Optional[str]:
        return self.cell(row, key) or None


def normalize_header(header: str) -> str:
    return (header or '').replace('\ufeff', '').strip().lower()


def read_rows(raw_text: str) -> Tuple[List[str], List[List[str]]]:
    """
    Split raw CSV text into a header row and data rows.
    
    Quoted cells may span lines. Blank rows are dropped. A reader error
    ends the scan and keeps the rows read so far.
    """
    if not raw_text or not raw_text.strip():
        return [], []
    
    rows: List[List[str]] = []
    reader = csv.reader(io.StringIO(raw_text.strip('\ufeff'), newline=''))
    try:
        for row in reader:
            if any((cell or '').strip() for cell in row):
                rows.append(row)
    except csv.Error as e:
        logger.warning(f"CSV reader stopped at line {reader.line_num}: {e}")
    
    if not rows:
        return [], []
    return rows[0], rows[1:]


def parse_int(text: str) -> Optional[int]:
    """Parse a leading integer ("3", "3rd", " 12 ") or return None"""
    match = _LEADING_INT.match(text or '')
    if not match:
        return None
    return int(match.group(1))


def parse_count(text: str) -> Optional[int]:
    """Parse a win/loss/draw count; blank means zero, unreadable or negative is invalid"""
    if not text:
        return 0
    value = parse_int(text)
    if value is None or value < 0:
        return None
    return value


def parse_number(text: str, default: Union[int, float] = 0) -> Union[int, float]:
    """Parse a numeric cell, keeping integral values as int"""
    if not text:
        return default
    try:
        value = float(text.replace(',', ''))
    except ValueError:
        value = parse_int(text)
        return default if value is None else value
    if value != value or value in (float('inf'), float('-inf')):
        return default
    return int(value) if value.is_integer() else value


def build_player(
    row: Sequence[str],
    columns: ColumnMap,
    unit_results: Sequence[UnitResult] = ()
) -> Optional[TournamentPlayer]:
    """
    Build a validated player from one row, or None if the row cannot be interpreted.
    
    The placement must be a positive integer. A missing detachment is
    recovered from the army list text when possible.
    """
    placement = parse_int(columns.cell(row, 'placement'))
    if placement is None or placement < 1:
        return None
    
    counts = [parse_count(columns.cell(row, key)) for key in ('wins', 'losses', 'draws')]
    if any(count is None for count in counts):
        return None
    wins, losses, draws = counts
    
    list_text = columns.optional(row, 'list_text')
    detachment = columns.optional(row, 'detachment')
    if not detachment and list_text:
        detachment = extract_detachment(list_text)
    
    try:
        return TournamentPlayer(
            placement=placement,
            faction=columns.cell(row, 'faction'),
            wins=wins,
            losses=losses,
            draws=draws,
            points=parse_number(columns.cell(row, 'points')),
            player_name=columns.optional(row, 'player_name'),
            detachment=detachment,
            list_text=list_text,
            unit_results=tuple(unit_results),
        )
    except ValueError as e:
        logger.debug(f"Dropping row {list(row)!r}: {e}")
        return None


def build_unit(row: Sequence[str], columns: ColumnMap) -> Optional[UnitResult]:
    """Build a per-unit result from one row, or None when the row has no unit"""
    unit_name = columns.cell(row, 'unit_name')
    if not unit_name:
        return None
    games_played = parse_count(columns.cell(row, 'unit_games_played'))
    try:
        return UnitResult(
            unit_name=unit_name,
            games_played=games_played or 0,
            average_points=float(parse_number(columns.cell(row, 'unit_avg_points'), 0.0)),
            content_id=columns.optional(row, 'content_id'),
        )
    except ValueError:
        return None


class TournamentParser(ABC):
    """
    Abstract base class for source dialect parsers.
    
    Each parser turns raw delimited text into canonical records and never
    raises for malformed input.
    """
    
    format_id: str = ''
    
    @abstractmethod
    def parse(self, raw_text: str, hints: Optional[ParseHints] = None) -> List[TournamentRecord]:
        """
        Parse raw CSV text into tournament records.
        
        Args:
            raw_text: Raw CSV export
            hints: Caller-supplied event metadata
            
        Returns:
            One record per event that has at least one valid player row
        """
        pass
    
    @staticmethod
    def event_format(value: Optional[str]) -> str:
        return value or ImportConstants.DEFAULT_EVENT_FORMAT


class PlayerBuilder:
    """Mutable accumulator for a player whose unit rows are still arriving."""
    
    def __init__(self, row: Sequence[str], key: Tuple):
        self.row = list(row)
        self.key = key
        self.units: List[UnitResult] = []
    
    def build(self, columns: ColumnMap) -> Optional[TournamentPlayer]:
        return build_player(self.row, columns, self.units)


class EventBuilder:
    """Groups player builders under one (event name, event date) pair."""
    
    def __init__(self, event_name: str, event_date: str, event_format: str):
        self.event_name = event_name
        self.event_date = event_date
        self.event_format = event_format
        self.players: List[PlayerBuilder] = []
        self.by_key: Dict[Tuple, PlayerBuilder] = {}
    
    def build(self, columns: ColumnMap) -> Optional[TournamentRecord]:
        players = [p for p in (builder.build(columns) for builder in self.players) if p is not None]
        if not players:
            return None
        return TournamentRecord(
            event_name=self.event_name,
            event_date=self.event_date,
            format=self.event_format,
            players=tuple(players),
        )
