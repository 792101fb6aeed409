"""
Canonical tournament record types.

Every parser produces these and every consumer reads them. They are
validated on construction so that free-text CSV quirks never leak past
the parser boundary, and they round-trip through the JSON payload stored
with each import.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from meta_engine.constants import ImportConstants


@dataclass(frozen=True)
class UnitResult:
    """Per-unit performance for one player's army."""
    unit_name: str
    games_played: int = 0
    average_points: float = 0.0
    content_id: Optional[str] = None

    def __post_init__(self):
        if not self.unit_name:
            raise ValueError("unit_name cannot be empty")
        if self.games_played < 0:
            raise ValueError("games_played cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'unit_name': self.unit_name,
            'games_played': self.games_played,
            'average_points': self.average_points,
        }
        if self.content_id:
            data['content_id'] = self.content_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UnitResult':
        return cls(
            unit_name=str(data['unit_name']),
            games_played=int(data.get('games_played', 0)),
            average_points=float(data.get('average_points', 0.0)),
            content_id=data.get('content_id'),
        )


@dataclass(frozen=True)
class TournamentPlayer:
    """One competitor's result within an event."""
    placement: int
    faction: str
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points: float = 0
    player_name: Optional[str] = None
    detachment: Optional[str] = None
    list_text: Optional[str] = None
    unit_results: Tuple[UnitResult, ...] = ()

    def __post_init__(self):
        if self.placement < 1:
            raise ValueError(f"placement must be positive, got {self.placement}")
        for label, count in (('wins', self.wins), ('losses', self.losses), ('draws', self.draws)):
            if count < 0:
                raise ValueError(f"{label} cannot be negative, got {count}")

    @property
    def games(self) -> int:
        return self.wins + self.losses + self.draws

    @property
    def win_rate(self) -> float:
        """Win rate counting draws as half a win."""
        if self.games == 0:
            return 0.0
        return (self.wins + self.draws * 0.5) / self.games

    @property
    def identity_name(self) -> str:
        """Name used for rating identity; anonymous rows fall back to faction@placement."""
        if self.player_name:
            return self.player_name
        return ImportConstants.ANONYMOUS_NAME_TEMPLATE.format(
            faction=self.faction, placement=self.placement
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'placement': self.placement,
            'faction': self.faction,
            'wins': self.wins,
            'losses': self.losses,
            'draws': self.draws,
            'points': self.points,
        }
        if self.player_name:
            data['player_name'] = self.player_name
        if self.detachment:
            data['detachment'] = self.detachment
        if self.list_text:
            data['list_text'] = self.list_text
        if self.unit_results:
            data['unit_results'] = [unit.to_dict() for unit in self.unit_results]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TournamentPlayer':
        return cls(
            placement=int(data['placement']),
            faction=str(data.get('faction', '')),
            wins=int(data.get('wins', 0)),
            losses=int(data.get('losses', 0)),
            draws=int(data.get('draws', 0)),
            points=data.get('points', 0),
            player_name=data.get('player_name'),
            detachment=data.get('detachment'),
            list_text=data.get('list_text'),
            unit_results=tuple(UnitResult.from_dict(u) for u in data.get('unit_results') or []),
        )


@dataclass(frozen=True)
class TournamentRecord:
    """One competitive event with its ordered standings."""
    event_name: str
    event_date: str  # ISO date string e.g. "2025-06-14"
    format: str = ImportConstants.DEFAULT_EVENT_FORMAT
    players: Tuple[TournamentPlayer, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.event_name or not self.event_date:
            raise ValueError("event_name and event_date are required")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_name': self.event_name,
            'event_date': self.event_date,
            'format': self.format,
            'players': [player.to_dict() for player in self.players],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TournamentRecord':
        return cls(
            event_name=str(data['event_name']),
            event_date=str(data['event_date']),
            format=str(data.get('format') or ImportConstants.DEFAULT_EVENT_FORMAT),
            players=tuple(TournamentPlayer.from_dict(p) for p in data.get('players') or []),
        )


def records_to_json(records: List[TournamentRecord]) -> str:
    """Serialize records for the parsed payload of an import."""
    return json.dumps([record.to_dict() for record in records])


def records_from_json(payload: str) -> List[TournamentRecord]:
    """
    Decode a stored parsed payload back into records.
    
    Raises:
        ValueError: If the payload is not valid JSON or does not describe
            a list of tournament records
    """
    try:
        data = json.loads(payload)
        if not isinstance(data, list):
            raise ValueError("parsed payload must be a JSON list")
        return [TournamentRecord.from_dict(item) for item in data]
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"malformed tournament payload: {e}") from e
