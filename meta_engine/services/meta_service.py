"""
Meta service: faction, detachment, matchup, list and timeline queries.

Every call decodes the stored corpus afresh and aggregates it in memory,
so results reflect whatever imports have committed at the time of the
call. Imports whose payload fails to decode are skipped.
"""

from typing import List, Optional

from sqlalchemy import select

from meta_engine.config import Config
from meta_engine.constants import ImportConstants
from meta_engine.data_models.meta import (
    DetachmentStat, FactionDetail, FactionStat, ListResult, MatchupCell, TimelinePoint
)
from meta_engine.data_models.tournament import TournamentRecord, records_from_json
from meta_engine.database.models import TournamentImport
from meta_engine.services.base import BaseService
from meta_engine.utils import aggregate
from meta_engine.utils.logger import setup_logger

logger = setup_logger(__name__)


class MetaService(BaseService):
    """Read-only aggregation over stored tournament imports."""
    
    async def load_records(self, meta_window: Optional[str] = None, format: Optional[str] = None) -> List[TournamentRecord]:
        """
        Decode every stored import matching the filters.
        
        Args:
            meta_window: Only imports tagged with this window
            format: Only imports of this source format ("A", "B", "C" or an alias)
        """
        query = select(TournamentImport)
        if meta_window:
            query = query.where(TournamentImport.meta_window == meta_window)
        if format:
            # Unknown format names simply match nothing
            canonical = ImportConstants.FORMAT_ALIASES.get(format.strip().lower(), format)
            query = query.where(TournamentImport.format == canonical)
        query = query.order_by(TournamentImport.sequence)
        
        async with self.get_session() as session:
            result = await session.execute(query)
            rows = result.scalars().all()
        
        records: List[TournamentRecord] = []
        for row in rows:
            try:
                records.extend(records_from_json(row.parsed_data))
            except ValueError as e:
                logger.warning(f"Skipping import {row.id} with corrupt payload: {e}")
        return records
    
    async def factions(
        self,
        meta_window: Optional[str] = None,
        format: Optional[str] = None,
        min_games: Optional[int] = None
    ) -> List[FactionStat]:
        """Faction win rates and representation, best win rate first"""
        if min_games is None:
            min_games = Config.DEFAULT_MIN_GAMES
        records = await self.load_records(meta_window, format)
        return aggregate.filter_min_games(aggregate.compute_faction_stats(records), min_games)
    
    async def faction(
        self,
        faction: str,
        meta_window: Optional[str] = None,
        format: Optional[str] = None
    ) -> FactionDetail:
        """Stats, detachments, timeline and top lists for one faction"""
        records = await self.load_records(meta_window, format)
        stat = next((s for s in aggregate.compute_faction_stats(records) if s.faction == faction), None)
        return FactionDetail(
            faction=faction,
            stat=stat,
            detachments=[d for d in aggregate.compute_detachment_stats(records) if d.faction == faction],
            timeline=aggregate.compute_timeline(records, faction),
            top_lists=aggregate.get_top_lists(records, faction=faction, limit=Config.DEFAULT_LIST_LIMIT),
        )
    
    async def detachments(
        self,
        faction: Optional[str] = None,
        meta_window: Optional[str] = None,
        format: Optional[str] = None,
        min_games: Optional[int] = None
    ) -> List[DetachmentStat]:
        """Detachment stats, optionally for one faction; no sample-size filter unless min_games is given"""
        records = await self.load_records(meta_window, format)
        stats = aggregate.compute_detachment_stats(records)
        if faction:
            stats = [s for s in stats if s.faction == faction]
        if min_games:
            stats = aggregate.filter_min_games(stats, min_games)
        return stats
    
    async def matchups(
        self,
        meta_window: Optional[str] = None,
        format: Optional[str] = None,
        min_games: Optional[int] = None
    ) -> List[MatchupCell]:
        """
        Approximate faction-vs-faction matrix.
        
        Derived from placements within each event rather than observed
        pairings; see aggregate.compute_matchups.
        """
        if min_games is None:
            min_games = Config.DEFAULT_MIN_GAMES
        records = await self.load_records(meta_window, format)
        return aggregate.filter_min_games(aggregate.compute_matchups(records), min_games)
    
    async def lists(
        self,
        faction: Optional[str] = None,
        detachment: Optional[str] = None,
        meta_window: Optional[str] = None,
        format: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[ListResult]:
        """Top scoring entries with list text, capped at limit (default 20, max 100)"""
        records = await self.load_records(meta_window, format)
        return aggregate.get_top_lists(records, faction, detachment, self.clamp_limit(limit))
    
    async def timeline(
        self,
        faction: Optional[str] = None,
        meta_window: Optional[str] = None,
        format: Optional[str] = None
    ) -> List[TimelinePoint]:
        records = await self.load_records(meta_window, format)
        return aggregate.compute_timeline(records, faction)
    
    async def windows(self) -> List[str]:
        """Distinct meta window labels, sorted"""
        async with self.get_session() as session:
            result = await session.execute(
                select(TournamentImport.meta_window)
                .distinct()
                .order_by(TournamentImport.meta_window)
            )
            return [row[0] for row in result.all()]
