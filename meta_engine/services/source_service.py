"""
Source service: browse stored imports and download their source data.
"""

import json
from typing import List, Optional

from sqlalchemy import select

from meta_engine.constants import ImportConstants
from meta_engine.data_models.results import TournamentDetail, TournamentEntry, TournamentSummary
from meta_engine.data_models.tournament import TournamentRecord, records_from_json
from meta_engine.database.models import TournamentImport
from meta_engine.services.base import BaseService
from meta_engine.utils.exceptions import ImportNotFoundError
from meta_engine.utils.logger import setup_logger

logger = setup_logger(__name__)

DOWNLOAD_FORMATS = ('csv', 'json')


class SourceService(BaseService):
    """Read-only access to stored import rows."""
    
    def _decode(self, row: TournamentImport) -> List[TournamentRecord]:
        try:
            return records_from_json(row.parsed_data)
        except ValueError as e:
            logger.warning(f"Import {row.id} has a corrupt payload: {e}")
            return []
    
    def _summarize(self, row: TournamentImport, records: List[TournamentRecord]) -> TournamentSummary:
        return TournamentSummary(
            import_id=row.id,
            event_name=row.event_name,
            event_date=row.event_date,
            format=row.format,
            meta_window=row.meta_window,
            player_count=sum(len(record.players) for record in records),
            imported_at=row.imported_at,
        )
    
    async def _get_row(self, import_id: str) -> TournamentImport:
        async with self.get_session() as session:
            row = await session.get(TournamentImport, import_id)
        if row is None:
            raise ImportNotFoundError(import_id)
        return row
    
    async def tournaments(
        self,
        format: Optional[str] = None,
        after: Optional[str] = None,
        before: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[TournamentSummary]:
        """
        Stored imports, newest event first.
        
        Args:
            format: Only imports of this source format
            after: Only events on or after this ISO date
            before: Only events on or before this ISO date
            limit: Maximum rows (default 20, max 100)
        """
        query = select(TournamentImport)
        if format:
            canonical = ImportConstants.FORMAT_ALIASES.get(format.strip().lower(), format)
            query = query.where(TournamentImport.format == canonical)
        if after:
            query = query.where(TournamentImport.event_date >= after)
        if before:
            query = query.where(TournamentImport.event_date <= before)
        query = query.order_by(
            TournamentImport.event_date.desc(),
            TournamentImport.sequence.desc()
        ).limit(self.clamp_limit(limit))
        
        async with self.get_session() as session:
            result = await session.execute(query)
            rows = result.scalars().all()
        
        return [self._summarize(row, self._decode(row)) for row in rows]
    
    async def tournament(self, import_id: str) -> TournamentDetail:
        """
        One stored import with every player entry.
        
        Raises:
            ImportNotFoundError: If the import does not exist
        """
        row = await self._get_row(import_id)
        records = self._decode(row)
        entries = [
            TournamentEntry(event_name=record.event_name, event_date=record.event_date, player=player)
            for record in records
            for player in record.players
        ]
        return TournamentDetail(summary=self._summarize(row, records), entries=entries)
    
    async def download(self, import_id: str, download_format: str = 'csv') -> str:
        """
        Source data of an import: the raw export, or the parsed records as indented JSON.
        
        Raises:
            ImportNotFoundError: If the import does not exist
            ValueError: If download_format is not "csv" or "json"
        """
        if download_format not in DOWNLOAD_FORMATS:
            raise ValueError(f"download_format must be one of {', '.join(DOWNLOAD_FORMATS)}")
        
        row = await self._get_row(import_id)
        if download_format == 'csv':
            return row.raw_data
        
        try:
            return json.dumps(json.loads(row.parsed_data), indent=2)
        except ValueError:
            # Serve a corrupt payload as stored
            return row.parsed_data
