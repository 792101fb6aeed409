"""
Import Operations Module

Ingests one tournament results export: parse, persist, resolve identities,
and apply one Glicko-2 rating period per player entry.

Key functionality:
- import_tournament(): full pipeline for one administrative import
- apply_ratings(): the rating step, shared with the recompute driver

Each import runs in a single transaction under the database's import lock.
A failure anywhere rolls back the stored payload together with every
rating change, so an import is applied completely or not at all.
"""

from typing import List, Optional, Tuple
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from meta_engine.data_models.results import ImportResult
from meta_engine.data_models.tournament import TournamentRecord, records_to_json
from meta_engine.database.models import GlickoHistory, GlickoPlayer, TournamentImport, generate_id
from meta_engine.operations.player_operations import PlayerOperations, ResolutionContext
from meta_engine.parsers import ParseHints, normalize_format, parse_tournament_csv
from meta_engine.utils.exceptions import DatabaseError, ImportValidationError
from meta_engine.utils.glicko2 import Glicko2Calculator, GlickoRating
from meta_engine.utils.logger import setup_logger

logger = setup_logger(__name__)


class ImportOperations:
    """Orchestrates tournament imports and the per-player rating step."""
    
    def __init__(self, database):
        """Initialize with database instance"""
        self.db = database
        self.player_ops = PlayerOperations(database)
        self.logger = logger
    
    async def import_tournament(
        self,
        csv_text: str,
        format_id: str,
        event_name: str,
        event_date: str,
        meta_window: str,
        imported_by: Optional[str] = None,
        event_format: Optional[str] = None
    ) -> ImportResult:
        """
        Import one results export and update ratings.
        
        Args:
            csv_text: Raw export text
            format_id: Source dialect, "A", "B" or "C" (aliases accepted)
            event_name: Event name for formats that do not carry one
            event_date: ISO event date for formats that do not carry one
            meta_window: Bucketing label, e.g. "2025-Q2"
            imported_by: Identity of the administrator running the import
            event_format: League/format tag for the records (defaults to "GT")
            
        Returns:
            ImportResult with the new import id and player counts
            
        Raises:
            UnknownFormatError: If format_id is not supported
            ImportValidationError: If a required argument is empty
            DatabaseError: If the store fails; nothing is persisted
        """
        canonical_format = normalize_format(format_id)
        self._validate_arguments(csv_text, event_name, event_date, meta_window)
        
        # Parsers never raise; an unreadable file just yields no records
        records = parse_tournament_csv(
            csv_text,
            canonical_format,
            ParseHints(event_name=event_name.strip(), event_date=event_date.strip(), format=event_format)
        )
        total_entries = sum(len(record.players) for record in records)
        if not records:
            self.logger.warning(f"Import of '{event_name}' ({canonical_format}) produced no records")
        
        async with self.db.import_lock:
            try:
                async with self.db.transaction() as session:
                    last_sequence = await session.scalar(select(func.max(TournamentImport.sequence)))
                    import_row = TournamentImport(
                        id=generate_id(),
                        sequence=(last_sequence or 0) + 1,
                        imported_by=imported_by,
                        event_name=event_name.strip(),
                        event_date=event_date.strip(),
                        format=canonical_format,
                        meta_window=meta_window.strip(),
                        raw_data=csv_text,
                        parsed_data=records_to_json(records),
                    )
                    session.add(import_row)
                    await session.flush()
                    
                    context = await self.player_ops.resolve_identities(records, session)
                    players_updated, skipped = await self.apply_ratings(import_row.id, records, context, session)
            except SQLAlchemyError as e:
                self.logger.error(f"Import of '{event_name}' failed and was rolled back: {e}")
                raise DatabaseError("import_tournament", str(e))
        
        self.logger.info(
            f"Imported {import_row.id}: {len(records)} record(s), {total_entries} entries, "
            f"{players_updated} rated, {skipped} without games"
        )
        return ImportResult(
            import_id=import_row.id,
            imported=total_entries,
            players_updated=players_updated,
            skipped=skipped,
            records=len(records),
        )
    
    def _validate_arguments(self, csv_text: str, event_name: str, event_date: str, meta_window: str):
        if not csv_text or not csv_text.strip():
            raise ImportValidationError("csv", "must not be empty")
        if not event_name or not event_name.strip():
            raise ImportValidationError("event_name", "must not be empty")
        if not event_date or not event_date.strip():
            raise ImportValidationError("event_date", "must not be empty")
        if not meta_window or not meta_window.strip():
            raise ImportValidationError("meta_window", "must not be empty")
    
    async def apply_ratings(
        self,
        import_id: str,
        records: List[TournamentRecord],
        context: ResolutionContext,
        session: AsyncSession
    ) -> Tuple[int, int]:
        """
        Apply one rating period per player entry of an import.
        
        Entries without games are skipped entirely: no rating change and
        no history row. Every name must already be resolved in the context.
        
        Args:
            import_id: Import being applied, recorded as the rating period
            records: Parsed records of the import
            context: Resolution context covering every entry
            session: Session of the surrounding transaction
            
        Returns:
            Tuple of (entries rated, entries skipped)
        """
        players_updated = 0
        skipped = 0
        
        for record in records:
            for entry in record.players:
                if entry.games == 0:
                    skipped += 1
                    continue
                
                resolved = context.get(entry.identity_name)
                result = await session.execute(
                    select(GlickoPlayer).where(GlickoPlayer.id == resolved.id).with_for_update()
                )
                state = result.scalar_one()
                
                before = GlickoRating(state.rating, state.rating_deviation, state.volatility)
                games = Glicko2Calculator.synthesize_games(entry.wins, entry.losses, entry.draws)
                after = Glicko2Calculator.update(before, games)
                
                state.rating = after.rating
                state.rating_deviation = after.rating_deviation
                state.volatility = after.volatility
                state.games_played = (state.games_played or 0) + len(games)
                state.last_rating_period = import_id
                
                session.add(GlickoHistory(
                    player_id=state.id,
                    rating_period=import_id,
                    rating_before=before.rating,
                    rd_before=before.rating_deviation,
                    rating_after=after.rating,
                    rd_after=after.rating_deviation,
                    volatility_after=after.volatility,
                    delta=after.rating - before.rating,
                    games_in_period=len(games),
                ))
                players_updated += 1
                
                self.logger.debug(
                    f"{state.player_name}: {before.rating:.1f} -> {after.rating:.1f} "
                    f"({Glicko2Calculator.format_rating_change(after.rating - before.rating)})"
                )
        
        await session.flush()
        return players_updated, skipped
