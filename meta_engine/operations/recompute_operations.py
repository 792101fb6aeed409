"""
Recompute Operations Module

Rebuilds ratings by replaying every stored import through the rating step.
Intended for algorithm changes or corruption recovery, not routine use.

Two modes:
- Append-only (default): applies every import again on top of the current
  ratings and writes fresh history rows. Running it twice doubles the
  history and moves ratings again, so it is not idempotent.
- Reset (reset=True): restores every player to the default rating triple
  with zero games and deletes all history before replaying. Deterministic
  and idempotent.

Imports replay in (event_date, sequence) order, sequence being the order
they were imported in. Stored payloads that fail to decode are skipped with
a warning. Account linking is not re-run; players are reused by name.
"""

from typing import Optional
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError

from meta_engine.config import Config
from meta_engine.data_models.results import RecomputeResult
from meta_engine.data_models.tournament import records_from_json
from meta_engine.database.models import GlickoHistory, GlickoPlayer, TournamentImport
from meta_engine.operations.import_operations import ImportOperations
from meta_engine.utils.exceptions import DatabaseError
from meta_engine.utils.logger import setup_logger

logger = setup_logger(__name__)


class RecomputeOperations:
    """Replays stored imports to rebuild Glicko-2 ratings."""
    
    def __init__(self, database):
        """Initialize with database instance"""
        self.db = database
        self.import_ops = ImportOperations(database)
        self.logger = logger
    
    async def recompute_all(self, reset: bool = False, from_import_id: Optional[str] = None) -> RecomputeResult:
        """
        Replay every stored import through the rating step.
        
        Args:
            reset: Reset ratings and delete history before replaying
            from_import_id: Accepted but ignored; the full history is always replayed
            
        Returns:
            RecomputeResult with the number of player entries rated
            
        Raises:
            DatabaseError: If the store fails; the whole recompute is rolled back
        """
        if from_import_id:
            self.logger.warning(f"Recompute from import {from_import_id} is not supported; replaying full history")
        
        players_updated = 0
        replayed = 0
        skipped_imports = 0
        
        async with self.db.import_lock:
            try:
                async with self.db.transaction() as session:
                    if reset:
                        await self._reset_ratings(session)
                    
                    result = await session.execute(
                        select(TournamentImport).order_by(
                            TournamentImport.event_date,
                            TournamentImport.sequence,
                        )
                    )
                    imports = result.scalars().all()
                    
                    # One snapshot for the whole replay; names missing from it are created unlinked
                    context = await self.import_ops.player_ops.build_context(session, link_accounts=False)
                    
                    for import_row in imports:
                        try:
                            records = records_from_json(import_row.parsed_data)
                        except ValueError as e:
                            self.logger.warning(f"Skipping import {import_row.id} with corrupt payload: {e}")
                            skipped_imports += 1
                            continue
                        
                        await self.import_ops.player_ops.resolve_identities(
                            records, session, link_accounts=False, context=context
                        )
                        updated, _ = await self.import_ops.apply_ratings(import_row.id, records, context, session)
                        players_updated += updated
                        replayed += 1
            except SQLAlchemyError as e:
                self.logger.error(f"Recompute failed and was rolled back: {e}")
                raise DatabaseError("recompute_all", str(e))
        
        self.logger.info(
            f"Recompute ({'reset' if reset else 'append-only'}) replayed {replayed} import(s), "
            f"skipped {skipped_imports}, rated {players_updated} entries"
        )
        return RecomputeResult(
            players_updated=players_updated,
            imports_replayed=replayed,
            imports_skipped=skipped_imports,
            reset=reset,
        )
    
    async def _reset_ratings(self, session):
        """Restore every player to the default triple and drop all history"""
        await session.execute(delete(GlickoHistory))
        await session.execute(
            update(GlickoPlayer).values(
                rating=Config.GLICKO_DEFAULT_RATING,
                rating_deviation=Config.GLICKO_DEFAULT_RD,
                volatility=Config.GLICKO_DEFAULT_VOLATILITY,
                games_played=0,
                last_rating_period=None,
            )
        )
        self.logger.info("Reset all ratings to defaults and cleared rating history")
