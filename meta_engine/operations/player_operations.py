"""
Player Operations Module

Business logic for rated player identities: resolving the free-text names
found in an import to GlickoPlayer rows, and linking those rows to platform
accounts.

Key functionality:
- ResolutionContext: one in-memory snapshot of existing players per import
- resolve_identities(): name -> player mapping, creating missing players
- link_player(): administrative re-link of a player to a platform account

Names match case-insensitively and exactly. Fuzzy matching is only used to
link a newly created player to a platform account.
"""

from typing import Dict, Iterable, List, Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from meta_engine.config import Config
from meta_engine.data_models.tournament import TournamentRecord
from meta_engine.database.models import GlickoPlayer, PlatformUser
from meta_engine.utils.exceptions import DatabaseError, PlayerNotFoundError, UserNotFoundError
from meta_engine.utils.logger import setup_logger
from meta_engine.utils.player_match import AccountCandidate, match_account

logger = setup_logger(__name__)


class ResolutionContext:
    """
    Snapshot of known players for one import.
    
    Built once before any player is processed. Players created while
    resolving are added immediately, so a name repeated within the same
    import maps to a single new player.
    """
    
    def __init__(self, players: Iterable[GlickoPlayer], accounts: Optional[List[AccountCandidate]] = None):
        self._by_name: Dict[str, GlickoPlayer] = {}
        for player in players:
            # Oldest row wins if names collide case-insensitively
            self._by_name.setdefault(self.key(player.player_name), player)
        self.accounts = accounts
        self.created: List[GlickoPlayer] = []
    
    @staticmethod
    def key(name: str) -> str:
        return (name or '').strip().lower()
    
    def get(self, name: str) -> Optional[GlickoPlayer]:
        return self._by_name.get(self.key(name))
    
    def add(self, player: GlickoPlayer):
        self._by_name[self.key(player.player_name)] = player
        self.created.append(player)
    
    def __contains__(self, name: str) -> bool:
        return self.key(name) in self._by_name
    
    def __len__(self) -> int:
        return len(self._by_name)


class PlayerOperations:
    """Identity resolution and account linking for rated players."""
    
    def __init__(self, database):
        """Initialize with database instance"""
        self.db = database
        self.logger = logger
    
    async def build_context(self, session: AsyncSession, link_accounts: bool = True) -> ResolutionContext:
        """
        Snapshot every existing player (and, for linking, every account).
        
        Args:
            session: Session of the surrounding import transaction
            link_accounts: Load the account directory for auto-linking
        """
        result = await session.execute(
            select(GlickoPlayer).order_by(GlickoPlayer.created_at, GlickoPlayer.id)
        )
        players = result.scalars().all()
        
        accounts = None
        if link_accounts:
            result = await session.execute(select(PlatformUser).order_by(PlatformUser.created_at, PlatformUser.id))
            accounts = [
                AccountCandidate(user.id, user.username, user.display_username)
                for user in result.scalars().all()
            ]
        
        return ResolutionContext(players, accounts)
    
    async def resolve_identities(
        self,
        records: List[TournamentRecord],
        session: AsyncSession,
        link_accounts: bool = True,
        context: Optional[ResolutionContext] = None
    ) -> ResolutionContext:
        """
        Resolve every player name in an import to a GlickoPlayer.
        
        Anonymous entries resolve under their "[faction@placement]" name.
        New players start at the default rating triple with zero games.
        
        Args:
            records: Parsed records of one import
            session: Session of the surrounding import transaction
            link_accounts: Try to link newly created players to an account
            context: Existing snapshot to extend instead of building one
            
        Returns:
            The resolution context, holding every name in the import
        """
        if context is None:
            context = await self.build_context(session, link_accounts)
        
        for record in records:
            for entry in record.players:
                name = entry.identity_name
                if name in context:
                    continue
                
                player = GlickoPlayer(
                    player_name=name,
                    rating=Config.GLICKO_DEFAULT_RATING,
                    rating_deviation=Config.GLICKO_DEFAULT_RD,
                    volatility=Config.GLICKO_DEFAULT_VOLATILITY,
                    games_played=0,
                )
                if link_accounts and context.accounts:
                    match = match_account(name, context.accounts)
                    if match.user_id:
                        player.user_id = match.user_id
                        self.logger.debug(f"Linked '{name}' to account {match.user_id} ({match.method}, {match.confidence:.2f})")
                
                session.add(player)
                context.add(player)
                self.logger.debug(f"Created rated player '{name}'")
        
        # Assign ids before the rating step references them
        await session.flush()
        return context
    
    async def link_player(self, glicko_id: str, user_id: str, session: Optional[AsyncSession] = None) -> GlickoPlayer:
        """
        Link a rated player to a platform account, replacing any existing link.
        
        Raises:
            PlayerNotFoundError: If the player does not exist
            UserNotFoundError: If the account does not exist
            DatabaseError: If the update fails
        """
        if session is None:
            try:
                async with self.db.transaction() as s:
                    return await self.link_player(glicko_id, user_id, session=s)
            except SQLAlchemyError as e:
                self.logger.error(f"Failed to commit link for player {glicko_id}: {e}")
                raise DatabaseError("link_player", str(e))
        
        try:
            result = await session.execute(
                select(GlickoPlayer).where(GlickoPlayer.id == glicko_id).with_for_update()
            )
            player = result.scalar_one_or_none()
            if player is None:
                raise PlayerNotFoundError(glicko_id)
            
            user = await session.get(PlatformUser, user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            
            player.user_id = user.id
            await session.flush()
            self.logger.info(f"Linked rated player {glicko_id} ('{player.player_name}') to account {user_id}")
            return player
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to link player {glicko_id}: {e}")
            raise DatabaseError("link_player", str(e))
