"""
Player service: Glicko-2 leaderboard, profiles and name search.
"""

from typing import List, Optional

from sqlalchemy import select

from meta_engine.config import Config
from meta_engine.constants import AggregationConstants
from meta_engine.data_models.results import HistoryEntry, LeaderboardEntry, PlayerProfile
from meta_engine.database.models import GlickoHistory, GlickoPlayer
from meta_engine.services.base import BaseService

LEADERBOARD_DEFAULT_LIMIT = 50
LEADERBOARD_MAX_LIMIT = 200


class PlayerService(BaseService):
    """Read-only queries over rated players."""
    
    @staticmethod
    def to_entry(player: GlickoPlayer, rank: int = 0) -> LeaderboardEntry:
        """Build a display row; the band is shown as "rating ± band" """
        return LeaderboardEntry(
            rank=rank,
            player_id=player.id,
            user_id=player.user_id,
            player_name=player.player_name,
            rating=player.rating,
            rating_deviation=player.rating_deviation,
            volatility=player.volatility,
            games_played=player.games_played,
            display_rating=round(player.rating),
            display_band=round(AggregationConstants.DISPLAY_BAND_DEVIATIONS * player.rating_deviation),
        )
    
    async def leaderboard(self, limit: Optional[int] = None, min_games: Optional[int] = None) -> List[LeaderboardEntry]:
        """
        Rated players by rating, highest first.
        
        Args:
            limit: Maximum rows (default 50, max 200)
            min_games: Minimum cumulative games to appear (default from config)
        """
        limit = self.clamp_limit(limit, LEADERBOARD_DEFAULT_LIMIT, LEADERBOARD_MAX_LIMIT)
        if min_games is None:
            min_games = Config.LEADERBOARD_MIN_GAMES
        
        async with self.get_session() as session:
            result = await session.execute(
                select(GlickoPlayer)
                .where(GlickoPlayer.games_played >= min_games)
                .order_by(GlickoPlayer.rating.desc(), GlickoPlayer.id)
                .limit(limit)
            )
            players = result.scalars().all()
        
        return [self.to_entry(player, rank) for rank, player in enumerate(players, start=1)]
    
    async def profile(self, player_id: str) -> Optional[PlayerProfile]:
        """Rating and full history (newest first) for one player, or None if unknown"""
        async with self.get_session() as session:
            player = await session.get(GlickoPlayer, player_id)
            if player is None:
                return None
            
            result = await session.execute(
                select(GlickoHistory)
                .where(GlickoHistory.player_id == player_id)
                .order_by(GlickoHistory.recorded_at.desc(), GlickoHistory.id.desc())
            )
            rows = result.scalars().all()
        
        history = [
            HistoryEntry(
                rating_period=row.rating_period,
                rating_before=row.rating_before,
                rd_before=row.rd_before,
                rating_after=row.rating_after,
                rd_after=row.rd_after,
                volatility_after=row.volatility_after,
                delta=row.delta,
                games_in_period=row.games_in_period,
                recorded_at=row.recorded_at,
            )
            for row in rows
        ]
        return PlayerProfile(
            entry=self.to_entry(player),
            last_rating_period=player.last_rating_period,
            history=history,
        )
    
    async def search(self, name: str, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        """Case-insensitive substring search on player names, highest rated first"""
        needle = (name or '').strip().lower()
        if not needle:
            return []
        
        async with self.get_session() as session:
            result = await session.execute(
                select(GlickoPlayer).order_by(GlickoPlayer.rating.desc(), GlickoPlayer.id)
            )
            players = [p for p in result.scalars().all() if needle in p.player_name.lower()]
        
        return [self.to_entry(player) for player in players[:self.clamp_limit(limit)]]
