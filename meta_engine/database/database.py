import asyncio
from typing import Optional, List
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import select, func
from contextlib import asynccontextmanager

from meta_engine.config import Config
from meta_engine.database.models import (
    Base, PlatformUser, TournamentImport, GlickoPlayer, GlickoHistory
)
from meta_engine.utils.logger import setup_logger

class Database:
    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url
        self.engine = None
        self.async_session = None
        
        # Imports and recomputes mutate the same player rows; run them one at a time
        self.import_lock = asyncio.Lock()
        
    async def initialize(self):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing database...")
        
        # Convert sqlite URL to async if needed
        database_url = self.database_url or Config.DATABASE_URL
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')
        
        self.engine = create_async_engine(
            database_url,
            echo=Config.DEBUG,
            future=True
        )
        
        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )
        
        # Create all tables
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            
        self.logger.info("Database initialized successfully")
    
    @asynccontextmanager
    async def get_session(self):
        """Get a database session"""
        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()
    
    @asynccontextmanager
    async def transaction(self):
        """
        Create a transaction boundary for atomic operations.
        
        All operations within the context are committed together on success,
        or rolled back together on failure.
        
        Usage:
            async with db.transaction() as session:
                await player_ops.resolve_identities(..., session=session)
                await import_ops.apply_ratings(session, ...)
                # All operations commit together here
        
        Important: The caller is responsible for passing the yielded session to
        all participating operations. Exceptions must be allowed to propagate
        out of the context for rollback to occur.
        """
        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()
    
    @property
    def session_factory(self):
        """Session factory handed to the read-side services"""
        return self.async_session
    
    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")
    
    # Platform user operations
    async def create_platform_user(self, username: str, display_username: str = None) -> PlatformUser:
        """Create a platform account that imported players can be linked to"""
        async with self.get_session() as session:
            user = PlatformUser(username=username, display_username=display_username)
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user
    
    # Import operations
    async def get_import(self, import_id: str) -> Optional[TournamentImport]:
        """Get a stored import by id"""
        async with self.get_session() as session:
            return await session.get(TournamentImport, import_id)
    
    async def get_all_imports(self) -> List[TournamentImport]:
        """Get stored imports in insertion order"""
        async with self.get_session() as session:
            result = await session.execute(
                select(TournamentImport).order_by(TournamentImport.sequence)
            )
            return result.scalars().all()
    
    # Glicko operations
    async def get_glicko_player(self, player_id: str) -> Optional[GlickoPlayer]:
        async with self.get_session() as session:
            return await session.get(GlickoPlayer, player_id)
    
    async def get_glicko_player_by_name(self, player_name: str) -> Optional[GlickoPlayer]:
        """Get a rated player by name (case insensitive)"""
        async with self.get_session() as session:
            result = await session.execute(
                select(GlickoPlayer)
                .where(func.lower(GlickoPlayer.player_name) == player_name.lower())
                .order_by(GlickoPlayer.created_at, GlickoPlayer.id)
            )
            return result.scalars().first()
    
    async def get_all_glicko_players(self) -> List[GlickoPlayer]:
        async with self.get_session() as session:
            result = await session.execute(select(GlickoPlayer).order_by(GlickoPlayer.created_at, GlickoPlayer.id))
            return result.scalars().all()
    
    async def get_glicko_history(self, player_id: str = None) -> List[GlickoHistory]:
        """Get history rows, oldest first, optionally for one player"""
        async with self.get_session() as session:
            query = select(GlickoHistory)
            if player_id:
                query = query.where(GlickoHistory.player_id == player_id)
            query = query.order_by(GlickoHistory.id)
            
            result = await session.execute(query)
            return result.scalars().all()
    
    async def count_glicko_history(self) -> int:
        async with self.get_session() as session:
            result = await session.execute(select(func.count(GlickoHistory.id)))
            return result.scalar()
