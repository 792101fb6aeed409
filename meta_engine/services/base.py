"""
Base service class for the read-side query families.

Services receive the session factory from the Database class and never
mutate rating state.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from meta_engine.config import Config

class BaseService:
    """Base class for all services with async database session management."""
    
    def __init__(self, session_factory):
        """
        Initialize base service with session factory.
        
        Args:
            session_factory: Async session factory from Database class
        """
        self.session_factory = session_factory
    
    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a read scope for async database operations."""
        session = self.session_factory()
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
    
    @staticmethod
    def clamp_limit(limit: Optional[int], default: int = None, maximum: int = None) -> int:
        """Bound a caller-supplied result limit to [1, maximum]"""
        if default is None:
            default = Config.DEFAULT_LIST_LIMIT
        if maximum is None:
            maximum = Config.MAX_LIST_LIMIT
        if limit is None:
            return default
        return max(1, min(int(limit), maximum))
