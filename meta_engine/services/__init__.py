"""
Read-side services for the tournament meta engine.
"""

from .base import BaseService
from .meta_service import MetaService
from .player_service import PlayerService
from .source_service import SourceService

__all__ = ['BaseService', 'MetaService', 'PlayerService', 'SourceService']
