"""
Operations Layer

Business logic that mutates rating state. Operations compose database
access into multi-step transactions with validation and error wrapping.

Architecture:
- Database layer: engine, sessions and simple lookups
- Operations layer: imports, recomputes and player linking
- Services layer: read-only queries over the stored corpus

Each operations module focuses on a specific domain:
- ImportOperations: parse, persist and rate one tournament import
- RecomputeOperations: replay stored imports to rebuild ratings
- PlayerOperations: identity resolution and account linking
"""

from .import_operations import ImportOperations
from .player_operations import PlayerOperations, ResolutionContext
from .recompute_operations import RecomputeOperations

__all__ = ['ImportOperations', 'PlayerOperations', 'RecomputeOperations', 'ResolutionContext']
