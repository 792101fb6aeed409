"""
Tournament results ingestion, Glicko-2 player ratings and meta analytics.
"""

__version__ = "0.1.0"
