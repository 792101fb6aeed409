"""
Engine-wide constants for the tournament meta engine.

Values here are properties of the algorithms and input formats rather than
deployment choices; tunable settings live in meta_engine.config.
"""

class GlickoConstants:
    """Constants of the Glicko-2 system (Glickman, 2012)."""
    
    # Conversion between the display scale and the Glicko-2 internal scale
    SCALE = 173.7178
    BASE_RATING = 1500
    
    # Convergence tolerance for the volatility root-finding
    EPSILON = 0.000001
    
    # Upper bound on root-finding iterations, including bracket search
    MAX_ITERATIONS = 100
    
    # Score values used when synthesizing games from standings
    WIN_SCORE = 1.0
    DRAW_SCORE = 0.5
    LOSS_SCORE = 0.0

class ImportConstants:
    """Constants for tournament CSV ingestion."""
    
    # Format used when neither the file nor the caller names one
    DEFAULT_EVENT_FORMAT = "GT"
    
    # Canonical format ids and the aliases accepted for each
    FORMAT_BCP = "A"
    FORMAT_TABLETOP_ADMIRAL = "B"
    FORMAT_GENERIC = "C"
    
    FORMAT_ALIASES = {
        "a": FORMAT_BCP,
        "bcp": FORMAT_BCP,
        "bcp-csv": FORMAT_BCP,
        "b": FORMAT_TABLETOP_ADMIRAL,
        "tabletop-admiral": FORMAT_TABLETOP_ADMIRAL,
        "tabletop-admiral-csv": FORMAT_TABLETOP_ADMIRAL,
        "c": FORMAT_GENERIC,
        "generic": FORMAT_GENERIC,
        "generic-csv": FORMAT_GENERIC,
    }
    
    # Placeholder identity for rows without a player name
    ANONYMOUS_NAME_TEMPLATE = "[{faction}@{placement}]"

class AggregationConstants:
    """Constants for meta aggregation queries."""
    
    # Neutral win rate for a matchup cell with no comparisons
    NEUTRAL_WIN_RATE = 0.5
    
    # Display band is this many rating deviations wide on each side
    DISPLAY_BAND_DEVIATIONS = 2
