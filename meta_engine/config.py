import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Engine configuration settings"""
    
    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///tourney_meta.db')
    
    # Logging settings
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')
    
    # Glicko-2 defaults for newly seen players
    GLICKO_DEFAULT_RATING = float(os.getenv('GLICKO_DEFAULT_RATING', 1500))
    GLICKO_DEFAULT_RD = float(os.getenv('GLICKO_DEFAULT_RD', 350))
    GLICKO_DEFAULT_VOLATILITY = float(os.getenv('GLICKO_DEFAULT_VOLATILITY', 0.06))
    GLICKO_TAU = float(os.getenv('GLICKO_TAU', 0.5))  # System constant, constrains volatility change
    
    # Standings-only data has no pairings, so every game is against this opponent
    GLICKO_SYNTHETIC_OPPONENT_RATING = float(os.getenv('GLICKO_SYNTHETIC_OPPONENT_RATING', 1500))
    GLICKO_SYNTHETIC_OPPONENT_RD = float(os.getenv('GLICKO_SYNTHETIC_OPPONENT_RD', 200))
    
    # Aggregation settings
    DEFAULT_MIN_GAMES = int(os.getenv('DEFAULT_MIN_GAMES', 5))
    LEADERBOARD_MIN_GAMES = int(os.getenv('LEADERBOARD_MIN_GAMES', 10))
    DEFAULT_LIST_LIMIT = 20
    MAX_LIST_LIMIT = 100
    
    # Fuzzy ratio required to link an imported name to a platform account
    ACCOUNT_MATCH_THRESHOLD = float(os.getenv('ACCOUNT_MATCH_THRESHOLD', 0.85))
    
    @classmethod
    def validate(cls):
        """Validate that configured values are usable"""
        if not cls.DATABASE_URL:
            raise ValueError("DATABASE_URL is required")
        if cls.GLICKO_DEFAULT_RD <= 0 or cls.GLICKO_SYNTHETIC_OPPONENT_RD <= 0:
            raise ValueError("Rating deviations must be positive")
        if cls.GLICKO_DEFAULT_VOLATILITY <= 0 or cls.GLICKO_TAU <= 0:
            raise ValueError("GLICKO_DEFAULT_VOLATILITY and GLICKO_TAU must be positive")
        if cls.DEFAULT_MIN_GAMES < 0 or cls.LEADERBOARD_MIN_GAMES < 0:
            raise ValueError("Minimum game thresholds cannot be negative")
        if not 0 < cls.ACCOUNT_MATCH_THRESHOLD <= 1:
            raise ValueError("ACCOUNT_MATCH_THRESHOLD must be in (0, 1]")
