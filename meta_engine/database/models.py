import uuid

from sqlalchemy import (
    Column, Integer, String, DateTime, Float, Text, ForeignKey, Index
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def generate_id() -> str:
    return uuid.uuid4().hex


class PlatformUser(Base):
    """Account directory that imported players can be linked to"""
    __tablename__ = 'platform_users'
    
    id = Column(String(32), primary_key=True, default=generate_id)
    username = Column(String(100), nullable=False, unique=True)
    display_username = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=func.now())
    
    glicko_players = relationship("GlickoPlayer", back_populates="user")
    
    def __repr__(self):
        return f"<PlatformUser(username='{self.username}')>"


class TournamentImport(Base):
    __tablename__ = 'imported_tournament_results'
    
    id = Column(String(32), primary_key=True, default=generate_id)
    imported_by = Column(String(100), nullable=True)
    
    # Event metadata duplicated from the parsed records for listing queries
    event_name = Column(String(200), nullable=False)
    event_date = Column(String(10), nullable=False, index=True)  # ISO date
    format = Column(String(20), nullable=False)  # Source dialect: A, B or C
    meta_window = Column(String(50), nullable=False, index=True)
    
    # Payloads
    raw_data = Column(Text, nullable=False)
    parsed_data = Column(Text, nullable=False)  # JSON list of TournamentRecord dicts
    
    imported_at = Column(DateTime, default=func.now(), index=True)
    # Monotonic import order; imported_at only has whole-second resolution
    sequence = Column(Integer, nullable=False, unique=True, index=True)
    
    def __repr__(self):
        return f"<TournamentImport(id='{self.id}', event='{self.event_name}', window='{self.meta_window}')>"


class GlickoPlayer(Base):
    __tablename__ = 'player_glicko'
    
    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey('platform_users.id'), nullable=True, index=True)
    player_name = Column(String(200), nullable=False, index=True)
    
    # Rating triple on the display scale
    rating = Column(Float, nullable=False, default=1500.0)
    rating_deviation = Column(Float, nullable=False, default=350.0)
    volatility = Column(Float, nullable=False, default=0.06)
    
    games_played = Column(Integer, nullable=False, default=0)
    last_rating_period = Column(String(32), nullable=True)  # Id of the last import applied
    
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
    
    user = relationship("PlatformUser", back_populates="glicko_players")
    history = relationship("GlickoHistory", back_populates="player", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<GlickoPlayer(name='{self.player_name}', rating={self.rating:.1f}, rd={self.rating_deviation:.1f})>"


class GlickoHistory(Base):
    __tablename__ = 'glicko_history'
    
    id = Column(Integer, primary_key=True)
    player_id = Column(String(32), ForeignKey('player_glicko.id'), nullable=False)
    rating_period = Column(String(32), nullable=False)  # Import id
    
    # Before/after values for the audit trail
    rating_before = Column(Float, nullable=False)
    rd_before = Column(Float, nullable=False)
    rating_after = Column(Float, nullable=False)
    rd_after = Column(Float, nullable=False)
    volatility_after = Column(Float, nullable=False)
    delta = Column(Float, nullable=False)
    games_in_period = Column(Integer, nullable=False)
    
    recorded_at = Column(DateTime, default=func.now())
    
    # Not unique: append-only recompute re-inserts rows for the same period
    __table_args__ = (
        Index('ix_glicko_history_player_period', 'player_id', 'rating_period'),
    )
    
    player = relationship("GlickoPlayer", back_populates="history")
    
    def __repr__(self):
        return f"<GlickoHistory(player_id='{self.player_id}', period='{self.rating_period}', delta={self.delta:+.1f})>"
