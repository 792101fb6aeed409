from meta_engine.database.database import Database

__all__ = ['Database']
