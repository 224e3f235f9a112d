from scenecast.db.base import Base
from scenecast.db.session import get_db, engine, make_session_factory, SessionLocal
from scenecast.db.tables import ALL_TABLE_NAMES

__all__ = ["get_db", "engine", "make_session_factory", "SessionLocal", "Base", "ALL_TABLE_NAMES"]
