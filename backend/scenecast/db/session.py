"""
Database session and engine.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from scenecast.config import settings
from scenecast.db.base import Base


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same in-memory database
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {
        "pool_size": 8,
        "max_overflow": 10,
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_timeout": 30,
    }


def make_session_factory(database_url: str, *, create_tables: bool = False) -> sessionmaker:
    """Engine + sessionmaker for a database other than settings.database_url (e.g. tests)."""
    eng = create_engine(database_url, **_engine_kwargs(database_url))
    if create_tables:
        import scenecast.models  # noqa: F401  register tables on Base.metadata

        Base.metadata.create_all(eng)
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=eng)


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
