"""A named, independently cacheable data source. `handler` is the data source registry key."""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from scenecast.core.constants import DEFAULT_CACHE_TTL_SECONDS
from scenecast.db.base import Base


class Scene(Base):
    __tablename__ = "notification_scenes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    handler = Column(String(100), nullable=False)
    # seconds; 0 = no caching
    cache_ttl = Column(
        Integer, nullable=False, default=DEFAULT_CACHE_TTL_SECONDS, server_default=str(DEFAULT_CACHE_TTL_SECONDS)
    )
    enabled = Column(Boolean, nullable=False, default=True, server_default="1")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
