"""Binding of a scene to a push target with a trigger policy (cron | manual | passive)."""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from scenecast.core.constants import DEFAULT_RETRY_COUNT, DEFAULT_TIMEOUT_SECONDS
from scenecast.db.base import Base


class Subscription(Base):
    __tablename__ = "notification_subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    scene_name = Column(
        String(50),
        ForeignKey("notification_scenes.name", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(100), nullable=False)
    target_type = Column(String(32), nullable=False)  # http | feishu | dingtalk | wechat_work
    target_url = Column(Text, nullable=False)
    target_auth = Column(Text, nullable=True)  # JSON: {"type": "bearer", "token": ...} or {"type": "custom", "headers": {...}}
    trigger_type = Column(String(16), nullable=False)  # cron | manual | passive
    trigger_config = Column(Text, nullable=True)  # JSON: {"cron": "*/30 * * * *"}
    template = Column(Text, nullable=True)  # JSON with {{dotted.path}} placeholders
    enabled = Column(Boolean, nullable=False, default=True, server_default="1")
    retry_count = Column(Integer, nullable=False, default=DEFAULT_RETRY_COUNT, server_default=str(DEFAULT_RETRY_COUNT))
    # seconds
    timeout = Column(
        Integer, nullable=False, default=DEFAULT_TIMEOUT_SECONDS, server_default=str(DEFAULT_TIMEOUT_SECONDS)
    )
    created_by = Column(Integer, nullable=True)
    last_triggered_at = Column(DateTime(timezone=True), nullable=True)
    next_trigger_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
