"""
Per-room playback state, settings and per-user queue statistics.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, UniqueConstraint
from .database_config import Base


class RoomState(Base):
    __tablename__ = "dj_room_state"

    room_id = Column(String, primary_key=True)
    current_track_id = Column(Integer, ForeignKey("dj_room_tracks.id"), nullable=True)  # None means idle
    source_kind = Column(String, nullable=True)  # 'queue', 'fallback' or None
    source_type = Column(String, nullable=True)
    external_ref = Column(String, nullable=True)
    title = Column(String, nullable=True)
    paused = Column(Boolean, nullable=False, default=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    paused_at = Column(DateTime(timezone=True), nullable=True)
    seek_base_ms = Column(Integer, nullable=False, default=0)
    updated_by = Column(String, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<RoomState {self.room_id} track={self.current_track_id} paused={self.paused}>"


class RoomSettings(Base):
    __tablename__ = "dj_room_settings"

    room_id = Column(String, primary_key=True)
    max_queue_per_user = Column(Integer, nullable=False, default=3)
    fallback_enabled = Column(Boolean, nullable=False, default=True)
    mute_duration_minutes = Column(Integer, nullable=False, default=24 * 60)
    updated_by = Column(String, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class UserQueueStats(Base):
    __tablename__ = "dj_user_queue_stats"
    __table_args__ = (UniqueConstraint("room_id", "user_id", name="uq_user_queue_stats_room_user"),)

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(String, nullable=False, index=True)
    user_id = Column(String, nullable=False)
    current_queue_count = Column(Integer, nullable=False, default=0)
    total_played = Column(Integer, nullable=False, default=0)
    is_muted = Column(Boolean, nullable=False, default=False)
    muted_until = Column(DateTime(timezone=True), nullable=True)
    last_added_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<UserQueueStats {self.user_id}@{self.room_id} queued={self.current_queue_count}>"
