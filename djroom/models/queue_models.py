"""
Pending queue and fallback ring models for the DJ room.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from .database_config import Base


class QueueEntry(Base):
    __tablename__ = "dj_room_queue"
    # Not unique: renumbering rewrites positions in place within one flush
    __table_args__ = (Index("ix_dj_room_queue_room_position", "room_id", "position"),)

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(String, nullable=False, index=True)
    track_id = Column(Integer, ForeignKey("dj_room_tracks.id"), nullable=False)
    position = Column(Integer, nullable=False)
    fairness_rank = Column(Integer, nullable=False, default=1)
    contributor_id = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default="queued")
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    track = relationship("Track")

    def __repr__(self):
        return f"<QueueEntry #{self.position} track={self.track_id} by {self.contributor_id}>"


class FallbackEntry(Base):
    __tablename__ = "dj_fallback_playlist"
    __table_args__ = (Index("ix_dj_fallback_room_position", "room_id", "position"),)

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(String, nullable=False, index=True)
    position = Column(Integer, nullable=False)
    source_type = Column(String, nullable=False, default="youtube")
    external_ref = Column(String, nullable=False)
    title = Column(String, nullable=False)
    author = Column(String, nullable=True)
    thumbnail_url = Column(String, nullable=True)
    duration_ms = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<FallbackEntry #{self.position} {self.title!r}>"
