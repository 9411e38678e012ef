"""
Append-only play history for the DJ room.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from .database_config import Base


class PlayHistory(Base):
    __tablename__ = "dj_play_history"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(String, nullable=False, index=True)
    track_id = Column(Integer, ForeignKey("dj_room_tracks.id"), nullable=False, index=True)
    external_ref = Column(String, nullable=True)
    title = Column(String, nullable=False)
    author = Column(String, nullable=True)
    contributor_id = Column(String, nullable=True)  # None for fallback plays
    duration_ms = Column(Integer, nullable=True)
    source_kind = Column(String, nullable=False)  # 'queue' or 'fallback'
    played_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<PlayHistory {self.title!r} ({self.source_kind})>"
