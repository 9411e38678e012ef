"""
Song request inbox models for the DJ room.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Text
from .database_config import Base


class SongRequest(Base):
    __tablename__ = "dj_room_requests"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(String, nullable=False, index=True)
    requester_id = Column(String, nullable=False)
    song_title = Column(String, nullable=False)
    artist = Column(String, nullable=True)
    link = Column(String, nullable=True)
    dedication = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="pending")  # 'pending', 'accepted' or 'rejected'
    rejection_reason = Column(Text, nullable=True)
    handled_by = Column(String, nullable=True)
    handled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<SongRequest {self.song_title!r} ({self.status})>"
