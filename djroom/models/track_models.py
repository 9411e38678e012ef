"""
Track and reaction models for the DJ room.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, UniqueConstraint
from .database_config import Base


class Track(Base):
    __tablename__ = "dj_room_tracks"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(String, nullable=False, index=True)
    source_type = Column(String, nullable=False, default="youtube")  # 'youtube' or 'request'
    external_ref = Column(String, nullable=True)  # YouTube video id
    url = Column(String, nullable=True)
    title = Column(String, nullable=False)
    author = Column(String, nullable=True)
    thumbnail_url = Column(String, nullable=True)
    duration_ms = Column(Integer, nullable=True)
    contributor_id = Column(String, nullable=True, index=True)  # None for fallback tracks
    dedication = Column(Text, nullable=True)
    likes_count = Column(Integer, nullable=False, default=0)
    dislikes_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<Track {self.id} {self.title!r} room={self.room_id}>"


class Reaction(Base):
    __tablename__ = "dj_track_reactions"
    __table_args__ = (UniqueConstraint("room_id", "track_id", "user_id", name="uq_reaction_room_track_user"),)

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(String, nullable=False, index=True)
    track_id = Column(Integer, ForeignKey("dj_room_tracks.id"), nullable=False, index=True)
    user_id = Column(String, nullable=False)
    reaction_type = Column(String, nullable=False)  # 'like' or 'dislike'
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<Reaction {self.reaction_type} on {self.track_id} by {self.user_id}>"
