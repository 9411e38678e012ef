"""
Append-only log of everything that started playing in a room.
"""

from djroom.models import PlayHistory


class PlayHistoryLog:
    def __init__(self, db):
        self.db = db

    def append(self, room_id, track, source_kind, now):
        record = PlayHistory(
            room_id=room_id,
            track_id=track.id,
            external_ref=track.external_ref,
            title=track.title,
            author=track.author,
            contributor_id=track.contributor_id,
            duration_ms=track.duration_ms,
            source_kind=source_kind,
            played_at=now,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def recent(self, room_id, limit=50):
        return (
            self.db.query(PlayHistory)
            .filter(PlayHistory.room_id == room_id)
            .order_by(PlayHistory.played_at.desc(), PlayHistory.id.desc())
            .limit(limit)
            .all()
        )
