"""
Fallback ring: the house playlist used when the user queue runs dry.
Consuming an entry rotates it to the tail, so the ring never depletes.
"""

from djroom.models import FallbackEntry
from .fairness import renumber


class FallbackPlaylist:
    def __init__(self, db):
        self.db = db

    def entries(self, room_id):
        return (
            self.db.query(FallbackEntry)
            .filter(FallbackEntry.room_id == room_id)
            .order_by(FallbackEntry.position, FallbackEntry.id)
            .all()
        )

    def append(self, room_id, metadata, now, source_type="youtube"):
        entries = self.entries(room_id)
        entry = FallbackEntry(
            room_id=room_id,
            position=len(entries) + 1,
            source_type=source_type,
            external_ref=metadata.external_ref,
            title=metadata.title,
            author=metadata.author,
            thumbnail_url=metadata.thumbnail_url,
            duration_ms=metadata.duration_ms,
            created_at=now,
        )
        self.db.add(entry)
        renumber(entries + [entry])
        self.db.flush()
        return entry

    def remove(self, room_id, entry_id):
        entry = self.db.get(FallbackEntry, entry_id)
        if entry is None or entry.room_id != room_id:
            return None
        self.db.delete(entry)
        self.db.flush()
        renumber(self.entries(room_id))
        self.db.flush()
        return entry

    def rotate(self, room_id):
        """Return the ring head and move it to the tail, or None when empty"""
        entries = self.entries(room_id)
        if not entries:
            return None
        head = entries[0]
        renumber(entries[1:] + [head])
        self.db.flush()
        return head
