"""
Durable, densely positioned pending queue per room.
"""

from djroom.models import QueueEntry
from .fairness import fairness_rank, find_insert_index, renumber


class QueueStore:
    def __init__(self, db):
        self.db = db

    def entries(self, room_id):
        return (
            self.db.query(QueueEntry)
            .filter(QueueEntry.room_id == room_id, QueueEntry.status == "queued")
            .order_by(QueueEntry.position, QueueEntry.id)
            .all()
        )

    def count_for(self, room_id, contributor_id):
        return (
            self.db.query(QueueEntry)
            .filter(
                QueueEntry.room_id == room_id,
                QueueEntry.contributor_id == contributor_id,
                QueueEntry.status == "queued",
            )
            .count()
        )

    def head(self, room_id):
        entries = self.entries(room_id)
        return entries[0] if entries else None

    def find(self, room_id, track_id):
        return (
            self.db.query(QueueEntry)
            .filter(
                QueueEntry.room_id == room_id,
                QueueEntry.track_id == track_id,
                QueueEntry.status == "queued",
            )
            .first()
        )

    def insert_fair(self, room_id, track, contributor_id, now):
        """Insert ``track`` at its round-robin slot and renumber the room"""
        entries = self.entries(room_id)
        rank = fairness_rank(sum(1 for entry in entries if entry.contributor_id == contributor_id))
        index = find_insert_index([entry.fairness_rank for entry in entries], rank)

        entry = QueueEntry(
            room_id=room_id,
            track=track,
            position=index + 1,
            fairness_rank=rank,
            contributor_id=contributor_id,
            status="queued",
            created_at=now,
        )
        self.db.add(entry)
        entries.insert(index, entry)
        renumber(entries)
        self.db.flush()
        return entry

    def remove(self, entry):
        """Delete ``entry`` and close the gap it leaves"""
        room_id = entry.room_id
        self.db.delete(entry)
        self.db.flush()
        renumber(self.entries(room_id))
        self.db.flush()
