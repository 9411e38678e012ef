"""
Per (room, user) queue occupancy, lifetime plays and mutes.
"""

import math

from djroom.errors import ContributorMuted
from djroom.models import UserQueueStats
from djroom.utils.clock import as_utc


class UserQuotaTracker:
    def __init__(self, db):
        self.db = db

    def get(self, room_id, user_id):
        return (
            self.db.query(UserQueueStats)
            .filter(UserQueueStats.room_id == room_id, UserQueueStats.user_id == user_id)
            .first()
        )

    def get_or_create(self, room_id, user_id):
        stats = self.get(room_id, user_id)
        if stats is None:
            stats = UserQueueStats(
                room_id=room_id,
                user_id=user_id,
                current_queue_count=0,
                total_played=0,
                is_muted=False,
            )
            self.db.add(stats)
            self.db.flush()
        return stats

    def all(self, room_id):
        return (
            self.db.query(UserQueueStats)
            .filter(UserQueueStats.room_id == room_id)
            .order_by(UserQueueStats.user_id)
            .all()
        )

    def enforce_mute(self, room_id, user_id, now):
        """Raise ContributorMuted for an active mute; clear an expired one"""
        stats = self.get(room_id, user_id)
        if stats is None or not stats.is_muted:
            return

        muted_until = as_utc(stats.muted_until)
        if muted_until is not None and now >= muted_until:
            stats.is_muted = False
            stats.muted_until = None
            self.db.flush()
            return

        remaining = None
        if muted_until is not None:
            remaining = math.ceil((muted_until - now).total_seconds())
        raise ContributorMuted(remaining)

    def increment(self, room_id, user_id, now):
        stats = self.get_or_create(room_id, user_id)
        stats.current_queue_count += 1
        stats.last_added_at = now
        self.db.flush()
        return stats

    def decrement(self, room_id, user_id):
        stats = self.get_or_create(room_id, user_id)
        stats.current_queue_count = max(0, stats.current_queue_count - 1)
        self.db.flush()
        return stats

    def record_play(self, room_id, user_id):
        """A queued track of ``user_id`` left the queue and started playing"""
        stats = self.get_or_create(room_id, user_id)
        stats.current_queue_count = max(0, stats.current_queue_count - 1)
        stats.total_played += 1
        self.db.flush()
        return stats

    def mute(self, room_id, user_id, until):
        stats = self.get_or_create(room_id, user_id)
        stats.is_muted = True
        stats.muted_until = until
        self.db.flush()
        return stats

    def unmute(self, room_id, user_id):
        stats = self.get_or_create(room_id, user_id)
        stats.is_muted = False
        stats.muted_until = None
        self.db.flush()
        return stats
