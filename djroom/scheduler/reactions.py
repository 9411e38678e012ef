"""
Like/dislike reactions. Track counters are always recomputed from the
reaction rows, never adjusted in place.
"""

from djroom.models import Reaction

REACTION_KINDS = ("like", "dislike")


class ReactionTally:
    def __init__(self, db):
        self.db = db

    def toggle(self, room_id, track, user_id, kind, now):
        """Create, replace or remove ``user_id``'s reaction. Returns the reaction left in place."""
        existing = (
            self.db.query(Reaction)
            .filter(
                Reaction.room_id == room_id,
                Reaction.track_id == track.id,
                Reaction.user_id == user_id,
            )
            .first()
        )

        if existing is None:
            self.db.add(Reaction(
                room_id=room_id,
                track_id=track.id,
                user_id=user_id,
                reaction_type=kind,
                created_at=now,
            ))
            current = kind
        elif existing.reaction_type == kind:
            self.db.delete(existing)
            current = None
        else:
            existing.reaction_type = kind
            current = kind
        self.db.flush()

        track.likes_count = self.count(room_id, track.id, "like")
        track.dislikes_count = self.count(room_id, track.id, "dislike")
        self.db.flush()
        return current

    def count(self, room_id, track_id, kind):
        return (
            self.db.query(Reaction)
            .filter(
                Reaction.room_id == room_id,
                Reaction.track_id == track_id,
                Reaction.reaction_type == kind,
            )
            .count()
        )
