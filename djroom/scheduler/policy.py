"""
Per-room configuration as read by the scheduler.
"""

from dataclasses import dataclass

from djroom.models import RoomSettings


@dataclass(frozen=True)
class RoomPolicy:
    max_queue_per_user: int = 3
    fallback_enabled: bool = True
    mute_duration_minutes: int = 24 * 60

    @classmethod
    def from_config(cls, config):
        """Room defaults from a Flask config mapping"""
        return cls(
            max_queue_per_user=int(config.get("DEFAULT_MAX_QUEUE_PER_USER", 3)),
            fallback_enabled=bool(config.get("DEFAULT_FALLBACK_ENABLED", True)),
            mute_duration_minutes=int(config.get("DEFAULT_MUTE_DURATION_MINUTES", 24 * 60)),
        )

    def to_dict(self):
        return {
            "max_queue_per_user": self.max_queue_per_user,
            "fallback_enabled": self.fallback_enabled,
            "mute_duration_minutes": self.mute_duration_minutes,
        }


def load_policy(db, room_id, defaults):
    settings = db.get(RoomSettings, room_id)
    if settings is None:
        return defaults
    return RoomPolicy(
        max_queue_per_user=settings.max_queue_per_user,
        fallback_enabled=settings.fallback_enabled,
        mute_duration_minutes=settings.mute_duration_minutes,
    )
