"""
Fair scheduling core for DJ rooms.
"""

from .scheduler import Scheduler, SCHEDULER_ACTOR
from .policy import RoomPolicy
from .locks import LocalRoomLocks, RedisRoomLocks, build_room_locks
from .room_state import IDLE, PLAYING, PAUSED

__all__ = [
    'Scheduler', 'SCHEDULER_ACTOR', 'RoomPolicy', 'LocalRoomLocks', 'RedisRoomLocks',
    'build_room_locks', 'IDLE', 'PLAYING', 'PAUSED',
]
