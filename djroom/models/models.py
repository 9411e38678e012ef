"""
Consolidated models import for the DJ room scheduler.
"""

from .database_config import Base, SessionLocal, init_db, get_db, configure, make_engine, make_session_factory

from .track_models import Track, Reaction
from .queue_models import QueueEntry, FallbackEntry
from .room_models import RoomState, RoomSettings, UserQueueStats
from .history_models import PlayHistory
from .request_models import SongRequest

__all__ = [
    'Base', 'SessionLocal', 'init_db', 'get_db', 'configure', 'make_engine', 'make_session_factory',
    'Track', 'Reaction', 'QueueEntry', 'FallbackEntry', 'RoomState', 'RoomSettings',
    'UserQueueStats', 'PlayHistory', 'SongRequest',
]
