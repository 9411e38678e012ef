"""
Authoritative "now playing" record per room.

States:
    IDLE     current_track_id is None
    PLAYING  current_track_id set, paused False
    PAUSED   current_track_id set, paused True

The playback offset is anchored: ``seek_base_ms`` is the offset at
``started_at``; while playing the live offset keeps growing from there.
"""

import logging

from djroom.errors import InvalidState
from djroom.models import RoomState
from djroom.utils.clock import as_utc

logger = logging.getLogger(__name__)

IDLE = "idle"
PLAYING = "playing"
PAUSED = "paused"


def status_of(state):
    if state is None or state.current_track_id is None:
        return IDLE
    return PAUSED if state.paused else PLAYING


def position_ms(state, now):
    """Current playback offset in milliseconds"""
    if state is None or state.current_track_id is None:
        return 0
    base = state.seek_base_ms or 0
    started_at = as_utc(state.started_at)
    if state.paused or started_at is None:
        return base
    elapsed = int((now - started_at).total_seconds() * 1000)
    return base + max(0, elapsed)


class RoomStateMachine:
    def __init__(self, db):
        self.db = db

    def get(self, room_id):
        return self.db.get(RoomState, room_id)

    def ensure(self, room_id, by, now):
        """Return the room row, creating it (idle) on first use"""
        state = self.get(room_id)
        if state is None:
            state = RoomState(
                room_id=room_id,
                current_track_id=None,
                paused=False,
                seek_base_ms=0,
                updated_by=by,
                updated_at=now,
            )
            self.db.add(state)
            self.db.flush()
            logger.info(f"Created playback state for room {room_id}")
        return state

    def start(self, state, track, source_kind, by, now):
        """Any state -> PLAYING ``track`` from the beginning"""
        state.current_track_id = track.id
        state.source_kind = source_kind
        state.source_type = track.source_type
        state.external_ref = track.external_ref
        state.title = track.title
        state.paused = False
        state.paused_at = None
        state.started_at = now
        state.seek_base_ms = 0
        self._touch(state, by, now)
        logger.info(f"Room {state.room_id} now playing '{track.title}' ({source_kind})")
        return state

    def go_idle(self, state, by, now):
        """Any state -> IDLE"""
        state.current_track_id = None
        state.source_kind = None
        state.source_type = None
        state.external_ref = None
        state.title = None
        state.paused = True
        state.paused_at = None
        state.started_at = None
        state.seek_base_ms = 0
        self._touch(state, by, now)
        logger.info(f"Room {state.room_id} is idle")
        return state

    def pause(self, state, by, now):
        """PLAYING -> PAUSED, freezing the playback offset"""
        status = status_of(state)
        if status == IDLE:
            raise InvalidState("Nothing is playing", status=status)
        if status == PAUSED:
            return state
        state.seek_base_ms = position_ms(state, now)
        state.paused = True
        state.paused_at = now
        self._touch(state, by, now)
        return state

    def resume(self, state, by, now):
        """PAUSED -> PLAYING from the frozen offset"""
        status = status_of(state)
        if status == IDLE:
            raise InvalidState("Nothing is playing", status=status)
        if status == PLAYING:
            return state
        state.paused = False
        state.paused_at = None
        state.started_at = now
        self._touch(state, by, now)
        return state

    def seek(self, state, offset_ms, by, now):
        status = status_of(state)
        if status == IDLE:
            raise InvalidState("Nothing is playing", status=status)
        state.seek_base_ms = max(0, int(offset_ms))
        state.started_at = now
        self._touch(state, by, now)
        return state

    def _touch(self, state, by, now):
        state.updated_by = by
        state.updated_at = now
        self.db.flush()
