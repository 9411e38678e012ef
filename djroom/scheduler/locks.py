"""
Per-room mutual exclusion.

Every mutating scheduler operation runs inside ``hold(room_id)``. Rooms are
independent: two rooms never contend for the same lock.
"""

import logging
import threading
from contextlib import contextmanager

from redis.exceptions import LockError

from djroom.errors import RoomBusy

logger = logging.getLogger(__name__)


class LocalRoomLocks:
    """In-process locks, one per room id. Enough for a single worker process.

    A room's lock is dropped once nobody holds or waits for it, so the
    registry only tracks rooms with work in flight.
    """

    def __init__(self, timeout=10.0):
        self.timeout = timeout
        self._locks = {}
        self._guard = threading.Lock()

    def _checkout(self, room_id):
        with self._guard:
            entry = self._locks.get(room_id)
            if entry is None:
                entry = self._locks[room_id] = [threading.Lock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, room_id):
        with self._guard:
            entry = self._locks[room_id]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[room_id]

    def active_rooms(self):
        with self._guard:
            return set(self._locks)

    @contextmanager
    def hold(self, room_id):
        lock = self._checkout(room_id)
        try:
            if not lock.acquire(timeout=self.timeout):
                raise RoomBusy(f"Room {room_id} is busy, try again")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(room_id)


class RedisRoomLocks:
    """Distributed locks so several worker processes serialize per room"""

    def __init__(self, client, timeout=10.0, lease_seconds=30, prefix="djroom:lock:"):
        self.client = client
        self.timeout = timeout
        self.lease_seconds = lease_seconds
        self.prefix = prefix

    @contextmanager
    def hold(self, room_id):
        lock = self.client.lock(
            f"{self.prefix}{room_id}",
            timeout=self.lease_seconds,
            blocking_timeout=self.timeout,
        )
        if not lock.acquire():
            raise RoomBusy(f"Room {room_id} is busy, try again")
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError as e:
                # Lease ran out before release; the critical section already finished
                logger.warning(f"Room lock for {room_id} expired before release: {e}")


def build_room_locks(backend="local", redis_client=None, timeout=10.0):
    if backend == "redis":
        if redis_client is None:
            logger.warning("ROOM_LOCK_BACKEND=redis but Redis is unavailable, using in-process locks")
            return LocalRoomLocks(timeout=timeout)
        logger.info("Using Redis room locks")
        return RedisRoomLocks(redis_client, timeout=timeout)
    return LocalRoomLocks(timeout=timeout)
