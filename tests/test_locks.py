"""
Per-room locking and concurrent submissions
"""

import threading
from unittest.mock import MagicMock

import pytest
from redis.exceptions import LockError

from djroom.errors import RoomBusy
from djroom.scheduler import LocalRoomLocks, RedisRoomLocks, build_room_locks

ROOM = "room-1"


class TestLocalRoomLocks:

    def test_busy_room_times_out(self):
        locks = LocalRoomLocks(timeout=0.05)
        with locks.hold(ROOM):
            with pytest.raises(RoomBusy):
                with locks.hold(ROOM):
                    pass

    def test_rooms_do_not_block_each_other(self):
        locks = LocalRoomLocks(timeout=0.05)
        with locks.hold("room-a"):
            with locks.hold("room-b"):
                pass

    def test_idle_rooms_are_forgotten(self):
        locks = LocalRoomLocks(timeout=0.05)
        for n in range(100):
            with locks.hold(f"room-{n}"):
                assert locks.active_rooms() == {f"room-{n}"}

        assert locks.active_rooms() == set()

    def test_waiting_room_keeps_its_lock(self):
        locks = LocalRoomLocks(timeout=0.05)
        with locks.hold(ROOM):
            with pytest.raises(RoomBusy):
                with locks.hold(ROOM):
                    pass
            assert locks.active_rooms() == {ROOM}
        assert locks.active_rooms() == set()

    def test_lock_is_released_after_error(self):
        locks = LocalRoomLocks(timeout=0.05)
        with pytest.raises(ValueError):
            with locks.hold(ROOM):
                raise ValueError("boom")
        with locks.hold(ROOM):
            pass


class TestRedisRoomLocks:

    def test_acquires_named_lock(self):
        client = MagicMock()
        client.lock.return_value.acquire.return_value = True

        with RedisRoomLocks(client, timeout=2, lease_seconds=30).hold(ROOM):
            pass

        client.lock.assert_called_once_with("djroom:lock:room-1", timeout=30, blocking_timeout=2)
        client.lock.return_value.release.assert_called_once()

    def test_busy_room(self):
        client = MagicMock()
        client.lock.return_value.acquire.return_value = False

        with pytest.raises(RoomBusy):
            with RedisRoomLocks(client).hold(ROOM):
                pass

    def test_expired_lease_on_release(self):
        client = MagicMock()
        client.lock.return_value.acquire.return_value = True
        client.lock.return_value.release.side_effect = LockError("expired")

        with RedisRoomLocks(client).hold(ROOM):
            pass


def test_build_room_locks():
    assert isinstance(build_room_locks("local"), LocalRoomLocks)
    assert isinstance(build_room_locks("redis", None), LocalRoomLocks)
    assert isinstance(build_room_locks("redis", MagicMock()), RedisRoomLocks)


def test_concurrent_submissions_stay_consistent(scheduler, vid, check_room):
    scheduler.submit(ROOM, "host", vid(0))
    errors = []

    def submit(user, n):
        try:
            scheduler.submit(ROOM, user, vid(n))
        except Exception as e:
            errors.append(e)

    threads = [
        threading.Thread(target=submit, args=(f"user{n % 4}", n))
        for n in range(1, 13)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    queue = scheduler.list_queue(ROOM)
    assert len(queue) == 12
    # Every contributor's first track comes before anyone's second
    assert sorted(item.fairness_rank for item in queue) == [item.fairness_rank for item in queue]
    check_room(ROOM)
