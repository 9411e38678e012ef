import os
from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest

# Keep tests away from a developer's .env and any running Redis
os.environ['REDIS_URL'] = ''
os.environ['YOUTUBE_API_KEY'] = ''

from djroom.api.youtube import TrackMetadata
from djroom.errors import CatalogUnavailable
from djroom.models import QueueEntry, FallbackEntry, UserQueueStats, init_db, make_engine, make_session_factory
from djroom.scheduler import Scheduler


class FakeCatalog:
    """Catalog double returning canned metadata, or failing on demand"""

    def __init__(self):
        self.calls = []
        self.fail = False

    def lookup(self, video_id):
        self.calls.append(video_id)
        if self.fail:
            raise CatalogUnavailable("catalog down")
        return TrackMetadata(
            external_ref=video_id,
            title=f"Title {video_id}",
            author="Test Channel",
            thumbnail_url=f"https://img.youtube.com/vi/{video_id}/mqdefault.jpg",
            duration_ms=180000,
        )


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path}/djroom.db")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(session_factory, catalog, clock):
    return Scheduler(session_factory, catalog=catalog, clock=clock)


@pytest.fixture
def vid():
    """Build a distinct 11 character video id"""
    return lambda n: f"vid{n:08d}"


@pytest.fixture
def check_room(session_factory):
    """Assert dense positions and matching quota counters for a room"""

    def check(room_id):
        db = session_factory()
        try:
            queue = (
                db.query(QueueEntry)
                .filter(QueueEntry.room_id == room_id)
                .order_by(QueueEntry.position)
                .all()
            )
            assert [entry.position for entry in queue] == list(range(1, len(queue) + 1))

            ring = (
                db.query(FallbackEntry)
                .filter(FallbackEntry.room_id == room_id)
                .order_by(FallbackEntry.position)
                .all()
            )
            assert [entry.position for entry in ring] == list(range(1, len(ring) + 1))

            queued = Counter(entry.contributor_id for entry in queue)
            stats = db.query(UserQueueStats).filter(UserQueueStats.room_id == room_id).all()
            for row in stats:
                assert row.current_queue_count == queued.get(row.user_id, 0), row.user_id
            assert set(queued) <= {row.user_id for row in stats}
        finally:
            db.close()

    return check
