"""
Moderator tooling: room settings, mutes, the fallback ring and the request inbox
"""

import pytest

from djroom.errors import ContributorMuted, InvalidReference, InvalidRequest, InvalidSettings, NotFound, QuotaExceeded
from djroom.scheduler import IDLE, PLAYING, RoomPolicy, Scheduler
from djroom.scheduler.scheduler import MAX_MUTE_MINUTES

ROOM = "room-1"


class TestSettings:

    def test_defaults(self, scheduler):
        assert scheduler.get_settings(ROOM) == {
            "max_queue_per_user": 3,
            "fallback_enabled": True,
            "mute_duration_minutes": 1440,
        }

    def test_scheduler_defaults_come_from_policy(self, session_factory, catalog, clock, vid):
        scheduler = Scheduler(session_factory, catalog=catalog, clock=clock,
                              defaults=RoomPolicy(max_queue_per_user=1))
        scheduler.submit(ROOM, "host", vid(1))
        scheduler.submit(ROOM, "alice", vid(2))

        with pytest.raises(QuotaExceeded):
            scheduler.submit(ROOM, "alice", vid(3))

    def test_partial_update(self, scheduler):
        settings = scheduler.update_settings(ROOM, "mod", max_queue_per_user=5)

        assert settings["max_queue_per_user"] == 5
        assert settings["fallback_enabled"] is True
        assert scheduler.get_settings(ROOM)["max_queue_per_user"] == 5
        assert scheduler.get_settings("other-room")["max_queue_per_user"] == 3

    def test_new_limit_applies_to_submissions(self, scheduler, vid):
        scheduler.update_settings(ROOM, "mod", max_queue_per_user=1)
        scheduler.submit(ROOM, "host", vid(1))
        scheduler.submit(ROOM, "alice", vid(2))

        with pytest.raises(QuotaExceeded) as excinfo:
            scheduler.submit(ROOM, "alice", vid(3))
        assert excinfo.value.details["max_queue_per_user"] == 1

    @pytest.mark.parametrize("changes", [
        {"max_queue_per_user": 0},
        {"max_queue_per_user": "3"},
        {"max_queue_per_user": True},
        {"mute_duration_minutes": -5},
        {"fallback_enabled": "yes"},
    ])
    def test_invalid_values(self, scheduler, changes):
        with pytest.raises(InvalidSettings):
            scheduler.update_settings(ROOM, "mod", **changes)
        assert scheduler.get_settings(ROOM)["max_queue_per_user"] == 3


class TestMutes:

    def test_mute_uses_room_duration_by_default(self, scheduler, clock, vid):
        scheduler.update_settings(ROOM, "mod", mute_duration_minutes=5)
        stats = scheduler.mute_user(ROOM, "alice", "mod")

        assert stats["is_muted"] is True
        with pytest.raises(ContributorMuted) as excinfo:
            scheduler.submit(ROOM, "alice", vid(1))
        assert excinfo.value.details["remaining_seconds"] == 300

    def test_unmute(self, scheduler, vid):
        scheduler.mute_user(ROOM, "alice", "mod", minutes=60)
        stats = scheduler.unmute_user(ROOM, "alice", "mod")

        assert stats["is_muted"] is False
        assert stats["muted_until"] is None
        assert scheduler.submit(ROOM, "alice", vid(1)).started_playing is True

    def test_mute_keeps_queued_tracks(self, scheduler, vid):
        scheduler.submit(ROOM, "host", vid(1))
        scheduler.submit(ROOM, "alice", vid(2))

        scheduler.mute_user(ROOM, "alice", "mod", minutes=60)

        assert [item.contributor_id for item in scheduler.list_queue(ROOM)] == ["alice"]

    def test_invalid_minutes(self, scheduler):
        with pytest.raises(InvalidRequest):
            scheduler.mute_user(ROOM, "alice", "mod", minutes=0)
        with pytest.raises(InvalidRequest):
            scheduler.mute_user(ROOM, "alice", "mod", minutes="ten")


class TestFallbackAdmin:

    def test_append_and_list(self, scheduler, vid):
        scheduler.add_fallback(ROOM, vid(101), "mod")
        entry = scheduler.add_fallback(ROOM, f"https://www.youtube.com/watch?v={vid(102)}", "mod")

        assert entry["position"] == 2
        assert entry["title"] == f"Title {vid(102)}"
        assert [item["position"] for item in scheduler.list_fallback(ROOM)] == [1, 2]

    def test_remove_renumbers(self, scheduler, vid, check_room):
        first = scheduler.add_fallback(ROOM, vid(101), "mod")
        scheduler.add_fallback(ROOM, vid(102), "mod")
        scheduler.add_fallback(ROOM, vid(103), "mod")

        scheduler.remove_fallback(ROOM, first["id"], "mod")

        entries = scheduler.list_fallback(ROOM)
        assert [item["external_ref"] for item in entries] == [vid(102), vid(103)]
        check_room(ROOM)

    def test_remove_unknown_entry(self, scheduler):
        with pytest.raises(NotFound):
            scheduler.remove_fallback(ROOM, 999, "mod")

    def test_invalid_reference(self, scheduler):
        with pytest.raises(InvalidReference):
            scheduler.add_fallback(ROOM, "not a video", "mod")


class TestRequestInbox:

    def test_submit_and_list(self, scheduler):
        created = scheduler.submit_request(ROOM, "alice", "  Song A ", artist="Band", dedication="hi")

        assert created["status"] == "pending"
        assert created["song_title"] == "Song A"
        assert [item["id"] for item in scheduler.list_requests(ROOM)] == [created["id"]]

    def test_title_required(self, scheduler):
        with pytest.raises(InvalidRequest):
            scheduler.submit_request(ROOM, "alice", "   ")

    def test_process_fills_idle_room(self, scheduler, vid, check_room):
        scheduler.submit_request(ROOM, "alice", "Song A", link=f"https://youtu.be/{vid(1)}")
        scheduler.submit_request(ROOM, "alice", "Song B")
        scheduler.submit_request(ROOM, "bob", "Song C")

        result = scheduler.process_requests(ROOM, "mod")

        assert result.processed == 3
        assert result.started_playing is True
        state = scheduler.get_state(ROOM)
        assert state.status == PLAYING
        assert state.now_playing.title == "Song A"
        assert state.now_playing.external_ref == vid(1)
        assert [item.track.title for item in state.queue] == ["Song C", "Song B"]
        assert scheduler.list_requests(ROOM) == []
        assert {item["status"] for item in scheduler.list_requests(ROOM, status=None)} == {"accepted"}
        check_room(ROOM)

    def test_process_does_not_interrupt_playback(self, scheduler, vid):
        playing = scheduler.submit(ROOM, "host", vid(1))
        scheduler.submit_request(ROOM, "alice", "Song A")

        result = scheduler.process_requests(ROOM, "mod")

        assert result.started_playing is False
        assert scheduler.get_state(ROOM).now_playing.id == playing.track_id
        assert len(scheduler.list_queue(ROOM)) == 1

    def test_process_with_nothing_pending(self, scheduler):
        result = scheduler.process_requests(ROOM, "mod")

        assert result.to_dict()["processed"] == 0
        assert scheduler.get_state(ROOM).status == IDLE

    def test_reject(self, scheduler):
        created = scheduler.submit_request(ROOM, "alice", "Song A")

        rejected = scheduler.reject_request(ROOM, created["id"], "mod")

        assert rejected["status"] == "rejected"
        assert rejected["handled_by"] == "mod"
        assert scheduler.process_requests(ROOM, "mod").processed == 0
        with pytest.raises(NotFound):
            scheduler.reject_request(ROOM, created["id"], "mod")


class TestLookupInfo:

    def test_returns_metadata(self, scheduler, vid):
        info = scheduler.lookup_info(f"https://www.youtube.com/watch?v={vid(1)}")
        assert info["id"] == vid(1)
        assert info["title"] == f"Title {vid(1)}"
        assert info["is_placeholder"] is False

    def test_placeholder_without_catalog(self, session_factory, vid):
        info = Scheduler(session_factory).lookup_info(vid(1))
        assert info["title"] == "YouTube Video"
        assert info["is_placeholder"] is True

    def test_rejects_bad_reference(self, scheduler):
        with pytest.raises(InvalidReference):
            scheduler.lookup_info("https://example.com")


class TestQueuePosition:

    def test_user_with_nothing_queued(self, scheduler, vid):
        scheduler.submit(ROOM, "host", vid(1))
        scheduler.submit(ROOM, "alice", vid(2))

        assert scheduler.queue_position(ROOM, "bob") == {
            "queue_position": 0,
            "total_in_queue": 1,
            "has_pending_request": False,
        }

    def test_first_queued_track_counts(self, scheduler, vid):
        scheduler.submit(ROOM, "host", vid(1))
        scheduler.submit(ROOM, "alice", vid(2))
        scheduler.submit(ROOM, "alice", vid(3))
        scheduler.submit(ROOM, "bob", vid(4))

        assert scheduler.queue_position(ROOM, "alice")["queue_position"] == 1
        position = scheduler.queue_position(ROOM, "bob")
        assert position["queue_position"] == 2
        assert position["total_in_queue"] == 3

    def test_pending_request(self, scheduler):
        scheduler.submit_request(ROOM, "alice", "Song A")

        assert scheduler.queue_position(ROOM, "alice")["has_pending_request"] is True
        assert scheduler.queue_position(ROOM, "bob")["has_pending_request"] is False

        scheduler.process_requests(ROOM, "mod")
        assert scheduler.queue_position(ROOM, "alice")["has_pending_request"] is False


class TestInputBounds:

    def test_mute_minutes_upper_bound(self, scheduler):
        with pytest.raises(InvalidRequest):
            scheduler.mute_user(ROOM, "alice", "mod", minutes=10**12)
        with pytest.raises(InvalidRequest):
            scheduler.mute_user(ROOM, "alice", "mod", minutes=MAX_MUTE_MINUTES + 1)

        assert scheduler.mute_user(ROOM, "alice", "mod", minutes=MAX_MUTE_MINUTES)["is_muted"] is True

    def test_mute_duration_setting_upper_bound(self, scheduler):
        with pytest.raises(InvalidSettings):
            scheduler.update_settings(ROOM, "mod", mute_duration_minutes=10**12)
        assert scheduler.get_settings(ROOM)["mute_duration_minutes"] == 1440

    @pytest.mark.parametrize("fields", [
        {"song_title": 123},
        {"song_title": "Song", "artist": ["Band"]},
        {"song_title": "Song", "link": {"url": "x"}},
        {"song_title": "Song", "dedication": 7},
    ])
    def test_request_fields_must_be_text(self, scheduler, fields):
        with pytest.raises(InvalidRequest):
            scheduler.submit_request(ROOM, "alice", **fields)
        assert scheduler.list_requests(ROOM, status=None) == []


def test_reject_stores_reason(scheduler):
    created = scheduler.submit_request(ROOM, "alice", "Song A")

    rejected = scheduler.reject_request(ROOM, created["id"], "mod", reason=" Not tonight ")

    assert rejected["rejection_reason"] == "Not tonight"
    stored = scheduler.list_requests(ROOM, status="rejected")
    assert stored[0]["rejection_reason"] == "Not tonight"


def test_reject_without_reason(scheduler):
    created = scheduler.submit_request(ROOM, "alice", "Song A")
    assert scheduler.reject_request(ROOM, created["id"], "mod")["rejection_reason"] is None
