"""
Scheduler: the DJ room orchestrator.

Composes the queue, fallback ring, quota tracker, room state machine, play
history and reaction tally. Every mutating operation follows the same shape:

1. validate the input and resolve catalog metadata (no lock held, so a slow
   lookup never stalls other users of the room);
2. take the room lock and open one transaction;
3. re-validate against stored state, then mutate;
4. commit, release the lock, return a detached result.

Any validation failure raises before the first write, and any storage error
rolls the whole transaction back, so a submission is never partially applied.
"""

import logging
from contextlib import contextmanager
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from djroom.api.youtube import TrackMetadata, extract_video_id, thumbnail_for
from djroom.errors import (
    CatalogUnavailable,
    Forbidden,
    InvalidReaction,
    InvalidReference,
    InvalidRequest,
    InvalidSettings,
    NotFound,
    QuotaExceeded,
    StoreUnavailable,
)
from djroom.models import get_db, RoomSettings, SongRequest, Track
from djroom.utils.clock import isoformat, utcnow
from .fallback import FallbackPlaylist
from .history import PlayHistoryLog
from .locks import LocalRoomLocks
from .policy import RoomPolicy, load_policy
from .queue_store import QueueStore
from .quota import UserQuotaTracker
from .reactions import REACTION_KINDS, ReactionTally
from .results import (
    AdvanceResult,
    FallbackSource,
    ProcessRequestsResult,
    QueuedSource,
    QueueItemSummary,
    ReactionResult,
    RemovalResult,
    RoomSnapshot,
    SubmissionResult,
    TrackSummary,
)
from .room_state import IDLE, PAUSED, PLAYING, RoomStateMachine, position_ms, status_of

logger = logging.getLogger(__name__)

SCHEDULER_ACTOR = "auto-dj"

MAX_MUTE_MINUTES = 365 * 24 * 60
MAX_POSITION_MS = 2**31 - 1


def optional_text(name, value):
    """Return ``value`` when it is a string or None, else raise InvalidRequest"""
    if value is not None and not isinstance(value, str):
        raise InvalidRequest(f"{name} must be a string")
    return value


class Scheduler:
    def __init__(self, session_factory, catalog=None, locks=None, defaults=None, clock=utcnow,
                 actor_id=SCHEDULER_ACTOR):
        self.session_factory = session_factory
        self.catalog = catalog
        self.locks = locks or LocalRoomLocks()
        self.defaults = defaults or RoomPolicy()
        self.clock = clock
        self.actor_id = actor_id

    # -- plumbing ---------------------------------------------------------

    @contextmanager
    def _session(self):
        try:
            with get_db(self.session_factory) as db:
                yield db
        except SQLAlchemyError as e:
            logger.error(f"Storage failure: {e}")
            raise StoreUnavailable("Storage is temporarily unavailable, try again") from e

    @contextmanager
    def _room(self, room_id):
        with self.locks.hold(room_id):
            with self._session() as db:
                yield db

    def _describe(self, video_id):
        """Catalog metadata for ``video_id``, or a placeholder when the lookup fails"""
        if self.catalog is None:
            return TrackMetadata.placeholder(video_id)
        try:
            return self.catalog.lookup(video_id)
        except CatalogUnavailable as e:
            logger.warning(f"Catalog lookup failed for {video_id}, using placeholder: {e}")
            return TrackMetadata.placeholder(video_id)

    def _resolve(self, source_ref):
        video_id = extract_video_id(source_ref)
        if video_id is None:
            raise InvalidReference("Invalid YouTube URL or video id")
        return video_id

    def _create_track(self, db, room_id, metadata, contributor_id, now, url=None, dedication=None,
                      source_type="youtube"):
        track = Track(
            room_id=room_id,
            source_type=source_type,
            external_ref=metadata.external_ref,
            url=url,
            title=metadata.title,
            author=metadata.author,
            thumbnail_url=metadata.thumbnail_url,
            duration_ms=metadata.duration_ms,
            contributor_id=contributor_id,
            dedication=dedication,
            likes_count=0,
            dislikes_count=0,
            created_at=now,
        )
        db.add(track)
        db.flush()
        return track

    def _play_queued(self, db, state, entry, by, now):
        """Move ``entry`` out of the queue and make its track current"""
        track = entry.track
        entry_id = entry.id
        contributor_id = entry.contributor_id

        QueueStore(db).remove(entry)
        UserQuotaTracker(db).record_play(state.room_id, contributor_id)
        RoomStateMachine(db).start(state, track, "queue", by, now)
        PlayHistoryLog(db).append(state.room_id, track, "queue", now)
        return QueuedSource(track=TrackSummary.from_track(track), queue_entry_id=entry_id)

    def _play_fallback(self, db, state, fallback_entry, by, now):
        metadata = TrackMetadata(
            external_ref=fallback_entry.external_ref,
            title=fallback_entry.title,
            author=fallback_entry.author,
            thumbnail_url=fallback_entry.thumbnail_url,
            duration_ms=fallback_entry.duration_ms,
        )
        track = self._create_track(
            db, state.room_id, metadata, None, now, source_type=fallback_entry.source_type
        )
        RoomStateMachine(db).start(state, track, "fallback", by, now)
        PlayHistoryLog(db).append(state.room_id, track, "fallback", now)
        return FallbackSource(track=TrackSummary.from_track(track), fallback_entry_id=fallback_entry.id)

    def _require_state(self, db, room_id):
        state = RoomStateMachine(db).get(room_id)
        if state is None:
            raise NotFound(f"Room {room_id} has no playback state yet")
        return state

    def _snapshot(self, db, room_id, state, now):
        track = db.get(Track, state.current_track_id) if state is not None and state.current_track_id else None
        status = status_of(state)
        return RoomSnapshot(
            room_id=room_id,
            status=status,
            now_playing=TrackSummary.from_track(track) if track else None,
            source=(state.source_kind or "queue") if track else "none",
            paused=status == PAUSED,
            position_ms=position_ms(state, now),
            started_at=state.started_at if state is not None else None,
            updated_by=state.updated_by if state is not None else None,
            updated_at=state.updated_at if state is not None else None,
            queue=[QueueItemSummary.from_entry(entry) for entry in QueueStore(db).entries(room_id)],
        )

    # -- core operations --------------------------------------------------

    def submit(self, room_id, contributor_id, source_ref, dedication=None):
        """Queue a track for ``contributor_id``; starts it at once if the room is idle or paused"""
        dedication = optional_text("dedication", dedication)
        video_id = self._resolve(source_ref)
        metadata = self._describe(video_id)
        now = self.clock()

        with self._room(room_id) as db:
            policy = load_policy(db, room_id, self.defaults)
            queue = QueueStore(db)
            quota = UserQuotaTracker(db)

            quota.enforce_mute(room_id, contributor_id, now)
            if queue.count_for(room_id, contributor_id) >= policy.max_queue_per_user:
                raise QuotaExceeded(policy.max_queue_per_user)

            machine = RoomStateMachine(db)
            state = machine.ensure(room_id, contributor_id, now)

            track = self._create_track(
                db, room_id, metadata, contributor_id, now, url=source_ref, dedication=dedication
            )
            entry = queue.insert_fair(room_id, track, contributor_id, now)
            quota.increment(room_id, contributor_id, now)

            position = entry.position
            started = status_of(state) != PLAYING
            if started:
                self._play_queued(db, state, entry, contributor_id, now)
                position = None

            result = SubmissionResult(
                track_id=track.id,
                position=position,
                started_playing=started,
                title=track.title,
                author=track.author,
            )

        if started:
            logger.info(f"Room {room_id}: '{result.title}' from {contributor_id} started immediately")
        else:
            logger.info(f"Room {room_id}: '{result.title}' from {contributor_id} queued at #{position}")
        return result

    def advance(self, room_id, requested_by=None):
        """End the current track and play the next one from the queue, else the fallback ring"""
        now = self.clock()
        by = requested_by or self.actor_id

        with self._room(room_id) as db:
            state = self._require_state(db, room_id)
            entry = QueueStore(db).head(room_id)

            if entry is not None:
                source = self._play_queued(db, state, entry, by, now)
            else:
                policy = load_policy(db, room_id, self.defaults)
                fallback_entry = FallbackPlaylist(db).rotate(room_id) if policy.fallback_enabled else None
                if fallback_entry is not None:
                    source = self._play_fallback(db, state, fallback_entry, by, now)
                else:
                    RoomStateMachine(db).go_idle(state, by, now)
                    source = None

            result = AdvanceResult(now_playing=source)

        if source is None:
            logger.info(f"Room {room_id}: queue and fallback empty, nothing to play")
        return result

    def remove(self, room_id, track_id, requester_id, moderator=False):
        """Remove a still-queued track. Contributors may remove their own, moderators any."""
        with self._room(room_id) as db:
            queue = QueueStore(db)
            entry = queue.find(room_id, track_id)
            if entry is None:
                raise NotFound(f"Track {track_id} is not queued in room {room_id}")
            if not moderator and entry.contributor_id != requester_id:
                raise Forbidden("Only the contributor or a moderator can remove this track")

            contributor_id = entry.contributor_id
            queue.remove(entry)
            UserQuotaTracker(db).decrement(room_id, contributor_id)

        logger.info(f"Room {room_id}: track {track_id} removed by {requester_id}")
        return RemovalResult(track_id=track_id)

    def react(self, room_id, track_id, user_id, kind):
        """Toggle ``user_id``'s like/dislike on a track"""
        if kind not in REACTION_KINDS:
            raise InvalidReaction(f"Reaction must be one of: {', '.join(REACTION_KINDS)}")
        now = self.clock()

        with self._room(room_id) as db:
            track = db.get(Track, track_id)
            if track is None or track.room_id != room_id:
                raise NotFound(f"Track {track_id} not found in room {room_id}")
            current = ReactionTally(db).toggle(room_id, track, user_id, kind, now)
            result = ReactionResult(
                track_id=track.id,
                like_count=track.likes_count,
                dislike_count=track.dislikes_count,
                reaction=current,
            )
        return result

    def get_state(self, room_id):
        now = self.clock()
        with self._session() as db:
            state = RoomStateMachine(db).get(room_id)
            return self._snapshot(db, room_id, state, now)

    # -- playback controls ------------------------------------------------

    def pause(self, room_id, by):
        return self._control(room_id, by, lambda machine, state, now: machine.pause(state, by, now))

    def resume(self, room_id, by):
        return self._control(room_id, by, lambda machine, state, now: machine.resume(state, by, now))

    def seek(self, room_id, offset_ms, by):
        try:
            offset_ms = int(offset_ms)
        except (TypeError, ValueError):
            raise InvalidRequest("position_ms must be an integer")
        if offset_ms < 0:
            raise InvalidRequest("position_ms must not be negative")
        if offset_ms > MAX_POSITION_MS:
            raise InvalidRequest(f"position_ms must be at most {MAX_POSITION_MS}")
        return self._control(room_id, by, lambda machine, state, now: machine.seek(state, offset_ms, by, now))

    def stop(self, room_id, by):
        return self._control(room_id, by, lambda machine, state, now: machine.go_idle(state, by, now))

    def _control(self, room_id, by, transition):
        now = self.clock()
        with self._room(room_id) as db:
            state = self._require_state(db, room_id)
            transition(RoomStateMachine(db), state, now)
            snapshot = self._snapshot(db, room_id, state, now)
        logger.info(f"Room {room_id}: playback now {snapshot.status} (by {by})")
        return snapshot

    # -- listings ---------------------------------------------------------

    def list_queue(self, room_id):
        with self._session() as db:
            return [QueueItemSummary.from_entry(entry) for entry in QueueStore(db).entries(room_id)]

    def queue_position(self, room_id, user_id):
        """Where ``user_id``'s next track sits, 0 when they have nothing queued"""
        with self._session() as db:
            entries = QueueStore(db).entries(room_id)
            position = next(
                (index for index, entry in enumerate(entries, start=1) if entry.contributor_id == user_id),
                0,
            )
            pending = (
                db.query(SongRequest)
                .filter(
                    SongRequest.room_id == room_id,
                    SongRequest.requester_id == user_id,
                    SongRequest.status == "pending",
                )
                .count()
            )
            return {
                "queue_position": position,
                "total_in_queue": len(entries),
                "has_pending_request": pending > 0,
            }

    def history(self, room_id, limit=50):
        with self._session() as db:
            return [history_to_dict(record) for record in PlayHistoryLog(db).recent(room_id, limit)]

    def user_stats(self, room_id):
        with self._session() as db:
            return [stats_to_dict(stats) for stats in UserQuotaTracker(db).all(room_id)]

    def lookup_info(self, source_ref):
        video_id = self._resolve(source_ref)
        data = self._describe(video_id).to_dict()
        data["id"] = video_id
        return data

    # -- moderation -------------------------------------------------------

    def mute_user(self, room_id, user_id, by, minutes=None):
        now = self.clock()
        if minutes is not None:
            try:
                minutes = int(minutes)
            except (TypeError, ValueError):
                raise InvalidRequest("minutes must be an integer")
            if minutes < 1:
                raise InvalidRequest("minutes must be at least 1")
            if minutes > MAX_MUTE_MINUTES:
                raise InvalidRequest(f"minutes must be at most {MAX_MUTE_MINUTES}")

        with self._room(room_id) as db:
            if minutes is None:
                minutes = load_policy(db, room_id, self.defaults).mute_duration_minutes
            stats = UserQuotaTracker(db).mute(room_id, user_id, now + timedelta(minutes=minutes))
            result = stats_to_dict(stats)

        logger.info(f"Room {room_id}: {user_id} muted for {minutes} minutes by {by}")
        return result

    def unmute_user(self, room_id, user_id, by):
        with self._room(room_id) as db:
            result = stats_to_dict(UserQuotaTracker(db).unmute(room_id, user_id))
        logger.info(f"Room {room_id}: {user_id} unmuted by {by}")
        return result

    def get_settings(self, room_id):
        with self._session() as db:
            return load_policy(db, room_id, self.defaults).to_dict()

    def update_settings(self, room_id, by, max_queue_per_user=None, fallback_enabled=None,
                        mute_duration_minutes=None):
        for name, value in (("max_queue_per_user", max_queue_per_user),
                            ("mute_duration_minutes", mute_duration_minutes)):
            if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 1):
                raise InvalidSettings(f"{name} must be a positive integer")
        if mute_duration_minutes is not None and mute_duration_minutes > MAX_MUTE_MINUTES:
            raise InvalidSettings(f"mute_duration_minutes must be at most {MAX_MUTE_MINUTES}")
        if fallback_enabled is not None and not isinstance(fallback_enabled, bool):
            raise InvalidSettings("fallback_enabled must be true or false")

        now = self.clock()
        with self._room(room_id) as db:
            current = load_policy(db, room_id, self.defaults)
            settings = db.get(RoomSettings, room_id)
            if settings is None:
                settings = RoomSettings(room_id=room_id, **current.to_dict())
                db.add(settings)
            if max_queue_per_user is not None:
                settings.max_queue_per_user = max_queue_per_user
            if fallback_enabled is not None:
                settings.fallback_enabled = fallback_enabled
            if mute_duration_minutes is not None:
                settings.mute_duration_minutes = mute_duration_minutes
            settings.updated_by = by
            settings.updated_at = now
            db.flush()
            result = load_policy(db, room_id, self.defaults).to_dict()

        logger.info(f"Room {room_id}: settings updated by {by}: {result}")
        return result

    # -- fallback ring ----------------------------------------------------

    def list_fallback(self, room_id):
        with self._session() as db:
            return [fallback_to_dict(entry) for entry in FallbackPlaylist(db).entries(room_id)]

    def add_fallback(self, room_id, source_ref, by):
        video_id = self._resolve(source_ref)
        metadata = self._describe(video_id)
        now = self.clock()
        with self._room(room_id) as db:
            result = fallback_to_dict(FallbackPlaylist(db).append(room_id, metadata, now))
        logger.info(f"Room {room_id}: '{result['title']}' added to fallback by {by}")
        return result

    def remove_fallback(self, room_id, entry_id, by):
        with self._room(room_id) as db:
            entry = FallbackPlaylist(db).remove(room_id, entry_id)
            if entry is None:
                raise NotFound(f"Fallback entry {entry_id} not found in room {room_id}")
        logger.info(f"Room {room_id}: fallback entry {entry_id} removed by {by}")
        return {"success": True, "id": entry_id}

    # -- song request inbox -----------------------------------------------

    def submit_request(self, room_id, requester_id, song_title, artist=None, link=None, dedication=None):
        song_title = (optional_text("song_title", song_title) or "").strip()
        artist = optional_text("artist", artist)
        link = optional_text("link", link)
        dedication = optional_text("dedication", dedication)
        if not song_title:
            raise InvalidRequest("Song title is required")
        now = self.clock()
        with self._room(room_id) as db:
            request = SongRequest(
                room_id=room_id,
                requester_id=requester_id,
                song_title=song_title,
                artist=(artist or "").strip() or None,
                link=(link or "").strip() or None,
                dedication=dedication,
                status="pending",
                created_at=now,
            )
            db.add(request)
            db.flush()
            result = request_to_dict(request)
        return result

    def list_requests(self, room_id, status="pending"):
        with self._session() as db:
            query = db.query(SongRequest).filter(SongRequest.room_id == room_id)
            if status:
                query = query.filter(SongRequest.status == status)
            requests = query.order_by(SongRequest.created_at, SongRequest.id).all()
            return [request_to_dict(request) for request in requests]

    def process_requests(self, room_id, moderator_id):
        """Accept every pending request into the queue, oldest first"""
        now = self.clock()
        with self._room(room_id) as db:
            pending = (
                db.query(SongRequest)
                .filter(SongRequest.room_id == room_id, SongRequest.status == "pending")
                .order_by(SongRequest.created_at, SongRequest.id)
                .all()
            )
            queue = QueueStore(db)
            quota = UserQuotaTracker(db)
            track_ids = []

            for request in pending:
                video_id = extract_video_id(request.link)
                metadata = TrackMetadata(
                    external_ref=video_id,
                    title=request.song_title,
                    author=request.artist,
                    thumbnail_url=thumbnail_for(video_id) if video_id else None,
                )
                track = self._create_track(
                    db, room_id, metadata, request.requester_id, now,
                    url=request.link,
                    dedication=request.dedication,
                    source_type="youtube" if video_id else "request",
                )
                queue.insert_fair(room_id, track, request.requester_id, now)
                quota.increment(room_id, request.requester_id, now)
                request.status = "accepted"
                request.handled_by = moderator_id
                request.handled_at = now
                track_ids.append(track.id)

            started = False
            if track_ids:
                machine = RoomStateMachine(db)
                state = machine.ensure(room_id, moderator_id, now)
                if status_of(state) == IDLE:
                    self._play_queued(db, state, queue.head(room_id), moderator_id, now)
                    started = True
            db.flush()
            result = ProcessRequestsResult(processed=len(track_ids), track_ids=track_ids, started_playing=started)

        logger.info(f"Room {room_id}: processed {result.processed} requests (by {moderator_id})")
        return result

    def reject_request(self, room_id, request_id, moderator_id, reason=None):
        reason = (optional_text("reason", reason) or "").strip() or None
        now = self.clock()
        with self._room(room_id) as db:
            request = db.get(SongRequest, request_id)
            if request is None or request.room_id != room_id or request.status != "pending":
                raise NotFound(f"No pending request {request_id} in room {room_id}")
            request.status = "rejected"
            request.rejection_reason = reason
            request.handled_by = moderator_id
            request.handled_at = now
            db.flush()
            result = request_to_dict(request)
        return result


def stats_to_dict(stats):
    return {
        "user_id": stats.user_id,
        "current_queue_count": stats.current_queue_count,
        "total_played": stats.total_played,
        "is_muted": stats.is_muted,
        "muted_until": isoformat(stats.muted_until),
        "last_added_at": isoformat(stats.last_added_at),
    }


def history_to_dict(record):
    return {
        "id": record.id,
        "track_id": record.track_id,
        "external_ref": record.external_ref,
        "title": record.title,
        "author": record.author,
        "contributor_id": record.contributor_id,
        "duration_ms": record.duration_ms,
        "source": record.source_kind,
        "played_at": isoformat(record.played_at),
    }


def fallback_to_dict(entry):
    return {
        "id": entry.id,
        "position": entry.position,
        "external_ref": entry.external_ref,
        "title": entry.title,
        "author": entry.author,
        "thumbnail_url": entry.thumbnail_url,
        "duration_ms": entry.duration_ms,
    }


def request_to_dict(request):
    return {
        "id": request.id,
        "requester_id": request.requester_id,
        "song_title": request.song_title,
        "artist": request.artist,
        "link": request.link,
        "dedication": request.dedication,
        "status": request.status,
        "rejection_reason": request.rejection_reason,
        "handled_by": request.handled_by,
        "handled_at": isoformat(request.handled_at),
        "created_at": isoformat(request.created_at),
    }
