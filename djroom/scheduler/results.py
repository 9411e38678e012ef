"""
Result types returned by Scheduler operations.

Results are plain frozen dataclasses built inside the database session, so
they stay valid after the session is closed.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from djroom.utils.clock import isoformat


@dataclass(frozen=True)
class TrackSummary:
    id: int
    source_type: str
    external_ref: Optional[str]
    title: str
    author: Optional[str]
    thumbnail_url: Optional[str]
    duration_ms: Optional[int]
    contributor_id: Optional[str]
    dedication: Optional[str]
    likes_count: int
    dislikes_count: int

    @classmethod
    def from_track(cls, track):
        return cls(
            id=track.id,
            source_type=track.source_type,
            external_ref=track.external_ref,
            title=track.title,
            author=track.author,
            thumbnail_url=track.thumbnail_url,
            duration_ms=track.duration_ms,
            contributor_id=track.contributor_id,
            dedication=track.dedication,
            likes_count=track.likes_count or 0,
            dislikes_count=track.dislikes_count or 0,
        )

    def to_dict(self):
        return {
            "id": self.id,
            "source_type": self.source_type,
            "external_ref": self.external_ref,
            "title": self.title,
            "author": self.author,
            "thumbnail_url": self.thumbnail_url,
            "duration_ms": self.duration_ms,
            "contributor_id": self.contributor_id,
            "dedication": self.dedication,
            "likes_count": self.likes_count,
            "dislikes_count": self.dislikes_count,
        }


@dataclass(frozen=True)
class QueuedSource:
    track: TrackSummary
    queue_entry_id: int
    source: str = field(default="queue", init=False)


@dataclass(frozen=True)
class FallbackSource:
    track: TrackSummary
    fallback_entry_id: int
    source: str = field(default="fallback", init=False)


Source = Union[QueuedSource, FallbackSource]


@dataclass(frozen=True)
class SubmissionResult:
    track_id: int
    position: Optional[int]
    started_playing: bool
    title: str
    author: Optional[str] = None

    def to_dict(self):
        return {
            "success": True,
            "track_id": self.track_id,
            "position": self.position,
            "started_playing": self.started_playing,
            "title": self.title,
            "author": self.author,
        }


@dataclass(frozen=True)
class AdvanceResult:
    now_playing: Optional[Source] = None

    @property
    def source(self):
        return self.now_playing.source if self.now_playing else "none"

    def to_dict(self):
        return {
            "now_playing": self.now_playing.track.to_dict() if self.now_playing else None,
            "source": self.source,
        }


@dataclass(frozen=True)
class RemovalResult:
    track_id: int
    success: bool = True

    def to_dict(self):
        return {"success": self.success, "track_id": self.track_id}


@dataclass(frozen=True)
class ReactionResult:
    track_id: int
    like_count: int
    dislike_count: int
    reaction: Optional[str]

    def to_dict(self):
        return {
            "success": True,
            "track_id": self.track_id,
            "like_count": self.like_count,
            "dislike_count": self.dislike_count,
            "reaction": self.reaction,
        }


@dataclass(frozen=True)
class QueueItemSummary:
    position: int
    fairness_rank: int
    contributor_id: str
    track: TrackSummary

    @classmethod
    def from_entry(cls, entry):
        return cls(
            position=entry.position,
            fairness_rank=entry.fairness_rank,
            contributor_id=entry.contributor_id,
            track=TrackSummary.from_track(entry.track),
        )

    def to_dict(self):
        data = self.track.to_dict()
        data.update({
            "track_id": self.track.id,
            "position": self.position,
            "fairness_rank": self.fairness_rank,
            "contributor_id": self.contributor_id,
        })
        return data


@dataclass(frozen=True)
class RoomSnapshot:
    room_id: str
    status: str
    now_playing: Optional[TrackSummary]
    source: str
    paused: bool
    position_ms: int
    started_at: Optional[object] = None
    updated_by: Optional[str] = None
    updated_at: Optional[object] = None
    queue: List[QueueItemSummary] = field(default_factory=list)

    def to_dict(self):
        return {
            "room_id": self.room_id,
            "status": self.status,
            "now_playing": self.now_playing.to_dict() if self.now_playing else None,
            "source": self.source,
            "paused": self.paused,
            "position_ms": self.position_ms,
            "started_at": isoformat(self.started_at),
            "updated_by": self.updated_by,
            "updated_at": isoformat(self.updated_at),
            "queue": [item.to_dict() for item in self.queue],
        }


@dataclass(frozen=True)
class ProcessRequestsResult:
    processed: int
    track_ids: List[int]
    started_playing: bool

    def to_dict(self):
        return {
            "success": True,
            "processed": self.processed,
            "track_ids": list(self.track_ids),
            "started_playing": self.started_playing,
            "message": f"Processed {self.processed} requests",
        }
