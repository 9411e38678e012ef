"""
YouTube Data API integration for the DJ room.
Resolves video references to display metadata; every failure is reported as
CatalogUnavailable so callers can fall back to placeholder metadata.
"""

import re
import logging
from dataclasses import dataclass, asdict
from typing import Optional

import requests

from djroom.errors import CatalogUnavailable

logger = logging.getLogger(__name__)

YOUTUBE_VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"
PLACEHOLDER_TITLE = "YouTube Video"

VIDEO_ID_PATTERNS = [
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/live/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"^([a-zA-Z0-9_-]{11})$"),
]

ISO_DURATION = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def extract_video_id(value):
    """Extract an 11 character video id from a URL or a bare id, or None"""
    if not value or not isinstance(value, str):
        return None
    value = value.strip()
    for pattern in VIDEO_ID_PATTERNS:
        match = pattern.search(value)
        if match:
            return match.group(1)
    return None


def parse_duration(duration):
    """Parse an ISO 8601 duration (PT#H#M#S) into milliseconds"""
    match = ISO_DURATION.match(duration or "")
    if not match:
        return 0
    hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return (hours * 3600 + minutes * 60 + seconds) * 1000


def thumbnail_for(video_id):
    return f"https://img.youtube.com/vi/{video_id}/mqdefault.jpg"


@dataclass(frozen=True)
class TrackMetadata:
    external_ref: Optional[str]
    title: str
    author: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration_ms: Optional[int] = None
    is_placeholder: bool = False

    @classmethod
    def placeholder(cls, video_id):
        return cls(
            external_ref=video_id,
            title=PLACEHOLDER_TITLE,
            thumbnail_url=thumbnail_for(video_id),
            is_placeholder=True,
        )

    def to_dict(self):
        return asdict(self)


class YouTubeCatalog:
    """Track catalog backed by the YouTube Data API v3"""

    def __init__(self, api_key=None, timeout=5, cache=None, cache_seconds=3600):
        self.api_key = api_key
        self.timeout = timeout
        self.cache = cache
        self.cache_seconds = cache_seconds

    def lookup(self, video_id):
        """Fetch metadata for a video id. Raises CatalogUnavailable on any failure."""
        if not self.api_key:
            raise CatalogUnavailable("YouTube API key not configured")

        cache_key = f"youtube:video:{video_id}"
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached:
                return TrackMetadata(**cached)

        try:
            response = requests.get(
                YOUTUBE_VIDEOS_URL,
                params={"part": "snippet,contentDetails", "id": video_id, "key": self.api_key},
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        except requests.RequestException as e:
            raise CatalogUnavailable(f"YouTube request failed for {video_id}: {e}") from e

        if response.status_code != 200:
            raise CatalogUnavailable(f"YouTube API returned {response.status_code} for {video_id}")

        try:
            data = response.json()
        except ValueError as e:
            raise CatalogUnavailable(f"YouTube API returned invalid JSON for {video_id}") from e

        if data.get("error"):
            raise CatalogUnavailable(f"YouTube API error for {video_id}: {data['error']}")

        items = data.get("items") or []
        if not items:
            raise CatalogUnavailable(f"No video found for id {video_id}")

        try:
            video = items[0]
            snippet = video["snippet"]
            thumbnails = snippet.get("thumbnails", {})
            thumbnail = (thumbnails.get("medium") or thumbnails.get("default") or {}).get("url")
            duration_ms = parse_duration(video.get("contentDetails", {}).get("duration"))
            metadata = TrackMetadata(
                external_ref=video_id,
                title=snippet["title"],
                author=snippet.get("channelTitle"),
                thumbnail_url=thumbnail or thumbnail_for(video_id),
                duration_ms=duration_ms or None,
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise CatalogUnavailable(f"Unexpected YouTube payload for {video_id}: {e}") from e

        logger.info(f"Video found: {metadata.title} by {metadata.author}")

        if self.cache is not None:
            self.cache.set(cache_key, metadata.to_dict(), timeout=self.cache_seconds)
        return metadata
