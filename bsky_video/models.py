"""Data models, enums, and constants for the Bluesky video downloader."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# Constants
VIDEO_EXTENSION = "mp4"
DEFAULT_OUTPUT_DIR = "./downloads"
DEFAULT_SERVICE = "https://bsky.social"
DEFAULT_MAX_POSTS = 500
DEFAULT_PAGE_SIZE = 100
DEFAULT_HTTP_TIMEOUT = 60.0
DEFAULT_FFMPEG = "ffmpeg"

# Substrings identifying links that need a platform extractor instead of a plain fetch
PLATFORM_DOMAINS: Tuple[str, ...] = ("youtube.com", "youtu.be", "vimeo.com")

# URL fragments that mark an HLS manifest
HLS_MARKERS: Tuple[str, ...] = (".m3u8", "playlist")

# Some CDNs reject ffmpeg's and requests' default client identification
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Environment variable names
ENV_IDENTIFIER = "BSKY_VIDEO_IDENTIFIER"
ENV_PASSWORD = "BSKY_VIDEO_PASSWORD"
ENV_SERVICE = "BSKY_VIDEO_SERVICE"


class EmbedKind(Enum):
    """Variant tag of a post embed, with the ``#view`` style suffix removed."""
    VIDEO = "app.bsky.embed.video"
    EXTERNAL = "app.bsky.embed.external"
    RECORD_WITH_MEDIA = "app.bsky.embed.recordWithMedia"
    OTHER = "other"

    @classmethod
    def from_type(cls, type_value: Any) -> "EmbedKind":
        if not isinstance(type_value, str):
            return cls.OTHER
        base = type_value.split("#", 1)[0]
        for kind in cls:
            if kind.value == base:
                return kind
        return cls.OTHER


class VideoKind(Enum):
    DIRECT_VIDEO = "direct-video"
    EXTERNAL_LINK = "external-link"


class Transport(Enum):
    DIRECT_FILE = "direct-file"
    HLS_STREAM = "hls-stream"
    PLATFORM_LINK = "platform-link"


class Strategy(Enum):
    """One concrete way of turning a resolved URL into a saved file."""
    REMUX_TOOL = "ffmpeg"
    EXTRACTION_TOOL = "yt-dlp"
    DIRECT_STREAM = "direct"


class OutcomeStatus(Enum):
    DOWNLOADED = "downloaded"
    SKIPPED = "skipped"
    FAILED = "failed"


class FailureReason(Enum):
    NO_URL = "no_url"
    TOOL_UNAVAILABLE = "tool_unavailable"
    PROCESS_ERROR = "process_error"
    NETWORK = "network"
    HTTP_STATUS = "http_status"
    FILESYSTEM = "filesystem"


def post_id_from_uri(post_uri: str) -> str:
    """Return the record key (final path segment) of an ``at://`` post URI."""
    return str(post_uri or "").rstrip("/").rsplit("/", 1)[-1]


@dataclass(frozen=True)
class FeedItem:
    """One liked post as returned by the feed API."""
    post_uri: str
    embed: Optional[Dict[str, Any]] = None

    @property
    def post_id(self) -> str:
        return post_id_from_uri(self.post_uri)

    @classmethod
    def from_feed_view(cls, entry: Any) -> "FeedItem":
        """Build an item from a raw ``app.bsky.feed.defs#feedViewPost`` dict."""
        post = entry.get("post") if isinstance(entry, dict) else None
        if not isinstance(post, dict):
            post = {}
        embed = post.get("embed")
        return cls(
            post_uri=str(post.get("uri") or ""),
            embed=embed if isinstance(embed, dict) else None,
        )


@dataclass(frozen=True)
class VideoRef:
    """Classification result: which embed (or nested media) holds the video."""
    post_id: str
    kind: VideoKind
    media: Dict[str, Any]


@dataclass(frozen=True)
class ResolvedUrl:
    url: str
    transport: Transport


@dataclass(frozen=True)
class ToolAvailability:
    """Snapshot of external tool presence, taken once per run."""
    has_remux_tool: bool
    has_extraction_tool: bool

    @property
    def any_available(self) -> bool:
        return self.has_remux_tool or self.has_extraction_tool


@dataclass(frozen=True)
class ProgressUpdate:
    """Progress event emitted by the downloader.

    ``total_bytes`` is None when the size is unknown (indeterminate progress).
    External tools without byte level reporting only emit a start and a
    ``finished`` event.
    """
    strategy: Strategy
    downloaded_bytes: int = 0
    total_bytes: Optional[int] = None
    finished: bool = False

    @property
    def fraction(self) -> Optional[float]:
        if self.finished:
            return 1.0
        if not self.total_bytes:
            return None
        return min(1.0, self.downloaded_bytes / self.total_bytes)


@dataclass
class DownloadOutcome:
    post_id: str
    status: OutcomeStatus
    strategy_used: Optional[Strategy] = None
    error_message: Optional[str] = None
    failure_reason: Optional[FailureReason] = None
    output_path: Optional[str] = None
    bytes_written: Optional[int] = None
    attempts: List[Strategy] = field(default_factory=list)


@dataclass
class RunSummary:
    """Aggregate counts for a run; every processed item lands in exactly one bucket."""
    output_dir: str
    downloaded: int = 0
    skipped: int = 0
    failed: int = 0
    outcomes: List[DownloadOutcome] = field(default_factory=list)

    def record(self, outcome: DownloadOutcome) -> None:
        if outcome.status is OutcomeStatus.DOWNLOADED:
            self.downloaded += 1
        elif outcome.status is OutcomeStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
        self.outcomes.append(outcome)

    @property
    def total(self) -> int:
        return self.downloaded + self.skipped + self.failed
