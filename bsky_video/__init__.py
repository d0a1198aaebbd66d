"""Bluesky liked-videos downloader package."""

# Import main components for easier access
from .archive import OutputPathBuilder, has_existing_download, scan_existing_downloads
from .classifier import classify, filter_video_posts
from .config import apply_environment_defaults, parse_args, positive_int
from .downloader import Downloader
from .errors import (
    AuthenticationError,
    DownloadError,
    ErrorAnalyzer,
    FeedError,
    FilesystemError,
    HttpStatusError,
    NetworkError,
    ProcessExecutionError,
    ToolUnavailableError,
)
from .feed import BlueskyClient
from .health_check import run_tool_check
from .models import (
    DEFAULT_MAX_POSTS,
    VIDEO_EXTENSION,
    DownloadOutcome,
    EmbedKind,
    FeedItem,
    OutcomeStatus,
    ResolvedUrl,
    RunSummary,
    Strategy,
    ToolAvailability,
    Transport,
    VideoKind,
    VideoRef,
)
from .orchestrator import download_videos, print_summary, process_item
from .progress import ConsoleProgress
from .resolver import classify_transport, resolve
from .strategies import select_strategies
from .tools import confirm_without_tools, probe_tools

__all__ = [
    # Main entry points
    "parse_args",
    "apply_environment_defaults",
    "download_videos",
    "process_item",
    "print_summary",
    "run_tool_check",
    # Pipeline stages
    "classify",
    "filter_video_posts",
    "resolve",
    "classify_transport",
    "probe_tools",
    "confirm_without_tools",
    "select_strategies",
    "Downloader",
    # Collaborators
    "BlueskyClient",
    "ConsoleProgress",
    "OutputPathBuilder",
    "has_existing_download",
    "scan_existing_downloads",
    # Models and data structures
    "FeedItem",
    "EmbedKind",
    "VideoKind",
    "VideoRef",
    "ResolvedUrl",
    "Transport",
    "Strategy",
    "ToolAvailability",
    "DownloadOutcome",
    "OutcomeStatus",
    "RunSummary",
    # Errors
    "ErrorAnalyzer",
    "AuthenticationError",
    "FeedError",
    "DownloadError",
    "ToolUnavailableError",
    "ProcessExecutionError",
    "NetworkError",
    "HttpStatusError",
    "FilesystemError",
    # Configuration
    "positive_int",
    # Constants
    "DEFAULT_MAX_POSTS",
    "VIDEO_EXTENSION",
]
