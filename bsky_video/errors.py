"""Exception types and failure analysis for the Bluesky video downloader."""

import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .models import FailureReason, Strategy


class VideoDownloaderError(Exception):
    """Base class for every error raised by this package."""


class FeedError(VideoDownloaderError):
    """Raised when the liked-posts feed cannot be retrieved."""


class AuthenticationError(FeedError):
    """Raised when logging in to the Bluesky service fails."""


class DownloadError(VideoDownloaderError):
    """A single strategy attempt failed. Never fatal to the run."""

    category = FailureReason.PROCESS_ERROR

    def __init__(self, message: str, strategy: Optional[Strategy] = None) -> None:
        super().__init__(message)
        self.message = message
        self.strategy = strategy


class ToolUnavailableError(DownloadError):
    category = FailureReason.TOOL_UNAVAILABLE


class ProcessExecutionError(DownloadError):
    category = FailureReason.PROCESS_ERROR

    def __init__(
        self, message: str, strategy: Optional[Strategy] = None, returncode: Optional[int] = None
    ) -> None:
        super().__init__(message, strategy)
        self.returncode = returncode


class NetworkError(DownloadError):
    category = FailureReason.NETWORK


class HttpStatusError(NetworkError):
    category = FailureReason.HTTP_STATUS

    def __init__(
        self, message: str, strategy: Optional[Strategy] = None, status_code: Optional[int] = None
    ) -> None:
        super().__init__(message, strategy)
        self.status_code = status_code


class FilesystemError(DownloadError):
    category = FailureReason.FILESYSTEM


@dataclass
class FailurePattern:
    """Tracks the posts that failed for one reason."""
    reason: FailureReason
    count: int = 0
    post_ids: List[str] = field(default_factory=list)
    sample_messages: List[str] = field(default_factory=list)

    def record(self, post_id: Optional[str], message: str) -> None:
        self.count += 1
        if post_id and post_id not in self.post_ids:
            self.post_ids.append(post_id)
        # Keep only the first 3 samples
        if message and len(self.sample_messages) < 3 and message not in self.sample_messages:
            self.sample_messages.append(message)


class ErrorAnalyzer:
    """Groups per-item failures by reason and suggests what the operator can do."""

    def __init__(self) -> None:
        self.patterns: Dict[FailureReason, FailurePattern] = {
            reason: FailurePattern(reason) for reason in FailureReason
        }
        self.total_errors = 0

    def record(self, post_id: Optional[str], reason: FailureReason, message: str) -> None:
        self.total_errors += 1
        self.patterns[reason].record(post_id, message)

    def count(self, reason: FailureReason) -> int:
        return self.patterns[reason].count

    def get_recommendations(self) -> List[str]:
        """Generate recommendations based on the recorded failures."""
        if self.total_errors == 0:
            return []

        recommendations = []

        if self.count(FailureReason.TOOL_UNAVAILABLE) or self.count(FailureReason.PROCESS_ERROR):
            recommendations.append(
                "Make sure ffmpeg and yt-dlp are installed and up to date "
                "(run with --check-tools to see what was found)"
            )

        if self.count(FailureReason.NETWORK) or self.count(FailureReason.HTTP_STATUS):
            recommendations.append("Check your internet connection")

        if self.count(FailureReason.FILESYSTEM):
            recommendations.append("Check free disk space and write permissions on the output directory")

        if self.count(FailureReason.NO_URL):
            recommendations.append(
                f"{self.count(FailureReason.NO_URL)} post(s) had no usable video URL; "
                "these are usually removed or still-processing uploads"
            )

        # Failed items leave no file behind, so a re-run picks them up again
        recommendations.append("Run the program again to retry failed downloads")
        return recommendations

    def print_summary(self, file=sys.stdout) -> None:
        if self.total_errors == 0:
            return

        print("⚠️  Some videos failed to download:", file=file)
        sorted_patterns = sorted(
            (pattern for pattern in self.patterns.values() if pattern.count),
            key=lambda pattern: pattern.count,
            reverse=True,
        )
        for pattern in sorted_patterns:
            label = pattern.reason.value.replace("_", " ")
            print(f"   {label}: {pattern.count} ({', '.join(pattern.post_ids)})", file=file)
            if pattern.sample_messages:
                print(f"      e.g. {pattern.sample_messages[0][:100]}", file=file)
        print("   You might want to:", file=file)
        for idx, rec in enumerate(self.get_recommendations(), start=1):
            print(f"   {idx}. {rec}", file=file)
        print(file=file)
