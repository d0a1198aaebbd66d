"""End-to-end behaviour of the download loop with fake strategies."""

from __future__ import annotations

import re
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from bsky_video import orchestrator
from bsky_video.archive import OutputPathBuilder
from bsky_video.classifier import filter_video_posts
from bsky_video.downloader import Downloader
from bsky_video.errors import ErrorAnalyzer, ProcessExecutionError
from bsky_video.models import (
    FailureReason,
    FeedItem,
    OutcomeStatus,
    Strategy,
    ToolAvailability,
    VideoKind,
    VideoRef,
)

BOTH = ToolAvailability(has_remux_tool=True, has_extraction_tool=True)
EXTRACT_ONLY = ToolAvailability(has_remux_tool=False, has_extraction_tool=True)
NONE = ToolAvailability(has_remux_tool=False, has_extraction_tool=False)


class FakeDownloader:
    """Records attempts; a strategy mapped to an exception fails, anything else writes a file."""

    def __init__(self, failures=None):
        self.failures = failures or {}
        self.calls = []

    def run(self, strategy, url, output_path, progress=None, post_id=None):
        self.calls.append((strategy, url, post_id))
        failure = self.failures.get(strategy)
        if failure is not None:
            raise failure
        Path(output_path).write_bytes(b"video")
        return 5


def hls_ref(post_id: str = "hls1") -> VideoRef:
    return VideoRef(
        post_id=post_id,
        kind=VideoKind.DIRECT_VIDEO,
        media={"$type": "app.bsky.embed.video#view", "playlist": "https://video.bsky.app/watch/x/playlist.m3u8"},
    )


def link_ref(post_id: str, url: str) -> VideoRef:
    return VideoRef(
        post_id=post_id,
        kind=VideoKind.EXTERNAL_LINK,
        media={"$type": "app.bsky.embed.external#view", "external": {"url": url}},
    )


def feed_item(rkey: str, embed) -> FeedItem:
    return FeedItem(post_uri=f"at://did:plc:me/app.bsky.feed.post/{rkey}", embed=embed)


def test_scenario_mixed_feed_attempts_only_video_posts(tmp_path: Path) -> None:
    items = [
        feed_item("vid", {"$type": "app.bsky.embed.video#view", "playlist": "https://video.bsky.app/v/playlist.m3u8"}),
        feed_item("yt", {"$type": "app.bsky.embed.external#view", "external": {"url": "https://youtu.be/dQw4w9WgXcQ"}}),
        feed_item("blog", {"$type": "app.bsky.embed.external#view", "external": {"url": "https://example.com/post"}}),
    ]
    refs = filter_video_posts(items)
    fake = FakeDownloader()

    summary = orchestrator.download_videos(refs, BOTH, str(tmp_path), downloader=fake)

    assert len(refs) == 2
    assert fake.calls == [
        (Strategy.REMUX_TOOL, "https://video.bsky.app/v/playlist.m3u8", "vid"),
        (Strategy.EXTRACTION_TOOL, "https://youtu.be/dQw4w9WgXcQ", "yt"),
    ]
    assert summary.total == 2
    assert summary.downloaded == 2


def test_scenario_existing_file_is_skipped_without_attempts(tmp_path: Path) -> None:
    (tmp_path / "abc123_999.mp4").write_bytes(b"old")
    fake = FakeDownloader()

    summary = orchestrator.download_videos([hls_ref("abc123")], BOTH, str(tmp_path), downloader=fake)

    assert fake.calls == []
    assert summary.skipped == 1
    assert summary.outcomes[0].status is OutcomeStatus.SKIPPED


def test_scenario_direct_file_404_fails_without_partial_file(tmp_path: Path) -> None:
    class NotFoundResponse:
        status_code = 404
        reason = "Not Found"
        headers = {}

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

    class Session:
        def get(self, url, **kwargs):
            return NotFoundResponse()

    ref = link_ref("direct1", "https://cdn.example.com/clip.mp4")

    summary = orchestrator.download_videos(
        [ref], NONE, str(tmp_path), downloader=Downloader(session=Session())
    )

    outcome = summary.outcomes[0]
    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.failure_reason is FailureReason.HTTP_STATUS
    assert outcome.strategy_used is Strategy.DIRECT_STREAM
    assert "404" in outcome.error_message
    assert list(tmp_path.iterdir()) == []


def test_second_run_skips_everything(tmp_path: Path) -> None:
    refs = [hls_ref("one"), link_ref("two", "https://youtu.be/x"), link_ref("three", "https://cdn.example/c.mp4")]

    first = orchestrator.download_videos(refs, BOTH, str(tmp_path), downloader=FakeDownloader())
    fake = FakeDownloader()
    second = orchestrator.download_videos(refs, BOTH, str(tmp_path), downloader=fake)

    assert first.downloaded == 3
    assert second.downloaded == 0
    assert second.skipped == 3
    assert fake.calls == []


def test_remux_failure_falls_back_to_extraction_exactly_once(tmp_path: Path) -> None:
    fake = FakeDownloader({Strategy.REMUX_TOOL: ProcessExecutionError("ffmpeg exploded", Strategy.REMUX_TOOL)})

    summary = orchestrator.download_videos([hls_ref()], BOTH, str(tmp_path), downloader=fake)

    assert [call[0] for call in fake.calls] == [Strategy.REMUX_TOOL, Strategy.EXTRACTION_TOOL]
    outcome = summary.outcomes[0]
    assert outcome.status is OutcomeStatus.DOWNLOADED
    assert outcome.strategy_used is Strategy.EXTRACTION_TOOL
    assert outcome.attempts == [Strategy.REMUX_TOOL, Strategy.EXTRACTION_TOOL]


def test_exhausted_strategies_mark_item_failed_with_last_error(tmp_path: Path) -> None:
    fake = FakeDownloader(
        {
            Strategy.REMUX_TOOL: ProcessExecutionError("ffmpeg exploded", Strategy.REMUX_TOOL),
            Strategy.EXTRACTION_TOOL: ProcessExecutionError("yt-dlp gave up", Strategy.EXTRACTION_TOOL),
        }
    )
    analyzer = ErrorAnalyzer()

    summary = orchestrator.download_videos([hls_ref()], BOTH, str(tmp_path), downloader=fake, analyzer=analyzer)

    assert len(fake.calls) == 2
    outcome = summary.outcomes[0]
    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.error_message == "yt-dlp gave up"
    assert outcome.failure_reason is FailureReason.PROCESS_ERROR
    assert summary.failed == 1
    assert analyzer.count(FailureReason.PROCESS_ERROR) == 1


def test_only_extraction_tool_means_no_remux_attempts(tmp_path: Path) -> None:
    fake = FakeDownloader()

    orchestrator.download_videos([hls_ref()], EXTRACT_ONLY, str(tmp_path), downloader=fake)

    assert [call[0] for call in fake.calls] == [Strategy.EXTRACTION_TOOL]


def test_missing_url_is_failed_with_distinct_reason(tmp_path: Path) -> None:
    ref = VideoRef(post_id="empty", kind=VideoKind.DIRECT_VIDEO, media={"$type": "app.bsky.embed.video#view"})
    fake = FakeDownloader()

    summary = orchestrator.download_videos([ref], BOTH, str(tmp_path), downloader=fake)

    assert fake.calls == []
    assert summary.outcomes[0].failure_reason is FailureReason.NO_URL
    assert summary.failed == 1


def test_platform_link_without_extraction_tool_fails(tmp_path: Path) -> None:
    fake = FakeDownloader()

    summary = orchestrator.download_videos(
        [link_ref("yt", "https://www.youtube.com/watch?v=abc")], NONE, str(tmp_path), downloader=fake
    )

    assert fake.calls == []
    assert summary.outcomes[0].failure_reason is FailureReason.TOOL_UNAVAILABLE


def test_items_are_processed_in_input_order_and_failures_do_not_stop_the_run(tmp_path: Path) -> None:
    fake = FakeDownloader({Strategy.DIRECT_STREAM: ProcessExecutionError("boom")})
    refs = [
        link_ref("a", "https://cdn.example/a.mp4"),
        hls_ref("b"),
        link_ref("c", "https://youtu.be/c"),
    ]

    summary = orchestrator.download_videos(refs, BOTH, str(tmp_path), downloader=fake)

    assert [call[2] for call in fake.calls] == ["a", "b", "c"]
    assert [o.status for o in summary.outcomes] == [
        OutcomeStatus.FAILED,
        OutcomeStatus.DOWNLOADED,
        OutcomeStatus.DOWNLOADED,
    ]
    assert (summary.downloaded, summary.skipped, summary.failed) == (2, 0, 1)


def test_output_paths_follow_naming_pattern(tmp_path: Path) -> None:
    paths = OutputPathBuilder(str(tmp_path), clock=lambda: 1700000000.0)

    summary = orchestrator.download_videos(
        [hls_ref("p1"), hls_ref("p2")], BOTH, str(tmp_path), downloader=FakeDownloader(), paths=paths
    )

    names = sorted(Path(o.output_path).name for o in summary.outcomes)
    assert names == ["p1_1700000000000.mp4", "p2_1700000000001.mp4"]


def test_print_summary_reports_counts(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    fake = FakeDownloader({Strategy.DIRECT_STREAM: ProcessExecutionError("boom")})
    analyzer = ErrorAnalyzer()
    summary = orchestrator.download_videos(
        [link_ref("a", "https://cdn.example/a.mp4"), hls_ref("b")],
        BOTH,
        str(tmp_path),
        downloader=fake,
        analyzer=analyzer,
    )
    capsys.readouterr()

    orchestrator.print_summary(summary, analyzer)

    out = capsys.readouterr().out
    assert re.search(r"Successfully downloaded: 1", out)
    assert re.search(r"Skipped \(already downloaded\): 0", out)
    assert re.search(r"Failed to download: 1", out)
    assert str(tmp_path) in out
    assert "Run the program again" in out
