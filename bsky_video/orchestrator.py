"""Core download loop: dedup, resolve, pick strategies, fall back, tally."""

import sys
from typing import Iterable, Optional, Set

from .archive import OutputPathBuilder, has_existing_download, scan_existing_downloads
from .downloader import Downloader, ProgressCallback
from .errors import DownloadError, ErrorAnalyzer
from .models import (
    DownloadOutcome,
    FailureReason,
    OutcomeStatus,
    RunSummary,
    ToolAvailability,
    Transport,
    VideoRef,
)
from .resolver import resolve
from .strategies import missing_tool_message, select_strategies

TRANSPORT_LABELS = {
    Transport.HLS_STREAM: "HLS stream detected",
    Transport.PLATFORM_LINK: "Platform video found",
    Transport.DIRECT_FILE: "Direct video file",
}


def _failed(ref: VideoRef, reason: FailureReason, message: str, **kwargs) -> DownloadOutcome:
    return DownloadOutcome(
        post_id=ref.post_id,
        status=OutcomeStatus.FAILED,
        failure_reason=reason,
        error_message=message,
        **kwargs,
    )


def process_item(
    ref: VideoRef,
    tools: ToolAvailability,
    existing_files: Set[str],
    paths: OutputPathBuilder,
    downloader: Downloader,
    progress: Optional[ProgressCallback] = None,
) -> DownloadOutcome:
    """Drive one video to a terminal outcome. Never raises for per-item failures."""
    if has_existing_download(ref.post_id, existing_files, paths.extension):
        print("   ⏩ Skipping - already downloaded")
        return DownloadOutcome(post_id=ref.post_id, status=OutcomeStatus.SKIPPED)

    resolved = resolve(ref)
    if resolved is None:
        print("   ❌ No video URL found, skipping...")
        return _failed(ref, FailureReason.NO_URL, "No video URL found")

    print(f"   ℹ️  {TRANSPORT_LABELS[resolved.transport]}: {resolved.url}")

    strategies = select_strategies(resolved, tools)
    if not strategies:
        message = missing_tool_message(resolved)
        print(f"   ⚠️  {message}")
        return _failed(ref, FailureReason.TOOL_UNAVAILABLE, message)

    output_path = paths.build(ref.post_id)
    attempted = []
    last_error: Optional[DownloadError] = None

    for index, strategy in enumerate(strategies):
        attempted.append(strategy)
        verb = "Trying" if index else "Downloading"
        suffix = " as fallback" if index else ""
        print(f"   🔄 {verb} with {strategy.value}{suffix}...")
        try:
            written = downloader.run(strategy, resolved.url, output_path, progress, post_id=ref.post_id)
        except DownloadError as exc:
            last_error = exc
            abort = getattr(progress, "abort", None)
            if abort:
                abort()
            print(f"   ❌ Failed to download with {strategy.value}: {exc.message}")
            continue

        print("   ✅ Downloaded successfully!")
        return DownloadOutcome(
            post_id=ref.post_id,
            status=OutcomeStatus.DOWNLOADED,
            strategy_used=strategy,
            output_path=output_path,
            bytes_written=written,
            attempts=attempted,
        )

    return _failed(
        ref,
        last_error.category,
        last_error.message,
        strategy_used=last_error.strategy,
        attempts=attempted,
    )


def download_videos(
    refs: Iterable[VideoRef],
    tools: ToolAvailability,
    output_dir: str,
    downloader: Optional[Downloader] = None,
    progress: Optional[ProgressCallback] = None,
    analyzer: Optional[ErrorAnalyzer] = None,
    paths: Optional[OutputPathBuilder] = None,
) -> RunSummary:
    """Process *refs* strictly in order, one at a time, and return the run summary."""
    refs = list(refs)
    downloader = downloader or Downloader()
    paths = paths or OutputPathBuilder(output_dir)
    # Every output path carries a fresh stamp, so one listing per run is enough
    existing_files = scan_existing_downloads(output_dir)
    summary = RunSummary(output_dir=output_dir)

    print("\n📥 Starting video downloads...")
    for position, ref in enumerate(refs, start=1):
        print(f"\n📹 Processing video {position}/{len(refs)}: {ref.post_id}")
        outcome = process_item(ref, tools, existing_files, paths, downloader, progress)
        summary.record(outcome)
        if analyzer is not None and outcome.status is OutcomeStatus.FAILED:
            analyzer.record(outcome.post_id, outcome.failure_reason, outcome.error_message or "")

    return summary


def print_summary(summary: RunSummary, analyzer: Optional[ErrorAnalyzer] = None, file=sys.stdout) -> None:
    print("\n" + "=" * 46, file=file)
    print("📊 DOWNLOAD SUMMARY", file=file)
    print("=" * 46, file=file)
    print(f"✅ Successfully downloaded: {summary.downloaded}", file=file)
    print(f"⏩ Skipped (already downloaded): {summary.skipped}", file=file)
    print(f"❌ Failed to download: {summary.failed}", file=file)
    print(f"📁 Videos saved to: {summary.output_dir}", file=file)
    print("=" * 46 + "\n", file=file)

    if analyzer is not None:
        analyzer.print_summary(file=file)
