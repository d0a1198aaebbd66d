#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
download_liked_videos.py

Download the videos embedded in or linked from the posts you liked on Bluesky.
HLS streams go through ffmpeg (yt-dlp as fallback), YouTube/Vimeo links through
yt-dlp, and plain video files are streamed straight to disk. Videos already in
the output directory are skipped, so re-running picks up earlier failures.

Usage:
    python download_liked_videos.py
    python download_liked_videos.py --output ./downloads --max-posts 200
    python download_liked_videos.py --check-tools
"""

from __future__ import annotations

import os
import sys
from typing import List, Optional

import bsky_video as bv
from bsky_video import prompts


def print_banner() -> None:
    print("\n" + "=" * 46)
    print("🌟 BLUESKY VIDEO DOWNLOADER 🌟")
    print("=" * 46 + "\n")


def fetch_liked_posts(client: bv.BlueskyClient, max_posts: int) -> List[bv.FeedItem]:
    print("\n🔍 Fetching your liked posts...")

    def on_page(page: int, total: int) -> None:
        print(f"   page {page}: {total} posts so far")

    items = client.fetch_liked_posts(max_items=max_posts, on_page=on_page)
    print(f"✅ Total liked posts fetched: {len(items)}")
    return items


def run(args, input_func=input) -> int:
    print_banner()

    identifier, password = prompts.ask_credentials(args.identifier, args.password, input_func=input_func)
    client = bv.BlueskyClient(service=args.service, timeout=args.timeout)
    try:
        client.login(identifier, password)
    except bv.AuthenticationError as exc:
        print(f"\n❌ {exc}", file=sys.stderr)
        return 1
    print("\n✅ Logged in successfully!")

    try:
        items = fetch_liked_posts(client, args.max_posts)
    except bv.FeedError as exc:
        print(f"\n❌ Error: {exc}", file=sys.stderr)
        return 1

    print("\n🎬 Scanning for videos in your liked posts...")
    refs = bv.filter_video_posts(items)
    print(f"✅ Found {len(refs)} posts with videos.")

    if not refs:
        print("\n❌ No videos found in your liked posts.")
        return 0

    if not args.yes and not prompts.confirm(
        f"\n📥 Found {len(refs)} videos. Do you want to download them now? (y/n): ", input_func
    ):
        print("\n✅ Download canceled. Goodbye!")
        return 0

    tools = bv.probe_tools(args.ffmpeg)
    if not bv.confirm_without_tools(tools, lambda question: prompts.confirm(question, input_func)):
        print("\n✅ Download canceled. Goodbye!")
        return 0

    os.makedirs(args.output, exist_ok=True)
    analyzer = bv.ErrorAnalyzer()
    summary = bv.download_videos(
        refs,
        tools,
        os.path.abspath(args.output),
        downloader=bv.Downloader(args),
        progress=bv.ConsoleProgress(),
        analyzer=analyzer,
    )
    bv.print_summary(summary, analyzer)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""

    args = bv.parse_args(argv)

    if args.check_tools:
        return bv.run_tool_check(args)

    try:
        return run(args)
    except KeyboardInterrupt:
        print("\n\n⚠️  Interrupted. Run the program again to resume; finished videos are skipped.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
