"""Report which external tools are installed and what that means for downloads."""

from .models import DEFAULT_FFMPEG, ResolvedUrl, Transport
from .strategies import select_strategies
from .tools import describe_tools, probe_tools

SAMPLE_URLS = {
    Transport.HLS_STREAM: "https://video.bsky.app/watch/example/playlist.m3u8",
    Transport.PLATFORM_LINK: "https://youtu.be/example",
    Transport.DIRECT_FILE: "https://example.com/clip.mp4",
}


def run_tool_check(args) -> int:
    """Probe ffmpeg and yt-dlp; return 0 when both are usable, 1 otherwise."""
    ffmpeg = getattr(args, "ffmpeg", None)

    print("=" * 70)
    print("Tool Check".center(70))
    print("=" * 70)

    tools = probe_tools(ffmpeg or DEFAULT_FFMPEG)
    for line in describe_tools(tools, ffmpeg):
        print(line)

    print()
    print("Strategies per video type:")
    for transport, url in SAMPLE_URLS.items():
        strategies = select_strategies(ResolvedUrl(url=url, transport=transport), tools)
        names = " -> ".join(strategy.value for strategy in strategies) or "none (will fail)"
        print(f"  {transport.value:<14} {names}")
    print("=" * 70)

    if tools.has_remux_tool and tools.has_extraction_tool:
        print("✓ All tools available.")
        return 0

    print("⚠ Some videos will fail until the missing tools are installed.")
    return 1
