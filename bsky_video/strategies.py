"""Ordering of download strategies for a resolved URL."""

from typing import List

from .models import ResolvedUrl, Strategy, ToolAvailability, Transport


def select_strategies(resolved: ResolvedUrl, tools: ToolAvailability) -> List[Strategy]:
    """Return the strategies to try for *resolved*, most preferred first.

    An empty list means no available tool can handle the URL.
    """
    if resolved.transport is Transport.PLATFORM_LINK:
        return [Strategy.EXTRACTION_TOOL] if tools.has_extraction_tool else []

    if resolved.transport is Transport.HLS_STREAM:
        candidates = []
        if tools.has_remux_tool:
            candidates.append(Strategy.REMUX_TOOL)
        if tools.has_extraction_tool:
            candidates.append(Strategy.EXTRACTION_TOOL)
        return candidates

    return [Strategy.DIRECT_STREAM]


def missing_tool_message(resolved: ResolvedUrl) -> str:
    if resolved.transport is Transport.PLATFORM_LINK:
        return "yt-dlp not found. Install it to download platform videos."
    return "Neither ffmpeg nor yt-dlp is installed. Cannot download HLS stream."
