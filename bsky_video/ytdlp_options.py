"""yt-dlp options builder."""

from typing import Callable, List, Optional

from yt_dlp.utils import parse_bytes

from .logger import DownloadLogger
from .models import BROWSER_USER_AGENT, DEFAULT_FFMPEG, VIDEO_EXTENSION


def build_ydl_options(
    args,
    output_path: str,
    logger: DownloadLogger,
    hook: Optional[Callable[[dict], None]] = None,
) -> dict:
    """Build the yt-dlp options dictionary for writing one video to *output_path*."""
    ydl_opts = {
        "outtmpl": output_path,
        "noplaylist": True,
        "overwrites": True,
        "continuedl": False,
        "retries": 5,
        "fragment_retries": 3,
        "merge_output_format": VIDEO_EXTENSION,
        "writethumbnail": False,
        "writesubtitles": False,
        "quiet": True,
        "no_warnings": False,
        "noprogress": True,
        "logger": logger,
        "progress_hooks": [hook] if hook else [],
        "http_headers": {
            "User-Agent": BROWSER_USER_AGENT,
        },
    }

    format_selector = getattr(args, "format", None)
    ffmpeg = getattr(args, "ffmpeg", None)
    rate_limit = getattr(args, "rate_limit", None)
    cookies_from_browser = getattr(args, "cookies_from_browser", None)
    proxy = getattr(args, "proxy", None)

    debug_parts: List[str] = []
    if format_selector:
        ydl_opts["format"] = format_selector
        debug_parts.append(f"format={format_selector}")
    if ffmpeg and ffmpeg != DEFAULT_FFMPEG:
        ydl_opts["ffmpeg_location"] = ffmpeg
        debug_parts.append(f"ffmpeg={ffmpeg}")
    if rate_limit:
        ydl_opts["ratelimit"] = parse_bytes(str(rate_limit))
        debug_parts.append(f"ratelimit={rate_limit}")
    if cookies_from_browser:
        ydl_opts["cookiesfrombrowser"] = (cookies_from_browser,)
        debug_parts.append(f"cookies={cookies_from_browser}")
    if proxy:
        ydl_opts["proxy"] = proxy
        debug_parts.append(f"proxy={proxy}")

    if getattr(args, "verbose", False):
        print("   yt-dlp options: " + ", ".join(debug_parts))

    return ydl_opts
