"""Detection of the external tools used for HLS and platform downloads."""

import subprocess
import sys
from typing import Callable, List, Optional, Sequence

from .models import DEFAULT_FFMPEG, ToolAvailability

PROBE_TIMEOUT = 15


def remux_probe_command(ffmpeg: str = DEFAULT_FFMPEG) -> List[str]:
    return [ffmpeg, "-version"]


def extraction_probe_command() -> List[str]:
    # yt-dlp is driven in-process; probing the module entry point confirms it is runnable
    return [sys.executable, "-m", "yt_dlp", "--version"]


def command_succeeds(command: Sequence[str], timeout: float = PROBE_TIMEOUT) -> bool:
    """Return True when *command* runs and exits with status 0."""
    try:
        result = subprocess.run(
            list(command),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.SubprocessError):
        return False
    return result.returncode == 0


def probe_tools(ffmpeg: str = DEFAULT_FFMPEG) -> ToolAvailability:
    """Check once which external tools can be used during this run."""
    return ToolAvailability(
        has_remux_tool=command_succeeds(remux_probe_command(ffmpeg)),
        has_extraction_tool=command_succeeds(extraction_probe_command()),
    )


def confirm_without_tools(
    tools: ToolAvailability,
    confirm: Callable[[str], bool],
    file=sys.stdout,
) -> bool:
    """Decide whether to proceed given *tools*.

    Returns True straight away when at least one tool is present; otherwise
    warns and leaves the choice to *confirm*.
    """
    if tools.any_available:
        return True

    print("\n⚠️  Warning: Neither ffmpeg nor yt-dlp is installed.", file=file)
    print("   HLS streams and YouTube/Vimeo links cannot be downloaded.", file=file)
    print("   For best results, install ffmpeg and yt-dlp.", file=file)
    return confirm("\n   Do you want to continue anyway? (y/n): ")


def describe_tools(tools: ToolAvailability, ffmpeg: Optional[str] = None) -> List[str]:
    remux_label = ffmpeg or DEFAULT_FFMPEG
    return [
        f"{'✓' if tools.has_remux_tool else '✗'} {remux_label} (HLS remux)",
        f"{'✓' if tools.has_extraction_tool else '✗'} yt-dlp (platform extraction, HLS fallback)",
    ]
