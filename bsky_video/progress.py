"""Single-line console progress bar driven by downloader progress updates."""

import sys
from typing import Optional

from .models import ProgressUpdate, Strategy

BAR_WIDTH = 30


def format_bytes(count: int) -> str:
    if count < 1024:
        return f"{count} B"
    size = count / 1024
    for unit in ("KB", "MB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def render_bar(fraction: Optional[float], width: int = BAR_WIDTH) -> str:
    if fraction is None:
        return "[" + "?" * width + "]"
    filled = int(round(max(0.0, min(1.0, fraction)) * width))
    return "[" + "=" * filled + " " * (width - filled) + "]"


class ConsoleProgress:
    """Progress observer that redraws one line per download attempt."""

    def __init__(self, stream=None, enabled: bool = True) -> None:
        self.stream = stream or sys.stdout
        self.enabled = enabled
        self._active = False

    def __call__(self, update: ProgressUpdate) -> None:
        if not self.enabled:
            return

        if update.finished:
            line = f"   Progress: {render_bar(1.0)} 100% | {format_bytes(update.downloaded_bytes)}"
            self._write(line, end="\n")
            self._active = False
            return

        if update.strategy is Strategy.REMUX_TOOL and not update.downloaded_bytes:
            # ffmpeg gives no byte level progress, only start/finish
            self._write(f"   Progress: {render_bar(None)} running {update.strategy.value}...")
            return

        fraction = update.fraction
        if fraction is None:
            line = f"   Progress: {render_bar(None)} {format_bytes(update.downloaded_bytes)}"
        else:
            line = (
                f"   Progress: {render_bar(fraction)} {fraction * 100:3.0f}% | "
                f"{format_bytes(update.downloaded_bytes)}/{format_bytes(update.total_bytes or 0)}"
            )
        self._write(line)

    def abort(self) -> None:
        """End the current line after a failed attempt."""
        if self._active:
            self._write("", end="\n")
            self._active = False

    def _write(self, line: str, end: str = "") -> None:
        self.stream.write("\r" + line + end)
        self.stream.flush()
        self._active = not end
