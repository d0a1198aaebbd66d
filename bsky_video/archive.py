"""Output directory bookkeeping: dedup scan, output naming and partial file cleanup."""

import contextlib
import os
import sys
import time
from typing import Callable, Iterable, List, Optional, Set

from .models import VIDEO_EXTENSION


def scan_existing_downloads(output_dir: str) -> Set[str]:
    """Return the file names present in *output_dir*.

    Read once at the start of a run. A missing directory counts as empty.
    """
    try:
        return set(os.listdir(output_dir))
    except FileNotFoundError:
        return set()
    except OSError as exc:
        print(
            f"Warning: Failed to list output directory {output_dir}: {exc}",
            file=sys.stderr,
        )
        return set()


def has_existing_download(
    post_id: str, existing_files: Iterable[str], extension: str = VIDEO_EXTENSION
) -> bool:
    """True when a ``{post_id}_*.{extension}`` file is already present."""
    prefix = f"{post_id}_"
    suffix = f".{extension}"
    return any(name.startswith(prefix) and name.endswith(suffix) for name in existing_files)


class OutputPathBuilder:
    """Builds ``{post_id}_{stamp}.{ext}`` paths with a stamp unique within the run.

    The stamp is a millisecond timestamp, bumped when two paths would
    otherwise share one.
    """

    def __init__(
        self,
        output_dir: str,
        extension: str = VIDEO_EXTENSION,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.output_dir = output_dir
        self.extension = extension
        self._clock = clock or time.time
        self._last_stamp = 0

    def next_stamp(self) -> int:
        stamp = int(self._clock() * 1000)
        if stamp <= self._last_stamp:
            stamp = self._last_stamp + 1
        self._last_stamp = stamp
        return stamp

    def build(self, post_id: str) -> str:
        return os.path.join(self.output_dir, f"{post_id}_{self.next_stamp()}.{self.extension}")


def partial_path(output_path: str) -> str:
    return f"{output_path}.part"


def remove_partial_outputs(output_path: str) -> List[str]:
    """Delete *output_path* and any sibling sharing its stem (``.part``, fragments).

    Returns the paths that were removed.
    """
    directory = os.path.dirname(output_path) or "."
    base = os.path.basename(output_path)
    stem = os.path.splitext(base)[0]
    removed: List[str] = []

    try:
        names = os.listdir(directory)
    except OSError:
        return removed

    for name in names:
        if name == base or name.startswith(f"{stem}."):
            path = os.path.join(directory, name)
            with contextlib.suppress(OSError):
                os.remove(path)
                removed.append(path)
    return removed
