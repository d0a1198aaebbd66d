"""Execution of a single download strategy.

Each strategy writes the finished video to ``output_path`` or raises a
``DownloadError`` subclass carrying the underlying message. Whatever the
failure, nothing named like a finished download is left behind.
"""

import os
import subprocess
from typing import Callable, Optional

import requests
import yt_dlp
from yt_dlp.utils import DownloadError as YtDlpDownloadError
from yt_dlp.utils import ExtractorError

from .archive import partial_path, remove_partial_outputs
from .errors import (
    DownloadError,
    FilesystemError,
    HttpStatusError,
    NetworkError,
    ProcessExecutionError,
    ToolUnavailableError,
)
from .logger import DownloadLogger
from .models import (
    BROWSER_USER_AGENT,
    DEFAULT_FFMPEG,
    DEFAULT_HTTP_TIMEOUT,
    ProgressUpdate,
    Strategy,
)
from .ytdlp_options import build_ydl_options

ProgressCallback = Callable[[ProgressUpdate], None]

CHUNK_SIZE = 64 * 1024


def build_remux_command(ffmpeg: str, url: str, output_path: str) -> list:
    """ffmpeg invocation copying an HLS stream into an mp4 container without re-encoding."""
    return [
        ffmpeg,
        "-hide_banner",
        "-nostdin",
        "-loglevel", "error",
        "-y",
        "-reconnect", "1",
        "-reconnect_streamed", "1",
        "-reconnect_delay_max", "10",
        "-timeout", "10000000",
        "-rw_timeout", "10000000",
        "-user_agent", BROWSER_USER_AGENT,
        "-http_persistent", "0",
        "-i", url,
        "-c", "copy",
        # Output goes to a .part name, so the container can't be guessed from it
        "-f", "mp4",
        output_path,
    ]


def _noop_progress(_update: ProgressUpdate) -> None:
    return None


def _finalize(temp_path: str, output_path: str, strategy: Strategy) -> int:
    try:
        size = os.path.getsize(temp_path)
    except OSError as exc:
        raise FilesystemError(f"Expected output file is missing: {exc}", strategy) from exc
    if size <= 0:
        raise FilesystemError("Download produced an empty file", strategy)
    try:
        os.replace(temp_path, output_path)
    except OSError as exc:
        raise FilesystemError(f"Failed to move download into place: {exc}", strategy) from exc
    return size


class Downloader:
    """Runs one strategy at a time; shared by every item of a run."""

    def __init__(
        self,
        args=None,
        ffmpeg: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.args = args
        self.ffmpeg = ffmpeg or getattr(args, "ffmpeg", None) or DEFAULT_FFMPEG
        self.timeout = timeout or getattr(args, "timeout", None) or DEFAULT_HTTP_TIMEOUT
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers["User-Agent"] = BROWSER_USER_AGENT
        return self._session

    def run(
        self,
        strategy: Strategy,
        url: str,
        output_path: str,
        progress: Optional[ProgressCallback] = None,
        post_id: Optional[str] = None,
    ) -> int:
        """Download *url* to *output_path* using *strategy*; return bytes written."""
        handlers = {
            Strategy.REMUX_TOOL: self.remux,
            Strategy.EXTRACTION_TOOL: self.extract,
            Strategy.DIRECT_STREAM: self.stream,
        }
        notify = progress or _noop_progress
        notify(ProgressUpdate(strategy=strategy))

        try:
            directory = os.path.dirname(output_path)
            if directory:
                try:
                    os.makedirs(directory, exist_ok=True)
                except OSError as exc:
                    raise FilesystemError(f"Failed to create {directory}: {exc}", strategy) from exc
            written = handlers[strategy](url, output_path, notify, post_id)
        except DownloadError as exc:
            if exc.strategy is None:
                exc.strategy = strategy
            remove_partial_outputs(output_path)
            raise

        notify(ProgressUpdate(strategy=strategy, downloaded_bytes=written, total_bytes=written, finished=True))
        return written

    def remux(
        self, url: str, output_path: str, notify: ProgressCallback, post_id: Optional[str] = None
    ) -> int:
        temp_path = partial_path(output_path)
        command = build_remux_command(self.ffmpeg, url, temp_path)
        try:
            result = subprocess.run(
                command,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except FileNotFoundError as exc:
            raise ToolUnavailableError(f"{self.ffmpeg} not found: {exc}", Strategy.REMUX_TOOL) from exc
        except (OSError, subprocess.SubprocessError) as exc:
            raise ProcessExecutionError(f"Failed to run {self.ffmpeg}: {exc}", Strategy.REMUX_TOOL) from exc

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            message = stderr or f"{self.ffmpeg} exited with status {result.returncode}"
            raise ProcessExecutionError(message, Strategy.REMUX_TOOL, returncode=result.returncode)

        return _finalize(temp_path, output_path, Strategy.REMUX_TOOL)

    def extract(
        self, url: str, output_path: str, notify: ProgressCallback, post_id: Optional[str] = None
    ) -> int:
        logger = DownloadLogger(post_id, Strategy.EXTRACTION_TOOL.value)

        def hook(d: dict) -> None:
            if d.get("status") != "downloading":
                return
            total = d.get("total_bytes") or d.get("total_bytes_estimate")
            notify(
                ProgressUpdate(
                    strategy=Strategy.EXTRACTION_TOOL,
                    downloaded_bytes=int(d.get("downloaded_bytes") or 0),
                    total_bytes=int(total) if total else None,
                )
            )

        ydl_opts = build_ydl_options(self.args, output_path, logger, hook)

        try:
            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                retcode = ydl.download([url])
        except (YtDlpDownloadError, ExtractorError) as exc:
            raise ProcessExecutionError(logger.failure_message(str(exc)), Strategy.EXTRACTION_TOOL) from exc
        except Exception as exc:
            raise ProcessExecutionError(f"yt-dlp failed: {exc}", Strategy.EXTRACTION_TOOL) from exc

        if retcode:
            message = logger.failure_message(f"yt-dlp exited with status {retcode}")
            raise ProcessExecutionError(message, Strategy.EXTRACTION_TOOL, returncode=retcode)

        # yt-dlp handles its own .part files and renames on completion
        try:
            return os.path.getsize(output_path)
        except OSError as exc:
            raise FilesystemError(
                f"yt-dlp reported success but {output_path} is missing", Strategy.EXTRACTION_TOOL
            ) from exc

    def stream(
        self, url: str, output_path: str, notify: ProgressCallback, post_id: Optional[str] = None
    ) -> int:
        strategy = Strategy.DIRECT_STREAM
        try:
            response = self.session.get(url, stream=True, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            raise NetworkError(f"Request failed: {exc}", strategy) from exc

        with response:
            if not 200 <= response.status_code < 300:
                reason = response.reason or "error"
                raise HttpStatusError(
                    f"HTTP {response.status_code} {reason} for {url}",
                    strategy,
                    status_code=response.status_code,
                )

            length = response.headers.get("Content-Length", "")
            total = int(length) if length.isdigit() and int(length) > 0 else None
            encoded = response.headers.get("Content-Encoding", "identity") != "identity"

            temp_path = partial_path(output_path)
            written = 0
            try:
                with open(temp_path, "wb") as handle:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if not chunk:
                            continue
                        handle.write(chunk)
                        written += len(chunk)
                        notify(ProgressUpdate(strategy=strategy, downloaded_bytes=written, total_bytes=total))
            except requests.exceptions.RequestException as exc:
                raise NetworkError(f"Download interrupted after {written} bytes: {exc}", strategy) from exc
            except OSError as exc:
                raise FilesystemError(f"Failed to write {temp_path}: {exc}", strategy) from exc

        # Decoded bodies differ in size from the advertised length
        if total is not None and not encoded and written < total:
            raise NetworkError(f"Stream ended after {written} of {total} bytes", strategy)

        return _finalize(temp_path, output_path, strategy)
