"""Logger handed to yt-dlp so its messages carry post context and errors are kept."""

import sys
from typing import List, Optional


class DownloadLogger:
    """Collects yt-dlp warnings/errors for one download attempt."""

    IGNORED_FRAGMENTS = (
        "falling back on generic information extractor",
        "[generic] extracting url",
    )

    def __init__(self, post_id: Optional[str] = None, strategy: Optional[str] = None) -> None:
        self.post_id = post_id
        self.strategy = strategy
        self.warnings: List[str] = []
        self.errors: List[str] = []

    @property
    def last_error(self) -> Optional[str]:
        return self.errors[-1] if self.errors else None

    def failure_message(self, fallback: str) -> str:
        """Best description of a failed attempt: last error, else *fallback* plus the last warning."""
        if self.errors:
            return self.errors[-1]
        if self.warnings:
            return f"{fallback} (last warning: {self.warnings[-1]})"
        return fallback

    def _format_with_context(self, message: str) -> str:
        context_parts = []
        if self.post_id:
            context_parts.append(f"post={self.post_id}")
        if self.strategy:
            context_parts.append(f"strategy={self.strategy}")
        if context_parts:
            return f"   [{' '.join(context_parts)}] {message}"
        return f"   {message}"

    def _is_ignored(self, text: str) -> bool:
        lowered = text.lower()
        return any(fragment in lowered for fragment in self.IGNORED_FRAGMENTS)

    @staticmethod
    def _ensure_text(message) -> str:
        if isinstance(message, bytes):
            return message.decode("utf-8", "ignore")
        return str(message)

    def debug(self, message) -> None:  # yt-dlp calls this
        pass

    def info(self, message) -> None:
        pass

    def warning(self, message) -> None:
        text = self._ensure_text(message)
        if self._is_ignored(text):
            return
        self.warnings.append(text)
        print(self._format_with_context(text), file=sys.stderr)

    def error(self, message) -> None:
        text = self._ensure_text(message)
        self.errors.append(text)
        print(self._format_with_context(text), file=sys.stderr)
