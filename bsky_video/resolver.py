"""Extract the fetchable URL from a classified embed and decide how to transport it."""

from typing import Any, Optional

from .classifier import external_link_url
from .models import HLS_MARKERS, PLATFORM_DOMAINS, ResolvedUrl, Transport, VideoKind, VideoRef


def _non_empty(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def classify_transport(url: str, explicit_playlist: bool = False) -> Transport:
    """Pick a transport from the URL shape.

    Precedence: explicit playlist field, then HLS markers in the URL, then
    known platform domains, then a plain file fetch.
    """
    if explicit_playlist:
        return Transport.HLS_STREAM
    # NOTE: a bare "playlist" substring also counts, which can catch direct files
    if any(marker in url for marker in HLS_MARKERS):
        return Transport.HLS_STREAM
    if any(domain in url for domain in PLATFORM_DOMAINS):
        return Transport.PLATFORM_LINK
    return Transport.DIRECT_FILE


def _resolve_direct_video(media: dict) -> Optional[ResolvedUrl]:
    playlist = _non_empty(media.get("playlist"))
    if playlist:
        return ResolvedUrl(url=playlist, transport=classify_transport(playlist, explicit_playlist=True))

    video = media.get("video")
    if isinstance(video, dict):
        url = _non_empty(video.get("url"))
        if url:
            return ResolvedUrl(url=url, transport=classify_transport(url))
    return None


def _resolve_external_link(media: dict) -> Optional[ResolvedUrl]:
    url = external_link_url(media.get("external"))
    if not url:
        return None
    return ResolvedUrl(url=url, transport=classify_transport(url))


def resolve(ref: VideoRef) -> Optional[ResolvedUrl]:
    """Return the URL to download for *ref*, or None when the embed has none."""
    media = ref.media if isinstance(ref.media, dict) else {}
    if ref.kind is VideoKind.DIRECT_VIDEO:
        return _resolve_direct_video(media)
    return _resolve_external_link(media)
