"""Detect which liked posts carry a video."""

from typing import Any, Iterable, List, Optional

from .models import PLATFORM_DOMAINS, VIDEO_EXTENSION, EmbedKind, FeedItem, VideoKind, VideoRef


def embed_kind(embed: Any) -> EmbedKind:
    if not isinstance(embed, dict):
        return EmbedKind.OTHER
    return EmbedKind.from_type(embed.get("$type"))


def is_video_link(url: Any) -> bool:
    """Return True if an external link URL points at something playable."""
    if not isinstance(url, str) or not url:
        return False
    if any(domain in url for domain in PLATFORM_DOMAINS):
        return True
    return url.endswith(f".{VIDEO_EXTENSION}")


def external_link_url(external: Any) -> Optional[str]:
    """Return the link of an external embed (``url``, or the lexicon's ``uri``)."""
    if not isinstance(external, dict):
        return None
    for key in ("url", "uri"):
        value = external.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _is_video_external(embed: dict) -> bool:
    external = embed.get("external")
    if not isinstance(external, dict):
        return False
    if external.get("isVideo"):
        return True
    return is_video_link(external_link_url(external))


def _classify_media(post_id: str, media: Any, allow_nested: bool) -> Optional[VideoRef]:
    kind = embed_kind(media)

    if kind is EmbedKind.VIDEO:
        return VideoRef(post_id=post_id, kind=VideoKind.DIRECT_VIDEO, media=media)

    if kind is EmbedKind.EXTERNAL:
        if _is_video_external(media):
            return VideoRef(post_id=post_id, kind=VideoKind.EXTERNAL_LINK, media=media)
        return None

    if kind is EmbedKind.RECORD_WITH_MEDIA and allow_nested:
        # Quote posts carry their own attachment one level down
        return _classify_media(post_id, media.get("media"), allow_nested=False)

    return None


def classify(item: FeedItem) -> Optional[VideoRef]:
    """Return a VideoRef when the item embeds or links a video, else None.

    Never raises: malformed or missing embed fields are treated as "no video".
    """
    embed = getattr(item, "embed", None)
    if not embed:
        return None
    return _classify_media(item.post_id, embed, allow_nested=True)


def filter_video_posts(items: Iterable[FeedItem]) -> List[VideoRef]:
    """Classify *items* in order, keeping only the ones with a video."""
    refs: List[VideoRef] = []
    for item in items:
        ref = classify(item)
        if ref is not None:
            refs.append(ref)
    return refs
