from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from bsky_video.models import Transport, VideoKind, VideoRef
from bsky_video.resolver import classify_transport, resolve


def direct_ref(**media) -> VideoRef:
    payload = {"$type": "app.bsky.embed.video#view"}
    payload.update(media)
    return VideoRef(post_id="post1", kind=VideoKind.DIRECT_VIDEO, media=payload)


def external_ref(url) -> VideoRef:
    payload = {"$type": "app.bsky.embed.external#view", "external": {"url": url}}
    return VideoRef(post_id="post1", kind=VideoKind.EXTERNAL_LINK, media=payload)


def test_explicit_playlist_field_wins_even_without_m3u8() -> None:
    resolved = resolve(direct_ref(playlist="https://video.cdn.example/stream/abc", video={"url": "https://x/y.mp4"}))

    assert resolved is not None
    assert resolved.url == "https://video.cdn.example/stream/abc"
    assert resolved.transport is Transport.HLS_STREAM


def test_explicit_playlist_pointing_at_platform_is_still_hls() -> None:
    resolved = resolve(direct_ref(playlist="https://www.youtube.com/something"))
    assert resolved.transport is Transport.HLS_STREAM


def test_direct_video_url_used_when_no_playlist() -> None:
    resolved = resolve(direct_ref(video={"url": "https://cdn.example.com/v/abc.mp4"}))

    assert resolved.url == "https://cdn.example.com/v/abc.mp4"
    assert resolved.transport is Transport.DIRECT_FILE


def test_direct_video_url_with_m3u8_is_promoted_to_hls() -> None:
    resolved = resolve(direct_ref(video={"url": "https://cdn.example.com/v/master.m3u8"}))
    assert resolved.transport is Transport.HLS_STREAM


@pytest.mark.parametrize(
    "media",
    [
        {},
        {"playlist": ""},
        {"playlist": None, "video": {}},
        {"video": "https://cdn.example.com/v.mp4"},
        {"video": {"url": "   "}},
    ],
)
def test_direct_video_without_url_is_unresolved(media) -> None:
    assert resolve(direct_ref(**media)) is None


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://youtu.be/dQw4w9WgXcQ", Transport.PLATFORM_LINK),
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", Transport.PLATFORM_LINK),
        ("https://vimeo.com/76979871", Transport.PLATFORM_LINK),
        ("https://cdn.example.com/clip.mp4", Transport.DIRECT_FILE),
        ("https://cdn.example.com/live/index.m3u8", Transport.HLS_STREAM),
        # HLS substring check comes before platform detection
        ("https://www.youtube.com/playlist?list=PL123", Transport.HLS_STREAM),
    ],
)
def test_external_link_transport(url: str, expected: Transport) -> None:
    resolved = resolve(external_ref(url))

    assert resolved.url == url
    assert resolved.transport is expected


def test_external_link_without_url_is_unresolved() -> None:
    assert resolve(external_ref(None)) is None
    ref = VideoRef(post_id="p", kind=VideoKind.EXTERNAL_LINK, media={"$type": "app.bsky.embed.external"})
    assert resolve(ref) is None


@pytest.mark.parametrize(
    "url, explicit, expected",
    [
        ("https://example.com/a.mp4", True, Transport.HLS_STREAM),
        ("https://example.com/a.m3u8", False, Transport.HLS_STREAM),
        ("https://example.com/my-playlist-video.mp4", False, Transport.HLS_STREAM),
        ("https://youtu.be/x", False, Transport.PLATFORM_LINK),
        ("https://example.com/a.webm", False, Transport.DIRECT_FILE),
    ],
)
def test_classify_transport_precedence(url: str, explicit: bool, expected: Transport) -> None:
    assert classify_transport(url, explicit_playlist=explicit) is expected
