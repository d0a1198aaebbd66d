"""Minimal Bluesky XRPC client: session login and the liked-posts feed."""

from typing import Callable, Iterator, List, Optional

import requests

from .errors import AuthenticationError, FeedError
from .models import DEFAULT_HTTP_TIMEOUT, DEFAULT_MAX_POSTS, DEFAULT_PAGE_SIZE, DEFAULT_SERVICE, FeedItem


def _error_detail(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error")
        if message:
            return str(message)
    return f"HTTP {response.status_code}"


class BlueskyClient:
    """Authenticated session against a Bluesky PDS / entryway."""

    def __init__(
        self,
        service: str = DEFAULT_SERVICE,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.service = service.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.did: Optional[str] = None
        self.handle: Optional[str] = None
        self._access_jwt: Optional[str] = None

    def _xrpc(self, method: str) -> str:
        return f"{self.service}/xrpc/{method}"

    def login(self, identifier: str, password: str) -> str:
        """Create a session and return the account DID."""
        try:
            response = self.session.post(
                self._xrpc("com.atproto.server.createSession"),
                json={"identifier": identifier, "password": password},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            raise AuthenticationError(f"Login failed: {exc}") from exc

        if not response.ok:
            raise AuthenticationError(f"Login failed: {_error_detail(response)}")

        try:
            data = response.json()
            self._access_jwt = data["accessJwt"]
            self.did = data["did"]
        except (ValueError, KeyError, TypeError) as exc:
            raise AuthenticationError(f"Login failed: unexpected response ({exc})") from exc
        self.handle = data.get("handle")
        return self.did

    def get_actor_likes(self, actor: str, cursor: Optional[str] = None, limit: int = DEFAULT_PAGE_SIZE) -> dict:
        if not self._access_jwt:
            raise FeedError("Not logged in")

        params = {"actor": actor, "limit": limit}
        if cursor:
            params["cursor"] = cursor
        try:
            response = self.session.get(
                self._xrpc("app.bsky.feed.getActorLikes"),
                params=params,
                headers={"Authorization": f"Bearer {self._access_jwt}"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            raise FeedError(f"Failed to fetch liked posts: {exc}") from exc

        if not response.ok:
            raise FeedError(f"Failed to fetch liked posts: {_error_detail(response)}")
        try:
            data = response.json()
        except ValueError as exc:
            raise FeedError(f"Failed to parse liked posts response: {exc}") from exc
        if not isinstance(data, dict):
            raise FeedError("Failed to parse liked posts response: expected a JSON object")
        return data

    def iter_liked_posts(self, actor: Optional[str] = None, page_size: int = DEFAULT_PAGE_SIZE) -> Iterator[List[FeedItem]]:
        """Yield pages of liked posts, newest first, until the cursor runs out."""
        actor = actor or self.did
        if not actor:
            raise FeedError("Not logged in")

        cursor: Optional[str] = None
        while True:
            data = self.get_actor_likes(actor, cursor=cursor, limit=page_size)
            feed = data.get("feed") or []
            yield [FeedItem.from_feed_view(entry) for entry in feed]
            cursor = data.get("cursor")
            if not cursor or not feed:
                return

    def fetch_liked_posts(
        self,
        max_items: int = DEFAULT_MAX_POSTS,
        on_page: Optional[Callable[[int, int], None]] = None,
    ) -> List[FeedItem]:
        """Collect liked posts up to *max_items*; *on_page* gets (page, total so far)."""
        items: List[FeedItem] = []
        for page_number, page in enumerate(self.iter_liked_posts(), start=1):
            items.extend(page)
            if on_page:
                on_page(page_number, min(len(items), max_items))
            if len(items) >= max_items:
                break
        return items[:max_items]
