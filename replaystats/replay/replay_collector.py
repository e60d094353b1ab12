"""Collect replay URLs from the replay search pages or from a forum thread."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple
from urllib.parse import urljoin

import httpx
from absl import logging
from bs4 import BeautifulSoup

from replaystats.game.exceptions import ReplayFetchError
from replaystats.replay.replay_fetcher import get_page, normalize_replay_url

REPLAY_URL = "https://replay.pokemonshowdown.com"
REPLAY_SEARCH_URL = REPLAY_URL + "/search"

# Results listed per search page.
PAGE_SIZE = 50

# Tournament replays are uploaded under "smogtours-<format>-<id>".
TOURNAMENT_PREFIX = "smogtours-"


def is_replay_link(url: str, battle_format: str) -> bool:
    """Check if a URL is a replay of the given format.

    Examples:
        >>> is_replay_link("https://replay.pokemonshowdown.com/gen8ou-1", "gen8ou")
        True
        >>> is_replay_link("https://replay.pokemonshowdown.com/smogtours-gen8ou-9", "gen8ou")
        True
        >>> is_replay_link("https://replay.pokemonshowdown.com/gen8oumonotype-1", "gen8ou")
        False
    """
    if not url.startswith(REPLAY_URL + "/"):
        return False
    replay_id = url[len(REPLAY_URL) + 1 :]
    return replay_id.startswith(
        (f"{battle_format}-", f"{TOURNAMENT_PREFIX}{battle_format}-")
    )


def _parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class ReplayCollector:
    """Finds replay URLs to feed to the replay parser.

    Search results are listed newest first, PAGE_SIZE per page. Upload dates
    are only shown on the replay pages themselves, so the age cutoff costs
    one extra request per visited search page (plus one per replay skipped
    at the cutoff).
    """

    def __init__(self, client: Optional[httpx.Client] = None, timeout: float = 30.0) -> None:
        """Initialize the collector.

        Args:
            client: httpx.Client to use (creates one if None)
            timeout: Request timeout in seconds for a created client
        """
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def search_page(self, page: int, battle_format: str) -> List[str]:
        """Replay URLs listed on one page of the replay search."""
        html = get_page(
            self._client,
            REPLAY_SEARCH_URL,
            params={"output": "html", "page": page, "format": battle_format},
        )
        urls = []
        for anchor in _parse_html(html).find_all("a", href=True):
            url = urljoin(REPLAY_URL + "/", anchor["href"])
            if is_replay_link(url, battle_format):
                urls.append(url)
        return urls

    def upload_time(self, url: str) -> datetime:
        """Upload date of a replay, read from its page.

        Raises:
            ReplayFetchError: If the page cannot be fetched or has no date
        """
        tag = _parse_html(get_page(self._client, url)).select_one(".uploaddate")
        timestamp = tag.get("data-timestamp") if tag is not None else None
        if not timestamp or not str(timestamp).isdigit():
            raise ReplayFetchError(url, "no upload date on replay page")
        return datetime.fromtimestamp(int(timestamp), tz=timezone.utc)

    def _uploaded_after(
        self, urls: List[str], cutoff: datetime
    ) -> Tuple[List[str], bool]:
        """Keep the leading URLs uploaded after cutoff.

        Returns:
            Tuple of (kept urls, whether the cutoff was reached on this page)
        """
        for index in range(len(urls) - 1, -1, -1):
            if self.upload_time(urls[index]) > cutoff:
                return urls[: index + 1], index != len(urls) - 1
        return [], True

    def search(
        self,
        battle_format: str,
        limit: int,
        max_age: timedelta,
        now: Optional[datetime] = None,
    ) -> List[str]:
        """Collect the most recent replays of a format.

        Args:
            battle_format: Format id, e.g. "gen8ou"
            limit: Maximum number of URLs returned
            max_age: Replays uploaded longer ago than this are skipped
            now: Reference time for max_age (defaults to the current time)

        Returns:
            Replay URLs, newest first

        Raises:
            ReplayFetchError: If a search or replay page cannot be fetched
        """
        if limit <= 0:
            return []
        cutoff = (now or datetime.now(timezone.utc)) - max_age

        urls: List[str] = []
        for page in range(1, limit // PAGE_SIZE + 2):
            page_urls = self.search_page(page, battle_format)
            if not page_urls:
                break
            recent, cutoff_reached = self._uploaded_after(page_urls, cutoff)
            urls.extend(recent[: limit - len(urls)])
            if cutoff_reached or len(urls) >= limit:
                break

        logging.info("Collected %d %s replays from the replay search", len(urls), battle_format)
        return urls

    def forum_links(self, page_url: str, battle_format: str) -> List[str]:
        """Replay URLs of a format linked from a forum page, in page order.

        Raises:
            ReplayFetchError: If the page cannot be fetched
        """
        urls: List[str] = []
        for anchor in _parse_html(get_page(self._client, page_url)).find_all("a", href=True):
            url = normalize_replay_url(anchor["href"])
            if url is not None and is_replay_link(url, battle_format) and url not in urls:
                urls.append(url)

        logging.info("Found %d %s replays on %s", len(urls), battle_format, page_url)
        return urls

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "ReplayCollector":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
