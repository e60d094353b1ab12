"""Retrieval of replay logs from replay URLs, URL lists and log directories."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx
from absl import logging

from replaystats.game.exceptions import ReplayFetchError

REPLAY_HOST_PREFIX = "https://replay"

# Body served by the replay site when its backend is down.
CONNECTION_ERROR_MARKER = "Could not connect"


def normalize_replay_url(line: str) -> Optional[str]:
    """Turn a line of a URL list into an https replay URL.

    Args:
        line: Raw line, e.g. "replay.pokemonshowdown.com/gen8ou-123"

    Returns:
        The normalized URL, or None if the line is not a replay link

    Examples:
        >>> normalize_replay_url("replay.pokemonshowdown.com/gen8ou-1")
        'https://replay.pokemonshowdown.com/gen8ou-1'
        >>> normalize_replay_url("http://replay.pokemonshowdown.com/gen8ou-1")
        'https://replay.pokemonshowdown.com/gen8ou-1'
        >>> normalize_replay_url("https://www.smogon.com/forums/") is None
        True
    """
    url = line.strip()
    if url.startswith("replay"):
        url = "https://" + url
    url = url.replace("http://", "https://", 1)
    if not url.startswith(REPLAY_HOST_PREFIX):
        return None
    return url


def read_replay_urls(path: str) -> List[str]:
    """Read replay URLs from a text file, one per line, skipping the rest."""
    urls = []
    with open(path, "r") as f:
        for line in f:
            url = normalize_replay_url(line)
            if url is not None:
                urls.append(url)
    logging.info("Read %d replay URLs from %s", len(urls), path)
    return urls


def list_log_files(directory: str) -> List[str]:
    """List the log files of a directory, sorted by name."""
    return sorted(
        os.path.join(directory, name)
        for name in os.listdir(directory)
        if os.path.isfile(os.path.join(directory, name))
    )


def read_log_file(path: str) -> str:
    return Path(path).read_text(encoding="utf-8", errors="replace")


def read_log_directory(directory: str) -> List[Tuple[str, str]]:
    """Read every log file of a directory.

    Returns:
        (path, text) pairs sorted by path
    """
    return [(path, read_log_file(path)) for path in list_log_files(directory)]


def get_page(
    client: httpx.Client,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    error_url: Optional[str] = None,
) -> str:
    """GET a replay server page and return its body.

    Args:
        client: httpx.Client to send the request with
        url: Page URL
        params: Query parameters
        error_url: URL reported in errors, defaults to url

    Raises:
        ReplayFetchError: On transport errors, non-200 responses, or the
            replay server's connection error page
    """
    error_url = error_url or url
    try:
        response = client.get(url, params=params)
    except httpx.HTTPError as e:
        raise ReplayFetchError(error_url, str(e)) from e

    if response.status_code != 200:
        raise ReplayFetchError(error_url, f"status code {response.status_code}")
    if CONNECTION_ERROR_MARKER in response.text:
        raise ReplayFetchError(error_url, "replay server could not connect")
    return response.text


class ReplayFetcher:
    """Downloads raw replay logs from the replay server.

    The replay page at URL serves its protocol log at URL + ".log".
    """

    def __init__(self, client: Optional[httpx.Client] = None, timeout: float = 30.0) -> None:
        """Initialize the fetcher.

        Args:
            client: httpx.Client to use (creates one if None)
            timeout: Request timeout in seconds for a created client
        """
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def fetch_log(self, url: str) -> str:
        """Fetch the protocol log of one replay.

        Args:
            url: Replay page URL (without the ".log" suffix)

        Returns:
            The raw log text

        Raises:
            ReplayFetchError: On transport errors, non-200 responses, or the
                replay server's connection error page
        """
        log_url = url if url.endswith(".log") else url + ".log"
        return get_page(self._client, log_url, error_url=url)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "ReplayFetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
