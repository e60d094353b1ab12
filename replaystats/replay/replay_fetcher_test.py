import os
import tempfile

import httpx
from absl.testing import absltest, parameterized

from replaystats.game.exceptions import ReplayFetchError
from replaystats.replay.replay_fetcher import (
    ReplayFetcher,
    normalize_replay_url,
    read_log_directory,
    read_replay_urls,
)

REPLAY_URL = "https://replay.pokemonshowdown.com/gen8ou-1234"


def make_fetcher(handler) -> ReplayFetcher:
    return ReplayFetcher(client=httpx.Client(transport=httpx.MockTransport(handler)))


class NormalizeReplayUrlTest(parameterized.TestCase):
    @parameterized.parameters(
        ("replay.pokemonshowdown.com/gen8ou-1", "https://replay.pokemonshowdown.com/gen8ou-1"),
        ("http://replay.pokemonshowdown.com/gen8ou-1", "https://replay.pokemonshowdown.com/gen8ou-1"),
        ("https://replay.pokemonshowdown.com/gen8ou-1\n", "https://replay.pokemonshowdown.com/gen8ou-1"),
        ("  replay.pokemonshowdown.com/gen8ou-1  ", "https://replay.pokemonshowdown.com/gen8ou-1"),
        ("https://www.smogon.com/forums/", None),
        ("", None),
        ("Round 1 replays:", None),
    )
    def test_normalize(self, line: str, expected) -> None:
        self.assertEqual(normalize_replay_url(line), expected)


class ReplayFetcherTest(absltest.TestCase):
    def test_fetch_appends_log_suffix(self) -> None:
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, text="|turn|1\n")

        with make_fetcher(handler) as fetcher:
            self.assertEqual(fetcher.fetch_log(REPLAY_URL), "|turn|1\n")
            fetcher.fetch_log(REPLAY_URL + ".log")
        self.assertEqual(requested, [REPLAY_URL + ".log", REPLAY_URL + ".log"])

    def test_non_200_raises(self) -> None:
        fetcher = make_fetcher(lambda request: httpx.Response(404, text="Not found"))
        with self.assertRaises(ReplayFetchError) as context:
            fetcher.fetch_log(REPLAY_URL)
        self.assertEqual(context.exception.url, REPLAY_URL)
        self.assertIn("404", context.exception.reason)

    def test_connection_error_page_raises(self) -> None:
        fetcher = make_fetcher(
            lambda request: httpx.Response(200, text="<p>Could not connect to database</p>")
        )
        with self.assertRaises(ReplayFetchError):
            fetcher.fetch_log(REPLAY_URL)

    def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(ReplayFetchError) as context:
            make_fetcher(handler).fetch_log(REPLAY_URL)
        self.assertIn("connection refused", context.exception.reason)

    def test_close_keeps_injected_client_open(self) -> None:
        client = httpx.Client(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="ok"))
        )
        ReplayFetcher(client=client).close()
        self.assertFalse(client.is_closed)
        client.close()


class ReplaySourceFilesTest(absltest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.mkdtemp()

    def test_read_replay_urls(self) -> None:
        path = os.path.join(self.temp_dir, "urls.txt")
        with open(path, "w") as f:
            f.write(
                "Week 1\n"
                "replay.pokemonshowdown.com/gen8ou-1\n"
                "\n"
                "http://replay.pokemonshowdown.com/gen8ou-2\n"
                "https://pastebin.com/abc\n"
            )
        self.assertEqual(
            read_replay_urls(path),
            [
                "https://replay.pokemonshowdown.com/gen8ou-1",
                "https://replay.pokemonshowdown.com/gen8ou-2",
            ],
        )

    def test_read_log_directory(self) -> None:
        for name, text in [("2.log", "|turn|2"), ("1.log", "|turn|1")]:
            with open(os.path.join(self.temp_dir, name), "w") as f:
                f.write(text)
        os.mkdir(os.path.join(self.temp_dir, "nested"))

        logs = read_log_directory(self.temp_dir)
        self.assertEqual(
            [(os.path.basename(path), text) for path, text in logs],
            [("1.log", "|turn|1"), ("2.log", "|turn|2")],
        )


if __name__ == "__main__":
    absltest.main()
