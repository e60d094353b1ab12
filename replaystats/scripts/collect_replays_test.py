import io
from contextlib import redirect_stdout
from unittest import mock

from absl import flags
from absl.testing import absltest, flagsaver

from replaystats.game.exceptions import ReplayFetchError
from replaystats.scripts import collect_replays

FLAGS = flags.FLAGS

URLS = [
    "https://replay.pokemonshowdown.com/gen8ou-2",
    "https://replay.pokemonshowdown.com/gen8ou-1",
]


class CollectReplaysTest(absltest.TestCase):
    def setUp(self) -> None:
        if not FLAGS.is_parsed():
            FLAGS.mark_as_parsed()
        patcher = mock.patch.object(collect_replays, "ReplayCollector")
        collector_class = patcher.start()
        self.addCleanup(patcher.stop)
        self.collector = collector_class.return_value.__enter__.return_value

    def run_main(self) -> tuple:
        out = io.StringIO()
        with redirect_stdout(out):
            status = collect_replays.main([])
        return status, out.getvalue().splitlines()

    @flagsaver.flagsaver(battle_format="gen8ou", limit=20, max_age_hours=12.0)
    def test_search_mode(self) -> None:
        self.collector.search.return_value = URLS
        status, lines = self.run_main()

        self.assertEqual(status, 0)
        self.assertEqual(lines, URLS)
        battle_format, limit, max_age = self.collector.search.call_args.args
        self.assertEqual((battle_format, limit, max_age.total_seconds()), ("gen8ou", 20, 12 * 3600))
        self.collector.forum_links.assert_not_called()

    @flagsaver.flagsaver(
        battle_format="gen8ou", forum_url="https://www.smogon.com/forums/threads/x.1/"
    )
    def test_forum_mode(self) -> None:
        self.collector.forum_links.return_value = URLS[:1]
        status, lines = self.run_main()

        self.assertEqual(status, 0)
        self.assertEqual(lines, URLS[:1])
        self.collector.forum_links.assert_called_once_with(
            "https://www.smogon.com/forums/threads/x.1/", "gen8ou"
        )
        self.collector.search.assert_not_called()

    @flagsaver.flagsaver(battle_format="gen8ou")
    def test_fetch_error_returns_nonzero(self) -> None:
        self.collector.search.side_effect = ReplayFetchError(
            "https://replay.pokemonshowdown.com/search", "status code 503"
        )
        status, lines = self.run_main()

        self.assertEqual(status, 1)
        self.assertEqual(lines, [])


if __name__ == "__main__":
    absltest.main()
