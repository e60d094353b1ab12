import io
import os
import tempfile
from contextlib import redirect_stdout
from unittest.mock import MagicMock

from absl.testing import absltest

from replaystats.replay.batch_parser import BatchParser
from replaystats.scripts.parse_replays import print_stats, print_teams, run_batch
from replaystats.stats.team_classifier import TypeClassifier

LOG = "\n".join(
    [
        "|player|p1|Alice|1|",
        "|player|p2|Bob|2|",
        "|poke|p1|Toxapex, F|",
        "|poke|p1|Pelipper, M|",
        "|poke|p2|Ferrothorn, M|",
        "|start",
        "|switch|p1a: Toxapex|Toxapex, F|100/100",
        "|switch|p2a: Ferrothorn|Ferrothorn, M|100/100",
        "|turn|1",
        "|win|Alice",
    ]
)


class ParseReplaysTest(absltest.TestCase):
    def setUp(self) -> None:
        self.classifier = TypeClassifier(
            {"water": ["Toxapex", "Pelipper"], "steel": ["Ferrothorn"]}
        )

    def test_run_batch_directory(self) -> None:
        temp_dir = tempfile.mkdtemp()
        with open(os.path.join(temp_dir, "a.log"), "w") as f:
            f.write(LOG)
        factory = MagicMock()

        outcomes = run_batch(BatchParser(), temp_dir, factory)
        self.assertLen(outcomes, 1)
        self.assertTrue(outcomes[0].ok)
        factory.assert_not_called()

    def test_run_batch_url_list(self) -> None:
        temp_dir = tempfile.mkdtemp()
        url_file = os.path.join(temp_dir, "urls.txt")
        with open(url_file, "w") as f:
            f.write("replay.pokemonshowdown.com/gen8ou-1\nnot a replay\n")
        fetcher = MagicMock()
        fetcher.__enter__.return_value = fetcher
        fetcher.fetch_log.return_value = LOG

        outcomes = run_batch(BatchParser(), url_file, lambda: fetcher)
        self.assertEqual(
            [o.log_id for o in outcomes], ["https://replay.pokemonshowdown.com/gen8ou-1"]
        )
        self.assertTrue(outcomes[0].ok)
        fetcher.__exit__.assert_called_once()

    def test_print_teams(self) -> None:
        outcomes = BatchParser().parse_texts([("a", LOG), ("bad", "")])
        out = io.StringIO()
        with redirect_stdout(out):
            print_teams(outcomes, self.classifier)
        rows = out.getvalue().splitlines()
        self.assertLen(rows, 2)
        self.assertTrue(rows[0].startswith("Alice;water;Toxapex;1;"))
        self.assertTrue(rows[0].endswith(";W"))
        self.assertTrue(rows[1].startswith("Bob;steel;Ferrothorn;1;"))
        self.assertTrue(rows[1].endswith(";L"))

    def test_print_stats(self) -> None:
        outcomes = BatchParser().parse_texts([("a", LOG)])
        out = io.StringIO()
        with redirect_stdout(out):
            print_stats(outcomes, self.classifier)
        self.assertEqual(
            out.getvalue().splitlines(),
            ["Ferrothorn\tsteel\t1", "Pelipper\twater\t1", "Toxapex\twater\t1"],
        )


if __name__ == "__main__":
    absltest.main()
