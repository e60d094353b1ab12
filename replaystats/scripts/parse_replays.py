"""Parse Showdown replays and print one report row per team, or usage stats."""

import os
import signal
from collections import Counter
from typing import Callable, List, Optional

from absl import app, flags, logging

from replaystats.replay.batch_parser import BatchParser, ParseOutcome
from replaystats.replay.replay_fetcher import (
    ReplayFetcher,
    list_log_files,
    read_log_file,
    read_replay_urls,
)
from replaystats.stats.team_classifier import TypeClassifier
from replaystats.stats.team_report import format_team_row

FLAGS = flags.FLAGS

flags.DEFINE_string(
    "source",
    None,
    "Directory of replay logs, or a text file listing replay URLs",
)

flags.DEFINE_string(
    "format",
    "gen8ou",
    "Battle format of the replays (monotype formats get type classification)",
)

flags.DEFINE_enum(
    "mode",
    "teams",
    ["teams", "stats"],
    "teams: one row per team; stats: species usage per team type",
)

flags.DEFINE_string(
    "type_dir",
    "pokelist",
    "Directory holding <type>.json species lists for type classification",
)

flags.DEFINE_integer(
    "max_workers",
    8,
    "Maximum number of logs parsed (or fetched) concurrently",
)

flags.DEFINE_float(
    "timeout",
    30.0,
    "HTTP timeout in seconds when fetching replays",
)

flags.mark_flag_as_required("source")


def run_batch(
    batch: BatchParser, source: str, fetcher_factory: Callable[[], ReplayFetcher]
) -> List[ParseOutcome]:
    """Parse every log of a directory, or every replay of a URL list."""
    if os.path.isdir(source):
        return batch.parse_all(list_log_files(source), read_log_file)

    urls = read_replay_urls(source)
    with fetcher_factory() as fetcher:
        return batch.parse_all(urls, fetcher.fetch_log)


def print_teams(outcomes: List[ParseOutcome], classifier: Optional[TypeClassifier]) -> None:
    for outcome in outcomes:
        if outcome.replay is None:
            continue
        for team in outcome.replay.teams.values():
            if classifier is not None:
                classifier.assign(team)
            row = format_team_row(team)
            if row is not None:
                print(row)


def print_stats(outcomes: List[ParseOutcome], classifier: TypeClassifier) -> None:
    counts: Counter[str] = Counter()
    for outcome in outcomes:
        if outcome.replay is None:
            continue
        for team in outcome.replay.teams.values():
            team_type = classifier.classify(team)
            for pokemon in team.pokemons.values():
                counts[f"{pokemon.species}\t{team_type}"] += 1

    for key, count in sorted(counts.items()):
        print(f"{key}\t{count}")


def main(argv: List[str]) -> None:
    """Entry point for the script."""
    logging.set_verbosity(logging.INFO)
    logging.info("Parsing replays from %s (%s)", FLAGS.source, FLAGS.format)

    batch = BatchParser(max_workers=FLAGS.max_workers)
    signal.signal(signal.SIGINT, lambda signum, frame: batch.cancel())

    outcomes = run_batch(
        batch, FLAGS.source, lambda: ReplayFetcher(timeout=FLAGS.timeout)
    )
    for outcome in outcomes:
        if outcome.error is not None:
            logging.error("Failed %s: %s", outcome.log_id, outcome.error)

    if FLAGS.mode == "stats":
        print_stats(outcomes, TypeClassifier.from_directory(FLAGS.type_dir))
        return

    classifier = None
    if "monotype" in FLAGS.format:
        classifier = TypeClassifier.from_directory(FLAGS.type_dir)
    print_teams(outcomes, classifier)


def run() -> None:
    app.run(main)


if __name__ == "__main__":
    run()
