"""Print replay URLs from the replay search, or from a forum thread."""

from datetime import timedelta
from typing import List

from absl import app, flags, logging

from replaystats.game.exceptions import ReplayFetchError
from replaystats.replay.replay_collector import ReplayCollector

FLAGS = flags.FLAGS

flags.DEFINE_string(
    "battle_format",
    None,
    "Format whose replays are collected, e.g. gen8ou",
)

flags.DEFINE_integer(
    "limit",
    50,
    "Maximum number of replays collected from the replay search",
)

flags.DEFINE_float(
    "max_age_hours",
    24.0,
    "Skip search results uploaded more than this many hours ago",
)

flags.DEFINE_string(
    "forum_url",
    None,
    "Forum page to collect replay links from instead of the replay search",
)

flags.DEFINE_float(
    "request_timeout",
    30.0,
    "HTTP timeout in seconds",
)

flags.mark_flag_as_required("battle_format")


def collect(collector: ReplayCollector) -> List[str]:
    if FLAGS.forum_url:
        return collector.forum_links(FLAGS.forum_url, FLAGS.battle_format)
    return collector.search(
        FLAGS.battle_format, FLAGS.limit, timedelta(hours=FLAGS.max_age_hours)
    )


def main(argv: List[str]) -> int:
    """Entry point for the script."""
    logging.set_verbosity(logging.INFO)

    try:
        with ReplayCollector(timeout=FLAGS.request_timeout) as collector:
            urls = collect(collector)
    except ReplayFetchError as e:
        logging.error("%s", e)
        return 1

    for url in urls:
        print(url)
    return 0


def run() -> None:
    app.run(main)


if __name__ == "__main__":
    run()
