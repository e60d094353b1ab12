"""Print core, lead or dynamax usage from team report rows."""

from typing import List

from absl import app, flags, logging
from pydantic import ValidationError

from replaystats.stats.core_usage import (
    StatsFilter,
    UsageOutput,
    compute_core_usage,
    filter_teams,
    format_core_usage,
    pair_team_rows,
)

FLAGS = flags.FLAGS

flags.DEFINE_string(
    "rows",
    None,
    "File of team rows written by parse_replays (two rows per battle)",
)

flags.DEFINE_string(
    "output",
    '{"size": 1}',
    'What to count, e.g. {"size": 2}, {"lead": true} or {"dynamax": true}',
)

flags.DEFINE_string(
    "filter",
    "{}",
    'Team filter, e.g. {"for": {"type": ["water"]}, "against": {"player": ["x"]}}',
)

flags.mark_flag_as_required("rows")


def main(argv: List[str]) -> int:
    """Entry point for the script."""
    logging.set_verbosity(logging.INFO)

    try:
        output = UsageOutput.model_validate_json(FLAGS.output)
        stats_filter = StatsFilter.model_validate_json(FLAGS.filter)
    except ValidationError as e:
        logging.error("Invalid argument: %s", e)
        return 1

    with open(FLAGS.rows, "r") as f:
        lines = [line.rstrip("\n") for line in f if line.strip()]

    battles = pair_team_rows(lines)
    teams = filter_teams(stats_filter, battles)
    logging.info("%d battles read, %d teams match the filter", len(battles), len(teams))

    for row in format_core_usage(output, compute_core_usage(output, teams)):
        print(row)
    return 0


def run() -> None:
    app.run(main)


if __name__ == "__main__":
    run()
