"""Replay interpretation: from raw Showdown logs to reconstructed teams."""

from replaystats.replay.batch_parser import BatchParser, ParseOutcome
from replaystats.replay.replay_interpreter import Anomaly, ParsedReplay, ReplayInterpreter

__all__ = ["Anomaly", "BatchParser", "ParseOutcome", "ParsedReplay", "ReplayInterpreter"]
