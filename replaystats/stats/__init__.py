"""Aggregates over parsed teams: type archetypes, report rows, core usage."""

from replaystats.stats.core_usage import StatsFilter, TeamFilter, UsageOutput
from replaystats.stats.team_classifier import TypeClassifier

__all__ = ["StatsFilter", "TeamFilter", "TypeClassifier", "UsageOutput"]
