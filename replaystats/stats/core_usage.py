"""Usage of Pokemon cores (combinations) across many parsed battles."""

from dataclasses import dataclass
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from replaystats.game.schema.enums import BattleResult
from replaystats.game.schema.team import Team
from replaystats.stats.team_report import parse_team_row

KEY_SEPARATOR = ";"


class TeamFilter(BaseModel):
    """Conditions on one team. Empty lists match every team."""

    player: List[str] = Field(
        default_factory=list, description="Any of these players (case insensitive)"
    )
    pokemons: List[List[str]] = Field(
        default_factory=list,
        description="Any of these groups, each group requiring all its species",
    )
    type: List[str] = Field(default_factory=list, description="Any of these archetypes")
    lead: List[str] = Field(default_factory=list, description="Any of these lead species")
    dynamax: List[str] = Field(
        default_factory=list, description="Any of these dynamaxed species"
    )

    def matches(self, team: Team) -> bool:
        if self.player and team.player.lower() not in {p.lower() for p in self.player}:
            return False
        if self.lead and team.lead_species() not in self.lead:
            return False
        if self.type and team.archetype not in self.type:
            return False
        if self.dynamax and team.dynamax_species not in self.dynamax:
            return False
        if self.pokemons:
            species = set(team.species())
            if not any(all(p in species for p in group) for group in self.pokemons):
                return False
        return True


class StatsFilter(BaseModel):
    """Which teams to count ("for") given who they played ("against")."""

    model_config = ConfigDict(populate_by_name=True)

    for_team: TeamFilter = Field(default_factory=TeamFilter, alias="for")
    against: TeamFilter = Field(default_factory=TeamFilter)


class UsageOutput(BaseModel):
    """What to aggregate: cores of a given size, leads, or dynamax choices."""

    size: int = Field(default=1, ge=1, le=6, description="Number of Pokemon per core")
    lead: bool = Field(default=False, description="Count lead Pokemon instead of cores")
    dynamax: bool = Field(
        default=False, description="Count dynamaxed Pokemon instead of cores"
    )


@dataclass
class CoreStats:
    """Accumulated numbers for one core."""

    uses: int = 0
    wins: int = 0
    kills: int = 0
    deaths: int = 0


def filter_teams(
    stats_filter: StatsFilter, battles: Iterable[Tuple[Team, Team]]
) -> List[Team]:
    """Keep every team matching "for" whose opponent matches "against".

    Both teams of a battle are checked, so a battle can contribute 0, 1 or 2
    teams.
    """
    kept = []
    for first, second in battles:
        if stats_filter.for_team.matches(first) and stats_filter.against.matches(second):
            kept.append(first)
        if stats_filter.for_team.matches(second) and stats_filter.against.matches(first):
            kept.append(second)
    return kept


def usage_threshold(size: int) -> int:
    """Minimum number of uses for a core of this size to be reported."""
    if size in (2, 5):
        return 2
    if size in (3, 4):
        return 3
    return 0


def _count_single(key: Optional[str], team: Team, stats: Dict[str, CoreStats]) -> None:
    if not key:
        return
    core = stats.setdefault(key, CoreStats())
    core.uses += 1
    if team.result is BattleResult.WIN:
        core.wins += 1


def compute_core_usage(output: UsageOutput, teams: Iterable[Team]) -> Dict[str, CoreStats]:
    """Aggregate usage over teams.

    Args:
        output: What to aggregate
        teams: Teams to count, usually the result of filter_teams

    Returns:
        Core key (species joined by ";") -> CoreStats
    """
    stats: Dict[str, CoreStats] = {}
    for team in teams:
        if output.lead:
            _count_single(team.lead_species(), team, stats)
            continue
        if output.dynamax:
            _count_single(team.dynamax_species, team, stats)
            continue

        members = sorted(team.pokemons.values(), key=lambda p: p.species)
        for core in combinations(members, output.size):
            key = KEY_SEPARATOR.join(p.species for p in core)
            entry = stats.setdefault(key, CoreStats())
            entry.uses += 1
            entry.kills += sum(p.kills for p in core)
            entry.deaths += sum(p.deaths for p in core)
            if team.result is BattleResult.WIN:
                entry.wins += 1
    return stats


def format_core_usage(output: UsageOutput, stats: Dict[str, CoreStats]) -> List[str]:
    """Render aggregated usage, most used first.

    Cores print as "key;uses;wins;kills;deaths" when used at least
    usage_threshold(size) times; leads and dynamax as "key;uses;wins".
    """
    ordered = sorted(stats.items(), key=lambda item: (-item[1].uses, item[0]))
    if output.lead or output.dynamax:
        return [f"{key};{core.uses};{core.wins}" for key, core in ordered if core.uses > 0]

    threshold = usage_threshold(output.size)
    return [
        f"{key};{core.uses};{core.wins};{core.kills};{core.deaths}"
        for key, core in ordered
        if core.uses >= threshold
    ]


def pair_team_rows(lines: Sequence[str]) -> List[Tuple[Team, Team]]:
    """Read report rows two at a time, one battle per pair.

    Pairs where either row does not have the expected layout are skipped.
    """
    battles = []
    for i in range(0, len(lines) - 1, 2):
        first = parse_team_row(lines[i])
        second = parse_team_row(lines[i + 1])
        if first is None or second is None:
            continue
        battles.append((first, second))
    return battles
