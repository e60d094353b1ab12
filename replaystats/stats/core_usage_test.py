"""Tests for core usage aggregation and filtering."""

from typing import List, Optional

from absl.testing import absltest, parameterized
from pydantic import ValidationError

from replaystats.game.schema.enums import BattleResult
from replaystats.game.schema.team import Combatant, Team
from replaystats.replay.replay_interpreter import ReplayInterpreter
from replaystats.stats.core_usage import (
    StatsFilter,
    TeamFilter,
    UsageOutput,
    compute_core_usage,
    filter_teams,
    format_core_usage,
    pair_team_rows,
    usage_threshold,
)
from replaystats.stats.team_report import format_team_row


def make_team(
    player: str,
    species: List[str],
    result: BattleResult = BattleResult.UNRESOLVED,
    archetype: Optional[str] = None,
    dynamax: Optional[str] = None,
) -> Team:
    team = Team(side="p1", player=player, result=result, archetype=archetype)
    for name in species:
        team.pokemons[name] = Combatant(species=name, entrances=1)
    team.lead = species[0]
    team.dynamax_species = dynamax
    return team


class TeamFilterTest(absltest.TestCase):
    def setUp(self) -> None:
        self.team = make_team(
            "Alice",
            ["Pelipper", "Barraskewda", "Ferrothorn"],
            archetype="water",
            dynamax="Barraskewda",
        )

    def test_empty_filter_matches(self) -> None:
        self.assertTrue(TeamFilter().matches(self.team))

    def test_player_case_insensitive(self) -> None:
        self.assertTrue(TeamFilter(player=["alice", "bob"]).matches(self.team))
        self.assertFalse(TeamFilter(player=["bob"]).matches(self.team))

    def test_pokemon_groups(self) -> None:
        self.assertTrue(
            TeamFilter(pokemons=[["Pelipper", "Barraskewda"]]).matches(self.team)
        )
        self.assertTrue(
            TeamFilter(pokemons=[["Toxapex"], ["Ferrothorn"]]).matches(self.team)
        )
        self.assertFalse(
            TeamFilter(pokemons=[["Pelipper", "Toxapex"]]).matches(self.team)
        )

    def test_type_lead_dynamax(self) -> None:
        self.assertTrue(TeamFilter(type=["water"]).matches(self.team))
        self.assertFalse(TeamFilter(type=["fire"]).matches(self.team))
        self.assertTrue(TeamFilter(lead=["Pelipper"]).matches(self.team))
        self.assertFalse(TeamFilter(lead=["Ferrothorn"]).matches(self.team))
        self.assertTrue(TeamFilter(dynamax=["Barraskewda"]).matches(self.team))
        self.assertFalse(TeamFilter(dynamax=["Pelipper"]).matches(self.team))


class StatsFilterTest(absltest.TestCase):
    def test_parse_json_alias(self) -> None:
        stats_filter = StatsFilter.model_validate_json(
            '{"for": {"type": ["water"]}, "against": {"player": ["bob"]}}'
        )
        self.assertEqual(stats_filter.for_team.type, ["water"])
        self.assertEqual(stats_filter.against.player, ["bob"])

    def test_defaults(self) -> None:
        stats_filter = StatsFilter.model_validate_json("{}")
        self.assertEqual(stats_filter.for_team, TeamFilter())
        self.assertEqual(stats_filter.against, TeamFilter())

    def test_invalid(self) -> None:
        with self.assertRaises(ValidationError):
            StatsFilter.model_validate_json('{"for": {"player": "alice"}}')

    def test_filter_teams_both_sides(self) -> None:
        alice = make_team("Alice", ["Pelipper"], archetype="water")
        bob = make_team("Bob", ["Toxapex"], archetype="water")
        carol = make_team("Carol", ["Heatran"], archetype="fire")

        water = StatsFilter(for_team=TeamFilter(type=["water"]))
        self.assertEqual(filter_teams(water, [(alice, bob)]), [alice, bob])
        self.assertEqual(filter_teams(water, [(alice, carol)]), [alice])

        against_carol = StatsFilter(against=TeamFilter(player=["carol"]))
        self.assertEqual(filter_teams(against_carol, [(alice, carol), (alice, bob)]), [alice])


class UsageOutputTest(parameterized.TestCase):
    @parameterized.parameters(0, 7)
    def test_size_bounds(self, size: int) -> None:
        with self.assertRaises(ValidationError):
            UsageOutput(size=size)

    @parameterized.parameters((1, 0), (2, 2), (3, 3), (4, 3), (5, 2), (6, 0))
    def test_threshold(self, size: int, expected: int) -> None:
        self.assertEqual(usage_threshold(size), expected)


class CoreUsageTest(absltest.TestCase):
    def setUp(self) -> None:
        self.teams = [
            make_team("A", ["Pelipper", "Barraskewda", "Ferrothorn"], BattleResult.WIN, dynamax="Barraskewda"),
            make_team("B", ["Barraskewda", "Pelipper", "Toxapex"], BattleResult.LOSS),
            make_team("C", ["Pelipper", "Ferrothorn"], BattleResult.WIN, dynamax="Ferrothorn"),
        ]
        self.teams[0].pokemons["Barraskewda"].kills = 3
        self.teams[1].pokemons["Pelipper"].deaths = 1

    def test_single_usage(self) -> None:
        stats = compute_core_usage(UsageOutput(size=1), self.teams)
        self.assertEqual(stats["Pelipper"].uses, 3)
        self.assertEqual(stats["Pelipper"].wins, 2)
        self.assertEqual(stats["Pelipper"].deaths, 1)
        self.assertEqual(stats["Toxapex"].uses, 1)
        self.assertEqual(stats["Barraskewda"].kills, 3)

    def test_pair_keys_are_sorted(self) -> None:
        stats = compute_core_usage(UsageOutput(size=2), self.teams)
        pair = stats["Barraskewda;Pelipper"]
        self.assertEqual(pair.uses, 2)
        self.assertEqual(pair.wins, 1)
        self.assertEqual(pair.kills, 3)
        self.assertEqual(pair.deaths, 1)
        self.assertNotIn("Pelipper;Barraskewda", stats)
        self.assertEqual(stats["Ferrothorn;Pelipper"].uses, 2)

    def test_format_applies_threshold(self) -> None:
        output = UsageOutput(size=2)
        rows = format_core_usage(output, compute_core_usage(output, self.teams))
        self.assertEqual(
            rows,
            ["Barraskewda;Pelipper;2;1;3;1", "Ferrothorn;Pelipper;2;2;0;0"],
        )

    def test_single_format_has_no_threshold(self) -> None:
        output = UsageOutput(size=1)
        rows = format_core_usage(output, compute_core_usage(output, self.teams))
        self.assertEqual(rows[0], "Pelipper;3;2;0;1")
        self.assertLen(rows, 4)

    def test_leads(self) -> None:
        output = UsageOutput(lead=True)
        rows = format_core_usage(output, compute_core_usage(output, self.teams))
        self.assertEqual(rows, ["Pelipper;2;2", "Barraskewda;1;0"])

    def test_dynamax(self) -> None:
        output = UsageOutput(dynamax=True)
        stats = compute_core_usage(output, self.teams)
        self.assertCountEqual(stats.keys(), ["Barraskewda", "Ferrothorn"])
        self.assertEqual(
            format_core_usage(output, stats), ["Barraskewda;1;1", "Ferrothorn;1;1"]
        )

    def test_pair_team_rows(self) -> None:
        rows = [format_team_row(team) for team in self.teams[:2]]
        rows += ["garbage", format_team_row(self.teams[2])]
        battles = pair_team_rows(rows)
        self.assertLen(battles, 1)
        first, second = battles[0]
        self.assertEqual(first.player, "A")
        self.assertEqual(second.player, "B")
        self.assertEqual(second.result, BattleResult.LOSS)

    def test_dynamax_usage_from_parsed_log(self) -> None:
        log = "\n".join(
            [
                "|player|p1|Alice||",
                "|player|p2|Bob||",
                "|poke|p1|Charizard, M|",
                "|poke|p2|Ferrothorn, F|",
                "|start",
                "|switch|p1a: Zard|Charizard, M|100/100",
                "|switch|p2a: Ferrothorn|Ferrothorn, F|100/100",
                "|turn|1",
                "|-start|p1a: Zard|Dynamax",
                "|move|p1a: Zard|Max Flare|p2a: Ferrothorn",
                "|faint|p2a: Ferrothorn",
                "|win|Alice",
            ]
        )
        replay = ReplayInterpreter().parse(log)
        rows = [format_team_row(team) for team in replay.teams.values()]
        battles = pair_team_rows(rows)
        self.assertLen(battles, 1)

        output = UsageOutput(dynamax=True)
        teams = filter_teams(StatsFilter(), battles)
        self.assertEqual(
            format_core_usage(output, compute_core_usage(output, teams)),
            ["Charizard;1;1"],
        )

        dynamax_filter = StatsFilter.model_validate_json('{"for": {"dynamax": ["Charizard"]}}')
        kept = filter_teams(dynamax_filter, battles)
        self.assertEqual([team.player for team in kept], ["Alice"])

    def test_pair_team_rows_odd_count(self) -> None:
        rows = [format_team_row(team) for team in self.teams]
        self.assertLen(pair_team_rows(rows), 1)


if __name__ == "__main__":
    absltest.main()
