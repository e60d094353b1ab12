"""Semicolon-separated team rows, one line per team of a parsed replay.

Row layout:
    player;archetype;lead;battle_length;dynamax_species;dynamax_turn;
    then for each of 6 slots: species;item;move1;move2;move3;move4;kills;deaths;entrances;
    then W, L, or nothing for an unresolved battle.
"""

from typing import List, Optional

from absl import logging

from replaystats.game.schema.enums import BattleResult
from replaystats.game.schema.team import MAX_MOVES, Combatant, Team

SEPARATOR = ";"
TEAM_SIZE = 6
HEADER_COLUMNS = 6
POKEMON_COLUMNS = 5 + MAX_MOVES
EXPECTED_COLUMNS = HEADER_COLUMNS + TEAM_SIZE * POKEMON_COLUMNS + 1

PLAYER_INDEX = 0
TYPE_INDEX = 1
LEAD_INDEX = 2
LENGTH_INDEX = 3
DYNAMAX_SPECIES_INDEX = 4
DYNAMAX_TURN_INDEX = 5


def _format_optional_int(value: Optional[int]) -> str:
    return "" if value is None else str(value)


def _format_pokemon(combatant: Combatant) -> List[str]:
    moves = list(combatant.moves) + [""] * (MAX_MOVES - len(combatant.moves))
    return (
        [combatant.species, combatant.item or ""]
        + moves
        + [str(combatant.kills), str(combatant.deaths), str(combatant.entrances)]
    )


def format_team_row(team: Team) -> Optional[str]:
    """Render a team as one report row.

    Returns:
        The row, or None for a team that never sent a Pokemon out
    """
    if not team.lead:
        return None

    columns = [
        team.player,
        team.archetype or "",
        team.lead_species(),
        _format_optional_int(team.battle_length),
        team.dynamax_species or "",
        _format_optional_int(team.dynamax_turn),
    ]
    ordered = sorted(team.pokemons.items(), key=lambda item: (item[1].species, item[0]))
    if len(ordered) > TEAM_SIZE:
        logging.warning(
            "Team of %s has %d pokemon, row will not have the expected layout",
            team.player,
            len(ordered),
        )
    for _, combatant in ordered:
        columns.extend(_format_pokemon(combatant))
    for _ in range(TEAM_SIZE - len(ordered)):
        columns.extend([""] * POKEMON_COLUMNS)
    columns.append(team.result.to_report())
    return SEPARATOR.join(columns)


def _to_int(value: str) -> int:
    return int(value) if value.strip().isdigit() else 0


def _to_optional_int(value: str) -> Optional[int]:
    return _to_int(value) if value else None


def parse_team_row(line: str) -> Optional[Team]:
    """Read a row written by format_team_row back into a Team.

    Pokemon are keyed by species since rows do not keep nicknames, and the
    lead is keyed the same way.

    Returns:
        The Team, or None if the row does not have the expected layout
    """
    columns = line.rstrip("\n").split(SEPARATOR)
    if len(columns) != EXPECTED_COLUMNS:
        return None

    team = Team(
        side="",
        player=columns[PLAYER_INDEX],
        archetype=columns[TYPE_INDEX] or None,
        lead=columns[LEAD_INDEX],
        battle_length=_to_optional_int(columns[LENGTH_INDEX]),
        dynamax_species=columns[DYNAMAX_SPECIES_INDEX] or None,
        dynamax_turn=_to_optional_int(columns[DYNAMAX_TURN_INDEX]),
        result=BattleResult.from_report(columns[-1]),
    )
    for slot in range(TEAM_SIZE):
        start = HEADER_COLUMNS + slot * POKEMON_COLUMNS
        fields = columns[start : start + POKEMON_COLUMNS]
        species = fields[0]
        if not species:
            continue
        team.pokemons[species] = Combatant(
            species=species,
            item=fields[1] or None,
            moves=[move for move in fields[2 : 2 + MAX_MOVES] if move],
            kills=_to_int(fields[2 + MAX_MOVES]),
            deaths=_to_int(fields[3 + MAX_MOVES]),
            entrances=_to_int(fields[4 + MAX_MOVES]),
        )
    return team
