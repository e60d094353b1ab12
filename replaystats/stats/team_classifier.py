"""Classify a team into a monotype archetype from per-type species lists."""

import json
from pathlib import Path
from typing import AbstractSet, Dict, Iterable, Mapping, Sequence

from absl import logging

from replaystats.game.schema.team import Team

TYPES: Sequence[str] = (
    "bug",
    "dark",
    "dragon",
    "electric",
    "fairy",
    "fighting",
    "fire",
    "flying",
    "ghost",
    "grass",
    "ground",
    "ice",
    "normal",
    "poison",
    "psychic",
    "rock",
    "steel",
    "water",
)

UNKNOWN_TYPE = "Unknown"

# Silvally's type follows its Memory, so it fits every monotype team.
WILDCARD_PREFIXES = ("Silvally-",)


class TypeClassifier:
    """Finds the single type shared by every Pokemon of a team."""

    def __init__(self, type_lists: Mapping[str, Iterable[str]]) -> None:
        """Initialize the classifier.

        Args:
            type_lists: Type name -> species having that type. Types are
                tried in TYPES order, then any extra type in mapping order.
        """
        ordered = [t for t in TYPES if t in type_lists]
        ordered += [t for t in type_lists if t not in ordered]
        self._species_by_type: Dict[str, AbstractSet[str]] = {
            t: frozenset(type_lists[t]) for t in ordered
        }

    @classmethod
    def from_directory(cls, directory: str) -> "TypeClassifier":
        """Load "<type>.json" files shaped like {"data": [species, ...]}.

        Raises:
            OSError: If a type file cannot be read
            ValueError: If a type file is not valid JSON
        """
        type_lists = {}
        for type_name in TYPES:
            path = Path(directory) / f"{type_name}.json"
            with open(path, "r") as f:
                type_lists[type_name] = json.load(f).get("data", [])
        return cls(type_lists)

    def classify(self, team: Team) -> str:
        """Return the first type containing every species of the team.

        Returns:
            Type name, or "Unknown" when no type fits
        """
        species = [p.species for p in team.pokemons.values()]
        if not species:
            return UNKNOWN_TYPE
        for type_name, members in self._species_by_type.items():
            if all(s in members or s.startswith(WILDCARD_PREFIXES) for s in species):
                return type_name

        logging.warning("No type found for team: %s", ", ".join(sorted(species)))
        return UNKNOWN_TYPE

    def assign(self, team: Team) -> str:
        team.archetype = self.classify(team)
        return team.archetype
