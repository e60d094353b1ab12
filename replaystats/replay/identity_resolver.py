"""Maps nicknames seen in a replay to persistent combatant records."""

from typing import AbstractSet, List, Optional, Tuple

from absl import logging

from replaystats.game.schema.species_normalizer import same_species_root
from replaystats.game.schema.team import Combatant, Team

# Species whose forms may appear as separate Pokemon on one team. They are
# only merged into records that have not been on the field yet.
MERGE_EXCLUDED_SPECIES: AbstractSet[str] = frozenset({"Silvally", "Gourgeist", "Pumpkaboo"})


class IdentityResolver:
    """Keeps one Combatant per real Pokemon while nicknames change.

    Team preview announces species ("Landorus-Therian") but switches use
    nicknames ("Lando"). When a nickname shows up for the first time the
    resolver looks for the record of the same species family and re-keys it
    instead of creating a duplicate.
    """

    def __init__(self, excluded_species: Optional[AbstractSet[str]] = None) -> None:
        """Initialize the resolver.

        Args:
            excluded_species: Species roots never merged into a record that
                already entered the field. Defaults to MERGE_EXCLUDED_SPECIES.
        """
        self._excluded_species = (
            MERGE_EXCLUDED_SPECIES if excluded_species is None else excluded_species
        )

    def resolve(self, team: Team, nickname: str, species: str) -> Combatant:
        """Find or create the Combatant for a nickname and observed species.

        Args:
            team: Team the Pokemon belongs to
            nickname: Nickname used in the log
            species: Canonical species observed with the nickname

        Returns:
            The Combatant now keyed by nickname
        """
        existing = team.pokemons.get(nickname)
        if existing is not None:
            return existing

        candidates = self._candidates(team, nickname, species)
        exact = [(key, c) for key, c in candidates if c.species == species]
        if exact:
            candidates = exact
        if len(candidates) > 1:
            unclaimed = [(key, c) for key, c in candidates if not c.has_entered()]
            if unclaimed:
                candidates = unclaimed

        if len(candidates) == 1:
            old_key, combatant = candidates[0]
            self._rekey(team, old_key, nickname)
            combatant.species = species
            return combatant

        if candidates:
            logging.warning(
                "Ambiguous identity for %s (%s) on %s: %s",
                nickname,
                species,
                team.side,
                ", ".join(key for key, _ in candidates),
            )

        combatant = Combatant(species=species)
        team.pokemons[nickname] = combatant
        return combatant

    def announce(self, team: Team, species: str) -> Combatant:
        """Register a team preview entry, keyed by its species.

        Preview entries are never merged with each other: "Nidoran-F" and
        "Nidoran-M" on one team stay two records.
        """
        existing = team.pokemons.get(species)
        if existing is not None:
            return existing
        combatant = Combatant(species=species)
        team.pokemons[species] = combatant
        return combatant

    def lookup(
        self, team: Team, nickname: str, species: Optional[str] = None
    ) -> Tuple[Combatant, bool]:
        """Fetch the Combatant for a nickname, synthesizing one if unknown.

        Args:
            team: Team the Pokemon belongs to
            nickname: Nickname used in the log
            species: Species to give a synthesized record, defaults to nickname

        Returns:
            Tuple of (combatant, created) where created tells the caller the
            nickname had never been introduced
        """
        existing = team.pokemons.get(nickname)
        if existing is not None:
            return existing, False
        combatant = Combatant(species=species or nickname)
        team.pokemons[nickname] = combatant
        return combatant, True

    def _candidates(
        self, team: Team, nickname: str, species: str
    ) -> List[Tuple[str, Combatant]]:
        excluded = any(same_species_root(species, name) for name in self._excluded_species)
        candidates = []
        for key, combatant in team.pokemons.items():
            if key == nickname or not same_species_root(combatant.species, species):
                continue
            if excluded and combatant.has_entered():
                continue
            candidates.append((key, combatant))
        return candidates

    @staticmethod
    def _rekey(team: Team, old_key: str, new_key: str) -> None:
        """Move a record to a new nickname in a single step."""
        team.pokemons[new_key] = team.pokemons.pop(old_key)
