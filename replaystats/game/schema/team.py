"""Team and combatant records reconstructed from a replay."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from replaystats.game.schema.enums import BattleResult

MAX_MOVES = 4


@dataclass
class Combatant:
    """One Pokemon of a team, accumulated over the whole battle.

    Unlike the frozen snapshots used elsewhere, a Combatant is updated in
    place as events are interpreted. The nickname is not stored here: it is
    the key of the Team.pokemons mapping and can change during the battle.
    """

    species: str
    moves: List[str] = field(default_factory=list)
    item: Optional[str] = None
    kills: int = 0
    deaths: int = 0
    entrances: int = 0

    def has_entered(self) -> bool:
        """Check if this Pokemon has been on the field at least once."""
        return self.entrances > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert combatant to dictionary for JSON serialization."""
        return {
            "species": self.species,
            "moves": list(self.moves),
            "item": self.item,
            "kills": self.kills,
            "deaths": self.deaths,
            "entrances": self.entrances,
        }


@dataclass
class Team:
    """One side of a parsed battle.

    pokemons maps the current nickname to its Combatant. Nicknames are unique
    at any instant but a Combatant may be re-keyed when its real identity is
    revealed (see IdentityResolver).
    """

    side: str
    pokemons: Dict[str, Combatant] = field(default_factory=dict)
    lead: str = ""
    result: BattleResult = BattleResult.UNRESOLVED
    player: str = ""
    archetype: Optional[str] = None
    dynamax_species: Optional[str] = None
    dynamax_turn: Optional[int] = None
    battle_length: Optional[int] = None

    def lead_species(self) -> str:
        """Species of the lead, falling back to its nickname when unknown."""
        lead = self.pokemons.get(self.lead)
        if lead is None:
            return self.lead
        return lead.species

    def species(self) -> List[str]:
        """Sorted canonical species of every known combatant."""
        return sorted(p.species for p in self.pokemons.values())

    def to_dict(self) -> Dict[str, Any]:
        """Convert Team to dictionary for JSON serialization.

        Returns:
            Dictionary representation of the team
        """
        return {
            "side": self.side,
            "player": self.player,
            "result": self.result.value,
            "archetype": self.archetype,
            "lead": self.lead,
            "lead_species": self.lead_species(),
            "dynamax_species": self.dynamax_species,
            "dynamax_turn": self.dynamax_turn,
            "battle_length": self.battle_length,
            "pokemons": {
                nickname: pokemon.to_dict()
                for nickname, pokemon in self.pokemons.items()
            },
        }

    def __str__(self) -> str:
        """Return JSON representation of the team."""
        return json.dumps(self.to_dict(), indent=2, sort_keys=True)
