"""Bounded, deduplicated move lists for combatants."""

from enum import Enum
from typing import AbstractSet, Optional, Tuple

from absl import logging

from replaystats.game.schema.team import MAX_MOVES, Combatant

# Effects that make a Pokemon use a move it does not know.
BORROWED_MOVE_SOURCES: AbstractSet[str] = frozenset(
    {
        "Magic Bounce",
        "Metronome",
        "Assist",
        "Snatch",
        "Magic Coat",
        "Nature Power",
        "Me First",
        "Copycat",
    }
)

FALLBACK_MOVES: AbstractSet[str] = frozenset({"Struggle"})

# Prefixes of moves that only exist while Dynamaxed.
MAX_MOVE_PREFIXES: Tuple[str, ...] = ("Max ", "G-Max ")

Z_MOVE_PREFIX = "Z-"

# Species whose moves are copied from its target.
TRANSFORMER_SPECIES = "Ditto"


class MoveOutcome(Enum):
    RECORDED = "recorded"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    FULL = "full"


class MoveLedger:
    """Records the moves each combatant is seen using."""

    def __init__(
        self,
        borrowed_sources: Optional[AbstractSet[str]] = None,
        transformer_species: str = TRANSFORMER_SPECIES,
    ) -> None:
        self._borrowed_sources = (
            BORROWED_MOVE_SOURCES if borrowed_sources is None else borrowed_sources
        )
        self._transformer_species = transformer_species

    def is_borrowed(self, source: Optional[str]) -> bool:
        """Check if a [from] annotation means the move is not the user's own.

        Examples:
            >>> MoveLedger().is_borrowed("Copycat")
            True
            >>> MoveLedger().is_borrowed("move: Metronome")
            True
            >>> MoveLedger().is_borrowed(None)
            False
        """
        if not source:
            return False
        if source.startswith("move: "):
            source = source[len("move: ") :]
        elif source.startswith("ability: "):
            source = source[len("ability: ") :]
        return source.strip() in self._borrowed_sources

    @staticmethod
    def normalize(move: str) -> str:
        """Strip the Z- prefix so "Z-Swords Dance" counts as Swords Dance."""
        if move.startswith(Z_MOVE_PREFIX):
            return move[len(Z_MOVE_PREFIX) :]
        return move

    def record(self, combatant: Combatant, move: str) -> MoveOutcome:
        """Add a move to the combatant's move list.

        Args:
            combatant: Pokemon that used the move
            move: Move name as written in the log

        Returns:
            What happened to the move; only FULL is worth reporting
        """
        move = self.normalize(move).strip()
        if not move or move in FALLBACK_MOVES:
            return MoveOutcome.IGNORED
        if move.startswith(MAX_MOVE_PREFIXES):
            return MoveOutcome.IGNORED
        if combatant.species == self._transformer_species:
            return MoveOutcome.IGNORED
        if move in combatant.moves:
            return MoveOutcome.DUPLICATE
        if len(combatant.moves) >= MAX_MOVES:
            logging.warning(
                "Cannot add %s to %s: already knows %s",
                move,
                combatant.species,
                ", ".join(combatant.moves),
            )
            return MoveOutcome.FULL

        combatant.moves.append(move)
        return MoveOutcome.RECORDED
