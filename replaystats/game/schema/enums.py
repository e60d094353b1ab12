"""Enums for battle result representation."""

from enum import Enum


class BattleResult(Enum):
    """Outcome of a battle for one side."""

    WIN = "win"
    LOSS = "loss"
    UNRESOLVED = "unresolved"

    def to_report(self) -> str:
        """Single-letter form used in team report rows.

        Examples:
            >>> BattleResult.WIN.to_report()
            'W'
            >>> BattleResult.UNRESOLVED.to_report()
            ''
        """
        if self is BattleResult.WIN:
            return "W"
        if self is BattleResult.LOSS:
            return "L"
        return ""

    @classmethod
    def from_report(cls, value: str) -> "BattleResult":
        mapping = {"W": cls.WIN, "L": cls.LOSS}
        return mapping.get(value.strip().upper(), cls.UNRESOLVED)
