from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

PLAYER_IDS = ("p1", "p2")


def split_ident(ident: str) -> Tuple[str, str, str]:
    """Split a Pokemon identifier like "p1a: Lando" into its parts.

    Returns:
        Tuple of (player_id, position, pokemon_name)

    Raises:
        ValueError: If the identifier does not name a side and a Pokemon
    """
    side, sep, pokemon_name = ident.partition(": ")
    player_id = side[:2]
    if not sep or player_id not in PLAYER_IDS or not pokemon_name:
        raise ValueError(f"invalid pokemon identifier {ident!r}")
    return player_id, side[2:], pokemon_name


def split_details(details: str) -> Tuple[str, Optional[str], bool, int]:
    """Split a details string like "Garchomp, L50, F, shiny".

    Returns:
        Tuple of (species, gender, shiny, level)
    """
    details_parts = details.split(", ")
    species = details_parts[0]
    gender = None
    shiny = False
    level = 100

    for detail in details_parts[1:]:
        if detail.upper() in ["M", "F"]:
            gender = detail
        elif detail == "shiny":
            shiny = True
        elif detail.startswith("L") and detail[1:].isdigit():
            level = int(detail[1:])

    if not species:
        raise ValueError(f"missing species in details {details!r}")
    return species, gender, shiny, level


def find_tagged_args(parts: List[str]) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Find the [from] effect and the [of] Pokemon among trailing arguments.

    Returns:
        Tuple of (source, source_player_id, source_pokemon)
    """
    source = None
    source_player_id = None
    source_pokemon = None
    for part in parts:
        if part.startswith("[from]"):
            source = part[6:].strip() or None
        elif part.startswith("[of]"):
            of_ident = part[4:].strip()
            if ": " in of_ident:
                source_player_id, _, source_pokemon = split_ident(of_ident)
    return source, source_player_id, source_pokemon


class BattleEvent(ABC):
    @classmethod
    @abstractmethod
    def parse_raw_message(cls, raw_message: str) -> "BattleEvent":
        pass


@dataclass(frozen=True)
class TurnEvent(BattleEvent):
    raw_message: str
    turn_number: int

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "TurnEvent":
        parts = raw_message.split("|")
        turn_number = int(parts[2])
        return cls(raw_message=raw_message, turn_number=turn_number)


@dataclass(frozen=True)
class BattleStartEvent(BattleEvent):
    """Start of the battle, or the older "|start|p1a: X|Dynamax" shape."""

    raw_message: str
    player_id: Optional[str] = None
    pokemon_name: Optional[str] = None
    condition: Optional[str] = None

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "BattleStartEvent":
        parts = raw_message.split("|")
        if len(parts) > 3 and ": " in parts[2]:
            player_id, _, pokemon_name = split_ident(parts[2])
            return cls(
                raw_message=raw_message,
                player_id=player_id,
                pokemon_name=pokemon_name,
                condition=parts[3],
            )
        return cls(raw_message=raw_message)

    @property
    def is_dynamax(self) -> bool:
        return self.condition == "Dynamax"


@dataclass(frozen=True)
class BattleEndEvent(BattleEvent):
    raw_message: str
    winner: str

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "BattleEndEvent":
        parts = raw_message.split("|")
        winner = parts[2]
        if not winner:
            raise ValueError("missing winner name")
        return cls(raw_message=raw_message, winner=winner)


@dataclass(frozen=True)
class PlayerEvent(BattleEvent):
    raw_message: str
    player_id: str
    username: str
    avatar: str
    rating: Optional[int] = None

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "PlayerEvent":
        parts = raw_message.split("|")
        player_id = parts[2]
        if player_id not in PLAYER_IDS:
            raise ValueError(f"unknown side {player_id!r}")
        username = parts[3] if len(parts) > 3 else ""
        avatar = parts[4] if len(parts) > 4 else ""
        rating = int(parts[5]) if len(parts) > 5 and parts[5].isdigit() else None

        return cls(
            raw_message=raw_message,
            player_id=player_id,
            username=username,
            avatar=avatar,
            rating=rating,
        )


@dataclass(frozen=True)
class PokeEvent(BattleEvent):
    """Team preview reveal: |poke|p1|Species, details|item."""

    raw_message: str
    player_id: str
    species: str
    gender: Optional[str]
    shiny: bool
    item: Optional[str]

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "PokeEvent":
        parts = raw_message.split("|")
        player_id = parts[2]
        if player_id not in PLAYER_IDS:
            raise ValueError(f"unknown side {player_id!r}")

        species, gender, shiny, _ = split_details(parts[3])
        item = parts[4] if len(parts) > 4 and parts[4] else None

        return cls(
            raw_message=raw_message,
            player_id=player_id,
            species=species,
            gender=gender,
            shiny=shiny,
            item=item,
        )


@dataclass(frozen=True)
class SwitchEvent(BattleEvent):
    raw_message: str
    player_id: str
    position: str
    pokemon_name: str
    species: str
    level: int
    gender: Optional[str]
    shiny: bool

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "SwitchEvent":
        parts = raw_message.split("|")
        player_id, position, pokemon_name = split_ident(parts[2])
        species, gender, shiny, level = split_details(parts[3])

        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            pokemon_name=pokemon_name,
            species=species,
            level=level,
            gender=gender,
            shiny=shiny,
        )


@dataclass(frozen=True)
class DragEvent(SwitchEvent):
    """Forced switch (Roar, Whirlwind, Dragon Tail...)."""


@dataclass(frozen=True)
class DetailsChangeEvent(BattleEvent):
    raw_message: str
    player_id: str
    position: str
    pokemon_name: str
    species: str

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "DetailsChangeEvent":
        parts = raw_message.split("|")
        player_id, position, pokemon_name = split_ident(parts[2])
        species, _, _, _ = split_details(parts[3])

        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            pokemon_name=pokemon_name,
            species=species,
        )


@dataclass(frozen=True)
class FaintEvent(BattleEvent):
    raw_message: str
    player_id: str
    position: str
    pokemon_name: str

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "FaintEvent":
        parts = raw_message.split("|")
        player_id, position, pokemon_name = split_ident(parts[2])

        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            pokemon_name=pokemon_name,
        )


@dataclass(frozen=True)
class MoveEvent(BattleEvent):
    raw_message: str
    player_id: str
    position: str
    pokemon_name: str
    move_name: str
    target_player: Optional[str] = None
    target_name: Optional[str] = None
    source: Optional[str] = None
    zeffect: bool = False
    spread: bool = False
    still: bool = False

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "MoveEvent":
        parts = raw_message.split("|")
        player_id, position, pokemon_name = split_ident(parts[2])

        move_name = parts[3]
        if not move_name:
            raise ValueError("missing move name")

        target_player = None
        target_name = None
        if len(parts) > 4 and ": " in parts[4] and not parts[4].startswith("["):
            target_player, _, target_name = split_ident(parts[4])

        source, _, _ = find_tagged_args(parts[4:])
        zeffect = "[zeffect]" in parts[4:]
        spread = any(part.startswith("[spread]") for part in parts[4:])
        still = "[still]" in parts[4:]

        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            pokemon_name=pokemon_name,
            move_name=move_name,
            target_player=target_player,
            target_name=target_name,
            source=source,
            zeffect=zeffect,
            spread=spread,
            still=still,
        )


@dataclass(frozen=True)
class CantEvent(BattleEvent):
    raw_message: str
    player_id: str
    position: str
    pokemon_name: str
    reason: str
    move_name: Optional[str] = None

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "CantEvent":
        parts = raw_message.split("|")
        player_id, position, pokemon_name = split_ident(parts[2])

        reason = parts[3]
        move_name = (
            parts[4]
            if len(parts) > 4 and parts[4] and not parts[4].startswith("[")
            else None
        )

        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            pokemon_name=pokemon_name,
            reason=reason,
            move_name=move_name,
        )


@dataclass(frozen=True)
class EffectEvent(BattleEvent):
    """Common shape of -damage, -heal, -status, -boost and -unboost.

    Only the trailing [from] and [of] annotations are kept: they are what
    reveals held items (Life Orb recoil, Leftovers, Rocky Helmet...).
    """

    raw_message: str
    player_id: str
    position: str
    pokemon_name: str
    source: Optional[str] = None
    source_player_id: Optional[str] = None
    source_pokemon: Optional[str] = None

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "EffectEvent":
        parts = raw_message.split("|")
        player_id, position, pokemon_name = split_ident(parts[2])
        source, source_player_id, source_pokemon = find_tagged_args(parts[3:])

        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            pokemon_name=pokemon_name,
            source=source,
            source_player_id=source_player_id,
            source_pokemon=source_pokemon,
        )

    @property
    def item(self) -> Optional[str]:
        """Item named by a "[from] item: X" annotation, if any."""
        if self.source and self.source.startswith("item: "):
            return self.source[len("item: ") :].strip() or None
        return None


@dataclass(frozen=True)
class DamageEvent(EffectEvent):
    pass


@dataclass(frozen=True)
class HealEvent(EffectEvent):
    pass


@dataclass(frozen=True)
class StatusEvent(EffectEvent):
    pass


@dataclass(frozen=True)
class BoostEvent(EffectEvent):
    pass


@dataclass(frozen=True)
class UnboostEvent(EffectEvent):
    pass


@dataclass(frozen=True)
class ItemEvent(BattleEvent):
    raw_message: str
    player_id: str
    position: str
    pokemon_name: str
    item: str
    source: Optional[str] = None

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "ItemEvent":
        parts = raw_message.split("|")
        player_id, position, pokemon_name = split_ident(parts[2])

        item = parts[3]
        if not item:
            raise ValueError("missing item name")
        source, _, _ = find_tagged_args(parts[4:])

        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            pokemon_name=pokemon_name,
            item=item,
            source=source,
        )


@dataclass(frozen=True)
class EndItemEvent(ItemEvent):
    """Item consumed, destroyed or knocked off."""


@dataclass(frozen=True)
class StartVolatileEvent(BattleEvent):
    raw_message: str
    player_id: str
    position: str
    pokemon_name: str
    condition: str
    source: Optional[str] = None
    silent: bool = False

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "StartVolatileEvent":
        parts = raw_message.split("|")
        player_id, position, pokemon_name = split_ident(parts[2])

        condition = parts[3]
        source, _, _ = find_tagged_args(parts[4:])
        silent = "[silent]" in parts[4:]

        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            pokemon_name=pokemon_name,
            condition=condition,
            source=source,
            silent=silent,
        )

    @property
    def is_dynamax(self) -> bool:
        return self.condition == "Dynamax"

    @property
    def is_protean(self) -> bool:
        """Type change caused by the Protean ability."""
        return (
            self.condition == "typechange"
            and self.source is not None
            and self.source.replace("ability: ", "") == "Protean"
        )


@dataclass(frozen=True)
class ZPowerEvent(BattleEvent):
    """Z-Power activation; the Z-Move itself follows on the next line."""

    raw_message: str
    player_id: str
    position: str
    pokemon_name: str

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "ZPowerEvent":
        parts = raw_message.split("|")
        player_id, position, pokemon_name = split_ident(parts[2])
        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            pokemon_name=pokemon_name,
        )


@dataclass(frozen=True)
class UnknownEvent(BattleEvent):
    raw_message: str
    message_type: Optional[str] = None

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "UnknownEvent":
        parts = raw_message.split("|")
        message_type = parts[1] if len(parts) > 1 else None
        return cls(raw_message=raw_message, message_type=message_type)
