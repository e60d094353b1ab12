from typing import Dict, Type

from absl import logging

from replaystats.game.events.battle_event import (
    BattleEndEvent,
    BattleEvent,
    BattleStartEvent,
    BoostEvent,
    CantEvent,
    DamageEvent,
    DetailsChangeEvent,
    DragEvent,
    EndItemEvent,
    FaintEvent,
    HealEvent,
    ItemEvent,
    MoveEvent,
    PlayerEvent,
    PokeEvent,
    StartVolatileEvent,
    StatusEvent,
    SwitchEvent,
    TurnEvent,
    UnboostEvent,
    UnknownEvent,
    ZPowerEvent,
)
from replaystats.game.exceptions import MalformedMessageError


class MessageParser:
    MESSAGE_TYPE_MAP: Dict[str, Type[BattleEvent]] = {
        "turn": TurnEvent,
        "start": BattleStartEvent,
        "win": BattleEndEvent,
        "player": PlayerEvent,
        "poke": PokeEvent,
        "switch": SwitchEvent,
        "drag": DragEvent,
        "detailschange": DetailsChangeEvent,
        "faint": FaintEvent,
        "move": MoveEvent,
        "cant": CantEvent,
        "-damage": DamageEvent,
        "-heal": HealEvent,
        "-status": StatusEvent,
        "-boost": BoostEvent,
        "-unboost": UnboostEvent,
        "-item": ItemEvent,
        "-enditem": EndItemEvent,
        "-start": StartVolatileEvent,
        "-zpower": ZPowerEvent,
    }

    def parse(self, raw_message: str) -> BattleEvent:
        """Parse one protocol line into a typed event.

        Args:
            raw_message: A single "|tag|..." line

        Returns:
            The matching BattleEvent, or UnknownEvent for unhandled tags

        Raises:
            MalformedMessageError: If the tag is known but its fields are not
        """
        parts = raw_message.split("|")
        message_type = parts[1] if len(parts) > 1 else ""

        event_class = self.MESSAGE_TYPE_MAP.get(message_type)
        if event_class:
            try:
                return event_class.parse_raw_message(raw_message)
            except (IndexError, ValueError) as e:
                raise MalformedMessageError(raw_message, str(e) or type(e).__name__) from e

        logging.debug("Unknown message type: %s", message_type)
        return UnknownEvent(raw_message=raw_message, message_type=message_type)
