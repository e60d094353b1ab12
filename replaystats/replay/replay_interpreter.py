"""Single-pass interpreter that rebuilds both teams from a replay log."""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple, Type

from absl import logging

from replaystats.game.events.battle_event import (
    PLAYER_IDS,
    BattleEndEvent,
    BattleEvent,
    BattleStartEvent,
    BoostEvent,
    CantEvent,
    DamageEvent,
    DetailsChangeEvent,
    DragEvent,
    EffectEvent,
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
from replaystats.game.exceptions import MalformedMessageError, ReplayParseError
from replaystats.game.protocol.log_cursor import LogCursor
from replaystats.game.protocol.message_parser import MessageParser
from replaystats.game.schema.enums import BattleResult
from replaystats.game.schema.species_normalizer import canonicalize_species
from replaystats.game.schema.team import Combatant, Team
from replaystats.replay.identity_resolver import IdentityResolver
from replaystats.replay.move_ledger import MoveLedger, MoveOutcome

# Number of switch lines following "|start" that carry the two leads.
LEAD_LINES = 2

BATTLE_BOND_GRENINJA = "Greninja-Ash"


def opponent_of(player_id: str) -> str:
    return "p2" if player_id == "p1" else "p1"


@dataclass(frozen=True)
class Anomaly:
    """A line that could not be fully applied to the battle state."""

    line_number: int
    line: str
    reason: str

    def __str__(self) -> str:
        return f"line {self.line_number}: {self.reason} ({self.line})"


@dataclass(frozen=True)
class ParsedReplay:
    """Both teams of one replay plus whatever went wrong along the way."""

    teams: Dict[str, Team]
    anomalies: List[Anomaly] = field(default_factory=list)
    resolved: bool = False
    turn_count: int = 0

    def winner(self) -> Optional[Team]:
        for team in self.teams.values():
            if team.result is BattleResult.WIN:
                return team
        return None


class ReplayInterpreter:
    """Reads a replay log top to bottom and returns both teams.

    The interpreter itself holds no per-log state, so one instance can parse
    any number of logs, including from several threads at once.
    """

    def __init__(
        self,
        parser: Optional[MessageParser] = None,
        resolver: Optional[IdentityResolver] = None,
        ledger: Optional[MoveLedger] = None,
    ) -> None:
        """Initialize the interpreter.

        Args:
            parser: MessageParser to decode lines (creates new one if None)
            resolver: IdentityResolver for nickname tracking
            ledger: MoveLedger for move recording
        """
        self._parser = parser or MessageParser()
        self._resolver = resolver or IdentityResolver()
        self._ledger = ledger or MoveLedger()

    def parse(self, log_text: str) -> ParsedReplay:
        """Interpret a whole replay log.

        Args:
            log_text: Raw log, one protocol message per line

        Returns:
            ParsedReplay with the p1 and p2 teams

        Raises:
            ReplayParseError: If the log is empty or holds no battle events
        """
        if not log_text or not log_text.strip():
            raise ReplayParseError("empty log")

        run = _ReplayRun(self._parser, self._resolver, self._ledger)
        return run.interpret(LogCursor.from_text(log_text))


class _ReplayRun:
    """State of one log being interpreted."""

    def __init__(
        self, parser: MessageParser, resolver: IdentityResolver, ledger: MoveLedger
    ) -> None:
        self._parser = parser
        self._resolver = resolver
        self._ledger = ledger

        self._teams: Dict[str, Team] = {side: Team(side=side) for side in PLAYER_IDS}
        self._anomalies: List[Anomaly] = []
        self._sides_by_player: Dict[str, str] = {}
        self._current: Dict[str, str] = {}
        self._protean: Set[Tuple[str, str]] = set()
        self._used_move: Set[Tuple[str, str]] = set()
        self._turn = 0
        self._resolved = False
        self._known_events = 0
        self._cursor = LogCursor([])

        self._handlers: Dict[Type[BattleEvent], Callable] = {
            TurnEvent: self._on_turn,
            PlayerEvent: self._on_player,
            PokeEvent: self._on_poke,
            BattleStartEvent: self._on_start,
            BattleEndEvent: self._on_win,
            SwitchEvent: self._enter_field,
            DragEvent: self._enter_field,
            FaintEvent: self._on_faint,
            DetailsChangeEvent: self._on_details_change,
            MoveEvent: self._on_move,
            CantEvent: self._on_cant,
            DamageEvent: self._on_effect,
            HealEvent: self._on_effect,
            StatusEvent: self._on_effect,
            BoostEvent: self._on_effect,
            UnboostEvent: self._on_effect,
            ItemEvent: self._on_item,
            EndItemEvent: self._on_item,
            StartVolatileEvent: self._on_start_volatile,
            ZPowerEvent: self._on_zpower,
        }

    def interpret(self, cursor: LogCursor) -> ParsedReplay:
        self._cursor = cursor
        for line in cursor:
            if not line.startswith("|"):
                continue
            event = self._parse_line(line)
            if event is None or isinstance(event, UnknownEvent):
                continue

            self._known_events += 1
            handler = self._handlers.get(type(event))
            if handler is not None:
                handler(event)
            if self._resolved:
                break

        if self._known_events == 0:
            raise ReplayParseError("no battle events found")

        self._finalize()
        return ParsedReplay(
            teams=self._teams,
            anomalies=list(self._anomalies),
            resolved=self._resolved,
            turn_count=self._turn,
        )

    def _parse_line(self, line: str) -> Optional[BattleEvent]:
        try:
            return self._parser.parse(line)
        except MalformedMessageError as e:
            self._report(e.reason)
            return None

    def _report(self, reason: str) -> None:
        anomaly = Anomaly(
            line_number=self._cursor.line_number,
            line=self._cursor.current or "",
            reason=reason,
        )
        logging.warning("Replay anomaly at %s", anomaly)
        self._anomalies.append(anomaly)

    def _combatant(
        self, player_id: str, nickname: str, species: Optional[str] = None
    ) -> Combatant:
        combatant, created = self._resolver.lookup(
            self._teams[player_id], nickname, species
        )
        if created:
            self._report(f"unknown pokemon {nickname!r} for {player_id}")
        return combatant

    def _on_turn(self, event: TurnEvent) -> None:
        self._turn += 1

    def _on_player(self, event: PlayerEvent) -> None:
        team = self._teams[event.player_id]
        if not event.username or team.player:
            return
        team.player = event.username
        self._sides_by_player[event.username] = event.player_id

    def _on_poke(self, event: PokeEvent) -> None:
        species = canonicalize_species(event.species)
        self._resolver.announce(self._teams[event.player_id], species)

    def _on_start(self, event: BattleStartEvent) -> None:
        if event.is_dynamax and event.player_id and event.pokemon_name:
            self._set_dynamax(event.player_id, event.pokemon_name)
            return

        for _ in range(LEAD_LINES):
            line = self._cursor.peek()
            if line is None or not line.startswith(("|switch|", "|drag|")):
                self._report("battle start is not followed by the lead switches")
                return
            self._cursor.advance()
            lead = self._parse_line(line)
            if isinstance(lead, SwitchEvent):
                self._enter_field(lead)

    def _enter_field(self, event: SwitchEvent) -> None:
        team = self._teams[event.player_id]
        species = canonicalize_species(event.species)
        combatant = self._resolver.resolve(team, event.pokemon_name, species)
        combatant.entrances += 1
        self._current[event.player_id] = event.pokemon_name
        if not team.lead:
            team.lead = event.pokemon_name

    def _set_dynamax(self, player_id: str, nickname: str) -> None:
        team = self._teams[player_id]
        combatant = team.pokemons.get(nickname)
        if combatant is None:
            self._report(f"dynamax of unknown pokemon {nickname!r}")
        team.dynamax_species = combatant.species if combatant else nickname
        team.dynamax_turn = self._turn

    def _on_start_volatile(self, event: StartVolatileEvent) -> None:
        if event.is_dynamax:
            self._set_dynamax(event.player_id, event.pokemon_name)
        elif event.is_protean:
            self._protean.add((event.player_id, event.pokemon_name))

    def _on_effect(self, event: EffectEvent) -> None:
        item = event.item
        if item is None:
            return
        # "[of]" names the holder, e.g. Rocky Helmet damaging the attacker.
        if event.source_player_id and event.source_pokemon:
            holder = self._combatant(event.source_player_id, event.source_pokemon)
        else:
            holder = self._combatant(event.player_id, event.pokemon_name)
        holder.item = item

    def _on_item(self, event: ItemEvent) -> None:
        self._combatant(event.player_id, event.pokemon_name).item = event.item

    def _on_win(self, event: BattleEndEvent) -> None:
        for team in self._teams.values():
            team.battle_length = self._turn
        self._resolved = True

        side = self._side_of_player(event.winner)
        if side is None:
            self._report(f"winner {event.winner!r} is not a known player")
            return
        self._teams[side].result = BattleResult.WIN
        self._teams[opponent_of(side)].result = BattleResult.LOSS

    def _side_of_player(self, name: str) -> Optional[str]:
        if name in self._sides_by_player:
            return self._sides_by_player[name]
        for player, side in self._sides_by_player.items():
            if player.lower() == name.lower():
                return side
        return None

    def _on_faint(self, event: FaintEvent) -> None:
        fainted = self._combatant(event.player_id, event.pokemon_name)
        if fainted.deaths >= 1:
            self._report(f"{event.pokemon_name!r} fainted twice")
            return
        fainted.deaths = 1

        opponent = opponent_of(event.player_id)
        killer = self._current.get(opponent)
        if killer is None:
            self._report("no opposing pokemon on the field to credit the kill")
            return
        self._combatant(opponent, killer).kills += 1

    def _on_details_change(self, event: DetailsChangeEvent) -> None:
        species = canonicalize_species(event.species)
        self._combatant(event.player_id, event.pokemon_name, species).species = species

    def _on_move(self, event: MoveEvent) -> None:
        self._used_move.add((event.player_id, event.pokemon_name))
        if event.zeffect or self._ledger.is_borrowed(event.source):
            return
        self._record_move(event.player_id, event.pokemon_name, event.move_name)

    def _on_cant(self, event: CantEvent) -> None:
        if event.move_name:
            self._record_move(event.player_id, event.pokemon_name, event.move_name)

    def _record_move(self, player_id: str, nickname: str, move: str) -> None:
        combatant = self._combatant(player_id, nickname)
        if self._ledger.record(combatant, move) is MoveOutcome.FULL:
            self._report(f"{nickname!r} already has four moves, dropped {move!r}")

    def _on_zpower(self, event: ZPowerEvent) -> None:
        # The Z-Crystal is only revealed through the move on the next line.
        line = self._cursor.peek()
        if line is None or not line.startswith("|move|"):
            self._report("Z-Power is not followed by a move")
            return
        self._cursor.advance()
        move = self._parse_line(line)
        if isinstance(move, MoveEvent):
            self._used_move.add((move.player_id, move.pokemon_name))
            self._combatant(move.player_id, move.pokemon_name).item = move.move_name

    def _finalize(self) -> None:
        # Battle Bond Greninja is announced as plain Greninja until it
        # transforms; one that attacks without ever showing Protean is Ash.
        for side, team in self._teams.items():
            for nickname, combatant in team.pokemons.items():
                if (
                    combatant.species == "Greninja"
                    and (side, nickname) in self._used_move
                    and (side, nickname) not in self._protean
                ):
                    combatant.species = BATTLE_BOND_GRENINJA
