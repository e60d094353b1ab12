"""Parse many replay logs concurrently, one independent outcome per log."""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable, List, Optional, Tuple

from absl import logging

from replaystats.game.exceptions import ReplayFetchError, ReplayParseError
from replaystats.replay.replay_interpreter import ParsedReplay, ReplayInterpreter

# Supplies the log text for a log id (a file read, an HTTP fetch...).
LogLoader = Callable[[str], str]


@dataclass(frozen=True)
class ParseOutcome:
    """Result of one log in a batch: a replay, an error, or a cancellation."""

    log_id: str
    replay: Optional[ParsedReplay] = None
    error: Optional[str] = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.replay is not None


class BatchParser:
    """Runs a ReplayInterpreter over many logs on a thread pool.

    Logs never share state, so each one is interpreted by its own worker and
    a failing log only produces a failed ParseOutcome. Cancellation takes
    effect between logs: logs already being parsed finish normally.
    """

    def __init__(
        self,
        interpreter: Optional[ReplayInterpreter] = None,
        max_workers: int = 8,
    ) -> None:
        """Initialize the batch parser.

        Args:
            interpreter: Interpreter shared by all workers (stateless)
            max_workers: Maximum number of worker threads
        """
        self._interpreter = interpreter or ReplayInterpreter()
        self._max_workers = max_workers
        self._cancel_event = threading.Event()

    def cancel(self) -> None:
        """Stop starting new logs; logs in progress still complete."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def parse_texts(self, logs: Iterable[Tuple[str, str]]) -> List[ParseOutcome]:
        """Parse logs whose text is already in memory.

        Args:
            logs: (log_id, log_text) pairs; ids do not need to be unique

        Returns:
            One ParseOutcome per pair, in input order
        """
        return self._run([(log_id, partial(str, text)) for log_id, text in logs])

    def parse_all(self, log_ids: List[str], loader: LogLoader) -> List[ParseOutcome]:
        """Load and parse every log, collecting outcomes once all finish.

        Args:
            log_ids: Identifiers handed to the loader (paths, URLs...)
            loader: Callable returning the raw text for a log id

        Returns:
            One ParseOutcome per log id, in input order
        """
        return self._run([(log_id, partial(loader, log_id)) for log_id in log_ids])

    def _run(self, jobs: List[Tuple[str, Callable[[], str]]]) -> List[ParseOutcome]:
        if not jobs:
            return []

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures: List[Future[ParseOutcome]] = [
                executor.submit(self._parse_one, log_id, load) for log_id, load in jobs
            ]
            outcomes = [future.result() for future in futures]

        failed = sum(1 for outcome in outcomes if outcome.error is not None)
        logging.info(
            "Parsed %d/%d logs (%d failed, %d cancelled)",
            sum(1 for outcome in outcomes if outcome.ok),
            len(outcomes),
            failed,
            sum(1 for outcome in outcomes if outcome.cancelled),
        )
        return outcomes

    def _parse_one(self, log_id: str, load: Callable[[], str]) -> ParseOutcome:
        if self._cancel_event.is_set():
            return ParseOutcome(log_id=log_id, cancelled=True)

        try:
            text = load()
            replay = self._interpreter.parse(text)
        except (ReplayParseError, ReplayFetchError, OSError) as e:
            logging.error("Skipping %s: %s", log_id, e)
            return ParseOutcome(log_id=log_id, error=str(e))
        except Exception as e:
            logging.error("Unexpected error parsing %s: %s", log_id, e, exc_info=True)
            return ParseOutcome(log_id=log_id, error=f"{type(e).__name__}: {e}")

        for anomaly in replay.anomalies:
            logging.debug("%s: %s", log_id, anomaly)
        return ParseOutcome(log_id=log_id, replay=replay)
