from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional

from .errors import ExportError
from .models import ScoredItem
from .ranking import DEFAULT_TOP_K, parse_threshold, rank, top
from .storage import ExportBase

logger = logging.getLogger(__name__)

DEFAULT_DESTINATION = "results.csv"


class SessionState(Enum):
    AWAIT_THRESHOLD = "await_threshold"
    SHOW_RANKED = "show_ranked"
    AWAIT_ACTION = "await_action"
    EXPORTED = "exported"
    QUIT = "quit"


TERMINAL_STATES = frozenset({SessionState.EXPORTED, SessionState.QUIT})


class RankingSession:
    """Interactive threshold/ranking loop over a fixed set of scored items.

    All input comes from read() and all output goes to write(text), so the
    loop runs the same against a terminal or a scripted list of answers.
    Transitions:

        AWAIT_THRESHOLD --valid number--> SHOW_RANKED
        SHOW_RANKED ------------------> AWAIT_ACTION
        AWAIT_ACTION --"s"-------------> EXPORTED
        AWAIT_ACTION --"x", "y"--------> QUIT
        AWAIT_ACTION --"x", other------> SHOW_RANKED
        AWAIT_ACTION --anything else---> AWAIT_THRESHOLD (answer reused)

    Running out of input ends the session in QUIT.
    """

    def __init__(
        self,
        items: Iterable[ScoredItem],
        max_threshold: int,
        exporter: ExportBase,
        read: Callable[[], str],
        write: Callable[[str], None],
        top_k: int = DEFAULT_TOP_K,
        default_destination: str = DEFAULT_DESTINATION,
    ) -> None:
        self._items: List[ScoredItem] = list(items)
        self._max_threshold = max(1, max_threshold)
        self._exporter = exporter
        self._read = read
        self._write = write
        self._top_k = top_k
        self._default_destination = default_destination

        self.state = SessionState.AWAIT_THRESHOLD
        self.threshold: Optional[int] = None
        self.ranked: List[ScoredItem] = []
        self.destination: Optional[str] = None
        self.export_error: Optional[ExportError] = None
        self._pending: Optional[str] = None

    def run(self) -> SessionState:
        while self.state not in TERMINAL_STATES:
            self.step()
        return self.state

    def step(self) -> SessionState:
        handlers = {
            SessionState.AWAIT_THRESHOLD: self._await_threshold,
            SessionState.SHOW_RANKED: self._show_ranked,
            SessionState.AWAIT_ACTION: self._await_action,
        }
        handler = handlers.get(self.state)
        if handler is None:
            return self.state
        try:
            self.state = handler()
        except EOFError:
            self.state = SessionState.QUIT
        return self.state

    def _await_threshold(self) -> SessionState:
        if self._pending is not None:
            text, self._pending = self._pending, None
        else:
            self._write(
                "Minimum number of ratings per item? (You can change this later)\n"
                f"Enter a number between 1 and {self._max_threshold}."
            )
            text = self._read()
        threshold = parse_threshold(text, self._max_threshold)
        if threshold is None:
            self._write(f"Please enter a whole number between 1 and {self._max_threshold}.")
            return SessionState.AWAIT_THRESHOLD
        self.threshold = threshold
        return SessionState.SHOW_RANKED

    def _show_ranked(self) -> SessionState:
        self.ranked = rank(self._items, self.threshold or 1)
        shown = top(self.ranked, self._top_k)
        lines = [
            "",
            f"{len(self.ranked)} items have at least {self.threshold} rating(s)",
            f"Here are the top {len(shown)} item(s), sorted by score and number of ratings.",
            "",
            "Score\tCount\tTitle, Individual ratings",
        ]
        for item in shown:
            lines.append(f"{item.score:.2f}\t{item.observation_count}\t{item.display_name}, {list(item.ratings)}")
        lines.extend(
            [
                "",
                "If you want to change the rating number, enter a new number.",
                'If you want to save the complete results write "s", to end without saving write "x".',
            ]
        )
        self._write("\n".join(lines))
        return SessionState.AWAIT_ACTION

    def _await_action(self) -> SessionState:
        answer = self._read().strip()
        if answer == "s":
            return self._export()
        if answer == "x":
            self._write("Are you sure you want to end without saving (y/n)?")
            if self._read().strip() == "y":
                self._write("END")
                return SessionState.QUIT
            return SessionState.SHOW_RANKED
        self._pending = answer
        return SessionState.AWAIT_THRESHOLD

    def _export(self) -> SessionState:
        self._write(f'Enter a file name to save to, or press Enter for "{self._default_destination}".')
        destination = self._read().strip() or self._default_destination
        self.destination = destination
        try:
            self._exporter.write(self.ranked, self.threshold or 1, destination)
        except ExportError as exc:
            self.export_error = exc
            logger.error("Export to %s failed: %s", destination, exc)
            self._write(f"Error creating file: {exc}")
        else:
            self._write(f"List is saved to {destination}")
        return SessionState.EXPORTED
