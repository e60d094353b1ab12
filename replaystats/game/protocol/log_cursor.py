"""Cursor over the lines of a replay log with bounded look-ahead."""

from typing import List, Optional


class LogCursor:
    """Walks replay log lines front to back.

    Handlers that need the neighbouring lines use peek() to inspect them and
    advance() to consume them, so consumed lines are never handled twice.
    Line numbers are 1-based, matching what an editor shows.
    """

    def __init__(self, lines: List[str]) -> None:
        self._lines = lines
        self._index = -1

    @classmethod
    def from_text(cls, text: str) -> "LogCursor":
        return cls([line.rstrip("\r") for line in text.split("\n")])

    def advance(self) -> Optional[str]:
        """Move to the next line and return it, or None past the end."""
        if self._index < len(self._lines):
            self._index += 1
        return self.current

    @property
    def current(self) -> Optional[str]:
        if 0 <= self._index < len(self._lines):
            return self._lines[self._index]
        return None

    @property
    def line_number(self) -> int:
        return self._index + 1

    def peek(self, n: int = 1) -> Optional[str]:
        """Return the line n positions after the current one without moving."""
        position = self._index + n
        if 0 <= position < len(self._lines):
            return self._lines[position]
        return None

    def __iter__(self) -> "LogCursor":
        return self

    def __next__(self) -> str:
        line = self.advance()
        if line is None:
            raise StopIteration
        return line
