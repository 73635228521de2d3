"""Repaints the status block in place on the diagnostic stream."""

import sys
from typing import Callable, Optional, Sequence

from rich.text import Text

from ..formatters.output import OutputFormatter
from .terminal import get_terminal_width

CLEAR_LINE = "\x1b[K"
CURSOR_UP = "\x1b[A"
RESET = "\x1b[0m"


def write_stderr(data: str) -> None:
    sys.stderr.write(data)
    sys.stderr.flush()


class Renderer:
    """Draws lines over the block drawn by the previous paint.

    Not thread-safe: callers hold the dashboard lock, since paint() reads and
    updates prev_lines.
    """

    def __init__(
        self,
        output: OutputFormatter,
        write: Callable[[str], None] = write_stderr,
        get_width: Callable[[], Optional[int]] = get_terminal_width,
    ):
        self.output = output
        self.write = write
        self.get_width = get_width
        self.prev_lines = 0

    def compose_frame(self, lines: Sequence[Text], message: Optional[Text] = None) -> str:
        """Build the escape sequence that erases the old block and draws a new one."""
        width = self.get_width()

        parts: list[str] = []
        for _ in range(1, self.prev_lines):
            parts.append("\r" + CLEAR_LINE + CURSOR_UP)
        parts.append("\r" + CLEAR_LINE)

        if message is not None:
            parts.append(self.output.render(message).replace("\n", "\r\n"))
            parts.append(RESET + CLEAR_LINE + "\n\r")

        for n, line in enumerate(lines):
            if width is not None:
                line = line.copy()
                line.truncate(width, overflow="crop")
            parts.append(self.output.render(line) + RESET + CLEAR_LINE)
            if n + 1 < len(lines):
                parts.append("\r\n")

        return "".join(parts)

    def paint(self, lines: Sequence[Text], message: Optional[Text] = None) -> None:
        """Write one frame in a single call and remember how many lines it has."""
        self.write(self.compose_frame(lines, message))
        self.prev_lines = len(lines)
