"""Output utilities for the diagnostic stream with Rich console support."""

from typing import Optional, TextIO, Union

from rich.console import Console
from rich.text import Text

from .symbols import SymbolsFormatter


class OutputFormatter:
    """Handles styled output to stderr through a Rich console.

    Styles are only emitted when the console talks to a terminal, so the same
    Text objects produce plain text when stderr is redirected.
    """

    def __init__(
        self,
        no_color: bool = False,
        force_terminal: Optional[bool] = None,
        file: Optional[TextIO] = None,
    ):
        """Initialize output formatter.

        Args:
            no_color: If True, disable all colors and styling
            force_terminal: Override terminal detection (None auto-detects)
            file: Stream to write to (defaults to the current sys.stderr)
        """
        self._no_color = no_color
        self._console = Console(
            file=file,
            stderr=file is None,
            no_color=no_color,
            force_terminal=force_terminal,
            highlight=False,
        )
        self._symbols = SymbolsFormatter(no_color=no_color)

    @property
    def console(self) -> Console:
        """Get the underlying Rich console."""
        return self._console

    @property
    def symbols(self) -> SymbolsFormatter:
        """Get the symbols formatter for unicode/ASCII glyph access."""
        return self._symbols

    @property
    def no_color(self) -> bool:
        """Check if colors are disabled."""
        return self._no_color

    def print(self, message: Union[str, Text]) -> None:
        """Print message followed by a newline.

        Args:
            message: Message to print (markup string or Rich Text)
        """
        self._console.print(message, highlight=False, soft_wrap=True)

    def render(self, text: Text) -> str:
        """Render Text to a string with ANSI styles, without printing it.

        No wrapping or cropping is applied; callers truncate beforehand.
        """
        with self._console.capture() as capture:
            self._console.print(text, end="", highlight=False, soft_wrap=True)
        return capture.get()
