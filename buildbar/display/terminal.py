"""Terminal handling: interactivity detection, width query and raw mode."""

import os
import sys
from typing import Any, Optional

from ..errors import TerminalModeError

# Cross-platform terminal handling
IS_WINDOWS = sys.platform == "win32"

if not IS_WINDOWS:
    import termios
    import tty


def is_terminal(stream: Any) -> bool:
    """Check whether a stream is attached to a terminal."""
    try:
        return stream is not None and stream.isatty()
    except (AttributeError, ValueError):
        return False


def is_interactive() -> bool:
    """Check whether the dashboard can take over the terminal.

    All three standard streams must be terminals and TERM must name
    something other than a dumb terminal.
    """
    return (
        is_terminal(sys.stdin)
        and is_terminal(sys.stdout)
        and is_terminal(sys.stderr)
        and os.environ.get("TERM", "dumb") != "dumb"
    )


def can_draw() -> bool:
    """Check whether stderr can host the dashboard, whatever stdin is."""
    return is_terminal(sys.stderr) and os.environ.get("TERM", "dumb") != "dumb"


def supports_key_input() -> bool:
    """Raw single-byte keyboard input needs termios and select on file descriptors."""
    return not IS_WINDOWS


def get_terminal_width() -> Optional[int]:
    """Get the width of the terminal behind stderr, or None if unknown."""
    try:
        columns = os.get_terminal_size(sys.stderr.fileno()).columns
    except (OSError, ValueError, AttributeError):
        return None
    return columns if columns > 0 else None


class RawTerminal:
    """Puts stdin into raw mode and restores the saved attributes afterwards."""

    def __init__(self, fd: Optional[int] = None):
        self._fd = fd
        self._saved: Optional[list[Any]] = None

    def enter(self) -> None:
        """Switch stdin to raw mode.

        Raises:
            TerminalModeError: If the attributes can't be read or set
        """
        try:
            fd = sys.stdin.fileno() if self._fd is None else self._fd
            self._fd = fd
            saved = termios.tcgetattr(fd)
        except (termios.error, OSError, ValueError) as e:
            raise TerminalModeError("getting terminal attributes") from e
        try:
            tty.setraw(fd, termios.TCSANOW)
        except (termios.error, OSError) as e:
            raise TerminalModeError("putting terminal into raw mode") from e
        self._saved = saved

    def restore(self) -> None:
        """Restore the attributes saved by enter(); a no-op if not raw.

        Raises:
            TerminalModeError: If the attributes can't be restored
        """
        if self._saved is None:
            return
        saved, self._saved = self._saved, None
        try:
            termios.tcsetattr(self._fd, termios.TCSANOW, saved)
        except (termios.error, OSError) as e:
            raise TerminalModeError("restoring terminal attributes") from e
