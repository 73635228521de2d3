"""Single-key commands for the interactive dashboard."""

from typing import TYPE_CHECKING, Callable, Iterable, Optional

from rich.text import Text

from .activity.types import Verbosity
from .display.status_lines import QUIT_BANNER, StatusLineGroup, help_lines

if TYPE_CHECKING:
    from .progress_bar import ProgressBar

NOTHING_REMAINING = "\nNothing left to be built or substituted."

KEY_COMMANDS = {
    "q": "quit",
    "\x03": "quit",
    "l": "toggle_logs",
    "+": "more_verbose",
    "=": "more_verbose",
    "v": "more_verbose",
    "-": "less_verbose",
    "h": "toggle_help",
    "?": "toggle_help",
    "r": "show_remaining",
}


def remaining_message(builds: Iterable[str], substitutions: Iterable[str], bullet: str = "•") -> Text:
    """Format the pending builds and substitutions for the 'r' key."""
    builds = sorted(builds)
    substitutions = sorted(substitutions)
    if not builds and not substitutions:
        return Text(NOTHING_REMAINING, style="bold")

    message = Text()
    if builds:
        message.append(f"\n{len(builds)} derivations remaining to be built:\n", style="bold")
        for path in builds:
            message.append(f"  {bullet} {path}\n")
    if substitutions:
        message.append(f"\n{len(substitutions)} paths remaining to be substituted:\n", style="bold")
        for path in substitutions:
            message.append(f"  {bullet} {path}\n")
    message.rstrip()
    return message


class KeyCommandInterpreter:
    """Maps keystrokes to dashboard commands.

    Each command takes the dashboard lock, mutates state and repaints before
    releasing it. Quitting additionally asks the process to interrupt once
    the lock is released.
    """

    def __init__(self, progress_bar: "ProgressBar"):
        self.progress_bar = progress_bar
        self._handlers: dict[str, Callable[[], None]] = {
            "quit": self.quit,
            "toggle_logs": self.toggle_logs,
            "more_verbose": self.more_verbose,
            "less_verbose": self.less_verbose,
            "toggle_help": self.toggle_help,
            "show_remaining": self.show_remaining,
        }

    def handle_key(self, key: str) -> Optional[str]:
        """Run the command bound to a key.

        Returns:
            The command name, or None if the key is not bound
        """
        command = KEY_COMMANDS.get(key.lower())
        if command is None:
            return None
        self._handlers[command]()
        return command

    def quit(self) -> None:
        bar = self.progress_bar
        with bar.lock:
            bar.state.status_lines.set(StatusLineGroup.QUIT, 0, Text(QUIT_BANNER, style="bold red"))
            bar.draw()
        bar.request_interrupt()

    def toggle_logs(self) -> None:
        bar = self.progress_bar
        with bar.lock:
            enabled = not bar.settings.print_build_logs
            bar.settings.print_build_logs = enabled
            bar.update_status_lines()
            if enabled:
                bar.draw(Text("\nEnabling build logs.", style="bold"))
            else:
                bar.draw(Text("\nDisabling build logs.", style="bold"))

    def more_verbose(self) -> None:
        bar = self.progress_bar
        with bar.lock:
            bar.settings.increase_verbosity()
            bar.log_locked(Verbosity.ERROR, "Increasing verbosity...")

    def less_verbose(self) -> None:
        bar = self.progress_bar
        with bar.lock:
            bar.settings.decrease_verbosity()
            bar.log_locked(Verbosity.ERROR, "Decreasing verbosity...")

    def toggle_help(self) -> None:
        bar = self.progress_bar
        with bar.lock:
            bar.state.help_shown = not bar.state.help_shown
            bar.state.status_lines.replace_group(
                StatusLineGroup.HELP, help_lines(bar.state.help_shown)
            )
            bar.draw()

    def show_remaining(self) -> None:
        bar = self.progress_bar
        with bar.lock:
            builds, substitutions = bar.state.registry.remaining()
            bar.draw(remaining_message(builds, substitutions, bar.output.symbols.Bullet))


