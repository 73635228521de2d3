"""Line-per-event logger for non-interactive output.

Used with --simple-log, or wherever a live dashboard makes no sense.
Prints messages and activity starts through OutputFormatter; no state
beyond the settings is kept.
"""

from typing import Optional, Sequence

from rich.text import Text

from .activity.fields import get_string
from .activity.types import ROOT_ACTIVITY, ActivityId, ActivityKind, Field, ResultKind, Verbosity
from .formatters import OutputFormatter
from .logger import Logger
from .settings import ProgressBarSettings


class SimpleLogger(Logger):
    """Prints one line per message; build log lines only when streaming is on."""

    def __init__(
        self,
        output: Optional[OutputFormatter] = None,
        settings: Optional[ProgressBarSettings] = None,
    ):
        """Initialize the simple logger.

        Args:
            output: OutputFormatter for printing (defaults to stderr)
            settings: Verbosity and build-log streaming flags
        """
        self._output = output or OutputFormatter()
        self.settings = settings or ProgressBarSettings()

    def _print(self, level: Verbosity, text: Text) -> None:
        if level > self.settings.verbosity:
            return
        self._output.print(text)

    def log(self, level: Verbosity, message: str) -> None:
        self._print(level, Text.from_ansi(message))

    def start_activity(
        self,
        act_id: ActivityId,
        level: Verbosity,
        kind: ActivityKind,
        text: str,
        fields: Sequence[Field] = (),
        parent: ActivityId = ROOT_ACTIVITY,
    ) -> None:
        if text and kind != ActivityKind.BUILD_WAITING:
            self._print(level, Text(text + "..."))

    def stop_activity(self, act_id: ActivityId) -> None:
        pass

    def result(self, act_id: ActivityId, result_kind: ResultKind, fields: Sequence[Field] = ()) -> None:
        if not self.settings.print_build_logs:
            return

        if result_kind == ResultKind.BUILD_LOG_LINE:
            line = get_string(fields, 0).rstrip()
            if line:
                self._print(Verbosity.ERROR, Text.from_ansi(line))
        elif result_kind == ResultKind.POST_BUILD_LOG_LINE:
            line = get_string(fields, 0).rstrip()
            if line:
                message = Text("post-build-hook: ", style="dim")
                message.append_text(Text.from_ansi(line))
                self._print(Verbosity.ERROR, message)

    def is_verbose(self) -> bool:
        return self.settings.print_build_logs

    def stop(self) -> None:
        pass
