"""Live progress dashboard drawn on stderr.

Three kinds of threads touch the dashboard:
- Producer threads call start_activity / stop_activity / result / log.
- The update thread recomputes the status lines and repaints, waking on
  every mutation and at least once per refresh interval.
- The input thread blocks in select() on stdin and a control pipe and maps
  keystrokes to commands (see input.py).

All shared state sits behind a single RLock; both condition variables are
built on it. Producers never block on terminal I/O of their own: they only
paint while the dashboard is active, under the same lock the update thread
paints with.
"""

import _thread
import os
import sys
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Union

from rich.text import Text

from .activity.fields import get_string
from .activity.registry import ActivityRegistry
from .activity.types import ROOT_ACTIVITY, ActivityId, ActivityKind, Field, ResultKind, Verbosity
from .display.renderer import Renderer, write_stderr
from .display.status_lines import StatusLineComposer, StatusLineGroup, StatusLines, help_lines
from .display.terminal import (
    IS_WINDOWS,
    RawTerminal,
    get_terminal_width,
    is_interactive,
    supports_key_input,
)
from .errors import TerminalModeError
from .formatters.output import OutputFormatter
from .input import KeyCommandInterpreter
from .logger import Logger
from .settings import ProgressBarSettings

if not IS_WINDOWS:
    import select

LOG_LINE_RESULTS = (ResultKind.BUILD_LOG_LINE, ResultKind.POST_BUILD_LOG_LINE)
PENDING_SET_RESULTS = (
    ResultKind.EXPECT_BUILD,
    ResultKind.UNEXPECT_BUILD,
    ResultKind.EXPECT_SUBSTITUTION,
    ResultKind.UNEXPECT_SUBSTITUTION,
)


@dataclass
class DashboardState:
    """Everything guarded by the ProgressBar lock."""
    registry: ActivityRegistry
    status_lines: StatusLines = field(default_factory=StatusLines)
    active: bool = False
    have_update: bool = True
    help_shown: bool = False


class ProgressBar(Logger):
    """Logger that keeps a live, aggregated status block at the bottom of stderr.

    The dashboard is only active when attached to an interactive terminal.
    Inactive instances still track activities and print log messages one
    per line, without escape sequences when stderr is redirected.
    """

    def __init__(
        self,
        is_tty: Optional[bool] = None,
        settings: Optional[ProgressBarSettings] = None,
        no_color: bool = False,
        read_input: bool = True,
        write: Callable[[str], None] = write_stderr,
        interrupt: Callable[[], None] = _thread.interrupt_main,
        clock: Callable[[], float] = time.monotonic,
        get_width: Callable[[], Optional[int]] = get_terminal_width,
    ):
        if is_tty is None:
            is_tty = is_interactive()
        self.is_tty = is_tty
        self.settings = settings or ProgressBarSettings()
        self._clock = clock

        self.output = OutputFormatter(no_color=no_color, force_terminal=is_tty)
        self.composer = StatusLineComposer(self.output.symbols, self.settings.bar_width)
        self.renderer = Renderer(self.output, write=write, get_width=get_width)
        self.interpreter = KeyCommandInterpreter(self)

        # Shared state
        self.state = DashboardState(registry=ActivityRegistry(clock=clock), active=is_tty)

        # Threading
        self.lock = threading.RLock()
        self._update_cv = threading.Condition(self.lock)
        self._quit_cv = threading.Condition(self.lock)
        self._update_thread: Optional[threading.Thread] = None
        self._input_thread: Optional[threading.Thread] = None
        self._started = False

        # Keyboard
        self._read_input = read_input and is_tty and supports_key_input()
        self._terminal = RawTerminal()
        self._input_pipe: Optional[tuple[int, int]] = None
        self._interrupt = interrupt
        self.interrupt_requested = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def active(self) -> bool:
        with self.lock:
            return self.state.active

    def start(self) -> None:
        """Start the update thread and, if enabled, raw keyboard input.

        Raises:
            TerminalModeError: If stdin can't be switched to raw mode
        """
        if self._started:
            return
        self._started = True

        if not self.state.active:
            return

        if self._read_input:
            try:
                self._terminal.enter()
            except TerminalModeError:
                with self.lock:
                    self.state.active = False
                raise

            self._input_pipe = os.pipe()
            self._input_thread = threading.Thread(
                target=self._input_loop, name="buildbar-input", daemon=True
            )
            self._input_thread.start()

            with self.lock:
                self.state.status_lines.replace_group(StatusLineGroup.HELP, help_lines(False))
                self.mark_dirty()

        self._update_thread = threading.Thread(
            target=self._update_loop, name="buildbar-update", daemon=True
        )
        self._update_thread.start()

    def stop(self) -> None:
        """Clear the status block, restore the terminal and join both threads.

        Safe to call more than once.

        Raises:
            TerminalModeError: If the saved terminal attributes can't be restored
        """
        if self._input_thread is not None and self._input_pipe is not None:
            os.write(self._input_pipe[1], b"x")
            self._input_thread.join()
            self._input_thread = None
            for fd in self._input_pipe:
                os.close(fd)
            self._input_pipe = None

        restore_error: Optional[TerminalModeError] = None
        with self.lock:
            if not self.state.active:
                return
            self.state.status_lines.clear()
            self.draw()
            self.state.active = False
            self._update_cv.notify_all()
            self._quit_cv.notify_all()
            try:
                self._terminal.restore()
            except TerminalModeError as e:
                restore_error = e

        if self._update_thread is not None:
            self._update_thread.join()
            self._update_thread = None

        if restore_error is not None:
            raise restore_error

    def request_interrupt(self) -> None:
        """Ask the rest of the process to stop (the user pressed q)."""
        self.interrupt_requested = True
        self._interrupt()

    # =========================================================================
    # Logger Interface Implementation
    # =========================================================================

    def log(self, level: Verbosity, message: str) -> None:
        """Log a message above the status block."""
        with self.lock:
            self.log_locked(level, message)

    def start_activity(
        self,
        act_id: ActivityId,
        level: Verbosity,
        kind: ActivityKind,
        text: str,
        fields: Sequence[Field] = (),
        parent: ActivityId = ROOT_ACTIVITY,
    ) -> None:
        """Open a unit and announce it if its level is within the verbosity."""
        with self.lock:
            if level <= self.settings.verbosity and text and kind != ActivityKind.BUILD_WAITING:
                self.log_locked(level, text + "...")
            self.state.registry.start_unit(act_id, kind, text, parent, fields)
            self.mark_dirty()

    def stop_activity(self, act_id: ActivityId) -> None:
        """Close a unit; unknown ids are ignored."""
        with self.lock:
            self.state.registry.stop_unit(act_id)
            self.mark_dirty()

    def result(self, act_id: ActivityId, result_kind: ResultKind, fields: Sequence[Field] = ()) -> None:
        """Apply a result to an open unit; unknown ids are ignored."""
        with self.lock:
            activity = self.state.registry.update_result(act_id, result_kind, fields)
            if activity is None or result_kind in PENDING_SET_RESULTS:
                return

            if result_kind in LOG_LINE_RESULTS:
                line = get_string(fields, 0).rstrip()
                if not line:
                    return
                # Streamed build output is shown at any verbosity.
                if self.settings.print_build_logs:
                    suffix = " (post)> " if result_kind == ResultKind.POST_BUILD_LOG_LINE else "> "
                    message = Text(f"{activity.name or 'unnamed'}{suffix}", style="dim")
                    message.append_text(Text.from_ansi(line))
                    self.print_locked(message)

            self.mark_dirty()

    def is_verbose(self) -> bool:
        with self.lock:
            return self.settings.print_build_logs

    # =========================================================================
    # Locked Helpers (caller holds self.lock)
    # =========================================================================

    def mark_dirty(self) -> None:
        """Flag the status lines as stale and wake the update thread."""
        self.state.have_update = True
        self._update_cv.notify()

    def update_status_lines(self) -> None:
        """Recompute the activity-derived status lines."""
        self.composer.compose(self.state.registry, self.state.status_lines, self._clock())

    def draw(self, message: Optional[Text] = None) -> None:
        """Repaint the status block, optionally printing a message above it."""
        self.state.have_update = False
        if not self.state.active:
            return
        self.renderer.paint(self.state.status_lines.lines(), message)

    def log_locked(self, level: Verbosity, message: Union[str, Text]) -> None:
        """Log a message, dropping it if it is more verbose than the current level."""
        if level > self.settings.verbosity:
            return
        self.print_locked(Text.from_ansi(message) if isinstance(message, str) else message)

    def print_locked(self, text: Text) -> None:
        """Print a line above the status block, or directly when inactive."""
        if self.state.active:
            self.draw(text)
        else:
            self.output.print(text)

    # =========================================================================
    # Threads
    # =========================================================================

    def _update_loop(self) -> None:
        """Recompute and repaint until the dashboard is deactivated."""
        with self.lock:
            while self.state.active:
                if not self.state.have_update:
                    self._update_cv.wait(self.settings.refresh_interval)
                    if not self.state.active:
                        break
                self.update_status_lines()
                self.draw()
                self._quit_cv.wait(self.settings.redraw_interval)

    def _input_loop(self) -> None:
        """Read single bytes from stdin until the control pipe becomes readable."""
        assert self._input_pipe is not None
        control_fd = self._input_pipe[0]
        try:
            stdin_fd = sys.stdin.fileno()
        except (OSError, ValueError):
            return

        while True:
            try:
                ready, _, _ = select.select([stdin_fd, control_fd], [], [])
            except (OSError, ValueError):
                return
            if control_fd in ready:
                return

            try:
                data = os.read(stdin_fd, 1)
            except OSError:
                return
            if not data:
                return

            self.interpreter.handle_key(data.decode("latin-1"))


def make_progress_bar(
    settings: Optional[ProgressBarSettings] = None,
    no_color: bool = False,
) -> ProgressBar:
    """Create and start a progress bar for the current process.

    Raises:
        TerminalModeError: If the terminal can't be put into raw mode
    """
    progress_bar = ProgressBar(settings=settings, no_color=no_color)
    progress_bar.start()
    return progress_bar
