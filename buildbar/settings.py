"""Runtime settings shared by the progress bar, the key interpreter and the log path."""

from dataclasses import dataclass

from .activity.types import Verbosity

DEFAULT_BAR_WIDTH = 70


@dataclass
class ProgressBarSettings:
    """Mutable dashboard configuration.

    Fields toggled from the keyboard (print_build_logs, verbosity) are only
    read or written while holding the owning ProgressBar's lock.
    """
    print_build_logs: bool = False
    verbosity: Verbosity = Verbosity.INFO
    bar_width: int = DEFAULT_BAR_WIDTH
    refresh_interval: float = 1.0  # Max wait between redraws without updates
    redraw_interval: float = 0.05  # Min spacing between consecutive redraws

    def increase_verbosity(self) -> Verbosity:
        self.verbosity = Verbosity.clamp(self.verbosity + 1)
        return self.verbosity

    def decrease_verbosity(self) -> Verbosity:
        self.verbosity = Verbosity.clamp(self.verbosity - 1)
        return self.verbosity
