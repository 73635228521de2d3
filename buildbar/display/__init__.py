"""Terminal display: status-line composition, progress bars and painting."""

from .bar import BarSegments, bar_segments, render_bar
from .renderer import Renderer
from .status_lines import StatusLineComposer, StatusLineGroup, StatusLines, help_lines
from .terminal import RawTerminal, can_draw, get_terminal_width, is_interactive, is_terminal

__all__ = [
    "BarSegments",
    "bar_segments",
    "render_bar",
    "Renderer",
    "StatusLineComposer",
    "StatusLineGroup",
    "StatusLines",
    "help_lines",
    "RawTerminal",
    "can_draw",
    "get_terminal_width",
    "is_interactive",
    "is_terminal",
]
