"""Four-segment progress bar: failed | done | running | remaining."""

from dataclasses import dataclass

from rich.text import Text

from ..formatters.symbols import SymbolsFormatter


@dataclass(frozen=True)
class BarSegments:
    """Cell boundaries of a progress bar.

    Cells [0, failed_end) are failed, [failed_end, done_end) done,
    [done_end, running_end) running and [running_end, width) remaining.
    """
    failed_end: int
    done_end: int
    running_end: int
    width: int

    @property
    def failed(self) -> int:
        return self.failed_end

    @property
    def done(self) -> int:
        return self.done_end - self.failed_end

    @property
    def running(self) -> int:
        return self.running_end - self.done_end

    @property
    def remaining(self) -> int:
        return self.width - self.running_end


def _boundary(count: int, expected: int, width: int) -> int:
    # floor(min(count / expected, 1) * width), in integer arithmetic
    return width * min(count, expected) // expected


def bar_segments(done: int, failed: int, running: int, expected: int, width: int) -> BarSegments:
    """Compute segment boundaries for the given counters.

    Boundaries are monotonic by construction because the cumulative counts
    are non-decreasing and each is clamped to expected.
    """
    expected = max(expected, 1)
    width = max(width, 0)
    failed = max(failed, 0)
    done = max(done, 0)
    running = max(running, 0)
    return BarSegments(
        failed_end=_boundary(failed, expected, width),
        done_end=_boundary(failed + done, expected, width),
        running_end=_boundary(failed + done + running, expected, width),
        width=width,
    )


def render_bar(
    done: int,
    failed: int,
    running: int,
    expected: int,
    width: int,
    symbols: SymbolsFormatter,
) -> Text:
    """Render the bar as styled Text."""
    segments = bar_segments(done, failed, running, expected, width)
    return Text.assemble(
        (symbols.BarFailed * segments.failed, "red"),
        (symbols.BarDone * segments.done, "green"),
        (symbols.BarRunning * segments.running, "yellow"),
        symbols.BarRemaining * segments.remaining,
    )
