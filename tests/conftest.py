"""Pytest configuration and shared fixtures."""

import pytest

from buildbar.activity.registry import ActivityRegistry
from buildbar.formatters.symbols import SymbolsFormatter
from buildbar.progress_bar import ProgressBar
from buildbar.settings import ProgressBarSettings


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> ActivityRegistry:
    return ActivityRegistry(clock=clock)


@pytest.fixture
def ascii_symbols() -> SymbolsFormatter:
    """ASCII glyphs, independent of the test runner's stderr encoding."""
    return SymbolsFormatter(no_color=True)


@pytest.fixture
def frames() -> list[str]:
    """Collects everything a renderer writes."""
    return []


@pytest.fixture
def interrupts() -> list[bool]:
    return []


@pytest.fixture
def active_bar(frames: list[str], interrupts: list[bool], clock: FakeClock) -> ProgressBar:
    """An active dashboard that paints into `frames` without touching the terminal.

    The update thread is not started; tests paint explicitly.
    """
    return ProgressBar(
        is_tty=True,
        settings=ProgressBarSettings(),
        no_color=True,
        read_input=False,
        write=frames.append,
        interrupt=lambda: interrupts.append(True),
        clock=clock,
        get_width=lambda: 80,
    )
