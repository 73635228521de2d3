"""Composition of the status-line block drawn below the log output.

Lines are kept in an ordered mapping keyed by (group, index). Groups are
drawn in enum order; each group is replaced wholesale when recomputed and
dropped entirely when it has nothing to show.
"""

import time
from enum import IntEnum
from typing import Iterator, Optional, Sequence

from rich.text import Text

from ..activity.registry import Activity, ActivityRegistry
from ..activity.stats import ActivityStats, kind_stats
from ..activity.types import ActivityKind
from ..formatters.symbols import SymbolsFormatter
from ..settings import DEFAULT_BAR_WIDTH
from .bar import render_bar

MIB = 1024.0 * 1024.0

HELP_HINT = "Type 'h' for help."
HELP_KEYS = [
    "The following keys are available:",
    "  'v' to increase verbosity.",
    "  '-' to decrease verbosity.",
    "  'l' to show build log output.",
    "  'r' to show what paths remain to be built/substituted.",
    "  'h' to hide this help message.",
    "  'q' to quit.",
]
QUIT_BANNER = "Exiting..."


class StatusLineGroup(IntEnum):
    """Line groups in display order."""
    HELP = 0
    EVALUATE = 1
    DOWNLOAD = 2
    COPY_PATHS = 3
    BUILDS = 4
    STATUS = 5
    QUIT = 6


LineId = tuple[StatusLineGroup, int]


class StatusLines:
    """Ordered (group, index) -> Text mapping."""

    def __init__(self) -> None:
        self._lines: dict[LineId, Text] = {}

    def set(self, group: StatusLineGroup, index: int, text: Text) -> None:
        self._lines[(group, index)] = text

    def remove_group(self, group: StatusLineGroup) -> None:
        for key in [key for key in self._lines if key[0] == group]:
            del self._lines[key]

    def replace_group(self, group: StatusLineGroup, lines: Sequence[Text]) -> None:
        """Replace all lines of a group; an empty sequence removes the group."""
        self.remove_group(group)
        for index, text in enumerate(lines):
            self._lines[(group, index)] = text

    def group(self, group: StatusLineGroup) -> list[Text]:
        return [self._lines[key] for key in sorted(self._lines) if key[0] == group]

    def has_group(self, group: StatusLineGroup) -> bool:
        return any(key[0] == group for key in self._lines)

    def clear(self) -> None:
        self._lines.clear()

    def lines(self) -> list[Text]:
        """All lines in display order."""
        return [self._lines[key] for key in sorted(self._lines)]

    def __iter__(self) -> Iterator[Text]:
        return iter(self.lines())

    def __len__(self) -> int:
        return len(self._lines)


def help_lines(shown: bool) -> list[Text]:
    """Lines of the HELP group, either the full key list or the short hint."""
    if not shown:
        return [Text(""), Text(HELP_HINT, style="bold"), Text("")]
    return [Text("")] + [Text(line, style="bold") for line in HELP_KEYS] + [Text("")]


class StatusLineComposer:
    """Builds the activity-derived groups of the status block.

    Owns EVALUATE, DOWNLOAD, COPY_PATHS, BUILDS and STATUS. HELP and QUIT are
    left to the key interpreter.
    """

    def __init__(self, symbols: SymbolsFormatter, bar_width: int = DEFAULT_BAR_WIDTH):
        self.symbols = symbols
        self.bar_width = bar_width

    def compose(
        self,
        registry: ActivityRegistry,
        status_lines: StatusLines,
        now: Optional[float] = None,
    ) -> None:
        """Recompute every activity-derived group from the registry."""
        if now is None:
            now = time.monotonic()

        status_lines.replace_group(StatusLineGroup.STATUS, self.headline_lines(registry))
        status_lines.replace_group(StatusLineGroup.EVALUATE, self.evaluate_lines(registry))
        status_lines.replace_group(StatusLineGroup.DOWNLOAD, self.download_lines(registry))
        status_lines.replace_group(StatusLineGroup.COPY_PATHS, self.copy_lines(registry))
        status_lines.replace_group(StatusLineGroup.BUILDS, self.build_lines(registry, now))

    # =========================================================================
    # Groups
    # =========================================================================

    def headline(self, registry: ActivityRegistry) -> Optional[Activity]:
        """The newest visible, non-ignored unit with something to show."""
        for activity in registry.open_units(newest_first=True):
            if not activity.visible or activity.ignored:
                continue
            if activity.label.plain or activity.last_line.plain:
                return activity
        return None

    def headline_lines(self, registry: ActivityRegistry) -> list[Text]:
        activity = self.headline(registry)
        if activity is None:
            return []
        if activity.label.plain:
            return [activity.label.copy()]
        return [activity.last_line.copy()]

    def evaluate_lines(self, registry: ActivityRegistry) -> list[Text]:
        if not registry.has_kind(ActivityKind.EVALUATE):
            return []
        if registry.rollups[ActivityKind.EVALUATE].units:
            header = Text(f"{self.symbols.Bullet} Evaluating", style="bold")
        else:
            header = Text(f"{self.symbols.Check} Evaluating", style="green")
        return [header, Text("")]

    def download_lines(self, registry: ActivityRegistry) -> list[Text]:
        transfers = kind_stats(registry, ActivityKind.FILE_TRANSFER)
        if not transfers.has_data:
            return []

        lines = [
            self._header(
                transfers,
                f"Downloaded {transfers.done / MIB:.1f} / {transfers.expected / MIB:.1f} MiB",
            ),
            self._bar(transfers.done, 0, transfers.left, transfers.expected),
        ]
        for activity in self._units(registry, ActivityKind.FILE_TRANSFER):
            if not activity.ignored:
                lines.append(self._item(activity.label))
        lines.append(Text(""))
        return lines

    def copy_lines(self, registry: ActivityRegistry) -> list[Text]:
        copy_path = kind_stats(registry, ActivityKind.COPY_PATH)
        if not copy_path.has_data:
            return []
        copy_paths = kind_stats(registry, ActivityKind.COPY_PATHS)

        # Failures are not reflected in the copy summary.
        lines = [
            self._header(
                copy_paths,
                f"Fetched {copy_paths.done} / {copy_paths.expected} store paths, "
                f"{copy_path.done / MIB:.1f} / {copy_path.expected / MIB:.1f} MiB",
                count_failures=False,
            ),
            self._bar(copy_path.done, 0, copy_path.left, copy_path.expected),
        ]
        for activity in self._units(registry, ActivityKind.SUBSTITUTE):
            lines.append(self._item(activity.label))
        lines.append(Text(""))
        return lines

    def build_lines(self, registry: ActivityRegistry, now: float) -> list[Text]:
        builds = kind_stats(registry, ActivityKind.BUILDS)
        if not builds.has_data:
            return []

        summary = f"Built {builds.done} / {builds.expected} derivations"
        if builds.running:
            summary += f", {builds.running} running"
        if builds.failed:
            summary += f", {builds.failed} failed"

        lines = [
            self._header(builds, summary),
            self._bar(builds.done, builds.failed, builds.running, builds.expected),
        ]
        for activity in self._units(registry, ActivityKind.BUILD):
            elapsed = int(now - activity.start_time) if activity.start_time is not None else 0
            line = self._item(activity.label)
            line.append(f" ({elapsed} s)", style="bold")
            if activity.phase:
                line.append(f" ({activity.phase})", style="bold")
            line.append_text(Text.assemble(": ", activity.last_line, style="bold"))
            lines.append(line)
        lines.append(Text(""))
        return lines

    # =========================================================================
    # Helpers
    # =========================================================================

    def marker(self, stats: ActivityStats, count_failures: bool = True) -> tuple[str, str]:
        """Pick the (glyph, style) summarising a group's state."""
        if count_failures and stats.failed:
            return self.symbols.Cross, "red"
        if stats.running or stats.done < stats.expected:
            return self.symbols.Bullet, "bold"
        return self.symbols.Check, "green"

    def _header(self, stats: ActivityStats, summary: str, count_failures: bool = True) -> Text:
        glyph, style = self.marker(stats, count_failures)
        return Text(f"{glyph} {summary}", style=style)

    def _bar(self, done: int, failed: int, running: int, expected: int) -> Text:
        bar = Text("  ")
        bar.append_text(render_bar(done, failed, running, expected, self.bar_width, self.symbols))
        return bar

    def _item(self, label: Text) -> Text:
        line = Text(f"  {self.symbols.Item} ", style="bold")
        line.append_text(label)
        return line

    def _units(self, registry: ActivityRegistry, kind: ActivityKind) -> list[Activity]:
        rollup = registry.rollups.get(kind)
        return list(rollup.units.values()) if rollup else []
