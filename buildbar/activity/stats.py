"""Aggregation of per-unit counters into per-kind totals."""

from dataclasses import dataclass

from .registry import ActivityRegistry, CategoryRollup
from .types import ActivityKind


@dataclass(frozen=True)
class ActivityStats:
    """Rolled-up counters for one activity kind."""
    done: int = 0
    expected: int = 0
    running: int = 0
    failed: int = 0
    left: int = 0

    @property
    def has_data(self) -> bool:
        return bool(self.done or self.expected)


def activity_stats(rollup: CategoryRollup) -> ActivityStats:
    """Combine a rollup's closed-unit history with its open, non-ignored units.

    Closed units count as fully expected, so ``expected`` starts from the
    folded-in ``done``. The result is never smaller than the expected value
    set directly on the rollup. Reads only; safe to call on every redraw.
    """
    done = rollup.done
    expected = rollup.done
    running = 0
    failed = rollup.failed
    left = 0

    for activity in rollup.units.values():
        if activity.ignored:
            continue
        done += activity.done
        expected += activity.expected
        running += activity.running
        failed += activity.failed
        left += max(activity.expected - activity.done, 0)

    return ActivityStats(
        done=done,
        expected=max(expected, rollup.expected),
        running=running,
        failed=failed,
        left=left,
    )


def kind_stats(registry: ActivityRegistry, kind: ActivityKind) -> ActivityStats:
    """Stats for a kind, without creating a rollup for kinds never seen."""
    rollup = registry.rollups.get(kind)
    if rollup is None:
        return ActivityStats()
    return activity_stats(rollup)
