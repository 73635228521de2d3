"""In-memory model of open activities and their per-kind rollups.

Activities are stored in a flat id -> record index (insertion ordered, so
iteration goes oldest to newest) and in a per-kind index inside each
CategoryRollup. Parent links are plain ids; the parent may already be gone,
so ancestor walks stop at the first id that is no longer present.

The registry does no locking of its own. The owning ProgressBar holds its
state lock around every call.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, Sequence

from rich.text import Text

from .fields import get_int, get_string
from .naming import drv_name, store_path_to_name, strip_drv_suffix
from .types import ROOT_ACTIVITY, ActivityId, ActivityKind, Field, ResultKind


@dataclass
class Activity:
    """State for a single open unit of work."""
    act_id: ActivityId
    kind: ActivityKind = ActivityKind.UNKNOWN
    parent: ActivityId = ROOT_ACTIVITY
    label: Text = field(default_factory=Text)
    last_line: Text = field(default_factory=Text)
    phase: Optional[str] = None
    done: int = 0
    expected: int = 0
    running: int = 0
    failed: int = 0
    expected_by_kind: dict[ActivityKind, int] = field(default_factory=dict)
    visible: bool = True
    ignored: bool = False
    name: Optional[str] = None
    start_time: Optional[float] = None
    builds_remaining: set[str] = field(default_factory=set)
    substitutions_remaining: set[str] = field(default_factory=set)


@dataclass
class CategoryRollup:
    """Aggregated state for one activity kind, surviving unit closure."""
    done: int = 0
    expected: int = 0
    failed: int = 0
    units: dict[ActivityId, Activity] = field(default_factory=dict)


class ActivityRegistry:
    """Hierarchical registry of activities keyed by id."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.activities: dict[ActivityId, Activity] = {}
        self.rollups: dict[ActivityKind, CategoryRollup] = {}

        self.files_linked = 0
        self.bytes_linked = 0
        self.untrusted_paths = 0
        self.corrupted_paths = 0

    # =========================================================================
    # Queries
    # =========================================================================

    def rollup_for(self, kind: ActivityKind) -> CategoryRollup:
        """Get or create the rollup for a kind."""
        rollup = self.rollups.get(kind)
        if rollup is None:
            rollup = self.rollups[kind] = CategoryRollup()
        return rollup

    def has_kind(self, kind: ActivityKind) -> bool:
        """Check whether any unit of this kind was ever recorded."""
        return kind in self.rollups

    def get(self, act_id: ActivityId) -> Optional[Activity]:
        return self.activities.get(act_id)

    def __contains__(self, act_id: ActivityId) -> bool:
        return act_id in self.activities

    def __len__(self) -> int:
        return len(self.activities)

    def open_units(self, newest_first: bool = False) -> Iterator[Activity]:
        """Iterate over open activities in start order (or reversed)."""
        units = list(self.activities.values())
        return iter(reversed(units) if newest_first else units)

    def has_ancestor(self, kind: ActivityKind, act_id: ActivityId) -> bool:
        """Check whether act_id or one of its open ancestors has the given kind."""
        seen: set[ActivityId] = set()
        while act_id != ROOT_ACTIVITY and act_id not in seen:
            seen.add(act_id)
            activity = self.activities.get(act_id)
            if activity is None:
                break
            if activity.kind == kind:
                return True
            act_id = activity.parent
        return False

    def remaining(self) -> tuple[set[str], set[str]]:
        """Collect pending builds and substitutions across all open units."""
        builds: set[str] = set()
        substitutions: set[str] = set()
        for activity in self.activities.values():
            builds |= activity.builds_remaining
            substitutions |= activity.substitutions_remaining
        return builds, substitutions

    # =========================================================================
    # Mutations
    # =========================================================================

    def start_unit(
        self,
        act_id: ActivityId,
        kind: ActivityKind,
        text: str = "",
        parent: ActivityId = ROOT_ACTIVITY,
        fields: Sequence[Field] = (),
    ) -> Activity:
        """Open a new activity.

        Raises:
            FieldError: If fields do not match the layout expected for kind
        """
        # Build the record before touching any index so a FieldError leaves
        # the registry unchanged.
        activity = Activity(act_id=act_id, kind=kind, parent=parent, label=Text.from_ansi(text))
        self._apply_label(activity, fields)

        if act_id in self.activities:
            self.stop_unit(act_id)

        if kind == ActivityKind.FILE_TRANSFER:
            activity.ignored = (
                self.has_ancestor(ActivityKind.COPY_PATH, parent)
                or self.has_ancestor(ActivityKind.SUBSTITUTE, parent)
                or self.has_ancestor(ActivityKind.QUERY_PATH_INFO, parent)
            )
        elif kind == ActivityKind.COPY_PATH:
            activity.ignored = (
                self.has_ancestor(ActivityKind.SUBSTITUTE, parent)
                or self.has_ancestor(ActivityKind.QUERY_PATH_INFO, parent)
            )

        if kind in (ActivityKind.FILE_TRANSFER, ActivityKind.BUILD, ActivityKind.SUBSTITUTE):
            activity.visible = False
        elif kind == ActivityKind.COPY_PATH and self.has_ancestor(ActivityKind.SUBSTITUTE, parent):
            activity.visible = False

        if kind == ActivityKind.BUILD:
            activity.start_time = self._clock()

        self.activities[act_id] = activity
        self.rollup_for(kind).units[act_id] = activity
        return activity

    def _apply_label(self, activity: Activity, fields: Sequence[Field]) -> None:
        """Derive the display label from the kind-specific field layout."""
        kind = activity.kind

        if kind == ActivityKind.BUILD:
            name = strip_drv_suffix(store_path_to_name(get_string(fields, 0)))
            machine = get_string(fields, 1)
            cur_round = get_int(fields, 2)
            nr_rounds = get_int(fields, 3)
            label = Text(name, style="bold")
            if machine:
                label.append(" on ")
                label.append(machine, style="bold")
            if nr_rounds != 1:
                label.append(f" (round {cur_round}/{nr_rounds})")
            activity.label = label
            activity.name = drv_name(name)

        elif kind == ActivityKind.SUBSTITUTE:
            name = store_path_to_name(get_string(fields, 0))
            activity.label = Text.assemble((name, "bold"), f" from {get_string(fields, 1)}")

        elif kind == ActivityKind.POST_BUILD_HOOK:
            name = strip_drv_suffix(store_path_to_name(get_string(fields, 0)))
            activity.label = Text.assemble("post-build ", (name, "bold"))
            activity.name = drv_name(name)

        elif kind == ActivityKind.QUERY_PATH_INFO:
            name = store_path_to_name(get_string(fields, 0))
            activity.label = Text.assemble(
                "querying ", (name, "bold"), f" on {get_string(fields, 1)}"
            )

        elif kind == ActivityKind.FILE_TRANSFER:
            activity.label = Text(get_string(fields, 0))

    def stop_unit(self, act_id: ActivityId) -> bool:
        """Close an activity, folding its counters into its kind's rollup.

        Returns:
            False if the id was not open (late or duplicate stop)
        """
        activity = self.activities.pop(act_id, None)
        if activity is None:
            return False

        rollup = self.rollup_for(activity.kind)
        if not activity.ignored:
            rollup.done += activity.done
            rollup.failed += activity.failed
            for kind, contributed in activity.expected_by_kind.items():
                self.rollup_for(kind).expected -= contributed

        rollup.units.pop(act_id, None)
        return True

    def update_result(
        self, act_id: ActivityId, result_kind: ResultKind, fields: Sequence[Field] = ()
    ) -> Optional[Activity]:
        """Apply a result event to an open activity.

        Returns:
            The updated activity, or None if the id is not open

        Raises:
            FieldError: If fields do not match the layout expected for result_kind
        """
        activity = self.activities.get(act_id)
        if activity is None:
            return None

        if result_kind == ResultKind.FILE_LINKED:
            self.bytes_linked += get_int(fields, 0)
            self.files_linked += 1

        elif result_kind in (ResultKind.BUILD_LOG_LINE, ResultKind.POST_BUILD_LOG_LINE):
            line = get_string(fields, 0).rstrip()
            if line:
                activity.last_line = Text.from_ansi(line)

        elif result_kind == ResultKind.UNTRUSTED_PATH:
            self.untrusted_paths += 1

        elif result_kind == ResultKind.CORRUPTED_PATH:
            self.corrupted_paths += 1

        elif result_kind == ResultKind.SET_PHASE:
            activity.phase = get_string(fields, 0)

        elif result_kind == ResultKind.PROGRESS:
            done, expected = get_int(fields, 0), get_int(fields, 1)
            running, failed = get_int(fields, 2), get_int(fields, 3)
            if not activity.ignored:
                activity.done = max(activity.done, done)
                activity.expected = expected
                activity.running = running
                activity.failed = max(activity.failed, failed)

        elif result_kind == ResultKind.SET_EXPECTED:
            kind = ActivityKind.from_code(get_int(fields, 0))
            value = get_int(fields, 1)
            if not activity.ignored:
                rollup = self.rollup_for(kind)
                rollup.expected -= activity.expected_by_kind.get(kind, 0)
                activity.expected_by_kind[kind] = value
                rollup.expected += value

        elif result_kind == ResultKind.EXPECT_BUILD:
            activity.builds_remaining.add(get_string(fields, 0))

        elif result_kind == ResultKind.UNEXPECT_BUILD:
            activity.builds_remaining.discard(get_string(fields, 0))

        elif result_kind == ResultKind.EXPECT_SUBSTITUTION:
            activity.substitutions_remaining.add(get_string(fields, 0))

        elif result_kind == ResultKind.UNEXPECT_SUBSTITUTION:
            activity.substitutions_remaining.discard(get_string(fields, 0))

        return activity
