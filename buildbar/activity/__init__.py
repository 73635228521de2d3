"""Activity model: kinds, the registry of open units and their rollups."""

from .registry import Activity, ActivityRegistry, CategoryRollup
from .stats import ActivityStats, activity_stats, kind_stats
from .types import ActivityId, ActivityKind, Field, ResultKind, ROOT_ACTIVITY, Verbosity

__all__ = [
    "Activity",
    "ActivityRegistry",
    "CategoryRollup",
    "ActivityStats",
    "activity_stats",
    "kind_stats",
    "ActivityId",
    "ActivityKind",
    "Field",
    "ResultKind",
    "ROOT_ACTIVITY",
    "Verbosity",
]
