"""
Brain Space task engine - completion cascades, recurring tasks and priorities.

This package derives state changes from a snapshot of a task board:
AND/OR completion cascades through the task hierarchy, dated instances and
streaks of recurring tasks, and Eisenhower quadrants from importance/urgency.
"""

from .version import VERSION, SNAPSHOT_SCHEMA_VERSION
from .errors import (
    BrainSpaceError,
    InputError,
    UnknownTaskError,
    InvalidStatusError,
    InvalidDateError,
    InvalidInstanceIdError,
    SnapshotError,
)
from .models import (
    TaskStatus,
    TaskType,
    SubtaskLogic,
    Quadrant,
    Weekday,
    TaskNode,
    Edge,
    Snapshot,
    RecurringCompletion,
    CompletionResult,
    RecurringInstance,
)
from .priority import linear_to_log, log_to_linear, get_quadrant, get_quadrant_info, get_task_quadrant
from .hierarchy import HierarchyIndex
from .completion import evaluate_task_completion
from .recurrence import (
    generate_recurring_task_instances,
    calculate_current_streak,
    calculate_longest_streak,
    complete_instance,
    original_node_id,
)

__version__ = VERSION

__all__ = [
    "VERSION",
    "SNAPSHOT_SCHEMA_VERSION",
    "BrainSpaceError",
    "InputError",
    "UnknownTaskError",
    "InvalidStatusError",
    "InvalidDateError",
    "InvalidInstanceIdError",
    "SnapshotError",
    "TaskStatus",
    "TaskType",
    "SubtaskLogic",
    "Quadrant",
    "Weekday",
    "TaskNode",
    "Edge",
    "Snapshot",
    "RecurringCompletion",
    "CompletionResult",
    "RecurringInstance",
    "linear_to_log",
    "log_to_linear",
    "get_quadrant",
    "get_quadrant_info",
    "get_task_quadrant",
    "HierarchyIndex",
    "evaluate_task_completion",
    "generate_recurring_task_instances",
    "calculate_current_streak",
    "calculate_longest_streak",
    "complete_instance",
    "original_node_id",
]
