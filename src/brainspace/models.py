from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union
from packaging import version

from .logs import get_logger
from .version import SNAPSHOT_SCHEMA_VERSION

log = get_logger("models")

class TaskStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    DEFERRED = "deferred"

class TaskType(Enum):
    ONE_TIME = "one-time"
    RECURRING = "recurring"
    HABIT = "habit"

class SubtaskLogic(Enum):
    AND = "AND"
    OR = "OR"

class RelativeUnit(Enum):
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"

class CompletionQuality(Enum):
    GREAT = "great"
    GOOD = "good"
    OKAY = "okay"
    POOR = "poor"

class Quadrant(Enum):
    DO_FIRST = "do-first"
    SCHEDULE = "schedule"
    DELEGATE = "delegate"
    ELIMINATE = "eliminate"

class Weekday(Enum):
    """Day of the week; declaration order matches ``date.weekday()``."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def of(cls, day: date) -> 'Weekday':
        return list(cls)[day.weekday()]

    @classmethod
    def parse(cls, value: Union[int, str, 'Weekday']) -> 'Weekday':
        """Accept a Weekday, a day name in any case, or a Sunday-based index (0 = Sunday)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid weekday: {value!r}")
        if isinstance(value, int):
            if not 0 <= value <= 6:
                raise ValueError(f"Weekday index out of range: {value}")
            return list(cls)[(value - 1) % 7]
        if isinstance(value, str):
            for day in cls:
                if day.value.lower() == value.strip().lower():
                    return day
        raise ValueError(f"Invalid weekday: {value!r}")


class BaseTaskModel(BaseModel):
    """Immutable model that reads the store's camelCase keys and dumps them back by alias."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


class _PatternBase(BaseTaskModel):
    start_date: Optional[date] = Field(default=None, description="First day the pattern may be due; epoch for intervals")
    end_date: Optional[date] = Field(default=None, description="Last day the pattern may be due")
    repeat_count: Optional[int] = Field(default=None, ge=1, description="Number of occurrences before the pattern stops")

    @model_validator(mode='after')
    def validate_bounds(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.repeat_count is not None and self.start_date is None:
            raise ValueError("repeat_count requires start_date")
        if getattr(self, 'every', 1) > 1 and self.start_date is None:
            raise ValueError("every > 1 requires start_date")
        return self

class DailyPattern(_PatternBase):
    frequency: Literal["daily"] = "daily"
    every: int = Field(default=1, ge=1, description="Due every N days")

class WeeklyPattern(_PatternBase):
    frequency: Literal["weekly"] = "weekly"
    days_of_week: List[Weekday] = Field(min_length=1, description="Weekdays the pattern is due on")
    every: int = Field(default=1, ge=1, description="Due every N weeks")

    @field_validator('days_of_week', mode='before')
    @classmethod
    def parse_days(cls, v):
        if not isinstance(v, (list, tuple)):
            return v
        return [Weekday.parse(day) for day in v]

class MonthlyPattern(_PatternBase):
    frequency: Literal["monthly"] = "monthly"
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31, description="Anchor day; falls back to start_date.day")
    every: int = Field(default=1, ge=1, description="Due every N months")

    @model_validator(mode='after')
    def validate_anchor(self):
        if self.day_of_month is None and self.start_date is None:
            raise ValueError("monthly pattern needs day_of_month or start_date")
        return self

    @property
    def anchor_day(self) -> int:
        return self.day_of_month if self.day_of_month is not None else self.start_date.day

class CustomPattern(_PatternBase):
    frequency: Literal["custom"] = "custom"
    interval: int = Field(ge=1, description="Number of units between occurrences")
    unit: RelativeUnit = Field(description="Unit of the interval")

    @model_validator(mode='after')
    def validate_epoch(self):
        if self.start_date is None:
            raise ValueError("custom pattern requires start_date")
        return self

RecurrencePattern = Annotated[
    Union[DailyPattern, WeeklyPattern, MonthlyPattern, CustomPattern],
    Field(discriminator='frequency'),
]

class MalformedPattern(BaseTaskModel):
    """A recurrence pattern that failed validation. Never due."""

    raw: Any = Field(description="The pattern data as received")
    reason: str = Field(description="Why the pattern was rejected")

    @property
    def frequency(self) -> Optional[str]:
        if not isinstance(self.raw, dict):
            return None
        # Store-shaped patterns carry the variant in 'type'
        return self.raw.get('type', self.raw.get('frequency'))


def from_store_pattern(value: Any) -> Any:
    """
    Translate the store's pattern shape into the tagged one.

    The store writes ``{"type": "weekly", "frequency": 2, ...}`` where ``type``
    is the variant and ``frequency`` the every-N count. Anything else passes
    through unchanged.
    """
    if not isinstance(value, dict) or 'type' not in value:
        return value
    count = value.get('frequency')
    if count is not None and (isinstance(count, bool) or not isinstance(count, int)):
        return value

    pattern = {key: v for key, v in value.items() if key not in ('type', 'frequency')}
    pattern['frequency'] = value['type']
    if count is not None:
        pattern.setdefault('every', count)
    return pattern


class RecurringCompletion(BaseTaskModel):
    day: date = Field(alias="date", description="Calendar day the occurrence belongs to")
    completed_at: datetime = Field(description="When the occurrence was checked off")
    quality: Optional[CompletionQuality] = Field(default=None, description="Self-assessed quality")
    duration: Optional[int] = Field(default=None, ge=0, description="Minutes spent")
    notes: Optional[str] = Field(default=None)


class TaskNode(BaseTaskModel):
    id: str = Field(description="Unique identifier of the node")
    label: str = Field(default="", validation_alias=AliasChoices("label", "title"))
    importance: Optional[float] = Field(default=None, description="Importance on the log 0-10 scale")
    urgency: Optional[float] = Field(default=None, description="Urgency on the log 0-10 scale")
    status: TaskStatus = Field(default=TaskStatus.PENDING, validation_alias=AliasChoices("status", "taskStatus"))
    task_type: TaskType = Field(default=TaskType.ONE_TIME)
    recurrence_pattern: Optional[Union[RecurrencePattern, MalformedPattern]] = Field(default=None)
    recurring_completions: List[RecurringCompletion] = Field(default_factory=list)
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    is_optional: bool = Field(default=False, description="Excluded from the parent's completion requirement")
    auto_complete_parent: bool = Field(default=False, description="Hint that the parent completes with any child")
    subtask_logic: Optional[SubtaskLogic] = Field(default=None, description="AND/OR rule over this node's children")

    @field_validator('recurrence_pattern', mode='wrap')
    @classmethod
    def capture_malformed_pattern(cls, value, handler):
        if value is None or isinstance(value, MalformedPattern):
            return value
        try:
            return handler(from_store_pattern(value))
        except ValidationError as e:
            reason = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
            log.warning(f"Malformed recurrence pattern {value!r}: {reason}")
            return MalformedPattern(raw=value, reason=reason)

    @field_validator('recurring_completions')
    @classmethod
    def dedupe_completions(cls, v):
        by_day: Dict[date, RecurringCompletion] = {}
        for completion in v:
            kept = by_day.get(completion.day)
            if kept is None:
                by_day[completion.day] = completion
                continue
            log.warning(f"Duplicate completion for {completion.day.isoformat()}, keeping the latest")
            if completion.completed_at >= kept.completed_at:
                by_day[completion.day] = completion
        return sorted(by_day.values(), key=lambda c: c.day)

    @model_validator(mode='after')
    def validate_recurrence(self):
        if self.is_recurring and self.recurrence_pattern is None:
            log.warning(f"Task {self.id} is {self.task_type.value} but has no recurrence pattern")
        return self

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def is_recurring(self) -> bool:
        return self.task_type != TaskType.ONE_TIME

    def completion_on(self, day: date) -> Optional[RecurringCompletion]:
        """Find the completion record for a calendar day."""
        return next((c for c in self.recurring_completions if c.day == day), None)


class Edge(BaseTaskModel):
    parent_id: str = Field(validation_alias=AliasChoices("parentId", "parent_id", "source"), serialization_alias="parentId")
    child_id: str = Field(validation_alias=AliasChoices("childId", "child_id", "target"), serialization_alias="childId")


class Snapshot(BaseTaskModel):
    """Nodes and edges as exported from the store."""

    schema_version: str = Field(default=SNAPSHOT_SCHEMA_VERSION, description="Snapshot schema version")
    nodes: List[TaskNode] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)

    @field_validator('schema_version')
    @classmethod
    def validate_schema_version(cls, v):
        try:
            found = version.Version(v)
        except version.InvalidVersion:
            raise ValueError(f"Invalid schema version: {v}")
        supported = version.Version(SNAPSHOT_SCHEMA_VERSION)
        if found.major != supported.major:
            raise ValueError(f"Snapshot schema {v} is not compatible with {SNAPSHOT_SCHEMA_VERSION}")
        return v

    @field_validator('nodes', mode='before')
    @classmethod
    def drop_invalid_nodes(cls, v):
        # One bad node must not block the rest of the snapshot
        if isinstance(v, (list, tuple)):
            return coerce_nodes(v)
        return v

    @field_validator('edges', mode='before')
    @classmethod
    def drop_invalid_edges(cls, v):
        if isinstance(v, (list, tuple)):
            return coerce_edges(v)
        return v

    @model_validator(mode='after')
    def validate_unique_ids(self):
        seen = set()
        for node in self.nodes:
            if node.id in seen:
                log.warning(f"Duplicate node id {node.id}, the last one wins")
            seen.add(node.id)
        return self

    def find_node(self, node_id: str) -> Optional[TaskNode]:
        """Find a node by id."""
        return next((n for n in reversed(self.nodes) if n.id == node_id), None)


class StatusChange(BaseTaskModel):
    node_id: str
    recommended_status: TaskStatus

class CompletionResult(BaseTaskModel):
    """Deltas produced by one status transition."""

    changes: List[StatusChange] = Field(default_factory=list)
    cascades_to_parents: bool = False
    cascades_to_children: bool = False
    message: Optional[str] = None

    @property
    def affected_node_ids(self) -> List[str]:
        return [change.node_id for change in self.changes]

    def as_mapping(self) -> Dict[str, TaskStatus]:
        return {change.node_id: change.recommended_status for change in self.changes}

class SubtaskProgress(BaseTaskModel):
    completed: int
    total: int
    required: int
    optional: int

class HierarchicalCompletion(BaseTaskModel):
    completed: int
    total: int
    percentage: int

class RecurringInstance(BaseTaskModel):
    """One dated occurrence of a recurring task."""

    instance_id: str
    original_node_id: str
    day: date = Field(alias="date")
    completed: bool
    label: str = ""
    task_type: TaskType
    streak: Optional[int] = Field(default=None, description="Current streak, habits only")
    longest_streak: Optional[int] = Field(default=None, description="Longest streak, habits only")

class InstanceUpdate(BaseTaskModel):
    """Fields to write back to the original node after (un)checking an instance."""

    node_id: str
    day: date = Field(alias="date")
    recurring_completions: List[RecurringCompletion]
    current_streak: int
    longest_streak: int


def coerce_nodes(nodes: Iterable[Union[TaskNode, Dict[str, Any]]]) -> List[TaskNode]:
    """
    Validate plain dicts into TaskNode, passing models through.

    A node that fails validation is logged and left out so the rest of the
    snapshot can still be processed.
    """
    result = []
    for node in nodes:
        if isinstance(node, TaskNode):
            result.append(node)
            continue
        try:
            result.append(TaskNode.model_validate(node))
        except ValidationError as e:
            node_id = node.get('id') if isinstance(node, dict) else None
            log.warning(f"Skipping invalid node {node_id!r}: {e.error_count()} validation error(s)")
    return result

def coerce_edges(edges: Iterable[Union[Edge, Dict[str, Any]]]) -> List[Edge]:
    """Validate plain dicts into Edge, passing models through. Invalid edges are logged and left out."""
    result = []
    for edge in edges:
        if isinstance(edge, Edge):
            result.append(edge)
            continue
        try:
            result.append(Edge.model_validate(edge))
        except ValidationError as e:
            log.warning(f"Skipping invalid edge {edge!r}: {e.error_count()} validation error(s)")
    return result
