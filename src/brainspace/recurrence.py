"""
Recurring task expansion and habit streaks.

A recurring node is a definition; the engine synthesizes one dated instance
per due day. Instances carry ``<original id>-<YYYY-MM-DD>`` ids, and checking
one off is written back to the original node's completion list.
"""
import re
from calendar import monthrange
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .errors import InvalidDateError, InvalidInstanceIdError, UnknownTaskError
from .logs import get_logger
from .models import (
    CompletionQuality,
    CustomPattern,
    DailyPattern,
    InstanceUpdate,
    MalformedPattern,
    MonthlyPattern,
    RecurringCompletion,
    RecurringInstance,
    RelativeUnit,
    TaskNode,
    TaskType,
    Weekday,
    WeeklyPattern,
    coerce_nodes,
)

log = get_logger("recurrence")

ONE_DAY = timedelta(days=1)
MINUTES_PER_DAY = 24 * 60

UNIT_MINUTES: Dict[RelativeUnit, int] = {
    RelativeUnit.MINUTES: 1,
    RelativeUnit.HOURS: 60,
    RelativeUnit.DAYS: MINUTES_PER_DAY,
    RelativeUnit.WEEKS: 7 * MINUTES_PER_DAY,
}

INSTANCE_ID_PATTERN = re.compile(r'^(.+)-(\d{4}-\d{2}-\d{2})$')

Pattern = Union[DailyPattern, WeeklyPattern, MonthlyPattern, CustomPattern, MalformedPattern, None]


def parse_day(value: Union[date, datetime, str]) -> date:
    """Coerce a date, datetime or ISO ``YYYY-MM-DD`` string to a calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise InvalidDateError(f"Invalid date: {value!r}, expected YYYY-MM-DD") from None
    raise InvalidDateError(f"Invalid date type: {type(value).__name__}")


def make_instance_id(node_id: str, day: date) -> str:
    return f"{node_id}-{day.isoformat()}"

def split_instance_id(instance_id: str) -> Tuple[str, date]:
    """Split an instance id into the original node id and the instance day."""
    match = INSTANCE_ID_PATTERN.match(instance_id)
    if not match:
        raise InvalidInstanceIdError(f"Not a recurring instance id: {instance_id!r}")
    try:
        day = date.fromisoformat(match.group(2))
    except ValueError:
        raise InvalidInstanceIdError(f"Invalid date in instance id: {instance_id!r}") from None
    return match.group(1), day

def original_node_id(instance_id: str) -> str:
    return split_instance_id(instance_id)[0]


def _months_between(start: date, day: date) -> int:
    return (day.year - start.year) * 12 + (day.month - start.month)

def _is_anchor_day(day: date, anchor: int) -> bool:
    # Months shorter than the anchor fall back to their last day
    return day.day == min(anchor, monthrange(day.year, day.month)[1])

def _week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())

def _matches(pattern: Pattern, day: date) -> bool:
    """The pattern's own rule, ignoring start/end/count bounds."""
    if isinstance(pattern, DailyPattern):
        return pattern.every == 1 or (day - pattern.start_date).days % pattern.every == 0

    if isinstance(pattern, WeeklyPattern):
        if Weekday.of(day) not in pattern.days_of_week:
            return False
        if pattern.every == 1:
            return True
        weeks = (_week_start(day) - _week_start(pattern.start_date)).days // 7
        return weeks % pattern.every == 0

    if isinstance(pattern, MonthlyPattern):
        if not _is_anchor_day(day, pattern.anchor_day):
            return False
        return pattern.every == 1 or _months_between(pattern.start_date, day) % pattern.every == 0

    if isinstance(pattern, CustomPattern):
        if pattern.unit == RelativeUnit.MONTHS:
            return (_is_anchor_day(day, pattern.start_date.day)
                    and _months_between(pattern.start_date, day) % pattern.interval == 0)
        # Due on any day whose 24h window contains start + k * step
        step = pattern.interval * UNIT_MINUTES[pattern.unit]
        window_start = (day - pattern.start_date).days * MINUTES_PER_DAY
        first_occurrence = -(-window_start // step) * step
        return first_occurrence < window_start + MINUTES_PER_DAY

    return False

def due_dates(pattern: Pattern, start: date, end: date) -> List[date]:
    """
    All days in ``[start, end]`` the pattern is due on, ascending.

    Malformed or missing patterns are never due. ``repeat_count`` is counted
    from the pattern's own start date, not from ``start``.
    """
    if pattern is None or isinstance(pattern, MalformedPattern):
        return []

    lower = max(start, pattern.start_date) if pattern.start_date else start
    upper = min(end, pattern.end_date) if pattern.end_date else end
    day = pattern.start_date if pattern.repeat_count is not None else lower

    result = []
    count = 0
    while day <= upper:
        if _matches(pattern, day):
            count += 1
            if pattern.repeat_count is not None and count > pattern.repeat_count:
                break
            if day >= lower:
                result.append(day)
        day += ONE_DAY
    return result

def is_due(pattern: Pattern, day: Union[date, str]) -> bool:
    day = parse_day(day)
    return bool(due_dates(pattern, day, day))


def _completion_days(completions: Iterable[Union[RecurringCompletion, dict]]) -> set:
    return {
        (c if isinstance(c, RecurringCompletion) else RecurringCompletion.model_validate(c)).day
        for c in completions
    }

def calculate_current_streak(
    completions: Iterable[Union[RecurringCompletion, dict]],
    pattern: Pattern,
    as_of: Optional[Union[date, str]] = None,
) -> int:
    """
    Count consecutive completed due days, walking back from ``as_of`` (default today).

    A due ``as_of`` that is not checked off yet does not break the streak; the
    walk starts from the due day before it. The first missed due day ends it.
    """
    as_of = date.today() if as_of is None else parse_day(as_of)
    done = _completion_days(completions)
    if not done:
        return 0

    streak = 0
    for day in reversed(due_dates(pattern, min(done), as_of)):
        if day in done:
            streak += 1
        elif day != as_of:
            break
    return streak

def calculate_longest_streak(completions: Iterable[Union[RecurringCompletion, dict]], pattern: Pattern) -> int:
    """Longest run of consecutive completed due days over the whole history."""
    done = _completion_days(completions)
    if not done:
        return 0

    longest = run = 0
    for day in due_dates(pattern, min(done), max(done)):
        run = run + 1 if day in done else 0
        longest = max(longest, run)
    return longest


def generate_recurring_task_instances(
    nodes: Iterable[Union[TaskNode, dict]],
    target_date: Union[date, str],
) -> List[RecurringInstance]:
    """
    Synthesize the instances of every recurring task due on ``target_date``.

    Args:
        nodes: Every node in the snapshot; one-time tasks are skipped.
        target_date: The day to expand.

    Returns:
        One instance per due task, in node order, marked completed when a
        completion record exists for that exact day.

    Raises:
        InvalidDateError: target_date is not a valid calendar day.
    """
    day = parse_day(target_date)
    instances = []

    for node in coerce_nodes(nodes):
        if not node.is_recurring or not is_due(node.recurrence_pattern, day):
            continue

        streak = longest = None
        if node.task_type == TaskType.HABIT:
            streak = calculate_current_streak(node.recurring_completions, node.recurrence_pattern, as_of=day)
            longest = calculate_longest_streak(node.recurring_completions, node.recurrence_pattern)

        instances.append(RecurringInstance(
            instance_id=make_instance_id(node.id, day),
            original_node_id=node.id,
            day=day,
            completed=node.completion_on(day) is not None,
            label=node.label,
            task_type=node.task_type,
            streak=streak,
            longest_streak=longest,
        ))

    log.debug(f"{len(instances)} recurring instances due on {day.isoformat()}")
    return instances

def complete_instance(
    nodes: Iterable[Union[TaskNode, dict]],
    instance_id: str,
    completed: bool = True,
    completed_at: Optional[datetime] = None,
    quality: Optional[Union[CompletionQuality, str]] = None,
    duration: Optional[int] = None,
    notes: Optional[str] = None,
    as_of: Optional[Union[date, str]] = None,
) -> InstanceUpdate:
    """
    Check (or uncheck) an instance and compute what to write back to its original node.

    The completion for the instance day is added, replaced or removed; the
    other days are left untouched. Streaks are recomputed as of ``as_of``
    (default today).
    """
    node_id, day = split_instance_id(instance_id)
    node = next((n for n in reversed(coerce_nodes(nodes)) if n.id == node_id), None)
    if node is None:
        raise UnknownTaskError(node_id)

    completions = [c for c in node.recurring_completions if c.day != day]
    if completed:
        completions.append(RecurringCompletion(
            day=day,
            completed_at=completed_at or datetime.now(),
            quality=quality,
            duration=duration,
            notes=notes,
        ))
        completions.sort(key=lambda c: c.day)

    return InstanceUpdate(
        node_id=node_id,
        day=day,
        recurring_completions=completions,
        current_streak=calculate_current_streak(completions, node.recurrence_pattern, as_of=as_of),
        longest_streak=calculate_longest_streak(completions, node.recurrence_pattern),
    )
