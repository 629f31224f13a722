"""Unit tests for recurrence expansion and streaks."""

import pytest
from datetime import date, datetime
from brainspace.errors import InvalidDateError, InvalidInstanceIdError, UnknownTaskError
from brainspace.models import (
    CompletionQuality, CustomPattern, DailyPattern, MalformedPattern, MonthlyPattern,
    RecurringCompletion, RelativeUnit, TaskNode, TaskType, Weekday, WeeklyPattern,
)
from brainspace.recurrence import (
    parse_day, make_instance_id, split_instance_id, original_node_id, due_dates, is_due,
    calculate_current_streak, calculate_longest_streak, generate_recurring_task_instances,
    complete_instance,
)

JAN_1 = date(2024, 1, 1)  # Monday


def day(n, month=1):
    return date(2024, month, n)

def done(*days):
    return [RecurringCompletion(day=d, completed_at=datetime.combine(d, datetime.min.time())) for d in days]


class TestParsing:
    """Test day and instance id parsing."""

    def test_parse_day(self):
        """Test accepted date forms."""
        assert parse_day("2024-01-05") == day(5)
        assert parse_day(datetime(2024, 1, 5, 23, 59)) == day(5)
        assert parse_day(day(5)) == day(5)

    @pytest.mark.parametrize("value", ["2024-02-30", "yesterday", "", 20240105])
    def test_parse_day_invalid(self, value):
        """Test rejected date forms."""
        with pytest.raises(InvalidDateError):
            parse_day(value)

    def test_instance_ids(self):
        """Test ids containing dashes split on the trailing date."""
        instance_id = make_instance_id("habit-meditation", day(5))
        assert instance_id == "habit-meditation-2024-01-05"
        assert split_instance_id(instance_id) == ("habit-meditation", day(5))
        assert original_node_id(instance_id) == "habit-meditation"

    @pytest.mark.parametrize("instance_id", ["habit", "habit-2024-1-5", "-2024-01-05", "habit-2024-13-01"])
    def test_invalid_instance_ids(self, instance_id):
        """Test ids without a valid trailing date."""
        with pytest.raises(InvalidInstanceIdError):
            split_instance_id(instance_id)


class TestDueDates:
    """Test which days each pattern is due on."""

    def test_daily(self):
        """Test every day and every other day."""
        assert due_dates(DailyPattern(), day(1), day(3)) == [day(1), day(2), day(3)]
        every_other = DailyPattern(every=2, start_date=JAN_1)
        assert is_due(every_other, day(3))
        assert not is_due(every_other, day(2))

    def test_weekly(self):
        """Test weekday selection."""
        pattern = WeeklyPattern(days_of_week=[Weekday.MONDAY, Weekday.THURSDAY])
        assert due_dates(pattern, day(1), day(14)) == [day(1), day(4), day(8), day(11)]

    def test_biweekly(self):
        """Test every other week counted from the start week."""
        pattern = WeeklyPattern(days_of_week=[Weekday.MONDAY], every=2, start_date=JAN_1)
        assert is_due(pattern, day(1))
        assert not is_due(pattern, day(8))
        assert is_due(pattern, day(15))

    def test_monthly_clamps_short_months(self):
        """Test an anchor past the month end falls on the last day."""
        pattern = MonthlyPattern(day_of_month=31)
        assert is_due(pattern, day(29, month=2))
        assert not is_due(pattern, day(28, month=2))
        assert is_due(pattern, day(31, month=3))
        assert not is_due(pattern, day(30, month=3))
        assert is_due(pattern, day(30, month=4))

    def test_monthly_anchor_from_start(self):
        """Test the anchor falls back to the start day."""
        pattern = MonthlyPattern(start_date=day(15))
        assert due_dates(pattern, day(1), day(31, month=3)) == [day(15), day(15, month=2), day(15, month=3)]

    def test_custom_days(self):
        """Test a fixed day interval."""
        pattern = CustomPattern(interval=3, unit=RelativeUnit.DAYS, start_date=JAN_1)
        assert due_dates(pattern, day(1), day(10)) == [day(1), day(4), day(7), day(10)]

    def test_custom_hours(self):
        """Test a sub-day interval is due on days containing an occurrence."""
        pattern = CustomPattern(interval=36, unit=RelativeUnit.HOURS, start_date=JAN_1)
        assert due_dates(pattern, day(1), day(7)) == [day(1), day(2), day(4), day(5), day(7)]

    def test_custom_minutes(self):
        """Test a short interval is due every day."""
        pattern = CustomPattern(interval=90, unit=RelativeUnit.MINUTES, start_date=JAN_1)
        assert len(due_dates(pattern, day(1), day(5))) == 5

    def test_custom_months(self):
        """Test a month interval keeps its anchor day."""
        pattern = CustomPattern(interval=2, unit=RelativeUnit.MONTHS, start_date=day(31))
        assert not is_due(pattern, day(29, month=2))
        assert is_due(pattern, day(31, month=3))
        assert is_due(pattern, day(31, month=5))

    def test_bounds(self):
        """Test start and end dates."""
        pattern = DailyPattern(start_date=day(5), end_date=day(10))
        assert not is_due(pattern, day(4))
        assert is_due(pattern, day(10))
        assert not is_due(pattern, day(11))

    def test_repeat_count_counts_from_start(self):
        """Test occurrences before the queried range still count."""
        pattern = DailyPattern(start_date=JAN_1, repeat_count=3)
        assert is_due(pattern, day(3))
        assert not is_due(pattern, day(4))
        assert due_dates(pattern, day(2), day(31)) == [day(2), day(3)]

    def test_malformed_never_due(self):
        """Test missing and malformed patterns."""
        malformed = MalformedPattern(raw={"frequency": "weekly"}, reason="days_of_week: Field required")
        assert due_dates(malformed, day(1), day(31)) == []
        assert not is_due(None, day(1))


class TestStreaks:
    """Test streak calculation."""

    HISTORY = done(day(10, 3), day(9, 3), day(8, 3), day(6, 3), day(5, 3), day(4, 3), day(3, 3))

    def test_current_streak(self):
        """Test the run ending at as_of."""
        assert calculate_current_streak(self.HISTORY, DailyPattern(), as_of=day(10, 3)) == 3

    def test_grace_for_today(self):
        """Test an unchecked as_of does not break the streak yet."""
        assert calculate_current_streak(self.HISTORY, DailyPattern(), as_of=day(11, 3)) == 3
        assert calculate_current_streak(self.HISTORY, DailyPattern(), as_of=day(12, 3)) == 0

    def test_longest_streak(self):
        """Test the best run over the whole history."""
        assert calculate_longest_streak(self.HISTORY, DailyPattern()) == 4

    def test_empty_history(self):
        """Test no completions."""
        assert calculate_current_streak([], DailyPattern(), as_of=day(1)) == 0
        assert calculate_longest_streak([], DailyPattern()) == 0

    def test_only_due_days_count(self):
        """Test completions on days that are not due neither add nor break."""
        pattern = WeeklyPattern(days_of_week=[Weekday.MONDAY])
        history = done(day(1), day(8), day(10), day(15))
        assert calculate_current_streak(history, pattern, as_of=day(15)) == 3
        assert calculate_longest_streak(history, pattern) == 3

    def test_accepts_store_dicts(self):
        """Test completions given as store records."""
        history = [{"date": "2024-01-01", "completedAt": "2024-01-01T07:00:00"},
                   {"date": "2024-01-02", "completedAt": "2024-01-02T07:00:00"}]
        assert calculate_current_streak(history, DailyPattern(), as_of="2024-01-02") == 2


class TestInstances:
    """Test instance generation and completion."""

    NODES = [
        TaskNode(id="meditate", label="Meditate", task_type=TaskType.HABIT,
                 recurrence_pattern=DailyPattern(), recurring_completions=done(day(3), day(4), day(5))),
        TaskNode(id="standup", label="Standup", task_type=TaskType.RECURRING,
                 recurrence_pattern=WeeklyPattern(days_of_week=[Weekday.MONDAY, Weekday.FRIDAY])),
        TaskNode(id="review", label="Review", task_type=TaskType.RECURRING,
                 recurrence_pattern=WeeklyPattern(days_of_week=[Weekday.TUESDAY])),
        TaskNode(id="taxes", label="Taxes"),
    ]

    def test_generate(self):
        """Test one instance per due recurring task."""
        instances = generate_recurring_task_instances(self.NODES, "2024-01-05")
        assert [i.instance_id for i in instances] == ["meditate-2024-01-05", "standup-2024-01-05"]

        habit, standup = instances
        assert habit.completed
        assert habit.streak == 3
        assert habit.longest_streak == 3
        assert habit.original_node_id == "meditate"
        assert habit.day == day(5)
        assert not standup.completed
        assert standup.streak is None
        assert standup.label == "Standup"

    def test_generate_weekly_store_pattern(self):
        """Test a weekly task in the store's pattern shape, checked off on a Thursday."""
        nodes = [{
            "id": "recurring-team-meeting",
            "label": "Team Standup Meeting",
            "taskType": "recurring",
            "recurrencePattern": {"type": "weekly", "frequency": 1, "daysOfWeek": [1, 4], "startDate": "2024-01-01"},
            "recurringCompletions": [{"date": "2024-01-04", "completedAt": "2024-01-04T10:30:00"}],
        }]
        monday = generate_recurring_task_instances(nodes, "2024-01-01")
        assert [i.instance_id for i in monday] == ["recurring-team-meeting-2024-01-01"]
        assert not monday[0].completed

        thursday = generate_recurring_task_instances(nodes, "2024-01-04")
        assert len(thursday) == 1
        assert thursday[0].completed

        assert generate_recurring_task_instances(nodes, "2024-01-03") == []

    def test_generate_nothing_due(self):
        """Test a day with no due tasks."""
        assert generate_recurring_task_instances(self.NODES[1:], day(6)) == []

    def test_generate_invalid_date(self):
        """Test a bad target date."""
        with pytest.raises(InvalidDateError):
            generate_recurring_task_instances(self.NODES, "2024-01-32")

    def test_to_dict_uses_date_key(self):
        """Test instances serialize with the store field names."""
        data = generate_recurring_task_instances(self.NODES, day(5))[0].to_dict()
        assert data["instanceId"] == "meditate-2024-01-05"
        assert data["date"] == "2024-01-05"

    def test_complete_instance(self):
        """Test checking off an instance extends the streak."""
        update = complete_instance(self.NODES, "meditate-2024-01-06", quality="great", duration=20, as_of=day(6))
        assert update.node_id == "meditate"
        assert [c.day for c in update.recurring_completions] == [day(3), day(4), day(5), day(6)]
        assert update.recurring_completions[-1].quality == CompletionQuality.GREAT
        assert update.current_streak == 4
        assert update.longest_streak == 4

    def test_uncomplete_instance(self):
        """Test removing a completion splits the streak."""
        update = complete_instance(self.NODES, "meditate-2024-01-04", completed=False, as_of=day(5))
        assert [c.day for c in update.recurring_completions] == [day(3), day(5)]
        assert update.current_streak == 1
        assert update.longest_streak == 1

    def test_complete_replaces_same_day(self):
        """Test a day keeps a single completion."""
        update = complete_instance(self.NODES, "meditate-2024-01-05", notes="again", as_of=day(5))
        assert len(update.recurring_completions) == 3
        assert update.recurring_completions[-1].notes == "again"

    def test_complete_does_not_mutate(self):
        """Test the original node is left alone."""
        complete_instance(self.NODES, "meditate-2024-01-06", as_of=day(6))
        assert len(self.NODES[0].recurring_completions) == 3

    def test_complete_unknown_node(self):
        """Test an instance of a missing task."""
        with pytest.raises(UnknownTaskError):
            complete_instance(self.NODES, "ghost-2024-01-05")
        with pytest.raises(InvalidInstanceIdError):
            complete_instance(self.NODES, "meditate")
