"""
Unit tests for recurring task expansion.
"""
from datetime import datetime, timedelta

from models.task_models import CandidateTask, RecurrencePattern, TaskType, Weekday
from services.extraction.recurrence import expand_all, expand_recurring


def make_template(pattern=RecurrencePattern.WEEKLY, weekday=None, title="Weekly Reflections"):
    return CandidateTask(
        title=title,
        task_type=TaskType.ASSIGNMENT,
        course_id="c1",
        due_date=None,
        is_recurring=True,
        recurrence_pattern=pattern,
        recurrence_weekday=weekday,
    )


class TestWeeklyExpansion:
    """Test weekly templates."""

    def test_default_horizon(self):
        """Test twelve weekly instances seven days apart."""
        start = datetime(2026, 10, 12, 23, 59)

        instances = expand_recurring(make_template(), start)

        assert len(instances) == 12
        assert instances[0].due_date == start
        for previous, current in zip(instances, instances[1:]):
            assert current.due_date - previous.due_date == timedelta(days=7)

    def test_instance_fields(self):
        """Test generated instances are concrete and flagged."""
        instances = expand_recurring(make_template(), datetime(2026, 10, 12, 23, 59), horizon=3)

        assert [t.title for t in instances] == [
            "Weekly Reflections (Week 1)",
            "Weekly Reflections (Week 2)",
            "Weekly Reflections (Week 3)",
        ]
        for task in instances:
            assert task.is_recurring is False
            assert task.is_generated is True
            assert task.original_pattern == RecurrencePattern.WEEKLY
            assert task.course_id == "c1"

    def test_friday_from_monday(self):
        """Test instances land on the Friday of each week."""
        start = datetime(2026, 10, 12, 23, 59)  # Monday

        instances = expand_recurring(make_template(weekday=Weekday.FRIDAY), start, horizon=2)

        assert [t.due_date for t in instances] == [
            datetime(2026, 10, 16, 23, 59),
            datetime(2026, 10, 23, 23, 59),
        ]
        assert all(t.due_date.weekday() == 4 for t in instances)
        assert [t.title for t in instances] == [
            "Weekly Reflections (Week 1)",
            "Weekly Reflections (Week 2)",
        ]

    def test_weekday_only_moves_forward(self):
        """Test a Monday target from a Friday start goes to the next Monday."""
        start = datetime(2026, 10, 16, 23, 59)  # Friday

        instances = expand_recurring(make_template(weekday=Weekday.MONDAY), start, horizon=2)

        assert [t.due_date for t in instances] == [
            datetime(2026, 10, 19, 23, 59),
            datetime(2026, 10, 26, 23, 59),
        ]

    def test_missing_pattern_defaults_to_weekly(self):
        """Test a recurring task without a pattern is treated as weekly."""
        instances = expand_recurring(make_template(pattern=None), datetime(2026, 10, 12, 23, 59), horizon=2)

        assert instances[1].due_date - instances[0].due_date == timedelta(days=7)
        assert instances[0].original_pattern == RecurrencePattern.WEEKLY


class TestOtherPatterns:
    """Test biweekly and monthly templates."""

    def test_biweekly(self):
        """Test fourteen-day spacing."""
        start = datetime(2026, 10, 12, 23, 59)

        instances = expand_recurring(make_template(pattern=RecurrencePattern.BIWEEKLY), start, horizon=3)

        assert [t.due_date for t in instances] == [
            start,
            start + timedelta(days=14),
            start + timedelta(days=28),
        ]

    def test_monthly_clamps_to_month_end(self):
        """Test Jan 31 monthly gives the last day of February, then Mar 31."""
        start = datetime(2027, 1, 31, 23, 59)

        instances = expand_recurring(make_template(pattern=RecurrencePattern.MONTHLY), start, horizon=3)

        assert [t.due_date for t in instances] == [
            datetime(2027, 1, 31, 23, 59),
            datetime(2027, 2, 28, 23, 59),
            datetime(2027, 3, 31, 23, 59),
        ]

    def test_monthly_leap_year(self):
        """Test February 29 in a leap year."""
        start = datetime(2028, 1, 31, 23, 59)

        instances = expand_recurring(make_template(pattern=RecurrencePattern.MONTHLY), start, horizon=2)

        assert instances[1].due_date == datetime(2028, 2, 29, 23, 59)


class TestExpandAll:
    """Test list expansion."""

    def test_non_recurring_passthrough(self):
        """Test concrete tasks are returned unchanged."""
        task = CandidateTask(
            title="Essay",
            task_type=TaskType.ASSIGNMENT,
            course_id="c1",
            due_date=datetime(2026, 10, 25, 23, 59),
        )

        assert expand_recurring(task, datetime(2026, 10, 12)) == [task]

    def test_expansion_is_idempotent(self):
        """Test that expanding already expanded output changes nothing."""
        start = datetime(2026, 10, 12, 23, 59)
        once = expand_all([make_template(weekday=Weekday.FRIDAY)], start, horizon=4)

        assert expand_all(once, start, horizon=4) == once

    def test_mixed_list(self):
        """Test templates expand in place next to concrete tasks."""
        task = CandidateTask(
            title="Essay",
            task_type=TaskType.ASSIGNMENT,
            course_id="c1",
            due_date=datetime(2026, 10, 25, 23, 59),
        )

        result = expand_all([task, make_template()], datetime(2026, 10, 12, 23, 59), horizon=2)

        assert len(result) == 3
        assert result[0] is task
        assert all(not t.is_recurring for t in result)

    def test_zero_horizon(self):
        """Test a zero horizon drops the template."""
        assert expand_recurring(make_template(), datetime(2026, 10, 12), horizon=0) == []
