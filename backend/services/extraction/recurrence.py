"""
Expansion of recurring task templates into concrete dated instances.
"""
import dataclasses
import logging
from datetime import datetime, timedelta
from typing import Iterable, List

from dateutil.relativedelta import relativedelta

from core.config import RECURRENCE_HORIZON
from models.task_models import CandidateTask, RecurrencePattern

logger = logging.getLogger(__name__)


def instance_due_date(task: CandidateTask, start: datetime, period_index: int) -> datetime:
    """Due date of the period_index-th (0-based) occurrence of a template."""
    pattern = task.recurrence_pattern

    if pattern == RecurrencePattern.BIWEEKLY:
        return start + timedelta(days=14 * period_index)

    if pattern == RecurrencePattern.MONTHLY:
        # Calendar months; Jan 31 + 1 month is the last day of February
        return start + relativedelta(months=period_index)

    due = start + timedelta(days=7 * period_index)
    if task.recurrence_weekday is not None:
        due += timedelta(days=(task.recurrence_weekday.index - due.weekday() + 7) % 7)
    return due


def expand_recurring(
    task: CandidateTask,
    start: datetime,
    horizon: int = RECURRENCE_HORIZON,
) -> List[CandidateTask]:
    """
    Expand one recurring template.

    Args:
        task: Template with is_recurring set and a recurrence pattern
        start: Date (and due time) of the first period
        horizon: Number of periods to generate

    Returns:
        Concrete, non-recurring instances in period order. Non-recurring
        tasks are returned unchanged as a single-element list.
    """
    if not task.is_recurring:
        return [task]

    pattern = task.recurrence_pattern or RecurrencePattern.WEEKLY
    template = dataclasses.replace(task, recurrence_pattern=pattern)

    instances = []
    for period_index in range(max(horizon, 0)):
        instances.append(dataclasses.replace(
            template,
            title=f"{task.title} (Week {period_index + 1})",
            due_date=instance_due_date(template, start, period_index),
            is_recurring=False,
            original_pattern=pattern,
            is_generated=True,
        ))
    return instances


def expand_all(
    tasks: Iterable[CandidateTask],
    start: datetime,
    horizon: int = RECURRENCE_HORIZON,
) -> List[CandidateTask]:
    """Expand every recurring template in a list, keeping other tasks as they are."""
    expanded: List[CandidateTask] = []
    templates = 0
    for task in tasks:
        if task.is_recurring:
            templates += 1
        expanded.extend(expand_recurring(task, start, horizon))

    if templates:
        logger.debug("Expanded %d recurring templates over %d periods", templates, horizon)
    return expanded
