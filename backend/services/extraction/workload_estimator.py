"""
Heuristic complexity and effort estimation for candidate tasks.
"""
import math
import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

from models.task_models import TaskType

MIN_COMPLEXITY = 1
MAX_COMPLEXITY = 5
MIN_HOURS = 0.5

# (complexity, hours) by task type
BASE_WORKLOAD: Dict[TaskType, Tuple[int, float]] = {
    TaskType.EXAM: (5, 8.0),
    TaskType.PROJECT: (4, 6.0),
    TaskType.LAB: (3, 3.0),
    TaskType.READING: (2, 2.0),
    TaskType.ASSIGNMENT: (3, 3.0),
}
DEFAULT_WORKLOAD = (3, 3.0)

CHAPTER_RANGE = re.compile(r"chapters?\s*(\d+)\s*(?:-|–|to|through)\s*(\d+)", re.IGNORECASE)
PAGE_COUNT = re.compile(r"(\d+)\s*pages?\b", re.IGNORECASE)
HOURS_PER_CHAPTER = 1.5
PAGES_PER_HOUR = 20


@dataclass(frozen=True)
class WorkloadModifier:
    pattern: "re.Pattern"
    complexity_delta: int
    hours_factor: float


# Applied in order; complexity is clamped after every step
WORKLOAD_MODIFIERS: List[WorkloadModifier] = [
    WorkloadModifier(re.compile(r"\b(?:final|comprehensive)", re.IGNORECASE), 1, 1.5),
    WorkloadModifier(re.compile(r"\b(?:group|team)", re.IGNORECASE), 1, 1.2),
    WorkloadModifier(re.compile(r"\b(?:short|brief|quick)", re.IGNORECASE), -1, 0.5),
    WorkloadModifier(re.compile(r"\b(?:long|extensive|detailed)", re.IGNORECASE), 1, 1.5),
]


@dataclass(frozen=True)
class Workload:
    complexity: int
    estimated_hours: float


def clamp_complexity(value: int) -> int:
    return max(MIN_COMPLEXITY, min(MAX_COMPLEXITY, value))


def round_hours(hours: float) -> float:
    """Round half-up to the nearest 0.5 hour, never below 0.5."""
    return max(MIN_HOURS, math.floor(hours * 2 + 0.5) / 2)


def _reading_hours(text: str, default: float) -> float:
    chapters = CHAPTER_RANGE.search(text)
    if chapters:
        count = int(chapters.group(2)) - int(chapters.group(1)) + 1
        if count > 0:
            return count * HOURS_PER_CHAPTER

    pages = PAGE_COUNT.search(text)
    if pages:
        return float(math.ceil(int(pages.group(1)) / PAGES_PER_HOUR))
    return default


def estimate_workload(text: str, task_type: TaskType) -> Workload:
    """
    Estimate complexity (1-5) and hours for a task.

    Args:
        text: Source text of the task (title, line or description)
        task_type: Classified task type

    Returns:
        Workload with clamped complexity and rounded hours
    """
    complexity, hours = BASE_WORKLOAD.get(task_type, DEFAULT_WORKLOAD)
    text = text or ""

    if task_type == TaskType.READING:
        hours = _reading_hours(text, hours)

    for modifier in WORKLOAD_MODIFIERS:
        if modifier.pattern.search(text):
            complexity = clamp_complexity(complexity + modifier.complexity_delta)
            hours *= modifier.hours_factor

    return Workload(complexity=clamp_complexity(complexity), estimated_hours=round_hours(hours))
