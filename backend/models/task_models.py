"""
Data models for raw sources, courses and candidate tasks.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class SourceKind(str, Enum):
    """Declared kind of an ingested text source."""
    SYLLABUS = "syllabus"
    ANNOUNCEMENT = "announcement"
    DISCUSSION_POST = "discussion-post"
    MODULE_DESCRIPTION = "module-description"
    ASSIGNMENT_DESCRIPTION = "assignment-description"
    CALENDAR_FEED = "calendar-feed"


class TaskType(str, Enum):
    """Closed set of task types. OTHER absorbs anything unrecognized."""
    ASSIGNMENT = "assignment"
    EXAM = "exam"
    QUIZ = "quiz"
    PROJECT = "project"
    READING = "reading"
    LAB = "lab"
    DISCUSSION = "discussion"
    PARTICIPATION = "participation"
    REVIEW = "review"
    PREPARATION = "preparation"
    OTHER = "other"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "TaskType":
        if not label:
            return cls.OTHER
        try:
            return cls(label.strip().lower())
        except ValueError:
            return cls.OTHER


class RecurrencePattern(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @property
    def index(self) -> int:
        """Python weekday number (Monday == 0)."""
        return list(Weekday).index(self)

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional["Weekday"]:
        if not name:
            return None
        prefix = name.strip().lower()[:3]
        for day in cls:
            if day.value.lower().startswith(prefix):
                return day
        return None


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class RawSource:
    """Caller-owned text blob plus its declared kind"""
    kind: SourceKind
    text: str = ""
    items: Tuple[Dict[str, Any], ...] = ()  # structured LMS items (calendar events, posts, ...)


@dataclass(frozen=True)
class Course:
    id: str
    code: str
    name: str


@dataclass(frozen=True)
class CandidateTask:
    """Normalized academic obligation produced by the extraction pipeline"""
    title: str
    task_type: TaskType
    course_id: Optional[str]
    due_date: Optional[datetime]  # None only for unexpanded recurring templates
    complexity: int = 3  # 1-5
    estimated_hours: float = 3.0
    is_hard_deadline: bool = False
    buffer_percentage: int = 20
    confidence: Confidence = Confidence.MEDIUM
    source_excerpt: str = ""
    description: str = ""

    # Recurrence
    is_recurring: bool = False
    recurrence_pattern: Optional[RecurrencePattern] = None
    recurrence_weekday: Optional[Weekday] = None
    original_pattern: Optional[RecurrencePattern] = None
    is_generated: bool = False

    origin: str = "heuristic"  # 'heuristic' | 'model' | 'existing'

    @property
    def dedup_key(self) -> Tuple[str, Optional[datetime]]:
        """Identity used when merging results from several passes"""
        return (self.title, self.due_date)

    @property
    def is_template(self) -> bool:
        return self.is_recurring and self.due_date is None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase field names of the task API."""
        return {
            "title": self.title,
            "type": self.task_type.value,
            "courseId": self.course_id,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "complexity": self.complexity,
            "estimatedHours": self.estimated_hours,
            "isHardDeadline": self.is_hard_deadline,
            "bufferPercentage": self.buffer_percentage,
            "confidence": self.confidence.value,
            "sourceExcerpt": self.source_excerpt,
            "description": self.description,
            "isRecurring": self.is_recurring,
            "recurrencePattern": self.recurrence_pattern.value if self.recurrence_pattern else None,
            "recurrenceWeekday": self.recurrence_weekday.value if self.recurrence_weekday else None,
            "originalPattern": self.original_pattern.value if self.original_pattern else None,
            "isGenerated": self.is_generated,
            "origin": self.origin,
        }
