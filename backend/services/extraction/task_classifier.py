"""
Heuristic task-line classifier.

Decides whether a line of text describes an academic obligation and turns it
into a CandidateTask. Type detection, recurrence detection and title cleanup
are ordered rule tables so each rule can be checked on its own.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from core.config import DEFAULT_COURSE_ID
from models.task_models import (
    CandidateTask,
    Confidence,
    Course,
    RecurrencePattern,
    TaskType,
    Weekday,
)
from services.extraction.course_matcher import match_course
from services.extraction.workload_estimator import estimate_workload
from services.recognition.date_recognizer import (
    DATE_RULES,
    MONTH_PATTERN,
    TIME_PATTERNS,
    UTC_MARKER,
    WEEKDAY_PATTERN,
    DateRecognizer,
    RecognizedDate,
    date_recognizer,
    default_due_date,
)

logger = logging.getLogger(__name__)

MIN_LINE_LENGTH = 5
MIN_TITLE_LENGTH = 3
UNTITLED_TASK = "Untitled Task"
EXAM_BUFFER_PERCENTAGE = 10
DEFAULT_BUFFER_PERCENTAGE = 20
SENTENCE_SPLIT_LENGTH = 200

# First matching rule wins; anything else is an assignment
TYPE_RULES: List[Tuple["re.Pattern", TaskType]] = [
    (re.compile(r"\b(?:exam|test|quiz|midterm|final)", re.IGNORECASE), TaskType.EXAM),
    (re.compile(r"\b(?:project|presentation|proposal)", re.IGNORECASE), TaskType.PROJECT),
    (re.compile(r"\b(?:read|chapter|article|textbook)", re.IGNORECASE), TaskType.READING),
    (re.compile(r"\b(?:lab|experiment|practical)", re.IGNORECASE), TaskType.LAB),
]

DUE_INDICATORS: List["re.Pattern"] = [
    re.compile(r"\b(?:due|by|before|deadline)\b", re.IGNORECASE),
    re.compile(
        r"\b(?:mon|tue|wed|thu|fri|sat|sun)[a-z]*\.?,?\s+" + MONTH_PATTERN + r"\s+\d{1,2}",
        re.IGNORECASE,
    ),
]

HARD_DEADLINE_WORDS = ("final", "mandatory")

RECURRENCE_RULES: List[Tuple["re.Pattern", RecurrencePattern]] = [
    (
        re.compile(
            r"\b(?:bi-?weekly|every\s+(?:other|two|2)\s+weeks?|every\s+other\s+" + WEEKDAY_PATTERN + r")\b",
            re.IGNORECASE,
        ),
        RecurrencePattern.BIWEEKLY,
    ),
    (re.compile(r"\b(?:weekly|every\s+week|each\s+week)\b", re.IGNORECASE), RecurrencePattern.WEEKLY),
    (re.compile(r"\b(?:monthly|every\s+month|each\s+month)\b", re.IGNORECASE), RecurrencePattern.MONTHLY),
    (
        re.compile(
            r"\b(?:every|each)\s+" + WEEKDAY_PATTERN + r"\b|\b" + WEEKDAY_PATTERN + r"s\b",
            re.IGNORECASE,
        ),
        RecurrencePattern.WEEKLY,
    ),
]
RECURRENCE_WEEKDAY = re.compile(r"\b" + WEEKDAY_PATTERN + r"s?\b", re.IGNORECASE)

# Date rules a recurring template may carry; any other date is a one-off deadline
TEMPLATE_DATE_RULES = ("weekday", "next_weekday", "next_week", "in_period", "relative_day")

NUMBER_WORD_PATTERN = r"(?:\d+|a|an|one|two|three|four|five|six|seven|eight|nine|ten|eleven|twelve)"

# Applied in order after the recognized date text is removed
TITLE_CLEANUP_RULES: List[Tuple["re.Pattern", str]] = [
    # Bullets and list numbering
    (re.compile(r"^\s*(?:[-*•▪●◦]+|\d+[.)])\s+"), ""),
    # Due phrase
    (re.compile(r"\b(?:is\s+)?(?:due|deadline|by|before)\b(?:\s*:)?(?:\s+(?:on|at)\b)?", re.IGNORECASE), " "),
    # Relative date leftovers
    (re.compile(r"\bin\s+" + NUMBER_WORD_PATTERN + r"\s+(?:days?|weeks?)\b", re.IGNORECASE), " "),
    (re.compile(r"\b(?:this|next)\s+week\b", re.IGNORECASE), " "),
    (re.compile(r"\b(?:end\s+of\s+(?:the\s+)?week|soon|asap|today|tonight|tomorrow)\b", re.IGNORECASE), " "),
    (re.compile(r"\b(?:(?:on|this|next|every|each)\s+)?" + WEEKDAY_PATTERN + r"s?\b", re.IGNORECASE), " "),
    # Type keyword prefix followed by a separator ("Quiz: Chapter 3")
    (
        re.compile(
            r"^\s*(?:assignment|homework|hw|exam|test|quiz|project|reading|chapter|lab)\s*[:\-–]\s*",
            re.IGNORECASE,
        ),
        "",
    ),
    # Dangling connectors and empty brackets
    (re.compile(r"\(\s*\)|\[\s*\]"), " "),
    (re.compile(r"\s+(?:on|at|for|until|of|the)\s*$", re.IGNORECASE), ""),
    # Separators stranded by removed date text ("Final exam ; review")
    (re.compile(r"\s+([;,])"), r"\1"),
    (re.compile(r"([;,])(?:\s*[;,])+"), r"\1"),
    (re.compile(r"^[\s:;,.\-–—|]+|[\s:;,.\-–—|]+$"), ""),
    (re.compile(r"\s+"), " "),
]

# Bounded so a long comma-free line is scanned in linear time
CONTINUOUS_TITLE = r"([^,\n]{1,150}?)"
CONTINUOUS_DATE = r"([^,\n]{1,200})"

CONTINUOUS_TEXT_RULES: List["re.Pattern"] = [
    re.compile(
        r"(?:assignment|homework|hw)[\s:#-]*" + CONTINUOUS_TITLE
        + r"\s*(?:due|by|before|deadline|submit)[\s:]*" + CONTINUOUS_DATE,
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:exam|test|quiz|midterm|final)[\s:#-]*" + CONTINUOUS_TITLE
        + r"\s*(?:on|at|scheduled|date)[\s:]*" + CONTINUOUS_DATE,
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:project|presentation|paper|report)[\s:#-]*" + CONTINUOUS_TITLE
        + r"\s*(?:due|by|deadline|submit)[\s:]*" + CONTINUOUS_DATE,
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:read|reading|chapter)[\s:#-]*" + CONTINUOUS_TITLE + r"\s*(?:by|before|for)[\s:]*" + CONTINUOUS_DATE,
        re.IGNORECASE,
    ),
    re.compile(
        CONTINUOUS_TITLE + r"\s+(?:is\s+)?(?:due|deadline|by|before)[\s:]+" + CONTINUOUS_DATE,
        re.IGNORECASE,
    ),
]


@dataclass(frozen=True)
class Recurrence:
    pattern: RecurrencePattern
    weekday: Optional[Weekday]


def classify_type(text: str) -> TaskType:
    for pattern, task_type in TYPE_RULES:
        if pattern.search(text):
            return task_type
    return TaskType.ASSIGNMENT


def has_due_indicator(text: str) -> bool:
    return any(pattern.search(text) for pattern in DUE_INDICATORS)


def detect_recurrence(text: str) -> Optional[Recurrence]:
    """Detect a repeating obligation and its weekday, if any."""
    for pattern, recurrence_pattern in RECURRENCE_RULES:
        if pattern.search(text):
            weekday_match = RECURRENCE_WEEKDAY.search(text)
            weekday = Weekday.from_name(weekday_match.group(1)) if weekday_match else None
            return Recurrence(pattern=recurrence_pattern, weekday=weekday)
    return None


def title_case(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split())


def extract_title(line: str, recognized: Optional[RecognizedDate] = None) -> str:
    """
    Derive a task title from a line.

    Strips the recognized date, times, other explicit dates, the due phrase
    and separated type prefixes, then title-cases every word.
    """
    title = line
    if recognized is not None:
        title = re.sub(re.escape(recognized.matched_text), " ", title, count=1, flags=re.IGNORECASE)

    for pattern in TIME_PATTERNS:
        title = pattern.sub(" ", title)
    for rule in DATE_RULES:
        if rule.name in ("iso", "numeric_slash", "numeric_dash", "month_day", "day_month"):
            title = rule.pattern.sub(" ", title)
    title = UTC_MARKER.sub(" ", title)

    for pattern, replacement in TITLE_CLEANUP_RULES:
        title = pattern.sub(replacement, title)

    title = title.strip()
    if len(title) < MIN_TITLE_LENGTH:
        return UNTITLED_TASK
    return title_case(title)


class TaskLineClassifier:
    """Turns single lines of text into candidate tasks."""

    def __init__(self, recognizer: Optional[DateRecognizer] = None):
        self.recognizer = recognizer or date_recognizer

    def classify_line(
        self,
        line: str,
        courses: Sequence[Course],
        now: Optional[datetime] = None,
        default_course_id: Optional[str] = None,
    ) -> Optional[CandidateTask]:
        """
        Classify one line or sentence.

        Returns:
            CandidateTask, or None when the line is not an obligation.
            Never raises.
        """
        try:
            return self._classify(line, courses, now or datetime.now(), default_course_id)
        except Exception as e:
            logger.debug("Skipping unparseable line %r: %s", (line or "")[:80], e)
            return None

    def _classify(
        self,
        line: str,
        courses: Sequence[Course],
        now: datetime,
        default_course_id: Optional[str],
    ) -> Optional[CandidateTask]:
        text = (line or "").strip()
        if len(text) < MIN_LINE_LENGTH:
            return None

        recognized = self.recognizer.recognize(text, now)
        if recognized is None and not has_due_indicator(text):
            return None

        task_type = classify_type(text)
        workload = estimate_workload(text, task_type)
        lower = text.lower()
        recurrence = detect_recurrence(text)
        if recurrence is not None and recognized is not None and recognized.rule not in TEMPLATE_DATE_RULES:
            recurrence = None

        if recurrence is not None:
            due_date = None
        elif recognized is not None:
            due_date = recognized.value
        else:
            due_date = default_due_date(now)

        return CandidateTask(
            title=extract_title(text, recognized),
            task_type=task_type,
            course_id=self._resolve_course(text, courses, default_course_id),
            due_date=due_date,
            complexity=workload.complexity,
            estimated_hours=workload.estimated_hours,
            is_hard_deadline=task_type == TaskType.EXAM or any(w in lower for w in HARD_DEADLINE_WORDS),
            buffer_percentage=EXAM_BUFFER_PERCENTAGE if task_type == TaskType.EXAM else DEFAULT_BUFFER_PERCENTAGE,
            confidence=Confidence.MEDIUM,
            source_excerpt=text,
            description=text,
            is_recurring=recurrence is not None,
            recurrence_pattern=recurrence.pattern if recurrence else None,
            recurrence_weekday=recurrence.weekday if recurrence else None,
            origin="heuristic",
        )

    def _resolve_course(
        self, text: str, courses: Sequence[Course], default_course_id: Optional[str]
    ) -> str:
        matched = match_course(text, courses)
        if matched:
            return matched
        if courses:
            return courses[0].id
        return default_course_id or DEFAULT_COURSE_ID

    def parse_text(
        self,
        text: str,
        courses: Sequence[Course],
        now: Optional[datetime] = None,
        default_course_id: Optional[str] = None,
    ) -> List[CandidateTask]:
        """
        Classify every line of a text block.

        Long prose lines are split into sentences first. When no line yields
        a task, the text is scanned again with the continuous-text patterns.
        """
        now = now or datetime.now()
        tasks: List[CandidateTask] = []

        for segment in self._segments(text or ""):
            task = self.classify_line(segment, courses, now, default_course_id)
            if task is not None:
                tasks.append(task)

        if not tasks and text and text.strip():
            tasks = self.parse_continuous_text(text, courses, now, default_course_id)
        return tasks

    def parse_continuous_text(
        self,
        text: str,
        courses: Sequence[Course],
        now: Optional[datetime] = None,
        default_course_id: Optional[str] = None,
    ) -> List[CandidateTask]:
        """Scan unstructured prose for "X due Y" style phrases."""
        now = now or datetime.now()
        tasks: List[CandidateTask] = []

        for segment in self._segments(text or ""):
            for pattern in CONTINUOUS_TEXT_RULES:
                for match in pattern.finditer(segment):
                    try:
                        recognized = self.recognizer.recognize(match.group(2), now)
                        if recognized is None:
                            continue
                        full_text = match.group(0).strip()
                        task_type = classify_type(full_text)
                        workload = estimate_workload(full_text, task_type)
                        tasks.append(CandidateTask(
                            title=extract_title(match.group(1)),
                            task_type=task_type,
                            course_id=self._resolve_course(full_text, courses, default_course_id),
                            due_date=recognized.value,
                            complexity=workload.complexity,
                            estimated_hours=workload.estimated_hours,
                            is_hard_deadline=task_type == TaskType.EXAM,
                            buffer_percentage=(
                                EXAM_BUFFER_PERCENTAGE if task_type == TaskType.EXAM else DEFAULT_BUFFER_PERCENTAGE
                            ),
                            source_excerpt=full_text,
                            description=full_text,
                            origin="heuristic",
                        ))
                    except Exception as e:
                        logger.debug("Skipping continuous-text match %r: %s", match.group(0)[:80], e)
        return tasks

    def _segments(self, text: str) -> List[str]:
        segments: List[str] = []
        for line in text.splitlines():
            if len(line) > SENTENCE_SPLIT_LENGTH:
                segments.extend(s for s in re.split(r"(?<=[.!?])\s+", line) if s.strip())
            else:
                segments.append(line)
        return segments


# Global classifier instance
task_classifier = TaskLineClassifier()
