"""
Model-assisted task extraction.

Builds the extraction prompt, calls the language model and turns its JSON
reply into CandidateTasks. Every failure mode (transport error, malformed
JSON, invalid entries) ends up in a ModelParseResult instead of an exception.
"""
import json
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.config import DEFAULT_COURSE_ID, DEFAULT_DUE_HOUR, DEFAULT_DUE_MINUTE
from core.ollama_client import ModelUnavailableError, OllamaClient, ollama
from core.prompt_manager import SYSTEM_PROMPT, PromptManager, prompt_manager
from models.extraction_models import HiddenPattern, ModelParseResult
from models.task_models import (
    CandidateTask,
    Confidence,
    Course,
    RecurrencePattern,
    TaskType,
    Weekday,
)
from services.extraction.course_matcher import match_course, match_course_identifier
from services.extraction.workload_estimator import clamp_complexity, estimate_workload
from services.recognition.date_recognizer import date_recognizer, default_due_date

logger = logging.getLogger(__name__)

END_OF_DAY_TYPES = (TaskType.ASSIGNMENT, TaskType.QUIZ, TaskType.PROJECT)
CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class ModelTaskEntry(BaseModel):
    """One entry of the model's extractedTasks array"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(..., min_length=1)
    type: Optional[str] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    recurring: bool = False
    recurring_pattern: Optional[str] = Field(default=None, alias="recurringPattern")
    recurring_day: Optional[str] = Field(default=None, alias="recurringDay")
    description: Optional[str] = None
    source: Optional[str] = None
    confidence: Optional[str] = None
    estimated_hours: Optional[float] = Field(default=None, alias="estimatedHours")
    complexity: Optional[int] = None
    course_identifier: Optional[str] = Field(default=None, alias="courseIdentifier")
    points: Optional[float] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("due_date", "course_identifier", "recurring_pattern", "recurring_day", mode="before")
    @classmethod
    def text_or_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return None if text.lower() in ("", "null", "none", "n/a") else text

    @field_validator("estimated_hours", "points", mode="before")
    @classmethod
    def loose_number(cls, value: Any) -> Optional[float]:
        # "2-3" or "about 2 hours" from chatty models
        if value is None or isinstance(value, (int, float)):
            return value
        match = re.search(r"\d+(?:\.\d+)?", str(value))
        return float(match.group(0)) if match else None

    @field_validator("complexity", mode="before")
    @classmethod
    def loose_complexity(cls, value: Any) -> Optional[int]:
        if value is None:
            return None
        try:
            return int(round(float(value)))
        except (TypeError, ValueError):
            return None


class ModelResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    extracted_tasks: List[Any] = Field(default_factory=list, alias="extractedTasks")
    hidden_patterns: List[Any] = Field(default_factory=list, alias="hiddenPatterns")
    warnings: List[Any] = Field(default_factory=list)

    @field_validator("extracted_tasks", "hidden_patterns", "warnings", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


def parse_json_object(response: str) -> Dict[str, Any]:
    """Parse the first JSON object in a model reply; raises ValueError."""
    text = CODE_FENCE.sub("", (response or "").strip())
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        json_match = re.search(r"\{.*\}", text, re.DOTALL)
        if not json_match:
            raise ValueError("response contains no JSON object")
        try:
            data = json.loads(json_match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"malformed JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("response JSON is not an object")
    return data


def parse_due_date(value: Optional[str], task_type: TaskType, now: datetime) -> datetime:
    """Parse a model-supplied due date, falling back to the default horizon."""
    if not value:
        return default_due_date(now)

    try:
        parsed = date_parser.isoparse(value)
    except (ValueError, OverflowError):
        try:
            parsed = date_parser.parse(value, default=datetime(now.year, now.month, now.day))
        except (ValueError, OverflowError):
            recognized = date_recognizer.recognize(value, now)
            return recognized.value if recognized else default_due_date(now)

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)

    date_only = parsed.hour == 0 and parsed.minute == 0
    if date_only or task_type in END_OF_DAY_TYPES:
        parsed = parsed.replace(hour=DEFAULT_DUE_HOUR, minute=DEFAULT_DUE_MINUTE, second=0, microsecond=0)
    return parsed


def _recurrence_pattern(entry: ModelTaskEntry) -> Optional[RecurrencePattern]:
    if not entry.recurring:
        return None
    label = (entry.recurring_pattern or "").lower().replace("-", "")
    try:
        return RecurrencePattern(label)
    except ValueError:
        return RecurrencePattern.WEEKLY


def _confidence(label: Optional[str]) -> Confidence:
    try:
        return Confidence((label or "").strip().lower())
    except ValueError:
        return Confidence.MEDIUM


def entry_to_task(
    entry: ModelTaskEntry,
    courses: Sequence[Course],
    now: datetime,
    default_course_id: Optional[str] = None,
) -> CandidateTask:
    """Convert a validated model entry into a CandidateTask."""
    task_type = TaskType.from_label(entry.type)
    pattern = _recurrence_pattern(entry)
    text = " ".join(part for part in (entry.title, entry.description) if part)

    course_id = (
        match_course_identifier(entry.course_identifier, courses)
        or match_course(text, courses)
        or (courses[0].id if courses else None)
        or default_course_id
        or DEFAULT_COURSE_ID
    )

    estimate = estimate_workload(text, task_type)
    complexity = clamp_complexity(entry.complexity) if entry.complexity else estimate.complexity
    hours = entry.estimated_hours if entry.estimated_hours and entry.estimated_hours > 0 else estimate.estimated_hours

    description = entry.description or ""
    if entry.points:
        points = f"{entry.points:g} points"
        description = f"{description} ({points})" if description else points

    return CandidateTask(
        title=entry.title,
        task_type=task_type,
        course_id=course_id,
        due_date=None if pattern else parse_due_date(entry.due_date, task_type, now),
        complexity=complexity,
        estimated_hours=max(0.5, float(hours)),
        is_hard_deadline=task_type == TaskType.EXAM or "final" in entry.title.lower(),
        buffer_percentage=10 if task_type == TaskType.EXAM else 20,
        confidence=_confidence(entry.confidence),
        source_excerpt=entry.source or "",
        description=description,
        is_recurring=pattern is not None,
        recurrence_pattern=pattern,
        recurrence_weekday=Weekday.from_name(entry.recurring_day) if pattern else None,
        origin="model",
    )


def _hidden_pattern(raw: Dict[str, Any]) -> Optional[HiddenPattern]:
    pattern = str(raw.get("pattern") or "").strip()
    if not pattern:
        return None
    importance = str(raw.get("importance") or "medium").strip().lower()
    if importance not in ("high", "medium", "low"):
        importance = "medium"
    return HiddenPattern(
        pattern=pattern,
        frequency=str(raw.get("frequency") or "").strip(),
        importance=importance,
    )


def parse_model_response(
    response: str,
    courses: Sequence[Course],
    now: Optional[datetime] = None,
    default_course_id: Optional[str] = None,
) -> ModelParseResult:
    """
    Validate a raw model reply.

    Accepts either "extractedTasks" or "tasks" as the task array. Entries that
    fail validation are skipped and counted; an unusable reply as a whole is
    reported through ModelParseResult.error.
    """
    now = now or datetime.now()
    try:
        data = parse_json_object(response)
    except ValueError as e:
        return ModelParseResult.failure(f"Unparseable model response: {e}")

    if "extractedTasks" not in data and isinstance(data.get("tasks"), list):
        data["extractedTasks"] = data["tasks"]

    try:
        envelope = ModelResponse.model_validate(data)
    except ValidationError as e:
        return ModelParseResult.failure(f"Invalid model response structure: {e.error_count()} errors")

    result = ModelParseResult(warnings=[str(w) for w in envelope.warnings if w])

    for raw in envelope.extracted_tasks:
        try:
            entry = ModelTaskEntry.model_validate(raw)
            result.tasks.append(entry_to_task(entry, courses, now, default_course_id))
        except (ValidationError, TypeError, ValueError) as e:
            result.skipped_entries += 1
            logger.debug("Skipping invalid model task entry %r: %s", raw, e)

    for raw in envelope.hidden_patterns:
        pattern = _hidden_pattern(raw) if isinstance(raw, dict) else None
        if pattern:
            result.patterns.append(pattern)

    return result


class ModelExtractor:
    """Runs one unit of context through the language model."""

    def __init__(
        self,
        client: Optional[OllamaClient] = None,
        prompts: Optional[PromptManager] = None,
    ):
        self.client = client or ollama
        self.prompts = prompts or prompt_manager

    def extract(
        self,
        context: str,
        courses: Sequence[Course],
        now: Optional[datetime] = None,
        section: str = "",
        default_course_id: Optional[str] = None,
    ) -> ModelParseResult:
        """
        Extract tasks from context with the model.

        Returns:
            ModelParseResult; transport failures and bad replies set error
        """
        now = now or datetime.now()
        prompt = self.prompts.build_extraction_prompt(
            context=context,
            reference_date=now.strftime("%A, %Y-%m-%d"),
            section=section,
        )

        try:
            response = self.client.generate_json(prompt, system=SYSTEM_PROMPT)
        except ModelUnavailableError as e:
            logger.warning("Model unavailable, using heuristic results only: %s", e)
            return ModelParseResult.failure(str(e))

        result = parse_model_response(response, courses, now, default_course_id)
        if result.ok:
            logger.info(
                "Model returned %d tasks, %d patterns (%d entries skipped)",
                len(result.tasks), len(result.patterns), result.skipped_entries,
            )
        else:
            logger.warning("%s", result.error)
        return result
