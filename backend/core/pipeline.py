"""
Main pipeline orchestration for task extraction.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from dateutil import parser as date_parser

from core.config import (
    DEFAULT_COURSE_ID,
    LLM_TIMEOUT_SECONDS,
    MAX_CHUNK_SIZE,
    MAX_CONCURRENT_CHUNKS,
    MODEL_EXTRACTION_ENABLED,
    RECURRENCE_HORIZON,
)
from models.extraction_models import (
    ExtractionResult,
    ExtractionStatus,
    HiddenPattern,
    ModelParseResult,
)
from models.task_models import CandidateTask, Course, RawSource, SourceKind, TaskType
from services.extraction.model_extractor import ModelExtractor
from services.extraction.recurrence import expand_all
from services.extraction.result_merger import ResultMerger, result_merger
from services.extraction.task_classifier import TaskLineClassifier, task_classifier
from services.ingestion.source_normalizer import (
    NormalizedSource,
    build_model_context,
    existing_tasks_block,
    normalize_sources,
)
from services.processing.chunker import ContentChunker
from services.recognition.date_recognizer import end_of_day

logger = logging.getLogger(__name__)

CourseInput = Union[Course, Dict[str, Any]]
SourceInput = Union[RawSource, Dict[str, Any]]
TaskInput = Union[CandidateTask, Dict[str, Any]]


class InvalidExtractionInput(ValueError):
    """Raised before any processing when the call arguments are malformed."""
    pass


@dataclass(frozen=True)
class ModelUnit:
    """One model submission: the whole context or one chunk of it"""
    label: str
    context: str
    section: str = ""


def coerce_course(value: CourseInput) -> Course:
    if isinstance(value, Course):
        return value
    if not isinstance(value, dict):
        raise InvalidExtractionInput(f"Course must be a mapping with id/code/name, got {type(value).__name__}")
    course_id = value.get("id")
    if not isinstance(course_id, str) or not course_id.strip():
        raise InvalidExtractionInput(f"Course is missing a string id: {value!r}")
    code = value.get("code") or ""
    name = value.get("name") or ""
    if not isinstance(code, str) or not isinstance(name, str):
        raise InvalidExtractionInput(f"Course code and name must be strings: {value!r}")
    return Course(id=course_id, code=code, name=name)


def coerce_source(value: SourceInput) -> RawSource:
    if isinstance(value, RawSource):
        return value
    if not isinstance(value, dict):
        raise InvalidExtractionInput(f"Source must be a mapping with kind/text, got {type(value).__name__}")
    try:
        kind = SourceKind(value.get("kind"))
    except ValueError:
        raise InvalidExtractionInput(f"Unknown source kind: {value.get('kind')!r}")

    text = value.get("text") or ""
    items = value.get("items") or []
    if not isinstance(text, str):
        raise InvalidExtractionInput(f"Source text must be a string for kind {kind.value}")
    if not isinstance(items, (list, tuple)) or not all(isinstance(i, dict) for i in items):
        raise InvalidExtractionInput(f"Source items must be a list of mappings for kind {kind.value}")
    return RawSource(kind=kind, text=text, items=tuple(items))


def coerce_task(value: TaskInput) -> CandidateTask:
    if isinstance(value, CandidateTask):
        task = value
    elif isinstance(value, dict):
        title = value.get("title")
        if not isinstance(title, str) or not title.strip():
            raise InvalidExtractionInput(f"Existing task is missing a title: {value!r}")
        due = value.get("dueDate", value.get("due_date"))
        if isinstance(due, str):
            try:
                due = date_parser.isoparse(due)
            except (ValueError, OverflowError):
                raise InvalidExtractionInput(f"Existing task {title!r} has an invalid due date: {due!r}")
        task = CandidateTask(
            title=title.strip(),
            task_type=TaskType.from_label(value.get("type") or value.get("task_type")),
            course_id=value.get("courseId", value.get("course_id")),
            due_date=due,
        )
    else:
        raise InvalidExtractionInput(f"Existing task must be a CandidateTask or mapping, got {type(value).__name__}")

    if not isinstance(task.due_date, datetime):
        raise InvalidExtractionInput(f"Existing task {task.title!r} has no due date")
    if task.due_date.tzinfo is not None:
        task = replace(task, due_date=task.due_date.astimezone().replace(tzinfo=None))
    return replace(task, origin="existing", is_recurring=False)


class ExtractionPipeline:
    """Orchestrates normalization, heuristic and model extraction, expansion and merging."""

    def __init__(
        self,
        classifier: Optional[TaskLineClassifier] = None,
        chunker: Optional[ContentChunker] = None,
        merger: Optional[ResultMerger] = None,
        model_extractor: Optional[ModelExtractor] = None,
        model_enabled: bool = MODEL_EXTRACTION_ENABLED,
        max_workers: int = MAX_CONCURRENT_CHUNKS,
        model_timeout: float = LLM_TIMEOUT_SECONDS,
        horizon: int = RECURRENCE_HORIZON,
    ):
        self.classifier = classifier or task_classifier
        self.chunker = chunker or ContentChunker(max_chunk_size=MAX_CHUNK_SIZE)
        self.merger = merger or result_merger
        self.model_enabled = model_enabled
        self._model_extractor = model_extractor
        self.max_workers = max(1, max_workers)
        self.model_timeout = model_timeout
        self.horizon = horizon

    @property
    def model_extractor(self) -> Optional[ModelExtractor]:
        if not self.model_enabled:
            return None
        if self._model_extractor is None:
            self._model_extractor = ModelExtractor()
        return self._model_extractor

    def run(
        self,
        sources: Sequence[SourceInput],
        courses: Sequence[CourseInput],
        existing_tasks: Sequence[TaskInput] = (),
        now: Optional[datetime] = None,
        default_course_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ExtractionResult:
        """
        Run the extraction pipeline.

        Pipeline Stages:
        1. Input validation
        2. Source normalization
        3. Context building and chunking
        4. Heuristic and model extraction (parallel)
        5. Recurring task expansion
        6. Merge and deduplication

        Args:
            sources: RawSource values or {kind, text, items} mappings
            courses: Course values or {id, code, name} mappings
            existing_tasks: Already-known tasks; they win every merge
            now: Reference time for relative dates and fallbacks
            default_course_id: Course id for tasks no course matches
            cancel_event: Set to abandon units that have not finished

        Returns:
            ExtractionResult

        Raises:
            InvalidExtractionInput: malformed arguments
        """
        # STAGE 1: Input validation
        if isinstance(sources, (str, bytes)) or isinstance(courses, (str, bytes)):
            raise InvalidExtractionInput("sources and courses must be lists")
        raw_sources = [coerce_source(s) for s in sources]
        course_list = [coerce_course(c) for c in courses]
        known_tasks = [coerce_task(t) for t in existing_tasks]
        if default_course_id is not None and not isinstance(default_course_id, str):
            raise InvalidExtractionInput("default_course_id must be a string")

        now = now or datetime.now()
        if now.tzinfo is not None:
            now = now.astimezone().replace(tzinfo=None)
        fallback_course = course_list[0].id if course_list else (default_course_id or DEFAULT_COURSE_ID)
        known_tasks = [self._with_course(t, fallback_course) for t in known_tasks]

        # STAGE 2: Normalization
        normalized = [s for s in normalize_sources(raw_sources) if not s.is_empty]
        if not normalized:
            logger.info("No source content to extract from")
            return ExtractionResult(
                status=ExtractionStatus.NOTHING_TO_EXTRACT,
                tasks=self.merger.merge([known_tasks]),
            )

        # STAGE 3: Context and chunking
        extractor = self.model_extractor
        diagnostics: List[str] = []
        model_units: List[ModelUnit] = []
        if extractor is not None:
            model_units = self._build_model_units(normalized, course_list, known_tasks)
        else:
            diagnostics.append("Model extraction unavailable; heuristic results only")

        # STAGE 4: Extraction
        heuristic_tasks, model_results, cancelled = self._extract(
            normalized, model_units, extractor, course_list, now, default_course_id,
            cancel_event, diagnostics,
        )

        model_tasks: List[CandidateTask] = []
        patterns: List[HiddenPattern] = []
        warnings: List[str] = []
        for result in model_results:
            model_tasks.extend(result.tasks)
            patterns.extend(result.patterns)
            warnings.extend(result.warnings)

        # STAGE 5: Recurring expansion
        start = end_of_day(now.date())
        patterns.extend(self._heuristic_patterns(heuristic_tasks, patterns))
        model_tasks = expand_all(model_tasks, start, self.horizon)
        heuristic_tasks = expand_all(heuristic_tasks, start, self.horizon)

        # STAGE 6: Merge
        merged = self.merger.merge([known_tasks, model_tasks, heuristic_tasks])
        tasks = [self._with_course(t, fallback_course) for t in merged if t.due_date is not None]

        logger.info(
            "Extracted %d tasks (%d model, %d heuristic, %d existing) from %d sources",
            len(tasks), len(model_tasks), len(heuristic_tasks), len(known_tasks), len(normalized),
        )
        return ExtractionResult(
            status=ExtractionStatus.COMPLETED,
            tasks=tasks,
            patterns=patterns,
            warnings=warnings,
            diagnostics=diagnostics,
            chunk_count=len(model_units) if model_units else len(normalized),
            model_used=bool(model_results),
            cancelled=cancelled,
        )

    def _build_model_units(
        self,
        normalized: Sequence[NormalizedSource],
        courses: Sequence[Course],
        known_tasks: Sequence[CandidateTask],
    ) -> List[ModelUnit]:
        body = build_model_context(normalized, courses)
        if len(body) <= self.chunker.max_chunk_size:
            return [ModelUnit(label="context", context=build_model_context(normalized, courses, known_tasks))]

        prefix = existing_tasks_block(known_tasks)
        chunks = self.chunker.chunk_content(body)
        units = []
        for section, section_chunks in chunks.sections().items():
            for index, chunk in enumerate(section_chunks):
                units.append(ModelUnit(
                    label=f"{section} chunk {index + 1}/{len(section_chunks)}",
                    context=prefix + chunk,
                    section=section,
                ))
        logger.info("Context of %d characters split into %d model units", len(body), len(units))
        return units

    def _extract(
        self,
        normalized: Sequence[NormalizedSource],
        model_units: Sequence[ModelUnit],
        extractor: Optional[ModelExtractor],
        courses: Sequence[Course],
        now: datetime,
        default_course_id: Optional[str],
        cancel_event: Optional[threading.Event],
        diagnostics: List[str],
    ):
        def is_cancelled() -> bool:
            return cancel_event is not None and cancel_event.is_set()

        def run_heuristic(source: NormalizedSource) -> List[CandidateTask]:
            if is_cancelled():
                return []
            return self.classifier.parse_text(source.text, courses, now, default_course_id)

        def run_model(unit: ModelUnit) -> Optional[ModelParseResult]:
            if is_cancelled():
                return None
            return extractor.extract(unit.context, courses, now, unit.section, default_course_id)

        heuristic_tasks: List[CandidateTask] = []
        model_results: List[ModelParseResult] = []
        cancelled = False

        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            # Heuristic units are queued first so slow model calls never hold them up
            heuristic_futures = [(source, executor.submit(run_heuristic, source)) for source in normalized]
            model_futures = [(unit, executor.submit(run_model, unit)) for unit in model_units]

            for source, future in heuristic_futures:
                if is_cancelled() and not future.done():
                    future.cancel()
                    cancelled = True
                    continue
                heuristic_tasks.extend(future.result())

            for unit, future in model_futures:
                if is_cancelled() and not future.done():
                    future.cancel()
                    cancelled = True
                    diagnostics.append(f"{unit.label}: cancelled before the model finished")
                    continue
                try:
                    result = future.result(timeout=self.model_timeout)
                except FutureTimeoutError:
                    logger.warning("Model timed out on %s after %ss", unit.label, self.model_timeout)
                    diagnostics.append(
                        f"{unit.label}: model timed out after {self.model_timeout:g}s; heuristic results only"
                    )
                    continue
                except Exception as e:
                    logger.warning("Model extraction failed on %s: %s", unit.label, e)
                    diagnostics.append(f"{unit.label}: model extraction failed ({e}); heuristic results only")
                    continue

                if result is None:
                    cancelled = True
                    diagnostics.append(f"{unit.label}: cancelled before the model finished")
                elif not result.ok:
                    diagnostics.append(f"{unit.label}: {result.error}; heuristic results only")
                else:
                    model_results.append(result)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if is_cancelled():
            cancelled = True
        return heuristic_tasks, model_results, cancelled

    def _heuristic_patterns(
        self, tasks: Sequence[CandidateTask], known: Sequence[HiddenPattern]
    ) -> List[HiddenPattern]:
        seen = {p.pattern.lower() for p in known}
        patterns = []
        for task in tasks:
            if not task.is_recurring or task.title.lower() in seen:
                continue
            seen.add(task.title.lower())
            frequency = task.recurrence_pattern.value if task.recurrence_pattern else "weekly"
            if task.recurrence_weekday:
                frequency = f"{frequency} on {task.recurrence_weekday.value}"
            patterns.append(HiddenPattern(
                pattern=task.title,
                frequency=frequency,
                importance="high" if task.is_hard_deadline else "medium",
            ))
        return patterns

    def _with_course(self, task: CandidateTask, course_id: str) -> CandidateTask:
        if task.course_id:
            return task
        return replace(task, course_id=course_id)


# Global pipeline instance
pipeline = ExtractionPipeline()
