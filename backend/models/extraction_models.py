"""
Data models for extraction results.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from models.task_models import CandidateTask


class ExtractionStatus(str, Enum):
    COMPLETED = "completed"
    NOTHING_TO_EXTRACT = "nothing_to_extract"


@dataclass
class HiddenPattern:
    """Recurring requirement surfaced for user review"""
    pattern: str
    frequency: str = ""
    importance: str = "medium"  # 'high' | 'medium' | 'low'

    def to_dict(self) -> Dict[str, str]:
        return {
            "pattern": self.pattern,
            "frequency": self.frequency,
            "importance": self.importance,
        }


@dataclass
class ModelParseResult:
    """Outcome of parsing one language-model response.

    Either carries the validated tasks or a structured error; parsing never
    raises past the model extractor.
    """
    tasks: List[CandidateTask] = field(default_factory=list)
    patterns: List[HiddenPattern] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None
    skipped_entries: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, error: str) -> "ModelParseResult":
        return cls(error=error)


@dataclass
class ExtractionResult:
    """Final output of one orchestration call"""
    status: ExtractionStatus
    tasks: List[CandidateTask] = field(default_factory=list)
    patterns: List[HiddenPattern] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)  # verbatim from the model
    diagnostics: List[str] = field(default_factory=list)  # pipeline notes (degraded units etc.)
    chunk_count: int = 0
    model_used: bool = False
    cancelled: bool = False

    @property
    def summary(self) -> Dict[str, Any]:
        by_type: Dict[str, int] = {}
        for task in self.tasks:
            by_type[task.task_type.value] = by_type.get(task.task_type.value, 0) + 1
        return {
            "totalTasks": len(self.tasks),
            "generatedTasks": sum(1 for t in self.tasks if t.is_generated),
            "byType": by_type,
            "patternsFound": len(self.patterns),
            "chunksProcessed": self.chunk_count,
            "modelUsed": self.model_used,
        }
