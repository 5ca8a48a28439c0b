"""
Pydantic response models for API endpoints.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TaskResponse(BaseModel):
    """Extracted task."""
    title: str
    type: str
    courseId: Optional[str] = None
    dueDate: Optional[str] = None
    complexity: int = Field(ge=1, le=5)
    estimatedHours: float
    isHardDeadline: bool
    bufferPercentage: int
    confidence: str
    sourceExcerpt: str = ""
    description: str = ""
    isRecurring: bool = False
    recurrencePattern: Optional[str] = None
    recurrenceWeekday: Optional[str] = None
    originalPattern: Optional[str] = None
    isGenerated: bool = False
    origin: str = "heuristic"


class PatternResponse(BaseModel):
    """Recurring requirement for user review."""
    pattern: str
    frequency: str = ""
    importance: str = "medium"


class ExtractionResponse(BaseModel):
    """Response model for task extraction."""
    status: str
    tasks: List[TaskResponse] = []
    patterns: List[PatternResponse] = []
    warnings: List[str] = []
    diagnostics: List[str] = []
    cancelled: bool = False
    summary: Dict[str, Any] = {}


class ChunkMetadataResponse(BaseModel):
    totalAssignments: int = 0
    courseTitle: Optional[str] = None
    instructor: Optional[str] = None


class ChunkResponse(BaseModel):
    """Response model for content chunking."""
    assignments: List[str] = []
    modules: List[str] = []
    syllabus: str = ""
    syllabusChunks: List[str] = []
    metadata: ChunkMetadataResponse
