"""
Pydantic request models for API endpoints.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SourceInput(BaseModel):
    """One raw course source."""
    kind: str = Field(..., description="syllabus | announcement | discussion-post | module-description | assignment-description | calendar-feed")
    text: str = Field(default="", description="Plain text or HTML")
    items: List[Dict[str, Any]] = Field(default_factory=list, description="Structured LMS items for this source")


class CourseInput(BaseModel):
    """Known course used for course matching."""
    id: str = Field(..., min_length=1)
    code: str = Field(default="")
    name: str = Field(default="")


class ExistingTaskInput(BaseModel):
    """Already-imported task that extraction must not duplicate."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1)
    type: Optional[str] = Field(default=None)
    due_date: datetime = Field(..., alias="dueDate")
    course_id: Optional[str] = Field(default=None, alias="courseId")


class ExtractionRequest(BaseModel):
    """Request model for task extraction."""
    sources: List[SourceInput] = Field(..., description="Raw sources to mine")
    courses: List[CourseInput] = Field(default_factory=list)
    existing_tasks: List[ExistingTaskInput] = Field(default_factory=list)
    default_course_id: Optional[str] = Field(default=None, description="Course id for unmatched tasks")
    reference_date: Optional[datetime] = Field(default=None, description="Resolve relative dates against this instead of now")


class ChunkRequest(BaseModel):
    """Request model for content chunking."""
    text: str = Field(..., description="Document text")
    max_chunk_size: Optional[int] = Field(default=None, ge=100, description="Override for the maximum chunk size")
