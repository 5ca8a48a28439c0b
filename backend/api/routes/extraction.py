"""
Task extraction API routes.
"""
import logging

from fastapi import APIRouter, HTTPException

from api.models.requests import ChunkRequest, ExtractionRequest
from api.models.responses import ChunkResponse, ExtractionResponse
from core.pipeline import InvalidExtractionInput, pipeline
from services.processing.chunker import ContentChunker, content_chunker

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/tasks", response_model=ExtractionResponse)
def extract_tasks(request: ExtractionRequest):
    """
    Extract structured tasks from raw course sources.
    Runs synchronously; falls back to heuristic extraction when the model is unavailable.
    """
    try:
        result = pipeline.run(
            sources=[source.model_dump() for source in request.sources],
            courses=[course.model_dump() for course in request.courses],
            existing_tasks=[task.model_dump(by_alias=True) for task in request.existing_tasks],
            now=request.reference_date,
            default_course_id=request.default_course_id,
        )
    except InvalidExtractionInput as e:
        raise HTTPException(status_code=422, detail=str(e))

    return ExtractionResponse(
        status=result.status.value,
        tasks=[task.to_dict() for task in result.tasks],
        patterns=[pattern.to_dict() for pattern in result.patterns],
        warnings=result.warnings,
        diagnostics=result.diagnostics,
        cancelled=result.cancelled,
        summary=result.summary,
    )


@router.post("/chunks", response_model=ChunkResponse)
def chunk_text(request: ChunkRequest):
    """Split a document into section chunks."""
    chunker = content_chunker
    if request.max_chunk_size:
        chunker = ContentChunker(max_chunk_size=request.max_chunk_size)
    return chunker.chunk_content(request.text).to_dict()
