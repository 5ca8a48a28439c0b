"""
Section-aware chunking of large course exports for model submission.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from core.config import (
    MAX_CHUNK_SIZE,
    CHUNK_MIN_SPLIT_SIZE,
    CHUNK_HARD_LIMIT_FACTOR,
)
from models.chunk_models import ChunkMetadata, ChunkResult

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"
ASSIGNMENTS = "assignments"
MODULES = "modules"
SYLLABUS = "syllabus"

# Lines where a chunk may start
BOUNDARY_PATTERNS = [
    re.compile(r"^assignment\s", re.IGNORECASE),
    re.compile(r"^quiz\s", re.IGNORECASE),
    re.compile(r"^exam\s", re.IGNORECASE),
    re.compile(r"^test\s", re.IGNORECASE),
    re.compile(r"^project\s", re.IGNORECASE),
    re.compile(r"^homework\s", re.IGNORECASE),
    re.compile(r"^module \d+", re.IGNORECASE),
    re.compile(r"^week \d+", re.IGNORECASE),
    re.compile(r"^-{3,}"),
]

ASSIGNMENT_ITEM = re.compile(r"^(?:assignment|quiz|exam|test|project|homework)\s", re.IGNORECASE)
OBLIGATION_WORDS = re.compile(r"\b(?:due|assignment|quiz|exam|test|pts|points)\b", re.IGNORECASE)
WEEK_OR_MODULE = re.compile(r"\b(?:week \d+|module \d+)\b", re.IGNORECASE)

COURSE_TITLE_PREFIX = re.compile(r"(?:Course Title:|Course:)[ \t]*([^\n]+)", re.IGNORECASE)
COURSE_CODE_TITLE = re.compile(r"\b([A-Z]{2,5} ?\d{3,4}[A-Z]?)\b[ \t:\-–]*([^\n]*)")
INSTRUCTOR = re.compile(r"(?:Instructor:|Professor:|Dr\.|Prof\.)[ \t]*([^\n]+)", re.IGNORECASE)

IMPORTANT_LINE_PATTERNS = [
    re.compile(r"\b(?:due|deadline|exam|quiz|assignment|project|test|midterm|final)\b", re.IGNORECASE),
    re.compile(r"\b(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\b"),
    re.compile(r"\b\d{1,2}/\d{1,2}\b"),
    re.compile(r"\bWeek \d+\b", re.IGNORECASE),
]


@dataclass
class SectionScan:
    """Accumulated section buffers from one pass over the text"""
    assignments: List[str] = field(default_factory=list)
    modules: List[str] = field(default_factory=list)
    syllabus: List[str] = field(default_factory=list)
    unclassified: List[str] = field(default_factory=list)
    assignment_count: int = 0


def section_for_header(line: str) -> Optional[str]:
    """Return the section a header line opens, or None for content lines."""
    lower = line.strip().lower()
    if (
        ("upcoming" in lower and "assignment" in lower)
        or ("assignment" in lower and ("page" in lower or "list" in lower))
        or lower == "assignments"
        or ("homework" in lower and "list" in lower)
        or "all assignments" in lower
    ):
        return ASSIGNMENTS
    if any(marker in lower for marker in ("modules page", "module list", "weekly modules", "course modules")):
        return MODULES
    if any(marker in lower for marker in ("syllabus", "course schedule", "course outline")):
        return SYLLABUS
    return None


def is_boundary(line: str) -> bool:
    stripped = line.strip()
    return any(pattern.search(stripped) for pattern in BOUNDARY_PATTERNS)


def split_at_boundaries(
    content: str,
    max_size: int = MAX_CHUNK_SIZE,
    min_split_size: int = CHUNK_MIN_SPLIT_SIZE,
    hard_limit_factor: float = CHUNK_HARD_LIMIT_FACTOR,
) -> List[str]:
    """
    Split content at natural boundaries.

    A chunk ends before a boundary line once adding the line would pass
    max_size and the chunk already holds more than min_split_size
    characters. No chunk ever exceeds max_size * hard_limit_factor; single
    lines longer than that are sliced. Chunks concatenate back to content.
    """
    if len(content) <= max_size:
        return [content]

    hard_limit = max(1, int(max_size * hard_limit_factor))
    chunks: List[str] = []
    current = ""

    for line in content.splitlines(keepends=True):
        over_max = len(current) + len(line) > max_size
        if current and over_max and len(current) > min_split_size and is_boundary(line):
            chunks.append(current)
            current = ""
        elif current and len(current) + len(line) > hard_limit:
            chunks.append(current)
            current = ""

        while len(line) > hard_limit:
            chunks.append(line[:hard_limit])
            line = line[hard_limit:]
        current += line

    if current:
        chunks.append(current)
    return chunks


def extract_course_title(text: str) -> Optional[str]:
    match = COURSE_TITLE_PREFIX.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()

    match = COURSE_CODE_TITLE.search(text)
    if match:
        title = f"{match.group(1)} {match.group(2)}".strip(" \t-–:")
        return title or None
    return None


def extract_instructor(text: str) -> Optional[str]:
    match = INSTRUCTOR.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return None


def summarize_for_tokens(text: str, max_chars: int = 8000) -> str:
    """Shrink text to max_chars, keeping date and obligation lines first."""
    if len(text) <= max_chars:
        return text

    important: List[str] = []
    regular: List[str] = []
    for line in text.split("\n"):
        if any(pattern.search(line) for pattern in IMPORTANT_LINE_PATTERNS):
            important.append(line)
        else:
            regular.append(line)

    kept: List[str] = []
    size = 0
    for line in important:
        added = len(line) + (1 if kept else 0)
        if size + added <= max_chars:
            kept.append(line)
            size += added

    for line in regular:
        added = len(line) + (1 if kept else 0)
        if size + added > max_chars:
            break
        kept.append(line)
        size += added
    return "\n".join(kept)


class ContentChunker:
    """Splits course exports into assignment, module and syllabus chunks."""

    def __init__(
        self,
        max_chunk_size: int = MAX_CHUNK_SIZE,
        min_split_size: int = CHUNK_MIN_SPLIT_SIZE,
        hard_limit_factor: float = CHUNK_HARD_LIMIT_FACTOR,
    ):
        """Initialize chunker with size limits."""
        if max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")
        self.max_chunk_size = max_chunk_size
        self.min_split_size = min_split_size
        self.hard_limit_factor = hard_limit_factor

    def chunk_content(self, text: str) -> ChunkResult:
        """
        Chunk a document by section.

        Algorithm:
            1. Scan lines, switching section on recognized headers
            2. Assign text before the first header by its content
            3. Split any section larger than max_chunk_size at boundaries
            4. Extract course title and instructor

        Args:
            text: Full document text

        Returns:
            ChunkResult with per-section chunks and metadata
        """
        text = text or ""
        scan = self._scan(text.splitlines(keepends=True))

        assignments = "".join(scan.assignments)
        modules = "".join(scan.modules)
        syllabus = "".join(scan.syllabus)

        if scan.unclassified:
            unclassified = "".join(scan.unclassified)
            if OBLIGATION_WORDS.search(unclassified):
                assignments = unclassified + assignments
            elif WEEK_OR_MODULE.search(unclassified):
                modules = unclassified + modules
            else:
                syllabus = unclassified + syllabus

        result = ChunkResult(
            assignments=self._split_section(assignments),
            modules=self._split_section(modules),
            syllabus=syllabus,
            syllabus_chunks=self._split_section(syllabus),
            metadata=ChunkMetadata(
                total_assignments=scan.assignment_count,
                course_title=extract_course_title(text),
                instructor=extract_instructor(text),
            ),
        )

        if result.chunk_count > 3:
            logger.info(
                "Split %d characters into %d chunks (%d assignment, %d module, %d syllabus)",
                len(text), result.chunk_count, len(result.assignments),
                len(result.modules), len(result.syllabus_chunks),
            )
        return result

    def _scan(self, lines: List[str]) -> SectionScan:
        scan = SectionScan()
        current = UNKNOWN

        for line in lines:
            header = section_for_header(line)
            if header is not None:
                current = header
                getattr(scan, header).append(line)
                continue

            if current == ASSIGNMENTS:
                scan.assignments.append(line)
                if ASSIGNMENT_ITEM.search(line.strip()):
                    scan.assignment_count += 1
            elif current == MODULES:
                scan.modules.append(line)
            elif current == SYLLABUS:
                scan.syllabus.append(line)
            else:
                scan.unclassified.append(line)
        return scan

    def _split_section(self, content: str) -> List[str]:
        if not content.strip():
            return []
        return split_at_boundaries(
            content,
            self.max_chunk_size,
            self.min_split_size,
            self.hard_limit_factor,
        )


# Global chunker instance
content_chunker = ContentChunker()
