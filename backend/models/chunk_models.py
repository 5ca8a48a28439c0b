"""
Data models for content chunking.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class ChunkMetadata:
    """Lightweight facts gathered while scanning the text"""
    total_assignments: int = 0
    course_title: Optional[str] = None
    instructor: Optional[str] = None


@dataclass
class ChunkResult:
    """Section-organized chunks of a single document"""
    assignments: List[str] = field(default_factory=list)
    modules: List[str] = field(default_factory=list)
    syllabus: str = ""
    syllabus_chunks: List[str] = field(default_factory=list)
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)

    def sections(self) -> Dict[str, List[str]]:
        """Ordered mapping of section name to its non-empty chunks."""
        return {
            "assignments": [c for c in self.assignments if c.strip()],
            "modules": [c for c in self.modules if c.strip()],
            "syllabus": [c for c in self.syllabus_chunks if c.strip()],
        }

    @property
    def chunk_count(self) -> int:
        return sum(len(chunks) for chunks in self.sections().values())

    def to_dict(self) -> Dict:
        return {
            "assignments": self.assignments,
            "modules": self.modules,
            "syllabus": self.syllabus,
            "syllabusChunks": self.syllabus_chunks,
            "metadata": {
                "totalAssignments": self.metadata.total_assignments,
                "courseTitle": self.metadata.course_title,
                "instructor": self.metadata.instructor,
            },
        }
