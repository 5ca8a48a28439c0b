"""
Unit tests for section-aware content chunking.
"""
import pytest

from services.processing.chunker import (
    ContentChunker,
    extract_course_title,
    extract_instructor,
    section_for_header,
    split_at_boundaries,
    summarize_for_tokens,
)


def assignment_listing(count: int) -> str:
    lines = ["Assignments\n"]
    for i in range(1, count + 1):
        lines.append(f"Assignment {i}: Write a short response paper on the assigned reading, due 10/20.\n")
    return "".join(lines)


class TestSectionDetection:
    """Test header recognition and section assignment."""

    def test_headers(self):
        """Test recognized header lines."""
        assert section_for_header("Upcoming Assignments") == "assignments"
        assert section_for_header("Assignments") == "assignments"
        assert section_for_header("Homework List") == "assignments"
        assert section_for_header("Course Modules") == "modules"
        assert section_for_header("Syllabus") == "syllabus"
        assert section_for_header("Course Schedule") == "syllabus"
        assert section_for_header("Assignment 1 due 10/20") is None

    def test_sections_assigned(self):
        """Test lines land in the section of the preceding header."""
        text = (
            "Course: CS101 Intro to CS\n"
            "Upcoming Assignments\n"
            "Assignment 1 due 10/20\n"
            "Quiz 1 due 10/22\n"
            "Course Modules\n"
            "Module 1: Basics\n"
            "Syllabus\n"
            "Grading: 40% exams\n"
        )

        result = ContentChunker().chunk_content(text)

        assert result.assignments == ["Upcoming Assignments\nAssignment 1 due 10/20\nQuiz 1 due 10/22\n"]
        assert result.modules == ["Course Modules\nModule 1: Basics\n"]
        assert result.syllabus == "Course: CS101 Intro to CS\nSyllabus\nGrading: 40% exams\n"
        assert result.metadata.total_assignments == 2
        assert result.metadata.course_title == "CS101 Intro to CS"
        assert result.chunk_count == 3

    def test_unclassified_with_obligations_goes_to_assignments(self):
        """Test headerless text mentioning due dates is treated as assignments."""
        result = ContentChunker().chunk_content("Essay due 10/25\nBring a pencil\n")

        assert result.assignments == ["Essay due 10/25\nBring a pencil\n"]
        assert result.syllabus == ""
        assert result.syllabus_chunks == []

    def test_unclassified_with_weeks_goes_to_modules(self):
        """Test headerless week outlines are treated as modules."""
        result = ContentChunker().chunk_content("Week 1 introductions\nWeek 2 foundations\n")

        assert result.modules == ["Week 1 introductions\nWeek 2 foundations\n"]

    def test_empty_text(self):
        """Test empty input yields no chunks."""
        result = ContentChunker().chunk_content("")

        assert result.chunk_count == 0
        assert result.to_dict()["metadata"]["totalAssignments"] == 0


class TestSplitting:
    """Test splitting of oversized sections."""

    def test_small_content_single_chunk(self):
        """Test content under the limit is returned whole."""
        assert split_at_boundaries("short text", max_size=100) == ["short text"]

    def test_splits_at_assignment_boundaries(self):
        """Test chunks respect the size bound and concatenate back exactly."""
        text = assignment_listing(60)
        chunker = ContentChunker(max_chunk_size=2000)

        result = chunker.chunk_content(text)

        assert len(result.assignments) > 1
        assert all(len(chunk) <= 2400 for chunk in result.assignments)
        assert "".join(result.assignments) == text
        assert all(chunk.startswith("Assignment ") for chunk in result.assignments[1:])
        assert result.metadata.total_assignments == 60

    def test_no_boundaries_hard_limit(self):
        """Test text without boundaries is split at the hard limit."""
        text = "Syllabus\n" + "Lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod.\n" * 100
        chunker = ContentChunker(max_chunk_size=2000)

        result = chunker.chunk_content(text)

        assert len(result.syllabus_chunks) > 1
        assert all(len(chunk) <= 2400 for chunk in result.syllabus_chunks)
        assert "".join(result.syllabus_chunks) == text
        assert result.syllabus == text

    def test_single_long_line_is_sliced(self):
        """Test a line longer than the hard limit is sliced without loss."""
        text = "x" * 5000
        chunker = ContentChunker(max_chunk_size=1000)

        result = chunker.chunk_content(text)

        assert all(len(chunk) <= 1200 for chunk in result.syllabus_chunks)
        assert "".join(result.syllabus_chunks) == text

    def test_invalid_size(self):
        """Test a non-positive max size is rejected."""
        with pytest.raises(ValueError):
            ContentChunker(max_chunk_size=0)


class TestMetadata:
    """Test course title and instructor extraction."""

    def test_labeled_fields(self):
        """Test 'Course:' and 'Instructor:' labels."""
        text = "Course: Intro to Psychology\nInstructor: Dr. Smith\n"

        assert extract_course_title(text) == "Intro to Psychology"
        assert extract_instructor(text) == "Dr. Smith"

    def test_course_code_title(self):
        """Test a leading course code line."""
        assert extract_course_title("NURS 301 Adult Health\nWelcome!") == "NURS 301 Adult Health"

    def test_missing_fields(self):
        """Test documents without metadata."""
        assert extract_course_title("welcome to class") is None
        assert extract_instructor("welcome to class") is None


class TestSummarize:
    """Test summarization to a character limit."""

    def test_short_text_unchanged(self):
        """Test text under the limit is returned as is."""
        assert summarize_for_tokens("Exam on 10/20", max_chars=100) == "Exam on 10/20"

    def test_important_lines_kept_first(self):
        """Test obligation lines survive truncation."""
        filler = ["filler text line number here"] * 50
        text = "\n".join(filler[:25] + ["Exam on 10/20"] + filler[25:])

        summary = summarize_for_tokens(text, max_chars=200)

        assert len(summary) <= 200
        assert summary.startswith("Exam on 10/20")
