"""
Unit tests for source normalization and model context assembly.
"""
from datetime import date, datetime

from models.task_models import CandidateTask, Course, RawSource, SourceKind, TaskType
from services.ingestion.source_normalizer import (
    EXISTING_TASKS_HEADER,
    NormalizedSource,
    build_model_context,
    clean_text,
    format_item_date,
    html_to_text,
    looks_like_html,
    normalize_source,
    normalize_sources,
    to_plain_text,
)


class TestHtmlFlattening:
    """Test HTML to text conversion."""

    def test_paragraphs_and_lists(self):
        """Test inline tags are joined and list items get bullets."""
        text = html_to_text("<p>Essay <strong>due</strong> March 3</p><ul><li>Quiz 1 due 10/20</li></ul>")

        assert text.splitlines() == ["Essay due March 3", "- Quiz 1 due 10/20"]

    def test_table_rows(self):
        """Test table rows become pipe-separated lines."""
        text = html_to_text("<table><tr><td>Essay</td><td>Oct 30</td></tr></table>")

        assert text == "Essay | Oct 30"

    def test_scripts_removed(self):
        """Test script content never reaches the text."""
        assert html_to_text("<div>Hello<script>alert(1)</script></div>") == "Hello"

    def test_line_breaks(self):
        """Test <br> splits lines."""
        assert html_to_text("<p>Lab 1 due 10/20<br>Lab 2 due 10/27</p>").splitlines() == [
            "Lab 1 due 10/20",
            "Lab 2 due 10/27",
        ]

    def test_plain_text_passthrough(self):
        """Test plain text is only whitespace-cleaned."""
        assert not looks_like_html("grade < 60 means retake")
        assert to_plain_text("Essay   due\n\n\n10/25") == "Essay due\n\n10/25"
        assert to_plain_text(None) == ""

    def test_clean_text_trailing_blank_lines(self):
        """Test trailing blank lines are dropped."""
        assert clean_text("a\n\n\n") == "a"


class TestNormalizeSource:
    """Test per-kind rendering of structured items."""

    def test_calendar_items(self):
        """Test calendar events render as 'title due date'."""
        source = RawSource(kind=SourceKind.CALENDAR_FEED, items=(
            {"title": "Essay 2", "startDate": "2026-10-25T23:59:00", "description": "Submit on Canvas"},
        ))

        normalized = normalize_source(source)

        assert normalized.text == "Essay 2 due 2026-10-25 23:59"
        assert normalized.context == "Essay 2 due 2026-10-25 23:59: Submit on Canvas"

    def test_date_only_calendar_item(self):
        """Test a date-only start keeps no time so end of day applies."""
        source = RawSource(kind=SourceKind.CALENDAR_FEED, items=(
            {"title": "Essay", "startDate": "2026-10-25"},
        ))

        assert normalize_source(source).text == "Essay due 2026-10-25"
        assert format_item_date(date(2026, 10, 25)) == "2026-10-25"
        assert format_item_date("2026-10-25T00:00:00") == "2026-10-25 00:00"

    def test_announcement_date_hidden_from_heuristics(self):
        """Test posting dates only appear in the model context."""
        source = RawSource(kind=SourceKind.ANNOUNCEMENT, items=(
            {
                "title": "Midterm moved",
                "message": "<p>The midterm is now due Oct 30.</p>",
                "date": "2026-10-01T09:00:00",
            },
        ))

        normalized = normalize_source(source)

        assert normalized.text == "Midterm moved\nThe midterm is now due Oct 30."
        assert "2026-10-01" not in normalized.text
        assert normalized.context.startswith("[2026-10-01 09:00] Midterm moved")

    def test_context_item_limit(self):
        """Test only the first ten announcements reach the model context."""
        items = tuple({"title": f"Update {i:02d}", "message": "Read the notes"} for i in range(1, 13))
        source = RawSource(kind=SourceKind.ANNOUNCEMENT, items=items)

        normalized = normalize_sources([source])[0]

        assert "Update 10" in normalized.context
        assert "Update 11" not in normalized.context
        assert "Update 12" in normalized.text

    def test_assignment_description(self):
        """Test assignment descriptions are labeled by name."""
        source = RawSource(kind=SourceKind.ASSIGNMENT_DESCRIPTION, items=(
            {"name": "Essay 1", "description": "<p>Cite three sources.</p>"},
        ))

        normalized = normalize_source(source)

        assert normalized.context == "[Essay 1]: Cite three sources."
        assert normalized.text == "Essay 1\nCite three sources."

    def test_non_dict_items_ignored(self):
        """Test malformed items are skipped."""
        source = RawSource(kind=SourceKind.MODULE_DESCRIPTION, items=("oops",))

        assert normalize_source(source).is_empty

    def test_text_and_items_combined(self):
        """Test body text comes before item lines."""
        source = RawSource(
            kind=SourceKind.MODULE_DESCRIPTION,
            text="Week 1 overview",
            items=({"name": "Module 1", "description": "Read chapter 1"},),
        )

        normalized = normalize_source(source)

        assert normalized.text.splitlines() == ["Week 1 overview", "Module 1", "Read chapter 1"]
        assert normalized.context == "Week 1 overview\n\nModule 1: Read chapter 1"


class TestBuildModelContext:
    """Test model context assembly."""

    def test_sections_in_order(self):
        """Test course line, existing tasks block and section order."""
        sources = [
            NormalizedSource(kind=SourceKind.ANNOUNCEMENT, text="", context="Quiz moved to Friday"),
            NormalizedSource(kind=SourceKind.SYLLABUS, text="", context="Essay due 10/25"),
        ]
        existing = [CandidateTask(
            title="Essay",
            task_type=TaskType.ASSIGNMENT,
            course_id="c1",
            due_date=datetime(2026, 10, 25, 23, 59),
        )]

        context = build_model_context(sources, [Course(id="c1", code="CS101", name="Intro to CS")], existing)

        assert context.startswith("Course: CS101 Intro to CS\n\n")
        assert EXISTING_TASKS_HEADER in context
        assert "- Essay (Due: 2026-10-25T23:59:00)" in context
        assert context.index("SYLLABUS:") < context.index("RECENT ANNOUNCEMENTS:")
        assert "Quiz moved to Friday" in context

    def test_empty_sections_omitted(self):
        """Test headings only appear for kinds with content."""
        sources = [NormalizedSource(kind=SourceKind.SYLLABUS, text="", context="Essay due 10/25")]

        context = build_model_context(sources)

        assert "CALENDAR EVENTS:" not in context
        assert EXISTING_TASKS_HEADER not in context
        assert context == "SYLLABUS:\nEssay due 10/25\n\n"
