"""
Unit tests for course matching.
"""
from models.task_models import Course
from services.extraction.course_matcher import match_course, match_course_identifier


class TestCourseMatcher:
    """Test course affinity matching."""

    COURSES = [
        Course(id="c1", code="CS101", name="Intro to CS"),
        Course(id="c2", code="MATH200", name="Calculus II"),
    ]

    def test_code_case_insensitive(self):
        """Test code matching ignores case."""
        assert match_course("cs101 lab due friday", self.COURSES) == "c1"

    def test_name_word(self):
        """Test name words of four or more letters."""
        assert match_course("Calculus worksheet", self.COURSES) == "c2"

    def test_short_name_words_ignored(self):
        """Test 'to' and 'CS' from 'Intro to CS' do not match on their own."""
        assert match_course("Physics lab to submit", self.COURSES) is None

    def test_code_beats_earlier_name(self):
        """Test that a code match wins over a name match on an earlier course."""
        courses = [
            Course(id="c1", code="BIO100", name="Biology Lab"),
            Course(id="c2", code="LAB200", name="Chem"),
        ]

        assert match_course("LAB200 biology review", courses) == "c2"

    def test_codes_checked_before_names(self):
        """Test a later course's code outranks an earlier course's name word."""
        courses = [
            Course(id="a", code="BIO100", name="Biology Basics"),
            Course(id="b", code="CHEM200", name="General Chemistry"),
        ]

        assert match_course("Biology lab report CHEM200", courses) == "b"

    def test_first_name_match_wins(self):
        """Test list order between two name matches."""
        courses = [
            Course(id="a", code="", name="Organic Chemistry"),
            Course(id="b", code="", name="Chemistry Lab"),
        ]

        assert match_course("chemistry problem set", courses) == "a"

    def test_no_courses(self):
        """Test empty input."""
        assert match_course("CS101 essay", []) is None
        assert match_course("", self.COURSES) is None

    def test_identifier_by_id_code_or_name(self):
        """Test model-supplied identifiers."""
        assert match_course_identifier("c2", self.COURSES) == "c2"
        assert match_course_identifier("MATH200", self.COURSES) == "c2"
        assert match_course_identifier("Intro to CS", self.COURSES) == "c1"
        assert match_course_identifier("CS101 - Intro to CS", self.COURSES) == "c1"
        assert match_course_identifier("Art History", self.COURSES) is None
        assert match_course_identifier(None, self.COURSES) is None
