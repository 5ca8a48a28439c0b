"""
Course affinity matching by code or name fragment.
"""
from typing import Optional, Sequence

from models.task_models import Course

MIN_NAME_WORD_LENGTH = 4


def _name_words(course: Course):
    return [w for w in course.name.lower().split() if len(w) >= MIN_NAME_WORD_LENGTH]


def match_course(text: str, courses: Sequence[Course]) -> Optional[str]:
    """
    Find the course a piece of text refers to.

    Course codes are checked first across all courses, then any word of a
    course name with at least four letters. Courses are tried in list order
    within each pass, so a code on a later course beats a name word on an
    earlier one: "Biology lab report CHEM200" goes to CHEM200 even when
    "Biology Basics" is listed first.

    Returns:
        Matching course id, or None
    """
    if not text or not courses:
        return None
    lower = text.lower()

    for course in courses:
        if course.code and course.code.lower() in lower:
            return course.id
    for course in courses:
        for word in _name_words(course):
            if word in lower:
                return course.id
    return None


def match_course_identifier(identifier: Optional[str], courses: Sequence[Course]) -> Optional[str]:
    """Resolve a model-supplied course identifier (code, name or id)."""
    if not identifier or not courses:
        return None
    ident = identifier.strip().lower()
    if not ident:
        return None

    for course in courses:
        if ident == course.id.lower():
            return course.id
        code = (course.code or "").lower()
        name = (course.name or "").lower()
        if code and (code in ident or ident in code):
            return course.id
        if name and (name in ident or ident in name):
            return course.id
    return match_course(identifier, courses)
