"""
Normalization of raw course sources into plain text.

HTML is flattened with BeautifulSoup, structured LMS items are rendered as
one line per item, and the model context is organized by source kind.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from core.config import MAX_ANNOUNCEMENTS, MAX_DISCUSSIONS, SUMMARY_MAX_CHARS
from models.task_models import CandidateTask, Course, RawSource, SourceKind
from services.processing.chunker import summarize_for_tokens

HTML_TAG = re.compile(
    r"<\s*(?:p|div|br|li|ul|ol|table|tr|td|th|h[1-6]|span|a|strong|em|b|i|body|html)\b[^>]*>",
    re.IGNORECASE,
)
BLOCK_TAGS = [
    "p", "div", "li", "ul", "ol", "table", "section", "article", "header", "footer",
    "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre",
]

DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

EXISTING_TASKS_HEADER = "ALREADY IMPORTED ASSIGNMENTS (DO NOT DUPLICATE THESE):"

# Model context sections, in prompt order
CONTEXT_SECTIONS = [
    (SourceKind.SYLLABUS, "SYLLABUS:"),
    (SourceKind.CALENDAR_FEED, "CALENDAR EVENTS:"),
    (SourceKind.ANNOUNCEMENT, "RECENT ANNOUNCEMENTS:"),
    (SourceKind.DISCUSSION_POST, "PROFESSOR DISCUSSION POSTS:"),
    (SourceKind.MODULE_DESCRIPTION, "MODULE DESCRIPTIONS:"),
    (SourceKind.ASSIGNMENT_DESCRIPTION, "ASSIGNMENT DETAILED DESCRIPTIONS:"),
]
CONTEXT_ITEM_LIMITS = {
    SourceKind.ANNOUNCEMENT: MAX_ANNOUNCEMENTS,
    SourceKind.DISCUSSION_POST: MAX_DISCUSSIONS,
}


@dataclass(frozen=True)
class NormalizedSource:
    """A source flattened for extraction.

    ``text`` is scanned line by line by the heuristic classifier; ``context``
    is the richer rendering handed to the model.
    """
    kind: SourceKind
    text: str
    context: str

    @property
    def is_empty(self) -> bool:
        return not self.text.strip() and not self.context.strip()


def clean_text(text: str) -> str:
    """Collapse runs of spaces and blank lines, keeping line structure."""
    lines = [re.sub(r"[ \t\xa0]+", " ", line).strip() for line in text.splitlines()]
    cleaned: List[str] = []
    for line in lines:
        if not line and (not cleaned or not cleaned[-1]):
            continue
        cleaned.append(line)
    while cleaned and not cleaned[-1]:
        cleaned.pop()
    return "\n".join(cleaned)


def looks_like_html(text: str) -> bool:
    return bool(text) and bool(HTML_TAG.search(text))


def html_to_text(raw_html: str) -> str:
    """
    Flatten HTML into lines of text.

    Processing:
        1. Remove scripts and styles
        2. Turn <br> and block elements into line breaks
        3. Render table rows as "cell | cell" lines
        4. Prefix list items with "- "
    """
    soup = BeautifulSoup(raw_html, "html.parser")

    for element in soup(["script", "style", "noscript"]):
        element.decompose()

    for br in soup.find_all("br"):
        br.replace_with("\n")

    for row in soup.find_all("tr"):
        cells = [cell.get_text(" ", strip=True) for cell in row.find_all(["td", "th"])]
        row.replace_with(" | ".join(c for c in cells if c) + "\n")

    for item in soup.find_all("li"):
        item.insert(0, "- ")

    for block in soup.find_all(BLOCK_TAGS):
        block.append("\n")

    return clean_text(soup.get_text())


def to_plain_text(text: Optional[str]) -> str:
    if not text:
        return ""
    return html_to_text(text) if looks_like_html(text) else clean_text(text)


def format_item_date(value: Any) -> str:
    """Render an LMS timestamp as local 'YYYY-MM-DD HH:MM'.

    Date-only values render as 'YYYY-MM-DD' so the end-of-day default applies.
    """
    if not value:
        return ""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return value.isoformat()
    else:
        text = str(value).strip()
        if DATE_ONLY.match(text):
            return text
        try:
            parsed = date_parser.isoparse(text)
        except (ValueError, OverflowError):
            return text
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed.strftime("%Y-%m-%d %H:%M")


def _render_item(kind: SourceKind, item: Dict[str, Any]):
    """Return (heuristic line, context block) for one structured item."""
    if kind == SourceKind.CALENDAR_FEED:
        title = to_plain_text(item.get("title")).replace("\n", " ")
        when = format_item_date(item.get("startDate") or item.get("start_date"))
        description = to_plain_text(item.get("description"))
        line = f"{title} due {when}" if when else title
        context = f"{line}: {description}" if description else line
        return line, context

    if kind in (SourceKind.ANNOUNCEMENT, SourceKind.DISCUSSION_POST):
        when = format_item_date(item.get("date"))
        title = to_plain_text(item.get("title")).replace("\n", " ")
        message = to_plain_text(item.get("message"))
        # Posting dates are not deadlines; only the model sees them
        header = " ".join(part for part in (f"[{when}]" if when else "", title) if part)
        text = "\n".join(part for part in (title, message) if part)
        context = "\n".join(part for part in (header, message) if part)
        return text, context

    name = to_plain_text(item.get("name") or item.get("title")).replace("\n", " ")
    description = to_plain_text(item.get("description"))
    if kind == SourceKind.ASSIGNMENT_DESCRIPTION:
        context = f"[{name}]: {description}" if name else description
    else:
        context = f"{name}: {description}" if name else description
    text = "\n".join(part for part in (name, description) if part)
    return text, context


def normalize_source(source: RawSource, context_item_limit: Optional[int] = None) -> NormalizedSource:
    """Flatten a RawSource's text and items."""
    text_parts: List[str] = []
    context_parts: List[str] = []

    body = to_plain_text(source.text)
    if body:
        text_parts.append(body)
        context_parts.append(body)

    for index, item in enumerate(source.items):
        if not isinstance(item, dict):
            continue
        line, context = _render_item(source.kind, item)
        if line:
            text_parts.append(line)
        if context and (context_item_limit is None or index < context_item_limit):
            context_parts.append(context)

    return NormalizedSource(
        kind=source.kind,
        text="\n".join(text_parts),
        context="\n\n".join(context_parts),
    )


def normalize_sources(sources: Iterable[RawSource]) -> List[NormalizedSource]:
    return [
        normalize_source(source, CONTEXT_ITEM_LIMITS.get(source.kind))
        for source in sources
    ]


def existing_tasks_block(existing_tasks: Sequence[CandidateTask]) -> str:
    if not existing_tasks:
        return ""
    lines = [EXISTING_TASKS_HEADER]
    for task in existing_tasks:
        due = task.due_date.isoformat() if task.due_date else "unknown"
        lines.append(f"- {task.title} (Due: {due})")
    return "\n".join(lines) + "\n\n"


def build_model_context(
    sources: Sequence[NormalizedSource],
    courses: Sequence[Course] = (),
    existing_tasks: Sequence[CandidateTask] = (),
) -> str:
    """Organize normalized sources by kind into one model context string."""
    context = ""
    if courses:
        names = ", ".join(f"{c.code} {c.name}".strip() for c in courses)
        context += f"Course: {names}\n\n"

    context += existing_tasks_block(existing_tasks)

    for kind, heading in CONTEXT_SECTIONS:
        blocks = [s.context for s in sources if s.kind == kind and s.context.strip()]
        if not blocks:
            continue
        body = "\n\n".join(blocks)
        if kind == SourceKind.SYLLABUS:
            body = summarize_for_tokens(body, SUMMARY_MAX_CHARS)
        context += f"{heading}\n{body}\n\n"

    return context
