"""
Centralized prompt file management with fallback templates.
"""
import logging
from typing import Dict

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert at finding academic requirements and informal deadlines that "
    "instructors mention but don't formalize. Output valid JSON only."
)

# Short instruction prepended when a single chunk of one section is submitted
SECTION_HINTS = {
    "assignments": "This text is part of an assignment list. Extract all assignments with due dates.",
    "modules": "This text is part of the course modules. Extract module tasks and readings.",
    "syllabus": "This text is part of the syllabus. Extract key dates and deliverables.",
}
DEFAULT_SECTION_HINT = "Extract tasks from the course material below."


class PromptManager:
    """Manages prompt file loading with consistent fallback behavior."""

    def __init__(self):
        from core.config import PROMPTS_DIR
        self.prompts_dir = PROMPTS_DIR
        self.loaded_prompts: Dict[str, str] = {}

        # Fallback templates
        self.fallback_templates = {
            "task_extraction": self._get_task_extraction_fallback(),
        }

    def get_prompt(self, prompt_name: str) -> str:
        """
        Load prompt by name with fallback.

        Args:
            prompt_name: Name of prompt file (without .txt extension)

        Returns:
            Prompt template string
        """
        if prompt_name in self.loaded_prompts:
            return self.loaded_prompts[prompt_name]

        prompt_file = self.prompts_dir / f"{prompt_name}.txt"

        if prompt_file.exists():
            try:
                template = prompt_file.read_text(encoding="utf-8")
                if not template.strip():
                    raise ValueError(f"Prompt file is empty: {prompt_file}")

                self.loaded_prompts[prompt_name] = template
                return template

            except (OSError, ValueError) as e:
                logger.warning("Failed to load prompt file %s: %s", prompt_file, e)

        if prompt_name in self.fallback_templates:
            logger.info("Using fallback template for: %s", prompt_name)
            template = self.fallback_templates[prompt_name]
            self.loaded_prompts[prompt_name] = template
            return template

        raise FileNotFoundError(
            f"Prompt file not found and no fallback available: {prompt_name}.txt. "
            f"Expected at: {prompt_file}"
        )

    def build_extraction_prompt(self, context: str, reference_date: str, section: str = "") -> str:
        """Fill the task extraction template for one unit of context."""
        template = self.get_prompt("task_extraction")
        return template.format(
            context=context,
            reference_date=reference_date,
            section_hint=SECTION_HINTS.get(section, DEFAULT_SECTION_HINT),
        )

    def _get_task_extraction_fallback(self) -> str:
        """Fallback template for task extraction."""
        return """Extract academic tasks from the course material as JSON.

Today's date is {reference_date}.

{section_hint}

{context}

Rules:
- Output valid JSON only
- One task per assignment/reading/exam
- Skip anything listed under ALREADY IMPORTED ASSIGNMENTS
- ISO dates (YYYY-MM-DD); null dueDate for recurring tasks

Output format:
{{"extractedTasks": [{{"title": "Read Chapter 1", "type": "reading", "dueDate": "2025-09-14", "recurring": false, "recurringPattern": null, "recurringDay": null, "confidence": "high", "estimatedHours": 2, "complexity": 2, "courseIdentifier": null}}], "hiddenPatterns": [{{"pattern": "...", "frequency": "...", "importance": "medium"}}], "warnings": []}}
"""


# Global instance
prompt_manager = PromptManager()
