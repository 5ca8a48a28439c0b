"""
Configuration validation for the task extraction backend.
Validates prompt files, the model service and settings on startup.
"""
import logging
from typing import Any, Dict, List

import requests

logger = logging.getLogger(__name__)


class ConfigValidator:
    """Validates system configuration before the pipeline runs.

    An unreachable model is only a warning: extraction then runs on the
    heuristic path alone.
    """

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_all(self) -> Dict[str, Any]:
        """
        Run all validation checks.

        Returns:
            {
                "valid": bool,
                "errors": List[str],
                "warnings": List[str]
            }
        """
        self.errors = []
        self.warnings = []

        self._validate_prompt_files()
        self._validate_config_values()
        self._validate_ollama()

        return {
            "valid": len(self.errors) == 0,
            "errors": self.errors,
            "warnings": self.warnings,
        }

    def _validate_prompt_files(self):
        """Prompt files are optional; built-in templates cover missing ones."""
        from core.config import PROMPTS_DIR

        path = PROMPTS_DIR / "task_extraction.txt"
        if not path.exists():
            self.warnings.append(
                f"Prompt file missing: {path.name}. Using the built-in extraction template."
            )
        elif path.stat().st_size == 0:
            self.warnings.append(f"Prompt file is empty: {path.name}")

    def _validate_ollama(self):
        """Check that Ollama is reachable and the extraction model is pulled."""
        from core.config import (
            MODEL_EXTRACTION_ENABLED,
            OLLAMA_BASE_URL,
            OLLAMA_EXTRACTION_MODEL,
        )

        if not MODEL_EXTRACTION_ENABLED:
            self.warnings.append("Model extraction disabled; running heuristic extraction only.")
            return

        try:
            response = requests.get(f"{OLLAMA_BASE_URL}/api/tags", timeout=5)
            response.raise_for_status()
            available_models = [model["name"] for model in response.json().get("models", [])]
        except requests.exceptions.ConnectionError:
            self.warnings.append(
                f"Cannot connect to Ollama at {OLLAMA_BASE_URL}. "
                "Extraction will run in degraded (heuristic-only) mode."
            )
            return
        except requests.exceptions.Timeout:
            self.warnings.append(
                f"Ollama connection timeout at {OLLAMA_BASE_URL}. "
                "Extraction will run in degraded (heuristic-only) mode."
            )
            return
        except (requests.exceptions.RequestException, ValueError, KeyError) as e:
            self.warnings.append(f"Ollama connection error: {e}")
            return

        if OLLAMA_EXTRACTION_MODEL not in available_models:
            self.warnings.append(
                f"Extraction model not found: {OLLAMA_EXTRACTION_MODEL}. "
                f"Pull it with: `ollama pull {OLLAMA_EXTRACTION_MODEL}`"
            )

    def _validate_config_values(self):
        """Validate configuration value ranges and types."""
        from core.config import (
            CHUNK_HARD_LIMIT_FACTOR,
            CHUNK_MIN_SPLIT_SIZE,
            DEFAULT_DUE_DAYS,
            LLM_TEMPERATURE,
            LLM_TIMEOUT_SECONDS,
            MAX_CHUNK_SIZE,
            MAX_CONCURRENT_CHUNKS,
            RECURRENCE_HORIZON,
        )

        if MAX_CHUNK_SIZE <= 0:
            self.errors.append(f"MAX_CHUNK_SIZE ({MAX_CHUNK_SIZE}) must be positive")

        if CHUNK_MIN_SPLIT_SIZE >= MAX_CHUNK_SIZE:
            self.errors.append(
                f"CHUNK_MIN_SPLIT_SIZE ({CHUNK_MIN_SPLIT_SIZE}) must be < MAX_CHUNK_SIZE ({MAX_CHUNK_SIZE})"
            )

        if CHUNK_HARD_LIMIT_FACTOR < 1.0:
            self.errors.append(
                f"CHUNK_HARD_LIMIT_FACTOR ({CHUNK_HARD_LIMIT_FACTOR}) must be >= 1.0"
            )

        if DEFAULT_DUE_DAYS < 0:
            self.errors.append(f"DEFAULT_DUE_DAYS ({DEFAULT_DUE_DAYS}) must not be negative")

        if RECURRENCE_HORIZON < 1:
            self.errors.append(f"RECURRENCE_HORIZON ({RECURRENCE_HORIZON}) must be at least 1")

        if MAX_CONCURRENT_CHUNKS < 1:
            self.errors.append(f"MAX_CONCURRENT_CHUNKS ({MAX_CONCURRENT_CHUNKS}) must be at least 1")

        if LLM_TIMEOUT_SECONDS <= 0:
            self.errors.append(f"LLM_TIMEOUT_SECONDS ({LLM_TIMEOUT_SECONDS}) must be positive")

        if not (0.0 <= LLM_TEMPERATURE <= 1.0):
            self.warnings.append(
                f"LLM_TEMPERATURE ({LLM_TEMPERATURE}) outside normal range [0.0, 1.0]"
            )


# Global validator instance
config_validator = ConfigValidator()
