"""
Ollama API client wrapper.
"""
import logging
from typing import Optional

import httpx

from core.config import (
    OLLAMA_BASE_URL,
    OLLAMA_EXTRACTION_MODEL,
    LLM_TEMPERATURE,
    LLM_MAX_TOKENS,
    LLM_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


class ModelUnavailableError(Exception):
    """Raised when the language model cannot be reached or errors out."""
    pass


class OllamaClient:
    """Client for interacting with Ollama models."""

    def __init__(
        self,
        base_url: str = OLLAMA_BASE_URL,
        model: str = OLLAMA_EXTRACTION_MODEL,
        timeout: float = LLM_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.client = httpx.Client(timeout=timeout)

    def _call_model(
        self,
        model: str,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
        json_mode: bool = False,
    ) -> str:
        """Generic method to call any Ollama model."""
        url = f"{self.base_url}/api/generate"
        payload = {
            "model": model,
            "prompt": prompt,
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens,
            },
            "stream": False,
        }
        if system:
            payload["system"] = system
        if json_mode:
            payload["format"] = "json"

        try:
            response = self.client.post(url, json=payload)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPError as e:
            raise ModelUnavailableError(f"Ollama API error: {e}") from e
        except ValueError as e:
            raise ModelUnavailableError(f"Ollama returned a non-JSON envelope: {e}") from e

        return result.get("response", "")

    def generate_json(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
    ) -> str:
        """Call the extraction model and ask for a JSON object reply."""
        logger.debug("Calling %s with %d prompt characters", self.model, len(prompt))
        return self._call_model(
            self.model,
            prompt,
            system=system,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=True,
        )


# Global Ollama client instance
ollama = OllamaClient()
