"""
LLM Client - Sends prompts to Gemini (HTTP) or a local Ollama model.
"""

import logging
import subprocess
from typing import Optional

import requests

from daylog import constants
from daylog.config import Settings

logger = logging.getLogger(__name__)


class LLMError(RuntimeError):
    """The remote model could not produce a usable text response."""


class LLMClient:
    """Thin text-in/text-out wrapper around the configured provider."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        provider: str = constants.DEFAULT_PROVIDER,
        model: str = constants.DEFAULT_MODEL,
        base_url: str = constants.GEMINI_BASE_URL,
        timeout: int = constants.REQUEST_TIMEOUT,
    ):
        self.api_key = api_key
        self.provider = provider
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings, api_key: Optional[str] = None) -> Optional["LLMClient"]:
        """
        Build a client from settings.

        Returns:
            LLMClient, or None when Gemini is selected but no key is available
        """
        key = api_key or settings.api_key
        if settings.provider == "gemini" and not key:
            return None
        return cls(
            api_key=key,
            provider=settings.provider,
            model=settings.model,
            base_url=settings.base_url,
            timeout=settings.timeout,
        )

    def generate(self, prompt: str) -> str:
        """
        Send a prompt and return the model's text.

        Raises:
            LLMError: on transport failure or an unexpected response envelope
        """
        if self.provider == "ollama":
            return self.call_ollama(prompt)
        if self.provider == "gemini":
            return self.call_gemini(prompt)
        raise LLMError(f"Unknown LLM provider: {self.provider}")

    def _gemini_url(self) -> str:
        return f"{self.base_url}/{self.model}:generateContent"

    def call_gemini(self, prompt: str) -> str:
        """
        Call the Gemini generateContent endpoint.

        Args:
            prompt: The prompt to send

        Returns:
            Text of the first candidate
        """
        logger.info(f"Calling Gemini with model: {self.model}")

        payload = {"contents": [{"parts": [{"text": prompt}]}]}

        try:
            response = requests.post(
                self._gemini_url(),
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise LLMError(f"Gemini request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise LLMError(f"API request failed with status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise LLMError(f"Gemini returned invalid JSON: {e}") from e

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMError("Invalid API response format") from e

        if not isinstance(text, str):
            raise LLMError("Invalid API response format")

        return text

    def call_ollama(self, prompt: str) -> str:
        """
        Run the prompt through a local Ollama model.

        Args:
            prompt: The prompt to send

        Returns:
            Model output
        """
        logger.info(f"Calling Ollama with model: {self.model}")

        try:
            result = subprocess.run(
                ["ollama", "run", self.model],
                input=prompt,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise LLMError("Ollama request timed out") from e
        except FileNotFoundError as e:
            raise LLMError("Ollama not found. Please install Ollama first.") from e

        if result.returncode != 0:
            raise LLMError(f"Ollama error: {result.stderr.strip()}")

        return result.stdout.strip()
