"""LLM adapters used by the remote report classifier.

An adapter turns one prompt into one raw completion string. Parsing and
validation of that string belong to ``classification.validator``.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from openai import OpenAI


class BaseLLMAdapter(ABC):
    """Abstract base for all LLM adapters."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Return the raw model output for ``prompt`` (expected to be JSON)."""


class OpenAILLMAdapter(BaseLLMAdapter):
    """Chat-completion adapter for OpenAI and OpenAI-compatible endpoints.

    Requests are non-streaming and use a fixed low temperature, so identical
    uploads get the same classification as often as the model allows. JSON
    mode is requested by default; disable it for compatible servers that
    reject ``response_format``.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 2000,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        system_prompt: Optional[str] = None,
        timeout_seconds: float = 20.0,
        json_mode: bool = True,
    ) -> None:
        """
        Args:
            model: Model identifier.
            max_tokens: Completion token cap.
            api_key: API key; the OpenAI client reads OPENAI_API_KEY when omitted.
            base_url: Base URL of an OpenAI-compatible server.
            system_prompt: System message sent ahead of every prompt.
            timeout_seconds: Per-request timeout.
            json_mode: Ask the server for a JSON object response.
        """
        client_options: Dict[str, Any] = {"timeout": timeout_seconds, "max_retries": 0}
        if api_key:
            client_options["api_key"] = api_key
        if base_url:
            client_options["base_url"] = base_url

        self._client = OpenAI(**client_options)
        self._model = model
        self._max_tokens = max_tokens
        self._system_prompt = system_prompt
        self._json_mode = json_mode

    def _messages(self, prompt: str) -> List[Dict[str, str]]:
        if not self._system_prompt:
            return [{"role": "user", "content": prompt}]
        return [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": prompt},
        ]

    def generate(self, prompt: str) -> str:
        request: Dict[str, Any] = {
            "model": self._model,
            "messages": self._messages(prompt),
            "temperature": 0.0,
            "max_tokens": self._max_tokens,
        }
        if self._json_mode:
            request["response_format"] = {"type": "json_object"}

        completion = self._client.chat.completions.create(**request)
        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""
