"""Thin client for Google's Generative Language API.

The client sends one prompt per call and hands back the raw text.  It asks
for JSON output, but that is only a hint: callers always run the result
through :mod:`app.services.json_repair`.  Retries are deliberately left to
the orchestration layer.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings, get_settings
from .errors import GenerationFailure

logger = logging.getLogger(__name__)


def _candidate_text(candidates: Any) -> Optional[str]:
    """Join the text parts of the first candidate, or ``None`` if its shape is off."""

    if not isinstance(candidates, list) or not isinstance(candidates[0], dict):
        return None
    content = candidates[0].get("content")
    if content is None:
        return ""
    if not isinstance(content, dict):
        return None
    parts = content.get("parts") or []
    if not isinstance(parts, list):
        return None
    texts: List[str] = []
    for part in parts:
        if not isinstance(part, dict):
            return None
        text = part.get("text", "")
        if not isinstance(text, str):
            return None
        texts.append(text)
    return "".join(texts)


class GeminiClient:
    """Invoke a Gemini model and return its text output."""

    DEFAULT_MODEL = "gemini-1.5-flash"
    _BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.4,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key or None
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "GeminiClient":
        settings = settings or get_settings()
        return cls(
            settings.gemini_api_key_value,
            model=settings.gemini_model,
            temperature=settings.gemini_temperature,
            timeout=settings.gemini_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _http_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout, connect=10.0),
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def generate(self, prompt: str, *, task: str, expected_items: Optional[int] = None) -> str:
        """Send ``prompt`` and return the model's raw text.

        ``expected_items`` is the number of entries the prompt asked for; it is
        only reported in logs.  Every provider problem, including timeouts,
        surfaces as :class:`GenerationFailure` tagged with ``task``.
        """

        if not self.configured:
            raise GenerationFailure(task, "Gemini API key is not configured")

        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "responseMimeType": "application/json",
            },
        }
        endpoint = f"{self._BASE_URL}/models/{self.model}:generateContent"
        logger.debug("Requesting %s from %s (expected items: %s)", task, self.model, expected_items)

        try:
            response = self._http_client().post(endpoint, params={"key": self.api_key}, json=payload)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("Gemini request for %s timed out: %s", task, exc)
            raise GenerationFailure(task, "Gemini request timed out") from exc
        except httpx.HTTPStatusError as exc:
            logger.warning("Gemini request for %s failed with HTTP %s", task, exc.response.status_code)
            raise GenerationFailure(task, f"Gemini returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning("Gemini HTTP request for %s failed: %s", task, exc)
            raise GenerationFailure(task, "Gemini HTTP request failed") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise GenerationFailure(task, "Gemini returned a non-JSON envelope") from exc

        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not candidates:
            feedback = data.get("promptFeedback") if isinstance(data, dict) else None
            reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
            message = f"Gemini response was blocked ({reason})" if reason else "Gemini response did not include candidates"
            raise GenerationFailure(task, message)
        text = _candidate_text(candidates)
        if text is None:
            logger.warning("Gemini returned a malformed candidate for %s", task)
            raise GenerationFailure(task, "Gemini returned a malformed response")
        if not text.strip():
            raise GenerationFailure(task, "Gemini returned an empty response")
        return text
