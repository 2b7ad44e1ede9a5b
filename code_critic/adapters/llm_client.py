from __future__ import annotations

import logging
from typing import Any

import httpx

from code_critic.config import DEFAULT_GEMINI_BASE_URL, DEFAULT_GEMINI_MODEL
from code_critic.errors import AnalysisRequestError
from code_critic.models import AnalysisResult
from code_critic.services.result_normalizer import ResultNormalizer

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = """Analyze the following code. Report any errors, security vulnerabilities and
refactoring suggestions, each in its own list, as a single JSON object.

IMPORTANT: answer with string arrays only. Every item must be a plain sentence.

Format:
{{
  "errors": ["error description 1", "error description 2"],
  "securityVulnerabilities": ["security issue 1", "security issue 2"],
  "refactoringSuggestions": ["improvement 1", "improvement 2"]
}}

Code:
{code}"""


class GeminiClient:
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = DEFAULT_GEMINI_BASE_URL,
        timeout_seconds: float = 30.0,
        normalizer: ResultNormalizer | None = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("API key is required")
        self.api_key = api_key.strip()
        self.model = model or DEFAULT_GEMINI_MODEL
        self.base_url = (base_url or DEFAULT_GEMINI_BASE_URL).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.normalizer = normalizer or ResultNormalizer()

    def analyze_code(self, code: str) -> AnalysisResult:
        if not code or not code.strip():
            raise ValueError("Code cannot be empty")

        text = self._generate(ANALYSIS_PROMPT.format(code=code))
        return self.normalizer.normalize(text)

    def test_connection(self) -> bool:
        try:
            response = httpx.get(
                f"{self.base_url}/models",
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout_seconds,
            )
            return response.is_success
        except httpx.HTTPError:
            logger.warning("Gemini connection test failed", exc_info=True)
            return False

    def _generate(self, prompt: str) -> str:
        try:
            response = httpx.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                headers={
                    "x-goog-api-key": self.api_key,
                    "Content-Type": "application/json",
                },
                json={"contents": [{"parts": [{"text": prompt}]}]},
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            logger.error("Gemini request to %s failed: %s", self.model, exc)
            raise AnalysisRequestError("Network error during analysis") from exc

        if not response.is_success:
            raise AnalysisRequestError(
                f"API request failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            payload: dict[str, Any] = response.json()
        except ValueError as exc:
            raise AnalysisRequestError("No response from AI model") from exc
        return self._candidate_text(payload)

    @staticmethod
    def _candidate_text(payload: dict[str, Any]) -> str:
        candidates = payload.get("candidates") if isinstance(payload, dict) else None
        if not candidates:
            raise AnalysisRequestError("No response from AI model")
        try:
            parts = candidates[0]["content"]["parts"]
        except (KeyError, TypeError, IndexError) as exc:
            raise AnalysisRequestError("No response from AI model") from exc
        text = "".join(str(part.get("text", "")) for part in parts if isinstance(part, dict) and "text" in part)
        if not text.strip():
            raise AnalysisRequestError("No response from AI model")
        return text
