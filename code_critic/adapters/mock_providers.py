from __future__ import annotations

import json

from code_critic.models import AnalysisResult
from code_critic.services.result_normalizer import ResultNormalizer


class MockLLMClient:
    """Offline stand-in for GeminiClient that replies with a canned critique."""

    def __init__(self, reply: str | None = None) -> None:
        self.reply = reply
        self.normalizer = ResultNormalizer()

    def analyze_code(self, code: str) -> AnalysisResult:
        if not code or not code.strip():
            raise ValueError("Code cannot be empty")
        return self.normalizer.normalize(self.reply or self._canned_reply(code))

    @staticmethod
    def test_connection() -> bool:
        return True

    @staticmethod
    def _canned_reply(code: str) -> str:
        line_count = len(code.splitlines())
        payload = {
            "errors": [],
            "securityVulnerabilities": [
                {"description": "Mock analysis: no external model was consulted.", "severity": "info"}
            ],
            "refactoringSuggestions": [f"Mock analysis of {line_count} line(s) of code."],
        }
        return f"Here is the analysis result:\n{json.dumps(payload, indent=2)}"
