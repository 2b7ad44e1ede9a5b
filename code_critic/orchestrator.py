from __future__ import annotations

import logging
from typing import Protocol

from code_critic.errors import StorageWriteError
from code_critic.models import AnalysisResult, AnalyzeResponse
from code_critic.services.history_store import HistoryStore

logger = logging.getLogger(__name__)


class CodeAnalyzer(Protocol):
    def analyze_code(self, code: str) -> AnalysisResult: ...

    def test_connection(self) -> bool: ...


class AnalysisOrchestrator:
    def __init__(self, llm: CodeAnalyzer | None, history: HistoryStore) -> None:
        self.llm = llm
        self.history = history

    @property
    def llm_enabled(self) -> bool:
        return self.llm is not None

    def analyze(self, code: str) -> AnalyzeResponse:
        if self.llm is None:
            raise RuntimeError("No language model is configured")

        result = self.llm.analyze_code(code)
        logger.info("Analysis returned %d finding(s)", result.issue_count)

        # A failed save must not discard an analysis that already succeeded.
        try:
            saved = self.history.save(code, result)
        except StorageWriteError as exc:
            logger.exception("Analysis succeeded but could not be saved to history")
            return AnalyzeResponse(result=result, saved=False, warnings=[str(exc)])
        return AnalyzeResponse(result=result, saved=True, analysis_id=saved.id)

    def test_connection(self) -> bool:
        if self.llm is None:
            return False
        return self.llm.test_connection()
