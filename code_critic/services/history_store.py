from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Callable

from pydantic import TypeAdapter, ValidationError

from code_critic.adapters.kv_store import KeyValueStore
from code_critic.config import DEFAULT_HISTORY_KEY
from code_critic.errors import StorageWriteError
from code_critic.models import AnalysisResult, SavedAnalysis

logger = logging.getLogger(__name__)

HISTORY_ADAPTER = TypeAdapter(list[SavedAnalysis])


def epoch_millis() -> int:
    return int(time.time() * 1000)


class HistoryStore:
    """Capped, newest-first analysis history kept in one key-value slot.

    Reads are best effort: a missing, unreadable or corrupt slot reads as an
    empty history. Mutations fail loudly with StorageWriteError. There is no
    locking, so two writers interleaving their read and write steps can lose
    one of the updates.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = DEFAULT_HISTORY_KEY,
        max_entries: int = 50,
        snippet_length: int = 200,
        clock: Callable[[], int] = epoch_millis,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if snippet_length < 0:
            raise ValueError("snippet_length must not be negative")
        self.store = store
        self.key = key
        self.max_entries = max_entries
        self.snippet_length = snippet_length
        self.clock = clock

    def save(self, code_snippet: str, result: AnalysisResult) -> SavedAnalysis:
        try:
            raw = self.store.get(self.key)
        except Exception:
            logger.warning("Could not read history slot %r before save, starting empty", self.key, exc_info=True)
            raw = None
        analyses = self._parse(raw)

        timestamp = self.clock()
        record = SavedAnalysis(
            id=self._generate_id(timestamp),
            timestamp=timestamp,
            code_snippet=code_snippet[: self.snippet_length],
            result=result,
        )
        analyses.insert(0, record)
        self._write(analyses[: self.max_entries], operation="save")
        logger.debug("Saved analysis %s to %r", record.id, self.key)
        return record

    def get_all(self) -> list[SavedAnalysis]:
        try:
            raw = self.store.get(self.key)
        except Exception:
            logger.warning("Could not read history slot %r", self.key, exc_info=True)
            return []
        return self._parse(raw)

    def get(self, analysis_id: str) -> SavedAnalysis | None:
        for analysis in self.get_all():
            if analysis.id == analysis_id:
                return analysis
        return None

    def delete(self, analysis_id: str) -> None:
        try:
            raw = self.store.get(self.key)
        except Exception as exc:
            raise StorageWriteError("delete", detail=str(exc)) from exc
        analyses = self._parse(raw)
        remaining = [analysis for analysis in analyses if analysis.id != analysis_id]
        self._write(remaining, operation="delete")
        logger.debug("Deleted %d analysis record(s) with id %s", len(analyses) - len(remaining), analysis_id)

    def clear(self) -> None:
        try:
            self.store.remove(self.key)
        except Exception as exc:
            raise StorageWriteError("clear", detail=str(exc)) from exc

    def _parse(self, raw: str | None) -> list[SavedAnalysis]:
        if not raw:
            return []
        try:
            return HISTORY_ADAPTER.validate_json(raw)
        except ValidationError:
            logger.warning("History slot %r holds unreadable data, treating it as empty", self.key)
            return []

    def _write(self, analyses: list[SavedAnalysis], operation: str) -> None:
        payload = json.dumps([analysis.model_dump(mode="json", by_alias=True) for analysis in analyses])
        try:
            self.store.set(self.key, payload)
        except Exception as exc:
            raise StorageWriteError(operation, detail=str(exc)) from exc

    @staticmethod
    def _generate_id(timestamp: int) -> str:
        return f"analysis_{timestamp}_{uuid.uuid4().hex[:9]}"
