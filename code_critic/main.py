from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Query, Response

from code_critic.adapters.kv_store import FileKeyValueStore, InMemoryKeyValueStore, KeyValueStore
from code_critic.adapters.llm_client import GeminiClient
from code_critic.adapters.mock_providers import MockLLMClient
from code_critic.adapters.neo4j_store import Neo4jKeyValueStore
from code_critic.config import Settings, get_settings
from code_critic.errors import AnalysisRequestError, ParseError, StorageWriteError
from code_critic.models import (
    AnalyzeRequest,
    AnalyzeResponse,
    ConnectionResponse,
    HealthResponse,
    SavedAnalysis,
)
from code_critic.orchestrator import AnalysisOrchestrator, CodeAnalyzer
from code_critic.services.history_store import HistoryStore


settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> KeyValueStore:
    if settings.storage_backend == "neo4j":
        return Neo4jKeyValueStore(
            settings.neo4j_uri,
            settings.neo4j_user,
            settings.neo4j_password,
            database=settings.neo4j_database,
        )
    if settings.storage_backend == "memory":
        return InMemoryKeyValueStore()
    return FileKeyValueStore(settings.history_file)


def build_llm(settings: Settings) -> CodeAnalyzer | None:
    if settings.use_mock_llm:
        return MockLLMClient()
    if not settings.llm_api_key.strip():
        return None
    return GeminiClient(
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        timeout_seconds=settings.http_timeout_seconds,
    )


store = build_store(settings)
history_store = HistoryStore(
    store,
    key=settings.history_key,
    max_entries=settings.history_max_entries,
    snippet_length=settings.snippet_length,
)
orchestrator = AnalysisOrchestrator(build_llm(settings), history_store)

app = FastAPI(title="Code Critic", version="0.1.0")


@app.on_event("startup")
def startup() -> None:
    if isinstance(store, Neo4jKeyValueStore):
        store.ensure_schema()
    logger.info("History backend: %s, LLM enabled: %s", settings.storage_backend, orchestrator.llm_enabled)


@app.on_event("shutdown")
def shutdown() -> None:
    store.close()


@app.get("/healthz", response_model=HealthResponse)
def healthz() -> HealthResponse:
    return HealthResponse(
        status="ok",
        llm_enabled=orchestrator.llm_enabled,
        llm_provider=settings.llm_provider,
        neo4j_enabled=isinstance(store, Neo4jKeyValueStore) and store.enabled,
        storage_backend=settings.storage_backend,  # type: ignore[arg-type]
    )


@app.post("/api/analyze", response_model=AnalyzeResponse)
def analyze(request: AnalyzeRequest) -> AnalyzeResponse:
    if not request.code.strip():
        raise HTTPException(status_code=400, detail="Code cannot be empty")
    if not orchestrator.llm_enabled:
        raise HTTPException(status_code=503, detail="No language model is configured. Set LLM_API_KEY.")
    try:
        return orchestrator.analyze(request.code)
    except ParseError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except AnalysisRequestError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@app.get("/api/connection", response_model=ConnectionResponse)
def connection() -> ConnectionResponse:
    return ConnectionResponse(connected=orchestrator.test_connection())


@app.get("/api/history", response_model=list[SavedAnalysis])
def history(limit: int = Query(default=settings.history_limit, ge=1, le=100)) -> list[SavedAnalysis]:
    return history_store.get_all()[:limit]


@app.get("/api/history/{analysis_id}", response_model=SavedAnalysis)
def history_entry(analysis_id: str) -> SavedAnalysis:
    analysis = history_store.get(analysis_id)
    if analysis is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return analysis


@app.delete("/api/history/{analysis_id}", status_code=204)
def delete_history_entry(analysis_id: str) -> Response:
    try:
        history_store.delete(analysis_id)
    except StorageWriteError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return Response(status_code=204)


@app.delete("/api/history", status_code=204)
def clear_history() -> Response:
    try:
        history_store.clear()
    except StorageWriteError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return Response(status_code=204)
