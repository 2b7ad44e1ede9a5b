import pytest
from fastapi.testclient import TestClient

from code_critic import main
from code_critic.adapters.kv_store import InMemoryKeyValueStore
from code_critic.adapters.mock_providers import MockLLMClient
from code_critic.errors import AnalysisRequestError
from code_critic.models import AnalysisResult
from code_critic.orchestrator import AnalysisOrchestrator
from code_critic.services.history_store import HistoryStore


class FailingWriteStore(InMemoryKeyValueStore):
    def set(self, key: str, value: str) -> None:
        raise OSError("QuotaExceededError")

    def remove(self, key: str) -> None:
        raise PermissionError("Access denied")


class ExplodingLLM:
    def analyze_code(self, code: str) -> AnalysisResult:
        raise AnalysisRequestError("API request failed: 429 Too Many Requests", status_code=429)

    def test_connection(self) -> bool:
        return False


def install(monkeypatch, llm=None, store=None) -> HistoryStore:
    history = HistoryStore(store if store is not None else InMemoryKeyValueStore())
    monkeypatch.setattr(main, "history_store", history)
    monkeypatch.setattr(main, "orchestrator", AnalysisOrchestrator(llm, history))
    return history


@pytest.fixture
def client() -> TestClient:
    return TestClient(main.app)


def test_healthz_reports_llm_state(monkeypatch, client) -> None:
    install(monkeypatch, llm=MockLLMClient())
    body = client.get("/healthz").json()
    assert body["status"] == "ok"
    assert body["llm_enabled"] is True
    assert body["storage_backend"] in {"file", "memory", "neo4j"}


def test_analyze_returns_result_and_saves_history(monkeypatch, client) -> None:
    history = install(monkeypatch, llm=MockLLMClient(reply='Result: {"errors": [{"message": "bad"}]}'))

    response = client.post("/api/analyze", json={"code": "var x=1;"})

    assert response.status_code == 200
    body = response.json()
    assert body["result"] == {"errors": ["bad"], "securityVulnerabilities": [], "refactoringSuggestions": []}
    assert body["saved"] is True
    assert body["analysisId"] == history.get_all()[0].id
    assert body["warnings"] == []


def test_analyze_keeps_result_when_save_fails(monkeypatch, client) -> None:
    install(monkeypatch, llm=MockLLMClient(reply='{"errors": ["e1"]}'), store=FailingWriteStore())

    response = client.post("/api/analyze", json={"code": "var x=1;"})

    assert response.status_code == 200
    body = response.json()
    assert body["result"]["errors"] == ["e1"]
    assert body["saved"] is False
    assert body["analysisId"] is None
    assert "Failed to save analysis history" in body["warnings"][0]


def test_analyze_rejects_blank_code(monkeypatch, client) -> None:
    install(monkeypatch, llm=MockLLMClient())
    assert client.post("/api/analyze", json={"code": "   "}).status_code == 400
    assert client.post("/api/analyze", json={"code": ""}).status_code == 400


def test_analyze_without_llm_is_unavailable(monkeypatch, client) -> None:
    install(monkeypatch, llm=None)
    response = client.post("/api/analyze", json={"code": "x = 1"})
    assert response.status_code == 503


def test_analyze_maps_parse_error_to_bad_gateway(monkeypatch, client) -> None:
    history = install(monkeypatch, llm=MockLLMClient(reply="I cannot help with that."))
    response = client.post("/api/analyze", json={"code": "x = 1"})
    assert response.status_code == 502
    assert "no JSON found" in response.json()["detail"]
    assert history.get_all() == []


def test_analyze_maps_request_error_to_bad_gateway(monkeypatch, client) -> None:
    install(monkeypatch, llm=ExplodingLLM())
    response = client.post("/api/analyze", json={"code": "x = 1"})
    assert response.status_code == 502
    assert "429" in response.json()["detail"]


def test_connection_endpoint(monkeypatch, client) -> None:
    install(monkeypatch, llm=ExplodingLLM())
    assert client.get("/api/connection").json() == {"connected": False}
    install(monkeypatch, llm=None)
    assert client.get("/api/connection").json() == {"connected": False}
    install(monkeypatch, llm=MockLLMClient())
    assert client.get("/api/connection").json() == {"connected": True}


def test_history_listing_fetch_and_delete(monkeypatch, client) -> None:
    history = install(monkeypatch)
    first = history.save("first", AnalysisResult(errors=["a"]))
    second = history.save("second", AnalysisResult(errors=["b"]))

    listing = client.get("/api/history").json()
    assert [item["id"] for item in listing] == [second.id, first.id]
    assert listing[0]["codeSnippet"] == "second"

    assert client.get("/api/history", params={"limit": 1}).json()[0]["id"] == second.id
    assert client.get(f"/api/history/{first.id}").json()["codeSnippet"] == "first"
    assert client.get("/api/history/missing").status_code == 404

    assert client.delete(f"/api/history/{second.id}").status_code == 204
    assert [item["id"] for item in client.get("/api/history").json()] == [first.id]

    assert client.delete("/api/history").status_code == 204
    assert client.get("/api/history").json() == []


def test_history_reads_corrupt_slot_as_empty(monkeypatch, client) -> None:
    install(monkeypatch, store=InMemoryKeyValueStore({"code-analysis-history": "not valid json"}))
    response = client.get("/api/history")
    assert response.status_code == 200
    assert response.json() == []


def test_history_mutation_failures_are_unavailable(monkeypatch, client) -> None:
    install(monkeypatch, store=FailingWriteStore())
    assert client.delete("/api/history/some-id").status_code == 503
    assert client.delete("/api/history").status_code == 503
