import json

from code_critic.adapters.kv_store import FileKeyValueStore, InMemoryKeyValueStore
from code_critic.adapters.neo4j_store import Neo4jKeyValueStore
from code_critic.models import AnalysisResult
from code_critic.services.history_store import HistoryStore


def test_in_memory_store_get_set_remove() -> None:
    store = InMemoryKeyValueStore()
    assert store.get("slot") is None
    store.set("slot", "value")
    assert store.get("slot") == "value"
    store.remove("slot")
    store.remove("slot")
    assert store.get("slot") is None


def test_file_store_creates_parent_directory_and_persists(tmp_path) -> None:
    path = tmp_path / "nested" / "store.json"
    store = FileKeyValueStore(path)
    assert store.get("slot") is None
    assert not path.exists()

    store.set("slot", "[]")
    store.set("other", "x")

    reopened = FileKeyValueStore(path)
    assert reopened.get("slot") == "[]"
    assert reopened.get("other") == "x"
    assert json.loads(path.read_text(encoding="utf-8")) == {"slot": "[]", "other": "x"}


def test_file_store_remove_keeps_other_slots(tmp_path) -> None:
    store = FileKeyValueStore(tmp_path / "store.json")
    store.set("a", "1")
    store.set("b", "2")
    store.remove("a")
    store.remove("missing")
    assert store.get("a") is None
    assert store.get("b") == "2"


def test_file_store_reads_corrupt_document_as_empty(tmp_path) -> None:
    path = tmp_path / "store.json"
    path.write_text("not valid json", encoding="utf-8")
    store = FileKeyValueStore(path)
    assert store.get("slot") is None

    store.set("slot", "value")
    assert json.loads(path.read_text(encoding="utf-8")) == {"slot": "value"}


def test_file_store_ignores_non_string_values(tmp_path) -> None:
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"slot": [1, 2]}), encoding="utf-8")
    assert FileKeyValueStore(path).get("slot") is None


def test_file_store_leaves_no_temporary_files(tmp_path) -> None:
    store = FileKeyValueStore(tmp_path / "store.json")
    store.set("slot", "value")
    assert [item.name for item in tmp_path.iterdir()] == ["store.json"]


def test_history_survives_reopening_file_store(tmp_path) -> None:
    path = tmp_path / "history.json"
    HistoryStore(FileKeyValueStore(path)).save("let a = 1;", AnalysisResult(errors=["e1"]))

    analyses = HistoryStore(FileKeyValueStore(path)).get_all()
    assert len(analyses) == 1
    assert analyses[0].code_snippet == "let a = 1;"
    assert analyses[0].result.errors == ["e1"]


def test_neo4j_store_without_credentials_uses_memory() -> None:
    store = Neo4jKeyValueStore("", "", "")
    assert store.enabled is False
    store.ensure_schema()

    store.set("slot", "value")
    assert store.get("slot") == "value"
    store.remove("slot")
    assert store.get("slot") is None
    store.close()
