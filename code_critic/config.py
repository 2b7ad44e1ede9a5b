from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel
from dotenv import load_dotenv


ROOT_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = ROOT_DIR / "data"
load_dotenv(ROOT_DIR / ".env")

DEFAULT_HISTORY_KEY = "code-analysis-history"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
STORAGE_BACKENDS = ("file", "memory", "neo4j")


class Settings(BaseModel):
    app_env: str = os.getenv("APP_ENV", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    llm_provider: str = os.getenv("LLM_PROVIDER", "gemini")
    llm_api_key: str = os.getenv("LLM_API_KEY", os.getenv("GEMINI_API_KEY", ""))
    llm_base_url: str = os.getenv("LLM_BASE_URL", os.getenv("GEMINI_BASE_URL", DEFAULT_GEMINI_BASE_URL))
    llm_model: str = os.getenv("LLM_MODEL", os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL))
    http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

    storage_backend_name: str = os.getenv("STORAGE_BACKEND", "file")
    history_file: str = os.getenv("HISTORY_FILE", str(DATA_DIR / "history_store.json"))
    history_key: str = os.getenv("HISTORY_KEY", DEFAULT_HISTORY_KEY)
    history_max_entries: int = int(os.getenv("HISTORY_MAX_ENTRIES", "50"))
    snippet_length: int = int(os.getenv("SNIPPET_LENGTH", "200"))
    history_limit: int = int(os.getenv("HISTORY_LIMIT", "50"))

    neo4j_uri: str = os.getenv("NEO4J_URI", "")
    neo4j_user: str = os.getenv("NEO4J_USER", os.getenv("NEO4J_USERNAME", ""))
    neo4j_password: str = os.getenv("NEO4J_PASSWORD", "")
    neo4j_database: str = os.getenv("NEO4J_DATABASE", "")

    @property
    def storage_backend(self) -> str:
        backend = self.storage_backend_name.strip().lower()
        if backend in STORAGE_BACKENDS:
            return backend
        return "file"

    @property
    def neo4j_enabled(self) -> bool:
        return bool(self.neo4j_uri and self.neo4j_user and self.neo4j_password)

    @property
    def use_mock_llm(self) -> bool:
        return self.llm_provider.strip().lower() == "mock"

    @property
    def llm_enabled(self) -> bool:
        return self.use_mock_llm or bool(self.llm_api_key.strip())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
