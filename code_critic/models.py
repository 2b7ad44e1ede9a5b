from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class AnalysisResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    errors: list[str] = Field(default_factory=list)
    security_vulnerabilities: list[str] = Field(default_factory=list, alias="securityVulnerabilities")
    refactoring_suggestions: list[str] = Field(default_factory=list, alias="refactoringSuggestions")

    @property
    def issue_count(self) -> int:
        return len(self.errors) + len(self.security_vulnerabilities) + len(self.refactoring_suggestions)


class SavedAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    timestamp: int
    code_snippet: str = Field(default="", alias="codeSnippet")
    result: AnalysisResult = Field(default_factory=AnalysisResult)


class AnalyzeRequest(BaseModel):
    code: str = Field(max_length=100_000)


class AnalyzeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    result: AnalysisResult
    saved: bool = False
    analysis_id: str | None = Field(default=None, alias="analysisId")
    warnings: list[str] = Field(default_factory=list)


class ConnectionResponse(BaseModel):
    connected: bool


class HealthResponse(BaseModel):
    status: Literal["ok"]
    llm_enabled: bool
    llm_provider: str
    neo4j_enabled: bool
    storage_backend: Literal["file", "memory", "neo4j"]
