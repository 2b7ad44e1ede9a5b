from __future__ import annotations


class CodeCriticError(Exception):
    """Base class for failures surfaced to API callers."""


class ParseError(CodeCriticError):
    """The model reply did not contain a usable JSON object."""

    def __init__(self, reason: str, detail: str = "") -> None:
        self.reason = reason
        self.detail = detail
        message = f"Failed to parse analysis result: {reason}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class StorageWriteError(CodeCriticError):
    """A mutation of the history slot could not be completed."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        self.detail = detail
        message = f"Failed to {operation} analysis history"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class AnalysisRequestError(CodeCriticError):
    """The model API call failed before any text came back."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
