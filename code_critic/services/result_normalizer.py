from __future__ import annotations

import json
import logging
from typing import Any, Literal

from code_critic.errors import ParseError
from code_critic.models import AnalysisResult

logger = logging.getLogger(__name__)

RESULT_FIELDS = ("errors", "securityVulnerabilities", "refactoringSuggestions")
TEXT_KEYS = ("description", "recommendation", "message")

ExtractionMode = Literal["greedy", "balanced"]


class ResultNormalizer:
    """Turns a free-form model reply into an AnalysisResult.

    The reply is expected to carry one JSON object somewhere in its prose. List
    items may be plain strings or objects; objects are reduced to their most
    descriptive text field.
    """

    def __init__(self, extraction: ExtractionMode = "greedy") -> None:
        if extraction not in ("greedy", "balanced"):
            raise ValueError(f"Unknown extraction mode: {extraction}")
        self.extraction = extraction

    def normalize(self, raw_text: str) -> AnalysisResult:
        payload = self.parse_payload(raw_text)
        return AnalysisResult.model_validate(
            {field: self.extract_texts(payload.get(field)) for field in RESULT_FIELDS}
        )

    def parse_payload(self, raw_text: str) -> dict[str, Any]:
        if self.extraction == "balanced":
            span = find_balanced_span(raw_text or "")
        else:
            span = find_greedy_span(raw_text or "")
        if span is None:
            raise ParseError("no JSON found")

        try:
            payload = json.loads(span, parse_constant=reject_constant)
        except (ValueError, RecursionError) as exc:
            logger.debug("Model reply span is not valid JSON: %s", exc)
            raise ParseError("malformed JSON", detail=str(exc)) from exc
        if not isinstance(payload, dict):
            raise ParseError("malformed JSON", detail=f"expected an object, got {type(payload).__name__}")
        return payload

    @classmethod
    def extract_texts(cls, items: Any) -> list[str]:
        if not isinstance(items, list):
            return []
        return [cls.item_text(item) for item in items]

    @staticmethod
    def item_text(item: Any) -> str:
        if isinstance(item, str):
            return item
        if isinstance(item, dict):
            for key in TEXT_KEYS:
                value = item.get(key)
                if value:
                    return value if isinstance(value, str) else primitive_text(value)
            return compact_json(item)
        return primitive_text(item)


def normalize(raw_text: str) -> AnalysisResult:
    return ResultNormalizer().normalize(raw_text)


def find_greedy_span(text: str) -> str | None:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    return text[start : end + 1]


def find_balanced_span(text: str) -> str | None:
    """Return the first complete {...} block, skipping braces inside strings."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def compact_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def primitive_text(value: Any) -> str:
    # Mirror JSON spelling so that true/null/1 read the same as in the reply.
    if value is None or isinstance(value, bool):
        return json.dumps(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return compact_json(value)
    return str(value)
