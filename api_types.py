"""
Wire types for the LibreTranslate ``/translate`` endpoint.

Requests are plain JSON objects. Responses are an *untagged* union: a body with
an ``error`` field is a failure, anything else must carry ``translatedText``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Format(str, Enum):
    TEXT = "text"
    HTML = "html"


@dataclass(frozen=True)
class Query:
    q: str
    source: str
    target: str
    alternatives: int = 0
    format: Format | None = None
    api_key: str | None = None

    def to_json(self) -> dict[str, Any]:
        """Request body; ``format`` and ``api_key`` are left out when unset"""
        body: dict[str, Any] = {
            "q": self.q,
            "source": self.source,
            "target": self.target,
            "alternatives": self.alternatives,
        }
        if self.format is not None:
            body["format"] = Format(self.format).value
        if self.api_key is not None:
            body["api_key"] = self.api_key
        return body


@dataclass(frozen=True)
class DetectedLanguage:
    confidence: int
    language: str


@dataclass(frozen=True)
class Translation:
    translated_text: str
    alternatives: list[str] | None = None
    detected_language: DetectedLanguage | None = None


@dataclass(frozen=True)
class TranslationError:
    error: str


TranslationResult = Translation | TranslationError


class ResponseShapeError(ValueError):
    """Body is JSON but matches neither the success nor the error shape"""


def _decode_detected_language(raw: Any) -> DetectedLanguage | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ResponseShapeError(f"detectedLanguage must be an object, got {type(raw).__name__}")
    confidence = raw.get("confidence")
    language = raw.get("language")
    # LibreTranslate reports confidence as a number in 0-100
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not isinstance(language, str):
        raise ResponseShapeError(f"Malformed detectedLanguage: {raw!r}")
    return DetectedLanguage(confidence=int(confidence), language=language)


def decode_translation_result(data: Any) -> TranslationResult:
    """Resolve a decoded JSON body into one of the two response variants.

    The ``error`` field is checked first, so a body carrying both ``error`` and
    ``translatedText`` is a failure.
    """
    if not isinstance(data, dict):
        raise ResponseShapeError(f"Expected a JSON object, got {type(data).__name__}")

    if "error" in data:
        error = data["error"]
        if not isinstance(error, str):
            raise ResponseShapeError(f"error must be a string, got {error!r}")
        return TranslationError(error=error)

    translated = data.get("translatedText")
    if not isinstance(translated, str):
        raise ResponseShapeError(f"Response has neither error nor translatedText: {str(data)[:300]}")

    alternatives = data.get("alternatives")
    if alternatives is not None and (
        not isinstance(alternatives, list) or not all(isinstance(a, str) for a in alternatives)
    ):
        raise ResponseShapeError(f"alternatives must be a list of strings, got {alternatives!r}")

    return Translation(
        translated_text=translated,
        alternatives=alternatives,
        detected_language=_decode_detected_language(data.get("detectedLanguage")),
    )
