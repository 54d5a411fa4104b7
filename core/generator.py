"""
core/generator.py - Gemini Text Generation
===========================================

The last tier of the pipeline: when neither the cache nor the offline
knowledge base can answer, the question goes to Google Gemini.

The pipeline only relies on the Generator protocol below:

    generate(user_message) -> str | None

GeminiGenerator never raises. A missing API key, a network error, a
timeout, a non-2xx status, or a response with an unexpected shape all
come back as None, and the pipeline moves on to its apology message.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Union

import requests

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import (
    API_KEY_PLACEHOLDER_PREFIX,
    DISCLAIMER,
    GEMINI_API_KEY,
    GEMINI_BASE_URL,
    GEMINI_CONNECT_TIMEOUT,
    GEMINI_MODEL,
    GEMINI_READ_TIMEOUT,
)

logger = logging.getLogger(__name__)


# =============================================================================
# PROMPT TEMPLATES
# =============================================================================

SYSTEM_PROMPT = (
    "You are HealthAI Pro+, a concise professional medical assistant. "
    "Answer only about medical topics: causes, symptoms, prevention, and general treatments. "
    "Do NOT provide prescriptions or emergency instructions. "
    f"Always include a short disclaimer at the end: '{DISCLAIMER}'"
)

USER_PROMPT_TEMPLATE = (
    "User question: {question}\n\n"
    "Provide a clear paragraph-style response with short paragraphs (no lists)."
)


def build_prompt(user_message: str) -> str:
    """Combine the system instruction and the user's question into one prompt."""
    return SYSTEM_PROMPT + "\n\n" + USER_PROMPT_TEMPLATE.format(question=user_message)


def build_payload(prompt: str) -> dict:
    """Wrap the prompt as the single text part of a generateContent request."""
    return {"contents": [{"parts": [{"text": prompt}]}]}


# =============================================================================
# RESPONSE SHAPES
# =============================================================================

@dataclass(frozen=True)
class PrimaryShape:
    """candidates[0].content.parts[0].text"""
    text: str


@dataclass(frozen=True)
class FallbackOutputShape:
    """A flat top-level "output" string."""
    text: str


@dataclass(frozen=True)
class Unrecognized:
    """Anything else. `reason` says which level of nesting was missing."""
    reason: str


ResponseShape = Union[PrimaryShape, FallbackOutputShape, Unrecognized]


def _first_candidate_text(body: dict) -> Union[str, Unrecognized]:
    candidates = body.get("candidates")
    if not isinstance(candidates, list):
        return Unrecognized("no candidates array")
    if not candidates:
        return Unrecognized("empty candidates array")

    first = candidates[0]
    content = first.get("content") if isinstance(first, dict) else None
    if not isinstance(content, dict):
        return Unrecognized("first candidate has no content")

    parts = content.get("parts")
    if not isinstance(parts, list) or not parts:
        return Unrecognized("content has no parts")

    part = parts[0]
    text = part.get("text") if isinstance(part, dict) else None
    if not isinstance(text, str) or not text.strip():
        return Unrecognized("first part has no text")

    return text


def parse_response(body: Any) -> ResponseShape:
    """
    Classify a decoded generateContent response.

    The candidates shape is tried first. A top-level "output" string is only
    used when there is no candidates field at all; a present-but-broken
    candidates field is Unrecognized.

    Example:
        >>> parse_response({"candidates": [{"content": {"parts": [{"text": "Hi"}]}}]})
        PrimaryShape(text='Hi')
        >>> parse_response({"candidates": []})
        Unrecognized(reason='empty candidates array')
    """
    if not isinstance(body, dict):
        return Unrecognized("response body is not a JSON object")

    if "candidates" in body:
        result = _first_candidate_text(body)
        if isinstance(result, Unrecognized):
            return result
        return PrimaryShape(result)

    output = body.get("output")
    if isinstance(output, str) and output.strip():
        return FallbackOutputShape(output)

    return Unrecognized("no candidates or output field")


def extract_text(shape: ResponseShape) -> Optional[str]:
    """Return the generated text for a recognized shape, else None."""
    if isinstance(shape, (PrimaryShape, FallbackOutputShape)):
        return shape.text
    return None


# =============================================================================
# GENERATORS
# =============================================================================

class Generator(Protocol):
    """Anything that can turn a user question into answer text."""

    # False when the generator would skip every call (e.g. no API key)
    configured: bool

    def generate(self, user_message: str) -> Optional[str]:
        ...


def is_usable_api_key(api_key: Optional[str]) -> bool:
    """False for a missing, blank, or placeholder ("YOUR_...") key."""
    if not api_key or not api_key.strip():
        return False
    return not api_key.strip().upper().startswith(API_KEY_PLACEHOLDER_PREFIX)


class GeminiGenerator:
    """
    Gemini generateContent client.

    Usage:
        generator = GeminiGenerator(api_key="...")
        text = generator.generate("What causes gout?")  # str or None
    """

    def __init__(
        self,
        api_key: Optional[str] = GEMINI_API_KEY,
        model: str = GEMINI_MODEL,
        connect_timeout: float = GEMINI_CONNECT_TIMEOUT,
        read_timeout: float = GEMINI_READ_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = (connect_timeout, read_timeout)
        self._session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{GEMINI_BASE_URL}/{self.model}:generateContent"

    @property
    def configured(self) -> bool:
        return is_usable_api_key(self.api_key)

    def generate(self, user_message: str) -> Optional[str]:
        """
        Ask Gemini to answer the user's question.

        Returns:
            The generated text, or None if the call was skipped or failed
        """
        if not self.configured:
            logger.warning("Gemini API key missing or placeholder; skipping external call.")
            return None

        payload = build_payload(build_prompt(user_message))

        try:
            response = self._session.post(
                self.endpoint,
                json=payload,
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.warning("Gemini call timed out after %s seconds", self.timeout)
            return None
        except requests.RequestException as e:
            logger.warning("Gemini call failed: %s", e)
            return None

        if not response.ok:
            logger.warning("Gemini returned HTTP %s: %s", response.status_code, response.text[:200])
            return None

        try:
            body = response.json()
        except ValueError:
            logger.warning("Gemini returned a non-JSON body")
            return None

        shape = parse_response(body)
        if isinstance(shape, Unrecognized):
            logger.warning("Unrecognized Gemini response: %s", shape.reason)
        return extract_text(shape)
