"""
core/service.py - Main Service Layer
=====================================

This module provides the main API for the chatbot. The HTTP backend (or any
other front end) should ONLY call functions from this module.

The key function is `QueryPipeline.answer()` which:
1. Short-circuits greetings with a fixed welcome message
2. Serves a cached answer if one is still fresh
3. Looks the question up in the offline knowledge base
4. Falls back to Gemini
5. Apologizes if every tier came up empty

Steps 2-4 are an ordered list of stages. Each stage either returns a result
or None, and the first result wins; answers from the knowledge base and
Gemini are written back to the cache.
"""

import logging
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol, Sequence

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import (
    APOLOGY_MESSAGE,
    CACHE_TTL_SECONDS,
    KNOWLEDGE_BASE_PATH,
    WELCOME_MESSAGE,
)
from core.cache import Clock, ResponseCache
from core.classifier import QueryKind, classify, normalize_query
from core.generator import GeminiGenerator, Generator
from core.knowledge_base import KnowledgeBase, load_knowledge_base, render_entry

logger = logging.getLogger(__name__)

# Provenance tags reported in AnswerResult.source
SOURCE_LOCAL = "local"
SOURCE_CACHE = "cache"
SOURCE_GEMINI = "gemini"
SOURCE_NONE = "none"


# =============================================================================
# RESPONSE DATA STRUCTURES
# =============================================================================

@dataclass
class AnswerResult:
    """
    Structured response from the pipeline.

    This is what the HTTP layer serializes back to the client.

    Attributes:
        timestamp: ISO-8601 time the answer was produced (UTC)
        query: The user's original message, unmodified
        structured: True for knowledge-base, cached, or generated answers
        reply: The text to show the user
        source: "local", "cache", "gemini", or "none"
    """
    timestamp: str
    query: str
    structured: bool
    reply: str
    source: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Query:
    """A user message and its normalized lookup key."""
    raw: str
    key: str


@dataclass(frozen=True)
class StageResult:
    text: str
    source: str
    cacheable: bool


# =============================================================================
# RESOLVER STAGES
# =============================================================================

class ResolverStage(Protocol):
    name: str

    def try_resolve(self, query: Query) -> Optional[StageResult]:
        ...


class CacheStage:
    name = "cache"

    def __init__(self, cache: ResponseCache):
        self.cache = cache

    def try_resolve(self, query: Query) -> Optional[StageResult]:
        text = self.cache.get(query.key)
        if text is None:
            return None
        return StageResult(text=text, source=SOURCE_CACHE, cacheable=False)


class KnowledgeBaseStage:
    name = "knowledge_base"

    def __init__(self, knowledge_base: KnowledgeBase):
        self.knowledge_base = knowledge_base

    def try_resolve(self, query: Query) -> Optional[StageResult]:
        entry = self.knowledge_base.resolve(query.key)
        if entry is None:
            return None
        return StageResult(text=render_entry(entry), source=SOURCE_LOCAL, cacheable=True)


class GeneratorStage:
    """Sends the original (not normalized) message to the generator."""
    name = "gemini"

    def __init__(self, generator: Generator):
        self.generator = generator

    def try_resolve(self, query: Query) -> Optional[StageResult]:
        text = self.generator.generate(query.raw)
        if not text or not text.strip():
            return None
        return StageResult(text=text, source=SOURCE_GEMINI, cacheable=True)


# =============================================================================
# PIPELINE
# =============================================================================

class QueryPipeline:
    """
    Greeting check followed by an ordered list of resolver stages.

    Usage:
        pipeline = QueryPipeline(knowledge_base, cache, generator)
        result = pipeline.answer("What is malaria?")
        result.source   # "local"
    """

    def __init__(
        self,
        knowledge_base: KnowledgeBase,
        cache: ResponseCache,
        generator: Generator,
        clock: Clock = time.time,
        stages: Optional[Sequence[ResolverStage]] = None,
    ):
        self.knowledge_base = knowledge_base
        self.cache = cache
        self.generator = generator
        self._clock = clock
        if stages is None:
            stages = [
                CacheStage(cache),
                KnowledgeBaseStage(knowledge_base),
                GeneratorStage(generator),
            ]
        self.stages = list(stages)

    def _result(self, query: str, structured: bool, reply: str, source: str) -> AnswerResult:
        timestamp = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        return AnswerResult(
            timestamp=timestamp.isoformat().replace("+00:00", "Z"),
            query=query,
            structured=structured,
            reply=reply,
            source=source,
        )

    def answer(self, message: str) -> AnswerResult:
        """
        Answer a user message.

        Args:
            message: The user's raw text. Must not be blank; the HTTP layer
                     rejects blank messages before calling this.

        Returns:
            AnswerResult. Failures in any tier show up as source "none",
            never as an exception.

        Raises:
            ValueError: If message is blank
        """
        if not message or not message.strip():
            raise ValueError("message must not be blank")

        query = Query(raw=message, key=normalize_query(message))

        if classify(query.key) is QueryKind.GREETING:
            logger.debug("Greeting detected: %r", query.key)
            return self._result(message, False, WELCOME_MESSAGE, SOURCE_LOCAL)

        for stage in self.stages:
            resolved = stage.try_resolve(query)
            if resolved is None:
                logger.debug("Stage %s missed for %r", stage.name, query.key)
                continue

            logger.debug("Stage %s answered %r", stage.name, query.key)
            if resolved.cacheable:
                self.cache.put(query.key, resolved.text)
            return self._result(message, True, resolved.text, resolved.source)

        logger.info("No tier could answer %r", query.key)
        return self._result(message, False, APOLOGY_MESSAGE, SOURCE_NONE)


def build_default_pipeline() -> QueryPipeline:
    """
    Build a pipeline from config: knowledge base file, cache TTL, Gemini key.

    Raises:
        FileNotFoundError: If the knowledge base file is missing
    """
    knowledge_base = load_knowledge_base(KNOWLEDGE_BASE_PATH)
    cache = ResponseCache(ttl_seconds=CACHE_TTL_SECONDS)
    generator = GeminiGenerator()

    if not generator.configured:
        logger.warning(
            "GEMINI_API_KEY is not set; questions outside the knowledge base "
            "will get the fallback apology."
        )

    return QueryPipeline(knowledge_base, cache, generator)
