"""Shared fixtures: a controllable clock, a scripted generator, and a pipeline."""

from pathlib import Path

import pytest

from core.cache import ResponseCache
from core.knowledge_base import load_knowledge_base
from core.service import QueryPipeline

SIX_HOURS = 6 * 60 * 60
DATA_FILE = Path(__file__).parent.parent / "data" / "diseases.json"


class FakeClock:
    """Returns a fixed time that tests move forward by hand."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeGenerator:
    """Returns a canned reply (or None) and records every question."""

    configured = True

    def __init__(self, reply=None):
        self.reply = reply
        self.calls = []

    def generate(self, user_message):
        self.calls.append(user_message)
        return self.reply


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def knowledge_base():
    return load_knowledge_base(DATA_FILE)


@pytest.fixture
def cache(clock):
    return ResponseCache(ttl_seconds=SIX_HOURS, clock=clock)


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def pipeline(knowledge_base, cache, generator, clock):
    return QueryPipeline(knowledge_base, cache, generator, clock=clock)
