import asyncio
from typing import List, Optional

import pytest

from voice_friend.exceptions import BackendError
from voice_friend.services.corpus_index import CorpusIndex
from voice_friend.services.fallback_service import GenerationBounds


SCENARIO_CORPUS = """User: I feel lonely
AI: You are not alone.
User: Tell me a joke
AI: Why did the scarecrow win an award? He was outstanding in his field.
"""

MIXED_CORPUS = """Header line that is ignored

User: I feel lonely
AI: You are not alone.
User: Nobody calls, I feel so lonely
AI: I'm right here with you.
User: I am sad
AI: I'm sorry you're feeling low.
User: Pick a number
AI: Seven, always seven.
"""


class ScriptedRandom:
    """Returns the scripted picks in turn, wrapped into range."""

    def __init__(self, picks: Optional[List[int]] = None):
        self.picks = list(picks or [0])
        self.calls = 0

    def pick(self, n: int) -> int:
        value = self.picks[self.calls % len(self.picks)]
        self.calls += 1
        return value % n


class RecordingBackend:
    def __init__(self, reply: str = "That sounds like a lot. I'm with you."):
        self.reply = reply
        self.calls = []

    async def generate(self, instruction: str, user_text: str, bounds: GenerationBounds) -> str:
        self.calls.append((instruction, user_text, bounds))
        return self.reply


class FailingBackend:
    def __init__(self, exc: Optional[Exception] = None):
        self.exc = exc or BackendError("connection refused")

    async def generate(self, instruction, user_text, bounds):
        raise self.exc


class SlowBackend:
    async def generate(self, instruction, user_text, bounds):
        await asyncio.sleep(1)
        return "too late"


@pytest.fixture
def scenario_index():
    return CorpusIndex.build(SCENARIO_CORPUS, rng=ScriptedRandom())


@pytest.fixture
def mixed_index():
    return CorpusIndex.build(MIXED_CORPUS, rng=ScriptedRandom())


@pytest.fixture
def empty_index():
    return CorpusIndex.build("")


@pytest.fixture
def corpus_file(tmp_path):
    path = tmp_path / "dataset.txt"
    path.write_text(SCENARIO_CORPUS, encoding="utf-8")
    return path
