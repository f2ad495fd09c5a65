"""
Response pipeline — cache-first lookup, then generative fallback.

Every call returns a reply ready for speech synthesis together with where it
came from and how long it took. Errors never escape ``handle_input``.
"""

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from loguru import logger

from voice_friend.config import Settings
from voice_friend.services.corpus_index import CorpusIndex
from voice_friend.services.fallback_service import (
    FallbackGenerator,
    GenerationBounds,
    GenerativeBackend,
    create_backend,
)
from voice_friend.services.random_source import RandomSource
from voice_friend.services.resolver import Resolver
from voice_friend.services.speech_text import normalize_for_speech

EMERGENCY_REPLY = "I'm here for you. Tell me more about what's on your mind."


class Provenance(str, Enum):
    MATCHED = "matched"
    GENERATED = "generated"
    EMERGENCY = "emergency"


@dataclass(frozen=True)
class ResolutionResult:
    reply_text: str
    provenance: Provenance
    elapsed_ms: float

    def source(self, matched_source: str) -> str:
        """Outward ``source`` label; matched replies report the corpus identifier."""
        if self.provenance is Provenance.MATCHED:
            return matched_source
        return self.provenance.value


class PipelineCounters:
    """Process-wide hit/miss totals."""

    def __init__(self):
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def record_match(self) -> None:
        with self._lock:
            self._hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self._misses += 1

    def snapshot(self) -> dict:
        with self._lock:
            hits, misses = self._hits, self._misses
        total = hits + misses
        hit_rate = (hits / total) * 100 if total else 0.0
        return {
            "cache_hits": hits,
            "cache_misses": misses,
            "hit_rate": f"{hit_rate:.1f}%",
        }


class ResponsePipeline:
    def __init__(
        self,
        resolver: Resolver,
        fallback: FallbackGenerator,
        counters: Optional[PipelineCounters] = None,
    ):
        self._resolver = resolver
        self._fallback = fallback
        self.counters = counters or PipelineCounters()

    async def handle_input(self, user_text: str) -> ResolutionResult:
        start = time.perf_counter()

        try:
            reply = self._resolver.resolve(user_text)
            # A recorded reply that cleans up to nothing counts as a miss.
            if reply is not None and normalize_for_speech(reply):
                provenance = Provenance.MATCHED
            else:
                logger.info(f"Cache miss, using fallback: '{user_text[:30]}...'")
                reply = await self._fallback.generate(user_text)
                provenance = Provenance.GENERATED
            reply = normalize_for_speech(reply)
        except Exception:
            logger.exception("Error generating response")
            reply = EMERGENCY_REPLY
            provenance = Provenance.EMERGENCY

        if provenance is Provenance.MATCHED:
            self.counters.record_match()
        else:
            self.counters.record_miss()

        elapsed = round((time.perf_counter() - start) * 1000, 2)
        if provenance is Provenance.MATCHED:
            logger.info(f"Cache hit ({elapsed}ms): '{user_text[:30]}...'")

        return ResolutionResult(reply_text=reply, provenance=provenance, elapsed_ms=elapsed)

    def stats(self) -> dict:
        return {**self.counters.snapshot(), "llm_enabled": self._fallback.enabled}


def create_pipeline(
    settings: Settings,
    index: CorpusIndex,
    backend: Optional[GenerativeBackend] = None,
    rng: Optional[RandomSource] = None,
) -> ResponsePipeline:
    """Wire resolver and fallback around an already-built index."""
    if backend is None:
        backend = create_backend(settings)

    bounds = GenerationBounds(
        model=settings.OPENAI_MODEL,
        max_tokens=settings.OPENAI_MAX_TOKENS,
        temperature=settings.OPENAI_TEMPERATURE,
    )
    fallback = FallbackGenerator(
        index,
        backend=backend,
        bounds=bounds,
        timeout=settings.BACKEND_TIMEOUT_SECONDS,
    )
    return ResponsePipeline(Resolver(index, rng=rng), fallback)
