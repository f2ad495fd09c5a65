"""
Keyword-indexed corpus of recorded exchanges.

The corpus is a flat text file of alternating turns::

    User: I feel lonely
    AI: I'm here for you.

Every completed pair becomes an :class:`ExchangeRecord`. Records are indexed
under each marker term their prompt contains (plain substring containment on
the lower-cased prompt); prompts with no marker land under ``CATCH_ALL``.
The index is built once and only read afterwards.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from loguru import logger

from voice_friend.exceptions import ParseError
from voice_friend.services.random_source import RandomSource, SystemRandomSource

USER_PREFIX = "User:"
AI_PREFIX = "AI:"

CATCH_ALL = "general"

# Declaration order is the lookup priority used by the resolver.
MARKER_VOCABULARY: Tuple[str, ...] = (
    "lonely", "alone", "isolated",
    "stress", "stressed", "anxious", "anxiety", "worried",
    "sad", "depressed", "down", "unhappy",
    "fail", "failed", "failure", "mistake",
    "sleep", "tired", "exhausted", "insomnia",
    "motivate", "motivation", "inspire",
    "help", "support", "need",
    "friend", "care", "love",
    "useless", "worthless", "hopeless",
    "joke", "funny", "laugh",
    "hi", "hello", "hey",
    "thank", "thanks", "grateful",
    "angry", "mad", "frustrated",
    "scared", "afraid", "fear",
    "happy", "good", "great",
)


@dataclass(frozen=True)
class ExchangeRecord:
    prompt: str
    reply: str


def normalize_text(text: str) -> str:
    return text.lower()


def extract_markers(text: str) -> List[str]:
    """
    Return the vocabulary terms occurring in ``text`` in vocabulary order,
    or ``[CATCH_ALL]`` when none occur.
    """
    normalized = normalize_text(text)
    found = [term for term in MARKER_VOCABULARY if term in normalized]
    return found or [CATCH_ALL]


def parse_corpus(corpus_text: str) -> List[ExchangeRecord]:
    """
    Pair ``User:`` lines with the ``AI:`` line that follows them.

    A new ``User:`` line replaces an unanswered one; ``AI:`` lines with no
    pending prompt and any other lines are skipped.
    """
    records: List[ExchangeRecord] = []
    pending: Optional[str] = None

    for raw in corpus_text.splitlines():
        line = raw.strip()
        if line.startswith(USER_PREFIX):
            pending = line[len(USER_PREFIX):].strip()
        elif line.startswith(AI_PREFIX) and pending:
            records.append(ExchangeRecord(prompt=pending, reply=line[len(AI_PREFIX):].strip()))
            pending = None

    return records


class CorpusIndex:
    def __init__(self, records: List[ExchangeRecord], rng: Optional[RandomSource] = None):
        self._records: Tuple[ExchangeRecord, ...] = tuple(records)
        self._index: Dict[str, List[ExchangeRecord]] = {}
        self._rng = rng or SystemRandomSource()

        for record in self._records:
            for term in extract_markers(record.prompt):
                self._index.setdefault(term, []).append(record)

    # ── Construction ─────────────────────────────────────
    @classmethod
    def build(cls, corpus_text: str, rng: Optional[RandomSource] = None) -> "CorpusIndex":
        if not isinstance(corpus_text, str):
            raise ParseError(f"Corpus must be text, got {type(corpus_text).__name__}")
        return cls(parse_corpus(corpus_text), rng=rng)

    @classmethod
    def load(
        cls,
        path: str,
        encoding: str = "utf-8",
        rng: Optional[RandomSource] = None,
    ) -> "CorpusIndex":
        """Read and index a corpus file. Raises ParseError if it cannot be read."""
        logger.info(f"Loading dataset from {path}")
        start = time.perf_counter()

        try:
            corpus_text = Path(path).read_text(encoding=encoding)
        except (OSError, UnicodeDecodeError, LookupError) as e:
            logger.error(f"Error loading dataset: {e}")
            raise ParseError(f"Cannot read corpus {path}: {e}") from e

        index = cls.build(corpus_text, rng=rng)
        elapsed = round((time.perf_counter() - start) * 1000, 2)
        stats = index.stats()
        logger.info(
            f"Dataset loaded: {stats['record_count']} conversations in {elapsed}ms, "
            f"{stats['marker_count']} unique markers"
        )
        return index

    # ── Queries ──────────────────────────────────────────
    @property
    def records(self) -> Tuple[ExchangeRecord, ...]:
        return self._records

    def lookup(self, term: str) -> List[ExchangeRecord]:
        return list(self._index.get(term, ()))

    def pick_example(self) -> Optional[ExchangeRecord]:
        """A uniformly random record, used as a style example for generation."""
        if not self._records:
            return None
        return self._records[self._rng.pick(len(self._records))]

    def stats(self) -> dict:
        return {
            "record_count": len(self._records),
            "marker_count": len(self._index),
            "loaded": True,
        }
