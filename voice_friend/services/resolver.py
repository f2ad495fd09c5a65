"""
Fast-path lookup of a recorded reply for new input.
"""

from typing import Optional

from voice_friend.services.corpus_index import CorpusIndex, ExchangeRecord, extract_markers
from voice_friend.services.random_source import RandomSource, SystemRandomSource


class Resolver:
    def __init__(self, index: CorpusIndex, rng: Optional[RandomSource] = None):
        self._index = index
        self._rng = rng or SystemRandomSource()

    def resolve_record(self, input_text: str) -> Optional[ExchangeRecord]:
        # First marker in vocabulary order with any records wins.
        for term in extract_markers(input_text):
            matches = self._index.lookup(term)
            if matches:
                return matches[self._rng.pick(len(matches))]
        return None

    def resolve(self, input_text: str) -> Optional[str]:
        """Return a recorded reply, or None when nothing is indexed."""
        record = self.resolve_record(input_text)
        return record.reply if record else None
