"""
Latency probe — runs sample inputs through the response pipeline and reports
per-input and average latency by source.

    python -m voice_friend.latency_probe [--corpus PATH] [INPUT ...]
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from loguru import logger

from voice_friend.config import settings
from voice_friend.exceptions import ParseError
from voice_friend.services.corpus_index import CorpusIndex
from voice_friend.services.pipeline import Provenance, ResolutionResult, create_pipeline

DEFAULT_INPUTS = [
    "I feel lonely",
    "I am stressed",
    "Motivate me",
    "I failed",
    "Tell me a joke",
    "I need a friend",
    "This is a completely novel input that is not in the dataset",
]


def _average(results: List[ResolutionResult]) -> float:
    if not results:
        return 0.0
    return sum(r.elapsed_ms for r in results) / len(results)


def assess(label: str, avg_ms: float, excellent_ms: float, good_ms: float) -> str:
    if avg_ms < excellent_ms:
        return f"{label} latency: EXCELLENT (<{excellent_ms:g}ms)"
    if avg_ms < good_ms:
        return f"{label} latency: GOOD (<{good_ms:g}ms)"
    return f"{label} latency: NEEDS OPTIMIZATION (>{good_ms:g}ms)"


async def run_probe(index: CorpusIndex, inputs: List[str]) -> int:
    pipeline = create_pipeline(settings, index)
    results = []

    print("=" * 50)
    for text in inputs:
        result = await pipeline.handle_input(text)
        results.append(result)
        print(f'Input: "{text}"')
        print(f"Latency: {result.elapsed_ms}ms")
        print(f"Source: {result.source(settings.DATASET_SOURCE)}")
        print(f'Response: "{result.reply_text}"')
        print("-" * 50)

    matched = [r for r in results if r.provenance is Provenance.MATCHED]
    generated = [r for r in results if r.provenance is Provenance.GENERATED]
    avg_matched = _average(matched)
    avg_generated = _average(generated)

    print("\nResults Summary")
    print("=" * 50)
    print(f"Total tests: {len(results)}")
    print(f"Cache hits: {len(matched)}")
    print(f"Generated: {len(generated)}")
    print(f"\nAverage cache latency: {avg_matched:.2f}ms")
    print(f"Average generated latency: {avg_generated:.2f}ms")

    print("\nPerformance Assessment")
    print("=" * 50)
    print(assess("Cache", avg_matched, 10, 50))
    print(assess("Generated", avg_generated, 500, 1000))

    dataset = index.stats()
    pipeline_stats = pipeline.stats()
    print("\nSystem Statistics")
    print("=" * 50)
    print(f"Dataset conversations: {dataset['record_count']}")
    print(f"Unique markers: {dataset['marker_count']}")
    print(f"Cache hit rate: {pipeline_stats['hit_rate']}")
    print(f"LLM enabled: {pipeline_stats['llm_enabled']}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Measure response pipeline latency.")
    parser.add_argument("inputs", nargs="*", help="inputs to probe (defaults to a built-in set)")
    parser.add_argument("--corpus", default=settings.DATASET_PATH, help="corpus file path")
    args = parser.parse_args(argv)

    try:
        index = CorpusIndex.load(args.corpus, settings.DATASET_ENCODING)
    except ParseError as e:
        logger.error(f"Latency probe failed: {e}")
        return 1

    return asyncio.run(run_probe(index, args.inputs or DEFAULT_INPUTS))


if __name__ == "__main__":
    sys.exit(main())
