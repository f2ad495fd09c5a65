"""Tests for corpus parsing and marker indexing."""

import dataclasses

import pytest

from voice_friend.exceptions import ParseError
from voice_friend.services.corpus_index import (
    CATCH_ALL,
    MARKER_VOCABULARY,
    CorpusIndex,
    ExchangeRecord,
    extract_markers,
    parse_corpus,
)

from conftest import MIXED_CORPUS, ScriptedRandom


class TestParseCorpus:
    def test_pairs_user_and_ai_lines(self):
        records = parse_corpus("User: I feel lonely\nAI: You are not alone.\n")

        assert records == [ExchangeRecord("I feel lonely", "You are not alone.")]

    def test_strips_indentation_and_whitespace(self):
        records = parse_corpus("   User:   hello  \n\tAI:  hey there  \n")

        assert records == [ExchangeRecord("hello", "hey there")]

    def test_second_user_line_overwrites_pending_prompt(self):
        records = parse_corpus("User: first\nUser: second\nAI: reply\n")

        assert records == [ExchangeRecord("second", "reply")]

    def test_ai_line_without_pending_prompt_is_ignored(self):
        records = parse_corpus("AI: orphan\nUser: q\nAI: a\nAI: another orphan\n")

        assert records == [ExchangeRecord("q", "a")]

    def test_unrelated_lines_are_skipped(self):
        text = "Dataset header\n\nUser: q\n# comment\nAI: a\nfooter\n"

        assert parse_corpus(text) == [ExchangeRecord("q", "a")]

    def test_empty_prompt_is_not_paired(self):
        assert parse_corpus("User:\nAI: nothing to answer\n") == []

    def test_preserves_corpus_order(self):
        records = parse_corpus(MIXED_CORPUS)

        assert [r.prompt for r in records] == [
            "I feel lonely",
            "Nobody calls, I feel so lonely",
            "I am sad",
            "Pick a number",
        ]

    def test_records_are_immutable(self):
        record = parse_corpus("User: q\nAI: a\n")[0]

        with pytest.raises(dataclasses.FrozenInstanceError):
            record.reply = "changed"


class TestExtractMarkers:
    def test_case_folds_before_matching(self):
        assert extract_markers("I FEEL LONELY") == ["lonely"]

    def test_returns_terms_in_vocabulary_order(self):
        assert extract_markers("I am happy but lonely") == ["lonely", "happy"]

    def test_substring_containment(self):
        # "this" contains "hi"
        assert "hi" in extract_markers("this")

    def test_no_marker_yields_catch_all(self):
        assert extract_markers("asdkj qweiop") == [CATCH_ALL]

    def test_catch_all_is_not_a_vocabulary_term(self):
        assert CATCH_ALL not in MARKER_VOCABULARY


class TestCorpusIndex:
    def test_record_indexed_under_every_matching_marker(self):
        index = CorpusIndex.build("User: I am lonely and sad\nAI: I'm here.\n")

        assert index.lookup("lonely") == index.lookup("sad") == list(index.records)

    def test_unmarked_record_goes_to_catch_all(self, mixed_index):
        bucket = mixed_index.lookup(CATCH_ALL)

        assert [r.prompt for r in bucket] == ["Pick a number"]

    def test_bucket_keeps_insertion_order(self, mixed_index):
        bucket = mixed_index.lookup("lonely")

        assert [r.reply for r in bucket] == ["You are not alone.", "I'm right here with you."]

    def test_every_record_is_reachable(self, mixed_index):
        reachable = set()
        for term in list(MARKER_VOCABULARY) + [CATCH_ALL]:
            reachable.update(mixed_index.lookup(term))

        assert reachable == set(mixed_index.records)

    def test_indexed_records_exist_in_record_list(self, mixed_index):
        for term in list(MARKER_VOCABULARY) + [CATCH_ALL]:
            for record in mixed_index.lookup(term):
                assert record in mixed_index.records

    def test_lookup_unknown_term_is_empty(self, mixed_index):
        assert mixed_index.lookup("zebra") == []

    def test_lookup_returns_a_copy(self, mixed_index):
        mixed_index.lookup("lonely").clear()

        assert len(mixed_index.lookup("lonely")) == 2

    def test_stats(self, mixed_index):
        stats = mixed_index.stats()

        assert stats["record_count"] == 4
        # lonely, sad, general
        assert stats["marker_count"] == 3
        assert stats["loaded"] is True

    def test_pick_example_uses_random_source(self):
        index = CorpusIndex.build(MIXED_CORPUS, rng=ScriptedRandom([2]))

        assert index.pick_example().prompt == "I am sad"

    def test_pick_example_on_empty_corpus(self, empty_index):
        assert empty_index.pick_example() is None

    def test_empty_corpus(self, empty_index):
        assert empty_index.stats() == {"record_count": 0, "marker_count": 0, "loaded": True}

    def test_build_rejects_non_text(self):
        with pytest.raises(ParseError):
            CorpusIndex.build(b"User: q\nAI: a\n")


class TestLoad:
    def test_load_from_file(self, corpus_file):
        index = CorpusIndex.load(str(corpus_file))

        assert index.stats()["record_count"] == 2
        assert index.lookup("joke")[0].prompt == "Tell me a joke"

    def test_missing_file_raises_parse_error(self, tmp_path):
        with pytest.raises(ParseError):
            CorpusIndex.load(str(tmp_path / "missing.txt"))

    def test_undecodable_file_raises_parse_error(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_bytes(b"User: \xff\xfe\nAI: hi\n")

        with pytest.raises(ParseError):
            CorpusIndex.load(str(path), encoding="utf-8")

    def test_unknown_encoding_raises_parse_error(self, corpus_file):
        with pytest.raises(ParseError):
            CorpusIndex.load(str(corpus_file), encoding="not-a-codec")
