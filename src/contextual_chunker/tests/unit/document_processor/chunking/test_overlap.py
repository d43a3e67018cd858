"""Tests for chunk overlap."""

import pytest

from contextual_chunker.core.document_processor.chunking.config import ChunkingStrategy, StrategyConfig
from contextual_chunker.core.document_processor.chunking.overlap import OverlapApplier
from contextual_chunker.core.document_processor.chunking.result import Chunk

FIRST = "First sentence here. Second sentence here."
SECOND = "Third sentence here."


def make_chunks():
    return [
        Chunk(content=FIRST, start_position=0, end_position=len(FIRST), index=0),
        Chunk(content=SECOND, start_position=len(FIRST) + 1, end_position=len(FIRST) + 1 + len(SECOND), index=1),
    ]


def config_with(max_size, overlap_size):
    return StrategyConfig(
        ChunkingStrategy.SIMPLE,
        target_size=40,
        max_size=max_size,
        min_size=10,
        overlap_size=overlap_size,
    )


class TestOverlapText:

    def setup_method(self):
        self.applier = OverlapApplier()

    def test_leading_overlap_cuts_at_word_break(self):
        assert self.applier.leading_overlap("one two three four five", 10) == "four five"

    def test_trailing_overlap_cuts_at_word_break(self):
        assert self.applier.trailing_overlap("one two three four five", 10) == "one two"

    def test_whole_sentences_when_within_limit(self):
        assert self.applier.trailing_overlap("A b. C d. E f.", 100) == "A b. C d."
        assert self.applier.leading_overlap("A b. C d. E f.", 100) == "C d. E f."

    def test_max_sentences_validated(self):
        with pytest.raises(ValueError):
            OverlapApplier(max_sentences=0)


class TestOverlapApplier:

    def test_overlap_added_both_ways(self):
        chunks = OverlapApplier().apply(make_chunks(), config_with(200, 30))

        assert chunks[0].has_overlap_after
        assert chunks[0].overlap_after == SECOND
        assert chunks[0].content == FIRST + "\n\n" + SECOND
        assert not chunks[0].has_overlap_before

        assert chunks[1].has_overlap_before
        assert chunks[1].overlap_before == "here. Second sentence here."
        assert not chunks[1].has_overlap_after

    def test_overlap_does_not_move_positions(self):
        chunks = OverlapApplier().apply(make_chunks(), config_with(200, 30))
        assert (chunks[1].start_position, chunks[1].end_position) == (43, 63)
        assert chunks[1].body == SECOND
        assert chunks[0].body == FIRST

    def test_overlap_respects_max_size(self):
        chunks = OverlapApplier().apply(make_chunks(), config_with(50, 30))
        assert not chunks[0].has_overlap_after
        assert chunks[0].content == FIRST
        assert chunks[1].has_overlap_before
        assert chunks[1].size <= 50

    def test_zero_overlap_leaves_chunks_untouched(self):
        chunks = OverlapApplier().apply(make_chunks(), config_with(200, 0))
        assert [chunk.content for chunk in chunks] == [FIRST, SECOND]

    def test_single_chunk_unchanged(self):
        chunks = make_chunks()[:1]
        assert OverlapApplier().apply(chunks, config_with(200, 30))[0].content == FIRST
