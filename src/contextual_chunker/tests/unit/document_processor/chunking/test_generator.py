"""Tests for initial chunk span generation."""

from contextual_chunker.core.document_processor.chunking.boundary import Boundary, BoundaryStrength
from contextual_chunker.core.document_processor.chunking.config import ChunkingStrategy, StrategyConfig
from contextual_chunker.core.document_processor.chunking.generator import ChunkGenerator


def weak(position):
    return Boundary(position=position, strength=BoundaryStrength.WEAK, weight=0.3, pattern_source="sentence_end")


def bounded(content, *positions):
    return [Boundary.sentinel(0)] + [weak(p) for p in positions] + [Boundary.sentinel(len(content))]


SMALL = StrategyConfig(ChunkingStrategy.SIMPLE, target_size=20, max_size=40, min_size=10, overlap_size=0)


class TestChunkGenerator:

    def setup_method(self):
        self.generator = ChunkGenerator()

    def test_blank_content_yields_no_spans(self):
        assert self.generator.generate("  \n ", [Boundary.sentinel(0)], SMALL) == []

    def test_short_segments_are_absorbed(self):
        content = "Short. This sentence is long enough. Tiny. Another long sentence here."
        boundaries = bounded(
            content,
            content.index(" This"),
            content.index(" Tiny"),
            content.index(" Another"),
        )
        assert self.generator.generate(content, boundaries, SMALL) == [(0, 42), (42, 70)]

    def test_all_short_segments_become_one_chunk(self):
        content = "A b. C d. E f."
        boundaries = bounded(content, 4, 9)
        assert self.generator.generate(content, boundaries, SMALL) == [(0, len(content))]

    def test_spans_are_contiguous_and_cover_content(self):
        content = " ".join(f"Sentence {i} has enough words to count." for i in range(8))
        positions = [i for i, char in enumerate(content) if char == " " and content[i - 1] == "."]
        spans = self.generator.generate(content, bounded(content, *positions), SMALL)

        assert spans[0][0] == 0
        assert spans[-1][1] == len(content)
        for (_, left_end), (right_start, _) in zip(spans, spans[1:]):
            assert left_end == right_start

    def test_missing_sentinels_are_implied(self):
        content = "This sentence is long enough. Another long sentence here."
        spans = self.generator.generate(content, [weak(content.index(" Another"))], SMALL)
        assert spans == [(0, 29), (29, len(content))]
