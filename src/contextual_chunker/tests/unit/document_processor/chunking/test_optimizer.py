"""Tests for chunk optimization."""

import pytest

from contextual_chunker.core.document_processor.chunking.config import ChunkingStrategy, StrategyConfig
from contextual_chunker.core.document_processor.chunking.context import ChunkingContext
from contextual_chunker.core.document_processor.chunking.optimizer import (
    ChunkOptimizer,
    ProtectedSpans,
    stripped_bounds,
)
from contextual_chunker.core.document_processor.chunking.relationships import (
    Relationship,
    RelationshipType,
)

THREE_SENTENCES = "First part of text. Second part here. Third part is last."


def simple_config(target, max_size, min_size):
    return StrategyConfig(
        ChunkingStrategy.SIMPLE,
        target_size=target,
        max_size=max_size,
        min_size=min_size,
        overlap_size=0,
    )


def sentence_spans(content):
    """Spans cut at every space that follows a period."""
    cuts = [i for i, char in enumerate(content) if char == " " and content[i - 1] == "."]
    positions = [0] + cuts + [len(content)]
    return list(zip(positions, positions[1:]))


def prose(min_length):
    sentences = []
    while len(" ".join(sentences)) < min_length:
        sentences.append(f"Sentence number {len(sentences) + 1} describes a routine part of the maintenance process.")
    return " ".join(sentences)


def procedure_between_prose(steps=25):
    """Prose, a step sequence longer than one chunk, prose; returns content and the sequence bounds."""
    opening = prose(550)
    sequence = "\n".join(
        f"Step {i}: Check the report for job {i} and confirm the copy finished." for i in range(1, steps + 1)
    )
    closing = prose(550)
    content = "\n\n".join([opening, sequence, closing])
    start = content.index("Step 1:")
    return content, start, start + len(sequence)


def touched(chunks, relationship):
    return [c for c in chunks if relationship.overlaps(c.start_position, c.end_position)]


class TestStrippedBounds:

    def test_strips_whitespace(self):
        assert stripped_bounds("  ab  ", 0, 6) == (2, 4)

    def test_blank_span_collapses(self):
        start, end = stripped_bounds("    ", 0, 4)
        assert start == end


class TestChunkOptimizer:

    def setup_method(self):
        self.optimizer = ChunkOptimizer()
        self.context = ChunkingContext()

    def test_negative_snap_tolerance_raises(self):
        with pytest.raises(ValueError):
            ChunkOptimizer(snap_tolerance=-1)

    def test_relationship_spanning_chunks_is_merged(self):
        content = THREE_SENTENCES
        qa_end = content.index(" Third")
        relationship = Relationship.of_type(RelationshipType.QA_PAIR, 0, qa_end, content[:qa_end])

        result = self.optimizer.optimize(
            content, sentence_spans(content), [relationship], simple_config(10, 1000, 5), self.context
        )

        assert len(result.chunks) == 2
        assert result.relationship_merges == 1
        assert result.applied
        assert result.chunks[0].content == "First part of text. Second part here."
        assert result.chunks[0].relationships == ["qa_pair"]
        assert result.chunks[1].relationships == []
        assert result.chunks[1].start_position == content.index("Third")

    def test_small_neighbours_are_consolidated(self):
        result = self.optimizer.optimize(
            THREE_SENTENCES, sentence_spans(THREE_SENTENCES), [], simple_config(500, 1000, 5), self.context
        )
        assert len(result.chunks) == 1
        assert result.consolidations == 2
        assert result.chunks[0].content == THREE_SENTENCES

    def test_strong_boundaries_stop_consolidation(self):
        spans = sentence_spans(THREE_SENTENCES)
        weights = {spans[1][0]: 1.0, spans[2][0]: 1.0}
        result = self.optimizer.optimize(
            THREE_SENTENCES, spans, [], simple_config(500, 1000, 5), self.context, boundary_weights=weights
        )
        assert len(result.chunks) == 3
        assert result.consolidations == 0

    def test_oversized_spans_are_split(self):
        content = " ".join(f"Sentence {i} explains one more detail of the backup schedule." for i in range(20))
        config = simple_config(100, 200, 50)

        result = self.optimizer.optimize(content, [(0, len(content))], [], config, self.context)

        assert result.splits >= 1
        assert all(chunk.size <= config.max_size for chunk in result.chunks)
        assert result.chunks[0].start_position == 0
        assert result.chunks[-1].end_position == len(content)
        for left, right in zip(result.chunks, result.chunks[1:]):
            assert content[left.end_position:right.start_position].strip() == ""

    def test_undersized_span_is_merged(self):
        first = "The first sentence is long enough to stand alone here."
        third = "The third sentence is also long enough to stand alone."
        content = f"{first} Ok. {third}"
        spans = sentence_spans(content)
        weights = {spans[1][0]: 1.0, spans[2][0]: 1.0}

        result = self.optimizer.optimize(
            content, spans, [], simple_config(60, 200, 50), self.context, boundary_weights=weights
        )

        assert len(result.chunks) == 2
        assert result.chunks[0].content.endswith("Ok.")
        assert result.undersized_merges == 1

    def test_cut_snaps_to_sentence_end(self):
        content = "Alpha beta gamma. Delta epsilon zeta."
        cut = content.index("epsilon")
        result = self.optimizer.optimize(
            content, [(0, cut), (cut, len(content))], [], simple_config(10, 100, 5), self.context
        )
        assert result.chunks[0].content == "Alpha beta gamma."
        assert result.chunks[1].content == "Delta epsilon zeta."
        assert result.snaps == 1

    def test_zero_tolerance_disables_snapping(self):
        content = "Alpha beta gamma. Delta epsilon zeta."
        cut = content.index("epsilon")
        result = ChunkOptimizer(snap_tolerance=0).optimize(
            content, [(0, cut), (cut, len(content))], [], simple_config(10, 100, 5), self.context
        )
        assert result.snaps == 0
        assert result.chunks[1].content == "epsilon zeta."

    def test_chunks_are_indexed_and_carry_strategy(self):
        result = self.optimizer.optimize(
            THREE_SENTENCES, sentence_spans(THREE_SENTENCES), [], simple_config(10, 1000, 5), self.context
        )
        assert [chunk.index for chunk in result.chunks] == list(range(len(result.chunks)))
        assert all(chunk.strategy == ChunkingStrategy.SIMPLE for chunk in result.chunks)


class TestRelationshipRepair:
    """Long relationships are re-cut at their edges after size normalization."""

    def setup_method(self):
        self.optimizer = ChunkOptimizer()
        self.context = ChunkingContext()
        self.config = simple_config(600, 1000, 150)

    def test_long_step_sequence_keeps_within_two_chunks(self):
        content, start, end = procedure_between_prose()
        sequence = Relationship.of_type(RelationshipType.STEP_SEQUENCE, start, end, content[start:end])
        assert self.config.max_size < sequence.length < 2 * self.config.max_size

        result = self.optimizer.optimize(content, [(0, len(content))], [sequence], self.config, self.context)

        assert len(touched(result.chunks, sequence)) <= sequence.max_separation
        assert result.relationship_repairs == 1
        assert result.chunks[0].end_position <= start
        assert result.chunks[-1].start_position >= end
        for chunk in result.chunks:
            assert self.config.min_size <= chunk.size <= self.config.max_size

    def test_short_leading_text_stays_with_the_sequence(self):
        content, start, end = procedure_between_prose()
        content = "Read this. " + content[start:]
        start, end = 11, 11 + (end - start)
        sequence = Relationship.of_type(RelationshipType.STEP_SEQUENCE, start, end, content[start:end])

        result = self.optimizer.optimize(content, [(0, len(content))], [sequence], self.config, self.context)

        assert len(touched(result.chunks, sequence)) <= sequence.max_separation
        assert result.chunks[0].content.startswith("Read this. Step 1:")
        for chunk in result.chunks:
            assert self.config.min_size <= chunk.size <= self.config.max_size

    def test_relationship_that_fits_gets_its_own_chunk(self):
        content, start, end = procedure_between_prose(steps=8)
        pair = Relationship.of_type(RelationshipType.QA_PAIR, start, end, content[start:end])
        assert pair.max_separation == 1

        result = self.optimizer.optimize(content, [(0, len(content))], [pair], self.config, self.context)

        assert result.relationship_repairs == 1
        assert [c.content for c in touched(result.chunks, pair)] == [content[start:end]]

    def test_allowed_separation_is_left_alone(self):
        content, start, end = procedure_between_prose(steps=8)
        sequence = Relationship.of_type(RelationshipType.STEP_SEQUENCE, start, end, content[start:end])

        result = self.optimizer.optimize(content, [(0, len(content))], [sequence], self.config, self.context)

        assert result.relationship_repairs == 0
        assert len(touched(result.chunks, sequence)) <= sequence.max_separation


class TestProtectedSpans:

    def setup_method(self):
        text = "x" * 40
        self.spans = ProtectedSpans([
            Relationship.of_type(RelationshipType.QA_PAIR, 10, 20, text[10:20]),
            Relationship.of_type(RelationshipType.EXAMPLE, 15, 25, text[15:25]),
            Relationship.of_type(RelationshipType.DEFINITION, 30, 35, text[30:35]),
        ])

    def test_contains_is_strict(self):
        assert not self.spans.contains(10)
        assert self.spans.contains(11)
        assert self.spans.contains(22)
        assert not self.spans.contains(25)
        assert not self.spans.contains(28)
        assert self.spans.contains(34)

    def test_edges_inside_other_spans_are_not_edges(self):
        assert self.spans.is_edge(10)
        assert not self.spans.is_edge(15)
        assert not self.spans.is_edge(20)
        assert self.spans.is_edge(25)
        assert self.spans.is_edge(35)

    def test_only_keep_together_relationships_are_protected(self):
        loose = Relationship(RelationshipType.EXAMPLE, 0, 10, "x" * 10, keep_together=False)
        assert len(ProtectedSpans([loose])) == 0
        assert not ProtectedSpans([loose]).contains(5)


class TestContextualInfo:

    def test_context_fields(self):
        context = ChunkingContext(
            document_type="faq",
            semantics={"type": "qa"},
            structure={"has_structure": True},
        )
        assert ChunkOptimizer.contextual_info(context, None) == {
            "has_structure": True,
            "document_type": "faq",
            "semantic_type": "qa",
            "has_hierarchy": False,
        }

    def test_every_chunk_gets_the_context(self):
        context = ChunkingContext(document_type="guide")
        result = ChunkOptimizer().optimize(
            THREE_SENTENCES, sentence_spans(THREE_SENTENCES), [], simple_config(10, 1000, 5), context
        )
        assert all(chunk.contextual_info["document_type"] == "guide" for chunk in result.chunks)
