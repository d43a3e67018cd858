"""Tests for Chunk and ChunkingResult."""

import pytest

from contextual_chunker.core.document_processor.chunking.config import ChunkingStrategy
from contextual_chunker.core.document_processor.chunking.result import (
    Chunk,
    ChunkingResult,
    empty_chunking_metadata,
    make_chunk_id,
)


class TestChunk:
    """Tests for Chunk validation and derived fields."""

    def test_counts_are_derived(self):
        chunk = Chunk(content="Install the tool. Then run it.", start_position=0, end_position=30, index=0)
        assert chunk.size == 30
        assert chunk.word_count == 6
        assert chunk.sentence_count == 2
        assert chunk.token_count == 8

    def test_id_is_deterministic(self):
        first = Chunk(content="Same text.", start_position=5, end_position=15, index=0)
        second = Chunk(content="Same text.", start_position=5, end_position=15, index=3)
        moved = Chunk(content="Same text.", start_position=20, end_position=30, index=0)
        assert first.id == second.id == make_chunk_id("Same text.", 5, 15)
        assert first.id != moved.id

    def test_explicit_id_is_kept(self):
        assert Chunk(content="x", start_position=0, end_position=1, index=0, id="custom").id == "custom"

    def test_content_must_be_string(self):
        with pytest.raises(TypeError):
            Chunk(content=b"bytes", start_position=0, end_position=5, index=0)

    @pytest.mark.parametrize("kwargs", [
        {"start_position": -1, "end_position": 1, "index": 0},
        {"start_position": 5, "end_position": 4, "index": 0},
        {"start_position": 0, "end_position": 1, "index": -1},
        {"start_position": 0, "end_position": 1, "index": 0, "quality_score": 1.5},
    ])
    def test_invalid_values_raise(self, kwargs):
        with pytest.raises(ValueError):
            Chunk(content="x", **kwargs)

    def test_body_excludes_overlap(self):
        chunk = Chunk(
            content="Before.\n\nBody text.\n\nAfter.",
            start_position=10,
            end_position=20,
            index=1,
            has_overlap_before=True,
            overlap_before="Before.",
            has_overlap_after=True,
            overlap_after="After.",
        )
        assert chunk.body == "Body text."

    def test_refresh_counts_after_content_change(self):
        chunk = Chunk(content="One.", start_position=0, end_position=4, index=0)
        chunk.content = "One. Two words."
        chunk.refresh_counts()
        assert chunk.word_count == 3
        assert chunk.sentence_count == 2

    def test_to_dict(self):
        chunk = Chunk(
            content="Text.",
            start_position=0,
            end_position=5,
            index=0,
            strategy=ChunkingStrategy.QA_PAIR_PRESERVING,
            relationships=["qa_pair"],
        )
        data = chunk.to_dict()
        assert data["strategy"] == "qa_pair_preserving"
        assert data["relationships"] == ["qa_pair"]
        assert data["size"] == 5
        assert data["fallback"] is False


class TestChunkingResult:

    def test_empty_result(self):
        result = ChunkingResult(chunking_metadata=empty_chunking_metadata(ChunkingStrategy.SIMPLE))
        assert result.total_chunks == 0
        assert result.strategy == "simple"
        assert not result.is_fallback
        assert result.error is None

    def test_to_dict(self):
        chunk = Chunk(content="Text.", start_position=0, end_position=5, index=0)
        metadata = empty_chunking_metadata(ChunkingStrategy.FALLBACK)
        metadata["fallback"] = True
        data = ChunkingResult(chunks=[chunk], chunking_metadata=metadata, error="boom").to_dict()
        assert len(data["chunks"]) == 1
        assert data["chunking_metadata"]["fallback"] is True
        assert data["error"] == "boom"

    def test_repr(self):
        result = ChunkingResult(chunking_metadata=empty_chunking_metadata(ChunkingStrategy.SIMPLE))
        assert "strategy=simple" in repr(result)
