"""Tests for fixed-window fallback chunking."""

from unittest.mock import patch

from contextual_chunker.core.document_processor.chunking.config import ChunkingStrategy
from contextual_chunker.core.document_processor.chunking.fallback import (
    FALLBACK_QUALITY_SCORE,
    build_fallback_result,
    coerce_content,
    fallback_chunks,
)


class TestCoerceContent:

    def test_none_is_empty(self):
        assert coerce_content(None) == ""

    def test_bytes_are_decoded(self):
        assert coerce_content("café".encode("utf-8")) == "café"

    def test_invalid_bytes_are_replaced(self):
        assert coerce_content(b"ab\xff") == "ab�"

    def test_other_values_are_stringified(self):
        assert coerce_content(42) == "42"


class TestFallbackChunks:

    def test_fixed_windows(self):
        chunks = fallback_chunks("x" * 1200)
        assert [chunk.size for chunk in chunks] == [500, 500, 200]
        assert [chunk.start_position for chunk in chunks] == [0, 500, 1000]
        assert all(chunk.fallback for chunk in chunks)
        assert all(chunk.strategy == ChunkingStrategy.FALLBACK for chunk in chunks)
        assert all(chunk.quality_score == FALLBACK_QUALITY_SCORE for chunk in chunks)

    def test_custom_window(self):
        assert [chunk.size for chunk in fallback_chunks("abcdefg", 3)] == [3, 3, 1]

    def test_blank_windows_are_skipped(self):
        chunks = fallback_chunks("abc" + " " * 6 + "def", 3)
        assert [chunk.content for chunk in chunks] == ["abc", "def"]
        assert [chunk.index for chunk in chunks] == [0, 1]


class TestBuildFallbackResult:

    def test_result_metadata(self):
        result = build_fallback_result("x" * 1200, RuntimeError("boom"))
        assert result.is_fallback
        assert result.strategy == "fallback"
        assert result.error == "boom"
        assert result.chunking_metadata["total_chunks"] == 3
        assert result.chunking_metadata["average_quality"] == FALLBACK_QUALITY_SCORE

    def test_empty_content(self):
        result = build_fallback_result(None, ValueError("nothing"))
        assert result.chunks == []
        assert result.chunking_metadata["average_quality"] == 0.0

    def test_failure_of_fallback_is_reported(self):
        with patch(
            "contextual_chunker.core.document_processor.chunking.fallback.fallback_chunks",
            side_effect=MemoryError("out of memory"),
        ):
            result = build_fallback_result("text", RuntimeError("boom"))
        assert result.chunks == []
        assert result.is_fallback
        assert result.error == "boom; fallback failed: out of memory"
