"""Tests for the ContextAwareChunker pipeline."""

from unittest.mock import patch

import pytest

from contextual_chunker.core.document_processor.chunking import ContextAwareChunker
from contextual_chunker.core.document_processor.chunking.chunker import STRATEGY_HANDLERS
from contextual_chunker.core.document_processor.chunking.config import ChunkingStrategy
from contextual_chunker.core.document_processor.chunking.text import normalize_content
from contextual_chunker.core.document_processor.structure.analyzer import StructureAnalyzer


class StubConfigManager:
    """Minimal stand-in exposing ConfigManager.get."""

    def __init__(self, data):
        self.data = data

    def get(self, key, default=None):
        return self.data.get(key, default)


class TestChunkerSetup:

    def test_every_strategy_has_a_handler(self):
        assert set(STRATEGY_HANDLERS) == set(ChunkingStrategy)

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            ContextAwareChunker(max_workers=0)

    def test_invalid_strategy_override(self):
        with pytest.raises(ValueError):
            ContextAwareChunker(strategy_overrides={"simple": {"min_size": 900}})

    def test_strategy_overrides_apply(self):
        chunker = ContextAwareChunker(strategy_overrides={"simple": {"max_size": 1000}})
        assert chunker.get_config("simple").max_size == 1000
        assert chunker.get_config(ChunkingStrategy.QA_PAIR_PRESERVING).max_size == 800

    def test_cache_can_be_disabled(self, chunker):
        assert chunker.cache is None
        assert "cache=off" in repr(chunker)

    def test_from_config(self):
        chunker = ContextAwareChunker.from_config(StubConfigManager({
            "cache": {"enabled": False},
            "strategies": {"qa_pair_preserving": {"target_size": 300}},
            "quality": {"target_quality_score": 0.9, "min_quality_score": 0.5},
            "processing": {"max_workers": 2, "snap_tolerance": 10},
        }))
        assert chunker.cache is None
        assert chunker.get_config("qa_pair_preserving").target_size == 300
        assert chunker.quality_assessor.target_quality_score == 0.9
        assert chunker.max_workers == 2
        assert chunker.optimizer.snap_tolerance == 10


class TestChunkContent:

    def test_procedure_document(self, chunker, procedure_text):
        result = chunker.chunk_content(procedure_text)
        assert result.strategy == "procedure_preserving"
        assert result.total_chunks == 1
        assert result.chunks[0].relationships == ["step_sequence"]
        assert result.chunking_metadata["relationships_preserved"] == 1

    def test_qa_document(self, chunker, qa_text):
        result = chunker.chunk_content(qa_text)
        assert result.strategy == "qa_pair_preserving"
        assert result.total_chunks == 1

    def test_long_paragraph_is_split(self, chunker, long_paragraph):
        result = chunker.chunk_content(long_paragraph)
        assert result.strategy == "semantic_adaptive"
        assert result.total_chunks == 2
        assert all(chunk.size <= 1200 for chunk in result.chunks)
        assert result.chunks[0].body.endswith(".")
        assert result.chunks[1].has_overlap_before

    def test_positions_refer_to_normalized_text(self, chunker, long_paragraph):
        text = normalize_content(long_paragraph)
        for chunk in chunker.chunk_content(long_paragraph).chunks:
            assert text[chunk.start_position:chunk.end_position] == chunk.body

    @pytest.mark.parametrize("content", ["", "   \n\t ", None])
    def test_empty_input(self, chunker, content):
        result = chunker.chunk_content(content)
        assert result.chunks == []
        assert result.error is None
        assert not result.is_fallback

    def test_none_logs_warning(self, chunker, caplog):
        chunker.chunk_content(None)
        assert "Null content" in caplog.text

    def test_bytes_are_accepted(self, chunker):
        result = chunker.chunk_content("Q: Why?\nA: Because.".encode("utf-8"))
        assert result.total_chunks == 1

    def test_explicit_strategy(self, chunker, procedure_text):
        result = chunker.chunk_content(procedure_text, strategy="simple")
        assert result.strategy == "simple"
        assert "explicit override" in result.chunking_metadata["selection_reason"]

    def test_fixed_window_strategy(self, chunker):
        result = chunker.chunk_content("word " * 300, strategy=ChunkingStrategy.FALLBACK)
        assert result.is_fallback
        assert result.error is None
        assert all(chunk.size <= 500 for chunk in result.chunks)

    def test_structure_fallback_uses_simple_strategy(self):
        analyzer = StructureAnalyzer(heading_patterns={"broken": ("(unclosed", 0)})
        chunker = ContextAwareChunker(enable_cache=False, structure_analyzer=analyzer)

        result = chunker.chunk_content("Some plain text. It has two sentences.")

        assert result.chunking_metadata["structure_fallback"] is True
        assert result.strategy == "simple"
        assert result.chunks
        assert not result.is_fallback

    def test_context_reaches_chunks(self, chunker, qa_text):
        result = chunker.chunk_content(qa_text, context={"documentType": "faq", "semantics": {"type": "qa"}})
        info = result.chunks[0].contextual_info
        assert info["document_type"] == "faq"
        assert info["semantic_type"] == "qa"

    def test_stage_failure_falls_back(self, chunker, long_paragraph):
        with patch.object(chunker.generator, "generate", side_effect=RuntimeError("generator broke")):
            result = chunker.chunk_content(long_paragraph)

        assert result.is_fallback
        assert "generator broke" in result.error
        assert "chunk_generation" in result.error
        assert result.chunks
        assert chunker.get_performance_stats()["fallback_count"] == 1
        assert chunker.error_handler.get_error_summary().error_counts["ChunkingError"] == 1

    def test_quality_scores_are_set(self, chunker, long_paragraph):
        result = chunker.chunk_content(long_paragraph)
        assert all(0.0 < chunk.quality_score <= 1.0 for chunk in result.chunks)
        assert result.quality_metrics["average_quality"] > 0.0

    def test_processing_stats(self, chunker, procedure_text):
        stats = chunker.chunk_content(procedure_text).processing_stats
        for stage in ("structure_analysis_ms", "boundary_detection_ms", "optimization_ms", "total_ms"):
            assert stage in stats


class TestChunkerCache:

    def test_repeated_content_hits_cache(self, procedure_text):
        chunker = ContextAwareChunker()
        first = chunker.chunk_content(procedure_text)
        second = chunker.chunk_content(procedure_text)

        assert [c.content for c in first.chunks] == [c.content for c in second.chunks]
        assert chunker.get_performance_stats()["cache_hits"] == 1

    def test_cached_results_are_copies(self, procedure_text):
        chunker = ContextAwareChunker()
        first = chunker.chunk_content(procedure_text)
        first.chunks[0].content = "mutated"
        assert chunker.chunk_content(procedure_text).chunks[0].content != "mutated"

    def test_context_is_part_of_the_key(self, qa_text):
        chunker = ContextAwareChunker()
        chunker.chunk_content(qa_text, context={"document_type": "faq"})
        chunker.chunk_content(qa_text, context={"document_type": "guide"})
        assert chunker.get_performance_stats()["cache_hits"] == 0

    def test_clear_caches(self, qa_text):
        chunker = ContextAwareChunker()
        chunker.chunk_content(qa_text)
        chunker.clear_caches()
        assert chunker.get_performance_stats()["cache_size"] == 0


class TestChunkerStatistics:

    def test_performance_stats(self, chunker, procedure_text, qa_text):
        chunker.chunk_content(procedure_text)
        chunker.chunk_content(qa_text)
        stats = chunker.get_performance_stats()

        assert stats["documents_processed"] == 2
        assert stats["chunks_generated"] == 2
        assert stats["strategy_usage"] == {"procedure_preserving": 1, "qa_pair_preserving": 1}
        assert stats["average_chunk_quality"] > 0.0
        assert "structure_analysis" in stats

    def test_reset_statistics(self, chunker, qa_text):
        chunker.chunk_content(qa_text)
        chunker.reset_statistics()
        assert chunker.get_performance_stats()["documents_processed"] == 0


class TestChunkDocuments:

    def test_results_keep_input_order(self, chunker, procedure_text, qa_text, long_paragraph):
        results = chunker.chunk_documents([procedure_text, qa_text, "", long_paragraph], max_workers=3)
        assert len(results) == 4
        assert results[0].strategy == "procedure_preserving"
        assert results[1].strategy == "qa_pair_preserving"
        assert results[2].chunks == []
        assert results[3].strategy == "semantic_adaptive"

    def test_empty_batch(self, chunker):
        assert chunker.chunk_documents([]) == []
