"""
Fallback Chunking

Fixed-window chunking used when the context-aware pipeline fails.
"""

import logging
from typing import Any, List, Optional

from .config import ChunkingStrategy, get_strategy_config
from .result import Chunk, ChunkingResult, empty_chunking_metadata

logger = logging.getLogger(__name__)

FALLBACK_QUALITY_SCORE = 0.3


def coerce_content(content: Any) -> str:
    """Coerce caller input to text; None becomes an empty string."""
    if content is None:
        return ""
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content if isinstance(content, str) else str(content)


def fallback_chunks(content: str, window_size: Optional[int] = None) -> List[Chunk]:
    """Split content into consecutive fixed-size windows."""
    window = window_size or get_strategy_config(ChunkingStrategy.FALLBACK).max_size
    chunks: List[Chunk] = []
    for start in range(0, len(content), window):
        text = content[start:start + window]
        if not text.strip():
            continue
        chunks.append(Chunk(
            content=text,
            start_position=start,
            end_position=start + len(text),
            index=len(chunks),
            strategy=ChunkingStrategy.FALLBACK,
            quality_score=FALLBACK_QUALITY_SCORE,
            fallback=True,
        ))
    return chunks


def build_fallback_result(content: Any, error: Optional[BaseException] = None) -> ChunkingResult:
    """
    Build a fixed-window result after a pipeline failure.

    If the fallback itself fails, an empty result carrying the error is
    returned instead.

    Example:
        >>> result = build_fallback_result("x" * 1200, RuntimeError("boom"))
        >>> [chunk.size for chunk in result.chunks]
        [500, 500, 200]
    """
    message = str(error) if error is not None else None
    try:
        text = coerce_content(content)
        chunks = fallback_chunks(text)

        metadata = empty_chunking_metadata(ChunkingStrategy.FALLBACK)
        metadata.update({
            "total_chunks": len(chunks),
            "average_chunk_size": sum(c.size for c in chunks) / len(chunks) if chunks else 0.0,
            "average_quality": FALLBACK_QUALITY_SCORE if chunks else 0.0,
            "fallback": True,
        })
        logger.warning(f"Using fallback chunking ({len(chunks)} chunks): {message}")
        return ChunkingResult(chunks=chunks, chunking_metadata=metadata, error=message)

    except Exception as e:
        logger.error(f"Fallback chunking failed: {e}", exc_info=True)
        metadata = empty_chunking_metadata(ChunkingStrategy.FALLBACK)
        metadata["fallback"] = True
        return ChunkingResult(chunking_metadata=metadata, error=f"{message}; fallback failed: {e}")
