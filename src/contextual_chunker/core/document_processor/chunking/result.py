"""
Chunking Result Module

Contains the records returned by the chunking pipeline.

Components:
- Chunk: One chunk with its position, quality score, overlap and context
- ChunkingResult: Ordered chunks plus metadata, quality metrics and stage timings
"""

import hashlib
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import ChunkingStrategy
from .text import count_sentences, count_words, estimate_tokens

logger = logging.getLogger(__name__)

# uuid5 namespace for chunk ids
CHUNK_ID_NAMESPACE = uuid.UUID("6f1c3b52-4a8e-5d0b-9c27-3e1f0a9b8d41")


def make_chunk_id(content: str, start_position: int, end_position: int) -> str:
    """Deterministic chunk id from the content digest and span."""
    digest = hashlib.md5(content.encode("utf-8")).hexdigest()
    return str(uuid.uuid5(CHUNK_ID_NAMESPACE, f"{digest}:{start_position}:{end_position}"))


@dataclass
class Chunk:
    """
    A chunk of document text.

    Positions are offsets into the normalized document and describe the
    chunk body; overlap text added before or after the body is not counted
    in the span.

    Attributes:
        content: Chunk text including any overlap
        start_position: Start of the body in the normalized document
        end_position: End of the body (exclusive)
        index: Position of the chunk in the result
        strategy: Strategy that produced the chunk
        quality_score: Quality score in [0, 1]
        relationships: Relationship types overlapping the chunk
        contextual_info: Document context attached during optimization
        heading: Heading assigned by quality enhancement
        fallback: True when produced by fixed-window fallback chunking

    Example:
        >>> chunk = Chunk(content="Install the tool.", start_position=0, end_position=17, index=0)
        >>> chunk.size, chunk.word_count
        (17, 3)
    """
    content: str
    start_position: int
    end_position: int
    index: int
    strategy: ChunkingStrategy = ChunkingStrategy.SEMANTIC_ADAPTIVE
    id: str = ""
    quality_score: float = 0.0
    relationships: List[str] = field(default_factory=list)
    has_overlap_before: bool = False
    has_overlap_after: bool = False
    overlap_before: str = ""
    overlap_after: str = ""
    contextual_info: Dict[str, Any] = field(default_factory=dict)
    heading: Optional[str] = None
    token_count: int = 0
    word_count: int = 0
    sentence_count: int = 0
    fallback: bool = False

    def __post_init__(self):
        if not isinstance(self.content, str):
            raise TypeError(f"content must be a string, got: {type(self.content)}")
        if not isinstance(self.strategy, ChunkingStrategy):
            raise TypeError(f"strategy must be ChunkingStrategy, got: {type(self.strategy)}")
        if self.start_position < 0:
            raise ValueError(f"start_position cannot be negative: {self.start_position}")
        if self.end_position < self.start_position:
            raise ValueError(
                f"end_position ({self.end_position}) cannot be less than start_position ({self.start_position})"
            )
        if self.index < 0:
            raise ValueError(f"index cannot be negative: {self.index}")
        if not 0.0 <= self.quality_score <= 1.0:
            raise ValueError(f"quality_score must be between 0.0 and 1.0, got: {self.quality_score}")

        if not self.id:
            self.id = make_chunk_id(self.content, self.start_position, self.end_position)
        self.refresh_counts()

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def body(self) -> str:
        """Content without overlap text."""
        body = self.content
        if self.has_overlap_before and body.startswith(self.overlap_before):
            body = body[len(self.overlap_before):].lstrip("\n")
        if self.has_overlap_after and body.endswith(self.overlap_after):
            body = body[:len(body) - len(self.overlap_after)].rstrip("\n")
        return body

    def refresh_counts(self) -> None:
        """Recompute token, word and sentence counts from the content."""
        self.token_count = estimate_tokens(self.content)
        self.word_count = count_words(self.content)
        self.sentence_count = count_sentences(self.content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "start_position": self.start_position,
            "end_position": self.end_position,
            "index": self.index,
            "size": self.size,
            "quality_score": self.quality_score,
            "relationships": list(self.relationships),
            "has_overlap_before": self.has_overlap_before,
            "has_overlap_after": self.has_overlap_after,
            "overlap_before": self.overlap_before,
            "overlap_after": self.overlap_after,
            "contextual_info": dict(self.contextual_info),
            "heading": self.heading,
            "strategy": self.strategy.value,
            "token_count": self.token_count,
            "word_count": self.word_count,
            "sentence_count": self.sentence_count,
            "fallback": self.fallback,
        }

    def __repr__(self) -> str:
        preview = self.content[:40].replace("\n", " ")
        return (
            f"Chunk(index={self.index}, span=[{self.start_position}, {self.end_position}), "
            f"size={self.size}, quality={self.quality_score:.2f}, content='{preview}')"
        )


def empty_chunking_metadata(strategy: ChunkingStrategy) -> Dict[str, Any]:
    return {
        "strategy": strategy.value,
        "total_chunks": 0,
        "average_chunk_size": 0.0,
        "average_quality": 0.0,
        "relationships_preserved": 0,
        "boundaries_detected": 0,
        "fallback": False,
        "structure_fallback": False,
        "optimization_applied": False,
    }


@dataclass
class ChunkingResult:
    """
    Output of ``ContextAwareChunker.chunk_content``.

    Attributes:
        chunks: Chunks in document order
        chunking_metadata: Strategy, counts, averages and fallback flags
        quality_metrics: Aggregate quality statistics
        processing_stats: Per-stage timings in milliseconds
        error: Error message when the result is degraded
    """
    chunks: List[Chunk] = field(default_factory=list)
    chunking_metadata: Dict[str, Any] = field(default_factory=dict)
    quality_metrics: Dict[str, Any] = field(default_factory=dict)
    processing_stats: Dict[str, float] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def strategy(self) -> Optional[str]:
        return self.chunking_metadata.get("strategy")

    @property
    def total_chunks(self) -> int:
        return len(self.chunks)

    @property
    def is_fallback(self) -> bool:
        return bool(self.chunking_metadata.get("fallback", False))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunks": [chunk.to_dict() for chunk in self.chunks],
            "chunking_metadata": dict(self.chunking_metadata),
            "quality_metrics": dict(self.quality_metrics),
            "processing_stats": dict(self.processing_stats),
            "error": self.error,
        }

    def __repr__(self) -> str:
        return (
            f"ChunkingResult(strategy={self.strategy}, chunks={len(self.chunks)}, "
            f"fallback={self.is_fallback}, error={self.error!r})"
        )
