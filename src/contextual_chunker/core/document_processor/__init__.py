"""
Document Processor Package

Structure analysis and context-aware chunking of extracted document text.

Components:
- chunking/: Strategy selection, relationship and boundary detection, chunk
  generation, optimization, overlap and quality assessment
- structure/: Headings, sections, hierarchy, cross-references and structural quality
- atomic_units/: Lists, tables, code blocks and definitions
"""

# Chunking must load before structure: structure types reference ChunkingStrategy
from .chunking import (
    ChunkingStrategy,
    StrategyConfig,
    ChunkingContext,
    Chunk,
    ChunkingResult,
    ContextAwareChunker
)

from .structure import (
    StructureAnalysis,
    StructureAnalyzer
)

from .atomic_units import (
    ContentElement,
    ContentElementType,
    ContentStructures,
    ContentStructureExtractor
)

__all__ = [
    "ChunkingStrategy",
    "StrategyConfig",
    "ChunkingContext",
    "Chunk",
    "ChunkingResult",
    "ContextAwareChunker",
    "StructureAnalysis",
    "StructureAnalyzer",
    "ContentElement",
    "ContentElementType",
    "ContentStructures",
    "ContentStructureExtractor",
]
