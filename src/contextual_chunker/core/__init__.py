"""
Core components of the contextual chunker: the document processor and the
bounded result cache.
"""

from .document_processor import ContextAwareChunker, ChunkingResult, StructureAnalyzer
from .result_cache import ResultCache, FIFOEvictionPolicy, LRUEvictionPolicy, build_cache_key

__all__ = [
    "ContextAwareChunker",
    "ChunkingResult",
    "StructureAnalyzer",
    "ResultCache",
    "FIFOEvictionPolicy",
    "LRUEvictionPolicy",
    "build_cache_key",
]
