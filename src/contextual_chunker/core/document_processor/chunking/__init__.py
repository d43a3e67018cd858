"""
Chunking Package - Context-Aware Document Chunking Components

This package turns normalized document text into size-bounded, quality-scored
chunks that keep related content together.

Components:
- ChunkingStrategy / StrategyConfig: Closed strategy set and per-strategy sizes
- ChunkingContext / CacheKeyContext: Caller context validated at the API boundary
- RelationshipIdentifier: Step sequences, Q&A pairs, definitions, examples, warnings
- BoundaryDetector: Strong, medium and weak split candidates
- StrategySelector: Override, recommendation and content based strategy choice
- ChunkGenerator / ChunkOptimizer: Initial spans and constraint enforcement
- OverlapApplier: Sentence overlap between neighbouring chunks
- QualityAssessor: Four-factor quality scores and enhancement
- ContextAwareChunker: Pipeline entry point with caching and fallback
"""

# config is imported first; the structure package depends on it
from .config import (
    ChunkingStrategy,
    StrategyConfig,
    DEFAULT_STRATEGY_CONFIGS,
    get_strategy_config
)

from .context import ChunkingContext, CacheKeyContext

from .relationships import (
    RelationshipType,
    Relationship,
    RelationshipIdentifier
)

from .boundary import (
    BoundaryStrength,
    Boundary,
    BoundaryDetectionResult,
    BoundaryDetector
)

from .result import Chunk, ChunkingResult

from .selector import StrategySelection, StrategySelector

from .generator import ChunkGenerator

from .optimizer import ChunkOptimizer, OptimizationResult

from .overlap import OverlapApplier

from .quality import QualityWeights, QualityConstants, QualityAssessor

from .text import normalize_content

from .chunker import ContextAwareChunker, STRATEGY_HANDLERS

__all__ = [
    "ChunkingStrategy",
    "StrategyConfig",
    "DEFAULT_STRATEGY_CONFIGS",
    "get_strategy_config",
    "ChunkingContext",
    "CacheKeyContext",
    "RelationshipType",
    "Relationship",
    "RelationshipIdentifier",
    "BoundaryStrength",
    "Boundary",
    "BoundaryDetectionResult",
    "BoundaryDetector",
    "Chunk",
    "ChunkingResult",
    "StrategySelection",
    "StrategySelector",
    "ChunkGenerator",
    "ChunkOptimizer",
    "OptimizationResult",
    "OverlapApplier",
    "QualityWeights",
    "QualityConstants",
    "QualityAssessor",
    "normalize_content",
    "ContextAwareChunker",
    "STRATEGY_HANDLERS",
]
