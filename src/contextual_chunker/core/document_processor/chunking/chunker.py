"""
Context-Aware Chunker Module

Contains the ContextAwareChunker, the entry point of the chunking pipeline.

Pipeline:
1. Normalize the content and resolve the caller context
2. Analyze document structure
3. Select a strategy
4. Identify relationships and detect boundaries
5. Generate, optimize and overlap chunks
6. Assess chunk quality

Results are cached per content, strategy and context. No exception leaves
``chunk_content``: stage failures produce a fixed-window fallback result.
"""

import logging
import threading
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Union

from ....exceptions.system_exceptions import CacheError, ChunkingError, ErrorContext
from ....utils.error_handler import ErrorHandler
from ....utils.logging_config import PerformanceLogger
from ...result_cache import ResultCache, build_cache_key
from ..structure.analyzer import StructureAnalyzer
from ..structure.types import StructureAnalysis
from .boundary import BoundaryDetector
from .config import ChunkingStrategy, StrategyConfig, get_strategy_config
from .context import ChunkingContext
from .fallback import build_fallback_result, coerce_content, fallback_chunks
from .generator import ChunkGenerator
from .optimizer import DEFAULT_SNAP_TOLERANCE, ChunkOptimizer
from .overlap import OverlapApplier
from .quality import QualityAssessor
from .relationships import Relationship, RelationshipIdentifier
from .result import Chunk, ChunkingResult, empty_chunking_metadata
from .selector import StrategySelection, StrategySelector
from .text import normalize_content

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_CACHE_CAPACITY = 200
DEFAULT_MAX_WORKERS = 4


class ContextAwareChunker:
    """
    Context-aware document chunker.

    Splits documents into chunks that respect structure and keep related
    content together, using the strategy chosen for each document.

    Attributes:
        strategy_configs: Effective configuration per strategy
        structure_analyzer: Analyzer run before strategy selection
        cache: Chunking result cache, or None when caching is disabled
        error_handler: Tracks every stage failure

    Example:
        >>> chunker = ContextAwareChunker()
        >>> result = chunker.chunk_content("Step 1: Do X.\\nStep 2: Do Y.", strategy="procedure_preserving")
        >>> result.total_chunks
        1
    """

    def __init__(
        self,
        strategy_overrides: Optional[Mapping[str, Mapping[str, int]]] = None,
        enable_cache: bool = True,
        cache_capacity: int = DEFAULT_CHUNK_CACHE_CAPACITY,
        eviction_policy: Optional[str] = None,
        cache: Optional[ResultCache] = None,
        structure_analyzer: Optional[StructureAnalyzer] = None,
        quality_assessor: Optional[QualityAssessor] = None,
        snap_tolerance: int = DEFAULT_SNAP_TOLERANCE,
        max_workers: int = DEFAULT_MAX_WORKERS,
        error_handler: Optional[ErrorHandler] = None,
        performance_logger: Optional[PerformanceLogger] = None,
    ) -> None:
        """
        Initialize the chunker.

        Raises:
            ValueError: If a strategy override or worker count is invalid
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got: {max_workers}")

        self.strategy_configs: Dict[ChunkingStrategy, StrategyConfig] = {
            strategy: get_strategy_config(strategy, strategy_overrides) for strategy in ChunkingStrategy
        }
        self.error_handler = error_handler or ErrorHandler(logger=logger)
        self.performance_logger = performance_logger or PerformanceLogger()

        if enable_cache:
            self.cache = cache or ResultCache(cache_capacity, eviction_policy)
        else:
            self.cache = None

        self.structure_analyzer = structure_analyzer or StructureAnalyzer(error_handler=self.error_handler)
        self.selector = StrategySelector()
        self.relationship_identifier = RelationshipIdentifier()
        self.boundary_detector = BoundaryDetector()
        self.generator = ChunkGenerator()
        self.optimizer = ChunkOptimizer(snap_tolerance=snap_tolerance)
        self.overlap_applier = OverlapApplier()
        self.quality_assessor = quality_assessor or QualityAssessor(error_handler=self.error_handler)
        self.max_workers = max_workers

        self._metrics_lock = threading.Lock()
        self._reset_metrics()

        logger.debug(
            f"ContextAwareChunker initialized: cache={'on' if self.cache is not None else 'off'}, "
            f"max_workers={max_workers}"
        )

    @classmethod
    def from_config(cls, config_manager) -> "ContextAwareChunker":
        """
        Build a chunker from a loaded ConfigManager.

        Args:
            config_manager: ConfigManager providing the ``cache``, ``quality``,
                ``strategies`` and ``processing`` sections
        """
        cache_config = config_manager.get("cache", {}) or {}
        processing = config_manager.get("processing", {}) or {}
        error_handler = ErrorHandler(logger=logger)

        analyzer = StructureAnalyzer(
            enable_cache=cache_config.get("enabled", True),
            cache=(
                ResultCache(cache_config.get("structure_capacity", 1000), cache_config.get("eviction_policy"))
                if cache_config.get("enabled", True) else None
            ),
            error_handler=error_handler,
        )

        return cls(
            strategy_overrides=config_manager.get("strategies", {}),
            enable_cache=cache_config.get("enabled", True),
            cache_capacity=cache_config.get("chunk_capacity", DEFAULT_CHUNK_CACHE_CAPACITY),
            eviction_policy=cache_config.get("eviction_policy"),
            structure_analyzer=analyzer,
            quality_assessor=QualityAssessor.from_config(config_manager.get("quality", {}) or {}, error_handler),
            snap_tolerance=processing.get("snap_tolerance", DEFAULT_SNAP_TOLERANCE),
            max_workers=processing.get("max_workers", DEFAULT_MAX_WORKERS),
            error_handler=error_handler,
        )

    def get_config(self, strategy: Union[ChunkingStrategy, str]) -> StrategyConfig:
        return self.strategy_configs[ChunkingStrategy.parse(strategy)]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk_content(
        self,
        content: Any,
        context: Union[ChunkingContext, Mapping[str, Any], None] = None,
        strategy: Union[ChunkingStrategy, str, None] = None,
    ) -> ChunkingResult:
        """
        Chunk a document.

        Args:
            content: Document text; None is treated as empty and other
                non-string values are converted to text
            context: Optional document context (mapping or ChunkingContext)
            strategy: Optional strategy override

        Returns:
            ChunkingResult; never raises
        """
        start_time = time.perf_counter()
        text = ""
        selection: Optional[StrategySelection] = None
        document_id = None

        try:
            if content is None:
                logger.warning("Null content provided to chunking, returning no chunks")

            resolved_context = ChunkingContext.from_mapping(context)
            document_id = self._document_id(resolved_context)
            text = normalize_content(coerce_content(content))
            stats: Dict[str, float] = {}

            with self.performance_logger.time_operation("structure_analysis", document_id=document_id) as timing:
                analysis = self.structure_analyzer.analyze(text, {"document_id": document_id})
            stats["structure_analysis_ms"] = timing["duration_ms"]

            selection = self.selector.select(text, analysis, strategy)
            logger.debug(f"Selected chunking strategy: {selection.strategy.value} ({selection.reason})")

            cache_key = self._cache_key(text, selection.strategy, resolved_context, document_id)
            if cache_key is not None:
                cached = self.cache.get(cache_key)
                if cached is not None:
                    logger.debug("Using cached chunking result")
                    self._record(cached, selection.strategy, start_time, cache_hit=True)
                    return cached

            handler = STRATEGY_HANDLERS[selection.strategy]
            result = handler(self, text, resolved_context, analysis, selection, stats, document_id)
            result.processing_stats["total_ms"] = (time.perf_counter() - start_time) * 1000.0

            if cache_key is not None:
                self._store(cache_key, result, selection.strategy, document_id)

            self._record(result, selection.strategy, start_time)
            logger.debug(f"Chunking completed: {result.total_chunks} chunks in {result.processing_stats['total_ms']:.1f}ms")
            return result

        except Exception as e:
            strategy_name = selection.strategy.value if selection else None
            error = e if isinstance(e, ChunkingError) else ChunkingError(
                f"Context-aware chunking failed: {e}",
                strategy_name=strategy_name,
                original_exception=e,
            )
            handled = self.error_handler.handle_error(
                error, ErrorContext(operation="chunk_content", document_id=document_id, strategy=strategy_name)
            )
            result = build_fallback_result(text if text else content, handled)
            self._record(result, ChunkingStrategy.FALLBACK, start_time)
            return result

    def chunk_documents(
        self,
        documents: Sequence[Any],
        context: Union[ChunkingContext, Mapping[str, Any], None] = None,
        strategy: Union[ChunkingStrategy, str, None] = None,
        max_workers: Optional[int] = None,
    ) -> List[ChunkingResult]:
        """
        Chunk independent documents in parallel.

        Returns:
            One ChunkingResult per document, in input order
        """
        documents = list(documents)
        if not documents:
            return []

        workers = min(max_workers or self.max_workers, len(documents))
        logger.info(f"Chunking {len(documents)} documents with {workers} workers")
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(lambda document: self.chunk_content(document, context, strategy), documents))

    # ------------------------------------------------------------------
    # Strategy pipelines
    # ------------------------------------------------------------------

    @contextmanager
    def _stage(self, name: str, stats: Dict[str, float], strategy: ChunkingStrategy) -> Iterator[None]:
        """Time a pipeline stage and convert its failures to ChunkingError."""
        with self.performance_logger.time_operation(name, strategy=strategy.value) as timing:
            try:
                yield
            except ChunkingError:
                raise
            except Exception as e:
                raise ChunkingError(
                    f"{name} failed: {e}", stage=name, strategy_name=strategy.value, original_exception=e
                ) from e
        stats[f"{name}_ms"] = timing["duration_ms"]

    def _run_boundary_pipeline(
        self,
        text: str,
        context: ChunkingContext,
        analysis: StructureAnalysis,
        selection: StrategySelection,
        stats: Dict[str, float],
        document_id: Optional[str],
    ) -> ChunkingResult:
        strategy = selection.strategy
        config = self.get_config(strategy)

        with self._stage("relationship_identification", stats, strategy):
            relationships = self.relationship_identifier.identify(text, strategy)

        with self._stage("boundary_detection", stats, strategy):
            detection = self.boundary_detector.detect(text, relationships, strategy, config)

        with self._stage("chunk_generation", stats, strategy):
            spans = self.generator.generate(text, detection.boundaries, config)

        with self._stage("optimization", stats, strategy):
            optimization = self.optimizer.optimize(
                text, spans, relationships, config, context, analysis, detection.weight_at()
            )

        with self._stage("overlap", stats, strategy):
            chunks = self.overlap_applier.apply(optimization.chunks, config)

        with self._stage("quality_assessment", stats, strategy):
            self._finalize_chunks(chunks, document_id)
            quality_metrics = self.quality_assessor.compute_metrics(chunks)

        metadata = empty_chunking_metadata(strategy)
        metadata.update({
            "total_chunks": len(chunks),
            "average_chunk_size": sum(c.size for c in chunks) / len(chunks) if chunks else 0.0,
            "average_quality": quality_metrics["average_quality"],
            "relationships_detected": len(relationships),
            "relationships_preserved": self._count_preserved(relationships, chunks),
            "boundaries_detected": len(detection.interior),
            "structure_fallback": analysis.fallback,
            "optimization_applied": optimization.applied,
            "selection_reason": selection.reason,
        })
        return ChunkingResult(
            chunks=chunks,
            chunking_metadata=metadata,
            quality_metrics=quality_metrics,
            processing_stats=stats,
        )

    def _run_fixed_window_pipeline(
        self,
        text: str,
        context: ChunkingContext,
        analysis: StructureAnalysis,
        selection: StrategySelection,
        stats: Dict[str, float],
        document_id: Optional[str],
    ) -> ChunkingResult:
        strategy = selection.strategy
        with self._stage("chunk_generation", stats, strategy):
            chunks = fallback_chunks(text, self.get_config(strategy).max_size)

        metadata = empty_chunking_metadata(strategy)
        metadata.update({
            "total_chunks": len(chunks),
            "average_chunk_size": sum(c.size for c in chunks) / len(chunks) if chunks else 0.0,
            "average_quality": chunks[0].quality_score if chunks else 0.0,
            "fallback": True,
            "structure_fallback": analysis.fallback,
            "selection_reason": selection.reason,
        })
        return ChunkingResult(
            chunks=chunks,
            chunking_metadata=metadata,
            quality_metrics=self.quality_assessor.compute_metrics(chunks),
            processing_stats=stats,
        )

    def _finalize_chunks(self, chunks: List[Chunk], document_id: Optional[str]) -> None:
        self.quality_assessor.assess_chunks(chunks, document_id)
        for index, chunk in enumerate(chunks):
            chunk.index = index
            chunk.refresh_counts()

    @staticmethod
    def _count_preserved(relationships: Sequence[Relationship], chunks: Sequence[Chunk]) -> int:
        """Relationships spread over no more than their allowed number of chunks."""
        preserved = 0
        for relationship in relationships:
            touched = sum(
                1 for chunk in chunks
                if relationship.overlaps(chunk.start_position, chunk.end_position)
            )
            if touched <= relationship.max_separation:
                preserved += 1
        return preserved

    # ------------------------------------------------------------------
    # Caching
    # ------------------------------------------------------------------

    @staticmethod
    def _document_id(context: ChunkingContext) -> Optional[str]:
        document_id = context.processing_options.get("document_id")
        return document_id if isinstance(document_id, str) else None

    def _cache_key(
        self, text: str, strategy: ChunkingStrategy, context: ChunkingContext, document_id: Optional[str]
    ) -> Optional[str]:
        if self.cache is None:
            return None
        try:
            return build_cache_key(text, strategy.value, context.to_cache_key_context().to_dict())
        except CacheError as e:
            self.error_handler.handle_error(
                e, ErrorContext(operation="cache_key", document_id=document_id, strategy=strategy.value)
            )
            return None

    def _store(self, key: str, result: ChunkingResult, strategy: ChunkingStrategy, document_id: Optional[str]) -> None:
        try:
            self.cache.put(key, result)
        except CacheError as e:
            self.error_handler.handle_error(
                e, ErrorContext(operation="cache_store", document_id=document_id, strategy=strategy.value)
            )

    def clear_caches(self) -> None:
        """Drop cached chunking results and structure analyses."""
        if self.cache is not None:
            self.cache.clear()
        self.structure_analyzer.clear_caches()
        logger.info("Chunker caches cleared")

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def _reset_metrics(self) -> None:
        with self._metrics_lock:
            self._documents_processed = 0
            self._chunks_generated = 0
            self._total_time_ms = 0.0
            self._quality_sum = 0.0
            self._quality_count = 0
            self._cache_hits = 0
            self._fallback_count = 0
            self._strategy_usage: Counter = Counter()

    def _record(
        self, result: ChunkingResult, strategy: ChunkingStrategy, start_time: float, cache_hit: bool = False
    ) -> None:
        elapsed_ms = (time.perf_counter() - start_time) * 1000.0
        with self._metrics_lock:
            self._documents_processed += 1
            self._chunks_generated += len(result.chunks)
            self._total_time_ms += elapsed_ms
            self._quality_sum += sum(chunk.quality_score for chunk in result.chunks)
            self._quality_count += len(result.chunks)
            self._strategy_usage[strategy.value] += 1
            if cache_hit:
                self._cache_hits += 1
            if result.is_fallback:
                self._fallback_count += 1
        self.performance_logger.log_metric("chunking_time", elapsed_ms, "ms", strategy=strategy.value)

    def get_performance_stats(self) -> Dict[str, Any]:
        """Throughput, quality, strategy usage and cache statistics."""
        with self._metrics_lock:
            processed = self._documents_processed
            stats = {
                "documents_processed": processed,
                "chunks_generated": self._chunks_generated,
                "average_processing_time_ms": self._total_time_ms / processed if processed else 0.0,
                "average_chunk_quality": self._quality_sum / self._quality_count if self._quality_count else 0.0,
                "strategy_usage": dict(self._strategy_usage),
                "cache_hits": self._cache_hits,
                "cache_hit_rate": self._cache_hits / processed if processed else 0.0,
                "fallback_count": self._fallback_count,
            }
        stats["cache_size"] = len(self.cache) if self.cache is not None else 0
        stats["structure_analysis"] = self.structure_analyzer.get_performance_stats()
        stats["errors"] = self.error_handler.get_error_summary().total_errors
        return stats

    def reset_statistics(self) -> None:
        self._reset_metrics()

    def __repr__(self) -> str:
        return (
            f"ContextAwareChunker(cache={'on' if self.cache is not None else 'off'}, "
            f"documents_processed={self._documents_processed})"
        )


PipelineHandler = Callable[..., ChunkingResult]

STRATEGY_HANDLERS: Dict[ChunkingStrategy, PipelineHandler] = {
    ChunkingStrategy.SEMANTIC_ADAPTIVE: ContextAwareChunker._run_boundary_pipeline,
    ChunkingStrategy.PROCEDURE_PRESERVING: ContextAwareChunker._run_boundary_pipeline,
    ChunkingStrategy.QA_PAIR_PRESERVING: ContextAwareChunker._run_boundary_pipeline,
    ChunkingStrategy.DEFINITION_PRESERVING: ContextAwareChunker._run_boundary_pipeline,
    ChunkingStrategy.STRUCTURE_PRESERVING: ContextAwareChunker._run_boundary_pipeline,
    ChunkingStrategy.SIMPLE: ContextAwareChunker._run_boundary_pipeline,
    ChunkingStrategy.FALLBACK: ContextAwareChunker._run_fixed_window_pipeline,
}

_missing = set(ChunkingStrategy) - set(STRATEGY_HANDLERS)
if _missing:
    raise RuntimeError(f"No pipeline handler defined for: {sorted(m.value for m in _missing)}")
