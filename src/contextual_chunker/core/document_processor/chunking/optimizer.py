"""
Chunk Optimization Module

Turns initial spans into final chunks.

Steps, in order:
1. Merge spans so keep-together relationships touch at most ``max_separation`` chunks
2. Normalize sizes: pack small neighbours up to the target size, split
   oversized spans into balanced pieces and merge undersized spans
3. Re-cut regions where size normalization spread a relationship over too
   many chunks, cutting at the relationship edges instead
4. Snap interior cuts to nearby sentence ends
5. Attach contextual information and relationship types to every chunk

Sizes are measured on the stripped span text, which is also the chunk content.
"""

import logging
import math
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..structure.types import StructureAnalysis
from .boundary import BOUNDARY_WEIGHTS, BoundaryStrength
from .config import StrategyConfig
from .context import ChunkingContext
from .relationships import Relationship
from .result import Chunk
from .text import is_sentence_end, sentence_end_positions

logger = logging.getLogger(__name__)

Span = Tuple[int, int]

DEFAULT_SNAP_TOLERANCE = 50

# cut scores when no detector boundary sits at the position
SENTENCE_END_SCORE = 0.3
WORD_BREAK_SCORE = 0.1
HARD_CUT_SCORE = 0.0
PROTECTED_CUT_PENALTY = 1.0
DISTANCE_PENALTY = 0.5


def stripped_bounds(content: str, start: int, end: int) -> Span:
    """Span bounds with surrounding whitespace removed."""
    while start < end and content[start].isspace():
        start += 1
    while end > start and content[end - 1].isspace():
        end -= 1
    return start, end


def stripped_size(content: str, start: int, end: int) -> int:
    start, end = stripped_bounds(content, start, end)
    return end - start


class ProtectedSpans:
    """
    Keep-together relationships with position lookups in logarithmic time.

    Overlapping relationships are folded into one protected interval, so
    ``contains`` stays correct for callers that pass unpruned relationships.
    """

    def __init__(self, relationships: Sequence[Relationship] = ()):
        self.relationships = sorted(
            (r for r in relationships if r.keep_together), key=lambda r: r.start_index
        )
        intervals: List[Span] = []
        for relationship in self.relationships:
            if intervals and relationship.start_index < intervals[-1][1]:
                intervals[-1] = (intervals[-1][0], max(intervals[-1][1], relationship.end_index))
            else:
                intervals.append((relationship.start_index, relationship.end_index))
        self._intervals = intervals
        self._starts = [start for start, _ in intervals]
        self._edges = frozenset(
            position for r in self.relationships for position in (r.start_index, r.end_index)
        )

    def __iter__(self):
        return iter(self.relationships)

    def __len__(self) -> int:
        return len(self.relationships)

    def contains(self, position: int) -> bool:
        """True if a cut at position would fall inside a protected span."""
        index = bisect_right(self._starts, position) - 1
        if index < 0:
            return False
        start, end = self._intervals[index]
        return start < position < end

    def is_edge(self, position: int) -> bool:
        """True if position is where a protected span starts or ends."""
        return position in self._edges and not self.contains(position)


@dataclass
class OptimizationResult:
    """Optimized chunks plus counters of what the optimizer changed."""
    chunks: List[Chunk] = field(default_factory=list)
    relationship_merges: int = 0
    consolidations: int = 0
    splits: int = 0
    undersized_merges: int = 0
    relationship_repairs: int = 0
    snaps: int = 0

    @property
    def applied(self) -> bool:
        return any((
            self.relationship_merges, self.consolidations, self.splits,
            self.undersized_merges, self.relationship_repairs, self.snaps,
        ))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "relationship_merges": self.relationship_merges,
            "consolidations": self.consolidations,
            "splits": self.splits,
            "undersized_merges": self.undersized_merges,
            "relationship_repairs": self.relationship_repairs,
            "snaps": self.snaps,
            "applied": self.applied,
        }


class ChunkOptimizer:
    """
    Enforces relationship and size constraints on chunk spans.

    Example:
        >>> optimizer = ChunkOptimizer()
        >>> config = get_strategy_config(ChunkingStrategy.SIMPLE)
        >>> result = optimizer.optimize("Short text.", [(0, 11)], [], config, ChunkingContext())
        >>> len(result.chunks)
        1
    """

    def __init__(self, snap_tolerance: int = DEFAULT_SNAP_TOLERANCE):
        if snap_tolerance < 0:
            raise ValueError(f"snap_tolerance must be non-negative, got: {snap_tolerance}")
        self.snap_tolerance = snap_tolerance

    def optimize(
        self,
        content: str,
        spans: Sequence[Span],
        relationships: Sequence[Relationship],
        config: StrategyConfig,
        context: ChunkingContext,
        analysis: Optional[StructureAnalysis] = None,
        boundary_weights: Optional[Mapping[int, float]] = None,
    ) -> OptimizationResult:
        """
        Optimize spans into chunks.

        Args:
            content: Normalized document text
            spans: Contiguous initial spans
            relationships: Relationships to keep together
            config: Active strategy configuration
            context: Resolved chunking context
            analysis: Structure analysis of the document
            boundary_weights: Detector boundary weight per position

        Returns:
            OptimizationResult with the final chunks
        """
        result = OptimizationResult()
        weights = dict(boundary_weights or {})
        protected = ProtectedSpans(relationships)

        working = list(spans)
        working = self._merge_relationships(working, protected, result)
        working = self._consolidate(content, working, weights, config, result)
        working = self._split_oversized(content, working, weights, protected, config, result)
        working = self._merge_undersized(content, working, weights, protected, config, result)
        working = self._repair_relationships(content, working, weights, protected, config, result)
        working = self._snap_to_sentences(content, working, protected, config, result)

        result.chunks = self._build_chunks(content, working, relationships, config, context, analysis)
        logger.debug(f"Optimized {len(spans)} spans into {len(result.chunks)} chunks: {result.to_dict()}")
        return result

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    @staticmethod
    def _merge_relationships(
        spans: List[Span], protected: ProtectedSpans, result: OptimizationResult
    ) -> List[Span]:
        for relationship in protected:
            touching = [
                i for i, (start, end) in enumerate(spans)
                if relationship.overlaps(start, end)
            ]
            if len(touching) > relationship.max_separation:
                first, last = touching[0], touching[-1]
                spans[first:last + 1] = [(spans[first][0], spans[last][1])]
                result.relationship_merges += 1
        return spans

    @staticmethod
    def _touching(content: str, spans: Sequence[Span], relationship: Relationship) -> List[int]:
        """Indices of the spans whose chunk body overlaps the relationship."""
        touching = []
        for i, (start, end) in enumerate(spans):
            body_start, body_end = stripped_bounds(content, start, end)
            if body_end > body_start and relationship.overlaps(body_start, body_end):
                touching.append(i)
        return touching

    def _excess(self, content: str, spans: Sequence[Span], protected: ProtectedSpans) -> int:
        """Chunks touched by relationships beyond their allowed separation."""
        region_start, region_end = spans[0][0], spans[-1][1]
        return sum(
            max(0, len(self._touching(content, spans, r)) - r.max_separation)
            for r in protected if r.overlaps(region_start, region_end)
        )

    def _repair_relationships(
        self,
        content: str,
        spans: List[Span],
        weights: Mapping[int, float],
        protected: ProtectedSpans,
        config: StrategyConfig,
        result: OptimizationResult,
    ) -> List[Span]:
        """
        Re-cut regions where a relationship touches too many chunks.

        Size normalization splits a merged relationship region into balanced
        pieces, which ignores where the relationship starts and ends. The
        region is cut again at the relationship edges and each part is split
        on its own. The new layout replaces the old one only if it keeps
        every piece within the size bounds and lowers the excess separation.
        """
        for relationship in protected:
            touching = self._touching(content, spans, relationship)
            if len(touching) <= relationship.max_separation:
                continue

            first, last = touching[0], touching[-1]
            region = spans[first:last + 1]
            pieces = self._isolate(content, region[0][0], region[-1][1], relationship, weights, protected, config)
            if pieces is None:
                continue
            if self._excess(content, pieces, protected) < self._excess(content, region, protected):
                spans[first:last + 1] = pieces
                result.relationship_repairs += 1
            else:
                logger.debug(
                    f"Relationship {relationship.type.value} at [{relationship.start_index}, "
                    f"{relationship.end_index}) still touches {len(touching)} chunks"
                )
        return spans

    def _isolate(
        self,
        content: str,
        start: int,
        end: int,
        relationship: Relationship,
        weights: Mapping[int, float],
        protected: ProtectedSpans,
        config: StrategyConfig,
    ) -> Optional[List[Span]]:
        """Split ``[start, end)`` at the relationship edges, or None if no valid layout results."""
        middle_start = max(start, relationship.start_index)
        middle_end = min(end, relationship.end_index)

        segments: List[Span] = []
        # text around the relationship too short for a chunk of its own stays with it
        if stripped_size(content, start, middle_start) >= config.min_size:
            segments.append((start, middle_start))
        else:
            middle_start = start
        trailing: Optional[Span] = None
        if stripped_size(content, middle_end, end) >= config.min_size:
            trailing = (middle_end, end)
        else:
            middle_end = end
        segments.append((middle_start, middle_end))
        if trailing is not None:
            segments.append(trailing)

        pieces: List[Span] = []
        for segment_start, segment_end in segments:
            pieces.extend(self._split_span(content, segment_start, segment_end, weights, protected, config))

        for piece_start, piece_end in pieces:
            if not config.min_size <= stripped_size(content, piece_start, piece_end) <= config.max_size:
                return None
        return pieces

    # ------------------------------------------------------------------
    # Sizes
    # ------------------------------------------------------------------

    @staticmethod
    def _consolidate(
        content: str,
        spans: List[Span],
        weights: Mapping[int, float],
        config: StrategyConfig,
        result: OptimizationResult,
    ) -> List[Span]:
        if not spans:
            return spans

        strong = BOUNDARY_WEIGHTS[BoundaryStrength.STRONG]
        packed = [spans[0]]
        for start, end in spans[1:]:
            previous_start = packed[-1][0]
            if weights.get(start, 0.0) < strong and stripped_size(content, previous_start, end) <= config.target_size:
                packed[-1] = (previous_start, end)
                result.consolidations += 1
            else:
                packed.append((start, end))
        return packed

    def _split_oversized(
        self,
        content: str,
        spans: List[Span],
        weights: Mapping[int, float],
        protected: ProtectedSpans,
        config: StrategyConfig,
        result: OptimizationResult,
    ) -> List[Span]:
        output: List[Span] = []
        for start, end in spans:
            pieces = self._split_span(content, start, end, weights, protected, config)
            result.splits += len(pieces) - 1
            output.extend(pieces)
        return output

    def _split_span(
        self,
        content: str,
        start: int,
        end: int,
        weights: Mapping[int, float],
        protected: ProtectedSpans,
        config: StrategyConfig,
    ) -> List[Span]:
        """Split a span into balanced pieces no larger than ``max_size``."""
        pieces: List[Span] = []
        current = start
        while stripped_size(content, current, end) > config.max_size:
            cut = self._choose_cut(content, current, end, weights, protected, config)
            pieces.append((current, cut))
            current = cut
        pieces.append((current, end))
        return pieces

    def _choose_cut(
        self,
        content: str,
        start: int,
        end: int,
        weights: Mapping[int, float],
        protected: ProtectedSpans,
        config: StrategyConfig,
    ) -> int:
        """
        Choose the first cut of an oversized span.

        The cut keeps the first piece within ``[min_size, max_size]`` and
        leaves a remainder that can still be split into valid pieces. Among
        the positions of that window, detector boundaries and relationship
        edges score highest, then sentence ends, then word breaks, minus a
        penalty for the distance from the balanced cut ``length / n``.
        """
        length = end - start
        pieces = math.ceil(length / config.max_size)
        aim = start + length / pieces
        low = start + max(config.min_size, length - (pieces - 1) * config.max_size)
        high = start + min(config.max_size, length - config.min_size)
        spread = max(1, high - low)

        best_cut, best_key = None, None
        for position in range(low, high + 1):
            left = stripped_size(content, start, position)
            if not config.min_size <= left <= config.max_size:
                continue
            if stripped_size(content, position, end) < config.min_size:
                continue

            score = self._cut_score(content, position, weights, protected, config)
            score -= DISTANCE_PENALTY * abs(position - aim) / spread
            key = (score, -abs(position - aim))
            if best_key is None or key > best_key:
                best_cut, best_key = position, key

        if best_cut is None:
            best_cut = min(max(int(round(aim)), start + 1), end - 1)
            logger.debug(f"No valid cut in window [{low}, {high}], cutting at {best_cut}")
        return best_cut

    @staticmethod
    def _cut_score(
        content: str,
        position: int,
        weights: Mapping[int, float],
        protected: ProtectedSpans,
        config: StrategyConfig,
    ) -> float:
        if position in weights:
            score = weights[position] * config.boundary_weight
        elif is_sentence_end(content, position) and content[position].isspace():
            score = SENTENCE_END_SCORE
        elif content[position].isspace() or content[position - 1].isspace():
            score = WORD_BREAK_SCORE
        else:
            score = HARD_CUT_SCORE

        if protected.contains(position):
            score -= PROTECTED_CUT_PENALTY
        elif protected.is_edge(position):
            score = max(score, BOUNDARY_WEIGHTS[BoundaryStrength.STRONG] * config.boundary_weight)
        return score

    def _merge_undersized(
        self,
        content: str,
        spans: List[Span],
        weights: Mapping[int, float],
        protected: ProtectedSpans,
        config: StrategyConfig,
        result: OptimizationResult,
    ) -> List[Span]:
        remaining_passes = 4 * len(spans)
        while len(spans) > 1 and remaining_passes > 0:
            remaining_passes -= 1
            sizes = [stripped_size(content, start, end) for start, end in spans]
            index = next((i for i, size in enumerate(sizes) if size < config.min_size), None)
            if index is None:
                break

            if index == 0:
                neighbour = 1
            elif index == len(spans) - 1:
                neighbour = index - 1
            else:
                neighbour = index - 1 if sizes[index - 1] <= sizes[index + 1] else index + 1

            first, last = sorted((index, neighbour))
            merged_start, merged_end = spans[first][0], spans[last][1]
            spans[first:last + 1] = self._split_span(
                content, merged_start, merged_end, weights, protected, config
            )
            result.undersized_merges += 1

        return spans

    # ------------------------------------------------------------------
    # Sentence snapping
    # ------------------------------------------------------------------

    def _snap_to_sentences(
        self,
        content: str,
        spans: List[Span],
        protected: ProtectedSpans,
        config: StrategyConfig,
        result: OptimizationResult,
    ) -> List[Span]:
        if self.snap_tolerance == 0:
            return spans

        for i in range(len(spans) - 1):
            left_start, cut = spans[i]
            right_end = spans[i + 1][1]
            if is_sentence_end(content, cut) or protected.is_edge(cut):
                continue

            window_start = max(left_start + 1, cut - self.snap_tolerance)
            window_end = min(right_end, cut + self.snap_tolerance)
            candidates = [
                q for q in sentence_end_positions(content, window_start, window_end)
                if q != cut and (q >= len(content) or content[q].isspace())
            ]
            candidates.sort(key=lambda q: (abs(q - cut), q))

            for candidate in candidates:
                if protected.contains(candidate):
                    continue
                left = stripped_size(content, left_start, candidate)
                right = stripped_size(content, candidate, right_end)
                if config.min_size <= left <= config.max_size and config.min_size <= right <= config.max_size:
                    spans[i] = (left_start, candidate)
                    spans[i + 1] = (candidate, right_end)
                    result.snaps += 1
                    break

        return spans

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    @staticmethod
    def contextual_info(context: ChunkingContext, analysis: Optional[StructureAnalysis] = None) -> Dict[str, Any]:
        """Context shared by all chunks of a document."""
        analysed = analysis is not None and not analysis.fallback
        return {
            "has_structure": context.has_structure or (analysed and analysis.has_structure),
            "document_type": context.document_type,
            "semantic_type": context.semantic_type,
            "has_hierarchy": context.has_hierarchy or (
                analysed and analysis.navigation.has_hierarchical_structure
            ),
        }

    def _build_chunks(
        self,
        content: str,
        spans: Sequence[Span],
        relationships: Sequence[Relationship],
        config: StrategyConfig,
        context: ChunkingContext,
        analysis: Optional[StructureAnalysis],
    ) -> List[Chunk]:
        info = self.contextual_info(context, analysis)
        chunks: List[Chunk] = []
        for start, end in spans:
            body_start, body_end = stripped_bounds(content, start, end)
            if body_end <= body_start:
                continue

            types = [r.type.value for r in relationships if r.overlaps(body_start, body_end)]
            chunks.append(Chunk(
                content=content[body_start:body_end],
                start_position=body_start,
                end_position=body_end,
                index=len(chunks),
                strategy=config.strategy,
                relationships=list(dict.fromkeys(types)),
                contextual_info=dict(info),
            ))
        return chunks
