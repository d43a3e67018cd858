"""
Chunk Quality Assessment Module

Scores chunks on four weighted factors and enhances the weak ones.

Components:
- QualityWeights: Factor weights (completeness, coherence, context, readability)
- QualityConstants: Base score and adjustments of every factor
- QualityAssessor: Per-chunk scoring, enhancement and aggregate metrics

Scores are heuristic. The constants preserve the ranking behaviour of the
scoring rules; they are not calibrated probabilities.
"""

import logging
import re
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from ....exceptions.system_exceptions import ErrorContext, QualityAssessmentError
from ....utils.error_handler import ErrorHandler
from .result import Chunk
from .text import ends_sentence, split_sentences

logger = logging.getLogger(__name__)

STEP_MARKER = re.compile(r'\bstep\s+\d+', re.IGNORECASE)
COMPLETE_DEFINITION = re.compile(r'\w+\s+(?:is|are|means?)\s+.{10,}', re.IGNORECASE)
TRANSITION_WORDS = re.compile(
    r'\b(?:first|second|next|then|finally|however|therefore|additionally)\b', re.IGNORECASE
)
WORD = re.compile(r'\b\w+\b')

DEFAULT_DOMAIN_KEYWORDS = ("procedure", "process", "step", "create", "update", "configure")
DEFAULT_HEADING_LABEL = "Topic"
DEFAULT_HEADING = "General Content"


@dataclass
class QualityWeights:
    """Weights of the four quality factors."""
    completeness: float = 0.30
    coherence: float = 0.25
    context: float = 0.25
    readability: float = 0.20

    def __post_init__(self):
        for name in ("completeness", "coherence", "context", "readability"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value < 0:
                raise ValueError(f"Weight '{name}' must be a non-negative number, got: {value}")
        if self.total <= 0:
            raise ValueError("At least one quality weight must be positive")

    @property
    def total(self) -> float:
        return self.completeness + self.coherence + self.context + self.readability

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, float]]) -> "QualityWeights":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (values or {}).items() if k in known})

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class QualityConstants:
    """Base score and adjustments used by the quality factors."""
    base_score: float = 0.5

    # completeness
    sentence_end_bonus: float = 0.2
    step_marker_bonus: float = 0.2
    min_step_markers: int = 2
    definition_bonus: float = 0.1

    # coherence
    repetition_bonus: float = 0.2
    repetition_low: float = 0.1
    repetition_high: float = 0.5
    transition_bonus: float = 0.3

    # context
    contextual_info_bonus: float = 0.2
    structure_bonus: float = 0.2
    semantic_type_bonus: float = 0.1

    # readability
    no_sentence_score: float = 0.3
    ideal_sentence_bonus: float = 0.3
    ideal_words_per_sentence: tuple = (10, 20)
    acceptable_sentence_bonus: float = 0.1
    acceptable_words_per_sentence: tuple = (8, 25)

    # enhancement
    domain_keyword_bonus: float = 0.1
    max_heading_length: int = 100
    error_score: float = 0.5

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]]) -> "QualityConstants":
        known = {f.name for f in fields(cls)}
        overrides = {}
        for key, value in (values or {}).items():
            if key not in known:
                logger.warning(f"Ignoring unknown quality constant '{key}'")
                continue
            overrides[key] = tuple(value) if isinstance(value, list) else value
        return cls(**overrides)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class QualityAssessor:
    """
    Assesses and enhances chunk quality.

    A chunk's score is the weighted sum of its completeness, coherence,
    context and readability scores, clamped to [0, 1]. Chunks scoring below
    ``target_quality_score`` receive a heading and, when they mention a
    domain keyword, a small score bonus. Chunks are never rejected.

    Example:
        >>> assessor = QualityAssessor()
        >>> assessor.completeness_score("It works.") > assessor.completeness_score("It wor")
        True
    """

    def __init__(
        self,
        weights: Optional[QualityWeights] = None,
        constants: Optional[QualityConstants] = None,
        target_quality_score: float = 0.7,
        min_quality_score: float = 0.4,
        domain_keywords: Optional[Sequence[str]] = None,
        heading_label: str = DEFAULT_HEADING_LABEL,
        default_heading: str = DEFAULT_HEADING,
        error_handler: Optional[ErrorHandler] = None,
    ):
        if not 0.0 <= min_quality_score <= target_quality_score <= 1.0:
            raise ValueError(
                f"Quality thresholds must satisfy 0 <= min <= target <= 1, got "
                f"{min_quality_score} / {target_quality_score}"
            )
        self.weights = weights or QualityWeights()
        self.constants = constants or QualityConstants()
        self.target_quality_score = target_quality_score
        self.min_quality_score = min_quality_score
        self.domain_keywords = [k.lower() for k in (domain_keywords or DEFAULT_DOMAIN_KEYWORDS)]
        self.heading_label = heading_label
        self.default_heading = default_heading
        self.error_handler = error_handler or ErrorHandler(logger=logger)

    @classmethod
    def from_config(cls, quality_config: Mapping[str, Any], error_handler: Optional[ErrorHandler] = None) -> "QualityAssessor":
        """Create an assessor from the ``quality`` configuration section."""
        return cls(
            weights=QualityWeights.from_mapping(quality_config.get("weights")),
            constants=QualityConstants.from_mapping(quality_config.get("constants")),
            target_quality_score=quality_config.get("target_quality_score", 0.7),
            min_quality_score=quality_config.get("min_quality_score", 0.4),
            domain_keywords=quality_config.get("domain_keywords"),
            heading_label=quality_config.get("heading_label", DEFAULT_HEADING_LABEL),
            default_heading=quality_config.get("default_heading", DEFAULT_HEADING),
            error_handler=error_handler,
        )

    # ------------------------------------------------------------------
    # Factors
    # ------------------------------------------------------------------

    def completeness_score(self, content: str) -> float:
        c = self.constants
        score = c.base_score
        if ends_sentence(content):
            score += c.sentence_end_bonus
        if len(STEP_MARKER.findall(content)) >= c.min_step_markers:
            score += c.step_marker_bonus
        if COMPLETE_DEFINITION.search(content):
            score += c.definition_bonus
        return _clamp(score)

    def coherence_score(self, content: str) -> float:
        c = self.constants
        score = c.base_score
        words = [w.lower() for w in WORD.findall(content)]
        if words:
            repetition = 1.0 - len(set(words)) / len(words)
            if c.repetition_low < repetition < c.repetition_high:
                score += c.repetition_bonus
        if TRANSITION_WORDS.search(content):
            score += c.transition_bonus
        return _clamp(score)

    def context_score(self, chunk: Chunk) -> float:
        c = self.constants
        score = c.base_score
        info = chunk.contextual_info
        if info and any(info.values()):
            score += c.contextual_info_bonus
        if info.get("has_structure"):
            score += c.structure_bonus
        if info.get("semantic_type"):
            score += c.semantic_type_bonus
        return _clamp(score)

    def readability_score(self, content: str) -> float:
        c = self.constants
        sentences = split_sentences(content)
        if not sentences:
            return c.no_sentence_score

        score = c.base_score
        words_per_sentence = len(content.split()) / len(sentences)
        ideal_low, ideal_high = c.ideal_words_per_sentence
        acceptable_low, acceptable_high = c.acceptable_words_per_sentence
        if ideal_low <= words_per_sentence <= ideal_high:
            score += c.ideal_sentence_bonus
        elif acceptable_low <= words_per_sentence <= acceptable_high:
            score += c.acceptable_sentence_bonus
        return _clamp(score)

    def assess(self, chunk: Chunk) -> float:
        """
        Score a chunk.

        Raises:
            QualityAssessmentError: If the chunk cannot be scored
        """
        try:
            w = self.weights
            weighted = (
                w.completeness * self.completeness_score(chunk.content)
                + w.coherence * self.coherence_score(chunk.content)
                + w.context * self.context_score(chunk)
                + w.readability * self.readability_score(chunk.content)
            ) / w.total
            return _clamp(weighted)
        except (AttributeError, TypeError, ValueError, ZeroDivisionError) as e:
            raise QualityAssessmentError(
                f"Failed to assess chunk {chunk.index}: {e}",
                chunk_index=getattr(chunk, "index", None),
                original_exception=e,
            ) from e

    # ------------------------------------------------------------------
    # Enhancement
    # ------------------------------------------------------------------

    def enhance(self, chunk: Chunk) -> Chunk:
        """Backfill a heading and apply the domain keyword bonus."""
        if not chunk.heading:
            chunk.heading = self._derive_heading(chunk.content)

        lowered = chunk.content.lower()
        if any(keyword in lowered for keyword in self.domain_keywords):
            chunk.quality_score = _clamp(chunk.quality_score + self.constants.domain_keyword_bonus)
        return chunk

    def _derive_heading(self, content: str) -> str:
        first_line = content.strip().split("\n", 1)[0].lstrip("#").strip()
        if first_line and len(first_line) < self.constants.max_heading_length:
            return first_line

        lowered = content.lower()
        keyword = next((k for k in self.domain_keywords if k in lowered), None)
        if keyword:
            return f"{self.heading_label}: {keyword.capitalize()}"
        return self.default_heading

    def assess_chunks(self, chunks: List[Chunk], document_id: Optional[str] = None) -> List[Chunk]:
        """Score every chunk in place and enhance those below the target score."""
        for chunk in chunks:
            try:
                chunk.quality_score = self.assess(chunk)
            except QualityAssessmentError as error:
                error.context = ErrorContext(
                    operation="quality_assessment",
                    document_id=document_id,
                    strategy=chunk.strategy.value,
                )
                self.error_handler.handle_error(error)
                chunk.quality_score = self.constants.error_score

            if chunk.quality_score < self.target_quality_score:
                self.enhance(chunk)
        return chunks

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def compute_metrics(self, chunks: Sequence[Chunk]) -> Dict[str, Any]:
        """Aggregate quality statistics over a chunk list."""
        if not chunks:
            return {
                "average_quality": 0.0,
                "min_quality": 0.0,
                "max_quality": 0.0,
                "std_quality": 0.0,
                "high_quality_chunks": 0,
                "low_quality_chunks": 0,
                "quality_distribution": {"excellent": 0, "good": 0, "fair": 0, "poor": 0},
            }

        scores = np.array([chunk.quality_score for chunk in chunks], dtype=float)
        return {
            "average_quality": float(np.mean(scores)),
            "min_quality": float(np.min(scores)),
            "max_quality": float(np.max(scores)),
            "std_quality": float(np.std(scores)),
            "high_quality_chunks": int(np.sum(scores >= self.target_quality_score)),
            "low_quality_chunks": int(np.sum(scores < self.min_quality_score)),
            "quality_distribution": {
                "excellent": int(np.sum(scores >= 0.8)),
                "good": int(np.sum((scores >= 0.6) & (scores < 0.8))),
                "fair": int(np.sum((scores >= 0.4) & (scores < 0.6))),
                "poor": int(np.sum(scores < 0.4)),
            },
        }
