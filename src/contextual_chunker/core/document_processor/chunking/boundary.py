"""
Boundary Detection Module

Finds candidate split points at three confidence tiers. Each pattern is
written so that the start of a match is the split position.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Sequence, Tuple

from .config import ChunkingStrategy, StrategyConfig, get_strategy_config
from .relationships import Relationship

logger = logging.getLogger(__name__)


class BoundaryStrength(Enum):
    """Boundary confidence tiers."""
    STRONG = "strong"
    MEDIUM = "medium"
    WEAK = "weak"

    @property
    def weight(self) -> float:
        return BOUNDARY_WEIGHTS[self]


BOUNDARY_WEIGHTS = {
    BoundaryStrength.STRONG: 1.0,
    BoundaryStrength.MEDIUM: 0.6,
    BoundaryStrength.WEAK: 0.3,
}

STEP_MARKER_SOURCE = "step_marker"

BOUNDARY_PATTERNS: Dict[BoundaryStrength, List[Tuple[str, re.Pattern]]] = {
    BoundaryStrength.STRONG: [
        ("markdown_heading", re.compile(r'\n(?=[ \t]*#{1,6}[ \t]+)')),
        ("numbered_section", re.compile(r'\n(?=[ \t]*\d+\.[ \t]+[A-Z])')),
        (STEP_MARKER_SOURCE, re.compile(r'\n(?=[ \t]*step[ \t]+\d+)', re.IGNORECASE)),
        ("section_marker", re.compile(r'\n(?=[ \t]*section[ \t]+\d+)', re.IGNORECASE)),
        ("chapter_marker", re.compile(r'\n(?=[ \t]*chapter[ \t]+\d+)', re.IGNORECASE)),
        ("part_marker", re.compile(r'\n(?=[ \t]*part[ \t]+[A-Z0-9])', re.IGNORECASE)),
    ],
    BoundaryStrength.MEDIUM: [
        ("heading_like_line", re.compile(r'\n(?=[ \t]*[A-Z][^.!?\n]*[:.][ \t]*\n)')),
        ("bullet_item", re.compile(r'\n(?=[ \t]*[-*+][ \t]+)')),
        ("lettered_item", re.compile(r'\n(?=[ \t]*[a-z]\)[ \t]+)')),
        ("question_end", re.compile(r'(?<=\?)[ \t]*\n')),
        ("paragraph_sentence", re.compile(r'(?<=\.)[ \t]*\n(?=\s*[A-Z])')),
    ],
    BoundaryStrength.WEAK: [
        ("sentence_end", re.compile(r'(?<=[.!?])\s+')),
        ("semicolon", re.compile(r'(?<=;)\s+')),
        ("conjunction", re.compile(r'(?<=,)\s+(?=(?:and|or|but)\s)')),
    ],
}


@dataclass
class Boundary:
    """A candidate split position."""
    position: int
    strength: BoundaryStrength
    weight: float
    pattern_source: str
    snippet: str = ""

    def __post_init__(self):
        if not isinstance(self.strength, BoundaryStrength):
            raise TypeError(f"strength must be BoundaryStrength, got: {type(self.strength)}")
        if self.position < 0:
            raise ValueError(f"position must be non-negative, got: {self.position}")

    @classmethod
    def sentinel(cls, position: int) -> "Boundary":
        return cls(
            position=position,
            strength=BoundaryStrength.STRONG,
            weight=BOUNDARY_WEIGHTS[BoundaryStrength.STRONG],
            pattern_source="sentinel",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "strength": self.strength.value,
            "weight": self.weight,
            "pattern_source": self.pattern_source,
            "snippet": self.snippet,
        }


@dataclass
class BoundaryDetectionResult:
    """Sorted boundaries plus detection counters."""
    boundaries: List[Boundary] = field(default_factory=list)
    candidates_found: int = 0
    protected_removed: int = 0
    strategy_removed: int = 0

    @property
    def interior(self) -> List[Boundary]:
        """Boundaries without the two sentinels."""
        return self.boundaries[1:-1]

    def weight_at(self) -> Dict[int, float]:
        """Boundary weight per position."""
        return {b.position: b.weight for b in self.boundaries}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "boundaries": [b.to_dict() for b in self.boundaries],
            "candidates_found": self.candidates_found,
            "protected_removed": self.protected_removed,
            "strategy_removed": self.strategy_removed,
        }


class BoundaryDetector:
    """
    Detects split candidates filtered against relationships.

    Boundaries strictly inside a relationship span are removed. When the
    strategy preserves step sequences, step-marker boundaries are removed as
    well. For duplicate positions only the strongest boundary is kept, and
    sentinels at 0 and ``len(content)`` are always present.

    Example:
        >>> detector = BoundaryDetector()
        >>> result = detector.detect("One. Two.", [], ChunkingStrategy.SIMPLE)
        >>> [b.position for b in result.boundaries]
        [0, 4, 9]
    """

    def __init__(self, patterns: Dict[BoundaryStrength, List[Tuple[str, re.Pattern]]] = None):
        self.patterns = patterns if patterns is not None else BOUNDARY_PATTERNS

    def detect(
        self,
        content: str,
        relationships: Sequence[Relationship],
        strategy: ChunkingStrategy,
        config: StrategyConfig = None,
    ) -> BoundaryDetectionResult:
        """
        Detect boundaries in content.

        Args:
            content: Normalized document text
            relationships: Surviving relationships whose interiors are protected
            strategy: Active chunking strategy
            config: Strategy configuration (defaults to the built-in one)

        Returns:
            BoundaryDetectionResult sorted by position
        """
        config = config or get_strategy_config(strategy)
        result = BoundaryDetectionResult()
        by_position: Dict[int, Boundary] = {}
        length = len(content)

        for strength, variants in self.patterns.items():
            for source, regex in variants:
                for match in regex.finditer(content):
                    position = match.start()
                    if position <= 0 or position >= length:
                        continue
                    result.candidates_found += 1

                    if any(r.contains(position) for r in relationships):
                        result.protected_removed += 1
                        continue
                    if config.preserve_step_sequences and source == STEP_MARKER_SOURCE:
                        result.strategy_removed += 1
                        continue

                    existing = by_position.get(position)
                    if existing is None or existing.weight < strength.weight:
                        by_position[position] = Boundary(
                            position=position,
                            strength=strength,
                            weight=strength.weight,
                            pattern_source=source,
                            snippet=content[max(0, position - 20):position + 20],
                        )

        result.boundaries = (
            [Boundary.sentinel(0)]
            + sorted(by_position.values(), key=lambda b: b.position)
            + [Boundary.sentinel(length)]
        )
        if length == 0:
            result.boundaries = [Boundary.sentinel(0)]

        logger.debug(
            f"Detected {len(result.boundaries)} boundaries ({result.candidates_found} candidates, "
            f"{result.protected_removed} protected, {result.strategy_removed} strategy-filtered)"
        )
        return result
