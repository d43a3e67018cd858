"""
Structure Analysis Types

Data records produced by the structure analyzer: headings, sections, cross
references, quality scores and the processing recommendation, aggregated in
``StructureAnalysis``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..atomic_units.types import ContentStructures
from ..chunking.config import ChunkingStrategy
from .tree import HierarchyNode


HEADING_PATTERN_SOURCES = ("markdown", "numbered", "all_caps", "underlined", "step", "section")


class SectionType(Enum):
    """Section classification, checked in declaration order."""
    PROCEDURAL = "procedural"
    FAQ = "faq"
    CONCEPTUAL = "conceptual"
    EXAMPLE = "example"
    WARNING = "warning"
    GENERAL = "general"


class RecommendationApproach(Enum):
    """Overall processing approach for a document."""
    HIERARCHICAL = "hierarchical"
    SECTION_BASED = "section_based"
    HEADING_BASED = "heading_based"
    ADAPTIVE = "adaptive"


class ProcessingPriority(Enum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


@dataclass
class Heading:
    """
    A heading detected in the analyzed text.

    Attributes:
        id: Stable identifier (``heading_<n>`` in document order)
        text: Heading text without markers, 3 to 100 characters
        level: Nesting level 1..6
        position: Character offset of the heading line
        line_number: 1-based line of the heading
        pattern_source: Name of the heading pattern that matched
    """
    id: str
    text: str
    level: int
    position: int
    line_number: int
    pattern_source: str

    def __post_init__(self):
        if not isinstance(self.text, str) or not self.text:
            raise ValueError(f"Heading text must be a non-empty string, got: {self.text!r}")
        if isinstance(self.level, bool) or not isinstance(self.level, int) or not 1 <= self.level <= 6:
            raise ValueError(f"Heading level must be integer 1-6, got: {self.level}")
        if not isinstance(self.position, int) or self.position < 0:
            raise ValueError(f"Heading position must be non-negative integer, got: {self.position}")
        if not isinstance(self.line_number, int) or self.line_number < 1:
            raise ValueError(f"Line number must be positive integer, got: {self.line_number}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "level": self.level,
            "position": self.position,
            "line_number": self.line_number,
            "pattern_source": self.pattern_source,
        }


@dataclass
class Section:
    """A section started by a canonical opener line (Introduction, Setup, FAQ, ...)."""
    id: str
    heading_text: str
    content: str
    start_line: int
    end_line: int
    word_count: int
    type: SectionType = SectionType.GENERAL

    def __post_init__(self):
        if not isinstance(self.type, SectionType):
            raise TypeError(f"Section type must be SectionType, got: {type(self.type)}")
        if self.start_line < 1 or self.end_line < self.start_line:
            raise ValueError(f"Invalid section lines: {self.start_line}-{self.end_line}")
        if self.word_count < 0:
            raise ValueError(f"word_count must be non-negative, got: {self.word_count}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "heading_text": self.heading_text,
            "content": self.content,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "word_count": self.word_count,
            "type": self.type.value,
        }


@dataclass
class SectionCharacteristics:
    has_step_by_step: bool = False
    has_definitions: bool = False
    has_procedures: bool = False
    has_examples: bool = False
    average_length: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_step_by_step": self.has_step_by_step,
            "has_definitions": self.has_definitions,
            "has_procedures": self.has_procedures,
            "has_examples": self.has_examples,
            "average_length": self.average_length,
        }


@dataclass
class CrossReference:
    """A ``see also`` reference or a back-reference to a known heading."""
    type: str
    content: str
    position: int
    target_heading: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"type": self.type, "content": self.content, "position": self.position}
        if self.target_heading is not None:
            result["target_heading"] = self.target_heading
        return result


@dataclass
class HierarchyCharacteristics:
    max_depth: int = 0
    total_nodes: int = 1
    is_well_structured: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_depth": self.max_depth,
            "total_nodes": self.total_nodes,
            "is_well_structured": self.is_well_structured,
        }


@dataclass
class NavigationAnalysis:
    """Heading navigation tree with derived patterns and recommendations."""
    tree: HierarchyNode = field(default_factory=HierarchyNode.root_node)
    has_hierarchical_structure: bool = False
    max_depth: int = 0
    has_cross_references: bool = False
    is_well_structured: bool = False
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tree": self.tree.to_dict(),
            "patterns": {
                "has_hierarchical_structure": self.has_hierarchical_structure,
                "max_depth": self.max_depth,
                "has_cross_references": self.has_cross_references,
                "is_well_structured": self.is_well_structured,
            },
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class StructureQualityConstants:
    """
    Constants of the structural quality score.

    Every sub-score starts at ``base`` and adds the bonuses that apply,
    capped at 1.0.
    """
    base: float = 0.5
    heading_present: float = 0.2
    heading_consistent: float = 0.2
    heading_multi_level: float = 0.1
    section_present: float = 0.2
    section_steps: float = 0.1
    section_definitions: float = 0.1
    section_long: float = 0.1
    section_long_threshold: float = 100.0
    hierarchy_well_structured: float = 0.3
    hierarchy_deep: float = 0.2
    content_rich: float = 0.3
    content_lists: float = 0.1
    content_definitions: float = 0.1
    well_structured_threshold: float = 0.7
    good_component_threshold: float = 0.6
    fallback_overall: float = 0.1
    high_priority_threshold: float = 0.8
    low_priority_threshold: float = 0.4
    consistency_share: float = 0.6


@dataclass
class StructureQuality:
    heading_quality: float = 0.0
    section_quality: float = 0.0
    hierarchy_quality: float = 0.0
    content_quality: float = 0.0
    overall: float = 0.0
    complexity: float = 0.0
    is_well_structured: bool = False
    has_good_headings: bool = False
    has_good_sections: bool = False
    has_good_hierarchy: bool = False
    has_good_content_structure: bool = False

    def __post_init__(self):
        for name in ("heading_quality", "section_quality", "hierarchy_quality",
                     "content_quality", "overall", "complexity"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got: {value}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "heading_quality": self.heading_quality,
            "section_quality": self.section_quality,
            "hierarchy_quality": self.hierarchy_quality,
            "content_quality": self.content_quality,
            "overall": self.overall,
            "complexity": self.complexity,
            "is_well_structured": self.is_well_structured,
            "has_good_headings": self.has_good_headings,
            "has_good_sections": self.has_good_sections,
            "has_good_hierarchy": self.has_good_hierarchy,
            "has_good_content_structure": self.has_good_content_structure,
        }


@dataclass
class ProcessingRecommendation:
    approach: RecommendationApproach = RecommendationApproach.ADAPTIVE
    chunking_strategy: ChunkingStrategy = ChunkingStrategy.SEMANTIC_ADAPTIVE
    preserve_structure: bool = False
    enhance_headings: bool = False
    processing_priority: ProcessingPriority = ProcessingPriority.NORMAL
    special_handling: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.approach, RecommendationApproach):
            raise TypeError(f"approach must be RecommendationApproach, got: {type(self.approach)}")
        if not isinstance(self.chunking_strategy, ChunkingStrategy):
            raise TypeError(f"chunking_strategy must be ChunkingStrategy, got: {type(self.chunking_strategy)}")
        if not isinstance(self.processing_priority, ProcessingPriority):
            raise TypeError(
                f"processing_priority must be ProcessingPriority, got: {type(self.processing_priority)}"
            )

    @property
    def is_confident(self) -> bool:
        """A recommendation is worth following unless it is the adaptive default."""
        return (
            self.approach != RecommendationApproach.ADAPTIVE
            or self.chunking_strategy != ChunkingStrategy.SEMANTIC_ADAPTIVE
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "approach": self.approach.value,
            "chunking_strategy": self.chunking_strategy.value,
            "preserve_structure": self.preserve_structure,
            "enhance_headings": self.enhance_headings,
            "processing_priority": self.processing_priority.value,
            "special_handling": list(self.special_handling),
        }


@dataclass
class StructureAnalysis:
    """Complete structural analysis of a document."""
    headings: List[Heading] = field(default_factory=list)
    heading_consistent: bool = False
    sections: List[Section] = field(default_factory=list)
    section_characteristics: SectionCharacteristics = field(default_factory=SectionCharacteristics)
    hierarchy: HierarchyNode = field(default_factory=HierarchyNode.root_node)
    hierarchy_characteristics: HierarchyCharacteristics = field(default_factory=HierarchyCharacteristics)
    content_structures: ContentStructures = field(default_factory=ContentStructures)
    cross_references: List[CrossReference] = field(default_factory=list)
    navigation: NavigationAnalysis = field(default_factory=NavigationAnalysis)
    quality: StructureQuality = field(default_factory=StructureQuality)
    recommendation: ProcessingRecommendation = field(default_factory=ProcessingRecommendation)
    fallback: bool = False
    error: Optional[str] = None
    processing_time_ms: float = 0.0

    @property
    def has_structure(self) -> bool:
        """True when headings, sections or content elements were found."""
        return bool(self.headings or self.sections or self.content_structures.total_elements)

    @property
    def max_heading_level(self) -> int:
        return max((h.level for h in self.headings), default=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headings": [h.to_dict() for h in self.headings],
            "heading_consistent": self.heading_consistent,
            "sections": [s.to_dict() for s in self.sections],
            "section_characteristics": self.section_characteristics.to_dict(),
            "hierarchy": self.hierarchy.to_dict(),
            "hierarchy_characteristics": self.hierarchy_characteristics.to_dict(),
            "content_structures": self.content_structures.to_dict(),
            "cross_references": [r.to_dict() for r in self.cross_references],
            "navigation": self.navigation.to_dict(),
            "quality": self.quality.to_dict(),
            "recommendation": self.recommendation.to_dict(),
            "fallback": self.fallback,
            "error": self.error,
            "processing_time_ms": self.processing_time_ms,
        }
