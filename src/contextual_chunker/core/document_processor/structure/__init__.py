"""
Structure Analysis

Detects the structure of a document ahead of chunking and recommends how to
process it.

Components:
- StructureAnalyzer: Guarded, cached structure analysis
- StructureAnalysis: Aggregated analysis result
- Heading, Section, CrossReference: Detected structural elements
- HierarchyNode: Numbered/step hierarchy and heading navigation trees
- StructureQuality, StructureQualityConstants: Structural quality scoring
- ProcessingRecommendation: Recommended approach and chunking strategy
"""

from .tree import HierarchyNode
from .types import (
    CrossReference,
    Heading,
    HierarchyCharacteristics,
    NavigationAnalysis,
    ProcessingPriority,
    ProcessingRecommendation,
    RecommendationApproach,
    Section,
    SectionCharacteristics,
    SectionType,
    StructureAnalysis,
    StructureQuality,
    StructureQualityConstants,
)
from .patterns import DEFAULT_HEADING_PATTERNS
from .analyzer import StructureAnalyzer

__all__ = [
    "HierarchyNode",
    "CrossReference",
    "Heading",
    "HierarchyCharacteristics",
    "NavigationAnalysis",
    "ProcessingPriority",
    "ProcessingRecommendation",
    "RecommendationApproach",
    "Section",
    "SectionCharacteristics",
    "SectionType",
    "StructureAnalysis",
    "StructureQuality",
    "StructureQualityConstants",
    "DEFAULT_HEADING_PATTERNS",
    "StructureAnalyzer",
]
