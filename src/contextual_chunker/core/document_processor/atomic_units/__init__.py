"""
Content Structures

Detection of the content elements a chunk boundary should preferably not
cut through.

Components:
- ContentElementType: Enumeration of supported element types
- ContentElement: A detected element with its span
- ContentStructures: Elements grouped by type with richness and complexity
- ListHandler, TableHandler, CodeBlockHandler, DefinitionHandler: Detectors
- ContentStructureRegistry: Pluggable handler registry
- ContentStructureExtractor: Runs all handlers over a text
"""

from .types import ContentElementType, ContentElement, ContentStructures
from .handlers import (
    CodeBlockHandler,
    DefinitionHandler,
    ListHandler,
    TableHandler,
)
from .registry import ContentStructureRegistry
from .extractor import ContentStructureExtractor

__all__ = [
    "ContentElementType",
    "ContentElement",
    "ContentStructures",
    "CodeBlockHandler",
    "DefinitionHandler",
    "ListHandler",
    "TableHandler",
    "ContentStructureRegistry",
    "ContentStructureExtractor",
]
