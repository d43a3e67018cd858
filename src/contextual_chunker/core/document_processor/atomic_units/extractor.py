"""
Content Structure Extractor

Runs every registered handler over a text and groups the detected elements
into a ``ContentStructures`` record.
"""

import logging
from typing import Optional

from .registry import ContentStructureRegistry
from .types import ContentElementType, ContentStructures


class ContentStructureExtractor:
    """Extracts lists, tables, code blocks and definitions from a text."""

    def __init__(self, registry: Optional[ContentStructureRegistry] = None):
        self.registry = registry or ContentStructureRegistry()
        self.logger = logging.getLogger(__name__)

    def extract(self, text: str) -> ContentStructures:
        """
        Extract all content structures from text.

        A failing handler is logged and contributes no elements. Definitions
        and lists found inside code blocks are discarded.

        Args:
            text: Text to analyze

        Returns:
            ContentStructures with elements sorted by position

        Raises:
            TypeError: If text is not a string
        """
        if not isinstance(text, str):
            raise TypeError(f"text must be a string, got {type(text)}")

        structures = ContentStructures()
        if not text.strip():
            self.logger.debug("Empty or whitespace-only text provided")
            return structures

        found = {}
        for element_type in ContentElementType:
            handler = self.registry.get(element_type)
            if handler is None:
                continue
            try:
                found[element_type] = handler.detect(text)
                self.logger.debug(f"Detected {len(found[element_type])} {element_type.value} elements")
            except (ValueError, TypeError, IndexError) as e:
                self.logger.warning(f"Error detecting {element_type.value} elements: {e}")
                found[element_type] = []

        code_spans = [e.get_boundaries() for e in found.get(ContentElementType.CODE_BLOCK, [])]

        def outside_code(element):
            return not any(start <= element.start_position < end for start, end in code_spans)

        structures.code_blocks = found.get(ContentElementType.CODE_BLOCK, [])
        structures.tables = found.get(ContentElementType.TABLE, [])
        structures.lists = [e for e in found.get(ContentElementType.LIST, []) if outside_code(e)]
        structures.definitions = [e for e in found.get(ContentElementType.DEFINITION, []) if outside_code(e)]

        self.logger.debug(f"Total content elements detected: {structures.total_elements}")
        return structures
