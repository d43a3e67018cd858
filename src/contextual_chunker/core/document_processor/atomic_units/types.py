"""
Content Structure Types

Core data structures for content structure detection. Content elements are
lists, tables, code blocks and definitions found inside a document. The
structure analyzer reports them, and the chunker treats their spans as
regions that should preferably not be cut.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Any, List, Tuple


class ContentElementType(Enum):
    """Enumeration of content element types."""
    LIST = "list"
    TABLE = "table"
    CODE_BLOCK = "code_block"
    DEFINITION = "definition"

    def __str__(self) -> str:
        return self.value


@dataclass
class ContentElement:
    """A single content element with its span in the analyzed text."""
    element_type: ContentElementType
    content: str
    start_position: int
    end_position: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate content element after creation."""
        if not isinstance(self.element_type, ContentElementType):
            raise ValueError(f"element_type must be a ContentElementType, got {type(self.element_type)}")

        if not isinstance(self.content, str):
            raise ValueError(f"content must be a string, got {type(self.content)}")

        if not isinstance(self.start_position, int) or self.start_position < 0:
            raise ValueError(f"start_position must be a non-negative integer, got {self.start_position}")

        if not isinstance(self.end_position, int) or self.end_position < 0:
            raise ValueError(f"end_position must be a non-negative integer, got {self.end_position}")

        if self.start_position >= self.end_position:
            raise ValueError(
                f"start_position ({self.start_position}) must be less than end_position ({self.end_position})"
            )

        if not isinstance(self.metadata, dict):
            raise ValueError(f"metadata must be a dictionary, got {type(self.metadata)}")

    def get_length(self) -> int:
        """Get the length of the content."""
        return len(self.content)

    def get_boundaries(self) -> Tuple[int, int]:
        """Get the start and end boundaries of this element."""
        return (self.start_position, self.end_position)

    def contains_position(self, position: int) -> bool:
        """Check if a position falls strictly inside this element."""
        return self.start_position < position < self.end_position

    def to_dict(self) -> Dict[str, Any]:
        """Convert content element to dictionary representation."""
        return {
            "element_type": self.element_type.value,
            "content": self.content,
            "start_position": self.start_position,
            "end_position": self.end_position,
            "length": self.get_length(),
            "metadata": self.metadata.copy()
        }


@dataclass
class ContentStructures:
    """
    Content elements of a document grouped by type.

    ``complexity`` weighs tables double because they are the most expensive
    element to keep intact.
    """
    lists: List[ContentElement] = field(default_factory=list)
    tables: List[ContentElement] = field(default_factory=list)
    code_blocks: List[ContentElement] = field(default_factory=list)
    definitions: List[ContentElement] = field(default_factory=list)

    @property
    def total_elements(self) -> int:
        return len(self.lists) + len(self.tables) + len(self.code_blocks) + len(self.definitions)

    @property
    def has_rich_structure(self) -> bool:
        return self.total_elements >= 2

    @property
    def complexity(self) -> float:
        weighted = len(self.lists) + 2 * len(self.tables) + len(self.code_blocks) + len(self.definitions)
        return min(weighted / 10.0, 1.0)

    def all_elements(self) -> List[ContentElement]:
        """All elements sorted by start position."""
        elements = self.lists + self.tables + self.code_blocks + self.definitions
        return sorted(elements, key=lambda e: (e.start_position, e.end_position))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lists": [e.to_dict() for e in self.lists],
            "tables": [e.to_dict() for e in self.tables],
            "code_blocks": [e.to_dict() for e in self.code_blocks],
            "definitions": [e.to_dict() for e in self.definitions],
            "total_elements": self.total_elements,
            "has_rich_structure": self.has_rich_structure,
            "complexity": self.complexity,
        }
