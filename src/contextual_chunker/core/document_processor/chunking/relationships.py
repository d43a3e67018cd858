"""
Relationship Identification Module

Finds spans of related content that chunking should not fragment: step
sequences, question/answer pairs, definitions, examples and warnings.

Every relationship pattern is bounded by a paragraph break or the end of the
text, so a single marker never protects the remainder of a document.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .config import ChunkingStrategy

logger = logging.getLogger(__name__)


class RelationshipType(Enum):
    """Types of related content."""
    STEP_SEQUENCE = "step_sequence"
    QA_PAIR = "qa_pair"
    DEFINITION = "definition"
    EXAMPLE = "example"
    WARNING = "warning"


# (priority, max_separation) per relationship type
RELATIONSHIP_RULES: Dict[RelationshipType, Tuple[int, int]] = {
    RelationshipType.STEP_SEQUENCE: (3, 2),
    RelationshipType.QA_PAIR: (3, 1),
    RelationshipType.DEFINITION: (2, 1),
    RelationshipType.WARNING: (2, 1),
    RelationshipType.EXAMPLE: (1, 1),
}

RELATIONSHIP_REQUIREMENTS: Dict[ChunkingStrategy, Tuple[RelationshipType, ...]] = {
    ChunkingStrategy.SEMANTIC_ADAPTIVE: (),
    ChunkingStrategy.PROCEDURE_PRESERVING: (
        RelationshipType.STEP_SEQUENCE,
        RelationshipType.WARNING,
        RelationshipType.EXAMPLE,
    ),
    ChunkingStrategy.QA_PAIR_PRESERVING: (RelationshipType.QA_PAIR,),
    ChunkingStrategy.DEFINITION_PRESERVING: (
        RelationshipType.DEFINITION,
        RelationshipType.EXAMPLE,
    ),
    ChunkingStrategy.STRUCTURE_PRESERVING: (),
    ChunkingStrategy.SIMPLE: (),
    ChunkingStrategy.FALLBACK: (),
}

_missing = set(ChunkingStrategy) - set(RELATIONSHIP_REQUIREMENTS)
if _missing:
    raise RuntimeError(f"No relationship requirements defined for: {sorted(m.value for m in _missing)}")

_PARAGRAPH_END = r'(?=\n[ \t]*\n|\Z)'


@dataclass(frozen=True)
class RelationshipPattern:
    """A relationship regex plus the minimum number of markers a match must contain."""
    name: str
    regex: re.Pattern
    marker: Optional[re.Pattern] = None
    min_markers: int = 0

    def accepts(self, text: str) -> bool:
        if self.marker is None:
            return True
        return len(self.marker.findall(text)) >= self.min_markers


RELATIONSHIP_PATTERNS: Dict[RelationshipType, List[RelationshipPattern]] = {
    RelationshipType.STEP_SEQUENCE: [
        RelationshipPattern(
            "step_markers",
            re.compile(r'\bstep\s+\d+.*?(?=\n[ \t]*\n(?![ \t]*step\s+\d)|\Z)', re.IGNORECASE | re.DOTALL),
            re.compile(r'\bstep\s+\d+', re.IGNORECASE), 2,
        ),
        RelationshipPattern(
            "numbered_items",
            re.compile(r'(?:^|(?<=\n))[ \t]*\d+[.)][ \t]+.*?(?=\n[ \t]*\n(?![ \t]*\d+[.)][ \t])|\Z)', re.DOTALL),
            re.compile(r'(?m)^[ \t]*\d+[.)][ \t]'), 2,
        ),
        RelationshipPattern(
            "ordinal_words",
            re.compile(r'\b(?:first|firstly)\b.*?\b(?:second|then|next|finally)\b.*?' + _PARAGRAPH_END,
                       re.IGNORECASE | re.DOTALL),
        ),
    ],
    RelationshipType.QA_PAIR: [
        RelationshipPattern(
            "q_a_prefix",
            re.compile(r'\bQ\d*[:.][ \t]*.*?\bA\d*[:.][ \t]*.*?(?=\n[ \t]*Q\d*[:.]|\n[ \t]*\n|\Z)', re.DOTALL),
        ),
        RelationshipPattern(
            "question_line",
            re.compile(r'(?m)^[^\n?]*\?[ \t]*\n[^\n]+(?:\n(?![^\n]*\?[ \t]*$)[^\n]+)*'),
        ),
        RelationshipPattern(
            "inline_question",
            re.compile(r'\b(?i:what|how|why|when|where)\b[^?\n]{2,}\?[ \t]+[A-Z][^\n]*'),
        ),
    ],
    RelationshipType.DEFINITION: [
        RelationshipPattern(
            "colon_term",
            re.compile(
                r'(?m)^[A-Za-z][\w \t-]{1,48}:[ \t]+[^\n]+'
                r'(?:\n(?![ \t]*\n)(?![A-Za-z][\w \t-]{1,48}:[ \t])[^\n]+)*'
            ),
        ),
        RelationshipPattern(
            "copula",
            re.compile(r'\b[A-Za-z][\w-]*\s+(?:is\s+defined\s+as|is|are|means?|refers?\s+to)\s+[^.\n]+\.?',
                       re.IGNORECASE),
        ),
        RelationshipPattern(
            "definition_label",
            re.compile(r'\bdefinition[ \t]*:[ \t]*[^\n]+', re.IGNORECASE),
        ),
    ],
    RelationshipType.EXAMPLE: [
        RelationshipPattern(
            "example_label",
            re.compile(r'\bexample[ \t]*\d*[ \t]*[:.][ \t]*.*?' + _PARAGRAPH_END, re.IGNORECASE | re.DOTALL),
        ),
        RelationshipPattern(
            "for_example",
            re.compile(r'\bfor\s+example[,:]\s*.*?' + _PARAGRAPH_END, re.IGNORECASE | re.DOTALL),
        ),
        RelationshipPattern(
            "such_as",
            re.compile(r'\bsuch\s+as[,:]?\s+[^.\n]+\.?', re.IGNORECASE),
        ),
    ],
    RelationshipType.WARNING: [
        RelationshipPattern(
            "warning_label",
            re.compile(r'\b(?:warning|caution)[ \t]*[!:].*?' + _PARAGRAPH_END, re.IGNORECASE | re.DOTALL),
        ),
        RelationshipPattern(
            "note_label",
            re.compile(r'\b(?:important|note)[ \t]*[!:].*?' + _PARAGRAPH_END, re.IGNORECASE | re.DOTALL),
        ),
    ],
}


@dataclass
class Relationship:
    """
    A span of related content.

    Attributes:
        type: Relationship type
        start_index: Start offset in the normalized content
        end_index: End offset (exclusive)
        content: Text of the span
        keep_together: Whether chunking must keep the span within max_separation chunks
        max_separation: Maximum number of chunks the span may touch
        priority: Higher priorities win when relationships overlap
    """
    type: RelationshipType
    start_index: int
    end_index: int
    content: str
    keep_together: bool = True
    max_separation: int = 1
    priority: int = 1

    def __post_init__(self):
        if not isinstance(self.type, RelationshipType):
            raise TypeError(f"type must be RelationshipType, got: {type(self.type)}")
        if self.start_index < 0 or self.end_index <= self.start_index:
            raise ValueError(f"Invalid relationship span: [{self.start_index}, {self.end_index})")
        if self.max_separation < 1:
            raise ValueError(f"max_separation must be at least 1, got: {self.max_separation}")

    @classmethod
    def of_type(cls, rtype: RelationshipType, start: int, end: int, content: str) -> "Relationship":
        priority, max_separation = RELATIONSHIP_RULES[rtype]
        return cls(
            type=rtype,
            start_index=start,
            end_index=end,
            content=content,
            keep_together=True,
            max_separation=max_separation,
            priority=priority,
        )

    @property
    def length(self) -> int:
        return self.end_index - self.start_index

    def contains(self, position: int) -> bool:
        """True if position lies strictly inside the span."""
        return self.start_index < position < self.end_index

    def overlaps(self, start: int, end: int) -> bool:
        return self.start_index < end and start < self.end_index

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "start_index": self.start_index,
            "end_index": self.end_index,
            "content": self.content,
            "keep_together": self.keep_together,
            "max_separation": self.max_separation,
            "priority": self.priority,
        }


class RelationshipIdentifier:
    """
    Identifies relationships required by a chunking strategy.

    Matches of all variants are sorted by ``(priority desc, start asc)`` and
    selected greedily: a match overlapping an already selected one is dropped.

    Example:
        >>> identifier = RelationshipIdentifier()
        >>> found = identifier.identify("Q: What is X?\\nA: X is Y.", ChunkingStrategy.QA_PAIR_PRESERVING)
        >>> [r.type.value for r in found]
        ['qa_pair']
    """

    def __init__(self, patterns: Optional[Dict[RelationshipType, List[RelationshipPattern]]] = None):
        self.patterns = patterns if patterns is not None else RELATIONSHIP_PATTERNS

    def identify(self, content: str, strategy: ChunkingStrategy) -> List[Relationship]:
        """
        Find relationships in content for the given strategy.

        Errors are logged and yield an empty list.

        Returns:
            Non-overlapping relationships sorted by start index
        """
        try:
            required = RELATIONSHIP_REQUIREMENTS[ChunkingStrategy.parse(strategy)]
            candidates: List[Relationship] = []
            for rtype in required:
                for variant in self.patterns.get(rtype, []):
                    candidates.extend(self._match_variant(content, rtype, variant))

            candidates.sort(key=lambda r: (-r.priority, r.start_index, -r.length))

            selected: List[Relationship] = []
            for candidate in candidates:
                if not any(candidate.overlaps(s.start_index, s.end_index) for s in selected):
                    selected.append(candidate)

            selected.sort(key=lambda r: r.start_index)
            logger.debug(f"Identified {len(selected)} relationships from {len(candidates)} candidates")
            return selected

        except Exception as e:
            logger.error(f"Relationship identification failed: {e}", exc_info=True)
            return []

    @staticmethod
    def _match_variant(content: str, rtype: RelationshipType, variant: RelationshipPattern) -> List[Relationship]:
        found = []
        for match in variant.regex.finditer(content):
            start, end = match.start(), match.end()
            while start < end and content[start].isspace():
                start += 1
            while end > start and content[end - 1].isspace():
                end -= 1
            if end <= start:
                continue

            text = content[start:end]
            if not variant.accepts(text):
                continue
            found.append(Relationship.of_type(rtype, start, end, text))
        return found
