"""
Content Structure Handlers

Specialized handlers for the content element types. Each handler detects its
elements in a text and reports them with positions relative to that text.
"""

import re
import logging
from typing import List, Dict, Any, Optional, Tuple

from .types import ContentElement, ContentElementType

logger = logging.getLogger(__name__)


def _line_offsets(lines: List[str]) -> List[int]:
    """Start offset of every line of ``'\\n'.join(lines)``."""
    offsets = []
    position = 0
    for line in lines:
        offsets.append(position)
        position += len(line) + 1
    return offsets


def _block_element(
    element_type: ContentElementType,
    lines: List[str],
    offsets: List[int],
    first: int,
    last: int,
    metadata: Dict[str, Any]
) -> ContentElement:
    content = '\n'.join(lines[first:last + 1])
    start = offsets[first]
    return ContentElement(
        element_type=element_type,
        content=content,
        start_position=start,
        end_position=start + len(content),
        metadata=metadata
    )


class CodeBlockHandler:
    """Handler for fenced and indented code blocks."""

    def detect(self, text: str) -> List[ContentElement]:
        """Detect code blocks in text - fenced first, then indented outside fences."""
        lines = text.split('\n')
        offsets = _line_offsets(lines)
        elements = []

        fenced_ranges: List[Tuple[int, int]] = []
        i = 0
        while i < len(lines):
            stripped = lines[i].strip()
            if stripped.startswith('```') or stripped.startswith('~~~'):
                fence_marker = stripped[:3]
                start_line = i
                i += 1
                while i < len(lines) and not lines[i].strip().startswith(fence_marker):
                    i += 1
                if i < len(lines):
                    block = '\n'.join(lines[start_line:i + 1])
                    elements.append(_block_element(
                        ContentElementType.CODE_BLOCK, lines, offsets, start_line, i,
                        self.extract_metadata(block)
                    ))
                    fenced_ranges.append((start_line, i))
            i += 1

        block_start: Optional[int] = None
        block_end: Optional[int] = None
        for i, line in enumerate(lines):
            if any(start <= i <= end for start, end in fenced_ranges):
                self._flush_indented(lines, offsets, block_start, block_end, elements)
                block_start = block_end = None
                continue

            if line.startswith('    ') or line.startswith('\t'):
                if block_start is None:
                    block_start = i
                block_end = i
            elif line.strip() == '' and block_start is not None:
                continue
            else:
                self._flush_indented(lines, offsets, block_start, block_end, elements)
                block_start = block_end = None

        self._flush_indented(lines, offsets, block_start, block_end, elements)
        return elements

    def _flush_indented(
        self,
        lines: List[str],
        offsets: List[int],
        start: Optional[int],
        end: Optional[int],
        elements: List[ContentElement]
    ) -> None:
        if start is None or end is None:
            return
        block = '\n'.join(lines[start:end + 1])
        if not block.strip():
            return
        elements.append(_block_element(
            ContentElementType.CODE_BLOCK, lines, offsets, start, end,
            self.extract_metadata(block)
        ))

    def extract_metadata(self, content: str) -> Dict[str, Any]:
        """Extract metadata from code block content."""
        metadata: Dict[str, Any] = {"line_count": content.count('\n') + 1}

        first_line = content.split('\n')[0].strip()
        if first_line.startswith('```') or first_line.startswith('~~~'):
            metadata["language"] = first_line[3:].strip()
            metadata["block_type"] = "fenced"
        else:
            metadata["language"] = ""
            metadata["block_type"] = "indented"

        return metadata


class TableHandler:
    """Handler for pipe-delimited tables."""

    def detect(self, text: str) -> List[ContentElement]:
        """Detect runs of at least two pipe rows."""
        lines = text.split('\n')
        offsets = _line_offsets(lines)
        elements = []

        run_start: Optional[int] = None
        for i, line in enumerate(lines + ['']):
            if line.count('|') >= 2:
                if run_start is None:
                    run_start = i
                continue

            if run_start is not None and i - run_start >= 2:
                table = '\n'.join(lines[run_start:i])
                elements.append(_block_element(
                    ContentElementType.TABLE, lines, offsets, run_start, i - 1,
                    self.extract_metadata(table)
                ))
            run_start = None

        return elements

    def extract_metadata(self, content: str) -> Dict[str, Any]:
        """Extract column count, header separator and alignment metadata."""
        rows = content.strip().split('\n')
        header = rows[0].strip()
        col_count = len([cell for cell in header.strip('|').split('|')])

        metadata: Dict[str, Any] = {
            "column_count": col_count,
            "row_count": len(rows),
            "has_header_separator": False,
            "column_alignments": ["left"] * col_count
        }

        if len(rows) > 1:
            separator_line = rows[1].replace(' ', '')
            if separator_line and '-' in separator_line and all(c in '-:|' for c in separator_line):
                metadata["has_header_separator"] = True
                metadata["row_count"] = len(rows) - 1

                alignments = []
                for part in separator_line.strip('|').split('|'):
                    if part.startswith(':') and part.endswith(':'):
                        alignments.append("center")
                    elif part.endswith(':'):
                        alignments.append("right")
                    else:
                        alignments.append("left")
                metadata["column_alignments"] = alignments

        return metadata


class ListHandler:
    """Handler for bulleted, numbered, lettered and task lists."""

    TASK_ITEM = re.compile(r'^[-*+] \[[xX \-]\]\s')
    BULLET_ITEM = re.compile(r'^[-*+]\s+\S')
    NUMBERED_ITEM = re.compile(r'^\d+[.)]\s+\S')
    LETTERED_ITEM = re.compile(r'^[a-zA-Z][.)]\s+\S')

    def classify_line(self, stripped: str) -> Optional[str]:
        """Return the list type of a single stripped line, if it is an item."""
        # task items are also bullets, so check them first
        if self.TASK_ITEM.match(stripped):
            return "task"
        if self.BULLET_ITEM.match(stripped):
            return "bulleted"
        if self.NUMBERED_ITEM.match(stripped):
            return "numbered"
        if self.LETTERED_ITEM.match(stripped):
            return "lettered"
        return None

    def detect(self, text: str) -> List[ContentElement]:
        """Detect lists; indented lines directly under an item are nested items."""
        lines = text.split('\n')
        offsets = _line_offsets(lines)
        elements = []

        list_start: Optional[int] = None
        list_type: Optional[str] = None
        for i, line in enumerate(lines):
            item_type = self.classify_line(line.strip())
            nested = list_start is not None and line.startswith(('  ', '\t')) and line.strip() != ''

            if item_type is not None and (list_start is None or item_type == list_type or nested):
                if list_start is None:
                    list_start = i
                    list_type = item_type
                continue
            if nested:
                continue

            if list_start is not None:
                elements.append(self._build(lines, offsets, list_start, i - 1, list_type))
                list_start = None
                list_type = None

            if item_type is not None:
                list_start = i
                list_type = item_type

        if list_start is not None:
            elements.append(self._build(lines, offsets, list_start, len(lines) - 1, list_type))

        return elements

    def _build(
        self,
        lines: List[str],
        offsets: List[int],
        first: int,
        last: int,
        list_type: Optional[str]
    ) -> ContentElement:
        return _block_element(
            ContentElementType.LIST, lines, offsets, first, last,
            self._analyze_list(lines[first:last + 1], list_type or "bulleted")
        )

    def _analyze_list(self, lines: List[str], list_type: str) -> Dict[str, Any]:
        """Analyze list structure and extract metadata."""
        metadata: Dict[str, Any] = {
            "list_type": list_type,
            "item_count": 0,
            "has_nested_items": False,
            "max_nesting_depth": 1,
            "items": []
        }

        for line in lines:
            if line.startswith(('  ', '\t')):
                metadata["has_nested_items"] = True
                depth = (len(line) - len(line.lstrip())) // 2 + 1
                metadata["max_nesting_depth"] = max(metadata["max_nesting_depth"], depth)
            else:
                metadata["item_count"] += 1
                metadata["items"].append(re.sub(r'^\S+\s+(?:\[[xX \-]\]\s+)?', '', line.strip()))

        if list_type == "task":
            completed = sum(1 for line in lines if re.search(r'\[[xX]\]', line))
            pending = sum(1 for line in lines if re.search(r'\[ \]', line))
            metadata.update({
                "completed_count": completed,
                "pending_count": pending,
                "total_tasks": completed + pending
            })

        return metadata


class DefinitionHandler:
    """Handler for colon-separated, dash-separated and parenthetical definitions."""

    PATTERNS = {
        "colon_separated": re.compile(r'^[ \t]*([A-Za-z][^:\n]{1,49}):[ \t]+(\S[^\n]{2,})$', re.MULTILINE),
        "dash_separated": re.compile(r'^[ \t]*([A-Za-z][^\n]{1,49}?)[ \t]+-[ \t]+(\S[^\n]{2,})$', re.MULTILINE),
        "parenthetical": re.compile(r'\b([A-Za-z][\w-]+)[ \t]+\(([^()\n]{2,80})\)'),
    }

    def detect(self, text: str) -> List[ContentElement]:
        """Detect definitions; one element per match, the first pattern wins on overlap."""
        elements: List[ContentElement] = []
        taken: List[Tuple[int, int]] = []

        for style, pattern in self.PATTERNS.items():
            for match in pattern.finditer(text):
                start, end = match.span()
                term = match.group(1).strip()
                if not term or self._looks_like_marker(term):
                    continue
                if any(start < t_end and t_start < end for t_start, t_end in taken):
                    continue

                taken.append((start, end))
                elements.append(ContentElement(
                    element_type=ContentElementType.DEFINITION,
                    content=match.group(0).strip(),
                    start_position=start,
                    end_position=end,
                    metadata={
                        "style": style,
                        "term": term,
                        "definition": match.group(2).strip(),
                    }
                ))

        elements.sort(key=lambda e: e.start_position)
        return elements

    @staticmethod
    def _looks_like_marker(term: str) -> bool:
        # "Step 1:" style markers and URL schemes are not defined terms
        return bool(re.match(r"^(?:(?:step|section|chapter|part)\s+\w+|https?|ftp)$", term, re.IGNORECASE))
