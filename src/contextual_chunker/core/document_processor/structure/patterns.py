"""
Structure Patterns

Regular expressions used by the structure analyzer. Heading patterns are kept
as uncompiled ``(pattern, flags)`` pairs so that custom sets can be injected
and compiled inside the guarded analysis.
"""

import re
from typing import Dict, List, Tuple

# name -> (pattern, flags); applied in this order
DEFAULT_HEADING_PATTERNS: Dict[str, Tuple[str, int]] = {
    "markdown": (r'^(#{1,6})[ \t]+(.+)$', re.MULTILINE),
    "numbered": (r'^(\d+(?:\.\d+)*\.?)[ \t]+(.+)$', re.MULTILINE),
    "all_caps": (r'^([A-Z][A-Z \t]{2,50})$', re.MULTILINE),
    "underlined": (r'^(.+)\n([-=]{3,})[ \t]*$', re.MULTILINE),
    "step": (r'^(Step[ \t]+\d+[:.]?)[ \t]*(.*)$', re.MULTILINE | re.IGNORECASE),
    "section": (r'^(Section[ \t]+\d+[:.]?)[ \t]*(.*)$', re.MULTILINE | re.IGNORECASE),
}

# Step and section markers sit below chapter-level headings
FIXED_MARKER_LEVEL = 3
ALL_CAPS_LEVEL = 2

MIN_HEADING_LENGTH = 3
MAX_HEADING_LENGTH = 100

SECTION_OPENERS: List[re.Pattern] = [
    re.compile(r'^(?:Introduction|Overview|Getting Started)\b', re.IGNORECASE),
    re.compile(r'^(?:Prerequisites|Requirements)\b', re.IGNORECASE),
    re.compile(r'^(?:Installation|Setup)\b', re.IGNORECASE),
    re.compile(r'^(?:Configuration|Settings)\b', re.IGNORECASE),
    re.compile(r'^(?:Usage|How to Use)\b', re.IGNORECASE),
    re.compile(r'^(?:Examples|Sample)\b', re.IGNORECASE),
    re.compile(r'^(?:Troubleshooting|Problems)\b', re.IGNORECASE),
    re.compile(r'^(?:FAQ|Questions)\b', re.IGNORECASE),
    re.compile(r'^(?:Appendix|Reference)\b', re.IGNORECASE),
    re.compile(r'^(?:Glossary|Terms)\b', re.IGNORECASE),
]

# leading markdown/numbering is ignored when matching an opener line
OPENER_PREFIX = re.compile(r'^(?:#{1,6}[ \t]+|\d+(?:\.\d+)*\.?[ \t]+)')

MIN_SECTION_LENGTH = 50
MAX_SECTION_LENGTH = 10000
MIN_SECTION_WORDS = 5

SECTION_TYPE_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("procedural", re.compile(r'step\s+\d+', re.IGNORECASE)),
    ("faq", re.compile(r'\?')),
    ("conceptual", re.compile(r'definition|means|refers to', re.IGNORECASE)),
    ("example", re.compile(r'example|instance', re.IGNORECASE)),
    ("warning", re.compile(r'warning|caution|important', re.IGNORECASE)),
]

STEP_CONTENT = re.compile(r'step\s+\d+', re.IGNORECASE)
DEFINITION_CONTENT = re.compile(r'\w+\s+(?:is|are|means?)\b', re.IGNORECASE)
PROCEDURE_CONTENT = re.compile(r'\b(?:navigate|click|select|choose)\b', re.IGNORECASE)
EXAMPLE_CONTENT = re.compile(r'example|for instance|such as', re.IGNORECASE)

SEE_ALSO = re.compile(r'see also[:\s]+([^.\n]+)', re.IGNORECASE)

HIERARCHY_ITEM = re.compile(
    r'^(?:(?P<number>\d+(?:\.\d+)*)\.?|(?P<step>Step[ \t]+\d+)[:.]?)[ \t]+(?P<text>\S.*)$',
    re.MULTILINE | re.IGNORECASE
)
