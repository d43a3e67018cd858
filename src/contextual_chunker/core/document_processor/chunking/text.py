"""
Text Utilities for Chunking

Normalization and the ASCII/English tokenization used throughout the
pipeline: sentences end after ``.``, ``!`` or ``?`` followed by whitespace,
words are whitespace separated and tokens are estimated as four characters.
"""

import math
import re
from typing import List

SENTENCE_SPLIT = re.compile(r'(?<=[.!?])\s+')
SENTENCE_END = re.compile(r'[.!?]["\')\]]*(?=\s|$)')
TERMINAL_PUNCTUATION = re.compile(r'[.!?:]["\')\]]*$')

SENTENCE_TERMINATORS = '.!?'
SENTENCE_CLOSERS = '"\')]'

CHARS_PER_TOKEN = 4


def normalize_content(content: str) -> str:
    """
    Normalize whitespace before chunking.

    Line endings become ``\\n``, runs of spaces and tabs collapse to one
    space, every line is stripped and three or more newlines collapse to a
    single blank line. All chunk positions refer to the normalized text.

    Example:
        >>> normalize_content("  a \\t b\\r\\n\\n\\n\\nc  ")
        'a b\\n\\nc'
    """
    text = content.replace('\r\n', '\n').replace('\r', '\n')
    text = re.sub(r'[ \t]+', ' ', text)
    text = '\n'.join(line.strip() for line in text.split('\n'))
    text = re.sub(r'\n{3,}', '\n\n', text)
    return text.strip()


def split_sentences(text: str) -> List[str]:
    return [s for s in SENTENCE_SPLIT.split(text.strip()) if s]


def count_words(text: str) -> int:
    return len(text.split())


def count_sentences(text: str) -> int:
    return len(split_sentences(text))


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def ends_sentence(text: str) -> bool:
    """True if text ends with a sentence terminator (optionally followed by a closing quote or bracket)."""
    return bool(TERMINAL_PUNCTUATION.search(text.rstrip()))


def is_sentence_end(content: str, position: int) -> bool:
    """True if a cut at position falls right after a sentence terminator."""
    # bounded look-behind over whitespace and closing quotes or brackets
    index = min(position, len(content)) - 1
    while index >= 0 and content[index].isspace():
        index -= 1
    while index >= 0 and content[index] in SENTENCE_CLOSERS:
        index -= 1
    return index >= 0 and content[index] in SENTENCE_TERMINATORS


def sentence_end_positions(content: str, start: int = 0, end: int = None) -> List[int]:
    """Cut positions directly after each sentence terminator in ``content[start:end]``."""
    end = len(content) if end is None else end
    return [m.end() for m in SENTENCE_END.finditer(content, start, end)]
