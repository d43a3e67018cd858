"""
Overlap Module

Adds sentence overlap between neighbouring chunks.
"""

import logging
from typing import List

from .config import StrategyConfig
from .result import Chunk
from .text import split_sentences

logger = logging.getLogger(__name__)

OVERLAP_SENTENCES = 2
OVERLAP_SEPARATOR = "\n\n"


class OverlapApplier:
    """
    Applies leading and trailing overlap to chunks.

    Each chunk but the first is prefixed with the last sentences of the
    previous chunk, and each chunk but the last is suffixed with the first
    sentences of the next one. Overlap is taken from the chunk bodies as
    they were before any overlap was added, limited to ``overlap_size``
    characters at a word break, and only added while the chunk stays within
    ``max_size``.
    """

    def __init__(self, max_sentences: int = OVERLAP_SENTENCES):
        if max_sentences < 1:
            raise ValueError(f"max_sentences must be at least 1, got: {max_sentences}")
        self.max_sentences = max_sentences

    def apply(self, chunks: List[Chunk], config: StrategyConfig) -> List[Chunk]:
        if config.overlap_size <= 0 or len(chunks) < 2:
            return chunks

        bodies = [chunk.content for chunk in chunks]
        applied = 0

        for i, chunk in enumerate(chunks):
            if i > 0:
                prefix = self.leading_overlap(bodies[i - 1], config.overlap_size)
                if prefix and len(prefix) + len(OVERLAP_SEPARATOR) + chunk.size <= config.max_size:
                    chunk.content = prefix + OVERLAP_SEPARATOR + chunk.content
                    chunk.has_overlap_before = True
                    chunk.overlap_before = prefix
                    applied += 1

            if i < len(chunks) - 1:
                suffix = self.trailing_overlap(bodies[i + 1], config.overlap_size)
                if suffix and chunk.size + len(OVERLAP_SEPARATOR) + len(suffix) <= config.max_size:
                    chunk.content = chunk.content + OVERLAP_SEPARATOR + suffix
                    chunk.has_overlap_after = True
                    chunk.overlap_after = suffix
                    applied += 1

        logger.debug(f"Applied {applied} overlaps across {len(chunks)} chunks")
        return chunks

    def leading_overlap(self, previous_body: str, limit: int) -> str:
        """Overlap placed before a chunk: the end of the previous body."""
        text = " ".join(split_sentences(previous_body)[-self.max_sentences:])
        if len(text) <= limit:
            return text.strip()

        tail = text[-limit:]
        if not text[-limit - 1].isspace() and " " in tail:
            tail = tail[tail.index(" ") + 1:]
        return tail.strip()

    def trailing_overlap(self, next_body: str, limit: int) -> str:
        """Overlap placed after a chunk: the start of the next body."""
        text = " ".join(split_sentences(next_body)[:self.max_sentences])
        if len(text) <= limit:
            return text.strip()

        cut = text[:limit]
        if not text[limit].isspace() and " " in cut:
            cut = cut[:cut.rindex(" ")]
        return cut.strip()
