"""
Chunk Generation Module

Builds the initial chunk spans from detected boundaries.
"""

import logging
from typing import List, Sequence, Tuple

from .boundary import Boundary
from .config import StrategyConfig

logger = logging.getLogger(__name__)

Span = Tuple[int, int]


class ChunkGenerator:
    """
    Turns boundaries into contiguous spans.

    Spans between adjacent boundaries whose stripped text reaches
    ``min_size`` start a new chunk. Shorter spans are appended to the
    previous chunk, or held until the first chunk starts. When no span is
    long enough the whole content becomes a single chunk.
    """

    def generate(self, content: str, boundaries: Sequence[Boundary], config: StrategyConfig) -> List[Span]:
        """
        Generate initial spans.

        Args:
            content: Normalized document text
            boundaries: Boundaries sorted by position, sentinels included
            config: Active strategy configuration

        Returns:
            Contiguous ``(start, end)`` spans covering the content
        """
        if not content.strip():
            return []

        positions = sorted({0, len(content), *(b.position for b in boundaries)})
        spans: List[List[int]] = []
        held_start = None

        for start, end in zip(positions, positions[1:]):
            if len(content[start:end].strip()) >= config.min_size:
                spans.append([held_start if held_start is not None else start, end])
                held_start = None
            elif spans:
                spans[-1][1] = end
            elif held_start is None:
                held_start = start

        if not spans:
            spans = [[0, len(content)]]

        logger.debug(f"Generated {len(spans)} initial spans from {len(positions)} boundary positions")
        return [(start, end) for start, end in spans]
