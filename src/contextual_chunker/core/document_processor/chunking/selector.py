"""
Strategy Selection Module

Chooses the chunking strategy for a document.

Decision order:
1. A valid explicit override
2. The structure analysis recommendation, when it is confident
3. Content heuristics (steps, then questions, then definitions)
4. ``semantic_adaptive``

Any error during selection yields ``simple``.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..structure.types import StructureAnalysis
from .config import ChunkingStrategy

logger = logging.getLogger(__name__)

STEP_MARKER = re.compile(r'\bstep\s+\d+', re.IGNORECASE)
NUMBERED_LINE = re.compile(r'^[ \t]*\d+[.)][ \t]+', re.MULTILINE)
SEQUENCING_WORD = re.compile(r'\b(?:first|second|third|fourth|fifth|next|then|finally)\b', re.IGNORECASE)
QA_PREFIX = re.compile(r'^[ \t]*Q\d*[:.]', re.MULTILINE | re.IGNORECASE)
DEFINITION_PHRASE = re.compile(r'\b\w+\s+(?:is|are|means?|refers?\s+to|defined\s+as)\b', re.IGNORECASE)


class SelectionSource(Enum):
    """Where a strategy decision came from."""
    OVERRIDE = "override"
    RECOMMENDATION = "recommendation"
    HEURISTIC = "heuristic"
    DEFAULT = "default"
    ERROR = "error"


@dataclass
class StrategySelection:
    strategy: ChunkingStrategy
    reason: str
    source: SelectionSource = SelectionSource.DEFAULT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "reason": self.reason,
            "source": self.source.value,
        }


class StrategySelector:
    """
    Selects a chunking strategy from an override, a structure analysis or the content.

    Example:
        >>> selector = StrategySelector()
        >>> selector.select("Step 1: Open.\\nStep 2: Close.").strategy.value
        'procedure_preserving'
    """

    def select(
        self,
        content: str,
        analysis: Optional[StructureAnalysis] = None,
        override: Optional[Union[ChunkingStrategy, str]] = None,
    ) -> StrategySelection:
        """
        Select the strategy for content.

        Args:
            content: Normalized document text
            analysis: Structure analysis of the document, if available
            override: Caller-requested strategy; invalid values are logged and ignored

        Returns:
            StrategySelection with the chosen strategy and the reason
        """
        try:
            if override is not None:
                try:
                    strategy = ChunkingStrategy.parse(override)
                    return StrategySelection(strategy, f"explicit override '{strategy.value}'", SelectionSource.OVERRIDE)
                except ValueError as e:
                    logger.warning(f"Ignoring invalid strategy override: {e}")

            if analysis is not None and analysis.recommendation.is_confident:
                recommendation = analysis.recommendation
                reason = (
                    "structure analysis fallback" if analysis.fallback
                    else f"structure analysis recommends {recommendation.approach.value} processing"
                )
                return StrategySelection(recommendation.chunking_strategy, reason, SelectionSource.RECOMMENDATION)

            heuristic = self._select_from_content(content)
            if heuristic is not None:
                return heuristic

            return StrategySelection(
                ChunkingStrategy.SEMANTIC_ADAPTIVE, "no specialized content detected", SelectionSource.DEFAULT
            )

        except Exception as e:
            logger.error(f"Strategy selection failed, using simple strategy: {e}", exc_info=True)
            return StrategySelection(ChunkingStrategy.SIMPLE, f"selection failed: {e}", SelectionSource.ERROR)

    @staticmethod
    def has_step_content(content: str) -> bool:
        return bool(
            STEP_MARKER.search(content)
            or len(NUMBERED_LINE.findall(content)) >= 2
            or len(SEQUENCING_WORD.findall(content)) >= 2
        )

    @staticmethod
    def has_qa_content(content: str) -> bool:
        return "?" in content or bool(QA_PREFIX.search(content))

    @staticmethod
    def has_definition_content(content: str) -> bool:
        return bool(DEFINITION_PHRASE.search(content))

    def _select_from_content(self, content: str) -> Optional[StrategySelection]:
        if self.has_step_content(content):
            return StrategySelection(
                ChunkingStrategy.PROCEDURE_PRESERVING, "step-by-step content detected", SelectionSource.HEURISTIC
            )
        if self.has_qa_content(content):
            return StrategySelection(
                ChunkingStrategy.QA_PAIR_PRESERVING, "question and answer content detected", SelectionSource.HEURISTIC
            )
        if self.has_definition_content(content):
            return StrategySelection(
                ChunkingStrategy.DEFINITION_PRESERVING, "definition content detected", SelectionSource.HEURISTIC
            )
        return None
