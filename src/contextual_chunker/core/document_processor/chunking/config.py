"""
Chunking Strategy Configuration Module

Contains the closed set of chunking strategies and the size parameters each
of them runs with.

Components:
- ChunkingStrategy: Enumeration of the seven chunking strategies
- StrategyConfig: Frozen size and preservation parameters of one strategy
- DEFAULT_STRATEGY_CONFIGS: Built-in configuration per strategy
- get_strategy_config: Lookup with optional size overrides
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

logger = logging.getLogger(__name__)


class ChunkingStrategy(Enum):
    """
    Enumeration of available chunking strategies.

    Every strategy maps to exactly one StrategyConfig. Code that dispatches on
    the strategy uses a mapping checked at import time to cover all members.
    """
    SEMANTIC_ADAPTIVE = "semantic_adaptive"  # General prose, relationship aware
    PROCEDURE_PRESERVING = "procedure_preserving"  # Keeps step sequences together
    QA_PAIR_PRESERVING = "qa_pair_preserving"  # Keeps questions with their answers
    DEFINITION_PRESERVING = "definition_preserving"  # Keeps terms with their definitions
    STRUCTURE_PRESERVING = "structure_preserving"  # Follows the heading hierarchy
    SIMPLE = "simple"  # Plain boundary-based splitting
    FALLBACK = "fallback"  # Fixed windows after a pipeline failure

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Union["ChunkingStrategy", str]) -> "ChunkingStrategy":
        """
        Resolve a strategy from an enum member or its name.

        Names are matched case-insensitively and ``-`` is accepted for ``_``.

        Raises:
            ValueError: If the value does not name a strategy
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Strategy must be a ChunkingStrategy or string, got: {type(value)}")

        normalized = value.strip().lower().replace('-', '_')
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(
            f"Unknown chunking strategy '{value}'. "
            f"Valid strategies: {', '.join(m.value for m in cls)}"
        )


@dataclass(frozen=True)
class StrategyConfig:
    """
    Size and preservation parameters for one chunking strategy.

    Attributes:
        strategy: Strategy this configuration belongs to
        target_size: Preferred chunk size in characters
        max_size: Hard upper bound on chunk size (overlap included)
        min_size: Lower bound on chunk size, except for documents shorter than it
        overlap_size: Maximum characters of overlap added on each side of a chunk
        preserve_relationships: Keep any detected relationship together
        preserve_step_sequences: Keep numbered steps together; drops step-marker boundaries
        preserve_qa_pairs: Keep questions and answers together
        preserve_definitions: Keep definitions with their terms
        respect_hierarchy: Prefer splitting at headings
        boundary_weight: Relative importance of boundaries for this strategy
        fixed_window: Split into fixed windows without boundary detection
        description: Human readable description

    Example:
        >>> config = get_strategy_config(ChunkingStrategy.SIMPLE)
        >>> (config.min_size, config.max_size)
        (100, 800)
    """
    strategy: ChunkingStrategy
    target_size: int
    max_size: int
    min_size: int
    overlap_size: int
    preserve_relationships: bool = False
    preserve_step_sequences: bool = False
    preserve_qa_pairs: bool = False
    preserve_definitions: bool = False
    respect_hierarchy: bool = False
    boundary_weight: float = 1.0
    fixed_window: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        """
        Validate size parameters.

        Raises:
            TypeError: If strategy or sizes have the wrong type
            ValueError: If sizes are out of range or incompatible
        """
        if not isinstance(self.strategy, ChunkingStrategy):
            raise TypeError(f"strategy must be ChunkingStrategy enum, got: {type(self.strategy)}")

        for name in ("target_size", "max_size", "min_size", "overlap_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be an integer, got: {type(value)}")

        if self.min_size < 1:
            raise ValueError(f"min_size must be positive, got: {self.min_size}")

        if not self.min_size <= self.target_size <= self.max_size:
            raise ValueError(
                f"Sizes must satisfy min_size <= target_size <= max_size, got "
                f"{self.min_size} / {self.target_size} / {self.max_size}"
            )

        if self.min_size * 2 > self.max_size:
            raise ValueError(
                f"min_size ({self.min_size}) should not exceed half of max_size ({self.max_size // 2})"
            )

        if self.overlap_size < 0 or self.overlap_size >= self.max_size:
            raise ValueError(
                f"overlap_size must be in [0, max_size), got: {self.overlap_size}"
            )

        if self.boundary_weight <= 0:
            raise ValueError(f"boundary_weight must be positive, got: {self.boundary_weight}")

    def with_overrides(self, **overrides: Any) -> "StrategyConfig":
        """
        Create a copy with size overrides applied.

        Only ``target_size``, ``max_size``, ``min_size`` and ``overlap_size``
        may be overridden.

        Raises:
            ValueError: If an unknown field is given or the result is invalid
        """
        allowed = {"target_size", "max_size", "min_size", "overlap_size"}
        unknown = set(overrides) - allowed
        if unknown:
            raise ValueError(f"Cannot override {sorted(unknown)}; allowed fields: {sorted(allowed)}")
        return replace(self, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "target_size": self.target_size,
            "max_size": self.max_size,
            "min_size": self.min_size,
            "overlap_size": self.overlap_size,
            "preserve_relationships": self.preserve_relationships,
            "preserve_step_sequences": self.preserve_step_sequences,
            "preserve_qa_pairs": self.preserve_qa_pairs,
            "preserve_definitions": self.preserve_definitions,
            "respect_hierarchy": self.respect_hierarchy,
            "boundary_weight": self.boundary_weight,
            "fixed_window": self.fixed_window,
            "description": self.description,
        }

    def __repr__(self) -> str:
        return (
            f"StrategyConfig({self.strategy.value}, target={self.target_size}, "
            f"min={self.min_size}, max={self.max_size}, overlap={self.overlap_size})"
        )


DEFAULT_STRATEGY_CONFIGS: Dict[ChunkingStrategy, StrategyConfig] = {
    ChunkingStrategy.SEMANTIC_ADAPTIVE: StrategyConfig(
        strategy=ChunkingStrategy.SEMANTIC_ADAPTIVE,
        target_size=800, max_size=1200, min_size=200, overlap_size=100,
        preserve_relationships=True,
        description="Adaptive chunking for general prose that keeps related content together",
    ),
    ChunkingStrategy.PROCEDURE_PRESERVING: StrategyConfig(
        strategy=ChunkingStrategy.PROCEDURE_PRESERVING,
        target_size=600, max_size=1000, min_size=150, overlap_size=50,
        preserve_step_sequences=True, boundary_weight=2.0,
        description="Keeps step-by-step procedures, warnings and examples intact",
    ),
    ChunkingStrategy.QA_PAIR_PRESERVING: StrategyConfig(
        strategy=ChunkingStrategy.QA_PAIR_PRESERVING,
        target_size=400, max_size=800, min_size=100, overlap_size=30,
        preserve_qa_pairs=True, boundary_weight=3.0,
        description="Keeps each question together with its answer",
    ),
    ChunkingStrategy.DEFINITION_PRESERVING: StrategyConfig(
        strategy=ChunkingStrategy.DEFINITION_PRESERVING,
        target_size=500, max_size=900, min_size=120, overlap_size=80,
        preserve_definitions=True, boundary_weight=2.5,
        description="Keeps terms together with their definitions and examples",
    ),
    ChunkingStrategy.STRUCTURE_PRESERVING: StrategyConfig(
        strategy=ChunkingStrategy.STRUCTURE_PRESERVING,
        target_size=700, max_size=1100, min_size=180, overlap_size=120,
        respect_hierarchy=True, boundary_weight=2.0,
        description="Follows the document's heading and section hierarchy",
    ),
    ChunkingStrategy.SIMPLE: StrategyConfig(
        strategy=ChunkingStrategy.SIMPLE,
        target_size=500, max_size=800, min_size=100, overlap_size=50,
        description="Plain boundary-based splitting without relationship handling",
    ),
    ChunkingStrategy.FALLBACK: StrategyConfig(
        strategy=ChunkingStrategy.FALLBACK,
        target_size=500, max_size=500, min_size=1, overlap_size=0,
        fixed_window=True,
        description="Fixed 500 character windows used when the pipeline fails",
    ),
}

_missing = set(ChunkingStrategy) - set(DEFAULT_STRATEGY_CONFIGS)
if _missing:
    raise RuntimeError(f"No StrategyConfig defined for: {sorted(m.value for m in _missing)}")


def get_strategy_config(
    strategy: Union[ChunkingStrategy, str],
    overrides: Optional[Mapping[str, Mapping[str, int]]] = None
) -> StrategyConfig:
    """
    Get the configuration of a strategy, applying size overrides.

    Args:
        strategy: Strategy member or name
        overrides: Mapping of strategy name to size overrides, as found in the
            ``strategies`` section of the configuration file

    Returns:
        StrategyConfig for the strategy

    Raises:
        ValueError: If the strategy is unknown or the overrides are invalid
    """
    member = ChunkingStrategy.parse(strategy)
    config = DEFAULT_STRATEGY_CONFIGS[member]

    if overrides and member.value in overrides:
        sizes = dict(overrides[member.value])
        if sizes:
            config = config.with_overrides(**sizes)
            logger.debug(f"Applied size overrides to {member.value}: {config!r}")

    return config
