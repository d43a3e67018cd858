"""Tests for ChunkingStrategy and StrategyConfig."""

import pytest

from contextual_chunker.core.document_processor.chunking.config import (
    DEFAULT_STRATEGY_CONFIGS,
    ChunkingStrategy,
    StrategyConfig,
    get_strategy_config,
)


class TestChunkingStrategy:
    """Tests for the strategy enumeration."""

    def test_seven_strategies(self):
        assert len(ChunkingStrategy) == 7
        assert ChunkingStrategy.FALLBACK.value == "fallback"

    def test_parse_accepts_members_and_names(self):
        assert ChunkingStrategy.parse(ChunkingStrategy.SIMPLE) is ChunkingStrategy.SIMPLE
        assert ChunkingStrategy.parse("qa_pair_preserving") is ChunkingStrategy.QA_PAIR_PRESERVING
        assert ChunkingStrategy.parse(" QA-Pair-Preserving ") is ChunkingStrategy.QA_PAIR_PRESERVING

    def test_parse_rejects_unknown_names(self):
        with pytest.raises(ValueError, match="Unknown chunking strategy"):
            ChunkingStrategy.parse("paragraphs")

    def test_parse_rejects_non_strings(self):
        with pytest.raises(ValueError):
            ChunkingStrategy.parse(3)

    def test_str_is_value(self):
        assert str(ChunkingStrategy.STRUCTURE_PRESERVING) == "structure_preserving"


class TestStrategyConfig:
    """Tests for strategy size parameters."""

    def test_every_strategy_has_a_config(self):
        assert set(DEFAULT_STRATEGY_CONFIGS) == set(ChunkingStrategy)
        for strategy, config in DEFAULT_STRATEGY_CONFIGS.items():
            assert config.strategy is strategy

    @pytest.mark.parametrize("strategy,sizes", [
        (ChunkingStrategy.SEMANTIC_ADAPTIVE, (800, 1200, 200, 100)),
        (ChunkingStrategy.PROCEDURE_PRESERVING, (600, 1000, 150, 50)),
        (ChunkingStrategy.QA_PAIR_PRESERVING, (400, 800, 100, 30)),
        (ChunkingStrategy.DEFINITION_PRESERVING, (500, 900, 120, 80)),
        (ChunkingStrategy.STRUCTURE_PRESERVING, (700, 1100, 180, 120)),
        (ChunkingStrategy.SIMPLE, (500, 800, 100, 50)),
    ])
    def test_default_sizes(self, strategy, sizes):
        config = get_strategy_config(strategy)
        assert (config.target_size, config.max_size, config.min_size, config.overlap_size) == sizes

    def test_fallback_uses_fixed_windows(self):
        config = get_strategy_config("fallback")
        assert config.fixed_window is True
        assert config.max_size == 500
        assert config.overlap_size == 0

    def test_preservation_flags(self):
        assert get_strategy_config("procedure_preserving").preserve_step_sequences
        assert get_strategy_config("qa_pair_preserving").preserve_qa_pairs
        assert get_strategy_config("definition_preserving").preserve_definitions
        assert get_strategy_config("structure_preserving").respect_hierarchy
        assert not get_strategy_config("simple").preserve_relationships

    def test_size_ordering_is_validated(self):
        with pytest.raises(ValueError, match="min_size <= target_size <= max_size"):
            StrategyConfig(ChunkingStrategy.SIMPLE, target_size=900, max_size=800, min_size=100, overlap_size=0)

    def test_min_size_limited_to_half_of_max(self):
        with pytest.raises(ValueError, match="half of max_size"):
            StrategyConfig(ChunkingStrategy.SIMPLE, target_size=500, max_size=800, min_size=500, overlap_size=0)

    def test_overlap_must_be_below_max(self):
        with pytest.raises(ValueError, match="overlap_size"):
            StrategyConfig(ChunkingStrategy.SIMPLE, target_size=500, max_size=800, min_size=100, overlap_size=800)

    def test_sizes_must_be_integers(self):
        with pytest.raises(TypeError):
            StrategyConfig(ChunkingStrategy.SIMPLE, target_size=500.0, max_size=800, min_size=100, overlap_size=0)

    def test_strategy_must_be_enum(self):
        with pytest.raises(TypeError):
            StrategyConfig("simple", target_size=500, max_size=800, min_size=100, overlap_size=0)

    def test_config_is_frozen(self):
        config = get_strategy_config("simple")
        with pytest.raises(AttributeError):
            config.max_size = 10


class TestStrategyOverrides:
    """Tests for configuration file size overrides."""

    def test_overrides_apply_to_named_strategy_only(self):
        overrides = {"simple": {"max_size": 1000, "target_size": 600}}
        assert get_strategy_config("simple", overrides).max_size == 1000
        assert get_strategy_config("semantic_adaptive", overrides).max_size == 1200

    def test_overrides_do_not_modify_defaults(self):
        get_strategy_config("simple", {"simple": {"max_size": 1000}})
        assert DEFAULT_STRATEGY_CONFIGS[ChunkingStrategy.SIMPLE].max_size == 800

    def test_invalid_override_raises(self):
        with pytest.raises(ValueError):
            get_strategy_config("simple", {"simple": {"min_size": 700}})

    def test_unknown_override_field_raises(self):
        with pytest.raises(ValueError, match="Cannot override"):
            get_strategy_config("simple", {"simple": {"boundary_weight": 2.0}})

    def test_to_dict_round_trips_names(self):
        data = get_strategy_config("qa_pair_preserving").to_dict()
        assert data["strategy"] == "qa_pair_preserving"
        assert data["preserve_qa_pairs"] is True
