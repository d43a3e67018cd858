"""Tests for relationship identification."""

import pytest

from contextual_chunker.core.document_processor.chunking.config import ChunkingStrategy
from contextual_chunker.core.document_processor.chunking.relationships import (
    RELATIONSHIP_REQUIREMENTS,
    Relationship,
    RelationshipIdentifier,
    RelationshipPattern,
    RelationshipType,
)


class TestRelationship:
    """Tests for the Relationship record."""

    def test_of_type_applies_rules(self):
        relationship = Relationship.of_type(RelationshipType.STEP_SEQUENCE, 0, 10, "x" * 10)
        assert relationship.priority == 3
        assert relationship.max_separation == 2
        assert relationship.keep_together is True

    def test_contains_is_strict(self):
        relationship = Relationship.of_type(RelationshipType.DEFINITION, 5, 10, "x" * 5)
        assert not relationship.contains(5)
        assert relationship.contains(6)
        assert not relationship.contains(10)

    def test_overlaps(self):
        relationship = Relationship.of_type(RelationshipType.EXAMPLE, 5, 10, "x" * 5)
        assert relationship.overlaps(0, 6)
        assert not relationship.overlaps(0, 5)
        assert not relationship.overlaps(10, 20)

    def test_invalid_span_raises(self):
        with pytest.raises(ValueError):
            Relationship.of_type(RelationshipType.QA_PAIR, 10, 10, "")

    def test_requirements_cover_every_strategy(self):
        assert set(RELATIONSHIP_REQUIREMENTS) == set(ChunkingStrategy)


class TestRelationshipIdentifier:
    """Tests for pattern based relationship identification."""

    def setup_method(self):
        self.identifier = RelationshipIdentifier()

    def test_step_sequence(self):
        text = "Step 1: Open the panel.\nStep 2: Click save."
        found = self.identifier.identify(text, ChunkingStrategy.PROCEDURE_PRESERVING)
        assert len(found) == 1
        assert found[0].type == RelationshipType.STEP_SEQUENCE
        assert (found[0].start_index, found[0].end_index) == (0, len(text))

    def test_single_step_is_not_a_sequence(self):
        found = self.identifier.identify("Step 1: Only one thing to do.", ChunkingStrategy.PROCEDURE_PRESERVING)
        assert found == []

    def test_numbered_items(self):
        text = "1. Unpack the box.\n2. Connect the cable.\n3. Press the power button."
        found = self.identifier.identify(text, ChunkingStrategy.PROCEDURE_PRESERVING)
        assert [r.type for r in found] == [RelationshipType.STEP_SEQUENCE]

    def test_qa_pair(self):
        text = "Q: What is X?\nA: X is Y."
        found = self.identifier.identify(text, ChunkingStrategy.QA_PAIR_PRESERVING)
        assert [r.type.value for r in found] == ["qa_pair"]
        assert found[0].content == text

    def test_question_line_followed_by_answer(self):
        text = "How do I log in?\nUse the single sign-on button on the start page."
        found = self.identifier.identify(text, ChunkingStrategy.QA_PAIR_PRESERVING)
        assert len(found) == 1
        assert found[0].end_index == len(text)

    def test_definition(self):
        text = "Latency: the time between a request and its response."
        found = self.identifier.identify(text, ChunkingStrategy.DEFINITION_PRESERVING)
        assert [r.type for r in found] == [RelationshipType.DEFINITION]

    def test_warning_is_bounded_by_paragraph(self):
        text = "Warning: do not unplug the device.\n\nUnrelated paragraph follows here."
        found = self.identifier.identify(text, ChunkingStrategy.PROCEDURE_PRESERVING)
        assert len(found) == 1
        assert found[0].type == RelationshipType.WARNING
        assert found[0].content == "Warning: do not unplug the device."

    def test_higher_priority_wins_overlaps(self):
        text = "Step 1: Open the lid.\nNote: keep the cable attached.\nStep 2: Close the lid."
        found = self.identifier.identify(text, ChunkingStrategy.PROCEDURE_PRESERVING)
        assert [r.type for r in found] == [RelationshipType.STEP_SEQUENCE]

    def test_results_do_not_overlap_and_are_sorted(self):
        text = (
            "Example: run the tool twice.\n\n"
            "Step 1: Open the lid.\nStep 2: Close the lid.\n\n"
            "Caution: the lid is heavy."
        )
        found = self.identifier.identify(text, ChunkingStrategy.PROCEDURE_PRESERVING)
        assert [r.type for r in found] == [
            RelationshipType.EXAMPLE,
            RelationshipType.STEP_SEQUENCE,
            RelationshipType.WARNING,
        ]
        for left, right in zip(found, found[1:]):
            assert left.end_index <= right.start_index

    @pytest.mark.parametrize("strategy", [
        ChunkingStrategy.SEMANTIC_ADAPTIVE,
        ChunkingStrategy.STRUCTURE_PRESERVING,
        ChunkingStrategy.SIMPLE,
        ChunkingStrategy.FALLBACK,
    ])
    def test_strategies_without_requirements(self, strategy):
        text = "Step 1: Open.\nStep 2: Close.\nQ: Why?\nA: Because."
        assert self.identifier.identify(text, strategy) == []

    def test_broken_pattern_yields_no_relationships(self):
        class Exploding:
            def finditer(self, content):
                raise RuntimeError("pattern failure")

        identifier = RelationshipIdentifier({
            RelationshipType.QA_PAIR: [RelationshipPattern("broken", Exploding())],
        })
        assert identifier.identify("Q: a\nA: b", ChunkingStrategy.QA_PAIR_PRESERVING) == []
