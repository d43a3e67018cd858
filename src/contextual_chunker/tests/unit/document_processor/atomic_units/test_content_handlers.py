"""Tests for content element handlers - CodeBlockHandler, TableHandler, ListHandler, DefinitionHandler."""

import pytest

from contextual_chunker.core.document_processor.atomic_units import (
    CodeBlockHandler,
    ContentElement,
    ContentElementType,
    ContentStructures,
    DefinitionHandler,
    ListHandler,
    TableHandler,
)


class TestContentElement:
    """Tests for ContentElement validation and helpers."""

    def test_valid_element(self):
        """Test element creation and derived values."""
        element = ContentElement(ContentElementType.LIST, "- a", 10, 13)
        assert element.get_length() == 3
        assert element.get_boundaries() == (10, 13)
        assert element.to_dict()["element_type"] == "list"

    def test_contains_position_is_strict(self):
        """Test that only interior positions are contained."""
        element = ContentElement(ContentElementType.TABLE, "| a | b |", 0, 9)
        assert element.contains_position(4)
        assert not element.contains_position(0)
        assert not element.contains_position(9)

    def test_empty_span_rejected(self):
        """Test that start must lie before end."""
        with pytest.raises(ValueError):
            ContentElement(ContentElementType.LIST, "", 5, 5)

    def test_element_type_validated(self):
        """Test that element_type must be a ContentElementType."""
        with pytest.raises(ValueError):
            ContentElement("list", "- a", 0, 3)

    def test_structures_complexity_weighs_tables(self):
        """Test the weighted complexity of grouped structures."""
        structures = ContentStructures(
            lists=[ContentElement(ContentElementType.LIST, "- a", 0, 3)],
            tables=[ContentElement(ContentElementType.TABLE, "|a|b|", 4, 9)],
        )
        assert structures.total_elements == 2
        assert structures.has_rich_structure
        assert structures.complexity == pytest.approx(0.3)
        assert [e.start_position for e in structures.all_elements()] == [0, 4]


class TestCodeBlockHandler:
    """Tests for CodeBlockHandler."""

    def test_detect_fenced_blocks(self):
        """Test detecting fenced code blocks with language tags."""
        text = """Regular text.

```python
def hello_world():
    print("Hello, World!")
```

More regular text.

~~~javascript
console.log("JavaScript code");
~~~"""
        elements = CodeBlockHandler().detect(text)
        assert len(elements) == 2
        assert [e.metadata["language"] for e in elements] == ["python", "javascript"]
        assert all(e.metadata["block_type"] == "fenced" for e in elements)
        assert text[elements[0].start_position:elements[0].end_position] == elements[0].content

    def test_detect_indented_block(self):
        """Test detecting an indented block spanning a blank line."""
        text = (
            "Regular paragraph.\n\n"
            "    def indented():\n"
            "        return 1\n"
            "\n"
            "    value = indented()\n\n"
            "Back to regular text."
        )
        elements = CodeBlockHandler().detect(text)
        assert len(elements) == 1
        assert elements[0].metadata["block_type"] == "indented"
        assert "value = indented()" in elements[0].content

    def test_unclosed_fence_is_ignored(self):
        """Test that an unterminated fence yields no fenced block."""
        assert CodeBlockHandler().detect("```python\nprint(1)") == []

    def test_extract_metadata(self):
        """Test metadata extraction from fenced content."""
        metadata = CodeBlockHandler().extract_metadata("```bash\nls\npwd\n```")
        assert metadata == {"line_count": 4, "language": "bash", "block_type": "fenced"}


class TestTableHandler:
    """Tests for TableHandler."""

    def test_detect_table_with_alignment(self):
        """Test table detection with header separator and alignments."""
        text = "Intro.\n| Name | Role |\n|:-----|-----:|\n| Ana | Admin |\n\nAfter."
        elements = TableHandler().detect(text)

        assert len(elements) == 1
        metadata = elements[0].metadata
        assert metadata["column_count"] == 2
        assert metadata["row_count"] == 2
        assert metadata["has_header_separator"] is True
        assert metadata["column_alignments"] == ["left", "right"]
        assert elements[0].start_position == text.index("| Name")

    def test_single_pipe_row_is_not_a_table(self):
        """Test that one pipe-delimited line is not enough."""
        assert TableHandler().detect("a | b | c\nplain text") == []

    def test_table_at_end_of_text(self):
        """Test a table that runs to the end of the text."""
        elements = TableHandler().detect("| a | b |\n| 1 | 2 |")
        assert len(elements) == 1
        assert elements[0].metadata["has_header_separator"] is False


class TestListHandler:
    """Tests for ListHandler."""

    @pytest.mark.parametrize("text,list_type", [
        ("- apple\n- banana\n- cherry", "bulleted"),
        ("1. one\n2. two", "numbered"),
        ("a) alpha\nb) beta", "lettered"),
    ])
    def test_list_types(self, text, list_type):
        """Test detection of each plain list type."""
        elements = ListHandler().detect(text)
        assert len(elements) == 1
        assert elements[0].metadata["list_type"] == list_type

    def test_items_are_extracted(self):
        """Test that item text is captured without markers."""
        metadata = ListHandler().detect("- apple\n- banana\n- cherry")[0].metadata
        assert metadata["item_count"] == 3
        assert metadata["items"] == ["apple", "banana", "cherry"]

    def test_task_list(self):
        """Test task list counters."""
        metadata = ListHandler().detect("- [x] done\n- [ ] todo")[0].metadata
        assert metadata["list_type"] == "task"
        assert metadata["completed_count"] == 1
        assert metadata["pending_count"] == 1
        assert metadata["items"] == ["done", "todo"]

    def test_nested_items(self):
        """Test that indented items belong to the enclosing list."""
        elements = ListHandler().detect("- parent\n  - child\n- sibling")
        assert len(elements) == 1
        assert elements[0].metadata["has_nested_items"] is True
        assert elements[0].metadata["max_nesting_depth"] == 2
        assert elements[0].metadata["item_count"] == 2

    def test_type_change_starts_new_list(self):
        """Test that switching list markers splits the list."""
        elements = ListHandler().detect("- bullet item\n1. numbered item")
        assert [e.metadata["list_type"] for e in elements] == ["bulleted", "numbered"]

    def test_classify_line(self):
        """Test single line classification."""
        handler = ListHandler()
        assert handler.classify_line("* star") == "bulleted"
        assert handler.classify_line("plain") is None


class TestDefinitionHandler:
    """Tests for DefinitionHandler."""

    def test_colon_separated(self):
        """Test a colon separated definition."""
        elements = DefinitionHandler().detect("API: Application Programming Interface")
        assert len(elements) == 1
        assert elements[0].metadata == {
            "style": "colon_separated",
            "term": "API",
            "definition": "Application Programming Interface",
        }

    def test_dash_separated(self):
        """Test a dash separated definition."""
        elements = DefinitionHandler().detect("Cache - a fast storage layer")
        assert elements[0].metadata["style"] == "dash_separated"
        assert elements[0].metadata["term"] == "Cache"

    def test_parenthetical(self):
        """Test a parenthetical definition."""
        elements = DefinitionHandler().detect("The TTL (time to live) controls expiry.")
        assert elements[0].metadata["term"] == "TTL"
        assert elements[0].metadata["definition"] == "time to live"

    def test_step_markers_are_not_terms(self):
        """Test that step markers are not reported as definitions."""
        assert DefinitionHandler().detect("Step 1: Open the settings panel") == []

    def test_results_sorted_by_position(self):
        """Test ordering of definitions from different patterns."""
        text = "The TTL (time to live) matters.\nCache: a fast storage layer"
        elements = DefinitionHandler().detect(text)
        assert [e.metadata["term"] for e in elements] == ["TTL", "Cache"]
