"""Shared test fixtures and configuration for contextual chunker tests."""

import shutil
import tempfile
from pathlib import Path

import pytest

from contextual_chunker.core.document_processor.chunking import ContextAwareChunker
from contextual_chunker.utils.config.environment import EnvironmentHandler


def build_paragraph(min_length: int = 2000) -> str:
    """Single paragraph of short sentences, at least ``min_length`` characters long."""
    sentences = []
    number = 0
    while len(" ".join(sentences)) < min_length:
        number += 1
        sentences.append(f"Sentence number {number} describes a routine part of the maintenance process.")
    return " ".join(sentences)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """
    Remove CHUNKER_* variables for every test.

    Setting before deleting makes monkeypatch restore the original state,
    which also undoes variables loaded from .env files during a test.
    """
    for variable in EnvironmentHandler.ENV_MAPPING:
        monkeypatch.setenv(variable, "")
        monkeypatch.delenv(variable)
    yield


@pytest.fixture
def temp_directory():
    """Provide a temporary directory for testing."""
    temp_dir = tempfile.mkdtemp()
    temp_path = Path(temp_dir)

    yield temp_path

    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def chunker():
    """Chunker without a result cache, so every call runs the full pipeline."""
    return ContextAwareChunker(enable_cache=False)


@pytest.fixture
def procedure_text():
    return (
        "Step 1: Open the settings panel.\n"
        "Step 2: Select the network tab.\n"
        "Step 3: Save your changes."
    )


@pytest.fixture
def qa_text():
    return (
        "Q: How do I reset my password?\n"
        "A: Open the account page and choose Reset password."
    )


@pytest.fixture
def long_paragraph():
    return build_paragraph(2000)


@pytest.fixture
def structured_document():
    return (
        "# Installation Guide\n"
        "\n"
        "## Prerequisites\n"
        "\n"
        "You need Python 3.9 or newer and a working network connection before you begin.\n"
        "\n"
        "## Setup\n"
        "\n"
        "Step 1: Download the installer from the release page.\n"
        "Step 2: Run the installer and accept the license.\n"
        "\n"
        "See also Prerequisites for the supported platforms."
    )


@pytest.fixture
def mixed_document():
    """Longer document combining prose, a procedure, a FAQ and definitions."""
    intro = (
        "The backup service copies project data to remote storage every night. "
        "It keeps thirty days of history and can restore any single file. "
        "Operators rarely need to touch it, but a few tasks come up regularly."
    )
    procedure = "\n".join(
        f"Step {i}: Check the backup report for job {i} and confirm that the transfer completed without errors."
        for i in range(1, 7)
    )
    faq = (
        "Q: How long does a restore take?\n"
        "A: Most restores finish within ten minutes for a single project.\n"
        "Q: Can I restore to a different folder?\n"
        "A: Yes, pass the target folder when you start the restore."
    )
    glossary = (
        "Snapshot: a read-only copy of the project data at one point in time.\n"
        "Retention: the number of days a snapshot is kept before deletion."
    )
    return "\n\n".join([intro, procedure, faq, glossary, build_paragraph(1500)])
