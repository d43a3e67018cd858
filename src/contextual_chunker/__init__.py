"""
Contextual Chunker.

Converts extracted document text into ordered, size-bounded, quality-scored
chunks that keep related content (step sequences, Q&A pairs, definitions)
together for downstream embedding and retrieval.
"""

__version__ = "0.1.0"
