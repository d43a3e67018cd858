"""
Contextual Chunker CLI Package.

This package contains the command-line interface for chunking and analyzing
documents from the shell.
"""

from .cli import app, cli_main

__all__ = ["app", "cli_main"]
