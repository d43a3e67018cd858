"""
Contextual Chunker CLI Application.

Main entry point for the contextual-chunker command-line interface. Chunks
UTF-8 text files, prints structure analyses and lists the available
chunking strategies.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .. import __version__
from ..core.document_processor.chunking import ChunkingStrategy, ContextAwareChunker
from ..core.document_processor.structure import StructureAnalyzer
from ..exceptions.config_exceptions import ConfigurationError
from ..utils.config import ConfigManager
from ..utils.logging_config import LogFormat, LoggingManager

# stdout carries command output; logs go to stderr
console = Console()
log_console = Console(stderr=True)

app = typer.Typer(
    name="contextual-chunker",
    help="Context-aware document chunking for retrieval pipelines",
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

# Global state
_config_manager: Optional[ConfigManager] = None
_logger: Optional[logging.Logger] = None
_global_config: dict = {}

PREVIEW_LENGTH = 60


def setup_logging(verbose: bool = False, logging_config: Optional[Dict[str, Any]] = None) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        verbose: Enable verbose (DEBUG) logging; overrides the configured level
        logging_config: The ``logging`` section of the loaded configuration.
            Without it only warnings are shown.

    Returns:
        Configured logger instance
    """
    settings = {"level": "WARNING", "format": LogFormat.STANDARD.value}
    settings.update({key: value for key, value in (logging_config or {}).items() if value is not None})
    if verbose:
        settings["level"] = "DEBUG"

    # json and detailed records go to stderr as formatted; standard ones through rich
    use_rich = settings["format"] == LogFormat.STANDARD.value
    manager = LoggingManager.from_config(settings, enable_console=not use_rich)
    log_level = manager.log_level.value

    if use_rich:
        rich_handler = RichHandler(
            console=log_console,
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        rich_handler.setLevel(log_level)
        rich_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        logging.getLogger().addHandler(rich_handler)

    logger = logging.getLogger("contextual_chunker")
    logger.setLevel(log_level)

    return logger


def get_config_manager(config_path: Optional[str] = None) -> ConfigManager:
    """
    Get or create the global configuration manager.

    Args:
        config_path: Optional path to configuration file

    Returns:
        ConfigManager instance with the configuration loaded

    Raises:
        typer.Exit: If configuration loading fails
    """
    global _config_manager, _logger

    if _config_manager is None or config_path:
        try:
            _config_manager = ConfigManager(config_file=config_path, load_env=True)
            _config_manager.load_config()
        except ConfigurationError as e:
            rprint(f"[red]Configuration Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)

        # -v keeps its DEBUG level; otherwise the logging section decides
        if not _global_config.get("verbose"):
            _logger = setup_logging(logging_config=_config_manager.get("logging", {}))

    return _config_manager


def get_logger() -> logging.Logger:
    """Get the global logger instance."""
    global _logger
    if _logger is None:
        _logger = setup_logging()
    return _logger


def _config_path_from_context(ctx: typer.Context) -> Optional[str]:
    if ctx.obj:
        return ctx.obj.get("config_path")
    return None


def _read_document(file: Path) -> str:
    if not file.exists():
        rprint(f"[red]File Not Found:[/red] {escape(str(file))}")
        raise typer.Exit(1)
    try:
        return file.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        rprint(f"[red]Error:[/red] {escape(str(file))} is not a UTF-8 text file")
        raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None,
        "--config-path",
        "-c",
        help="Path to configuration file (default: contextual_chunker.config.json)",
        metavar="PATH",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging (DEBUG level)",
    ),
) -> None:
    """
    Contextual Chunker CLI - split documents into retrieval-ready chunks.

    Common workflows:
    • Chunk a document: contextual-chunker chunk guide.md
    • Force a strategy: contextual-chunker chunk faq.txt --strategy qa_pair_preserving
    • Inspect structure: contextual-chunker analyze guide.md
    """
    global _logger, _global_config
    _logger = setup_logging(verbose)

    _global_config = {
        "config_path": config_path,
        "verbose": verbose,
        "logger": _logger,
    }
    ctx.obj = _global_config.copy()

    if config_path:
        get_config_manager(config_path)


@app.command()
def chunk(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="UTF-8 text file to chunk"),
    strategy: Optional[str] = typer.Option(
        None, "--strategy", "-s", help="Chunking strategy (default: selected automatically)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
    show_content: bool = typer.Option(False, "--show-content", help="Print the content of every chunk"),
) -> None:
    """Chunk a document and print the chunks."""
    if strategy is not None:
        try:
            strategy = ChunkingStrategy.parse(strategy).value
        except ValueError as e:
            rprint(f"[red]Invalid strategy:[/red] {escape(str(e))}")
            raise typer.Exit(1)

    content = _read_document(file)
    chunker = ContextAwareChunker.from_config(get_config_manager(_config_path_from_context(ctx)))
    result = chunker.chunk_content(content, context={"processing_options": {"document_id": str(file)}}, strategy=strategy)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    metadata = result.chunking_metadata
    table = Table(title=f"Chunks of {file.name} ({metadata.get('strategy')})")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Span", style="dim")
    table.add_column("Size", justify="right")
    table.add_column("Quality", justify="right", style="green")
    table.add_column("Relationships")
    table.add_column("Preview" if not show_content else "Content")

    for item in result.chunks:
        text = item.content if show_content else item.content[:PREVIEW_LENGTH].replace("\n", " ")
        if not show_content and item.size > PREVIEW_LENGTH:
            text += "..."
        table.add_row(
            str(item.index),
            f"{item.start_position}-{item.end_position}",
            str(item.size),
            f"{item.quality_score:.2f}",
            ", ".join(item.relationships) or "-",
            Text(text),
        )

    console.print(table)
    console.print(
        f"[bold]{metadata.get('total_chunks', 0)}[/bold] chunks, "
        f"average size {metadata.get('average_chunk_size', 0.0):.0f}, "
        f"average quality {metadata.get('average_quality', 0.0):.2f}"
    )
    if metadata.get("structure_fallback"):
        console.print("[yellow]Structure analysis failed; the simple strategy was used[/yellow]")
    if result.error:
        console.print(f"[yellow]Fallback chunking used:[/yellow] {escape(result.error)}")


@app.command()
def analyze(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="UTF-8 text file to analyze"),
    as_json: bool = typer.Option(False, "--json", help="Print the full analysis as JSON"),
) -> None:
    """Analyze the structure of a document."""
    content = _read_document(file)
    cache_config = get_config_manager(_config_path_from_context(ctx)).get("cache", {}) or {}
    analyzer = StructureAnalyzer(enable_cache=cache_config.get("enabled", True))
    analysis = analyzer.analyze(content, {"document_id": str(file)})

    if as_json:
        typer.echo(json.dumps(analysis.to_dict(), indent=2))
        return

    quality = analysis.quality
    recommendation = analysis.recommendation
    summary = Text()
    summary.append(f"Headings: {len(analysis.headings)}")
    summary.append(f" (consistent: {'yes' if analysis.heading_consistent else 'no'})\n")
    summary.append(f"Sections: {len(analysis.sections)}\n")
    summary.append(f"Content elements: {analysis.content_structures.total_elements}\n")
    summary.append(f"Hierarchy depth: {analysis.hierarchy_characteristics.max_depth}\n")
    summary.append(f"Cross-references: {len(analysis.cross_references)}\n\n")
    summary.append("Quality: ", style="bold")
    summary.append(f"{quality.overall:.2f}\n")
    summary.append("Recommended strategy: ", style="bold")
    summary.append(f"{recommendation.chunking_strategy.value} ({recommendation.approach.value})\n")
    summary.append(f"Priority: {recommendation.processing_priority.value}\n")
    if recommendation.special_handling:
        summary.append(f"Special handling: {', '.join(recommendation.special_handling)}\n")
    if analysis.fallback:
        summary.append(f"\nAnalysis failed: {analysis.error}\n", style="yellow")

    console.print(Panel(summary, title=f"Structure of {file.name}", border_style="blue"))

    for recommendation_text in analysis.navigation.recommendations:
        console.print(f"• {recommendation_text}")


@app.command()
def strategies(ctx: typer.Context) -> None:
    """List chunking strategies and their sizes."""
    chunker = ContextAwareChunker.from_config(get_config_manager(_config_path_from_context(ctx)))

    table = Table(title="Chunking strategies")
    table.add_column("Strategy", style="cyan")
    table.add_column("Target", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    table.add_column("Overlap", justify="right")
    table.add_column("Description")

    for member in ChunkingStrategy:
        config = chunker.get_config(member)
        table.add_row(
            member.value,
            str(config.target_size),
            str(config.min_size),
            str(config.max_size),
            str(config.overlap_size),
            config.description,
        )

    console.print(table)


@app.command()
def info(ctx: typer.Context) -> None:
    """Show configuration status."""
    summary = get_config_manager(_config_path_from_context(ctx)).get_config_summary()

    info_text = Text()
    info_text.append("Contextual Chunker Information\n\n", style="bold blue")
    info_text.append(f"Version: {__version__}\n")
    info_text.append(f"Project root: {summary['project_root']}\n")
    info_text.append(f"Config sources: {', '.join(summary['sources']) or 'defaults'}\n")
    info_text.append(f"Log level: {summary['log_level']}\n")
    info_text.append(f"Cache enabled: {summary['cache_enabled']}\n")
    info_text.append(f"Strategy overrides: {', '.join(summary['strategy_overrides']) or 'none'}\n")

    console.print(Panel(info_text, title="System Information", border_style="blue"))


@app.command()
def version() -> None:
    """Show version information."""
    rprint(f"Contextual Chunker [blue]v{__version__}[/blue]")


def handle_cli_error(error: Exception) -> None:
    """
    Handle CLI errors with user-friendly messages.

    Args:
        error: The exception that occurred
    """
    logger = get_logger()

    if isinstance(error, ConfigurationError):
        rprint(f"[red]Configuration Error:[/red] {escape(str(error))}")
        logger.debug("Configuration error details", exc_info=True)
    elif isinstance(error, FileNotFoundError):
        rprint(f"[red]File Not Found:[/red] {escape(str(error))}")
        logger.debug("File not found details", exc_info=True)
    elif isinstance(error, PermissionError):
        rprint(f"[red]Permission Denied:[/red] {escape(str(error))}")
        logger.debug("Permission error details", exc_info=True)
    else:
        rprint(f"[red]Error:[/red] {escape(str(error))}")
        logger.debug("Unexpected error details", exc_info=True)


def cli_main() -> None:
    """
    Main CLI entry point with error handling.

    This function is called by the console script entry point.
    """
    try:
        app()
    except typer.Exit:
        raise
    except KeyboardInterrupt:
        rprint("\n[yellow]Operation cancelled by user[/yellow]")
        raise typer.Exit(130)
    except Exception as e:
        handle_cli_error(e)
        raise typer.Exit(1)


if __name__ == "__main__":
    cli_main()
