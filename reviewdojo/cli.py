"""CLI entry point for review-dojo."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn

from reviewdojo import __version__
from reviewdojo.activity import read_activity_log
from reviewdojo.config import Config
from reviewdojo.domain.errors import DomainError
from reviewdojo.ingest.apply import ApplyKnowledge
from reviewdojo.ingest.bulk import apply_document
from reviewdojo.mcp_server import create_repository
from reviewdojo.query.checklist import ChecklistGenerator, ChecklistResult
from reviewdojo.query.engine import KnowledgeQueryService
from reviewdojo.storage.repository import FileSystemKnowledgeRepository, KnowledgeRepository
from reviewdojo.version_check import check_for_updates

app = typer.Typer(help="Accumulate code review lessons and turn them into PR checklists.")

err_console = Console(stderr=True)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def _knowledge_dir(knowledge_dir: Optional[Path]) -> Path:
    return knowledge_dir or Config.load().knowledge_dir


def _open_repository(knowledge_dir: Optional[Path]) -> KnowledgeRepository:
    """An explicit directory wins; otherwise follow the environment (local or remote)."""
    if knowledge_dir is not None:
        if not knowledge_dir.is_dir():
            rprint(f"[red]Error: Knowledge directory not found: {knowledge_dir}[/red]")
            raise typer.Exit(1)
        return FileSystemKnowledgeRepository(knowledge_dir)

    config = Config.load()
    issues = config.validate()
    if issues:
        for issue in issues:
            rprint(f"[red]Config error: {issue}[/red]")
        raise typer.Exit(1)
    return create_repository(config)


@app.command()
def apply(
    input_file: Path = typer.Argument(help="Knowledge JSON file (with a knowledge_items array)"),
    knowledge_dir: Optional[Path] = typer.Option(
        None, "--knowledge-dir", "-d", help="Knowledge base root (default: REVIEW_DOJO_KNOWLEDGE_DIR or cwd)"
    ),
) -> None:
    """Merge extracted lessons into the local knowledge base."""
    root = _knowledge_dir(knowledge_dir)
    use_case = ApplyKnowledge(FileSystemKnowledgeRepository(root))

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=err_console,
        ) as progress:
            progress.add_task(f"Applying {input_file}...", total=None)
            result = apply_document(use_case, input_file)
    except (DomainError, OSError) as e:
        rprint(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    for key, count in sorted(result.partitions.items()):
        rprint(f"  Updated {key}.md: {count} items")
    for key, message in sorted(result.failures.items()):
        rprint(f"  [red]Failed {key}: {message}[/red]")

    rprint(f"\n[green bold]Successfully processed {result.processed} knowledge items[/green bold]")
    if result.skipped_comments:
        rprint(f"Skipped {result.skipped_comments} comments")


@app.command()
def check(
    files: str = typer.Option(..., "--files", "-f", help="Comma-separated list of changed file paths"),
    format: str = typer.Option("markdown", "--format", help="Output format: markdown or json"),
    severity: Optional[str] = typer.Option(
        None, "--severity", help="Comma-separated severities: critical,warning,info"
    ),
    knowledge_dir: Optional[Path] = typer.Option(
        None, "--knowledge-dir", "-d", help="Knowledge base root (default: REVIEW_DOJO_KNOWLEDGE_DIR or cwd)"
    ),
) -> None:
    """Print a review checklist for the given files.

    Never fails the calling pipeline: internal errors print a warning and an
    empty checklist, and the exit code is 0.
    """
    file_paths = [f.strip() for f in files.split(",") if f.strip()]
    if not file_paths:
        rprint("[red]Error: No valid file paths provided[/red]")
        raise typer.Exit(1)

    try:
        repository = FileSystemKnowledgeRepository(_knowledge_dir(knowledge_dir))
        result = ChecklistGenerator(repository).generate(file_paths, severity_filter=severity)
    except Exception as e:
        err_console.print(f"[yellow]Warning: Knowledge check failed: {e}[/yellow]")
        result = ChecklistResult()

    if format == "json":
        typer.echo(result.to_json())
    else:
        typer.echo(result.to_markdown())


@app.command()
def search(
    query: Optional[str] = typer.Argument(None, help="Text to look for in titles and summaries"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category filter"),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Language filter"),
    severity: Optional[str] = typer.Option(None, "--severity", "-s", help="Severity filter"),
    file_path: Optional[str] = typer.Option(None, "--file-path", help="Example file path substring"),
    max_results: int = typer.Option(10, "--max-results", "-n", help="Maximum number of results"),
    format: str = typer.Option("text", "--format", help="Output format: text or json"),
    knowledge_dir: Optional[Path] = typer.Option(None, "--knowledge-dir", "-d", help="Knowledge base root"),
) -> None:
    """Search the knowledge base."""
    service = KnowledgeQueryService(_open_repository(knowledge_dir))
    response = service.search(
        query=query,
        category=category,
        language=language,
        severity=severity,
        file_path=file_path,
        max_results=max_results,
    )
    if format == "json":
        typer.echo(response.to_json())
    else:
        typer.echo(response.to_text())


@app.command()
def detail(
    knowledge_id: str = typer.Argument(help="Knowledge ID (category/language/slug)"),
    knowledge_dir: Optional[Path] = typer.Option(None, "--knowledge-dir", "-d", help="Knowledge base root"),
) -> None:
    """Show one lesson in full (JSON)."""
    result = KnowledgeQueryService(_open_repository(knowledge_dir)).get_detail(knowledge_id)
    if result is None:
        rprint(f"[red]Knowledge not found: {knowledge_id}[/red]")
        raise typer.Exit(1)
    typer.echo(result.to_json())


@app.command()
def categories(
    knowledge_dir: Optional[Path] = typer.Option(None, "--knowledge-dir", "-d", help="Knowledge base root"),
) -> None:
    """List categories and how many lessons each holds."""
    entries = KnowledgeQueryService(_open_repository(knowledge_dir)).list_categories()
    if not entries:
        rprint("[yellow]No knowledge yet.[/yellow]")
        return
    for entry in entries:
        rprint(f"  [bold]{entry['name']}[/bold] ({entry['knowledge_count']})  {entry['description']}")


@app.command()
def languages(
    knowledge_dir: Optional[Path] = typer.Option(None, "--knowledge-dir", "-d", help="Knowledge base root"),
) -> None:
    """List languages and how many lessons each holds."""
    entries = KnowledgeQueryService(_open_repository(knowledge_dir)).list_languages()
    if not entries:
        rprint("[yellow]No knowledge yet.[/yellow]")
        return
    for entry in entries:
        rprint(f"  [bold]{entry['name']}[/bold] ({entry['knowledge_count']})")


@app.command()
def activity(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of entries to show"),
    tool: Optional[str] = typer.Option(None, "--tool", help="Only show calls to this tool"),
) -> None:
    """Show recent MCP tool calls, most recent first."""
    entries = read_activity_log(limit=limit, tool_name=tool)
    if not entries:
        rprint("[yellow]No activity recorded yet.[/yellow]")
        return
    for entry in entries:
        status = "[red]error[/red]" if entry.get("error") else "[green]ok[/green]"
        rprint(
            f"{entry.get('timestamp', '')}  [bold]{entry.get('tool_name', '')}[/bold]  "
            f"{status}  {entry.get('duration_ms', 0)}ms"
        )


@app.command()
def serve() -> None:
    """Start the MCP server (launched by the coding agent over stdio)."""
    import asyncio
    from reviewdojo.mcp_server import main as mcp_main
    asyncio.run(mcp_main())


@app.command()
def version(
    check_updates: bool = typer.Option(False, "--check", help="Also look for a newer release"),
) -> None:
    """Print the installed version."""
    rprint(f"review-dojo {__version__}")
    if not check_updates:
        return
    info = check_for_updates()
    if info is None:
        rprint("[yellow]Could not check for updates.[/yellow]")
    elif info.update_available:
        rprint(f"[yellow]New version available: v{info.latest_version}[/yellow]")
        rprint(f"Update: {info.update_command}")
    else:
        rprint("[green]Up to date.[/green]")


if __name__ == "__main__":
    app()
