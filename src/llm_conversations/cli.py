from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from pathlib import Path

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table

from llm_conversations.config import AppConfig, load_config
from llm_conversations.errors import ConversationError, StorageUnavailableError
from llm_conversations.export import export_conversations, generate_filename
from llm_conversations.platforms import platform_name
from llm_conversations.render import render_markdown
from llm_conversations.repository import ConversationRepository, open_repository
from llm_conversations.search import by_recency, filter_conversations, fuzzy_search
from llm_conversations.sources import is_remote, load_source
from llm_conversations.storage import BACKENDS
from llm_conversations.utils import format_instant

app = typer.Typer(help="Import, store and export LLM conversation histories.", no_args_is_help=True)

logger = logging.getLogger(__name__)


@dataclass
class ImportReport:
    source: str
    found: int = 0
    added: int = 0
    persisted: bool = False
    error: str | None = None


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _config(ctx: typer.Context) -> AppConfig:
    return ctx.obj


async def _open(config: AppConfig) -> ConversationRepository:
    try:
        repo = await open_repository(config)
    except StorageUnavailableError as exc:
        typer.echo(f"Storage unavailable: {exc}", err=True)
        raise typer.Exit(1)
    await repo.load_conversations()
    return repo


@app.callback()
def main_callback(
    ctx: typer.Context,
    data_dir: Path | None = typer.Option(
        None, "--data-dir", help="Directory holding stored conversations."
    ),
    backend: str | None = typer.Option(
        None, "--backend", help="Storage backend: auto (default), sqlite, or blob."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr."),
) -> None:
    config = load_config()
    if data_dir is not None:
        config = replace(config, data_dir=data_dir.expanduser().resolve())
    if backend is not None:
        if backend.lower() not in BACKENDS:
            raise typer.BadParameter(f"Unknown backend: {backend}", param_hint="--backend")
        config = replace(config, backend=backend.lower())
    if verbose:
        config = replace(config, log_level="DEBUG")
    _setup_logging(config.log_level)
    ctx.obj = config


async def _import_sources(
    config: AppConfig, sources: list[str], persist_remote: bool
) -> list[ImportReport]:
    repo = await _open(config)
    reports: list[ImportReport] = []
    async with httpx.AsyncClient(timeout=config.fetch_timeout, follow_redirects=True) as client:
        for source in sources:
            report = ImportReport(source=source)
            reports.append(report)
            try:
                batch = await load_source(source, client=client, persist_remote=persist_remote)
            except ConversationError as exc:
                report.error = str(exc)
                logger.debug("Import of %s failed", source, exc_info=True)
                continue
            outcome = await repo.save_conversations(batch.conversations, persist=batch.persist)
            report.found = len(batch.conversations)
            report.added = outcome.added
            report.persisted = outcome.persisted
            if not outcome.ok:
                report.error = f"not saved: {outcome.error}"
    return reports


def _print_import_summary(reports: list[ImportReport]) -> None:
    console = Console()
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Source", style="dim")
    table.add_column("Found", justify="right")
    table.add_column("Added", justify="right")
    table.add_column("Status")
    for report in reports:
        if report.error:
            status = f"[red]{escape(report.error)}[/]"
        elif report.found and not report.added:
            status = "[yellow]already loaded[/]"
        elif not report.persisted:
            status = "[cyan]in memory only[/]"
        else:
            status = "[green]saved[/]"
        table.add_row(escape(report.source), str(report.found), str(report.added), status)
    console.print(table)
    console.print(
        "sources={s} found={f} added={a} failed={e}".format(
            s=len(reports),
            f=sum(r.found for r in reports),
            a=sum(r.added for r in reports),
            e=sum(1 for r in reports if r.error),
        )
    )


@app.command("import")
def import_command(
    ctx: typer.Context,
    sources: list[str] = typer.Argument(..., help="Export files (.json/.zip) or http(s) URLs."),
    persist_remote: bool = typer.Option(
        False, "--persist-remote", help="Also store conversations fetched from URLs."
    ),
) -> None:
    """Import conversation exports; each source succeeds or fails on its own."""
    config = _config(ctx)
    reports = asyncio.run(_import_sources(config, sources, persist_remote))
    _print_import_summary(reports)
    if any(is_remote(r.source) for r in reports) and not persist_remote:
        typer.echo("URL imports are kept in memory only; pass --persist-remote to store them.")
    if reports and all(r.error for r in reports):
        raise typer.Exit(1)


@app.command("list")
def list_command(
    ctx: typer.Context,
    query: str = typer.Option("", "--query", "-q", help="Only conversations matching every word."),
    fuzzy: bool = typer.Option(False, "--fuzzy", help="Rank titles by fuzzy similarity to --query."),
    limit: int = typer.Option(50, "--limit", help="Maximum rows to show."),
) -> None:
    """List stored conversations, newest first."""
    repo = asyncio.run(_open(_config(ctx)))
    if fuzzy and query:
        rows = fuzzy_search(repo.conversations, query, limit=limit)
    elif query:
        rows = filter_conversations(repo.conversations, query)
    else:
        rows = by_recency(repo.conversations)
    if not rows:
        typer.echo("No conversations found.")
        return
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Updated", style="dim")
    table.add_column("Source")
    table.add_column("Messages", justify="right")
    table.add_column("Title")
    table.add_column("Id", style="dim")
    for conversation in rows[:limit]:
        table.add_row(
            format_instant(conversation.updated)[:16].replace("T", " "),
            platform_name(conversation.format),
            str(len(conversation.messages)),
            escape(conversation.title),
            escape(conversation.id),
        )
    Console().print(table)


@app.command("show")
def show_command(
    ctx: typer.Context,
    conversation_id: str = typer.Argument(..., help="Conversation id."),
    with_system: bool = typer.Option(False, "--with-system", help="Include system messages."),
    raw: bool = typer.Option(False, "--raw", help="Print Markdown source instead of rendering it."),
) -> None:
    """Show one conversation as Markdown."""
    repo = asyncio.run(_open(_config(ctx)))
    conversation = next((c for c in repo.conversations if c.id == conversation_id), None)
    if conversation is None:
        typer.echo(f"No conversation with id {conversation_id}", err=True)
        raise typer.Exit(1)
    text = render_markdown(conversation, with_system=with_system)
    if raw:
        typer.echo(text)
    else:
        Console().print(Markdown(text))


@app.command("export")
def export_command(
    ctx: typer.Context,
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output file (default: generated name in the current directory)."
    ),
    ids: list[str] = typer.Option([], "--id", help="Export only these conversation ids."),
) -> None:
    """Export stored conversations in the canonical JSON format."""
    repo = asyncio.run(_open(_config(ctx)))
    selected = list(repo.conversations)
    if ids:
        wanted = set(ids)
        selected = [c for c in selected if c.id in wanted]
        missing = wanted - {c.id for c in selected}
        if missing:
            typer.echo(f"Unknown conversation id(s): {', '.join(sorted(missing))}", err=True)
            raise typer.Exit(1)
    if not selected:
        typer.echo("Nothing to export.")
        raise typer.Exit(1)
    target = output or Path.cwd() / generate_filename(selected)
    count = export_conversations(selected, target)
    typer.echo(f"exported={count} path={target}")


async def _stats(config: AppConfig) -> tuple[str, int, int]:
    repo = await _open(config)
    return repo.primary.name, len(repo.conversations), await repo.get_storage_size()


@app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Show the active backend, conversation count and storage size."""
    config = _config(ctx)
    backend, count, size = asyncio.run(_stats(config))
    typer.echo(f"backend={backend} conversations={count} bytes={size} data_dir={config.data_dir}")


async def _clear(config: AppConfig) -> None:
    repo = await _open(config)
    await repo.clear_conversations()


@app.command("clear")
def clear_command(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete every stored conversation."""
    if not yes:
        typer.confirm("Delete all stored conversations?", abort=True)
    asyncio.run(_clear(_config(ctx)))
    typer.echo("cleared=true")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
