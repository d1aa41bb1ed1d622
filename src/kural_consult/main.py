import dataclasses
import json
from typing import Annotated

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from typer import Argument, Exit, Option, Typer, echo

from .config import load_settings
from .embeddings import create_embedding_client
from .errors import KuralConsultError
from .logger import init_logger
from .models import ResolutionResult
from .service import (
    build_pipeline,
    cache_status,
    load_settings_corpus,
    refresh_embeddings,
)
from .trace import ResolutionTrace

app = Typer(help="Consult Thiruvalluvar: answer a question with the most relevant kural.")


def _render_result(
    console: Console, question: str, result: ResolutionResult, *, verbose: bool
) -> None:
    entry = result.entry
    content = (
        f"**Kural {entry.id}** · {entry.section} · {entry.chapter}\n\n"
        f"{entry.source_text}\n\n"
        f"*{entry.translation}*\n\n"
        f"{entry.meaning}"
    )
    console.print(
        Panel(
            Markdown(content),
            title_align="left",
            title=f"Valluvar's counsel ({result.method} search)",
            border_style="bold green",
        )
    )
    if verbose:
        trace = ResolutionTrace(question=question, attempts=list(result.attempts))
        for step in trace.step_path():
            console.print(f"[dim]{step}[/]", highlight=False)


@app.command()
def ask(
    question: Annotated[str, Argument(help="Question or life problem to consult on.")],
    top_k: Annotated[
        int | None,
        Option("--top-k", help="Candidates kept by semantic search."),
    ] = None,
    corpus: Annotated[
        str | None,
        Option("--corpus", help="Corpus JSON path or URL (overrides KURAL_CORPUS_SOURCE)."),
    ] = None,
    as_json: Annotated[bool, Option("--json", help="Print the raw response object.")] = False,
    verbose: Annotated[bool, Option("--verbose", "-v", help="Show tier trace.")] = False,
) -> None:
    """Answer a question with a single kural."""
    console = Console()
    if not question.strip():
        console.print("[bold red]You need to provide a question[/]")
        raise Exit(code=1)

    settings = load_settings(corpus_source=corpus)
    if top_k is not None:
        settings = dataclasses.replace(settings, top_k=top_k)
    init_logger("DEBUG" if verbose else settings.log_level)

    try:
        with console.status(status="Consulting Valluvar..."):
            pipeline = build_pipeline(settings)
            result = pipeline.resolve(question)
    except KuralConsultError as exc:
        console.print(f"[bold red]Error:[/] {exc}")
        raise Exit(code=1)

    if as_json:
        echo(json.dumps(result.to_response(), ensure_ascii=False, indent=2))
        return
    _render_result(console, question, result, verbose=verbose)


@app.command()
def index(
    corpus: Annotated[
        str | None,
        Option("--corpus", help="Corpus JSON path or URL (overrides KURAL_CORPUS_SOURCE)."),
    ] = None,
    db_path: Annotated[
        str | None,
        Option("--db-path", help="Embedding cache path (overrides KURAL_DB_PATH)."),
    ] = None,
    force: Annotated[bool, Option("--force", help="Re-embed every entry.")] = False,
) -> None:
    """Precompute corpus embeddings into the DuckDB cache."""
    console = Console()
    settings = load_settings(corpus_source=corpus, db_path=db_path)
    init_logger(settings.log_level)

    try:
        embedding_client = create_embedding_client(settings)
    except ValueError as exc:
        console.print(f"[bold red]Error:[/] {exc}")
        raise Exit(code=1)

    try:
        entries = load_settings_corpus(settings)
        with console.status(status="Embedding corpus entries..."):
            result = refresh_embeddings(entries, embedding_client, settings, force=force)
    except KuralConsultError as exc:
        console.print(f"[bold red]Error:[/] {exc}")
        raise Exit(code=1)

    table = Table(title="Index Complete")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Model", embedding_client.model)
    table.add_row("Entries", str(result.total_entries))
    table.add_row("Embedded", str(result.embedded))
    table.add_row("Reused", str(result.reused))
    table.add_row("Pruned", str(result.pruned))
    table.add_row("Failed", str(result.failed))
    console.print(table)
    if result.failed:
        raise Exit(code=2)


@app.command()
def status(
    corpus: Annotated[
        str | None,
        Option("--corpus", help="Corpus JSON path or URL (overrides KURAL_CORPUS_SOURCE)."),
    ] = None,
    db_path: Annotated[
        str | None,
        Option("--db-path", help="Embedding cache path (overrides KURAL_DB_PATH)."),
    ] = None,
) -> None:
    """Show corpus and embedding cache status."""
    console = Console()
    settings = load_settings(corpus_source=corpus, db_path=db_path)
    init_logger(settings.log_level)

    info = cache_status(settings)
    try:
        corpus_entries: str = str(len(load_settings_corpus(settings)))
    except KuralConsultError as exc:
        corpus_entries = f"unavailable ({exc})"

    table = Table(title="KuralConsult Status")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("Corpus source", settings.corpus_source)
    table.add_row("Corpus entries", corpus_entries)
    table.add_row("Provider", str(info["provider"]))
    table.add_row("Embedding model", str(info["embedding_model"]))
    table.add_row("Cache path", str(info["db_path"]))
    table.add_row("Cached embeddings", str(info["cached_embeddings"]))
    console.print(table)


@app.command()
def serve(
    host: Annotated[str, Option("--host", help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, Option("--port", help="Port to listen on.")] = 8000,
) -> None:
    """Run the HTTP consultation server."""
    from .server import run_server

    init_logger(load_settings().log_level)
    run_server(host=host, port=port)
