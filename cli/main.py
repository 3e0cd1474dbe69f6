"""CLI entry point — Typer app for docrag commands.

Usage:
    docrag add-text "Paris is the capital of France."
    docrag add-file report.pdf
    docrag add-url https://example.com/article
    docrag list
    docrag query "What is the capital of France?" --stream
    docrag chat
    docrag remove <document-id>
    docrag status
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path
from typing import Annotated, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.table import Table

from docrag import __version__
from docrag.config import Settings, load_settings
from docrag.documents.schemas import Document
from docrag.errors import RAGError
from docrag.pipeline.events import Confidence, Fragment, Sources, StreamError
from docrag.pipeline.schemas import ConversationMessage, IngestResult, QueryAnswer
from docrag.retrieval.schemas import RetrievalCandidate
from docrag.service import KnowledgeBase

T = TypeVar("T")

DEFAULT_REGISTRY_PATH = ".docrag/registry.json"

app = typer.Typer(
    name="docrag",
    help="Document RAG — add documents, ask questions, manage the knowledge base.",
    no_args_is_help=True,
)

console = Console()

_state: dict[str, Settings] = {}

_FILE_PATH = typer.Argument(..., help="Path to a .txt, .pdf or .csv file", exists=True, dir_okay=False)
_QUESTION = typer.Argument(..., help="Question to ask")


@app.callback()
def main(
    settings_path: Annotated[
        Path | None,
        typer.Option("--settings", help="Path to settings.yaml"),
    ] = None,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging and load settings for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=verbose, show_path=verbose)],
    )
    settings = load_settings(settings_path)
    if settings.registry.path is None:
        # The CLI is one process per command; keep the registry on disk.
        settings.registry.path = DEFAULT_REGISTRY_PATH
    _state["settings"] = settings


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(action: Callable[[KnowledgeBase], Awaitable[T]]) -> T:
    """Run ``action`` against a started knowledge base, reporting failures."""

    async def runner() -> T:
        async with KnowledgeBase.from_settings(_state["settings"]) as kb:
            return await action(kb)

    try:
        return asyncio.run(runner())
    except RAGError as exc:
        console.print(f"[bold red]Error:[/] {exc.user_message}")
        logging.getLogger(__name__).debug("Command failed", exc_info=exc)
        raise typer.Exit(code=1) from exc


def _print_ingest(result: IngestResult) -> None:
    console.print(f"\n[bold green]Added:[/] {result.name}")
    console.print(f"  ID: [cyan]{result.document_id}[/]")
    console.print(f"  Kind: {result.kind.value}")
    console.print(f"  Chunks: {result.chunks_stored}")
    for w in result.warnings:
        console.print(f"  [yellow]Warning:[/] {w}")


def _sources_table(candidates: list[RetrievalCandidate] | tuple[RetrievalCandidate, ...]) -> Table:
    table = Table(title="Sources")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Source")
    table.add_column("Score", justify="right")
    table.add_column("Snippet", style="dim")
    for c in candidates:
        table.add_row(str(c.rank + 1), c.label, f"{c.score:.2f}", c.snippet)
    return table


def _print_answer(answer: QueryAnswer) -> None:
    console.print(Markdown(answer.answer))
    if answer.candidates:
        console.print(_sources_table(answer.candidates))
    console.print(f"[dim]Confidence: {answer.confidence:.2f}[/]")


async def _stream_answer(kb: KnowledgeBase, question: str) -> QueryAnswer:
    """Print a streamed answer as it arrives and return the assembled result."""
    parts: list[str] = []
    answer = QueryAnswer(answer="")
    async for event in kb.query_stream(question):
        match event:
            case Fragment(text=text):
                parts.append(text)
                console.print(text, end="", markup=False, highlight=False)
            case StreamError() as err:
                parts.append(err.notice)
                console.print(f"\n\n[bold red]Error:[/] {err.message}")
            case Sources(candidates=candidates):
                answer.candidates = list(candidates)
            case Confidence(value=value):
                answer.confidence = value
    console.print()
    answer.answer = "".join(parts)
    if answer.candidates:
        console.print(_sources_table(answer.candidates))
    console.print(f"[dim]Confidence: {answer.confidence:.2f}[/]")
    return answer


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


@app.command("add-text")
def add_text(
    text: str = typer.Argument(..., help="Text content to add"),
    name: str | None = typer.Option(None, "--name", "-n", help="Display name"),
) -> None:
    """Add plain text to the knowledge base."""
    _print_ingest(_run(lambda kb: kb.add_text(text, name=name)))


@app.command("add-file")
def add_file(
    path: Annotated[Path, _FILE_PATH],
    kind: str | None = typer.Option(
        None, "--kind", "-k", help="Source kind (text, pdf, csv); inferred from the extension by default",
    ),
) -> None:
    """Add a text, PDF or CSV file to the knowledge base."""
    declared = kind or {".pdf": "pdf", ".csv": "csv"}.get(path.suffix.lower(), "text")
    data = path.read_bytes()
    _print_ingest(_run(lambda kb: kb.add_file(data, path.name, declared)))


@app.command("add-url")
def add_url(url: str = typer.Argument(..., help="Web page URL")) -> None:
    """Fetch a web page and add its main text."""
    _print_ingest(_run(lambda kb: kb.add_url(url)))


# ---------------------------------------------------------------------------
# Management
# ---------------------------------------------------------------------------


async def _list_documents(kb: KnowledgeBase) -> list[Document]:
    return kb.list_documents()


@app.command("list")
def list_documents() -> None:
    """List documents in the knowledge base."""
    docs = _run(_list_documents)

    if not docs:
        console.print("[yellow]No documents have been added yet.[/]")
        return

    table = Table(title=f"Documents ({len(docs)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Added")
    table.add_column("Size", justify="right")
    for d in docs:
        added = datetime.fromtimestamp(d.created_at).strftime("%Y-%m-%d %H:%M")
        size = f"{d.size_bytes:,} B" if d.size_bytes is not None else ""
        table.add_row(d.id, d.name, d.kind.value, added, size)
    console.print(table)


@app.command()
def remove(doc_id: str = typer.Argument(..., help="Document ID")) -> None:
    """Remove a document and all of its chunks."""
    if _run(lambda kb: kb.remove_document(doc_id)):
        console.print(f"[bold green]Removed[/] {doc_id}")
    else:
        console.print(f"[yellow]Document not found:[/] {doc_id}")
        raise typer.Exit(code=1)


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Remove every document from the knowledge base."""
    if not yes:
        typer.confirm("Remove all documents?", abort=True)
    removed = _run(lambda kb: kb.clear())
    console.print(f"[bold green]Removed[/] {removed} documents")


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


@app.command()
def query(
    question: Annotated[str, _QUESTION],
    stream: bool = typer.Option(False, "--stream", "-s", help="Stream the answer as it is generated"),
) -> None:
    """Ask a question about the added documents."""
    console.print(f"\n[bold]Q:[/] {question}\n")
    if stream:
        _run(lambda kb: _stream_answer(kb, question))
    else:
        _print_answer(_run(lambda kb: kb.query(question)))


@app.command()
def chat() -> None:
    """Interactive question-answer session (empty line or Ctrl-D exits)."""

    async def session(kb: KnowledgeBase) -> list[ConversationMessage]:
        history: list[ConversationMessage] = []
        while True:
            try:
                question = await asyncio.to_thread(console.input, "[bold]You:[/] ")
            except EOFError:
                break
            if not question.strip():
                break
            history.append(ConversationMessage.user(question))
            console.print("[bold green]Assistant:[/] ", end="")
            try:
                answer = await _stream_answer(kb, question)
            except RAGError as exc:
                console.print(f"[bold red]Error:[/] {exc.user_message}")
                continue
            history.append(ConversationMessage.assistant(answer))
        return history

    history = _run(session)
    console.print(f"[dim]{len(history) // 2} exchanges[/]")


@app.command()
def status() -> None:
    """Show knowledge base status and configured components."""
    from docrag.embeddings.factory import available_providers as emb_providers
    from docrag.llm.factory import available_providers as llm_providers
    from docrag.vectorstore.factory import available_stores

    info = _run(lambda kb: kb.status())

    console.print(f"\n[bold green]docrag[/] v{__version__}\n")

    table = Table(title="Knowledge Base")
    table.add_column("Item", style="cyan")
    table.add_column("Value")
    for key, value in info.items():
        table.add_row(key.replace("_", " ").title(), str(value))
    console.print(table)

    table = Table(title="Available Components")
    table.add_column("Layer", style="cyan")
    table.add_column("Available")
    table.add_row("Embedding Providers", ", ".join(emb_providers()))
    table.add_row("Vector Stores", ", ".join(available_stores()))
    table.add_row("LLM Providers", ", ".join(llm_providers()))
    console.print(table)


if __name__ == "__main__":
    app()
