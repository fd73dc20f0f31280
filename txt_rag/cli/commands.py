"""
Command-line entry points for txt-rag.

``ingest`` and ``ask`` are the two everyday commands; the rest help check
services and look inside the collection.
"""

import logging
import sys
from pathlib import Path
from typing import Any, NoReturn

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from txt_rag import __version__
from txt_rag.config.settings import settings

console = Console()

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def _pipeline():
    # Imported here so `--help` does not pull in chromadb and langchain
    from txt_rag.rag.pipeline import RAGPipeline

    return RAGPipeline()


def _fail(message: str, error: Exception | None = None) -> NoReturn:
    console.print(f"[red]❌ {message}[/red]")
    if error is not None:
        logger.error(f"{message}: {error}", exc_info=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="txt-rag")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """
    txt-rag: ask questions about a text file.

    Chunks are embedded with Ollama and stored in Chroma; answers come from
    a local Ollama chat model.
    """
    level = "DEBUG" if verbose else settings.log_level.upper()
    logging.getLogger().setLevel(level)
    logger.debug(f"Log level set to {level}")


@main.command()
@click.option(
    "--file",
    "file_path",
    type=click.Path(dir_okay=False),
    help="Index this file instead of the configured one",
)
@click.option("--reset", is_flag=True, help="Empty the collection before indexing")
def ingest(file_path: str | None, reset: bool) -> None:
    """Index the text file into the vector database."""
    source = Path(file_path) if file_path else settings.source_path

    try:
        rag_pipeline = _pipeline()
        with console.status(f"[dim]Indexing {source}..."):
            result = rag_pipeline.ingest_file(source, reset=reset)
    except Exception as e:
        _fail(f"Indexing {source} failed: {e}", e)

    if not result["success"]:
        _fail(result.get("message", "Indexing failed"))

    collection_size = result["system_stats"]["vector_store"]["chunk_count"]
    console.print(
        f"[green]✅ {Path(result['source_file']).name}: "
        f"{result['chunks_created']} chunks indexed[/green]"
    )
    console.print(
        f"[dim]Embeddings took {result['embedding_time']:.2f}s, "
        f"collection now holds {collection_size} chunks[/dim]"
    )


@main.command()
@click.argument("question", nargs=-1)
@click.option(
    "--top-k", type=click.IntRange(min=1), help="How many chunks to retrieve"
)
@click.option("--show-sources", is_flag=True, help="Print the retrieved chunks")
def ask(question: tuple[str, ...], top_k: int | None, show_sources: bool) -> None:
    """Ask a question about the indexed text."""
    text = " ".join(question).strip() or settings.default_question
    console.print(f"[blue]❓ {text}[/blue]")

    try:
        rag_pipeline = _pipeline()
        with console.status("[dim]Retrieving and generating..."):
            if show_sources:
                detailed = rag_pipeline.ask_with_sources(text, top_k=top_k)
                answer = detailed["answer"]
                chunks = detailed["chunks_used"]
                elapsed = detailed["performance"]["total_time"]
            else:
                result = rag_pipeline.ask(text, top_k=top_k)
                answer, chunks, elapsed = result.answer, [], result.total_time
    except Exception as e:
        _fail(f"Could not answer: {e}", e)

    console.print(Panel(answer, title="Answer", border_style="green"))
    console.print(f"[dim]⏱️ {elapsed:.2f}s[/dim]")
    if chunks:
        _print_sources(chunks)


@main.command()
def setup() -> None:
    """Check that Ollama, both models and Chroma are reachable."""
    try:
        rag_pipeline = _pipeline()
        with console.status("[dim]Checking services..."):
            readiness = rag_pipeline.check_readiness()
    except Exception as e:
        _fail(f"Setup check failed: {e}", e)

    if readiness["is_ready"]:
        _print_stats(rag_pipeline.get_system_stats())
        console.print("[green]✅ Ready to answer questions[/green]")
        return

    console.print("[red]Not ready:[/red]")
    for issue in readiness["issues"]:
        console.print(f"  • {issue}")
    console.print(
        "\n[yellow]To fix:[/yellow]\n"
        "  ollama serve\n"
        f"  ollama pull {settings.embedding_model}\n"
        f"  ollama pull {settings.chat_model}\n"
        f"  chroma run --path ./chroma   # serving {settings.chroma_url}\n"
        "  txt-rag ingest"
    )
    sys.exit(1)


@main.command()
def stats() -> None:
    """Show collection, model and configuration details."""
    try:
        rag_pipeline = _pipeline()
        readiness = rag_pipeline.check_readiness()
    except Exception as e:
        _fail(f"Could not check services: {e}", e)

    status = "🟢 Ready" if readiness["is_ready"] else "🔴 Not ready"
    console.print(f"[bold]{status}[/bold]")
    for issue in readiness["issues"]:
        console.print(f"  • {issue}")

    try:
        system_stats = rag_pipeline.get_system_stats()
    except Exception as e:
        _fail(f"Could not collect statistics: {e}", e)
    _print_stats(system_stats, detailed=True)


@main.command()
@click.option("--count", type=int, default=10, help="Maximum chunks to print")
@click.option("--search", type=str, help="Only chunks containing this text")
def inspect(count: int, search: str | None) -> None:
    """Print stored chunks in document order."""
    try:
        chunks = _pipeline().retriever.vector_store.get_chunks()
    except Exception as e:
        _fail(f"Could not read chunks: {e}", e)

    if not chunks:
        console.print("[yellow]Collection is empty - run ingest first[/yellow]")
        return

    if search:
        needle = search.lower()
        matching = [chunk for chunk in chunks if needle in chunk.content.lower()]
        console.print(f"[dim]{len(matching)}/{len(chunks)} chunks match '{search}'[/dim]")
        chunks = matching
    else:
        console.print(f"[dim]{len(chunks)} chunks stored[/dim]")

    for chunk in chunks[:count]:
        preview = chunk.content[:300] + ("..." if len(chunk.content) > 300 else "")
        console.print(
            Panel(
                preview,
                title=f"{chunk.source_file} {chunk.start_pos}-{chunk.end_pos}",
                title_align="left",
                border_style="dim",
            )
        )


@main.command()
@click.confirmation_option(prompt="Delete every chunk in the collection?")
def clear() -> None:
    """Delete all chunks from the collection."""
    try:
        _pipeline().clear_knowledge_base()
    except Exception as e:
        _fail(f"Could not clear the collection: {e}", e)
    console.print(f"[yellow]🗑️ Emptied collection {settings.collection_name}[/yellow]")


@main.command()
def chat() -> None:
    """Ask questions in an interactive session."""
    from txt_rag.cli.chat import ChatInterface

    try:
        rag_pipeline = _pipeline()
        readiness = rag_pipeline.check_readiness()
    except Exception as e:
        _fail(f"Could not start chat: {e}", e)

    if not readiness["is_ready"]:
        console.print("[red]Not ready for chat:[/red]")
        for issue in readiness["issues"]:
            console.print(f"  • {issue}")
        return

    ChatInterface(rag_pipeline).start_interactive_session()


def _print_stats(system_stats: dict[str, Any], detailed: bool = False) -> None:
    store = system_stats["vector_store"]
    models = system_stats["models"]

    table = Table(show_header=False, border_style="blue")
    table.add_column(style="cyan")
    table.add_column()

    table.add_row("Collection", f"{store['collection_name']} @ {store['server_url']}")
    table.add_row("Chunks", str(store["chunk_count"]))
    for label, key in (("Embedding model", "embedding"), ("Chat model", "generation")):
        info = models[key]
        mark = "✅" if info["is_available"] else "❌"
        table.add_row(label, f"{mark} {info['model_name']}")

    if detailed:
        table.add_row("Source files", str(store["document_count"]))
        table.add_row("Embedding dimension", str(store["embedding_dimension"]))
        for key, value in system_stats["settings"].items():
            table.add_row(key.replace("_", " ").capitalize(), str(value))

    console.print(table)


def _print_sources(chunks: list[dict[str, Any]]) -> None:
    console.print(f"\n[blue]Sources ({len(chunks)}):[/blue]")
    for chunk in chunks:
        console.print(
            f"[bold]{chunk['rank']}.[/bold] {Path(chunk['source_file']).name} "
            f"#{chunk['chunk_index']} [dim](score {chunk['relevance_score']:.3f})[/dim]"
        )
        console.print(f"   [dim]{chunk['content_preview']}[/dim]")


if __name__ == "__main__":
    main()
