"""
Interactive question loop over the indexed text.

Questions are answered through the RAG pipeline; lines starting with a
slash are session commands.
"""

import logging
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from txt_rag.rag.pipeline import RAGPipeline, RAGResult

logger = logging.getLogger(__name__)

COMMAND_HELP = {
    "help": "List session commands",
    "sources": "Show or hide the retrieved chunks",
    "history": "List questions asked so far",
    "clear": "Forget the question history",
    "exit": "Leave the session (also /quit)",
}


class ChatInterface:
    """Terminal chat session backed by a :class:`RAGPipeline`."""

    def __init__(self, rag_pipeline: RAGPipeline | None = None):
        self.rag_pipeline = rag_pipeline or RAGPipeline()
        self.console = Console()
        self.conversation_history: list[RAGResult] = []
        self.show_sources = False
        self.running = True

        self.commands = {
            "help": self._show_help,
            "sources": self._toggle_sources,
            "history": self._show_history,
            "clear": self._clear_history,
            "exit": self._exit_chat,
            "quit": self._exit_chat,
        }

    def start_interactive_session(self) -> None:
        """Read questions until the user exits or input ends."""
        self.console.print(
            Panel(
                "Ask anything about the indexed text.\n"
                "Type [bold]/help[/bold] for commands, [bold]/exit[/bold] to leave.",
                title="txt-rag chat",
                border_style="blue",
            )
        )

        while self.running:
            try:
                line = self._get_user_input()
            except (KeyboardInterrupt, EOFError):
                self.console.print("\n[yellow]👋 Chat session ended[/yellow]")
                break

            if not line:
                continue
            if line.startswith("/"):
                self._handle_command(line[1:])
            else:
                self._process_question(line)

    def _get_user_input(self) -> str:
        return Prompt.ask("[bold blue]❓ Question", console=self.console).strip()

    def _process_question(self, question: str) -> None:
        try:
            with self.console.status("[dim]💭 Thinking..."):
                if self.show_sources:
                    detailed = self.rag_pipeline.ask_with_sources(question)
                    answer = detailed["answer"]
                    chunks = detailed["chunks_used"]
                    elapsed = detailed["performance"]["total_time"]
                else:
                    result = self.rag_pipeline.ask(question)
                    self.conversation_history.append(result)
                    answer, chunks, elapsed = result.answer, [], result.total_time
        except Exception as e:
            self.console.print(f"[red]❌ Could not answer: {e}[/red]")
            logger.error(f"Chat question failed: {e}", exc_info=True)
            return

        self.console.print(Panel(answer, title="Answer", border_style="green"))
        self.console.print(f"[dim]⏱️ {elapsed:.2f}s[/dim]")
        if chunks:
            self._print_chunks(chunks)

    def _print_chunks(self, chunks: list[dict[str, Any]]) -> None:
        for chunk in chunks:
            self.console.print(
                f"[bold]{chunk['rank']}.[/bold] {Path(chunk['source_file']).name} "
                f"#{chunk['chunk_index']} [dim](score {chunk['relevance_score']:.3f})[/dim]"
            )
            self.console.print(f"   [dim]{chunk['content_preview']}[/dim]")

    def _handle_command(self, command: str) -> None:
        handler = self.commands.get(command.strip().lower())
        if handler is None:
            self.console.print(f"[red]Unknown command /{command}[/red] (try /help)")
            return
        handler()

    def _show_help(self) -> None:
        table = Table(border_style="blue", show_header=False)
        for name, description in COMMAND_HELP.items():
            table.add_row(f"/{name}", description)
        self.console.print(table)

    def _toggle_sources(self) -> None:
        self.show_sources = not self.show_sources
        self.console.print(
            f"[blue]Sources {'shown' if self.show_sources else 'hidden'}[/blue]"
        )

    def _show_history(self) -> None:
        if not self.conversation_history:
            self.console.print("[yellow]No questions yet[/yellow]")
            return
        for i, result in enumerate(self.conversation_history, 1):
            self.console.print(
                f"{i}. {result.question} [dim]({result.total_time:.2f}s)[/dim]"
            )

    def _clear_history(self) -> None:
        self.conversation_history.clear()
        self.console.print("[yellow]History cleared[/yellow]")

    def _exit_chat(self) -> None:
        self.running = False
        asked = len(self.conversation_history)
        if asked:
            self.console.print(f"[dim]{asked} question(s) answered this session[/dim]")
        self.console.print("[yellow]👋 Bye[/yellow]")
