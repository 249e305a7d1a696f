"""Main CLI application using Typer."""
import asyncio
import json
from pathlib import Path

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..attachments import format_file_size, read_attachment
from ..client import ChatSession, ChatTransport
from ..config import ClientConfig, configure_logging
from ..conversation.models import Source, TurnSnapshot
from ..errors import AttachmentError
from ..rendering import MarkdownPipeline, RenderConfig
from ..stream import decode_events
from ..stream.router import parse_sources

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="streamchat",
    help="Streaming chat client with sanitized Markdown rendering",
    no_args_is_help=True,
    add_completion=False,
)

# Console for rich output
console = Console()


def _assistant_panel(snapshot: TurnSnapshot) -> Panel:
    title = "[bold blue]Assistant[/bold blue]" if snapshot.done else "[bold blue]Assistant (streaming)[/bold blue]"
    return Panel(Markdown(snapshot.content or "..."), title=title, border_style="blue")


def _sources_table(sources: list[Source]) -> Table:
    table = Table(title="Sources", show_lines=False)
    table.add_column("#", style="dim", width=3)
    table.add_column("Title")
    table.add_column("URL", style="cyan")
    for i, source in enumerate(sources, 1):
        table.add_row(str(i), source.title, source.url or "")
    return table


@app.callback()
def main(
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="debug, info, warning or error (default: STREAMCHAT_LOG_LEVEL or warning)"
    )
):
    """Configure logging before any command runs."""
    configure_logging(log_level or ClientConfig.from_env().log_level)


@app.command()
def chat(
    message: str = typer.Argument(..., help="Message to send"),
    search: bool | None = typer.Option(
        None,
        "--search/--no-search",
        help="Let the server run a web search (default: STREAMCHAT_USE_SEARCH)"
    ),
    attach: list[Path] = typer.Option(
        [],
        "--attach",
        "-a",
        help="Text or PDF file whose content is appended to the message"
    ),
    show_html: bool = typer.Option(
        False,
        "--html",
        help="Print the rendered HTML after the reply"
    )
):
    """Send one message and stream the reply."""
    config = ClientConfig.from_env()
    use_search = config.use_search if search is None else search

    try:
        attachments = [read_attachment(path) for path in attach]
    except AttachmentError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    for attachment in attachments:
        console.print(f"[dim]Attached {attachment.name} ({format_file_size(attachment.size)})[/dim]")

    async def _chat() -> TurnSnapshot:
        async with ChatTransport(config) as transport:
            session = ChatSession(transport, MarkdownPipeline(RenderConfig()), use_search=use_search)
            with Live(console=console, refresh_per_second=10) as live:
                return await session.send(
                    message,
                    attachments=attachments,
                    on_update=lambda snapshot: live.update(_assistant_panel(snapshot)),
                )

    snapshot = asyncio.run(_chat())

    if snapshot.sources:
        console.print(_sources_table(snapshot.sources))
    if snapshot.error:
        console.print(f"[yellow]Warning: {snapshot.error}[/yellow]")
    if show_html:
        console.print(snapshot.markup, markup=False, highlight=False)


@app.command()
def render(
    file: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        help="Markdown file to render"
    ),
    sources_file: Path | None = typer.Option(
        None,
        "--sources",
        "-s",
        exists=True,
        dir_okay=False,
        help="JSON array of sources that citation markers refer to"
    )
):
    """Render a Markdown file to sanitized HTML."""
    sources: list[Source] = []
    if sources_file is not None:
        try:
            sources = parse_sources(sources_file.read_text(encoding="utf-8"))
        except ValidationError as e:
            console.print(f"[red]Error: invalid sources file: {e.error_count()} problem(s)[/red]")
            raise typer.Exit(code=1)

    pipeline = MarkdownPipeline(RenderConfig())
    markup = pipeline.render(file.read_text(encoding="utf-8"), sources)
    console.print(markup, markup=False, highlight=False, soft_wrap=True)


@app.command()
def decode(
    file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="Captured event-stream body"
    )
):
    """Print the events contained in a captured event-stream body."""
    for event in decode_events(file.read_text(encoding="utf-8")):
        data = event.data
        if not event.is_done:
            try:
                data = json.dumps(json.loads(data), ensure_ascii=False)
            except json.JSONDecodeError:
                pass  # Not JSON, print as-is
        console.print(f"[bold]{escape(event.name)}[/bold] {escape(data)}", highlight=False)


if __name__ == "__main__":
    app()
