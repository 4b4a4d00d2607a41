"""
NewsChat CLI

Terminal front-end for the RAG news assistant.

Usage:
    newschat chat                    # Interactive chat (restores the last session)
    newschat chat --new              # Interactive chat in a fresh session
    newschat articles                # Browse articles
    newschat search "monsoon"        # Search articles
    newschat ask ARTICLE_ID          # Ask about one article and print the answer
    newschat status                  # Show session and service status
    newschat reset                   # Forget the local session and cached history
"""

import asyncio
import logging

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from newschat.client.base import ChatClientError
from newschat.config import get_settings
from newschat.conversations.controller import ConversationSnapshot
from newschat.factory import ChatComponents, create_components, create_local_state
from newschat.models.article import Article
from newschat.models.chat import Message

logger = logging.getLogger(__name__)
console = Console()

SAMPLE_QUESTIONS = [
    "What did the Supreme Court say about UGC and caste bias?",
    "Tell me about Kashmir's fruit market shutdown",
    "What's happening with India-Pakistan in the Asia Cup?",
    "Any news about advance tax deadlines?",
    "Tell me about India-China relations",
]


def configure_cli_logging(verbose: bool) -> None:
    if verbose:
        get_settings().logging.configure()
        return
    logging.basicConfig(level=logging.CRITICAL, force=True)
    for logger_name in ("newschat", "httpx", "httpcore", "asyncio"):
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)


def _build_components() -> ChatComponents:
    return create_components(get_settings())


def _client_failure(error: ChatClientError) -> click.ClickException:
    logger.debug("Command failed", extra={"error": error.to_dict()})
    return click.ClickException(error.message)


# ============================================================================
# Rendering
# ============================================================================


def render_message(message: Message) -> None:
    """Print one transcript entry."""
    if message.role == "user":
        console.print(f"[bold cyan]You:[/bold cyan] {message.content}")
        return

    if message.is_error:
        console.print(Panel(message.content, title="Assistant", border_style="red"))
        return

    console.print(Panel(Markdown(message.content), title="Assistant", border_style="green"))
    metadata = message.metadata
    if metadata and metadata.sources:
        console.print("[dim]Sources:[/dim]")
        for source in metadata.sources:
            score = (
                f" ({source.relevance_score:.0%})" if source.relevance_score is not None else ""
            )
            publisher = f" - {source.source}" if source.source else ""
            console.print(f"[dim]  • {source.title or 'Untitled'}{publisher}{score}[/dim]")
            if source.url:
                console.print(f"[dim]    {source.url}[/dim]")


def render_articles(articles: list[Article], title: str) -> None:
    if not articles:
        console.print("[yellow]No articles found.[/yellow]")
        return
    table = Table(title=f"{title} ({len(articles)})")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Source")
    table.add_column("Category")
    table.add_column("Published")
    for article in articles:
        table.add_row(
            article.id or "-",
            article.title,
            article.source or "Unknown",
            (article.category or "").replace("_", " "),
            article.published_date or "Unknown date",
        )
    console.print(table)


class TranscriptPrinter:
    """Snapshot listener that prints messages the terminal has not shown yet."""

    def __init__(self) -> None:
        self._printed: list[str] = []
        self._session_id: str | None = None
        self._last_error = None

    def __call__(self, snapshot: ConversationSnapshot) -> None:
        if snapshot.session_id != self._session_id:
            self._session_id = snapshot.session_id
            self._printed = []
        ids = [message.id for message in snapshot.messages]
        if ids[: len(self._printed)] != self._printed:
            # The transcript was replaced (server history or a clear).
            if snapshot.messages or self._printed:
                console.rule("[dim]conversation[/dim]")
            self._printed = []
        for message in snapshot.messages[len(self._printed) :]:
            # The user's own line is already on screen while the send is pending.
            if not (snapshot.is_sending and message.role == "user"):
                render_message(message)
            self._printed.append(message.id)
        if snapshot.error is not None and snapshot.error != self._last_error:
            if snapshot.error.operation != "send_message":
                console.print(f"[red]{snapshot.error.message}[/red] [dim](type /retry)[/dim]")
        self._last_error = snapshot.error


# ============================================================================
# CLI
# ============================================================================


@click.group()
@click.version_option(version="0.1.0", prog_name="NewsChat")
@click.option("--verbose", is_flag=True, help="Show application logs.")
def cli(verbose: bool):
    """NewsChat - Ask questions about the latest news with a RAG assistant."""
    configure_cli_logging(verbose)


@cli.command()
@click.option("--new", "fresh", is_flag=True, help="Start a fresh session.")
@click.option("--article", "article_id", help="Open a session about this article id.")
def chat(fresh: bool, article_id: str | None):
    """Interactive chat. Commands: /new, /clear, /retry, /quit."""
    console.print(
        Panel.fit(
            "[bold green]NewsChat[/bold green]\n"
            "Ask about the latest news. Commands: /new, /clear, /retry, /quit.",
            border_style="green",
        )
    )

    async def run_chat():
        components = _build_components()
        controller = components.controller
        controller.subscribe(TranscriptPrinter())
        try:
            if article_id:
                article = await _find_article(components, article_id)
                console.print(f"[dim]Discussing: {article.title}[/dim]")
                with console.status("[cyan]Thinking...[/cyan]", spinner="dots"):
                    await controller.select_article(article)
            else:
                with console.status("[cyan]Loading conversation...[/cyan]", spinner="dots"):
                    if fresh:
                        await controller.new_session()
                    else:
                        await controller.start()
                if not controller.messages:
                    console.print("[dim]Try asking:[/dim]")
                    for question in SAMPLE_QUESTIONS:
                        console.print(f"[dim]  • {question}[/dim]")

            while True:
                # Read off the event loop so pending tasks keep running.
                line = await asyncio.to_thread(console.input, "[bold cyan]You:[/bold cyan] ")
                text = line.strip()
                if not text:
                    continue
                command = text.lower()
                if command in {"/quit", "/exit", "exit", "quit"}:
                    console.print("\n[yellow]Goodbye![/yellow]")
                    break
                if command == "/new":
                    await controller.new_session()
                    console.print("[green]Started a new conversation.[/green]")
                elif command == "/clear":
                    if await controller.clear_history():
                        console.print("[green]History cleared.[/green]")
                elif command == "/retry":
                    with console.status("[cyan]Reloading...[/cyan]", spinner="dots"):
                        await controller.retry()
                else:
                    with console.status("[cyan]Thinking...[/cyan]", spinner="dots"):
                        await controller.send_message(text)
        finally:
            await components.aclose()

    try:
        asyncio.run(run_chat())
    except (KeyboardInterrupt, EOFError):
        console.print("\n[yellow]Goodbye![/yellow]")
    except ChatClientError as e:
        raise _client_failure(e) from e


async def _find_article(components: ChatComponents, article_id: str) -> Article:
    await components.articles.load()
    article = components.articles.find(article_id)
    if article is None:
        raise click.ClickException(f"Article not found: {article_id}")
    return article


@cli.command()
@click.option("--category", default="all", show_default=True, help="Filter by category.")
def articles(category: str):
    """Browse available news articles."""

    async def run_articles():
        components = _build_components()
        try:
            with console.status("[cyan]Loading articles...[/cyan]", spinner="dots"):
                await components.articles.load()
            categories = components.articles.categories()
            render_articles(components.articles.filter(category), "Articles")
            console.print(
                "[dim]Categories: "
                + ", ".join(name.replace("_", " ") for name in categories)
                + "[/dim]"
            )
        finally:
            await components.aclose()

    try:
        asyncio.run(run_articles())
    except ChatClientError as e:
        raise _client_failure(e) from e


@cli.command()
@click.argument("query")
@click.option("--category", help="Restrict results to a category.")
def search(query: str, category: str | None):
    """Search news articles."""

    async def run_search():
        components = _build_components()
        try:
            filters = {"category": category} if category else None
            with console.status("[cyan]Searching...[/cyan]", spinner="dots"):
                results = await components.articles.search(query, filters)
            render_articles(results, f"Results for '{query}'")
        finally:
            await components.aclose()

    try:
        asyncio.run(run_search())
    except ChatClientError as e:
        raise _client_failure(e) from e


@cli.command()
@click.argument("article_id")
def ask(article_id: str):
    """Start a new session about an article and print the answer."""

    async def run_ask():
        components = _build_components()
        try:
            article = await _find_article(components, article_id)
            with console.status("[cyan]Thinking...[/cyan]", spinner="dots"):
                await components.controller.select_article(article)
            for message in components.controller.messages:
                render_message(message)
            error = components.controller.error
            if error is not None:
                raise click.ClickException(error.message)
        finally:
            await components.aclose()

    try:
        asyncio.run(run_ask())
    except ChatClientError as e:
        raise _client_failure(e) from e


@cli.command()
def status():
    """Show session and service status."""
    settings = get_settings()

    async def check_status():
        components = _build_components()
        try:
            session = components.sessions.get_session()
            table = Table(title="NewsChat Status", show_header=False)
            table.add_column("Key", style="cyan")
            table.add_column("Value")
            table.add_row("API", settings.api.base_url)
            table.add_row("Storage", str(settings.storage.path))
            if session is None:
                table.add_row("Session", "none")
            else:
                table.add_row("Session", session.id)
                table.add_row("Started", components.sessions.display_name(session))
                table.add_row(
                    "Active",
                    "yes" if components.sessions.is_valid(session) else "expired",
                )
                cached = components.history_cache.get(session.id)
                table.add_row(
                    "Cached messages",
                    str(len(cached)) if cached is not None else "none",
                )
            available = await components.client.is_api_available()
            table.add_row(
                "Service",
                "[green]available[/green]" if available else "[red]unreachable[/red]",
            )
            console.print(table)
        finally:
            await components.aclose()

    asyncio.run(check_status())


@cli.command()
@click.option("--yes", is_flag=True, help="Skip confirmation prompt.")
def reset(yes: bool):
    """Forget the local session and cached history."""
    if not yes:
        click.confirm("Forget the current session and cached history?", abort=True)
    _, _, sessions = create_local_state(get_settings())
    sessions.clear()
    console.print("[green]Local session cleared.[/green]")


def main():
    cli()


if __name__ == "__main__":
    main()
