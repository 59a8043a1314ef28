"""
adapters.cli.main - CLI adapter for the finance agent.

Uses the same ServiceFactory and AgentExecutor as the REST API, so the
agent behaves identically in both.

Commands
--------
  ask       One-shot question on a thread
  chat      Interactive chat session on a thread
  history   Show a thread's checkpointed conversation and accumulators
  threads   List known threads
  forget    Delete a thread's checkpoint
  init      Create the database schema

Usage
-----
  finance-agent ask "I spent $100 on food" --thread alice
  finance-agent chat --thread alice
  finance-agent history --thread alice
"""

from __future__ import annotations

import asyncio

import typer
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage
from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from finance_agent import __version__
from finance_agent.agent.state import message_text
from finance_agent.domain.exceptions import DomainError, StepLimitExceededError
from finance_agent.factory import ServiceFactory
from finance_agent.infrastructure.config import Settings
from finance_agent.infrastructure.logging_config import configure_logging

console = Console()
app = typer.Typer(
    help="Finance Agent CLI",
    add_completion=False,
    no_args_is_help=True,
)

_THREAD_OPTION = typer.Option(
    "default", "--thread", "-t",
    help="Conversation thread identifier.",
)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

async def _make_factory() -> ServiceFactory:
    """Create and initialize a ServiceFactory from the environment."""
    config = Settings.from_env()
    configure_logging(config.log_level)
    factory = ServiceFactory(config)
    await factory.initialize()
    return factory


def _print_error(exc: Exception) -> None:
    if isinstance(exc, StepLimitExceededError):
        title = "Stopped"
    else:
        title = "Error"
    console.print(Panel(
        f"[bold red]{exc}[/bold red]",
        title=title,
        border_style="red",
    ))


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"finance-agent v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands: Agent
# ---------------------------------------------------------------------------

@app.command()
def ask(
    query: str = typer.Argument(..., help="Your finance question or instruction."),
    thread: str = _THREAD_OPTION,
) -> None:
    """Ask a one-shot question on a thread."""
    async def _run() -> None:
        factory = await _make_factory()
        with console.status("[bold cyan]Thinking…", spinner="dots"):
            answer = await factory.call_agent(query, thread)
        console.print(Panel(Markdown(answer), title="Finance Agent", border_style="green"))

    try:
        asyncio.run(_run())
    except (DomainError, ValueError) as exc:
        _print_error(exc)
        raise typer.Exit(code=1)


@app.command()
def chat(thread: str = _THREAD_OPTION) -> None:
    """Start an interactive chat session on a thread."""
    async def _run() -> None:
        factory = await _make_factory()
        agent = factory.create_agent()

        console.print(Panel(
            f"[bold]Finance Agent Chat[/bold]\n"
            f"Thread [bold]{thread}[/bold]\n"
            "Type your question, or [bold]exit[/bold] / [bold]quit[/bold] to stop.",
            border_style="cyan",
        ))

        while True:
            try:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
            except (KeyboardInterrupt, EOFError):
                console.print("\n[dim]Goodbye![/dim]")
                break

            if user_input.strip().lower() in ("exit", "quit", "q", "bye"):
                console.print("[dim]Goodbye![/dim]")
                break

            if not user_input.strip():
                continue

            try:
                with console.status("[bold cyan]Thinking…", spinner="dots"):
                    response = await agent.run(thread, user_input)
            except DomainError as exc:
                # The checkpoint keeps every completed step; the user can go on.
                _print_error(exc)
                continue

            console.print()
            console.print(Panel(Markdown(response), title="Finance Agent", border_style="green"))

    try:
        asyncio.run(_run())
    except (DomainError, ValueError) as exc:
        _print_error(exc)
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Commands: Threads
# ---------------------------------------------------------------------------

@app.command()
def history(thread: str = _THREAD_OPTION) -> None:
    """Show a thread's conversation and accumulated records."""
    async def _run() -> None:
        factory = await _make_factory()
        state = await factory.create_checkpoint_store().load(thread)
        if state is None:
            console.print(f"[dim]No history for thread '{thread}'.[/dim]")
            return

        t = Table(box=box.SIMPLE, padding=(0, 1))
        t.add_column("#", style="dim", justify="right")
        t.add_column("Role", style="bold")
        t.add_column("Content")
        for i, msg in enumerate(state.messages, start=1):
            if isinstance(msg, HumanMessage):
                role = "[cyan]user[/cyan]"
                content = message_text(msg)
            elif isinstance(msg, AIMessage):
                role = "[green]assistant[/green]"
                calls = ", ".join(
                    f"{call['name']}({call['args']})" for call in msg.tool_calls
                )
                content = message_text(msg) or f"[dim]→ {calls}[/dim]"
            elif isinstance(msg, ToolMessage):
                role = f"[yellow]tool:{msg.name}[/yellow]"
                content = message_text(msg)
            else:
                role = msg.type
                content = message_text(msg)
            t.add_row(str(i), role, content)
        console.print(Panel(t, title=f"Thread {thread}", border_style="blue"))

        if state.expenses:
            total = sum(e.get("amount", 0) for e in state.expenses)
            console.print(f"Recorded amounts: {len(state.expenses)} (total ${total:,.2f})")
        if state.current_spending_limit:
            console.print(f"Current spending limit: ${state.current_spending_limit['limit']:,.2f}")
        for alert in state.alerts:
            console.print(f"[bold red]{alert}[/bold red]")

    try:
        asyncio.run(_run())
    except DomainError as exc:
        _print_error(exc)
        raise typer.Exit(code=1)


@app.command()
def threads() -> None:
    """List all threads with a checkpoint."""
    async def _run() -> None:
        factory = await _make_factory()
        checkpoints = await factory.create_checkpoint_store().list_threads()
        if not checkpoints:
            console.print("[dim]No threads yet.[/dim]")
            return
        t = Table(box=box.SIMPLE)
        t.add_column("Thread", style="bold")
        t.add_column("Steps", justify="right")
        t.add_column("Updated")
        for cp in checkpoints:
            t.add_row(cp.thread_id, str(cp.step), cp.updated_at)
        console.print(t)

    try:
        asyncio.run(_run())
    except DomainError as exc:
        _print_error(exc)
        raise typer.Exit(code=1)


@app.command()
def forget(thread: str = _THREAD_OPTION) -> None:
    """Delete a thread's checkpoint (finance records are kept)."""
    if not Confirm.ask(f"Delete the history of thread [bold]{thread}[/bold]?"):
        return

    async def _run() -> None:
        factory = await _make_factory()
        if await factory.create_checkpoint_store().delete(thread):
            console.print("[green]Thread deleted.[/green]")
        else:
            console.print(f"[dim]No history for thread '{thread}'.[/dim]")

    try:
        asyncio.run(_run())
    except DomainError as exc:
        _print_error(exc)
        raise typer.Exit(code=1)


@app.command()
def init() -> None:
    """Create the database schema (safe to run repeatedly)."""
    async def _run() -> None:
        factory = await _make_factory()
        console.print(Panel(
            f"[bold green]Database ready[/bold green] at {factory.config.db_path}",
            border_style="green",
        ))

    try:
        asyncio.run(_run())
    except DomainError as exc:
        _print_error(exc)
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Global version option
# ---------------------------------------------------------------------------

@app.callback()
def _callback(
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Finance Agent CLI"""


if __name__ == "__main__":
    app()
