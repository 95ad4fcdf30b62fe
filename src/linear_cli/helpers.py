from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Sequence
from typing import Any, NoReturn, TypeVar

import click
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .api import LinearClient
from .client import GraphQLClient
from .config import Settings
from .credentials import CredentialResolver
from .errors import LinearError

console = Console()
err_console = Console(stderr=True)

T = TypeVar("T")


def run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def print_table(
    title: str | None, rows: Sequence[Sequence[str]], headers: Sequence[str]
) -> None:
    table = Table(title=title)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*[str(x) for x in row])
    console.print(table)


def load_settings() -> Settings:
    """Settings from the environment, with the global ``--debug`` flag applied."""
    settings = Settings()
    ctx = click.get_current_context(silent=True)
    obj = ctx.find_root().obj if ctx is not None else None
    if isinstance(obj, dict) and obj.get("debug"):
        settings = settings.model_copy(update={"debug": True})
    return settings


def fail(exc: LinearError, settings: Settings | None = None, label: str = "Error") -> NoReturn:
    """Render a core error with its hint and exit with status 1."""
    console.print(f"[red]{label}:[/red] {escape(str(exc))}")
    if exc.hint:
        console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")
    if settings is not None and settings.debug and exc.__cause__ is not None:
        console.print(f"[dim]Cause ({exc.kind}): {escape(repr(exc.__cause__))}[/dim]")
    raise typer.Exit(code=1) from exc


def env() -> tuple[Settings, LinearClient]:
    """Load settings, resolve the credential and build the API client."""
    settings = load_settings()
    try:
        credential = CredentialResolver(settings).resolve()
    except LinearError as exc:
        fail(exc, settings)
    if credential is None:
        console.print(
            "[red]Not authenticated.[/red] Run `linear auth login` or `linear auth oauth`."
        )
        raise typer.Exit(code=1)
    return settings, LinearClient(GraphQLClient(settings, credential))


def call_api(
    settings: Settings, fn: Callable[[], Coroutine[Any, Any, T]], label: str = "Error"
) -> T:
    try:
        return run(fn())
    except LinearError as exc:
        fail(exc, settings, label=label)
