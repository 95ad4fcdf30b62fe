# ruff: noqa: B008
from __future__ import annotations

import typer

from . import __version__
from .commands.auth import register_auth
from .commands.issues import register_issues
from .commands.projects import register_projects
from .commands.teams import register_teams
from .helpers import console, load_settings, setup_logging

app = typer.Typer(help="Linear CLI - command line interface for Linear.", no_args_is_help=True)

auth_app = typer.Typer(help="Manage authentication (API key or OAuth).", no_args_is_help=True)
issue_app = typer.Typer(help="List, view, create and update issues.", no_args_is_help=True)
team_app = typer.Typer(help="List teams.", no_args_is_help=True)
project_app = typer.Typer(help="List projects.", no_args_is_help=True)

register_auth(auth_app)
register_issues(issue_app)
register_teams(team_app)
register_projects(project_app)

app.add_typer(auth_app, name="auth")
app.add_typer(issue_app, name="issue")
app.add_typer(team_app, name="team")
app.add_typer(project_app, name="project")


def _version(value: bool) -> None:
    if value:
        console.print(__version__)
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Verbose logging (or LINEAR_DEBUG=1)."),
    version: bool = typer.Option(
        False, "--version", callback=_version, is_eager=True, help="Show version and exit."
    ),
) -> None:
    """Linear CLI for humans and automation."""
    ctx.ensure_object(dict)["debug"] = debug
    setup_logging(load_settings().debug)
