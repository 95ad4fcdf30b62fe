# ruff: noqa: B008
from __future__ import annotations

import typer

from ..helpers import call_api, console, env, print_table


def register_teams(app: typer.Typer) -> None:
    @app.command("list")
    def list_teams(
        json_output: bool = typer.Option(False, "--json", help="Print teams as JSON."),
    ) -> None:
        """List teams in the workspace."""
        settings, api = env()
        teams = call_api(settings, api.list_teams, label="Fetching teams failed")
        if json_output:
            console.print_json(data=[team.model_dump(by_alias=True) for team in teams])
            return
        if not teams:
            console.print("No teams found.")
            return
        rows = [(team.key, team.name, team.description or "-") for team in teams]
        print_table(None, rows, ["KEY", "NAME", "DESCRIPTION"])
