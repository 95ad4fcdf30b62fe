# ruff: noqa: B008
from __future__ import annotations

import typer

from ..helpers import call_api, console, env, print_table
from ..models import Project


def register_projects(app: typer.Typer) -> None:
    @app.command("list")
    def list_projects(
        team: str | None = typer.Option(None, "--team", help="Only projects of this team key."),
        json_output: bool = typer.Option(False, "--json", help="Print projects as JSON."),
    ) -> None:
        """List projects, optionally filtered by team."""
        settings, api = env()

        async def _fetch() -> list[Project]:
            if team:
                team_obj = await api.get_team_by_key(team)
                return await api.get_projects_by_team(team_obj.id)
            return await api.list_projects()

        projects = call_api(settings, _fetch, label="Fetching projects failed")
        if json_output:
            console.print_json(data=[project.model_dump(by_alias=True) for project in projects])
            return
        if not projects:
            console.print("No projects found.")
            return
        print_table(None, [(p.id, p.name) for p in projects], ["ID", "NAME"])
