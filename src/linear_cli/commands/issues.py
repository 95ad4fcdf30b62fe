# ruff: noqa: B008
from __future__ import annotations

from collections.abc import Sequence

import typer
from rich.markup import escape

from ..api import LinearClient
from ..helpers import call_api, console, env, print_table, truncate
from ..models import Issue, IssueCreateInput, IssueRef, IssueUpdateInput

TITLE_PREVIEW = 50


def _issue_rows(issues: list[Issue]) -> list[Sequence[str]]:
    return [
        (
            issue.identifier,
            truncate(issue.title, TITLE_PREVIEW),
            issue.state.name if issue.state else "-",
            issue.assignee.name if issue.assignee else "-",
            issue.priority_label or "-",
        )
        for issue in issues
    ]


def _print_issue(issue: Issue) -> None:
    lines = [
        ("ID", issue.identifier),
        ("Title", issue.title),
        ("Status", issue.state.name if issue.state else None),
        ("Assignee", issue.assignee.name if issue.assignee else None),
        ("Priority", issue.priority_label),
        ("Team", f"{issue.team.name} ({issue.team.key})" if issue.team else None),
        ("Project", issue.project.name if issue.project else None),
        ("Creator", issue.creator.name if issue.creator else None),
        ("Created", issue.created_at),
        ("Updated", issue.updated_at),
        ("Completed", issue.completed_at),
        ("URL", issue.url),
    ]
    for label, value in lines:
        if value:
            console.print(f"{label + ':':<12} {escape(value)}")
    if issue.description:
        console.print("\nDescription:")
        console.print(escape(issue.description))
    if issue.labels:
        console.print("\nLabels:")
        for label in issue.labels:
            console.print(f"  - {escape(label.name)}")


def _print_ref(ref: IssueRef, verb: str, json_output: bool) -> None:
    if json_output:
        console.print_json(data=ref.model_dump(by_alias=True, mode="json"))
        return
    console.print(f"[green]Issue {verb} successfully![/green]")
    console.print(f"ID:    {ref.identifier}")
    console.print(f"Title: {escape(ref.title)}")
    console.print(f"URL:   {ref.url or '-'}")


def register_issues(app: typer.Typer) -> None:
    @app.command("list")
    def list_issues(  # noqa: PLR0913
        team: str | None = typer.Option(None, "--team", help="Filter by team key (e.g. ENG)."),
        project: str | None = typer.Option(None, "--project", help="Project name or ID."),
        limit: int = typer.Option(50, "--limit", help="Maximum number of issues to fetch."),
        fetch_all: bool = typer.Option(False, "--all", help="Fetch all issues page by page."),
        after: str | None = typer.Option(None, "--after", help="Cursor to continue from."),
        json_output: bool = typer.Option(False, "--json", help="Print issues as JSON."),
    ) -> None:
        """List issues, optionally filtered by team and project."""
        settings, api = env()

        async def _fetch() -> tuple[list[Issue], str | None]:
            project_id = None
            if project:
                team_id = (await api.get_team_by_key(team)).id if team else None
                project_id = (await api.get_project_by_identifier(project, team_id)).id
            if fetch_all:
                return await api.list_all_issues(team_key=team, project_id=project_id), None
            page = await api.list_issues(
                team_key=team, project_id=project_id, limit=limit, after=after
            )
            return page.issues, page.next_cursor

        issues, next_cursor = call_api(settings, _fetch, label="Fetching issues failed")
        if json_output:
            console.print_json(
                data=[issue.model_dump(by_alias=True, mode="json") for issue in issues]
            )
            return
        if not issues:
            console.print("No issues found.")
            return
        print_table(None, _issue_rows(issues), ["ID", "TITLE", "STATUS", "ASSIGNEE", "PRIORITY"])
        if next_cursor:
            console.print(f"More issues available: --after {next_cursor}")

    @app.command("view")
    def view_issue(
        issue_id: str = typer.Argument(..., help="Issue identifier (ENG-123) or UUID."),
        json_output: bool = typer.Option(False, "--json", help="Print the issue as JSON."),
    ) -> None:
        """View issue details."""
        settings, api = env()
        issue = call_api(settings, lambda: api.get_issue(issue_id), label="Fetching issue failed")
        if json_output:
            console.print_json(data=issue.model_dump(by_alias=True, mode="json"))
            return
        _print_issue(issue)

    @app.command("create")
    def create_issue(  # noqa: PLR0913
        team: str = typer.Option(..., "--team", help="Team key (required)."),
        title: str = typer.Option(..., "--title", help="Issue title (required)."),
        description: str | None = typer.Option(None, "--description", help="Issue description."),
        project: str | None = typer.Option(None, "--project", help="Project name or ID."),
        assignee: str | None = typer.Option(None, "--assignee", help="Assignee email."),
        json_output: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    ) -> None:
        """Create a new issue."""
        if not title.strip():
            console.print("[red]--title cannot be empty.[/red]")
            raise typer.Exit(code=1)
        settings, api = env()

        async def _create(client: LinearClient) -> IssueRef:
            team_obj = await client.get_team_by_key(team)
            issue_input = IssueCreateInput(
                title=title, team_id=team_obj.id, description=description
            )
            if project:
                issue_input.project_id = (
                    await client.get_project_by_identifier(project, team_obj.id)
                ).id
            if assignee:
                issue_input.assignee_id = (await client.get_user_by_email(assignee)).id
            return await client.create_issue(issue_input)

        ref = call_api(settings, lambda: _create(api), label="Creating issue failed")
        _print_ref(ref, "created", json_output)

    @app.command("update")
    def update_issue(  # noqa: PLR0913
        issue_id: str = typer.Argument(..., help="Issue identifier (ENG-123) or UUID."),
        title: str | None = typer.Option(None, "--title", help="Updated title."),
        description: str | None = typer.Option(
            None, "--description", help="Updated description (empty string clears it)."
        ),
        priority: int | None = typer.Option(
            None, "--priority", min=0, max=4, help="Updated priority (0-4)."
        ),
        project: str | None = typer.Option(None, "--project", help="Updated project name or ID."),
        json_output: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    ) -> None:
        """Update fields on an existing issue."""
        if title is None and description is None and priority is None and project is None:
            console.print(
                "[red]Specify at least one field to update "
                "(--title, --description, --priority, --project).[/red]"
            )
            raise typer.Exit(code=1)
        if title is not None and not title.strip():
            console.print("[red]--title cannot be empty.[/red]")
            raise typer.Exit(code=1)
        if project is not None and not project.strip():
            console.print("[red]--project cannot be empty.[/red]")
            raise typer.Exit(code=1)
        settings, api = env()

        async def _update(client: LinearClient) -> IssueRef:
            fields: dict[str, object] = {}
            if title is not None:
                fields["title"] = title
            if description is not None:
                fields["description"] = description
            if priority is not None:
                fields["priority"] = priority
            if project is not None:
                current = await client.get_issue(issue_id)
                team_id = current.team.id if current.team else None
                fields["project_id"] = (
                    await client.get_project_by_identifier(project, team_id)
                ).id
            return await client.update_issue(issue_id, IssueUpdateInput(**fields))

        ref = call_api(settings, lambda: _update(api), label="Updating issue failed")
        _print_ref(ref, "updated", json_output)
