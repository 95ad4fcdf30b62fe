from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel

from . import queries
from .client import GraphQLClient
from .errors import ApiError, NotFoundError
from .models import (
    Issue,
    IssueCreateInput,
    IssueRef,
    IssueUpdateInput,
    Project,
    Team,
    User,
)
from .pagination import PageInfo, Paginator

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


class IssuePage(BaseModel):
    issues: list[Issue]
    page_info: PageInfo

    @property
    def next_cursor(self) -> str | None:
        return self.page_info.end_cursor if self.page_info.has_next_page else None


def is_uuid(value: str) -> bool:
    return bool(_UUID_RE.match(value))


def issue_filter(team_key: str | None = None, project_id: str | None = None) -> dict[str, Any]:
    filt: dict[str, Any] = {}
    if team_key:
        filt["team"] = {"key": {"eq": team_key}}
    if project_id:
        filt["project"] = {"id": {"eq": project_id}}
    return filt


class LinearClient:
    """Typed operations on top of :class:`GraphQLClient` and :class:`Paginator`."""

    def __init__(self, client: GraphQLClient) -> None:
        self.client = client
        self.settings = client.settings

    async def viewer(self) -> User:
        data = await self.client.execute(queries.VIEWER)
        return User.model_validate(data.get("viewer") or {})

    def _issues(self) -> Paginator:
        return Paginator(
            self.client, queries.ISSUES, "issues", page_size=self.settings.fetch_all_page_size
        )

    async def list_issues(
        self,
        *,
        team_key: str | None = None,
        project_id: str | None = None,
        limit: int | None = None,
        after: str | None = None,
    ) -> IssuePage:
        variables: dict[str, Any] = {}
        filt = issue_filter(team_key, project_id)
        if filt:
            variables["filter"] = filt
        page = await self._issues().fetch_page(
            variables, first=limit if limit and limit > 0 else self.settings.page_size, after=after
        )
        return IssuePage(
            issues=[Issue.model_validate(node) for node in page.nodes],
            page_info=page.page_info,
        )

    async def list_all_issues(
        self, *, team_key: str | None = None, project_id: str | None = None
    ) -> list[Issue]:
        variables: dict[str, Any] = {}
        filt = issue_filter(team_key, project_id)
        if filt:
            variables["filter"] = filt
        nodes = await self._issues().fetch_all(variables)
        return [Issue.model_validate(node) for node in nodes]

    async def get_issue(self, issue_id: str) -> Issue:
        data = await self.client.execute(queries.ISSUE, {"id": issue_id})
        node = data.get("issue")
        if not node:
            raise NotFoundError(f"Issue not found: {issue_id}")
        return Issue.model_validate(node)

    async def create_issue(self, issue_input: IssueCreateInput) -> IssueRef:
        payload = issue_input.model_dump(by_alias=True, exclude_none=True)
        data = await self.client.execute(queries.ISSUE_CREATE, {"input": payload})
        return _mutation_result(data.get("issueCreate"), "create")

    async def update_issue(self, issue_id: str, issue_input: IssueUpdateInput) -> IssueRef:
        if issue_input.is_empty():
            raise ValueError("specify at least one field to update")
        payload = issue_input.model_dump(by_alias=True, exclude_unset=True)
        data = await self.client.execute(queries.ISSUE_UPDATE, {"id": issue_id, "input": payload})
        return _mutation_result(data.get("issueUpdate"), "update")

    async def list_teams(self) -> list[Team]:
        nodes = await Paginator(self.client, queries.TEAMS, "teams").fetch_all()
        return [Team.model_validate(node) for node in nodes]

    async def get_team_by_key(self, key: str) -> Team:
        data = await self.client.execute(queries.TEAM_BY_KEY, {"key": key})
        nodes = (data.get("teams") or {}).get("nodes") or []
        if not nodes:
            raise NotFoundError(f"Team not found: {key}", hint="Run `linear team list`.")
        return Team.model_validate(nodes[0])

    async def list_projects(self, *, team_id: str | None = None) -> list[Project]:
        variables: dict[str, Any] = {}
        if team_id:
            variables["filter"] = {"accessibleTeams": {"some": {"id": {"eq": team_id}}}}
        nodes = await Paginator(self.client, queries.PROJECTS, "projects").fetch_all(variables)
        return [Project.model_validate(node) for node in nodes]

    async def get_projects_by_team(self, team_id: str) -> list[Project]:
        return await self.list_projects(team_id=team_id)

    async def get_project_by_identifier(
        self, identifier: str, team_id: str | None = None
    ) -> Project:
        """Look a project up by UUID, or else by case-insensitive name (first match)."""
        if is_uuid(identifier):
            data = await self.client.execute(queries.PROJECT, {"id": identifier})
            node = data.get("project")
            if not node:
                raise NotFoundError(f"project not found: {identifier}")
            return Project.model_validate(node)

        filt: dict[str, Any] = {"name": {"containsIgnoreCase": identifier}}
        if team_id:
            filt["accessibleTeams"] = {"some": {"id": {"eq": team_id}}}
        page = await Paginator(self.client, queries.PROJECTS, "projects").fetch_page(
            {"filter": filt}, first=self.settings.page_size
        )
        projects = [Project.model_validate(node) for node in page.nodes]
        for project in projects:
            if project.name.lower() == identifier.lower():
                return project
        if not projects:
            raise NotFoundError(
                f"project not found: {identifier}", hint="Run `linear project list`."
            )
        return projects[0]

    async def get_user_by_email(self, email: str) -> User:
        data = await self.client.execute(queries.USERS_BY_EMAIL, {"email": email})
        nodes = (data.get("users") or {}).get("nodes") or []
        if not nodes:
            raise NotFoundError("no user found with the provided email")
        return User.model_validate(nodes[0])


def _mutation_result(payload: Any, action: str) -> IssueRef:
    if not isinstance(payload, dict) or not payload.get("success"):
        raise ApiError(f"Failed to {action} issue")
    issue = payload.get("issue")
    if not issue:
        raise ApiError(f"Issue {action} succeeded but no details were returned")
    return IssueRef.model_validate(issue)
