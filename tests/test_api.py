import json
from typing import Any

import pytest
import respx
from httpx import Response

from linear_cli.api import LinearClient, is_uuid, issue_filter
from linear_cli.client import GraphQLClient
from linear_cli.config import Settings
from linear_cli.credentials import StaticKey
from linear_cli.errors import ApiError, NotFoundError
from linear_cli.models import IssueCreateInput, IssueUpdateInput

PROJECT_ID = "0f8b2c1e-3d4a-4b5c-8d9e-1a2b3c4d5e6f"

ISSUE_NODE = {
    "id": "issue-1",
    "identifier": "ENG-1",
    "title": "Fix login",
    "priority": 2,
    "priorityLabel": "High",
    "state": {"name": "Todo"},
    "assignee": {"id": "u1", "name": "Ada"},
    "team": {"id": "t1", "key": "ENG", "name": "Engineering"},
    "labels": {"nodes": [{"id": "l1", "name": "bug"}]},
}


def _data(payload: dict[str, Any]) -> Response:
    return Response(200, json={"data": payload})


def _sent(route: respx.Route, index: int = -1) -> dict[str, Any]:
    return json.loads(route.calls[index].request.content.decode())


@pytest.fixture()
def api(settings: Settings) -> LinearClient:
    return LinearClient(GraphQLClient(settings, StaticKey(key="lin_api_abc")))


def test_issue_filter() -> None:
    assert issue_filter() == {}
    assert issue_filter("ENG", "p1") == {
        "team": {"key": {"eq": "ENG"}},
        "project": {"id": {"eq": "p1"}},
    }


def test_is_uuid() -> None:
    assert is_uuid(PROJECT_ID)
    assert not is_uuid("Website relaunch")


@pytest.mark.asyncio()
async def test_list_issues_sends_filter_and_limit(settings: Settings, api: LinearClient) -> None:
    connection = {"nodes": [ISSUE_NODE], "pageInfo": {"hasNextPage": True, "endCursor": "c1"}}
    with respx.mock:
        route = respx.post(settings.api_url).mock(return_value=_data({"issues": connection}))
        page = await api.list_issues(team_key="ENG", limit=5)

    variables = _sent(route)["variables"]
    assert variables == {"filter": {"team": {"key": {"eq": "ENG"}}}, "first": 5}
    assert page.next_cursor == "c1"
    issue = page.issues[0]
    assert issue.identifier == "ENG-1"
    assert issue.priority_label == "High"
    assert [label.name for label in issue.labels] == ["bug"]


@pytest.mark.asyncio()
async def test_list_issues_uses_default_page_size(settings: Settings, api: LinearClient) -> None:
    connection = {"nodes": [], "pageInfo": {"hasNextPage": False, "endCursor": None}}
    with respx.mock:
        route = respx.post(settings.api_url).mock(return_value=_data({"issues": connection}))
        page = await api.list_issues()

    assert _sent(route)["variables"] == {"first": settings.page_size}
    assert page.issues == []
    assert page.next_cursor is None


@pytest.mark.asyncio()
async def test_get_issue_not_found(settings: Settings, api: LinearClient) -> None:
    with respx.mock:
        respx.post(settings.api_url).mock(return_value=_data({"issue": None}))
        with pytest.raises(NotFoundError, match="Issue not found: ENG-404"):
            await api.get_issue("ENG-404")


@pytest.mark.asyncio()
async def test_create_issue_omits_unset_fields(settings: Settings, api: LinearClient) -> None:
    result = {"success": True, "issue": {"id": "i2", "identifier": "ENG-2", "title": "New"}}
    with respx.mock:
        route = respx.post(settings.api_url).mock(return_value=_data({"issueCreate": result}))
        ref = await api.create_issue(IssueCreateInput(title="New", team_id="t1"))

    assert _sent(route)["variables"] == {"input": {"title": "New", "teamId": "t1"}}
    assert ref.identifier == "ENG-2"


@pytest.mark.asyncio()
async def test_create_issue_failure(settings: Settings, api: LinearClient) -> None:
    with respx.mock:
        respx.post(settings.api_url).mock(
            return_value=_data({"issueCreate": {"success": False, "issue": None}})
        )
        with pytest.raises(ApiError, match="Failed to create issue"):
            await api.create_issue(IssueCreateInput(title="New", team_id="t1"))


@pytest.mark.asyncio()
async def test_update_issue_sends_only_given_fields(
    settings: Settings, api: LinearClient
) -> None:
    result = {"success": True, "issue": {"id": "i1", "identifier": "ENG-1", "title": "Fix"}}
    with respx.mock:
        route = respx.post(settings.api_url).mock(return_value=_data({"issueUpdate": result}))
        await api.update_issue("ENG-1", IssueUpdateInput(description="", priority=0))

    assert _sent(route)["variables"] == {
        "id": "ENG-1",
        "input": {"description": "", "priority": 0},
    }


@pytest.mark.asyncio()
async def test_update_issue_requires_a_field(api: LinearClient) -> None:
    with pytest.raises(ValueError, match="at least one field"):
        await api.update_issue("ENG-1", IssueUpdateInput())


@pytest.mark.asyncio()
async def test_team_not_found(settings: Settings, api: LinearClient) -> None:
    with respx.mock:
        respx.post(settings.api_url).mock(return_value=_data({"teams": {"nodes": []}}))
        with pytest.raises(NotFoundError, match="Team not found: NOPE"):
            await api.get_team_by_key("NOPE")


@pytest.mark.asyncio()
async def test_project_lookup_by_uuid(settings: Settings, api: LinearClient) -> None:
    with respx.mock:
        route = respx.post(settings.api_url).mock(
            return_value=_data({"project": {"id": PROJECT_ID, "name": "Website"}})
        )
        project = await api.get_project_by_identifier(PROJECT_ID)

    assert project.name == "Website"
    assert _sent(route)["variables"] == {"id": PROJECT_ID}


@pytest.mark.asyncio()
async def test_project_lookup_prefers_exact_name(settings: Settings, api: LinearClient) -> None:
    nodes = [{"id": "p1", "name": "Website relaunch"}, {"id": "p2", "name": "website"}]
    connection = {"nodes": nodes, "pageInfo": {"hasNextPage": False, "endCursor": None}}
    with respx.mock:
        route = respx.post(settings.api_url).mock(return_value=_data({"projects": connection}))
        project = await api.get_project_by_identifier("Website", team_id="t1")

    assert project.id == "p2"
    filt = _sent(route)["variables"]["filter"]
    assert filt["name"] == {"containsIgnoreCase": "Website"}
    assert filt["accessibleTeams"] == {"some": {"id": {"eq": "t1"}}}


@pytest.mark.asyncio()
async def test_project_lookup_not_found(settings: Settings, api: LinearClient) -> None:
    connection = {"nodes": [], "pageInfo": {"hasNextPage": False, "endCursor": None}}
    with respx.mock:
        respx.post(settings.api_url).mock(return_value=_data({"projects": connection}))
        with pytest.raises(NotFoundError, match="project not found"):
            await api.get_project_by_identifier("Ghost")


@pytest.mark.asyncio()
async def test_list_teams_walks_all_pages(settings: Settings, api: LinearClient) -> None:
    first = {
        "nodes": [{"id": "t1", "key": "ENG", "name": "Engineering"}],
        "pageInfo": {"hasNextPage": True, "endCursor": "c1"},
    }
    second = {
        "nodes": [{"id": "t2", "key": "OPS", "name": "Operations"}],
        "pageInfo": {"hasNextPage": False, "endCursor": "c2"},
    }
    with respx.mock:
        respx.post(settings.api_url).mock(
            side_effect=[_data({"teams": first}), _data({"teams": second})]
        )
        teams = await api.list_teams()

    assert [team.key for team in teams] == ["ENG", "OPS"]


@pytest.mark.asyncio()
async def test_viewer(settings: Settings, api: LinearClient) -> None:
    viewer = {"id": "u1", "name": "Ada", "email": "ada@example.com", "displayName": "ada"}
    with respx.mock:
        respx.post(settings.api_url).mock(return_value=_data({"viewer": viewer}))
        user = await api.viewer()

    assert user.display_name == "ada"
    assert user.email == "ada@example.com"
