from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IssueState(ApiModel):
    name: str
    color: str | None = None
    type: str | None = None


class User(ApiModel):
    id: str
    name: str
    email: str | None = None
    display_name: str | None = None


class Team(ApiModel):
    id: str
    key: str
    name: str
    description: str | None = None


class Project(ApiModel):
    id: str
    name: str


class Label(ApiModel):
    id: str
    name: str
    color: str | None = None


class Issue(ApiModel):
    id: str
    identifier: str
    title: str
    description: str | None = None
    priority: int | None = None
    priority_label: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    completed_at: str | None = None
    url: str | None = None
    state: IssueState | None = None
    assignee: User | None = None
    creator: User | None = None
    team: Team | None = None
    project: Project | None = None
    labels: list[Label] = Field(default_factory=list)

    @field_validator("labels", mode="before")
    @classmethod
    def _unwrap_labels(cls, value: object) -> object:
        if isinstance(value, dict):
            return value.get("nodes") or []
        return value or []


class IssueRef(ApiModel):
    """Short issue summary returned by create/update mutations."""

    id: str
    identifier: str
    title: str
    url: str | None = None


class IssueCreateInput(ApiModel):
    title: str
    team_id: str
    description: str | None = None
    project_id: str | None = None
    assignee_id: str | None = None
    label_ids: list[str] | None = None


class IssueUpdateInput(ApiModel):
    title: str | None = None
    description: str | None = None
    priority: int | None = Field(default=None, ge=0, le=4)
    project_id: str | None = None

    def is_empty(self) -> bool:
        return not self.model_fields_set
