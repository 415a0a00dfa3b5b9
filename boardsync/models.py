"""Typed results returned by the project board client."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OwnerKind(str, Enum):
    """Account kind owning a project; users and organizations resolve separately"""

    USER = "User"
    ORGANIZATION = "Organization"

    @property
    def query_root(self) -> str:
        """GraphQL root field for this kind ("user" or "organization")"""
        return "user" if self is OwnerKind.USER else "organization"


@dataclass(frozen=True)
class ProjectOwner:
    kind: OwnerKind
    login: str


@dataclass
class Project:
    """A GitHub Projects (v2) board"""

    id: str
    number: int
    title: str
    url: str
    owner: ProjectOwner
    closed: bool = False


@dataclass
class FieldOption:
    id: str
    name: str
    color: str = ""


@dataclass
class ProjectField:
    """Board field metadata; options are only populated for SINGLE_SELECT"""

    id: str
    name: str
    data_type: str
    options: list[FieldOption] = field(default_factory=list)


@dataclass
class Repository:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass
class Actor:
    login: str


@dataclass
class Label:
    name: str
    color: str = ""


@dataclass
class Milestone:
    title: str


@dataclass
class Issue:
    id: str
    number: int
    title: str
    state: str = ""
    url: str = ""
    body: str = ""
    repository: Repository | None = None
    author: Actor | None = None
    assignees: list[Actor] = field(default_factory=list)
    labels: list[Label] = field(default_factory=list)
    milestone: Milestone | None = None


@dataclass
class FieldValue:
    """A resolved (field name, value) pair read back from an item"""

    field: str
    value: str


@dataclass
class ProjectItem:
    """A board entry wrapping exactly one issue"""

    id: str
    issue: Issue
    field_values: list[FieldValue] = field(default_factory=list)

    def get_field_value(self, name: str) -> str | None:
        for fv in self.field_values:
            if fv.field == name:
                return fv.value
        return None


@dataclass
class SubIssue:
    id: str
    number: int
    title: str
    state: str
    url: str
    parent_id: str = ""
    repository: Repository | None = None


@dataclass
class Comment:
    id: str
    body: str
    url: str = ""


@dataclass
class SearchFilters:
    """Filters for searching repository issues

    state is "open" (default when empty), "closed" or "all".
    """

    state: str = ""
    labels: list[str] = field(default_factory=list)
    assignee: str = ""
    search: str = ""


@dataclass
class ProjectItemsFilter:
    """Restrict project items to one repository ("owner/repo") and/or a count (0 = all)"""

    repository: str = ""
    limit: int = 0


def split_repo_name(full_name: str) -> tuple[str, str] | None:
    """Split "owner/repo" on the first slash; None when there is no slash"""
    if "/" not in full_name:
        return None
    owner, name = full_name.split("/", 1)
    return owner, name
