"""Project board client: typed operations over the GraphQL transport."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from boardsync import queries
from boardsync.batch import (
    BatchUpdateResult,
    FieldUpdate,
    chunked,
    compile_batch_mutation,
    parse_batch_response,
)
from boardsync.config import ClientOptions
from boardsync.errors import is_not_found, wrap_error
from boardsync.exceptions import (
    BatchMutationError,
    BoardAPIError,
    FieldValueError,
    GraphQLError,
    NotFoundError,
    OperationError,
)
from boardsync.fields import field_value_input, resolve_named_field
from boardsync.models import (
    Actor,
    Comment,
    FieldOption,
    FieldValue,
    Issue,
    Label,
    Milestone,
    OwnerKind,
    Project,
    ProjectField,
    ProjectItem,
    ProjectItemsFilter,
    ProjectOwner,
    Repository,
    SearchFilters,
    SubIssue,
    split_repo_name,
)
from boardsync.paginator import Page, page_from_connection, paginate
from boardsync.retry import with_retry
from boardsync.transport import GraphQLTransport

logger = logging.getLogger(__name__)

ISSUE_STATES = {
    "open": ["OPEN"],
    "closed": ["CLOSED"],
    "all": ["OPEN", "CLOSED"],
}


def build_search_query(owner: str, repo: str, filters: SearchFilters) -> str:
    """Build a GitHub issue search string for one repository

    Example:
        >>> build_search_query("octo", "app", SearchFilters(labels=["bug"]))
        'repo:octo/app is:issue is:open label:"bug"'
    """
    parts = [f"repo:{owner}/{repo}", "is:issue"]

    state = (filters.state or "open").lower()
    if state == "open":
        parts.append("is:open")
    elif state == "closed":
        parts.append("is:closed")

    parts.extend(f'label:"{label}"' for label in filters.labels)
    if filters.assignee:
        parts.append(f"assignee:{filters.assignee}")
    if filters.search:
        parts.append(filters.search)
    return " ".join(parts)


def _nodes(connection: dict[str, Any] | None) -> list[dict[str, Any]]:
    if not connection:
        return []
    return [n for n in connection.get("nodes") or [] if n]


def _parse_repository(data: dict[str, Any] | None) -> Repository | None:
    if not data:
        return None
    if data.get("nameWithOwner"):
        split = split_repo_name(data["nameWithOwner"])
        if split:
            return Repository(owner=split[0], name=split[1])
    owner = (data.get("owner") or {}).get("login", "")
    return Repository(owner=owner, name=data.get("name", ""))


def _parse_issue(data: dict[str, Any]) -> Issue:
    author = data.get("author")
    milestone = data.get("milestone")
    return Issue(
        id=data.get("id", ""),
        number=int(data.get("number") or 0),
        title=data.get("title", ""),
        state=data.get("state", ""),
        url=data.get("url", ""),
        body=data.get("body") or "",
        repository=_parse_repository(data.get("repository")),
        author=Actor(login=author["login"]) if author else None,
        assignees=[Actor(login=a["login"]) for a in _nodes(data.get("assignees"))],
        labels=[
            Label(name=lbl["name"], color=lbl.get("color", "")) for lbl in _nodes(data.get("labels"))
        ],
        milestone=Milestone(title=milestone["title"]) if milestone else None,
    )


def _parse_sub_issue(data: dict[str, Any], parent_id: str = "") -> SubIssue:
    return SubIssue(
        id=data.get("id", ""),
        number=int(data.get("number") or 0),
        title=data.get("title", ""),
        state=data.get("state", ""),
        url=data.get("url", ""),
        parent_id=parent_id,
        repository=_parse_repository(data.get("repository")),
    )


def _format_number(value: float) -> str:
    return f"{value:g}"


def _parse_field_values(connection: dict[str, Any] | None) -> list[FieldValue]:
    """Decode item field values into (field name, display value) pairs"""
    values = []
    for node in _nodes(connection):
        name = (node.get("field") or {}).get("name")
        if not name:
            continue
        typename = node.get("__typename", "")
        if typename == "ProjectV2ItemFieldTextValue":
            value = node.get("text") or ""
        elif typename == "ProjectV2ItemFieldNumberValue":
            number = node.get("number")
            value = _format_number(number) if number is not None else ""
        elif typename == "ProjectV2ItemFieldDateValue":
            value = node.get("date") or ""
        elif typename == "ProjectV2ItemFieldSingleSelectValue":
            value = node.get("name") or ""
        elif typename == "ProjectV2ItemFieldIterationValue":
            value = node.get("title") or ""
        else:
            continue
        values.append(FieldValue(field=name, value=value))
    return values


def _parse_project_item(node: dict[str, Any]) -> ProjectItem | None:
    """Convert an item node; anything not wrapping an issue is dropped"""
    content = node.get("content") or {}
    if content.get("__typename") != "Issue":
        return None
    return ProjectItem(
        id=node.get("id", ""),
        issue=_parse_issue(content),
        field_values=_parse_field_values(node.get("fieldValues")),
    )


def _parse_field(node: dict[str, Any]) -> ProjectField | None:
    if not node.get("id"):
        return None
    return ProjectField(
        id=node["id"],
        name=node.get("name", ""),
        data_type=node.get("dataType", ""),
        options=[
            FieldOption(id=o["id"], name=o["name"], color=o.get("color", ""))
            for o in node.get("options") or []
        ],
    )


def _parse_project(data: dict[str, Any], owner: ProjectOwner) -> Project:
    return Project(
        id=data.get("id", ""),
        number=int(data.get("number") or 0),
        title=data.get("title", ""),
        url=data.get("url", ""),
        owner=owner,
        closed=bool(data.get("closed")),
    )


def _in_repository(full_name: str) -> Callable[[ProjectItem], bool]:
    def matches(item: ProjectItem) -> bool:
        repo = item.issue.repository
        return repo is not None and repo.full_name == full_name

    return matches


def _dig(data: dict[str, Any] | None, *keys: str) -> Any:
    """Follow keys into nested dicts, returning None at the first missing level"""
    current: Any = data
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


class ProjectClient:
    """Client for GitHub Projects (v2) boards and their issues

    Every operation goes through the same path: the transport call is retried
    on rate limiting, then any failure is classified and re-raised with the
    operation and resource named. Board and field metadata are fetched fresh
    on every call.

    Without options the client has no credential and touches no environment
    variables; pass ClientOptions.from_env() to read GH_TOKEN and .env files.

    Example:
        >>> client = ProjectClient(ClientOptions(token="ghp_..."))
        >>> project = client.get_project("octo-org", 3)
        >>> fields = client.get_project_fields(project.id)
        >>> client.set_project_item_field_with_fields(
        ...     project.id, item_id, "Status", "In Progress", fields
        ... )
    """

    def __init__(
        self,
        options: ClientOptions | None = None,
        transport: GraphQLTransport | None = None,
    ):
        self.options = options or ClientOptions()
        self.transport = transport or GraphQLTransport(self.options)

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> ProjectClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ----- plumbing -----

    def _retry(self, fn: Callable[[], Any]) -> Any:
        return with_retry(fn, self.options.max_retries, self.options.retry_delays)

    def _execute(
        self,
        operation: str,
        resource: str,
        document: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run one document with retry and classify any failure

        Raises:
            OperationError: Subclassed by kind (rate limited, not found, auth)
        """
        try:
            return self._retry(lambda: self.transport.execute(document, variables))
        except BoardAPIError as e:
            raise wrap_error(operation, resource, e) from e

    def _execute_optional(
        self,
        operation: str,
        resource: str,
        document: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Like _execute, but an unresolvable entity yields None instead of raising"""
        try:
            return self._execute(operation, resource, document, variables)
        except OperationError as e:
            if is_not_found(e):
                logger.debug("%s %s: not found", operation, resource)
                return None
            raise

    def _not_found(self, operation: str, resource: str, detail: str) -> OperationError:
        return wrap_error(operation, resource, NotFoundError(detail))

    # ----- projects -----

    def _fetch_owner_project(self, kind: OwnerKind, login: str, number: int) -> Project | None:
        """Look up a project under one owner kind; None when that branch has no such project"""
        document = queries.GET_USER_PROJECT if kind is OwnerKind.USER else queries.GET_ORG_PROJECT
        data = self._execute_optional(
            "failed to get project",
            f"{login}/{number}",
            document,
            {"login": login, "number": number},
        )
        project = _dig(data, kind.query_root, "projectV2")
        if not project:
            return None
        return _parse_project(project, ProjectOwner(kind=kind, login=login))

    def get_project(self, owner: str, number: int) -> Project:
        """Resolve a project by owner login and number

        The owner may be a user or an organization; the user branch is tried
        first, then the organization branch.

        Raises:
            NotFoundError: If neither branch has the project
        """
        for kind in (OwnerKind.USER, OwnerKind.ORGANIZATION):
            project = self._fetch_owner_project(kind, owner, number)
            if project is not None:
                logger.debug("Resolved project %s/%d as %s", owner, number, kind.value)
                return project
        raise self._not_found(
            "failed to get project",
            f"{owner}/{number}",
            f"no user or organization project #{number} for {owner}",
        )

    def _list_owner_projects(self, kind: OwnerKind, login: str) -> list[Project] | None:
        document = (
            queries.LIST_USER_PROJECTS if kind is OwnerKind.USER else queries.LIST_ORG_PROJECTS
        )
        owner = ProjectOwner(kind=kind, login=login)
        found = True

        def fetch(cursor: str | None) -> Page:
            nonlocal found
            data = self._execute_optional(
                "failed to list projects", login, document, {"login": login, "cursor": cursor}
            )
            root = _dig(data, kind.query_root)
            if root is None:
                found = False
                return Page([], None, False)
            return page_from_connection(
                root.get("projectsV2"), lambda node: _parse_project(node, owner)
            )

        projects = paginate(fetch)
        return projects if found else None

    def list_projects(self, owner: str) -> list[Project]:
        """List open projects for a user, falling back to the organization

        Raises:
            NotFoundError: If the login is neither a user nor an organization
        """
        missing = 0
        for kind in (OwnerKind.USER, OwnerKind.ORGANIZATION):
            projects = self._list_owner_projects(kind, owner)
            if projects is None:
                missing += 1
                continue
            open_projects = [p for p in projects if not p.closed]
            if open_projects:
                return open_projects
        if missing == 2:
            raise self._not_found(
                "failed to list projects", owner, f"no user or organization named {owner}"
            )
        return []

    def get_project_fields(self, project_id: str) -> list[ProjectField]:
        """Fetch every field of a project, with options for single-select fields"""

        def fetch(cursor: str | None) -> Page:
            data = self._execute(
                "failed to get project fields",
                project_id,
                queries.GET_PROJECT_FIELDS,
                {"projectId": project_id, "cursor": cursor},
            )
            return page_from_connection(_dig(data, "node", "fields"), _parse_field)

        return paginate(fetch)

    # ----- project items -----

    def get_project_items(
        self, project_id: str, items_filter: ProjectItemsFilter | None = None
    ) -> list[ProjectItem]:
        """Fetch the issue items of a project

        Draft items and pull requests are skipped. With a repository filter
        only issues from that "owner/repo" are returned; with a limit,
        fetching stops as soon as that many matching items are collected.
        """
        items_filter = items_filter or ProjectItemsFilter()

        def fetch(cursor: str | None) -> Page:
            data = self._execute(
                "failed to get project items",
                project_id,
                queries.GET_PROJECT_ITEMS,
                {"projectId": project_id, "cursor": cursor},
            )
            return page_from_connection(_dig(data, "node", "items"), _parse_project_item)

        predicate = _in_repository(items_filter.repository) if items_filter.repository else None
        return paginate(fetch, limit=items_filter.limit, predicate=predicate)

    def get_project_item_id(self, project_id: str, issue_id: str) -> str:
        """Find the item wrapping an issue in a project

        Raises:
            NotFoundError: If the issue is not on the board
        """

        def fetch(cursor: str | None) -> Page:
            data = self._execute(
                "failed to get project items",
                project_id,
                queries.GET_PROJECT_ITEM_IDS,
                {"projectId": project_id, "cursor": cursor},
            )
            return page_from_connection(_dig(data, "node", "items"))

        matches = paginate(
            fetch,
            limit=1,
            predicate=lambda node: _dig(node, "content", "id") == issue_id,
        )
        if not matches:
            raise self._not_found(
                "failed to get project item", issue_id, "issue not found in project"
            )
        return str(matches[0]["id"])

    def get_project_item_field_value(self, item_id: str, field_name: str) -> str:
        """Read back one field of an item; empty string when unset"""
        data = self._execute(
            "failed to get field value",
            f"{item_id}/{field_name}",
            queries.GET_PROJECT_ITEM_FIELD_VALUES,
            {"itemId": item_id},
        )
        for fv in _parse_field_values(_dig(data, "node", "fieldValues")):
            if fv.field == field_name:
                return fv.value
        return ""

    # ----- issues -----

    def get_issue(self, owner: str, repo: str, number: int) -> Issue:
        resource = f"{owner}/{repo}#{number}"
        data = self._execute(
            "failed to get issue",
            resource,
            queries.GET_ISSUE,
            {"owner": owner, "repo": repo, "number": number},
        )
        issue = _dig(data, "repository", "issue")
        if not issue:
            raise self._not_found("failed to get issue", resource, "issue does not exist")
        return _parse_issue(issue)

    def _paginate_issues(
        self,
        operation: str,
        resource: str,
        document: str,
        variables: dict[str, Any],
        path: tuple[str, ...],
        limit: int = 0,
    ) -> list[Issue]:
        def fetch(cursor: str | None) -> Page:
            data = self._execute(operation, resource, document, {**variables, "cursor": cursor})
            return page_from_connection(_dig(data, *path), _parse_issue)

        return paginate(fetch, limit=limit)

    def get_repository_issues(self, owner: str, repo: str, state: str = "open") -> list[Issue]:
        """Fetch repository issues in a state: "open", "closed" or "all" """
        states = ISSUE_STATES.get(state.lower())
        if states is None:
            raise ValueError(f"Invalid state: '{state}'. Must be one of: {set(ISSUE_STATES)}")
        return self._paginate_issues(
            "failed to get repository issues",
            f"{owner}/{repo}",
            queries.GET_REPOSITORY_ISSUES,
            {"owner": owner, "repo": repo, "states": states},
            ("repository", "issues"),
        )

    def get_issues_by_label(
        self, owner: str, repo: str, label: str, state: str = "open"
    ) -> list[Issue]:
        states = ISSUE_STATES.get(state.lower())
        if states is None:
            raise ValueError(f"Invalid state: '{state}'. Must be one of: {set(ISSUE_STATES)}")
        return self._paginate_issues(
            "failed to get issues by label",
            f"{owner}/{repo}:{label}",
            queries.GET_ISSUES_BY_LABEL,
            {"owner": owner, "repo": repo, "labels": [label], "states": states},
            ("repository", "issues"),
        )

    def get_open_issues_by_label(self, owner: str, repo: str, label: str) -> list[Issue]:
        return self.get_issues_by_label(owner, repo, label, "open")

    def get_closed_issues_by_label(self, owner: str, repo: str, label: str) -> list[Issue]:
        return self.get_issues_by_label(owner, repo, label, "closed")

    def search_repository_issues(
        self, owner: str, repo: str, filters: SearchFilters | None = None, limit: int = 0
    ) -> list[Issue]:
        """Search a repository's issues with GitHub search syntax

        Args:
            owner: Repository owner
            repo: Repository name
            filters: State, labels, assignee and free text
            limit: Maximum results (0 = all)
        """
        search = build_search_query(owner, repo, filters or SearchFilters())
        logger.debug("Searching issues: %s", search)

        def to_issue(node: dict[str, Any]) -> Issue | None:
            return _parse_issue(node) if node.get("__typename") == "Issue" else None

        def fetch(cursor: str | None) -> Page:
            data = self._execute(
                "failed to search issues",
                f"{owner}/{repo}",
                queries.SEARCH_ISSUES,
                {"query": search, "cursor": cursor},
            )
            return page_from_connection(data.get("search"), to_issue)

        return paginate(fetch, limit=limit)

    def get_sub_issues(self, owner: str, repo: str, number: int) -> list[SubIssue]:
        resource = f"{owner}/{repo}#{number}"

        def fetch(cursor: str | None) -> Page:
            data = self._execute(
                "failed to get sub-issues",
                resource,
                queries.GET_SUB_ISSUES,
                {"owner": owner, "repo": repo, "number": number, "cursor": cursor},
            )
            issue = _dig(data, "repository", "issue")
            if not issue:
                raise self._not_found("failed to get sub-issues", resource, "issue does not exist")
            parent_id = issue.get("id", "")
            return page_from_connection(
                issue.get("subIssues"), lambda node: _parse_sub_issue(node, parent_id)
            )

        return paginate(fetch)

    def get_parent_issue(self, owner: str, repo: str, number: int) -> SubIssue | None:
        """Return the parent of an issue, or None when it has none"""
        data = self._execute(
            "failed to get parent issue",
            f"{owner}/{repo}#{number}",
            queries.GET_PARENT_ISSUE,
            {"owner": owner, "repo": repo, "number": number},
        )
        parent = _dig(data, "repository", "issue", "parent")
        return _parse_sub_issue(parent) if parent else None

    # ----- mutations -----

    def add_issue_to_project(self, project_id: str, issue_id: str) -> str:
        """Add an issue to a project and return the new item's id"""
        data = self._execute(
            "failed to add issue to project",
            issue_id,
            queries.ADD_PROJECT_ITEM,
            {"input": {"projectId": project_id, "contentId": issue_id}},
        )
        return str(_dig(data, "addProjectV2ItemById", "item", "id") or "")

    def set_project_item_field(
        self, project_id: str, item_id: str, field_name: str, value: str
    ) -> None:
        """Set a field by name, fetching the project's fields first.

        For bulk work fetch the fields once and use
        set_project_item_field_with_fields, or batch_update_project_item_fields.
        """
        fields = self.get_project_fields(project_id)
        self.set_project_item_field_with_fields(project_id, item_id, field_name, value, fields)

    def set_project_item_field_with_fields(
        self,
        project_id: str,
        item_id: str,
        field_name: str,
        value: str,
        fields: list[ProjectField],
    ) -> None:
        """Set a field using pre-fetched field metadata.

        An empty value on a DATE field clears it.

        Raises:
            FieldValueError: Unknown field, unknown option or malformed value
            UnsupportedFieldTypeError: The field type cannot be set
            OperationError: The mutation itself failed
        """
        resolved = resolve_named_field(fields, field_name, value)
        if resolved.clear:
            self.clear_project_item_field(project_id, item_id, resolved.field_id)
            return

        self._execute(
            "failed to set field value",
            f"{item_id}/{field_name}",
            queries.UPDATE_PROJECT_ITEM_FIELD,
            {
                "input": {
                    "projectId": project_id,
                    "itemId": item_id,
                    "fieldId": resolved.field_id,
                    "value": field_value_input(
                        resolved.data_type, resolved.value, resolved.option_id
                    ),
                }
            },
        )

    def clear_project_item_field(self, project_id: str, item_id: str, field_id: str) -> None:
        self._execute(
            "failed to clear field value",
            f"{item_id}/{field_id}",
            queries.CLEAR_PROJECT_ITEM_FIELD,
            {"input": {"projectId": project_id, "itemId": item_id, "fieldId": field_id}},
        )

    def add_sub_issue(self, parent_issue_id: str, child_issue_id: str) -> None:
        self._execute(
            "failed to add sub-issue",
            f"{parent_issue_id}<-{child_issue_id}",
            queries.ADD_SUB_ISSUE,
            {"input": {"issueId": parent_issue_id, "subIssueId": child_issue_id}},
        )

    def remove_sub_issue(self, parent_issue_id: str, child_issue_id: str) -> None:
        self._execute(
            "failed to remove sub-issue",
            f"{parent_issue_id}<-{child_issue_id}",
            queries.REMOVE_SUB_ISSUE,
            {"input": {"issueId": parent_issue_id, "subIssueId": child_issue_id}},
        )

    def close_issue(self, issue_id: str) -> None:
        self._execute(
            "failed to close issue", issue_id, queries.CLOSE_ISSUE, {"input": {"issueId": issue_id}}
        )

    def reopen_issue(self, issue_id: str) -> None:
        self._execute(
            "failed to reopen issue",
            issue_id,
            queries.REOPEN_ISSUE,
            {"input": {"issueId": issue_id}},
        )

    def update_issue_title(self, issue_id: str, title: str) -> None:
        self._execute(
            "failed to update issue title",
            issue_id,
            queries.UPDATE_ISSUE,
            {"input": {"id": issue_id, "title": title}},
        )

    def update_issue_body(self, issue_id: str, body: str) -> None:
        self._execute(
            "failed to update issue body",
            issue_id,
            queries.UPDATE_ISSUE,
            {"input": {"id": issue_id, "body": body}},
        )

    def add_issue_comment(self, issue_id: str, body: str) -> Comment:
        data = self._execute(
            "failed to add comment",
            issue_id,
            queries.ADD_COMMENT,
            {"input": {"subjectId": issue_id, "body": body}},
        )
        node = _dig(data, "addComment", "commentEdge", "node") or {}
        return Comment(id=node.get("id", ""), body=node.get("body", body), url=node.get("url", ""))

    # ----- batch -----

    def _execute_batch(self, project_id: str, updates: list[FieldUpdate]) -> list[BatchUpdateResult]:
        """Send one compiled batch and attribute the response per alias"""
        _, body = compile_batch_mutation(project_id, updates)
        if not body:
            return []

        def attempt() -> dict[str, Any]:
            envelope = self.transport.execute_raw(body)
            # No data at all means the whole document was rejected
            if envelope.get("data") is None and envelope.get("errors"):
                raise GraphQLError(list(envelope["errors"]))
            return envelope

        envelope = self._retry(attempt)
        return parse_batch_response(envelope, updates)

    def batch_update_project_item_fields(
        self,
        project_id: str,
        updates: list[FieldUpdate],
        fields: list[ProjectField],
    ) -> list[BatchUpdateResult]:
        """Apply many field updates with as few requests as possible.

        Each update is resolved against fields on its own. Updates that fail
        resolution come back as failed results and are left out of the
        request; the rest are sent as aliased mutations, up to BATCH_SIZE
        per request. Results are returned in input order, one per update.

        Args:
            project_id: Board the items belong to
            updates: Requested changes
            fields: The board's field metadata (from get_project_fields)

        Returns:
            One BatchUpdateResult per update

        Raises:
            BatchMutationError: If a compiled request failed as a whole; per-item
                outcomes for that request are unknown
        """
        results: list[BatchUpdateResult | None] = [None] * len(updates)
        valid: list[tuple[int, FieldUpdate]] = []

        for index, update in enumerate(updates):
            try:
                resolved = resolve_named_field(fields, update.field_name, update.value)
            except FieldValueError as e:
                logger.debug("Skipping %s/%s: %s", update.item_id, update.field_name, e)
                results[index] = BatchUpdateResult(
                    update.item_id, update.field_name, success=False, error=str(e)
                )
                continue
            prepared = replace(update)
            prepared.apply_resolution(resolved)
            valid.append((index, prepared))

        if not valid:
            logger.info("No valid updates out of %d; nothing sent", len(updates))
            return [r for r in results if r is not None]

        batches = chunked(valid)
        for batch_number, batch in enumerate(batches):
            batch_updates = [u for _, u in batch]
            try:
                batch_results = self._execute_batch(project_id, batch_updates)
            except BoardAPIError as e:
                unsent = [u for later in batches[batch_number + 1 :] for _, u in later]
                raise BatchMutationError(
                    f"batch mutation failed: {e}",
                    results=[r for r in results if r is not None],
                    unattributed=batch_updates,
                    unsent=unsent,
                    status_code=e.status_code,
                ) from e

            for (index, _), result in zip(batch, batch_results):
                results[index] = result

        final = [r for r in results if r is not None]
        succeeded = sum(1 for r in final if r.success)
        logger.info(
            "Batch update: %d/%d succeeded in %d request(s)", succeeded, len(final), len(batches)
        )
        return final
