"""Azure DevOps REST access: work item selection, fetching and source-side tagging."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final

import requests
from requests.auth import HTTPBasicAuth

from . import utils
from .exceptions import FetchError, MigrationError, NotFoundError
from .models import FIELD_HISTORY, FIELD_TAGS, WorkItem, WorkItemComment

if TYPE_CHECKING:
    from .settings import AdoConfig, SelectorOptions

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

_TOKEN_ENV_VAR: Final[str] = "ADO_TOKEN"  # noqa: S105
_DEFAULT_TOKEN_PASS_PATH: Final[str] = "ado/cli/token"  # noqa: S105

API_VERSION: Final[str] = "7.1"
COMMENTS_API_VERSION: Final[str] = "7.1-preview.4"
REQUEST_TIMEOUT_SECONDS: Final[int] = 30

CLOSED_STATES: Final[frozenset[str]] = frozenset({"Done", "Closed", "Resolved", "Removed"})


def get_token(pass_path: str | None = None) -> str | None:
    """Get Azure DevOps PAT from pass path, env var ADO_TOKEN, or default pass location."""
    token = utils.resolve_token(pass_path, _TOKEN_ENV_VAR, _DEFAULT_TOKEN_PASS_PATH)
    if token is None:
        logger.warning("No Azure DevOps token specified nor found")
    return token


def get_session(config: AdoConfig) -> requests.Session:
    """Get a requests session authenticated with the personal access token."""
    session = requests.Session()
    session.auth = HTTPBasicAuth("", config.token)
    session.headers.update({"Accept": "application/json"})
    return session


def work_item_web_url(config: AdoConfig, work_item_id: int) -> str:
    """Browser URL of a work item."""
    return f"{config.project_url}/_workitems/edit/{work_item_id}"


def _escape_wiql(value: str) -> str:
    return value.replace("'", "''")


def build_selector_query(options: SelectorOptions) -> str:
    """Build the WIQL query selecting the work items to migrate, ordered by id.

    Items already carrying the marker tag are excluded unless
    ``options.exclude_migrated`` is off.
    """
    clauses = ["[System.TeamProject] = @project"]
    if options.area_path:
        clauses.append(f"[System.AreaPath] UNDER '{_escape_wiql(options.area_path)}'")
    if not options.include_closed:
        states = ", ".join(f"'{state}'" for state in sorted(CLOSED_STATES))
        clauses.append(f"[System.State] NOT IN ({states})")
    if options.excluded_types:
        types = ", ".join(f"'{_escape_wiql(t)}'" for t in options.excluded_types)
        clauses.append(f"[System.WorkItemType] NOT IN ({types})")
    if options.exclude_migrated:
        clauses.append(f"[System.Tags] NOT CONTAINS '{_escape_wiql(options.marker_tag)}'")

    where = "\n  AND ".join(clauses)
    return f"SELECT [System.Id], [System.Title] FROM WorkItems\nWHERE {where}\nORDER BY [System.Id]"


def _get_json(session: requests.Session, url: str, what: str) -> dict[str, Any]:
    try:
        response = session.get(url, timeout=REQUEST_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        msg = f"Failed to fetch {what}: {e}"
        raise FetchError(msg) from e

    if response.status_code == 404:
        msg = f"{what} not found"
        raise NotFoundError(msg)
    try:
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as e:
        msg = f"Failed to fetch {what}: {e}"
        raise FetchError(msg) from e


def query_work_item_ids(session: requests.Session, config: AdoConfig, options: SelectorOptions) -> list[int]:
    """Run the selector query and return work item ids in query order."""
    query = build_selector_query(options)
    logger.debug(f"Running WIQL query:\n{query}")
    url = f"{config.project_url}/_apis/wit/wiql?api-version={API_VERSION}"
    try:
        response = session.post(url, json={"query": query}, timeout=REQUEST_TIMEOUT_SECONDS)
        response.raise_for_status()
        data: dict[str, Any] = response.json()
    except (requests.RequestException, ValueError) as e:
        msg = f"Work item query failed: {e}"
        raise MigrationError(msg) from e

    ids = [int(ref["id"]) for ref in data.get("workItems", [])]
    logger.info(f"Query selected {len(ids)} work items")
    return ids


def get_work_item(session: requests.Session, config: AdoConfig, work_item_id: int) -> WorkItem:
    """Fetch all fields of a single work item.

    Raises:
        NotFoundError: If the work item does not exist
        FetchError: On network, authentication or decoding failures
    """
    url = f"{config.project_url}/_apis/wit/workitems/{work_item_id}?api-version={API_VERSION}"
    data = _get_json(session, url, f"Work item {work_item_id}")
    return WorkItem.from_api(data, work_item_web_url(config, work_item_id))


def get_work_item_comments(session: requests.Session, config: AdoConfig, work_item_id: int) -> list[WorkItemComment]:
    """Fetch the discussion comments of a work item, oldest first."""
    url = f"{config.project_url}/_apis/wit/workItems/{work_item_id}/comments?api-version={COMMENTS_API_VERSION}"
    data = _get_json(session, url, f"Comments of work item {work_item_id}")
    comments = [WorkItemComment.from_api(c) for c in data.get("comments", [])]
    comments.sort(key=lambda c: c.created_date)
    logger.debug(f"Found {len(comments)} comments for work item {work_item_id}")
    return comments


def mark_work_item_migrated(
    session: requests.Session,
    config: AdoConfig,
    work_item: WorkItem,
    *,
    marker_tag: str,
    issue_url: str,
) -> None:
    """Add the marker tag and a discussion note pointing at the created issue.

    Both changes go out in one JSON-patch update call.
    """
    tags = [*work_item.tags]
    if marker_tag not in tags:
        tags.append(marker_tag)
    patch = [
        {"op": "add", "path": f"/fields/{FIELD_TAGS}", "value": "; ".join(tags)},
        {"op": "add", "path": f"/fields/{FIELD_HISTORY}", "value": f"Migrated to GitHub issue: {issue_url}"},
    ]
    url = f"{config.project_url}/_apis/wit/workitems/{work_item.id}?api-version={API_VERSION}"
    try:
        response = session.patch(
            url,
            json=patch,
            headers={"Content-Type": "application/json-patch+json"},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        msg = f"Failed to tag work item {work_item.id}: {e}"
        raise MigrationError(msg) from e
    logger.debug(f"Tagged work item {work_item.id} with '{marker_tag}'")
