"""Build GitHub issue title, body and audit comments from Azure DevOps work items."""

from __future__ import annotations

import datetime as dt
import re
from typing import TYPE_CHECKING
from urllib.parse import parse_qsl, urlencode

from .exceptions import InvalidTitleError
from .models import IssuePayload

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import Identity, WorkItem, WorkItemComment

# GitHub "tree" links to a file, optionally carrying a line reference either as
# a fragment (#L10, #L10-L12) or as query parameters (?line=10&lineEnd=12).
_TREE_LINK_PATTERN = re.compile(
    r"(?P<repo>https://github\.com/[\w.-]+/[\w.-]+)/tree/"
    r"(?P<path>[^\s\"'<>?#]+)"
    r"(?:\?(?P<query>[^\s\"'<>#]*))?"
    r"(?P<fragment>#L\d+(?:-L\d+)?)?"
)
_LINE_PARAMS = ("line", "lineEnd")


def format_timestamp(iso_timestamp: str | None) -> str:
    """Format ISO 8601 timestamp to human-readable format.

    Args:
        iso_timestamp: ISO 8601 formatted timestamp string

    Returns:
        Formatted timestamp (e.g., "2024-01-15 10:30:45Z").
        Returns original value (or "" for None) if parsing fails.
    """
    if not iso_timestamp:
        return ""

    try:
        timestamp_dt = dt.datetime.fromisoformat(iso_timestamp)
        formatted = timestamp_dt.isoformat(sep=" ", timespec="seconds")
        return formatted.replace("+00:00", "Z")
    except (ValueError, AttributeError):
        return iso_timestamp


def _rewrite_tree_link(match: re.Match[str]) -> str:
    repo, path = match.group("repo"), match.group("path")
    fragment = match.group("fragment")
    query = (match.group("query") or "").replace("&amp;", "&")
    params = parse_qsl(query, keep_blank_values=True)
    line_params = {key: value for key, value in params if key in _LINE_PARAMS}

    if not fragment and "line" in line_params:
        fragment = f"#L{line_params['line']}"
        if line_params.get("lineEnd") and line_params["lineEnd"] != line_params["line"]:
            fragment += f"-L{line_params['lineEnd']}"
    if not fragment:
        # No line reference: a directory or whole-file link stays as it is
        return match.group(0)

    remaining = urlencode([(key, value) for key, value in params if key not in _LINE_PARAMS])
    return f"{repo}/blob/{path}" + (f"?{remaining}" if remaining else "") + fragment


def rewrite_repository_links(content: str) -> str:
    """Rewrite GitHub tree-view file links with line references into blob-view links.

    ``https://github.com/o/r/tree/main/src/app.py?line=10&lineEnd=12`` becomes
    ``https://github.com/o/r/blob/main/src/app.py#L10-L12``.
    """
    return _TREE_LINK_PATTERN.sub(_rewrite_tree_link, content)


def _section(heading: str, content: str) -> str:
    return f"## {heading}\n\n{content}\n\n"


def build_issue_body(work_item: WorkItem) -> str:
    """Build the issue body from the work item's descriptive fields.

    Bugs carry their content in repro steps and system info; every other type
    uses the description followed by acceptance criteria. The body is never
    empty: without content it is a link back to the work item.
    """
    body = ""
    if work_item.is_bug:
        if work_item.repro_steps:
            body += _section("Repro Steps", rewrite_repository_links(work_item.repro_steps))
        if work_item.system_info:
            body += _section("System Info", work_item.system_info)
    else:
        body = work_item.description or ""
        if work_item.acceptance_criteria:
            body += ("\n\n" if body else "") + _section("Acceptance Criteria", work_item.acceptance_criteria)

    if not body.strip():
        body = original_link(work_item)
    return body


def original_link(work_item: WorkItem) -> str:
    return f"[Original Work Item URL]({work_item.url})"


def _cell(value: str | Identity | None) -> str:
    text = str(value) if value is not None else ""
    return text.replace("|", "\\|").replace("\n", " ")


def build_details_comment(work_item: WorkItem) -> str:
    """Build the audit comment: back-link plus a collapsible metadata table."""
    headers = [
        "Created date",
        "Created by",
        "Changed date",
        "Changed by",
        "Assigned To",
        "State",
        "Type",
        "Area Path",
        "Iteration Path",
    ]
    values = [
        format_timestamp(work_item.created_date),
        work_item.created_by,
        format_timestamp(work_item.changed_date),
        work_item.changed_by,
        work_item.assigned_to,
        work_item.state,
        work_item.type,
        work_item.area_path,
        work_item.iteration_path,
    ]
    comment = f"{original_link(work_item)}\n\n"
    comment += "<details><summary>Original Work Item Details</summary>\n<p>\n\n"
    comment += "| " + " | ".join(headers) + " |\n"
    comment += "|" + "---|" * len(headers) + "\n"
    comment += "| " + " | ".join(_cell(v) for v in values) + " |\n"
    comment += "\n</p>\n</details>"
    return comment


def build_comments_comment(comments: Sequence[WorkItemComment]) -> str:
    """Build a collapsible block holding the original discussion thread."""
    comment = f"<details><summary>Work Item Comments ({len(comments)})</summary>\n<p>\n\n"
    for item_comment in comments:
        date = format_timestamp(item_comment.created_date)
        heading = f"[{date}]({item_comment.url})" if item_comment.url else date
        comment += f"#### {heading} - {item_comment.author}\n\n"
        comment += f"{item_comment.text}\n\n---\n\n"
    comment += "</p>\n</details>"
    return comment


def check_title(work_item: WorkItem) -> None:
    """Raise InvalidTitleError if the work item cannot become an issue."""
    if not work_item.title.strip():
        msg = f"Work item {work_item.id} has an empty title"
        raise InvalidTitleError(msg)


def build_issue_payload(
    work_item: WorkItem,
    comments: Sequence[WorkItemComment] | None = None,
) -> IssuePayload:
    """Transform a work item into an issue import payload.

    Args:
        work_item: The fetched work item
        comments: Original discussion to carry over, if retrieved

    Raises:
        InvalidTitleError: If the work item has an empty title
    """
    check_title(work_item)

    audit_comments = [build_details_comment(work_item)]
    if comments:
        audit_comments.append(build_comments_comment(comments))

    return IssuePayload(
        title=work_item.title,
        body=build_issue_body(work_item),
        comments=audit_comments,
        label=work_item.type.lower(),
    )
