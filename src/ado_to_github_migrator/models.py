"""Data models exchanged between the Azure DevOps source, the payload builder,
the GitHub import protocol and the batch driver.

Work item fields are read once from the Azure DevOps field bag into
explicit attributes. A field missing from the response is ``None`` (or an
empty collection) rather than a lookup error later on.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse, urlunparse

# Azure DevOps field reference names
FIELD_TITLE = "System.Title"
FIELD_TYPE = "System.WorkItemType"
FIELD_STATE = "System.State"
FIELD_DESCRIPTION = "System.Description"
FIELD_REPRO_STEPS = "Microsoft.VSTS.TCM.ReproSteps"
FIELD_SYSTEM_INFO = "Microsoft.VSTS.TCM.SystemInfo"
FIELD_ACCEPTANCE_CRITERIA = "Microsoft.VSTS.Common.AcceptanceCriteria"
FIELD_ASSIGNED_TO = "System.AssignedTo"
FIELD_TAGS = "System.Tags"
FIELD_CREATED_BY = "System.CreatedBy"
FIELD_CREATED_DATE = "System.CreatedDate"
FIELD_CHANGED_BY = "System.ChangedBy"
FIELD_CHANGED_DATE = "System.ChangedDate"
FIELD_AREA_PATH = "System.AreaPath"
FIELD_ITERATION_PATH = "System.IterationPath"
FIELD_HISTORY = "System.History"


def _optional_text(value: Any) -> str | None:  # noqa: ANN401 - raw JSON value
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


@dataclass(frozen=True)
class Identity:
    """An Azure DevOps identity reference (user)."""

    display_name: str
    unique_name: str | None = None

    @classmethod
    def from_api(cls, data: Any) -> Identity | None:  # noqa: ANN401 - raw JSON value
        """Build from an identity reference; older API versions return a plain string."""
        if not data:
            return None
        if isinstance(data, str):
            # "Jane Doe <jane.doe@example.com>"
            if "<" in data and data.endswith(">"):
                name, _, unique = data[:-1].partition("<")
                return cls(display_name=name.strip(), unique_name=unique.strip() or None)
            return cls(display_name=data)
        return cls(
            display_name=data.get("displayName", ""),
            unique_name=_optional_text(data.get("uniqueName")),
        )

    def __str__(self) -> str:
        return self.display_name


@dataclass
class WorkItem:
    """Snapshot of an Azure DevOps work item, fetched once per migration attempt."""

    id: int
    title: str
    type: str
    state: str
    url: str
    description: str | None = None
    repro_steps: str | None = None
    system_info: str | None = None
    acceptance_criteria: str | None = None
    assigned_to: Identity | None = None
    tags: list[str] = field(default_factory=list)
    created_by: Identity | None = None
    created_date: str | None = None
    changed_by: Identity | None = None
    changed_date: str | None = None
    area_path: str | None = None
    iteration_path: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any], web_url: str) -> WorkItem:
        """Create a WorkItem from a ``GET _apis/wit/workitems/{id}`` response.

        Args:
            data: Decoded JSON response
            web_url: Browser URL of the work item, used for back-links
        """
        fields: dict[str, Any] = data.get("fields") or {}
        raw_tags: str = fields.get(FIELD_TAGS) or ""
        return cls(
            id=int(data["id"]),
            title=fields.get(FIELD_TITLE) or "",
            type=fields.get(FIELD_TYPE) or "",
            state=fields.get(FIELD_STATE) or "",
            url=web_url,
            description=_optional_text(fields.get(FIELD_DESCRIPTION)),
            repro_steps=_optional_text(fields.get(FIELD_REPRO_STEPS)),
            system_info=_optional_text(fields.get(FIELD_SYSTEM_INFO)),
            acceptance_criteria=_optional_text(fields.get(FIELD_ACCEPTANCE_CRITERIA)),
            assigned_to=Identity.from_api(fields.get(FIELD_ASSIGNED_TO)),
            tags=[tag.strip() for tag in raw_tags.split(";") if tag.strip()],
            created_by=Identity.from_api(fields.get(FIELD_CREATED_BY)),
            created_date=fields.get(FIELD_CREATED_DATE),
            changed_by=Identity.from_api(fields.get(FIELD_CHANGED_BY)),
            changed_date=fields.get(FIELD_CHANGED_DATE),
            area_path=fields.get(FIELD_AREA_PATH),
            iteration_path=fields.get(FIELD_ITERATION_PATH),
        )

    @property
    def is_bug(self) -> bool:
        return self.type.lower() == "bug"


@dataclass(frozen=True)
class WorkItemComment:
    """A discussion comment on a work item."""

    text: str
    author: str = ""
    created_date: str = ""
    url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> WorkItemComment:
        created_by = Identity.from_api(data.get("createdBy"))
        return cls(
            text=data.get("text") or "",
            author=created_by.display_name if created_by else "",
            created_date=data.get("createdDate") or "",
            url=data.get("url") or "",
        )


@dataclass
class IssuePayload:
    """Everything needed to create one GitHub issue through the import API."""

    title: str
    body: str
    comments: list[str]
    label: str

    def to_import_request(self) -> dict[str, Any]:
        """Render the request body for ``POST /repos/{owner}/{repo}/import/issues``."""
        issue: dict[str, Any] = {"title": self.title, "body": self.body}
        if self.label:
            issue["labels"] = [self.label]
        return {"issue": issue, "comments": [{"body": comment} for comment in self.comments]}


class ImportStatus(enum.Enum):
    """States of a GitHub issue import job."""

    SUBMITTED = "submitted"
    NOT_FOUND_YET = "not_found_yet"
    PENDING = "pending"
    IMPORTING = "importing"
    IMPORTED = "imported"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (ImportStatus.IMPORTED, ImportStatus.FAILED, ImportStatus.TIMED_OUT)


@dataclass
class ImportJob:
    """A submitted issue import, tracked until it reaches a terminal status."""

    status_url: str
    status: ImportStatus = ImportStatus.SUBMITTED
    issue_url: str | None = None
    attempts: int = 0
    detail: str | None = None

    @property
    def issue_number(self) -> int | None:
        """Issue number parsed from ``issue_url`` (``.../issues/42`` -> 42)."""
        if not self.issue_url:
            return None
        tail = self.issue_url.rstrip("/").rsplit("/", 1)[-1]
        return int(tail) if tail.isdigit() else None

    @property
    def issue_html_url(self) -> str | None:
        """Browser URL of the issue.

        ``https://api.github.com/repos/o/r/issues/42`` becomes
        ``https://github.com/o/r/issues/42``; Enterprise Server API URLs lose
        their ``/api/v3`` prefix. Other URLs are returned unchanged.
        """
        if not self.issue_url:
            return None
        parsed = urlparse(self.issue_url)
        path = parsed.path.removeprefix("/api/v3").removeprefix("/repos/")
        if path == parsed.path:
            return self.issue_url
        netloc = "github.com" if parsed.netloc == "api.github.com" else parsed.netloc
        return urlunparse(parsed._replace(netloc=netloc, path=f"/{path.lstrip('/')}"))


class Outcome(enum.Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class EffectResult:
    """Result of one best-effort post-processing step."""

    effect: str
    ok: bool
    reason: str | None = None

    @classmethod
    def success(cls, effect: str) -> EffectResult:
        return cls(effect=effect, ok=True)

    @classmethod
    def warning(cls, effect: str, reason: str) -> EffectResult:
        return cls(effect=effect, ok=False, reason=reason)


@dataclass
class MigrationResult:
    """Per-item result of a migration attempt."""

    work_item_id: int
    outcome: Outcome
    issue_url: str | None = None
    warnings: list[str] = field(default_factory=list)
    effects: list[EffectResult] = field(default_factory=list)
    error: str | None = None

    def add_effect(self, effect: EffectResult) -> None:
        self.effects.append(effect)
        if not effect.ok:
            self.warnings.append(f"{effect.effect}: {effect.reason}")


@dataclass
class BatchReport:
    """Results of a migration run, one entry per selected work item."""

    results: list[MigrationResult] = field(default_factory=list)

    def count(self, outcome: Outcome) -> int:
        return sum(1 for result in self.results if result.outcome is outcome)

    @property
    def migrated_count(self) -> int:
        return self.count(Outcome.CREATED)

    @property
    def success(self) -> bool:
        return self.count(Outcome.FAILED) == 0
