"""Run configuration: service connection settings and migration options.

These objects are built once (usually by the CLI) and passed explicitly to the
Azure DevOps source, the GitHub target and the migrator. Nothing reads the
process environment after they are constructed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from .exceptions import ConfigurationError

DEFAULT_ADO_BASE_URL: Final[str] = "https://dev.azure.com"
DEFAULT_MARKER_TAG: Final[str] = "copied-to-github"

# Work item types that have no meaningful issue representation
DEFAULT_EXCLUDED_TYPES: Final[tuple[str, ...]] = (
    "Test Case",
    "Test Suite",
    "Test Plan",
    "Shared Steps",
    "Shared Parameter",
    "Feedback Request",
    "Code Review Request",
)


@dataclass(frozen=True)
class AdoConfig:
    """Connection settings for an Azure DevOps project."""

    organization: str
    project: str
    token: str = field(repr=False)
    base_url: str = DEFAULT_ADO_BASE_URL

    def __post_init__(self) -> None:
        if not self.organization.strip() or not self.project.strip():
            msg = "Azure DevOps organization and project must be non-empty"
            raise ConfigurationError(msg)
        if not self.token:
            msg = "No Azure DevOps token specified nor found (set ADO_TOKEN or use --ado-pass-token)"
            raise ConfigurationError(msg)

    @property
    def project_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.organization}/{self.project}"


@dataclass(frozen=True)
class GithubConfig:
    """Connection settings for the target GitHub repository."""

    repo_path: str
    token: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.token:
            msg = "No GitHub token specified nor found (set GITHUB_TOKEN or use --github-pass-token)"
            raise ConfigurationError(msg)


@dataclass(frozen=True)
class MigrationOptions:
    """Flags controlling the per-item pipeline."""

    add_comments: bool = False
    update_assignees: bool = False
    assignee_suffix: str = ""
    production_run: bool = False
    marker_tag: str = DEFAULT_MARKER_TAG


@dataclass(frozen=True)
class SelectorOptions:
    """Predicates for the WIQL query that selects work items to migrate."""

    area_path: str | None = None
    include_closed: bool = False
    exclude_migrated: bool = True
    marker_tag: str = DEFAULT_MARKER_TAG
    excluded_types: tuple[str, ...] = DEFAULT_EXCLUDED_TYPES
