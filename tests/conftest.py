"""
Pytest configuration and shared fixtures.

Work items are built from Azure DevOps-shaped JSON so that tests exercise the
same parsing path as a real run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from ado_to_github_migrator.models import WorkItem
from ado_to_github_migrator.settings import AdoConfig, GithubConfig

if TYPE_CHECKING:
    from collections.abc import Callable

ADO_PROJECT_URL = "https://dev.azure.com/test-org/test-project"


def work_item_response(work_item_id: int = 100, **fields: Any) -> dict[str, Any]:  # noqa: ANN401
    """Build a ``GET _apis/wit/workitems/{id}`` response with sensible defaults."""
    defaults: dict[str, Any] = {
        "System.Title": "Fix crash",
        "System.WorkItemType": "Bug",
        "System.State": "Active",
        "System.CreatedBy": {"displayName": "Jane Doe", "uniqueName": "jane.doe@example.com"},
        "System.CreatedDate": "2024-01-15T10:30:45.123Z",
        "System.ChangedBy": {"displayName": "John Roe", "uniqueName": "john.roe@example.com"},
        "System.ChangedDate": "2024-01-16T08:00:00Z",
        "System.AreaPath": "test-project\\Team A",
        "System.IterationPath": "test-project\\Sprint 1",
    }
    defaults.update(fields)
    return {"id": work_item_id, "fields": {key: value for key, value in defaults.items() if value is not None}}


@pytest.fixture
def make_work_item() -> Callable[..., WorkItem]:
    """Factory building a WorkItem from field overrides (Azure DevOps reference names)."""

    def _make(work_item_id: int = 100, **fields: Any) -> WorkItem:  # noqa: ANN401
        return WorkItem.from_api(
            work_item_response(work_item_id, **fields),
            f"{ADO_PROJECT_URL}/_workitems/edit/{work_item_id}",
        )

    return _make


@pytest.fixture
def ado_config() -> AdoConfig:
    return AdoConfig(organization="test-org", project="test-project", token="ado-token")


@pytest.fixture
def github_config() -> GithubConfig:
    return GithubConfig(repo_path="github-org/test-repo", token="gh-token")
