"""Best-effort follow-up steps once an issue has been created.

Each step (assignment, closing, source tagging) runs independently and
reports an ``EffectResult``. A failing step never stops the others and never
changes the item's outcome.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from . import ado_utils as adu
from . import github_utils as ghu
from .exceptions import MigrationError
from .models import EffectResult

if TYPE_CHECKING:
    from collections.abc import Callable

    import requests
    from github.Repository import Repository

    from .models import ImportJob, WorkItem
    from .settings import AdoConfig, MigrationOptions

logger: logging.Logger = logging.getLogger(__name__)

EFFECT_ASSIGN = "assign"
EFFECT_CLOSE = "close"
EFFECT_TAG = "tag"


def map_assignee(unique_name: str, suffix: str = "") -> str:
    """Derive a GitHub login from an Azure DevOps unique name.

    ``jane.doe@example.com`` with suffix ``_corp`` becomes ``jane-doe_corp``.
    """
    local_part = unique_name.split("@", 1)[0]
    return local_part.replace(".", "-") + suffix


def is_closed_state(state: str) -> bool:
    return state in adu.CLOSED_STATES


class PostProcessor:
    """Runs the post-creation steps for one created issue."""

    def __init__(
        self,
        github_repo: Repository,
        ado_session: requests.Session,
        ado_config: AdoConfig,
        options: MigrationOptions,
    ) -> None:
        self._github_repo = github_repo
        self._ado_session = ado_session
        self._ado_config = ado_config
        self._options = options

    def _attempt(self, effect: str, work_item: WorkItem, action: Callable[[], None]) -> EffectResult:
        try:
            action()
        except Exception as e:  # noqa: BLE001 - any failure here is only a warning
            logger.warning(f"Work item {work_item.id}: {effect} step failed: {e}")
            return EffectResult.warning(effect, str(e))
        return EffectResult.success(effect)

    @staticmethod
    def _issue_number(job: ImportJob) -> int:
        if job.issue_number is None:
            msg = f"Cannot determine issue number from {job.issue_url!r}"
            raise MigrationError(msg)
        return job.issue_number

    def run(self, work_item: WorkItem, job: ImportJob) -> list[EffectResult]:
        """Run every applicable step for the issue created from ``work_item``."""
        results: list[EffectResult] = []

        unique_name = work_item.assigned_to.unique_name if work_item.assigned_to else None
        if self._options.update_assignees and unique_name:
            login = map_assignee(unique_name, self._options.assignee_suffix)
            results.append(
                self._attempt(
                    EFFECT_ASSIGN,
                    work_item,
                    lambda: ghu.add_assignee(self._github_repo, self._issue_number(job), login),
                )
            )

        if is_closed_state(work_item.state):
            results.append(
                self._attempt(
                    EFFECT_CLOSE,
                    work_item,
                    lambda: ghu.close_issue(self._github_repo, self._issue_number(job)),
                )
            )

        if self._options.production_run:
            issue_url = job.issue_html_url or ""
            results.append(
                self._attempt(
                    EFFECT_TAG,
                    work_item,
                    lambda: adu.mark_work_item_migrated(
                        self._ado_session,
                        self._ado_config,
                        work_item,
                        marker_tag=self._options.marker_tag,
                        issue_url=issue_url,
                    ),
                )
            )

        return results
