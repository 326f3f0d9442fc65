"""
Main migration class for Azure DevOps work items to GitHub issues.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from . import ado_utils as adu
from . import github_utils as ghu
from .exceptions import FetchError, InvalidTitleError, MigrationError, SubmissionError
from .importer import IssueImporter
from .issue_builder import build_issue_payload, check_title
from .models import BatchReport, ImportStatus, MigrationResult, Outcome
from .post_processing import PostProcessor
from .settings import MigrationOptions

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    import github.Repository
    import requests
    from github import Github

    from .models import WorkItem, WorkItemComment
    from .settings import AdoConfig, GithubConfig, SelectorOptions

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)


class WorkItemMigrator:
    """Migrates Azure DevOps work items to GitHub issues, one item at a time."""

    def __init__(
        self,
        ado_config: AdoConfig,
        github_config: GithubConfig,
        options: MigrationOptions | None = None,
        *,
        ado_session: requests.Session | None = None,
        github_client: Github | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.ado_config: AdoConfig = ado_config
        self.github_config: GithubConfig = github_config
        self.options: MigrationOptions = options or MigrationOptions()

        self.ado_session: requests.Session = ado_session or adu.get_session(ado_config)
        self.github_client: Github = github_client or ghu.get_client(github_config.token)
        self.importer: IssueImporter = IssueImporter(self.github_client, github_config.repo_path)
        self._sleep = sleep

        self._github_repo: github.Repository.Repository | None = None

        logger.info(f"Initialized migrator for {ado_config.project_url} -> {github_config.repo_path}")

    @property
    def github_repo(self) -> github.Repository.Repository:
        if self._github_repo is None:
            self._github_repo = ghu.get_repo(self.github_client, self.github_config.repo_path)
        return self._github_repo

    def validate_api_access(self) -> None:
        """Validate GitHub repository access before any item is processed."""
        _ = self.github_repo
        logger.info("GitHub API access validated")

    def select_work_items(self, selector: SelectorOptions) -> list[int]:
        """Return the ids of the work items to migrate, in migration order."""
        return adu.query_work_item_ids(self.ado_session, self.ado_config, selector)

    def _fetch_comments(self, work_item: WorkItem, result: MigrationResult) -> list[WorkItemComment] | None:
        if not self.options.add_comments:
            return None
        try:
            return adu.get_work_item_comments(self.ado_session, self.ado_config, work_item.id)
        except FetchError as e:
            logger.warning(f"Work item {work_item.id}: could not retrieve comments: {e}")
            result.warnings.append(f"comments: {e}")
            return None

    def migrate_work_item(self, work_item_id: int) -> MigrationResult:
        """Run the full pipeline for one work item.

        Expected failures are turned into a Skipped or Failed result; only
        unexpected exceptions propagate (the batch loop handles those).
        """
        try:
            work_item = adu.get_work_item(self.ado_session, self.ado_config, work_item_id)
        except FetchError as e:
            logger.warning(f"Skipping work item {work_item_id}: {e}")
            return MigrationResult(work_item_id, Outcome.SKIPPED, error=str(e))

        try:
            check_title(work_item)
        except InvalidTitleError as e:
            logger.warning(f"Skipping work item {work_item_id}: {e}")
            return MigrationResult(work_item_id, Outcome.SKIPPED, error=str(e))

        result = MigrationResult(work_item_id, Outcome.FAILED)
        comments = self._fetch_comments(work_item, result)
        payload = build_issue_payload(work_item, comments)

        try:
            job = self.importer.submit(payload)
        except SubmissionError as e:
            logger.error(f"Work item {work_item_id}: {e}")  # noqa: TRY400 - no traceback needed
            result.error = str(e)
            return result

        job = self.importer.wait(job, sleep=self._sleep)
        if job.status is ImportStatus.TIMED_OUT:
            result.error = f"Import timed out after {job.attempts} attempts: {job.detail}"
            logger.error(f"Work item {work_item_id}: {result.error}")
            return result
        if job.status is not ImportStatus.IMPORTED:
            result.error = f"Import failed: {job.detail}"
            logger.error(f"Work item {work_item_id}: {result.error}")
            return result

        result.outcome = Outcome.CREATED
        result.issue_url = job.issue_html_url
        logger.debug(f"Created issue {result.issue_url} from work item {work_item_id}")

        try:
            github_repo = self.github_repo
        except MigrationError as e:
            logger.warning(f"Work item {work_item_id}: post-processing skipped: {e}")
            result.warnings.append(f"post-processing: {e}")
            return result

        post_processor = PostProcessor(github_repo, self.ado_session, self.ado_config, self.options)
        for effect in post_processor.run(work_item, job):
            result.add_effect(effect)
        return result

    def migrate(self, work_item_ids: Iterable[int]) -> BatchReport:
        """Migrate the given work items in order.

        A failure in one item never stops the batch.
        """
        report = BatchReport()
        for work_item_id in work_item_ids:
            try:
                result = self.migrate_work_item(work_item_id)
            except Exception as e:  # noqa: BLE001 - one item must not abort the batch
                logger.exception(f"Work item {work_item_id}: migration failed")
                result = MigrationResult(work_item_id, Outcome.FAILED, error=str(e) or repr(e))

            report.results.append(result)
            _print_result(result)

        print(f"Migrated {report.migrated_count} of {len(report.results)} work items")
        return report


def _print_result(result: MigrationResult) -> None:
    line = f"Work item {result.work_item_id}: {result.outcome.value}"
    if result.issue_url:
        line += f" -> {result.issue_url}"
    if result.error:
        line += f" ({result.error})"
    print(line)
    for warning in result.warnings:
        print(f"  warning: {warning}")
