"""
Command-line interface for the Azure DevOps to GitHub migration tool.
"""

from __future__ import annotations

import argparse
import logging
import sys

from . import ado_utils as adu
from . import github_utils as ghu
from .exceptions import MigrationError
from .migrator import WorkItemMigrator
from .settings import DEFAULT_MARKER_TAG, AdoConfig, GithubConfig, MigrationOptions, SelectorOptions
from .utils import PassError, setup_logging

logger: logging.Logger = logging.getLogger(__name__)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Migrate Azure DevOps work items to GitHub issues")

    # Positional arguments
    _ = parser.add_argument("ado_organization", help="Azure DevOps organization name")
    _ = parser.add_argument("ado_project", help="Azure DevOps project name")
    _ = parser.add_argument("github_repo", help="GitHub repository path (owner/repo)")

    # Work item selection
    _ = parser.add_argument("--area-path", help="Only migrate work items under this area path")
    _ = parser.add_argument(
        "--include-closed", action="store_true", help="Also migrate work items in a closed state (closed on GitHub)"
    )
    _ = parser.add_argument(
        "--no-exclude-migrated",
        dest="exclude_migrated",
        action="store_false",
        help="Do not skip work items that already carry the marker tag",
    )
    _ = parser.add_argument(
        "--ids", type=int, nargs="+", help="Migrate exactly these work item ids instead of running the query"
    )

    # Pipeline options
    _ = parser.add_argument(
        "--add-comments", action="store_true", help="Copy the work item discussion into the issue"
    )
    _ = parser.add_argument(
        "--update-assignees", action="store_true", help="Assign issues to the login derived from the work item assignee"
    )
    _ = parser.add_argument(
        "--assignee-suffix", default="", help="Suffix appended to derived GitHub logins (e.g. for EMU accounts)"
    )
    _ = parser.add_argument(
        "--production-run",
        action="store_true",
        help="Tag migrated work items and add a link to the new issue on Azure DevOps",
    )
    _ = parser.add_argument(
        "--marker-tag", default=DEFAULT_MARKER_TAG, help=f"Tag marking migrated work items (default: {DEFAULT_MARKER_TAG})"
    )

    # Authentication
    _ = parser.add_argument(
        "--ado-pass-token", help="Path for Azure DevOps token in pass utility (default: ado/cli/token)"
    )
    _ = parser.add_argument(
        "--github-pass-token", help="Path for GitHub token in pass utility (default: github/cli/token)"
    )

    _ = parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    # Setup logging
    verbose: bool = getattr(args, "verbose", False)
    setup_logging(verbose=verbose)

    try:
        ado_config = AdoConfig(
            organization=args.ado_organization,
            project=args.ado_project,
            token=adu.get_token(args.ado_pass_token) or "",
        )
        github_config = GithubConfig(
            repo_path=args.github_repo,
            token=ghu.get_token(args.github_pass_token) or "",
        )
        options = MigrationOptions(
            add_comments=args.add_comments,
            update_assignees=args.update_assignees,
            assignee_suffix=args.assignee_suffix,
            production_run=args.production_run,
            marker_tag=args.marker_tag,
        )

        migrator = WorkItemMigrator(ado_config, github_config, options)
        migrator.validate_api_access()

        work_item_ids: list[int] = args.ids or migrator.select_work_items(
            SelectorOptions(
                area_path=args.area_path,
                include_closed=args.include_closed,
                exclude_migrated=args.exclude_migrated,
                marker_tag=args.marker_tag,
            )
        )
        if not work_item_ids:
            print("No work items to migrate")
            sys.exit(0)

        report = migrator.migrate(work_item_ids)

    except (MigrationError, PassError, ValueError):
        logger.exception("Migration failed")
        sys.exit(1)

    sys.exit(0 if report.success else 1)
