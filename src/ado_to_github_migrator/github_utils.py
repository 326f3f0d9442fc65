from __future__ import annotations

import logging
from typing import Final

from github import Auth, Github, GithubException, UnknownObjectException
from github.Repository import Repository

from . import utils
from .exceptions import MigrationError

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

_TOKEN_ENV_VAR: Final[str] = "GITHUB_TOKEN"  # noqa: S105
_DEFAULT_TOKEN_PASS_PATH: Final[str] = "github/cli/token"  # noqa: S105


def get_token(pass_path: str | None = None) -> str | None:
    """Get GitHub token from pass path, env var GITHUB_TOKEN, or default pass location."""
    token = utils.resolve_token(pass_path, _TOKEN_ENV_VAR, _DEFAULT_TOKEN_PASS_PATH)
    if token is None:
        logger.warning("No GitHub token specified nor found")
    return token


def get_client(token: str) -> Github:
    """Get a GitHub client using the token."""
    return Github(auth=Auth.Token(token))


def parse_repo_path(repo_path: str) -> tuple[str, str]:
    """Split "owner/repository" into its parts."""
    repo_path = repo_path.strip()
    parts = repo_path.split("/")
    if len(parts) != 2:
        msg = f"Invalid GitHub repository path '{repo_path}'. Expected format: 'owner/repository'"
        raise MigrationError(msg)
    owner, name = parts
    if not owner or not name:
        msg = f"Invalid GitHub repository path '{repo_path}'. Both owner and repository name must be non-empty"
        raise MigrationError(msg)
    return owner, name


def get_repo(client: Github, repo_path: str) -> Repository:
    """Get the target repository, which must already exist."""
    owner, name = parse_repo_path(repo_path)
    try:
        return client.get_repo(f"{owner}/{name}")
    except UnknownObjectException as e:
        msg = f"GitHub repository {owner}/{name} not found or not accessible"
        raise MigrationError(msg) from e
    except GithubException as e:
        msg = f"Error accessing GitHub repository {owner}/{name}: {e}"
        raise MigrationError(msg) from e


def add_assignee(repo: Repository, issue_number: int, login: str) -> None:
    """Add an assignee to an issue.

    GitHub silently drops assignees it cannot resolve, so the result is
    checked against the issue's assignees after the call.
    """
    issue = repo.get_issue(issue_number)
    issue.add_to_assignees(login)
    assigned = {assignee.login.lower() for assignee in issue.assignees}
    if login.lower() not in assigned:
        msg = f"GitHub did not accept '{login}' as assignee of issue #{issue_number}"
        raise MigrationError(msg)
    logger.debug(f"Assigned issue #{issue_number} to {login}")


def close_issue(repo: Repository, issue_number: int) -> None:
    """Close an issue."""
    issue = repo.get_issue(issue_number)
    issue.edit(state="closed")
    logger.debug(f"Closed issue #{issue_number}")
