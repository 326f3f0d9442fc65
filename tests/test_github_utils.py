"""
Tests for GitHub utilities module.
"""

from unittest.mock import Mock

import pytest
from github import GithubException, UnknownObjectException

from ado_to_github_migrator import MigrationError
from ado_to_github_migrator.github_utils import add_assignee, close_issue, get_repo, parse_repo_path


@pytest.mark.unit
class TestParseRepoPath:
    """Test repository path validation."""

    def test_valid_path(self) -> None:
        """A valid path is split into owner and name."""
        assert parse_repo_path("myorg/myrepo") == ("myorg", "myrepo")

    def test_surrounding_spaces_stripped(self) -> None:
        """Surrounding whitespace is ignored."""
        assert parse_repo_path("  myorg/myrepo  ") == ("myorg", "myrepo")

    @pytest.mark.parametrize("repo_path", ["just-owner", "", "   ", "owner/repo/extra", "owner//repo"])
    def test_invalid_format(self, repo_path: str) -> None:
        """Paths without exactly one slash are rejected."""
        with pytest.raises(MigrationError, match="Invalid GitHub repository path"):
            parse_repo_path(repo_path)

    @pytest.mark.parametrize("repo_path", ["/repo", "owner/"])
    def test_empty_parts(self, repo_path: str) -> None:
        """Empty owner or name is rejected."""
        with pytest.raises(MigrationError, match="Both owner and repository name must be non-empty"):
            parse_repo_path(repo_path)


@pytest.mark.unit
class TestGetRepo:
    """Test looking up the target repository."""

    def test_existing_repo(self) -> None:
        """An existing repository is returned."""
        mock_client = Mock()
        mock_repo = Mock()
        mock_client.get_repo.return_value = mock_repo

        assert get_repo(mock_client, "myorg/myrepo") is mock_repo
        mock_client.get_repo.assert_called_once_with("myorg/myrepo")

    def test_missing_repo(self) -> None:
        """A missing repository raises a migration error."""
        mock_client = Mock()
        mock_client.get_repo.side_effect = UnknownObjectException(404, {"message": "Not Found"}, None)

        with pytest.raises(MigrationError, match="not found or not accessible"):
            get_repo(mock_client, "myorg/myrepo")

    def test_other_error(self) -> None:
        """Other API errors raise a migration error."""
        mock_client = Mock()
        mock_client.get_repo.side_effect = GithubException(401, {"message": "Bad credentials"}, None)

        with pytest.raises(MigrationError, match="Error accessing GitHub repository"):
            get_repo(mock_client, "myorg/myrepo")


def _user(login: str) -> Mock:
    user = Mock()
    user.login = login
    return user


@pytest.mark.unit
class TestIssueUpdates:
    """Test issue assignment and closing."""

    def test_add_assignee_accepted(self) -> None:
        """An accepted assignee is matched case-insensitively."""
        mock_repo = Mock()
        mock_issue = mock_repo.get_issue.return_value
        mock_issue.assignees = [_user("Jane-Doe_corp")]

        add_assignee(mock_repo, 12, "jane-doe_corp")

        mock_repo.get_issue.assert_called_once_with(12)
        mock_issue.add_to_assignees.assert_called_once_with("jane-doe_corp")

    def test_add_assignee_silently_dropped(self) -> None:
        """An assignee GitHub dropped is reported."""
        mock_repo = Mock()
        mock_repo.get_issue.return_value.assignees = []

        with pytest.raises(MigrationError, match="did not accept 'ghost' as assignee of issue #12"):
            add_assignee(mock_repo, 12, "ghost")

    def test_close_issue(self) -> None:
        """Closing edits the issue state."""
        mock_repo = Mock()

        close_issue(mock_repo, 12)

        mock_repo.get_issue.assert_called_once_with(12)
        mock_repo.get_issue.return_value.edit.assert_called_once_with(state="closed")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
