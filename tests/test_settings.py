"""
Tests for run configuration objects.
"""

import pytest

from ado_to_github_migrator.exceptions import ConfigurationError
from ado_to_github_migrator.settings import AdoConfig, GithubConfig, MigrationOptions, SelectorOptions


@pytest.mark.unit
class TestAdoConfig:
    """Test Azure DevOps connection settings."""

    def test_project_url(self) -> None:
        """The project URL is built from base URL, organization and project."""
        config = AdoConfig("test-org", "test-project", "tok", base_url="https://ado.example.com/")
        assert config.project_url == "https://ado.example.com/test-org/test-project"

    def test_default_base_url(self) -> None:
        """The default base URL is dev.azure.com."""
        assert AdoConfig("o", "p", "tok").project_url == "https://dev.azure.com/o/p"

    def test_missing_token(self) -> None:
        """An empty token is a configuration error."""
        with pytest.raises(ConfigurationError, match="ADO_TOKEN"):
            AdoConfig("o", "p", "")

    @pytest.mark.parametrize(("organization", "project"), [("", "p"), ("o", "  ")])
    def test_missing_organization_or_project(self, organization: str, project: str) -> None:
        """Blank organization or project is a configuration error."""
        with pytest.raises(ConfigurationError, match="non-empty"):
            AdoConfig(organization, project, "tok")

    def test_token_not_in_repr(self) -> None:
        """The token does not appear in the repr."""
        assert "secret" not in repr(AdoConfig("o", "p", "secret"))


@pytest.mark.unit
class TestGithubConfig:
    """Test GitHub connection settings."""

    def test_missing_token(self) -> None:
        """An empty token is a configuration error."""
        with pytest.raises(ConfigurationError, match="GITHUB_TOKEN"):
            GithubConfig("owner/repo", "")


@pytest.mark.unit
class TestDefaults:
    """Test option defaults."""

    def test_migration_options(self) -> None:
        """Optional pipeline steps are off by default."""
        options = MigrationOptions()
        assert not options.add_comments
        assert not options.production_run
        assert options.marker_tag == "copied-to-github"

    def test_selector_options(self) -> None:
        """Migrated and closed items are excluded by default."""
        selector = SelectorOptions()
        assert selector.exclude_migrated
        assert not selector.include_closed
        assert "Test Case" in selector.excluded_types
