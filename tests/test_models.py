"""
Tests for data models.
"""

import pytest

from ado_to_github_migrator.models import (
    BatchReport,
    EffectResult,
    Identity,
    ImportJob,
    ImportStatus,
    MigrationResult,
    Outcome,
    WorkItem,
    WorkItemComment,
)


@pytest.mark.unit
class TestWorkItemFromApi:
    """Test building work items from REST responses."""

    def test_fields_are_mapped(self, make_work_item) -> None:
        """Reference-named fields land on the matching attributes."""
        item = make_work_item(
            42,
            **{
                "System.Tags": "backend; needs-triage ;",
                "System.AssignedTo": {"displayName": "Ann Lee", "uniqueName": "ann.lee@example.com"},
                "Microsoft.VSTS.Common.AcceptanceCriteria": "criteria",
            },
        )

        assert item.id == 42
        assert item.title == "Fix crash"
        assert item.is_bug
        assert item.tags == ["backend", "needs-triage"]
        assert item.assigned_to == Identity("Ann Lee", "ann.lee@example.com")
        assert item.acceptance_criteria == "criteria"
        assert item.area_path == "test-project\\Team A"
        assert item.url.endswith("/_workitems/edit/42")

    def test_missing_fields_are_absent(self) -> None:
        """Fields missing from the response are empty or None."""
        item = WorkItem.from_api({"id": 7, "fields": {}}, "https://example/7")

        assert item.title == ""
        assert item.type == ""
        assert item.description is None
        assert item.repro_steps is None
        assert item.assigned_to is None
        assert item.tags == []
        assert not item.is_bug

    def test_missing_fields_section(self) -> None:
        """A response without a fields section still yields a work item."""
        item = WorkItem.from_api({"id": "8"}, "https://example/8")
        assert item.id == 8
        assert item.created_by is None


@pytest.mark.unit
class TestIdentity:
    """Test parsing identity references."""

    def test_from_reference(self) -> None:
        """An identity reference keeps display and unique name."""
        identity = Identity.from_api({"displayName": "Jane Doe", "uniqueName": "jane.doe@example.com"})
        assert identity == Identity("Jane Doe", "jane.doe@example.com")
        assert str(identity) == "Jane Doe"

    def test_from_legacy_string(self) -> None:
        """The legacy "Name <email>" form is split."""
        assert Identity.from_api("Jane Doe <jane.doe@example.com>") == Identity("Jane Doe", "jane.doe@example.com")

    def test_from_plain_name(self) -> None:
        """A plain name has no unique name."""
        assert Identity.from_api("Jane Doe") == Identity("Jane Doe", None)

    def test_empty(self) -> None:
        """Missing identities are None."""
        assert Identity.from_api(None) is None
        assert Identity.from_api({}) is None


@pytest.mark.unit
class TestWorkItemComment:
    """Test parsing discussion comments."""

    def test_from_api(self) -> None:
        """Text, author and date are read from a comment response."""
        comment = WorkItemComment.from_api(
            {
                "id": 3,
                "text": "<p>Looks good</p>",
                "createdBy": {"displayName": "Jane Doe"},
                "createdDate": "2024-01-15T10:00:00Z",
                "url": "https://dev.azure.com/o/p/_apis/wit/workItems/1/comments/3",
            }
        )
        assert comment.text == "<p>Looks good</p>"
        assert comment.author == "Jane Doe"
        assert comment.created_date == "2024-01-15T10:00:00Z"


@pytest.mark.unit
class TestImportJob:
    """Test import job helpers."""

    def test_issue_number_from_url(self) -> None:
        """The issue number is the last segment of the issue URL."""
        job = ImportJob("https://api.github.com/repos/o/r/import/issues/1", issue_url="https://api.github.com/repos/o/r/issues/42")
        assert job.issue_number == 42

    def test_issue_number_absent(self) -> None:
        """No issue URL or a non-numeric tail gives no number."""
        assert ImportJob("https://x").issue_number is None
        assert ImportJob("https://x", issue_url="https://api.github.com/repos/o/r/issues/abc").issue_number is None

    @pytest.mark.parametrize(
        ("issue_url", "expected"),
        [
            ("https://api.github.com/repos/o/r/issues/42", "https://github.com/o/r/issues/42"),
            ("https://ghe.example.com/api/v3/repos/o/r/issues/42", "https://ghe.example.com/o/r/issues/42"),
            ("https://github.com/o/r/issues/42", "https://github.com/o/r/issues/42"),
            (None, None),
        ],
    )
    def test_issue_html_url(self, issue_url: str | None, expected: str | None) -> None:
        """The browser URL is derived from the API issue URL."""
        job = ImportJob("https://x", issue_url=issue_url)
        assert job.issue_html_url == expected

    def test_new_job_is_submitted(self) -> None:
        """A new job starts out submitted."""
        job = ImportJob("https://x")
        assert job.status is ImportStatus.SUBMITTED
        assert not job.status.is_terminal

    @pytest.mark.parametrize(
        ("status", "terminal"),
        [
            (ImportStatus.NOT_FOUND_YET, False),
            (ImportStatus.PENDING, False),
            (ImportStatus.IMPORTING, False),
            (ImportStatus.IMPORTED, True),
            (ImportStatus.FAILED, True),
            (ImportStatus.TIMED_OUT, True),
        ],
    )
    def test_terminal_statuses(self, status: ImportStatus, terminal: bool) -> None:
        """Only imported, failed and timed out are terminal."""
        assert status.is_terminal is terminal


@pytest.mark.unit
class TestResults:
    """Test per-item results and the batch report."""

    def test_warning_effect_recorded_as_warning(self) -> None:
        """A failed effect adds a warning without changing the outcome."""
        result = MigrationResult(1, Outcome.CREATED)
        result.add_effect(EffectResult.success("close"))
        result.add_effect(EffectResult.warning("assign", "user not found"))

        assert result.outcome is Outcome.CREATED
        assert result.warnings == ["assign: user not found"]
        assert [e.ok for e in result.effects] == [True, False]

    def test_batch_report_counts(self) -> None:
        """Counts per outcome; any failed item makes the batch unsuccessful."""
        report = BatchReport(
            [
                MigrationResult(1, Outcome.CREATED),
                MigrationResult(2, Outcome.SKIPPED),
                MigrationResult(3, Outcome.CREATED),
            ]
        )
        assert report.migrated_count == 2
        assert report.count(Outcome.SKIPPED) == 1
        assert report.success

        report.results.append(MigrationResult(4, Outcome.FAILED))
        assert not report.success
