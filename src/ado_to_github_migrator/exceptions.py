"""
Custom exception classes for the Azure DevOps to GitHub migration tool.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base exception for migration errors."""


class ConfigurationError(MigrationError):
    """Raised when credentials or required settings are missing."""


class FetchError(MigrationError):
    """Raised when a work item cannot be retrieved from Azure DevOps."""


class NotFoundError(FetchError):
    """Raised when the requested work item does not exist."""


class InvalidTitleError(MigrationError):
    """Raised when a work item has no title and cannot become an issue."""


class SubmissionError(MigrationError):
    """Raised when the issue import request does not yield a usable job handle."""
