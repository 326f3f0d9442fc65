"""
Azure DevOps to GitHub Migration Tool

Migrates Azure DevOps work items to GitHub issues through the issue import
API, keeping title, content, open/closed state and assignees, and leaving an
audit trail on both sides.
"""

from __future__ import annotations

from .cli import main
from .exceptions import (
    ConfigurationError,
    FetchError,
    InvalidTitleError,
    MigrationError,
    NotFoundError,
    SubmissionError,
)
from .migrator import WorkItemMigrator
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "FetchError",
    "InvalidTitleError",
    "MigrationError",
    "NotFoundError",
    "SubmissionError",
    "WorkItemMigrator",
    "main",
    "setup_logging",
]
