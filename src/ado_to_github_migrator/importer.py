"""Issue creation through GitHub's asynchronous issue import API.

An import request returns a job URL. The job is not visible right away
(the status endpoint answers 404 for a short while), then reports ``pending``
or ``importing`` until it ends up ``imported`` (with the new issue's URL) or
``failed``.

Polling is split into a pure transition function, ``next_import_status()``,
which maps one status response to the next job status, and
``poll_import_job()``, which drives it with an injectable status fetch and
sleep. Waiting is bounded: after ``MAX_POLL_ATTEMPTS`` polls without a
terminal status the job is marked ``TIMED_OUT``. A status check that fails
in transport counts as one transient poll.

    SUBMITTED ──► NOT_FOUND_YET ──► PENDING / IMPORTING ──► IMPORTED
                       │                    │
                       └────────────────────┴──────────► FAILED
                       (attempts exhausted) ───────────► TIMED_OUT
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final
from urllib.parse import urlparse

import requests
from github import GithubException

from . import github_utils as ghu
from .exceptions import SubmissionError
from .models import ImportJob, ImportStatus

if TYPE_CHECKING:
    from collections.abc import Callable

    from github import Github

    from .models import IssuePayload

logger: logging.Logger = logging.getLogger(__name__)

IMPORT_MEDIA_TYPE: Final[str] = "application/vnd.github.golden-comet-preview+json"
MAX_POLL_ATTEMPTS: Final[int] = 60
POLL_INTERVAL_SECONDS: Final[float] = 1.0

_BODY_STATUSES: Final[dict[str, ImportStatus]] = {
    "pending": ImportStatus.PENDING,
    "importing": ImportStatus.IMPORTING,
    "imported": ImportStatus.IMPORTED,
    "failed": ImportStatus.FAILED,
}


@dataclass(frozen=True)
class StatusResponse:
    """One answer of the import status endpoint."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)


def next_import_status(status_code: int, body: dict[str, Any] | None) -> ImportStatus:
    """Map an import status response to the job's next status.

    404 means the job is not visible yet. Server errors and unknown status
    strings are transient and keep the job pending. Any other client error
    fails the job.
    """
    if status_code == 404:
        return ImportStatus.NOT_FOUND_YET
    if status_code >= 500:
        return ImportStatus.PENDING
    if status_code >= 400:
        return ImportStatus.FAILED
    raw_status = str((body or {}).get("status", "")).lower()
    return _BODY_STATUSES.get(raw_status, ImportStatus.PENDING)


def _failure_detail(response: StatusResponse) -> str:
    errors = response.body.get("errors") or []
    if errors:
        parts = []
        for error in errors:
            if isinstance(error, dict):
                where = "/".join(str(error[k]) for k in ("location", "resource", "field") if error.get(k))
                parts.append(f"{where}: {error.get('code', 'error')} ({error.get('value', '')})")
            else:
                parts.append(str(error))
        return "; ".join(parts)
    message = response.body.get("message")
    return str(message) if message else f"HTTP {response.status_code}"


def poll_import_job(
    job: ImportJob,
    fetch_status: Callable[[str], StatusResponse],
    *,
    max_attempts: int = MAX_POLL_ATTEMPTS,
    interval: float = POLL_INTERVAL_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> ImportJob:
    """Poll an import job until it is imported, failed, or out of attempts.

    The first poll happens immediately; later polls are ``interval`` seconds
    apart. The job is updated in place and returned.
    """
    for attempt in range(1, max_attempts + 1):
        response = fetch_status(job.status_url)
        job.attempts = attempt
        job.status = next_import_status(response.status_code, response.body)
        logger.debug(f"Import job {job.status_url} poll {attempt}: {job.status.value}")

        if job.status is ImportStatus.IMPORTED:
            job.issue_url = response.body.get("issue_url")
            if not job.issue_url:
                job.status = ImportStatus.FAILED
                job.detail = "Import reported success without an issue URL"
            return job
        if job.status is ImportStatus.FAILED:
            job.detail = _failure_detail(response)
            return job

        if attempt < max_attempts:
            sleep(interval)

    job.status = ImportStatus.TIMED_OUT
    job.detail = f"Import did not finish after {max_attempts} status checks"
    return job


def _is_usable_url(url: object) -> bool:
    if not isinstance(url, str):
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc) and bool(parsed.path.strip("/"))


class IssueImporter:
    """Submits issue import requests and tracks the resulting jobs."""

    _client: Github
    _endpoint: str

    def __init__(self, client: Github, repo_path: str) -> None:
        owner, name = ghu.parse_repo_path(repo_path)
        self._client = client
        self._endpoint = f"/repos/{owner}/{name}/import/issues"

    def _request(self, verb: str, url: str, payload: dict[str, Any] | None = None) -> StatusResponse:
        # The import API is not exposed by PyGithub's classes; the requester
        # keeps its authentication and rate limiting.
        status, _, data = self._client.requester.requestJson(
            verb, url, input=payload, headers={"Accept": IMPORT_MEDIA_TYPE}
        )
        body: Any = json.loads(data) if data else {}
        return StatusResponse(status_code=status, body=body if isinstance(body, dict) else {})

    def submit(self, payload: IssuePayload) -> ImportJob:
        """Send one import request and return the job in SUBMITTED status.

        Raises:
            SubmissionError: If the request fails or no usable status URL is returned
        """
        try:
            response = self._request("POST", self._endpoint, payload.to_import_request())
        except (GithubException, requests.RequestException, ValueError) as e:
            msg = f"Issue import request failed: {e}"
            raise SubmissionError(msg) from e

        if response.status_code not in (200, 201, 202):
            msg = f"Issue import request rejected: {response.status_code} - {_failure_detail(response)}"
            raise SubmissionError(msg)

        status_url = response.body.get("url")
        if not _is_usable_url(status_url):
            msg = f"Issue import response has no usable status URL: {status_url!r}"
            raise SubmissionError(msg)

        logger.debug(f"Submitted import for '{payload.title}': {status_url}")
        return ImportJob(status_url=status_url)

    def fetch_status(self, status_url: str) -> StatusResponse:
        """Check an import job once.

        A failed check is reported as a server error, so it counts as one
        transient poll and the job may still finish on a later attempt.
        """
        try:
            return self._request("GET", status_url)
        except (GithubException, requests.RequestException, ValueError) as e:
            logger.warning(f"Import status check for {status_url} failed: {e}")
            return StatusResponse(status_code=503, body={"message": str(e)})

    def wait(self, job: ImportJob, *, sleep: Callable[[float], None] = time.sleep) -> ImportJob:
        """Poll the job to a terminal status."""
        return poll_import_job(job, self.fetch_status, sleep=sleep)
