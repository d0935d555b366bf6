# src/jobfeed/errors.py
"""
Error classes shared by the clients, the retry controller and the scheduler.

How each class is treated:
- FatalConfigError: abort the whole run before any scheduling (exit code 1).
- DailyQuotaExceeded: stop issuing new queries, keep what we have, exit 0.
- TaskFailed: one query gave up after retries; skip it and keep going.
"""

from __future__ import annotations


class JobFeedError(Exception):
    """Base class for everything the pipeline raises on purpose."""


class ApiError(JobFeedError):
    """
    A remote call came back with an HTTP error.

    Clients raise this with the status code and the best error message they
    could dig out of the response body; the controller decides what it means.
    """

    def __init__(self, status: int, message: str = ""):
        self.status = int(status)
        self.message = message or ""
        super().__init__(f"{self.status} {self.message}".strip())


class FatalConfigError(JobFeedError):
    """Bad credentials or a malformed request. Retrying will not help."""


class DailyQuotaExceeded(JobFeedError):
    """The upstream API reported that the per-day cap has been reached."""


class TaskFailed(JobFeedError):
    """A single query failed (possibly after retries). Other tasks carry on."""
