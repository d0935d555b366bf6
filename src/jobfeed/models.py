# src/jobfeed/models.py
"""
Lightweight typed dictionaries for the records that flow through the pipeline.

Everything is a plain dict with type hints; nothing is validated at runtime.
"""

from typing import TypedDict


class LinkedInCard(TypedDict, total=False):
    """One job card as scraped from the LinkedIn guest search endpoint."""

    position: str
    company: str
    location: str
    date: str  # ISO date from the card's <time datetime=...>
    agoTime: str  # "3 hours ago"
    salary: str
    jobUrl: str

    # filled in by the description fetch
    description: str


class SearchItem(TypedDict, total=False):
    """One Google CSE result item (only the fields we request)."""

    link: str
    title: str
    snippet: str
    displayLink: str


class JobPostingMeta(TypedDict, total=False):
    """Best-effort metadata pulled from a page's JSON-LD JobPosting block."""

    company: str
    title: str
    posted_at: str
    location: str
    description: str


class GoogleJobRow(TypedDict):
    source: str
    g_job_id: str
    company: str
    title: str
    location: str
    posted_at: str
    via: str
    job_url: str
    description: str


class CanonicalJob(TypedDict):
    """
    The one shape used for LinkedIn output and for the merged files.
    All values are strings; missing data is "".
    """

    id: str
    company: str
    title: str
    matched_role: str
    location: str
    is_remote: str  # "Yes" / "No"
    date_posted: str
    ago_time: str
    salary: str
    job_url: str
    contact_emails: str  # "; "-joined
    contact_phones: str
    skills: str
    description: str


CANONICAL_FIELDS = list(CanonicalJob.__annotations__)
GOOGLE_FIELDS = list(GoogleJobRow.__annotations__)
