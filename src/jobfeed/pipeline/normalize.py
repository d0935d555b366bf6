# src/jobfeed/pipeline/normalize.py
"""
Convert source records into our standardized row shapes.

This module handles the messy details of mapping each source's structure to
our clean, consistent data model:

- linkedin_row: scraped LinkedIn card (+ fetched description) -> CanonicalJob
- google_row:   CSE search hit (+ JSON-LD metadata) -> GoogleJobRow
- to_canonical: any CSV row from either source -> CanonicalJob, using a fixed
  list of accepted column names per field (first non-empty one wins).
"""

from __future__ import annotations

import base64
import json
from typing import Dict, Iterable, List, Mapping, Sequence

from jobfeed.models import CanonicalJob, GoogleJobRow, JobPostingMeta, LinkedInCard, SearchItem
from jobfeed.pipeline.extract import clean_text, extract_emails, extract_phones, extract_skills
from jobfeed.pipeline.filter import ROLE_PHRASES, matched_role, mentions_remote
from jobfeed.pipeline.identity import canonical_url, extract_job_id

# Accepted source column names per canonical field, in priority order.
# Both sources' CSVs (and older exports with different headers) go through this
# one table, so adding a new spelling of a column is a one-line change.
FIELD_ALIASES: Dict[str, Sequence[str]] = {
    # older exports call the LinkedIn id "li_job_id"; prefer it when present
    "id": ("li_job_id", "job_id", "id"),
    "company": ("company", "company_name", "org", "employer"),
    "title": ("title", "job_title", "position"),
    "matched_role": ("matched_role", "role", "standard_title"),
    "location": ("location", "job_location", "city"),
    "is_remote": ("is_remote", "remote", "remote_friendly"),
    "date_posted": ("date_posted", "posted_at", "date"),
    "ago_time": ("ago_time", "posted_ago"),
    "salary": ("salary", "compensation", "pay"),
    "job_url": ("job_url", "url", "link", "href"),
    "contact_emails": ("contact_emails", "emails"),
    "contact_phones": ("contact_phones", "phones"),
    "skills": ("skills", "skills_hint"),
    "description": ("description", "desc", "snippet", "summary"),
}


def _created_ymd(raw: str | None) -> str:
    # JSON-LD datePosted is usually "2025-09-26" or "2025-09-26T07:20:13Z"
    if not raw:
        return ""
    return str(raw).split("T", 1)[0]  # "YYYY-MM-DD"


def pick(row: Mapping, aliases: Iterable[str], default: str = "") -> str:
    """
    First non-empty value among `aliases`, trimmed, as a string.

    Empty strings and None are skipped, so a blank "id" column does not hide
    a filled "li_job_id" one.
    """
    for k in aliases:
        v = row.get(k)
        if v is None:
            continue
        s = str(v).strip()
        if s:
            return s
    return default


def to_canonical(row: Mapping) -> CanonicalJob:
    """
    Map any source row onto the canonical columns.
    Every field is present and every value is a string ("" when missing).
    """
    return {field: pick(row, aliases) for field, aliases in FIELD_ALIASES.items()}  # type: ignore[return-value]


def linkedin_row(card: LinkedInCard, roles: Iterable[str] = ROLE_PHRASES) -> CanonicalJob:
    """
    Transform one scraped LinkedIn card into a canonical row.

    The card only has what the search listing shows; the description (fetched
    separately) is where emails, phone numbers and skills come from.
    """
    d = card.get("description") or ""
    url = card.get("jobUrl") or ""
    title = card.get("position") or ""
    return {
        # LinkedIn's numeric job id; fall back to the cleaned URL if the link is odd
        "id": extract_job_id(url) or canonical_url(url),
        "company": card.get("company") or "",
        "title": title,

        # Which of our search phrases this posting matched (title first, then description)
        "matched_role": matched_role(title, d, roles),
        "location": card.get("location") or "",
        "is_remote": "Yes" if mentions_remote(card.get("location"), d) else "No",

        # The card's <time datetime=...> plus the human "3 hours ago" text
        "date_posted": card.get("date") or "",
        "ago_time": card.get("agoTime") or "",
        "salary": card.get("salary") or "",

        # Strip tracking params (?refId=..., &trackingId=...) so links compare equal
        "job_url": canonical_url(url),

        # Multi-valued fields are "; "-joined so they survive a CSV round trip
        "contact_emails": "; ".join(extract_emails(d)),
        "contact_phones": "; ".join(extract_phones(d)),
        "skills": "; ".join(extract_skills(d)),
        "description": d,
    }


def google_job_id(title: str, company: str, url: str) -> str:
    """
    Google hits have no native id, so build a stable one from what we know.
    Base64 of a compact JSON object: same inputs, same id, on every run.
    """
    payload = json.dumps(
        {"job_title": title, "company_name": company, "url": url},
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def google_row(item: SearchItem, meta: JobPostingMeta | None = None) -> GoogleJobRow:
    """
    Transform one CSE hit (+ whatever JSON-LD the page had) into a Google row.

    JSON-LD is preferred when present; otherwise we fall back to what the
    search result itself shows (display link as company, snippet as text).
    """
    meta = meta or {}
    url = item.get("link") or ""
    title = item.get("title") or ""
    via = item.get("displayLink") or ""

    # hiringOrganization.name, else the site's host ("www." dropped)
    company = meta.get("company") or (via[4:] if via.startswith("www.") else via)
    return {
        "source": "google_jobs",
        "g_job_id": google_job_id(title, company, url),
        "company": company,
        "title": title,
        "location": meta.get("location") or "",
        "posted_at": _created_ymd(meta.get("posted_at")),  # e.g. "2025-09-24"
        "via": via,
        "job_url": url,
        "description": clean_text(meta.get("description") or item.get("snippet") or ""),
    }


def normalize_rows(rows: Iterable[Mapping]) -> List[CanonicalJob]:
    return [to_canonical(r) for r in rows]
