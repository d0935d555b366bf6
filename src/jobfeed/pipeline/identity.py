# src/jobfeed/pipeline/identity.py
"""
Job identity: turn a job record into a stable dedupe key.

Priority chain:
1. source-native id found in the URL (LinkedIn job ids),
2. canonical URL (scheme + host + path, no query/fragment/trailing slash),
3. normalized "company|title" slug.

Works on raw source records (LinkedIn cards use `jobUrl`/`position`, Google
items use `link`) as well as on canonical rows (`job_url`/`title`).
"""

from __future__ import annotations

import re
from typing import Callable, Dict, Hashable, Iterable, List, Tuple, TypeVar
from urllib.parse import urlsplit

T = TypeVar("T")

# /jobs/view/junior-dev-at-acme-3712345678  or  /jobs/view/3712345678/
_VIEW_ID_RE = re.compile(r"/view/(?:[^/?#]*-)?(\d{6,})")
_CURRENT_ID_RE = re.compile(r"currentJobId=(\d{6,})")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

URL_KEYS = ("job_url", "jobUrl", "link", "url")
TITLE_KEYS = ("title", "position")


def _first(record: Dict, keys: Iterable[str]) -> str:
    for k in keys:
        v = record.get(k)
        if v is not None and str(v).strip():
            return str(v).strip()
    return ""


def extract_job_id(url: str | None) -> str:
    """Return the numeric LinkedIn job id embedded in `url`, or ""."""
    if not url:
        return ""
    m = _VIEW_ID_RE.search(url) or _CURRENT_ID_RE.search(url)
    return m.group(1) if m else ""


def canonical_url(url: str | None) -> str:
    """
    Strip query string, fragment and trailing slash.

    https://X.com/jobs/1/?utm=ref#top -> https://x.com/jobs/1
    """
    u = (url or "").strip()
    if not u:
        return ""
    try:
        parts = urlsplit(u)
    except ValueError:
        # e.g. "http://[broken/jobs/1" (unbalanced IPv6 bracket)
        parts = None
    if parts is not None and parts.scheme and parts.netloc:
        out = f"{parts.scheme.lower()}://{parts.netloc.lower()}{parts.path}"
    else:
        # not an absolute URL; just cut the tail off
        out = u.split("#", 1)[0].split("?", 1)[0]
    return out.rstrip("/")


def slug(text: str | None) -> str:
    return _NON_ALNUM_RE.sub(" ", (text or "").lower()).strip()


def company_title_key(company: str | None, title: str | None) -> str:
    c, t = slug(company), slug(title)
    if not c and not t:
        return ""
    return f"{c}|{t}"


def resolve(record: Dict) -> str:
    """
    Dedupe key for one record. Pure, never raises.

    Returns "" when the record has neither a URL nor a company/title; callers
    must not dedupe on an empty key.
    """
    url = _first(record, URL_KEYS)
    return (
        extract_job_id(url)
        or canonical_url(url)
        or company_title_key(record.get("company"), _first(record, TITLE_KEYS))
    )


def dedupe_keys(record: Dict) -> Tuple[str, str, str]:
    """The (id, canonical url, company|title) triple used by the merge stage."""
    return (
        str(record.get("id") or "").strip(),
        canonical_url(_first(record, URL_KEYS)),
        company_title_key(record.get("company"), _first(record, TITLE_KEYS)),
    )


def unique_by(records: Iterable[T], key_fn: Callable[[T], Hashable]) -> List[T]:
    """
    Keep the first record for each key, preserving order.
    Records with an empty key are always kept (they cannot collide).
    """
    seen = set()
    out: List[T] = []
    for r in records:
        k = key_fn(r)
        if not k:
            out.append(r)
            continue
        if k in seen:
            continue
        seen.add(k)
        out.append(r)
    return out
