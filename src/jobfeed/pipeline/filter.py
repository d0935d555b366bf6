# src/jobfeed/pipeline/filter.py
"""
Keep/drop heuristics for junior postings.

Two tiers share the same vocabulary:
- pre_filter: title + location only, runs before any page is fetched;
- strict_filter: title + fetched description, runs after enrichment.

Google results get their own cheap gate (aggregator domains, career-page URL
shape, fresher tokens) because a search hit is not a structured job card.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Set
from urllib.parse import urlsplit

from jobfeed.config import DEFAULT_LINKEDIN_TITLES

ROLE_PHRASES = tuple(t.lower() for t in DEFAULT_LINKEDIN_TITLES)
NEGATIVE_TITLE_WORDS = ("senior", "lead", "staff", "principal", "architect", "manager", "sr.")
TARGET_GEO = "india"

# Absence of any stated experience requirement keeps the posting.
ACCEPT_WHEN_UNSTATED = True

_REMOTE_RE = re.compile(r"remote|work\s*from\s*home|wfh", re.I)

_Y = r"(?:year|yr|yrs|years)"
_RANGE = r"\s*(?:-|–|to)\s*"
_OPEN_ENDED = r"(?:\+|plus|or\s*more|and\s*above|min(?:imum)?|at\s*least)"

_SENIOR_PATTERNS = [
    re.compile(rf"\b2\s*{_OPEN_ENDED}\s*{_Y}\b"),
    re.compile(rf"\b1{_RANGE}[3-9]\s*{_Y}\b"),
    re.compile(rf"\b(?:[3-9]|1[0-9])\s*(?:\+|plus)?\s*{_Y}\b"),
    re.compile(rf"\b(?:min|minimum|at\s*least)\s*(?:[3-9]|1[0-9])\s*{_Y}\b"),
    re.compile(rf"\b(?:[3-9]|1[0-9])\s*-\s*\d+\s*{_Y}\b"),
    re.compile(rf"\bexperience\s*[:\-]?\s*(?:[3-9]|1[0-9])\s*{_Y}\b"),
]

_JUNIOR_PATTERNS = [
    re.compile(r"\bfreshers?\b"),
    re.compile(r"\bgraduates?\b"),
    re.compile(r"\bentry[-\s]?level\b"),
    re.compile(rf"\b[01]{_RANGE}2\s*{_Y}\b"),
    re.compile(rf"\b0{_RANGE}1\s*{_Y}\b"),
    re.compile(rf"\b(?:up\s*to|upto|under|less\s*than)\s*2\s*{_Y}\b"),
    re.compile(r"\b(?:6|12)\s*(?:months|mos|mo)\b"),
    re.compile(rf"\b2\s*(?:year|yr|yrs)\b(?!\s*{_OPEN_ENDED})"),
    re.compile(rf"\b0\s*{_Y}\b"),
    re.compile(rf"\b1\s*(?:year|yr|yrs)\b(?!\s*{_OPEN_ENDED})"),
]

# --- Google search hits -------------------------------------------------------

BLOCKED_DOMAINS = (
    "linkedin.", "indeed.", "naukri.", "glassdoor.", "shine.", "bayt.",
    "adzuna.", "apna.", "prosple.", "instahyre.", "cutshort.", "angel.co",
    "wellfound", "timesjobs.", "foundit.", "monster.", "ziprecruiter.",
    "remoterocketship.",
)

ATS_HOSTS = (
    "boards.greenhouse.io", "jobs.lever.co", "myworkdayjobs.com", "jobs.ashbyhq.com",
    "smartrecruiters.com", "jobs.icims.com", "taleo.net", "successfactors.com",
    "oraclecloud.com", "apply.workable.com", "bamboohr.com", "recruitee.com",
    "jobs.jobvite.com", "pinpoint.xyz", "teamtailor.com", "breezy.hr", "eightfold.ai",
)
_CAREER_PATH_RE = re.compile(r"/careers?/|/jobs?/", re.I)

INCLUDE_TOKENS = (
    "fresher", "freshers", "graduate", "trainee", "entry level", "entry-level",
    "0-1 year", "0 to 1 year", "0–1 year", "0-2 year", "0 to 2 year", "0–2 year",
    "junior", "intern",
)
EXCLUDE_TOKENS = (
    "senior", "sr.", "sr ", "lead", "principal", "architect", "manager", "head",
    "director", " engineer ii", " engineer iii", " engineer iv", " ii -",
    " iii -", " iv -", " mid level", "mid-level", "staff",
)


def _low(s: str | None) -> str:
    return (s or "").lower()


# --- shared predicates --------------------------------------------------------

def title_has_senior_words(title: str | None) -> bool:
    t = _low(title)
    return any(w in t for w in NEGATIVE_TITLE_WORDS)


def title_likely_match(title: str | None, roles: Iterable[str] = ROLE_PHRASES) -> bool:
    t = _low(title)
    if not t or title_has_senior_words(t):
        return False
    return any(p in t for p in roles)


def role_matches(title: str | None, description: str | None, roles: Iterable[str] = ROLE_PHRASES) -> bool:
    t, d = _low(title), _low(description)
    if title_has_senior_words(t):
        return False
    return any(p in t or p in d for p in roles)


def matched_role(title: str | None, description: str | None, roles: Iterable[str] = ROLE_PHRASES) -> str:
    t, d = _low(title), _low(description)
    return next((p for p in roles if p in t or p in d), "")


def mentions_remote(*texts: str | None) -> bool:
    return any(_REMOTE_RE.search(t or "") for t in texts)


def is_target_or_remote_quick(job: Dict, target: str = TARGET_GEO) -> bool:
    loc, title = _low(job.get("location")), _low(job.get("position") or job.get("title"))
    return target in loc or "remote" in loc or "remote" in title


def is_target_or_remote(job: Dict, description: str | None, target: str = TARGET_GEO) -> bool:
    if is_target_or_remote_quick(job, target):
        return True
    return mentions_remote(description)


def classify_experience(text: str | None) -> str:
    """
    "senior" if any exclusion pattern matches (these win over junior phrasing),
    "junior" if an explicit junior pattern matches, else "unstated".
    """
    s = _low(text)
    if any(p.search(s) for p in _SENIOR_PATTERNS):
        return "senior"
    if any(p.search(s) for p in _JUNIOR_PATTERNS):
        return "junior"
    return "unstated"


def experience_allowed(text: str | None) -> bool:
    kind = classify_experience(text)
    if kind == "senior":
        return False
    if kind == "junior":
        return True
    return ACCEPT_WHEN_UNSTATED


# --- tiers ---------------------------------------------------------------------

def pre_filter(job: Dict, roles: Iterable[str] = ROLE_PHRASES, target: str = TARGET_GEO) -> bool:
    """Cheap pass on a raw LinkedIn card: no network needed."""
    title = job.get("position") or job.get("title")
    return title_likely_match(title, roles) and is_target_or_remote_quick(job, target)


def strict_filter(job: Dict, description: str | None, roles: Iterable[str] = ROLE_PHRASES, target: str = TARGET_GEO) -> bool:
    title = job.get("position") or job.get("title") or ""
    return (
        is_target_or_remote(job, description, target)
        and role_matches(title, description, roles)
        and experience_allowed(f"{title} {description or ''}")
    )


def domain_of(url: str | None) -> str:
    try:
        return (urlsplit(url or "").hostname or "").lower()
    except ValueError:
        return ""


def is_blocked(url: str | None) -> bool:
    d = domain_of(url)
    return any(b in d for b in BLOCKED_DOMAINS)


def looks_like_career_or_ats(url: str | None) -> bool:
    u = _low(url)
    return any(h in u for h in ATS_HOSTS) or bool(_CAREER_PATH_RE.search(u))


def fresher_positive(title: str | None, snippet: str | None) -> bool:
    t, d = _low(title), _low(snippet)
    inc = any(k in t or k in d for k in INCLUDE_TOKENS)
    exc = any(k in t or k in d for k in EXCLUDE_TOKENS)
    return inc and not exc


def google_pre_filter(item: Dict) -> bool:
    url = item.get("link") or ""
    if not url or is_blocked(url) or not looks_like_career_or_ats(url):
        return False
    return fresher_positive(item.get("title"), item.get("snippet"))


def google_strict_filter(title: str | None, description: str | None) -> bool:
    return not title_has_senior_words(title) and experience_allowed(f"{title or ''} {description or ''}")


def filter_new(jobs: Iterable[Dict], processed_ids: Set[str]) -> List[Dict]:
    """
    Keep only jobs whose 'id' (as a string) is NOT in processed_ids.
    Jobs without an id are dropped: they cannot be tracked across runs.
    """
    out: List[Dict] = []
    for j in jobs:
        jid = j.get("id")
        if not jid:
            continue
        if str(jid) not in processed_ids:
            out.append(j)
    return out
