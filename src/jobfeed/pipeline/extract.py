# src/jobfeed/pipeline/extract.py
"""Pull contacts and skill keywords out of free-text job descriptions."""

from __future__ import annotations

import re
from typing import List

SKILL_LIST = [
    "java", "python", "golang", "c", "c++", "javascript", "typescript",
    "spring", "spring boot", "hibernate",
    "html", "css", "react", "angular", "node", "express",
    "sql", "mysql", "postgres", "mongodb",
    "git", "github", "rest", "rest api", "microservices",
    "docker", "kubernetes", "aws", "gcp", "azure",
    "testing", "selenium", "jest", "pytest",
]

_EMAIL_RE = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.I)
# Indian mobile numbers, optional +91 prefix
_PHONE_RE = re.compile(r"(?:\+91[\s-]?)?[6-9]\d{4}[-\s]?\d{5}\b")
_WS_RE = re.compile(r"\s+")


def _skill_re(skill: str) -> re.Pattern:
    # \b does not work next to "+" (c++), so use explicit non-word lookarounds
    return re.compile(rf"(?<![\w+]){re.escape(skill)}(?![\w+])", re.I)


_SKILL_PATTERNS = [(s, _skill_re(s)) for s in SKILL_LIST]


def _unique(items) -> List[str]:
    return list(dict.fromkeys(items))


def extract_emails(text: str | None) -> List[str]:
    if not text:
        return []
    return _unique(m.strip() for m in _EMAIL_RE.findall(text))


def extract_phones(text: str | None) -> List[str]:
    if not text:
        return []
    out = []
    for m in _PHONE_RE.findall(text):
        digits = re.sub(r"[^\d+]", "", m)
        if re.fullmatch(r"\d{10}", digits):
            digits = "+91" + digits
        out.append(digits)
    return _unique(out)


def extract_skills(text: str | None) -> List[str]:
    if not text:
        return []
    return [s for s, pat in _SKILL_PATTERNS if pat.search(text)]


def clean_text(s: str | None, max_len: int = 1500) -> str:
    """Collapse whitespace and cap length (with an ellipsis)."""
    if not s:
        return ""
    t = _WS_RE.sub(" ", str(s)).strip()
    return t[: max_len - 1] + "…" if len(t) > max_len else t
