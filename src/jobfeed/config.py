# src/jobfeed/config.py
"""
Runtime settings, read from environment variables (the CLI loads `.env` first).

Nothing here talks to the network; `Settings.require_google()` is the only
check and it raises FatalConfigError when the CSE credentials are missing.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from jobfeed.errors import FatalConfigError

DEFAULT_LINKEDIN_TITLES = [
    "Software Engineer", "Software Developer",
    "Junior Software Engineer", "Junior Software Developer",
    "Associate Software Engineer", "Associate Software Developer",
    "Java Developer", "Junior Java Developer",
    "Python Developer", "Graduate Engineer Trainee", "Software Trainee", "Junior Developer",
    "Software Development Intern",
    "Backend Engineer", "Frontend Engineer", "Full Stack Engineer",
    "Software Testing", "QA Engineer", "Trainee Engineer",
]

DEFAULT_GOOGLE_ROLES = (
    "Junior Java Developer, Junior Software Developer, Junior Developer, "
    "Graduate Engineer Trainee, Software Trainee, QA Engineer, QA Tester, "
    "Frontend Engineer, Backend Engineer, Full Stack Engineer, Python Developer"
)

# LinkedIn experience facets covering 0-2 years
DEFAULT_EXPERIENCES = ["internship", "entry level", "associate"]


def _split_csv(raw: str) -> List[str]:
    return [s.strip() for s in raw.split(",") if s.strip()]


def _as_bool(raw: Optional[str], default: bool) -> bool:
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _as_int(raw: Optional[str], default: int) -> int:
    try:
        return int(raw) if raw not in (None, "") else default
    except ValueError:
        return default


def _as_float(raw: Optional[str], default: float) -> float:
    try:
        return float(raw) if raw not in (None, "") else default
    except ValueError:
        return default


@dataclass
class Settings:
    # --- Google CSE ---
    google_key: str = ""
    google_cx: str = ""
    date_restrict: str = "d7"  # d1 = 24h, d7 = 7 days, w2 = 2 weeks
    daily_query_budget: int = 90  # free tier is ~100/day
    max_pages_per_role: int = 2
    results_per_page: int = 10  # CSE max
    google_roles: List[str] = field(default_factory=lambda: _split_csv(DEFAULT_GOOGLE_ROLES))
    google_concurrency: int = 3
    state_file: Path = Path(".cache/google_cse_state.json")

    # --- LinkedIn ---
    linkedin_titles: List[str] = field(default_factory=lambda: list(DEFAULT_LINKEDIN_TITLES))
    linkedin_experiences: List[str] = field(default_factory=lambda: list(DEFAULT_EXPERIENCES))
    linkedin_location: str = "India"
    linkedin_date_window: str = "24hr"
    linkedin_sort: str = "recent"
    linkedin_limit: int = 1000  # per query, across pages
    query_concurrency: int = 3
    desc_concurrency: int = 6
    desc_batch_pause_sec: float = 0.25
    soft_dedupe_by_company_title: bool = False
    persist_seen: bool = True
    incremental_mode: bool = False
    seen_file: Path = Path("seen_ids.json")

    # --- shared ---
    query_pause_sec: float = 0.25
    data_dir: Path = Path("data")
    google_csv_name: str = "google_jobs.csv"
    linkedin_csv_name: str = "results.csv"
    n8n_webhook_url: str = ""
    n8n_auth_token: str = ""

    @property
    def google_csv(self) -> Path:
        return self.data_dir / self.google_csv_name

    @property
    def linkedin_csv(self) -> Path:
        return self.data_dir / self.linkedin_csv_name

    def require_google(self) -> None:
        if not self.google_key or not self.google_cx:
            raise FatalConfigError("Missing GOOGLE_CSE_KEY or GOOGLE_CX (set them in .env).")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    s = Settings()
    s.google_key = env.get("GOOGLE_CSE_KEY", "")
    s.google_cx = env.get("GOOGLE_CX", "")
    s.date_restrict = env.get("DATE_RESTRICT") or s.date_restrict
    s.daily_query_budget = _as_int(env.get("DAILY_QUERY_BUDGET"), s.daily_query_budget)
    s.max_pages_per_role = _as_int(env.get("MAX_PAGES_PER_ROLE"), s.max_pages_per_role)
    if env.get("ROLES"):
        s.google_roles = _split_csv(env["ROLES"])
    s.google_concurrency = _as_int(env.get("GOOGLE_CONCURRENCY"), s.google_concurrency)
    if env.get("STATE_FILE"):
        s.state_file = Path(env["STATE_FILE"])

    if env.get("LINKEDIN_TITLES"):
        s.linkedin_titles = _split_csv(env["LINKEDIN_TITLES"])
    s.linkedin_location = env.get("LINKEDIN_LOCATION") or s.linkedin_location
    s.linkedin_limit = _as_int(env.get("LINKEDIN_LIMIT"), s.linkedin_limit)
    s.query_concurrency = _as_int(env.get("QUERY_CONCURRENCY"), s.query_concurrency)
    s.desc_concurrency = _as_int(env.get("DESC_CONCURRENCY"), s.desc_concurrency)
    s.soft_dedupe_by_company_title = _as_bool(env.get("SOFT_DEDUPE"), s.soft_dedupe_by_company_title)
    s.persist_seen = _as_bool(env.get("PERSIST_SEEN"), s.persist_seen)
    s.incremental_mode = _as_bool(env.get("INCREMENTAL_MODE"), s.incremental_mode)
    if env.get("SEEN_FILE"):
        s.seen_file = Path(env["SEEN_FILE"])

    s.query_pause_sec = _as_float(env.get("QUERY_PAUSE_SEC"), s.query_pause_sec)
    if env.get("DATA_DIR"):
        s.data_dir = Path(env["DATA_DIR"])
    s.google_csv_name = env.get("OUT_CSV") or s.google_csv_name
    s.n8n_webhook_url = env.get("N8N_WEBHOOK_URL", "")
    s.n8n_auth_token = env.get("N8N_AUTH_TOKEN", "")
    return s
