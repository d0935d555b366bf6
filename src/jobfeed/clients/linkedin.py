# src/jobfeed/clients/linkedin.py

"""
Client for LinkedIn's public (logged-out) job search listing.

The guest endpoint returns an HTML fragment of <li> job cards, 25 per page.
`query` pages through it until the cards run out or `limit` is reached.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import httpx
from bs4 import BeautifulSoup

from jobfeed.errors import ApiError, FatalConfigError, TaskFailed
from jobfeed.models import LinkedInCard
from jobfeed.pipeline.quota import QueryController

log = logging.getLogger(__name__)

SEARCH_URL = "https://www.linkedin.com/jobs-guest/jobs/api/seeMoreJobPostings/search"
PAGE_SIZE = 25

EXPERIENCE_CODES = {
    "internship": "1",
    "entry level": "2",
    "associate": "3",
    "senior": "4",
    "director": "5",
    "executive": "6",
}
DATE_CODES = {"24hr": "r86400", "past week": "r604800", "past month": "r2592000"}
SORT_CODES = {"recent": "DD", "relevant": "R"}
REMOTE_CODE = "2"


def _default_headers() -> Dict[str, str]:
    return {"User-Agent": "Mozilla/5.0", "Accept-Language": "en-US,en;q=0.9"}


def new_client(timeout: float = 20) -> httpx.Client:
    return httpx.Client(timeout=timeout, headers=_default_headers(), follow_redirects=True)


def build_params(
    keyword: str,
    *,
    location: str,
    date_window: str = "24hr",
    sort: str = "recent",
    experience: Optional[str] = None,
    remote_only: bool = False,
    start: int = 0,
) -> Dict[str, str]:
    params = {"keywords": keyword, "location": location, "start": str(start)}
    if date_window in DATE_CODES:
        params["f_TPR"] = DATE_CODES[date_window]
    if sort in SORT_CODES:
        params["sortBy"] = SORT_CODES[sort]
    if experience and experience in EXPERIENCE_CODES:
        params["f_E"] = EXPERIENCE_CODES[experience]
    if remote_only:
        params["f_WT"] = REMOTE_CODE
    return params


def _text(el) -> str:
    return " ".join(el.get_text(" ", strip=True).split()) if el is not None else ""


def parse_cards(html: str) -> List[LinkedInCard]:
    """Turn the search fragment into cards. Cards without a title or link are skipped."""
    soup = BeautifulSoup(html or "", "html.parser")
    out: List[LinkedInCard] = []
    for li in soup.find_all("li"):
        link = li.select_one("a.base-card__full-link") or li.select_one("a[href*='/jobs/view/']")
        position = _text(li.select_one(".base-search-card__title"))
        if link is None or not position:
            continue
        posted = li.find("time")
        out.append({
            "position": position,
            "company": _text(li.select_one(".base-search-card__subtitle")),
            "location": _text(li.select_one(".job-search-card__location")),
            "date": (posted.get("datetime") or "") if posted is not None else "",
            "agoTime": _text(posted),
            "salary": _text(li.select_one(".job-search-card__salary-info")),
            "jobUrl": (link.get("href") or "").strip(),
        })
    return out


def _get_html(params: Dict[str, str], *, client: httpx.Client) -> str:
    resp = client.get(SEARCH_URL, params=params)
    if resp.status_code >= 400:
        raise ApiError(resp.status_code, resp.reason_phrase)
    return resp.text


def query(
    keyword: str,
    *,
    controller: QueryController,
    client: httpx.Client,
    location: str = "India",
    date_window: str = "24hr",
    sort: str = "recent",
    experience: Optional[str] = None,
    remote_only: bool = False,
    limit: int = 1000,
) -> List[LinkedInCard]:
    """
    All cards for one (keyword, experience, remote) facet combination.

    A failure on the first page fails the task; a failure on a later page
    keeps what was already collected. The guest endpoint has no credentials,
    so a 400/401/403 here is a blocked request, not a config problem: it is
    treated like any other failed page.
    """
    cards: List[LinkedInCard] = []
    start = 0
    while len(cards) < limit:
        params = build_params(
            keyword,
            location=location,
            date_window=date_window,
            sort=sort,
            experience=experience,
            remote_only=remote_only,
            start=start,
        )
        try:
            html = controller.execute(lambda: _get_html(params, client=client), label=f"{keyword} start={start}")
        except (TaskFailed, FatalConfigError) as e:
            if start == 0:
                raise TaskFailed(str(e)) from e
            log.warning("Stopping pagination for %r at start=%d: %s", keyword, start, e)
            break
        page = parse_cards(html)
        if not page:
            break
        cards.extend(page)
        start += PAGE_SIZE
    return cards[:limit]
