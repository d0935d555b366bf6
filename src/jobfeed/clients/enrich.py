# src/jobfeed/clients/enrich.py
"""
Best-effort page enrichment. Nothing in here raises: a failed fetch or an
unparseable page just means "no extra data".
"""

from __future__ import annotations

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional

import httpx
from bs4 import BeautifulSoup
from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt, wait_incrementing

from jobfeed.models import JobPostingMeta
from jobfeed.pipeline.identity import extract_job_id

log = logging.getLogger(__name__)

LINKEDIN_POSTING_URL = "https://www.linkedin.com/jobs-guest/jobs/api/jobPosting/{job_id}"
DESCRIPTION_SELECTORS = (
    ".show-more-less-html__markup",
    "#job-details",
    "section.description",
    "div.description",
)
_FETCH_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


def _default_headers() -> dict:
    return {"User-Agent": "Mozilla/5.0", "Accept-Language": "en-US,en;q=0.9"}


def new_client(timeout: float = 10) -> httpx.Client:
    return httpx.Client(timeout=timeout, headers=_default_headers(), follow_redirects=True)


def _html_to_text(html: str) -> str:
    return " ".join(BeautifulSoup(html, "html.parser").get_text(" ").split())


def _iter_objects(block) -> Iterable[dict]:
    """Flatten a JSON-LD block: list, single object or {"@graph": [...]}."""
    items = block if isinstance(block, list) else [block]
    for it in items:
        if not isinstance(it, dict):
            continue
        graph = it.get("@graph")
        if isinstance(graph, list):
            yield from (g for g in graph if isinstance(g, dict))
        yield it


def _is_job_posting(obj: dict) -> bool:
    t = obj.get("@type")
    return t == "JobPosting" or (isinstance(t, list) and "JobPosting" in t)


def _locality(loc) -> str:
    if not isinstance(loc, dict):
        return ""
    addr = loc.get("address")
    if isinstance(addr, dict):
        return str(addr.get("addressLocality") or "").strip()
    return ""


def _posting_meta(obj: dict) -> JobPostingMeta:
    meta: JobPostingMeta = {}
    org = obj.get("hiringOrganization")
    company = org.get("name") if isinstance(org, dict) else org
    if isinstance(company, str) and company.strip():
        meta["company"] = company.strip()
    if isinstance(obj.get("title"), str) and obj["title"].strip():
        meta["title"] = obj["title"].strip()
    if isinstance(obj.get("datePosted"), str) and obj["datePosted"].strip():
        meta["posted_at"] = obj["datePosted"].strip()

    loc = obj.get("jobLocation")
    if isinstance(loc, list):
        location = ", ".join(x for x in (_locality(l) for l in loc) if x)
    else:
        location = _locality(loc)
    if location:
        meta["location"] = location

    if isinstance(obj.get("description"), str) and obj["description"].strip():
        meta["description"] = _html_to_text(obj["description"])
    return meta


def parse_json_ld(html: str) -> JobPostingMeta:
    """First JobPosting found in the page's ld+json scripts, else {}."""
    soup = BeautifulSoup(html or "", "html.parser")
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            block = json.loads(script.string or script.get_text() or "")
        except ValueError:
            continue
        for obj in _iter_objects(block):
            if _is_job_posting(obj):
                return _posting_meta(obj)
    return {}


def from_json_ld(url: str, *, client: Optional[httpx.Client] = None, timeout: float = 10) -> JobPostingMeta:
    if not url:
        return {}
    try:
        if client is None:
            with new_client(timeout) as c:
                resp = c.get(url)
        else:
            resp = client.get(url)
        resp.raise_for_status()
    except _FETCH_ERRORS as e:
        log.debug("Enrichment fetch failed for %s: %s", url, e)
        return {}
    return parse_json_ld(resp.text)


def parse_linkedin_description(html: str) -> str:
    soup = BeautifulSoup(html or "", "html.parser")
    for sel in DESCRIPTION_SELECTORS:
        el = soup.select_one(sel)
        if el is not None:
            text = " ".join(el.get_text(" ").split())
            if text:
                return text
    return ""


def linkedin_description(
    job_url: str,
    *,
    client: httpx.Client,
    retries: int = 2,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Description text for a LinkedIn job URL; "" when it cannot be had."""
    job_id = extract_job_id(job_url)
    if not job_id:
        return ""
    url = LINKEDIN_POSTING_URL.format(job_id=job_id)

    def fetch() -> str:
        resp = client.get(url)
        resp.raise_for_status()
        return resp.text

    retrying = Retrying(
        stop=stop_after_attempt(retries + 1),
        wait=wait_incrementing(start=0.6, increment=0.4),
        retry=retry_if_exception_type(_FETCH_ERRORS),
        sleep=sleep,
    )
    try:
        html = retrying(fetch)
    except RetryError as e:
        log.debug("Description fetch failed for %s: %s", job_id, e.last_attempt.exception())
        return ""
    return parse_linkedin_description(html)


def fetch_descriptions(
    cards: List[dict],
    fetch: Callable[[str], str],
    *,
    concurrency: int = 6,
    pause_sec: float = 0.25,
    sleep: Callable[[float], None] = time.sleep,
) -> List[dict]:
    """
    Fill `description` on each card, `concurrency` at a time, pausing between
    batches. Cards are updated in place and returned.
    """
    log.info("Fetching descriptions for %d jobs...", len(cards))
    width = max(1, int(concurrency))
    with ThreadPoolExecutor(max_workers=width, thread_name_prefix="describe") as pool:
        for i in range(0, len(cards), width):
            batch = cards[i : i + width]
            for card, desc in zip(batch, pool.map(lambda c: fetch(c.get("jobUrl") or ""), batch)):
                card["description"] = desc or ""
            log.info("  Descriptions %d/%d", min(i + width, len(cards)), len(cards))
            if pause_sec > 0:
                sleep(pause_sec)
    return cards
