# src/jobfeed/clients/google_cse.py

"""
Plain-function client for the Google Custom Search JSON API ("CSE").

Design goals (ELI5):
- Keep *all* HTTP details here (URL, params, timeouts, error decoding) so the
  rest of the code never builds a CSE request by hand.
- Do NOT retry here. Every call is handed to a QueryController, which decides
  whether a failure is worth a retry, means "quota is gone for today", or
  means "your key is broken, stop everything".
- Return raw JSON (dict) from Google; normalization happens elsewhere.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

import httpx

from jobfeed.errors import ApiError, TaskFailed
from jobfeed.pipeline.quota import QueryController

CSE_URL = "https://www.googleapis.com/customsearch/v1"

# Location tokens: India + "remote but in India" signals (OR'ed into the query).
INDIA_REMOTE = [
    "India", "Remote India", "Remote - India", "Remote in India", "Anywhere in India",
    "Work from India", "IST", "India Standard Time", "UTC+5:30", "Asia/Kolkata",
    "Bengaluru", "Bangalore", "Hyderabad", "Pune", "Chennai", "Mumbai", "Navi Mumbai",
    "Gurgaon", "Gurugram", "Noida", "Delhi", "NCR", "Kolkata", "Ahmedabad", "Jaipur",
    "Indore", "Kochi",
]

# Words that suggest a posting is open to people with 0-2 years of experience.
FRESHER_TERMS = [
    "fresher", "freshers", "graduate", "trainee", "entry level", "entry-level",
    "0-1 year", "0-2 year", "junior", "intern",
]

# ATS hosts as site: operators, plus generic careers-page fallbacks.
# Searching these (instead of the open web) keeps aggregators out of the results.
ATS_QUERY_SITES = [
    "site:boards.greenhouse.io", "site:jobs.lever.co", "site:*.myworkdayjobs.com",
    "site:jobs.ashbyhq.com", "site:smartrecruiters.com", "site:jobs.icims.com",
    "site:*.taleo.net", "site:*.successfactors.com", "site:*.oraclecloud.com",
    "site:apply.workable.com", "site:*.bamboohr.com", "site:*.recruitee.com",
    "site:jobs.jobvite.com", "site:*.pinpoint.xyz", "site:*.teamtailor.com",
    "site:*.breezy.hr", "site:*.eightfold.ai",
    "inurl:/careers/", "inurl:/career/", "inurl:/jobs/", "inurl:/job/",
]

# Ask Google for only the fields we read; smaller responses, same quota cost.
SEARCH_FIELDS = "items(link,title,snippet,displayLink),searchInformation/totalResults"


# ---- Internal helpers ---------------------------------------------------------

def default_headers() -> Dict[str, str]:
    """
    Minimal, explicit headers. (Some APIs behave better when a UA is set.)
    """
    return {"User-Agent": "jobfeed/0.1 (+https://github.com/)", "Accept": "application/json"}


def _error_message(resp: httpx.Response) -> str:
    """
    Dig the human-readable message out of a CSE error response.

    CSE errors look like {"error": {"code": 429, "message": "..."}}. The message
    matters: "Queries per day" in a 429 is how we tell the daily cap apart from
    a short burst limit.
    """
    try:
        err = resp.json().get("error") or {}
        msg = err.get("message") if isinstance(err, dict) else None
    except (ValueError, AttributeError):
        msg = None
    return msg or resp.reason_phrase or "CSE error"


def _get_json(params: Dict[str, object], *, client: Optional[httpx.Client] = None, timeout: float = 10) -> Dict:
    """
    Do one HTTP GET and return the decoded JSON.

    - 4xx/5xx -> ApiError(status, message); the controller classifies it.
    - 200 with a body that is not JSON (captive portals, proxy error pages)
      -> TaskFailed; retrying the same page will not fix it, so skip it.
    """
    # Reuse the caller's client when given (connection pooling across pages).
    if client is None:
        with httpx.Client(timeout=timeout, headers=default_headers()) as c:
            return _get_json(params, client=c)
    resp = client.get(CSE_URL, params=params)
    if resp.status_code >= 400:
        raise ApiError(resp.status_code, _error_message(resp))
    try:
        return resp.json()
    except ValueError as e:
        raise TaskFailed(f"CSE returned a non-JSON body ({resp.headers.get('content-type', 'unknown type')})") from e


def or_group(items: Iterable[str]) -> str:
    """("a" OR "b c") with multi-word terms quoted."""
    return "(" + " OR ".join(f'"{x}"' if " " in x else x for x in items) + ")"


def build_query(role: str) -> str:
    """
    The full search string for one role:
        <role> (fresher terms) (India/remote terms) (ATS sites)
    Google ANDs the groups together and ORs inside each group.
    """
    return " ".join([role, or_group(FRESHER_TERMS), or_group(INDIA_REMOTE), "(" + " OR ".join(ATS_QUERY_SITES) + ")"])


# ---- Public API (call these from the pipeline) --------------------------------

def preflight(key: str, cx: str, *, controller: QueryController, client: Optional[httpx.Client] = None) -> None:
    """
    One minimal query to catch a bad key / disabled API / bad cx before any
    scheduling. Raises FatalConfigError (or TaskFailed when Google is down).

    Why bother? Without it, a typo in GOOGLE_CX would only show up after the
    workers started, and every one of them would fail the same way.
    """
    params = {
        "key": key,
        "cx": cx,
        "q": "test",
        "num": 1,
        "fields": "searchInformation/totalResults",
    }
    controller.execute(lambda: _get_json(params, client=client), label="preflight")


def fetch_page(
    key: str,
    cx: str,
    role: str,
    start: int,
    *,
    controller: QueryController,
    client: Optional[httpx.Client] = None,
    per_page: int = 10,
    date_restrict: str = "d7",
) -> Dict:
    """
    Fetch ONE page of results for `role` and return the raw JSON (dict).

    Arguments (ELI5):
    - key/cx: your API key and Programmable Search Engine id.
    - role: the job title to search for, e.g. "Junior Java Developer".
    - start: CSE's 1-based result offset (1, 11, 21, ...).
    - per_page: results per page; 10 is the CSE maximum.
    - date_restrict: "d1" = last day, "d7" = last week, "w2" = two weeks.

    Returns:
    - The JSON response as a dict (keys like "items", "searchInformation").
      A page with no hits simply has no "items" key.
    """
    params = {
        "key": key,
        "cx": cx,
        "q": build_query(role),
        "num": per_page,
        "start": start,
        "gl": "IN",  # geolocation boost: India
        "lr": "lang_en",
        "safe": "off",
        "dateRestrict": date_restrict,
        "fields": SEARCH_FIELDS,
    }
    # One budgeted call; the controller may retry it on 5xx / burst 429s.
    return controller.execute(lambda: _get_json(params, client=client), label=f"{role} start={start}")
