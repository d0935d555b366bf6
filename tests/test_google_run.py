import json

import httpx
import pytest

from jobfeed.clients import google_cse
from jobfeed.config import Settings
from jobfeed.errors import DailyQuotaExceeded, FatalConfigError
from jobfeed.io.csvfiles import read_rows
from jobfeed.pipeline.quota import BackoffPolicy, QueryController
from jobfeed.pipeline.runs import run_google

TODAY = "2025-10-01"


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        google_key="k",
        google_cx="cx",
        google_roles=["Junior Developer", "QA Engineer"],
        max_pages_per_role=2,
        google_concurrency=1,
        query_pause_sec=0,
        state_file=tmp_path / ".cache" / "state.json",
        data_dir=tmp_path / "data",
    )


def _item(n, title="Junior Developer - Acme", snippet="Freshers welcome. Bengaluru, India"):
    return {
        "link": f"https://boards.greenhouse.io/acme/jobs/{n}?gh_src=abc",
        "title": title,
        "snippet": snippet,
        "displayLink": "boards.greenhouse.io",
    }


class FakeSearch:
    """Page fetcher: one item per page, ids follow the call order."""

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on or {}

    def __call__(self, role, start):
        self.calls.append((role, start))
        n = len(self.calls)
        if n in self.fail_on:
            raise self.fail_on[n]
        return {"items": [_item(n)]}


def _enrich(url):
    return {"company": "Acme", "location": "Bengaluru", "posted_at": "2025-10-01T07:20:13Z", "description": "Freshers welcome"}


def _write_state(settings, made, urls=()):
    settings.state_file.parent.mkdir(parents=True, exist_ok=True)
    settings.state_file.write_text(json.dumps({"date": TODAY, "queries_made": made, "seen_urls": list(urls)}))


def _read_state(settings):
    return json.loads(settings.state_file.read_text())


def test_full_budget_makes_no_calls_and_writes_nothing(settings):
    _write_state(settings, 90)
    search, preflights = FakeSearch(), []

    res = run_google(settings, fetch_page=search, preflight=lambda: preflights.append(1), enrich_page=_enrich, today=TODAY)

    assert search.calls == []
    assert preflights == []
    assert res.stopped == "budget"
    assert not settings.google_csv.exists()
    assert _read_state(settings)["queries_made"] == 90


def test_one_query_left_runs_exactly_one(settings):
    _write_state(settings, 89)
    search = FakeSearch()

    res = run_google(settings, fetch_page=search, preflight=lambda: None, enrich_page=_enrich, today=TODAY)

    assert len(search.calls) == 1
    assert res.queries_made == 90
    assert res.stopped == "budget"
    assert _read_state(settings)["queries_made"] == 90
    rows = read_rows(settings.google_csv)
    assert len(rows) == 1
    assert rows[0]["company"] == "Acme"
    assert rows[0]["posted_at"] == "2025-10-01"
    assert rows[0]["source"] == "google_jobs"


def test_runs_all_tasks_within_budget(settings):
    search = FakeSearch()
    res = run_google(settings, fetch_page=search, preflight=lambda: None, enrich_page=_enrich, today=TODAY)

    assert search.calls == [
        ("Junior Developer", 1),
        ("Junior Developer", 11),
        ("QA Engineer", 1),
        ("QA Engineer", 11),
    ]
    assert res.stopped is None
    assert len(res.rows) == 4
    state = _read_state(settings)
    assert state["date"] == TODAY
    assert state["queries_made"] == 4
    assert "https://boards.greenhouse.io/acme/jobs/1" in state["seen_urls"]


def test_daily_quota_mid_run_keeps_partial_results(settings):
    search = FakeSearch(fail_on={2: DailyQuotaExceeded("Queries per day")})

    res = run_google(settings, fetch_page=search, preflight=lambda: None, enrich_page=_enrich, today=TODAY)

    assert len(search.calls) == 2
    assert res.stopped == "daily_quota"
    assert len(res.rows) == 1
    assert _read_state(settings)["queries_made"] == 1
    assert len(read_rows(settings.google_csv)) == 1


def test_preflight_rejection_writes_nothing(settings):
    def bad_preflight():
        raise FatalConfigError("API key not valid")

    search = FakeSearch()
    with pytest.raises(FatalConfigError):
        run_google(settings, fetch_page=search, preflight=bad_preflight, enrich_page=_enrich, today=TODAY)
    assert search.calls == []
    assert not settings.google_csv.exists()
    assert not settings.state_file.exists()


def test_missing_credentials_is_fatal(settings):
    settings.google_key = ""
    with pytest.raises(FatalConfigError):
        run_google(settings, fetch_page=FakeSearch(), preflight=lambda: None, enrich_page=_enrich, today=TODAY)


def test_urls_seen_earlier_today_are_skipped(settings):
    _write_state(settings, 0, ["https://boards.greenhouse.io/acme/jobs/1"])
    enriched = []

    def enrich(url):
        enriched.append(url)
        return _enrich(url)

    settings.google_roles = ["Junior Developer"]
    settings.max_pages_per_role = 1
    res = run_google(settings, fetch_page=FakeSearch(), preflight=lambda: None, enrich_page=enrich, today=TODAY)

    assert enriched == []
    assert res.rows == []
    assert res.queries_made == 1
    assert read_rows(settings.google_csv) == []


def test_strict_filter_drops_senior_description(settings):
    settings.google_roles = ["Junior Developer"]
    settings.max_pages_per_role = 1

    res = run_google(
        settings,
        fetch_page=FakeSearch(),
        preflight=lambda: None,
        enrich_page=lambda url: {"description": "Minimum 5 years experience in Java"},
        today=TODAY,
    )
    assert res.rows == []


def test_yesterdays_state_is_reset(settings):
    settings.state_file.parent.mkdir(parents=True)
    settings.state_file.write_text(json.dumps({"date": "2025-09-30", "queries_made": 90, "seen_urls": []}))
    search = FakeSearch()

    run_google(settings, fetch_page=search, preflight=lambda: None, enrich_page=_enrich, today=TODAY)

    assert len(search.calls) == 4
    assert _read_state(settings) == {
        "date": TODAY,
        "queries_made": 4,
        "seen_urls": [f"https://boards.greenhouse.io/acme/jobs/{n}" for n in range(1, 5)],
    }


def test_non_json_page_is_skipped_and_later_pages_still_run(settings):
    settings.google_roles = ["Junior Developer"]
    settings.max_pages_per_role = 3
    starts = []

    def handler(request):
        start = request.url.params["start"]
        starts.append(start)
        if start == "1":
            return httpx.Response(200, text="<html>captive portal</html>", headers={"content-type": "text/html"})
        return httpx.Response(200, json={"items": [_item(start)]})

    controller = QueryController(BackoffPolicy(jitter=0), sleep=lambda s: None)
    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        res = run_google(
            settings,
            fetch_page=lambda role, start: google_cse.fetch_page("k", "cx", role, start, controller=controller, client=client),
            preflight=lambda: None,
            enrich_page=_enrich,
            today=TODAY,
        )

    assert starts == ["1", "11", "21"]
    assert len(res.rows) == 2
    # the failed page costs nothing
    assert _read_state(settings)["queries_made"] == 2
    assert len(read_rows(settings.google_csv)) == 2
