# src/jobfeed/pipeline/runs.py
"""
The two end-to-end collection runs.

Google CSE (budgeted, paged):
    load daily state -> preflight -> role x page tasks on the scheduler
    -> per item: seen? -> cheap filter -> JSON-LD enrichment -> strict filter
    -> save state + write CSV (always, in `finally`)

LinkedIn guest search (unbudgeted, faceted):
    role x experience x remote tasks -> early dedupe + cheap filter per task
    -> descriptions on a second, smaller pool -> strict filter -> final dedupe
    -> CSV (+ seen ids, always saved in `finally`)

Collaborators (page fetch, enrichment) can be injected; by default they are
built from `Settings` on top of one shared httpx client.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

import httpx

from jobfeed.clients import enrich, google_cse, linkedin
from jobfeed.config import Settings
from jobfeed.io.csvfiles import write_rows
from jobfeed.io.state import load_quota_state, load_seen_ids, save_quota_state, save_seen_ids
from jobfeed.models import CANONICAL_FIELDS, GOOGLE_FIELDS, CanonicalJob, GoogleJobRow, JobPostingMeta, LinkedInCard
from jobfeed.pipeline.context import QuotaBudget, RunContext, SeenRegistry
from jobfeed.pipeline.filter import (
    filter_new,
    google_pre_filter,
    google_strict_filter,
    pre_filter,
    strict_filter,
)
from jobfeed.pipeline.identity import company_title_key, resolve, unique_by
from jobfeed.pipeline.normalize import google_row, linkedin_row
from jobfeed.pipeline.quota import QueryController
from jobfeed.pipeline.scheduler import FacetedTask, PagedTask, ScheduleReport, faceted_tasks, paged_tasks, run_tasks

log = logging.getLogger(__name__)

FetchPage = Callable[[str, int], Dict]
Enrich = Callable[[str], JobPostingMeta]
Query = Callable[[FacetedTask], List[LinkedInCard]]
Describe = Callable[[str], str]


@dataclass
class GoogleRunResult:
    rows: List[GoogleJobRow] = field(default_factory=list)
    queries_made: int = 0
    budget: int = 0
    stopped: Optional[str] = None
    out_path: Optional[Path] = None


@dataclass
class LinkedInRunResult:
    collected: int = 0
    pre_filtered: int = 0
    rows: List[CanonicalJob] = field(default_factory=list)
    written: int = 0
    out_path: Optional[Path] = None


def run_google(
    settings: Settings,
    *,
    fetch_page: Optional[FetchPage] = None,
    preflight: Optional[Callable[[], None]] = None,
    enrich_page: Optional[Enrich] = None,
    sleep: Callable[[float], None] = time.sleep,
    today: Optional[str] = None,
) -> GoogleRunResult:
    """
    Raises FatalConfigError before anything is written when credentials are
    missing or the preflight call is rejected. A daily-quota stop is not an
    error: whatever was collected is saved.
    """
    settings.require_google()

    state = load_quota_state(settings.state_file, today)
    budget = QuotaBudget(limit=settings.daily_query_budget, used=state.queries_made)
    result = GoogleRunResult(queries_made=state.queries_made, budget=settings.daily_query_budget)
    if budget.exhausted:
        log.info("Daily budget already consumed (%d/%d). Try again tomorrow.", state.queries_made, settings.daily_query_budget)
        result.stopped = "budget"
        return result

    with ExitStack() as stack:
        if fetch_page is None or preflight is None or enrich_page is None:
            client = stack.enter_context(httpx.Client(timeout=10, headers=google_cse.default_headers()))
            controller = QueryController(sleep=sleep)
            key, cx = settings.google_key, settings.google_cx
            if preflight is None:
                preflight = lambda: google_cse.preflight(key, cx, controller=controller, client=client)
            if fetch_page is None:
                fetch_page = lambda role, start: google_cse.fetch_page(
                    key, cx, role, start,
                    controller=controller,
                    client=client,
                    per_page=settings.results_per_page,
                    date_restrict=settings.date_restrict,
                )
            if enrich_page is None:
                page_client = stack.enter_context(enrich.new_client())
                enrich_page = lambda url: enrich.from_json_ld(url, client=page_client)

        # FatalConfigError here aborts the run with no output and no state change
        preflight()

        context = RunContext(budget=budget, seen=SeenRegistry(state.seen_urls))

        def run_task(task: PagedTask) -> List[GoogleJobRow]:
            data = fetch_page(task.role, task.start) or {}
            rows: List[GoogleJobRow] = []
            for item in data.get("items") or []:
                if not item.get("link"):
                    continue
                key = resolve(item)
                if key in context.seen or not google_pre_filter(item):
                    continue
                if not context.seen.claim(key):
                    continue  # another worker got there first
                row = google_row(item, enrich_page(item["link"]))
                if google_strict_filter(row["title"], row["description"]):
                    rows.append(row)
            log.info("Kept %d rows for %s", len(rows), task.label())
            return rows

        tasks = paged_tasks(settings.google_roles, settings.max_pages_per_role, settings.results_per_page)
        report = ScheduleReport()
        try:
            run_tasks(
                tasks,
                run_task,
                context,
                workers=settings.google_concurrency,
                pause_sec=settings.query_pause_sec,
                sleep=sleep,
                report=report,
            )
        finally:
            state.queries_made = context.budget.used
            state.seen_urls = context.seen.snapshot()
            save_quota_state(settings.state_file, state)

            result.rows = unique_by(report.results, resolve)
            result.queries_made = state.queries_made
            result.stopped = report.stopped
            result.out_path = settings.google_csv
            write_rows(settings.google_csv, result.rows, GOOGLE_FIELDS, bom=True)
            log.info("Saved %d rows -> %s", len(result.rows), settings.google_csv)
            log.info("Queries used today: %d/%d", state.queries_made, settings.daily_query_budget)

    return result


def run_linkedin(
    settings: Settings,
    *,
    query: Optional[Query] = None,
    describe: Optional[Describe] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> LinkedInRunResult:
    roles = [t.lower() for t in settings.linkedin_titles]
    target = settings.linkedin_location.lower()
    seen_ids = load_seen_ids(settings.seen_file) if settings.persist_seen else set()
    result = LinkedInRunResult()

    with ExitStack() as stack:
        if query is None or describe is None:
            client = stack.enter_context(linkedin.new_client())
            controller = QueryController(sleep=sleep)
            if query is None:
                query = lambda t: linkedin.query(
                    t.role,
                    controller=controller,
                    client=client,
                    location=settings.linkedin_location,
                    date_window=settings.linkedin_date_window,
                    sort=settings.linkedin_sort,
                    experience=t.experience,
                    remote_only=t.remote_only,
                    limit=settings.linkedin_limit,
                )
            if describe is None:
                describe = lambda url: enrich.linkedin_description(url, client=client, sleep=sleep)

        context = RunContext(budget=QuotaBudget(limit=None), seen=SeenRegistry())
        counts = {"collected": 0}
        counts_lock = threading.Lock()

        def run_task(task: FacetedTask) -> List[LinkedInCard]:
            cards = query(task)
            log.info("Fetched %d %s @ %s", len(cards), task.label(), settings.linkedin_location)
            kept = []
            for c in cards:
                if not context.seen.claim(resolve(c)):
                    continue
                if pre_filter(c, roles, target):
                    kept.append(c)
            with counts_lock:
                counts["collected"] += len(cards)
            return kept

        try:
            report = run_tasks(
                faceted_tasks(settings.linkedin_titles, settings.linkedin_experiences),
                run_task,
                context,
                workers=settings.query_concurrency,
                pause_sec=settings.query_pause_sec,
                sleep=sleep,
            )
            pre = report.results
            result.collected = counts["collected"]
            result.pre_filtered = len(pre)
            log.info("Collected %d cards, %d unique and pre-filtered", result.collected, len(pre))
            if not pre:
                log.info("Nothing matched the pre-filter.")
                return result

            enrich.fetch_descriptions(
                pre,
                describe,
                concurrency=settings.desc_concurrency,
                pause_sec=settings.desc_batch_pause_sec,
                sleep=sleep,
            )
            kept = [c for c in pre if strict_filter(c, c.get("description"), roles, target)]
            if settings.soft_dedupe_by_company_title:
                kept = unique_by(kept, lambda c: company_title_key(c.get("company"), c.get("position")))
            kept = unique_by(kept, resolve)
            result.rows = [linkedin_row(c, roles) for c in kept]
            log.info("Kept after strict filters + dedupe: %d", len(result.rows))

            output = result.rows
            if settings.incremental_mode:
                output = filter_new(result.rows, seen_ids)
                log.info("New since last run: %d", len(output))

            if output:
                result.written = write_rows(settings.linkedin_csv, output, CANONICAL_FIELDS)
                result.out_path = settings.linkedin_csv
                log.info("Saved %d jobs -> %s", result.written, settings.linkedin_csv)
            else:
                log.info("Nothing new to save.")
        finally:
            if settings.persist_seen:
                seen_ids.update(r["id"] for r in result.rows if r["id"])
                save_seen_ids(settings.seen_file, seen_ids)

    return result
