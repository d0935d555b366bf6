# src/jobfeed/pipeline/scheduler.py
"""
Run a fixed list of query tasks on a small pool of worker threads.

Each worker loops:
  reserve one budget unit -> take a task -> run it -> pause -> repeat
and stops as soon as either the queue is empty or the shared budget says no.

A DailyQuotaExceeded from any task exhausts the shared budget so all workers
stop at their next task boundary (in-flight tasks finish normally).
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Sequence

from jobfeed.errors import DailyQuotaExceeded, FatalConfigError, TaskFailed
from jobfeed.pipeline.context import RunContext

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PagedTask:
    role: str
    start: int

    def label(self) -> str:
        return f'"{self.role}" start={self.start}'


@dataclass(frozen=True)
class FacetedTask:
    role: str
    experience: Optional[str]  # None means "any"
    remote_only: bool

    def label(self) -> str:
        return f'"{self.role}" {self.experience or "anyExp"}{" [remote]" if self.remote_only else ""}'


@dataclass
class ScheduleReport:
    results: List[Any] = field(default_factory=list)
    completed: int = 0
    failed: int = 0
    not_started: int = 0
    stopped: Optional[str] = None  # "budget" | "daily_quota" | "fatal"


def paged_tasks(roles: Iterable[str], pages: int, per_page: int = 10) -> List[PagedTask]:
    """role x page offset; Google CSE `start` is 1-based (1, 11, 21, ...)."""
    starts = [1 + i * per_page for i in range(max(0, pages))]
    return [PagedTask(role, s) for role in roles for s in starts]


def faceted_tasks(roles: Iterable[str], experiences: Sequence[str]) -> List[FacetedTask]:
    """role x (each experience tier + "any") x (on-site/any, remote-only)."""
    tiers: List[Optional[str]] = [*experiences, None]
    return [
        FacetedTask(role, exp, remote_only)
        for role in roles
        for exp in tiers
        for remote_only in (False, True)
    ]


def _label(task: Any) -> str:
    return task.label() if hasattr(task, "label") else repr(task)


def run_tasks(
    tasks: Sequence[Any],
    run_task: Callable[[Any], Iterable[Any]],
    context: RunContext,
    *,
    workers: int = 3,
    pause_sec: float = 0.25,
    sleep: Callable[[float], None] = time.sleep,
    report: Optional[ScheduleReport] = None,
) -> ScheduleReport:
    """
    Execute `run_task(task)` for every task until done or out of budget.

    `run_task` returns an iterable of results; they are pooled into the
    report in no particular order. It signals failure by raising TaskFailed,
    DailyQuotaExceeded or FatalConfigError; any other exception is logged and
    counted as a failed task. A FatalConfigError is re-raised
    here once every worker has stopped; pass `report` to keep the partial
    results in that case.
    """
    work: "queue.Queue[Any]" = queue.Queue()
    for t in tasks:
        work.put(t)

    report = report if report is not None else ScheduleReport()
    lock = threading.Lock()
    fatal: List[FatalConfigError] = []

    def stop(reason: str) -> None:
        context.budget.exhaust()
        with lock:
            if report.stopped is None or reason == "fatal":
                report.stopped = reason

    def worker() -> None:
        while True:
            if not context.budget.reserve():
                return
            try:
                task = work.get_nowait()
            except queue.Empty:
                context.budget.release()
                return

            try:
                out = list(run_task(task))
            except DailyQuotaExceeded as e:
                context.budget.release()
                log.error("Daily quota exceeded (%s); stopping all workers.", e)
                stop("daily_quota")
                return
            except FatalConfigError as e:
                context.budget.release()
                log.error("Fatal error on %s: %s", _label(task), e)
                with lock:
                    fatal.append(e)
                stop("fatal")
                return
            except TaskFailed as e:
                context.budget.release()
                log.warning("Skipping %s: %s", _label(task), e)
                with lock:
                    report.failed += 1
            except Exception:
                # a bug or an unparseable page in one task must not take the run down
                context.budget.release()
                log.exception("Unexpected error on %s; skipping it.", _label(task))
                with lock:
                    report.failed += 1
            else:
                context.budget.commit()
                with lock:
                    report.results.extend(out)
                    report.completed += 1

            if pause_sec > 0:
                sleep(pause_sec)

    width = max(1, int(workers))
    with ThreadPoolExecutor(max_workers=width, thread_name_prefix="query") as pool:
        futures = [pool.submit(worker) for _ in range(width)]
        for f in futures:
            f.result()

    report.not_started = work.qsize()
    if report.stopped is None and report.not_started:
        report.stopped = "budget"
    if fatal:
        raise fatal[0]
    return report
