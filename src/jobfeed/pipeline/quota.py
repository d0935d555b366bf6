# src/jobfeed/pipeline/quota.py
"""
Retry/backoff wrapper for one remote query.

Every budgeted call goes through `QueryController.execute`. The controller
turns raw HTTP failures (`ApiError`, httpx transport errors) into one of:

- a successful page (after 0..max_retries backoffs),
- TaskFailed          -> skip this task, keep the run going,
- DailyQuotaExceeded  -> stop the whole run, no retry,
- FatalConfigError    -> bad key / bad request, no retry.

The retry loop itself is tenacity. Each call walks through the states in
`AttemptState`; pass a `CallTrace` to see them (tests do).
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, TypeVar

import httpx
from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt

from jobfeed.errors import ApiError, DailyQuotaExceeded, FatalConfigError, TaskFailed

log = logging.getLogger(__name__)

T = TypeVar("T")

FATAL_STATUSES = frozenset({400, 401, 403})


class AttemptState(str, Enum):
    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    SUCCEEDED = "succeeded"
    FAILED_RECOVERABLE = "failed_recoverable"
    FAILED_FATAL = "failed_fatal"
    FAILED_QUOTA_EXCEEDED = "failed_quota_exceeded"


@dataclass
class BackoffPolicy:
    max_retries: int = 3
    base_delay: float = 2.0
    max_delay: float = 30.0
    jitter: float = 0.5

    def delay(self, attempt: int, rng: Callable[[float, float], float] = random.uniform) -> float:
        """Seconds to wait after failed attempt number `attempt` (1-based)."""
        exp = min(self.max_delay, self.base_delay * (2 ** (attempt - 1)))
        return exp + (rng(0.0, self.jitter) if self.jitter > 0 else 0.0)


@dataclass
class CallTrace:
    states: List[AttemptState] = field(default_factory=list)
    delays: List[float] = field(default_factory=list)

    @property
    def final(self) -> Optional[AttemptState]:
        return self.states[-1] if self.states else None


def is_daily_quota(status: int, message: str) -> bool:
    # e.g. 'Quota exceeded for quota metric ... per day for consumer ...'
    return status == 429 and "per day" in (message or "").lower()


def is_retryable_status(status: int) -> bool:
    return status == 429 or 500 <= status < 600


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, ApiError):
        return is_retryable_status(exc.status)
    return isinstance(exc, httpx.TransportError)


class QueryController:
    def __init__(
        self,
        policy: Optional[BackoffPolicy] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.policy = policy or BackoffPolicy()
        self._sleep = sleep

    def execute(self, call: Callable[[], T], *, label: str = "", trace: Optional[CallTrace] = None) -> T:
        trace = trace if trace is not None else CallTrace()

        def attempt() -> T:
            trace.states.append(AttemptState.ATTEMPTING)
            try:
                return call()
            except ApiError as e:
                if is_daily_quota(e.status, e.message):
                    raise DailyQuotaExceeded(e.message) from e
                if e.status in FATAL_STATUSES:
                    raise FatalConfigError(f"{e.status} {e.message}".strip()) from e
                if not is_retryable_status(e.status):
                    raise TaskFailed(str(e)) from e
                raise

        def before_sleep(rs: RetryCallState) -> None:
            wait = rs.next_action.sleep if rs.next_action else 0.0
            trace.states.append(AttemptState.BACKOFF)
            trace.delays.append(wait)
            exc = rs.outcome.exception() if rs.outcome else None
            log.warning(
                "%s%s; retrying in %.1fs (attempt %d)",
                f"[{label}] " if label else "",
                exc,
                wait,
                rs.attempt_number,
            )

        retrying = Retrying(
            stop=stop_after_attempt(self.policy.max_retries + 1),
            wait=lambda rs: self.policy.delay(rs.attempt_number),
            retry=retry_if_exception(_is_retryable),
            sleep=self._sleep,
            before_sleep=before_sleep,
            reraise=True,
        )

        try:
            result = retrying(attempt)
        except DailyQuotaExceeded:
            trace.states.append(AttemptState.FAILED_QUOTA_EXCEEDED)
            raise
        except FatalConfigError:
            trace.states.append(AttemptState.FAILED_FATAL)
            raise
        except TaskFailed:
            trace.states.append(AttemptState.FAILED_RECOVERABLE)
            raise
        except (ApiError, httpx.TransportError) as e:
            trace.states.append(AttemptState.FAILED_RECOVERABLE)
            raise TaskFailed(f"giving up after {self.policy.max_retries + 1} attempts: {e}") from e

        trace.states.append(AttemptState.SUCCEEDED)
        return result
