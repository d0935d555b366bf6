# src/jobfeed/io/state.py
"""
Small JSON files that carry state between runs.

- daily quota state: {"date", "queries_made", "seen_urls"}, reset every day
- seen ids: a flat JSON list of LinkedIn job ids, never reset automatically

Anything unreadable is treated as "no history"; it is never fatal.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Set

log = logging.getLogger(__name__)


@dataclass
class DailyQuotaState:
    date: str
    queries_made: int = 0
    seen_urls: Set[str] = field(default_factory=set)

    @classmethod
    def fresh(cls, today: str) -> "DailyQuotaState":
        return cls(date=today)

    def to_json(self) -> dict:
        return {
            "date": self.date,
            "queries_made": int(self.queries_made),
            "seen_urls": sorted(self.seen_urls),
        }


def today_iso() -> str:
    return dt.date.today().isoformat()


def _read_json(path: Path):
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        log.warning("Ignoring unreadable state file %s: %s", path, e)
        return None


def load_quota_state(path: Path, today: Optional[str] = None) -> DailyQuotaState:
    today = today or today_iso()
    raw = _read_json(path)
    if not isinstance(raw, dict):
        return DailyQuotaState.fresh(today)
    if raw.get("date") != today:
        return DailyQuotaState.fresh(today)

    made = raw.get("queries_made", 0)
    urls = raw.get("seen_urls", [])
    if not isinstance(made, int) or isinstance(made, bool) or made < 0 or not isinstance(urls, list):
        log.warning("State file %s has an unexpected shape; starting fresh.", path)
        return DailyQuotaState.fresh(today)
    return DailyQuotaState(date=today, queries_made=made, seen_urls={str(u) for u in urls if u})


def save_quota_state(path: Path, state: DailyQuotaState) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(state.to_json(), indent=2), encoding="utf-8")


def load_seen_ids(path: Path) -> Set[str]:
    raw = _read_json(path)
    if not isinstance(raw, list):
        return set()
    return {str(x) for x in raw if x}


def save_seen_ids(path: Path, ids: Iterable[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(sorted(set(ids)), indent=2), encoding="utf-8")
