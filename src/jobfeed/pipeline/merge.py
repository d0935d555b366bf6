# src/jobfeed/pipeline/merge.py
"""
Cross-source merge: Google rows + LinkedIn rows -> audit set and clean set.

audit = both normalized lists concatenated (Google first), nothing dropped.
clean = audit run through `dedupe`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Tuple

from jobfeed.io.csvfiles import find_google_csv, read_rows, write_rows
from jobfeed.models import CANONICAL_FIELDS, CanonicalJob
from jobfeed.pipeline.identity import dedupe_keys
from jobfeed.pipeline.normalize import normalize_rows

log = logging.getLogger(__name__)

CLEAN_NAME = "combined_results.csv"
AUDIT_NAME = "combined_results_all.csv"


def dedupe(rows: Iterable[CanonicalJob]) -> List[CanonicalJob]:
    """
    Drop a row if its id, canonical URL or company|title was already seen.
    Only non-empty keys count; the first occurrence wins.
    """
    out: List[CanonicalJob] = []
    seen_ids, seen_urls, seen_combo = set(), set(), set()
    for r in rows:
        rid, url, combo = dedupe_keys(r)
        if (rid and rid in seen_ids) or (url and url in seen_urls) or (combo and combo in seen_combo):
            continue
        out.append(r)
        if rid:
            seen_ids.add(rid)
        if url:
            seen_urls.add(url)
        if combo:
            seen_combo.add(combo)
    return out


def merge(
    source_a: Iterable[Mapping], source_b: Iterable[Mapping]
) -> Tuple[List[CanonicalJob], List[CanonicalJob]]:
    audit = normalize_rows(source_a) + normalize_rows(source_b)
    return audit, dedupe(audit)


@dataclass
class MergeResult:
    google_csv: Optional[Path]
    google_rows: int
    linkedin_rows: int
    audit_rows: int
    clean_rows: int
    clean_path: Path
    audit_path: Path


def merge_files(data_dir: Path, linkedin_name: str = "results.csv") -> MergeResult:
    data_dir.mkdir(parents=True, exist_ok=True)

    google_csv = find_google_csv(data_dir)
    if google_csv is None:
        log.warning("No Google CSV found in %s; proceeding with LinkedIn only.", data_dir)
    else:
        log.info("Using Google CSV: %s", google_csv)

    google = read_rows(google_csv)
    linkedin = read_rows(data_dir / linkedin_name)
    audit, clean = merge(google, linkedin)

    audit_path = data_dir / AUDIT_NAME
    clean_path = data_dir / CLEAN_NAME
    write_rows(audit_path, audit, CANONICAL_FIELDS)
    write_rows(clean_path, clean, CANONICAL_FIELDS)

    return MergeResult(
        google_csv=google_csv,
        google_rows=len(google),
        linkedin_rows=len(linkedin),
        audit_rows=len(audit),
        clean_rows=len(clean),
        clean_path=clean_path,
        audit_path=audit_path,
    )
