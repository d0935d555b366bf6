# src/jobfeed/io/csvfiles.py
from __future__ import annotations

import io
import logging
import shutil
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

log = logging.getLogger(__name__)

GOOGLE_CSV_CANDIDATES = ("google_jobs.csv", "google_results.csv", "google.csv")


def read_rows(path: Optional[Path]) -> List[Dict[str, str]]:
    """
    Read a CSV into a list of string-only dicts.
    Missing, empty or header-only files give []. A UTF-8 BOM is ignored.
    """
    if path is None or not path.exists():
        return []
    text = path.read_text(encoding="utf-8-sig")
    if not text.strip():
        return []
    # normalize stray CR line endings before parsing
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines="warn",
        )
    except pd.errors.EmptyDataError:
        return []
    df.columns = [str(c).strip() for c in df.columns]
    for c in df.columns:
        df[c] = df[c].str.strip()
    return df.to_dict(orient="records")


def write_rows(path: Path, rows: Iterable[Mapping], fields: Sequence[str], *, bom: bool = False) -> int:
    """Write rows with a fixed column order (header is written even for 0 rows)."""
    rows = list(rows)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame([{f: r.get(f, "") for f in fields} for r in rows], columns=list(fields))
    df.to_csv(path, index=False, encoding="utf-8-sig" if bom else "utf-8", lineterminator="\n")
    return len(rows)


def _non_empty(p: Path) -> bool:
    return p.is_file() and p.stat().st_size > 0


def find_google_csv(data_dir: Path) -> Optional[Path]:
    """Newest non-empty known Google CSV, else newest non-empty google*.csv."""
    known = [data_dir / n for n in GOOGLE_CSV_CANDIDATES]
    existing = sorted((p for p in known if _non_empty(p)), key=lambda p: p.stat().st_mtime, reverse=True)
    if existing:
        return existing[0]
    if not data_dir.is_dir():
        return None
    others = sorted(
        (p for p in data_dir.iterdir() if p.name.lower().startswith("google") and p.suffix.lower() == ".csv" and _non_empty(p)),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
    return others[0] if others else None


def organize(root: Path, data_dir: Path, names: Sequence[str]) -> List[str]:
    """Move output files left in `root` into `data_dir` (overwriting)."""
    data_dir.mkdir(parents=True, exist_ok=True)
    moved: List[str] = []
    for name in names:
        src = root / name
        if not src.is_file():
            continue
        dest = data_dir / name
        if src.resolve() == dest.resolve():
            continue
        shutil.move(str(src), str(dest))
        log.info("Moved %s -> %s", src, dest)
        moved.append(name)
    return moved
