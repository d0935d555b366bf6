# src/jobfeed/io/deliver.py
from __future__ import annotations

from pathlib import Path

import httpx

from jobfeed.errors import FatalConfigError


def upload_csv(path: Path, url: str, token: str = "", *, client: httpx.Client | None = None, timeout: float = 60) -> int:
    """
    POST the CSV as multipart field `file` to a webhook (e.g. n8n).
    Returns the HTTP status; raises httpx.HTTPStatusError on 4xx/5xx.
    """
    if not url:
        raise FatalConfigError("Missing N8N_WEBHOOK_URL (set it in .env).")
    if not path.is_file():
        raise FatalConfigError(f"CSV not found: {path}")

    headers = {"Authorization": f"Bearer {token}"} if token else {}
    with path.open("rb") as fh:
        files = {"file": (path.name, fh, "text/csv")}
        if client is None:
            with httpx.Client(timeout=timeout) as c:
                resp = c.post(url, files=files, headers=headers)
        else:
            resp = client.post(url, files=files, headers=headers)
    resp.raise_for_status()
    return resp.status_code
