# src/jobfeed/cli.py
"""
Command-line interface for the junior job feed.

Commands:
- google:   collect fresher postings through Google CSE (daily-budgeted)
- linkedin: collect postings from the LinkedIn guest search
- run-both: google, then linkedin
- merge:    combine both CSVs into audit + deduplicated outputs
- organize: move stray output files into the data folder
- deliver:  upload the merged CSV to a webhook
"""

from dotenv import load_dotenv
load_dotenv(override=True)  # automatically looks for a .env file in the project root

import json
import logging
from pathlib import Path

import httpx
import typer

from jobfeed.config import load_settings
from jobfeed.errors import FatalConfigError, TaskFailed
from jobfeed.io.csvfiles import GOOGLE_CSV_CANDIDATES, organize as organize_files
from jobfeed.io.deliver import upload_csv
from jobfeed.pipeline.merge import AUDIT_NAME, CLEAN_NAME, merge_files
from jobfeed.pipeline.runs import run_google, run_linkedin

# Typer app instance for CLI commands
app = typer.Typer(help="Junior job feed: collect, merge and deliver.")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _google():
    settings = load_settings()
    try:
        res = run_google(settings)
    except FatalConfigError as e:
        typer.echo(f"Preflight failed: {e}", err=True)
        typer.echo(" - Ensure the Custom Search JSON API is enabled for your project", err=True)
        typer.echo(" - Use a valid API key and a valid Programmable Search Engine CX", err=True)
        typer.echo(" - If you just created/edited the key, wait a minute and retry", err=True)
        raise typer.Exit(code=1)
    except TaskFailed as e:
        typer.echo(f"Google CSE unavailable: {e}", err=True)
        raise typer.Exit(code=1)

    if res.stopped == "daily_quota":
        typer.echo("Daily quota exceeded. Partial results saved.")
    elif res.stopped == "budget" and res.out_path is None:
        typer.echo("Daily budget already consumed. Try again tomorrow.")
    typer.echo(json.dumps({
        "saved": len(res.rows),
        "out": str(res.out_path or ""),
        "queries_used_today": f"{res.queries_made}/{res.budget}",
    }, indent=2))


def _linkedin():
    settings = load_settings()
    try:
        res = run_linkedin(settings)
    except FatalConfigError as e:
        typer.echo(f"LinkedIn run aborted: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps({
        "collected": res.collected,
        "pre_filtered": res.pre_filtered,
        "kept": len(res.rows),
        "written": res.written,
        "out": str(res.out_path or ""),
    }, indent=2))


@app.command()
def google():
    """Fetch fresher jobs via Google CSE; stops cleanly at the daily budget."""
    _google()


@app.command()
def linkedin():
    """Fetch junior jobs from the LinkedIn guest search."""
    _linkedin()


@app.command("run-both")
def run_both():
    """Google CSE first, then LinkedIn."""
    typer.echo("Starting Google CSE ...")
    _google()
    typer.echo("Starting LinkedIn ...")
    _linkedin()
    typer.echo("All done. Next: `jobfeed merge`.")


@app.command()
def merge(data_dir: Path = typer.Option(None, "--data-dir", help="Defaults to DATA_DIR or ./data")):
    """
    Merge Google + LinkedIn CSVs: writes an audit file (everything) and a
    clean file (deduplicated by id, canonical URL and company+title).
    """
    settings = load_settings()
    res = merge_files(data_dir or settings.data_dir, settings.linkedin_csv_name)
    typer.echo(f"Merged {res.google_rows} (Google) + {res.linkedin_rows} (LinkedIn) = {res.audit_rows} rows")
    typer.echo(f"After dedupe: {res.clean_rows} rows")
    typer.echo(f"Wrote clean: {res.clean_path}")
    typer.echo(f"Wrote audit: {res.audit_path}")


@app.command()
def organize(root: Path = typer.Option(Path("."), "--root", help="Where stray outputs were written")):
    """Move output CSVs left in the project root into the data folder."""
    settings = load_settings()
    names = [
        *GOOGLE_CSV_CANDIDATES,
        settings.google_csv_name,
        settings.linkedin_csv_name,
        CLEAN_NAME,
        AUDIT_NAME,
    ]
    moved = organize_files(root, settings.data_dir, list(dict.fromkeys(names)))
    for name in moved:
        typer.echo(f"Moved {name} -> {settings.data_dir / name}")
    typer.echo("Data folder is clean.")


@app.command()
def deliver(path: Path = typer.Option(None, "--file", help="Defaults to <data>/combined_results.csv")):
    """Upload the clean merged CSV to the n8n webhook."""
    settings = load_settings()
    target = path or settings.data_dir / CLEAN_NAME
    try:
        status = upload_csv(target, settings.n8n_webhook_url, settings.n8n_auth_token)
    except FatalConfigError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    except httpx.HTTPError as e:
        typer.echo(f"Upload failed: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Uploaded to webhook: {status}")


if __name__ == "__main__":
    app()
