from pathlib import Path

import pytest

from jobfeed.config import DEFAULT_LINKEDIN_TITLES, Settings, load_settings
from jobfeed.errors import FatalConfigError


def test_defaults_from_empty_env():
    s = load_settings({})
    assert s.daily_query_budget == 90
    assert s.date_restrict == "d7"
    assert s.max_pages_per_role == 2
    assert s.linkedin_titles == DEFAULT_LINKEDIN_TITLES
    assert "Junior Java Developer" in s.google_roles
    assert s.persist_seen is True
    assert s.incremental_mode is False
    assert s.google_csv == Path("data") / "google_jobs.csv"


def test_env_overrides():
    s = load_settings(
        {
            "GOOGLE_CSE_KEY": "k",
            "GOOGLE_CX": "cx",
            "DAILY_QUERY_BUDGET": "10",
            "ROLES": "QA Engineer,  Python Developer ,",
            "LINKEDIN_TITLES": "Junior Developer",
            "INCREMENTAL_MODE": "true",
            "PERSIST_SEEN": "0",
            "QUERY_PAUSE_SEC": "1.5",
            "DATA_DIR": "/tmp/out",
            "OUT_CSV": "g.csv",
        }
    )
    assert s.daily_query_budget == 10
    assert s.google_roles == ["QA Engineer", "Python Developer"]
    assert s.linkedin_titles == ["Junior Developer"]
    assert s.incremental_mode is True
    assert s.persist_seen is False
    assert s.query_pause_sec == 1.5
    assert s.google_csv == Path("/tmp/out/g.csv")
    s.require_google()


def test_bad_numbers_fall_back_to_defaults():
    s = load_settings({"DAILY_QUERY_BUDGET": "lots", "QUERY_PAUSE_SEC": "soon"})
    assert s.daily_query_budget == 90
    assert s.query_pause_sec == 0.25


def test_require_google():
    with pytest.raises(FatalConfigError):
        Settings(google_key="k").require_google()
