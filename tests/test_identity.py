from jobfeed.pipeline.identity import (
    canonical_url,
    company_title_key,
    dedupe_keys,
    extract_job_id,
    resolve,
    slug,
    unique_by,
)


def test_extract_job_id_from_view_slug_and_query():
    assert extract_job_id("https://in.linkedin.com/jobs/view/junior-dev-at-acme-3712345678?refId=x") == "3712345678"
    assert extract_job_id("https://www.linkedin.com/jobs/view/3712345678/") == "3712345678"
    assert extract_job_id("https://www.linkedin.com/jobs/search/?currentJobId=3712345678&geoId=1") == "3712345678"


def test_extract_job_id_ignores_short_numbers_and_empty():
    assert extract_job_id("https://x.com/jobs/view/dev-123") == ""
    assert extract_job_id("") == ""
    assert extract_job_id(None) == ""


def test_same_native_id_resolves_equal_across_url_variants():
    a = {"jobUrl": "https://in.linkedin.com/jobs/view/junior-dev-at-acme-3712345678?refId=abc&trackingId=1"}
    b = {"job_url": "https://www.linkedin.com/jobs/view/3712345678/", "title": "Other title"}
    assert resolve(a) == resolve(b) == "3712345678"


def test_canonical_url_strips_query_fragment_and_trailing_slash():
    base = "https://x.com/jobs/1"
    for variant in (
        "https://x.com/jobs/1?utm=ref",
        "https://x.com/jobs/1#apply",
        "https://x.com/jobs/1/",
        "https://x.com/jobs/1/?utm=ref&a=b#top",
        "https://X.COM/jobs/1",
    ):
        assert canonical_url(variant) == base


def test_canonical_url_handles_relative_and_empty():
    assert canonical_url("/jobs/1/?a=1") == "/jobs/1"
    assert canonical_url("   ") == ""
    assert canonical_url(None) == ""


def test_slug_and_company_title_key():
    assert slug("  Acme, Inc. -- R&D ") == "acme inc r d"
    assert company_title_key("Acme Inc.", "Junior Developer (Java)") == "acme inc|junior developer java"
    assert company_title_key("", "  ") == ""


def test_resolve_priority_chain():
    assert resolve({"job_url": "https://x.com/jobs/1?utm=1", "company": "A", "title": "B"}) == "https://x.com/jobs/1"
    assert resolve({"company": "Acme", "position": "QA Engineer"}) == "acme|qa engineer"
    assert resolve({}) == ""


def test_dedupe_keys_triple():
    row = {"id": " 42 ", "job_url": "https://x.com/a/?q=1", "company": "Acme", "title": "Dev"}
    assert dedupe_keys(row) == ("42", "https://x.com/a", "acme|dev")


def test_unique_by_keeps_first_and_passes_empty_keys_through():
    rows = [{"k": "a", "n": 1}, {"k": "", "n": 2}, {"k": "a", "n": 3}, {"k": "", "n": 4}, {"k": "b", "n": 5}]
    out = unique_by(rows, lambda r: r["k"])
    assert [r["n"] for r in out] == [1, 2, 4, 5]


def test_malformed_host_falls_back_instead_of_raising():
    assert canonical_url("http://[broken/jobs/1?utm=x#top") == "http://[broken/jobs/1"
    row = {"job_url": "http://[broken/jobs/1", "company": "Acme", "title": "Dev"}
    assert resolve(row) == "http://[broken/jobs/1"
    assert dedupe_keys(row) == ("", "http://[broken/jobs/1", "acme|dev")
