import pytest

from jobfeed.pipeline.filter import (
    classify_experience,
    experience_allowed,
    filter_new,
    fresher_positive,
    google_pre_filter,
    google_strict_filter,
    is_blocked,
    is_target_or_remote,
    looks_like_career_or_ats,
    matched_role,
    pre_filter,
    strict_filter,
    title_likely_match,
)

ROLES = ["junior developer", "java developer", "qa engineer"]


@pytest.mark.parametrize(
    "text,kind",
    [
        ("Freshers welcome to apply", "junior"),
        ("0-1 years of experience", "junior"),
        ("Entry-level role for graduates", "junior"),
        ("6 months internship", "junior"),
        ("minimum 5 years experience", "senior"),
        ("2+ years in Java", "senior"),
        ("1-3 years experience", "senior"),
        ("10 years of industry experience", "senior"),
        ("Build APIs in Java", "unstated"),
    ],
)
def test_classify_experience(text, kind):
    assert classify_experience(text) == kind


def test_exclusion_wins_over_junior_words():
    text = "Junior Developer. Freshers may apply but minimum 5 years experience required"
    assert classify_experience(text) == "senior"
    assert not experience_allowed(text)


def test_unstated_experience_is_accepted():
    assert experience_allowed("We build payment systems")


def test_title_likely_match_rejects_senior_titles():
    assert title_likely_match("Junior Developer (Java)", ROLES)
    assert not title_likely_match("Senior Java Developer", ROLES)
    assert not title_likely_match("Data Analyst", ROLES)
    assert not title_likely_match("", ROLES)


def test_pre_filter_needs_role_and_target_or_remote():
    card = {"position": "Junior Developer", "location": "Bengaluru, Karnataka, India"}
    assert pre_filter(card, ROLES, "india")
    assert pre_filter({"position": "QA Engineer (Remote)", "location": "Berlin"}, ROLES, "india")
    assert not pre_filter({"position": "Junior Developer", "location": "Berlin, Germany"}, ROLES, "india")


def test_remote_can_come_from_description():
    job = {"position": "Junior Developer", "location": "Singapore"}
    assert not is_target_or_remote(job, "Office based", "india")
    assert is_target_or_remote(job, "This is a work from home role", "india")


def test_strict_filter_drops_senior_experience_in_description():
    card = {"position": "Junior Developer", "location": "Pune, India"}
    assert strict_filter(card, "Freshers welcome. Java, SQL.", ROLES, "india")
    assert not strict_filter(card, "minimum 5 years experience", ROLES, "india")


def test_matched_role_prefers_first_role_found():
    assert matched_role("Junior Developer", "Java developer work", ROLES) == "junior developer"
    assert matched_role("Intern", "", ROLES) == ""


def test_google_url_gates():
    assert is_blocked("https://in.linkedin.com/jobs/view/1")
    assert is_blocked("https://www.naukri.com/job-listings-x")
    assert not is_blocked("https://boards.greenhouse.io/acme/jobs/1")
    assert looks_like_career_or_ats("https://boards.greenhouse.io/acme/jobs/1")
    assert looks_like_career_or_ats("https://acme.com/careers/dev")
    assert not looks_like_career_or_ats("https://acme.com/blog/hiring")


def test_fresher_positive_tokens():
    assert fresher_positive("Junior Developer - Acme", "Freshers welcome")
    assert not fresher_positive("Senior Developer - Acme", "Freshers welcome")
    assert not fresher_positive("Developer - Acme", "Great culture")


def test_google_pre_filter():
    item = {
        "link": "https://boards.greenhouse.io/acme/jobs/123",
        "title": "Junior Developer - Acme",
        "snippet": "Freshers welcome. Bengaluru, India",
    }
    assert google_pre_filter(item)
    assert not google_pre_filter({**item, "link": "https://www.indeed.com/viewjob?jk=1"})
    assert not google_pre_filter({**item, "link": ""})


def test_google_strict_filter():
    assert google_strict_filter("Junior Developer - Acme", "0-1 years. Freshers welcome")
    assert not google_strict_filter("Junior Developer - Acme", "minimum 5 years experience")
    assert not google_strict_filter("Lead Developer", "freshers")


def test_filter_new_drops_processed_and_idless():
    jobs = [{"id": "1"}, {"id": "2"}, {"id": ""}, {"title": "no id"}]
    assert filter_new(jobs, {"1"}) == [{"id": "2"}]
