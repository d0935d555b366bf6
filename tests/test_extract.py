from jobfeed.pipeline.extract import clean_text, extract_emails, extract_phones, extract_skills


def test_emails_are_deduped_in_order():
    text = "Mail hr@acme.com or jobs@acme.co.in. Again: hr@acme.com"
    assert extract_emails(text) == ["hr@acme.com", "jobs@acme.co.in"]
    assert extract_emails("") == []


def test_phones_get_country_prefix():
    text = "Call 9876543210 or +91 98765 43210, landline 020-1234567"
    assert extract_phones(text) == ["+919876543210"]


def test_skills_follow_list_order_and_word_boundaries():
    text = "We use Docker, SQL and Java (not JavaScript... well, also JavaScript). C++ a plus."
    assert extract_skills(text) == ["java", "c++", "javascript", "sql", "docker"]


def test_skills_do_not_match_inside_words():
    assert extract_skills("Scaling reactive systems") == []


def test_clean_text_collapses_and_truncates():
    assert clean_text("  a \n\n b\t c ") == "a b c"
    out = clean_text("x" * 20, max_len=10)
    assert len(out) == 10
    assert out.endswith("…")
    assert clean_text(None) == ""
