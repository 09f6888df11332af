from portfolio_chat.utils.text import extract_show_project, sanitize_session_id


def test_directive_is_extracted_and_removed():
    reply, project = extract_show_project("Check this out [SHOW_PROJECT:towercaster] cool right?")
    assert project == "towercaster"
    assert reply == "Check this out  cool right?"


def test_directive_at_end_is_trimmed():
    reply, project = extract_show_project("Want to see it? [SHOW_PROJECT:bookspire]")
    assert project == "bookspire"
    assert reply == "Want to see it?"


def test_no_directive():
    reply, project = extract_show_project("  Just text.  ")
    assert project is None
    assert reply == "Just text."


def test_first_directive_wins_and_all_are_stripped():
    reply, project = extract_show_project(
        "[SHOW_PROJECT:thesis] and also [SHOW_PROJECT:stassel] done"
    )
    assert project == "thesis"
    assert "SHOW_PROJECT" not in reply
    assert reply == "and also  done"


def test_malformed_directive_is_left_alone():
    reply, project = extract_show_project("see [SHOW_PROJECT:bad key] here")
    assert project is None
    assert reply == "see [SHOW_PROJECT:bad key] here"


def test_sanitize_session_id():
    assert sanitize_session_id("a!!b") == "ab"
    assert sanitize_session_id("ünï") == "n"
    assert sanitize_session_id("", default="anon") == "anon"
    assert sanitize_session_id("abcdef", max_length=4) == "abcd"
