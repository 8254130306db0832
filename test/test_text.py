from firmsite.utils.text import format_date, html_to_text, truncate


def test_format_date():
    assert format_date("2025-03-05T10:00:00.000Z") == "March 5, 2025"
    assert format_date(None) == ""
    assert format_date("yesterday") == "yesterday"


def test_html_to_text():
    assert html_to_text("<p>Hello <b>there</b></p><p>again</p>") == "Hello there again"


def test_truncate_prefers_word_boundary():
    assert truncate("short", 10) == "short"
    assert truncate("The quick brown fox jumps", 15) == "The quick..."
