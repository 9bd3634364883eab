"""Tests for text processing utilities."""

from job_relay.utils.text_processing import (
    ELLIPSIS,
    clean_text,
    escape_attr,
    escape_html,
    fit_escaped,
    strip_tags,
    truncate,
)


class TestCleanText:
    def test_collapses_whitespace(self):
        assert clean_text("  Build\n\n a   site\t") == "Build a site"

    def test_none(self):
        assert clean_text(None) == ""


class TestEscapeHtml:
    def test_escapes_markup(self):
        assert escape_html("<b>R&D</b>") == "&lt;b&gt;R&amp;D&lt;/b&gt;"

    def test_quotes_left_alone(self):
        assert escape_html('say "hi"') == 'say "hi"'

    def test_none(self):
        assert escape_html(None) == ""


class TestEscapeAttr:
    def test_quotes_escaped(self):
        assert escape_attr('https://x.test/?q="a"&b=1') == "https://x.test/?q=&quot;a&quot;&amp;b=1"

    def test_none(self):
        assert escape_attr(None) == ""


class TestStripTags:
    def test_keeps_visible_text(self):
        assert strip_tags('1. <b>R&amp;D</b> <a href="x">View</a>') == "1. R&D View"


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("hello", 10) == "hello"

    def test_exact_length_unchanged(self):
        assert truncate("hello", 5) == "hello"

    def test_cut_with_ellipsis(self):
        result = truncate("hello world", 8)
        assert len(result) <= 8
        assert result.endswith(ELLIPSIS)

    def test_non_positive_limit(self):
        assert truncate("hello", 0) == ""
        assert truncate("hello", -3) == ""


class TestFitEscaped:
    def test_escaping_counted(self):
        fitted = fit_escaped("&" * 100, 20)
        assert len(fitted) <= 20
        assert fitted.endswith(ELLIPSIS)
        assert "&amp;" in fitted

    def test_never_splits_an_entity(self):
        for room in range(1, 30):
            fitted = fit_escaped("a&b<c>" * 10, room)
            assert len(fitted) <= room
            assert fitted.replace("&amp;", "").replace("&lt;", "").replace("&gt;", "").count("&") == 0

    def test_fits_without_cut(self):
        assert fit_escaped("R&D", 10) == "R&amp;D"
