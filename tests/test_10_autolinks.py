#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for bare URL linking."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest

from chatview.services.renderer import LINK_DISPLAY_LIMIT, RenderContext, process_links, render


def _link(href: str, display: str) -> str:
    return (
        f'<a href="{href}" target="_blank" rel="noopener noreferrer" '
        f'class="message-link">{display}</a>'
    )


def _links(text: str) -> str:
    return process_links(text, RenderContext())


# =============================================================================
# Targets
# =============================================================================

def test_http_url():
    assert _links("Visit http://example.com now") == (
        "Visit " + _link("http://example.com", "http://example.com") + " now"
    )


def test_trailing_punctuation_stays_in_text():
    assert _links("Visit http://example.com.") == (
        "Visit " + _link("http://example.com", "http://example.com") + "."
    )


def test_closing_paren_stripped():
    assert _links("(see https://example.com/x)") == (
        "(see " + _link("https://example.com/x", "https://example.com/x") + ")"
    )


def test_www_gets_https_in_href_only():
    assert _links("Go to www.example.com") == (
        "Go to " + _link("https://www.example.com", "www.example.com")
    )


def test_url_glued_to_word_is_not_linked():
    assert _links("foohttp://example.com") == "foohttp://example.com"


def test_url_right_after_tag_is_linked():
    assert _links("<li>https://example.com</li>") == (
        "<li>" + _link("https://example.com", "https://example.com") + "</li>"
    )


def test_url_at_start_of_text():
    assert _links("https://a.io").startswith('<a href="https://a.io"')


# =============================================================================
# Display truncation
# =============================================================================

def test_limit_value():
    assert LINK_DISPLAY_LIMIT == 50


def test_url_of_exactly_fifty_characters_is_shown_in_full():
    url = "http://example.com/" + "a" * 31
    assert len(url) == 50
    assert _links(url) == _link(url, url)


def test_long_url_shows_host_and_ellipsis():
    url = "http://example.com/" + "a" * 32
    assert _links(url) == _link(url, "example.com/...")


def test_long_www_url_uses_host():
    url = "www.example.com/" + "b" * 40
    assert _links(url) == _link("https://" + url, "www.example.com/...")


def test_unparseable_long_url_displays_raw_target():
    url = "http://[::1/" + "a" * 60
    assert _links(url) == _link(url, url)


# =============================================================================
# Escaping
# =============================================================================

def test_ampersand_is_escaped_once():
    html = render("http://e.com/?a=1&b=2")
    assert 'href="http://e.com/?a=1&amp;b=2"' in html
    assert ">http://e.com/?a=1&amp;b=2</a>" in html
    assert "&amp;amp;" not in html


@pytest.mark.parametrize("payload", [
    'http://x.com/"onmouseover=alert(1)',
    "http://x.com/<script>alert(1)</script>",
])
def test_link_cannot_break_out_of_attribute(payload):
    html = render(payload)
    assert '"onmouseover' not in html
    assert "<script>" not in html


def test_quoted_url_keeps_quote_outside_link():
    html = render('"http://example.com"')
    assert "<a " not in html   # preceded by a quote, not whitespace


def test_trailing_quote_stripped():
    html = render('see http://example.com"')
    assert _link("http://example.com", "http://example.com") + "&quot;" in html


# -----------------------------------------------------------------------------
