#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""End-to-end tests for the full render pipeline."""
# -----------------------------------------------------------------------------

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from chatview.services.renderer import (
    STAGES,
    apply_citations,
    process_paragraphs,
    render,
    restore_placeholders,
)
from tests.conftest import fake_math


# ── Stage order ───────────────────────────────────────────────────────────────

def test_stage_order_endpoints():
    assert STAGES[0] is apply_citations
    assert STAGES[-2] is process_paragraphs
    assert STAGES[-1] is restore_placeholders


# ── Reference scenarios ───────────────────────────────────────────────────────

def test_title_bold_italic_and_long_link():
    src = (
        "# Title\n\nSome **bold** and *italic* text with "
        "http://example.com/a/very/long/path/that/exceeds/fifty/characters/total here."
    )
    html = render(src)
    assert html == (
        "<h1>Title</h1>\n"
        "<p>Some <strong>bold</strong> and <em>italic</em> text with "
        '<a href="http://example.com/a/very/long/path/that/exceeds/fifty/characters/total" '
        'target="_blank" rel="noopener noreferrer" class="message-link">example.com/...</a>'
        " here.</p>"
    )


def test_citation_scenario():
    html = render("See [S1] for detail.",
                  [{"matched_text": "[S1]", "items": [{"url": "https://x", "title": "X"}]}])
    assert html.startswith("<p>See <a href=\"https://x\"")
    assert html.endswith(">[1]</a> for detail.</p>")


# ── Mixed documents ───────────────────────────────────────────────────────────

def test_chat_answer_document():
    src = "\n".join([
        "## Summary",
        "",
        "Energy is $E = mc^2$ [1].",
        "",
        "| Term | Meaning |",
        "|------|---------|",
        "| *E* | energy |",
        "",
        "Steps:",
        "1. Measure",
        "2. Compute",
        "",
        "> Keep units consistent.",
        "",
        "```python",
        "# comment, not a heading",
        "e = m * c ** 2",
        "```",
        "",
        "---",
        "More at www.example.org.",
    ])
    cites = [{"matched_text": "[1]", "items": [{"url": "https://physics.example", "title": "Physics"}]}]
    html = render(src, cites, math_renderer=fake_math)
    blocks = html.split("\n")

    assert blocks[0] == "<h2>Summary</h2>"
    assert blocks[1].startswith("<p>Energy is <span class=\"fake-math inline\">E = mc^2</span> <a ")
    assert blocks[1].endswith(">[1]</a>.</p>")
    assert "<tr><td><em>E</em></td><td>energy</td></tr>" in html
    assert "<p>Steps:</p>" in html
    assert '<ol><li><span class="list-number">1.</span> Measure</li>' in html
    assert "<blockquote>Keep units consistent.</blockquote>" in html
    assert '<pre><code class="language-python"># comment, not a heading\ne = m * c ** 2</code></pre>' in html
    assert "<hr>" in html
    assert html.endswith(
        '<p>More at <a href="https://www.example.org" target="_blank" '
        'rel="noopener noreferrer" class="message-link">www.example.org</a>.</p>'
    )


def test_header_lookalike_inside_code_survives_full_pipeline():
    html = render("```\n## fake\n* fake\n```\n\n## real")
    assert html == "<pre><code>## fake\n* fake</code></pre>\n<h2>real</h2>"


def test_malformed_markdown_degrades_to_text():
    html = render("**unclosed and `tick and | pipe |\n> \n1.")
    assert html
    assert "unclosed" in html


# ── Isolation ─────────────────────────────────────────────────────────────────

def test_parallel_renders_are_independent():
    docs = [f"Item {i}: $x_{i}$ and `code {i}`\n\n- a{i}\n- b{i}" for i in range(40)]
    sequential = [render(d, math_renderer=fake_math) for d in docs]
    with ThreadPoolExecutor(max_workers=8) as pool:
        parallel = list(pool.map(lambda d: render(d, math_renderer=fake_math), docs))
    assert parallel == sequential
    assert "x_39" in sequential[39]


# -----------------------------------------------------------------------------
