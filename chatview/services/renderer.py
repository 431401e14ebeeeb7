#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Message renderer
================
Renders chat message markdown to HTML.

The work is split into ordered stages, each ``(text, ctx) -> text``, listed in
``STAGES``.  Order matters:

  1. citations        → CITE tokens
  2. math             → MATH_BLOCK / MATH_INLINE tokens
  3. escape           → & < > " escaped once; later stages only add tags
  4. fenced code      → CODE_BLOCK tokens
  5. inline code      → CODE_INLINE tokens
  6. tables
  7. headers, rules
  8. bold, italic
  9. blockquotes
 10. lists
 11. bare URLs
 12. paragraphs
 13. tokens restored

Everything that must not be rewritten again (links, math, code) is parked in
the per-call ``PlaceholderTable`` and only comes back in the last stage.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional
from urllib.parse import urlsplit

from chatview.services.citations import citations_from_metadata, substitute_citations
from chatview.services.escaping import escape_html, unescape_html
from chatview.services.math import MathRenderer, mathjax_renderer, protect_math
from chatview.services.placeholders import PlaceholderTable, strip_sentinels

log = logging.getLogger(__name__)

# Cleaned URLs longer than this are displayed as "host/..."
LINK_DISPLAY_LIMIT = 50


# -----------------------------------------------------------------------------

@dataclass
class RenderContext:
    """State owned by a single render call."""

    citations: Iterable[Any] = ()
    math_renderer: Optional[MathRenderer] = None
    slots: PlaceholderTable = field(default_factory=PlaceholderTable)


Stage = Callable[[str, RenderContext], str]

_INDENT = ("    ", "\t")


# -----------------------------------------------------------------------------
# Protection stages
# -----------------------------------------------------------------------------

def apply_citations(text: str, ctx: RenderContext) -> str:
    return substitute_citations(text, ctx.citations, ctx.slots)


def apply_math(text: str, ctx: RenderContext) -> str:
    return protect_math(text, ctx.math_renderer, ctx.slots)


def apply_escaping(text: str, ctx: RenderContext) -> str:
    return escape_html(text)


# -----------------------------------------------------------------------------
# Code
# -----------------------------------------------------------------------------

_FENCE_OPEN_RE  = re.compile(r"^ {0,3}```[ \t]*([\w+#.-]*)[ \t]*$")
_FENCE_CLOSE_RE = re.compile(r"^ {0,3}```")
_INLINE_CODE_RE = re.compile(r"`([^`\n]+)`")


def extract_fenced_code(text: str, ctx: RenderContext) -> str:
    """Replace ```lang ... ``` blocks with CODE_BLOCK tokens.

    An unterminated fence runs to the end of the input.
    """
    lines = text.split("\n")
    out: list[str] = []
    i = 0
    while i < len(lines):
        fence = _FENCE_OPEN_RE.match(lines[i])
        if not fence:
            out.append(lines[i])
            i += 1
            continue

        lang = fence.group(1)
        code_lines: list[str] = []
        i += 1
        while i < len(lines) and not _FENCE_CLOSE_RE.match(lines[i]):
            code_lines.append(lines[i])
            i += 1
        i += 1   # closing fence

        code = ctx.slots.reveal("\n".join(code_lines)).strip("\n")
        cls  = f' class="language-{lang}"' if lang else ""
        token = ctx.slots.protect("CODE_BLOCK", f"<pre><code{cls}>{code}</code></pre>")
        out.extend(["", token, ""])
    return "\n".join(out)


def extract_inline_code(text: str, ctx: RenderContext) -> str:
    def _replace(m: re.Match) -> str:
        code = ctx.slots.reveal(m.group(1))
        return ctx.slots.protect("CODE_INLINE", f"<code>{code}</code>")
    return _INLINE_CODE_RE.sub(_replace, text)


# -----------------------------------------------------------------------------
# Tables  | a | b |
# -----------------------------------------------------------------------------

_TABLE_ROW_RE       = re.compile(r"^\|.*\|$")
_TABLE_SEPARATOR_RE = re.compile(r"^[\s|:-]*-[\s|:-]*$")


def _split_cells(row: str) -> list[str]:
    # The row starts and ends with "|": drop the two empty boundary cells only.
    return [cell.strip() for cell in row.split("|")[1:-1]]


def process_tables(text: str, ctx: RenderContext) -> str:
    """Turn runs of pipe rows into <table> markup.

    A run is only a table if it contains a separator row (``|---|---|``);
    otherwise its lines are left as they were.
    """
    lines = text.split("\n")
    out: list[str] = []
    i = 0
    while i < len(lines):
        if not _TABLE_ROW_RE.match(lines[i].strip()):
            out.append(lines[i])
            i += 1
            continue

        run: list[str] = []
        rows: list[list[str]] = []
        separator_seen = False
        while i < len(lines) and _TABLE_ROW_RE.match(lines[i].strip()):
            row = lines[i].strip()
            run.append(lines[i])
            if _TABLE_SEPARATOR_RE.match(row):
                separator_seen = True
            else:
                rows.append(_split_cells(row))
            i += 1

        if not (separator_seen and rows):
            out.extend(run)
            continue

        out.extend(["", "<table>"])
        for cells in rows:
            out.append("<tr>" + "".join(f"<td>{c}</td>" for c in cells) + "</tr>")
        out.extend(["</table>", ""])
    return "\n".join(out)


# -----------------------------------------------------------------------------
# Headers and horizontal rules
# -----------------------------------------------------------------------------

_HEADING_RE = re.compile(r"^(#{1,6})\s+(\S.*?)\s*$")
_RULE_RE    = re.compile(r"^---\s*$")

# Same-line markers of output that must never become a rule
_RULE_GUARDS = ("|", "<tr", "<pre", "<code")


def process_headers(text: str, ctx: RenderContext) -> str:
    lines = text.split("\n")
    out: list[str] = []
    for line in lines:
        if line.startswith(_INDENT):
            out.append(line)
            continue

        m = _HEADING_RE.match(line)
        if m:
            level = len(m.group(1))
            out.extend(["", f"<h{level}>{m.group(2)}</h{level}>", ""])
            continue

        if _RULE_RE.match(line) and not any(g in line for g in _RULE_GUARDS):
            out.extend(["", "<hr>", ""])
            continue

        out.append(line)
    return "\n".join(out)


# -----------------------------------------------------------------------------
# Bold / italic
# -----------------------------------------------------------------------------

_BOLD_ITALIC_RE = re.compile(r"\*\*\*(?!\s)(.+?)(?<!\s)\*\*\*")
_BOLD_RE        = re.compile(r"\*\*(?!\s)(.+?)(?<!\s)\*\*")
_ITALIC_RE      = re.compile(r"\*(?!\s)(.+?)(?<!\s)\*")


def process_emphasis(text: str, ctx: RenderContext) -> str:
    # Double markers first so "**" is never read as two italics
    text = _BOLD_ITALIC_RE.sub(r"<strong><em>\1</em></strong>", text)
    text = _BOLD_RE.sub(r"<strong>\1</strong>", text)
    return _ITALIC_RE.sub(r"<em>\1</em>", text)


# -----------------------------------------------------------------------------
# Blockquotes  (input is already escaped: ">" arrives as "&gt;")
# -----------------------------------------------------------------------------

_QUOTE_RE = re.compile(r"^&gt;\s+(.*)$")


def process_blockquotes(text: str, ctx: RenderContext) -> str:
    out: list[str] = []
    quote: list[str] = []
    in_quote = False

    def _flush() -> None:
        nonlocal in_quote
        out.extend(["", f"<blockquote>{'<br>'.join(quote)}</blockquote>", ""])
        quote.clear()
        in_quote = False

    for line in text.split("\n"):
        m = _QUOTE_RE.match(line)
        if m:
            quote.append(m.group(1))
            in_quote = True
            continue
        if in_quote:
            _flush()
        out.append(line)

    if in_quote:
        _flush()
    return "\n".join(out)


# -----------------------------------------------------------------------------
# Lists
# -----------------------------------------------------------------------------

_UL_ITEM_RE = re.compile(r"^ {0,3}[-*]\s+(.*)$")
_OL_ITEM_RE = re.compile(r"^ {0,3}(\d+\.)\s+(.*)$")


def _list_item(line: str) -> tuple[Optional[str], str]:
    """Return ``(kind, item html)`` for a list line, ``(None, "")`` otherwise."""
    m = _UL_ITEM_RE.match(line)
    if m:
        return "ul", m.group(1)
    m = _OL_ITEM_RE.match(line)
    if m:
        # Keep the number as written; "1. 1. 3." must not become 1, 2, 3
        return "ol", f'<span class="list-number">{m.group(1)}</span> {m.group(2)}'
    return None, ""


def process_lists(text: str, ctx: RenderContext) -> str:
    """Collapse each run of list lines into a single ``<ul>``/``<ol>`` line.

    Blank lines inside a run are skipped; any other line ends it, including an
    item of the other kind, which starts a run of its own.
    """
    lines = text.split("\n")
    out: list[str] = []
    i = 0
    while i < len(lines):
        kind, _ = _list_item(lines[i])
        if kind is None:
            out.append(lines[i])
            i += 1
            continue

        items: list[str] = []
        while i < len(lines):
            line_kind, item = _list_item(lines[i])
            if line_kind == kind:
                items.append(f"<li>{item}</li>")
            elif line_kind is not None or lines[i].strip():
                break
            i += 1

        out.extend(["", f"<{kind}>{''.join(items)}</{kind}>", ""])
    return "\n".join(out)


# -----------------------------------------------------------------------------
# Bare URLs
# -----------------------------------------------------------------------------

# Start of text, whitespace, or right after one of our own tags
_URL_RE = re.compile(r"(?<![^\s>])(https?://[^\s<\x00]+|www\.[^\s<\x00]+)", re.IGNORECASE)
_URL_TRAILING = ".,;:!?)]\"'"


def _link_display(clean: str, href: str) -> str:
    if len(clean) <= LINK_DISPLAY_LIMIT:
        return clean
    try:
        host = urlsplit(href).hostname
    except ValueError:
        host = None
    return f"{host}/..." if host else clean


def process_links(text: str, ctx: RenderContext) -> str:
    def _replace(m: re.Match) -> str:
        # Work on the raw characters, escape again on the way out
        token = unescape_html(m.group(1))
        clean = token.rstrip(_URL_TRAILING)
        tail  = token[len(clean):]
        href = "https://" + clean if clean.lower().startswith("www.") else clean
        display = _link_display(clean, href)
        return (
            f'<a href="{escape_html(href)}" target="_blank" rel="noopener noreferrer" '
            f'class="message-link">{escape_html(display)}</a>{escape_html(tail)}'
        )
    return _URL_RE.sub(_replace, text)


# -----------------------------------------------------------------------------
# Paragraphs
# -----------------------------------------------------------------------------

_PARAGRAPH_SPLIT_RE = re.compile(r"\n(?:[ \t]*\n)+")
_BLOCK_START_RE     = re.compile(r"^<(?:h[1-6]|hr|pre|ul|ol|li|table|blockquote)\b")
_INDENT_RE          = re.compile(r"^(?:    |\t)")


def _merge_open_lists(candidates: list[str]) -> list[str]:
    """Re-join a list block that a blank line split before its closing tag."""
    merged: list[str] = []
    i = 0
    while i < len(candidates):
        para = candidates[i]
        i += 1
        for tag in ("ul", "ol"):
            if para.startswith(f"<{tag}>") and f"</{tag}>" not in para:
                while i < len(candidates) and f"</{tag}>" not in para:
                    para += "\n\n" + candidates[i]
                    i += 1
                break
        merged.append(para)
    return merged


def process_paragraphs(text: str, ctx: RenderContext) -> str:
    candidates = [c.strip("\n") for c in _PARAGRAPH_SPLIT_RE.split(text)]
    candidates = _merge_open_lists([c for c in candidates if c.strip()])

    blocks: list[str] = []
    for para in candidates:
        if _BLOCK_START_RE.match(para) or ctx.slots.is_block_token(para):
            blocks.append(para)
            continue

        lines = para.split("\n")
        if all(line.startswith(_INDENT) for line in lines):
            body = "\n".join(_INDENT_RE.sub("", line) for line in lines)
            blocks.append(f"<pre>{body}</pre>")
            continue

        blocks.append(f"<p>{'<br>'.join(lines)}</p>")
    return "\n".join(blocks)


# -----------------------------------------------------------------------------

def restore_placeholders(text: str, ctx: RenderContext) -> str:
    return ctx.slots.restore(text)


STAGES: tuple[Stage, ...] = (
    apply_citations,
    apply_math,
    apply_escaping,
    extract_fenced_code,
    extract_inline_code,
    process_tables,
    process_headers,
    process_emphasis,
    process_blockquotes,
    process_lists,
    process_links,
    process_paragraphs,
    restore_placeholders,   # always last
)


# -----------------------------------------------------------------------------
# Public render functions
# -----------------------------------------------------------------------------

def render(
    text: str,
    citations: Optional[Iterable[Any]] = None,
    *,
    math_renderer: Optional[MathRenderer] = mathjax_renderer,
) -> str:
    """
    Render chat message markdown to HTML.

    Parameters
    ----------
    text          : raw message text, untrusted
    citations     : optional citation descriptors (mappings or ``Citation``
                    models); order decides the ``[n]`` labels
    math_renderer : ``(source, display) -> html`` or None to leave math as text
    """
    if not text:
        return ""
    ctx = RenderContext(citations=list(citations or ()), math_renderer=math_renderer)
    formatted = strip_sentinels(text.replace("\r\n", "\n").replace("\r", "\n"))
    for stage in STAGES:
        formatted = stage(formatted, ctx)
    return formatted


def render_message(
    content: str,
    message: Optional[Mapping[str, Any]] = None,
    *,
    math_renderer: Optional[MathRenderer] = mathjax_renderer,
) -> str:
    """Render *content* with the citations found in ``message["metadata"]``."""
    metadata = message.get("metadata") if isinstance(message, Mapping) else None
    return render(content, citations_from_metadata(metadata), math_renderer=math_renderer)


# -----------------------------------------------------------------------------
