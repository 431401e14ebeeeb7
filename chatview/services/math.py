#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Math span protection
====================
LaTeX spans are handed to a pluggable renderer and replaced by placeholder
tokens before any markdown stage runs, so ``*``, ``_``, ``#`` or ``|`` inside
a formula are never rewritten.

Recognised delimiters, resolved in this order:

    \\[ ... \\]    display
    $$ ... $$    display
    \\( ... \\)    inline
    $ ... $      inline, single line, no space just inside the dollars

A renderer is any callable ``(source, display) -> str``.  When it is missing,
returns nothing, or raises, the span is left exactly as written.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from chatview.services.escaping import escape_html
from chatview.services.placeholders import PlaceholderTable, contains_token

log = logging.getLogger(__name__)

MathRenderer = Callable[[str, bool], Optional[str]]


# -----------------------------------------------------------------------------
# Built-in renderer
# -----------------------------------------------------------------------------

def mathjax_renderer(source: str, display: bool) -> str:
    """Wrap *source* the way pandoc's ``--mathjax`` writer does, for client-side typesetting."""
    body = escape_html(source.strip())
    if display:
        return f'<span class="math display">\\[{body}\\]</span>'
    return f'<span class="math inline">\\({body}\\)</span>'


# -----------------------------------------------------------------------------

_BLOCK_PATTERNS = (
    re.compile(r"\\\[(.+?)\\\]", re.DOTALL),
    re.compile(r"\$\$(.+?)\$\$", re.DOTALL),
)

_INLINE_PATTERNS = (
    re.compile(r"\\\((.+?)\\\)", re.DOTALL),
    # "$5 and $10" is prices, not math
    re.compile(r"\$(?![\s$])([^$\n]+?)(?<!\s)\$(?!\d)"),
)


def _render_span(renderer: MathRenderer, source: str, display: bool) -> Optional[str]:
    try:
        return renderer(source, display) or None
    except Exception:
        log.warning("Math renderer failed on %r", source[:80], exc_info=True)
        return None


def protect_math(
    text: str,
    renderer: Optional[MathRenderer],
    slots: PlaceholderTable,
) -> str:
    """Render every math span and swap it for a ``MATH_BLOCK`` / ``MATH_INLINE`` token."""
    if renderer is None:
        return text

    def _substitute(pattern: re.Pattern, kind: str, display: bool, text: str) -> str:
        def _replace(m: re.Match) -> str:
            span, source = m.group(0), m.group(1)
            if not source.strip() or contains_token(span):
                return span
            fragment = _render_span(renderer, source, display)
            if fragment is None:
                return span
            return slots.protect(kind, fragment, span)
        return pattern.sub(_replace, text)

    for pattern in _BLOCK_PATTERNS:
        text = _substitute(pattern, "MATH_BLOCK", True, text)
    for pattern in _INLINE_PATTERNS:
        text = _substitute(pattern, "MATH_INLINE", False, text)
    return text


# -----------------------------------------------------------------------------
