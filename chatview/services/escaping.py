#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
HTML escaping helpers shared by the render stages.

Only the characters that can open markup or break out of an attribute value
are touched: ``&``, ``<``, ``>`` and ``"``.  Apostrophes are left alone so
prose stays readable in the generated source.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html


# -----------------------------------------------------------------------------

def escape_html(text: str) -> str:
    """Escape ``& < > "`` in *text*."""
    return _html.escape(text, quote=False).replace('"', "&quot;")


def unescape_html(text: str) -> str:
    """Exact inverse of :func:`escape_html` (``&amp;`` is undone last)."""
    return (
        text.replace("&quot;", '"')
            .replace("&gt;", ">")
            .replace("&lt;", "<")
            .replace("&amp;", "&")
    )


# -----------------------------------------------------------------------------
