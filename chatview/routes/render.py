#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Render endpoints: message markdown to HTML.

GET  /api/v1/render?content=...
POST /api/v1/render   {"content": "...", "citations": [...], "metadata": {...}}
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from chatview.core.config import get_settings
from chatview.schemas import RenderRequest, RenderResponse
from chatview.services.citations import citations_from_metadata
from chatview.services.math import MathRenderer, mathjax_renderer
from chatview.services.renderer import render


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/render", tags=["render"])


def _configured_math_renderer() -> Optional[MathRenderer]:
    if get_settings().math_renderer == "mathjax":
        return mathjax_renderer
    return None


# -----------------------------------------------------------------------------

@router.get("", response_model=RenderResponse)
async def render_preview(
    content: str = Query(default="", max_length=1_000_000),
):
    """Return rendered HTML for a snippet of message markdown (no citations)."""
    html = render(content, math_renderer=_configured_math_renderer())
    return {"html": html}


@router.post("", response_model=RenderResponse)
async def render_content(payload: RenderRequest):
    """Render message content, linking citations from ``citations`` or ``metadata``."""
    citations = payload.citations
    if citations is None:
        citations = citations_from_metadata(payload.metadata)
    html = render(payload.content, citations, math_renderer=_configured_math_renderer())
    return {"html": html}


# -----------------------------------------------------------------------------
