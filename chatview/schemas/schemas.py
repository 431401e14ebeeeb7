#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 schemas for citation metadata and the render API.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from chatview.core.config import get_settings


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Citations (chat export ``metadata.content_references`` entries)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class CitationItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: Optional[str] = None
    title: Optional[str] = None
    attribution: Optional[str] = None

    @property
    def label(self) -> str:
        return self.title or self.attribution or "Source"


# -----------------------------------------------------------------------------

class Citation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    matched_text: Optional[str] = ""
    items: Optional[list[CitationItem]] = None

    @property
    def source(self) -> Optional[CitationItem]:
        """``items[0]`` when it carries a url, else None."""
        if not self.items or not self.items[0].url:
            return None
        return self.items[0]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Render API
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RenderRequest(BaseModel):
    content: str = ""
    # Raw descriptors: each one is validated on its own by the renderer so a
    # single malformed entry is skipped instead of failing the request.
    citations: Optional[list[Any]] = None
    metadata: Optional[dict[str, Any]] = None

    @field_validator("content")
    @classmethod
    def content_within_limit(cls, v: str) -> str:
        limit = get_settings().max_content_length
        if len(v) > limit:
            raise ValueError(f"content exceeds {limit} characters")
        return v


# -----------------------------------------------------------------------------

class RenderResponse(BaseModel):
    html: str


# -----------------------------------------------------------------------------
