from chatview.schemas.schemas import (
    CitationItem, Citation,
    RenderRequest, RenderResponse,
)

__all__ = [
    "CitationItem", "Citation",
    "RenderRequest", "RenderResponse",
]
