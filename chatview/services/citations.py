#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Citation substitution
=====================
Chat exports attach ``metadata.content_references`` to assistant messages:
each entry names a literal span of the message text (``matched_text``, e.g.
``【11†source】``) and the sources behind it.  The span is replaced by a
numbered reference link ``[n]`` where *n* is the entry's 1-based position.

The link is parked in the placeholder table so no later stage can touch it.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from chatview.schemas import Citation, CitationItem
from chatview.services.escaping import escape_html
from chatview.services.placeholders import PlaceholderTable, replace_first_outside_tokens

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

def citations_from_metadata(metadata: Optional[Mapping[str, Any]]) -> list[Any]:
    """Return the ``content_references`` list of a message's metadata (or [])."""
    if not isinstance(metadata, Mapping):
        return []
    refs = metadata.get("content_references")
    if not isinstance(refs, (list, tuple)):
        return []
    return list(refs)


# -----------------------------------------------------------------------------

def _coerce(descriptor: Any) -> Optional[Citation]:
    if isinstance(descriptor, Citation):
        return descriptor
    try:
        return Citation.model_validate(descriptor)
    except ValidationError as exc:
        log.debug("Skipping malformed citation descriptor: %s", exc.errors()[:1])
        return None


def citation_link(index: int, item: CitationItem) -> str:
    href  = escape_html(item.url or "")
    title = escape_html(item.label)
    return (
        f'<a href="{href}" target="_blank" rel="noopener noreferrer" '
        f'class="message-link" title="{title}">[{index}]</a>'
    )


# -----------------------------------------------------------------------------

def substitute_citations(
    text: str,
    citations: Optional[Iterable[Any]],
    slots: PlaceholderTable,
) -> str:
    """Replace each descriptor's ``matched_text`` with a protected link token.

    Descriptors apply in order and cumulatively: one sharing its
    ``matched_text`` with an earlier descriptor hits the next occurrence
    still left in the text.  Only the first remaining occurrence is replaced.
    """
    for index, descriptor in enumerate(citations or (), 1):
        citation = _coerce(descriptor)
        if citation is None or not citation.matched_text:
            continue
        item = citation.source
        if item is None:
            log.debug("Citation %d has no usable source", index)
            continue
        if citation.matched_text not in text:
            continue
        token = slots.protect("CITE", citation_link(index, item), citation.matched_text)
        replaced = replace_first_outside_tokens(text, citation.matched_text, token)
        if replaced is not None:
            text = replaced
    return text


# -----------------------------------------------------------------------------
