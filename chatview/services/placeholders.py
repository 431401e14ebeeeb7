#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Placeholder table
=================
Holds already-rendered fragments (citation links, math, code) out of reach of
the text-pattern stages.  Each protected span is swapped for an opaque token

    \\x00<KIND>_<index>\\x00

and put back by :meth:`PlaceholderTable.restore` in the final stage.  NUL bytes
are stripped from the input before rendering, so user text cannot forge one.

A table belongs to exactly one render call.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from typing import NamedTuple, Optional

from chatview.services.escaping import escape_html


# -----------------------------------------------------------------------------

SENTINEL = "\x00"

_TOKEN_RE = re.compile(r"\x00([A-Z]+(?:_[A-Z]+)*)_(\d+)\x00")

BLOCK_KINDS = frozenset({"CODE_BLOCK", "MATH_BLOCK"})


class _Slot(NamedTuple):
    kind: str
    fragment: str
    source: Optional[str]    # raw source text, None when it cannot be revealed


# -----------------------------------------------------------------------------

class PlaceholderTable:

    def __init__(self) -> None:
        self._slots: list[_Slot] = []

    def __len__(self) -> int:
        return len(self._slots)

    def protect(self, kind: str, fragment: str, source: Optional[str] = None) -> str:
        """Record *fragment* and return the token standing in for it."""
        index = len(self._slots)
        self._slots.append(_Slot(kind, fragment, source))
        return f"{SENTINEL}{kind}_{index}{SENTINEL}"

    def _lookup(self, m: re.Match) -> Optional[_Slot]:
        index = int(m.group(2))
        if index < len(self._slots) and self._slots[index].kind == m.group(1):
            return self._slots[index]
        return None

    def restore(self, text: str) -> str:
        """Swap every token for its fragment.  Unknown tokens degrade to ``KIND_n``."""
        def _replace(m: re.Match) -> str:
            slot = self._lookup(m)
            if slot is None:
                return f"{m.group(1)}_{m.group(2)}"
            return slot.fragment
        return _TOKEN_RE.sub(_replace, text)

    def reveal(self, text: str) -> str:
        """Swap tokens back to their escaped source text.

        Used by the code extractors: a citation or math span that turns out to
        live inside code must show up as the literal characters the user typed.
        """
        def _replace(m: re.Match) -> str:
            slot = self._lookup(m)
            if slot is None or slot.source is None:
                return m.group(0)
            return escape_html(slot.source)
        return _TOKEN_RE.sub(_replace, text)

    def is_block_token(self, text: str) -> bool:
        """True when *text* is nothing but one block-level token."""
        m = _TOKEN_RE.fullmatch(text.strip())
        return bool(m) and m.group(1) in BLOCK_KINDS


# -----------------------------------------------------------------------------

_SPLIT_RE = re.compile(r"(\x00[A-Z]+(?:_[A-Z]+)*_\d+\x00)")


def contains_token(text: str) -> bool:
    return SENTINEL in text


def replace_first_outside_tokens(text: str, old: str, new: str) -> Optional[str]:
    """Replace the first *old* that lies wholly between tokens; None if there is none."""
    pieces = _SPLIT_RE.split(text)
    for i in range(0, len(pieces), 2):    # odd indexes are tokens
        if old in pieces[i]:
            pieces[i] = pieces[i].replace(old, new, 1)
            return "".join(pieces)
    return None


def strip_sentinels(text: str) -> str:
    return text.replace(SENTINEL, "")


# -----------------------------------------------------------------------------
