#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Package version, taken from the installed distribution or pyproject.toml."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

_PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"
_VERSION_RE = re.compile(r'^version\s*=\s*"([^"]+)"', re.MULTILINE)


def _source_version() -> str:
    # Source checkout without an install
    try:
        m = _VERSION_RE.search(_PYPROJECT.read_text(encoding="utf-8"))
    except OSError:
        return "0.0.0"
    return m.group(1) if m else "0.0.0"


try:
    __version__: str = version("chatview")
except PackageNotFoundError:
    __version__ = _source_version()
