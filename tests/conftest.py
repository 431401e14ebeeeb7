#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pytest fixtures for ChatView tests.
The API tests talk to the ASGI app in-process; no server is started.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from chatview.core.config import get_settings
from chatview.main import create_app


# -----------------------------------------------------------------------------

@pytest_asyncio.fixture(scope="function")
async def client():
    """HTTP test client wired to a fresh app instance."""
    app = create_app()
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def override_settings(monkeypatch):
    """Set environment overrides and drop the cached Settings instance."""
    def _override(**env: object) -> None:
        for key, value in env.items():
            monkeypatch.setenv(key.upper(), str(value))
        get_settings.cache_clear()

    get_settings.cache_clear()
    yield _override
    get_settings.cache_clear()


# -----------------------------------------------------------------------------
# Helper functions for tests
# -----------------------------------------------------------------------------

def fake_math(source: str, display: bool) -> str:
    """Deterministic math renderer: makes protected spans easy to spot."""
    mode = "block" if display else "inline"
    return f'<span class="fake-math {mode}">{source}</span>'


def broken_math(source: str, display: bool) -> str:
    raise RuntimeError("renderer exploded")


# -----------------------------------------------------------------------------
