"""
Integration test fixtures.

The live fixtures need a backend listening at BACKEND_URL; tests using
them are skipped when nothing answers there.
"""
import os

import httpx
import pytest


@pytest.fixture
def live_client():
    """httpx client bound to the live backend, skipping when it is down."""
    base_url = os.getenv("BACKEND_URL", "http://localhost:8000")
    with httpx.Client(base_url=base_url, timeout=30) as client:
        try:
            client.get("/health")
        except httpx.ConnectError:
            pytest.skip("Backend not running")
        yield client
