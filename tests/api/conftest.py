"""Shared fixtures for API integration tests.

Provides a TestClient whose TerminalSession dependency is replaced by a
fresh, seeded session for every test.
"""

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_terminal_session
from main import app


@pytest.fixture
def client_with_session(fresh_session):
    """Provide a TestClient with a fresh TerminalSession injected.

    Yields:
        A tuple of (TestClient, TerminalSession) for testing.

    Example:
        def test_something(client_with_session):
            client, session = client_with_session
            response = client.get("/terminal/cwd")
            assert response.status_code == 200
    """
    app.dependency_overrides[get_terminal_session] = lambda: fresh_session

    client = TestClient(app)

    yield client, fresh_session

    app.dependency_overrides.clear()
